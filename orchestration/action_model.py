"""
Core action model: describes invocable actions and the outcome of running one.

Classes:
- RiskLevel: Ordinal risk of running an action (drives human approval)
- ParameterType: Semantic type of one action parameter
- ActionKind: Which invocation convention the handler follows
- ActionParameter: One (name, type) pair of an action's signature
- ActionDescriptor: Everything needed to predict, marshal and invoke an action
- ActionStatus: Outcome of one instruction
- ActionResult: Outcome record with audit trail
"""

from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any, Callable, Dict, Optional, Tuple
from enum import Enum
from datetime import datetime
import json
import uuid


NO_OP_ACTION_NAME = "blankAction"


class RiskLevel(str, Enum):
    """How much user verification is needed"""
    LOW = "low"           # No confirmation needed
    MEDIUM = "medium"     # Ask before proceeding
    HIGH = "high"         # Ask, require explicit yes

    @property
    def rank(self) -> int:
        return _RISK_ORDER.index(self)

    def at_least(self, other: "RiskLevel") -> bool:
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value: str) -> "RiskLevel":
        return cls(value.strip().lower())


_RISK_ORDER = (RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH)


class ParameterType(str, Enum):
    """Semantic parameter types understood by the schema builder"""
    STRING = "string"
    INTEGER = "integer"
    REAL = "real"
    BOOLEAN = "boolean"
    ARRAY = "array"       # array of primitives
    COMPLEX = "complex"   # anything else: dataclasses, user types

    @property
    def is_primitive(self) -> bool:
        return self != ParameterType.COMPLEX


class ActionKind(str, Enum):
    """Invocation convention of an action's handler"""
    FUNCTION = "function"   # self-describing Python callable
    SHELL = "shell"         # handler takes an argv list
    HTTP = "http"           # handler takes one mapping (request body)
    EXTENDED = "extended"   # loader-provided callable, keyword arguments


@dataclass(frozen=True)
class ActionParameter:
    name: str
    type: ParameterType = ParameterType.STRING
    annotation: Any = None  # Python type used to deserialize COMPLEX values


@dataclass(frozen=True)
class ActionDescriptor:
    """
    Describes one invocable action. Created at registry population time and
    never modified afterwards.
    """
    name: str
    description: str = ""
    parameters: Tuple[ActionParameter, ...] = ()
    handler: Optional[Callable[..., Any]] = None
    risk: RiskLevel = RiskLevel.LOW
    group: Optional[str] = None
    group_description: Optional[str] = None
    kind: ActionKind = ActionKind.FUNCTION

    @property
    def is_complex(self) -> bool:
        return any(not p.type.is_primitive for p in self.parameters)

    @property
    def is_no_op(self) -> bool:
        return self.name == NO_OP_ACTION_NAME

    @property
    def parameter_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.parameters)


NO_OP_ACTION = ActionDescriptor(
    name=NO_OP_ACTION_NAME,
    description="No action matches the instruction",
)


class ActionStatus(str, Enum):
    """Lifecycle status of an instruction"""
    PENDING = "pending"           # Resolved, not yet run
    REJECTED = "rejected"         # Human approval vetoed it
    NO_ACTION = "no_action"       # Resolved to the no-op sentinel
    SUCCEEDED = "succeeded"       # Handler returned


@dataclass
class ActionResult:
    """
    Outcome of one instruction flowing through the execution pipeline.
    Failures are raised, not recorded here.
    """

    # Identification
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.now)

    prompt: str = ""
    action_name: str = ""
    risk_level: RiskLevel = RiskLevel.LOW
    status: ActionStatus = ActionStatus.PENDING

    arguments: Dict[str, Any] = field(default_factory=dict)
    explanation: Optional[str] = None
    result: Any = None

    decided_at: Optional[datetime] = None
    executed_at: Optional[datetime] = None

    def mark_rejected(self) -> None:
        """Human approval vetoed this action"""
        self.status = ActionStatus.REJECTED
        self.decided_at = datetime.now()
        self.result = f"Action {self.action_name} was not approved"

    def mark_no_action(self) -> None:
        self.status = ActionStatus.NO_ACTION
        self.executed_at = datetime.now()
        self.result = "No action taken"

    def mark_succeeded(self, result: Any) -> None:
        self.status = ActionStatus.SUCCEEDED
        self.executed_at = datetime.now()
        self.result = result

    @property
    def succeeded(self) -> bool:
        return self.status == ActionStatus.SUCCEEDED

    @property
    def result_text(self) -> str:
        """The handler's return value, JSON-serialized unless it already is text"""
        if isinstance(self.result, str):
            return self.result
        return json.dumps(self.result, default=_json_default)


def _json_default(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return str(value)
