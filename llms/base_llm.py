"""
Provider-neutral chat interface.

The orchestration core only ever talks to a ChatSession: send a message,
get back text and (when tools were declared) structured function calls.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class LLMConfig:
    model_name: str
    temperature: float = 0.7
    top_p: float = 0.95
    top_k: int = 40
    system_instruction: Optional[str] = None


@dataclass
class FunctionCall:
    """One structured call the model asked us to make"""
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass
class LLMResponse:
    text: Optional[str] = None
    function_calls: Optional[List[FunctionCall]] = None
    finish_reason: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def first_function_call(self) -> Optional[FunctionCall]:
        if not self.function_calls:
            return None
        return self.function_calls[0]


@dataclass
class ChatMessage:
    role: str
    content: str


class ChatSession(ABC):
    """A conversation that keeps its own history between calls"""

    @abstractmethod
    def send_message(self, message: Any) -> LLMResponse:
        """
        Send text (or provider-specific structured content) and block for the reply.

        Raises:
            TransportError: if the service cannot be reached or refuses the call
        """

    def get_history(self) -> List[ChatMessage]:
        return []


class BaseLLM(ABC):
    """A model that can open chat sessions and declare tools"""

    def __init__(self, config: LLMConfig):
        self.config = config

    @abstractmethod
    def start_chat(self, tools: Optional[List[Any]] = None) -> ChatSession:
        """Open a new session; tools are function declarations the model may call"""

    @abstractmethod
    def build_function_declaration(self, schema: Any) -> Any:
        """Turn an ArgumentSchema into the provider's tool declaration"""

    @abstractmethod
    def generate_json(self, system_prompt: str, user_prompt: str) -> Dict[str, Any]:
        """One-shot request whose reply must be a JSON object"""


def convert_proto_args(args: Any) -> Any:
    """
    Convert protobuf-backed call arguments (map/repeated composites) into
    plain dicts and lists. Plain values are returned unchanged.
    """
    if args is None:
        return None

    if isinstance(args, (str, bytes, bool, int, float)):
        return args

    if hasattr(args, 'items'):
        return {key: convert_proto_args(value) for key, value in args.items()}

    if hasattr(args, '__iter__'):
        return [convert_proto_args(item) for item in args]

    return args
