"""
Execution pipeline: one instruction from prediction to handler result.

    RESOLVE -> (human approval, if risk >= threshold) -> (explanation, if enabled)
            -> MARSHAL -> INVOKE -> RESULT

Resolution, marshalling and invocation failures are raised as
ActionProcessingError subclasses and never retried. A vetoed action or the
no-op sentinel is a normal result, not an error.
"""

import dataclasses
import json
import typing
from typing import Any, Dict, List, Optional

from config import Config
from error_handler import (
    ActionExecutionError, ActionNotFoundError, ConfigurationError, MarshallingError, TransportError
)
from logger import get_action_logger, get_logger
from orchestration.action_model import (
    ActionDescriptor, ActionKind, ActionResult, ParameterType, RiskLevel
)
from orchestration.capabilities import parameter_type_for
from orchestration.decisions import ExplainDecision, HumanDecision
from orchestration.prediction import PredictionEngine, parse_decomposition
from orchestration.schema_builder import SchemaBuilder

logger = get_logger(__name__)

COMPLEX_SYSTEM_PROMPT = (
    "You fill in JSON objects from user instructions. Keep every key of the "
    "object you are given, replace the placeholder values, and reply with the JSON object only."
)


class ActionProcessor:
    """
    Runs instructions through prediction, the approval and explanation gates,
    argument marshalling and the action handler.
    """

    def __init__(
        self,
        engine: PredictionEngine,
        human_decision: Optional[HumanDecision] = None,
        explain_decision: Optional[ExplainDecision] = None,
        risk_threshold: Optional[RiskLevel] = None
    ):
        self.engine = engine
        self.llm = engine.llm
        self.registry = engine.registry
        self.human_decision = human_decision
        self.explain_decision = explain_decision
        self.risk_threshold = risk_threshold or configured_risk_threshold()

    def process_single_action(
        self,
        prompt: str,
        action: Optional[ActionDescriptor] = None,
        human_decision: Optional[HumanDecision] = None,
        explain_decision: Optional[ExplainDecision] = None
    ) -> ActionResult:
        """
        Run one instruction. When action is None the model picks it.

        Raises:
            ActionNotFoundError: the predicted name is not registered
            MarshallingError: arguments could not be built
            ActionExecutionError: the handler raised
            TransportError: the model could not be reached
        """
        human_decision = human_decision or self.human_decision
        explain_decision = explain_decision or self.explain_decision

        if action is None:
            action_name = self.engine.predict_single(prompt)
            action = self.registry.resolve(action_name)
            if action is None:
                raise ActionNotFoundError(f"No registered action named {action_name!r}", action_name)

        log = get_action_logger(__name__, action.name)
        outcome = ActionResult(prompt=prompt, action_name=action.name, risk_level=action.risk)

        if action.is_no_op:
            log.info("No action matches the instruction")
            outcome.mark_no_action()
            return outcome

        if human_decision is not None and action.risk.at_least(self.risk_threshold):
            if not human_decision.approve(prompt, action.name):
                log.info("Not approved")
                outcome.mark_rejected()
                return outcome

        if explain_decision is not None:
            outcome.explanation = self._explain(prompt, action, explain_decision)

        outcome.arguments = self.marshal(prompt, action)
        log.info(f"Invoking with {sorted(outcome.arguments)}")
        outcome.mark_succeeded(invoke_action(action, outcome.arguments))
        return outcome

    def process_multiple_actions(self, prompt: str, number: int, **gates: Any) -> List[ActionResult]:
        """Let the model pick several actions for the same instruction and run each"""
        return [
            self.process_single_action(prompt, action=action, **gates)
            for action in self.engine.predict_multiple(prompt, number)
        ]

    def process_multi_step(self, prompt: str, **gates: Any) -> List[ActionResult]:
        """Decompose the instruction into sub-prompts and run them in order"""
        results = []
        for sub_prompt, action_name in parse_decomposition(self.engine.predict_decomposition(prompt)):
            action = self.registry.resolve_or_noop(action_name)
            results.append(self.process_single_action(sub_prompt, action=action, **gates))
        return results

    def _explain(self, prompt: str, action: ActionDescriptor, explain_decision: ExplainDecision) -> Optional[str]:
        try:
            explanation = self.engine.explain(prompt, action.name)
        except TransportError as e:
            logger.warning(f"Explanation for {action.name} unavailable: {e}")
            return None

        explain_decision.on_explain(prompt, action.name, explanation)
        return explanation

    # ------------------------------------------------------------------
    # Marshalling
    # ------------------------------------------------------------------

    def marshal(self, prompt: str, action: ActionDescriptor) -> Dict[str, Any]:
        if not action.parameters:
            return {}
        if action.is_complex:
            return self._marshal_complex(prompt, action)
        return self._marshal_function_call(prompt, action)

    def _marshal_function_call(self, prompt: str, action: ActionDescriptor) -> Dict[str, Any]:
        schema = SchemaBuilder.build(action)
        session = self.llm.start_chat(tools=[self.llm.build_function_declaration(schema)])
        return SchemaBuilder.extract(schema, session.send_message(prompt))

    def _marshal_complex(self, prompt: str, action: ActionDescriptor) -> Dict[str, Any]:
        skeleton = {p.name: type_skeleton(p.annotation, p.type) for p in action.parameters}
        user_prompt = f"populate this json {json.dumps(skeleton)} with values from this prompt - {prompt}"

        try:
            data = self.llm.generate_json(COMPLEX_SYSTEM_PROMPT, user_prompt)
        except ValueError as e:
            raise MarshallingError(str(e), action.name) from e

        if not isinstance(data, dict):
            raise MarshallingError(f"Expected a JSON object, got {type(data).__name__}", action.name)

        # A lone complex parameter is sometimes returned without its wrapping key
        if len(action.parameters) == 1 and action.parameters[0].name not in data:
            data = {action.parameters[0].name: data}

        try:
            arguments = {
                p.name: from_json(p.annotation, data[p.name])
                for p in action.parameters if p.name in data
            }
        except (TypeError, ValueError) as e:
            raise MarshallingError(f"Cannot build arguments for {action.name}: {e}", action.name) from e

        if not arguments:
            raise MarshallingError(f"Model returned none of {list(action.parameter_names)}", action.name)
        return arguments


def configured_risk_threshold() -> RiskLevel:
    """
    Raises:
        ConfigurationError: if APPROVAL_RISK_THRESHOLD is not low, medium or high
    """
    try:
        return RiskLevel.parse(Config.APPROVAL_RISK_THRESHOLD)
    except ValueError as e:
        raise ConfigurationError(
            f"APPROVAL_RISK_THRESHOLD must be one of low, medium, high; got {Config.APPROVAL_RISK_THRESHOLD!r}"
        ) from e


def invoke_action(action: ActionDescriptor, arguments: Dict[str, Any]) -> Any:
    """
    Call the handler the way its kind expects, arguments in parameter order.

    Raises:
        ActionExecutionError: no handler, or the handler raised
    """
    if action.handler is None:
        raise ActionExecutionError(f"Action {action.name} has no handler", action.name)

    ordered = {name: arguments[name] for name in action.parameter_names if name in arguments}

    try:
        if action.kind == ActionKind.SHELL:
            return action.handler([str(value) for value in ordered.values()])
        if action.kind == ActionKind.HTTP:
            return action.handler(ordered)
        return action.handler(**ordered)
    except Exception as e:
        raise ActionExecutionError(f"Action {action.name} failed: {e}", action.name) from e


# ============================================================================
# JSON <-> PYTHON TYPES FOR COMPLEX PARAMETERS
# ============================================================================

_PLACEHOLDERS = {
    ParameterType.STRING: "",
    ParameterType.INTEGER: 0,
    ParameterType.REAL: 0.0,
    ParameterType.BOOLEAN: False,
    ParameterType.ARRAY: [],
}


def type_skeleton(annotation: Any, parameter_type: Optional[ParameterType] = None) -> Any:
    """Placeholder JSON value the model is asked to fill for a type"""
    if annotation is not None and dataclasses.is_dataclass(annotation):
        hints = typing.get_type_hints(annotation)
        return {f.name: type_skeleton(hints.get(f.name)) for f in dataclasses.fields(annotation)}

    if parameter_type is None:
        parameter_type = parameter_type_for(annotation) if annotation is not None else ParameterType.STRING

    return _PLACEHOLDERS.get(parameter_type, {})


def from_json(annotation: Any, value: Any) -> Any:
    """Rebuild a value of the annotated type from decoded JSON"""
    if annotation is None or value is None:
        return value

    if dataclasses.is_dataclass(annotation):
        if not isinstance(value, dict):
            raise TypeError(f"{annotation.__name__} needs an object, got {value!r}")
        hints = typing.get_type_hints(annotation)
        return annotation(**{
            f.name: from_json(hints.get(f.name), value[f.name])
            for f in dataclasses.fields(annotation) if f.name in value
        })

    origin = typing.get_origin(annotation)
    if origin in (list, tuple, set):
        args = typing.get_args(annotation)
        item_type = args[0] if args else None
        return origin(from_json(item_type, item) for item in value)

    if annotation is bool:
        if isinstance(value, str):
            return value.strip().lower() in ('true', 'yes', '1')
        return bool(value)
    if annotation in (int, float, str):
        return annotation(value)

    if isinstance(annotation, type) and isinstance(value, dict):
        return annotation(**value)
    return value
