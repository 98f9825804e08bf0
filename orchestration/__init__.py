"""
Orchestration system: turns natural-language instructions into action calls.

Architecture:
- action_model.py: Action descriptors, risk levels, results
- capabilities.py: Capability providers, loaders and manifest discovery
- loaders.py: Shell commands as actions
- registry.py: Process-wide action registry
- schema_builder.py: Function-calling schemas and argument extraction
- prediction.py: Model-driven action selection
- decisions.py: Human approval and explanation gates
- pipeline.py: Execution pipeline
- script_processor.py: Line-by-line script runs
"""

from .action_model import (
    ActionDescriptor, ActionParameter, ActionKind, ActionResult, ActionStatus,
    ParameterType, RiskLevel, NO_OP_ACTION, NO_OP_ACTION_NAME
)
from .capabilities import CapabilityLoader, CapabilityProvider, FunctionCapability, load_manifest
from .loaders import ShellActionLoader, ShellCommand
from .registry import ActionRegistry, get_registry, reset_registry
from .schema_builder import ArgumentSchema, SchemaBuilder, SchemaType
from .prediction import PredictionEngine, parse_action_names, parse_decomposition
from .decisions import ExplainDecision, HumanDecision, LoggingExplainDecision, LoggingHumanDecision
from .pipeline import ActionProcessor, invoke_action
from .script_processor import ScriptProcessor, ScriptResult, ScriptLineResult

__all__ = [
    # Action models
    "ActionDescriptor",
    "ActionParameter",
    "ActionKind",
    "ActionResult",
    "ActionStatus",
    "ParameterType",
    "RiskLevel",
    "NO_OP_ACTION",
    "NO_OP_ACTION_NAME",

    # Discovery and registry
    "CapabilityLoader",
    "CapabilityProvider",
    "FunctionCapability",
    "load_manifest",
    "ShellActionLoader",
    "ShellCommand",
    "ActionRegistry",
    "get_registry",
    "reset_registry",

    # Prediction and execution
    "ArgumentSchema",
    "SchemaBuilder",
    "SchemaType",
    "PredictionEngine",
    "parse_action_names",
    "parse_decomposition",
    "ExplainDecision",
    "HumanDecision",
    "LoggingExplainDecision",
    "LoggingHumanDecision",
    "ActionProcessor",
    "invoke_action",
    "ScriptProcessor",
    "ScriptResult",
    "ScriptLineResult",
]

__version__ = "1.0.0"
