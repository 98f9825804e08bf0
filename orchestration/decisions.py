"""
Pluggable gates consulted by the execution pipeline.

HumanDecision may veto an action before it runs. ExplainDecision receives the
model's explanation of why an action was chosen; it can only observe.
"""

from abc import ABC, abstractmethod

from logger import get_logger

logger = get_logger(__name__)


class HumanDecision(ABC):

    @abstractmethod
    def approve(self, prompt: str, action_name: str) -> bool:
        """Return False to stop the action from running"""


class ExplainDecision(ABC):

    @abstractmethod
    def on_explain(self, prompt: str, action_name: str, explanation: str) -> None:
        """Display or record why the action was chosen"""


class LoggingHumanDecision(HumanDecision):
    """Approves everything and leaves a trace in the log"""

    def approve(self, prompt: str, action_name: str) -> bool:
        logger.info(f"Auto-approving {action_name} for: {prompt}")
        return True


class LoggingExplainDecision(ExplainDecision):

    def on_explain(self, prompt: str, action_name: str, explanation: str) -> None:
        logger.info(f"Why {action_name}: {explanation}")
