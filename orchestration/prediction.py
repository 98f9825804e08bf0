"""
Prediction engine: asks the model which registered action fits an instruction.

Two long-lived chat sessions are kept: one for selection (and script
decisions/summaries), one for explanations. Sessions keep history, so one
engine must not serve concurrent instruction streams.

Model replies are never trusted to be well formed: names are trimmed,
multi-action replies fall back from comma to newline splitting, and
unknown names are left for the caller to resolve.
"""

import re
from typing import List, Optional, Tuple

from llms.base_llm import BaseLLM, ChatSession
from logger import get_logger
from orchestration.action_model import NO_OP_ACTION_NAME, ActionDescriptor
from orchestration.registry import ActionRegistry

logger = get_logger(__name__)

PRE_ACTION_CMD = "here is my prompt - "
ACTION_CMD = "- what action do you think we should take "
POST_ACTION_CMD = " - reply back with "
NUM_ACTION = " action only"
NUM_ACTION_MULTI = " actions only, in comma separated list without any additional special characters"

_LIST_MARKER = re.compile(r'^\s*(?:[-*•]|\d+[.)])\s*')


class PredictionEngine:

    def __init__(self, llm: BaseLLM, registry: ActionRegistry):
        self.llm = llm
        self.registry = registry
        self.chat: ChatSession = llm.start_chat()
        self.chat_explain: ChatSession = llm.start_chat()

    # ------------------------------------------------------------------
    # Prompt construction
    # ------------------------------------------------------------------

    def build_prompt(self, prompt: str, number: int = 1) -> str:
        suffix = NUM_ACTION_MULTI if number > 1 else NUM_ACTION
        return (
            f"{PRE_ACTION_CMD}{prompt}{ACTION_CMD}{self.registry.rendered_names()}"
            f"{POST_ACTION_CMD}{number}{suffix}"
        )

    def build_multi_step_prompt(self, prompt: str) -> str:
        return (
            "break down this prompt into multiple prompts and associated action in comma separated list, "
            f"this is your prompt - {prompt} - action list is here - {self.registry.rendered_names()} "
            "you will provide the result in this format, one per line - sub-prompt,action. "
            f"If no action matches the sub-prompt please put {NO_OP_ACTION_NAME}"
        )

    def _ask(self, session: ChatSession, message: str) -> str:
        logger.debug(message)
        response = session.send_message(message)
        return (response.text or "").strip()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def predict_single(self, prompt: str) -> str:
        """Name of the one action the model picked; not checked against the registry"""
        action_name = self._ask(self.chat, self.build_prompt(prompt, 1))
        logger.info(f"Predicted action {action_name!r}")
        return action_name

    def predict_action(self, prompt: str) -> Optional[ActionDescriptor]:
        return self.registry.resolve(self.predict_single(prompt))

    def predict_multiple_names(self, prompt: str, number: int) -> List[str]:
        return parse_action_names(self._ask(self.chat, self.build_prompt(prompt, number)))

    def predict_multiple(self, prompt: str, number: int) -> List[ActionDescriptor]:
        """Unregistered names come back as the no-op action"""
        return [
            self.registry.resolve_or_noop(name)
            for name in self.predict_multiple_names(prompt, number)
        ]

    def predict_decomposition(self, prompt: str) -> str:
        """Raw 'sub-prompt,action' lines; see parse_decomposition()"""
        text = self._ask(self.chat, self.build_multi_step_prompt(prompt))
        logger.info(text)
        return text

    # ------------------------------------------------------------------
    # Free-text requests
    # ------------------------------------------------------------------

    def explain(self, prompt: str, action_name: str) -> str:
        return self._ask(
            self.chat_explain,
            f"explain why this action {action_name} is appropriate for this command {prompt} "
            f"out of all these actions {self.registry.rendered_names()}"
        )

    def script_decision(self, line: str, previous_results: str) -> str:
        return self._ask(
            self.chat,
            f"here is the next line of a script - {line} - and here are the results of the "
            f"previous lines - {previous_results} - should we still take an action for this line? "
            "reply with yes or no"
        )

    def summarize(self, results: str) -> str:
        return self._ask(self.chat, f"summarize the results of this script - {results}")


def parse_action_names(text: str) -> List[str]:
    """
    Split a multi-action reply into names.
    Comma first; if that gives at most one token, the model ignored the
    delimiter and newlines are tried instead.
    """
    tokens = text.split(",")
    if len(tokens) <= 1:
        tokens = text.split("\n")
    return [token.strip() for token in tokens if token.strip()]


def parse_decomposition(text: str) -> List[Tuple[str, str]]:
    """
    Turn 'sub-prompt,action' lines into pairs.
    The action is after the last comma; a line without one gets the no-op action.
    """
    steps = []
    for line in text.splitlines():
        line = _LIST_MARKER.sub("", line).strip()
        if not line:
            continue

        sub_prompt, sep, action_name = line.rpartition(",")
        if not sep:
            steps.append((line, NO_OP_ACTION_NAME))
        else:
            steps.append((sub_prompt.strip(), action_name.strip() or NO_OP_ACTION_NAME))

    return steps
