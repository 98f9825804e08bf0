"""
Scripted stand-in for the model, used by the tests.

Replies are consumed in order across every session the fake opens:
- str: a text reply
- LLMResponse: returned as is
- Exception instance: raised from send_message
"""

from collections import deque
from typing import Any, Dict, Iterable, List, Optional

from llms.base_llm import BaseLLM, ChatSession, FunctionCall, LLMConfig, LLMResponse


def function_call(name: str, **arguments: Any) -> LLMResponse:
    """A reply carrying one structured function call"""
    return LLMResponse(function_calls=[FunctionCall(name=name, arguments=arguments)])


class FakeChatSession(ChatSession):

    def __init__(self, llm: "FakeLLM", tools: Optional[List[Any]]):
        self.llm = llm
        self.tools = tools
        self.sent: List[Any] = []

    def send_message(self, message: Any) -> LLMResponse:
        self.sent.append(message)
        self.llm.sent.append(message)

        if not self.llm.replies:
            raise AssertionError(f"No scripted reply left for: {message!r}")

        reply = self.llm.replies.popleft()
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, LLMResponse):
            return reply
        return LLMResponse(text=reply)


class FakeLLM(BaseLLM):

    def __init__(self, replies: Iterable[Any] = (), json_replies: Iterable[Any] = ()):
        super().__init__(LLMConfig(model_name="fake"))
        self.replies = deque(replies)
        self.json_replies = deque(json_replies)
        self.sent: List[Any] = []
        self.json_prompts: List[str] = []
        self.sessions: List[FakeChatSession] = []

    def start_chat(self, tools: Optional[List[Any]] = None) -> FakeChatSession:
        session = FakeChatSession(self, tools)
        self.sessions.append(session)
        return session

    def build_function_declaration(self, schema: Any) -> Any:
        return schema

    def generate_json(self, system_prompt: str, user_prompt: str) -> Dict[str, Any]:
        self.json_prompts.append(user_prompt)
        reply = self.json_replies.popleft()
        if isinstance(reply, Exception):
            raise reply
        return reply
