import google.generativeai as genai
import google.generativeai.protos as protos
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import generation_types
from typing import Any, Dict, List, Optional
import json
import hashlib
import re
import time

from config import Config, ProviderSettings
from error_handler import TransportError
from logger import get_logger
from llms.base_llm import (
    BaseLLM,
    LLMConfig,
    LLMResponse,
    ChatSession,
    ChatMessage,
    FunctionCall,
    convert_proto_args
)

logger = get_logger(__name__)

_FENCED_JSON = re.compile(r'```(?:json)?\s*(\{.*?\})\s*```', re.DOTALL)
_BARE_JSON = re.compile(r'\{.*\}', re.DOTALL)

# Raised for a refused prompt or a reply stopped for safety or recitation
MODEL_CALL_ERRORS = (
    google_exceptions.GoogleAPIError,
    generation_types.StopCandidateException,
    generation_types.BlockedPromptException,
)


def _reply_text(response: Any) -> Optional[str]:
    try:
        return response.text
    except (ValueError, AttributeError):
        # .text raises on a function-call-only reply
        if not response.candidates:
            return None
        texts = [part.text for part in response.candidates[0].content.parts if getattr(part, 'text', None)]
        return texts[0] if texts else None


def _tool_signature(tool: Any) -> str:
    """Full declaration, so a same-named tool with other parameters gets its own model"""
    to_json = getattr(type(tool), 'to_json', None)
    if callable(to_json):
        return to_json(tool)
    return repr(tool)


class GeminiChatSession(ChatSession):
    def __init__(self, gemini_chat: Any, enable_function_calling: bool = False):
        self.gemini_chat = gemini_chat
        self.enable_function_calling = enable_function_calling

    def send_message(self, message: Any) -> LLMResponse:
        try:
            response = self.gemini_chat.send_message(message)
        except MODEL_CALL_ERRORS as e:
            raise TransportError(f"Gemini request failed: {e}") from e

        calls = self._extract_function_calls(response) if self.enable_function_calling else []

        return LLMResponse(
            text=_reply_text(response),
            function_calls=calls or None,
            finish_reason=str(response.candidates[0].finish_reason) if response.candidates else None,
            metadata={'response_object': response}
        )

    def _extract_function_calls(self, response: Any) -> List[FunctionCall]:
        function_calls = []

        if not response.candidates:
            return function_calls

        for part in response.candidates[0].content.parts:
            if 'function_call' in part:
                fc = part.function_call
                function_calls.append(FunctionCall(
                    name=fc.name,
                    arguments=convert_proto_args(fc.args) or {}
                ))

        return function_calls

    def get_history(self) -> List[ChatMessage]:
        history = []

        for msg in getattr(self.gemini_chat, 'history', []):
            content = "".join(part.text for part in msg.parts if getattr(part, 'text', None))
            history.append(ChatMessage(role=msg.role, content=content))

        return history


class GeminiFlash(BaseLLM):
    """
    Gemini adapter: chat sessions, function declarations and JSON mode.

    GenerativeModel objects are reused for an hour per (model, system
    instruction, tool names). Marshalling opens one session per action with
    that action as its only tool, so repeated instructions hit the cache.
    """

    SCHEMA_TYPE_MAP = {
        "string": protos.Type.STRING,
        "number": protos.Type.NUMBER,
        "integer": protos.Type.INTEGER,
        "boolean": protos.Type.BOOLEAN,
        "object": protos.Type.OBJECT,
        "array": protos.Type.ARRAY,
    }

    # shared by every instance: cache_key -> (model, created_at)
    _model_cache: Dict[str, tuple] = {}
    _cache_ttl: float = 3600.0

    def __init__(self, config: Optional[LLMConfig] = None, enable_caching: bool = True):
        if config is None:
            config = LLMConfig(model_name='models/gemini-2.5-flash')

        super().__init__(config)

        self.provider_name = "google_gemini"
        self.enable_caching = enable_caching

    @classmethod
    def from_settings(cls, settings: ProviderSettings, api_key: Optional[str] = None) -> "GeminiFlash":
        """
        Configure the SDK from the startup settings and build the model wrapper.

        The project id is sent as the quota project header; the Gemini API
        endpoint is global, so the location is only recorded in the logs.
        """
        genai.configure(
            api_key=api_key if api_key is not None else Config.GOOGLE_API_KEY,
            default_metadata=[('x-goog-user-project', settings.project_id)]
        )
        logger.info(f"projectId: {settings.project_id}")
        logger.info(f"location: {settings.location}")
        logger.info(f"modelName: {settings.model_name}")

        return cls(LLMConfig(model_name=settings.model_name))

    @staticmethod
    def _cache_key(model_name: str, system_instruction: Optional[str], tools: List[Any]) -> str:
        signatures = sorted(_tool_signature(tool) for tool in tools)
        raw = "\x1f".join([model_name, system_instruction or "", *signatures])
        return hashlib.sha1(raw.encode('utf-8')).hexdigest()

    def _get_model(self, tools: List[Any]) -> Any:
        """Cached GenerativeModel for this tool set, built on a miss"""
        cache_key = self._cache_key(
            self.config.model_name, self.config.system_instruction, tools
        )

        if self.enable_caching and cache_key in self._model_cache:
            model, timestamp = self._model_cache[cache_key]
            if time.time() - timestamp <= self._cache_ttl:
                return model
            del self._model_cache[cache_key]

        model = genai.GenerativeModel(
            self.config.model_name,
            system_instruction=self.config.system_instruction,
            tools=tools or None
        )

        if self.enable_caching:
            self._model_cache[cache_key] = (model, time.time())

        return model

    @classmethod
    def clear_cache(cls):
        """Clear all cached models"""
        cls._model_cache.clear()

    def start_chat(self, tools: Optional[List[Any]] = None) -> ChatSession:
        tools = tools or []
        gemini_chat = self._get_model(tools).start_chat(
            enable_automatic_function_calling=False
        )
        return GeminiChatSession(gemini_chat, enable_function_calling=bool(tools))

    def generate_json(self, system_prompt: str, user_prompt: str) -> Dict[str, Any]:
        """
        Generate a JSON object using Gemini's JSON mode.

        Raises:
            TransportError: if the request fails
            ValueError: if no JSON object can be recovered from the reply
        """
        generation_config = {
            "temperature": self.config.temperature,
            "top_p": self.config.top_p,
            "top_k": self.config.top_k,
            "response_mime_type": "application/json"
        }

        model = genai.GenerativeModel(
            self.config.model_name,
            system_instruction=system_prompt,
            generation_config=generation_config
        )

        try:
            response = model.generate_content(user_prompt)
        except MODEL_CALL_ERRORS as e:
            raise TransportError(f"Gemini request failed: {e}") from e

        text = response.text if response.candidates else None
        if not text:
            raise ValueError("No response text from LLM")

        return parse_json_object(text)

    def build_function_declaration(self, schema: Any) -> protos.FunctionDeclaration:
        """Convert an ArgumentSchema to a Gemini FunctionDeclaration"""
        parameters_schema = protos.Schema(type_=protos.Type.OBJECT)

        for prop_name, prop_type in schema.properties.items():
            parameters_schema.properties[prop_name] = protos.Schema(
                type_=self.SCHEMA_TYPE_MAP.get(prop_type.value, protos.Type.TYPE_UNSPECIFIED),
                description=prop_name
            )

        parameters_schema.required.extend(schema.required)

        return protos.FunctionDeclaration(
            name=schema.name,
            description=schema.description or schema.name,
            parameters=parameters_schema
        )

    def __repr__(self) -> str:
        return f"GeminiFlash(model={self.config.model_name})"


def parse_json_object(text: str) -> Dict[str, Any]:
    """
    Decode the JSON object in a model reply. JSON mode usually returns bare
    JSON, but fenced blocks and surrounding prose still show up.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        first_error = e

    for pattern, group in ((_FENCED_JSON, 1), (_BARE_JSON, 0)):
        found = pattern.search(text)
        if found:
            return json.loads(found.group(group))

    raise ValueError(f"No JSON object in model reply ({first_error}): {text!r}")
