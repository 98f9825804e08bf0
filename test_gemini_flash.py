#!/usr/bin/env python3
"""
Tests for the Gemini adapter. No network: the SDK calls are mocked.
"""

from unittest.mock import MagicMock, patch

import pytest
from google.api_core import exceptions as google_exceptions
import google.generativeai.protos as protos
from google.generativeai.types import generation_types

from config import ProviderSettings
from error_handler import TransportError
from llms.base_llm import convert_proto_args
from llms.gemini_flash import GeminiChatSession, GeminiFlash, parse_json_object
from orchestration.action_model import ActionDescriptor, ActionParameter, ParameterType
from orchestration.schema_builder import SchemaBuilder


def test_function_declaration_from_schema():
    schema = SchemaBuilder.build(ActionDescriptor(
        name="updateInventory",
        description="update the stock count of an item",
        parameters=(
            ActionParameter("item", ParameterType.STRING),
            ActionParameter("count", ParameterType.INTEGER),
            ActionParameter("is_active", ParameterType.BOOLEAN),
        ),
    ))

    declaration = GeminiFlash().build_function_declaration(schema)

    assert declaration.name == "updateInventory"
    assert declaration.description == "update the stock count of an item"
    assert declaration.parameters.type_ == protos.Type.OBJECT
    assert declaration.parameters.properties["count"].type_ == protos.Type.INTEGER
    assert declaration.parameters.properties["is_active"].type_ == protos.Type.BOOLEAN
    assert list(declaration.parameters.required) == ["item", "count", "is_active"]


def test_convert_proto_args():
    assert convert_proto_args(None) is None
    assert convert_proto_args({"a": 1, "b": ["x", {"c": True}]}) == {"a": 1, "b": ["x", {"c": True}]}
    assert convert_proto_args(("x", "y")) == ["x", "y"]
    assert convert_proto_args("text") == "text"


def test_parse_json_object():
    assert parse_json_object('{"a": 1}') == {"a": 1}
    assert parse_json_object('Here you go:\n```json\n{"a": 2}\n```') == {"a": 2}
    assert parse_json_object('Sure! {"a": 3} Hope that helps.') == {"a": 3}

    with pytest.raises(ValueError):
        parse_json_object("no json at all")


def test_transport_error_wraps_sdk_failure():
    gemini_chat = MagicMock()
    gemini_chat.send_message.side_effect = google_exceptions.ServiceUnavailable("down")

    with pytest.raises(TransportError):
        GeminiChatSession(gemini_chat).send_message("hello")


def test_text_reply():
    gemini_chat = MagicMock()
    gemini_chat.send_message.return_value = MagicMock(text="search", candidates=[])

    response = GeminiChatSession(gemini_chat).send_message("which action?")

    assert response.text == "search"
    assert response.function_calls is None


def answer_declaration(question_count):
    schema = SchemaBuilder.build(ActionDescriptor(
        name="answerQuestions",
        description="answer each question",
        parameters=tuple(ActionParameter(f"answer{i}", ParameterType.STRING) for i in range(question_count)),
    ))
    return GeminiFlash().build_function_declaration(schema)


@patch("llms.gemini_flash.genai.GenerativeModel")
def test_model_cache_keys_on_full_declaration(mock_model):
    """Same tool name with other parameters must not reuse the cached model"""
    GeminiFlash.clear_cache()
    llm = GeminiFlash()
    eight, twelve = answer_declaration(8), answer_declaration(12)

    try:
        llm.start_chat(tools=[eight])
        llm.start_chat(tools=[twelve])
        assert mock_model.call_count == 2
        assert len(mock_model.call_args.kwargs["tools"][0].parameters.properties) == 12

        llm.start_chat(tools=[answer_declaration(12)])
        assert mock_model.call_count == 2
    finally:
        GeminiFlash.clear_cache()


@pytest.mark.parametrize("error", [
    generation_types.StopCandidateException("finish_reason: SAFETY"),
    generation_types.BlockedPromptException("block_reason: OTHER"),
])
def test_safety_stop_becomes_transport_error(error):
    gemini_chat = MagicMock()
    gemini_chat.send_message.side_effect = error

    with pytest.raises(TransportError) as excinfo:
        GeminiChatSession(gemini_chat).send_message("hello")

    assert excinfo.value.__cause__ is error


@patch("llms.gemini_flash.genai.GenerativeModel")
def test_json_mode_safety_stop_becomes_transport_error(mock_model):
    mock_model.return_value.generate_content.side_effect = generation_types.StopCandidateException("RECITATION")

    with pytest.raises(TransportError):
        GeminiFlash().generate_json("fill the skeleton", "book a table")


@patch("llms.gemini_flash.genai.configure")
def test_from_settings_configures_sdk(mock_configure):
    settings = ProviderSettings(project_id="cookgptserver", location="us-central1", model_name="gemini-2.5-flash")

    llm = GeminiFlash.from_settings(settings, api_key="test-key")

    mock_configure.assert_called_once_with(
        api_key="test-key",
        default_metadata=[("x-goog-user-project", "cookgptserver")],
    )
    assert llm.config.model_name == "gemini-2.5-flash"


if __name__ == "__main__":
    test_function_declaration_from_schema()
    test_convert_proto_args()
    test_parse_json_object()
    test_transport_error_wraps_sdk_failure()
    test_text_reply()
    test_model_cache_keys_on_full_declaration()
    test_safety_stop_becomes_transport_error(generation_types.StopCandidateException("SAFETY"))
    test_safety_stop_becomes_transport_error(generation_types.BlockedPromptException("OTHER"))
    test_json_mode_safety_stop_becomes_transport_error()
    test_from_settings_configures_sdk()
    print("✅ ALL TESTS PASSED")
