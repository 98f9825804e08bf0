#!/usr/bin/env python3
"""
Tests for model-driven action selection.
"""

from fake_llm import FakeLLM
from orchestration.action_model import NO_OP_ACTION, ActionDescriptor
from orchestration.prediction import PredictionEngine, parse_action_names, parse_decomposition
from orchestration.registry import ActionRegistry


def make_registry():
    registry = ActionRegistry()
    for name in ("search", "summarize", "bookRestaurant"):
        registry.register(ActionDescriptor(name=name, description=f"{name} things"))
    return registry


def test_single_prediction_prompt():
    print("\n" + "="*70)
    print("TEST: Single Prediction")
    print("="*70 + "\n")

    llm = FakeLLM(replies=["  search \n"])
    engine = PredictionEngine(llm, make_registry())

    assert engine.predict_single("search google for Indian recipes") == "search"
    assert llm.sent == [
        "here is my prompt - search google for Indian recipes"
        "- what action do you think we should take search,summarize,bookRestaurant,"
        " - reply back with 1 action only"
    ]

    print("✅ Single Prediction Test PASSED\n")


def test_predict_action_resolves():
    engine = PredictionEngine(FakeLLM(replies=["summarize", "flyToMoon"]), make_registry())

    assert engine.predict_action("summarize this").name == "summarize"
    assert engine.predict_action("go to the moon") is None


def test_multi_prediction_prompt_and_parsing():
    llm = FakeLLM(replies=["search, summarize"])
    engine = PredictionEngine(llm, make_registry())

    actions = engine.predict_multiple("find and summarize recipes", 2)

    assert [a.name for a in actions] == ["search", "summarize"]
    assert llm.sent[0].endswith(
        " - reply back with 2 actions only, in comma separated list without any additional special characters"
    )


def test_multi_prediction_unknown_name_is_no_op():
    engine = PredictionEngine(FakeLLM(replies=["search,teleport"]), make_registry())

    actions = engine.predict_multiple("find and teleport", 2)

    assert actions[0].name == "search"
    assert actions[1] is NO_OP_ACTION


def test_parse_action_names():
    assert parse_action_names("search,summarize") == ["search", "summarize"]
    assert parse_action_names("search\nsummarize") == ["search", "summarize"]
    assert parse_action_names(" search , , summarize ,") == ["search", "summarize"]
    assert parse_action_names("search") == ["search"]
    assert parse_action_names("") == []


def test_parse_decomposition():
    text = (
        "1. find a paneer recipe,search\n"
        "\n"
        "- book a table for two, at 7pm,bookRestaurant\n"
        "sing a song\n"
    )

    assert parse_decomposition(text) == [
        ("find a paneer recipe", "search"),
        ("book a table for two, at 7pm", "bookRestaurant"),
        ("sing a song", "blankAction"),
    ]


def test_decomposition_prompt_mentions_no_op():
    llm = FakeLLM(replies=["find recipes,search"])
    engine = PredictionEngine(llm, make_registry())

    assert engine.predict_decomposition("find recipes and sing") == "find recipes,search"
    assert "blankAction" in llm.sent[0]
    assert "search,summarize,bookRestaurant," in llm.sent[0]


def test_explanation_uses_its_own_session():
    llm = FakeLLM(replies=["because it searches"])
    engine = PredictionEngine(llm, make_registry())

    assert engine.explain("search for recipes", "search") == "because it searches"
    assert engine.chat_explain.sent and not engine.chat.sent


def main():
    print("\n" + "="*70)
    print("PREDICTION ENGINE - TEST SUITE")
    print("="*70)

    test_single_prediction_prompt()
    test_predict_action_resolves()
    test_multi_prediction_prompt_and_parsing()
    test_multi_prediction_unknown_name_is_no_op()
    test_parse_action_names()
    test_parse_decomposition()
    test_decomposition_prompt_mentions_no_op()
    test_explanation_uses_its_own_session()

    print("\n✅ ALL TESTS PASSED\n")


if __name__ == "__main__":
    main()
