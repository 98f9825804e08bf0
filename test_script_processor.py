#!/usr/bin/env python3
"""
Test script for line-by-line script runs.
"""

import json

import pytest

from error_handler import ScriptResourceError
from fake_llm import FakeLLM, function_call
from orchestration.capabilities import FunctionCapability
from orchestration.pipeline import ActionProcessor
from orchestration.prediction import PredictionEngine
from orchestration.registry import ActionRegistry
from orchestration.script_processor import ScriptProcessor, ScriptResult


def make_scripts(replies, script_dir="scripts"):
    searched = []

    def search(query: str) -> str:
        searched.append(query)
        return f"results for {query}"

    registry = ActionRegistry()
    registry.register_provider(FunctionCapability(search))
    llm = FakeLLM(replies=replies)
    processor = ActionProcessor(PredictionEngine(llm, registry))
    return ScriptProcessor(processor, script_dir=script_dir), searched, llm


def test_second_line_declined():
    print("\n" + "="*70)
    print("TEST: Script Decisions")
    print("="*70 + "\n")

    scripts, searched, llm = make_scripts(replies=[
        "search", function_call("search", query="X"),
        "No, the search already covered it",
    ])

    result = scripts.process_lines(["search google for X\n", "\n", "search google for X again\n"])

    assert len(result) == 2
    first, second = result.results
    assert first.line == "search google for X"
    assert first.outcome == "results for X"
    assert searched == ["X"]

    previous = json.dumps({"results": [{"line": "search google for X", "outcome": "results for X"}]})
    assert second.line == "search google for X again"
    assert second.outcome == f"No action taken due to {previous}"

    # first line is never asked about, and carries the empty history
    assert llm.sent[0].startswith('here is my prompt - search google for X - here are previous action results {"results": []}')

    print("✅ Script Decisions Test PASSED\n")


def test_yes_is_a_case_insensitive_substring():
    scripts, searched, _ = make_scripts(replies=[
        "search", function_call("search", query="X"),
        "YES, we should",
        "search", function_call("search", query="Y"),
    ])

    result = scripts.process_lines(["search for X", "search for Y"])

    assert searched == ["X", "Y"]
    assert [r.outcome for r in result.results] == ["results for X", "results for Y"]


def test_failed_line_is_recorded_and_run_continues():
    scripts, searched, _ = make_scripts(replies=[
        "teleport",
        "yes",
        "search", function_call("search", query="Z"),
    ])

    result = scripts.process_lines(["teleport me", "search for Z"])

    assert result.results[0].outcome.startswith("Action failed: ")
    assert result.results[1].outcome == "results for Z"
    assert searched == ["Z"]


def test_callback_rewrites_outcome():
    scripts, _, _ = make_scripts(replies=["search", function_call("search", query="X")])

    result = scripts.process_lines(["search for X"], callback=str.upper)

    assert result.results[0].outcome == "RESULTS FOR X"


def test_missing_script_returns_empty_result(tmp_path):
    scripts, _, llm = make_scripts(replies=[], script_dir=tmp_path)

    result = scripts.process("missing.txt")

    assert isinstance(result, ScriptResult)
    assert len(result) == 0
    assert llm.sent == []

    with pytest.raises(ScriptResourceError):
        scripts.read_script("missing.txt")


def test_script_from_file_and_summary(tmp_path):
    (tmp_path / "dinner.txt").write_text("search for dosa\n")
    scripts, _, llm = make_scripts(
        replies=["search", function_call("search", query="dosa"), "You searched for dosa."],
        script_dir=tmp_path,
    )

    result = scripts.process("dinner.txt")

    assert result.to_json() == json.dumps({"results": [{"line": "search for dosa", "outcome": "results for dosa"}]})
    assert scripts.summarize(result) == "You searched for dosa."
    assert llm.sent[-1] == f"summarize the results of this script - {result.to_json()}"


def main():
    import tempfile
    from pathlib import Path

    print("\n" + "="*70)
    print("SCRIPT PROCESSOR - TEST SUITE")
    print("="*70)

    test_second_line_declined()
    test_yes_is_a_case_insensitive_substring()
    test_failed_line_is_recorded_and_run_continues()
    test_callback_rewrites_outcome()
    with tempfile.TemporaryDirectory() as tmp:
        test_missing_script_returns_empty_result(Path(tmp))
        test_script_from_file_and_summary(Path(tmp))

    print("\n✅ ALL TESTS PASSED\n")


if __name__ == "__main__":
    main()
