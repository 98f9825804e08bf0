#!/usr/bin/env python3
"""
Tests for startup configuration and error classification.
"""

import logging
from pathlib import Path

import pytest

from config import Config
from error_handler import (
    ActionNotFoundError, ConfigurationError, ErrorCategory, ErrorClassifier, TransportError,
    format_error_for_user
)
from logger import Logger, get_action_logger, get_logger


def test_provider_settings(monkeypatch):
    monkeypatch.setenv("PROJECT_ID", "cookgptserver")
    monkeypatch.setenv("LOCATION", "us-central1")
    monkeypatch.setenv("MODEL_NAME", "gemini-2.5-flash")

    settings = Config.provider_settings()

    assert settings.project_id == "cookgptserver"
    assert settings.location == "us-central1"
    assert settings.model_name == "gemini-2.5-flash"


def test_missing_provider_settings_are_fatal(monkeypatch):
    monkeypatch.setenv("PROJECT_ID", "cookgptserver")
    monkeypatch.delenv("LOCATION", raising=False)
    monkeypatch.setenv("MODEL_NAME", "  ")

    with pytest.raises(ConfigurationError) as excinfo:
        Config.provider_settings()

    assert "LOCATION" in str(excinfo.value)
    assert "MODEL_NAME" in str(excinfo.value)
    assert excinfo.value.fatal


def test_action_modules_list(monkeypatch):
    monkeypatch.setattr(Config, "ACTION_MODULES", "sample_actions, my_actions ,")
    assert Config.action_modules() == ["sample_actions", "my_actions"]


def test_classification():
    classification = ErrorClassifier.classify(ActionNotFoundError("No registered action named 'x'", "x"))

    assert classification.category == ErrorCategory.RESOLUTION
    assert not classification.is_fatal
    assert classification.technical_details == "No registered action named 'x'"

    assert ErrorClassifier.classify(RuntimeError("?")).category == ErrorCategory.UNKNOWN


def test_user_message():
    message = format_error_for_user(ErrorClassifier.classify(TransportError("503")), "search for dosa")

    assert "Model unavailable" in message
    assert "could not be reached" in message


def test_action_logger_prefix():
    log = get_action_logger(__name__, "search")
    message, _ = log.process("invoking handler", {})
    assert message == "[search] invoking handler"


def test_verbose_raises_every_logger_to_debug():
    existing = get_logger("test_config_and_errors.verbose")
    try:
        Logger.set_level("DEBUG")
        assert existing.level == logging.DEBUG
        assert get_logger("test_config_and_errors.later").level == logging.DEBUG
    finally:
        Logger.set_level(Config.LOG_LEVEL)


def test_installed_modules_leave_out_test_helpers():
    tomllib = pytest.importorskip("tomllib")
    with open(Path(__file__).parent / "pyproject.toml", "rb") as f:
        setuptools = tomllib.load(f)["tool"]["setuptools"]

    assert "fake_llm" not in setuptools["py-modules"]
    assert "sample_actions" in setuptools["py-modules"]
