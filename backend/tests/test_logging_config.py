"""
Tests for logging filters and formatters
"""
import json
import logging

import pytest

from finai.core import logging_config
from finai.core.config import Settings
from finai.core.logging_config import (ContextualFormatter, LoggingConfig,
                                       SensitiveDataFilter)


def _record(msg, *args, **extra):
    record = logging.LogRecord("finai.test", logging.INFO, __file__, 10, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_masks_groq_keys_and_bearer_tokens():
    record = _record("calling with Authorization: Bearer gsk_abcdef123 and key %s", "gsk_secret999")

    SensitiveDataFilter().filter(record)
    message = record.getMessage()

    assert "gsk_abcdef123" not in message
    assert "gsk_secret999" not in message
    assert "***" in message


def test_masking_can_be_disabled():
    record = _record("api_key=gsk_visible")

    SensitiveDataFilter(enabled=False).filter(record)

    assert record.getMessage() == "api_key=gsk_visible"


def test_json_formatter_merges_context_and_extra():
    LoggingConfig.set_context(request_id="req-1")
    try:
        output = ContextualFormatter().format(_record("Analysis completed", mode="demo", tokens_used=0))
    finally:
        LoggingConfig.clear_context()

    payload = json.loads(output)
    assert payload["message"] == "Analysis completed"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-1"
    assert payload["mode"] == "demo"
    assert payload["tokens_used"] == 0


def test_get_logger_returns_named_logger():
    assert LoggingConfig.get_logger("finai.services.analysis_service").name == "finai.services.analysis_service"


@pytest.fixture
def reconfigurable(monkeypatch):
    """Let configure() run again and restore the suite's configuration afterwards"""
    monkeypatch.setattr(LoggingConfig, "_configured", False)
    yield monkeypatch
    monkeypatch.undo()
    LoggingConfig._configured = False
    LoggingConfig.configure()


def _use_settings(monkeypatch, **overrides):
    settings = Settings(log_format="text", log_file_enabled=False, **overrides)
    monkeypatch.setattr(logging_config, "get_settings", lambda: settings)


def test_invalid_module_levels_json_is_reported(reconfigurable, capsys):
    _use_settings(reconfigurable, log_module_levels="{not json")

    LoggingConfig.configure()

    assert "Ignoring LOG_MODULE_LEVELS, invalid JSON" in capsys.readouterr().out


def test_module_levels_are_applied(reconfigurable):
    _use_settings(reconfigurable, log_module_levels='{"finai.test.quiet": "error"}')

    LoggingConfig.configure()

    assert logging.getLogger("finai.test.quiet").level == logging.ERROR


def test_unknown_level_name_falls_back_to_info(reconfigurable, capsys):
    _use_settings(reconfigurable)

    LoggingConfig.configure(module_levels={"finai.test.loud": "LOUD"})

    assert logging.getLogger("finai.test.loud").level == logging.INFO
    assert "Unknown log level 'LOUD' for finai.test.loud" in capsys.readouterr().out
