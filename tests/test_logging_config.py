"""Tests for logging setup and formatters."""

from __future__ import annotations

import json
import logging

from logging_config import JSONFormatter, PlainFormatter, redact, setup_logging


def _record(message: str) -> logging.LogRecord:
    return logging.LogRecord("oauth.endpoints", logging.INFO, __file__, 10, message, None, None)


def test_json_formatter_extracts_tag():
    entry = json.loads(JSONFormatter().format(_record("[CALLBACK] State value matches")))
    assert entry["tag"] == "CALLBACK"
    assert entry["message"] == "State value matches"
    assert entry["level"] == "INFO"
    assert entry["service"] == "oidc-client"


def test_json_formatter_without_tag():
    entry = json.loads(JSONFormatter(service_name="test").format(_record("plain message")))
    assert entry["tag"] is None
    assert entry["message"] == "plain message"
    assert entry["service"] == "test"


def test_setup_logging_selects_formatter(monkeypatch):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging(level="debug", log_format="json")
        assert isinstance(root.handlers[-1].formatter, JSONFormatter)
        assert root.level == logging.DEBUG

        monkeypatch.setenv("LOG_FORMAT", "plain")
        setup_logging()
        assert isinstance(root.handlers[-1].formatter, PlainFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_redact_keeps_short_prefix():
    assert redact("abcdefghijklmnop") == "abcdef..."
    assert redact("abcdefghijklmnop", keep=3) == "abc..."
    assert redact("abc") == "***"
    assert redact(None) == "None"
