"""
Tests for seo_forecaster/utils/logging.py.

What we test
------------
  - SecretRedactionFilter masks secrets in formatted messages, ignores None.
  - JsonLineFormatter emits one object with ``extra=`` keys.
  - build_handlers() creates the log directory and attaches the filter.
  - configure_logging() keeps the API key out of the log file.
"""

from __future__ import annotations

import json
import logging

import pytest

from seo_forecaster.config import LoggingConfig
from seo_forecaster.utils.logging import (
    REDACTED,
    JsonLineFormatter,
    SecretRedactionFilter,
    build_handlers,
    configure_logging,
)


def _record(msg: str, *args, **extra) -> logging.LogRecord:
    record = logging.LogRecord("seo_forecaster.test", logging.INFO, __file__, 1, msg, args, None)
    for key, val in extra.items():
        setattr(record, key, val)
    return record


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    saved_level = root.level
    yield
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(saved_level)


class TestSecretRedactionFilter:
    def test_masks_secret_in_args(self):
        record = _record("Authorization failed for key=%s", "sk-live-123")
        assert SecretRedactionFilter(["sk-live-123"]).filter(record) is True
        assert record.getMessage() == f"Authorization failed for key={REDACTED}"

    def test_message_without_secret_untouched(self):
        record = _record("Forecast persisted | id=%s", "abc")
        SecretRedactionFilter(["sk-live-123"]).filter(record)
        assert record.args == ("abc",)

    def test_empty_secrets_ignored(self):
        assert SecretRedactionFilter([None, ""]).secrets == []


def test_json_formatter_includes_extras():
    line = JsonLineFormatter().format(_record("Forecast persisted", forecast_id="f1"))
    payload = json.loads(line)
    assert payload["msg"] == "Forecast persisted"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "seo_forecaster.test"
    assert payload["forecast_id"] == "f1"
    assert "args" not in payload


def test_build_handlers_creates_log_dir(tmp_path):
    config = LoggingConfig(log_file=str(tmp_path / "nested" / "app.log"))
    handlers = build_handlers(config, secrets=["sk-1"])
    try:
        assert len(handlers) == 2
        assert (tmp_path / "nested").is_dir()
        assert all(
            any(isinstance(f, SecretRedactionFilter) for f in h.filters) for h in handlers
        )
    finally:
        for handler in handlers:
            handler.close()


def test_build_handlers_without_file():
    handlers = build_handlers(LoggingConfig(log_file=""))
    assert len(handlers) == 1


def test_configure_logging_redacts_file_output(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "run.log"
    configure_logging(
        LoggingConfig(level="info", log_file=str(log_file)), secrets=("sk-live-123", None)
    )
    logging.getLogger("seo_forecaster.test").info("request used key sk-live-123")
    for handler in logging.getLogger().handlers:
        handler.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "sk-live-123" not in text
    assert f"request used key {REDACTED}" in text
    assert logging.getLogger("httpx").level == logging.WARNING
