"""
Logging setup for the SEO Forecaster.

``configure_logging(config, secrets=...)`` is called once per CLI command.
Library modules only use ``logging.getLogger(__name__)``: ``ForecastService``
is meant to be embedded, and the host application owns the root logger.

Every handler installed here carries a ``SecretRedactionFilter``; the CLI
passes the LLM API key so it can never reach stdout or the log file, even
through an exception message that echoes request headers.

With ``json_format = true`` ([logging] in config/default.toml) each record is
one JSON object, ``extra=`` keys included::

    {"ts": "2024-06-15T09:30:00Z", "level": "INFO",
     "logger": "seo_forecaster.forecasting.service",
     "msg": "Forecast persisted | id=...", "forecast_id": "..."}
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from seo_forecaster.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
REDACTED = "***"

# Attributes every LogRecord has; anything else arrived through ``extra=``.
_STANDARD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

_QUIET_LOGGERS = ("httpx", "httpcore")


class SecretRedactionFilter(logging.Filter):
    """Replaces each configured secret in the rendered message with ``***``."""

    def __init__(self, secrets: Iterable[Optional[str]] = ()) -> None:
        super().__init__()
        self.secrets = [s for s in secrets if s]

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        redacted = message
        for secret in self.secrets:
            redacted = redacted.replace(secret, REDACTED)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record: ``ts``, ``level``, ``logger``, ``msg`` and extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                LOG_DATE_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(
            (key, val)
            for key, val in vars(record).items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def build_handlers(
    config: "LoggingConfig",
    secrets: Iterable[Optional[str]] = (),
) -> list[logging.Handler]:
    """Stdout handler plus, when ``config.log_file`` is set, a file handler.

    The log file's parent directories are created as needed.
    """
    formatter: logging.Formatter = (
        JsonLineFormatter()
        if config.json_format
        else logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    )
    redaction = SecretRedactionFilter(secrets)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(redaction)
    return handlers


def configure_logging(
    config: "LoggingConfig",
    secrets: Iterable[Optional[str]] = (),
) -> None:
    """Replace the root logger's handlers according to ``config``.

    Args:
        config: Logging section of ``AppConfig``.
        secrets: Values to mask in every emitted message (``None`` entries
            are ignored).
    """
    level = getattr(logging, config.level.upper(), logging.INFO)
    logging.basicConfig(level=level, handlers=build_handlers(config, secrets), force=True)

    # The LLM client's per-request lines are noise at INFO.
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
