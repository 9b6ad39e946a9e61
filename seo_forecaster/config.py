"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      : committed static defaults
  2. ``config/local.toml``        : optional local overrides (gitignored)
  3. ``.env``                     : local secrets and env overrides (gitignored)
  4. Environment variables        : ``SEO_FORECASTER_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The forecasting service, the LLM client and every CLI command receive an
``AppConfig`` (or one of its sections), never raw dicts or individual env var
lookups scattered through the codebase.

API keys are never read from TOML. The LLM key comes from
``SEO_FORECASTER_LLM_API_KEY`` (or ``OPENAI_API_KEY``); without one the
loader falls back to a local Ollama endpoint.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

LOCAL_LLM_BASE_URL = "http://localhost:11434/v1"
LOCAL_LLM_MODEL = "deepseek-r1:14b"

# ── Sub-config models ─────────────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite database connection settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/seo_forecaster.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000


class LLMConfig(BaseModel):
    """Predictive collaborator (chat-completions endpoint) settings."""

    model_config = ConfigDict(frozen=True)

    provider: Literal["openai", "local"] = "openai"
    model_name: str = "gpt-4o"
    base_url: str = "https://api.openai.com/v1"
    api_key: Optional[str] = None
    temperature: float = 0.2
    max_tokens: int = 2000
    timeout_seconds: float = 60.0
    cost_per_thousand_tokens: float = 0.0

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"temperature must be in [0.0, 1.0], got {v}.")
        return v

    @field_validator("max_tokens")
    @classmethod
    def validate_max_tokens(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"max_tokens must be positive, got {v}.")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {v}.")
        return v

    @field_validator("cost_per_thousand_tokens")
    @classmethod
    def validate_cost(cls, v: float) -> float:
        if v < 0:
            raise ValueError("cost_per_thousand_tokens must be non-negative.")
        return v


class ForecastConfig(BaseModel):
    """Forecast generation settings."""

    model_config = ConfigDict(frozen=True)

    default_timeframe_months: int = 12
    history_months: int = 12
    max_timeframe_months: int = 36
    synthetic_fallback: bool = True

    @field_validator("default_timeframe_months", "history_months", "max_timeframe_months")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"month counts must be >= 1, got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/seo_forecaster.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration, the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env + environment.
    """

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    llm: LLMConfig = LLMConfig()
    forecast: ForecastConfig = ForecastConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

# env var → (section, key); ``None`` section means a top-level key.
_ENV_OVERRIDES: dict[str, tuple[Optional[str], str]] = {
    "SEO_FORECASTER_DB_PATH": ("database", "db_path"),
    "SEO_FORECASTER_LOG_LEVEL": ("logging", "level"),
    "SEO_FORECASTER_DEBUG": (None, "debug"),
    "SEO_FORECASTER_LLM_MODEL": ("llm", "model_name"),
    "SEO_FORECASTER_LLM_BASE_URL": ("llm", "base_url"),
}
_API_KEY_VARS = ("SEO_FORECASTER_LLM_API_KEY", "OPENAI_API_KEY")


def project_root() -> Path:
    """Nearest ancestor of this package that holds ``pyproject.toml``."""
    here = Path(__file__).resolve().parent
    for candidate in (here, *here.parents[:4]):
        if (candidate / "pyproject.toml").exists():
            return candidate
    return here.parent


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: TOML file to load. Defaults to
            ``<project_root>/config/default.toml``. A ``local.toml`` next to
            it is merged on top when present.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = project_root()
    load_dotenv(dotenv_path=root / ".env", override=False)

    config_path = Path(config_path) if config_path else root / "config" / "default.toml"
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    raw = _read_toml(config_path)
    local_path = config_path.with_name("local.toml")
    if local_path.exists():
        raw = _merge(raw, _read_toml(local_path))

    raw = _resolve_llm_provider(_apply_env(raw))
    return _to_app_config(raw)


def _read_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge two TOML tables; scalars and arrays in ``override`` win."""
    merged = dict(base)
    for key, val in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(val, dict):
            merged[key] = _merge(current, val)
        else:
            merged[key] = val
    return merged


def _apply_env(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply ``SEO_FORECASTER_*`` overrides (see ``_ENV_OVERRIDES``) and the API key.

    The key is read from ``SEO_FORECASTER_LLM_API_KEY``, falling back to
    ``OPENAI_API_KEY``; a key in TOML is ignored.
    """
    raw.setdefault("llm", {}).pop("api_key", None)

    for var, (section, key) in _ENV_OVERRIDES.items():
        value: Any = os.environ.get(var)
        if not value:
            continue
        if key == "debug":
            value = value.lower() in ("1", "true", "yes")
        target = raw if section is None else raw.setdefault(section, {})
        target[key] = value

    api_key = next((os.environ[v] for v in _API_KEY_VARS if os.environ.get(v)), None)
    if api_key:
        raw["llm"]["api_key"] = api_key
    return raw


def _resolve_llm_provider(raw: dict[str, Any]) -> dict[str, Any]:
    """Switch to the local Ollama endpoint when no API key is configured.

    An explicit ``provider = "local"`` in TOML is honoured as-is; a hosted
    provider without a key cannot authenticate, so it is replaced by the
    local defaults (keeping any explicitly configured local model name).
    """
    llm = raw.setdefault("llm", {})
    if llm.get("provider") == "local" or llm.get("api_key"):
        return raw

    llm["provider"] = "local"
    llm["base_url"] = os.environ.get("SEO_FORECASTER_LLM_BASE_URL") or LOCAL_LLM_BASE_URL
    llm["model_name"] = (
        os.environ.get("SEO_FORECASTER_LLM_MODEL")
        or llm.get("local_model_name", LOCAL_LLM_MODEL)
    )
    llm["cost_per_thousand_tokens"] = 0.0
    return raw


def _to_app_config(raw: dict[str, Any]) -> AppConfig:
    """Validate the merged tables; ``[project] debug`` is the TOML debug switch."""
    llm = {k: v for k, v in raw.get("llm", {}).items() if k != "local_model_name"}
    debug = raw.get("debug", raw.get("project", {}).get("debug", False))
    return AppConfig.model_validate(
        {
            "database": raw.get("database", {}),
            "llm": llm,
            "forecast": raw.get("forecast", {}),
            "logging": raw.get("logging", {}),
            "debug": debug,
        }
    )
