"""
Configuration for the Grix plugin.

``GrixConfig`` is what an action needs before it may run: the Grix
credential and a key for the language model used to extract parameters.
``Settings`` holds the host's tunables, read from the environment.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from grix_constants import (
    API_DEFAULTS,
    ONE_WEEK_MS,
    OPTIONS_CACHE_TTL_SECONDS,
    SIGNAL_MAX_ATTEMPTS,
    SIGNAL_POLL_INTERVAL_SECONDS,
)

logger = logging.getLogger(__name__)

AI_KEY_SETTINGS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


class ConfigurationError(ValueError):
    pass


class GrixConfig(BaseModel):
    grix_api_key: str = Field(..., min_length=1, description="Grix API key is required")
    ai_provider: str = Field(default="openai", pattern=r"^(openai|anthropic)$")
    ai_api_key: str = Field(..., min_length=1, description="Language model API key is required")
    ai_model: Optional[str] = None


class Settings(BaseModel):
    grix_base_url: str = API_DEFAULTS["base_url"]
    grix_timeout_ms: int = Field(default=API_DEFAULTS["timeout_ms"], gt=0)
    options_cache_ttl_seconds: float = Field(default=OPTIONS_CACHE_TTL_SECONDS, gt=0)
    signal_max_attempts: int = Field(default=SIGNAL_MAX_ATTEMPTS, ge=1)
    signal_poll_interval_seconds: float = Field(default=SIGNAL_POLL_INTERVAL_SECONDS, ge=0)
    signal_trade_window_ms: int = Field(default=ONE_WEEK_MS, gt=0)
    ai_provider: str = Field(default="openai", pattern=r"^(openai|anthropic)$")
    ai_model: Optional[str] = None
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1)


def _format_validation_errors(exc: ValidationError) -> str:
    return "\n".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    )


def validate_grix_config(runtime: Any) -> GrixConfig:
    """Read and validate the settings an action needs from the agent runtime."""
    logger.info("Validating Grix configuration...")
    provider = (runtime.get_setting("AI_PROVIDER") or "openai").strip().lower()
    key_setting = AI_KEY_SETTINGS.get(provider, AI_KEY_SETTINGS["openai"])

    try:
        config = GrixConfig(
            grix_api_key=runtime.get_setting("GRIX_API_KEY") or "",
            ai_provider=provider,
            ai_api_key=runtime.get_setting(key_setting) or "",
            ai_model=runtime.get_setting("AI_MODEL") or None,
        )
    except ValidationError as exc:
        logger.error("Configuration validation failed: %s", exc)
        raise ConfigurationError(
            f"Grix configuration validation failed:\n{_format_validation_errors(exc)}"
        ) from exc

    logger.info("Configuration validated successfully")
    return config


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ

    raw = {
        "grix_base_url": env.get("GRIX_BASE_URL"),
        "grix_timeout_ms": env.get("GRIX_TIMEOUT_MS"),
        "options_cache_ttl_seconds": env.get("OPTIONS_CACHE_TTL_SECONDS"),
        "signal_max_attempts": env.get("SIGNAL_MAX_ATTEMPTS"),
        "signal_poll_interval_seconds": env.get("SIGNAL_POLL_INTERVAL_SECONDS"),
        "signal_trade_window_ms": env.get("SIGNAL_TRADE_WINDOW_MS"),
        "ai_provider": (env.get("AI_PROVIDER") or "").lower() or None,
        "ai_model": env.get("AI_MODEL"),
        "log_level": (env.get("LOG_LEVEL") or "").upper() or None,
        "host": env.get("HOST"),
        "port": env.get("PORT"),
    }
    try:
        return Settings(**{name: value for name, value in raw.items() if value is not None})
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid settings:\n{_format_validation_errors(exc)}") from exc
