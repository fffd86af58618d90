"""
memberstake Configuration

All settings are read from ``MEMBERSTAKE_*`` environment variables at import
time. Invalid values raise ConfigurationError immediately so a misconfigured
service never starts accepting stake.
"""

from __future__ import annotations

import logging
import os

from .staking_exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _get_int(env_var: str, default: int, minimum: int = 1) -> int:
    """Read an integer setting, enforcing a lower bound."""
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"{env_var} must be an integer, got {raw!r}",
            details={"env_var": env_var},
        ) from exc
    if value < minimum:
        raise ConfigurationError(
            f"{env_var} must be >= {minimum}, got {value}",
            details={"env_var": env_var},
        )
    return value


# Reward period length: a 14 day window rounded to 1,210,000 seconds.
REWARD_DURATION = _get_int("MEMBERSTAKE_REWARD_DURATION", 1_210_000)

ENVIRONMENT = os.getenv("MEMBERSTAKE_ENVIRONMENT", "production").strip() or "production"
LOG_LEVEL = os.getenv("MEMBERSTAKE_LOG_LEVEL", "INFO").strip().upper() or "INFO"
LOG_FILE = os.getenv("MEMBERSTAKE_LOG_FILE", "").strip() or None
DATA_DIR = os.getenv("MEMBERSTAKE_DATA_DIR", os.path.join(os.getcwd(), "data"))
API_MAX_JSON_BYTES = _get_int("MEMBERSTAKE_API_MAX_JSON_BYTES", 1048576)
METRICS_ENABLED = os.getenv("MEMBERSTAKE_METRICS_ENABLED", "1").strip() == "1"

if LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
    raise ConfigurationError(
        f"MEMBERSTAKE_LOG_LEVEL must be a logging level name, got {LOG_LEVEL!r}",
        details={"env_var": "MEMBERSTAKE_LOG_LEVEL"},
    )


class Config:
    """Resolved configuration for the staking service."""

    REWARD_DURATION = REWARD_DURATION
    ENVIRONMENT = ENVIRONMENT
    LOG_LEVEL = LOG_LEVEL
    LOG_FILE = LOG_FILE
    DATA_DIR = DATA_DIR
    API_MAX_JSON_BYTES = API_MAX_JSON_BYTES
    METRICS_ENABLED = METRICS_ENABLED


__all__ = [
    "Config",
    "REWARD_DURATION",
    "ENVIRONMENT",
    "LOG_LEVEL",
    "LOG_FILE",
    "DATA_DIR",
    "API_MAX_JSON_BYTES",
    "METRICS_ENABLED",
]
