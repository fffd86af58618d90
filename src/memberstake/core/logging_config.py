"""
memberstake - Structured Logging

Every staking operation logs with an ``event`` key (``staking.staked``,
``staking.reward_added``, ``staking.stake_rejected`` ...) plus the amounts and
participants involved. This module renders those records as one JSON object per
line so they can be shipped to a log pipeline and filtered by event.

Usage:
    from memberstake.core.logging_config import configure_from_env

    configure_from_env()  # reads MEMBERSTAKE_LOG_LEVEL / _LOG_FILE / _ENVIRONMENT
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from .config import Config

SERVICE_NAME = "memberstake"
DEFAULT_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"


class StakingJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter for staking records.

    Adds the deployment environment, the service name and the emitting source
    location. Records without an ``event`` key are tagged ``log`` so every
    line can be grouped by event.
    """

    def __init__(
        self,
        fmt: str = DEFAULT_FORMAT,
        environment: Optional[str] = None,
        service_name: str = SERVICE_NAME,
    ):
        super().__init__(fmt=fmt)
        self.environment = environment or "production"
        self.service_name = service_name

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        log_record["level"] = record.levelname.lower()
        log_record["environment"] = self.environment
        log_record["service"] = self.service_name
        log_record.setdefault("event", "log")
        log_record["source"] = {
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }


def setup_logging(
    name: str = SERVICE_NAME,
    log_file: Optional[str] = None,
    level: str = "INFO",
    environment: str = "production",
    enable_console: bool = True,
    max_bytes: int = 50 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Attach JSON handlers to the ``name`` logger.

    Calling it again replaces the handlers instead of stacking new ones.

    Args:
        name: Logger to configure; ``memberstake`` covers every module
        log_file: Rotating JSON log file, or None for console only
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        environment: Deployment label written on every record
        enable_console: Also write to stdout
        max_bytes: Rotation threshold of the log file
        backup_count: Rotated files to keep

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    log_level = getattr(logging, level.upper())
    logger.setLevel(log_level)
    logger.handlers = []

    formatter = StakingJsonFormatter(environment=environment, service_name=name.split(".")[0])
    handlers: list[logging.Handler] = []

    if enable_console:
        handlers.append(logging.StreamHandler(sys.stdout))

    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                logging.handlers.RotatingFileHandler(
                    filename=log_file,
                    maxBytes=max_bytes,
                    backupCount=backup_count,
                )
            )
        except OSError as e:
            logger.warning(
                "Could not open staking log file %s: %s",
                log_file,
                e,
                extra={"event": "logging.file_handler_failed"},
            )

    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def configure_from_env(name: str = SERVICE_NAME) -> logging.Logger:
    """Configure logging from the ``MEMBERSTAKE_*`` settings."""
    return setup_logging(
        name=name,
        log_file=Config.LOG_FILE,
        level=Config.LOG_LEVEL,
        environment=Config.ENVIRONMENT,
    )


def get_logger(name: str) -> logging.Logger:
    """Return ``name``'s logger, configuring it from the environment on first use."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        return configure_from_env(name)
    return logger
