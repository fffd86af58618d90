"""
Base utilities for API Blueprints

Provides the request context accessors and response helpers shared by the
staking endpoints.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple, Type

from flask import g, jsonify

from memberstake.core.staking_exceptions import (
    CollaboratorFailureError,
    ConfigurationError,
    InsufficientFundingError,
    RewardPeriodActiveError,
    StakingError,
    UnauthorizedError,
    ValidationError,
    get_error_context,
)

if TYPE_CHECKING:
    from memberstake.core.metrics import StakingMetrics
    from memberstake.core.staking.staking_rewards import StakingRewards

logger = logging.getLogger(__name__)

# Most specific classes first
ERROR_STATUS: Tuple[Tuple[Type[StakingError], int, str], ...] = (
    (UnauthorizedError, 403, "unauthorized"),
    (InsufficientFundingError, 409, "insufficient_funding"),
    (RewardPeriodActiveError, 409, "reward_period_active"),
    (CollaboratorFailureError, 502, "collaborator_failure"),
    (ConfigurationError, 503, "not_configured"),
    (ValidationError, 400, "invalid_request"),
)


def get_api_context() -> Dict[str, Any]:
    """Get the API context stored in Flask's g object during request setup."""
    return g.get("api_context", {})


def get_staking() -> "StakingRewards":
    """Get the staking controller from context."""
    return get_api_context().get("staking")


def get_metrics() -> Optional["StakingMetrics"]:
    """Get the metrics collector from context."""
    return get_api_context().get("metrics")


def success_response(payload: Dict[str, Any], status: int = 200) -> Tuple[Any, int]:
    """Return a success payload with consistent structure."""
    body = {"success": True, **payload}
    return jsonify(body), status


def error_response(
    message: str,
    status: int = 400,
    code: str = "bad_request",
    context: Optional[Dict[str, Any]] = None,
) -> Tuple[Any, int]:
    """Return an error response and log it."""
    level = logging.ERROR if status >= 500 else logging.WARNING
    logger.log(
        level,
        "API error: %s",
        message,
        extra={"event": "api.error", "code": code, "status": status, **(context or {})},
    )
    return jsonify({"success": False, "error": message, "code": code}), status


def staking_error_response(exc: StakingError) -> Tuple[Any, int]:
    """Map a staking exception onto an HTTP error response."""
    for error_type, status, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            break
    else:
        status, code = 500, "staking_error"
    return error_response(exc.message, status=status, code=code, context=get_error_context(exc))
