"""
Staking-specific exception hierarchy for memberstake.

Provides typed exceptions for staking operations so that callers (the HTTP
layer, operators, tests) can tell apart authorization failures, bad input,
funding shortfalls and collaborator outages without parsing messages.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class StakingError(Exception):
    """Base exception for all staking-related errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether re-issuing the operation may succeed
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: Optional[bool] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if recoverable is not None:
            self.recoverable = recoverable

    recoverable = False


# ==================== Validation Errors ====================


class ValidationError(StakingError):
    """Raised when an operation's input fails validation."""
    pass


class InvalidAmountError(ValidationError):
    """Raised when an amount is zero, negative, non-integer or out of range."""
    pass


class InvalidAddressError(ValidationError):
    """Raised when an identity is empty or the zero address."""
    pass


class InsufficientBalanceError(ValidationError):
    """Raised when a withdrawal or stake transfer exceeds the staked balance.

    Also raised when a withdrawal would leave less stake than the
    participant's membership badges require.
    """
    pass


# ==================== Authorization Errors ====================


class UnauthorizedError(StakingError):
    """Raised when the caller lacks the role required for an operation."""

    def __init__(
        self,
        message: str,
        caller: Optional[str] = None,
        required_role: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.caller = caller
        self.required_role = required_role


# ==================== Funding Errors ====================


class InsufficientFundingError(StakingError):
    """Raised when a reward notification is not backed by custody balance."""

    def __init__(
        self,
        message: str,
        required: int = 0,
        available: int = 0,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.required = required
        self.available = available


class RewardPeriodActiveError(StakingError):
    """Raised when a change is only allowed between reward periods."""
    pass


# ==================== Collaborator Errors ====================


class CollaboratorFailureError(StakingError):
    """Raised when a token ledger or badge registry call does not complete."""
    recoverable = True  # Collaborator outages are often transient


# ==================== Configuration & Storage Errors ====================


class ConfigurationError(StakingError):
    """Raised when staking configuration is missing or invalid."""
    recoverable = False


class StorageError(StakingError):
    """Raised when staking state persistence fails."""
    pass


class CorruptedDataError(StorageError):
    """Raised when a stored snapshot fails its integrity check."""
    recoverable = False


# ==================== Utility Functions ====================


def is_recoverable_error(exc: Exception) -> bool:
    """Check if an exception represents a recoverable error.

    Args:
        exc: The exception to check

    Returns:
        True if the caller may re-issue the operation
    """
    if isinstance(exc, StakingError):
        return exc.recoverable

    recoverable_types = (
        ConnectionError,
        TimeoutError,
    )
    return isinstance(exc, recoverable_types)


def get_error_context(exc: Exception) -> Dict[str, Any]:
    """Extract error context from an exception for logging.

    Args:
        exc: The exception to extract context from

    Returns:
        Dictionary containing error type, message, and any additional details
    """
    context: Dict[str, Any] = {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    if isinstance(exc, StakingError):
        context["recoverable"] = exc.recoverable
        if exc.details:
            context["details"] = exc.details

    if isinstance(exc, UnauthorizedError):
        if exc.caller is not None:
            context["caller"] = exc.caller
        if exc.required_role is not None:
            context["required_role"] = exc.required_role

    if isinstance(exc, InsufficientFundingError):
        context["required"] = exc.required
        context["available"] = exc.available

    if exc.__cause__ is not None:
        context["cause"] = f"{type(exc.__cause__).__name__}: {exc.__cause__}"

    return context
