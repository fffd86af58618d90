"""
Tests for the staking exception hierarchy and its logging helpers.
"""

import pytest

from memberstake.core.staking_exceptions import (
    CollaboratorFailureError,
    ConfigurationError,
    CorruptedDataError,
    InsufficientBalanceError,
    InsufficientFundingError,
    InvalidAddressError,
    InvalidAmountError,
    RewardPeriodActiveError,
    StakingError,
    StorageError,
    UnauthorizedError,
    ValidationError,
    get_error_context,
    is_recoverable_error,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc_type",
        [InvalidAmountError, InvalidAddressError, InsufficientBalanceError],
    )
    def test_validation_errors(self, exc_type):
        assert issubclass(exc_type, ValidationError)
        assert issubclass(exc_type, StakingError)

    @pytest.mark.parametrize(
        "exc_type",
        [
            UnauthorizedError,
            InsufficientFundingError,
            RewardPeriodActiveError,
            CollaboratorFailureError,
            ConfigurationError,
            StorageError,
        ],
    )
    def test_all_derive_from_staking_error(self, exc_type):
        assert issubclass(exc_type, StakingError)

    def test_corrupted_data_is_storage_error(self):
        assert issubclass(CorruptedDataError, StorageError)

    def test_message_and_details(self):
        error = StakingError("boom", details={"amount": 5})
        assert str(error) == "boom"
        assert error.message == "boom"
        assert error.details == {"amount": 5}

    def test_details_default_to_empty(self):
        assert StakingError("boom").details == {}


class TestRecoverability:
    def test_defaults(self):
        assert StakingError("x").recoverable is False
        assert CollaboratorFailureError("x").recoverable is True
        assert ConfigurationError("x").recoverable is False

    def test_override_per_instance(self):
        assert CollaboratorFailureError("x", recoverable=False).recoverable is False
        assert StakingError("x", recoverable=True).recoverable is True
        # Class default is untouched
        assert StakingError.recoverable is False

    def test_is_recoverable_error(self):
        assert is_recoverable_error(CollaboratorFailureError("x"))
        assert not is_recoverable_error(InvalidAmountError("x"))
        assert is_recoverable_error(ConnectionError())
        assert is_recoverable_error(TimeoutError())
        assert not is_recoverable_error(ValueError())


class TestErrorContext:
    def test_plain_exception(self):
        context = get_error_context(ValueError("bad"))
        assert context == {"error_type": "ValueError", "error_message": "bad"}

    def test_unauthorized_context(self):
        error = UnauthorizedError("denied", caller="0xalice", required_role="owner")
        context = get_error_context(error)
        assert context["error_type"] == "UnauthorizedError"
        assert context["caller"] == "0xalice"
        assert context["required_role"] == "owner"
        assert context["recoverable"] is False
        assert "details" not in context

    def test_funding_context(self):
        error = InsufficientFundingError("short", required=10, available=4, details={"amount": 10})
        context = get_error_context(error)
        assert context["required"] == 10
        assert context["available"] == 4
        assert context["details"] == {"amount": 10}

    def test_includes_cause(self):
        try:
            try:
                raise ValueError("insufficient allowance")
            except ValueError as exc:
                raise CollaboratorFailureError("transfer failed") from exc
        except CollaboratorFailureError as error:
            context = get_error_context(error)
        assert context["cause"] == "ValueError: insufficient allowance"
