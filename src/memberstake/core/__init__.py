"""
memberstake core.

Re-exports the staking controller and its supporting types.
"""

from .metrics import StakingMetrics
from .protocols import IMembershipBadgeRegistry, ITokenLedger
from .staking import (
    PRECISION,
    AccrualState,
    ParticipantState,
    RewardPhase,
    StakingEvent,
    StakingRewards,
    StakingStateStore,
)
from .staking_exceptions import (
    CollaboratorFailureError,
    ConfigurationError,
    InsufficientBalanceError,
    InsufficientFundingError,
    InvalidAddressError,
    InvalidAmountError,
    RewardPeriodActiveError,
    StakingError,
    UnauthorizedError,
)

__all__ = [
    "PRECISION",
    "AccrualState",
    "ParticipantState",
    "RewardPhase",
    "StakingEvent",
    "StakingRewards",
    "StakingStateStore",
    "StakingMetrics",
    "ITokenLedger",
    "IMembershipBadgeRegistry",
    "StakingError",
    "UnauthorizedError",
    "InvalidAmountError",
    "InvalidAddressError",
    "InsufficientBalanceError",
    "InsufficientFundingError",
    "CollaboratorFailureError",
    "ConfigurationError",
    "RewardPeriodActiveError",
]
