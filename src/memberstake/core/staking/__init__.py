"""
memberstake staking components.

- reward_ledger: pure reward-per-token accounting
- staking_rewards: the StakingRewards controller (stake, withdraw, claim, fund)
- persistence: durable controller snapshots
"""

from .persistence import StakingStateStore
from .reward_ledger import (
    PRECISION,
    AccrualState,
    ParticipantState,
    checkpoint,
    compute_reward_rate,
    earned,
    last_time_reward_applicable,
    reward_per_token,
)
from .staking_rewards import RewardPhase, StakingEvent, StakingRewards

__all__ = [
    "PRECISION",
    "AccrualState",
    "ParticipantState",
    "checkpoint",
    "compute_reward_rate",
    "earned",
    "last_time_reward_applicable",
    "reward_per_token",
    "RewardPhase",
    "StakingEvent",
    "StakingRewards",
    "StakingStateStore",
]
