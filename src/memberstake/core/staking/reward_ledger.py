"""
Reward-accrual ledger.

Pure accounting for time-weighted reward distribution. The ledger keeps a
cumulative "reward per staked unit" accumulator that advances with
``elapsed * reward_rate / total_staked`` and a per-participant snapshot of that
accumulator. A participant's reward is their stake times the accumulator growth
since their last snapshot.

Nothing in this module mutates its arguments: ``checkpoint`` returns new state
objects and the caller decides whether to commit them. That lets the
controller compute a complete next state, attempt external transfers, and
only then publish the result.

All arithmetic is integer. Division truncates, so a participant can lose at
most one base unit per checkpoint to rounding; the lost dust stays in custody.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any

# Fixed-point scale for the reward-per-token accumulator
PRECISION = 10**18


@dataclass(frozen=True)
class AccrualState:
    """Global accrual state owned by a single controller."""

    reward_rate: int = 0
    period_finish: int = 0
    last_update_time: int = 0
    reward_per_token_stored: int = 0
    total_staked: int = 0
    # Rewards already accrued into the accumulator and not yet paid out
    reward_obligations: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AccrualState":
        return cls(
            reward_rate=int(data.get("reward_rate", 0)),
            period_finish=int(data.get("period_finish", 0)),
            last_update_time=int(data.get("last_update_time", 0)),
            reward_per_token_stored=int(data.get("reward_per_token_stored", 0)),
            total_staked=int(data.get("total_staked", 0)),
            reward_obligations=int(data.get("reward_obligations", 0)),
        )


@dataclass(frozen=True)
class ParticipantState:
    """Per-participant staking state, created lazily on first stake."""

    staked_balance: int = 0
    reward_per_token_paid: int = 0
    accrued_rewards: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ParticipantState":
        return cls(
            staked_balance=int(data.get("staked_balance", 0)),
            reward_per_token_paid=int(data.get("reward_per_token_paid", 0)),
            accrued_rewards=int(data.get("accrued_rewards", 0)),
        )


def last_time_reward_applicable(state: AccrualState, now: int) -> int:
    """Latest timestamp that still earns rewards: ``min(now, period_finish)``."""
    return min(now, state.period_finish)


def _elapsed(state: AccrualState, now: int) -> int:
    # A clock that runs backwards must never produce negative accrual
    return max(0, last_time_reward_applicable(state, now) - state.last_update_time)


def reward_per_token(state: AccrualState, now: int) -> int:
    """
    Current value of the reward-per-token accumulator.

    Args:
        state: Accrual state as of the last checkpoint
        now: Current timestamp

    Returns:
        Accumulator value scaled by PRECISION
    """
    if state.total_staked == 0:
        return state.reward_per_token_stored
    return state.reward_per_token_stored + (
        _elapsed(state, now) * state.reward_rate * PRECISION // state.total_staked
    )


def earned(
    state: AccrualState,
    account: ParticipantState,
    current_reward_per_token: int | None = None,
) -> int:
    """
    Reward earned by a participant and not yet claimed.

    Args:
        state: Accrual state
        account: Participant state
        current_reward_per_token: Accumulator to measure against; defaults to
            the stored value (i.e. as of the last checkpoint)

    Returns:
        Claimable reward amount
    """
    if current_reward_per_token is None:
        current_reward_per_token = state.reward_per_token_stored
    growth = current_reward_per_token - account.reward_per_token_paid
    return account.accrued_rewards + account.staked_balance * growth // PRECISION


def checkpoint(
    state: AccrualState,
    now: int,
    account: ParticipantState | None = None,
) -> tuple[AccrualState, ParticipantState | None]:
    """
    Freeze accrual up to ``now``.

    Must be applied before any change to the reward rate, the total staked
    amount or a participant's balance, so that everything between two
    checkpoints is computed with a constant rate and constant total.

    Args:
        state: Current accrual state
        now: Current timestamp
        account: Participant to settle as part of the checkpoint (optional)

    Returns:
        Tuple of (new accrual state, new participant state or None)
    """
    current = reward_per_token(state, now)
    emitted = _elapsed(state, now) * state.reward_rate if state.total_staked > 0 else 0

    next_state = replace(
        state,
        reward_per_token_stored=current,
        last_update_time=max(state.last_update_time, last_time_reward_applicable(state, now)),
        reward_obligations=state.reward_obligations + emitted,
    )

    if account is None:
        return next_state, None

    next_account = replace(
        account,
        accrued_rewards=earned(next_state, account, current),
        reward_per_token_paid=current,
    )
    return next_state, next_account


def compute_reward_rate(
    state: AccrualState,
    now: int,
    amount: int,
    duration: int,
) -> tuple[int, int]:
    """
    Reward rate for a new funding of ``amount`` over ``duration`` seconds.

    While a period is still running, the unspent remainder
    ``(period_finish - now) * reward_rate`` is folded into the new rate so a
    top-up never discards funded reward.

    Returns:
        Tuple of (new reward rate, leftover carried over from the current period)
    """
    if now >= state.period_finish:
        leftover = 0
    else:
        leftover = (state.period_finish - now) * state.reward_rate
    return (amount + leftover) // duration, leftover
