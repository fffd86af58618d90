"""
Staking Rewards Controller.

Participants stake a base token and continuously earn a reward token in
proportion to their share of the total stake. A funding authority deposits
reward tokens into custody and calls ``notify_reward_amount`` to open (or top
up) a reward period of fixed duration.

Every operation runs as a staged transaction under a single write lock:

1. validate the request
2. checkpoint accrual and compute the next state on copies
3. request the external token movement
4. commit

A failed transfer therefore leaves no trace in the controller's state.

Security features:
- Owner / funding authority / badge registry role checks
- Funding guard: a reward period is only opened when custody holds enough
  reward tokens for the new rate plus everything already owed
- Badge-locked stake cannot be withdrawn
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterator

from ..config import Config
from ..staking_exceptions import (
    CollaboratorFailureError,
    ConfigurationError,
    InsufficientBalanceError,
    InsufficientFundingError,
    InvalidAddressError,
    InvalidAmountError,
    RewardPeriodActiveError,
    StakingError,
    UnauthorizedError,
    get_error_context,
)
from .reward_ledger import (
    AccrualState,
    ParticipantState,
    checkpoint,
    compute_reward_rate,
    earned,
    last_time_reward_applicable,
    reward_per_token,
)

if TYPE_CHECKING:
    from ..metrics import StakingMetrics
    from ..protocols import IMembershipBadgeRegistry, ITokenLedger

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "0" * 40
UINT256_MAX = 2**256 - 1


class RewardPhase(Enum):
    """Lifecycle phase of the reward schedule."""

    UNINITIALIZED = "uninitialized"  # no funding authority configured
    IDLE = "idle"  # never funded
    ACTIVE = "active"  # now < period_finish
    EXPIRED = "expired"  # period ended, waiting for renewal


@dataclass
class StakingEvent:
    """Represents a committed staking event."""

    event_type: str
    account: str
    amount: int
    timestamp: int
    details: dict[str, Any] = field(default_factory=dict)


class StakingRewards:
    """
    Staking controller wrapping the reward-accrual ledger.

    Args:
        owner: Address allowed to change configuration
        staking_token: Ledger of the token participants stake
        reward_token: Ledger of the token paid as reward (may be staking_token)
        address: Custody address of this controller on both ledgers
        reward_duration: Length of a reward period in seconds
        funding_authority: Address allowed to notify reward amounts
        badge_registry: Membership badge registry collaborator
        time_provider: Returns the current Unix time in whole seconds
        metrics: Optional Prometheus metrics sink
    """

    def __init__(
        self,
        owner: str,
        staking_token: "ITokenLedger",
        reward_token: "ITokenLedger",
        address: str = "",
        reward_duration: int | None = None,
        funding_authority: str | None = None,
        badge_registry: "IMembershipBadgeRegistry" | None = None,
        time_provider: Callable[[], int] | None = None,
        metrics: "StakingMetrics" | None = None,
    ) -> None:
        self.owner = self._normalize(owner, "owner")
        self.staking_token = staking_token
        self.reward_token = reward_token

        if not address:
            addr_hash = hashlib.sha3_256(f"staking{owner}{time.time()}".encode()).digest()
            address = f"0x{addr_hash[-20:].hex()}"
        self.address = self._normalize(address, "address")

        duration = Config.REWARD_DURATION if reward_duration is None else reward_duration
        self._validate_duration(duration)
        self.reward_duration = duration

        self.funding_authority = (
            self._normalize(funding_authority, "funding authority")
            if funding_authority
            else None
        )
        self.badge_registry = badge_registry

        self.state = AccrualState()
        self.accounts: dict[str, ParticipantState] = {}
        self.events: list[StakingEvent] = []

        self._time_provider = time_provider or (lambda: int(datetime.now(timezone.utc).timestamp()))
        self.metrics = metrics
        self._lock = threading.RLock()

    # ==================== View Functions ====================

    @property
    def total_staked(self) -> int:
        with self._lock:
            return self.state.total_staked

    @property
    def reward_rate(self) -> int:
        with self._lock:
            return self.state.reward_rate

    @property
    def period_finish(self) -> int:
        with self._lock:
            return self.state.period_finish

    def balance_of(self, participant: str) -> int:
        """Staked balance of a participant."""
        with self._lock:
            account_id = self._normalize(participant, "participant")
            return self.accounts.get(account_id, ParticipantState()).staked_balance

    def last_time_reward_applicable(self) -> int:
        with self._lock:
            return last_time_reward_applicable(self.state, self._now())

    def reward_per_token(self) -> int:
        """Current reward-per-token accumulator, including un-checkpointed time."""
        with self._lock:
            return reward_per_token(self.state, self._now())

    def earned(self, participant: str) -> int:
        """
        Reward a participant could claim right now.

        Args:
            participant: Participant address

        Returns:
            Claimable reward amount
        """
        with self._lock:
            account = self.accounts.get(self._normalize(participant, "participant"))
            if account is None:
                return 0
            return earned(self.state, account, reward_per_token(self.state, self._now()))

    def reward_for_duration(self) -> int:
        """Total reward emitted over one full period at the current rate."""
        with self._lock:
            return self.state.reward_rate * self.reward_duration

    def phase(self) -> RewardPhase:
        with self._lock:
            return self._phase_at(self._now())

    def get_account(self, participant: str) -> dict[str, Any]:
        """Snapshot of one participant's position."""
        with self._lock:
            address = self._normalize(participant, "participant")
            account = self.accounts.get(address, ParticipantState())
            return {
                "address": address,
                "staked_balance": account.staked_balance,
                "reward_per_token_paid": account.reward_per_token_paid,
                "accrued_rewards": account.accrued_rewards,
                "earned": self.earned(address),
            }

    def get_status(self) -> dict[str, Any]:
        """Snapshot of the global reward schedule."""
        with self._lock:
            now = self._now()
            return {
                "address": self.address,
                "phase": self._phase_at(now).value,
                "owner": self.owner,
                "funding_authority": self.funding_authority,
                "badge_registry": self.badge_registry.address if self.badge_registry else None,
                "reward_duration": self.reward_duration,
                "reward_for_duration": self.reward_for_duration(),
                "reward_per_token": reward_per_token(self.state, now),
                "last_time_reward_applicable": last_time_reward_applicable(self.state, now),
                "participants": len(self.accounts),
                **self.state.to_dict(),
            }

    # ==================== Participant Operations ====================

    def stake(self, participant: str, amount: int) -> int:
        """
        Stake base tokens.

        The participant must have approved this controller for ``amount`` on
        the staking token ledger.

        Args:
            participant: Address staking tokens
            amount: Amount to stake

        Returns:
            New staked balance of the participant

        Raises:
            ConfigurationError: If no funding authority has been configured
            InvalidAmountError: If amount is not a positive integer
            CollaboratorFailureError: If the token pull fails
        """
        with self._operation("stake"):
            self._require_initialized()
            account_id = self._normalize(participant, "participant")
            self._validate_amount(amount)
            now = self._now()

            state, account = checkpoint(self.state, now, self._account(account_id))
            account = replace(account, staked_balance=account.staked_balance + amount)
            state = replace(state, total_staked=state.total_staked + amount)

            self._call_collaborator(
                "staking_token.transfer_from",
                self.staking_token.transfer_from,
                self.address,
                account_id,
                self.address,
                amount,
            )
            self._commit(state, {account_id: account})
            self._emit("Staked", account_id, amount, now)
            self._record("stake", True, amount)

            logger.info(
                "Stake added",
                extra={
                    "event": "staking.staked",
                    "participant": account_id[:10],
                    "amount": amount,
                    "balance": account.staked_balance,
                    "total_staked": state.total_staked,
                },
            )
            return account.staked_balance

    def withdraw(self, participant: str, amount: int) -> int:
        """
        Withdraw staked base tokens.

        Args:
            participant: Address withdrawing
            amount: Amount to withdraw

        Returns:
            Remaining staked balance

        Raises:
            InvalidAmountError: If amount is not a positive integer
            InsufficientBalanceError: If amount exceeds the staked balance, or
                would leave less than the participant's badges require
            CollaboratorFailureError: If the token push fails
        """
        with self._operation("withdraw"):
            account_id = self._normalize(participant, "participant")
            self._validate_amount(amount)

            current = self._account(account_id)
            if amount > current.staked_balance:
                raise InsufficientBalanceError(
                    f"withdraw amount exceeds staked balance ({amount} > {current.staked_balance})",
                    details={"participant": account_id, "amount": amount, "balance": current.staked_balance},
                )

            remaining = current.staked_balance - amount
            if self.badge_registry is not None:
                required = self._call_collaborator(
                    "badge_registry.required_stake",
                    self.badge_registry.required_stake,
                    account_id,
                )
                if remaining < required:
                    raise InsufficientBalanceError(
                        f"withdraw would leave {remaining} staked but membership badges require {required}",
                        details={"participant": account_id, "remaining": remaining, "required": required},
                    )

            now = self._now()
            state, account = checkpoint(self.state, now, current)
            account = replace(account, staked_balance=remaining)
            state = replace(state, total_staked=state.total_staked - amount)

            self._call_collaborator(
                "staking_token.transfer",
                self.staking_token.transfer,
                self.address,
                account_id,
                amount,
            )
            self._commit(state, {account_id: account})
            self._emit("Withdrawn", account_id, amount, now)
            self._record("withdraw", True, amount)

            logger.info(
                "Stake withdrawn",
                extra={
                    "event": "staking.withdrawn",
                    "participant": account_id[:10],
                    "amount": amount,
                    "balance": remaining,
                    "total_staked": state.total_staked,
                },
            )
            return remaining

    def claim_reward(self, participant: str) -> int:
        """
        Pay out everything the participant has earned.

        Claiming with nothing earned is a no-op that returns 0 and changes no state.

        Args:
            participant: Address claiming

        Returns:
            Amount of reward tokens paid

        Raises:
            CollaboratorFailureError: If the reward transfer fails
        """
        with self._operation("claim_reward"):
            account_id = self._normalize(participant, "participant")
            current = self.accounts.get(account_id)
            if current is None:
                return 0

            now = self._now()
            state, account = checkpoint(self.state, now, current)
            reward = account.accrued_rewards
            if reward == 0:
                return 0

            account = replace(account, accrued_rewards=0)
            # Snapshots written before obligations were tracked start at 0
            state = replace(state, reward_obligations=max(0, state.reward_obligations - reward))

            self._call_collaborator(
                "reward_token.transfer",
                self.reward_token.transfer,
                self.address,
                account_id,
                reward,
            )
            self._commit(state, {account_id: account})
            self._emit("RewardPaid", account_id, reward, now)
            self._record("claim_reward", True, reward)

            logger.info(
                "Reward paid",
                extra={
                    "event": "staking.reward_paid",
                    "participant": account_id[:10],
                    "amount": reward,
                },
            )
            return reward

    def exit(self, participant: str) -> tuple[int, int]:
        """
        Withdraw the whole stake and claim all rewards.

        Runs as two atomic steps under one hold of the lock: if the reward
        transfer fails, the withdrawal stays committed and the reward stays
        claimable.

        Returns:
            Tuple of (amount withdrawn, reward paid)
        """
        with self._lock:
            account_id = self._normalize(participant, "participant")
            balance = self._account(account_id).staked_balance
            if balance > 0:
                self.withdraw(account_id, balance)
            reward = self.claim_reward(account_id)
            return balance, reward

    # ==================== Funding ====================

    def notify_reward_amount(self, caller: str, amount: int) -> int:
        """
        Fund a new reward period, or top up the running one.

        The reward tokens must already be in custody. While a period is
        running, its unspent remainder is folded into the new rate.

        Args:
            caller: Must be the funding authority
            amount: Newly deposited reward amount

        Returns:
            The new reward rate

        Raises:
            UnauthorizedError: If caller is not the funding authority
            InvalidAmountError: If amount is not positive or too small to
                yield a non-zero rate
            InsufficientFundingError: If custody cannot cover the new schedule
        """
        with self._operation("notify_reward_amount"):
            caller_id = self._normalize(caller, "caller")
            if self.funding_authority is None or caller_id != self.funding_authority:
                raise UnauthorizedError(
                    "caller is not the reward funding authority",
                    caller=caller_id,
                    required_role="funding_authority",
                )
            self._validate_amount(amount)
            now = self._now()

            state, _ = checkpoint(self.state, now)
            new_rate, leftover = compute_reward_rate(state, now, amount, self.reward_duration)
            if new_rate == 0:
                raise InvalidAmountError(
                    f"reward amount {amount} is too small for a {self.reward_duration}s period",
                    details={"amount": amount, "leftover": leftover},
                )

            balance = self._call_collaborator(
                "reward_token.balance_of",
                self.reward_token.balance_of,
                self.address,
            )
            available = balance - state.reward_obligations
            if self.reward_token is self.staking_token:
                available -= state.total_staked
            required = new_rate * self.reward_duration
            if required > available:
                raise InsufficientFundingError(
                    f"reward schedule needs {required} but custody only has {max(available, 0)} available",
                    required=required,
                    available=max(available, 0),
                    details={"amount": amount, "leftover": leftover, "reward_rate": new_rate},
                )

            state = replace(
                state,
                reward_rate=new_rate,
                last_update_time=now,
                period_finish=now + self.reward_duration,
            )
            self._commit(state, {})
            self._emit(
                "RewardAdded",
                caller_id,
                amount,
                now,
                {"reward_rate": new_rate, "leftover": leftover, "period_finish": state.period_finish},
            )
            self._record("notify_reward_amount", True, amount)

            logger.info(
                "Reward period funded",
                extra={
                    "event": "staking.reward_added",
                    "amount": amount,
                    "leftover": leftover,
                    "reward_rate": new_rate,
                    "period_finish": state.period_finish,
                },
            )
            return new_rate

    # ==================== Badge Rebalancing ====================

    def transfer_stake(self, caller: str, from_addr: str, to_addr: str, amount: int) -> None:
        """
        Move staked balance between two participants.

        Called by the membership badge registry when a badge changes hands.
        Total stake is unchanged and no tokens leave custody.

        Raises:
            UnauthorizedError: If caller is not the configured badge registry
            InsufficientBalanceError: If ``from_addr`` has less than ``amount`` staked
        """
        with self._operation("transfer_stake"):
            caller_id = self._normalize(caller, "caller")
            if self.badge_registry is None or caller_id != self.badge_registry.address.lower():
                raise UnauthorizedError(
                    "caller is not the membership badge registry",
                    caller=caller_id,
                    required_role="badge_registry",
                )
            from_id = self._normalize(from_addr, "sender")
            to_id = self._normalize(to_addr, "recipient")
            self._validate_amount(amount)

            source = self._account(from_id)
            if amount > source.staked_balance:
                raise InsufficientBalanceError(
                    f"stake transfer exceeds staked balance ({amount} > {source.staked_balance})",
                    details={"from": from_id, "to": to_id, "amount": amount},
                )
            if from_id == to_id:
                return

            now = self._now()
            state, source = checkpoint(self.state, now, source)
            state, target = checkpoint(state, now, self._account(to_id))
            source = replace(source, staked_balance=source.staked_balance - amount)
            target = replace(target, staked_balance=target.staked_balance + amount)

            self._commit(state, {from_id: source, to_id: target})
            self._emit("StakeTransferred", from_id, amount, now, {"to": to_id})
            self._record("transfer_stake", True, amount)

            logger.info(
                "Stake transferred",
                extra={
                    "event": "staking.stake_transferred",
                    "from": from_id[:10],
                    "to": to_id[:10],
                    "amount": amount,
                },
            )

    # ==================== Admin Functions ====================

    def set_funding_authority(self, caller: str, authority: str) -> None:
        """Set the address allowed to notify reward amounts (owner only)."""
        with self._operation("set_funding_authority"):
            self._require_owner(caller)
            self.funding_authority = self._normalize(authority, "funding authority")
            self._emit("FundingAuthorityUpdated", self.funding_authority, 0, self._now())
            logger.info(
                "Funding authority updated",
                extra={"event": "staking.funding_authority_updated", "authority": self.funding_authority[:10]},
            )

    def set_membership_badge_registry(
        self, caller: str, registry: "IMembershipBadgeRegistry" | None
    ) -> None:
        """Attach or detach the membership badge registry (owner only)."""
        with self._operation("set_membership_badge_registry"):
            self._require_owner(caller)
            if registry is not None:
                self._normalize(registry.address, "badge registry")
            self.badge_registry = registry
            address = registry.address.lower() if registry else ZERO_ADDRESS
            self._emit("BadgeRegistryUpdated", address, 0, self._now())
            logger.info(
                "Badge registry updated",
                extra={"event": "staking.badge_registry_updated", "registry": address[:10]},
            )

    def set_reward_duration(self, caller: str, duration: int) -> None:
        """Change the period length; only allowed between reward periods (owner only)."""
        with self._operation("set_reward_duration"):
            self._require_owner(caller)
            self._validate_duration(duration)
            now = self._now()
            if now < self.state.period_finish:
                raise RewardPeriodActiveError(
                    "reward duration cannot change while a reward period is active",
                    details={"period_finish": self.state.period_finish, "now": now},
                )
            self.reward_duration = duration
            self._emit("RewardDurationUpdated", self.owner, duration, now)
            logger.info(
                "Reward duration updated",
                extra={"event": "staking.reward_duration_updated", "duration": duration},
            )

    # ==================== Helpers ====================

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        """Serialize an operation and account for rejected attempts."""
        with self._lock:
            try:
                yield
            except StakingError as exc:
                self._record(name, False)
                logger.warning(
                    "Staking operation %s rejected: %s",
                    name,
                    exc.message,
                    extra={"event": f"staking.{name}_rejected", **get_error_context(exc)},
                )
                raise

    def _call_collaborator(self, operation: str, fn: Callable[..., Any], *args: Any) -> Any:
        """Invoke a collaborator, converting any failure into CollaboratorFailureError."""
        try:
            result = fn(*args)
        except Exception as exc:
            raise CollaboratorFailureError(
                f"{operation} failed: {exc}",
                details={"operation": operation},
            ) from exc
        if result is False:
            raise CollaboratorFailureError(
                f"{operation} was rejected",
                details={"operation": operation},
            )
        return result

    def _commit(self, state: AccrualState, accounts: dict[str, ParticipantState]) -> None:
        self.state = state
        self.accounts.update(accounts)
        if self.metrics is not None:
            self.metrics.update_state(
                total_staked=state.total_staked,
                reward_rate=state.reward_rate,
                period_finish=state.period_finish,
                reward_per_token_stored=state.reward_per_token_stored,
                participants=len(self.accounts),
            )

    def _record(self, operation: str, success: bool, amount: int = 0) -> None:
        if self.metrics is not None:
            self.metrics.record_operation(operation, success, amount)

    def _emit(
        self,
        event_type: str,
        account: str,
        amount: int,
        timestamp: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.events.append(
            StakingEvent(
                event_type=event_type,
                account=account,
                amount=amount,
                timestamp=timestamp,
                details=details or {},
            )
        )

    def _account(self, account_id: str) -> ParticipantState:
        return self.accounts.get(account_id, ParticipantState())

    def _now(self) -> int:
        return int(self._time_provider())

    def _phase_at(self, now: int) -> RewardPhase:
        if self.funding_authority is None:
            return RewardPhase.UNINITIALIZED
        if self.state.period_finish == 0:
            return RewardPhase.IDLE
        if now < self.state.period_finish:
            return RewardPhase.ACTIVE
        return RewardPhase.EXPIRED

    def _require_owner(self, caller: str) -> None:
        caller_id = self._normalize(caller, "caller")
        if caller_id != self.owner:
            raise UnauthorizedError(
                "caller is not the owner",
                caller=caller_id,
                required_role="owner",
            )

    def _require_initialized(self) -> None:
        if self.funding_authority is None:
            raise ConfigurationError(
                "staking is not initialized: no reward funding authority configured"
            )

    @staticmethod
    def _normalize(address: str | None, field_name: str) -> str:
        """Normalize address to lowercase, rejecting empty and zero addresses."""
        if not isinstance(address, str) or not address.strip():
            raise InvalidAddressError(f"{field_name} address is empty")
        normalized = address.strip().lower()
        if normalized == ZERO_ADDRESS:
            raise InvalidAddressError(f"{field_name} is zero address")
        return normalized

    @staticmethod
    def _validate_amount(amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidAmountError(f"amount must be an integer, got {type(amount).__name__}")
        if amount <= 0:
            raise InvalidAmountError(f"amount must be positive, got {amount}")
        if amount > UINT256_MAX:
            raise InvalidAmountError("amount exceeds uint256")

    @staticmethod
    def _validate_duration(duration: int) -> None:
        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise InvalidAmountError(f"reward duration must be a positive integer, got {duration!r}")

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        """Serialize controller state to dictionary."""
        with self._lock:
            return {
                "address": self.address,
                "owner": self.owner,
                "funding_authority": self.funding_authority,
                "badge_registry": self.badge_registry.address.lower() if self.badge_registry else None,
                "reward_duration": self.reward_duration,
                "state": self.state.to_dict(),
                "accounts": {address: account.to_dict() for address, account in self.accounts.items()},
            }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        staking_token: "ITokenLedger",
        reward_token: "ITokenLedger",
        badge_registry: "IMembershipBadgeRegistry" | None = None,
        time_provider: Callable[[], int] | None = None,
        metrics: "StakingMetrics" | None = None,
    ) -> "StakingRewards":
        """
        Restore a controller from ``to_dict`` output.

        Collaborators cannot be serialized, so they are passed back in. A
        snapshot that names a badge registry must be restored with that registry.

        Raises:
            ConfigurationError: If the badge registry does not match the snapshot
        """
        stored_registry = data.get("badge_registry")
        given_registry = badge_registry.address.lower() if badge_registry else None
        if stored_registry != given_registry:
            raise ConfigurationError(
                f"snapshot expects badge registry {stored_registry}, got {given_registry}"
            )

        controller = cls(
            owner=data["owner"],
            staking_token=staking_token,
            reward_token=reward_token,
            address=data["address"],
            reward_duration=int(data["reward_duration"]),
            funding_authority=data.get("funding_authority"),
            badge_registry=badge_registry,
            time_provider=time_provider,
            metrics=metrics,
        )
        controller.state = AccrualState.from_dict(data.get("state", {}))
        controller.accounts = {
            address.lower(): ParticipantState.from_dict(account)
            for address, account in data.get("accounts", {}).items()
        }
        return controller
