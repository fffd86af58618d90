"""
memberstake - Staking Metrics

Prometheus metrics for the staking controller:
- Operation counters by operation and outcome
- Gauges mirroring the global accrual state
- Counters for token volumes moved in and out of custody

Pass a dedicated CollectorRegistry when more than one controller lives in a
process (tests, multi-pool deployments); the default registry only accepts
each metric name once.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    generate_latest,
)

logger = logging.getLogger(__name__)


class StakingMetrics:
    """
    Centralized metrics collector for a staking controller.
    Exports metrics in Prometheus format.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None, namespace: str = "memberstake"):
        """
        Initialize staking metrics.

        Args:
            registry: Custom Prometheus registry (optional)
            namespace: Metric name prefix
        """
        self.registry = registry or REGISTRY
        self._lock = threading.Lock()

        # ==================== OPERATION METRICS ====================
        self.operations_total = Counter(
            f"{namespace}_operations_total",
            "Staking operations by operation name and outcome",
            ["operation", "status"],
            registry=self.registry,
        )

        # ==================== STATE METRICS ====================
        self.total_staked = Gauge(
            f"{namespace}_total_staked",
            "Sum of all staked balances",
            registry=self.registry,
        )

        self.reward_rate = Gauge(
            f"{namespace}_reward_rate",
            "Reward units accrued per second",
            registry=self.registry,
        )

        self.period_finish = Gauge(
            f"{namespace}_period_finish_timestamp",
            "Unix timestamp at which the funded reward period ends",
            registry=self.registry,
        )

        self.reward_per_token = Gauge(
            f"{namespace}_reward_per_token_stored",
            "Reward-per-token accumulator at the last checkpoint (fixed point)",
            registry=self.registry,
        )

        self.participants = Gauge(
            f"{namespace}_participants",
            "Number of known participants",
            registry=self.registry,
        )

        # ==================== VOLUME METRICS ====================
        self.staked_amount = Counter(
            f"{namespace}_staked_amount",
            "Base tokens moved into custody by stake operations",
            registry=self.registry,
        )

        self.withdrawn_amount = Counter(
            f"{namespace}_withdrawn_amount",
            "Base tokens returned to participants by withdrawals",
            registry=self.registry,
        )

        self.rewards_paid = Counter(
            f"{namespace}_rewards_paid",
            "Reward tokens paid out to participants",
            registry=self.registry,
        )

        self.rewards_funded = Counter(
            f"{namespace}_rewards_funded",
            "Reward tokens notified by the funding authority",
            registry=self.registry,
        )

    def record_operation(self, operation: str, success: bool, amount: int = 0) -> None:
        """Record the outcome of a controller operation."""
        status = "success" if success else "failure"
        with self._lock:
            self.operations_total.labels(operation=operation, status=status).inc()
            if not success or amount <= 0:
                return
            if operation == "stake":
                self.staked_amount.inc(amount)
            elif operation == "withdraw":
                self.withdrawn_amount.inc(amount)
            elif operation == "claim_reward":
                self.rewards_paid.inc(amount)
            elif operation == "notify_reward_amount":
                self.rewards_funded.inc(amount)

    def update_state(
        self,
        total_staked: int,
        reward_rate: int,
        period_finish: int,
        reward_per_token_stored: int,
        participants: int,
    ) -> None:
        """Mirror the committed accrual state into gauges."""
        with self._lock:
            self.total_staked.set(total_staked)
            self.reward_rate.set(reward_rate)
            self.period_finish.set(period_finish)
            self.reward_per_token.set(reward_per_token_stored)
            self.participants.set(participants)

    def export(self) -> bytes:
        """Export metrics in Prometheus text format."""
        return generate_latest(self.registry)
