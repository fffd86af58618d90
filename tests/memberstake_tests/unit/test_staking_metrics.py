"""
Tests for the Prometheus staking metrics.
"""

from prometheus_client import CollectorRegistry

from memberstake.core.metrics import StakingMetrics
from staking_helpers import ALICE, ONE_THOUSAND_PER_SECOND


def _value(metrics, name, labels=None):
    return metrics.registry.get_sample_value(name, labels or {})


class TestStakingMetrics:
    def test_record_operation_counts_outcomes(self):
        metrics = StakingMetrics(registry=CollectorRegistry())
        metrics.record_operation("stake", True, 100)
        metrics.record_operation("stake", False)

        assert _value(metrics, "memberstake_operations_total", {"operation": "stake", "status": "success"}) == 1.0
        assert _value(metrics, "memberstake_operations_total", {"operation": "stake", "status": "failure"}) == 1.0
        assert _value(metrics, "memberstake_staked_amount_total") == 100.0

    def test_failed_operations_move_no_volume(self):
        metrics = StakingMetrics(registry=CollectorRegistry())
        metrics.record_operation("withdraw", False, 50)
        assert _value(metrics, "memberstake_withdrawn_amount_total") == 0.0

    def test_custom_namespace(self):
        metrics = StakingMetrics(registry=CollectorRegistry(), namespace="pool")
        metrics.update_state(10, 2, 3, 4, 5)
        assert _value(metrics, "pool_total_staked") == 10.0
        assert _value(metrics, "pool_participants") == 5.0

    def test_export(self):
        metrics = StakingMetrics(registry=CollectorRegistry())
        metrics.update_state(1, 2, 3, 4, 5)
        exported = metrics.export().decode()
        assert "memberstake_reward_rate 2.0" in exported


class TestControllerIntegration:
    def test_gauges_follow_committed_state(self, staking, fund, metrics):
        staking.stake(ALICE, 100)
        fund()

        assert _value(metrics, "memberstake_total_staked") == 100.0
        assert _value(metrics, "memberstake_reward_rate") == 1000.0
        assert _value(metrics, "memberstake_period_finish_timestamp") == float(staking.period_finish)
        assert _value(metrics, "memberstake_participants") == 1.0

    def test_volume_counters(self, staking, fund, clock, metrics):
        staking.stake(ALICE, 100)
        fund()
        clock.advance(1000)
        staking.claim_reward(ALICE)
        staking.withdraw(ALICE, 40)

        assert _value(metrics, "memberstake_staked_amount_total") == 100.0
        assert _value(metrics, "memberstake_withdrawn_amount_total") == 40.0
        assert _value(metrics, "memberstake_rewards_paid_total") == 1_000_000.0
        assert _value(metrics, "memberstake_rewards_funded_total") == float(ONE_THOUSAND_PER_SECOND)
