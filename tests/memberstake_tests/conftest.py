import sys
from pathlib import Path

import pytest
from prometheus_client import CollectorRegistry

# Make the shared doubles in staking_helpers importable from test modules
sys.path.insert(0, str(Path(__file__).resolve().parent))

from memberstake.core.metrics import StakingMetrics
from memberstake.core.staking import StakingRewards
from staking_helpers import (
    ALICE,
    BOB,
    CAROL,
    DURATION,
    FUNDER,
    INITIAL_BALANCE,
    ONE_THOUSAND_PER_SECOND,
    OWNER,
    STAKING_ADDRESS,
    FakeBadgeRegistry,
    FakeClock,
    InMemoryTokenLedger,
)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def staking_token():
    token = InMemoryTokenLedger("MEMBER")
    for holder in (ALICE, BOB, CAROL):
        token.mint(holder, INITIAL_BALANCE)
        token.approve(holder, STAKING_ADDRESS, INITIAL_BALANCE)
    return token


@pytest.fixture
def reward_token():
    token = InMemoryTokenLedger("REWARD")
    token.mint(FUNDER, INITIAL_BALANCE)
    return token


@pytest.fixture
def badge_registry():
    return FakeBadgeRegistry()


@pytest.fixture
def metrics():
    return StakingMetrics(registry=CollectorRegistry())


@pytest.fixture
def staking(staking_token, reward_token, clock, metrics):
    return StakingRewards(
        owner=OWNER,
        staking_token=staking_token,
        reward_token=reward_token,
        address=STAKING_ADDRESS,
        reward_duration=DURATION,
        funding_authority=FUNDER,
        time_provider=clock,
        metrics=metrics,
    )


@pytest.fixture
def fund(staking, reward_token):
    """Deposit reward tokens into custody and notify them."""

    def _fund(amount: int = ONE_THOUSAND_PER_SECOND) -> int:
        reward_token.transfer(FUNDER, STAKING_ADDRESS, amount)
        return staking.notify_reward_amount(FUNDER, amount)

    return _fund
