"""
Shared fixtures: a RootChain on a deterministic clock and a signing harness.
"""

from typing import Dict

import pytest

from settlement.chain import RootChain
from settlement.core import DeterministicClock, SettlementConfig
from settlement.tests.helpers import AMOUNT, ASSET, CHECKPOINT_PERIOD, EXIT_PERIOD, OWNER_NAMES, Harness
from settlement.tx import SigningKey


@pytest.fixture(scope="session")
def keys() -> Dict[str, SigningKey]:
    return {name: SigningKey.generate() for name in OWNER_NAMES}


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(1000)


@pytest.fixture
def chain(clock) -> RootChain:
    config = SettlementConfig(
        exit_challenge_period=EXIT_PERIOD,
        checkpoint_challenge_period=CHECKPOINT_PERIOD,
    )
    return RootChain(config=config, clock=clock)


@pytest.fixture
def harness(chain, keys) -> Harness:
    chain.custody.register(ASSET, AMOUNT)
    return Harness(chain, keys)
