# MIT License
# Copyright (c) 2025 Hashborn

import pytest

from tokenomics.config.params import DEVNET
from tokenomics.units import to_wei
from dao.core.clock import ManualClock
from dao.core.events import EventBus
from dao.core.farm import DAOTokenFarm
from dao.core.token import DAOToken, FungibleToken

GENESIS_TIME = 1_700_000_000
LP_FUNDING = to_wei(1000)


@pytest.fixture
def clock():
    return ManualClock(GENESIS_TIME)


@pytest.fixture
def bus():
    """Fresh event bus so tests never leak listeners into each other."""
    return EventBus()


@pytest.fixture
def token(clock):
    tok = DAOToken(clock, DEVNET)
    tok.set_farm_address(tok.owner, "farm")
    return tok


@pytest.fixture
def lp_token():
    tok = FungibleToken("LP01 LP", "LP01")
    for account in ("alice", "bob", "carol"):
        tok.mint(account, LP_FUNDING)
    return tok


@pytest.fixture
def farm(token, clock, lp_token, bus):
    """Farm with one LP pool and the reward schedule starting at GENESIS_TIME."""
    f = DAOTokenFarm(token, clock, DEVNET, address="farm", events=bus)
    f.add_pools([lp_token])
    f.add_reward_periods()
    return f


@pytest.fixture
def fee_token():
    return FungibleToken("USD Coin", "USDC", decimals=6)
