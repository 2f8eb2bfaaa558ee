# MIT License
# Copyright (c) 2025 Hashborn

import pytest

from tokenomics.types.common import (
    InsufficientBalanceError,
    InsufficientStakeError,
    UnsupportedAssetError,
    ValidationError,
    ZeroAmountError,
)
from tokenomics.types.farm import RewardPeriod
from dao.core.accrual import AccrualEngine
from dao.core.ledger import StakeLedger
from dao.core.schedule import RewardSchedule


@pytest.fixture
def ledger():
    engine = AccrualEngine(RewardSchedule([RewardPeriod(id=0, start=0, end=1000, reward=10_000)]))
    led = StakeLedger(engine)
    led.add_asset("lp", 1, now=0)
    return led


def test_deposit_then_stake(ledger):
    ledger.deposit("alice", "lp", 100)
    ledger.stake("alice", "lp", 60, now=0)

    pos = ledger.find_position("alice", "lp")
    assert pos.staked_amount == 60
    assert pos.deposited_amount == 40
    assert ledger.asset_state("lp").total_staked == 60


def test_stake_requires_deposit(ledger):
    with pytest.raises(InsufficientBalanceError):
        ledger.stake("alice", "lp", 1, now=0)

    ledger.deposit("alice", "lp", 10)
    with pytest.raises(InsufficientBalanceError, match="trying to stake 11"):
        ledger.stake("alice", "lp", 11, now=0)
    assert ledger.asset_state("lp").total_staked == 0


def test_unstake_more_than_staked_leaves_state_untouched(ledger):
    ledger.deposit("alice", "lp", 10)
    ledger.stake("alice", "lp", 10, now=0)

    with pytest.raises(InsufficientStakeError):
        ledger.unstake("alice", "lp", 11, now=500)

    pos = ledger.find_position("alice", "lp")
    assert pos.staked_amount == 10
    assert pos.accrued_unclaimed == 0
    assert ledger.asset_state("lp").last_update_time == 0


def test_unstake_settles_old_balance_first(ledger):
    ledger.deposit("alice", "lp", 10)
    ledger.stake("alice", "lp", 10, now=0)

    credited = ledger.unstake("alice", "lp", 10, now=500)

    assert credited == 5000
    pos = ledger.find_position("alice", "lp")
    assert pos.deposited_amount == 10
    # Nothing staked afterwards, nothing more accrues
    assert ledger.pending("alice", 1000) == 5000


def test_zero_amounts_rejected(ledger):
    with pytest.raises(ZeroAmountError):
        ledger.deposit("alice", "lp", 0)
    with pytest.raises(ZeroAmountError):
        ledger.stake("alice", "lp", 0, now=0)
    with pytest.raises(ZeroAmountError):
        ledger.unstake("alice", "lp", -1, now=0)


def test_unknown_and_duplicate_assets(ledger):
    with pytest.raises(UnsupportedAssetError):
        ledger.deposit("alice", "nope", 1)
    with pytest.raises(ValidationError, match="already supported"):
        ledger.add_asset("lp", 1, now=0)
    with pytest.raises(ValidationError, match="allocation_points"):
        ledger.add_asset("lp2", 0, now=0)


def test_adding_asset_splits_future_emission(ledger):
    ledger.deposit("alice", "lp", 10)
    ledger.stake("alice", "lp", 10, now=0)

    ledger.add_asset("lp2", 1, now=500)
    ledger.deposit("bob", "lp2", 10)
    ledger.stake("bob", "lp2", 10, now=500)

    # alice: 5000 alone, then half of the remaining 5000
    assert ledger.settle_account("alice", 1000) == 7500
    assert ledger.settle_account("bob", 1000) == 2500


def test_clear_accrued(ledger):
    ledger.deposit("alice", "lp", 10)
    ledger.stake("alice", "lp", 10, now=0)
    ledger.settle_account("alice", 100)

    assert ledger.clear_accrued("alice") == 1000
    assert ledger.clear_accrued("alice") == 0
    assert ledger.account("alice").address == "alice"
