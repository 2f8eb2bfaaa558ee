# MIT License
# Copyright (c) 2025 Hashborn

import pytest

from tokenomics.config.params import DEVNET, YEAR_SECONDS
from tokenomics.units import to_usdc, to_wei
from dao.core.clock import ManualClock
from dao.core.divs import DivsDistributor
from dao.core.farm import DAOTokenFarm
from dao.core.governor import EXECUTOR_ROLE, PROPOSER_ROLE
from dao.core.token import DAOToken, FungibleToken
from dao.rpc.server import build_runtime
from dao.storage.db import StorageDB

GENESIS_TIME = 1_700_000_000


@pytest.fixture
def db(tmp_path):
    storage = StorageDB(str(tmp_path / "state.db"))
    yield storage
    storage.close()


def test_state_table(db):
    assert db.get_state("missing") is None

    db.set_state("a", "1")
    db.set_states({"pos:alice:lp": "x", "pos:bob:lp": "y", "acct:alice": "z"})

    assert db.get_state("a") == "1"
    assert db.get_state_by_prefix("pos:") == {"pos:alice:lp": "x", "pos:bob:lp": "y"}

    db.set_state("a", "2")
    assert db.get_state("a") == "2"


def test_farm_roundtrip(db, farm, token, lp_token, clock, bus):
    farm.deposit_and_start_stake("alice", lp_token.address, to_wei(100))
    clock.advance(YEAR_SECONDS // 4)
    farm.claim_reward("alice")
    clock.advance(YEAR_SECONDS // 4)
    expected = farm.claimable_reward("alice")

    farm.persist(db)
    token.persist(db)
    lp_token.persist(db)

    token2 = DAOToken(clock, DEVNET)
    assert token2.load(db)
    farm2 = DAOTokenFarm(token2, clock, DEVNET, events=bus)
    farm2.load(db)
    lp2 = FungibleToken(lp_token.name, lp_token.symbol)
    assert lp2.load(db)
    farm2.add_pools([lp2])

    assert farm2.schedule.periods == farm.schedule.periods
    assert farm2.claimable_reward("alice") == expected
    assert farm2.total_claimed() == farm.total_claimed()
    assert token2.balance_of("alice") == token.balance_of("alice")
    assert token2.get_votes("alice") == token.get_votes("alice")
    assert token2.farm_address == "farm"

    farm2.end_stake_and_withdraw("alice", lp2.address, to_wei(100))
    assert lp2.balance_of("alice") == lp_token.balance_of("alice") + to_wei(100)


def test_divs_roundtrip(db, fee_token, token, clock, bus):
    token.mint("alice", to_wei(1), caller="farm")
    token.delegate("alice", "alice")
    divs = DivsDistributor(fee_token, token, clock, events=bus)
    fee_token.mint(divs.address, to_usdc(10))
    divs.add_distribution_interval()
    clock.advance(1)
    divs.claim_divs("alice")

    divs.persist(db)
    restored = DivsDistributor(fee_token, token, clock, events=bus)
    restored.load(db)

    assert restored.get_distribution_intervals_count() == 1
    assert restored.distribution_intervals(0) == divs.distribution_intervals(0)
    assert restored.claimed_divs(1, "alice") == to_usdc(10)


def test_runtime_restart(tmp_path):
    clock = ManualClock(GENESIS_TIME)
    db_path = str(tmp_path / "runtime.db")

    first = build_runtime(DEVNET, db_path, ["LP01"], clock=clock)
    lp = first.lp_tokens[0]
    lp.mint("alice", to_wei(10))
    first.farm.deposit_and_start_stake("alice", lp.address, to_wei(10))
    clock.advance(YEAR_SECONDS)
    first.persist()
    first.db.close()

    second = build_runtime(DEVNET, db_path, ["LP01"], clock=clock)
    try:
        assert second.farm.schedule.start == GENESIS_TIME
        assert second.token.farm_address == second.farm.address
        assert second.treasury.owner == second.timelock.address
        assert second.timelock.admin is None
        assert second.timelock.has_role(PROPOSER_ROLE, second.governor.address)
        assert second.timelock.has_role(EXECUTOR_ROLE, second.governor.address)
        paid = second.farm.end_stake_and_withdraw("alice", "lp01", to_wei(10))
        assert paid == pytest.approx(to_wei(500_000), abs=to_wei(1))
        assert second.lp_tokens[0].balance_of("alice") == to_wei(10)
    finally:
        second.db.close()
