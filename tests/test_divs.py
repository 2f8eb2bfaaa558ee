# MIT License
# Copyright (c) 2025 Hashborn

import pytest

from tokenomics.config.params import DAY_SECONDS
from tokenomics.types.common import DistributionIntervalError, FarmEvent
from tokenomics.units import to_usdc, to_wei
from dao.core.divs import DivsDistributor


@pytest.fixture
def divs(fee_token, token, clock, bus):
    token.mint("alice", to_wei(10), caller="farm")
    token.mint("bob", to_wei(30), caller="farm")
    token.delegate("alice", "alice")
    token.delegate("bob", "bob")
    return DivsDistributor(fee_token, token, clock, payment_interval=DAY_SECONDS, events=bus)


def _collect_fees(fee_token, divs, amount):
    fee_token.mint(divs.address, amount)


def test_no_interval_without_fees(divs):
    assert not divs.can_create_new_distribution_interval()
    with pytest.raises(DistributionIntervalError, match="Cannot create distribution interval"):
        divs.add_distribution_interval()


def test_claims_pro_rata(divs, fee_token, clock):
    _collect_fees(fee_token, divs, to_usdc(200))
    interval = divs.add_distribution_interval()

    assert divs.get_distribution_intervals_count() == 1
    assert interval.id == 1
    assert interval.reward == to_usdc(200)
    assert interval.end == interval.start + DAY_SECONDS
    clock.advance(1)

    assert divs.claimable_divs("alice") == to_usdc(50)
    assert divs.claimable_divs("bob") == to_usdc(150)

    assert divs.claim_divs("alice") == to_usdc(50)
    assert fee_token.balance_of("alice") == to_usdc(50)
    assert divs.claimed_divs(1, "alice") == to_usdc(50)
    assert divs.distribution_intervals(0).rewards_paid == to_usdc(50)

    # One claim per interval
    assert divs.claimable_divs("alice") == 0
    assert divs.claim_divs("alice") == 0


def test_votes_snapshot_at_interval_start(divs, fee_token, token, clock):
    _collect_fees(fee_token, divs, to_usdc(200))
    divs.add_distribution_interval()

    clock.advance(10)
    token.transfer("bob", "alice", to_wei(30))

    assert divs.claimable_divs("alice") == to_usdc(50)
    assert divs.claimable_divs("bob") == to_usdc(150)


def test_cannot_claim_after_interval_end(divs, fee_token, clock):
    _collect_fees(fee_token, divs, to_usdc(200))
    divs.add_distribution_interval()

    clock.advance(DAY_SECONDS + 1)
    assert divs.claimable_divs("bob") == 0
    assert divs.claim_divs("bob") == 0


def test_new_interval_rolls_over_unclaimed(divs, fee_token, clock):
    _collect_fees(fee_token, divs, to_usdc(200))
    divs.add_distribution_interval()
    clock.advance(1)
    divs.claim_divs("alice")

    assert not divs.can_create_new_distribution_interval()
    with pytest.raises(DistributionIntervalError):
        divs.add_distribution_interval()

    clock.advance(DAY_SECONDS + 1)
    _collect_fees(fee_token, divs, to_usdc(100))
    interval = divs.add_distribution_interval()

    assert interval.id == 2
    assert interval.reward == to_usdc(250)
    clock.advance(1)
    assert divs.claimable_divs("alice") == to_usdc(62.5)
    assert divs.claimed_divs(2, "alice") == 0


def test_events(divs, fee_token, clock, bus):
    seen = []
    bus.subscribe(FarmEvent.INTERVAL_ADDED, lambda **data: seen.append(("interval", data["reward"])))
    bus.subscribe(FarmEvent.DIVS_CLAIMED, lambda **data: seen.append(("claim", data["amount"])))

    _collect_fees(fee_token, divs, to_usdc(200))
    divs.add_distribution_interval()
    clock.advance(1)
    divs.claim_divs("bob")

    assert seen == [("interval", to_usdc(200)), ("claim", to_usdc(150))]


def test_no_claims_during_the_start_second(divs, fee_token, token, clock):
    _collect_fees(fee_token, divs, to_usdc(200))
    divs.add_distribution_interval()

    assert divs.claimable_divs("alice") == 0
    assert divs.claim_divs("alice") == 0

    clock.advance(1)
    assert divs.claim_divs("alice") == to_usdc(50)


def test_same_second_transfer_cannot_claim_twice(divs, fee_token, token, clock):
    _collect_fees(fee_token, divs, to_usdc(200))
    divs.add_distribution_interval()

    # alice tries to claim, then hands her tokens to bob in the same second
    divs.claim_divs("alice")
    token.transfer("alice", "bob", to_wei(10))
    clock.advance(1)

    paid = divs.claim_divs("alice") + divs.claim_divs("bob")

    assert paid <= to_usdc(200)
    assert divs.claimed_divs(1, "alice") == 0
    assert divs.claimed_divs(1, "bob") == to_usdc(200)
    assert fee_token.balance_of(divs.address) == 0
