# MIT License
# Copyright (c) 2025 Hashborn

import pytest

from tokenomics.config.params import DEVNET, YEAR_SECONDS
from tokenomics.types.common import ScheduleError
from tokenomics.types.farm import RewardPeriod
from dao.core.schedule import RewardSchedule

START = 1_000


@pytest.fixture
def schedule():
    return RewardSchedule.halving(
        start=START,
        max_supply=DEVNET.max_supply,
        periods_count=DEVNET.reward_periods_count,
        period_duration=YEAR_SECONDS,
    )


def test_halving_sums_to_max_supply(schedule):
    assert len(schedule) == 10
    assert schedule.total_reward == DEVNET.max_supply
    assert schedule.start == START
    assert schedule.end == START + 10 * YEAR_SECONDS


def test_halving_amounts(schedule):
    periods = schedule.periods
    assert periods[0].reward == DEVNET.max_supply // 2
    for prev, nxt in zip(periods[:-2], periods[1:-1]):
        assert nxt.reward == prev.reward // 2
    # Last period takes the remainder, so it equals the one before it
    assert periods[-1].reward == periods[-2].reward


def test_emitted_until_boundaries(schedule):
    assert schedule.emitted_until(START - 100) == 0
    assert schedule.emitted_until(START) == 0
    assert schedule.emitted_until(START + YEAR_SECONDS) == DEVNET.max_supply // 2
    assert schedule.emitted_until(schedule.end) == DEVNET.max_supply
    # Nothing more after the last period
    assert schedule.emitted_until(schedule.end + 5 * YEAR_SECONDS) == DEVNET.max_supply


def test_emitted_half_period(schedule):
    half = schedule.emitted_until(START + YEAR_SECONDS // 2)
    assert half == DEVNET.max_supply // 4


def test_overlaps_across_boundary(schedule):
    t0 = START + YEAR_SECONDS - 100
    t1 = START + YEAR_SECONDS + 300
    overlaps = schedule.overlaps(t0, t1)

    assert [o.period.id for o in overlaps] == [0, 1]
    assert [o.seconds for o in overlaps] == [100, 300]
    assert schedule.overlaps(t1, t0) == []


def test_emitted_between_is_additive(schedule):
    a, b, c = START + 10, START + YEAR_SECONDS + 17, START + 3 * YEAR_SECONDS + 5
    assert schedule.emitted_between(a, c) == schedule.emitted_between(a, b) + schedule.emitted_between(b, c)
    assert schedule.emitted_between(c, a) == 0


def test_period_at(schedule):
    assert schedule.period_at(START - 1) is None
    assert schedule.period_at(START).id == 0
    assert schedule.period_at(START + YEAR_SECONDS).id == 1
    assert schedule.period_at(schedule.end) is None
    assert not schedule.is_exhausted(schedule.end - 1)
    assert schedule.is_exhausted(schedule.end)


def test_rejects_invalid_periods():
    with pytest.raises(ScheduleError, match="at least one period"):
        RewardSchedule([])

    with pytest.raises(ScheduleError, match="not contiguous"):
        RewardSchedule([
            RewardPeriod(id=0, start=0, end=10, reward=5),
            RewardPeriod(id=1, start=11, end=20, reward=5),
        ])

    with pytest.raises(ScheduleError, match="non-positive duration"):
        RewardSchedule([RewardPeriod(id=0, start=10, end=10, reward=5)])

    with pytest.raises(ScheduleError, match="negative reward"):
        RewardSchedule([RewardPeriod(id=0, start=0, end=10, reward=-1)])


def test_json_roundtrip(schedule):
    restored = RewardSchedule.from_json(schedule.to_json())
    assert restored.periods == schedule.periods
