# MIT License
# Copyright (c) 2025 Hashborn

from typing import Iterator, List, Optional
import json

from tokenomics.types.common import ScheduleError
from tokenomics.types.farm import PeriodOverlap, RewardPeriod


class RewardSchedule:
    """
    Ordered, contiguous sequence of reward periods.

    Emission inside a period is linear in time. Before the first period and
    after the last one nothing is emitted.
    """

    def __init__(self, periods: List[RewardPeriod]):
        if not periods:
            raise ScheduleError("Reward schedule must have at least one period")
        for p in periods:
            if p.duration <= 0:
                raise ScheduleError(f"Period {p.id} has non-positive duration {p.duration}")
            if p.reward < 0:
                raise ScheduleError(f"Period {p.id} has negative reward {p.reward}")
        for prev, nxt in zip(periods, periods[1:]):
            if prev.end != nxt.start:
                raise ScheduleError(
                    f"Periods {prev.id} and {nxt.id} are not contiguous ({prev.end} != {nxt.start})"
                )
        self._periods = list(periods)

    @classmethod
    def halving(cls, start: int, max_supply: int, periods_count: int, period_duration: int) -> 'RewardSchedule':
        """
        Builds a schedule where each period emits half of the previous one.

        Period i gets max_supply >> (i + 1); the last period also receives the
        remainder so that the total equals max_supply exactly.
        """
        if periods_count <= 0:
            raise ScheduleError(f"periods_count must be positive, got {periods_count}")
        periods = []
        allocated = 0
        for i in range(periods_count):
            if i == periods_count - 1:
                reward = max_supply - allocated
            else:
                reward = max_supply >> (i + 1)
            allocated += reward
            periods.append(RewardPeriod(
                id=i,
                start=start + i * period_duration,
                end=start + (i + 1) * period_duration,
                reward=reward,
            ))
        return cls(periods)

    @property
    def periods(self) -> List[RewardPeriod]:
        return list(self._periods)

    @property
    def start(self) -> int:
        return self._periods[0].start

    @property
    def end(self) -> int:
        return self._periods[-1].end

    @property
    def total_reward(self) -> int:
        return sum(p.reward for p in self._periods)

    def __len__(self) -> int:
        return len(self._periods)

    def __iter__(self) -> Iterator[RewardPeriod]:
        return iter(self._periods)

    def period_at(self, timestamp: int) -> Optional[RewardPeriod]:
        for p in self._periods:
            if p.start <= timestamp < p.end:
                return p
        return None

    def is_exhausted(self, timestamp: int) -> bool:
        return timestamp >= self.end

    def overlaps(self, t0: int, t1: int) -> List[PeriodOverlap]:
        """Periods overlapping [t0, t1] with the number of overlapping seconds."""
        if t1 <= t0:
            return []
        result = []
        for p in self._periods:
            lo = max(t0, p.start)
            hi = min(t1, p.end)
            if hi > lo:
                result.append(PeriodOverlap(p, hi - lo))
        return result

    def emitted_until(self, timestamp: int) -> int:
        """Cumulative emission from the schedule start up to timestamp (floored per period)."""
        return sum(
            o.period.reward * o.seconds // o.period.duration
            for o in self.overlaps(self.start, timestamp)
        )

    def emitted_between(self, t0: int, t1: int) -> int:
        if t1 <= t0:
            return 0
        return self.emitted_until(t1) - self.emitted_until(t0)

    def to_json(self) -> str:
        return json.dumps([p.model_dump() for p in self._periods])

    @classmethod
    def from_json(cls, raw: str) -> 'RewardSchedule':
        return cls([RewardPeriod.model_validate(p) for p in json.loads(raw)])
