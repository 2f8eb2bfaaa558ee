# MIT License
# Copyright (c) 2025 Hashborn

"""
Time-weighted reward accrual.

Each asset keeps a reward-per-token accumulator. The schedule's emission is
shared by everything staked in the farm, whatever the pool: an asset's share
of an interval is its staked total weighted by its allocation points,

    weight(asset) = allocation_points * total_staked

so with equal points every staked LP unit earns the same. Every stake or
unstake in any pool first brings all accumulators up to date, which makes
the accrual piecewise over every change of the staked totals:

    earned = accrued + staked * (reward_per_token - reward_per_token_paid) / P

All divisions floor, so the sum credited to all stakers of an interval never
exceeds the interval's emission.
"""
import logging
from typing import Iterable, Optional

from tokenomics.config.params import REWARD_PRECISION
from tokenomics.types.farm import GlobalStakeState, StakePosition
from .schedule import RewardSchedule

logger = logging.getLogger(__name__)


class AccrualEngine:
    def __init__(self, schedule: Optional[RewardSchedule] = None, precision: int = REWARD_PRECISION):
        self.schedule = schedule
        self.precision = precision

    @staticmethod
    def weight(state: GlobalStakeState) -> int:
        return state.allocation_points * state.total_staked

    def total_weight(self, states: Iterable[GlobalStakeState]) -> int:
        return sum(self.weight(s) for s in states)

    def asset_emission(self, state: GlobalStakeState, t0: int, t1: int, total_weight: int) -> int:
        """Reward emitted for one asset over [t0, t1], by its share of the staked weight."""
        if self.schedule is None or t1 <= t0 or total_weight <= 0:
            return 0
        emitted = self.schedule.emitted_between(t0, t1)
        return emitted * self.weight(state) // total_weight

    def reward_per_token(self, state: GlobalStakeState, now: int, total_weight: int) -> int:
        """Accumulator value at now, without mutating state."""
        if state.total_staked == 0 or now <= state.last_update_time:
            return state.reward_per_token_stored
        emission = self.asset_emission(state, state.last_update_time, now, total_weight)
        return state.reward_per_token_stored + emission * self.precision // state.total_staked

    def update_asset(self, state: GlobalStakeState, now: int, total_weight: int) -> None:
        if now <= state.last_update_time:
            return
        state.reward_per_token_stored = self.reward_per_token(state, now, total_weight)
        state.last_update_time = now

    def update_all(self, states: Iterable[GlobalStakeState], now: int) -> None:
        """Brings every accumulator to now. Emission of an interval with nothing staked is forfeited."""
        states = list(states)
        total_weight = self.total_weight(states)
        if total_weight == 0 and self.schedule is not None and states:
            since = min(s.last_update_time for s in states)
            forfeited = self.schedule.emitted_between(since, now)
            if forfeited:
                logger.warning(f"{forfeited} reward forfeited, nothing staked between {since} and {now}")
        for state in states:
            self.update_asset(state, now, total_weight)

    def earned(self, position: StakePosition, reward_per_token: int) -> int:
        delta = reward_per_token - position.reward_per_token_paid
        return position.accrued_unclaimed + position.staked_amount * delta // self.precision

    def settle(self, position: StakePosition, state: GlobalStakeState, now: int, total_weight: int) -> int:
        """
        Credits the reward accrued since the position's checkpoint.

        Returns the amount newly credited; calling it twice at the same
        instant credits nothing the second time.
        """
        self.update_asset(state, now, total_weight)
        before = position.accrued_unclaimed
        position.accrued_unclaimed = self.earned(position, state.reward_per_token_stored)
        position.reward_per_token_paid = state.reward_per_token_stored
        position.last_checkpoint = max(position.last_checkpoint, now)
        return position.accrued_unclaimed - before

    def pending(self, position: StakePosition, state: GlobalStakeState, now: int, total_weight: int) -> int:
        """Unclaimed reward projected to now. Pure read."""
        return self.earned(position, self.reward_per_token(state, now, total_weight))
