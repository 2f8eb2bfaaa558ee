# MIT License
# Copyright (c) 2025 Hashborn

from typing import NamedTuple
from pydantic import BaseModel

class RewardPeriod(BaseModel):
    """A fixed-duration interval with a pre-allocated token reward."""
    id: int
    start: int        # Unix timestamp (inclusive)
    end: int          # Unix timestamp (exclusive)
    reward: int       # Total reward in minimal units

    @property
    def duration(self) -> int:
        return self.end - self.start

class PeriodOverlap(NamedTuple):
    period: RewardPeriod
    seconds: int

class GlobalStakeState(BaseModel):
    """Per-asset aggregate shared by every staker of that asset."""
    asset: str
    total_staked: int = 0
    last_update_time: int = 0
    # Accumulated reward per staked unit, scaled by REWARD_PRECISION
    reward_per_token_stored: int = 0
    allocation_points: int = 1

class StakePosition(BaseModel):
    """Stake of one account in one asset. Created on first use, never deleted."""
    account: str
    asset: str
    staked_amount: int = 0
    deposited_amount: int = 0     # Held by the farm but not earning
    last_checkpoint: int = 0
    accrued_unclaimed: int = 0
    reward_per_token_paid: int = 0

class FarmAccount(BaseModel):
    address: str
    total_claimed: int = 0
    auto_delegated: bool = False
