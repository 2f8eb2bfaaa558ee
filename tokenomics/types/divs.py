# MIT License
# Copyright (c) 2025 Hashborn

from pydantic import BaseModel

class DistributionInterval(BaseModel):
    """A window during which collected fees can be claimed by token holders."""
    id: int           # 1-based
    reward: int       # Fee token amount to distribute (minimal units)
    start: int        # Snapshot time for votes and supply
    end: int
    rewards_paid: int = 0
