# MIT License
# Copyright (c) 2025 Hashborn

from pydantic import BaseModel, Field
from typing import Dict, List, Optional

class Checkpoint(BaseModel):
    timestamp: int
    votes: int

class TokenSnapshot(BaseModel):
    """Serializable state of a token ledger (balances, delegation, checkpoints)."""
    name: str
    symbol: str
    decimals: int
    total_supply: int = 0
    balances: Dict[str, int] = Field(default_factory=dict)
    delegates: Dict[str, str] = Field(default_factory=dict)
    checkpoints: Dict[str, List[Checkpoint]] = Field(default_factory=dict)
    supply_checkpoints: List[Checkpoint] = Field(default_factory=list)
    farm_address: Optional[str] = None
