# MIT License
# Copyright (c) 2025 Hashborn

from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel

class ProposalState(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    CANCELED = "canceled"
    DEFEATED = "defeated"
    SUCCEEDED = "succeeded"
    QUEUED = "queued"
    EXECUTED = "executed"

class VoteType(IntEnum):
    AGAINST = 0
    FOR = 1
    ABSTAIN = 2

class ProposalAction(BaseModel):
    """Call of a method on a registered target, made by the timelock."""
    target: str                     # Address of the target
    method: str
    args: Dict[str, Any] = {}       # Keyword arguments after the caller

class Proposal(BaseModel):
    id: str                         # sha256 of actions and description
    proposer: str
    actions: List[ProposalAction]
    description: str
    vote_start: int                 # Voting power is read at this timestamp
    vote_end: int
    for_votes: int = 0
    against_votes: int = 0
    abstain_votes: int = 0
    votes: Dict[str, int] = {}      # voter -> VoteType
    eta: Optional[int] = None       # Set once queued in the timelock
    executed: bool = False
    canceled: bool = False
