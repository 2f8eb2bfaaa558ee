# MIT License
# Copyright (c) 2025 Hashborn

from enum import Enum

class FarmEvent(str, Enum):
    DEPOSITED = "deposited"
    WITHDRAWN = "withdrawn"
    STAKED = "staked"
    UNSTAKED = "unstaked"
    REWARD_PAID = "reward_paid"
    AUTO_DELEGATED = "auto_delegated"
    SCHEDULE_EXHAUSTED = "schedule_exhausted"

    # Dividends
    INTERVAL_ADDED = "distribution_interval_added"
    DIVS_CLAIMED = "divs_claimed"

    # Governance
    PROPOSAL_CREATED = "proposal_created"
    VOTE_CAST = "vote_cast"
    PROPOSAL_QUEUED = "proposal_queued"
    PROPOSAL_EXECUTED = "proposal_executed"
    PROPOSAL_CANCELED = "proposal_canceled"

class ProtocolError(Exception):
    pass

class ValidationError(ProtocolError, ValueError):
    pass

class ZeroAmountError(ValidationError):
    pass

class InsufficientStakeError(ValidationError):
    pass

class InsufficientBalanceError(ValidationError):
    pass

class UnsupportedAssetError(ValidationError):
    pass

class UnauthorizedError(ValidationError):
    pass

class SupplyCapExceededError(ValidationError):
    pass

class ScheduleError(ValidationError):
    pass

class DistributionIntervalError(ValidationError):
    pass

class GovernanceError(ValidationError):
    pass
