# MIT License
# Copyright (c) 2025 Hashborn

"""
DAO Economic Parameters
Single source of truth for token, farm and dividends parameters.

Reward schedule: halving
- Period N receives MAX_SUPPLY >> (N + 1)
- The last period receives the remainder so the schedule sums to MAX_SUPPLY
"""

from dataclasses import dataclass
from typing import Dict

DECIMALS = 18
TOKEN_UNIT = 10**DECIMALS

DAY_SECONDS = 24 * 60 * 60
YEAR_SECONDS = 365 * DAY_SECONDS

# Scaling factor of the per-token reward accumulator
REWARD_PRECISION = 10**18

@dataclass
class FarmConfig:
    """DAO parameters for a network."""

    network_id: str

    # ═══════════════════════════════════════════════════════
    # GOVERNANCE TOKEN
    # ═══════════════════════════════════════════════════════
    token_name: str
    token_symbol: str
    token_decimals: int
    max_supply: int                     # Hard cap in minimal units

    # ═══════════════════════════════════════════════════════
    # FARM REWARD SCHEDULE
    # ═══════════════════════════════════════════════════════
    reward_periods_count: int
    reward_period_duration_sec: int
    default_allocation_points: int      # Weight of a newly added LP pool

    # ═══════════════════════════════════════════════════════
    # DIVIDENDS
    # ═══════════════════════════════════════════════════════
    fee_token_symbol: str
    fee_token_decimals: int
    divs_payment_interval_sec: int      # Length of a distribution interval

    # ═══════════════════════════════════════════════════════
    # GOVERNANCE
    # ═══════════════════════════════════════════════════════
    voting_delay_sec: int               # Proposal creation to vote snapshot
    voting_period_sec: int
    proposal_threshold: int             # Votes needed to propose (minimal units)
    quorum_numerator: int               # Percent of past total supply
    timelock_delay_sec: int             # Queue to execution


# ═══════════════════════════════════════════════════════════════════════════
# DEVNET CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════
DEVNET = FarmConfig(
    network_id="devnet",
    token_name="HashStrat DAO Token",
    token_symbol="HST",
    token_decimals=DECIMALS,
    max_supply=1_000_000 * TOKEN_UNIT,          # 1M HST
    reward_periods_count=10,                    # 10 yearly halvings
    reward_period_duration_sec=YEAR_SECONDS,
    default_allocation_points=1,
    fee_token_symbol="USDC",
    fee_token_decimals=6,
    divs_payment_interval_sec=DAY_SECONDS,      # Short intervals for local testing
    voting_delay_sec=0,
    voting_period_sec=1000,
    proposal_threshold=0,
    quorum_numerator=10,
    timelock_delay_sec=0,
)


# ═══════════════════════════════════════════════════════════════════════════
# TESTNET CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════
TESTNET = FarmConfig(
    network_id="testnet",
    token_name="HashStrat DAO Token",
    token_symbol="HST",
    token_decimals=DECIMALS,
    max_supply=1_000_000 * TOKEN_UNIT,
    reward_periods_count=10,
    reward_period_duration_sec=YEAR_SECONDS,
    default_allocation_points=1,
    fee_token_symbol="USDC",
    fee_token_decimals=6,
    divs_payment_interval_sec=7 * DAY_SECONDS,
    voting_delay_sec=60,
    voting_period_sec=DAY_SECONDS,
    proposal_threshold=0,
    quorum_numerator=10,
    timelock_delay_sec=60 * 60,
)


# ═══════════════════════════════════════════════════════════════════════════
# MAINNET CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════
MAINNET = FarmConfig(
    network_id="mainnet",
    token_name="HashStrat DAO Token",
    token_symbol="HST",
    token_decimals=DECIMALS,
    max_supply=1_000_000 * TOKEN_UNIT,
    reward_periods_count=10,
    reward_period_duration_sec=YEAR_SECONDS,
    default_allocation_points=1,
    fee_token_symbol="USDC",
    fee_token_decimals=6,
    divs_payment_interval_sec=30 * DAY_SECONDS, # ~1 month
    voting_delay_sec=DAY_SECONDS,
    voting_period_sec=7 * DAY_SECONDS,
    proposal_threshold=1_000 * TOKEN_UNIT,
    quorum_numerator=10,
    timelock_delay_sec=2 * DAY_SECONDS,
)


NETWORKS: Dict[str, FarmConfig] = {
    "devnet": DEVNET,
    "testnet": TESTNET,
    "mainnet": MAINNET,
}


def get_config(network_id: str) -> FarmConfig:
    if network_id not in NETWORKS:
        raise ValueError(f"Unknown network '{network_id}' (expected one of {sorted(NETWORKS)})")
    return NETWORKS[network_id]


# Default to devnet for now
CURRENT_CONFIG = NETWORKS["devnet"]
