# MIT License
# Copyright (c) 2025 Hashborn

"""
Prometheus Metrics Exporter

Exports DAO metrics in Prometheus format.

Metrics:
- Stake / unstake activity per LP token
- Farm rewards paid, claimable supply, schedule progress
- DAO token supply
- Dividends intervals and claims
- Governance proposals and votes
"""

from prometheus_client import Counter, Gauge, CollectorRegistry

from tokenomics.types.common import FarmEvent

# Create registry for metrics
metrics_registry = CollectorRegistry()

# ═══════════════════════════════════════════════════════════════════
# FARM METRICS
# ═══════════════════════════════════════════════════════════════════

stakes_total = Counter(
    'dao_farm_stakes_total',
    'Total number of stake operations',
    ['asset'],
    registry=metrics_registry
)

unstakes_total = Counter(
    'dao_farm_unstakes_total',
    'Total number of unstake operations',
    ['asset'],
    registry=metrics_registry
)

rewards_paid_total = Counter(
    'dao_farm_rewards_paid_total',
    'Total DAO token reward paid out (minimal units)',
    registry=metrics_registry
)

auto_delegations_total = Counter(
    'dao_farm_auto_delegations_total',
    'Accounts made their own delegate on first payout',
    registry=metrics_registry
)

total_staked = Gauge(
    'dao_farm_total_staked',
    'Total LP tokens staked',
    ['asset'],
    registry=metrics_registry
)

total_claimed = Gauge(
    'dao_farm_total_claimed',
    'Total DAO tokens claimed from the farm',
    registry=metrics_registry
)

schedule_emitted = Gauge(
    'dao_farm_schedule_emitted',
    'Reward emitted by the schedule so far (minimal units)',
    registry=metrics_registry
)

schedule_exhausted = Gauge(
    'dao_farm_schedule_exhausted',
    '1 once the last reward period has ended',
    registry=metrics_registry
)

# ═══════════════════════════════════════════════════════════════════
# TOKEN METRICS
# ═══════════════════════════════════════════════════════════════════

token_total_supply = Gauge(
    'dao_token_total_supply',
    'DAO token total supply (minimal units)',
    registry=metrics_registry
)

token_max_supply = Gauge(
    'dao_token_max_supply',
    'DAO token max supply (minimal units)',
    registry=metrics_registry
)

# ═══════════════════════════════════════════════════════════════════
# DIVIDENDS METRICS
# ═══════════════════════════════════════════════════════════════════

distribution_intervals_total = Counter(
    'dao_divs_distribution_intervals_total',
    'Total number of distribution intervals created',
    registry=metrics_registry
)

divs_claimed_total = Counter(
    'dao_divs_claimed_total',
    'Total fee token amount claimed as dividends (minimal units)',
    registry=metrics_registry
)


# ═══════════════════════════════════════════════════════════════════
# GOVERNANCE METRICS
# ═══════════════════════════════════════════════════════════════════

proposals_total = Counter(
    'dao_gov_proposals_total',
    'Total number of proposals created',
    registry=metrics_registry
)

votes_total = Counter(
    'dao_gov_votes_total',
    'Votes cast on proposals',
    ['support'],
    registry=metrics_registry
)

proposals_executed_total = Counter(
    'dao_gov_proposals_executed_total',
    'Total number of proposals executed by the timelock',
    registry=metrics_registry
)

def update_metrics(farm):
    """
    Sync gauges with the current farm and token state.

    Args:
        farm: DAOTokenFarm instance
    """
    for asset in farm.get_lp_tokens():
        total_staked.labels(asset=asset).set(farm.total_staked(asset))

    total_claimed.set(farm.total_claimed())

    now = farm.clock.now()
    if farm.schedule is not None:
        schedule_emitted.set(farm.schedule.emitted_until(now))
        schedule_exhausted.set(1 if farm.schedule.is_exhausted(now) else 0)

    token_total_supply.set(farm.token.total_supply)
    token_max_supply.set(farm.token.max_supply)


def register_event_metrics(bus):
    """Subscribe counters to the event bus."""
    bus.subscribe(FarmEvent.STAKED, lambda asset, **_: stakes_total.labels(asset=asset).inc())
    bus.subscribe(FarmEvent.UNSTAKED, lambda asset, **_: unstakes_total.labels(asset=asset).inc())
    bus.subscribe(FarmEvent.REWARD_PAID, lambda amount, **_: rewards_paid_total.inc(amount))
    bus.subscribe(FarmEvent.AUTO_DELEGATED, lambda **_: auto_delegations_total.inc())
    bus.subscribe(FarmEvent.INTERVAL_ADDED, lambda **_: distribution_intervals_total.inc())
    bus.subscribe(FarmEvent.DIVS_CLAIMED, lambda amount, **_: divs_claimed_total.inc(amount))
    bus.subscribe(FarmEvent.PROPOSAL_CREATED, lambda **_: proposals_total.inc())
    bus.subscribe(FarmEvent.VOTE_CAST, lambda support, **_: votes_total.labels(support=str(support)).inc())
    bus.subscribe(FarmEvent.PROPOSAL_EXECUTED, lambda **_: proposals_executed_total.inc())
