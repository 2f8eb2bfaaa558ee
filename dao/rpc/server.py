# MIT License
# Copyright (c) 2025 Hashborn

"""
Runs the DAO runtime behind the RPC app.

Settings come from the environment:
    DAO_NETWORK    network preset (devnet/testnet/mainnet)
    DAO_DB_PATH    sqlite file for persisted state
    DAO_LP_TOKENS  comma-separated LP token symbols to register
    DAO_RPC_HOST / DAO_RPC_PORT
"""
import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import List

from uvicorn import Config, Server

from tokenomics.config.params import get_config, FarmConfig
from ..core.clock import Clock, SystemClock
from ..core.divs import DivsDistributor
from ..core.events import event_bus
from ..core.farm import DAOTokenFarm
from ..core.governor import DAOGovernor, EXECUTOR_ROLE, PROPOSER_ROLE, TimelockController
from ..core.token import DAOToken, FungibleToken
from ..core.treasury import Treasury
from ..observability.metrics import register_event_metrics
from ..storage.db import StorageDB
from . import api

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    config: FarmConfig
    db: StorageDB
    token: DAOToken
    fee_token: FungibleToken
    farm: DAOTokenFarm
    divs: DivsDistributor
    treasury: Treasury
    timelock: TimelockController
    governor: DAOGovernor
    lp_tokens: List[FungibleToken] = field(default_factory=list)

    def persist(self):
        self.farm.persist(self.db)
        self.divs.persist(self.db)
        self.timelock.persist(self.db)
        self.governor.persist(self.db)
        self.treasury.persist(self.db)
        for tok in [self.token, self.fee_token] + self.lp_tokens:
            tok.persist(self.db)


def build_runtime(config: FarmConfig, db_path: str, lp_symbols, clock: Clock = None) -> Runtime:
    clock = clock or SystemClock()
    db = StorageDB(db_path)

    token = DAOToken(clock, config)
    fee_token = FungibleToken(config.fee_token_symbol, config.fee_token_symbol, config.fee_token_decimals)
    farm = DAOTokenFarm(token, clock, config)

    restored = token.load(db)
    fee_token.load(db)
    farm.load(db)
    if not restored:
        token.set_farm_address(token.owner, farm.address)

    lp_tokens = [FungibleToken(f"{s} LP", s) for s in lp_symbols]
    for lp in lp_tokens:
        lp.load(db)
    farm.add_pools(lp_tokens)
    if farm.schedule is None:
        farm.add_reward_periods()

    divs = DivsDistributor(fee_token, token, clock, config.divs_payment_interval_sec)
    divs.load(db)
    timelock, governor, treasury = build_governance(token, fee_token, clock, config, db)
    logger.info(f"Runtime ready on {config.network_id} ({'restored' if restored else 'fresh'} state, "
                f"{len(lp_tokens)} LP pool(s))")
    return Runtime(config, db, token, fee_token, farm, divs, treasury, timelock, governor, lp_tokens)


def build_governance(token: DAOToken, fee_token: FungibleToken, clock: Clock, config: FarmConfig,
                     db: StorageDB):
    """Governor and timelock, with the treasury owned by the timelock."""
    timelock = TimelockController(clock, config.timelock_delay_sec)
    governor = DAOGovernor(token, timelock, clock, config)
    treasury = Treasury(fee_token, owner=timelock.address)

    timelock.register_target(treasury.address, treasury, ["transfer_funds", "transfer_ownership"])
    timelock.register_target(timelock.address, timelock, ["update_delay", "grant_role"])
    timelock.register_target(governor.address, governor, ["update_quorum_numerator"])

    timelock.load(db)
    governor.load(db)
    treasury.load(db)
    if timelock.admin is not None:
        timelock.grant_role(timelock.admin, PROPOSER_ROLE, governor.address)
        timelock.grant_role(timelock.admin, EXECUTOR_ROLE, governor.address)
        timelock.renounce_admin(timelock.admin)
    return timelock, governor, treasury


async def serve(runtime: Runtime, host: str, port: int):
    api.farm = runtime.farm
    api.divs = runtime.divs
    api.governor = runtime.governor
    server = Server(Config(api.app, host=host, port=port, log_level="info"))
    try:
        await server.serve()
    finally:
        runtime.persist()
        logger.info("State persisted")


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s %(levelname)s: %(message)s',
        datefmt='%H:%M:%S'
    )

    config = get_config(os.environ.get("DAO_NETWORK", "devnet"))
    db_path = os.environ.get("DAO_DB_PATH", "./.dao/state.db")
    os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
    lp_symbols = [s for s in os.environ.get("DAO_LP_TOKENS", "LP01").split(",") if s]

    runtime = build_runtime(config, db_path, lp_symbols)
    register_event_metrics(event_bus)

    try:
        asyncio.run(serve(
            runtime,
            os.environ.get("DAO_RPC_HOST", "127.0.0.1"),
            int(os.environ.get("DAO_RPC_PORT", "8000")),
        ))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
