# MIT License
# Copyright (c) 2025 Hashborn

from typing import Dict, List, Optional, Tuple
import logging
import threading

from tokenomics.config.params import CURRENT_CONFIG
from tokenomics.types.common import (
    InsufficientBalanceError,
    InsufficientStakeError,
    UnsupportedAssetError,
    ValidationError,
    ZeroAmountError,
)
from tokenomics.types.farm import FarmAccount, GlobalStakeState, StakePosition
from ..storage.db import StorageDB
from .accrual import AccrualEngine

logger = logging.getLogger(__name__)


class StakeLedger:
    """
    Staked and deposited balances per (account, asset), plus the per-asset totals.

    Every operation that changes a staked balance first brings the
    accumulators of all assets up to date, then settles the position so the
    old balance is credited for the elapsed time.
    """

    def __init__(self, engine: AccrualEngine, positions: Dict[Tuple[str, str], StakePosition] = None,
                 assets: Dict[str, GlobalStakeState] = None, accounts: Dict[str, FarmAccount] = None):
        self.engine = engine
        self._positions: Dict[Tuple[str, str], StakePosition] = positions if positions is not None else {}
        self._assets: Dict[str, GlobalStakeState] = assets if assets is not None else {}
        self._accounts: Dict[str, FarmAccount] = accounts if accounts is not None else {}
        self._lock = threading.RLock()

    # --- Assets ---
    def add_asset(self, asset: str, allocation_points: int = CURRENT_CONFIG.default_allocation_points, now: int = 0):
        if allocation_points <= 0:
            raise ValidationError(f"allocation_points must be positive, got {allocation_points}")
        with self._lock:
            if asset in self._assets:
                raise ValidationError(f"Asset {asset} already supported")
            # Every asset accrues from the same instant
            self.update_all(now)
            self._assets[asset] = GlobalStakeState(
                asset=asset,
                last_update_time=now,
                allocation_points=allocation_points,
            )
        logger.info(f"Added staking asset {asset} with {allocation_points} allocation point(s)")

    def has_asset(self, asset: str) -> bool:
        return asset in self._assets

    def assets(self) -> List[str]:
        with self._lock:
            return list(self._assets.keys())

    def asset_state(self, asset: str) -> GlobalStakeState:
        state = self._assets.get(asset)
        if state is None:
            raise UnsupportedAssetError(f"Asset {asset} is not supported")
        return state

    @property
    def total_weight(self) -> int:
        return self.engine.total_weight(self._assets.values())

    def update_all(self, now: int):
        with self._lock:
            self.engine.update_all(self._assets.values(), now)

    # --- Positions ---
    def position(self, account: str, asset: str) -> StakePosition:
        """Returns the position, creating it on first use."""
        with self._lock:
            state = self.asset_state(asset)
            key = (account, asset)
            pos = self._positions.get(key)
            if pos is None:
                pos = StakePosition(
                    account=account,
                    asset=asset,
                    last_checkpoint=state.last_update_time,
                    reward_per_token_paid=state.reward_per_token_stored,
                )
                self._positions[key] = pos
            return pos

    def find_position(self, account: str, asset: str) -> Optional[StakePosition]:
        return self._positions.get((account, asset))

    def positions_of(self, account: str) -> List[StakePosition]:
        with self._lock:
            return [p for (acc, _), p in self._positions.items() if acc == account]

    def account(self, address: str) -> FarmAccount:
        with self._lock:
            acc = self._accounts.get(address)
            if acc is None:
                acc = FarmAccount(address=address)
                self._accounts[address] = acc
            return acc

    # --- Balance changes ---
    def deposit(self, account: str, asset: str, amount: int):
        self._require_positive(amount)
        with self._lock:
            pos = self.position(account, asset)
            pos.deposited_amount += amount

    def withdraw(self, account: str, asset: str, amount: int):
        self._require_positive(amount)
        with self._lock:
            self.asset_state(asset)
            pos = self.find_position(account, asset)
            available = pos.deposited_amount if pos else 0
            if available < amount:
                raise InsufficientBalanceError(
                    f"Insufficient unstaked balance: have {available}, trying to withdraw {amount}"
                )
            pos.deposited_amount -= amount

    def stake(self, account: str, asset: str, amount: int, now: int) -> int:
        """Moves deposited tokens into the stake. Returns the reward credited by the settlement."""
        self._require_positive(amount)
        with self._lock:
            state = self.asset_state(asset)
            pos = self.find_position(account, asset)
            available = pos.deposited_amount if pos else 0
            if available < amount:
                raise InsufficientBalanceError(
                    f"Insufficient unstaked balance: have {available}, trying to stake {amount}"
                )
            self.update_all(now)
            credited = self.engine.settle(pos, state, now, self.total_weight)
            pos.deposited_amount -= amount
            pos.staked_amount += amount
            state.total_staked += amount
            return credited

    def unstake(self, account: str, asset: str, amount: int, now: int) -> int:
        """Moves staked tokens back to the deposited balance. Returns the reward credited by the settlement."""
        self._require_positive(amount)
        with self._lock:
            state = self.asset_state(asset)
            pos = self.find_position(account, asset)
            staked = pos.staked_amount if pos else 0
            if staked < amount:
                raise InsufficientStakeError(f"Insufficient stake: have {staked}, trying to unstake {amount}")
            self.update_all(now)
            credited = self.engine.settle(pos, state, now, self.total_weight)
            pos.staked_amount -= amount
            pos.deposited_amount += amount
            state.total_staked -= amount
            return credited

    def settle(self, account: str, asset: str, now: int) -> int:
        with self._lock:
            state = self.asset_state(asset)
            pos = self.position(account, asset)
            self.update_all(now)
            return self.engine.settle(pos, state, now, self.total_weight)

    def settle_account(self, account: str, now: int) -> int:
        """Settles every position of the account. Returns the total unclaimed amount afterwards."""
        with self._lock:
            self.update_all(now)
            total_weight = self.total_weight
            total = 0
            for pos in self.positions_of(account):
                self.engine.settle(pos, self._assets[pos.asset], now, total_weight)
                total += pos.accrued_unclaimed
            return total

    def pending(self, account: str, now: int) -> int:
        with self._lock:
            total_weight = self.total_weight
            return sum(
                self.engine.pending(pos, self._assets[pos.asset], now, total_weight)
                for pos in self.positions_of(account)
            )

    def clear_accrued(self, account: str) -> int:
        with self._lock:
            total = 0
            for pos in self.positions_of(account):
                total += pos.accrued_unclaimed
                pos.accrued_unclaimed = 0
            return total

    @staticmethod
    def _require_positive(amount: int):
        if amount <= 0:
            raise ZeroAmountError(f"Amount must be positive, got {amount}")

    # --- Persistence ---
    def persist(self, db: StorageDB):
        """Writes assets, positions and accounts to DB."""
        with self._lock:
            items = {}
            for asset, state in self._assets.items():
                items[f"asset:{asset}"] = state.model_dump_json()
            for (account, asset), pos in self._positions.items():
                items[f"pos:{account}:{asset}"] = pos.model_dump_json()
            for address, acc in self._accounts.items():
                items[f"acct:{address}"] = acc.model_dump_json()
            db.set_states(items)

    def load(self, db: StorageDB):
        with self._lock:
            self._assets = {
                k.split(":", 1)[1]: GlobalStakeState.model_validate_json(v)
                for k, v in db.get_state_by_prefix("asset:").items()
            }
            self._positions = {}
            for v in db.get_state_by_prefix("pos:").values():
                pos = StakePosition.model_validate_json(v)
                self._positions[(pos.account, pos.asset)] = pos
            self._accounts = {}
            for v in db.get_state_by_prefix("acct:").values():
                acc = FarmAccount.model_validate_json(v)
                self._accounts[acc.address] = acc
