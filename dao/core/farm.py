# MIT License
# Copyright (c) 2025 Hashborn

from typing import Dict, Iterable, List, Optional
import logging
import threading

from tokenomics.config.params import CURRENT_CONFIG, FarmConfig
from tokenomics.types.common import (
    FarmEvent,
    InsufficientBalanceError,
    ScheduleError,
    UnsupportedAssetError,
    ValidationError,
    ZeroAmountError,
)
from tokenomics.types.farm import FarmAccount, RewardPeriod
from ..storage.db import StorageDB
from .accrual import AccrualEngine
from .clock import Clock
from .events import EventBus, event_bus
from .ledger import StakeLedger
from .schedule import RewardSchedule
from .token import DAOToken, FungibleToken

logger = logging.getLogger(__name__)


class DAOTokenFarm:
    """
    Distributes the DAO token to LP token stakers over the reward schedule.

    LP tokens are first deposited into the farm, then staked. Ending a stake
    pays out everything the account accrued across all pools by minting DAO
    tokens, and makes the account its own vote delegate on its first payout.
    """

    def __init__(self, token: DAOToken, clock: Clock, config: FarmConfig = CURRENT_CONFIG,
                 address: str = "farm", events: EventBus = event_bus):
        self.token = token
        self.clock = clock
        self.config = config
        self.address = address
        self.events = events

        self.engine = AccrualEngine()
        self.ledger = StakeLedger(self.engine)
        self.schedule: Optional[RewardSchedule] = None
        self._lp_tokens: Dict[str, FungibleToken] = {}
        self._total_claimed = 0
        self._exhausted_notified = False
        self._lock = threading.RLock()

    # --- Configuration ---
    def add_pools(self, lp_tokens: Iterable[FungibleToken], allocation_points: Optional[int] = None):
        """Registers LP tokens as stakeable assets."""
        points = self.config.default_allocation_points if allocation_points is None else allocation_points
        if points <= 0:
            raise ValidationError(f"allocation_points must be positive, got {points}")
        with self._lock:
            now = self.clock.now()
            for lp in lp_tokens:
                self._lp_tokens[lp.address] = lp
                if not self.ledger.has_asset(lp.address):
                    self.ledger.add_asset(lp.address, points, now)

    def get_lp_tokens(self) -> List[str]:
        with self._lock:
            return list(self._lp_tokens.keys())

    def add_reward_periods(self) -> RewardSchedule:
        """Creates the halving reward schedule starting now."""
        with self._lock:
            if self.schedule is not None:
                raise ScheduleError("Reward periods already added")
            now = self.clock.now()
            self.ledger.update_all(now)
            self.schedule = RewardSchedule.halving(
                start=now,
                max_supply=self.config.max_supply,
                periods_count=self.config.reward_periods_count,
                period_duration=self.config.reward_period_duration_sec,
            )
            self.engine.schedule = self.schedule
            logger.info(f"Reward schedule: {len(self.schedule)} periods from {self.schedule.start} "
                        f"to {self.schedule.end}, total {self.schedule.total_reward}")
            return self.schedule

    def reward_periods_count(self) -> int:
        return len(self.schedule) if self.schedule else 0

    def get_reward_periods(self) -> List[RewardPeriod]:
        return self.schedule.periods if self.schedule else []

    # --- Deposits ---
    def deposit(self, account: str, asset: str, amount: int):
        if amount <= 0:
            raise ZeroAmountError(f"Amount must be positive, got {amount}")
        with self._lock:
            lp = self._lp(asset)
            lp.transfer(account, self.address, amount)
            self.ledger.deposit(account, asset, amount)
        self.events.emit(FarmEvent.DEPOSITED, account=account, asset=asset, amount=amount)

    def withdraw(self, account: str, asset: str, amount: int):
        with self._lock:
            lp = self._lp(asset)
            held = lp.balance_of(self.address)
            if held < amount:
                raise InsufficientBalanceError(f"Farm holds {held} {asset}, cannot release {amount}")
            self.ledger.withdraw(account, asset, amount)
            lp.transfer(self.address, account, amount)
        self.events.emit(FarmEvent.WITHDRAWN, account=account, asset=asset, amount=amount)

    # --- Staking ---
    def start_stake(self, account: str, asset: str, amount: int):
        with self._lock:
            self._lp(asset)
            now = self.clock.now()
            self.ledger.stake(account, asset, amount, now)
            total = self.ledger.asset_state(asset).total_staked
        logger.info(f"{account} staked {amount} {asset} (pool total {total})")
        self.events.emit(FarmEvent.STAKED, account=account, asset=asset, amount=amount, total_staked=total)

    def end_stake(self, account: str, asset: str, amount: int) -> int:
        """Unstakes amount and pays out all accrued reward. Returns the reward paid."""
        with self._lock:
            self._lp(asset)
            now = self.clock.now()
            self._check_payout(account, now)
            self.ledger.unstake(account, asset, amount, now)
            total = self.ledger.asset_state(asset).total_staked
            paid = self._pay_reward(account, now)
        logger.info(f"{account} unstaked {amount} {asset} (pool total {total}), reward {paid}")
        self.events.emit(FarmEvent.UNSTAKED, account=account, asset=asset, amount=amount, total_staked=total)
        return paid

    def deposit_and_start_stake(self, account: str, asset: str, amount: int):
        with self._lock:
            self.deposit(account, asset, amount)
            self.start_stake(account, asset, amount)

    def end_stake_and_withdraw(self, account: str, asset: str, amount: int) -> int:
        with self._lock:
            paid = self.end_stake(account, asset, amount)
            self.withdraw(account, asset, amount)
            return paid

    def claim_reward(self, account: str) -> int:
        with self._lock:
            now = self.clock.now()
            self._check_payout(account, now)
            return self._pay_reward(account, now)

    # --- Queries ---
    def claimable_reward(self, account: str) -> int:
        """Reward the account could claim now. Does not change any state."""
        with self._lock:
            return self.ledger.pending(account, self.clock.now())

    def get_staked_balance(self, account: str, asset: str) -> int:
        with self._lock:
            pos = self.ledger.find_position(account, asset)
            return pos.staked_amount if pos else 0

    def get_unstaked_balance(self, account: str, asset: str) -> int:
        with self._lock:
            pos = self.ledger.find_position(account, asset)
            return pos.deposited_amount if pos else 0

    def total_staked(self, asset: str) -> int:
        with self._lock:
            return self.ledger.asset_state(asset).total_staked

    def total_claimed(self) -> int:
        return self._total_claimed

    def account_info(self, account: str) -> FarmAccount:
        with self._lock:
            return self.ledger.account(account).model_copy()

    # --- Internals ---
    def _lp(self, asset: str) -> FungibleToken:
        lp = self._lp_tokens.get(asset)
        if lp is None:
            raise UnsupportedAssetError(f"LP token {asset} is not supported")
        return lp

    def _check_payout(self, account: str, now: int):
        """Rejects a payout the token would refuse, before any state changes."""
        pending = self.ledger.pending(account, now)
        if pending:
            self.token.check_mint(self.address, pending)

    def _pay_reward(self, account: str, now: int) -> int:
        self.ledger.settle_account(account, now)
        amount = self.ledger.clear_accrued(account)
        self._notify_if_exhausted(now)
        if amount == 0:
            return 0

        self.token.mint(account, amount, caller=self.address)
        acc = self.ledger.account(account)
        acc.total_claimed += amount
        self._total_claimed += amount
        if not acc.auto_delegated:
            self._on_first_payout(account, acc)

        self.events.emit(FarmEvent.REWARD_PAID, account=account, amount=amount)
        return amount

    def _on_first_payout(self, account: str, acc: FarmAccount):
        acc.auto_delegated = True
        if self.token.auto_delegate(account):
            self.events.emit(FarmEvent.AUTO_DELEGATED, account=account)

    def _notify_if_exhausted(self, now: int):
        if self._exhausted_notified or self.schedule is None:
            return
        if self.schedule.is_exhausted(now):
            self._exhausted_notified = True
            logger.info(f"Reward schedule exhausted at {self.schedule.end}; no further rewards accrue")
            self.events.emit(FarmEvent.SCHEDULE_EXHAUSTED, end=self.schedule.end)

    # --- Persistence ---
    def persist(self, db: StorageDB):
        with self._lock:
            self.ledger.persist(db)
            if self.schedule is not None:
                db.set_state("schedule", self.schedule.to_json())
            db.set_state("farm:total_claimed", str(self._total_claimed))

    def load(self, db: StorageDB):
        """Restores ledger and schedule. LP token ledgers are re-attached with add_pools()."""
        with self._lock:
            self.ledger.load(db)
            raw = db.get_state("schedule")
            if raw:
                self.schedule = RewardSchedule.from_json(raw)
                self.engine.schedule = self.schedule
            val = db.get_state("farm:total_claimed")
            if val:
                self._total_claimed = int(val)
