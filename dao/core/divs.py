# MIT License
# Copyright (c) 2025 Hashborn

from typing import Dict, List
import json
import logging
import threading

from tokenomics.config.params import CURRENT_CONFIG
from tokenomics.types.common import DistributionIntervalError, FarmEvent
from tokenomics.types.divs import DistributionInterval
from ..storage.db import StorageDB
from .clock import Clock
from .events import EventBus, event_bus
from .token import DAOToken, FungibleToken

logger = logging.getLogger(__name__)


class DivsDistributor:
    """
    Shares collected fees with DAO token holders.

    Fees accumulate on the distributor's balance. A distribution interval
    locks in the current balance as its reward; after its first second each
    holder can claim once, pro rata to their votes at the interval start.
    Unclaimed fees roll over into the next interval.
    """

    def __init__(self, fee_token: FungibleToken, dao_token: DAOToken, clock: Clock,
                 payment_interval: int = CURRENT_CONFIG.divs_payment_interval_sec,
                 address: str = "divs", events: EventBus = event_bus):
        self.fee_token = fee_token
        self.dao_token = dao_token
        self.clock = clock
        self.payment_interval = payment_interval
        self.address = address
        self.events = events

        self._intervals: List[DistributionInterval] = []
        # interval id -> account -> amount claimed
        self._claimed: Dict[int, Dict[str, int]] = {}
        self._lock = threading.RLock()

    def get_distribution_intervals_count(self) -> int:
        return len(self._intervals)

    def distribution_intervals(self, index: int) -> DistributionInterval:
        with self._lock:
            return self._intervals[index].model_copy()

    def can_create_new_distribution_interval(self) -> bool:
        with self._lock:
            if self.fee_token.balance_of(self.address) == 0:
                return False
            if not self._intervals:
                return True
            return self.clock.now() > self._intervals[-1].end

    def add_distribution_interval(self) -> DistributionInterval:
        with self._lock:
            if not self.can_create_new_distribution_interval():
                raise DistributionIntervalError("Cannot create distribution interval")
            now = self.clock.now()
            interval = DistributionInterval(
                id=len(self._intervals) + 1,
                reward=self.fee_token.balance_of(self.address),
                start=now,
                end=now + self.payment_interval,
            )
            self._intervals.append(interval)
            self._claimed[interval.id] = {}
        logger.info(f"Distribution interval {interval.id}: {interval.reward} {self.fee_token.symbol} "
                    f"from {interval.start} to {interval.end}")
        self.events.emit(FarmEvent.INTERVAL_ADDED, interval_id=interval.id, reward=interval.reward)
        return interval

    def claimable_divs(self, account: str) -> int:
        with self._lock:
            if not self._intervals:
                return 0
            interval = self._intervals[-1]
            now = self.clock.now()
            # Votes at interval.start are final only once that second has passed
            if now <= interval.start or now > interval.end:
                return 0
            if account in self._claimed[interval.id]:
                return 0
            supply = self.dao_token.get_past_total_supply(interval.start)
            if supply == 0:
                return 0
            votes = self.dao_token.get_past_votes(account, interval.start)
            return interval.reward * votes // supply

    def claim_divs(self, account: str) -> int:
        with self._lock:
            amount = self.claimable_divs(account)
            if amount == 0:
                return 0
            interval = self._intervals[-1]
            self.fee_token.transfer(self.address, account, amount)
            interval.rewards_paid += amount
            self._claimed[interval.id][account] = amount
        logger.info(f"{account} claimed {amount} {self.fee_token.symbol} in interval {interval.id}")
        self.events.emit(FarmEvent.DIVS_CLAIMED, account=account, interval_id=interval.id, amount=amount)
        return amount

    def claimed_divs(self, interval_id: int, account: str) -> int:
        with self._lock:
            return self._claimed.get(interval_id, {}).get(account, 0)

    # --- Persistence ---
    def persist(self, db: StorageDB):
        with self._lock:
            db.set_states({
                "divs:intervals": json.dumps([i.model_dump() for i in self._intervals]),
                "divs:claimed": json.dumps({str(k): v for k, v in self._claimed.items()}),
            })

    def load(self, db: StorageDB):
        with self._lock:
            raw = db.get_state("divs:intervals")
            if raw:
                self._intervals = [DistributionInterval.model_validate(i) for i in json.loads(raw)]
            raw = db.get_state("divs:claimed")
            if raw:
                self._claimed = {int(k): v for k, v in json.loads(raw).items()}
