# MIT License
# Copyright (c) 2025 Hashborn

import logging
import threading

from tokenomics.types.common import UnauthorizedError
from ..storage.db import StorageDB
from .token import FungibleToken

logger = logging.getLogger(__name__)


class Treasury:
    """Holds DAO funds in the fee token; only the owner can move them."""

    def __init__(self, fee_token: FungibleToken, owner: str = "owner", address: str = "treasury"):
        self.fee_token = fee_token
        self.owner = owner
        self.address = address
        self._lock = threading.Lock()

    def get_balance(self) -> int:
        return self.fee_token.balance_of(self.address)

    def transfer_funds(self, caller: str, to: str, amount: int):
        with self._lock:
            self._only_owner(caller)
            self.fee_token.transfer(self.address, to, amount)
        logger.info(f"Treasury sent {amount} {self.fee_token.symbol} to {to}")

    def transfer_ownership(self, caller: str, new_owner: str):
        with self._lock:
            self._only_owner(caller)
            self.owner = new_owner
        logger.info(f"Treasury ownership transferred to {new_owner}")

    def _only_owner(self, caller: str):
        if caller != self.owner:
            raise UnauthorizedError("Ownable: caller is not the owner")

    def persist(self, db: StorageDB):
        db.set_state(f"treasury:{self.address}:owner", self.owner)

    def load(self, db: StorageDB):
        owner = db.get_state(f"treasury:{self.address}:owner")
        if owner:
            self.owner = owner
