# MIT License
# Copyright (c) 2025 Hashborn

from bisect import bisect_right
from typing import Dict, List, Optional
import logging
import threading

from tokenomics.config.params import CURRENT_CONFIG, FarmConfig
from tokenomics.types.common import (
    InsufficientBalanceError,
    SupplyCapExceededError,
    UnauthorizedError,
    ZeroAmountError,
)
from tokenomics.types.token import Checkpoint, TokenSnapshot
from ..storage.db import StorageDB
from .clock import Clock

logger = logging.getLogger(__name__)


class FungibleToken:
    """In-memory fungible token ledger (LP tokens, fee token, DAO token)."""

    def __init__(self, name: str, symbol: str, decimals: int = 18, address: Optional[str] = None):
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.address = address or symbol.lower()
        self.total_supply = 0
        self._balances: Dict[str, int] = {}
        self._lock = threading.RLock()

    def balance_of(self, account: str) -> int:
        with self._lock:
            return self._balances.get(account, 0)

    def holders(self) -> Dict[str, int]:
        with self._lock:
            return {a: b for a, b in self._balances.items() if b > 0}

    def mint(self, to: str, amount: int, caller: Optional[str] = None):
        if amount <= 0:
            raise ZeroAmountError(f"Mint amount must be positive, got {amount}")
        with self._lock:
            self._check_mint(caller, amount)
            self._balances[to] = self._balances.get(to, 0) + amount
            self.total_supply += amount
            self._after_token_transfer(None, to, amount)

    def burn(self, account: str, amount: int):
        if amount <= 0:
            raise ZeroAmountError(f"Burn amount must be positive, got {amount}")
        with self._lock:
            balance = self._balances.get(account, 0)
            if balance < amount:
                raise InsufficientBalanceError(f"Insufficient balance: have {balance}, need {amount}")
            self._balances[account] = balance - amount
            self.total_supply -= amount
            self._after_token_transfer(account, None, amount)

    def transfer(self, sender: str, to: str, amount: int):
        if amount <= 0:
            raise ZeroAmountError(f"Transfer amount must be positive, got {amount}")
        with self._lock:
            balance = self._balances.get(sender, 0)
            if balance < amount:
                raise InsufficientBalanceError(
                    f"Insufficient {self.symbol} balance: have {balance}, need {amount}"
                )
            self._balances[sender] = balance - amount
            self._balances[to] = self._balances.get(to, 0) + amount
            self._after_token_transfer(sender, to, amount)

    def check_mint(self, caller: Optional[str], amount: int):
        """Raises if mint() of amount by caller would be refused. Changes nothing."""
        with self._lock:
            self._check_mint(caller, amount)

    def _check_mint(self, caller: Optional[str], amount: int):
        pass

    def _after_token_transfer(self, src: Optional[str], dst: Optional[str], amount: int):
        pass

    # --- Persistence ---
    def snapshot(self) -> TokenSnapshot:
        with self._lock:
            return TokenSnapshot(
                name=self.name,
                symbol=self.symbol,
                decimals=self.decimals,
                total_supply=self.total_supply,
                balances=dict(self._balances),
            )

    def restore(self, snap: TokenSnapshot):
        with self._lock:
            self.total_supply = snap.total_supply
            self._balances = dict(snap.balances)

    def persist(self, db: StorageDB):
        db.set_state(f"tok:{self.address}", self.snapshot().model_dump_json())

    def load(self, db: StorageDB) -> bool:
        """Restores the token from storage. Returns False if nothing was saved."""
        raw = db.get_state(f"tok:{self.address}")
        if not raw:
            return False
        self.restore(TokenSnapshot.model_validate_json(raw))
        logger.info(f"Restored {self.symbol}: supply {self.total_supply}, {len(self.holders())} holder(s)")
        return True


class DAOToken(FungibleToken):
    """
    Governance token with a hard supply cap and vote delegation.

    Only the farm may mint. Voting power follows balances of accounts that
    delegated to a delegatee; an account without a delegate has no votes.
    Vote and supply checkpoints are keyed by clock timestamp so that past
    votes can be looked up for dividend snapshots.
    """

    def __init__(self, clock: Clock, config: FarmConfig = CURRENT_CONFIG, owner: str = "owner",
                 address: Optional[str] = None):
        super().__init__(config.token_name, config.token_symbol, config.token_decimals, address)
        self.clock = clock
        self.owner = owner
        self.max_supply = config.max_supply
        self.farm_address: Optional[str] = None

        self._delegates: Dict[str, str] = {}
        self._checkpoints: Dict[str, List[Checkpoint]] = {}
        self._supply_checkpoints: List[Checkpoint] = []

    # --- Minting ---
    def set_farm_address(self, caller: str, farm_address: str):
        if caller != self.owner:
            raise UnauthorizedError("Ownable: caller is not the owner")
        self.farm_address = farm_address
        logger.info(f"{self.symbol} minter set to {farm_address}")

    def mintable(self) -> int:
        with self._lock:
            return self.max_supply - self.total_supply

    def _check_mint(self, caller: Optional[str], amount: int):
        if self.farm_address is None or caller != self.farm_address:
            raise UnauthorizedError(f"Only the farm can mint {self.symbol}")
        if self.total_supply + amount > self.max_supply:
            raise SupplyCapExceededError(
                f"Mint of {amount} exceeds max supply: {self.total_supply} of {self.max_supply} minted"
            )

    # --- Delegation ---
    def delegates(self, account: str) -> Optional[str]:
        with self._lock:
            return self._delegates.get(account)

    def delegate(self, account: str, delegatee: str):
        with self._lock:
            current = self._delegates.get(account)
            self._delegates[account] = delegatee
            self._move_votes(current, delegatee, self._balances.get(account, 0))
        logger.info(f"{account} delegated {self.symbol} votes to {delegatee}")

    def auto_delegate(self, account: str) -> bool:
        """Makes the account its own delegate if it has none. Returns True if a delegate was set."""
        with self._lock:
            if self._delegates.get(account) is not None:
                return False
            self.delegate(account, account)
            return True

    def get_votes(self, account: str) -> int:
        with self._lock:
            ckpts = self._checkpoints.get(account)
            return ckpts[-1].votes if ckpts else 0

    def get_past_votes(self, account: str, timestamp: int) -> int:
        with self._lock:
            return self._lookup(self._checkpoints.get(account, []), timestamp)

    def get_past_total_supply(self, timestamp: int) -> int:
        with self._lock:
            return self._lookup(self._supply_checkpoints, timestamp)

    @staticmethod
    def _lookup(ckpts: List[Checkpoint], timestamp: int) -> int:
        idx = bisect_right([c.timestamp for c in ckpts], timestamp)
        return ckpts[idx - 1].votes if idx else 0

    def _write_checkpoint(self, ckpts: List[Checkpoint], votes: int):
        now = self.clock.now()
        if ckpts and ckpts[-1].timestamp == now:
            ckpts[-1].votes = votes
        else:
            ckpts.append(Checkpoint(timestamp=now, votes=votes))

    def _move_votes(self, src: Optional[str], dst: Optional[str], amount: int):
        if src == dst or amount == 0:
            return
        if src is not None:
            ckpts = self._checkpoints.setdefault(src, [])
            self._write_checkpoint(ckpts, (ckpts[-1].votes if ckpts else 0) - amount)
        if dst is not None:
            ckpts = self._checkpoints.setdefault(dst, [])
            self._write_checkpoint(ckpts, (ckpts[-1].votes if ckpts else 0) + amount)

    def _after_token_transfer(self, src: Optional[str], dst: Optional[str], amount: int):
        if src is None or dst is None:
            self._write_checkpoint(self._supply_checkpoints, self.total_supply)
        self._move_votes(
            self._delegates.get(src) if src else None,
            self._delegates.get(dst) if dst else None,
            amount,
        )

    # --- Persistence ---
    def snapshot(self) -> TokenSnapshot:
        with self._lock:
            snap = super().snapshot()
            snap.delegates = dict(self._delegates)
            snap.checkpoints = {k: [c.model_copy() for c in v] for k, v in self._checkpoints.items()}
            snap.supply_checkpoints = [c.model_copy() for c in self._supply_checkpoints]
            snap.farm_address = self.farm_address
            return snap

    def restore(self, snap: TokenSnapshot):
        with self._lock:
            super().restore(snap)
            self._delegates = dict(snap.delegates)
            self._checkpoints = {k: list(v) for k, v in snap.checkpoints.items()}
            self._supply_checkpoints = list(snap.supply_checkpoints)
            self.farm_address = snap.farm_address
