# MIT License
# Copyright (c) 2025 Hashborn

import pytest

from tokenomics.types.common import InsufficientBalanceError, UnauthorizedError
from tokenomics.units import to_usdc
from dao.core.treasury import Treasury
from dao.storage.db import StorageDB


@pytest.fixture
def treasury(fee_token):
    t = Treasury(fee_token)
    fee_token.mint(t.address, to_usdc(1000))
    return t


def test_owner_transfers_funds(treasury, fee_token):
    treasury.transfer_funds("owner", "alice", to_usdc(100))

    assert fee_token.balance_of("alice") == to_usdc(100)
    assert treasury.get_balance() == to_usdc(900)


def test_non_owner_rejected(treasury):
    with pytest.raises(UnauthorizedError, match="Ownable: caller is not the owner"):
        treasury.transfer_funds("alice", "alice", to_usdc(100))
    assert treasury.get_balance() == to_usdc(1000)


def test_cannot_overdraw(treasury):
    with pytest.raises(InsufficientBalanceError):
        treasury.transfer_funds("owner", "alice", to_usdc(1001))


def test_transfer_ownership(treasury):
    treasury.transfer_ownership("owner", "dao")

    with pytest.raises(UnauthorizedError):
        treasury.transfer_funds("owner", "alice", 1)
    treasury.transfer_funds("dao", "alice", 1)


def test_owner_survives_restart(tmp_path, treasury, fee_token):
    treasury.transfer_ownership("owner", "timelock")
    db = StorageDB(str(tmp_path / "treasury.db"))
    try:
        treasury.persist(db)
        restored = Treasury(fee_token)
        restored.load(db)
        assert restored.owner == "timelock"
    finally:
        db.close()
