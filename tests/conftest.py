"""Pytest configuration and fixtures."""

from __future__ import annotations

from typing import Callable, Optional

import pytest
import structlog

from pairswap.core.ledger import LedgerError
from pairswap.core.pool import Pool
from pairswap.state.balances import BalanceTable
from pairswap.state.ledger import InMemoryLedger

ASSET_A = "TKA"
ASSET_B = "TKB"
UNLIMITED = 10**40


class ScriptedLedger(InMemoryLedger):
    """In-memory ledger whose movements can be made to fail or to call back into the pool."""

    def __init__(self, asset: str, balances: BalanceTable) -> None:
        super().__init__(asset, balances)
        self.reject_transfer = False
        self.reject_transfer_from = False
        self.raise_on_transfer = False
        self.on_movement: Optional[Callable[[], None]] = None

    def _hook(self) -> None:
        if self.on_movement is not None:
            self.on_movement()

    def transfer(self, sender, to, amount):
        self._hook()
        if self.raise_on_transfer:
            raise LedgerError("ledger offline")
        if self.reject_transfer:
            return False
        return super().transfer(sender, to, amount)

    def transfer_from(self, spender, owner, to, amount):
        self._hook()
        if self.reject_transfer_from:
            return False
        return super().transfer_from(spender, owner, to, amount)


@pytest.fixture
def balances() -> BalanceTable:
    return BalanceTable()


@pytest.fixture
def ledger_a(balances: BalanceTable) -> ScriptedLedger:
    return ScriptedLedger(ASSET_A, balances)


@pytest.fixture
def ledger_b(balances: BalanceTable) -> ScriptedLedger:
    return ScriptedLedger(ASSET_B, balances)


@pytest.fixture
def pool(ledger_a: ScriptedLedger, ledger_b: ScriptedLedger) -> Pool:
    return Pool(ASSET_A, ASSET_B, ledger_a, ledger_b)


@pytest.fixture
def fund(pool: Pool, ledger_a: ScriptedLedger, ledger_b: ScriptedLedger) -> Callable[..., None]:
    """Mint both assets to an account and approve the pool to spend them."""

    def _fund(account: str, amount_a: int, amount_b: Optional[int] = None) -> None:
        amount_b = amount_a if amount_b is None else amount_b
        ledger_a.mint(account, amount_a)
        ledger_b.mint(account, amount_b)
        ledger_a.approve(account, pool.pool_account, UNLIMITED)
        ledger_b.approve(account, pool.pool_account, UNLIMITED)

    return _fund


@pytest.fixture
def state_of() -> Callable[[Pool], tuple]:
    """Everything a failed operation must leave untouched."""

    def _state(p: Pool) -> tuple:
        return p.get_reserves(), p.total_shares, p.share_balances(), len(p.records)

    return _state


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo any `configure_logging` a test performed."""
    yield
    structlog.reset_defaults()
