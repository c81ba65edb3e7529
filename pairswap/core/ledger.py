"""
Asset-ledger collaborator interface.

The pool never holds assets itself: custody lives on one ledger per asset,
under the pool's account. A ledger rejects a movement either by returning
False or by raising `LedgerError`.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..state.balances import Account, Amount


class LedgerError(Exception):
    """Raised by a ledger that reports rejected movements as exceptions."""


@runtime_checkable
class Ledger(Protocol):
    def balance_of(self, account: Account) -> Amount:
        ...

    def transfer(self, sender: Account, to: Account, amount: Amount) -> bool:
        ...

    def transfer_from(self, spender: Account, owner: Account, to: Account, amount: Amount) -> bool:
        ...

    def approve(self, owner: Account, spender: Account, amount: Amount) -> bool:
        ...

    def allowance(self, owner: Account, spender: Account) -> Amount:
        ...
