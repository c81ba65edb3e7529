"""
In-memory asset ledger.

One `InMemoryLedger` serves one asset. Several ledgers may share a
`BalanceTable`, which then holds every asset's balances side by side.
Movements that lack balance or allowance return False and change nothing.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from .balances import Account, Amount, AssetId, BalanceTable


def _require_amount(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


class InMemoryLedger:
    """ERC20-like ledger for a single asset."""

    def __init__(self, asset: AssetId, balances: Optional[BalanceTable] = None) -> None:
        if not isinstance(asset, str) or not asset:
            raise ValueError("asset must be a non-empty string")
        self.asset = asset
        self.balances = balances if balances is not None else BalanceTable()
        self._allowances: Dict[Tuple[Account, Account], Amount] = {}

    def balance_of(self, account: Account) -> Amount:
        return self.balances.get(account, self.asset)

    def total_supply(self) -> Amount:
        return self.balances.total_supply(self.asset)

    def mint(self, account: Account, amount: Amount) -> None:
        """Create `amount` new units for `account` (funding for tests and scenarios)."""
        _require_amount("amount", amount)
        self.balances.add(account, self.asset, amount)

    def approve(self, owner: Account, spender: Account, amount: Amount) -> bool:
        _require_amount("amount", amount)
        if amount == 0:
            self._allowances.pop((owner, spender), None)
        else:
            self._allowances[(owner, spender)] = amount
        return True

    def allowance(self, owner: Account, spender: Account) -> Amount:
        return self._allowances.get((owner, spender), 0)

    def transfer(self, sender: Account, to: Account, amount: Amount) -> bool:
        _require_amount("amount", amount)
        if self.balance_of(sender) < amount:
            return False
        self.balances.move(self.asset, sender, to, amount)
        return True

    def transfer_from(self, spender: Account, owner: Account, to: Account, amount: Amount) -> bool:
        _require_amount("amount", amount)
        allowed = self.allowance(owner, spender)
        if allowed < amount or self.balance_of(owner) < amount:
            return False
        self.approve(owner, spender, allowed - amount)
        self.balances.move(self.asset, owner, to, amount)
        return True

    def __repr__(self) -> str:
        return f"InMemoryLedger({self.asset!r}, supply={self.total_supply()})"
