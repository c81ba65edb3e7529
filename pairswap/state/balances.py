"""
Asset balances keyed by (account, asset).

Backing store for `InMemoryLedger`. Several single-asset ledgers can share
one table, which then doubles as a view of every account's whole wallet.
"""

from typing import Dict, Tuple


# Type aliases
Account = str  # Opaque account identifier
AssetId = str  # Opaque asset identifier
Amount = int  # Non-negative integer in base units


class BalanceTable:
    """
    (account, asset) -> amount, with zero balances left out.

    Iteration order is insertion order; anything hashed must sort first.
    """

    def __init__(self):
        self._balances: Dict[Tuple[Account, AssetId], Amount] = {}

    def get(self, account: Account, asset: AssetId) -> Amount:
        return self._balances.get((account, asset), 0)

    def set(self, account: Account, asset: AssetId, amount: Amount) -> None:
        """
        Overwrite one balance.

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        key = (account, asset)
        if amount:
            self._balances[key] = amount
        else:
            self._balances.pop(key, None)

    def add(self, account: Account, asset: AssetId, delta: Amount) -> None:
        """Credit `delta` (which may be negative) to one balance."""
        updated = self.get(account, asset) + delta
        if updated < 0:
            raise ValueError(f"Insufficient balance for {account}/{asset}: short by {-updated}")
        self.set(account, asset, updated)

    def move(self, asset: AssetId, sender: Account, to: Account, amount: Amount) -> None:
        """
        Debit `sender` and credit `to` in one step.

        Raises:
            ValueError: If amount is negative or the sender's balance is insufficient
        """
        if amount < 0:
            raise ValueError(f"Amount must be non-negative: {amount}")
        available = self.get(sender, asset)
        if available < amount:
            raise ValueError(f"Insufficient balance: {available} < {amount}")
        self.set(sender, asset, available - amount)
        self.add(to, asset, amount)

    def get_balances_for_asset(self, asset: AssetId) -> Dict[Account, Amount]:
        """Holders of one asset, account -> amount."""
        return {acct: amount for (acct, a), amount in self._balances.items() if a == asset}

    def total_supply(self, asset: AssetId) -> Amount:
        return sum(self.get_balances_for_asset(asset).values())

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
