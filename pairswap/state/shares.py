"""
Ownership-share ledger for a single pool.

Shares are tracked separately from asset balances. The table keeps the total
supply alongside the per-account balances so `sum(balances) == total` can be
checked in O(n) and relied upon in O(1).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping

from .balances import Account, Amount


@dataclass(frozen=True)
class ShareSnapshot:
    balances: Mapping[Account, Amount]
    total: Amount


class ShareTable:
    """
    Share balance table mapping account -> shares, plus total supply.

    Notes:
    - Share balances are always non-negative.
    - Zero balances are omitted to keep the table sparse.
    """

    def __init__(self) -> None:
        self._balances: Dict[Account, Amount] = {}
        self._total: Amount = 0

    @property
    def total(self) -> Amount:
        return self._total

    def get(self, account: Account) -> Amount:
        """Get share balance for account. Returns 0 if not found."""
        return self._balances.get(account, 0)

    def mint(self, account: Account, amount: Amount) -> None:
        """Credit new shares to `account` and grow the supply."""
        if amount <= 0:
            raise ValueError(f"Mint amount must be positive: {amount}")
        self._balances[account] = self.get(account) + amount
        self._total += amount

    def burn(self, account: Account, amount: Amount) -> None:
        """Debit shares from `account` and shrink the supply."""
        if amount <= 0:
            raise ValueError(f"Burn amount must be positive: {amount}")
        current = self.get(account)
        if current < amount:
            raise ValueError(f"Insufficient share balance: {current} < {amount}")
        remaining = current - amount
        if remaining == 0:
            self._balances.pop(account, None)
        else:
            self._balances[account] = remaining
        self._total -= amount

    def snapshot(self) -> ShareSnapshot:
        """Capture the table so a failed operation can restore it."""
        return ShareSnapshot(balances=dict(self._balances), total=self._total)

    def restore(self, snap: ShareSnapshot) -> None:
        self._balances = dict(snap.balances)
        self._total = snap.total

    def get_all_balances(self) -> Dict[Account, Amount]:
        """Return all share balances."""
        return dict(self._balances)

    def verify_consistent(self) -> bool:
        """Every balance is positive and the balances sum to the total."""
        if any(amount <= 0 for amount in self._balances.values()):
            return False
        return sum(self._balances.values()) == self._total

    def __len__(self) -> int:
        return len(self._balances)

    def __repr__(self) -> str:
        return f"ShareTable({len(self._balances)} holders, total={self._total})"
