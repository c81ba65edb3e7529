"""
Records emitted by completed pool operations.

The records form the pool's audit trail. A record is appended only after the
operation that produced it has fully committed.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Union

from ..state.balances import Account, Amount, AssetId


@dataclass(frozen=True)
class DepositRecord:
    """
    Paired deposit.

    Attributes:
        actor: Depositing account
        amount_a: Amount of asset A moved into the pool
        amount_b: Amount of asset B moved into the pool
        shares_minted: Shares credited to the actor
    """

    actor: Account
    amount_a: Amount
    amount_b: Amount
    shares_minted: Amount

    kind = "deposit"
    event_name = "LiquidityAdded"

    @property
    def share_delta(self) -> int:
        return self.shares_minted

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "event": self.event_name, "share_delta": self.share_delta, **asdict(self)}


@dataclass(frozen=True)
class WithdrawalRecord:
    """
    Share redemption.

    Attributes:
        actor: Redeeming account
        amount_a: Amount of asset A paid out
        amount_b: Amount of asset B paid out
        shares_burned: Shares debited from the actor
    """

    actor: Account
    amount_a: Amount
    amount_b: Amount
    shares_burned: Amount

    kind = "withdrawal"
    event_name = "LiquidityRemoved"

    @property
    def share_delta(self) -> int:
        return -self.shares_burned

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "event": self.event_name, "share_delta": self.share_delta, **asdict(self)}


@dataclass(frozen=True)
class SwapRecord:
    actor: Account
    asset_in: AssetId
    asset_out: AssetId
    amount_in: Amount
    amount_out: Amount

    kind = "swap"
    event_name = "Swap"

    @property
    def share_delta(self) -> int:
        return 0

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "event": self.event_name, "share_delta": self.share_delta, **asdict(self)}


PoolRecord = Union[DepositRecord, WithdrawalRecord, SwapRecord]
