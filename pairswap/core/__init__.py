"""
Core pool algorithms
"""

from .cpmm import (
    quote,
    compute_share_mint,
    compute_share_burn,
    spot_price,
)
from .events import DepositRecord, WithdrawalRecord, SwapRecord
from .ledger import Ledger, LedgerError
from .pool import Direction, Pool, PoolState

__all__ = [
    "quote",
    "compute_share_mint",
    "compute_share_burn",
    "spot_price",
    "DepositRecord",
    "WithdrawalRecord",
    "SwapRecord",
    "Ledger",
    "LedgerError",
    "Direction",
    "Pool",
    "PoolState",
]
