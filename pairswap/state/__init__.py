"""
State management for PairSwap pools
"""

from .balances import BalanceTable
from .ledger import InMemoryLedger
from .shares import ShareTable

__all__ = [
    "BalanceTable",
    "InMemoryLedger",
    "ShareTable",
]
