"""
PairSwap: a two-asset constant-product liquidity pool.
"""

from .config import PoolConfig, load_config
from .core.errors import (
    InsufficientLiquidity,
    InsufficientOutput,
    InsufficientShares,
    InvalidAmount,
    InvalidReserves,
    PoolError,
    ReentrantCall,
    TransferFailed,
)
from .core.pool import Direction, Pool
from .state.ledger import InMemoryLedger

__version__ = "0.1.0"

__all__ = [
    "PoolConfig",
    "load_config",
    "Pool",
    "Direction",
    "InMemoryLedger",
    "PoolError",
    "InvalidAmount",
    "InvalidReserves",
    "InsufficientLiquidity",
    "InsufficientShares",
    "InsufficientOutput",
    "ReentrantCall",
    "TransferFailed",
]
