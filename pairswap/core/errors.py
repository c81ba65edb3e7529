"""Exception types raised by pool operations.

Every failure is a rejected operation: by the time one of these reaches the
caller, the pool's reserves and share ledger are exactly as they were before
the call. The one exception is a `TransferFailed` whose `unrecovered` is
non-empty: an undo step failed, the reserves were re-read from the ledgers,
and a burned share debit stays burned if its payout could not be recovered.
"""

from __future__ import annotations

from typing import Sequence


class PoolError(Exception):
    """Base class; ``code`` is a stable identifier for the error kind."""

    code = "PoolError"


class InvalidAmount(PoolError):
    """Zero, negative or non-integer quantity."""

    code = "InvalidAmount"


class InvalidReserves(PoolError):
    """Pricing or minting attempted against an empty reserve."""

    code = "InvalidReserves"


class InsufficientLiquidity(PoolError):
    """The operation would mint (or pay out) nothing."""

    code = "InsufficientLiquidity"


class InsufficientShares(PoolError):
    """Withdrawal exceeds the caller's share balance."""

    code = "InsufficientShares"

    def __init__(self, account: str, requested: int, available: int) -> None:
        self.account = account
        self.requested = requested
        self.available = available
        super().__init__(f"{account} holds {available} shares, cannot burn {requested}")


class InsufficientOutput(PoolError):
    """Swap output below the caller's minimum."""

    code = "InsufficientOutput"

    def __init__(self, amount_out: int, min_amount_out: int) -> None:
        self.amount_out = amount_out
        self.min_amount_out = min_amount_out
        super().__init__(f"amount_out {amount_out} < min_amount_out {min_amount_out}")


class ReentrantCall(PoolError):
    """A mutating call re-entered the pool while another one was in progress."""

    code = "ReentrantCall"


class TransferFailed(PoolError):
    """The ledger rejected an asset movement."""

    code = "TransferFailed"

    def __init__(self, message: str, *, unrecovered: Sequence[str] = ()) -> None:
        self.unrecovered = tuple(unrecovered)
        if self.unrecovered:
            message = f"{message} (rollback incomplete: {', '.join(self.unrecovered)})"
        super().__init__(message)
