"""
Two-asset constant-product pool.

The pool owns reserve counters and the share ledger; custody of the assets
themselves lives on one external ledger per asset, under `pool_account`.

Every mutating operation follows the same shape:
- validate and compute the result from the stored reserves (no side effects yet),
- commit share bookkeeping that must precede outward movements,
- move assets through the ledgers, journaling each completed movement,
- reconcile both reserves from `balance_of(pool_account)`,
- append the completion record.

A failure at any step undoes the journaled movements in reverse order and
restores the share table, so the caller observes either the whole operation
or none of it.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterator, List, NoReturn, Optional, Tuple, Union

import structlog

from ..config import PoolConfig
from ..state.balances import Account, Amount, AssetId
from ..state.shares import ShareSnapshot, ShareTable
from .cpmm import compute_share_burn, compute_share_mint, require_amount, spot_price
from .cpmm import quote as _quote
from .errors import (
    InsufficientOutput,
    InsufficientShares,
    InvalidAmount,
    PoolError,
    ReentrantCall,
    TransferFailed,
)
from .events import DepositRecord, PoolRecord, SwapRecord, WithdrawalRecord
from .ledger import Ledger, LedgerError

logger = structlog.get_logger()


class Direction(Enum):
    """Swap direction."""

    A_TO_B = "a_to_b"
    B_TO_A = "b_to_a"


@dataclass(frozen=True)
class PoolState:
    reserve_a: Amount
    reserve_b: Amount
    total_shares: Amount
    shares: Dict[Account, Amount]


class _Movements:
    """Journal of the ledger movements completed by one operation."""

    def __init__(self, pool_account: Account) -> None:
        self._pool_account = pool_account
        self._undo: List[Tuple[str, str, Callable[[], bool]]] = []
        # A payout that could not be clawed back stays with its recipient.
        self.payout_stranded = False

    def pull(self, ledger: Ledger, asset: AssetId, owner: Account, amount: Amount) -> None:
        """Move `amount` from `owner` into the pool."""
        if amount == 0:
            return
        label = f"pull {amount} {asset} from {owner}"
        _checked(label, lambda: ledger.transfer_from(self._pool_account, owner, self._pool_account, amount))
        self._undo.append(
            ("pull", f"refund {amount} {asset} to {owner}", lambda: ledger.transfer(self._pool_account, owner, amount))
        )

    def push(self, ledger: Ledger, asset: AssetId, to: Account, amount: Amount) -> None:
        """Move `amount` out of the pool to `to`."""
        if amount == 0:
            return
        label = f"push {amount} {asset} to {to}"
        _checked(label, lambda: ledger.transfer(self._pool_account, to, amount))
        # Clawback relies on `to` having approved the pool on this ledger.
        self._undo.append(
            (
                "push",
                f"claw back {amount} {asset} from {to}",
                lambda: ledger.transfer_from(self._pool_account, to, self._pool_account, amount),
            )
        )

    def rollback(self) -> List[str]:
        """Undo completed movements newest-first; return the ones that could not be undone."""
        unrecovered: List[str] = []
        while self._undo:
            kind, label, undo = self._undo.pop()
            try:
                ok = undo() is True
            except Exception as exc:
                logger.warning("pool_compensation_raised", movement=label, error=str(exc))
                ok = False
            if not ok:
                unrecovered.append(label)
                if kind == "push":
                    self.payout_stranded = True
        return unrecovered


def _checked(label: str, call: Callable[[], bool]) -> None:
    try:
        ok = call()
    except LedgerError as exc:
        raise TransferFailed(f"{label}: {exc}") from exc
    if ok is not True:
        raise TransferFailed(f"{label}: rejected by ledger")


class Pool:
    """
    Pool State Manager and Swap Engine for one asset pair.

    Thread-safety: deposit, withdraw and swap hold the pool's lock for their
    whole duration. A mutating call that re-enters the pool from inside a
    ledger callback is rejected with `ReentrantCall`.
    """

    def __init__(
        self,
        asset_a: AssetId,
        asset_b: AssetId,
        ledger_a: Ledger,
        ledger_b: Ledger,
        config: Optional[PoolConfig] = None,
    ) -> None:
        if not isinstance(asset_a, str) or not asset_a or not isinstance(asset_b, str) or not asset_b:
            raise ValueError("asset identifiers must be non-empty strings")
        if asset_a == asset_b:
            raise ValueError(f"pool assets must be distinct: {asset_a!r}")
        if ledger_a is ledger_b:
            raise ValueError("each asset needs its own ledger")

        self._config = config or PoolConfig()
        self.asset_a = asset_a
        self.asset_b = asset_b
        self.pool_account: Account = self._config.pool_account
        self._ledger_a = ledger_a
        self._ledger_b = ledger_b

        self._reserve_a: Amount = 0
        self._reserve_b: Amount = 0
        self._shares = ShareTable()
        self._records: List[PoolRecord] = []

        self._lock = threading.RLock()
        self._active: Optional[str] = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def label(self) -> str:
        return f"{self.asset_a}/{self.asset_b}"

    @property
    def reserve_a(self) -> Amount:
        return self._reserve_a

    @property
    def reserve_b(self) -> Amount:
        return self._reserve_b

    @property
    def total_shares(self) -> Amount:
        return self._shares.total

    @property
    def records(self) -> Tuple[PoolRecord, ...]:
        """Emitted records, oldest first."""
        with self._lock:
            return tuple(self._records)

    def shares_of(self, account: Account) -> Amount:
        return self._shares.get(account)

    def share_balances(self) -> Dict[Account, Amount]:
        """Copy of all non-zero share balances."""
        with self._lock:
            return self._shares.get_all_balances()

    def get_reserves(self) -> Tuple[Amount, Amount]:
        with self._lock:
            return self._reserve_a, self._reserve_b

    def get_state(self) -> PoolState:
        """Reserves, total and share balances read under one lock acquisition."""
        with self._lock:
            return PoolState(
                reserve_a=self._reserve_a,
                reserve_b=self._reserve_b,
                total_shares=self._shares.total,
                shares=self._shares.get_all_balances(),
            )

    def get_price(self) -> int:
        """Price of A in B scaled by 1000; 0 for an empty pool."""
        reserve_a, reserve_b = self.get_reserves()
        return spot_price(reserve_a, reserve_b)

    quote = staticmethod(_quote)
    get_amount_out = staticmethod(_quote)

    # ------------------------------------------------------------------
    # Mutating operations
    # ------------------------------------------------------------------

    def deposit(self, caller: Account, amount_a: Amount, amount_b: Amount) -> Amount:
        """
        Deposit a pair of amounts and mint ownership shares.

        Args:
            caller: Depositing account; must have approved the pool on both ledgers
            amount_a: Amount of asset A (> 0)
            amount_b: Amount of asset B (> 0)

        Returns:
            Shares minted to the caller

        Raises:
            InvalidAmount: If either amount is not positive
            InsufficientLiquidity: If the deposit would mint zero shares
            TransferFailed: If either ledger rejects the movement
        """
        with self._operation("deposit", caller):
            minted = compute_share_mint(
                amount_a, amount_b, self._reserve_a, self._reserve_b, self._shares.total
            )

            moves = _Movements(self.pool_account)
            try:
                moves.pull(self._ledger_a, self.asset_a, caller, amount_a)
                moves.pull(self._ledger_b, self.asset_b, caller, amount_b)
            except Exception as exc:
                self._abort("deposit", moves, exc)

            self._shares.mint(caller, minted)
            self._reconcile(self._reserve_a + amount_a, self._reserve_b + amount_b)
            self._emit(DepositRecord(actor=caller, amount_a=amount_a, amount_b=amount_b, shares_minted=minted))
            logger.info(
                "pool_deposit",
                pool=self.label,
                caller=caller,
                amount_a=amount_a,
                amount_b=amount_b,
                shares_minted=minted,
                total_shares=self._shares.total,
            )
            return minted

    def withdraw(self, caller: Account, share_amount: Amount) -> Tuple[Amount, Amount]:
        """
        Burn shares for a proportional cut of the current reserves.

        Returns:
            (amount_a, amount_b) paid out to the caller

        Raises:
            InvalidAmount: If share_amount is not positive
            InsufficientShares: If the caller holds fewer than share_amount shares
            InsufficientLiquidity: If the payout rounds to zero on both sides
            TransferFailed: If either ledger rejects the movement
        """
        with self._operation("withdraw", caller):
            require_amount("share_amount", share_amount)
            held = self._shares.get(caller)
            if held < share_amount:
                raise InsufficientShares(caller, share_amount, held)

            amount_a, amount_b = compute_share_burn(
                share_amount, self._reserve_a, self._reserve_b, self._shares.total
            )

            # Shares are burned before anything leaves the pool.
            before = self._shares.snapshot()
            self._shares.burn(caller, share_amount)

            moves = _Movements(self.pool_account)
            try:
                moves.push(self._ledger_a, self.asset_a, caller, amount_a)
                moves.push(self._ledger_b, self.asset_b, caller, amount_b)
            except Exception as exc:
                self._abort("withdraw", moves, exc, shares=before)

            self._reconcile(self._reserve_a - amount_a, self._reserve_b - amount_b)
            self._emit(
                WithdrawalRecord(actor=caller, amount_a=amount_a, amount_b=amount_b, shares_burned=share_amount)
            )
            logger.info(
                "pool_withdraw",
                pool=self.label,
                caller=caller,
                amount_a=amount_a,
                amount_b=amount_b,
                shares_burned=share_amount,
                total_shares=self._shares.total,
            )
            return amount_a, amount_b

    def swap(
        self,
        caller: Account,
        direction: Union[Direction, str],
        amount_in: Amount,
        min_amount_out: Amount = 0,
    ) -> Amount:
        """
        Trade `amount_in` of one asset for the other along the constant-product curve.

        Args:
            caller: Trading account; must have approved the pool on the input ledger
            direction: Direction.A_TO_B or Direction.B_TO_A (or their string values)
            amount_in: Exact input amount (> 0)
            min_amount_out: Reject the trade if it would return less than this

        Returns:
            Amount of the output asset sent to the caller

        Raises:
            InvalidAmount: If amount_in is not positive or min_amount_out is negative
            InvalidReserves: If the pool is empty
            InsufficientOutput: If the output is below min_amount_out
            TransferFailed: If either ledger rejects the movement
        """
        direction = Direction(direction)
        with self._operation("swap", caller):
            require_amount("amount_in", amount_in)
            if not isinstance(min_amount_out, int) or isinstance(min_amount_out, bool) or min_amount_out < 0:
                raise InvalidAmount(f"min_amount_out must be a non-negative int: {min_amount_out!r}")

            if direction is Direction.A_TO_B:
                ledger_in, ledger_out = self._ledger_a, self._ledger_b
                asset_in, asset_out = self.asset_a, self.asset_b
                reserve_in, reserve_out = self._reserve_a, self._reserve_b
            else:
                ledger_in, ledger_out = self._ledger_b, self._ledger_a
                asset_in, asset_out = self.asset_b, self.asset_a
                reserve_in, reserve_out = self._reserve_b, self._reserve_a

            amount_out = _quote(amount_in, reserve_in, reserve_out)
            if amount_out < min_amount_out:
                raise InsufficientOutput(amount_out, min_amount_out)

            moves = _Movements(self.pool_account)
            try:
                moves.pull(ledger_in, asset_in, caller, amount_in)
                moves.push(ledger_out, asset_out, caller, amount_out)
            except Exception as exc:
                self._abort("swap", moves, exc)

            if direction is Direction.A_TO_B:
                self._reconcile(reserve_in + amount_in, reserve_out - amount_out)
            else:
                self._reconcile(reserve_out - amount_out, reserve_in + amount_in)
            self._emit(
                SwapRecord(
                    actor=caller,
                    asset_in=asset_in,
                    asset_out=asset_out,
                    amount_in=amount_in,
                    amount_out=amount_out,
                )
            )
            logger.info(
                "pool_swap",
                pool=self.label,
                caller=caller,
                asset_in=asset_in,
                amount_in=amount_in,
                asset_out=asset_out,
                amount_out=amount_out,
            )
            return amount_out

    def swap_a_for_b(self, caller: Account, amount_in: Amount, min_amount_out: Amount = 0) -> Amount:
        return self.swap(caller, Direction.A_TO_B, amount_in, min_amount_out)

    def swap_b_for_a(self, caller: Account, amount_in: Amount, min_amount_out: Amount = 0) -> Amount:
        return self.swap(caller, Direction.B_TO_A, amount_in, min_amount_out)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _operation(self, name: str, caller: Account) -> Iterator[None]:
        with self._lock:
            if self._active is not None:
                logger.warning("pool_reentrant_call", pool=self.label, op=name, active=self._active, caller=caller)
                raise ReentrantCall(f"{name} called while {self._active} is in progress")
            self._active = name
            try:
                yield
            except PoolError as exc:
                logger.debug("pool_operation_rejected", pool=self.label, op=name, caller=caller, error=exc.code, detail=str(exc))
                raise
            finally:
                self._active = None

    def _abort(
        self,
        op: str,
        moves: _Movements,
        exc: Exception,
        shares: Optional[ShareSnapshot] = None,
    ) -> NoReturn:
        """
        Undo a partially applied operation and re-raise its failure.

        If some movement cannot be undone the prior state is out of reach. The
        reserves are then re-read from the ledgers, and a share debit whose
        payout stayed with the caller is kept.
        """
        unrecovered = moves.rollback()
        if shares is not None and not moves.payout_stranded:
            self._shares.restore(shares)
        if isinstance(exc, TransferFailed):
            logger.warning("pool_transfer_failed", pool=self.label, op=op, error=str(exc))
        else:
            logger.warning("pool_operation_aborted", pool=self.label, op=op, error=repr(exc))
        if unrecovered:
            self._reconcile(self._reserve_a, self._reserve_b)
            logger.error(
                "pool_rollback_incomplete",
                pool=self.label,
                op=op,
                unrecovered=unrecovered,
                shares_debit_kept=shares is not None and moves.payout_stranded,
            )
            if isinstance(exc, TransferFailed):
                raise TransferFailed(str(exc), unrecovered=unrecovered) from exc
        raise exc

    def _reconcile(self, expected_a: Amount, expected_b: Amount) -> None:
        """Adopt the ledgers' balances of the pool account as the reserves."""
        actual_a = self._ledger_a.balance_of(self.pool_account)
        actual_b = self._ledger_b.balance_of(self.pool_account)
        if actual_a != expected_a or actual_b != expected_b:
            logger.debug(
                "pool_reserves_reconciled",
                pool=self.label,
                drift_a=actual_a - expected_a,
                drift_b=actual_b - expected_b,
            )
        self._reserve_a = actual_a
        self._reserve_b = actual_b

    def _emit(self, record: PoolRecord) -> None:
        self._records.append(record)

    def __repr__(self) -> str:
        return (
            f"Pool({self.label}, reserves=({self._reserve_a}, {self._reserve_b}), "
            f"total_shares={self._shares.total})"
        )
