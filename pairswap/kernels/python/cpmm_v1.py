"""
Constant-product pool kernel (v1 semantics).

Fixed 0.3% fee expressed in integer thousandths:
- `in_after_fee = amount_in * 997`
- `amount_out = floor(in_after_fee * reserve_out / (reserve_in * 1000 + in_after_fee))`

Share accounting:
- first mint: `isqrt(amount_a * amount_b)`
- later mints: `min(floor(amount_a * total / reserve_a), floor(amount_b * total / reserve_b))`
- burn: `floor(shares * reserve / total)` per asset

All products are formed on unbounded Python ints before dividing, so no
intermediate can overflow. Every division floors, which rounds in the pool's favour.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1000
PRICE_SCALE = 1000


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def isqrt(n: int) -> int:
    """floor(sqrt(n)) for a non-negative int (exact, no float)."""
    _require_int("n", n)
    if n < 0:
        raise ValueError("isqrt of a negative number")
    return math.isqrt(n)


def floor_mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator) over non-negative ints."""
    for name, v in (("a", a), ("b", b), ("denominator", denominator)):
        _require_int(name, v)
    if a < 0 or b < 0:
        raise ValueError("operands must be non-negative")
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return (a * b) // denominator


def min_amount(x: int, y: int) -> int:
    _require_int("x", x)
    _require_int("y", y)
    return x if x <= y else y


@dataclass(frozen=True)
class QuoteResult:
    amount_out: int
    in_after_fee: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


@dataclass(frozen=True)
class BurnResult:
    amount_a: int
    amount_b: int
    new_reserve_a: int
    new_reserve_b: int
    new_total_shares: int


def quote_exact_in(*, amount_in: int, reserve_in: int, reserve_out: int) -> QuoteResult:
    """
    Exact-in quote + post-trade reserves.

    Raises ValueError on a non-positive input or an empty reserve, and
    AssertionError if the post-trade product would shrink.
    """
    for name, v in (("amount_in", amount_in), ("reserve_in", reserve_in), ("reserve_out", reserve_out)):
        _require_int(name, v)
    if amount_in <= 0:
        raise ValueError("amount_in must be positive")
    if reserve_in < 0 or reserve_out < 0:
        raise ValueError("reserves must be non-negative")
    if reserve_in == 0 or reserve_out == 0:
        raise ValueError("cannot quote against an empty reserve")

    in_after_fee = amount_in * FEE_NUMERATOR
    denominator = reserve_in * FEE_DENOMINATOR + in_after_fee
    amount_out = floor_mul_div(in_after_fee, reserve_out, denominator)

    if amount_out >= reserve_out:
        raise AssertionError("amount_out would drain reserve_out")

    new_reserve_in = reserve_in + amount_in
    new_reserve_out = reserve_out - amount_out
    k_before = reserve_in * reserve_out
    k_after = new_reserve_in * new_reserve_out
    if k_after <= k_before:
        raise AssertionError(f"constant product did not grow: {k_after} <= {k_before}")

    return QuoteResult(
        amount_out=amount_out,
        in_after_fee=in_after_fee,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=k_before,
        k_after=k_after,
    )


def share_mint(*, amount_a: int, amount_b: int, reserve_a: int, reserve_b: int, total_shares: int) -> int:
    """
    Shares minted for a paired deposit. May return 0; callers decide how to reject.

    Raises ValueError on non-positive amounts or on a non-empty share supply
    backed by an empty reserve.
    """
    for name, v in (
        ("amount_a", amount_a),
        ("amount_b", amount_b),
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("total_shares", total_shares),
    ):
        _require_int(name, v)
    if amount_a <= 0 or amount_b <= 0:
        raise ValueError("deposit amounts must be positive")
    if reserve_a < 0 or reserve_b < 0 or total_shares < 0:
        raise ValueError("pool state must be non-negative")

    if total_shares == 0:
        return isqrt(amount_a * amount_b)

    if reserve_a == 0 or reserve_b == 0:
        raise ValueError("outstanding shares are backed by an empty reserve")

    # The scarcer side caps the mint; the surplus of the other asset stays in the pool.
    return min_amount(
        floor_mul_div(amount_a, total_shares, reserve_a),
        floor_mul_div(amount_b, total_shares, reserve_b),
    )


def share_burn(*, shares: int, reserve_a: int, reserve_b: int, total_shares: int) -> BurnResult:
    """Proportional payout for burning `shares` out of `total_shares`."""
    for name, v in (
        ("shares", shares),
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("total_shares", total_shares),
    ):
        _require_int(name, v)
    if shares <= 0:
        raise ValueError("shares must be positive")
    if total_shares <= 0:
        raise ValueError("total_shares must be positive")
    if shares > total_shares:
        raise ValueError(f"cannot burn more than the supply: {shares} > {total_shares}")
    if reserve_a < 0 or reserve_b < 0:
        raise ValueError("reserves must be non-negative")

    amount_a = floor_mul_div(shares, reserve_a, total_shares)
    amount_b = floor_mul_div(shares, reserve_b, total_shares)

    return BurnResult(
        amount_a=amount_a,
        amount_b=amount_b,
        new_reserve_a=reserve_a - amount_a,
        new_reserve_b=reserve_b - amount_b,
        new_total_shares=total_shares - shares,
    )


def spot_price(*, reserve_a: int, reserve_b: int) -> int:
    """floor(reserve_b * PRICE_SCALE / reserve_a), or 0 for a degenerate pool."""
    _require_int("reserve_a", reserve_a)
    _require_int("reserve_b", reserve_b)
    if reserve_a <= 0 or reserve_b <= 0:
        return 0
    return floor_mul_div(reserve_b, PRICE_SCALE, reserve_a)
