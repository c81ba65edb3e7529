"""
Constant-product pricing and share math for a two-asset pool.

This module is the validated public face of `kernels/python/cpmm_v1.py`:
inputs are checked here and kernel failures are reported as pool error kinds.

Algorithm Design:
- Type: Fixed-Point Integer Arithmetic / Floor Rounding
- Time Complexity: O(1) per call
- Invariant: after each swap, reserve_in' * reserve_out' > reserve_in * reserve_out
"""

from typing import Tuple

from ..kernels.python import cpmm_v1 as _kernel
from ..state.balances import Amount
from .errors import InsufficientLiquidity, InvalidAmount, InvalidReserves

FEE_NUMERATOR = _kernel.FEE_NUMERATOR
FEE_DENOMINATOR = _kernel.FEE_DENOMINATOR
PRICE_SCALE = _kernel.PRICE_SCALE


def require_amount(name: str, value: object) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidAmount(f"{name} must be an int, got {type(value).__name__}")
    if value <= 0:
        raise InvalidAmount(f"{name} must be positive: {value}")
    return value


def _require_reserve(name: str, value: object) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidReserves(f"{name} must be an int, got {type(value).__name__}")
    if value <= 0:
        raise InvalidReserves(f"{name} must be positive: {value}")
    return value


def quote(amount_in: Amount, reserve_in: Amount, reserve_out: Amount) -> Amount:
    """
    Output amount for an exact-in trade against the given reserves.

    Formula:
        in_after_fee = amount_in * 997
        amount_out = floor(in_after_fee * reserve_out / (reserve_in * 1000 + in_after_fee))

    Args:
        amount_in: Exact input amount
        reserve_in: Reserve of the input asset
        reserve_out: Reserve of the output asset

    Returns:
        Amount of the output asset the trader receives

    Raises:
        InvalidAmount: If amount_in is not a positive int
        InvalidReserves: If either reserve is zero
    """
    require_amount("amount_in", amount_in)
    _require_reserve("reserve_in", reserve_in)
    _require_reserve("reserve_out", reserve_out)
    return _kernel.quote_exact_in(
        amount_in=amount_in,
        reserve_in=reserve_in,
        reserve_out=reserve_out,
    ).amount_out


def quote_with_reserves(
    amount_in: Amount,
    reserve_in: Amount,
    reserve_out: Amount,
) -> Tuple[Amount, Tuple[Amount, Amount]]:
    """Like `quote`, also returning the post-trade (reserve_in, reserve_out)."""
    require_amount("amount_in", amount_in)
    _require_reserve("reserve_in", reserve_in)
    _require_reserve("reserve_out", reserve_out)
    res = _kernel.quote_exact_in(amount_in=amount_in, reserve_in=reserve_in, reserve_out=reserve_out)
    return res.amount_out, (res.new_reserve_in, res.new_reserve_out)


def compute_share_mint(
    amount_a: Amount,
    amount_b: Amount,
    reserve_a: Amount,
    reserve_b: Amount,
    total_shares: Amount,
) -> Amount:
    """
    Compute shares to mint for a paired deposit.

    For the first deposit (total_shares == 0):
        shares = floor(sqrt(amount_a * amount_b))

    For subsequent deposits:
        shares = min(floor(amount_a * total_shares / reserve_a),
                     floor(amount_b * total_shares / reserve_b))

    An off-ratio deposit is not rejected: it mints by the scarcer side and the
    surplus of the other asset is absorbed by the pool, accruing to existing holders.

    Raises:
        InvalidAmount: If either amount is not a positive int
        InvalidReserves: If shares are outstanding but a reserve is empty
        InsufficientLiquidity: If the computed mint is zero
    """
    require_amount("amount_a", amount_a)
    require_amount("amount_b", amount_b)
    if total_shares > 0 and (reserve_a <= 0 or reserve_b <= 0):
        raise InvalidReserves(
            f"{total_shares} shares outstanding against reserves ({reserve_a}, {reserve_b})"
        )

    minted = _kernel.share_mint(
        amount_a=amount_a,
        amount_b=amount_b,
        reserve_a=reserve_a,
        reserve_b=reserve_b,
        total_shares=total_shares,
    )
    if minted <= 0:
        raise InsufficientLiquidity(f"deposit ({amount_a}, {amount_b}) would mint no shares")
    return minted


def compute_share_burn(
    shares: Amount,
    reserve_a: Amount,
    reserve_b: Amount,
    total_shares: Amount,
) -> Tuple[Amount, Amount]:
    """
    Compute the asset amounts paid out for burning `shares`.

    Formula:
        amount_a = floor(shares * reserve_a / total_shares)
        amount_b = floor(shares * reserve_b / total_shares)

    Raises:
        InvalidAmount: If shares is not a positive int
        InsufficientLiquidity: If both payouts round down to zero
    """
    require_amount("shares", shares)
    if shares > total_shares:
        raise InvalidAmount(f"cannot burn more than the supply: {shares} > {total_shares}")

    res = _kernel.share_burn(
        shares=shares,
        reserve_a=reserve_a,
        reserve_b=reserve_b,
        total_shares=total_shares,
    )
    if res.amount_a == 0 and res.amount_b == 0:
        raise InsufficientLiquidity(f"burning {shares} shares would pay out nothing")
    return res.amount_a, res.amount_b


def spot_price(reserve_a: Amount, reserve_b: Amount) -> int:
    """Price of asset A in B, scaled by 1000; 0 when either reserve is empty."""
    return _kernel.spot_price(reserve_a=reserve_a, reserve_b=reserve_b)
