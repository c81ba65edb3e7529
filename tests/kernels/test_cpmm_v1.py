# [TESTER] v1

from __future__ import annotations

import pytest

from pairswap.kernels.python.cpmm_v1 import (
    floor_mul_div,
    isqrt,
    min_amount,
    quote_exact_in,
    share_burn,
    share_mint,
    spot_price,
)


def test_isqrt_is_exact_beyond_float_precision() -> None:
    # float sqrt would be off by one here.
    n = (1 << 70) + 12345
    assert isqrt(n * n) == n
    assert isqrt(n * n - 1) == n - 1


def test_isqrt_rejects_negative_and_non_int() -> None:
    with pytest.raises(ValueError):
        isqrt(-1)
    with pytest.raises(TypeError):
        isqrt(4.0)  # type: ignore[arg-type]


def test_floor_mul_div_forms_full_product_before_dividing() -> None:
    big = 2**200
    assert floor_mul_div(big, big, big) == big
    assert floor_mul_div(7, 3, 2) == 10
    with pytest.raises(ValueError):
        floor_mul_div(1, 1, 0)


def test_min_amount() -> None:
    assert min_amount(3, 5) == 3
    assert min_amount(5, 3) == 3
    assert min_amount(4, 4) == 4


def test_quote_exact_in_matches_reference_values() -> None:
    res = quote_exact_in(amount_in=100, reserve_in=1000, reserve_out=1000)
    assert res.in_after_fee == 99_700
    assert res.amount_out == 99_700 * 1000 // 1_099_700 == 90
    assert (res.new_reserve_in, res.new_reserve_out) == (1100, 910)
    assert res.k_after > res.k_before


def test_quote_exact_in_can_round_output_to_zero() -> None:
    res = quote_exact_in(amount_in=1, reserve_in=1000, reserve_out=1000)
    assert res.amount_out == 0
    assert res.k_after > res.k_before


def test_quote_exact_in_rejects_empty_reserve() -> None:
    with pytest.raises(ValueError, match="empty reserve"):
        quote_exact_in(amount_in=1, reserve_in=0, reserve_out=10)


def test_share_mint_may_return_zero_for_dust() -> None:
    assert share_mint(amount_a=1, amount_b=1, reserve_a=1000, reserve_b=1000, total_shares=10) == 0


def test_share_mint_rejects_supply_backed_by_empty_reserve() -> None:
    with pytest.raises(ValueError, match="empty reserve"):
        share_mint(amount_a=1, amount_b=1, reserve_a=0, reserve_b=10, total_shares=10)


def test_share_burn_full_supply_empties_the_pool() -> None:
    res = share_burn(shares=77, reserve_a=1234, reserve_b=5678, total_shares=77)
    assert (res.amount_a, res.amount_b) == (1234, 5678)
    assert (res.new_reserve_a, res.new_reserve_b, res.new_total_shares) == (0, 0, 0)


def test_share_burn_rejects_more_than_supply() -> None:
    with pytest.raises(ValueError, match="more than the supply"):
        share_burn(shares=11, reserve_a=10, reserve_b=10, total_shares=10)


def test_spot_price_is_zero_for_degenerate_pool() -> None:
    assert spot_price(reserve_a=0, reserve_b=0) == 0
    assert spot_price(reserve_a=0, reserve_b=5) == 0
    assert spot_price(reserve_a=100, reserve_b=200) == 2000
    assert spot_price(reserve_a=3, reserve_b=1) == 333
