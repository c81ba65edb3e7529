from __future__ import annotations

import importlib.util

from pairswap.core.errors import InsufficientLiquidity, PoolError
from pairswap.core.pool import Direction, Pool
from pairswap.state.balances import BalanceTable
from pairswap.state.ledger import InMemoryLedger

ACCOUNTS = ("alice", "bob", "carol")
FUNDING = 10**15


def _new_pool() -> tuple:
    balances = BalanceTable()
    ledger_a = InMemoryLedger("TKA", balances)
    ledger_b = InMemoryLedger("TKB", balances)
    pool = Pool("TKA", "TKB", ledger_a, ledger_b)
    for account in ACCOUNTS:
        for ledger in (ledger_a, ledger_b):
            ledger.mint(account, FUNDING)
            ledger.approve(account, pool.pool_account, FUNDING * 10)
    return pool, ledger_a, ledger_b


def _assert_invariants(pool: Pool, ledger_a: InMemoryLedger, ledger_b: InMemoryLedger) -> None:
    reserve_a, reserve_b = pool.get_reserves()
    assert sum(pool.share_balances().values()) == pool.total_shares
    if pool.total_shares == 0:
        assert (reserve_a, reserve_b) == (0, 0)
    else:
        assert reserve_a > 0 and reserve_b > 0
    assert reserve_a == ledger_a.balance_of(pool.pool_account)
    assert reserve_b == ledger_b.balance_of(pool.pool_account)
    # Nothing is created or destroyed by the pool.
    assert ledger_a.total_supply() == FUNDING * len(ACCOUNTS)
    assert ledger_b.total_supply() == FUNDING * len(ACCOUNTS)


def test_invariants_hold_for_a_fixed_sequence() -> None:
    pool, ledger_a, ledger_b = _new_pool()
    pool.deposit("alice", 1000, 4000)
    pool.swap("bob", Direction.A_TO_B, 250)
    pool.deposit("carol", 37, 91)
    pool.swap("bob", Direction.B_TO_A, 999)
    pool.withdraw("alice", 1000)
    _assert_invariants(pool, ledger_a, ledger_b)
    pool.withdraw("carol", pool.shares_of("carol"))
    pool.withdraw("alice", pool.shares_of("alice"))
    assert pool.total_shares == 0
    _assert_invariants(pool, ledger_a, ledger_b)


if importlib.util.find_spec("hypothesis") is not None:
    from hypothesis import given, settings
    from hypothesis import strategies as st

    amounts = st.integers(min_value=1, max_value=10**12)
    accounts = st.sampled_from(ACCOUNTS)

    ops = st.one_of(
        st.tuples(st.just("deposit"), accounts, amounts, amounts),
        st.tuples(st.just("withdraw"), accounts, st.integers(min_value=1, max_value=100)),
        st.tuples(st.just("swap"), accounts, st.sampled_from(list(Direction)), amounts),
    )

    @settings(max_examples=150, deadline=None)
    @given(sequence=st.lists(ops, min_size=1, max_size=30))
    def test_random_operation_sequences_preserve_invariants(sequence) -> None:
        pool, ledger_a, ledger_b = _new_pool()
        for op in sequence:
            k_before = pool.reserve_a * pool.reserve_b
            before = (pool.get_reserves(), pool.total_shares, pool.share_balances())
            try:
                if op[0] == "deposit":
                    _, who, amount_a, amount_b = op
                    pool.deposit(who, amount_a, amount_b)
                elif op[0] == "withdraw":
                    _, who, pct = op
                    held = pool.shares_of(who)
                    pool.withdraw(who, max(1, held * pct // 100))
                else:
                    _, who, direction, amount_in = op
                    pool.swap(who, direction, amount_in)
                    assert pool.reserve_a * pool.reserve_b >= k_before
            except PoolError:
                assert (pool.get_reserves(), pool.total_shares, pool.share_balances()) == before
            _assert_invariants(pool, ledger_a, ledger_b)

    @settings(max_examples=200, deadline=None)
    @given(amount_a=amounts, amount_b=amounts)
    def test_sole_depositor_round_trip_is_exact(amount_a: int, amount_b: int) -> None:
        pool, _, _ = _new_pool()
        minted = pool.deposit("alice", amount_a, amount_b)
        assert pool.withdraw("alice", minted) == (amount_a, amount_b)
        assert pool.get_reserves() == (0, 0)

    @settings(max_examples=200, deadline=None)
    @given(
        seed_a=amounts,
        seed_b=amounts,
        trade=st.integers(min_value=0, max_value=10**12),
        amount_a=amounts,
        amount_b=amounts,
    )
    def test_deposit_then_withdraw_never_returns_more(
        seed_a: int, seed_b: int, trade: int, amount_a: int, amount_b: int
    ) -> None:
        pool, _, _ = _new_pool()
        pool.deposit("alice", seed_a, seed_b)
        if trade:
            pool.swap("carol", Direction.A_TO_B, trade)
        try:
            minted = pool.deposit("bob", amount_a, amount_b)
            out_a, out_b = pool.withdraw("bob", minted)
        except InsufficientLiquidity:
            return
        assert out_a <= amount_a
        assert out_b <= amount_b
