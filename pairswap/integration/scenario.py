"""
Scenario runner: drive a pool over in-memory ledgers from a declarative document.

Document shape (YAML or JSON):

    assets: {a: TKA, b: TKB}
    steps:
      - {op: mint, account: alice, asset: a, amount: 1000}
      - {op: approve, account: alice, asset: a, amount: 1000}
      - {op: deposit, account: alice, amount_a: 100, amount_b: 100}
      - {op: swap, account: bob, direction: a_to_b, amount_in: 10}
      - {op: withdraw, account: alice, shares: 50}
      - {op: quote, amount_in: 100, reserve_in: 1000, reserve_out: 1000}
      - {op: reserves}
      - {op: price}

A step may carry `expect_error: <code>` to mark a rejection as the expected outcome.
Pool errors are recorded per step and do not stop the run; malformed documents
raise `ScenarioError` before any step executes.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import structlog

from ..config import PoolConfig
from ..core.errors import PoolError
from ..core.pool import Direction, Pool
from ..state.balances import BalanceTable
from ..state.ledger import InMemoryLedger
from .pool_snapshot import snapshot_pool

logger = structlog.get_logger()


class ScenarioError(ValueError):
    """Malformed scenario document."""


_STEP_FIELDS: Dict[str, Dict[str, str]] = {
    "mint": {"account": "str", "asset": "side", "amount": "amount"},
    "approve": {"account": "str", "asset": "side", "amount": "amount"},
    "deposit": {"account": "str", "amount_a": "int", "amount_b": "int"},
    "withdraw": {"account": "str", "shares": "int"},
    "swap": {"account": "str", "direction": "direction", "amount_in": "int"},
    "quote": {"amount_in": "int", "reserve_in": "int", "reserve_out": "int"},
    "reserves": {},
    "price": {},
    "balance": {"account": "str", "asset": "side"},
}
_OPTIONAL_FIELDS: Dict[str, Dict[str, str]] = {
    "swap": {"min_amount_out": "int"},
}
_COMMON_FIELDS = ("op", "expect_error")


def _require_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise ScenarioError(f"{name} must be a non-empty string")
    return value


def _require_int(value: Any, *, name: str, non_negative: bool = False) -> int:
    # Sign checks on pool inputs belong to the pool.
    if not isinstance(value, int) or isinstance(value, bool):
        raise ScenarioError(f"{name} must be an int")
    if non_negative and value < 0:
        raise ScenarioError(f"{name} must be non-negative")
    return int(value)


def _parse_field(kind: str, value: Any, *, name: str) -> Any:
    if kind == "str":
        return _require_str(value, name=name)
    if kind == "int":
        return _require_int(value, name=name)
    if kind == "amount":
        return _require_int(value, name=name, non_negative=True)
    if kind == "side":
        if value not in ("a", "b"):
            raise ScenarioError(f"{name} must be 'a' or 'b'")
        return value
    if kind == "direction":
        try:
            return Direction(value)
        except ValueError as exc:
            raise ScenarioError(f"{name} must be one of {[d.value for d in Direction]}") from exc
    raise AssertionError(f"unknown field kind {kind!r}")


@dataclass(frozen=True)
class Step:
    index: int
    op: str
    args: Dict[str, Any]
    expect_error: Optional[str] = None


@dataclass(frozen=True)
class Scenario:
    asset_a: str
    asset_b: str
    steps: List[Step] = field(default_factory=list)


def parse_scenario(doc: Any) -> Scenario:
    """
    Validate a scenario document.

    Raises:
        ScenarioError: If the document structure is invalid
    """
    if not isinstance(doc, Mapping):
        raise ScenarioError("scenario must be a mapping")
    assets = doc.get("assets", {"a": "A", "b": "B"})
    if not isinstance(assets, Mapping):
        raise ScenarioError("assets must be a mapping with keys 'a' and 'b'")
    asset_a = _require_str(assets.get("a"), name="assets.a")
    asset_b = _require_str(assets.get("b"), name="assets.b")
    if asset_a == asset_b:
        raise ScenarioError("assets.a and assets.b must differ")

    raw_steps = doc.get("steps", [])
    if not isinstance(raw_steps, list):
        raise ScenarioError("steps must be a list")

    steps: List[Step] = []
    for i, raw in enumerate(raw_steps):
        where = f"steps[{i}]"
        if not isinstance(raw, Mapping):
            raise ScenarioError(f"{where} must be a mapping")
        op = raw.get("op")
        if op not in _STEP_FIELDS:
            raise ScenarioError(f"{where}.op must be one of {sorted(_STEP_FIELDS)}, got {op!r}")
        required = _STEP_FIELDS[op]
        optional = _OPTIONAL_FIELDS.get(op, {})
        unknown = sorted(str(k) for k in raw if k not in required and k not in optional and k not in _COMMON_FIELDS)
        if unknown:
            raise ScenarioError(f"{where} has unknown fields: {', '.join(unknown)}")

        args: Dict[str, Any] = {}
        for fname, kind in required.items():
            if fname not in raw:
                raise ScenarioError(f"{where}.{fname} is required for {op}")
            args[fname] = _parse_field(kind, raw[fname], name=f"{where}.{fname}")
        for fname, kind in optional.items():
            if fname in raw:
                args[fname] = _parse_field(kind, raw[fname], name=f"{where}.{fname}")

        expect_error = raw.get("expect_error")
        if expect_error is not None:
            expect_error = _require_str(expect_error, name=f"{where}.expect_error")
        steps.append(Step(index=i, op=op, args=args, expect_error=expect_error))

    return Scenario(asset_a=asset_a, asset_b=asset_b, steps=steps)


@dataclass
class ScenarioResult:
    steps: List[Dict[str, Any]]
    snapshot: Dict[str, Any]
    commitment: str
    records: List[Dict[str, Any]]

    @property
    def ok(self) -> bool:
        """Every step behaved as expected (succeeded, or failed with its expected code)."""
        return all(s["as_expected"] for s in self.steps)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "steps": self.steps,
            "snapshot": self.snapshot,
            "commitment": self.commitment,
            "records": self.records,
        }


class _Runner:
    def __init__(self, scenario: Scenario, config: PoolConfig) -> None:
        balances = BalanceTable()
        self.ledgers = {
            "a": InMemoryLedger(scenario.asset_a, balances),
            "b": InMemoryLedger(scenario.asset_b, balances),
        }
        self.pool = Pool(scenario.asset_a, scenario.asset_b, self.ledgers["a"], self.ledgers["b"], config=config)
        self._handlers: Dict[str, Callable[..., Any]] = {
            "mint": self._mint,
            "approve": self._approve,
            "deposit": self._deposit,
            "withdraw": self._withdraw,
            "swap": self._swap,
            "quote": self._quote,
            "reserves": self._reserves,
            "price": self._price,
            "balance": self._balance,
        }

    def run(self, step: Step) -> Any:
        return self._handlers[step.op](**step.args)

    def _mint(self, account: str, asset: str, amount: int) -> Dict[str, Any]:
        self.ledgers[asset].mint(account, amount)
        return {"balance": self.ledgers[asset].balance_of(account)}

    def _approve(self, account: str, asset: str, amount: int) -> Dict[str, Any]:
        self.ledgers[asset].approve(account, self.pool.pool_account, amount)
        return {"allowance": amount}

    def _deposit(self, account: str, amount_a: int, amount_b: int) -> Dict[str, Any]:
        return {"shares_minted": self.pool.deposit(account, amount_a, amount_b)}

    def _withdraw(self, account: str, shares: int) -> Dict[str, Any]:
        amount_a, amount_b = self.pool.withdraw(account, shares)
        return {"amount_a": amount_a, "amount_b": amount_b}

    def _swap(self, account: str, direction: Direction, amount_in: int, min_amount_out: int = 0) -> Dict[str, Any]:
        return {"amount_out": self.pool.swap(account, direction, amount_in, min_amount_out)}

    def _quote(self, amount_in: int, reserve_in: int, reserve_out: int) -> Dict[str, Any]:
        return {"amount_out": Pool.quote(amount_in, reserve_in, reserve_out)}

    def _reserves(self) -> Dict[str, Any]:
        reserve_a, reserve_b = self.pool.get_reserves()
        return {"reserve_a": reserve_a, "reserve_b": reserve_b}

    def _price(self) -> Dict[str, Any]:
        return {"price": self.pool.get_price()}

    def _balance(self, account: str, asset: str) -> Dict[str, Any]:
        return {"balance": self.ledgers[asset].balance_of(account)}


def run_scenario(doc: Any, config: Optional[PoolConfig] = None) -> ScenarioResult:
    """Parse and execute a scenario document against a fresh pool."""
    scenario = parse_scenario(doc)
    runner = _Runner(scenario, config or PoolConfig())

    outcomes: List[Dict[str, Any]] = []
    for step in scenario.steps:
        outcome: Dict[str, Any] = {"step": step.index, "op": step.op}
        try:
            result = runner.run(step)
        except PoolError as exc:
            outcome.update(ok=False, error=exc.code, detail=str(exc))
            outcome["as_expected"] = step.expect_error == exc.code
        else:
            outcome.update(ok=True, result=result)
            outcome["as_expected"] = step.expect_error is None
        if not outcome["as_expected"]:
            logger.warning("scenario_step_unexpected", step=step.index, op=step.op, expected=step.expect_error)
        outcomes.append(outcome)

    snap = snapshot_pool(runner.pool)
    return ScenarioResult(
        steps=outcomes,
        snapshot=snap.data,
        commitment=snap.commitment_hex(),
        records=[r.to_dict() for r in runner.pool.records],
    )
