"""
Pool state snapshot encoding.

Goals:
- Deterministic JSON serialization for hashing / audit.
- Explicit versioning.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict

from ..core.pool import Pool
from ..state.canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex


POOL_SNAPSHOT_VERSION = 1


@dataclass(frozen=True)
class PoolSnapshot:
    """
    Deterministic, versioned snapshot of a `Pool`.

    The commitment is *not* included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_bytes(self) -> bytes:
        payload = domain_sep_bytes("pool_snapshot", version=self.version) + self.canonical_bytes()
        return hashlib.sha256(payload).digest()

    def commitment_hex(self) -> str:
        payload = domain_sep_bytes("pool_snapshot", version=self.version) + self.canonical_bytes()
        return sha256_hex(payload)


def snapshot_pool(pool: Pool, *, version: int = POOL_SNAPSHOT_VERSION) -> PoolSnapshot:
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")

    state = pool.get_state()
    share_entries = [{"account": account, "shares": int(amount)} for account, amount in state.shares.items()]
    share_entries.sort(key=lambda e: e["account"])

    data: Dict[str, Any] = {
        "version": int(version),
        "asset_a": pool.asset_a,
        "asset_b": pool.asset_b,
        "pool_account": pool.pool_account,
        "reserve_a": int(state.reserve_a),
        "reserve_b": int(state.reserve_b),
        "total_shares": int(state.total_shares),
        "shares": share_entries,
    }
    return PoolSnapshot(version=version, data=data)
