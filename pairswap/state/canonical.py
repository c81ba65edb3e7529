"""
Canonical JSON encoding for pool commitments.

A snapshot hashes to the same digest on every machine only if its encoding is
unique, so the encoder accepts a narrow subset of JSON: ints, strings, bools,
None, lists and str-keyed dicts.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

DOMAIN_PREFIX = b"pairswap:"


def _check_text(text: str) -> None:
    if any(0xD800 <= ord(ch) <= 0xDFFF for ch in text):
        raise TypeError("lone surrogates cannot be encoded canonically")


def _check_value(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError("floats cannot be encoded canonically; use integer base units")
    if isinstance(value, str):
        _check_text(value)
    elif isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"canonical dict keys must be str, got {type(key).__name__}")
            _check_text(key)
            _check_value(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _check_value(item)


def canonical_json_bytes(value: Any) -> bytes:
    """UTF-8 JSON with sorted keys, no whitespace, and no floats."""
    _check_value(value)
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """
    Prefix that binds a digest to one kind of payload and one format version.

    Layout: ``pairswap:<label>:v<version>\\x00``.
    """
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if not label.isascii() or "\x00" in label:
        raise ValueError(f"label must be printable ASCII without NUL: {label!r}")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return DOMAIN_PREFIX + f"{label}:v{version}".encode("ascii") + b"\x00"
