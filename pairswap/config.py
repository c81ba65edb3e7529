"""
Runtime configuration for a pool deployment.

Sources, later ones winning:
- defaults on `PoolConfig`
- a YAML file (optionally nested under a top-level `pairswap:` key)
- `PAIRSWAP_*` environment variables
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("console", "json")

ENV_PREFIX = "PAIRSWAP_"


class ConfigError(ValueError):
    """Invalid or unreadable configuration."""


@dataclass(frozen=True)
class PoolConfig:
    # Account that holds the pool's custody on both asset ledgers.
    pool_account: str = "pool"
    log_level: str = "INFO"
    log_format: str = "console"

    def __post_init__(self) -> None:
        if not isinstance(self.pool_account, str) or not self.pool_account.strip():
            raise ConfigError("pool_account must be a non-empty string")
        if not isinstance(self.log_level, str) or self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {LOG_LEVELS}: {self.log_level!r}")
        if self.log_format not in LOG_FORMATS:
            raise ConfigError(f"log_format must be one of {LOG_FORMATS}: {self.log_format!r}")
        object.__setattr__(self, "log_level", self.log_level.upper())

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "PoolConfig":
        if not isinstance(raw, Mapping):
            raise ConfigError("config must be a mapping")
        known = {f.name for f in fields(cls)}
        unknown = sorted(str(k) for k in raw if k not in known)
        if unknown:
            raise ConfigError(f"unknown config keys: {', '.join(unknown)}")
        return cls(**dict(raw))


def _env_str(env: Mapping[str, str], name: str) -> Optional[str]:
    raw = env.get(ENV_PREFIX + name)
    if raw is None:
        return None
    v = raw.strip()
    return v if v else None


def _read_yaml(path: Path) -> Mapping[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc
    try:
        obj = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    if obj is None:
        return {}
    if not isinstance(obj, Mapping):
        raise ConfigError(f"config file {path} must contain a mapping")
    nested = obj.get("pairswap")
    if nested is not None:
        if not isinstance(nested, Mapping):
            raise ConfigError("`pairswap` section must be a mapping")
        return nested
    return obj


def load_config(
    path: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> PoolConfig:
    """
    Build a `PoolConfig` from an optional YAML file plus environment overrides.

    Raises:
        ConfigError: If the file is unreadable or any value is invalid
    """
    env = os.environ if env is None else env
    config = PoolConfig()
    if path is not None:
        config = PoolConfig.from_mapping(_read_yaml(Path(path)))

    overrides = {}
    for field_name in ("pool_account", "log_level", "log_format"):
        value = _env_str(env, field_name.upper())
        if value is not None:
            overrides[field_name] = value
    if overrides:
        config = replace(config, **overrides)
    return config
