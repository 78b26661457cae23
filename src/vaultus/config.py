"""Typed configuration for assembling a Vaultus system.

Configuration lives in TOML files with one table per component::

    start_time = 1700000000

    [pool_a]
    base_rate = 300
    slope = 1000
    optimal_deposits = 10000000000

    [engine]
    rebalance_threshold = 100
    min_rebalance_interval = 3600

    [relay]
    duplicate_rate = 0.1
    reorder = true

Tables present in the file override the built-in defaults key by key.
"""

from __future__ import annotations

import copy
import tomllib
import warnings
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

from .core import InvalidConfig

DEFAULTS: dict[str, Any] = {
    "start_time": 1_700_000_000,
    "pool_a": {"base_rate": 300, "slope": 1_000, "optimal_deposits": 10_000 * 10**6, "paused": False},
    "pool_b": {"base_rate": 500, "slope": 1_500, "optimal_deposits": 10_000 * 10**6, "paused": False},
    "engine": {"rebalance_threshold": 100, "min_rebalance_interval": 3_600},
    "relay": {
        "gas_budget": 1_000_000,
        "threshold": 100,
        "duplicate_rate": 0.0,
        "reorder": False,
        "seed": 1,
    },
    "scenario": {
        "depositor": "alice",
        "deposit": 1_000 * 10**6,
        "whale": "whale",
        "whale_deposit": 9_000 * 10**6,
        "step_seconds": 3_600,
    },
    "output": {"outdir": None, "show": False, "charts": ["rates", "allocations"]},
}


def _int(raw: Mapping[str, Any], key: str) -> int:
    value = raw[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfig(f"{key} must be an integer, got {value!r}")
    return value


@dataclass(frozen=True)
class PoolConfig:
    base_rate: int
    slope: int
    optimal_deposits: int
    paused: bool = False

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "PoolConfig":
        return cls(
            base_rate=_int(raw, "base_rate"),
            slope=_int(raw, "slope"),
            optimal_deposits=_int(raw, "optimal_deposits"),
            paused=bool(raw.get("paused", False)),
        )


@dataclass(frozen=True)
class EngineConfig:
    rebalance_threshold: int = 100
    min_rebalance_interval: int = 3_600

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "EngineConfig":
        return cls(
            rebalance_threshold=_int(raw, "rebalance_threshold"),
            min_rebalance_interval=_int(raw, "min_rebalance_interval"),
        )


@dataclass(frozen=True)
class RelayConfig:
    gas_budget: int = 1_000_000
    threshold: int = 100
    duplicate_rate: float = 0.0
    reorder: bool = False
    seed: int = 1

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "RelayConfig":
        return cls(
            gas_budget=_int(raw, "gas_budget"),
            threshold=_int(raw, "threshold"),
            duplicate_rate=float(raw.get("duplicate_rate", 0.0)),
            reorder=bool(raw.get("reorder", False)),
            seed=_int(raw, "seed"),
        )


@dataclass(frozen=True)
class SystemConfig:
    pool_a: PoolConfig
    pool_b: PoolConfig
    engine: EngineConfig = field(default_factory=EngineConfig)
    relay: RelayConfig = field(default_factory=RelayConfig)
    start_time: int = 1_700_000_000

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "SystemConfig":
        merged = _merge(DEFAULTS, raw)
        return cls(
            pool_a=PoolConfig.from_mapping(merged["pool_a"]),
            pool_b=PoolConfig.from_mapping(merged["pool_b"]),
            engine=EngineConfig.from_mapping(merged["engine"]),
            relay=RelayConfig.from_mapping(merged["relay"]),
            start_time=_int(merged, "start_time"),
        )

    @classmethod
    def default(cls) -> "SystemConfig":
        return cls.from_mapping({})


def _merge(default: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(dict(default))
    for k, v in overrides.items():
        if isinstance(v, dict) and k in merged and isinstance(merged[k], dict):
            cast(dict, merged[k]).update(v)
        else:
            merged[k] = v
    return merged


def load_config(path: str | Path | None) -> dict[str, Any]:
    """Load configuration from a TOML file and merge with defaults.

    Parameters
    ----------
    path:
        Optional path to a configuration file. When ``None`` or missing, the
        built-in defaults are used.

    Returns
    -------
    dict[str, Any]
        Configuration dictionary with any file overrides applied.
    """

    cfg_path = Path(path) if path else None
    if cfg_path and cfg_path.is_file():
        with open(cfg_path, "rb") as f:
            file_cfg = tomllib.load(f)
        return _merge(DEFAULTS, file_cfg)
    if cfg_path:
        warnings.warn(f"Config file not found at {cfg_path}. Using defaults.", stacklevel=2)
    return copy.deepcopy(DEFAULTS)


__all__ = [
    "DEFAULTS",
    "EngineConfig",
    "PoolConfig",
    "RelayConfig",
    "SystemConfig",
    "load_config",
]
