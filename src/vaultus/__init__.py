"""
Vaultus: automated capital allocation across two interest-bearing pools.

Design goals:
- Utilisation-linear rate model owned by each pool
- Share-accounted vault routing deposits to the better-paying pool
- Rate signals relayed over an at-least-once channel to an authenticated
  rebalance entrypoint, safe under duplication and reordering
- pandas reporting and matplotlib charts over the shared event log
"""

from __future__ import annotations

import logging

from . import reporting
from .config import EngineConfig, PoolConfig, RelayConfig, SystemConfig, load_config
from .core import (
    AssetLedger,
    Event,
    EventLog,
    ManualClock,
    PoolSlot,
    RateKnowledge,
    RateUpdate,
    VaultusError,
)
from .engine import AllocationEngine
from .pool import Pool, RateModel
from .relay import DeliveryChannel, RelayMonitor
from .system import System, build_system
from .visualization import Visualizer

logger = logging.getLogger(__name__)

__all__ = [
    "AllocationEngine",
    "AssetLedger",
    "DeliveryChannel",
    "EngineConfig",
    "Event",
    "EventLog",
    "ManualClock",
    "Pool",
    "PoolConfig",
    "PoolSlot",
    "RateKnowledge",
    "RateModel",
    "RateUpdate",
    "RelayConfig",
    "RelayMonitor",
    "System",
    "SystemConfig",
    "VaultusError",
    "Visualizer",
    "build_system",
    "load_config",
    "reporting",
]
