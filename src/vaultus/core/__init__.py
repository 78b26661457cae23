"""Core data structures for :mod:`vaultus`.

This subpackage groups the constants, value types, error taxonomy, asset
ledger and event store shared by pools, the allocation engine and the relay,
so they can be used without importing the entire public interface exposed in
:mod:`vaultus.__init__`.
"""

from __future__ import annotations

from .constants import ASSET_DECIMALS, BPS, MAX_RATE, PRECISION, SHARE_PRECISION
from .errors import (
    InsufficientBalance,
    InsufficientFunds,
    InvalidConfig,
    InvalidPool,
    InvalidRateConfig,
    NoDeposit,
    NoFundsToRebalance,
    Paused,
    RebalanceTooSoon,
    ReentrantCall,
    Unauthorized,
    VaultusError,
    ZeroAddress,
    ZeroAmount,
)
from .ledger import AssetLedger
from .models import (
    Clock,
    Deposited,
    EmergencyWithdrawal,
    Event,
    ManualClock,
    ParameterChanged,
    PausedToggled,
    PayloadForwarded,
    PoolSlot,
    RateChanged,
    RateKnowledge,
    RateObserved,
    RateUpdate,
    RateUpdated,
    Rebalanced,
    SubscriptionChanged,
    VaultDeposited,
    VaultWithdrawn,
    Withdrawn,
    wall_clock,
)
from .repositories import EventLog

__all__ = [
    "ASSET_DECIMALS",
    "AssetLedger",
    "BPS",
    "Clock",
    "Deposited",
    "EmergencyWithdrawal",
    "Event",
    "EventLog",
    "InsufficientBalance",
    "InsufficientFunds",
    "InvalidConfig",
    "InvalidPool",
    "InvalidRateConfig",
    "MAX_RATE",
    "ManualClock",
    "NoDeposit",
    "NoFundsToRebalance",
    "PRECISION",
    "ParameterChanged",
    "Paused",
    "PausedToggled",
    "PayloadForwarded",
    "PoolSlot",
    "RateChanged",
    "RateKnowledge",
    "RateObserved",
    "RateUpdate",
    "RateUpdated",
    "Rebalanced",
    "RebalanceTooSoon",
    "ReentrantCall",
    "SHARE_PRECISION",
    "SubscriptionChanged",
    "Unauthorized",
    "VaultDeposited",
    "VaultWithdrawn",
    "VaultusError",
    "Withdrawn",
    "ZeroAddress",
    "ZeroAmount",
    "wall_clock",
]
