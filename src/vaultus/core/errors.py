"""Exception taxonomy for Vaultus ledgers.

Every rejection is local and synchronous: the call that triggered it is
refused and the component that raised it is left as it was before the call.
"""

from __future__ import annotations


class VaultusError(Exception):
    """Base class for all rejections raised by pools, the engine and the relay."""


class ZeroAmount(VaultusError):
    pass


class InsufficientBalance(VaultusError):
    pass


class InsufficientFunds(VaultusError):
    """The asset ledger cannot debit the requested amount."""


class NoDeposit(VaultusError):
    pass


class InvalidPool(VaultusError):
    pass


class Unauthorized(VaultusError):
    pass


class Paused(VaultusError):
    pass


class RebalanceTooSoon(VaultusError):
    pass


class NoFundsToRebalance(VaultusError):
    pass


class ReentrantCall(VaultusError):
    """A guarded entrypoint was re-entered before the in-flight call returned."""


class ZeroAddress(VaultusError):
    pass


class InvalidConfig(VaultusError):
    pass


class InvalidRateConfig(InvalidConfig):
    """Rate model parameters exceed 100% or are negative."""


__all__ = [
    "InsufficientBalance",
    "InsufficientFunds",
    "InvalidConfig",
    "InvalidPool",
    "InvalidRateConfig",
    "NoDeposit",
    "NoFundsToRebalance",
    "Paused",
    "RebalanceTooSoon",
    "ReentrantCall",
    "Unauthorized",
    "VaultusError",
    "ZeroAddress",
    "ZeroAmount",
]
