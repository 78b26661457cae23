"""Immutable value types: pool slots, events, relay payloads and clocks."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

Clock = Callable[[], int]


def wall_clock() -> int:
    """Current unix time in whole seconds."""

    return int(time.time())


class ManualClock:
    """Settable clock for simulations and tests."""

    def __init__(self, start: int = 0) -> None:
        self.now = int(start)

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("clock cannot move backwards")
        self.now += int(seconds)
        return self.now

    def set(self, timestamp: int) -> None:
        if timestamp < self.now:
            raise ValueError("clock cannot move backwards")
        self.now = int(timestamp)


class PoolSlot(str, Enum):
    """The two allocation targets an engine is bound to."""

    A = "A"
    B = "B"

    @property
    def other(self) -> "PoolSlot":
        return PoolSlot.B if self is PoolSlot.A else PoolSlot.A


class RateKnowledge(str, Enum):
    """How much of the rate pair ``(last_rate_a, last_rate_b)`` is known."""

    NO_DATA = "no-data"
    SINGLE_SIDE_KNOWN = "single-side-known"
    BOTH_KNOWN = "both-known"

    @classmethod
    def from_rates(cls, rate_a: int, rate_b: int) -> "RateKnowledge":
        known = (rate_a != 0) + (rate_b != 0)
        if known == 2:
            return cls.BOTH_KNOWN
        if known == 1:
            return cls.SINGLE_SIDE_KNOWN
        return cls.NO_DATA


@dataclass(frozen=True)
class RateUpdate:
    """Cross-domain payload: ``pool`` now yields ``rate`` basis points."""

    pool: str
    rate: int


# -----------------
# Events
# -----------------


@dataclass(frozen=True)
class Event:
    """Base record appended to an :class:`~vaultus.core.EventLog`."""

    timestamp: int
    emitter: str

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["event"] = self.name
        return data


@dataclass(frozen=True)
class Deposited(Event):
    account: str
    amount: int


@dataclass(frozen=True)
class Withdrawn(Event):
    account: str
    amount: int


@dataclass(frozen=True)
class RateChanged(Event):
    old_rate: int
    new_rate: int


@dataclass(frozen=True)
class PausedToggled(Event):
    paused: bool


@dataclass(frozen=True)
class EmergencyWithdrawal(Event):
    account: str
    amount: int


@dataclass(frozen=True)
class VaultDeposited(Event):
    account: str
    amount: int
    shares: int
    pool: str


@dataclass(frozen=True)
class VaultWithdrawn(Event):
    account: str
    amount: int
    shares: int


@dataclass(frozen=True)
class RateUpdated(Event):
    pool: str
    rate: int


@dataclass(frozen=True)
class Rebalanced(Event):
    from_pool: str
    to_pool: str
    amount: int


@dataclass(frozen=True)
class ParameterChanged(Event):
    parameter: str
    old_value: int
    new_value: int


@dataclass(frozen=True)
class RateObserved(Event):
    pool: str
    old_rate: int
    new_rate: int


@dataclass(frozen=True)
class SubscriptionChanged(Event):
    pool: str
    active: bool


@dataclass(frozen=True)
class PayloadForwarded(Event):
    destination: str
    pool: str
    rate: int


__all__ = [
    "Clock",
    "Deposited",
    "EmergencyWithdrawal",
    "Event",
    "ManualClock",
    "ParameterChanged",
    "PausedToggled",
    "PayloadForwarded",
    "PoolSlot",
    "RateChanged",
    "RateKnowledge",
    "RateObserved",
    "RateUpdate",
    "RateUpdated",
    "Rebalanced",
    "SubscriptionChanged",
    "VaultDeposited",
    "VaultWithdrawn",
    "Withdrawn",
    "wall_clock",
]
