"""Interest-bearing pools with a utilisation-linear rate model.

A :class:`Pool` keeps per-depositor balances of the underlying asset and
derives its yield from how close total deposits are to a configured optimal
level.  The rate is never stored: :meth:`Pool.get_rate` recomputes it from
current state, and every balance change emits a :class:`RateChanged` event
carrying the rate before and after the change so observers can follow the
signal without polling.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .core import (
    BPS,
    MAX_RATE,
    PRECISION,
    AssetLedger,
    Clock,
    Deposited,
    EmergencyWithdrawal,
    Event,
    EventLog,
    InsufficientBalance,
    InvalidConfig,
    InvalidRateConfig,
    NoDeposit,
    Paused,
    PausedToggled,
    RateChanged,
    Withdrawn,
    ZeroAddress,
    ZeroAmount,
    wall_clock,
)
from .guards import Serialized, entrypoint, require_owner

logger = logging.getLogger(__name__)

Listener = Callable[[Event], None]


@dataclass(frozen=True)
class RateModel:
    """Linear rate curve: ``base_rate`` at zero utilisation, ``base_rate + slope`` at 100%.

    Parameters
    ----------
    base_rate:
        Rate in basis points paid on an empty pool.
    slope:
        Additional basis points earned as utilisation rises to 100%.
    optimal_deposits:
        Deposit level at which utilisation saturates.
    """

    base_rate: int
    slope: int
    optimal_deposits: int

    def __post_init__(self) -> None:
        if self.base_rate < 0 or self.slope < 0:
            raise InvalidRateConfig("base_rate and slope must be non-negative")
        if self.base_rate + self.slope > BPS:
            raise InvalidRateConfig(
                f"base_rate + slope = {self.base_rate + self.slope} bps exceeds {BPS}"
            )
        if self.optimal_deposits <= 0:
            raise InvalidConfig("optimal_deposits must be positive")

    def utilization(self, total_deposits: int) -> int:
        """Utilisation scaled by ``PRECISION`` and capped at 100%."""

        return min(total_deposits * PRECISION // self.optimal_deposits, PRECISION)

    def rate(self, total_deposits: int) -> int:
        util = self.utilization(total_deposits)
        return min(self.base_rate + util * self.slope // PRECISION, MAX_RATE)


class Pool(Serialized):
    """Single allocation target holding depositor balances of one asset."""

    def __init__(
        self,
        address: str,
        ledger: AssetLedger,
        *,
        owner: str,
        base_rate: int,
        slope: int,
        optimal_deposits: int,
        clock: Clock | None = None,
        log: EventLog | None = None,
    ) -> None:
        super().__init__()
        if not address or not owner:
            raise ZeroAddress("pool address and owner must be non-empty")
        self.address = address
        self.owner = owner
        self.ledger = ledger
        self.rate_model = RateModel(base_rate, slope, optimal_deposits)
        self.clock = clock or wall_clock
        self.log = log if log is not None else EventLog()

        self.total_deposits = 0
        self.balances: dict[str, int] = {}
        self.deposit_timestamps: dict[str, int] = {}
        self.paused = False

        self._listeners: list[Listener] = []

    def __repr__(self) -> str:
        return f"Pool({self.address!r}, rate={self.get_rate()}bps, total={self.total_deposits})"

    # -----------------
    # Views
    # -----------------

    @property
    def base_rate(self) -> int:
        return self.rate_model.base_rate

    @property
    def slope(self) -> int:
        return self.rate_model.slope

    @property
    def optimal_deposits(self) -> int:
        return self.rate_model.optimal_deposits

    def get_rate(self) -> int:
        return self.rate_model.rate(self.total_deposits)

    def get_utilization(self) -> int:
        return self.rate_model.utilization(self.total_deposits)

    def get_deposit(self, user: str) -> int:
        return self.balances.get(user, 0)

    def get_deposit_timestamp(self, user: str) -> int | None:
        return self.deposit_timestamps.get(user)

    def get_total_deposits(self) -> int:
        return self.total_deposits

    def is_paused(self) -> bool:
        return self.paused

    # -----------------
    # Signal subscription
    # -----------------

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def is_subscribed(self, listener: Listener) -> bool:
        return listener in self._listeners

    def _emit(self, event: Event) -> None:
        self.log.add(event)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Listener %r failed on %s from %s", listener, event.name, self.address)

    # -----------------
    # Entrypoints
    # -----------------

    @entrypoint
    def deposit(self, caller: str, amount: int) -> None:
        if amount <= 0:
            raise ZeroAmount("deposit amount must be positive")
        if self.paused:
            raise Paused(f"pool {self.address} is paused")

        old_rate = self.get_rate()
        self.ledger.transfer(caller, self.address, amount)
        self.balances[caller] = self.get_deposit(caller) + amount
        self.total_deposits += amount
        self.deposit_timestamps[caller] = self.clock()

        now = self.clock()
        self._emit(Deposited(timestamp=now, emitter=self.address, account=caller, amount=amount))
        self._emit(
            RateChanged(timestamp=now, emitter=self.address, old_rate=old_rate, new_rate=self.get_rate())
        )

    @entrypoint
    def withdraw(self, caller: str, amount: int) -> None:
        if amount <= 0:
            raise ZeroAmount("withdraw amount must be positive")
        if self.paused:
            raise Paused(f"pool {self.address} is paused")
        balance = self.get_deposit(caller)
        if amount > balance:
            raise InsufficientBalance(f"{caller} holds {balance} in {self.address}, requested {amount}")
        self._release(caller, amount)

    @entrypoint
    def withdraw_all(self, caller: str) -> int:
        if self.paused:
            raise Paused(f"pool {self.address} is paused")
        balance = self.get_deposit(caller)
        if balance == 0:
            raise NoDeposit(f"{caller} has no deposit in {self.address}")
        self._release(caller, balance)
        return balance

    @entrypoint
    def emergency_withdraw(self, caller: str) -> int:
        """Withdraw the caller's full balance regardless of the pause flag."""

        balance = self.get_deposit(caller)
        if balance == 0:
            raise NoDeposit(f"{caller} has no deposit in {self.address}")
        self._release(caller, balance, emergency=True)
        return balance

    def _release(self, account: str, amount: int, *, emergency: bool = False) -> None:
        old_rate = self.get_rate()
        self.balances[account] = self.get_deposit(account) - amount
        self.total_deposits -= amount
        self.ledger.transfer(self.address, account, amount)

        now = self.clock()
        if emergency:
            self._emit(EmergencyWithdrawal(timestamp=now, emitter=self.address, account=account, amount=amount))
        else:
            self._emit(Withdrawn(timestamp=now, emitter=self.address, account=account, amount=amount))
        self._emit(
            RateChanged(timestamp=now, emitter=self.address, old_rate=old_rate, new_rate=self.get_rate())
        )

    @entrypoint
    def pause(self, caller: str) -> None:
        require_owner(self.owner, caller)
        self._set_paused(True)

    @entrypoint
    def unpause(self, caller: str) -> None:
        require_owner(self.owner, caller)
        self._set_paused(False)

    def _set_paused(self, paused: bool) -> None:
        if self.paused == paused:
            return
        self.paused = paused
        logger.info("Pool %s %s", self.address, "paused" if paused else "unpaused")
        self._emit(PausedToggled(timestamp=self.clock(), emitter=self.address, paused=paused))


__all__ = ["Listener", "Pool", "RateModel"]
