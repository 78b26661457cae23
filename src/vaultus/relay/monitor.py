"""Stateless watcher forwarding pool rate signals across the relay."""

from __future__ import annotations

import logging

from ..core import (
    Clock,
    Event,
    EventLog,
    PayloadForwarded,
    RateChanged,
    RateObserved,
    RateUpdate,
    SubscriptionChanged,
    ZeroAddress,
    wall_clock,
)
from ..guards import require_owner
from ..pool import Pool
from .channel import DeliveryChannel

logger = logging.getLogger(__name__)


class RelayMonitor:
    """Forward every :class:`RateChanged` signal of two pools to the engine.

    The monitor holds configuration only.  It never decides whether a signal
    matters; each one becomes a :class:`RateUpdate` payload handed to the
    delivery channel.  ``threshold`` is kept for reference and is not used on
    the hot path.
    """

    def __init__(
        self,
        address: str,
        pool_a: Pool,
        pool_b: Pool,
        *,
        destination: str,
        channel: DeliveryChannel,
        owner: str,
        threshold: int = 100,
        gas_budget: int = 1_000_000,
        clock: Clock | None = None,
        log: EventLog | None = None,
    ) -> None:
        if not address or not destination or not owner:
            raise ZeroAddress("monitor, destination and owner addresses must be non-empty")
        self.address = address
        self.pools = (pool_a, pool_b)
        self.destination = destination
        self.channel = channel
        self.owner = owner
        self.threshold = threshold
        self.gas_budget = gas_budget
        self.clock = clock or wall_clock
        self.log = log if log is not None else EventLog()

    @property
    def subscribed(self) -> bool:
        return all(pool.is_subscribed(self.react) for pool in self.pools)

    def subscribe(self, caller: str) -> None:
        require_owner(self.owner, caller)
        for pool in self.pools:
            pool.subscribe(self.react)
            self.log.add(
                SubscriptionChanged(timestamp=self.clock(), emitter=self.address, pool=pool.address, active=True)
            )

    def unsubscribe(self, caller: str) -> None:
        require_owner(self.owner, caller)
        for pool in self.pools:
            pool.unsubscribe(self.react)
            self.log.add(
                SubscriptionChanged(timestamp=self.clock(), emitter=self.address, pool=pool.address, active=False)
            )

    def react(self, event: Event) -> RateUpdate | None:
        if not isinstance(event, RateChanged):
            return None
        if event.emitter not in {pool.address for pool in self.pools}:
            return None

        now = self.clock()
        self.log.add(
            RateObserved(
                timestamp=now,
                emitter=self.address,
                pool=event.emitter,
                old_rate=event.old_rate,
                new_rate=event.new_rate,
            )
        )
        payload = RateUpdate(pool=event.emitter, rate=event.new_rate)
        self.channel.send(self.destination, payload, self.gas_budget)
        self.log.add(
            PayloadForwarded(
                timestamp=now, emitter=self.address, destination=self.destination, pool=payload.pool, rate=payload.rate
            )
        )
        logger.debug("Forwarded %s rate %s bps to %s", payload.pool, payload.rate, self.destination)
        return payload


__all__ = ["RelayMonitor"]
