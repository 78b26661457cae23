"""At-least-once delivery channel between the relay and the engine.

The channel is the only asynchronous boundary in the system: ``send`` only
enqueues, and handlers run later when the inbox is drained.  Envelopes may be
duplicated on send and, with ``reorder`` enabled, delivered in any order.
The channel stamps every delivery with its own relay identity, which is what
destinations authenticate.
"""

from __future__ import annotations

import logging
import random
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

from ..core import RateUpdate, VaultusError

logger = logging.getLogger(__name__)

Handler = Callable[[str, str, int], object]


@dataclass(frozen=True)
class Envelope:
    destination: str
    payload: RateUpdate
    gas_budget: int
    sequence: int


class DeliveryChannel:
    """Single-threaded inbox delivering :class:`RateUpdate` payloads."""

    def __init__(
        self,
        relay_identity: str,
        *,
        duplicate_rate: float = 0.0,
        reorder: bool = False,
        seed: int = 1,
    ) -> None:
        if not 0.0 <= duplicate_rate <= 1.0:
            raise ValueError("duplicate_rate must lie in [0, 1]")
        self.relay_identity = relay_identity
        self.duplicate_rate = duplicate_rate
        self.reorder = reorder
        self.rng = random.Random(seed)

        self._handlers: dict[str, Handler] = {}
        self._inbox: deque[Envelope] = deque()
        self._sequence = 0
        self.delivered = 0
        self.dropped = 0

    def register(self, destination: str, handler: Handler) -> None:
        self._handlers[destination] = handler

    @property
    def pending(self) -> int:
        return len(self._inbox)

    def send(self, destination: str, payload: RateUpdate, gas_budget: int) -> None:
        copies = 2 if self.rng.random() < self.duplicate_rate else 1
        for _ in range(copies):
            self._sequence += 1
            self._inbox.append(Envelope(destination, payload, gas_budget, self._sequence))

    def _next(self) -> Envelope:
        if self.reorder and len(self._inbox) > 1:
            idx = self.rng.randrange(len(self._inbox))
            envelope = self._inbox[idx]
            del self._inbox[idx]
            return envelope
        return self._inbox.popleft()

    def deliver_next(self) -> bool:
        """Deliver one envelope; returns ``False`` when the inbox is empty."""

        if not self._inbox:
            return False
        envelope = self._next()
        handler = self._handlers.get(envelope.destination)
        if handler is None:
            logger.warning("No handler registered for %s; dropping #%s", envelope.destination, envelope.sequence)
            self.dropped += 1
            return True
        payload = envelope.payload
        try:
            handler(self.relay_identity, payload.pool, payload.rate)
        except VaultusError as exc:
            logger.warning(
                "Delivery #%s to %s rejected (%s): %s",
                envelope.sequence,
                envelope.destination,
                type(exc).__name__,
                exc,
            )
            self.dropped += 1
            return True
        self.delivered += 1
        return True

    def drain(self, limit: int | None = None) -> int:
        """Deliver queued envelopes, including ones enqueued meanwhile.

        Returns the number of envelopes consumed.
        """

        consumed = 0
        while limit is None or consumed < limit:
            if not self.deliver_next():
                break
            consumed += 1
        return consumed


__all__ = ["DeliveryChannel", "Envelope", "Handler"]
