"""In-memory event store with pandas export."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TypeVar

import pandas as pd

from .models import Event

E = TypeVar("E", bound=Event)


class EventLog:
    """Append-only collection of :class:`~vaultus.core.models.Event` rows."""

    def __init__(self, events: Iterable[Event] | None = None) -> None:
        self._events: list[Event] = list(events) if events else []

    def add(self, event: Event) -> None:
        self._events.append(event)

    def extend(self, events: Iterable[Event]) -> None:
        self._events.extend(events)

    def of_type(self, cls: type[E]) -> list[E]:
        return [event for event in self._events if isinstance(event, cls)]

    def tail(self, n: int = 20) -> list[Event]:
        if n <= 0:
            return []
        return self._events[-n:]

    def to_dataframe(self) -> pd.DataFrame:
        if not self._events:
            return pd.DataFrame(columns=["event", "timestamp", "emitter"])
        df = pd.DataFrame([event.to_dict() for event in self._events])
        leading = ["event", "timestamp", "emitter"]
        return df[leading + [col for col in df.columns if col not in leading]]

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)


__all__ = ["EventLog"]
