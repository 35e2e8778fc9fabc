"""In-memory event store."""

from __future__ import annotations

from collections.abc import Iterable

from ..models import Event, FilterSet
from .base import count_events, select_events, select_window


class InMemoryEventStore:
    """Events held newest first. ``append`` models the append-only write path."""

    def __init__(self, events: Iterable[Event] = ()) -> None:
        self._events: list[Event] = sorted(events, key=lambda e: e.id, reverse=True)
        ids = [e.id for e in self._events]
        if len(ids) != len(set(ids)):
            raise ValueError("event ids must be unique")

    def __len__(self) -> int:
        return len(self._events)

    @property
    def max_id(self) -> int | None:
        return self._events[0].id if self._events else None

    def append(self, event: Event) -> None:
        if self._events and event.id <= self._events[0].id:
            raise ValueError("event ids must be strictly increasing")
        self._events.insert(0, event)

    async def scan(self, filters: FilterSet, *, offset: int, limit: int) -> list[Event]:
        return select_events(self._events, filters, offset=offset, limit=limit)

    async def count(self, filters: FilterSet) -> int:
        return count_events(self._events, filters)

    async def window(
        self, filters: FilterSet, *, offset: int, limit: int
    ) -> tuple[int, list[Event]]:
        return select_window(self._events, filters, offset=offset, limit=limit)
