"""Storage interface consumed by the query engine."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from ..models import Event, FilterSet


class EventStore(Protocol):
    """Read side of the append-only events table.

    Implementations return rows ordered by id, newest first, and evaluate the
    full :class:`FilterSet` (including its id bounds) for every operation.
    Failures are reported as :class:`StorageError`.
    """

    async def scan(self, filters: FilterSet, *, offset: int, limit: int) -> list[Event]:
        """Return up to ``limit`` matching events after skipping ``offset``."""
        ...

    async def count(self, filters: FilterSet) -> int:
        """Return the number of matching events."""
        ...

    async def window(
        self, filters: FilterSet, *, offset: int, limit: int
    ) -> tuple[int, list[Event]]:
        """Return the match count and the ``scan`` rows, read from one state of the log."""
        ...


def select_events(
    events: Iterable[Event], filters: FilterSet, *, offset: int, limit: int
) -> list[Event]:
    """Apply filters, offset and limit to an id-descending event sequence."""
    if offset < 0 or limit < 0:
        raise ValueError("offset and limit must be >= 0")
    out: list[Event] = []
    skipped = 0
    for e in events:
        if not filters.matches(e):
            continue
        if skipped < offset:
            skipped += 1
            continue
        if len(out) >= limit:
            break
        out.append(e)
    return out


def count_events(events: Iterable[Event], filters: FilterSet) -> int:
    return sum(1 for e in events if filters.matches(e))


def select_window(
    events: Iterable[Event], filters: FilterSet, *, offset: int, limit: int
) -> tuple[int, list[Event]]:
    """Count all matches and collect the requested slice in a single pass."""
    if offset < 0 or limit < 0:
        raise ValueError("offset and limit must be >= 0")
    total = 0
    out: list[Event] = []
    for e in events:
        if not filters.matches(e):
            continue
        if offset <= total < offset + limit:
            out.append(e)
        total += 1
    return total, out
