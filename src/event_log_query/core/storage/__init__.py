"""Event store implementations."""

from __future__ import annotations

from .base import EventStore, count_events, select_events, select_window
from .jsonl import JsonLinesEventStore
from .memory import InMemoryEventStore

__all__ = [
    "EventStore",
    "InMemoryEventStore",
    "JsonLinesEventStore",
    "count_events",
    "select_events",
    "select_window",
]
