"""Read-only query engine for append-only audit/event logs."""

from __future__ import annotations

from .core import (
    AccessDeniedError,
    EngineConfig,
    Event,
    FilterSet,
    LogLevel,
    NotFoundError,
    QueryError,
    QueryResult,
    ReadAccess,
    StorageError,
    ValidationError,
    get_event,
    query,
)
from .core.storage import InMemoryEventStore, JsonLinesEventStore

__all__ = [
    "AccessDeniedError",
    "EngineConfig",
    "Event",
    "FilterSet",
    "InMemoryEventStore",
    "JsonLinesEventStore",
    "LogLevel",
    "NotFoundError",
    "QueryError",
    "QueryResult",
    "ReadAccess",
    "StorageError",
    "ValidationError",
    "get_event",
    "query",
]
