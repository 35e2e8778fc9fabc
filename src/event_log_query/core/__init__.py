"""Event log query engine core."""

from __future__ import annotations

from .access import ReadAccess
from .config import EngineConfig, resolve_engine_config
from .errors import (
    AccessDeniedError,
    ConfigurationError,
    NotFoundError,
    QueryError,
    StorageError,
    ValidationError,
)
from .filters import CompiledQuery, compile_filters, compile_query
from .models import (
    DateRange,
    Event,
    FilterSet,
    Initiator,
    InitiatorKind,
    LogLevel,
    OccasionRow,
    PaginationMode,
    QueryResult,
    ReturnType,
)
from .occasions import collapse_occasions, iter_occasions, occasion_id_for
from .query import execute, get_event, query

__all__ = [
    "AccessDeniedError",
    "CompiledQuery",
    "ConfigurationError",
    "DateRange",
    "EngineConfig",
    "Event",
    "FilterSet",
    "Initiator",
    "InitiatorKind",
    "LogLevel",
    "NotFoundError",
    "OccasionRow",
    "PaginationMode",
    "QueryError",
    "QueryResult",
    "ReadAccess",
    "ReturnType",
    "StorageError",
    "ValidationError",
    "collapse_occasions",
    "compile_filters",
    "compile_query",
    "execute",
    "get_event",
    "iter_occasions",
    "occasion_id_for",
    "query",
    "resolve_engine_config",
]
