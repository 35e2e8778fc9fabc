"""Core data models for event log queries."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

_PLACEHOLDER_RE = re.compile(r"\{([A-Za-z0-9_.\-]+)\}")


class LogLevel(str, Enum):
    """PSR-3 severity levels, most severe first."""

    EMERGENCY = "emergency"
    ALERT = "alert"
    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    NOTICE = "notice"
    INFO = "info"
    DEBUG = "debug"


class InitiatorKind(str, Enum):
    SYSTEM = "system"
    CLI = "cli"
    USER = "user"
    ANONYMOUS = "anonymous"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class Initiator:
    """Who triggered an event. ``user_id`` is only set for authenticated users."""

    kind: InitiatorKind = InitiatorKind.OTHER
    user_id: int | None = None

    @classmethod
    def user(cls, user_id: int) -> Initiator:
        return cls(kind=InitiatorKind.USER, user_id=user_id)

    def label(self) -> str:
        """Short human-readable label."""
        if self.kind is InitiatorKind.USER:
            return f"user #{self.user_id}" if self.user_id is not None else "user"
        if self.kind is InitiatorKind.SYSTEM:
            return "System"
        if self.kind is InitiatorKind.CLI:
            return "CLI"
        if self.kind is InitiatorKind.ANONYMOUS:
            return "Anonymous web user"
        return "Other"


@dataclass(frozen=True, slots=True)
class Event:
    """Immutable log event as read from the store."""

    id: int
    timestamp: datetime  # aware, UTC
    logger: str
    level: LogLevel
    message_key: str
    message: str  # template with {placeholders}
    context: Mapping[str, Any]
    initiator: Initiator
    occasion_id: str

    def interpolated_message(self) -> str:
        """Replace ``{key}`` placeholders with context values."""

        def _sub(m: re.Match[str]) -> str:
            key = m.group(1)
            if key in self.context:
                return str(self.context[key])
            return m.group(0)

        return _PLACEHOLDER_RE.sub(_sub, self.message)


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive [start, end] timestamp range; either bound may be open."""

    start: datetime | None = None
    end: datetime | None = None

    def contains(self, ts: datetime) -> bool:
        if self.start is not None and ts < self.start:
            return False
        if self.end is not None and ts > self.end:
            return False
        return True


class PaginationMode(str, Enum):
    OFFSET = "offset"
    SINCE_ID = "since_id"
    SNAPSHOT = "snapshot"
    OCCASIONS = "occasions"


class ReturnType(str, Enum):
    OVERVIEW = "overview"
    OCCASIONS = "occasions"


@dataclass(frozen=True, slots=True)
class FilterSet:
    """Canonical, validated predicate set shared by the count and row queries.

    ``None`` means "no restriction" for the set-valued fields. An empty
    ``date_ranges`` tuple means all dates; several ranges are OR-combined.
    """

    loggers: frozenset[str] | None = None
    levels: frozenset[LogLevel] | None = None
    users: frozenset[int] | None = None
    messages: frozenset[tuple[str, str]] | None = None
    include_ids: frozenset[int] | None = None
    since_id: int | None = None  # exclusive lower bound
    max_id: int | None = None  # inclusive upper bound (max_id_first_page)
    before_id: int | None = None  # exclusive upper bound (logRowID)
    date_ranges: tuple[DateRange, ...] = ()
    date_source: str = "all"  # absolute|lastdays|months|all
    search_terms: tuple[str, ...] = ()
    occasion_id: str | None = None
    readable: Callable[[str, LogLevel], bool] | None = None

    def matches(self, event: Event) -> bool:
        """Return True when the event satisfies every predicate."""
        if self.since_id is not None and event.id <= self.since_id:
            return False
        if self.max_id is not None and event.id > self.max_id:
            return False
        if self.before_id is not None and event.id >= self.before_id:
            return False
        if self.include_ids is not None and event.id not in self.include_ids:
            return False
        if self.loggers is not None and event.logger not in self.loggers:
            return False
        if self.levels is not None and event.level not in self.levels:
            return False
        if self.readable is not None and not self.readable(event.logger, event.level):
            return False
        if self.users is not None and event.initiator.user_id not in self.users:
            return False
        if self.messages is not None and (event.logger, event.message_key) not in self.messages:
            return False
        if self.occasion_id is not None and event.occasion_id != self.occasion_id:
            return False
        if self.date_ranges and not any(r.contains(event.timestamp) for r in self.date_ranges):
            return False
        if self.search_terms and not _search_ok(event, self.search_terms):
            return False
        return True


def _search_ok(event: Event, terms: tuple[str, ...]) -> bool:
    haystack = " ".join(
        [
            event.message,
            event.interpolated_message(),
            event.logger,
            event.message_key,
            *(str(v) for v in event.context.values()),
        ]
    ).lower()
    return all(t in haystack for t in terms)


@dataclass(frozen=True, slots=True)
class OccasionRow:
    """Representative (newest) event of an occasion run plus the run length."""

    event: Event
    count: int = 1


@dataclass(frozen=True, slots=True)
class QueryResult:
    rows: tuple[OccasionRow, ...]
    total_row_count: int  # raw matches, before collapsing
    page_current: int
    pages_count: int
    mode: PaginationMode
    has_prev: bool = False
    has_next: bool = False
    last_row_continues: bool = False
    max_id: int | None = None
    min_id: int | None = None

    @property
    def raw_row_count(self) -> int:
        """Number of raw events represented by the rows of this page."""
        return sum(r.count for r in self.rows)
