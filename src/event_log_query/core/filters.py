"""Filter compiler.

Normalizes raw query parameters (as they arrive from MCP tools, the CLI or
internal callers) into one validated :class:`CompiledQuery`. The resulting
:class:`FilterSet` is immutable and is shared by the count and the row query
of a request.

Date precedence: explicit ``date_from``/``date_to`` always win. Otherwise the
relative shortcuts (``lastdays``, ``months``, ``dates``) are applied in the
order the caller supplied them and the last one wins.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from .access import ReadAccess
from .config import EngineConfig
from .errors import AccessDeniedError, ValidationError
from .models import DateRange, FilterSet, LogLevel, ReturnType
from .pagination import PageRequest, select_mode
from .time_window import parse_date_bound, range_for_lastdays, range_for_month

logger = logging.getLogger(__name__)

_ALIASES = {
    "occasionsID": "occasions_id",
    "occasionsCount": "occasions_count",
    "occasionsCountMaxReturn": "occasions_count_max_return",
    "logRowID": "log_row_id",
}

KNOWN_PARAMS = frozenset(
    {
        "page",
        "per_page",
        "offset",
        "include",
        "since_id",
        "max_id_first_page",
        "date_from",
        "date_to",
        "dates",
        "lastdays",
        "months",
        "loglevels",
        "loggers",
        "messages",
        "users",
        "user",
        "occasions_id",
        "occasions_count",
        "occasions_count_max_return",
        "log_row_id",
        "search",
        "return_type",
    }
)

_RELATIVE_DATE_PARAMS = ("dates", "lastdays", "months")

_Relative = tuple[str, tuple[DateRange, ...]]
_ALL_DATES: _Relative = ("all", ())


@dataclass(frozen=True, slots=True)
class CompiledQuery:
    filters: FilterSet
    page: PageRequest
    return_type: ReturnType = ReturnType.OVERVIEW
    occasions_limit: int | None = None  # rows to return in occasion expansion


class _Params:
    """Canonical parameter view that remembers the names callers used."""

    def __init__(self, raw: Mapping[str, Any]) -> None:
        self.values: dict[str, Any] = {}
        self._given: dict[str, str] = {}
        for name, value in raw.items():
            key = _ALIASES.get(name, name)
            if key not in KNOWN_PARAMS:
                raise ValidationError(name, f"Unknown parameter '{name}'.")
            if value is None:
                continue
            self.values[key] = value
            self._given[key] = name

    def name(self, key: str) -> str:
        return self._given.get(key, key)

    def get(self, key: str) -> Any:
        return self.values.get(key)

    def get_int(self, key: str) -> int | None:
        if key not in self.values:
            return None
        return _parse_int(self.name(key), self.values[key])

    def get_list(self, key: str) -> tuple[str, ...]:
        if key not in self.values:
            return ()
        return _parse_list(self.values[key])

    def get_int_list(self, key: str) -> tuple[int, ...]:
        name = self.name(key)
        return tuple(dict.fromkeys(_parse_int(name, s) for s in self.get_list(key)))


def _is_decimal(s: str) -> bool:
    # str.isdigit() also accepts digits int() rejects, such as superscripts.
    return s.isascii() and s.isdigit()


def _parse_int(name: str, value: Any) -> int:
    """Parse a non-negative integer from an int or a decimal string."""
    if isinstance(value, bool):
        n = None
    elif isinstance(value, int):
        n = value
    elif isinstance(value, str) and _is_decimal(value.strip()):
        n = int(value.strip())
    else:
        n = None
    if n is None or n < 0:
        raise ValidationError(name, f"{name} must be a non-negative integer, got {value!r}")
    return n


def _parse_list(value: Any) -> tuple[str, ...]:
    """Accept a list or a comma-separated string; de-duplicate, keep order."""
    if isinstance(value, str):
        items: list[Any] = value.split(",")
    elif isinstance(value, (set, frozenset)):
        items = sorted(value, key=str)
    elif isinstance(value, (list, tuple)):
        items = []
        for v in value:
            if isinstance(v, str):
                items.extend(v.split(","))
            else:
                items.append(v)
    else:
        items = [value]

    out: dict[str, None] = {}
    for item in items:
        s = str(item).strip()
        if s:
            out[s] = None
    return tuple(out)


def _parse_levels(name: str, values: tuple[str, ...]) -> frozenset[LogLevel]:
    out: set[LogLevel] = set()
    for s in values:
        try:
            out.add(LogLevel(s.lower()))
        except ValueError as e:
            valid = ", ".join(level.value for level in LogLevel)
            raise ValidationError(
                name, f"Unknown log level '{s}'. Valid values: {valid}."
            ) from e
    return frozenset(out)


def _parse_messages(name: str, values: tuple[str, ...]) -> frozenset[tuple[str, str]]:
    out: set[tuple[str, str]] = set()
    for s in values:
        logger_name, sep, key = s.partition(":")
        if not sep or not logger_name.strip() or not key.strip():
            raise ValidationError(
                name, f"{name} items must look like 'Logger:message_key', got {s!r}"
            )
        out.add((logger_name.strip(), key.strip()))
    return frozenset(out)


def _month(name: str, s: str) -> DateRange:
    try:
        return range_for_month(s)
    except ValueError as e:
        raise ValidationError(name, f"{name}: {e}") from e


def _lastdays(name: str, days: int, now: datetime) -> DateRange:
    try:
        return range_for_lastdays(days, now=now)
    except ValueError as e:
        raise ValidationError(name, f"{name}: {e}") from e


def _apply_dates_items(params: _Params, current: _Relative, now: datetime) -> _Relative:
    """Fold the items of a ``dates`` parameter (allDates, lastdays:N, month:YYYY-MM)."""
    name = params.name("dates")
    prev_was_month = False
    for item in params.get_list("dates"):
        kind, _, arg = item.partition(":")
        if kind == "allDates" and not arg:
            current = _ALL_DATES
            prev_was_month = False
        elif kind == "lastdays":
            current = ("lastdays", (_lastdays(name, _parse_int(name, arg), now),))
            prev_was_month = False
        elif kind == "month":
            rng = _month(name, arg)
            if prev_was_month:
                current = ("months", current[1] + (rng,))
            else:
                current = ("months", (rng,))
            prev_was_month = True
        else:
            raise ValidationError(
                name, f"{name} items must be allDates, lastdays:N or month:YYYY-MM, got {item!r}"
            )
    return current


def _resolve_dates(params: _Params, now: datetime) -> _Relative:
    relative = _ALL_DATES
    for key in params.values:
        if key not in _RELATIVE_DATE_PARAMS:
            continue
        if key == "lastdays":
            days = params.get_int(key)
            relative = ("lastdays", (_lastdays(params.name(key), days, now),))
        elif key == "months":
            months = params.get_list(key)
            if months:
                relative = ("months", tuple(_month(params.name(key), m) for m in months))
        else:
            relative = _apply_dates_items(params, relative, now)

    raw_from = params.get("date_from")
    raw_to = params.get("date_to")
    if raw_from is None and raw_to is None:
        return relative

    start = _date_bound(params, "date_from")
    end = _date_bound(params, "date_to")
    if start is not None and end is not None and start > end:
        raise ValidationError(params.name("date_from"), "date_from must not be after date_to")
    if relative[0] != "all":
        logger.debug("Absolute date bounds override the %s shortcut", relative[0])
    return ("absolute", (DateRange(start=start, end=end),))


def _date_bound(params: _Params, key: str) -> datetime | None:
    value = params.get(key)
    if value is None:
        return None
    try:
        return parse_date_bound(value)
    except (ValueError, OverflowError, OSError) as e:
        name = params.name(key)
        raise ValidationError(
            name, f"{name} must be a unix timestamp or ISO-8601 datetime, got {value!r}"
        ) from e


def _fold(requested: frozenset | None, allowed: frozenset | None) -> frozenset | None:
    if allowed is None:
        return requested
    if requested is None:
        return allowed
    return requested & allowed


def compile_query(
    raw: Mapping[str, Any],
    *,
    access: ReadAccess | None = None,
    config: EngineConfig | None = None,
    now: datetime | None = None,
) -> CompiledQuery:
    """Validate raw parameters and build the canonical query."""
    cfg = config or EngineConfig()
    if access is not None and access.denies_everything():
        raise AccessDeniedError("Sorry, you are not allowed to view events.")

    params = _Params(raw)
    now = now or datetime.now(UTC)

    per_page = params.get_int("per_page")
    per_page = cfg.default_per_page if per_page is None else min(max(per_page, 1), cfg.max_per_page)

    page = params.get_int("page")
    if page is not None and page < 1:
        raise ValidationError(params.name("page"), f"{params.name('page')} must be >= 1")
    offset = params.get_int("offset")
    since_id = params.get_int("since_id")
    max_id_first_page = params.get_int("max_id_first_page")
    log_row_id = params.get_int("log_row_id")

    users = params.get_int_list("users")
    user = params.get_int("user")
    if user is not None and user not in users:
        users = users + (user,)

    include = params.get_int_list("include")

    return_type = ReturnType.OVERVIEW
    if params.get("return_type") is not None:
        try:
            return_type = ReturnType(str(params.get("return_type")).strip().lower())
        except ValueError as e:
            name = params.name("return_type")
            raise ValidationError(name, f"{name} must be 'overview' or 'occasions'") from e

    occasions_id: str | None = None
    if params.get("occasions_id") is not None:
        occasions_id = str(params.get("occasions_id")).strip()
        if not occasions_id:
            raise ValidationError(params.name("occasions_id"), "occasionsID must not be empty")
    occasions_count = params.get_int("occasions_count")
    occasions_max = params.get_int("occasions_count_max_return")

    occasions = occasions_id is not None or return_type is ReturnType.OCCASIONS
    occasions_limit: int | None = None
    if occasions:
        if occasions_id is None:
            raise ValidationError(
                params.name("occasions_id"), "return_type=occasions requires occasionsID"
            )
        if occasions_count is None or occasions_count < 1:
            raise ValidationError(
                params.name("occasions_count"), "occasionsID requires occasionsCount >= 1"
            )
        occasions_limit = min(occasions_count, cfg.lookahead_cap)
        if occasions_max is not None and occasions_max >= 1:
            occasions_limit = min(occasions_limit, occasions_max)

    mode = select_mode(
        page=page,
        offset=offset,
        since_id=since_id,
        max_id_first_page=max_id_first_page,
        occasions=occasions,
    )

    date_source, date_ranges = _resolve_dates(params, now)

    loggers_req = frozenset(params.get_list("loggers")) or None
    levels_req = _parse_levels(params.name("loglevels"), params.get_list("loglevels")) or None
    messages = _parse_messages(params.name("messages"), params.get_list("messages")) or None

    search = params.get("search")
    terms: tuple[str, ...] = ()
    if search is not None:
        terms = tuple(dict.fromkeys(t.lower() for t in str(search).split()))

    filters = FilterSet(
        loggers=_fold(loggers_req, access.loggers if access else None),
        levels=_fold(levels_req, access.levels if access else None),
        users=frozenset(users) or None,
        messages=messages,
        include_ids=frozenset(include) or None,
        since_id=since_id,
        max_id=max_id_first_page,
        before_id=log_row_id,
        date_ranges=date_ranges,
        date_source=date_source,
        search_terms=terms,
        occasion_id=occasions_id,
        readable=access.predicate if access else None,
    )
    page_req = PageRequest(mode=mode, page=page or 1, per_page=per_page, offset=offset)
    return CompiledQuery(
        filters=filters,
        page=page_req,
        return_type=ReturnType.OCCASIONS if occasions else return_type,
        occasions_limit=occasions_limit,
    )


def compile_filters(
    raw: Mapping[str, Any],
    *,
    access: ReadAccess | None = None,
    config: EngineConfig | None = None,
    now: datetime | None = None,
) -> FilterSet:
    """Compile only the predicate part of a query."""
    return compile_query(raw, access=access, config=config, now=now).filters
