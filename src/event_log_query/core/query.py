"""Query entry points.

This module is the main integration point: it compiles raw parameters, asks
the store for the raw row window and the total, collapses occasions and
assembles the :class:`QueryResult`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from .access import ReadAccess
from .config import EngineConfig, resolve_engine_config
from .errors import NotFoundError
from .filters import CompiledQuery, compile_query
from .models import Event, OccasionRow, PaginationMode, QueryResult
from .occasions import collapse_occasions
from .pagination import page_info, plan_window
from .storage.base import EventStore

logger = logging.getLogger(__name__)


async def execute(
    store: EventStore, compiled: CompiledQuery, *, config: EngineConfig
) -> QueryResult:
    """Run a compiled query against a store."""
    filters = compiled.filters
    page = compiled.page
    window = plan_window(page, occasions_limit=compiled.occasions_limit)

    # Total and rows come from one read with one FilterSet, so in snapshot mode
    # both are computed against the same frozen prefix of the log.
    total, fetched = await store.window(
        filters, offset=window.offset, limit=window.limit + window.peek
    )

    in_window = fetched[: window.limit]
    peeked = fetched[window.limit :]

    rows: list[OccasionRow]
    if page.mode is PaginationMode.OCCASIONS:
        rows = [OccasionRow(event=e, count=1) for e in in_window]
    else:
        rows = collapse_occasions(in_window, lookahead_cap=config.lookahead_cap)

    continues = bool(
        rows
        and peeked
        and peeked[0].occasion_id == rows[-1].event.occasion_id
        and rows[-1].count < config.lookahead_cap
    )

    info = page_info(page, total)
    logger.debug(
        "query mode=%s offset=%d limit=%d total=%d raw=%d rows=%d",
        page.mode.value,
        window.offset,
        window.limit,
        total,
        len(in_window),
        len(rows),
    )
    return QueryResult(
        rows=tuple(rows),
        total_row_count=total,
        page_current=info.page_current,
        pages_count=info.pages_count,
        mode=page.mode,
        has_prev=info.has_prev,
        has_next=info.has_next,
        last_row_continues=continues,
        max_id=in_window[0].id if in_window else None,
        min_id=in_window[-1].id if in_window else None,
    )


async def query(
    store: EventStore,
    raw: Mapping[str, Any] | None = None,
    *,
    access: ReadAccess | None = None,
    config: EngineConfig | None = None,
    now: datetime | None = None,
) -> QueryResult:
    """Compile ``raw`` parameters and run the query.

    Raises ValidationError, AccessDeniedError or StorageError; a valid query
    that matches nothing returns an empty result.
    """
    cfg = resolve_engine_config(config)
    compiled = compile_query(raw or {}, access=access, config=cfg, now=now)
    return await execute(store, compiled, config=cfg)


async def get_event(
    store: EventStore,
    event_id: int | str,
    *,
    access: ReadAccess | None = None,
    config: EngineConfig | None = None,
) -> Event:
    """Fetch one event.

    Missing and unreadable events both raise NotFoundError, so callers cannot
    probe for the existence of events they may not read.
    """
    result = await query(
        store,
        {"include": [event_id], "per_page": 1},
        access=access,
        config=config,
    )
    if not result.rows:
        raise NotFoundError(f"Invalid event ID: {event_id}")
    return result.rows[0].event
