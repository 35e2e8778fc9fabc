"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: translate inputs into core calls, and return
JSON-serializable data structures. Engine errors are returned as
``{"error": {...}}`` payloads instead of crossing the boundary as exceptions.
"""

from __future__ import annotations

import logging
from typing import Any

from event_log_query.core.access import ReadAccess
from event_log_query.core.config import EngineConfig, resolve_engine_config
from event_log_query.core.errors import ConfigurationError, QueryError, StorageError
from event_log_query.core.models import OccasionRow
from event_log_query.core.query import get_event, query
from event_log_query.core.schemas import ErrorDetail, EventRow, QueryResponse
from event_log_query.core.storage.base import EventStore

logger = logging.getLogger(__name__)


def _error_payload(exc: QueryError) -> dict[str, Any]:
    if isinstance(exc, (StorageError, ConfigurationError)):
        logger.warning("%s failure: %s", exc.kind.capitalize(), exc.detail)
    else:
        logger.info("Query rejected (%s): %s", exc.kind, exc.detail)
    return {"error": ErrorDetail(**exc.to_dict()).model_dump(exclude_none=True)}


async def query_events_impl(
    store: EventStore,
    *,
    access: ReadAccess | None = None,
    config: EngineConfig | None = None,
    **params: Any,
) -> dict[str, Any]:
    """Implementation for the `query_events` MCP tool.

    ``params`` are passed to the filter compiler unchanged; ``None`` values
    are treated as absent.
    """
    try:
        cfg = resolve_engine_config(config)
        result = await query(store, params, access=access, config=cfg)
    except QueryError as exc:
        return _error_payload(exc)
    return QueryResponse.from_result(result, tz=cfg.timezone).model_dump(mode="json")


async def get_event_impl(
    store: EventStore,
    event_id: int | str,
    *,
    access: ReadAccess | None = None,
    config: EngineConfig | None = None,
) -> dict[str, Any]:
    """Implementation for the `get_event` MCP tool."""
    try:
        cfg = resolve_engine_config(config)
        event = await get_event(store, event_id, access=access, config=cfg)
    except QueryError as exc:
        return _error_payload(exc)
    return EventRow.from_row(OccasionRow(event=event), tz=cfg.timezone).model_dump(mode="json")
