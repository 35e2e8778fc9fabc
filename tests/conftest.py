from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from event_log_query.core.models import Event, Initiator, LogLevel
from event_log_query.core.occasions import occasion_id_for

BASE_TS = datetime(2025, 12, 30, 8, 0, 0, tzinfo=UTC)


@pytest.fixture
def make_event() -> Callable[..., Event]:
    def _make(
        event_id: int,
        *,
        logger: str = "UserLogger",
        level: LogLevel = LogLevel.INFO,
        message_key: str = "user_logged_in",
        message: str = "Logged in",
        context: Mapping[str, Any] | None = None,
        initiator: Initiator | None = None,
        timestamp: datetime | None = None,
    ) -> Event:
        ctx = dict(context or {})
        return Event(
            id=event_id,
            timestamp=timestamp or BASE_TS + timedelta(minutes=event_id),
            logger=logger,
            level=level,
            message_key=message_key,
            message=message,
            context=ctx,
            initiator=initiator or Initiator(),
            occasion_id=occasion_id_for(logger, message_key, ctx),
        )

    return _make


@pytest.fixture
def distinct_events(make_event) -> Callable[[int], list[Event]]:
    """Events 1..n, each its own occasion."""

    def _make(n: int) -> list[Event]:
        return [
            make_event(i, message_key="option_updated", message="Updated {n}", context={"n": i})
            for i in range(1, n + 1)
        ]

    return _make


@pytest.fixture
def write_events() -> Callable[[Path, list[dict[str, Any]]], None]:
    def _write(path: Path, records: list[dict[str, Any]]) -> None:
        path.write_text("".join(json.dumps(r) + "\n" for r in records), encoding="utf-8")

    return _write
