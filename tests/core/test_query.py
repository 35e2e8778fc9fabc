from __future__ import annotations

import pytest

from event_log_query.core.access import ReadAccess
from event_log_query.core.config import EngineConfig
from event_log_query.core.errors import NotFoundError, StorageError, ValidationError
from event_log_query.core.models import FilterSet, LogLevel, PaginationMode
from event_log_query.core.query import get_event, query
from event_log_query.core.storage.jsonl import JsonLinesEventStore
from event_log_query.core.storage.memory import InMemoryEventStore


def _failed_login(make_event, event_id: int):
    return make_event(
        event_id,
        level=LogLevel.WARNING,
        message_key="user_login_failed",
        message="Failed to login with username {login}",
        context={"login": "admin", "_server_remote_addr": "10.0.0.1"},
    )


class _BrokenStore:
    async def scan(self, filters: FilterSet, *, offset: int, limit: int):
        raise StorageError("database is locked")

    async def count(self, filters: FilterSet) -> int:
        raise StorageError("database is locked")

    async def window(self, filters: FilterSet, *, offset: int, limit: int):
        raise StorageError("database is locked")


@pytest.mark.asyncio
async def test_repeated_events_collapse_into_one_row(make_event) -> None:
    store = InMemoryEventStore(_failed_login(make_event, i) for i in range(1, 6))

    result = await query(store, {"per_page": 10})

    assert len(result.rows) == 1
    assert result.rows[0].event.id == 5
    assert result.rows[0].count == 5
    assert result.total_row_count == 5
    assert result.pages_count == 1
    assert result.raw_row_count == 5


@pytest.mark.asyncio
async def test_since_id_returns_only_newer_events(distinct_events) -> None:
    store = InMemoryEventStore(distinct_events(12))

    result = await query(store, {"since_id": 9})

    assert result.mode is PaginationMode.SINCE_ID
    assert [r.event.id for r in result.rows] == [12, 11, 10]
    assert result.total_row_count == 3


@pytest.mark.asyncio
async def test_since_id_at_head_is_empty(distinct_events) -> None:
    store = InMemoryEventStore(distinct_events(12))

    result = await query(store, {"since_id": 12})

    assert result.rows == ()
    assert result.total_row_count == 0
    assert result.pages_count == 0
    assert result.max_id is None


@pytest.mark.asyncio
async def test_offset_pagination_over_distinct_events(distinct_events) -> None:
    store = InMemoryEventStore(distinct_events(25))

    result = await query(store, {"per_page": 10, "page": 3})

    assert [r.event.id for r in result.rows] == [5, 4, 3, 2, 1]
    assert result.total_row_count == 25
    assert result.pages_count == 3
    assert result.page_current == 3
    assert result.has_prev is True
    assert result.has_next is False
    assert (result.max_id, result.min_id) == (5, 1)


@pytest.mark.asyncio
async def test_explicit_offset(distinct_events) -> None:
    store = InMemoryEventStore(distinct_events(25))

    result = await query(store, {"per_page": 10, "offset": 3})

    assert [r.event.id for r in result.rows][:2] == [22, 21]


@pytest.mark.asyncio
async def test_row_counts_sum_to_raw_window(make_event) -> None:
    events = []
    for i in range(1, 21):
        if i % 4 == 0:
            events.append(make_event(i))
        else:
            events.append(_failed_login(make_event, i))
    store = InMemoryEventStore(events)

    result = await query(store, {"per_page": 7, "page": 2})

    assert result.raw_row_count == 7
    assert all(r.count >= 1 for r in result.rows)


@pytest.mark.asyncio
async def test_same_query_is_idempotent(distinct_events) -> None:
    store = InMemoryEventStore(distinct_events(15))
    params = {"per_page": 4, "page": 2, "loglevels": "info"}

    assert await query(store, params) == await query(store, params)


@pytest.mark.asyncio
async def test_snapshot_pages_ignore_later_inserts(make_event, distinct_events) -> None:
    store = InMemoryEventStore(distinct_events(30))

    first = await query(store, {"per_page": 10, "page": 1, "max_id_first_page": 30})
    for i in range(31, 36):
        store.append(make_event(i, message_key="option_updated", context={"n": i}))
    second = await query(store, {"per_page": 10, "page": 2, "max_id_first_page": 30})

    assert first.mode is PaginationMode.SNAPSHOT
    assert [r.event.id for r in first.rows] == list(range(30, 20, -1))
    assert [r.event.id for r in second.rows] == list(range(20, 10, -1))
    assert second.total_row_count == 30


@pytest.mark.asyncio
async def test_without_snapshot_inserts_shift_pages(make_event, distinct_events) -> None:
    store = InMemoryEventStore(distinct_events(30))
    for i in range(31, 36):
        store.append(make_event(i, message_key="option_updated", context={"n": i}))

    result = await query(store, {"per_page": 10, "page": 2})

    assert [r.event.id for r in result.rows][0] == 25


@pytest.mark.asyncio
async def test_last_row_continues_on_next_page(make_event, distinct_events) -> None:
    events = distinct_events(2) + [_failed_login(make_event, i) for i in range(3, 8)]
    store = InMemoryEventStore(events)

    result = await query(store, {"per_page": 3})

    assert [(r.event.id, r.count) for r in result.rows] == [(7, 3)]
    assert result.last_row_continues is True
    assert result.has_next is True


@pytest.mark.asyncio
async def test_lookahead_cap_from_config(make_event) -> None:
    store = InMemoryEventStore(_failed_login(make_event, i) for i in range(1, 6))

    result = await query(store, {}, config=EngineConfig(lookahead_cap=2))

    assert [r.count for r in result.rows] == [2, 2, 1]


@pytest.mark.asyncio
async def test_filters_restrict_rows_and_total(make_event) -> None:
    store = InMemoryEventStore(
        [
            make_event(1, logger="PostLogger", message_key="post_updated"),
            make_event(2, level=LogLevel.ERROR),
            make_event(3, message="User {name} logged in", context={"name": "Ada"}),
        ]
    )

    by_level = await query(store, {"loglevels": "error"})
    by_search = await query(store, {"search": "ADA"})
    by_logger = await query(store, {"loggers": ["PostLogger"]})

    assert [r.event.id for r in by_level.rows] == [2]
    assert [r.event.id for r in by_search.rows] == [3]
    assert by_logger.total_row_count == 1


@pytest.mark.asyncio
async def test_occasion_expansion_lists_raw_members(make_event) -> None:
    events = [_failed_login(make_event, i) for i in range(1, 7)]
    store = InMemoryEventStore(events)
    occasion = events[0].occasion_id

    result = await query(store, {"occasionsID": occasion, "occasionsCount": 4, "logRowID": 6})

    assert result.mode is PaginationMode.OCCASIONS
    assert [(r.event.id, r.count) for r in result.rows] == [(5, 1), (4, 1), (3, 1), (2, 1)]
    assert result.pages_count == 1
    assert result.has_next is False


@pytest.mark.asyncio
async def test_occasion_expansion_respects_max_return(make_event) -> None:
    events = [_failed_login(make_event, i) for i in range(1, 7)]
    store = InMemoryEventStore(events)

    result = await query(
        store,
        {
            "occasionsID": events[0].occasion_id,
            "occasionsCount": 6,
            "occasionsCountMaxReturn": 2,
        },
    )

    assert [r.event.id for r in result.rows] == [6, 5]


@pytest.mark.asyncio
async def test_validation_error_propagates(distinct_events) -> None:
    store = InMemoryEventStore(distinct_events(3))
    with pytest.raises(ValidationError):
        await query(store, {"per_page": "abc"})


@pytest.mark.asyncio
async def test_storage_error_propagates() -> None:
    with pytest.raises(StorageError, match="locked"):
        await query(_BrokenStore(), {})


@pytest.mark.asyncio
async def test_access_allow_list_hides_events(make_event) -> None:
    store = InMemoryEventStore(
        [make_event(1), make_event(2, logger="PostLogger", message_key="post_updated")]
    )

    result = await query(store, {}, access=ReadAccess.for_loggers(["PostLogger"]))

    assert [r.event.id for r in result.rows] == [2]
    assert result.total_row_count == 1


@pytest.mark.asyncio
async def test_get_event(distinct_events) -> None:
    store = InMemoryEventStore(distinct_events(5))

    event = await get_event(store, 3)

    assert event.id == 3


@pytest.mark.asyncio
async def test_get_event_missing_is_not_found(distinct_events) -> None:
    store = InMemoryEventStore(distinct_events(5))
    with pytest.raises(NotFoundError, match="Invalid event ID: 99"):
        await get_event(store, 99)


@pytest.mark.asyncio
async def test_get_event_unreadable_is_not_found(make_event) -> None:
    store = InMemoryEventStore([make_event(42)])
    access = ReadAccess.for_loggers(["PostLogger"])

    with pytest.raises(NotFoundError):
        await get_event(store, 42, access=access)


@pytest.mark.asyncio
async def test_hidden_event_does_not_split_a_run(make_event) -> None:
    store = InMemoryEventStore(
        [
            _failed_login(make_event, 1),
            make_event(2, logger="PostLogger", message_key="post_updated"),
            _failed_login(make_event, 3),
        ]
    )

    everything = await query(store, {})
    user_only = await query(store, {"loggers": "UserLogger"})

    assert [(r.event.id, r.count) for r in everything.rows] == [(3, 1), (2, 1), (1, 1)]
    assert [(r.event.id, r.count) for r in user_only.rows] == [(3, 2)]
    assert user_only.total_row_count == 2


@pytest.mark.asyncio
async def test_query_reads_the_log_once(tmp_path, write_events) -> None:
    class CountingStore(JsonLinesEventStore):
        loads = 0

        async def _load(self):
            type(self).loads += 1
            return await super()._load()

    p = tmp_path / "events.jsonl"
    write_events(
        p,
        [
            {"id": i, "date": "2025-12-30T08:00:00Z", "logger": "UserLogger", "context": {"n": i}}
            for i in range(1, 6)
        ],
    )
    store = CountingStore(p)

    result = await query(store, {"per_page": 2, "page": 2})

    assert CountingStore.loads == 1
    assert [r.event.id for r in result.rows] == [3, 2]
    assert result.total_row_count == 5
