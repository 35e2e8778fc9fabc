"""JSON-lines event store.

Each line of the file is one event record written by the append-only write
path. The file is read once per request by :meth:`JsonLinesEventStore.window`,
so the total and the rows of a page come from the same state of the log while
appends made between page fetches are visible to the next query.
"""

from __future__ import annotations

import gzip
import logging
import zlib
from contextlib import asynccontextmanager
from pathlib import Path

import aiofiles
from aiofiles.threadpool import wrap
from pydantic import ValidationError as RecordValidationError

from ..errors import StorageError
from ..models import Event, FilterSet
from ..schemas import EventRecord
from .base import count_events, select_events, select_window

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _open_text(path: Path, *, encoding: str):
    """Open an events file for async text reading (plain or gzip)."""
    if path.suffix.lower() == ".gz":
        f = gzip.open(path, mode="rt", encoding=encoding)
        af = wrap(f)
        try:
            yield af
        finally:
            await af.close()
    else:
        async with aiofiles.open(path, encoding=encoding) as f:
            yield f


class JsonLinesEventStore:
    """Read-only store over a JSON-lines file of event records."""

    def __init__(self, path: str | Path, *, encoding: str = "utf-8") -> None:
        self.path = Path(path)
        self.encoding = encoding

    async def _load(self) -> list[Event]:
        if not self.path.is_file():
            raise StorageError(f"Events file not found: {self.path}")

        events: list[Event] = []
        line_no = 0
        try:
            async with _open_text(self.path, encoding=self.encoding) as f:
                async for line in f:
                    line_no += 1
                    s = line.strip()
                    if not s:
                        continue
                    events.append(EventRecord.model_validate_json(s).to_event())
        except RecordValidationError as exc:
            raise StorageError(f"{self.path}:{line_no}: invalid event record: {exc}") from exc
        except (OSError, EOFError, zlib.error, UnicodeDecodeError) as exc:
            raise StorageError(f"Failed to read events file {self.path}: {exc}") from exc

        events.sort(key=lambda e: e.id, reverse=True)
        for newer, older in zip(events, events[1:]):
            if newer.id == older.id:
                raise StorageError(f"{self.path}: duplicate event id {newer.id}")
        logger.debug("Loaded %d events from %s", len(events), self.path)
        return events

    async def scan(self, filters: FilterSet, *, offset: int, limit: int) -> list[Event]:
        return select_events(await self._load(), filters, offset=offset, limit=limit)

    async def count(self, filters: FilterSet) -> int:
        return count_events(await self._load(), filters)

    async def window(
        self, filters: FilterSet, *, offset: int, limit: int
    ) -> tuple[int, list[Event]]:
        return select_window(await self._load(), filters, offset=offset, limit=limit)
