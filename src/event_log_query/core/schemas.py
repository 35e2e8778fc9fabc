"""Pydantic models for stored event records and JSON responses."""

from __future__ import annotations

from datetime import UTC, datetime, tzinfo
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import Event, Initiator, InitiatorKind, LogLevel, OccasionRow, QueryResult
from .occasions import occasion_id_for


class EventRecord(BaseModel):
    """One event as persisted by the write path (one JSON object per line)."""

    model_config = ConfigDict(extra="ignore")

    id: int = Field(ge=1)
    date: datetime
    logger: str = Field(min_length=1)
    level: LogLevel = LogLevel.INFO
    message_key: str = ""
    message: str = ""
    context: dict[str, Any] = Field(default_factory=dict)
    initiator: InitiatorKind = InitiatorKind.OTHER
    user_id: int | None = None
    occasion_id: str | None = None

    @field_validator("level", "initiator", mode="before")
    @classmethod
    def _lower(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    def to_event(self) -> Event:
        ts = self.date if self.date.tzinfo is not None else self.date.replace(tzinfo=UTC)
        user_id = self.user_id
        if user_id is None and self.initiator is InitiatorKind.USER:
            raw = self.context.get("_user_id")
            if isinstance(raw, int) and not isinstance(raw, bool):
                user_id = raw
            elif isinstance(raw, str) and raw.isascii() and raw.isdigit():
                user_id = int(raw)
        return Event(
            id=self.id,
            timestamp=ts.astimezone(UTC),
            logger=self.logger,
            level=self.level,
            message_key=self.message_key,
            message=self.message,
            context=dict(self.context),
            initiator=Initiator(kind=self.initiator, user_id=user_id),
            occasion_id=self.occasion_id
            or occasion_id_for(self.logger, self.message_key, self.context),
        )


class EventRow(BaseModel):
    id: int = Field(description="Unique, monotonically increasing event id.")
    date: str = Field(description="Event time in the configured local time zone (ISO-8601).")
    date_gmt: str = Field(description="Event time in UTC (ISO-8601).")
    logger: str
    loglevel: str
    message_key: str
    message: str = Field(description="Message with context placeholders interpolated.")
    message_uninterpolated: str
    initiator: str
    initiator_user_id: int | None = None
    initiator_label: str = Field(description='Human-readable initiator, e.g. "user #3" or "CLI".')
    occasions_id: str
    subsequent_occasions_count: int = Field(
        ge=1, description="Number of consecutive identical events this row stands for."
    )
    context: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_row(cls, row: OccasionRow, *, tz: tzinfo) -> EventRow:
        e = row.event
        return cls(
            id=e.id,
            date=e.timestamp.astimezone(tz).isoformat(),
            date_gmt=e.timestamp.astimezone(UTC).isoformat(),
            logger=e.logger,
            loglevel=e.level.value,
            message_key=e.message_key,
            message=e.interpolated_message(),
            message_uninterpolated=e.message,
            initiator=e.initiator.kind.value,
            initiator_user_id=e.initiator.user_id,
            initiator_label=e.initiator.label(),
            occasions_id=e.occasion_id,
            subsequent_occasions_count=row.count,
            context=dict(e.context),
        )


class QueryResponse(BaseModel):
    events: list[EventRow] = Field(default_factory=list)
    total_row_count: int = Field(ge=0, description="Raw matching events, before collapsing.")
    page_current: int
    pages_count: int
    mode: str
    has_prev: bool = False
    has_next: bool = False
    last_row_continues: bool = Field(
        default=False, description="The last row's occasion continues on the next page."
    )
    max_id: int | None = None
    min_id: int | None = None

    @classmethod
    def from_result(cls, result: QueryResult, *, tz: tzinfo) -> QueryResponse:
        return cls(
            events=[EventRow.from_row(r, tz=tz) for r in result.rows],
            total_row_count=result.total_row_count,
            page_current=result.page_current,
            pages_count=result.pages_count,
            mode=result.mode.value,
            has_prev=result.has_prev,
            has_next=result.has_next,
            last_row_continues=result.last_row_continues,
            max_id=result.max_id,
            min_id=result.min_id,
        )


class ErrorDetail(BaseModel):
    kind: str
    detail: str
    param: str | None = None
