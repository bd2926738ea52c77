"""Event stream contract: the raw per-event schedules consumed by the weekly report.

An event stream is the sparse schedule of one anchor event (enrollment, a
custom trigger, a study burst). It maps a day offset relative to the anchor to
the sessions that are scheduled on that day. Streams are computed upstream and
handed to the weekly report generator already filled in; these models validate
that hand-off so malformed input fails here instead of producing a corrupt grid.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator, Mapping
from datetime import date
from typing import Any, Protocol

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from .state import AdherenceState

SESSION_COMPLETION_STATES: tuple[str, ...] = (
    "not_applicable",
    "not_yet_available",
    "unstarted",
    "started",
    "completed",
    "abandoned",
    "expired",
    "declined",
)


def _normalize_non_empty(value: str, *, field_name: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(f"{field_name} must not be empty")
    return normalized


def _new_entry_id() -> str:
    return uuid.uuid4().hex


class EventStreamWindow(BaseModel):
    """One time window of a session instance, as scheduled for one day."""

    model_config = ConfigDict(frozen=True)

    session_instance_guid: str
    time_window_guid: str
    state: str = "not_yet_available"
    start_time: str | None = None
    end_time: str | None = None
    end_day: int
    end_date: date | None = None

    @field_validator("session_instance_guid", "time_window_guid")
    @classmethod
    def validate_guid(cls, value: str, info: ValidationInfo) -> str:
        return _normalize_non_empty(value, field_name=info.field_name)

    @field_validator("state")
    @classmethod
    def validate_state(cls, value: str) -> str:
        normalized = _normalize_non_empty(value, field_name="state").lower()
        if normalized not in SESSION_COMPLETION_STATES:
            allowed = ", ".join(SESSION_COMPLETION_STATES)
            raise ValueError(f"state must be one of: {allowed}")
        return normalized


class EventStreamDay(BaseModel):
    """All windows of one session that start on one day of an event stream.

    ``entry_id`` is the identity of the occurrence. Two days with the same
    content but different ids are different occurrences; the weekly report
    deduplicates on the id, never on content.
    """

    model_config = ConfigDict(frozen=True)

    entry_id: str = Field(default_factory=_new_entry_id)
    session_guid: str
    session_name: str | None = None
    session_symbol: str | None = None
    week: int | None = Field(default=None, ge=1)
    study_burst_id: str | None = None
    study_burst_num: int | None = None
    start_day: int
    start_date: date | None = None
    time_windows: dict[str, EventStreamWindow] = Field(default_factory=dict)

    @field_validator("session_guid")
    @classmethod
    def validate_session_guid(cls, value: str) -> str:
        return _normalize_non_empty(value, field_name="session_guid")

    @field_validator("time_windows", mode="before")
    @classmethod
    def key_windows_by_guid(cls, value: Any) -> Any:
        # Windows may arrive as a list; later duplicates replace earlier ones.
        if not isinstance(value, (list, tuple)):
            return value
        keyed: dict[str, Any] = {}
        for window in value:
            if isinstance(window, EventStreamWindow):
                keyed[window.time_window_guid] = window
            elif isinstance(window, Mapping):
                keyed[window.get("time_window_guid")] = window
            else:
                raise ValueError(f"time window must be an object, got {type(window).__name__}")
        return keyed

    @model_validator(mode="after")
    def validate_window_keys(self) -> "EventStreamDay":
        for guid, window in self.time_windows.items():
            if guid != window.time_window_guid:
                raise ValueError(
                    f"time window keyed as {guid!r} has time_window_guid {window.time_window_guid!r}"
                )
        return self


class EventStream(BaseModel):
    """Sparse schedule of one anchor event: day offset -> days starting on it."""

    model_config = ConfigDict(frozen=True)

    start_event_id: str
    study_burst_id: str | None = None
    study_burst_num: int | None = None
    by_day_entries: dict[int, list[EventStreamDay]] = Field(default_factory=dict)

    @field_validator("start_event_id")
    @classmethod
    def validate_start_event_id(cls, value: str) -> str:
        return _normalize_non_empty(value, field_name="start_event_id")

    @model_validator(mode="after")
    def validate_bucket_offsets(self) -> "EventStream":
        for offset, days in self.by_day_entries.items():
            for day in days:
                if day.start_day != offset:
                    raise ValueError(
                        f"event stream {self.start_event_id!r}: day of session "
                        f"{day.session_guid!r} has start_day={day.start_day} "
                        f"but is filed under offset {offset}"
                    )
        return self

    def iter_days(self) -> Iterator[EventStreamDay]:
        """Yield days in ascending offset order, each bucket in list order."""
        for offset in sorted(self.by_day_entries):
            yield from self.by_day_entries[offset]


class EventStreamAdherenceReport(BaseModel):
    """The upstream generator's output: one stream per tracked event."""

    model_config = ConfigDict(frozen=True)

    streams: list[EventStream] = Field(default_factory=list)


class EventStreamReportSource(Protocol):
    """Computes the per-event streams for a participant."""

    def generate(self, state: AdherenceState) -> EventStreamAdherenceReport: ...


class StaticEventStreamSource:
    """Source that returns a report computed elsewhere, ignoring the state."""

    def __init__(self, report: EventStreamAdherenceReport):
        self.report = report

    def generate(self, state: AdherenceState) -> EventStreamAdherenceReport:
        return self.report


def load_event_stream_report(payload: dict[str, Any]) -> EventStreamAdherenceReport:
    """Validate a JSON-shaped dict into an event stream report.

    Raises pydantic.ValidationError on invalid input.
    """
    return EventStreamAdherenceReport.model_validate(payload)
