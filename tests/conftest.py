"""Shared pytest fixtures for building event streams and adherence states."""

from __future__ import annotations

import itertools
from datetime import date, datetime, timedelta, timezone

import pytest

from bridge_adherence.eventstream import (
    EventStream,
    EventStreamAdherenceReport,
    EventStreamDay,
    EventStreamWindow,
    StaticEventStreamSource,
)
from bridge_adherence.state import AdherenceState

NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)
# Enrollment ten days before NOW: offset 10 is today.
ENROLLMENT_DATE = date(2026, 2, 28)

_window_ids = itertools.count(1)


def build_window(end_day: int, *, guid: str | None = None, state: str = "not_yet_available"):
    guid = guid or f"tw-{next(_window_ids)}"
    return EventStreamWindow(
        session_instance_guid=f"instance-{guid}",
        time_window_guid=guid,
        state=state,
        end_day=end_day,
    )


def build_day(
    session_guid: str,
    start_day: int,
    windows=(),
    *,
    name: str | None = None,
    symbol: str | None = None,
    start_date: date | None = None,
    dated: bool = True,
    study_burst_id: str | None = None,
    study_burst_num: int | None = None,
):
    if start_date is None and dated:
        start_date = ENROLLMENT_DATE + timedelta(days=start_day)
    return EventStreamDay(
        session_guid=session_guid,
        session_name=name if name is not None else f"Session {session_guid}",
        session_symbol=symbol,
        study_burst_id=study_burst_id,
        study_burst_num=study_burst_num,
        start_day=start_day,
        start_date=start_date,
        time_windows=list(windows),
    )


def build_stream(start_event_id: str, *days, study_burst_id=None, study_burst_num=None):
    by_day: dict[int, list[EventStreamDay]] = {}
    for day in days:
        by_day.setdefault(day.start_day, []).append(day)
    return EventStream(
        start_event_id=start_event_id,
        study_burst_id=study_burst_id,
        study_burst_num=study_burst_num,
        by_day_entries=by_day,
    )


@pytest.fixture
def make_window():
    return build_window


@pytest.fixture
def make_day():
    return build_day


@pytest.fixture
def make_stream():
    return build_stream


@pytest.fixture
def make_state():
    def _make(days_since_event=None, *, now: datetime = NOW, client_time_zone: str | None = "UTC"):
        return AdherenceState(
            now=now,
            client_time_zone=client_time_zone,
            days_since_event=dict(days_since_event or {}),
        )

    return _make


@pytest.fixture
def static_source():
    def _make(*streams):
        return StaticEventStreamSource(EventStreamAdherenceReport(streams=list(streams)))

    return _make
