"""Weekly adherence report models.

The report is a dense grid: ``by_day_entries`` always has the seven
day-of-week keys 0..6, and every day holds exactly one cell per row in
``rows`` order, so consumers can index cells by (day, row index) directly.
Cells only carry what varies per day; session naming, week and study burst
live on the row.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .eventstream import EventStreamDay, EventStreamWindow

DAYS_PER_WEEK = 7


def display_label(
    session_name: str | None,
    week: int | None,
    study_burst_id: str | None,
    study_burst_num: int | None,
) -> str:
    if study_burst_id is not None:
        return f"{study_burst_id} {study_burst_num} / Week {week} / {session_name}"
    return f"Week {week} / {session_name}"


def searchable_label(
    session_name: str | None,
    week: int | None,
    study_burst_id: str | None,
    study_burst_num: int | None,
) -> str:
    # Colons delimit every component so ":Week 1:" never matches inside ":Week 10:".
    if study_burst_id is not None:
        return f":{study_burst_id} {study_burst_num}:Week {week}:{session_name}:"
    return f":Week {week}:{session_name}:"


class ReportRow(BaseModel):
    """Label and session identity of one row of the weekly grid."""

    model_config = ConfigDict(frozen=True)

    label: str
    searchable_label: str
    session_guid: str | None = None
    session_name: str | None = None
    session_symbol: str | None = None
    study_burst_id: str | None = None
    study_burst_num: int | None = None
    week: int | None = None

    @classmethod
    def for_day(cls, day: EventStreamDay, week: int) -> ReportRow:
        return cls(
            label=display_label(day.session_name, week, day.study_burst_id, day.study_burst_num),
            searchable_label=searchable_label(
                day.session_name, week, day.study_burst_id, day.study_burst_num
            ),
            session_guid=day.session_guid,
            session_name=day.session_name,
            session_symbol=day.session_symbol,
            study_burst_id=day.study_burst_id,
            study_burst_num=day.study_burst_num,
            week=week,
        )


class WeeklyReportCell(BaseModel):
    """One (day, row) cell. Padding cells have no session, start day or windows."""

    model_config = ConfigDict(frozen=True)

    session_guid: str | None = None
    start_day: int | None = None
    start_date: date | None = None
    time_windows: dict[str, EventStreamWindow] = Field(default_factory=dict)

    @classmethod
    def from_day(cls, day: EventStreamDay) -> WeeklyReportCell:
        return cls(
            session_guid=day.session_guid,
            start_day=day.start_day,
            start_date=day.start_date,
            time_windows=dict(day.time_windows),
        )

    @classmethod
    def placeholder(cls) -> WeeklyReportCell:
        return cls()

    @property
    def is_placeholder(self) -> bool:
        return self.session_guid is None

    @property
    def is_active(self) -> bool:
        """True when the cell has a scheduled date and at least one window."""
        return self.start_date is not None and bool(self.time_windows)


class NextActivity(BaseModel):
    """The next scheduled session, shown when nothing is active this week."""

    model_config = ConfigDict(frozen=True)

    session_guid: str
    session_name: str | None = None
    session_symbol: str | None = None
    week: int | None = None
    study_burst_id: str | None = None
    study_burst_num: int | None = None
    start_date: date

    @classmethod
    def create(
        cls,
        day: EventStreamDay,
        *,
        week: int | None,
        study_burst_id: str | None,
        study_burst_num: int | None,
    ) -> NextActivity:
        return cls(
            session_guid=day.session_guid,
            session_name=day.session_name,
            session_symbol=day.session_symbol,
            week=week,
            study_burst_id=study_burst_id,
            study_burst_num=study_burst_num,
            start_date=day.start_date,
        )


class WeeklyAdherenceReport(BaseModel):
    """Dense seven-day adherence grid for one participant's current week."""

    model_config = ConfigDict(frozen=True)

    by_day_entries: dict[int, list[WeeklyReportCell]]
    created_on: datetime
    client_time_zone: str | None = None
    weekly_adherence_percent: int = Field(ge=0, le=100)
    next_activity: NextActivity | None = None
    rows: list[ReportRow] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_dense_grid(self) -> "WeeklyAdherenceReport":
        if sorted(self.by_day_entries) != list(range(DAYS_PER_WEEK)):
            raise ValueError("by_day_entries must have exactly the day-of-week keys 0..6")
        for day_of_week, cells in self.by_day_entries.items():
            if len(cells) != len(self.rows):
                raise ValueError(
                    f"day {day_of_week} has {len(cells)} cells for {len(self.rows)} rows"
                )
        return self

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
