"""Weekly adherence report generator.

Merges the per-event streams of one participant into the weekly grid:

1. Week selection: for each stream whose anchor event has happened, pick the
   days with a window overlapping the stream's current week and place them by
   day of week. Days that started before the week but are still open go on
   day 0.
2. Rows: every placed day yields a labelled row; rows with the same label
   collapse into one.
3. Padding: every day of the week gets one cell per row, in row order.
4. Lookahead: if nothing in the grid is active, find the next future session
   across all streams.
5. Scoring and assembly.

Inputs are never mutated; the grid holds new cell objects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Sequence

from .adherence_utils import calculate_adherence_percentage
from .eventstream import EventStream, EventStreamDay, EventStreamReportSource
from .state import AdherenceState
from .weekly_report import (
    DAYS_PER_WEEK,
    NextActivity,
    ReportRow,
    WeeklyAdherenceReport,
    WeeklyReportCell,
)

logger = logging.getLogger(__name__)

PercentCalculator = Callable[[Sequence[Mapping[int, Sequence[WeeklyReportCell]]]], int]


@dataclass(frozen=True)
class SelectedDay:
    """A stream day chosen for the current week, with its display week and position."""

    day: EventStreamDay
    week: int
    day_of_week: int


@dataclass(frozen=True)
class GridSlot:
    """A cell of the weekly grid together with the row it belongs to."""

    row: ReportRow
    cell: WeeklyReportCell


def current_week_index(days_since_event: int | None) -> int | None:
    """Zero-based week of a stream, or None if its anchor event hasn't happened."""
    if days_since_event is None or days_since_event < 0:
        return None
    return days_since_event // DAYS_PER_WEEK


def select_week_days(stream: EventStream, days_since_event: int | None) -> list[SelectedDay]:
    """Days of ``stream`` with at least one window open during its current week."""
    week_index = current_week_index(days_since_event)
    if week_index is None:
        return []

    week_start = week_index * DAYS_PER_WEEK
    week_end = week_start + DAYS_PER_WEEK - 1

    # Keyed by entry_id: a day with several overlapping windows is placed once.
    selected: dict[str, EventStreamDay] = {}
    for day in stream.iter_days():
        for window in day.time_windows.values():
            if day.start_day <= week_end and window.end_day >= week_start:
                selected.setdefault(day.entry_id, day)
                break

    return [
        SelectedDay(
            day=day,
            week=week_index + 1,
            # Sessions that started in an earlier week and are still open go on day 0.
            day_of_week=max(0, day.start_day - week_start),
        )
        for day in selected.values()
    ]


def merge_streams(
    streams: Iterable[EventStream], state: AdherenceState
) -> dict[int, list[SelectedDay]]:
    """Sparse weekly grid: day of week -> selected days, in stream order."""
    grid: dict[int, list[SelectedDay]] = {}
    for stream in streams:
        days_since = state.days_since_event_by_id(stream.start_event_id)
        if current_week_index(days_since) is None:
            logger.debug(
                "Skipping event stream %s: event has not occurred (days_since=%s)",
                stream.start_event_id,
                days_since,
            )
            continue
        for selected in select_week_days(stream, days_since):
            grid.setdefault(selected.day_of_week, []).append(selected)
    return grid


def extract_rows(
    grid: Mapping[int, Sequence[SelectedDay]],
) -> tuple[dict[int, list[GridSlot]], list[ReportRow], list[str]]:
    """Turn the sparse grid of stream days into labelled cells.

    Returns the sparse grid of slots, the distinct rows and the distinct
    searchable labels, both in first-seen order (days ascending).
    """
    rows: dict[str, ReportRow] = {}
    slots: dict[int, list[GridSlot]] = {}
    for day_of_week in sorted(grid):
        for selected in grid[day_of_week]:
            row = ReportRow.for_day(selected.day, selected.week)
            row = rows.setdefault(row.searchable_label, row)
            cell = WeeklyReportCell.from_day(selected.day)
            slots.setdefault(day_of_week, []).append(GridSlot(row=row, cell=cell))
    return slots, list(rows.values()), list(rows)


def pad_grid(
    slots: Mapping[int, Sequence[GridSlot]], rows: Sequence[ReportRow]
) -> dict[int, list[GridSlot]]:
    """Fill the grid so each day has exactly one slot per row, in row order.

    The first slot already placed for a row on a day is kept; missing ones
    become placeholders. Padding a padded grid returns an equal grid.
    """
    padded: dict[int, list[GridSlot]] = {}
    for day_of_week in range(DAYS_PER_WEEK):
        day_slots = slots.get(day_of_week, ())
        padded[day_of_week] = [_slot_for_row(day_slots, row) for row in rows]
    return padded


def _slot_for_row(day_slots: Iterable[GridSlot], row: ReportRow) -> GridSlot:
    for slot in day_slots:
        if slot.row.searchable_label == row.searchable_label:
            return slot
    return GridSlot(row=row, cell=WeeklyReportCell.placeholder())


def has_active_cell(by_day_entries: Mapping[int, Sequence[WeeklyReportCell]]) -> bool:
    return any(cell.is_active for cells in by_day_entries.values() for cell in cells)


def find_next_activity(
    state: AdherenceState, streams: Sequence[EventStream]
) -> NextActivity | None:
    """First future session with a date and windows, scanning streams in order."""
    today = state.today
    for stream in streams:
        for day in stream.iter_days():
            # Without a start date the session is not applicable to this participant.
            if day.start_date is None or not day.time_windows:
                continue
            if day.start_date > today:
                week_index = current_week_index(
                    state.days_since_event_by_id(stream.start_event_id)
                )
                return NextActivity.create(
                    day,
                    week=None if week_index is None else week_index + 1,
                    study_burst_id=stream.study_burst_id,
                    study_burst_num=stream.study_burst_num,
                )
    return None


class WeeklyAdherenceReportGenerator:
    """Builds a participant's weekly adherence report from their event streams."""

    def __init__(
        self,
        source: EventStreamReportSource,
        percent_calculator: PercentCalculator = calculate_adherence_percentage,
    ):
        self.source = source
        self.percent_calculator = percent_calculator

    def generate(self, state: AdherenceState) -> WeeklyAdherenceReport:
        # Streams are always computed without the active-only filter.
        streams = self.source.generate(state.with_show_active(False)).streams

        sparse = merge_streams(streams, state)
        slots, rows, labels = extract_rows(sparse)
        padded = pad_grid(slots, rows)
        by_day_entries = {
            day_of_week: [slot.cell for slot in day_slots]
            for day_of_week, day_slots in padded.items()
        }

        next_activity = None
        if not has_active_cell(by_day_entries):
            next_activity = find_next_activity(state, streams)

        percent = self.percent_calculator([by_day_entries])

        report = WeeklyAdherenceReport(
            by_day_entries=by_day_entries,
            created_on=state.now,
            client_time_zone=state.client_time_zone,
            weekly_adherence_percent=percent,
            next_activity=next_activity,
            rows=rows,
            labels=labels,
        )
        logger.info(
            "Generated weekly adherence report (streams=%d, rows=%d, percent=%d, next_activity=%s)",
            len(streams),
            len(rows),
            percent,
            next_activity is not None,
            extra={
                "bridge_stream_count": len(streams),
                "bridge_row_count": len(rows),
                "bridge_adherence_percent": percent,
            },
        )
        return report
