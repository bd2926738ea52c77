"""Tests for the weekly report models and labels."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from bridge_adherence.weekly_report import (
    NextActivity,
    ReportRow,
    WeeklyAdherenceReport,
    WeeklyReportCell,
    display_label,
    searchable_label,
)


class TestLabels:
    def test_plain_labels(self):
        assert display_label("Survey", 2, None, None) == "Week 2 / Survey"
        assert searchable_label("Survey", 2, None, None) == ":Week 2:Survey:"

    def test_burst_labels(self):
        assert display_label("Survey", 2, "burst", 3) == "burst 3 / Week 2 / Survey"
        assert searchable_label("Survey", 2, "burst", 3) == ":burst 3:Week 2:Survey:"

    def test_week_search_does_not_match_longer_week(self):
        assert ":Week 1:" not in searchable_label("Survey", 10, None, None)
        assert ":Week 1:" in searchable_label("Survey", 1, None, None)

    def test_burst_num_none_still_uses_burst_format(self):
        assert display_label("Survey", 1, "burst", None) == "burst None / Week 1 / Survey"


class TestReportRow:
    def test_for_day(self, make_day):
        day = make_day("s1", 8, name="Tapping", symbol="T", study_burst_id="burst", study_burst_num=2)
        row = ReportRow.for_day(day, 2)
        assert row.label == "burst 2 / Week 2 / Tapping"
        assert row.searchable_label == ":burst 2:Week 2:Tapping:"
        assert row.session_guid == "s1"
        assert row.session_symbol == "T"
        assert row.week == 2

    def test_rows_equal_by_value(self, make_day):
        first = ReportRow.for_day(make_day("s1", 8, name="Tapping"), 2)
        second = ReportRow.for_day(make_day("s1", 9, name="Tapping"), 2)
        assert first == second
        assert len({first, second}) == 1


class TestWeeklyReportCell:
    def test_from_day_drops_session_metadata(self, make_day, make_window):
        day = make_day("s1", 8, [make_window(9)], name="Tapping", symbol="T", study_burst_id="burst")
        cell = WeeklyReportCell.from_day(day)
        assert cell.session_guid == "s1"
        assert cell.start_day == 8
        assert cell.start_date == day.start_date
        assert cell.time_windows == day.time_windows
        dumped = cell.model_dump()
        for stripped in ("session_name", "session_symbol", "study_burst_id", "study_burst_num", "week"):
            assert stripped not in dumped

    def test_cell_windows_detached_from_input(self, make_day, make_window):
        day = make_day("s1", 1, [make_window(2)])
        cell = WeeklyReportCell.from_day(day)
        cell.time_windows.clear()
        assert len(day.time_windows) == 1

    def test_placeholder(self):
        cell = WeeklyReportCell.placeholder()
        assert cell.is_placeholder
        assert not cell.is_active
        assert cell.start_day is None
        assert cell.time_windows == {}

    def test_active_requires_date_and_windows(self, make_day, make_window):
        assert WeeklyReportCell.from_day(make_day("s1", 1, [make_window(1)])).is_active
        assert not WeeklyReportCell.from_day(make_day("s1", 1, [make_window(1)], dated=False)).is_active
        assert not WeeklyReportCell.from_day(make_day("s1", 1, [])).is_active


class TestNextActivity:
    def test_create(self, make_day, make_window):
        day = make_day("s1", 17, [make_window(17)], name="Walk", symbol="W", start_date=date(2026, 3, 24))
        activity = NextActivity.create(day, week=1, study_burst_id="burst", study_burst_num=1)
        assert activity.session_guid == "s1"
        assert activity.session_name == "Walk"
        assert activity.session_symbol == "W"
        assert activity.week == 1
        assert activity.study_burst_id == "burst"
        assert activity.start_date == date(2026, 3, 24)
        assert "start_day" not in activity.model_dump()


class TestWeeklyAdherenceReport:
    def _report(self, by_day, rows=()):
        return WeeklyAdherenceReport(
            by_day_entries=by_day,
            created_on=datetime(2026, 3, 10, tzinfo=timezone.utc),
            client_time_zone="UTC",
            weekly_adherence_percent=100,
            rows=list(rows),
        )

    def test_empty_dense_report(self):
        report = self._report({day: [] for day in range(7)})
        assert report.rows == []
        assert report.next_activity is None

    def test_missing_day_rejected(self):
        with pytest.raises(ValidationError, match="exactly the day-of-week keys"):
            self._report({day: [] for day in range(6)})

    def test_sparse_day_rejected(self):
        row = ReportRow(label="Week 1 / Survey", searchable_label=":Week 1:Survey:")
        by_day = {day: [WeeklyReportCell.placeholder()] for day in range(7)}
        by_day[4] = []
        with pytest.raises(ValidationError, match="day 4 has 0 cells for 1 rows"):
            self._report(by_day, [row])

    def test_percent_bounds(self):
        with pytest.raises(ValidationError):
            WeeklyAdherenceReport(
                by_day_entries={day: [] for day in range(7)},
                created_on=datetime(2026, 3, 10, tzinfo=timezone.utc),
                weekly_adherence_percent=101,
            )

    def test_to_json_dict(self, make_day, make_window):
        row = ReportRow(label="Week 2 / Survey", searchable_label=":Week 2:Survey:", session_guid="s1", week=2)
        by_day = {day: [WeeklyReportCell.placeholder()] for day in range(7)}
        by_day[3] = [WeeklyReportCell.from_day(make_day("s1", 10, [make_window(12)]))]
        report = self._report(by_day, [row])

        data = report.to_json_dict()
        assert data["created_on"].startswith("2026-03-10T00:00:00")
        assert data["rows"][0]["label"] == "Week 2 / Survey"
        day_three = next(cells for key, cells in data["by_day_entries"].items() if int(key) == 3)
        assert day_three[0]["start_date"] == "2026-03-10"
