"""
Tests for the Weekly Report aggregator and week navigation.

Covers:
- Monday-aligned week bounds
- Project and daily breakdowns and their totals
- Chart scale floor
- Week navigation round trip
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from crm_engines.weekly_report import (
    NameResolver,
    WeeklyReportAggregator,
    current_week,
    entries_for_day,
    next_week,
    previous_week,
    week_end_for,
    week_start_for,
)
from crm_kernel.domain.time_entry import TimeEntry


class StaticNames:
    """NameResolver over fixed dicts."""

    def __init__(self, titles=None, companies=None):
        self.titles = titles or {}
        self.companies = companies or {}

    def project_title(self, project_id):
        return self.titles.get(project_id, "Unknown Project")

    def company_name(self, project_id):
        return self.companies.get(project_id, "Unknown Company")


def _entry(project_id, day: date, minutes: int, *, billable=True, rate="100") -> TimeEntry:
    start = datetime.combine(day, datetime.min.time(), tzinfo=timezone.utc) + timedelta(hours=9)
    return TimeEntry(
        id=uuid4(),
        project_id=project_id,
        description="Work",
        start_time=start,
        duration=minutes,
        entry_date=day,
        billable=billable,
        hourly_rate=Decimal(rate) if billable else None,
    )


class TestWeekBounds:

    def test_monday_is_its_own_week_start(self):
        assert week_start_for(date(2024, 1, 1)) == datetime(2024, 1, 1)

    def test_sunday_snaps_back_to_monday(self):
        assert week_start_for(date(2024, 1, 7)) == datetime(2024, 1, 1)

    def test_time_of_day_dropped_and_tz_kept(self):
        start = week_start_for(datetime(2024, 1, 3, 15, 45, tzinfo=timezone.utc))
        assert start == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_week_end_is_sunday_end_of_day(self):
        assert week_end_for(datetime(2024, 1, 1)) == datetime(2024, 1, 7, 23, 59, 59)

    def test_navigation(self):
        week = datetime(2024, 1, 1)
        assert next_week(week) == datetime(2024, 1, 8)
        assert previous_week(week) == datetime(2023, 12, 25)
        assert previous_week(next_week(week)) == week

    def test_current_week(self):
        assert current_week(date(2024, 1, 4)) == datetime(2024, 1, 1)


class TestWeeklyAggregation:
    """Tests for the week report aggregate."""

    def setup_method(self):
        self.aggregator = WeeklyReportAggregator()
        self.project_id = uuid4()
        self.names = StaticNames(
            titles={self.project_id: "Website relaunch"},
            companies={self.project_id: "Acme"},
        )

    def test_two_entries_one_project(self):
        """2h and 3h at 100/hour in the week of Monday 2024-01-01."""
        entries = [
            _entry(self.project_id, date(2024, 1, 1), 120),
            _entry(self.project_id, date(2024, 1, 3), 180),
        ]

        report = self.aggregator.aggregate(
            week_start=datetime(2024, 1, 1),
            entries=entries,
            names=self.names,
        )

        assert report.total_hours == Decimal("5")
        assert report.billable_hours == Decimal("5")
        assert report.total_revenue == Decimal("500")
        assert len(report.project_breakdown) == 1
        line = report.project_breakdown[0]
        assert line.hours == Decimal("5")
        assert line.project_title == "Website relaunch"
        assert line.company_name == "Acme"
        assert line.entry_count == 2

    def test_seven_daily_slots(self):
        entries = [_entry(self.project_id, date(2024, 1, 3), 180)]

        report = self.aggregator.aggregate(
            week_start=date(2024, 1, 5),
            entries=entries,
            names=self.names,
        )

        assert [d.date for d in report.daily_breakdown] == [
            date(2024, 1, 1) + timedelta(days=i) for i in range(7)
        ]
        assert report.daily_breakdown[2].total_hours == Decimal("3")
        assert report.daily_breakdown[2].entry_count == 1
        assert report.daily_breakdown[0].total_hours == Decimal("0")

    def test_entries_outside_week_ignored(self):
        entries = [
            _entry(self.project_id, date(2023, 12, 31), 60),
            _entry(self.project_id, date(2024, 1, 7), 60),
            _entry(self.project_id, date(2024, 1, 8), 60),
        ]

        report = self.aggregator.aggregate(
            week_start=datetime(2024, 1, 1),
            entries=entries,
            names=self.names,
        )

        assert report.total_hours == Decimal("1")
        assert len(report.entries) == 1

    def test_breakdowns_sum_to_total(self):
        other = uuid4()
        entries = [
            _entry(self.project_id, date(2024, 1, 1), 45),
            _entry(other, date(2024, 1, 2), 90, billable=False),
            _entry(self.project_id, date(2024, 1, 6), 210, rate="75"),
            _entry(other, date(2024, 1, 6), 15),
        ]

        report = self.aggregator.aggregate(
            week_start=datetime(2024, 1, 1),
            entries=entries,
            names=self.names,
        )

        assert sum(line.hours for line in report.project_breakdown) == report.total_hours
        assert sum(day.total_hours for day in report.daily_breakdown) == report.total_hours
        assert report.billable_hours < report.total_hours

    def test_project_order_and_unknown_names(self):
        other = uuid4()
        entries = [
            _entry(other, date(2024, 1, 1), 60),
            _entry(self.project_id, date(2024, 1, 2), 60),
        ]

        report = self.aggregator.aggregate(
            week_start=datetime(2024, 1, 1),
            entries=entries,
            names=self.names,
        )

        assert [line.project_id for line in report.project_breakdown] == [other, self.project_id]
        assert report.project_breakdown[0].project_title == "Unknown Project"

    def test_chart_scale_floor(self):
        report = self.aggregator.aggregate(
            week_start=datetime(2024, 1, 1),
            entries=[_entry(self.project_id, date(2024, 1, 2), 60)],
            names=self.names,
        )
        assert report.chart_scale_hours == Decimal("8")

    def test_chart_scale_follows_peak_day(self):
        report = self.aggregator.aggregate(
            week_start=datetime(2024, 1, 1),
            entries=[_entry(self.project_id, date(2024, 1, 2), 600)],
            names=self.names,
        )
        assert report.chart_scale_hours == Decimal("10")

    def test_empty_week(self):
        report = self.aggregator.aggregate(
            week_start=datetime(2024, 1, 1),
            entries=[],
            names=self.names,
        )

        assert report.total_hours == Decimal("0")
        assert report.project_breakdown == ()
        assert len(report.daily_breakdown) == 7
        assert report.week_end == datetime(2024, 1, 7, 23, 59, 59)


def test_entries_for_day_ignores_time_of_day():
    pid = uuid4()
    entries = [
        _entry(pid, date(2024, 1, 2), 30),
        _entry(pid, date(2024, 1, 3), 30),
    ]

    found = entries_for_day(entries, datetime(2024, 1, 2, 23, 59))

    assert len(found) == 1
    assert found[0].entry_date == date(2024, 1, 2)


def test_static_names_satisfy_protocol():
    assert isinstance(StaticNames(), NameResolver)
