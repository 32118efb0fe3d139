"""
crm_engines.weekly_report -- Week, day and project slices of logged time.

Responsibility:
    Bucket time entries into a Monday-to-Sunday week with a per-project
    breakdown and a fixed seven-slot daily breakdown, and navigate between
    weeks.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Display names come from a
    ``NameResolver`` supplied by the caller.

Invariants enforced:
    - ``week_start`` is the Monday of the given day at 00:00:00 and
      ``week_end`` is six days later at 23:59:59.
    - Entries are selected by their calendar ``entry_date``; time of day is
      ignored.
    - Sum of project breakdown hours == sum of daily breakdown hours ==
      ``total_hours``.
    - ``previous_week(next_week(w)) == w``.
    - The chart scale is never below an 8-hour workday.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Protocol, runtime_checkable
from uuid import UUID

from crm_engines.reconciliation import sum_hours
from crm_engines.time_cost import entry_cost
from crm_engines.tracer import traced_engine
from crm_kernel.domain.reports import (
    DailyTimeEntry,
    ProjectBreakdownLine,
    WeeklyTimeReport,
)
from crm_kernel.domain.time_entry import TimeEntry
from crm_kernel.logging_config import get_logger

logger = get_logger("engines.weekly_report")

_ZERO = Decimal("0")
DAYS_PER_WEEK = 7
MIN_CHART_SCALE_HOURS = Decimal("8")


@runtime_checkable
class NameResolver(Protocol):
    """Display names for report breakdowns."""

    def project_title(self, project_id: UUID) -> str:
        ...

    def company_name(self, project_id: UUID) -> str:
        ...


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def week_start_for(value: date | datetime) -> datetime:
    """Monday 00:00:00 of the week containing ``value``; keeps its tzinfo."""
    day = _as_date(value)
    monday = day - timedelta(days=day.weekday())
    tzinfo = value.tzinfo if isinstance(value, datetime) else None
    return datetime.combine(monday, time.min, tzinfo=tzinfo)


def week_end_for(week_start: datetime) -> datetime:
    return week_start + timedelta(days=DAYS_PER_WEEK - 1, hours=23, minutes=59, seconds=59)


def next_week(week_start: datetime) -> datetime:
    return week_start + timedelta(days=DAYS_PER_WEEK)


def previous_week(week_start: datetime) -> datetime:
    return week_start - timedelta(days=DAYS_PER_WEEK)


def current_week(today: date | datetime) -> datetime:
    return week_start_for(today)


def entries_for_day(entries: Iterable[TimeEntry], day: date | datetime) -> list[TimeEntry]:
    """Entries logged on the calendar day of ``day``."""
    target = _as_date(day)
    return [e for e in entries if e.entry_date == target]


def entries_in_week(entries: Iterable[TimeEntry], week_start: datetime) -> list[TimeEntry]:
    first = week_start.date()
    last = first + timedelta(days=DAYS_PER_WEEK - 1)
    return [e for e in entries if first <= e.entry_date <= last]


class WeeklyReportAggregator:
    """
    Pure aggregator of one week of time entries.

    Contract:
        ``entries`` may contain entries outside the week; they are ignored.
    Guarantees:
        - ``daily_breakdown`` always has seven slots, Monday first.
        - ``project_breakdown`` lists projects in order of first appearance.
    """

    @traced_engine(
        "weekly_report",
        "1.0",
        fingerprint_fields=("week_start", "entries"),
    )
    def aggregate(
        self,
        *,
        week_start: date | datetime,
        entries: Iterable[TimeEntry],
        names: NameResolver,
    ) -> WeeklyTimeReport:
        start = week_start_for(week_start)
        end = week_end_for(start)
        week_entries = entries_in_week(entries, start)

        logger.info("weekly_report_started", extra={
            "week_start": start.date().isoformat(),
            "entry_count": len(week_entries),
        })

        total_hours = sum_hours(week_entries)
        billable_hours = sum_hours(week_entries, billable_only=True)
        total_revenue = sum((entry_cost(e) for e in week_entries), _ZERO)

        project_breakdown = self._project_breakdown(week_entries, names)
        daily_breakdown = self._daily_breakdown(week_entries, start.date())

        peak = max((d.total_hours for d in daily_breakdown), default=_ZERO)
        chart_scale = max(peak, MIN_CHART_SCALE_HOURS)

        logger.info("weekly_report_calculated", extra={
            "week_start": start.date().isoformat(),
            "total_hours": str(total_hours),
            "billable_hours": str(billable_hours),
            "total_revenue": str(total_revenue),
            "project_count": len(project_breakdown),
        })

        return WeeklyTimeReport(
            week_start=start,
            week_end=end,
            total_hours=total_hours,
            billable_hours=billable_hours,
            total_revenue=total_revenue,
            entries=tuple(week_entries),
            project_breakdown=project_breakdown,
            daily_breakdown=daily_breakdown,
            chart_scale_hours=chart_scale,
        )

    def _project_breakdown(
        self,
        entries: Sequence[TimeEntry],
        names: NameResolver,
    ) -> tuple[ProjectBreakdownLine, ...]:
        buckets: dict[UUID, list[TimeEntry]] = {}
        for entry in entries:
            buckets.setdefault(entry.project_id, []).append(entry)

        return tuple(
            ProjectBreakdownLine(
                project_id=project_id,
                project_title=names.project_title(project_id),
                company_name=names.company_name(project_id),
                hours=sum_hours(bucket),
                billable_hours=sum_hours(bucket, billable_only=True),
                revenue=sum((entry_cost(e) for e in bucket), _ZERO),
                entry_count=len(bucket),
            )
            for project_id, bucket in buckets.items()
        )

    def _daily_breakdown(
        self,
        entries: Sequence[TimeEntry],
        monday: date,
    ) -> tuple[DailyTimeEntry, ...]:
        slots = []
        for offset in range(DAYS_PER_WEEK):
            day = monday + timedelta(days=offset)
            day_entries = entries_for_day(entries, day)
            slots.append(DailyTimeEntry(
                date=day,
                total_hours=sum_hours(day_entries),
                billable_hours=sum_hours(day_entries, billable_only=True),
                entry_count=len(day_entries),
                entries=tuple(day_entries),
            ))
        return tuple(slots)
