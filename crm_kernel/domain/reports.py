"""
Report aggregates derived from time entries.

Pure, immutable outputs of ``crm_engines.reconciliation`` and
``crm_engines.weekly_report``.  They have no lifecycle of their own:
they are recomputed on demand and never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from crm_kernel.domain.time_entry import TimeEntry


@dataclass(frozen=True)
class ProjectBreakdownLine:
    """Hours and revenue of one project within a reporting week."""

    project_id: UUID
    project_title: str
    company_name: str
    hours: Decimal
    billable_hours: Decimal
    revenue: Decimal
    entry_count: int


@dataclass(frozen=True)
class DailyTimeEntry:
    """One calendar-day slot of a weekly report."""

    date: date
    total_hours: Decimal
    billable_hours: Decimal
    entry_count: int
    entries: tuple[TimeEntry, ...] = ()


@dataclass(frozen=True)
class WeeklyTimeReport:
    """
    Time logged in one Monday-to-Sunday week.

    ``week_start`` is a Monday at 00:00:00 and ``week_end`` the following
    Sunday at 23:59:59; both bounds are inclusive.
    """

    week_start: datetime
    week_end: datetime
    total_hours: Decimal
    billable_hours: Decimal
    total_revenue: Decimal
    entries: tuple[TimeEntry, ...]
    project_breakdown: tuple[ProjectBreakdownLine, ...]
    daily_breakdown: tuple[DailyTimeEntry, ...]
    chart_scale_hours: Decimal


@dataclass(frozen=True)
class ProjectTimeStats:
    """Tracked time of a project compared with its allocated hours."""

    project_id: UUID
    total_tracked_hours: Decimal
    total_billable_hours: Decimal
    total_revenue: Decimal
    budgeted_hours: Decimal
    remaining_hours: Decimal
    hours_utilization: Decimal
    average_hourly_rate: Decimal
    last_activity: date | None


@dataclass(frozen=True)
class ProjectReconciliation:
    """Budgeted cost and margin of a project against time-derived actuals."""

    project_id: UUID
    project_title: str
    company_name: str
    currency: str
    total_hours: Decimal
    billable_hours: Decimal
    budgeted_revenue: Decimal
    budgeted_hours: Decimal
    budgeted_resource_cost: Decimal
    budgeted_margin: Decimal
    actual_cost: Decimal
    actual_margin: Decimal
    budgeted_margin_percentage: Decimal
    actual_margin_percentage: Decimal
    margin_variance: Decimal
    hours_utilization: Decimal
    hours_variance: Decimal
    entry_count: int

    @property
    def is_over_budget(self) -> bool:
        """True when time-derived margin fell short of the budgeted margin."""
        return self.margin_variance < Decimal("0")
