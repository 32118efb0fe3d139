"""
Domain records and the clock abstraction.

Pure data only: no I/O, no SQLAlchemy, no logging side effects.
"""

from crm_kernel.domain.project import (
    ExpenseCategory,
    ExpenseStatus,
    Project,
    ProjectBudget,
    ProjectExpense,
    ProjectResource,
    ProjectStatus,
    RateType,
    ResourceType,
)
from crm_kernel.domain.reports import (
    DailyTimeEntry,
    ProjectBreakdownLine,
    ProjectReconciliation,
    ProjectTimeStats,
    WeeklyTimeReport,
)
from crm_kernel.domain.time_entry import (
    TimeEntry,
    TimeEntryChanges,
    TimeEntryDraft,
    TimeEntryFilters,
    TimeEntryInput,
)

__all__ = [
    "ExpenseCategory",
    "ExpenseStatus",
    "Project",
    "ProjectBudget",
    "ProjectExpense",
    "ProjectResource",
    "ProjectStatus",
    "RateType",
    "ResourceType",
    "DailyTimeEntry",
    "ProjectBreakdownLine",
    "ProjectReconciliation",
    "ProjectTimeStats",
    "WeeklyTimeReport",
    "TimeEntry",
    "TimeEntryChanges",
    "TimeEntryDraft",
    "TimeEntryFilters",
    "TimeEntryInput",
]
