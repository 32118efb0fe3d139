"""
Module: crm_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for
    ``crm_modules`` services and for ``scripts``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import crm_kernel (and sibling engine modules).
    MUST NOT import crm_modules or crm_config.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      The current instant is passed in by the caller.
    - Decimal-only arithmetic: money and hours are ``Decimal``, never float.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine entry points are wrapped by ``@traced_engine`` (see
    ``crm_engines.tracer``), emitting CRM_ENGINE_TRACE records with engine
    name, version, input fingerprint and duration.

Usage:
    from crm_engines.budget import BudgetCalculator
    from crm_engines.rate_conversion import RateConverter
    from crm_engines.time_cost import TimeEntryCostEngine
    from crm_engines.timer import Timer
    from crm_engines.reconciliation import ProjectReconciler
    from crm_engines.weekly_report import WeeklyReportAggregator
"""

from crm_kernel.logging_config import get_logger

logger = get_logger("engines")

from crm_engines.budget import (
    BudgetCalculator,
    empty_budget,
    resource_cost,
)
from crm_engines.rate_conversion import (
    HOURS_PER_DAY,
    RateConverter,
    validate_resource,
)
from crm_engines.reconciliation import (
    ProjectReconciler,
    project_time_stats,
)
from crm_engines.time_cost import (
    TimeEntryCostEngine,
    entry_cost,
    format_duration,
    resolve_duration,
)
from crm_engines.timer import (
    ActiveTimer,
    Timer,
    TimerState,
    format_elapsed,
)
from crm_engines.tracer import (
    compute_input_fingerprint,
    traced_engine,
)
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

__all__ = [
    "BudgetCalculator",
    "empty_budget",
    "resource_cost",
    "HOURS_PER_DAY",
    "RateConverter",
    "validate_resource",
    "ProjectReconciler",
    "project_time_stats",
    "TimeEntryCostEngine",
    "entry_cost",
    "format_duration",
    "resolve_duration",
    "ActiveTimer",
    "Timer",
    "TimerState",
    "format_elapsed",
    "compute_input_fingerprint",
    "traced_engine",
    "NameResolver",
    "WeeklyReportAggregator",
    "current_week",
    "entries_for_day",
    "next_week",
    "previous_week",
    "week_end_for",
    "week_start_for",
]
