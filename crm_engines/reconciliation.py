"""
crm_engines.reconciliation -- Budget versus time-derived actuals.

Responsibility:
    Compare a project's budgeted margin and hours with the cost and hours
    derived from its logged time entries.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - actual_cost is the billable cost of time entries only.  Expense
      ``actual_cost`` fields are reconciled separately and never mixed in.
    - Every ratio (margin percentages, utilization) is 0 when its
      denominator is not positive.
    - A reconciliation report only lists projects with tracked or budgeted
      hours.

Formulas:
    total_hours               = sum(duration / 60)
    billable_hours            = sum(duration / 60) over billable entries
    actual_cost               = sum(entry cost)
    actual_margin             = total_revenue - actual_cost
    budgeted_margin_pct       = gross_margin / total_revenue * 100
    actual_margin_pct         = actual_margin / total_revenue * 100
    margin_variance           = actual_margin - gross_margin
    budgeted_hours            = sum(resource.hours_allocated)
    hours_utilization         = total_hours / budgeted_hours * 100
    hours_variance            = total_hours - budgeted_hours
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from uuid import UUID

from crm_engines.time_cost import entry_cost
from crm_engines.tracer import traced_engine
from crm_kernel.domain.project import Project
from crm_kernel.domain.reports import ProjectReconciliation, ProjectTimeStats
from crm_kernel.domain.time_entry import TimeEntry
from crm_kernel.logging_config import get_logger

logger = get_logger("engines.reconciliation")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def _ratio_percent(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator > _ZERO:
        return numerator / denominator * _HUNDRED
    return _ZERO


def sum_hours(entries: Iterable[TimeEntry], *, billable_only: bool = False) -> Decimal:
    return sum(
        (e.hours for e in entries if e.billable or not billable_only),
        _ZERO,
    )


class ProjectReconciler:
    """
    Pure reconciler of one project's budget against its time entries.

    Contract:
        ``entries`` must already be restricted to the project; no filtering
        by project id happens here.
    Guarantees:
        - Never raises on empty entries or a zero-revenue budget.
    """

    @traced_engine(
        "reconciliation",
        "1.0",
        fingerprint_fields=("project", "entries"),
    )
    def reconcile(
        self,
        *,
        project: Project,
        entries: Sequence[TimeEntry],
        project_title: str | None = None,
        company_name: str = "",
    ) -> ProjectReconciliation:
        budget = project.budget

        total_hours = sum_hours(entries)
        billable_hours = sum_hours(entries, billable_only=True)
        actual_cost = sum((entry_cost(e) for e in entries), _ZERO)
        actual_margin = budget.total_revenue - actual_cost
        budgeted_hours = budget.budgeted_hours
        margin_variance = actual_margin - budget.gross_margin

        result = ProjectReconciliation(
            project_id=project.id,
            project_title=project_title or project.title,
            company_name=company_name,
            currency=budget.currency,
            total_hours=total_hours,
            billable_hours=billable_hours,
            budgeted_revenue=budget.total_revenue,
            budgeted_hours=budgeted_hours,
            budgeted_resource_cost=budget.total_resource_cost,
            budgeted_margin=budget.gross_margin,
            actual_cost=actual_cost,
            actual_margin=actual_margin,
            budgeted_margin_percentage=_ratio_percent(budget.gross_margin, budget.total_revenue),
            actual_margin_percentage=_ratio_percent(actual_margin, budget.total_revenue),
            margin_variance=margin_variance,
            hours_utilization=_ratio_percent(total_hours, budgeted_hours),
            hours_variance=total_hours - budgeted_hours,
            entry_count=len(entries),
        )

        logger.info("project_reconciled", extra={
            "project_id": str(project.id),
            "total_hours": str(total_hours),
            "actual_cost": str(actual_cost),
            "actual_margin": str(actual_margin),
            "margin_variance": str(margin_variance),
            "hours_utilization": str(result.hours_utilization),
        })
        if result.is_over_budget:
            logger.warning("project_over_budget", extra={
                "project_id": str(project.id),
                "margin_variance": str(margin_variance),
            })
        return result

    def reconciliation_report(
        self,
        *,
        projects: Iterable[Project],
        entries_by_project: Mapping[UUID, Sequence[TimeEntry]],
        company_names: Mapping[UUID, str] | None = None,
    ) -> list[ProjectReconciliation]:
        """
        Reconcile every project that has tracked or budgeted hours.

        Projects with neither are left out of the report.
        """
        company_names = company_names or {}
        report: list[ProjectReconciliation] = []
        for project in projects:
            line = self.reconcile(
                project=project,
                entries=entries_by_project.get(project.id, ()),
                company_name=company_names.get(project.id, ""),
            )
            if line.total_hours > _ZERO or line.budgeted_hours > _ZERO:
                report.append(line)
        logger.info("reconciliation_report_built", extra={"project_count": len(report)})
        return report


def project_time_stats(project: Project, entries: Sequence[TimeEntry]) -> ProjectTimeStats:
    """Tracked time of one project against its allocated hours."""
    total_hours = sum_hours(entries)
    billable_hours = sum_hours(entries, billable_only=True)
    revenue = sum((entry_cost(e) for e in entries), _ZERO)
    budgeted_hours = project.budget.budgeted_hours

    if billable_hours > _ZERO:
        average_rate = revenue / billable_hours
    else:
        average_rate = _ZERO

    return ProjectTimeStats(
        project_id=project.id,
        total_tracked_hours=total_hours,
        total_billable_hours=billable_hours,
        total_revenue=revenue,
        budgeted_hours=budgeted_hours,
        remaining_hours=max(_ZERO, budgeted_hours - total_hours),
        hours_utilization=_ratio_percent(total_hours, budgeted_hours),
        average_hourly_rate=average_rate,
        last_activity=max((e.entry_date for e in entries), default=None),
    )
