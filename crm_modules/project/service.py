"""
Project Module Service (``crm_modules.project.service``).

Responsibility
--------------
Orchestrates project budget editing -- project creation (directly or from a
won deal), resource and expense maintenance, and budget settings -- by
delegating all derivation to ``crm_engines`` (``BudgetCalculator``,
``RateConverter``) and persistence to ``SqlProjectCatalog``.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``ProjectService`` is the sole public
entry point for changing a project's budget.

Invariants enforced
-------------------
* Each public method owns the transaction boundary (``commit`` on success,
  ``rollback`` on any exception).
* Every change re-derives the whole budget through ``BudgetCalculator``;
  derived fields are never written by hand.
* Resource edits go through ``RateConverter`` so that DAILY resources keep
  ``hourly_rate == daily_rate / 8``.
* Validation runs before any store call.

Failure modes
-------------
* ``ProjectNotFoundError`` -- unknown project id.
* ``ProjectLineNotFoundError`` -- unknown resource or expense id.
* ``ResourceValidationError`` / ``BudgetValidationError`` -- invalid input;
  nothing is written.
* Storage errors -- session rolled back, exception re-raised unchanged.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from crm_engines.budget import BudgetCalculator
from crm_engines.rate_conversion import RateConverter, validate_resource
from crm_kernel.domain.clock import Clock, SystemClock
from crm_kernel.domain.project import (
    Project,
    ProjectBudget,
    ProjectExpense,
    ProjectResource,
    ProjectStatus,
)
from crm_kernel.exceptions import (
    BudgetValidationError,
    ProjectLineNotFoundError,
    ProjectNotFoundError,
    ResourceValidationError,
)
from crm_kernel.logging_config import LogContext, get_logger
from crm_modules.project.config import ProjectConfig
from crm_modules.project.models import Company, Deal, ProjectDraft
from crm_modules.project.store import SqlProjectCatalog

logger = get_logger("modules.project.service")

_ZERO = Decimal("0")

# Fields routed through RateConverter rather than set directly.
_RATE_FIELDS = frozenset({"rate_type", "hourly_rate", "daily_rate", "days_allocated"})


def validate_budget_settings(**values: Decimal | None) -> None:
    """Reject negative revenue or percentage knobs."""
    for field_name, value in values.items():
        if value is not None and value < _ZERO:
            raise BudgetValidationError(field_name, value)


def validate_expense(expense: ProjectExpense) -> None:
    if not expense.description or not expense.description.strip():
        raise ResourceValidationError("description", expense.description, "Description is required")
    if expense.planned_cost is None or expense.planned_cost < _ZERO:
        raise ResourceValidationError(
            "planned_cost", expense.planned_cost, "planned_cost must not be negative"
        )


class ProjectService:
    """
    Orchestrates project budget operations through the engines and catalog.

    Contract
    --------
    * Every mutating method returns the saved ``Project`` with its budget
      fully re-derived.

    Guarantees
    ----------
    * Session is committed only when the whole operation succeeded.
    * Clock is injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT convert currencies; currency tags are carried through.
    * Does NOT touch time entries; existing entries keep their rate
      snapshot when a resource's rate changes.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ProjectConfig | None = None,
        catalog: SqlProjectCatalog | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or ProjectConfig()
        self._catalog = catalog or SqlProjectCatalog(session)
        self._calculator = BudgetCalculator()
        self._converter = RateConverter()

    @property
    def catalog(self) -> SqlProjectCatalog:
        return self._catalog

    # =========================================================================
    # Queries
    # =========================================================================

    def get_project(self, project_id: UUID) -> Project:
        project = self._catalog.get(project_id)
        if project is None:
            raise ProjectNotFoundError(str(project_id))
        return project

    def list_projects(self) -> list[Project]:
        return self._catalog.list_all()

    # =========================================================================
    # Setup
    # =========================================================================

    def create_company(self, name: str, actor_id: UUID) -> Company:
        """Register a client company (setup only)."""
        try:
            company = self._catalog.add_company(name, actor_id)
            self._session.commit()
            return company
        except Exception:
            self._session.rollback()
            raise

    def create_project(self, draft: ProjectDraft, actor_id: UUID) -> Project:
        """Create a project and derive its budget."""
        validate_budget_settings(
            total_revenue=draft.total_revenue,
            contingency_percentage=draft.contingency_percentage,
            overhead_percentage=draft.overhead_percentage,
        )
        resources = tuple(self._prepare_resource(r) for r in draft.resources)
        for expense in draft.expenses:
            validate_expense(expense)

        budget = self._calculator.calculate(
            total_revenue=draft.total_revenue,
            resources=resources,
            expenses=draft.expenses,
            contingency_percentage=draft.contingency_percentage,
            overhead_percentage=draft.overhead_percentage,
            currency=draft.currency,
        )
        project = Project(
            id=uuid4(),
            company_id=draft.company_id,
            title=draft.title,
            budget=budget,
            status=draft.status,
            description=draft.description,
            deal_id=draft.deal_id,
            start_date=draft.start_date,
            end_date=draft.end_date,
        )

        with LogContext.bind(project_id=str(project.id), actor_id=str(actor_id)):
            try:
                saved = self._catalog.save(project, actor_id)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise
            logger.info("project_created", extra={
                "title": project.title,
                "total_revenue": str(budget.total_revenue),
                "total_cost": str(budget.total_cost),
                "resource_count": len(resources),
                "expense_count": len(draft.expenses),
            })
        return saved

    def create_project_from_deal(
        self,
        deal: Deal,
        actor_id: UUID,
        start_date: date | None = None,
    ) -> Project:
        """
        Convert a won deal into a planning-stage project.

        The deal value becomes the project's revenue; contingency, overhead
        and the planned length come from ``ProjectConfig``.
        """
        start = start_date or self._clock.today()
        draft = ProjectDraft(
            company_id=deal.company_id,
            title=deal.title,
            description=deal.description,
            total_revenue=deal.value,
            currency=deal.currency or self._config.default_currency,
            contingency_percentage=self._config.default_contingency_percentage,
            overhead_percentage=self._config.default_overhead_percentage,
            status=ProjectStatus.PLANNING,
            deal_id=deal.id,
            start_date=start,
            end_date=start + timedelta(days=self._config.default_project_length_days),
        )
        logger.info("deal_conversion_started", extra={"deal_id": str(deal.id)})
        return self.create_project(draft, actor_id)

    # =========================================================================
    # Resources
    # =========================================================================

    def add_resource(
        self,
        project_id: UUID,
        resource: ProjectResource,
        actor_id: UUID,
    ) -> Project:
        prepared = self._prepare_resource(resource)
        project = self.get_project(project_id)
        return self._rebudget(
            project,
            actor_id,
            "resource_added",
            resources=project.budget.resources + (prepared,),
        )

    def update_resource(
        self,
        project_id: UUID,
        resource_id: UUID,
        actor_id: UUID,
        **changes: Any,
    ) -> Project:
        """
        Edit one resource.

        ``rate_type``, ``hourly_rate``, ``daily_rate`` and ``days_allocated``
        are applied through ``RateConverter`` so the hourly/daily figures
        stay in sync; every other field is set as given.
        """
        project = self.get_project(project_id)
        current = self._find_line(project.id, project.budget.resources, resource_id, "resource")

        plain = {k: v for k, v in changes.items() if k not in _RATE_FIELDS}
        updated = replace(current, **plain)
        if "rate_type" in changes:
            updated = self._converter.switch_rate_type(updated, changes["rate_type"])
        if "daily_rate" in changes:
            updated = self._converter.edit_daily_rate(updated, changes["daily_rate"])
        if "hourly_rate" in changes:
            updated = self._converter.edit_hourly_rate(updated, changes["hourly_rate"])
        if "days_allocated" in changes:
            updated = self._converter.edit_days_allocated(updated, changes["days_allocated"])
        updated = self._prepare_resource(updated)

        resources = tuple(
            updated if r.id == resource_id else r for r in project.budget.resources
        )
        return self._rebudget(project, actor_id, "resource_updated", resources=resources)

    def remove_resource(self, project_id: UUID, resource_id: UUID, actor_id: UUID) -> Project:
        project = self.get_project(project_id)
        self._find_line(project.id, project.budget.resources, resource_id, "resource")
        resources = tuple(r for r in project.budget.resources if r.id != resource_id)
        return self._rebudget(project, actor_id, "resource_removed", resources=resources)

    # =========================================================================
    # Expenses
    # =========================================================================

    def add_expense(self, project_id: UUID, expense: ProjectExpense, actor_id: UUID) -> Project:
        validate_expense(expense)
        project = self.get_project(project_id)
        return self._rebudget(
            project,
            actor_id,
            "expense_added",
            expenses=project.budget.expenses + (expense,),
        )

    def update_expense(
        self,
        project_id: UUID,
        expense_id: UUID,
        actor_id: UUID,
        **changes: Any,
    ) -> Project:
        project = self.get_project(project_id)
        current = self._find_line(project.id, project.budget.expenses, expense_id, "expense")
        updated = replace(current, **changes)
        validate_expense(updated)
        expenses = tuple(
            updated if e.id == expense_id else e for e in project.budget.expenses
        )
        return self._rebudget(project, actor_id, "expense_updated", expenses=expenses)

    def remove_expense(self, project_id: UUID, expense_id: UUID, actor_id: UUID) -> Project:
        project = self.get_project(project_id)
        self._find_line(project.id, project.budget.expenses, expense_id, "expense")
        expenses = tuple(e for e in project.budget.expenses if e.id != expense_id)
        return self._rebudget(project, actor_id, "expense_removed", expenses=expenses)

    # =========================================================================
    # Budget settings and status
    # =========================================================================

    def update_budget_settings(
        self,
        project_id: UUID,
        actor_id: UUID,
        total_revenue: Decimal | None = None,
        contingency_percentage: Decimal | None = None,
        overhead_percentage: Decimal | None = None,
        currency: str | None = None,
    ) -> Project:
        validate_budget_settings(
            total_revenue=total_revenue,
            contingency_percentage=contingency_percentage,
            overhead_percentage=overhead_percentage,
        )
        changes = {
            name: value
            for name, value in (
                ("total_revenue", total_revenue),
                ("contingency_percentage", contingency_percentage),
                ("overhead_percentage", overhead_percentage),
                ("currency", currency),
            )
            if value is not None
        }
        project = self.get_project(project_id)
        return self._rebudget(project, actor_id, "budget_settings_updated", **changes)

    def update_status(self, project_id: UUID, status: ProjectStatus, actor_id: UUID) -> Project:
        project = self.get_project(project_id)
        updated = replace(project, status=ProjectStatus(status))
        try:
            saved = self._catalog.save(updated, actor_id)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        logger.info("project_status_changed", extra={
            "project_id": str(project_id),
            "from_status": project.status.value,
            "to_status": saved.status.value,
        })
        return saved

    # =========================================================================
    # Internals
    # =========================================================================

    def _prepare_resource(self, resource: ProjectResource) -> ProjectResource:
        validate_resource(resource)
        return self._converter.normalize(resource)

    @staticmethod
    def _find_line(project_id: UUID, lines, line_id: UUID, kind: str):
        for line in lines:
            if line.id == line_id:
                return line
        raise ProjectLineNotFoundError(str(project_id), kind, str(line_id))

    def _rebudget(
        self,
        project: Project,
        actor_id: UUID,
        event: str,
        **budget_changes: Any,
    ) -> Project:
        budget: ProjectBudget = self._calculator.recalculate(project.budget, **budget_changes)
        updated = replace(project, budget=budget)
        with LogContext.bind(project_id=str(project.id), actor_id=str(actor_id)):
            try:
                saved = self._catalog.save(updated, actor_id)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise
            logger.info(event, extra={
                "total_cost": str(budget.total_cost),
                "gross_margin": str(budget.gross_margin),
                "margin_percentage": str(budget.margin_percentage),
            })
        return saved
