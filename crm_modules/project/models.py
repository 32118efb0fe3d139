"""
Project module records.

The project, budget, resource and expense records live in
``crm_kernel.domain.project`` and are re-exported here.  This module adds
the inputs that only the project service consumes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

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


@dataclass(frozen=True)
class Company:
    """Client company a project is delivered for."""

    id: UUID
    name: str


@dataclass(frozen=True)
class Deal:
    """A won sales deal that is being converted into a project."""

    id: UUID
    company_id: UUID
    title: str
    value: Decimal
    currency: str = "USD"
    description: str | None = None


@dataclass(frozen=True)
class ProjectDraft:
    """Form data for a new project; the budget is derived on creation."""

    company_id: UUID
    title: str
    total_revenue: Decimal = Decimal("0")
    currency: str = "USD"
    contingency_percentage: Decimal = Decimal("10")
    overhead_percentage: Decimal = Decimal("15")
    resources: tuple[ProjectResource, ...] = ()
    expenses: tuple[ProjectExpense, ...] = ()
    status: ProjectStatus = ProjectStatus.PLANNING
    description: str | None = None
    deal_id: UUID | None = None
    start_date: date | None = None
    end_date: date | None = None


__all__ = [
    "Company",
    "Deal",
    "ExpenseCategory",
    "ExpenseStatus",
    "Project",
    "ProjectBudget",
    "ProjectDraft",
    "ProjectExpense",
    "ProjectResource",
    "ProjectStatus",
    "RateType",
    "ResourceType",
]
