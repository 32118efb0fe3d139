"""
Project budget domain records.

Responsibility:
    Frozen dataclass value objects for the nouns of project budgeting:
    resources, expenses, the derived budget and the project that owns it.

Architecture position:
    Kernel > Domain -- pure data definitions with ZERO I/O.  Consumed by
    ``crm_engines`` (calculation) and ``crm_modules`` (persistence glue).

Invariants enforced:
    - All records are ``frozen=True``; edits produce new instances via
      ``dataclasses.replace``.
    - All monetary and hour fields are ``Decimal`` -- NEVER ``float``.
    - Closed sets (resource type, rate type, expense category and status,
      project status) are ``str`` enums so unknown values fail at
      construction instead of falling through.
    - ``ProjectBudget`` derived fields are only produced by
      ``crm_engines.budget.BudgetCalculator``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

ZERO = Decimal("0")


class ResourceType(str, Enum):
    """Employment relationship of a project resource."""

    INTERNAL = "internal"
    EXTERNAL = "external"
    CONTRACTOR = "contractor"


class RateType(str, Enum):
    """Unit in which a resource is priced and allocated."""

    HOURLY = "hourly"
    DAILY = "daily"


class ExpenseCategory(str, Enum):
    SOFTWARE = "software"
    HARDWARE = "hardware"
    TRAVEL = "travel"
    MATERIALS = "materials"
    LICENSES = "licenses"
    OTHER = "other"


class ExpenseStatus(str, Enum):
    PLANNED = "planned"
    APPROVED = "approved"
    ORDERED = "ordered"
    RECEIVED = "received"
    PAID = "paid"


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ProjectResource:
    """
    A named person or contractor allocated to a project.

    ``hourly_rate`` is canonical for downstream cost math.  When
    ``rate_type`` is DAILY it always equals ``daily_rate / 8``
    (maintained by ``crm_engines.rate_conversion.RateConverter``).
    """

    name: str
    role: str = ""
    type: ResourceType = ResourceType.INTERNAL
    rate_type: RateType = RateType.HOURLY
    hourly_rate: Decimal = ZERO
    daily_rate: Decimal = ZERO
    currency: str = "USD"
    hours_allocated: Decimal = ZERO
    days_allocated: Decimal = ZERO
    hours_actual: Decimal | None = None
    start_date: date | None = None
    end_date: date | None = None
    skills: tuple[str, ...] = ()
    notes: str | None = None
    id: UUID = field(default_factory=uuid4)


@dataclass(frozen=True)
class ProjectExpense:
    """A planned non-labor cost line of a project budget."""

    category: ExpenseCategory
    description: str
    planned_cost: Decimal
    currency: str = "USD"
    status: ExpenseStatus = ExpenseStatus.PLANNED
    actual_cost: Decimal | None = None
    due_date: date | None = None
    vendor: str | None = None
    notes: str | None = None
    id: UUID = field(default_factory=uuid4)


@dataclass(frozen=True)
class ProjectBudget:
    """
    Layered cost-and-margin model of a project.

    The first six fields are inputs; the rest are derived and must never be
    set by hand.  Build instances with ``BudgetCalculator.calculate``.
    """

    total_revenue: Decimal
    contingency_percentage: Decimal
    overhead_percentage: Decimal
    currency: str
    resources: tuple[ProjectResource, ...]
    expenses: tuple[ProjectExpense, ...]
    total_resource_cost: Decimal = ZERO
    total_expense_cost: Decimal = ZERO
    contingency_cost: Decimal = ZERO
    overhead_cost: Decimal = ZERO
    total_cost: Decimal = ZERO
    gross_margin: Decimal = ZERO
    margin_percentage: Decimal = ZERO

    @property
    def subtotal(self) -> Decimal:
        """Resource plus expense cost, before surcharges."""
        return self.total_resource_cost + self.total_expense_cost

    @property
    def budgeted_hours(self) -> Decimal:
        """Sum of hours allocated across all resources."""
        return sum((r.hours_allocated for r in self.resources), ZERO)

    def find_resource(self, name: str | None) -> ProjectResource | None:
        """First resource whose name equals ``name`` exactly, else None."""
        if not name:
            return None
        for resource in self.resources:
            if resource.name == name:
                return resource
        return None


@dataclass(frozen=True)
class Project:
    """A client project with its embedded budget."""

    id: UUID
    company_id: UUID
    title: str
    budget: ProjectBudget
    status: ProjectStatus = ProjectStatus.PLANNING
    description: str | None = None
    deal_id: UUID | None = None
    start_date: date | None = None
    end_date: date | None = None
