"""
SQLAlchemy ORM persistence models for the Project module.

Responsibility
--------------
Provide database-backed persistence for projects, their embedded budget,
budget resources and budget expenses, plus the client companies that
projects are delivered for.

Architecture position
---------------------
**Modules layer** -- ORM models consumed by ``SqlProjectCatalog``.
Inherits from ``TrackedBase`` (kernel db layer).

Invariants enforced
-------------------
* All monetary and hour fields use ``Decimal`` (Numeric(38,9)) -- NEVER float.
* Enum fields stored as String(50) for readability and portability.
* The budget is embedded in ``ProjectModel`` (1:1); derived budget fields
  are stored as calculated and never edited in place.
* Resources and expenses keep their form order through ``position``.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from crm_kernel.db.base import TrackedBase
from crm_kernel.db.types import CURRENCY_CODE_LENGTH

# ---------------------------------------------------------------------------
# CompanyModel
# ---------------------------------------------------------------------------


class CompanyModel(TrackedBase):
    """Client company; only the display name is kept here."""

    __tablename__ = "crm_companies"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def to_dto(self):
        from crm_modules.project.models import Company

        return Company(id=self.id, name=self.name)

    def __repr__(self) -> str:
        return f"<CompanyModel {self.name}>"


# ---------------------------------------------------------------------------
# ProjectModel
# ---------------------------------------------------------------------------


class ProjectModel(TrackedBase):
    """
    A client project with its embedded budget.

    Maps to the ``Project`` DTO in ``crm_kernel.domain.project``.

    Guarantees:
        - ``status`` is one of planning, active, on-hold, completed,
          cancelled.
        - Resources and expenses are owned: removing them from the
          collections deletes the rows.
    """

    __tablename__ = "crm_projects"

    __table_args__ = (
        Index("idx_crm_project_company", "company_id"),
        Index("idx_crm_project_status", "status"),
    )

    company_id: Mapped[UUID] = mapped_column(ForeignKey("crm_companies.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="planning")
    deal_id: Mapped[UUID | None]
    start_date: Mapped[date | None]
    end_date: Mapped[date | None]

    # Budget inputs
    total_revenue: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    contingency_percentage: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    overhead_percentage: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(CURRENCY_CODE_LENGTH), nullable=False, default="USD")

    # Derived budget fields, written by BudgetCalculator only
    total_resource_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    total_expense_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    contingency_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    overhead_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    total_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    gross_margin: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    margin_percentage: Mapped[Decimal] = mapped_column(default=Decimal("0"))

    # Relationships
    company: Mapped["CompanyModel"] = relationship("CompanyModel", lazy="selectin")

    resources: Mapped[list["ProjectResourceModel"]] = relationship(
        "ProjectResourceModel",
        back_populates="project",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ProjectResourceModel.position",
    )

    expenses: Mapped[list["ProjectExpenseModel"]] = relationship(
        "ProjectExpenseModel",
        back_populates="project",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ProjectExpenseModel.position",
    )

    def to_dto(self):
        from crm_kernel.domain.project import Project, ProjectBudget, ProjectStatus

        budget = ProjectBudget(
            total_revenue=self.total_revenue,
            contingency_percentage=self.contingency_percentage,
            overhead_percentage=self.overhead_percentage,
            currency=self.currency,
            resources=tuple(r.to_dto() for r in self.resources),
            expenses=tuple(e.to_dto() for e in self.expenses),
            total_resource_cost=self.total_resource_cost,
            total_expense_cost=self.total_expense_cost,
            contingency_cost=self.contingency_cost,
            overhead_cost=self.overhead_cost,
            total_cost=self.total_cost,
            gross_margin=self.gross_margin,
            margin_percentage=self.margin_percentage,
        )
        return Project(
            id=self.id,
            company_id=self.company_id,
            title=self.title,
            budget=budget,
            status=ProjectStatus(self.status),
            description=self.description,
            deal_id=self.deal_id,
            start_date=self.start_date,
            end_date=self.end_date,
        )

    def apply_dto(self, dto) -> None:
        """Copy every scalar field of a ``Project`` DTO onto this row."""
        budget = dto.budget
        self.company_id = dto.company_id
        self.title = dto.title
        self.description = dto.description
        self.status = dto.status.value
        self.deal_id = dto.deal_id
        self.start_date = dto.start_date
        self.end_date = dto.end_date
        self.total_revenue = budget.total_revenue
        self.contingency_percentage = budget.contingency_percentage
        self.overhead_percentage = budget.overhead_percentage
        self.currency = budget.currency
        self.total_resource_cost = budget.total_resource_cost
        self.total_expense_cost = budget.total_expense_cost
        self.contingency_cost = budget.contingency_cost
        self.overhead_cost = budget.overhead_cost
        self.total_cost = budget.total_cost
        self.gross_margin = budget.gross_margin
        self.margin_percentage = budget.margin_percentage

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "ProjectModel":
        model = cls(id=dto.id, created_by_id=created_by_id)
        model.apply_dto(dto)
        model.resources = [
            ProjectResourceModel.from_dto(r, position, created_by_id)
            for position, r in enumerate(dto.budget.resources)
        ]
        model.expenses = [
            ProjectExpenseModel.from_dto(e, position, created_by_id)
            for position, e in enumerate(dto.budget.expenses)
        ]
        return model

    def __repr__(self) -> str:
        return f"<ProjectModel {self.title} [{self.status}]>"


# ---------------------------------------------------------------------------
# ProjectResourceModel
# ---------------------------------------------------------------------------


class ProjectResourceModel(TrackedBase):
    """
    A person or contractor allocated in a project budget.

    Guarantees:
        - Belongs to exactly one ``ProjectModel``.
        - For DAILY resources ``hourly_rate == daily_rate / 8`` as written
          by ``RateConverter``.
    """

    __tablename__ = "crm_project_resources"

    __table_args__ = (
        Index("idx_crm_resource_project", "project_id"),
    )

    project_id: Mapped[UUID] = mapped_column(ForeignKey("crm_projects.id"), nullable=False)
    position: Mapped[int] = mapped_column(default=0)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    resource_type: Mapped[str] = mapped_column(String(50), nullable=False)
    rate_type: Mapped[str] = mapped_column(String(50), nullable=False)
    hourly_rate: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    daily_rate: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(CURRENCY_CODE_LENGTH), nullable=False, default="USD")
    hours_allocated: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    days_allocated: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    hours_actual: Mapped[Decimal | None]
    start_date: Mapped[date | None]
    end_date: Mapped[date | None]
    skills: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    project: Mapped["ProjectModel"] = relationship(
        "ProjectModel",
        back_populates="resources",
    )

    def to_dto(self):
        from crm_kernel.domain.project import ProjectResource, RateType, ResourceType

        return ProjectResource(
            id=self.id,
            name=self.name,
            role=self.role,
            type=ResourceType(self.resource_type),
            rate_type=RateType(self.rate_type),
            hourly_rate=self.hourly_rate,
            daily_rate=self.daily_rate,
            currency=self.currency,
            hours_allocated=self.hours_allocated,
            days_allocated=self.days_allocated,
            hours_actual=self.hours_actual,
            start_date=self.start_date,
            end_date=self.end_date,
            skills=tuple(self.skills or ()),
            notes=self.notes,
        )

    def apply_dto(self, dto, position: int) -> None:
        self.position = position
        self.name = dto.name
        self.role = dto.role
        self.resource_type = dto.type.value
        self.rate_type = dto.rate_type.value
        self.hourly_rate = dto.hourly_rate
        self.daily_rate = dto.daily_rate
        self.currency = dto.currency
        self.hours_allocated = dto.hours_allocated
        self.days_allocated = dto.days_allocated
        self.hours_actual = dto.hours_actual
        self.start_date = dto.start_date
        self.end_date = dto.end_date
        self.skills = list(dto.skills)
        self.notes = dto.notes

    @classmethod
    def from_dto(cls, dto, position: int, created_by_id: UUID) -> "ProjectResourceModel":
        model = cls(id=dto.id, created_by_id=created_by_id)
        model.apply_dto(dto, position)
        return model

    def __repr__(self) -> str:
        return f"<ProjectResourceModel {self.name} [{self.rate_type}]>"


# ---------------------------------------------------------------------------
# ProjectExpenseModel
# ---------------------------------------------------------------------------


class ProjectExpenseModel(TrackedBase):
    """A planned non-labor cost line of a project budget."""

    __tablename__ = "crm_project_expenses"

    __table_args__ = (
        Index("idx_crm_expense_project", "project_id"),
        Index("idx_crm_expense_status", "status"),
    )

    project_id: Mapped[UUID] = mapped_column(ForeignKey("crm_projects.id"), nullable=False)
    position: Mapped[int] = mapped_column(default=0)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    planned_cost: Mapped[Decimal]
    actual_cost: Mapped[Decimal | None]
    currency: Mapped[str] = mapped_column(String(CURRENCY_CODE_LENGTH), nullable=False, default="USD")
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="planned")
    due_date: Mapped[date | None]
    vendor: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    project: Mapped["ProjectModel"] = relationship(
        "ProjectModel",
        back_populates="expenses",
    )

    def to_dto(self):
        from crm_kernel.domain.project import ExpenseCategory, ExpenseStatus, ProjectExpense

        return ProjectExpense(
            id=self.id,
            category=ExpenseCategory(self.category),
            description=self.description,
            planned_cost=self.planned_cost,
            actual_cost=self.actual_cost,
            currency=self.currency,
            status=ExpenseStatus(self.status),
            due_date=self.due_date,
            vendor=self.vendor,
            notes=self.notes,
        )

    def apply_dto(self, dto, position: int) -> None:
        self.position = position
        self.category = dto.category.value
        self.description = dto.description
        self.planned_cost = dto.planned_cost
        self.actual_cost = dto.actual_cost
        self.currency = dto.currency
        self.status = dto.status.value
        self.due_date = dto.due_date
        self.vendor = dto.vendor
        self.notes = dto.notes

    @classmethod
    def from_dto(cls, dto, position: int, created_by_id: UUID) -> "ProjectExpenseModel":
        model = cls(id=dto.id, created_by_id=created_by_id)
        model.apply_dto(dto, position)
        return model

    def __repr__(self) -> str:
        return f"<ProjectExpenseModel {self.category} {self.planned_cost}>"
