"""
Project catalog (``crm_modules.project.store``).

Responsibility
--------------
The ``ProjectCatalog`` port and its SQLAlchemy adapter.  The catalog is the
only way services reach a project's resources and expenses (they are
embedded in the project's budget) and the display names used by reports.

Architecture position
---------------------
**Modules layer** -- persistence glue.  Stores never commit; the owning
service controls the transaction boundary.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from crm_kernel.domain.project import Project
from crm_kernel.logging_config import get_logger
from crm_modules.project.models import Company
from crm_modules.project.orm import (
    CompanyModel,
    ProjectExpenseModel,
    ProjectModel,
    ProjectResourceModel,
)

logger = get_logger("modules.project.store")

UNKNOWN_PROJECT = "Unknown Project"
UNKNOWN_COMPANY = "Unknown Company"


@runtime_checkable
class ProjectCatalog(Protocol):
    """Read and write access to projects with their embedded budgets."""

    def get(self, project_id: UUID) -> Project | None:
        ...

    def save(self, project: Project, actor_id: UUID) -> Project:
        ...

    def list_all(self) -> list[Project]:
        ...

    def company_name(self, company_id: UUID) -> str:
        ...


class SqlProjectCatalog:
    """``ProjectCatalog`` backed by the ``crm_projects`` tables."""

    def __init__(self, session: Session):
        self._session = session

    def get(self, project_id: UUID) -> Project | None:
        model = self._session.get(ProjectModel, project_id)
        if model is None:
            return None
        return model.to_dto()

    def list_all(self) -> list[Project]:
        rows = self._session.scalars(select(ProjectModel).order_by(ProjectModel.title))
        return [row.to_dto() for row in rows]

    def find_by_company(self, company_id: UUID) -> list[Project]:
        rows = self._session.scalars(
            select(ProjectModel)
            .where(ProjectModel.company_id == company_id)
            .order_by(ProjectModel.title)
        )
        return [row.to_dto() for row in rows]

    def save(self, project: Project, actor_id: UUID) -> Project:
        """Insert or update ``project`` including its resources and expenses."""
        model = self._session.get(ProjectModel, project.id)
        if model is None:
            model = ProjectModel.from_dto(project, created_by_id=actor_id)
            self._session.add(model)
        else:
            model.apply_dto(project)
            model.touch(actor_id)
            model.resources = _sync_children(
                model.resources, project.budget.resources, ProjectResourceModel, actor_id
            )
            model.expenses = _sync_children(
                model.expenses, project.budget.expenses, ProjectExpenseModel, actor_id
            )
        self._session.flush()
        logger.debug("project_saved", extra={
            "project_id": str(project.id),
            "resource_count": len(project.budget.resources),
            "expense_count": len(project.budget.expenses),
        })
        return model.to_dto()

    def add_company(self, name: str, actor_id: UUID) -> Company:
        model = CompanyModel(name=name, created_by_id=actor_id)
        self._session.add(model)
        self._session.flush()
        return model.to_dto()

    def get_company(self, company_id: UUID) -> Company | None:
        model = self._session.get(CompanyModel, company_id)
        if model is None:
            return None
        return model.to_dto()

    def company_name(self, company_id: UUID) -> str:
        company = self.get_company(company_id)
        return company.name if company is not None else ""


def _sync_children(existing: Iterable, dtos: Iterable, model_cls, actor_id: UUID) -> list:
    """Update rows in place by id, add new ones, and drop the rest."""
    by_id = {row.id: row for row in existing}
    synced = []
    for position, dto in enumerate(dtos):
        row = by_id.get(dto.id)
        if row is None:
            row = model_cls.from_dto(dto, position, actor_id)
        else:
            row.apply_dto(dto, position)
            row.touch(actor_id)
        synced.append(row)
    return synced


class CatalogNameResolver:
    """
    ``NameResolver`` over a project catalog.

    Names are looked up once per project and cached for the lifetime of
    the resolver, which is meant to live for one report.
    """

    def __init__(self, catalog: ProjectCatalog):
        self._catalog = catalog
        self._titles: dict[UUID, str] = {}
        self._companies: dict[UUID, str] = {}

    def _load(self, project_id: UUID) -> None:
        if project_id in self._titles:
            return
        project = self._catalog.get(project_id)
        if project is None:
            self._titles[project_id] = UNKNOWN_PROJECT
            self._companies[project_id] = UNKNOWN_COMPANY
            return
        self._titles[project_id] = project.title
        self._companies[project_id] = (
            self._catalog.company_name(project.company_id) or UNKNOWN_COMPANY
        )

    def project_title(self, project_id: UUID) -> str:
        self._load(project_id)
        return self._titles[project_id]

    def company_name(self, project_id: UUID) -> str:
        self._load(project_id)
        return self._companies[project_id]
