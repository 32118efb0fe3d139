"""
Project Module (``crm_modules.project``).

Responsibility
--------------
Thin glue for project budgets: project creation (directly or from a won
deal), resource and expense maintenance, and budget settings.  All budget
derivation is delegated to ``crm_engines``.

Architecture position
---------------------
**Modules layer** -- config, ORM models, the project catalog and a service
facade.

Invariants enforced
-------------------
* The budget is derived by ``BudgetCalculator`` on every change.
* Transaction boundary owned by ``ProjectService``.
"""

from crm_modules.project.config import ProjectConfig
from crm_modules.project.models import (
    Company,
    Deal,
    Project,
    ProjectBudget,
    ProjectDraft,
    ProjectExpense,
    ProjectResource,
)

__all__ = [
    "Company",
    "Deal",
    "Project",
    "ProjectBudget",
    "ProjectConfig",
    "ProjectDraft",
    "ProjectExpense",
    "ProjectResource",
]
