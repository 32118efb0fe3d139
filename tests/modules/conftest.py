"""
Shared fixtures for module service tests.

Every fixture here is opt-in and builds on the ``session`` fixture from the
root conftest, so each test starts from an empty in-memory database.
"""

from decimal import Decimal

import pytest

from crm_kernel.domain.project import (
    ExpenseCategory,
    ProjectExpense,
    ProjectResource,
    RateType,
)
from crm_modules.project.config import ProjectConfig
from crm_modules.project.models import ProjectDraft
from crm_modules.project.service import ProjectService
from crm_modules.time_tracking.service import TimeTrackingService


@pytest.fixture
def project_service(session, deterministic_clock):
    return ProjectService(
        session=session,
        clock=deterministic_clock,
        config=ProjectConfig(),
    )


@pytest.fixture
def time_service(session, deterministic_clock):
    return TimeTrackingService(session=session, clock=deterministic_clock)


@pytest.fixture
def acme(project_service, test_actor_id):
    return project_service.create_company("Acme Corp", test_actor_id)


@pytest.fixture
def budgeted_project(project_service, acme, test_actor_id):
    """
    Project with one hourly resource (50/h x 100h) and one 1000 expense,
    10% contingency, 15% overhead and 10000 revenue.
    """
    draft = ProjectDraft(
        company_id=acme.id,
        title="Website relaunch",
        total_revenue=Decimal("10000"),
        contingency_percentage=Decimal("10"),
        overhead_percentage=Decimal("15"),
        resources=(
            ProjectResource(
                name="Dana Developer",
                role="Developer",
                rate_type=RateType.HOURLY,
                hourly_rate=Decimal("50"),
                hours_allocated=Decimal("100"),
            ),
        ),
        expenses=(
            ProjectExpense(
                category=ExpenseCategory.LICENSES,
                description="IDE licences",
                planned_cost=Decimal("1000"),
            ),
        ),
    )
    return project_service.create_project(draft, test_actor_id)


@pytest.fixture
def empty_project(project_service, acme, test_actor_id):
    """Project with no resources; time cannot be tracked against it."""
    return project_service.create_project(
        ProjectDraft(company_id=acme.id, title="Discovery", total_revenue=Decimal("2000")),
        test_actor_id,
    )
