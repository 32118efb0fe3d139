"""
Pytest fixtures for the CRM budgeting test suite.

Provides:
- Structured logging configuration and log capture
- SQLite in-memory database sessions
- Deterministic clock
- Common domain builders

Environment Variables:
- DATABASE_URL: SQLAlchemy URL for the test database.  Defaults to an
  in-memory SQLite database, so no server is needed.
"""

import json
import logging
import os
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from crm_engines.budget import BudgetCalculator
from crm_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from crm_kernel.domain.clock import DeterministicClock
from crm_kernel.domain.project import (
    ExpenseCategory,
    Project,
    ProjectExpense,
    ProjectResource,
    RateType,
)
from crm_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()

DEFAULT_DATABASE_URL = "sqlite://"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, handler=logging.NullHandler())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture crm_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            BudgetCalculator().calculate(...)
            logs = captured_logs()
            assert any(r["message"] == "budget_calculated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("crm_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


def get_database_url() -> str:
    """Get database URL from environment, or use in-memory SQLite."""
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """Fresh schema and session per test."""
    init_engine_from_url(get_database_url(), echo=False)
    create_tables()
    db_session = get_session()
    try:
        yield db_session
    finally:
        db_session.rollback()
        db_session.close()
        drop_tables()
        reset_engine()


@pytest.fixture
def test_actor_id() -> UUID:
    return TEST_ACTOR_ID


# =============================================================================
# Clock and domain builders
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(datetime(2024, 1, 3, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def developer() -> ProjectResource:
    return ProjectResource(
        name="Dana Developer",
        role="Developer",
        rate_type=RateType.HOURLY,
        hourly_rate=Decimal("50"),
        hours_allocated=Decimal("100"),
    )


@pytest.fixture
def licence_expense() -> ProjectExpense:
    return ProjectExpense(
        category=ExpenseCategory.LICENSES,
        description="IDE licences",
        planned_cost=Decimal("1000"),
    )


@pytest.fixture
def make_project(developer, licence_expense):
    """Build an in-memory project with a calculated budget."""

    def _make(
        resources=None,
        expenses=None,
        total_revenue=Decimal("10000"),
        title="Website relaunch",
    ) -> Project:
        budget = BudgetCalculator().calculate(
            total_revenue=total_revenue,
            resources=(developer,) if resources is None else resources,
            expenses=(licence_expense,) if expenses is None else expenses,
            contingency_percentage=Decimal("10"),
            overhead_percentage=Decimal("15"),
            currency="USD",
        )
        return Project(id=uuid4(), company_id=uuid4(), title=title, budget=budget)

    return _make
