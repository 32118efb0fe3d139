"""
CRM Modules.

Thin orchestration layers over the CRM kernel and engines.
Each module contains:
- Domain records (the nouns) and configuration
- SQLAlchemy ORM models
- A store adapter (persistence port)
- A service facade that owns the transaction boundary

Modules:
- Project: Projects, budgets, resources, expenses, deal conversion
- Time tracking: Time entries, live timer, weekly and reconciliation reports

Actual calculation logic lives in the engines.
"""

from crm_modules import (
    project,
    time_tracking,
)

__all__ = [
    "project",
    "time_tracking",
]
