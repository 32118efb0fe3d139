"""
Time entry store (``crm_modules.time_tracking.store``).

Responsibility
--------------
The ``TimeEntryStore`` port consumed by ``TimeTrackingService`` and its
SQLAlchemy adapter.

Architecture position
---------------------
**Modules layer** -- persistence glue.  Stores never commit; the service
owns the transaction boundary.  Storage errors are not caught or wrapped.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from crm_kernel.domain.time_entry import TimeEntry, TimeEntryDraft
from crm_kernel.logging_config import get_logger
from crm_modules.time_tracking.orm import TimeEntryModel

logger = get_logger("modules.time_tracking.store")


@runtime_checkable
class TimeEntryStore(Protocol):
    """Persistence port for time entries."""

    def create(self, draft: TimeEntryDraft, actor_id: UUID) -> TimeEntry:
        """Persist a validated draft; the store assigns id and timestamps."""
        ...

    def update(self, entry_id: UUID, changes: dict[str, Any], actor_id: UUID) -> TimeEntry | None:
        """Apply ``changes``; None when the entry does not exist."""
        ...

    def delete(self, entry_id: UUID) -> bool:
        ...

    def get(self, entry_id: UUID) -> TimeEntry | None:
        ...

    def find_by_project(self, project_id: UUID) -> list[TimeEntry]:
        ...

    def find_by_date_range(self, start: date, end: date) -> list[TimeEntry]:
        """Entries whose ``entry_date`` lies in ``[start, end]``."""
        ...

    def list_all(self) -> list[TimeEntry]:
        ...


class SqlTimeEntryStore:
    """``TimeEntryStore`` backed by the ``crm_time_entries`` table."""

    def __init__(self, session: Session):
        self._session = session

    def create(self, draft: TimeEntryDraft, actor_id: UUID) -> TimeEntry:
        model = TimeEntryModel.from_dto(draft, created_by_id=actor_id)
        self._session.add(model)
        self._session.flush()
        logger.debug("time_entry_inserted", extra={"entry_id": str(model.id)})
        return model.to_dto()

    def update(self, entry_id: UUID, changes: dict[str, Any], actor_id: UUID) -> TimeEntry | None:
        model = self._session.get(TimeEntryModel, entry_id)
        if model is None:
            return None
        for name, value in changes.items():
            if name == "tags":
                value = list(value)
            setattr(model, name, value)
        model.touch(actor_id)
        self._session.flush()
        return model.to_dto()

    def delete(self, entry_id: UUID) -> bool:
        model = self._session.get(TimeEntryModel, entry_id)
        if model is None:
            return False
        self._session.delete(model)
        self._session.flush()
        return True

    def get(self, entry_id: UUID) -> TimeEntry | None:
        model = self._session.get(TimeEntryModel, entry_id)
        if model is None:
            return None
        return model.to_dto()

    def find_by_project(self, project_id: UUID) -> list[TimeEntry]:
        rows = self._session.scalars(
            select(TimeEntryModel)
            .where(TimeEntryModel.project_id == project_id)
            .order_by(TimeEntryModel.start_time)
        )
        return [row.to_dto() for row in rows]

    def find_by_date_range(self, start: date, end: date) -> list[TimeEntry]:
        rows = self._session.scalars(
            select(TimeEntryModel)
            .where(TimeEntryModel.entry_date >= start)
            .where(TimeEntryModel.entry_date <= end)
            .order_by(TimeEntryModel.start_time)
        )
        return [row.to_dto() for row in rows]

    def list_all(self) -> list[TimeEntry]:
        rows = self._session.scalars(
            select(TimeEntryModel).order_by(TimeEntryModel.start_time.desc())
        )
        return [row.to_dto() for row in rows]
