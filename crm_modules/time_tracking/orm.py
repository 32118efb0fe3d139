"""
SQLAlchemy ORM persistence model for time entries.

Responsibility
--------------
Persist logged time: one row per ``TimeEntry``, linked to its project.

Architecture position
---------------------
**Modules layer** -- consumed by ``SqlTimeEntryStore``.  Inherits from
``TrackedBase`` (kernel db layer).

Invariants enforced
-------------------
* ``hourly_rate`` is the snapshot taken at creation (Numeric(38,9)).
* ``duration`` is whole minutes.
* ``start_time`` / ``end_time`` are stored and returned as aware UTC.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from crm_kernel.db.base import TrackedBase
from crm_kernel.db.types import CURRENCY_CODE_LENGTH, UTCDateTime


class TimeEntryModel(TrackedBase):
    """
    A block of time logged against a project.

    Maps to the ``TimeEntry`` DTO in ``crm_kernel.domain.time_entry``.
    """

    __tablename__ = "crm_time_entries"

    __table_args__ = (
        Index("idx_crm_time_entry_project", "project_id"),
        Index("idx_crm_time_entry_date", "entry_date"),
    )

    project_id: Mapped[UUID] = mapped_column(ForeignKey("crm_projects.id"), nullable=False)
    resource_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str] = mapped_column(String(4000), nullable=False)
    start_time: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    entry_date: Mapped[date]
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    billable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    hourly_rate: Mapped[Decimal | None]
    currency: Mapped[str] = mapped_column(String(CURRENCY_CODE_LENGTH), nullable=False, default="USD")
    is_running: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def to_dto(self):
        from crm_kernel.domain.time_entry import TimeEntry

        return TimeEntry(
            id=self.id,
            project_id=self.project_id,
            description=self.description,
            start_time=self.start_time,
            duration=self.duration,
            entry_date=self.entry_date,
            resource_name=self.resource_name,
            end_time=self.end_time,
            tags=tuple(self.tags or ()),
            billable=self.billable,
            hourly_rate=self.hourly_rate,
            currency=self.currency,
            is_running=self.is_running,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "TimeEntryModel":
        """Build a row from a ``TimeEntryDraft``."""
        return cls(
            project_id=dto.project_id,
            resource_name=dto.resource_name,
            description=dto.description,
            start_time=dto.start_time,
            end_time=dto.end_time,
            duration=dto.duration,
            entry_date=dto.entry_date,
            tags=list(dto.tags),
            billable=dto.billable,
            hourly_rate=dto.hourly_rate,
            currency=dto.currency,
            is_running=dto.is_running,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<TimeEntryModel {self.entry_date} {self.duration}m project={self.project_id}>"
