"""
Declarative base for the CRM ORM models.

``Base`` fixes the column types every model shares: UUID keys stored as
36-character strings (SQLite and PostgreSQL alike), ``Decimal`` money,
rates and hours as ``Numeric(38, 9)``, aware datetimes.

``TrackedBase`` adds who created or last changed a row and when.  Stores
pass the acting user to ``from_dto`` on insert and call ``touch`` on
every change.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import Date, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID <-> ``"xxxxxxxx-xxxx-..."``."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        UUID: UUIDString(),
        Decimal: Numeric(38, 9, asdecimal=True),
        datetime: DateTime(timezone=True),
        date: Date,
    }

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)


class TrackedBase(Base):
    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(),
    )
    created_by_id: Mapped[UUID]
    updated_by_id: Mapped[UUID | None]

    def touch(self, actor_id: UUID) -> None:
        """Record ``actor_id`` as the last user to change this row."""
        self.updated_by_id = actor_id
