"""
Time entry domain records.

Responsibility:
    Immutable records for logged time: the persisted ``TimeEntry``, the
    ``TimeEntryInput`` form data used to create one, the partial
    ``TimeEntryChanges`` used to edit one, and ``TimeEntryFilters`` for
    list views.

Architecture position:
    Kernel > Domain -- pure data definitions with ZERO I/O.

Invariants enforced:
    - ``duration`` is whole minutes.  When both ``start_time`` and
      ``end_time`` are present, ``duration`` equals the rounded difference
      (kept consistent by ``crm_engines.time_cost``).
    - ``hourly_rate`` is a snapshot taken from the resource at creation;
      it is not live-linked to the resource.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

MINUTES_PER_HOUR = Decimal("60")


@dataclass(frozen=True)
class TimeEntry:
    """A persisted block of time logged against a project."""

    id: UUID
    project_id: UUID
    description: str
    start_time: datetime
    duration: int
    entry_date: date
    resource_name: str | None = None
    end_time: datetime | None = None
    tags: tuple[str, ...] = ()
    billable: bool = False
    hourly_rate: Decimal | None = None
    currency: str = "USD"
    is_running: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def hours(self) -> Decimal:
        return Decimal(self.duration) / MINUTES_PER_HOUR


@dataclass(frozen=True)
class TimeEntryInput:
    """
    Form data for a new time entry.

    Exactly one of (``end_time``) or (``duration``) is authoritative:
    when ``end_time`` is given the duration is derived from the range.
    ``entry_date`` defaults to the date of ``start_time``.

    ``billable`` and ``hourly_rate`` are left ``None`` by manual entry
    forms, which bill at the matched resource's rate.  A stopped timer
    fills them with the values it was started with.
    """

    project_id: UUID
    description: str
    start_time: datetime
    resource_name: str | None = None
    end_time: datetime | None = None
    duration: int | None = None
    entry_date: date | None = None
    tags: tuple[str, ...] = ()
    currency: str = "USD"
    billable: bool | None = None
    hourly_rate: Decimal | None = None


@dataclass(frozen=True)
class TimeEntryChanges:
    """Partial update of a time entry. ``None`` means "leave unchanged"."""

    project_id: UUID | None = None
    resource_name: str | None = None
    description: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: int | None = None
    entry_date: date | None = None
    tags: tuple[str, ...] | None = None
    currency: str | None = None


@dataclass(frozen=True)
class TimeEntryFilters:
    """List-view filters; every criterion is optional and they AND together."""

    search: str | None = None
    project_id: UUID | None = None
    company_id: UUID | None = None
    date_from: date | None = None
    date_to: date | None = None
    billable: bool | None = None
    tags: tuple[str, ...] = ()
    min_duration: int | None = None
    max_duration: int | None = None


@dataclass(frozen=True)
class TimeEntryDraft:
    """
    A validated, costed entry ready for ``TimeEntryStore.create``.

    Produced only by ``crm_engines.time_cost.TimeEntryCostEngine``; the
    store assigns ``id`` and timestamps.
    """

    project_id: UUID
    description: str
    start_time: datetime
    duration: int
    entry_date: date
    resource_name: str | None
    end_time: datetime | None
    tags: tuple[str, ...]
    billable: bool
    hourly_rate: Decimal | None
    currency: str
    is_running: bool = False
