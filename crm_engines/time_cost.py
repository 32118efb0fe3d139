"""
crm_engines.time_cost -- Billable cost of time entries.

Responsibility:
    Validate time entry input against its project, bind billable entries to
    a budget resource, snapshot the resource's rate, resolve the duration,
    and compute the billable cost of an entry.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Callers look the project
    up and hand the resulting draft or change set to the store.

Invariants enforced:
    - Fail fast: every validation error is raised before any store call,
      so no partial state is ever written.
    - Rate snapshot: ``hourly_rate`` and ``currency`` are copied from the
      matched resource when the entry is created (or re-bound to a
      different resource); later resource edits never alter existing
      entries.
    - Duration: when both start and end are known the duration is
      ``round((end - start) / 60s)`` minutes; otherwise the supplied
      duration is used.  Either way it must be > 0.
    - Cost = (duration / 60) * hourly_rate for billable entries, else 0.

Failure modes:
    - ProjectNotFoundError, NoProjectResourcesError, ResourceNotMatchedError,
      MissingDescriptionError, InvalidTimeRangeError, InvalidDurationError.

Known inconsistency:
    On *update*, a resource name that matches no resource of the project
    does not raise.  The entry silently loses its billing binding
    (billable=False, hourly_rate=None).  Creation is strict.  The
    permissive edit path is kept as-is and logged as
    ``time_entry_billing_cleared`` so the two rules can be reconciled
    deliberately later.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from crm_engines.tracer import traced_engine
from crm_kernel.domain.project import Project, ProjectResource
from crm_kernel.domain.time_entry import (
    MINUTES_PER_HOUR,
    TimeEntry,
    TimeEntryChanges,
    TimeEntryDraft,
    TimeEntryInput,
)
from crm_kernel.exceptions import (
    InvalidDurationError,
    InvalidTimeRangeError,
    MissingDescriptionError,
    NoProjectResourcesError,
    ProjectNotFoundError,
    ResourceNotMatchedError,
)
from crm_kernel.logging_config import get_logger

logger = get_logger("engines.time_cost")

_ZERO = Decimal("0")
_MICROSECONDS_PER_MINUTE = Decimal(60 * 1_000_000)


def minutes_between(start_time: datetime, end_time: datetime) -> int:
    """Whole minutes from start to end, rounded half up."""
    micros = (end_time - start_time) // timedelta(microseconds=1)
    minutes = Decimal(micros) / _MICROSECONDS_PER_MINUTE
    return int(minutes.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def resolve_duration(
    start_time: datetime,
    end_time: datetime | None,
    duration: int | None,
) -> int:
    """
    Authoritative duration in minutes.

    Raises:
        InvalidTimeRangeError: end_time is not after start_time.
        InvalidDurationError: resulting duration is not positive.
    """
    if end_time is not None:
        if end_time <= start_time:
            raise InvalidTimeRangeError(start_time, end_time)
        resolved = minutes_between(start_time, end_time)
    else:
        resolved = duration
    if resolved is None or resolved <= 0:
        raise InvalidDurationError(resolved)
    return resolved


def entry_cost(entry: TimeEntry | TimeEntryDraft) -> Decimal:
    """(duration / 60) * hourly_rate for billable entries with a rate."""
    if not entry.billable or entry.hourly_rate is None:
        return _ZERO
    return Decimal(entry.duration) / MINUTES_PER_HOUR * entry.hourly_rate


def format_duration(minutes: int) -> str:
    """Render minutes as ``"45m"``, ``"2h"`` or ``"2h 30m"``."""
    hours, mins = divmod(minutes, 60)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


class TimeEntryCostEngine:
    """
    Validates and costs time entries against a project's budget resources.

    Contract:
        No I/O, no clock access.  The caller supplies the project (or
        ``None`` when the lookup failed) and the current entry for updates.
    Guarantees:
        - ``prepare_new_entry`` returns a fully-populated draft or raises.
        - ``prepare_update`` returns only the fields to write.
    """

    def _require_project(self, project: Project | None, project_id) -> Project:
        if project is None:
            logger.warning("time_entry_project_not_found", extra={
                "project_id": str(project_id),
            })
            raise ProjectNotFoundError(str(project_id))
        if not project.budget.resources:
            logger.warning("time_entry_project_has_no_resources", extra={
                "project_id": str(project.id),
            })
            raise NoProjectResourcesError(str(project.id))
        return project

    def _match_resource(self, project: Project, resource_name: str | None) -> ProjectResource:
        resource = project.budget.find_resource(resource_name)
        if resource is None:
            logger.warning("time_entry_resource_not_matched", extra={
                "project_id": str(project.id),
                "resource_name": resource_name,
            })
            raise ResourceNotMatchedError(str(project.id), resource_name)
        return resource

    def resolve_resource(
        self,
        project: Project | None,
        project_id,
        resource_name: str | None,
    ) -> ProjectResource:
        """
        The resource billable time for ``resource_name`` would bind to.

        Raises:
            ProjectNotFoundError, NoProjectResourcesError,
            ResourceNotMatchedError.
        """
        return self._match_resource(self._require_project(project, project_id), resource_name)

    @traced_engine(
        "time_cost",
        "1.0",
        fingerprint_fields=("entry",),
    )
    def prepare_new_entry(
        self,
        *,
        project: Project | None,
        entry: TimeEntryInput,
    ) -> TimeEntryDraft:
        """
        Validate a new entry and bind it to its resource.

        Args:
            project: The project named by ``entry.project_id``, or None.
            entry: Form data of the new entry.

        Returns:
            TimeEntryDraft bound to the matched resource with its currency
            snapshotted.  Billable at the resource's rate unless the input
            carries its own ``billable`` / ``hourly_rate``.

        Raises:
            ProjectNotFoundError, NoProjectResourcesError,
            MissingDescriptionError, ResourceNotMatchedError,
            InvalidTimeRangeError, InvalidDurationError.
        """
        project = self._require_project(project, entry.project_id)

        if not entry.description or not entry.description.strip():
            raise MissingDescriptionError()

        resource = self._match_resource(project, entry.resource_name)

        duration = resolve_duration(entry.start_time, entry.end_time, entry.duration)
        billable = True if entry.billable is None else entry.billable
        hourly_rate = resource.hourly_rate if entry.hourly_rate is None else entry.hourly_rate

        draft = TimeEntryDraft(
            project_id=project.id,
            description=entry.description.strip(),
            start_time=entry.start_time,
            end_time=entry.end_time,
            duration=duration,
            entry_date=entry.entry_date or entry.start_time.date(),
            resource_name=resource.name,
            tags=tuple(entry.tags),
            billable=billable,
            hourly_rate=hourly_rate,
            currency=resource.currency,
        )

        logger.info("time_entry_prepared", extra={
            "project_id": str(project.id),
            "resource_name": resource.name,
            "duration": duration,
            "billable": billable,
            "hourly_rate": str(hourly_rate),
            "cost": str(entry_cost(draft)),
        })
        return draft

    def prepare_update(
        self,
        *,
        project: Project | None,
        current: TimeEntry,
        changes: TimeEntryChanges,
    ) -> dict[str, Any]:
        """
        Merge ``changes`` into ``current`` and return the fields to write.

        Duration is re-resolved whenever start, end or duration changes so
        that both representations stay consistent.  Billing is re-bound
        only when the project or resource name changes; an unchanged
        binding keeps its original rate snapshot.

        Args:
            project: The project the entry will belong to after the update.
            current: The stored entry.
            changes: Partial update; ``None`` fields are left unchanged.

        Raises:
            ProjectNotFoundError, MissingDescriptionError,
            InvalidTimeRangeError, InvalidDurationError.
        """
        target_project_id = changes.project_id or current.project_id
        if project is None:
            raise ProjectNotFoundError(str(target_project_id))

        updates: dict[str, Any] = {}

        if changes.description is not None:
            if not changes.description.strip():
                raise MissingDescriptionError()
            updates["description"] = changes.description.strip()
        for name in ("entry_date", "currency"):
            value = getattr(changes, name)
            if value is not None:
                updates[name] = value
        if changes.tags is not None:
            updates["tags"] = tuple(changes.tags)

        timing_changed = (
            changes.start_time is not None
            or changes.end_time is not None
            or changes.duration is not None
        )
        if timing_changed:
            start_time = changes.start_time or current.start_time
            if changes.duration is not None and changes.end_time is None:
                # explicit duration wins over a stored end time
                end_time = None
            else:
                end_time = changes.end_time or current.end_time
            duration = resolve_duration(
                start_time,
                end_time,
                changes.duration if changes.duration is not None else current.duration,
            )
            updates.update(start_time=start_time, end_time=end_time, duration=duration)

        rebind = (
            (changes.project_id is not None and changes.project_id != current.project_id)
            or (changes.resource_name is not None and changes.resource_name != current.resource_name)
        )
        if rebind:
            resource_name = changes.resource_name if changes.resource_name is not None else current.resource_name
            updates["project_id"] = project.id
            updates.update(self._binding(project, resource_name, changes.currency or current.currency))

        logger.info("time_entry_update_prepared", extra={
            "entry_id": str(current.id),
            "fields": sorted(updates),
        })
        return updates

    def _binding(
        self,
        project: Project,
        resource_name: str | None,
        fallback_currency: str,
    ) -> dict[str, Any]:
        resource: ProjectResource | None = project.budget.find_resource(resource_name)
        if resource is None:
            logger.warning("time_entry_billing_cleared", extra={
                "project_id": str(project.id),
                "resource_name": resource_name,
            })
            return {
                "resource_name": resource_name,
                "billable": False,
                "hourly_rate": None,
                "currency": fallback_currency,
            }
        return {
            "resource_name": resource.name,
            "billable": True,
            "hourly_rate": resource.hourly_rate,
            "currency": resource.currency,
        }
