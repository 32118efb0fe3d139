"""
Time Tracking Module Service (``crm_modules.time_tracking.service``).

Responsibility
--------------
Orchestrates time capture and time reporting: manual entries, edits and
deletes, the live timer, filtered lists, the weekly report, project time
statistics, and budget reconciliation.  Validation and costing are
delegated to ``TimeEntryCostEngine``; aggregation to
``WeeklyReportAggregator`` and ``ProjectReconciler``; persistence to a
``TimeEntryStore`` and the project catalog.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``TimeTrackingService`` is the sole public
entry point for time tracking.

Invariants enforced
-------------------
* Each mutating method owns the transaction boundary (``commit`` on
  success, ``rollback`` on any exception).
* All validation happens before the first store call.
* The timer's elapsed time and the stopped entry's duration are computed
  from clock timestamps, never from accumulated ticks.
* A timer whose entry could not be persisted is re-opened, never lost.

Failure modes
-------------
* ``ValidationError`` subclasses -- rejected input, nothing written.
* ``TimeEntryNotFoundError`` -- update of an unknown entry.
* ``TimerStateError`` -- illegal timer transition.
* Storage errors -- session rolled back, exception re-raised unchanged.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from crm_engines.reconciliation import ProjectReconciler, project_time_stats
from crm_engines.time_cost import TimeEntryCostEngine, entry_cost
from crm_engines.timer import ActiveTimer, Timer, TimerState
from crm_engines.weekly_report import (
    DAYS_PER_WEEK,
    WeeklyReportAggregator,
    current_week,
    entries_for_day,
    week_start_for,
)
from crm_kernel.domain.clock import Clock, SystemClock
from crm_kernel.domain.reports import (
    ProjectReconciliation,
    ProjectTimeStats,
    WeeklyTimeReport,
)
from crm_kernel.domain.time_entry import (
    TimeEntry,
    TimeEntryChanges,
    TimeEntryFilters,
    TimeEntryInput,
)
from crm_kernel.exceptions import ProjectNotFoundError, TimeEntryNotFoundError
from crm_kernel.logging_config import LogContext, get_logger
from crm_modules.project.store import (
    UNKNOWN_COMPANY,
    CatalogNameResolver,
    ProjectCatalog,
    SqlProjectCatalog,
)
from crm_modules.time_tracking.store import SqlTimeEntryStore, TimeEntryStore

logger = get_logger("modules.time_tracking.service")


class TimeTrackingService:
    """
    Orchestrates time entries, the live timer and time reports.

    Contract
    --------
    * One service instance holds one timer; keep the instance for the
      duration of a user session.
    * Report methods are read-only and never commit.

    Guarantees
    ----------
    * Clock is injectable for deterministic testing.
    * Entries keep the rate snapshot taken when they were bound to a
      resource.

    Non-goals
    ---------
    * Does NOT convert currencies.
    * Does NOT reconcile expense actuals; reconciliation covers time only.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        store: TimeEntryStore | None = None,
        catalog: ProjectCatalog | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._store = store or SqlTimeEntryStore(session)
        self._catalog = catalog or SqlProjectCatalog(session)
        self._engine = TimeEntryCostEngine()
        self._aggregator = WeeklyReportAggregator()
        self._reconciler = ProjectReconciler()
        self._timer = Timer()

    # =========================================================================
    # Entries
    # =========================================================================

    def add_entry(self, entry: TimeEntryInput, actor_id: UUID) -> TimeEntry:
        """Validate, cost and persist a manual entry."""
        with LogContext.bind(project_id=str(entry.project_id), actor_id=str(actor_id)):
            project = self._catalog.get(entry.project_id)
            draft = self._engine.prepare_new_entry(project=project, entry=entry)
            try:
                created = self._store.create(draft, actor_id)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise
            logger.info("time_entry_created", extra={
                "entry_id": str(created.id),
                "duration": created.duration,
                "billable": created.billable,
                "cost": str(entry_cost(created)),
            })
        return created

    def update_entry(
        self,
        entry_id: UUID,
        changes: TimeEntryChanges,
        actor_id: UUID,
    ) -> TimeEntry:
        """
        Apply a partial edit.

        A resource name that matches no resource of the project clears the
        entry's billing instead of failing (see ``crm_engines.time_cost``).
        """
        with LogContext.bind(entry_id=str(entry_id), actor_id=str(actor_id)):
            current = self._store.get(entry_id)
            if current is None:
                raise TimeEntryNotFoundError(str(entry_id))
            project = self._catalog.get(changes.project_id or current.project_id)
            updates = self._engine.prepare_update(
                project=project, current=current, changes=changes,
            )
            if not updates:
                return current
            try:
                updated = self._store.update(entry_id, updates, actor_id)
                if updated is None:
                    raise TimeEntryNotFoundError(str(entry_id))
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise
            logger.info("time_entry_updated", extra={
                "fields": sorted(updates),
                "billable": updated.billable,
            })
        return updated

    def delete_entry(self, entry_id: UUID, actor_id: UUID) -> bool:
        """Delete an entry; False when it did not exist."""
        try:
            deleted = self._store.delete(entry_id)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        logger.info("time_entry_deleted", extra={
            "entry_id": str(entry_id),
            "actor_id": str(actor_id),
            "deleted": deleted,
        })
        return deleted

    def get_entry(self, entry_id: UUID) -> TimeEntry | None:
        return self._store.get(entry_id)

    def entries_for_project(self, project_id: UUID) -> list[TimeEntry]:
        return self._store.find_by_project(project_id)

    def entries_for_range(self, start: date, end: date) -> list[TimeEntry]:
        return self._store.find_by_date_range(start, end)

    def entries_for_day(self, day: date | datetime) -> list[TimeEntry]:
        target = day.date() if isinstance(day, datetime) else day
        return entries_for_day(self._store.find_by_date_range(target, target), target)

    def filter_entries(self, filters: TimeEntryFilters) -> list[TimeEntry]:
        """All entries matching every given criterion, newest first."""
        entries = self._store.list_all()

        if filters.search:
            needle = filters.search.lower()
            entries = [
                e for e in entries
                if needle in e.description.lower()
                or any(needle in tag.lower() for tag in e.tags)
            ]
        if filters.project_id is not None:
            entries = [e for e in entries if e.project_id == filters.project_id]
        if filters.company_id is not None:
            project_ids = {p.id for p in self._catalog.list_all() if p.company_id == filters.company_id}
            entries = [e for e in entries if e.project_id in project_ids]
        if filters.date_from is not None:
            entries = [e for e in entries if e.entry_date >= filters.date_from]
        if filters.date_to is not None:
            entries = [e for e in entries if e.entry_date <= filters.date_to]
        if filters.billable is not None:
            entries = [e for e in entries if e.billable == filters.billable]
        if filters.tags:
            wanted = set(filters.tags)
            entries = [e for e in entries if wanted.intersection(e.tags)]
        if filters.min_duration is not None:
            entries = [e for e in entries if e.duration >= filters.min_duration]
        if filters.max_duration is not None:
            entries = [e for e in entries if e.duration <= filters.max_duration]
        return entries

    # =========================================================================
    # Timer
    # =========================================================================

    @property
    def timer_state(self) -> TimerState:
        return self._timer.state

    @property
    def active_timer(self) -> ActiveTimer | None:
        return self._timer.active

    def start_timer(
        self,
        project_id: UUID,
        description: str,
        resource_name: str | None = None,
        billable: bool = True,
        hourly_rate: Decimal | None = None,
        tags: tuple[str, ...] = (),
    ) -> ActiveTimer:
        """
        Start the timer for a project resource.

        The project and resource are checked up front so that a running
        timer can always be turned into an entry.  ``hourly_rate``
        defaults to the resource's rate.
        """
        project = self._catalog.get(project_id)
        resource = self._engine.resolve_resource(project, project_id, resource_name)
        return self._timer.start(
            project_id=project_id,
            resource_name=resource.name,
            description=description,
            billable=billable,
            hourly_rate=hourly_rate if hourly_rate is not None else resource.hourly_rate,
            now=self._clock.now(),
            tags=tags,
        )

    def pause_timer(self) -> None:
        self._timer.pause(self._clock.now())

    def resume_timer(self) -> None:
        self._timer.resume(self._clock.now())

    def update_timer_description(self, description: str) -> None:
        self._timer.update_description(description)

    def stop_timer(self, actor_id: UUID) -> TimeEntry:
        """
        Stop the timer and persist its entry.

        On any failure the timer returns to the state it was stopped from
        and the error propagates.
        """
        entry_input = self._timer.stop(self._clock.now())
        try:
            entry = self.add_entry(entry_input, actor_id)
        except Exception:
            self._timer.reopen()
            raise
        self._timer.reset()
        return entry

    def discard_timer(self) -> None:
        """Abandon the running timer; nothing is persisted."""
        self._timer.discard()

    def timer_elapsed_seconds(self) -> int:
        return self._timer.elapsed_seconds(self._clock.now())

    def timer_display(self) -> str:
        return self._timer.display(self._clock.now())

    # =========================================================================
    # Reports
    # =========================================================================

    def weekly_report(self, week_start: date | datetime | None = None) -> WeeklyTimeReport:
        """Report for the week containing ``week_start`` (default: this week)."""
        start = week_start_for(week_start) if week_start is not None else current_week(self._clock.now())
        first = start.date()
        entries = self._store.find_by_date_range(first, first + timedelta(days=DAYS_PER_WEEK - 1))
        return self._aggregator.aggregate(
            week_start=start,
            entries=entries,
            names=CatalogNameResolver(self._catalog),
        )

    def reconcile_project(self, project_id: UUID) -> ProjectReconciliation:
        project = self._require_project(project_id)
        names = CatalogNameResolver(self._catalog)
        return self._reconciler.reconcile(
            project=project,
            entries=self._store.find_by_project(project_id),
            company_name=names.company_name(project_id),
        )

    def reconciliation_report(self) -> list[ProjectReconciliation]:
        """Reconciliation of every project with tracked or budgeted hours."""
        projects = self._catalog.list_all()
        entries_by_project: dict[UUID, list[TimeEntry]] = defaultdict(list)
        for entry in self._store.list_all():
            entries_by_project[entry.project_id].append(entry)
        company_names = {
            p.id: self._catalog.company_name(p.company_id) or UNKNOWN_COMPANY
            for p in projects
        }
        return self._reconciler.reconciliation_report(
            projects=projects,
            entries_by_project=entries_by_project,
            company_names=company_names,
        )

    def project_time_stats(self, project_id: UUID) -> ProjectTimeStats:
        project = self._require_project(project_id)
        return project_time_stats(project, self._store.find_by_project(project_id))

    def _require_project(self, project_id: UUID):
        project = self._catalog.get(project_id)
        if project is None:
            raise ProjectNotFoundError(str(project_id))
        return project
