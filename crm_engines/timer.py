"""
crm_engines.timer -- Live time capture state machine.

Responsibility:
    Track one in-progress timer and turn it into a ``TimeEntryInput`` when
    stopped.  The displayed elapsed time and the final duration are always
    recomputed from ``now - start_time``; nothing is accumulated per tick.

Architecture position:
    Engines -- holds only the in-memory timer state; never reads the clock
    and never persists.  ``TimeTrackingService`` passes ``now`` in and
    hands the produced input to ``TimeEntryCostEngine``.

State machine:
    IDLE --start--> RUNNING --pause--> PAUSED --resume--> RUNNING
    RUNNING | PAUSED --stop--> STOPPED --reset--> IDLE
    STOPPED --reopen--> RUNNING | PAUSED   (persisting the entry failed)
    any --discard--> IDLE                  (abandoned, nothing persisted)

Invariants enforced:
    - ``start_time`` is recorded once, on start, and never mutated.
    - Paused time is part of the entry: the duration is measured from
      ``start_time`` to the stop instant.
    - While PAUSED the displayed elapsed time stays frozen at the pause
      instant.

Failure modes:
    - TimerStateError: any transition not listed above.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from crm_kernel.domain.time_entry import TimeEntryInput
from crm_kernel.exceptions import TimerStateError
from crm_kernel.logging_config import get_logger

logger = get_logger("engines.timer")


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ActiveTimer:
    """What the running timer will become once stopped."""

    project_id: UUID
    resource_name: str | None
    description: str
    billable: bool
    hourly_rate: Decimal | None
    start_time: datetime
    tags: tuple[str, ...] = ()
    paused_at: datetime | None = None


class Timer:
    """
    Single timer with explicit transitions.

    Contract:
        Every transition takes the current instant from the caller.
    Guarantees:
        - ``stop`` returns the input of the entry to persist; the timer
          stays STOPPED until ``reset`` (success) or ``reopen`` (failure).
    """

    def __init__(self) -> None:
        self._state = TimerState.IDLE
        self._active: ActiveTimer | None = None
        self._stopped_from: TimerState | None = None

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def active(self) -> ActiveTimer | None:
        return self._active

    @property
    def is_running(self) -> bool:
        return self._state == TimerState.RUNNING

    def _require(self, operation: str, *allowed: TimerState) -> None:
        if self._state not in allowed:
            logger.warning("timer_transition_rejected", extra={
                "operation": operation,
                "state": self._state.value,
            })
            raise TimerStateError(operation, self._state.value)

    def start(
        self,
        *,
        project_id: UUID,
        resource_name: str | None,
        description: str,
        billable: bool,
        hourly_rate: Decimal | None,
        now: datetime,
        tags: tuple[str, ...] = (),
    ) -> ActiveTimer:
        self._require("start", TimerState.IDLE)
        self._active = ActiveTimer(
            project_id=project_id,
            resource_name=resource_name,
            description=description,
            billable=billable,
            hourly_rate=hourly_rate,
            start_time=now,
            tags=tuple(tags),
        )
        self._state = TimerState.RUNNING
        logger.info("timer_started", extra={
            "project_id": str(project_id),
            "resource_name": resource_name,
            "start_time": now.isoformat(),
        })
        return self._active

    def pause(self, now: datetime) -> None:
        self._require("pause", TimerState.RUNNING)
        self._active = replace(self._active, paused_at=now)
        self._state = TimerState.PAUSED
        logger.info("timer_paused", extra={"elapsed_seconds": self.elapsed_seconds(now)})

    def resume(self, now: datetime) -> None:
        self._require("resume", TimerState.PAUSED)
        self._active = replace(self._active, paused_at=None)
        self._state = TimerState.RUNNING
        logger.info("timer_resumed", extra={"elapsed_seconds": self.elapsed_seconds(now)})

    def update_description(self, description: str) -> None:
        self._require("update description of", TimerState.RUNNING, TimerState.PAUSED)
        self._active = replace(self._active, description=description)

    def stop(self, now: datetime) -> TimeEntryInput:
        """
        Freeze the timer and produce the entry input.

        The duration is left to ``TimeEntryCostEngine``, which derives it
        from ``start_time`` and ``end_time=now``.
        """
        self._require("stop", TimerState.RUNNING, TimerState.PAUSED)
        active = self._active
        self._stopped_from = self._state
        self._state = TimerState.STOPPED
        logger.info("timer_stopped", extra={
            "project_id": str(active.project_id),
            "elapsed_seconds": int((now - active.start_time).total_seconds()),
        })
        return TimeEntryInput(
            project_id=active.project_id,
            description=active.description,
            start_time=active.start_time,
            end_time=now,
            resource_name=active.resource_name,
            entry_date=active.start_time.date(),
            tags=active.tags,
            billable=active.billable,
            hourly_rate=active.hourly_rate,
        )

    def reopen(self) -> None:
        """Return to the pre-stop state after the entry could not be persisted."""
        self._require("reopen", TimerState.STOPPED)
        self._state = self._stopped_from
        self._stopped_from = None
        logger.info("timer_reopened", extra={"state": self._state.value})

    def reset(self) -> None:
        """Finish a stopped timer after its entry was persisted."""
        self._require("reset", TimerState.STOPPED)
        self._clear()

    def discard(self) -> None:
        """Abandon the timer from any state; nothing is persisted."""
        if self._state != TimerState.IDLE:
            logger.info("timer_discarded", extra={"state": self._state.value})
        self._clear()

    def _clear(self) -> None:
        self._state = TimerState.IDLE
        self._active = None
        self._stopped_from = None

    def elapsed_seconds(self, now: datetime) -> int:
        """Whole seconds since start, frozen at the pause instant while PAUSED."""
        if self._active is None:
            return 0
        until = self._active.paused_at or now
        return max(0, int((until - self._active.start_time).total_seconds()))

    def display(self, now: datetime) -> str:
        return format_elapsed(self.elapsed_seconds(now))


def format_elapsed(seconds: int) -> str:
    """``HH:MM:SS`` clock rendering of elapsed seconds."""
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
