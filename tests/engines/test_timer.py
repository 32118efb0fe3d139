"""
Tests for the live timer state machine.

Covers:
- Legal transitions and the TimerStateError for illegal ones
- Elapsed time computed from timestamps (frozen while paused)
- The entry input produced on stop
- Reopen after a failed save, reset after a successful one
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from crm_engines.timer import Timer, TimerState, format_elapsed
from crm_kernel.exceptions import TimerStateError

T0 = datetime(2024, 1, 3, 23, 30, tzinfo=timezone.utc)


def _at(seconds: int) -> datetime:
    return T0 + timedelta(seconds=seconds)


class TestTimerTransitions:

    def setup_method(self):
        self.timer = Timer()
        self.project_id = uuid4()

    def _start(self):
        return self.timer.start(
            project_id=self.project_id,
            resource_name="Dana Developer",
            description="Pairing",
            billable=True,
            hourly_rate=Decimal("50"),
            now=T0,
            tags=("pairing",),
        )

    def test_starts_idle(self):
        assert self.timer.state == TimerState.IDLE
        assert self.timer.active is None
        assert self.timer.elapsed_seconds(T0) == 0

    def test_start(self):
        active = self._start()

        assert self.timer.state == TimerState.RUNNING
        assert self.timer.is_running
        assert active.start_time == T0
        assert active.tags == ("pairing",)

    def test_start_twice_rejected(self):
        self._start()
        with pytest.raises(TimerStateError) as exc_info:
            self._start()
        assert str(exc_info.value) == "Cannot start timer while running"

    def test_pause_and_resume(self):
        self._start()
        self.timer.pause(_at(60))
        assert self.timer.state == TimerState.PAUSED
        assert self.timer.active.paused_at == _at(60)

        self.timer.resume(_at(120))
        assert self.timer.state == TimerState.RUNNING
        assert self.timer.active.paused_at is None

    @pytest.mark.parametrize("operation", ["pause", "resume", "stop"])
    def test_illegal_from_idle(self, operation):
        with pytest.raises(TimerStateError) as exc_info:
            getattr(self.timer, operation)(T0)
        assert exc_info.value.state == "idle"

    def test_resume_while_running_rejected(self):
        self._start()
        with pytest.raises(TimerStateError):
            self.timer.resume(_at(5))

    def test_update_description(self):
        self._start()
        self.timer.update_description("Pairing on billing")
        assert self.timer.active.description == "Pairing on billing"

    def test_update_description_while_idle_rejected(self):
        with pytest.raises(TimerStateError, match="update description of"):
            self.timer.update_description("x")

    def test_discard_from_any_state(self):
        self._start()
        self.timer.pause(_at(10))
        self.timer.discard()

        assert self.timer.state == TimerState.IDLE
        assert self.timer.active is None


class TestTimerElapsed:

    def setup_method(self):
        self.timer = Timer()
        self.timer.start(
            project_id=uuid4(),
            resource_name="Dana Developer",
            description="Pairing",
            billable=True,
            hourly_rate=Decimal("50"),
            now=T0,
        )

    def test_elapsed_from_start(self):
        assert self.timer.elapsed_seconds(_at(3725)) == 3725
        assert self.timer.display(_at(3725)) == "01:02:05"

    def test_frozen_while_paused(self):
        self.timer.pause(_at(600))

        assert self.timer.elapsed_seconds(_at(900)) == 600
        assert self.timer.display(_at(5000)) == "00:10:00"

    def test_paused_time_counts_after_resume(self):
        """Elapsed time is always now - start; a pause does not subtract."""
        self.timer.pause(_at(600))
        self.timer.resume(_at(900))

        assert self.timer.elapsed_seconds(_at(1000)) == 1000

    def test_clock_before_start_is_zero(self):
        assert self.timer.elapsed_seconds(_at(-10)) == 0

    def test_format_elapsed(self):
        assert format_elapsed(0) == "00:00:00"
        assert format_elapsed(36000) == "10:00:00"


class TestTimerStop:

    def setup_method(self):
        self.timer = Timer()
        self.project_id = uuid4()
        self.timer.start(
            project_id=self.project_id,
            resource_name="Dana Developer",
            description="Pairing",
            billable=True,
            hourly_rate=Decimal("50"),
            now=T0,
            tags=("pairing",),
        )

    def test_stop_produces_entry_input(self):
        entry = self.timer.stop(_at(45 * 60))

        assert self.timer.state == TimerState.STOPPED
        assert entry.project_id == self.project_id
        assert entry.start_time == T0
        assert entry.end_time == _at(45 * 60)
        assert entry.resource_name == "Dana Developer"
        assert entry.description == "Pairing"
        assert entry.tags == ("pairing",)
        assert entry.billable is True
        assert entry.hourly_rate == Decimal("50")

    def test_non_billable_custom_rate_carried_into_entry(self):
        timer = Timer()
        timer.start(
            project_id=self.project_id,
            resource_name="Dana Developer",
            description="Internal review",
            billable=False,
            hourly_rate=Decimal("75"),
            now=T0,
        )

        entry = timer.stop(_at(3600))

        assert (entry.billable, entry.hourly_rate) == (False, Decimal("75"))

    def test_entry_dated_by_start_across_midnight(self):
        entry = self.timer.stop(_at(3600))

        assert entry.end_time.date() == date(2024, 1, 4)
        assert entry.entry_date == date(2024, 1, 3)

    def test_stop_from_paused(self):
        self.timer.pause(_at(60))
        entry = self.timer.stop(_at(600))

        assert entry.end_time == _at(600)

    def test_reset_after_stop(self):
        self.timer.stop(_at(60))
        self.timer.reset()

        assert self.timer.state == TimerState.IDLE
        assert self.timer.active is None

    def test_reopen_returns_to_previous_state(self):
        self.timer.pause(_at(60))
        self.timer.stop(_at(120))
        self.timer.reopen()

        assert self.timer.state == TimerState.PAUSED
        assert self.timer.active.start_time == T0

    def test_reset_without_stop_rejected(self):
        with pytest.raises(TimerStateError):
            self.timer.reset()

    def test_stop_twice_rejected(self):
        self.timer.stop(_at(60))
        with pytest.raises(TimerStateError):
            self.timer.stop(_at(120))
