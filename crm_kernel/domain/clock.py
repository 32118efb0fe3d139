"""
Injectable time source for services.

Engines never read the clock; ``TimeTrackingService`` and ``ProjectService``
ask their ``Clock`` for ``now`` and pass it down.  ``SystemClock`` is the
only place that reads wall-clock time.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):
    """Source of the current instant. ``now()`` is always timezone-aware."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    Timer tests start a timer, ``advance()`` by the seconds they want the
    entry to last, then stop it.
    """

    def __init__(self, start: datetime | None = None):
        self._now = start or datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: int = 1) -> None:
        self._now += timedelta(seconds=seconds)
