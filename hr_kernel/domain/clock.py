"""
Clock -- injectable source of "now" for the payroll and loan services.

Loan due-date checks, postponement validation, payslip settlement dates and
the stale-approval sweep all depend on the current time, so services take a
``Clock`` instead of calling ``datetime.now()``.  Engines take dates as
parameters and never see a clock.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

DEFAULT_TEST_TIME = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """``now()`` is timezone-aware; ``today()`` is its date in that zone."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock UTC time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock frozen at a given instant until a test moves it.

    Starts on Monday 2026-01-05 09:00 UTC unless told otherwise.
    """

    def __init__(self, start: datetime | None = None):
        start = start or DEFAULT_TEST_TIME
        if start.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware start time")
        self._current = start

    def now(self) -> datetime:
        return self._current

    def set_time(self, moment: datetime) -> None:
        if moment.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware time")
        self._current = moment

    def advance(self, delta: timedelta) -> None:
        if delta < timedelta(0):
            raise ValueError("A clock never runs backwards")
        self._current += delta

    def advance_hours(self, hours: float) -> None:
        self.advance(timedelta(hours=hours))

    def advance_days(self, days: int) -> None:
        self.advance(timedelta(days=days))
