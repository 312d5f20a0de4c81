"""
Clock -- source of "today" for settlement steps.

Responsibility:
    Every date the engine stamps on its own (payout confirmed, payout
    received, default send and arrival dates) comes from an injected
    Clock.  Domain, engine and service code never call ``date.today()``.

Architecture position:
    Kernel > Domain.  ``SystemClock`` is the only place that reads the
    wall clock.

Failure modes:
    (none)
"""

from abc import ABC, abstractmethod
from datetime import UTC, date, datetime, timedelta, tzinfo


class Clock(ABC):
    """
    Calendar-day clock.

    Contract:
        ``today()`` returns the current calendar date in the clock's
        business timezone.  Settlement works in whole days only.
    """

    @abstractmethod
    def today(self) -> date: ...


class SystemClock(Clock):
    """Wall-clock date in ``tz`` (UTC unless given)."""

    def __init__(self, tz: tzinfo = UTC):
        self._tz = tz

    def today(self) -> date:
        return datetime.now(self._tz).date()


class DeterministicClock(Clock):
    """
    Test clock pinned to a date.

    Guarantees:
        ``today()`` is stable until ``set_date()`` or ``advance_days()``.
    """

    def __init__(self, today: date = date(2024, 1, 1)):
        self._today = today

    def today(self) -> date:
        return self._today

    def set_date(self, day: date) -> None:
        self._today = day

    def advance_days(self, days: int = 1) -> None:
        self._today += timedelta(days=days)
