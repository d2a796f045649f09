"""
Injectable date provider.

Every expiry and daily-reset decision reads "today" from a Clock passed in
by the caller, never from the wall clock directly.
"""

import time
from datetime import date, datetime, timedelta
from typing import Optional, Protocol


def iso_day(day: date) -> str:
    """Canonical fixed-width YYYY-MM-DD form."""
    return day.strftime("%Y-%m-%d")


def is_iso_day(value: Optional[str]) -> bool:
    if not isinstance(value, str) or len(value) != 10:
        return False
    try:
        return iso_day(date.fromisoformat(value)) == value
    except ValueError:
        return False


class Clock(Protocol):
    def today(self) -> str:
        """Local calendar date as YYYY-MM-DD."""
        ...

    def now_ms(self) -> int:
        """Epoch milliseconds."""
        ...


class SystemClock:
    """Local wall-clock time."""

    def today(self) -> str:
        return iso_day(date.today())

    def now_ms(self) -> int:
        return int(time.time() * 1000)


class FixedClock:
    """Settable clock for tests and simulations."""

    def __init__(self, today: str = "2025-01-01", now_ms: Optional[int] = None):
        self._day = date.fromisoformat(today)
        self._now_ms = now_ms

    def today(self) -> str:
        return iso_day(self._day)

    def now_ms(self) -> int:
        if self._now_ms is not None:
            return self._now_ms
        midnight = datetime(self._day.year, self._day.month, self._day.day)
        return int(midnight.timestamp() * 1000)

    def set_today(self, today: str) -> None:
        self._day = date.fromisoformat(today)

    def advance(self, days: int = 1) -> None:
        self._day = self._day + timedelta(days=days)
