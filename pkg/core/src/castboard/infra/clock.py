"""Reference-timezone clock used by schedule validation.

A schedule_date is a calendar date in one fixed reference timezone, and "today"
for past-date checks is that zone's date. Start times are stored as UTC
instants. Everything that turns an instant into a date goes through here.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo
from threading import Lock
from typing import Protocol, runtime_checkable
from zoneinfo import ZoneInfo

from .settings import settings


@runtime_checkable
class Clock(Protocol):
    """Protocol implemented by clock providers."""

    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""

    def today(self) -> date:
        """Return the current calendar date in the reference timezone."""

    @property
    def tz(self) -> tzinfo:
        """The reference timezone."""


class SystemClock:
    """Wall clock bound to a reference timezone."""

    def __init__(self, tz_name: str | None = None) -> None:
        self._tz = ZoneInfo(tz_name or settings.reference_timezone)

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().astimezone(self._tz).date()


class SteppedClock:
    """Deterministic clock used for tests.

    Time advances only when :meth:`advance` is called.
    """

    def __init__(self, start: datetime, tz_name: str | None = None) -> None:
        ensure_aware(start)
        self._current = start.astimezone(timezone.utc)
        self._tz = ZoneInfo(tz_name or settings.reference_timezone)
        self._lock = Lock()

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        with self._lock:
            return self._current

    def today(self) -> date:
        return self.now().astimezone(self._tz).date()

    def advance(self, seconds: float) -> datetime:
        """Advance the clock by ``seconds`` (must be non-negative)."""
        if seconds < 0.0:
            raise ValueError("seconds must be non-negative")
        with self._lock:
            self._current += timedelta(seconds=seconds)
            return self._current


def default_clock() -> Clock:
    return SystemClock()


def ensure_aware(dt: datetime) -> None:
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        raise ValueError("Datetime must be timezone-aware")


def as_utc(dt: datetime) -> datetime:
    """Normalize a stored timestamp to an aware UTC datetime.

    SQLite hands timestamps back naive; they were written as UTC.
    """
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def reference_date(instant: datetime, tz: tzinfo) -> date:
    """Calendar date of ``instant`` as seen in the reference timezone."""
    return as_utc(instant).astimezone(tz).date()


def next_tick(now: datetime, previous: datetime | None) -> datetime:
    """Return a timestamp strictly later than ``previous``.

    updated_at doubles as the optimistic-concurrency token, so two versions
    of one record must never share a value even when the clock has not moved.
    """
    now = as_utc(now)
    if previous is None:
        return now
    floor = as_utc(previous) + timedelta(microseconds=1)
    return now if now >= floor else floor
