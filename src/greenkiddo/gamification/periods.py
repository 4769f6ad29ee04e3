"""Calendar periods for the points ledger windows.

Weeks start on Sunday 00:00 UTC and months on day 1 00:00 UTC. The ledger
resets a window when it is first touched after that window's start.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def get_sunday(dt: datetime | date) -> date:
    """Get the Sunday that starts the calendar week containing dt."""
    d = as_utc(dt).date() if isinstance(dt, datetime) else dt
    # weekday(): Monday=0 .. Sunday=6
    return d - timedelta(days=(d.weekday() + 1) % 7)


def get_week_start(now: datetime | None = None) -> datetime:
    """Sunday 00:00 UTC of the week containing now."""
    if now is None:
        now = utcnow()
    return datetime.combine(get_sunday(now), time.min, tzinfo=timezone.utc)


def get_month_start(now: datetime | None = None) -> datetime:
    """Day 1 00:00 UTC of the month containing now."""
    if now is None:
        now = utcnow()
    now = as_utc(now)
    return datetime(now.year, now.month, 1, tzinfo=timezone.utc)


def end_of_day(now: datetime) -> datetime:
    now = as_utc(now)
    return datetime.combine(now.date(), time(23, 59, 59, 999000), tzinfo=timezone.utc)


def is_in_current_week(stamp: datetime | None, now: datetime | None = None) -> bool:
    return stamp is not None and as_utc(stamp) >= get_week_start(now)


def is_in_current_month(stamp: datetime | None, now: datetime | None = None) -> bool:
    return stamp is not None and as_utc(stamp) >= get_month_start(now)
