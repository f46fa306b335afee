"""
tasktracker_api.clock

Time helpers shared by models and services.

Responsibilities:
- Produce naive UTC timestamps (the persistence convention for every table).
- Normalize client-provided datetimes into that convention.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta


def utcnow() -> datetime:
    # Persist naive UTC timestamps; SQLite has no native tz-aware type.
    return datetime.now(tz=UTC).replace(tzinfo=None)


def today() -> date:
    return utcnow().date()


def to_naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


def end_of_week(day: date) -> date:
    # Weeks end on Sunday; on a Sunday the window runs through the next Sunday.
    days_since_sunday = (day.weekday() + 1) % 7
    return day + timedelta(days=7 - days_since_sunday)
