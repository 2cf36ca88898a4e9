"""Date and time helpers shared by scheduling, archiving and projection."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_TIMEZONE = "Asia/Kolkata"


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def resolve_timezone(name: str | None) -> ZoneInfo:
    """Return ZoneInfo for name, falling back to the default zone."""
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            pass
    return ZoneInfo(DEFAULT_TIMEZONE)


def to_zone(now: datetime | None, tz: ZoneInfo) -> datetime:
    """
    Express now in tz.

    None means the current instant. A naive datetime is read as wall-clock
    time in tz.
    """
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def combine_local(day: date, at: time, tz: ZoneInfo) -> datetime:
    """Combine a wall-clock date and time into an aware datetime in tz."""
    return datetime.combine(day, at.replace(tzinfo=None), tzinfo=tz)


def parse_iso_date(value) -> date | None:
    """Parse YYYY-MM-DD (or a date/datetime) into a date. Returns None when invalid."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def normalized_date(year: int, month: int, day: int) -> date:
    """
    Build a date, rolling an out-of-range day into the following month.

    normalized_date(2023, 2, 29) -> 2023-03-01
    normalized_date(2024, 4, 31) -> 2024-05-01
    """
    total = month - 1
    year += total // 12
    month = total % 12 + 1
    return date(year, month, 1) + timedelta(days=day - 1)


def add_months(value: date, months: int) -> date:
    """Step value forward by months, keeping its day and rolling overflow forward."""
    return normalized_date(value.year, value.month + months, value.day)


def week_bounds(today: date) -> tuple[date, date]:
    """Sunday-to-Saturday week containing today."""
    # date.weekday(): Monday=0 ... Sunday=6
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    first = date(year, month, 1)
    last = normalized_date(year, month + 1, 1) - timedelta(days=1)
    return first, last
