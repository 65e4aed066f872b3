"""
Domain time utilities (pure).

Centralized timestamp validation helper plus the small date helpers the
reporting screens need.

Behavior and error messages must remain consistent across the domain model.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Optional


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforces the requirement that persisted timestamps are UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def start_of_day(value: datetime, tz: tzinfo) -> datetime:
    """Local midnight of the day containing `value`, returned in UTC."""

    local = value.astimezone(tz)
    midnight = datetime.combine(local.date(), time.min, tzinfo=tz)
    return midnight.astimezone(timezone.utc)


def end_of_day(value: datetime, tz: tzinfo) -> datetime:
    """Last representable instant of the local day containing `value`, in UTC."""

    local = value.astimezone(tz)
    last = datetime.combine(local.date(), time.max, tzinfo=tz)
    return last.astimezone(timezone.utc)


def time_ago(timestamp: datetime, now: Optional[datetime] = None) -> str:
    """
    Human-friendly relative time used by reading history listings.

    Examples: "just now", "5 minutes ago", "an hour ago",
    "yesterday at 02:15 PM", "12 March at 09:00 AM".
    """

    now = now or utc_now()
    seconds = int((now - timestamp).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    weeks = days // 7

    if seconds < 60:
        return "just now"
    if minutes == 1:
        return "a minute ago"
    if minutes < 60:
        return f"{minutes} minutes ago"
    if hours == 1:
        return "an hour ago"
    if hours < 24:
        return f"{hours} hours ago"
    if days == 1:
        return f"yesterday at {timestamp.strftime('%I:%M %p')}"
    if days <= 7:
        return timestamp.strftime("%d %B at %I:%M %p")
    if weeks == 1:
        return "a week ago"
    return timestamp.strftime("%d %B at %H:%M")
