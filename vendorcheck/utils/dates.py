from __future__ import annotations
from datetime import date, datetime, timezone
from typing import Any

DAY_SECONDS = 86400

def parse_mdy(value: Any) -> datetime | None:
    """
    Parse a policy date ("MM/DD/YYYY") to a naive local midnight.
    date/datetime values pass through. Anything else gives None.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not value:
        return None
    parts = str(value).strip().split("/")
    if len(parts) != 3:
        return None
    try:
        mm, dd, yyyy = (int(p) for p in parts)
        return datetime(yyyy, mm, dd)
    except (ValueError, OverflowError):
        return None

def parse_any_date(value: Any) -> datetime | None:
    """Policy-style MM/DD/YYYY first, then ISO-8601 (as stored in JSON metadata)."""
    parsed = parse_mdy(value)
    if parsed is not None or not isinstance(value, str):
        return parsed
    s = value.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        return None

def as_naive_utc(dt: datetime) -> datetime | None:
    """None when the UTC shift falls outside the datetime range (year 1 or 9999 edges)."""
    if dt.tzinfo is None:
        return dt
    try:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    except (OverflowError, ValueError):
        return None

def whole_days_between(start: datetime, end: datetime) -> int | None:
    """floor((end - start) / 1 day); negative once end has passed."""
    if (start.tzinfo is None) != (end.tzinfo is None):
        start, end = as_naive_utc(start), as_naive_utc(end)
        if start is None or end is None:
            return None
    return int((end - start).total_seconds() // DAY_SECONDS)

def days_until(value: Any, now: datetime | None = None) -> int | None:
    target = parse_mdy(value)
    if target is None:
        return None
    return whole_days_between(now or datetime.now(), target)
