"""
Time semantics (authoritative)

- All internal datetimes are UTC-naive (tzinfo=None).
- API accepts ISO-8601 with 'Z' or offsets; inputs are normalized to UTC-naive.
- API responses serialize datetimes as ISO-8601 'Z' strings.
- As-of cutoffs are inclusive: occurred_at <= cutoff.
- A cutoff given as a calendar date means the END of that day
  (23:59:59.999999), so same-day records are included.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

CutoffInput = Union[None, str, date, datetime]


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)
    return normalize_datetime(dt)


def normalize_datetime(dt: datetime) -> datetime:
    """Convert an aware datetime to UTC-naive; naive values are taken as UTC."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def resolve_cutoff(value: CutoffInput) -> datetime:
    """
    Turn an as-of value into an inclusive UTC-naive cutoff.

    - None -> now
    - date, or a "YYYY-MM-DD" string -> end of that day
    - datetime, or any other ISO-8601 string -> that instant
    """
    if value is None:
        return utcnow()

    if isinstance(value, datetime):
        return normalize_datetime(value)

    if isinstance(value, date):
        return end_of_day(value)

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return utcnow()
        if _DATE_ONLY.match(s):
            return end_of_day(date.fromisoformat(s))
        return parse_iso_datetime(s)

    raise ValueError(f"Unsupported as-of value: {value!r}")


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """
    Return (previous month end, this month end) as inclusive cutoffs.

    The first value is the opening cutoff for the month: everything on or
    before it belongs to the opening balance.
    """
    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")
    first = date(year, month, 1)
    if month == 12:
        next_first = date(year + 1, 1, 1)
    else:
        next_first = date(year, month + 1, 1)
    return end_of_day(first - timedelta(days=1)), end_of_day(next_first - timedelta(days=1))


def parse_occurred_at(value) -> datetime:
    """
    Normalize an event timestamp to canonical UTC-naive.

    - None -> utcnow()
    - datetime -> normalized
    - ISO-8601 string (date-only means midnight UTC)
    """
    if value is None:
        return utcnow()
    if isinstance(value, datetime):
        return normalize_datetime(value)
    if isinstance(value, date):
        return start_of_day(value)
    if isinstance(value, str):
        parsed = parse_iso_datetime(value)
        return parsed if parsed is not None else utcnow()
    raise ValueError(f"Unsupported timestamp: {value!r}")
