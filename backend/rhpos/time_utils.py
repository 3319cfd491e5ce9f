from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


REPORT_DATE_FORMAT = "%Y-%m-%d"


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


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


def parse_calendar_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a YYYY-MM-DD calendar date.

    - None / "" -> None
    - anything else that is not exactly YYYY-MM-DD raises ValueError
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    return datetime.strptime(s, REPORT_DATE_FORMAT).date()


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    """Last representable instant of the calendar day (UTC-naive)."""
    return datetime.combine(day + timedelta(days=1), time.min) - timedelta(microseconds=1)
