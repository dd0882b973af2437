from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from flask import current_app


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def store_tz() -> ZoneInfo:
    return ZoneInfo(current_app.config.get("STORE_TIMEZONE") or "UTC")


def store_today(now: Optional[datetime] = None) -> date:
    """
    Calendar date at the store.

    `now` may be naive (treated as UTC) or aware.
    """
    if now is None:
        now = utcnow()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(store_tz()).date()


def store_day_start_utc(day: date) -> datetime:
    """Local midnight of `day` at the store, as a UTC-naive datetime."""
    local_midnight = datetime.combine(day, time.min, tzinfo=store_tz())
    return local_midnight.astimezone(timezone.utc).replace(tzinfo=None)


def store_day_end_utc(day: date) -> datetime:
    return store_day_start_utc(day + timedelta(days=1))


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DD" is a local store date at midnight
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    if len(s) == 10:
        return store_day_start_utc(date.fromisoformat(s))

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    # Normalize to UTC-naive
    if dt.tzinfo is None:
        # interpret naive as UTC
        return dt.replace(tzinfo=None)

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
