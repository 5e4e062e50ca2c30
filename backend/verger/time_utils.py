# Overview: UTC time helpers; the database stores naive UTC datetimes.

from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from typing import Optional


DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str], *, end_of_day: bool = False) -> Optional[datetime]:
    """
    Parse an ISO-8601 string into a naive UTC datetime.

    - None or blank gives None
    - offsets ("Z", "+02:00") are converted to UTC; naive values are taken as UTC
    - a bare date means its first instant, or its last one with `end_of_day`
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None

    if DATE_ONLY_RE.match(text):
        day = date.fromisoformat(text)
        return datetime.combine(day, time.max if end_of_day else time.min)

    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Render a datetime as "YYYY-MM-DDTHH:MM:SSZ" (naive values are UTC)."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0).isoformat() + "Z"


def to_iso_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None
