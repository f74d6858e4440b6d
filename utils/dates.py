from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def as_day(value) -> date:
    """Strip any time-of-day so values compare at calendar-day granularity."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    raise TypeError(f"Cannot convert {type(value).__name__} to date")


def parse_hhmm(hhmm: Optional[str]) -> Optional[Tuple[int, int]]:
    m = HHMM_RE.fullmatch(hhmm or "")
    if not m:
        return None
    return int(m.group(1)), int(m.group(2))


def local_now(tz: Optional[ZoneInfo] = None) -> datetime:
    if tz is None:
        return datetime.now()
    return datetime.now(tz)
