from __future__ import annotations

import math
from datetime import date, datetime, time
from typing import Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: Optional[str]) -> Optional[time]:
    """Parse 'HH:MM' or 'HH:MM:SS'; empty input yields None."""
    v = (value or "").strip()
    if not v:
        return None
    for fmt in ("%H:%M:%S", "%H:%M"):
        try:
            return datetime.strptime(v, fmt).time()
        except ValueError:
            continue
    raise ValidationError(f"Invalid time {value!r} (HH:MM)")


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    v = (value or "").strip()
    if not v:
        return None
    try:
        return datetime.fromisoformat(v)
    except ValueError:
        raise ValidationError(f"Invalid timestamp {value!r} (ISO-8601)")


def now_local() -> datetime:
    """Current local time from the server clock.

    Note: Wrapped so tests can patch/mock it. Every attendance decision uses
    this clock, never a client-supplied timestamp.
    """
    return datetime.now()


def elapsed_minutes(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60.0


def whole_minutes(start: datetime, end: datetime) -> int:
    return int(math.floor(elapsed_minutes(start, end)))


def iso_or_none(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
