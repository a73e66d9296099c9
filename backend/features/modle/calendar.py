"""UTC calendar-day keys (YYYY-MM-DD) used as the only unit of "day"."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional

from backend.core.errors import ValidationError

_EPOCH = date(1970, 1, 1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def today(now: Optional[datetime] = None) -> str:
    """Current UTC day key. Always derived from server time, never from the client."""
    moment = now or utc_now()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).date().isoformat()


def parse_day_key(date_key: str) -> date:
    parts = str(date_key).split("-")
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        raise ValidationError(f"Malformed day key: {date_key!r}")
    try:
        return date(int(parts[0]), int(parts[1]), int(parts[2]))
    except ValueError:
        raise ValidationError(f"Malformed day key: {date_key!r}")


def previous_day(date_key: str) -> str:
    """Day key for the UTC day before `date_key` (handles month/year/leap rollover)."""
    return (parse_day_key(date_key) - timedelta(days=1)).isoformat()


def epoch_days(date_key: str) -> int:
    return (parse_day_key(date_key) - _EPOCH).days


def is_day_key(value: str) -> bool:
    try:
        parse_day_key(value)
    except ValidationError:
        return False
    return len(value) == 10
