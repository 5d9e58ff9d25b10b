from datetime import datetime, timedelta
from typing import Optional

import pytz

UTC = pytz.utc


def now_utc() -> datetime:
    """Get current datetime in UTC."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Ensure a datetime is timezone-aware in UTC."""
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return UTC.localize(value)
    return value.astimezone(UTC)


def to_iso(value: datetime) -> str:
    return ensure_utc(value).isoformat(timespec="microseconds")


def parse_iso(value: str) -> datetime:
    cleaned = value.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(cleaned))


def now_iso() -> str:
    return to_iso(now_utc())


def next_timestamp(previous: Optional[str] = None) -> str:
    """Current time as ISO-8601, guaranteed to sort after ``previous``."""
    current = now_utc()
    if previous:
        earlier = parse_iso(previous)
        if current <= earlier:
            current = earlier + timedelta(microseconds=1)
    return to_iso(current)
