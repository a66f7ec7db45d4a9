"""
Time source for "has the event started" decisions.

All datetimes are handled in UTC. SQLite hands back naive values, so anything
read from the store goes through `as_utc` before it is compared.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return `value` as an aware UTC datetime; naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_past(value: datetime, now: Optional[datetime] = None) -> bool:
    """True when `value` is not strictly after `now`."""
    return as_utc(value) <= (now or utcnow())
