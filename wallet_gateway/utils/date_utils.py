"""Date and token-expiry utilities"""

from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite drops tzinfo on the way back)"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def expiry_from_lifetime(issued_at: datetime, lifetime_seconds: int) -> datetime:
    """Token expiry = issuance time + provider-reported lifetime"""
    return as_utc(issued_at) + timedelta(seconds=lifetime_seconds)


def is_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    """A token without a recorded expiry is treated as expired"""
    if expires_at is None:
        return True
    return as_utc(now) > as_utc(expires_at)
