"""Helpers for the business timezone (all day boundaries use it, not UTC)."""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from letrus_care.core.config import settings


def business_tz() -> ZoneInfo:
    return settings.tz


def business_now() -> datetime:
    """Current time in the business timezone."""
    return datetime.now(business_tz())


def to_business(value: datetime) -> datetime:
    """Convert a datetime to the business timezone; naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(business_tz())


def end_of_day(day: date | datetime) -> datetime:
    """Last microsecond of the given calendar day in the business timezone."""
    if isinstance(day, datetime):
        day = to_business(day).date()
    return datetime.combine(day, time.max, tzinfo=business_tz())


def overdue_cutoff(now: datetime | None = None) -> datetime:
    """End of yesterday (business time): anything due up to here is late."""
    now = to_business(now) if now else business_now()
    return end_of_day(now - timedelta(days=1))


def as_utc_instant(value: date | datetime) -> datetime:
    """
    Normalise a point-in-time argument to an aware UTC datetime.

    A plain date means "as of the end of that business day".
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return end_of_day(value).astimezone(timezone.utc)
