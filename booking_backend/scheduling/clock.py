from datetime import datetime

import pytz

from booking_backend.core import config


def business_timezone(timezone_name: str | None = None):
    try:
        return pytz.timezone(timezone_name or config.BUSINESS_TIMEZONE)
    except pytz.UnknownTimeZoneError:
        return pytz.timezone(config.BUSINESS_TIMEZONE)


def local_now(timezone_name: str | None = None) -> datetime:
    """Current wall-clock time in the business timezone, without tzinfo."""
    return datetime.now(business_timezone(timezone_name)).replace(tzinfo=None)


def to_business_time(value: datetime, timezone_name: str | None = None) -> datetime:
    """Convert an aware datetime to naive business wall-clock time.

    Naive values are assumed to already be business wall-clock time.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(business_timezone(timezone_name)).replace(tzinfo=None)
