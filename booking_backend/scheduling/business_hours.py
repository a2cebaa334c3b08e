from datetime import date
from typing import Any, Mapping

from booking_backend.scheduling.errors import ConfigurationError
from booking_backend.scheduling.time_ranges import TimeRange, window_on

WEEKDAY_KEYS = ('sunday', 'monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday')


def day_of_week(day: date) -> int:
    """Weekday number with 0=Sunday, the numbering used by stored schedules."""
    return (day.weekday() + 1) % 7


def weekday_key(day: date) -> str:
    return WEEKDAY_KEYS[day_of_week(day)]


def resolve_business_hours(
    business_hours: Mapping[str, Any] | None,
    day: date,
) -> TimeRange | None:
    """Return the opening window for ``day``, or None when the business is closed."""
    entry = (business_hours or {}).get(weekday_key(day))
    if not entry or entry.get('closed'):
        return None

    open_clock = entry.get('open')
    close_clock = entry.get('close')
    if not open_clock or not close_clock:
        return None

    try:
        window = window_on(day, open_clock, close_clock)
    except ValueError as exc:
        raise ConfigurationError(f'Invalid business hours for {weekday_key(day)}: {exc}') from exc

    if window.end <= window.start:
        raise ConfigurationError(
            f'Business hours for {weekday_key(day)} close at {close_clock}, before opening at {open_clock}.'
        )
    return window
