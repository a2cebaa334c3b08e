from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable

from booking_backend.scheduling.business_hours import day_of_week
from booking_backend.scheduling.errors import ConfigurationError
from booking_backend.scheduling.time_ranges import TimeRange, window_on


@dataclass(frozen=True)
class WorkingDay:
    window: TimeRange
    break_range: TimeRange | None = None


def resolve_professional_schedule(
    schedules: Iterable[Any],
    day: date,
    fallback: TimeRange | None = None,
) -> WorkingDay | None:
    """Resolve a professional's working window and break for ``day``.

    ``schedules`` are weekly rows (``day_of_week``, ``start_time``,
    ``end_time``, ``break_start``, ``break_end``, ``is_active``). A
    professional with no rows at all works the ``fallback`` window; one with
    rows but none active for the weekday does not work that day.
    """
    rows = list(schedules)
    if not rows:
        return WorkingDay(fallback) if fallback is not None else None

    weekday = day_of_week(day)
    row = next((item for item in rows if item.day_of_week == weekday), None)
    if row is None or not row.is_active:
        return None

    try:
        window = window_on(day, row.start_time, row.end_time)
    except ValueError as exc:
        raise ConfigurationError(f'Invalid schedule for weekday {weekday}: {exc}') from exc
    if window.end <= window.start:
        raise ConfigurationError(
            f'Schedule for weekday {weekday} ends at {row.end_time}, not after its start {row.start_time}.'
        )

    if row.break_start is None and row.break_end is None:
        return WorkingDay(window)

    if row.break_start is None or row.break_end is None:
        raise ConfigurationError(f'Break for weekday {weekday} needs both a start and an end.')

    try:
        break_range = window_on(day, row.break_start, row.break_end)
    except ValueError as exc:
        raise ConfigurationError(f'Invalid break for weekday {weekday}: {exc}') from exc
    if break_range.end <= break_range.start:
        raise ConfigurationError(
            f'Break for weekday {weekday} ends at {row.break_end}, not after its start {row.break_start}.'
        )
    if break_range.start < window.start or break_range.end > window.end:
        raise ConfigurationError(f'Break for weekday {weekday} falls outside the working window.')

    return WorkingDay(window, break_range)
