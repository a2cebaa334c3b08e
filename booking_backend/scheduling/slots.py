"""Slot generation for one professional, one service and one date.

The generator is a pure function of the business hours, the professional's
weekly schedule, the blocked ranges and appointments already loaded for the
day, the booking policy and "now". Loading those records is the caller's
job (see ``service.py``).
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Mapping

from booking_backend.scheduling.blocked_ranges import covers
from booking_backend.scheduling.business_hours import resolve_business_hours
from booking_backend.scheduling.conflicts import has_conflict
from booking_backend.scheduling.errors import ClosedError, ConfigurationError
from booking_backend.scheduling.policy import BookingPolicy
from booking_backend.scheduling.professional_schedule import WorkingDay, resolve_professional_schedule
from booking_backend.scheduling.time_ranges import TimeRange

logger = logging.getLogger(__name__)

OPEN = 'open'
CLOSED = 'closed'
MISCONFIGURED = 'misconfigured'


@dataclass(frozen=True)
class DayAvailability:
    day: date
    status: str
    slots: list[datetime] = field(default_factory=list)
    reason: str | None = None
    duration_minutes: int | None = None


def check_booking_window(day: date, now: datetime, policy: BookingPolicy) -> None:
    today = now.date()
    if day < today:
        raise ClosedError('past_date')
    if day > today + timedelta(days=policy.max_advance_days):
        raise ClosedError('beyond_booking_window')
    if day == today and not policy.allow_same_day:
        raise ClosedError('same_day_disabled')


def resolve_working_day(
    day: date,
    business_hours: Mapping[str, Any] | None,
    schedules: Iterable[Any],
) -> WorkingDay:
    """Intersect business hours with the professional's schedule for ``day``.

    Business hours always cap professional hours. Raises ClosedError when
    nothing is left.
    """
    business_window = resolve_business_hours(business_hours, day)
    if business_window is None:
        raise ClosedError('business_closed')

    working = resolve_professional_schedule(schedules, day, fallback=business_window)
    if working is None:
        raise ClosedError('professional_not_working')

    window = working.window.intersect(business_window)
    if window is None:
        raise ClosedError('outside_business_hours')

    return WorkingDay(window, working.break_range)


def range_unavailable_reason(
    candidate: TimeRange,
    working: WorkingDay,
    blocked_ranges: Iterable[TimeRange],
    appointments: Iterable[Any],
    earliest_start: datetime | None = None,
    exclude_appointment_id: int | None = None,
) -> str | None:
    """Why ``candidate`` cannot be booked, or None when it can."""
    if candidate.start < working.window.start or candidate.end > working.window.end:
        return 'outside_working_hours'
    if earliest_start is not None and candidate.start < earliest_start:
        return 'too_soon'
    if working.break_range is not None and candidate.overlaps(working.break_range):
        return 'break'
    if any(candidate.overlaps(blocked) for blocked in blocked_ranges):
        return 'blocked'
    if has_conflict(candidate.start, candidate.end, appointments, exclude_appointment_id):
        return 'booked'
    return None


def earliest_start_for(now: datetime | None, policy: BookingPolicy | None) -> datetime | None:
    if now is None:
        return None
    advance_hours = policy.min_advance_hours if policy is not None else 0
    return now + timedelta(hours=advance_hours)


def generate_slots(
    *,
    day: date,
    business_hours: Mapping[str, Any] | None,
    schedules: Iterable[Any],
    duration_minutes: int,
    step_minutes: int,
    blocked_ranges: Iterable[TimeRange] = (),
    appointments: Iterable[Any] = (),
    policy: BookingPolicy | None = None,
    now: datetime | None = None,
) -> list[datetime]:
    """Ordered start times at which a ``duration_minutes`` service fits on ``day``.

    Raises ClosedError when the day offers nothing and ConfigurationError
    when the settings cannot produce slots.
    """
    if duration_minutes is None or duration_minutes <= 0:
        raise ConfigurationError(f'Service duration must be positive, got {duration_minutes}.')
    if step_minutes is None or step_minutes <= 0:
        raise ConfigurationError(f'Buffer must be a positive number of minutes, got {step_minutes}.')

    if policy is not None and now is not None:
        check_booking_window(day, now, policy)

    working = resolve_working_day(day, business_hours, schedules)
    blocked = list(blocked_ranges)
    if covers(blocked, working.window):
        raise ClosedError('blocked')

    booked = list(appointments)
    earliest_start = earliest_start_for(now, policy)
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=step_minutes)

    slots: list[datetime] = []
    start = working.window.start
    while start + duration <= working.window.end:
        candidate = TimeRange(start, start + duration)
        if range_unavailable_reason(candidate, working, blocked, booked, earliest_start) is None:
            slots.append(start)
        start += step

    return slots


def day_availability(**kwargs: Any) -> DayAvailability:
    """Run ``generate_slots`` and fold closures and misconfiguration into the result."""
    day = kwargs['day']
    duration_minutes = kwargs.get('duration_minutes')
    try:
        slots = generate_slots(**kwargs)
    except ClosedError as exc:
        return DayAvailability(day=day, status=CLOSED, reason=exc.reason, duration_minutes=duration_minutes)
    except ConfigurationError as exc:
        logger.warning('Slot generation misconfigured for %s: %s', day.isoformat(), exc)
        return DayAvailability(day=day, status=MISCONFIGURED, reason=str(exc), duration_minutes=duration_minutes)

    return DayAvailability(day=day, status=OPEN, slots=slots, duration_minutes=duration_minutes)
