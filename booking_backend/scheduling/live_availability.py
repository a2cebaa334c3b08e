"""Who is free right now, and for how long.

A read-only view for the operations dashboard, computed on demand from the
same resolvers the slot generator uses. A professional only counts as free
when the free stretch is at least ``min_duration_minutes`` long; a stretch
cut short by the break rolls over to the free stretch after it.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from booking_backend.core import config
from booking_backend.scheduling.blocked_ranges import resolve_blocked_ranges
from booking_backend.scheduling.business_hours import resolve_business_hours
from booking_backend.scheduling.conflicts import occupies_time
from booking_backend.scheduling.errors import ConfigurationError
from booking_backend.scheduling.professional_schedule import resolve_professional_schedule
from booking_backend.scheduling.time_ranges import TimeRange

logger = logging.getLogger(__name__)

FREE = 'free'
BUSY = 'busy'
UNAVAILABLE = 'unavailable'


@dataclass
class RosterEntry:
    professional: Any
    schedules: list = field(default_factory=list)
    appointments: list = field(default_factory=list)
    time_blocks: list = field(default_factory=list)


@dataclass(frozen=True)
class LiveStatus:
    professional_id: int
    name: str
    state: str
    reason: str | None = None
    free_from: datetime | None = None
    free_until: datetime | None = None
    free_minutes: int | None = None
    minutes_remaining: int | None = None
    appointment_id: int | None = None


def _whole_minutes(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


def _minutes_rounded_up(start: datetime, end: datetime) -> int:
    return math.ceil((end - start).total_seconds() / 60)


def _unavailable(professional: Any, reason: str, free_from: datetime | None = None) -> LiveStatus:
    return LiveStatus(
        professional_id=professional.id,
        name=professional.name,
        state=UNAVAILABLE,
        reason=reason,
        free_from=free_from,
    )


def _free(professional: Any, free_from: datetime, free_until: datetime) -> LiveStatus:
    return LiveStatus(
        professional_id=professional.id,
        name=professional.name,
        state=FREE,
        free_from=free_from,
        free_until=free_until,
        free_minutes=_whole_minutes(free_from, free_until),
    )


def _free_window_from(start: datetime, window: TimeRange, occupied: list[TimeRange]) -> TimeRange | None:
    """The free stretch beginning at ``start``, or None when ``start`` is already taken."""
    if any(item.contains(start) for item in occupied):
        return None
    end = min([window.end] + [item.start for item in occupied if item.start > start])
    return TimeRange(start, end) if start < end else None


def _professional_status(
    now: datetime,
    business_window: TimeRange,
    entry: RosterEntry,
    min_duration_minutes: int,
) -> LiveStatus:
    professional = entry.professional
    today = now.date()

    try:
        working = resolve_professional_schedule(entry.schedules, today, fallback=business_window)
    except ConfigurationError as exc:
        logger.warning('Schedule for professional %s is misconfigured: %s', professional.id, exc)
        return _unavailable(professional, 'misconfigured')

    if working is None:
        return _unavailable(professional, 'not_working')

    window = working.window.intersect(business_window)
    if window is None or not window.contains(now):
        free_from = window.start if window is not None and now < window.start else None
        return _unavailable(professional, 'off_shift', free_from)

    appointments = [appointment for appointment in entry.appointments if occupies_time(appointment)]
    current = next(
        (
            appointment
            for appointment in sorted(appointments, key=lambda item: item.start_datetime)
            if appointment.start_datetime <= now < appointment.end_datetime
        ),
        None,
    )
    if current is not None:
        return LiveStatus(
            professional_id=professional.id,
            name=professional.name,
            state=BUSY,
            free_from=current.end_datetime,
            minutes_remaining=_minutes_rounded_up(now, current.end_datetime),
            appointment_id=current.id,
        )

    break_range = working.break_range
    if break_range is not None and break_range.contains(now):
        return _unavailable(professional, 'on_break', break_range.end)

    blocked = resolve_blocked_ranges(entry.time_blocks, professional.id, today)
    active_block = next((block for block in blocked if block.contains(now)), None)
    if active_block is not None:
        return _unavailable(professional, 'blocked', active_block.end)

    occupied = [TimeRange(item.start_datetime, item.end_datetime) for item in appointments] + blocked
    if break_range is not None:
        occupied.append(break_range)

    free_now = _free_window_from(now, window, occupied)
    if free_now is not None and free_now.minutes >= min_duration_minutes:
        return _free(professional, free_now.start, free_now.end)

    if free_now is not None and break_range is not None and free_now.end == break_range.start:
        after_break = _free_window_from(break_range.end, window, occupied)
        if after_break is not None and after_break.minutes >= min_duration_minutes:
            return _free(professional, after_break.start, after_break.end)

    return _unavailable(professional, 'window_too_short')


def _sort_key(status: LiveStatus):
    if status.state == FREE:
        return (0, -(status.free_minutes or 0), status.name)
    if status.state == BUSY:
        return (1, status.minutes_remaining or 0, status.name)
    return (2, 0, status.name)


def live_availability(
    now: datetime,
    business_hours: Mapping[str, Any] | None,
    roster: list[RosterEntry],
    min_duration_minutes: int = config.LIVE_MIN_FREE_MINUTES,
) -> list[LiveStatus]:
    """Free / busy / unavailable status for every roster entry at ``now``.

    ``min_duration_minutes`` is the shortest free stretch worth reporting,
    usually the duration of the service being looked for.
    """
    try:
        business_window = resolve_business_hours(business_hours, now.date())
    except ConfigurationError as exc:
        logger.warning('Business hours are misconfigured: %s', exc)
        return sorted((_unavailable(entry.professional, 'misconfigured') for entry in roster), key=_sort_key)

    if business_window is None:
        statuses = [_unavailable(entry.professional, 'business_closed') for entry in roster]
    elif now < business_window.start:
        statuses = [
            _unavailable(entry.professional, 'before_opening', business_window.start) for entry in roster
        ]
    elif now >= business_window.end:
        statuses = [_unavailable(entry.professional, 'after_closing') for entry in roster]
    else:
        statuses = [
            _professional_status(now, business_window, entry, min_duration_minutes) for entry in roster
        ]

    return sorted(statuses, key=_sort_key)
