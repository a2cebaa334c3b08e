"""Half-open interval helpers shared by every resolver.

A range ``[start, end)`` contains ``start`` but not ``end``, so an
appointment ending at 10:00 and one starting at 10:00 do not overlap.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return a_start < b_end and a_end > b_start


def within(point: datetime, start: datetime, end: datetime) -> bool:
    return start <= point < end


def clamp(
    start: datetime,
    end: datetime,
    lower: datetime,
    upper: datetime,
) -> tuple[datetime, datetime] | None:
    clamped_start = max(start, lower)
    clamped_end = min(end, upper)
    if clamped_start >= clamped_end:
        return None
    return clamped_start, clamped_end


@dataclass(frozen=True)
class TimeRange:
    start: datetime
    end: datetime

    def overlaps(self, other: 'TimeRange') -> bool:
        return overlaps(self.start, self.end, other.start, other.end)

    def contains(self, point: datetime) -> bool:
        return within(point, self.start, self.end)

    def intersect(self, other: 'TimeRange') -> 'TimeRange | None':
        bounds = clamp(self.start, self.end, other.start, other.end)
        if bounds is None:
            return None
        return TimeRange(*bounds)

    @property
    def minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)


def parse_clock(value: time | str) -> time:
    """Accept a ``time`` or an ``HH:MM`` / ``HH:MM:SS`` string."""
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise ValueError(f'Invalid clock value: {value!r}')
    parts = value.strip().split(':')
    if len(parts) not in (2, 3):
        raise ValueError(f'Invalid clock value: {value!r}')
    hours, minutes = int(parts[0]), int(parts[1])
    seconds = int(parts[2]) if len(parts) == 3 else 0
    return time(hours, minutes, seconds)


def day_range(day: date) -> TimeRange:
    start = datetime.combine(day, time.min)
    return TimeRange(start, start + timedelta(days=1))


def window_on(day: date, start_clock: time | str, end_clock: time | str) -> TimeRange:
    """Build the datetime window for a pair of wall-clock times on ``day``.

    An end of 00:00 means midnight at the end of the day. The result may be
    empty or inverted; callers validate it.
    """
    start_value = parse_clock(start_clock)
    end_value = parse_clock(end_clock)
    start = datetime.combine(day, start_value)
    end = datetime.combine(day, end_value)
    if end_value == time.min:
        end += timedelta(days=1)
    return TimeRange(start, end)


def merge_ranges(ranges: Iterable[TimeRange]) -> list[TimeRange]:
    """Sort ranges and join the ones that overlap or touch."""
    merged: list[TimeRange] = []
    for current in sorted(ranges, key=lambda item: (item.start, item.end)):
        if merged and current.start <= merged[-1].end:
            if current.end > merged[-1].end:
                merged[-1] = TimeRange(merged[-1].start, current.end)
        else:
            merged.append(current)
    return merged
