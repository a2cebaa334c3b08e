from datetime import date
from typing import Any, Iterable

from booking_backend.scheduling.time_ranges import TimeRange, day_range, merge_ranges


def applies_to(block: Any, professional_id: int) -> bool:
    return block.professional_id is None or block.professional_id == professional_id


def resolve_blocked_ranges(
    time_blocks: Iterable[Any],
    professional_id: int,
    day: date,
) -> list[TimeRange]:
    """Blocked ranges for one professional on ``day``, clipped to the day, sorted and merged."""
    bounds = day_range(day)
    clipped = []
    for block in time_blocks:
        if not applies_to(block, professional_id):
            continue
        part = TimeRange(block.start_datetime, block.end_datetime).intersect(bounds)
        if part is not None:
            clipped.append(part)
    return merge_ranges(clipped)


def covers(ranges: Iterable[TimeRange], window: TimeRange) -> bool:
    """True when merged ``ranges`` leave no part of ``window`` free."""
    cursor = window.start
    for blocked in merge_ranges(ranges):
        if blocked.end <= cursor:
            continue
        if blocked.start > cursor:
            return False
        cursor = blocked.end
        if cursor >= window.end:
            return True
    return cursor >= window.end
