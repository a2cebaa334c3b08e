from datetime import date, datetime
from types import SimpleNamespace

from booking_backend.scheduling.blocked_ranges import applies_to, covers, resolve_blocked_ranges
from booking_backend.scheduling.time_ranges import TimeRange

MONDAY = date(2026, 1, 5)


def block(start: datetime, end: datetime, professional_id=None):
    return SimpleNamespace(start_datetime=start, end_datetime=end, professional_id=professional_id)


def test_applies_to_business_wide_and_own_blocks_only() -> None:
    assert applies_to(block(datetime(2026, 1, 5, 9), datetime(2026, 1, 5, 10)), 7) is True
    assert applies_to(block(datetime(2026, 1, 5, 9), datetime(2026, 1, 5, 10), professional_id=7), 7) is True
    assert applies_to(block(datetime(2026, 1, 5, 9), datetime(2026, 1, 5, 10), professional_id=8), 7) is False


def test_resolve_blocked_ranges_clips_to_day_and_merges() -> None:
    blocks = [
        block(datetime(2026, 1, 2, 0), datetime(2026, 1, 5, 10)),
        block(datetime(2026, 1, 5, 9, 30), datetime(2026, 1, 5, 11), professional_id=7),
        block(datetime(2026, 1, 5, 15), datetime(2026, 1, 5, 16), professional_id=8),
        block(datetime(2026, 1, 5, 22), datetime(2026, 1, 9, 0)),
    ]

    assert resolve_blocked_ranges(blocks, 7, MONDAY) == [
        TimeRange(datetime(2026, 1, 5, 0), datetime(2026, 1, 5, 11)),
        TimeRange(datetime(2026, 1, 5, 22), datetime(2026, 1, 6, 0)),
    ]


def test_resolve_blocked_ranges_ignores_blocks_on_other_days() -> None:
    blocks = [block(datetime(2026, 1, 6, 9), datetime(2026, 1, 6, 10))]

    assert resolve_blocked_ranges(blocks, 7, MONDAY) == []


def test_covers_detects_fully_blocked_window() -> None:
    window = TimeRange(datetime(2026, 1, 5, 9), datetime(2026, 1, 5, 18))

    assert covers([TimeRange(datetime(2026, 1, 5, 0), datetime(2026, 1, 6, 0))], window) is True
    assert covers(
        [
            TimeRange(datetime(2026, 1, 5, 8), datetime(2026, 1, 5, 12)),
            TimeRange(datetime(2026, 1, 5, 12), datetime(2026, 1, 5, 18)),
        ],
        window,
    ) is True


def test_covers_reports_gaps() -> None:
    window = TimeRange(datetime(2026, 1, 5, 9), datetime(2026, 1, 5, 18))

    assert covers([], window) is False
    assert covers([TimeRange(datetime(2026, 1, 5, 9), datetime(2026, 1, 5, 17, 59))], window) is False
    assert covers(
        [
            TimeRange(datetime(2026, 1, 5, 9), datetime(2026, 1, 5, 12)),
            TimeRange(datetime(2026, 1, 5, 13), datetime(2026, 1, 5, 18)),
        ],
        window,
    ) is False
