import random
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from booking_backend.scheduling.conflicts import find_conflicts, has_conflict, occupies_time

DAY_START = datetime(2026, 1, 5, 0, 0)


def appointment(appointment_id: int, start: datetime, end: datetime, status: str = 'confirmed'):
    return SimpleNamespace(id=appointment_id, start_datetime=start, end_datetime=end, status=status)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 1, 5, hour, minute)


def test_touching_appointments_do_not_conflict() -> None:
    existing = [appointment(1, at(9), at(9, 30))]

    assert has_conflict(at(9, 30), at(10), existing) is False
    assert has_conflict(at(8, 30), at(9), existing) is False


def test_find_conflicts_returns_every_overlapping_appointment() -> None:
    existing = [
        appointment(1, at(9), at(10)),
        appointment(2, at(10), at(11)),
        appointment(3, at(12), at(13)),
    ]

    assert [item.id for item in find_conflicts(at(9, 30), at(10, 30), existing)] == [1, 2]


def test_cancelled_appointments_never_conflict() -> None:
    existing = [appointment(1, at(9), at(10), status='cancelled')]

    assert has_conflict(at(9), at(10), existing) is False


@pytest.mark.parametrize('status', ['pending', 'confirmed', 'in_progress', 'completed', 'no_show'])
def test_non_cancelled_statuses_occupy_time(status: str) -> None:
    assert occupies_time(appointment(1, at(9), at(10), status=status)) is True


def test_excluded_appointment_is_ignored() -> None:
    existing = [appointment(1, at(9), at(10)), appointment(2, at(10), at(11))]

    assert has_conflict(at(9, 15), at(9, 45), existing, exclude_appointment_id=1) is False
    assert has_conflict(at(9, 15), at(10, 15), existing, exclude_appointment_id=1) is True


def test_find_conflicts_agrees_with_minute_by_minute_check() -> None:
    rng = random.Random(486)

    def random_range() -> tuple[datetime, datetime]:
        start = rng.randrange(0, 24 * 60 - 5)
        length = rng.randrange(1, 180)
        return DAY_START + timedelta(minutes=start), DAY_START + timedelta(minutes=min(start + length, 24 * 60))

    def minutes_of(start: datetime, end: datetime) -> set[int]:
        first = int((start - DAY_START).total_seconds() // 60)
        last = int((end - DAY_START).total_seconds() // 60)
        return set(range(first, last))

    for _ in range(300):
        existing = [appointment(index, *random_range()) for index in range(rng.randrange(0, 6))]
        start, end = random_range()

        expected = {
            item.id
            for item in existing
            if minutes_of(start, end) & minutes_of(item.start_datetime, item.end_datetime)
        }

        assert {item.id for item in find_conflicts(start, end, existing)} == expected
