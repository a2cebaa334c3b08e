from datetime import datetime, time
from types import SimpleNamespace

import pytest

from booking_backend.scheduling.live_availability import BUSY, FREE, UNAVAILABLE, RosterEntry, live_availability

BUSINESS_HOURS = {
    'sunday': {'closed': True},
    'monday': {'open': '09:00', 'close': '18:00', 'closed': False},
}


def at(hour: int, minute: int = 0, second: int = 0) -> datetime:
    return datetime(2026, 1, 5, hour, minute, second)


def schedule_row(start=time(9), end=time(18), break_start=None, break_end=None, day_of_week=1, is_active=True):
    return SimpleNamespace(
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        break_start=break_start,
        break_end=break_end,
        is_active=is_active,
    )


def entry(professional_id: int, name: str, schedules=None, appointments=None, time_blocks=None) -> RosterEntry:
    return RosterEntry(
        professional=SimpleNamespace(id=professional_id, name=name),
        schedules=schedules if schedules is not None else [schedule_row()],
        appointments=appointments or [],
        time_blocks=time_blocks or [],
    )


def appointment(appointment_id: int, start: datetime, end: datetime, status: str = 'confirmed'):
    return SimpleNamespace(id=appointment_id, start_datetime=start, end_datetime=end, status=status)


def single(now: datetime, roster_entry: RosterEntry):
    statuses = live_availability(now, BUSINESS_HOURS, [roster_entry])
    assert len(statuses) == 1
    return statuses[0]


@pytest.mark.parametrize(
    ('now', 'reason', 'free_from'),
    [
        (datetime(2026, 1, 4, 10, 0), 'business_closed', None),
        (at(8, 30), 'before_opening', at(9)),
        (at(18), 'after_closing', None),
    ],
)
def test_business_level_closures_apply_to_everyone(now: datetime, reason: str, free_from) -> None:
    statuses = live_availability(now, BUSINESS_HOURS, [entry(1, 'Ana'), entry(2, 'Bia')])

    assert [status.state for status in statuses] == [UNAVAILABLE, UNAVAILABLE]
    assert {status.reason for status in statuses} == {reason}
    assert {status.free_from for status in statuses} == {free_from}


def test_professional_not_scheduled_today_is_not_working() -> None:
    status = single(at(10), entry(1, 'Ana', schedules=[schedule_row(day_of_week=2)]))

    assert (status.state, status.reason) == (UNAVAILABLE, 'not_working')


def test_professional_outside_own_shift_is_off_shift() -> None:
    status = single(at(10), entry(1, 'Ana', schedules=[schedule_row(start=time(13))]))

    assert (status.state, status.reason, status.free_from) == (UNAVAILABLE, 'off_shift', at(13))


def test_professional_in_appointment_is_busy_with_minutes_rounded_up() -> None:
    status = single(at(10, 20, 30), entry(1, 'Ana', appointments=[appointment(7, at(10), at(10, 45))]))

    assert status.state == BUSY
    assert status.appointment_id == 7
    assert status.free_from == at(10, 45)
    assert status.minutes_remaining == 25


def test_cancelled_appointment_does_not_make_professional_busy() -> None:
    status = single(
        at(10, 20),
        entry(1, 'Ana', appointments=[appointment(7, at(10), at(10, 45), status='cancelled')]),
    )

    assert status.state == FREE


def test_professional_on_break_is_free_after_break() -> None:
    status = single(at(12, 15), entry(1, 'Ana', schedules=[schedule_row(break_start=time(12), break_end=time(13))]))

    assert (status.state, status.reason, status.free_from) == (UNAVAILABLE, 'on_break', at(13))


def test_professional_inside_block_is_unavailable_until_block_end() -> None:
    block = SimpleNamespace(start_datetime=at(14), end_datetime=at(15), professional_id=1)

    status = single(at(14, 30), entry(1, 'Ana', time_blocks=[block]))

    assert (status.state, status.reason, status.free_from) == (UNAVAILABLE, 'blocked', at(15))


def test_free_until_is_the_earliest_upcoming_boundary() -> None:
    roster_entry = entry(
        1,
        'Ana',
        schedules=[schedule_row(break_start=time(12), break_end=time(13))],
        appointments=[appointment(7, at(11), at(11, 30))],
    )

    status = single(at(10), roster_entry)

    assert status.state == FREE
    assert status.free_from == at(10)
    assert status.free_until == at(11)
    assert status.free_minutes == 60


def test_free_until_is_capped_by_closing_time() -> None:
    status = single(at(17, 15), entry(1, 'Ana', schedules=[schedule_row(end=time(20))]))

    assert status.free_until == at(18)
    assert status.free_minutes == 45


def test_misconfigured_schedule_reports_unavailable() -> None:
    status = single(at(10), entry(1, 'Ana', schedules=[schedule_row(break_start=time(12))]))

    assert (status.state, status.reason) == (UNAVAILABLE, 'misconfigured')


def test_statuses_are_sorted_free_then_busy_then_unavailable() -> None:
    roster = [
        entry(1, 'Off', schedules=[schedule_row(day_of_week=2)]),
        entry(2, 'Busy long', appointments=[appointment(1, at(9, 30), at(11))]),
        entry(3, 'Free short', appointments=[appointment(2, at(10, 30), at(11))]),
        entry(4, 'Busy short', appointments=[appointment(3, at(9, 45), at(10, 15))]),
        entry(5, 'Free long'),
    ]

    statuses = live_availability(at(10), BUSINESS_HOURS, roster)

    assert [status.name for status in statuses] == ['Free long', 'Free short', 'Busy short', 'Busy long', 'Off']


def test_short_window_before_break_rolls_over_to_after_break() -> None:
    roster_entry = entry(1, 'Ana', schedules=[schedule_row(break_start=time(12), break_end=time(13))])

    status = single(at(11, 58), roster_entry)

    assert status.state == FREE
    assert (status.free_from, status.free_until, status.free_minutes) == (at(13), at(18), 300)


def test_window_after_break_stops_at_next_appointment() -> None:
    roster_entry = entry(
        1,
        'Ana',
        schedules=[schedule_row(break_start=time(12), break_end=time(13))],
        appointments=[appointment(7, at(14), at(15))],
    )

    status = single(at(11, 50), roster_entry)

    assert (status.state, status.free_from, status.free_until, status.free_minutes) == (FREE, at(13), at(14), 60)


@pytest.mark.parametrize(
    'appointments',
    [
        [appointment(7, at(13), at(14))],
        [appointment(7, at(13, 10), at(14))],
    ],
)
def test_short_windows_on_both_sides_of_break_are_too_short(appointments: list) -> None:
    roster_entry = entry(
        1,
        'Ana',
        schedules=[schedule_row(break_start=time(12), break_end=time(13))],
        appointments=appointments,
    )

    status = single(at(11, 58), roster_entry)

    assert (status.state, status.reason) == (UNAVAILABLE, 'window_too_short')


def test_short_window_before_appointment_is_too_short() -> None:
    status = single(at(10, 50), entry(1, 'Ana', appointments=[appointment(7, at(11), at(11, 30))]))

    assert (status.state, status.reason, status.free_minutes) == (UNAVAILABLE, 'window_too_short', None)


@pytest.mark.parametrize(
    ('min_duration_minutes', 'state'),
    [
        (60, FREE),
        (90, UNAVAILABLE),
    ],
)
def test_min_duration_decides_whether_a_window_counts(min_duration_minutes: int, state: str) -> None:
    roster_entry = entry(1, 'Ana', appointments=[appointment(7, at(11), at(11, 30))])

    statuses = live_availability(at(10), BUSINESS_HOURS, [roster_entry], min_duration_minutes=min_duration_minutes)

    assert statuses[0].state == state


def test_misconfigured_business_hours_report_everyone_misconfigured() -> None:
    hours = {'monday': {'open': 9, 'close': 18, 'closed': False}}

    statuses = live_availability(at(10), hours, [entry(1, 'Ana'), entry(2, 'Bia')])

    assert [(status.state, status.reason) for status in statuses] == [
        (UNAVAILABLE, 'misconfigured'),
        (UNAVAILABLE, 'misconfigured'),
    ]
