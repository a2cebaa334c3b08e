"""Pure overlap checks between a candidate range and existing appointments."""

from datetime import datetime
from typing import Any, Iterable

from booking_backend.scheduling.statuses import CANCELLED
from booking_backend.scheduling.time_ranges import overlaps


def occupies_time(appointment: Any) -> bool:
    # completed and no_show still hold their original range
    return appointment.status != CANCELLED


def find_conflicts(
    start: datetime,
    end: datetime,
    appointments: Iterable[Any],
    exclude_appointment_id: int | None = None,
) -> list[Any]:
    return [
        appointment
        for appointment in appointments
        if occupies_time(appointment)
        and (exclude_appointment_id is None or appointment.id != exclude_appointment_id)
        and overlaps(start, end, appointment.start_datetime, appointment.end_datetime)
    ]


def has_conflict(
    start: datetime,
    end: datetime,
    appointments: Iterable[Any],
    exclude_appointment_id: int | None = None,
) -> bool:
    return bool(find_conflicts(start, end, appointments, exclude_appointment_id))
