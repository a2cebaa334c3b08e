"""Availability queries and the guarded appointment commit path.

Every call re-reads the record store; nothing is cached between calls. The
commit path re-checks conflicts immediately before inserting, under a
per-professional lock, so at most one of several concurrent requests for
overlapping ranges can succeed.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from threading import Lock
from typing import Callable, Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from booking_backend.core import config
from booking_backend.database import APPOINTMENT_OVERLAP_CONSTRAINT
from booking_backend.models.appointment import Appointment
from booking_backend.models.business import Business
from booking_backend.models.professional import Professional
from booking_backend.models.service import Service
from booking_backend.scheduling import statuses
from booking_backend.scheduling.blocked_ranges import resolve_blocked_ranges
from booking_backend.scheduling.clock import local_now, to_business_time
from booking_backend.scheduling.conflicts import find_conflicts
from booking_backend.scheduling.errors import (
    ClosedError,
    ConfigurationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    SlotUnavailableError,
)
from booking_backend.scheduling.live_availability import LiveStatus, RosterEntry, live_availability
from booking_backend.scheduling.policy import BookingPolicy, resolve_step_minutes
from booking_backend.scheduling.repository import SchedulingRepository, offers_service
from booking_backend.scheduling.slots import (
    MISCONFIGURED,
    DayAvailability,
    check_booking_window,
    day_availability,
    earliest_start_for,
    range_unavailable_reason,
    resolve_working_day,
)
from booking_backend.scheduling.time_ranges import TimeRange, day_range

logger = logging.getLogger(__name__)

RESCHEDULABLE_STATUSES = {statuses.PENDING, statuses.CONFIRMED}
INVALID_START = 'invalid_start'

_commit_locks: dict[int, Lock] = {}
_commit_locks_guard = Lock()


def commit_lock(professional_id: int) -> Lock:
    with _commit_locks_guard:
        lock = _commit_locks.get(professional_id)
        if lock is None:
            lock = Lock()
            _commit_locks[professional_id] = lock
        return lock


def on_whole_minute(start: datetime) -> bool:
    return start.second == 0 and start.microsecond == 0


def requested_start(start: datetime, business: Business) -> datetime:
    """Business wall-clock start for a booking; starts are never rounded."""
    start = to_business_time(start, business.timezone)
    if not on_whole_minute(start):
        raise SlotUnavailableError(INVALID_START)
    return start


@dataclass(frozen=True)
class SlotCheck:
    available: bool
    reason: str | None = None


class AvailabilityService:
    """Read side of the engine: slots, slot checks, conflict checks and live status"""

    def __init__(self, db: Session, clock: Callable[[str | None], datetime] | None = None):
        self.db = db
        self.repo = SchedulingRepository()
        self.clock = clock or local_now

    def now_for(self, business: Business) -> datetime:
        return self.clock(business.timezone)

    def get_business(self, business_id: int) -> Business:
        business = self.repo.get_business(self.db, business_id)
        if not business:
            raise NotFoundError('Business not found.')
        return business

    def get_professional(self, professional_id: int) -> Professional:
        professional = self.repo.get_professional(self.db, professional_id)
        if not professional or not professional.is_active:
            raise NotFoundError('Professional not found.')
        return professional

    def get_service(self, service_id: int) -> Service:
        service = self.repo.get_service(self.db, service_id)
        if not service or not service.is_active:
            raise NotFoundError('Service not found.')
        return service

    def load_booking_context(self, professional_id: int, service_id: int) -> tuple[Business, Professional, Service]:
        professional = self.get_professional(professional_id)
        service = self.get_service(service_id)
        if service.business_id != professional.business_id:
            raise NotFoundError('Service not found.')
        if not offers_service(professional, service.id):
            raise NotFoundError('Professional does not offer this service.')
        return self.get_business(professional.business_id), professional, service

    def blocked_ranges_for(self, business: Business, professional: Professional, day: date) -> list[TimeRange]:
        bounds = day_range(day)
        blocks = self.repo.time_blocks_overlapping(
            self.db, business.id, bounds.start, bounds.end, professional_ids=[professional.id]
        )
        return resolve_blocked_ranges(blocks, professional.id, day)

    def appointments_for(self, professional: Professional, day: date) -> list[Appointment]:
        bounds = day_range(day)
        return self.repo.appointments_overlapping(self.db, [professional.id], bounds.start, bounds.end)

    def _day_availability(
        self,
        business: Business,
        professional: Professional,
        service: Service,
        day: date,
    ) -> DayAvailability:
        policy = BookingPolicy.from_settings(business.booking_settings)
        try:
            step_minutes = resolve_step_minutes(professional, policy)
        except ConfigurationError as exc:
            logger.warning('Buffer for professional %s is misconfigured: %s', professional.id, exc)
            return DayAvailability(
                day=day,
                status=MISCONFIGURED,
                reason=str(exc),
                duration_minutes=service.duration_minutes,
            )

        return day_availability(
            day=day,
            business_hours=business.business_hours,
            schedules=professional.schedules,
            duration_minutes=service.duration_minutes,
            step_minutes=step_minutes,
            blocked_ranges=self.blocked_ranges_for(business, professional, day),
            appointments=self.appointments_for(professional, day),
            policy=policy,
            now=self.now_for(business),
        )

    def available_slots(self, professional_id: int, service_id: int, day: date) -> DayAvailability:
        business, professional, service = self.load_booking_context(professional_id, service_id)
        return self._day_availability(business, professional, service, day)

    def available_slots_any(
        self,
        service_id: int,
        day: date,
        professional_ids: Iterable[int] | None = None,
    ) -> list[datetime]:
        """Sorted union of start times across every active professional offering the service."""
        service = self.get_service(service_id)
        business = self.get_business(service.business_id)
        professionals = self.repo.list_active_professionals(self.db, business.id, professional_ids)

        starts: set[datetime] = set()
        for professional in professionals:
            if not offers_service(professional, service.id):
                continue
            availability = self._day_availability(business, professional, service, day)
            starts.update(availability.slots)

        return sorted(starts)

    def has_conflict(
        self,
        professional_id: int,
        start: datetime,
        end: datetime,
        exclude_appointment_id: int | None = None,
    ) -> bool:
        appointments = self.repo.appointments_overlapping(self.db, [professional_id], start, end)
        return bool(find_conflicts(start, end, appointments, exclude_appointment_id))

    def _unavailable_reason(
        self,
        business: Business,
        professional: Professional,
        candidate: TimeRange,
        appointments: list,
        exclude_appointment_id: int | None = None,
    ) -> str | None:
        policy = BookingPolicy.from_settings(business.booking_settings)
        now = self.now_for(business)
        day = candidate.start.date()
        try:
            check_booking_window(day, now, policy)
            working = resolve_working_day(day, business.business_hours, professional.schedules)
        except ClosedError as exc:
            return exc.reason

        return range_unavailable_reason(
            candidate,
            working,
            self.blocked_ranges_for(business, professional, day),
            appointments,
            earliest_start=earliest_start_for(now, policy),
            exclude_appointment_id=exclude_appointment_id,
        )

    def check_slot(
        self,
        professional_id: int,
        service_id: int,
        start: datetime,
        exclude_appointment_id: int | None = None,
    ) -> SlotCheck:
        business, professional, service = self.load_booking_context(professional_id, service_id)
        start = to_business_time(start, business.timezone)
        if not on_whole_minute(start):
            return SlotCheck(available=False, reason=INVALID_START)
        candidate = TimeRange(start, start + timedelta(minutes=service.duration_minutes))
        appointments = self.repo.appointments_overlapping(
            self.db, [professional.id], candidate.start, candidate.end
        )
        reason = self._unavailable_reason(business, professional, candidate, appointments, exclude_appointment_id)
        return SlotCheck(available=reason is None, reason=reason)

    def live_status(self, business_id: int, service_id: int | None = None) -> list[LiveStatus]:
        business = self.get_business(business_id)
        now = self.now_for(business)
        professionals = self.repo.list_active_professionals(self.db, business.id)
        min_duration_minutes = config.LIVE_MIN_FREE_MINUTES
        if service_id is not None:
            service = self.get_service(service_id)
            if service.business_id != business.id:
                raise NotFoundError('Service not found.')
            min_duration_minutes = service.duration_minutes
            professionals = [item for item in professionals if offers_service(item, service.id)]
        if not professionals:
            return []

        bounds = day_range(now.date())
        ids = [professional.id for professional in professionals]
        appointments = self.repo.appointments_overlapping(self.db, ids, bounds.start, bounds.end)
        blocks = self.repo.time_blocks_overlapping(self.db, business.id, bounds.start, bounds.end, ids)

        roster = [
            RosterEntry(
                professional=professional,
                schedules=list(professional.schedules),
                appointments=[item for item in appointments if item.professional_id == professional.id],
                time_blocks=[
                    block
                    for block in blocks
                    if block.professional_id is None or block.professional_id == professional.id
                ],
            )
            for professional in professionals
        ]
        return live_availability(now, business.business_hours, roster, min_duration_minutes)


class BookingService(AvailabilityService):
    """Write side of the engine: guarded commits, reschedules and status changes"""

    def _guarded_write(
        self,
        professional: Professional,
        start: datetime,
        end: datetime,
        write: Callable[[], Appointment],
        exclude_appointment_id: int | None = None,
    ) -> Appointment:
        with commit_lock(professional.id):
            try:
                self.repo.lock_professional(self.db, professional.id)
                existing = self.repo.appointments_overlapping(self.db, [professional.id], start, end)
                conflicts = find_conflicts(start, end, existing, exclude_appointment_id)
                if conflicts:
                    self.db.rollback()
                    ids = [item.id for item in conflicts]
                    logger.warning(
                        'Rejected booking for professional %s at %s: overlaps %s',
                        professional.id,
                        start.isoformat(),
                        ids,
                    )
                    raise ConflictError(ids)

                appointment = write()
                self.db.commit()
            except IntegrityError as exc:
                self.db.rollback()
                if APPOINTMENT_OVERLAP_CONSTRAINT in str(exc.orig):
                    raise ConflictError() from exc
                raise

        self.db.refresh(appointment)
        return appointment

    def book(
        self,
        professional_id: int,
        service_id: int,
        start: datetime,
        customer_name: str | None = None,
        customer_phone: str | None = None,
        client_id: int | None = None,
        notes: str | None = None,
        source: str = 'manual',
    ) -> Appointment:
        business, professional, service = self.load_booking_context(professional_id, service_id)
        start = requested_start(start, business)
        end = start + timedelta(minutes=service.duration_minutes)

        # Appointments are checked again under the lock below.
        reason = self._unavailable_reason(business, professional, TimeRange(start, end), appointments=[])
        if reason is not None:
            raise SlotUnavailableError(reason)

        policy = BookingPolicy.from_settings(business.booking_settings)

        def insert() -> Appointment:
            appointment = Appointment(
                business_id=business.id,
                professional_id=professional.id,
                service_id=service.id,
                client_id=client_id,
                customer_name=customer_name,
                customer_phone=customer_phone,
                start_datetime=start,
                end_datetime=end,
                status=statuses.PENDING if policy.require_payment else statuses.CONFIRMED,
                payment_status='pending' if policy.require_payment else 'not_required',
                source=source,
                notes=notes,
            )
            self.db.add(appointment)
            self.db.flush()
            return appointment

        appointment = self._guarded_write(professional, start, end, insert)
        logger.info(
            'Booked appointment %s for professional %s from %s to %s',
            appointment.id,
            professional.id,
            start.isoformat(),
            end.isoformat(),
        )
        return appointment

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise NotFoundError('Appointment not found.')
        return appointment

    def reschedule(self, appointment_id: int, new_start: datetime) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        if appointment.status not in RESCHEDULABLE_STATUSES:
            raise InvalidTransitionError(f'Cannot reschedule a {appointment.status} appointment.')

        business, professional, service = self.load_booking_context(
            appointment.professional_id, appointment.service_id
        )
        start = requested_start(new_start, business)
        end = start + timedelta(minutes=service.duration_minutes)

        reason = self._unavailable_reason(
            business, professional, TimeRange(start, end), appointments=[], exclude_appointment_id=appointment.id
        )
        if reason is not None:
            raise SlotUnavailableError(reason)

        def move() -> Appointment:
            appointment.start_datetime = start
            appointment.end_datetime = end
            return appointment

        self._guarded_write(professional, start, end, move, exclude_appointment_id=appointment.id)
        logger.info('Rescheduled appointment %s to %s', appointment.id, start.isoformat())
        return appointment

    def change_status(self, appointment_id: int, target: str) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        appointment.status = statuses.transition(appointment.status, target)
        if target == statuses.CANCELLED:
            business = self.get_business(appointment.business_id)
            appointment.cancelled_at = self.now_for(business)

        self.db.commit()
        self.db.refresh(appointment)
        logger.info('Appointment %s is now %s', appointment.id, appointment.status)
        return appointment
