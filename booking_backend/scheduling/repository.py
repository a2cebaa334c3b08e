"""Record-store reads used by the availability and booking services."""

from datetime import datetime
from typing import Iterable

from sqlalchemy import or_
from sqlalchemy.orm import Session

from booking_backend.models.appointment import Appointment
from booking_backend.models.business import Business
from booking_backend.models.professional import Professional
from booking_backend.models.service import Service
from booking_backend.models.time_block import TimeBlock
from booking_backend.scheduling.statuses import CANCELLED


def offers_service(professional: Professional, service_id: int) -> bool:
    # No associations means the professional offers every service.
    if not professional.services:
        return True
    return any(service.id == service_id for service in professional.services)


class SchedulingRepository:
    """Tenant-scoped queries over businesses, professionals, appointments and time blocks"""

    @staticmethod
    def get_business(db: Session, business_id: int) -> Business | None:
        return db.query(Business).filter(Business.id == business_id).first()

    @staticmethod
    def get_professional(db: Session, professional_id: int) -> Professional | None:
        return db.query(Professional).filter(Professional.id == professional_id).first()

    @staticmethod
    def get_service(db: Session, service_id: int) -> Service | None:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Appointment | None:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def list_active_professionals(
        db: Session,
        business_id: int,
        professional_ids: Iterable[int] | None = None,
    ) -> list[Professional]:
        query = db.query(Professional).filter(
            Professional.business_id == business_id,
            Professional.is_active.is_(True),
        )
        if professional_ids is not None:
            query = query.filter(Professional.id.in_(list(professional_ids)))
        return query.order_by(Professional.name.asc(), Professional.id.asc()).all()

    @staticmethod
    def appointments_overlapping(
        db: Session,
        professional_ids: Iterable[int],
        range_start: datetime,
        range_end: datetime,
        include_cancelled: bool = False,
    ) -> list[Appointment]:
        query = db.query(Appointment).filter(
            Appointment.professional_id.in_(list(professional_ids)),
            Appointment.start_datetime < range_end,
            Appointment.end_datetime > range_start,
        )
        if not include_cancelled:
            query = query.filter(Appointment.status != CANCELLED)
        return query.order_by(Appointment.start_datetime.asc()).all()

    @staticmethod
    def time_blocks_overlapping(
        db: Session,
        business_id: int,
        range_start: datetime,
        range_end: datetime,
        professional_ids: Iterable[int] | None = None,
    ) -> list[TimeBlock]:
        """Blocks touching the range; business-wide blocks are always included."""
        query = db.query(TimeBlock).filter(
            TimeBlock.business_id == business_id,
            TimeBlock.start_datetime < range_end,
            TimeBlock.end_datetime > range_start,
        )
        if professional_ids is not None:
            query = query.filter(
                or_(
                    TimeBlock.professional_id.is_(None),
                    TimeBlock.professional_id.in_(list(professional_ids)),
                )
            )
        return query.order_by(TimeBlock.start_datetime.asc()).all()

    @staticmethod
    def lock_professional(db: Session, professional_id: int) -> Professional | None:
        """Row-lock the professional so concurrent commits for them serialise."""
        return (
            db.query(Professional)
            .filter(Professional.id == professional_id)
            .with_for_update()
            .first()
        )
