from datetime import date, datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking_backend.database import ensure_appointment_schema, get_db
from booking_backend.routes.http_errors import booking_error_to_http, database_unavailable
from booking_backend.scheduling.errors import BookingError
from booking_backend.scheduling.repository import SchedulingRepository
from booking_backend.scheduling.service import BookingService
from booking_backend.scheduling.statuses import APPOINTMENT_STATUSES
from booking_backend.scheduling.time_ranges import day_range

router = APIRouter(tags=['appointments'])

MAX_APPOINTMENT_NOTES_LENGTH = 600
APPOINTMENT_SOURCES = ('manual', 'online', 'phone', 'whatsapp')


def _normalize_optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


class CreateAppointmentRequest(BaseModel):
    professional_id: int
    service_id: int
    start_time: datetime
    client_id: int | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    source: str = 'manual'
    notes: str | None = None

    @field_validator('customer_name', 'customer_phone')
    @classmethod
    def validate_customer_fields(cls, value: str | None) -> str | None:
        return _normalize_optional_text(value)

    @field_validator('source')
    @classmethod
    def validate_source(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in APPOINTMENT_SOURCES:
            raise ValueError('Invalid appointment source.')
        return normalized

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        normalized = _normalize_optional_text(value)
        if normalized is not None and len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')
        return normalized


class RescheduleAppointmentRequest(BaseModel):
    start_time: datetime


class ChangeAppointmentStatusRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in APPOINTMENT_STATUSES:
            raise ValueError('Invalid appointment status.')
        return normalized


class AppointmentResponse(BaseModel):
    id: int
    business_id: int
    professional_id: int
    service_id: int
    client_id: int | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    start_datetime: datetime
    end_datetime: datetime
    status: str
    payment_status: str | None = None
    source: str | None = None
    notes: str | None = None
    cancelled_at: datetime | None = None

    class Config:
        from_attributes = True


def ensure_database_ready() -> None:
    try:
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(data: CreateAppointmentRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return BookingService(db).book(
            professional_id=data.professional_id,
            service_id=data.service_id,
            start=data.start_time,
            customer_name=data.customer_name,
            customer_phone=data.customer_phone,
            client_id=data.client_id,
            notes=data.notes,
            source=data.source,
        )
    except BookingError as exc:
        raise booking_error_to_http(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.patch('/{appointment_id}/reschedule', response_model=AppointmentResponse)
def reschedule_appointment(
    appointment_id: int,
    data: RescheduleAppointmentRequest,
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return BookingService(db).reschedule(appointment_id, data.start_time)
    except BookingError as exc:
        raise booking_error_to_http(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.post('/{appointment_id}/status', response_model=AppointmentResponse)
def change_appointment_status(
    appointment_id: int,
    data: ChangeAppointmentStatusRequest,
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return BookingService(db).change_status(appointment_id, data.status)
    except BookingError as exc:
        db.rollback()
        raise booking_error_to_http(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(
    professional_id: int = Query(...),
    day: date = Query(..., alias='date'),
    include_cancelled: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        bounds = day_range(day)
        return SchedulingRepository.appointments_overlapping(
            db, [professional_id], bounds.start, bounds.end, include_cancelled=include_cancelled
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc
