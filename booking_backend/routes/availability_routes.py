from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking_backend.database import ensure_appointment_schema, ensure_time_block_schema, get_db
from booking_backend.routes.http_errors import booking_error_to_http, database_unavailable
from booking_backend.scheduling.errors import BookingError
from booking_backend.scheduling.service import AvailabilityService
from booking_backend.scheduling.slots import DayAvailability

router = APIRouter(tags=['availability'])


class SlotResponse(BaseModel):
    start_time: datetime
    end_time: datetime


class DayAvailabilityResponse(BaseModel):
    date: date
    professional_id: int
    service_id: int
    status: str
    reason: str | None = None
    slots: list[SlotResponse]


class AnyProfessionalSlotsResponse(BaseModel):
    date: date
    service_id: int
    start_times: list[datetime]


class SlotCheckResponse(BaseModel):
    available: bool
    reason: str | None = None

    class Config:
        from_attributes = True


class LiveStatusResponse(BaseModel):
    professional_id: int
    name: str
    state: str
    reason: str | None = None
    free_from: datetime | None = None
    free_until: datetime | None = None
    free_minutes: int | None = None
    minutes_remaining: int | None = None
    appointment_id: int | None = None

    class Config:
        from_attributes = True


def ensure_database_ready() -> None:
    try:
        ensure_appointment_schema()
        ensure_time_block_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


def to_day_availability_response(
    availability: DayAvailability,
    professional_id: int,
    service_id: int,
) -> DayAvailabilityResponse:
    duration = timedelta(minutes=availability.duration_minutes or 0)
    return DayAvailabilityResponse(
        date=availability.day,
        professional_id=professional_id,
        service_id=service_id,
        status=availability.status,
        reason=availability.reason,
        slots=[SlotResponse(start_time=start, end_time=start + duration) for start in availability.slots],
    )


@router.get('/slots', response_model=DayAvailabilityResponse)
def list_available_slots(
    professional_id: int = Query(...),
    service_id: int = Query(...),
    day: date = Query(..., alias='date'),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        availability = AvailabilityService(db).available_slots(professional_id, service_id, day)
        return to_day_availability_response(availability, professional_id, service_id)
    except BookingError as exc:
        raise booking_error_to_http(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/slots/any', response_model=AnyProfessionalSlotsResponse)
def list_available_slots_any_professional(
    service_id: int = Query(...),
    day: date = Query(..., alias='date'),
    professional_ids: list[int] | None = Query(default=None),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        start_times = AvailabilityService(db).available_slots_any(service_id, day, professional_ids)
        return AnyProfessionalSlotsResponse(date=day, service_id=service_id, start_times=start_times)
    except BookingError as exc:
        raise booking_error_to_http(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/check', response_model=SlotCheckResponse)
def check_slot(
    professional_id: int = Query(...),
    service_id: int = Query(...),
    start_time: datetime = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return AvailabilityService(db).check_slot(professional_id, service_id, start_time)
    except BookingError as exc:
        raise booking_error_to_http(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/live', response_model=list[LiveStatusResponse])
def list_live_availability(
    business_id: int = Query(...),
    service_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return AvailabilityService(db).live_status(business_id, service_id)
    except BookingError as exc:
        raise booking_error_to_http(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc
