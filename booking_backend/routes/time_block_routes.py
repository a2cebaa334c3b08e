import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking_backend.database import ensure_time_block_schema, get_db
from booking_backend.models.time_block import TimeBlock
from booking_backend.routes.http_errors import database_unavailable
from booking_backend.scheduling.clock import to_business_time
from booking_backend.scheduling.repository import SchedulingRepository
from booking_backend.scheduling.service import commit_lock
from booking_backend.scheduling.time_ranges import day_range

router = APIRouter(tags=['time-blocks'])

logger = logging.getLogger(__name__)

BLOCK_TYPES = ('vacation', 'holiday', 'maintenance', 'personal', 'event')
MAX_BLOCK_REASON_LENGTH = 200


class CreateTimeBlockRequest(BaseModel):
    business_id: int
    professional_id: int | None = None
    start_time: datetime
    end_time: datetime
    reason: str | None = None
    block_type: str = 'personal'

    @field_validator('block_type')
    @classmethod
    def validate_block_type(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in BLOCK_TYPES:
            raise ValueError('Invalid block type.')
        return normalized

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_BLOCK_REASON_LENGTH:
            raise ValueError(f'Reason must be {MAX_BLOCK_REASON_LENGTH} characters or fewer.')

        return normalized


class TimeBlockResponse(BaseModel):
    id: int
    business_id: int
    professional_id: int | None = None
    start_datetime: datetime
    end_datetime: datetime
    reason: str | None = None
    block_type: str | None = None

    class Config:
        from_attributes = True


def ensure_database_ready() -> None:
    try:
        ensure_time_block_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


def validate_block_range(start_time: datetime, end_time: datetime) -> None:
    if end_time <= start_time:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Time block must end after it starts.',
        )


def save_time_block(db: Session, time_block: TimeBlock) -> TimeBlock:
    db.add(time_block)
    db.commit()
    db.refresh(time_block)
    return time_block


@router.post('', response_model=TimeBlockResponse, status_code=status.HTTP_201_CREATED)
def create_time_block(data: CreateTimeBlockRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        business = SchedulingRepository.get_business(db, data.business_id)
        if not business:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Business not found.',
            )

        start_time = to_business_time(data.start_time, business.timezone)
        end_time = to_business_time(data.end_time, business.timezone)
        validate_block_range(start_time, end_time)

        time_block = TimeBlock(
            business_id=business.id,
            professional_id=data.professional_id,
            start_datetime=start_time,
            end_datetime=end_time,
            reason=data.reason,
            block_type=data.block_type,
        )

        if data.professional_id is None:
            save_time_block(db, time_block)
        else:
            professional = SchedulingRepository.get_professional(db, data.professional_id)
            if not professional or professional.business_id != business.id:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail='Professional not found.',
                )

            # Same lock order as the booking commit path.
            with commit_lock(professional.id):
                SchedulingRepository.lock_professional(db, professional.id)
                overlapping_appointments = SchedulingRepository.appointments_overlapping(
                    db, [professional.id], start_time, end_time
                )
                if overlapping_appointments:
                    db.rollback()
                    raise HTTPException(
                        status_code=status.HTTP_409_CONFLICT,
                        detail='This time overlaps booked appointments. Reschedule or cancel them first.',
                    )
                save_time_block(db, time_block)

        logger.info(
            'Blocked %s to %s for business %s (professional %s)',
            start_time.isoformat(),
            end_time.isoformat(),
            business.id,
            data.professional_id,
        )
        return time_block
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('', response_model=list[TimeBlockResponse])
def list_time_blocks(
    business_id: int = Query(...),
    day: date = Query(..., alias='date'),
    professional_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        bounds = day_range(day)
        professional_ids = [professional_id] if professional_id is not None else None
        return SchedulingRepository.time_blocks_overlapping(
            db, business_id, bounds.start, bounds.end, professional_ids
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.delete('/{block_id}', status_code=status.HTTP_204_NO_CONTENT)
def remove_time_block(block_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        time_block = db.query(TimeBlock).filter(TimeBlock.id == block_id).first()

        if not time_block:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Time block not found.',
            )

        db.delete(time_block)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
