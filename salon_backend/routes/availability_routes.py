from datetime import date, datetime, time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_backend.auth.dependencies import get_current_user
from salon_backend.core import config
from salon_backend.database import get_db
from salon_backend.models.appointment import OCCUPYING_STATUSES, Appointment
from salon_backend.models.service import Service
from salon_backend.models.time_block import TIME_BLOCK_TYPES, TimeBlock
from salon_backend.models.user import User
from salon_backend.routes.common import (
    current_time,
    database_unavailable,
    day_bounds,
    ensure_database_ready,
    load_occupied_intervals,
    normalize_optional_text,
    to_local_minute,
)
from salon_backend.scheduling.availability import evaluate_day_slots

router = APIRouter(tags=['availability'])

MAX_TIME_BLOCK_TITLE_LENGTH = 120
MAX_TIME_BLOCK_DESCRIPTION_LENGTH = 600


class TimeBlockRequest(BaseModel):
    start_time: datetime
    end_time: datetime
    type: str = 'unavailable'
    title: str | None = None
    description: str | None = None

    @field_validator('start_time', 'end_time')
    @classmethod
    def strip_seconds(cls, value: datetime) -> datetime:
        return to_local_minute(value)

    @field_validator('type')
    @classmethod
    def validate_type(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in TIME_BLOCK_TYPES:
            raise ValueError('Time block type must be one of: unavailable, break, vacation.')
        return normalized

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str | None) -> str | None:
        return normalize_optional_text(value, MAX_TIME_BLOCK_TITLE_LENGTH, 'Title')

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        return normalize_optional_text(value, MAX_TIME_BLOCK_DESCRIPTION_LENGTH, 'Description')

    @model_validator(mode='after')
    def validate_range(self) -> 'TimeBlockRequest':
        if self.end_time <= self.start_time:
            raise ValueError('A time block must end after it starts.')
        return self


class TimeBlockResponse(BaseModel):
    id: int
    start_time: datetime
    end_time: datetime
    type: str
    title: str | None = None
    description: str | None = None

    class Config:
        from_attributes = True


class CalendarSlotResponse(BaseModel):
    date: date
    time: time
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    status: str
    is_available: bool
    reason: str | None = None


def ensure_time_block_fits(
    db: Session,
    professional_id: int,
    start_time: datetime,
    end_time: datetime,
    exclude_block_id: int | None = None,
) -> None:
    block_query = db.query(TimeBlock).filter(
        TimeBlock.professional_id == professional_id,
        TimeBlock.start_time < end_time,
        TimeBlock.end_time > start_time,
    )
    if exclude_block_id is not None:
        block_query = block_query.filter(TimeBlock.id != exclude_block_id)

    if block_query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='This time overlaps another time block.',
        )

    overlapping_appointment = db.query(Appointment).filter(
        Appointment.professional_id == professional_id,
        Appointment.status.in_(OCCUPYING_STATUSES),
        Appointment.start_time < end_time,
        Appointment.end_time > start_time,
    ).first()
    if overlapping_appointment:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='This time is already booked by a client appointment.',
        )


def get_owned_time_block(block_id: int, professional_id: int, db: Session) -> TimeBlock:
    time_block = db.query(TimeBlock).filter(
        TimeBlock.id == block_id,
        TimeBlock.professional_id == professional_id,
    ).first()
    if not time_block:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Time block not found.',
        )
    return time_block


@router.get('/professionals/{professional_id}/slots', response_model=list[CalendarSlotResponse])
def list_day_slots(
    professional_id: int,
    day: date = Query(..., alias='date'),
    service_id: int = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        service = db.query(Service).filter(
            Service.id == service_id,
            Service.professional_id == professional_id,
            Service.is_active.is_(True),
        ).first()
        if not service:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Service not found.',
            )

        range_start, range_end = day_bounds(day)
        occupied = load_occupied_intervals(db, professional_id, range_start, range_end)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    slots = evaluate_day_slots(
        day,
        config.BUSINESS_DAY_START,
        config.BUSINESS_DAY_END,
        config.SLOT_CADENCE_MINUTES,
        service.duration_minutes,
        occupied,
        now=current_time(),
    )

    return [
        CalendarSlotResponse(
            date=slot.start.date(),
            time=slot.start.time(),
            start_time=slot.start,
            end_time=slot.end,
            duration_minutes=service.duration_minutes,
            status='available' if slot.is_available else slot.reason,
            is_available=slot.is_available,
            reason=slot.reason,
        )
        for slot in slots
    ]


@router.get('/time-blocks', response_model=list[TimeBlockResponse])
def list_time_blocks(
    day: date | None = Query(default=None, alias='date'),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        query = db.query(TimeBlock).filter(TimeBlock.professional_id == current_user.id)
        if day is not None:
            range_start, range_end = day_bounds(day)
            query = query.filter(
                TimeBlock.start_time < range_end,
                TimeBlock.end_time > range_start,
            )
        return query.order_by(TimeBlock.start_time.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('/time-blocks', response_model=TimeBlockResponse, status_code=status.HTTP_201_CREATED)
def create_time_block(
    data: TimeBlockRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        ensure_time_block_fits(db, current_user.id, data.start_time, data.end_time)

        time_block = TimeBlock(professional_id=current_user.id, **data.model_dump())
        db.add(time_block)
        db.commit()
        db.refresh(time_block)
        return time_block
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.put('/time-blocks/{block_id}', response_model=TimeBlockResponse)
def update_time_block(
    block_id: int,
    data: TimeBlockRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        time_block = get_owned_time_block(block_id, current_user.id, db)
        ensure_time_block_fits(
            db,
            current_user.id,
            data.start_time,
            data.end_time,
            exclude_block_id=time_block.id,
        )

        for field_name, value in data.model_dump().items():
            setattr(time_block, field_name, value)
        db.commit()
        db.refresh(time_block)
        return time_block
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/time-blocks/{block_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_time_block(
    block_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        time_block = get_owned_time_block(block_id, current_user.id, db)
        db.delete(time_block)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc
