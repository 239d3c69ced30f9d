from datetime import date, datetime, time, timedelta

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_backend.database import ensure_scheduling_indexes
from salon_backend.models.appointment import OCCUPYING_STATUSES, Appointment
from salon_backend.models.time_block import TimeBlock
from salon_backend.scheduling.overlap import KIND_APPOINTMENT, KIND_TIME_BLOCK, OccupiedInterval

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def current_time() -> datetime:
    return datetime.now().replace(second=0, microsecond=0)


def to_local_minute(value: datetime) -> datetime:
    """Naive local time truncated to the minute; aware values are converted first."""
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value.replace(second=0, microsecond=0)


def database_unavailable(exc: SQLAlchemyError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def ensure_database_ready() -> None:
    try:
        ensure_scheduling_indexes()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


def normalize_email(value: str) -> str:
    normalized = value.strip().lower()
    if not normalized or '@' not in normalized:
        raise ValueError('A valid email address is required.')
    return normalized


def normalize_optional_text(value: str | None, max_length: int, field_name: str) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > max_length:
        raise ValueError(f'{field_name} must be {max_length} characters or fewer.')

    return normalized


def day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def load_occupied_intervals(
    db: Session,
    professional_id: int,
    range_start: datetime,
    range_end: datetime,
) -> list[OccupiedInterval]:
    appointments = db.query(Appointment.id, Appointment.start_time, Appointment.end_time).filter(
        Appointment.professional_id == professional_id,
        Appointment.status.in_(OCCUPYING_STATUSES),
        Appointment.start_time < range_end,
        Appointment.end_time > range_start,
    ).all()

    time_blocks = db.query(TimeBlock.id, TimeBlock.start_time, TimeBlock.end_time).filter(
        TimeBlock.professional_id == professional_id,
        TimeBlock.start_time < range_end,
        TimeBlock.end_time > range_start,
    ).all()

    occupied = [
        OccupiedInterval(start=start, end=end, kind=KIND_APPOINTMENT, ref_id=appointment_id)
        for appointment_id, start, end in appointments
    ]
    occupied.extend(
        OccupiedInterval(start=start, end=end, kind=KIND_TIME_BLOCK, ref_id=block_id)
        for block_id, start, end in time_blocks
    )
    return occupied
