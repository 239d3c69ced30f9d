import logging
from datetime import date, datetime, time, timedelta

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_backend.auth.dependencies import get_current_user
from salon_backend.core import config
from salon_backend.database import get_db
from salon_backend.models.appointment import (
    APPOINTMENT_STATUSES,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_CONFIRMED,
    STATUS_NO_SHOW,
    Appointment,
)
from salon_backend.models.service import Service
from salon_backend.models.user import User
from salon_backend.routes.common import (
    current_time,
    database_unavailable,
    day_bounds,
    ensure_database_ready,
    load_occupied_intervals,
    normalize_email,
    normalize_optional_text,
    to_local_minute,
)
from salon_backend.scheduling.overlap import KIND_APPOINTMENT, find_conflict
from salon_backend.scheduling.reschedule import (
    REASON_BLOCKED,
    REASON_OCCUPIED,
    REJECTION_MESSAGES,
    reschedule,
)
from salon_backend.scheduling.slots import is_on_slot_grid
from salon_backend.services import notifications
from salon_backend.services.deposits import calculate_deposit_amount, deposit_settings_for
from salon_backend.services.clients import record_completed_appointment

router = APIRouter(tags=['appointments'])

logger = logging.getLogger(__name__)

MAX_APPOINTMENT_NOTES_LENGTH = 600
MAX_CLIENT_NAME_LENGTH = 120
STATUS_TRANSITIONS = {
    STATUS_CONFIRMED: (STATUS_COMPLETED, STATUS_CANCELLED, STATUS_NO_SHOW),
}


class BookingRequest(BaseModel):
    professional_id: int
    service_id: int
    start_time: datetime
    client_name: str
    client_email: str
    client_phone: str | None = None
    notes: str | None = None

    @field_validator('start_time')
    @classmethod
    def strip_seconds(cls, value: datetime) -> datetime:
        return to_local_minute(value)

    @field_validator('client_name')
    @classmethod
    def validate_client_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Client name is required.')
        if len(normalized) > MAX_CLIENT_NAME_LENGTH:
            raise ValueError(f'Client name must be {MAX_CLIENT_NAME_LENGTH} characters or fewer.')
        return normalized

    @field_validator('client_email')
    @classmethod
    def validate_client_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator('client_phone')
    @classmethod
    def validate_client_phone(cls, value: str | None) -> str | None:
        return normalize_optional_text(value, 40, 'Phone number')

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return normalize_optional_text(value, MAX_APPOINTMENT_NOTES_LENGTH, 'Notes')


class StatusUpdateRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        normalized = value.strip().lower().replace('-', '_')
        if normalized not in APPOINTMENT_STATUSES:
            raise ValueError('Invalid appointment status.')
        return normalized


class RescheduleRequest(BaseModel):
    date: date
    time: time

    @field_validator('time')
    @classmethod
    def strip_seconds(cls, value: time) -> time:
        return value.replace(second=0, microsecond=0)


class AppointmentResponse(BaseModel):
    id: int
    professional_id: int
    service_id: int
    service_name: str | None = None
    duration_minutes: int
    client_id: int | None = None
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    notes: str | None = None
    start_time: datetime
    end_time: datetime
    status: str
    total_amount: float
    deposit_required: bool
    deposit_amount: float
    deposit_paid: bool


def booked_duration_minutes(appointment: Appointment) -> int:
    return int((appointment.end_time - appointment.start_time).total_seconds() // 60)


def to_appointment_response(appointment: Appointment) -> AppointmentResponse:
    service = appointment.service
    duration_minutes = booked_duration_minutes(appointment)

    return AppointmentResponse(
        id=appointment.id,
        professional_id=appointment.professional_id,
        service_id=appointment.service_id,
        service_name=service.name if service else None,
        duration_minutes=duration_minutes,
        client_id=appointment.client_id,
        client_name=appointment.client_name,
        client_email=appointment.client_email,
        client_phone=appointment.client_phone,
        notes=appointment.notes,
        start_time=appointment.start_time,
        end_time=appointment.end_time,
        status=appointment.status or STATUS_CONFIRMED,
        total_amount=appointment.total_amount or 0.0,
        deposit_required=bool(appointment.deposit_required),
        deposit_amount=appointment.deposit_amount or 0.0,
        deposit_paid=bool(appointment.deposit_paid),
    )


def slot_conflict_error(reason: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={'reason': reason, 'message': REJECTION_MESSAGES[reason]},
    )


def validate_appointment_window(start_time: datetime, end_time: datetime, now: datetime) -> None:
    if start_time <= now:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Appointments must be scheduled in the future.',
        )

    if not is_on_slot_grid(
        start_time,
        config.BUSINESS_DAY_START,
        config.BUSINESS_DAY_END,
        config.SLOT_CADENCE_MINUTES,
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Appointments must start on a {config.SLOT_CADENCE_MINUTES}-minute slot within business hours.',
        )

    day_close = datetime.combine(start_time.date(), config.BUSINESS_DAY_END)
    if end_time > day_close:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Appointment is outside business hours.',
        )


def get_owned_appointment(appointment_id: int, professional_id: int, db: Session) -> Appointment:
    appointment = db.query(Appointment).filter(
        Appointment.id == appointment_id,
        Appointment.professional_id == professional_id,
    ).first()
    if not appointment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Appointment not found.',
        )
    return appointment


@router.post('/book', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    data: BookingRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        professional = db.get(User, data.professional_id)
        service = db.query(Service).filter(
            Service.id == data.service_id,
            Service.professional_id == data.professional_id,
            Service.is_active.is_(True),
        ).first()
        if professional is None or service is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Service not found.',
            )

        start_time = data.start_time
        end_time = start_time + timedelta(minutes=service.duration_minutes)
        now = current_time()

        validate_appointment_window(start_time, end_time, now)

        if start_time >= now + timedelta(days=config.BOOKING_RANGE_DAYS):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f'Appointments can only be booked within the next {config.BOOKING_RANGE_DAYS} days.',
            )

        occupied = load_occupied_intervals(db, professional.id, start_time, end_time)
        conflict = find_conflict(start_time, end_time, occupied)
        if conflict is not None:
            raise slot_conflict_error(REASON_OCCUPIED if conflict.kind == KIND_APPOINTMENT else REASON_BLOCKED)

        deposit_amount = calculate_deposit_amount(deposit_settings_for(professional), service.price)

        appointment = Appointment(
            professional_id=professional.id,
            service_id=service.id,
            client_name=data.client_name,
            client_email=data.client_email,
            client_phone=data.client_phone,
            notes=data.notes,
            start_time=start_time,
            end_time=end_time,
            status=STATUS_CONFIRMED,
            total_amount=service.price or 0.0,
            deposit_required=deposit_amount > 0,
            deposit_amount=deposit_amount,
            deposit_paid=False,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    logger.info('Booked appointment %s for professional %s', appointment.id, professional.id)

    for payload in notifications.booking_notifications(appointment, service, professional):
        background_tasks.add_task(notifications.dispatch_notification, payload)

    return to_appointment_response(appointment)


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(
    day: date | None = Query(default=None, alias='date'),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    status_filter: str | None = Query(default=None, alias='status'),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    if day is not None:
        range_start, range_end = day_bounds(day)
    elif start_date is not None or end_date is not None:
        first_day = start_date or end_date
        last_day = end_date or start_date
        if last_day < first_day:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='end_date must not be before start_date.',
            )
        range_start = day_bounds(first_day)[0]
        range_end = day_bounds(last_day)[1]
    else:
        range_start = range_end = None

    try:
        query = db.query(Appointment).filter(Appointment.professional_id == current_user.id)
        if range_start is not None:
            query = query.filter(
                Appointment.start_time >= range_start,
                Appointment.start_time < range_end,
            )
        if status_filter:
            query = query.filter(Appointment.status == status_filter.strip().lower())

        appointments = query.order_by(Appointment.start_time.asc()).all()
        return [to_appointment_response(appointment) for appointment in appointments]
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return to_appointment_response(get_owned_appointment(appointment_id, current_user.id, db))
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.patch('/{appointment_id}/status', response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    data: StatusUpdateRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = get_owned_appointment(appointment_id, current_user.id, db)
        allowed = STATUS_TRANSITIONS.get(appointment.status, ())
        if data.status not in allowed:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f'Cannot change a {appointment.status} appointment to {data.status}.',
            )

        appointment.status = data.status
        if data.status == STATUS_COMPLETED:
            record_completed_appointment(db, appointment)

        db.commit()
        db.refresh(appointment)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    logger.info('Appointment %s marked %s', appointment.id, appointment.status)

    if appointment.status == STATUS_CANCELLED:
        background_tasks.add_task(
            notifications.dispatch_notification,
            notifications.client_notification(
                notifications.TYPE_CANCELLATION,
                appointment,
                appointment.service,
                current_user,
            ),
        )

    return to_appointment_response(appointment)


@router.post('/{appointment_id}/reschedule', response_model=AppointmentResponse)
def reschedule_appointment(
    appointment_id: int,
    data: RescheduleRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = get_owned_appointment(appointment_id, current_user.id, db)
        if appointment.status != STATUS_CONFIRMED:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='Only confirmed appointments can be rescheduled.',
            )

        duration_minutes = booked_duration_minutes(appointment)
        new_start = datetime.combine(data.date, data.time)
        new_end = new_start + timedelta(minutes=duration_minutes)
        previous_start = appointment.start_time

        # Staying put is always allowed, even once the appointment has started.
        if new_start != previous_start:
            validate_appointment_window(new_start, new_end, current_time())

        occupied = load_occupied_intervals(db, current_user.id, new_start, new_end)
        decision = reschedule(appointment, new_start, duration_minutes, occupied)
        if not decision.accepted:
            raise slot_conflict_error(decision.reason)

        db.commit()
        db.refresh(appointment)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    if appointment.start_time != previous_start:
        logger.info('Appointment %s moved from %s to %s', appointment.id, previous_start, appointment.start_time)
        background_tasks.add_task(
            notifications.dispatch_notification,
            notifications.client_notification(
                notifications.TYPE_RESCHEDULED,
                appointment,
                appointment.service,
                current_user,
            ),
        )

    return to_appointment_response(appointment)
