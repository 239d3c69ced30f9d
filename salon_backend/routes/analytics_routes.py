from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_backend.auth.dependencies import get_current_user
from salon_backend.database import get_db
from salon_backend.models.appointment import Appointment
from salon_backend.models.payment import PaymentTransaction
from salon_backend.models.service import Service
from salon_backend.models.user import User
from salon_backend.routes.common import current_time, database_unavailable, day_bounds
from salon_backend.services.analytics import (
    AppointmentRecord,
    TransactionRecord,
    appointment_stats,
    deposit_analytics,
    monthly_trends,
    payment_metrics,
    service_breakdown,
)

router = APIRouter(tags=['analytics'])

DEFAULT_ANALYTICS_RANGE_DAYS = 180


def resolve_range(start_date: date | None, end_date: date | None) -> tuple[date, date]:
    end_date = end_date or current_time().date()
    start_date = start_date or end_date - timedelta(days=DEFAULT_ANALYTICS_RANGE_DAYS)
    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='end_date must not be before start_date.',
        )
    return start_date, end_date


def load_transactions(
    db: Session,
    professional_id: int,
    range_start: datetime | None = None,
    range_end: datetime | None = None,
    transaction_type: str | None = None,
) -> list[TransactionRecord]:
    query = db.query(
        PaymentTransaction.amount,
        PaymentTransaction.status,
        PaymentTransaction.transaction_type,
        PaymentTransaction.created_at,
        Service.name,
    ).outerjoin(
        Appointment, PaymentTransaction.appointment_id == Appointment.id,
    ).outerjoin(
        Service, Appointment.service_id == Service.id,
    ).filter(PaymentTransaction.professional_id == professional_id)

    if range_start is not None:
        query = query.filter(
            PaymentTransaction.created_at >= range_start,
            PaymentTransaction.created_at < range_end,
        )
    if transaction_type is not None:
        query = query.filter(PaymentTransaction.transaction_type == transaction_type)

    return [
        TransactionRecord(
            amount=amount or 0.0,
            status=transaction_status,
            transaction_type=kind,
            created_at=created_at,
            service_name=service_name,
        )
        for amount, transaction_status, kind, created_at, service_name in query.all()
    ]


def load_appointments(db: Session, professional_id: int) -> list[AppointmentRecord]:
    rows = db.query(
        Appointment.status,
        Appointment.start_time,
        Appointment.deposit_required,
        Appointment.deposit_paid,
    ).filter(Appointment.professional_id == professional_id).all()

    return [
        AppointmentRecord(
            status=appointment_status,
            start_time=start_time,
            deposit_required=bool(deposit_required),
            deposit_paid=bool(deposit_paid),
        )
        for appointment_status, start_time, deposit_required, deposit_paid in rows
    ]


@router.get('/payments')
def get_payment_analytics(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    start_date, end_date = resolve_range(start_date, end_date)

    try:
        transactions = load_transactions(
            db,
            current_user.id,
            range_start=day_bounds(start_date)[0],
            range_end=day_bounds(end_date)[1],
        )
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    return {
        'start_date': start_date,
        'end_date': end_date,
        'metrics': payment_metrics(transactions),
        'monthly': monthly_trends(transactions, start_date, end_date),
        'services': service_breakdown(transactions),
    }


@router.get('/deposits')
def get_deposit_analytics(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        deposits = load_transactions(db, current_user.id, transaction_type='deposit')
        appointments = load_appointments(db, current_user.id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    return deposit_analytics(deposits, appointments, current_time())


@router.get('/appointments')
def get_appointment_analytics(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        appointments = load_appointments(db, current_user.id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    return appointment_stats(appointments, current_time())
