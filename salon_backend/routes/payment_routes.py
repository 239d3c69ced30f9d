import logging
from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_backend.auth.dependencies import get_current_user
from salon_backend.core import config
from salon_backend.database import get_db
from salon_backend.models.appointment import STATUS_CONFIRMED, Appointment
from salon_backend.models.payment import PaymentTransaction
from salon_backend.models.user import User
from salon_backend.routes.common import current_time, database_unavailable, normalize_email
from salon_backend.services import notifications
from salon_backend.services.payments import (
    PaymentGatewayError,
    PaystackClient,
    from_minor_units,
    generate_payment_reference,
    get_payment_gateway,
    to_minor_units,
)

router = APIRouter(tags=['payments'])

logger = logging.getLogger(__name__)


class InitializeDepositRequest(BaseModel):
    appointment_id: int
    email: str
    callback_url: str | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)


class InitializeDepositResponse(BaseModel):
    reference: str
    authorization_url: str
    access_code: str | None = None
    amount: float
    currency: str


class PaymentTransactionResponse(BaseModel):
    id: int
    appointment_id: int | None = None
    reference: str
    amount: float
    currency: str
    transaction_type: str
    status: str
    created_at: datetime | None = None
    paid_at: datetime | None = None

    class Config:
        from_attributes = True


def gateway_error(exc: PaymentGatewayError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=str(exc) or 'Payment gateway error.',
    )


@router.post('/deposits/initialize', response_model=InitializeDepositResponse, status_code=status.HTTP_201_CREATED)
def initialize_deposit_payment(
    data: InitializeDepositRequest,
    db: Session = Depends(get_db),
    gateway: PaystackClient = Depends(get_payment_gateway),
):
    try:
        appointment = db.get(Appointment, data.appointment_id)
        if appointment is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Appointment not found.',
            )
        if appointment.status != STATUS_CONFIRMED:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='Deposits can only be paid for confirmed appointments.',
            )
        if not appointment.deposit_required or not appointment.deposit_amount:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='This appointment does not require a deposit.',
            )
        if appointment.deposit_paid:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='The deposit for this appointment has already been paid.',
            )

        reference = generate_payment_reference()
        try:
            checkout = gateway.initialize_payment(
                amount_minor=to_minor_units(appointment.deposit_amount),
                email=data.email,
                reference=reference,
                currency=config.PAYMENT_CURRENCY,
                callback_url=data.callback_url,
                metadata={
                    'appointment_id': appointment.id,
                    'professional_id': appointment.professional_id,
                    'transaction_type': 'deposit',
                },
            )
        except PaymentGatewayError as exc:
            raise gateway_error(exc) from exc

        transaction = PaymentTransaction(
            professional_id=appointment.professional_id,
            appointment_id=appointment.id,
            reference=checkout.get('reference') or reference,
            amount=appointment.deposit_amount,
            currency=config.PAYMENT_CURRENCY,
            transaction_type='deposit',
            status='pending',
        )
        db.add(transaction)
        db.commit()
        db.refresh(transaction)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    return InitializeDepositResponse(
        reference=transaction.reference,
        authorization_url=checkout['authorization_url'],
        access_code=checkout.get('access_code'),
        amount=transaction.amount,
        currency=transaction.currency,
    )


@router.post('/verify/{reference}', response_model=PaymentTransactionResponse)
def verify_payment(
    reference: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    gateway: PaystackClient = Depends(get_payment_gateway),
):
    try:
        transaction = db.query(PaymentTransaction).filter(PaymentTransaction.reference == reference).first()
        if transaction is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Payment not found.',
            )
        if transaction.status == 'success':
            return transaction

        try:
            result = gateway.verify_payment(reference)
        except PaymentGatewayError as exc:
            raise gateway_error(exc) from exc

        gateway_status = (result.get('status') or '').lower()
        transaction.gateway_response = result.get('gateway_response')

        if gateway_status != 'success':
            if gateway_status in ('failed', 'abandoned', 'reversed'):
                transaction.status = 'failed'
            db.commit()
            db.refresh(transaction)
            return transaction

        paid_amount = from_minor_units(int(result.get('amount') or 0))
        if paid_amount + 0.005 < transaction.amount:
            logger.warning(
                'Payment %s settled %.2f, expected %.2f',
                reference,
                paid_amount,
                transaction.amount,
            )
            transaction.status = 'failed'
            db.commit()
            db.refresh(transaction)
            return transaction

        now = current_time()
        transaction.status = 'success'
        transaction.paid_at = now

        appointment = db.get(Appointment, transaction.appointment_id) if transaction.appointment_id else None
        if appointment is not None and transaction.transaction_type == 'deposit':
            appointment.deposit_paid = True
            appointment.deposit_paid_at = now

        db.commit()
        db.refresh(transaction)

        payloads = []
        if appointment is not None:
            professional = db.get(User, appointment.professional_id)
            payloads = notifications.deposit_notifications(appointment, appointment.service, professional)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    logger.info('Payment %s verified', reference)

    for payload in payloads:
        background_tasks.add_task(notifications.dispatch_notification, payload)

    return transaction


@router.get('/history', response_model=list[PaymentTransactionResponse])
def list_payment_history(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return db.query(PaymentTransaction).filter(
            PaymentTransaction.professional_id == current_user.id,
        ).order_by(PaymentTransaction.created_at.desc(), PaymentTransaction.id.desc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc
