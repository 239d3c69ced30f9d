from datetime import datetime

import pytest
from fastapi import BackgroundTasks, HTTPException

from salon_backend.models.appointment import Appointment
from salon_backend.models.payment import PaymentTransaction
from salon_backend.routes.payment_routes import (
    InitializeDepositRequest,
    initialize_deposit_payment,
    list_payment_history,
    verify_payment,
)
from salon_backend.services.payments import PaymentGatewayError


class FakeGateway:
    def __init__(self, verify_result: dict | None = None, error: str | None = None) -> None:
        self.verify_result = verify_result or {}
        self.error = error
        self.initialized: list[dict] = []

    def initialize_payment(self, **kwargs) -> dict:
        if self.error:
            raise PaymentGatewayError(self.error)
        self.initialized.append(kwargs)
        return {
            'authorization_url': 'https://checkout.test/abc',
            'access_code': 'abc',
            'reference': kwargs['reference'],
        }

    def verify_payment(self, reference: str) -> dict:
        if self.error:
            raise PaymentGatewayError(self.error)
        return self.verify_result


@pytest.fixture
def deposit_appointment(db, professional, haircut) -> Appointment:
    appointment = Appointment(
        professional_id=professional.id,
        service_id=haircut.id,
        client_name='Grace Client',
        client_email='grace@example.com',
        start_time=datetime(2030, 1, 8, 10, 0),
        end_time=datetime(2030, 1, 8, 11, 0),
        status='confirmed',
        total_amount=10000.0,
        deposit_required=True,
        deposit_amount=2500.0,
    )
    db.add(appointment)
    db.commit()
    return appointment


def initialize(db, appointment, gateway):
    return initialize_deposit_payment(
        InitializeDepositRequest(appointment_id=appointment.id, email=' GRACE@example.com '),
        db=db,
        gateway=gateway,
    )


def test_initialize_deposit_records_pending_transaction(db, deposit_appointment) -> None:
    gateway = FakeGateway()

    response = initialize(db, deposit_appointment, gateway)

    assert response.authorization_url == 'https://checkout.test/abc'
    assert response.amount == 2500.0
    assert gateway.initialized[0]['amount_minor'] == 250000
    assert gateway.initialized[0]['email'] == 'grace@example.com'

    transaction = db.query(PaymentTransaction).one()
    assert transaction.reference == response.reference
    assert transaction.status == 'pending'
    assert transaction.transaction_type == 'deposit'


def test_initialize_rejects_appointment_without_deposit(db, deposit_appointment) -> None:
    deposit_appointment.deposit_required = False
    deposit_appointment.deposit_amount = 0.0
    db.commit()

    with pytest.raises(HTTPException) as exception_info:
        initialize(db, deposit_appointment, FakeGateway())

    assert exception_info.value.status_code == 400


def test_initialize_rejects_already_paid_deposit(db, deposit_appointment) -> None:
    deposit_appointment.deposit_paid = True
    db.commit()

    with pytest.raises(HTTPException) as exception_info:
        initialize(db, deposit_appointment, FakeGateway())

    assert exception_info.value.status_code == 409


def test_gateway_error_is_bad_gateway(db, deposit_appointment) -> None:
    with pytest.raises(HTTPException) as exception_info:
        initialize(db, deposit_appointment, FakeGateway(error='Payment gateway unavailable. Please try again.'))

    assert exception_info.value.status_code == 502
    assert db.query(PaymentTransaction).count() == 0


def test_verify_successful_payment_marks_deposit_paid(db, deposit_appointment, fixed_now) -> None:
    reference = initialize(db, deposit_appointment, FakeGateway()).reference
    background_tasks = BackgroundTasks()

    transaction = verify_payment(
        reference,
        background_tasks,
        db=db,
        gateway=FakeGateway(verify_result={'status': 'success', 'amount': 250000, 'gateway_response': 'Approved'}),
    )

    assert transaction.status == 'success'
    assert transaction.paid_at == fixed_now
    assert transaction.gateway_response == 'Approved'
    assert db.get(Appointment, deposit_appointment.id).deposit_paid is True
    assert len(background_tasks.tasks) == 2


def test_verify_underpaid_payment_fails(db, deposit_appointment, fixed_now) -> None:
    reference = initialize(db, deposit_appointment, FakeGateway()).reference

    transaction = verify_payment(
        reference,
        BackgroundTasks(),
        db=db,
        gateway=FakeGateway(verify_result={'status': 'success', 'amount': 100000}),
    )

    assert transaction.status == 'failed'
    assert db.get(Appointment, deposit_appointment.id).deposit_paid is False


def test_verify_abandoned_payment_fails(db, deposit_appointment, fixed_now) -> None:
    reference = initialize(db, deposit_appointment, FakeGateway()).reference

    transaction = verify_payment(
        reference,
        BackgroundTasks(),
        db=db,
        gateway=FakeGateway(verify_result={'status': 'abandoned'}),
    )

    assert transaction.status == 'failed'


def test_verify_unknown_reference(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        verify_payment('SB_0_0', BackgroundTasks(), db=db, gateway=FakeGateway())

    assert exception_info.value.status_code == 404


def test_payment_history_is_scoped_to_professional(db, professional, other_professional, deposit_appointment) -> None:
    initialize(db, deposit_appointment, FakeGateway())

    assert len(list_payment_history(current_user=professional, db=db)) == 1
    assert list_payment_history(current_user=other_professional, db=db) == []
