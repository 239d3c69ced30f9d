from datetime import date, datetime

import pytest
from fastapi import HTTPException

from salon_backend.models.appointment import Appointment
from salon_backend.models.payment import PaymentTransaction
from salon_backend.routes.analytics_routes import (
    get_appointment_analytics,
    get_deposit_analytics,
    get_payment_analytics,
)


@pytest.fixture
def history(db, professional, haircut) -> None:
    appointments = [
        Appointment(
            professional_id=professional.id,
            service_id=haircut.id,
            start_time=datetime(2029, 12, 20, 10, 0),
            end_time=datetime(2029, 12, 20, 11, 0),
            status='completed',
            deposit_required=True,
            deposit_amount=2500.0,
            deposit_paid=True,
        ),
        Appointment(
            professional_id=professional.id,
            service_id=haircut.id,
            start_time=datetime(2030, 1, 8, 10, 0),
            end_time=datetime(2030, 1, 8, 11, 0),
            status='confirmed',
            deposit_required=True,
            deposit_amount=2500.0,
        ),
        Appointment(
            professional_id=professional.id,
            service_id=haircut.id,
            start_time=datetime(2030, 1, 3, 10, 0),
            end_time=datetime(2030, 1, 3, 11, 0),
            status='cancelled',
        ),
    ]
    db.add_all(appointments)
    db.flush()

    db.add_all([
        PaymentTransaction(
            professional_id=professional.id,
            appointment_id=appointments[0].id,
            reference='SB_1_1',
            amount=2500.0,
            currency='NGN',
            transaction_type='deposit',
            status='success',
            created_at=datetime(2029, 12, 15, 9, 0),
        ),
        PaymentTransaction(
            professional_id=professional.id,
            appointment_id=appointments[0].id,
            reference='SB_1_2',
            amount=7500.0,
            currency='NGN',
            transaction_type='full_payment',
            status='success',
            created_at=datetime(2030, 1, 2, 9, 0),
        ),
        PaymentTransaction(
            professional_id=professional.id,
            appointment_id=appointments[1].id,
            reference='SB_1_3',
            amount=2500.0,
            currency='NGN',
            transaction_type='deposit',
            status='pending',
            created_at=datetime(2030, 1, 6, 9, 0),
        ),
    ])
    db.commit()


def test_payment_analytics(db, professional, history, fixed_now) -> None:
    result = get_payment_analytics(
        start_date=date(2029, 12, 1), end_date=date(2030, 1, 7), current_user=professional, db=db,
    )

    assert result['metrics']['total_revenue'] == 10000.0
    assert result['metrics']['pending_amount'] == 2500.0
    assert [m['month'] for m in result['monthly']] == ['Dec 2029', 'Jan 2030']
    assert result['services'][0]['service_name'] == 'Silk Press'


def test_payment_analytics_range_excludes_older_transactions(db, professional, history, fixed_now) -> None:
    result = get_payment_analytics(
        start_date=date(2030, 1, 1), end_date=None, current_user=professional, db=db,
    )

    assert result['end_date'] == date(2030, 1, 7)
    assert result['metrics']['total_revenue'] == 7500.0


def test_payment_analytics_rejects_inverted_range(db, professional, fixed_now) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_payment_analytics(
            start_date=date(2030, 1, 7), end_date=date(2030, 1, 1), current_user=professional, db=db,
        )

    assert exception_info.value.status_code == 400


def test_deposit_analytics(db, professional, history, fixed_now) -> None:
    result = get_deposit_analytics(current_user=professional, db=db)

    assert result['total_deposits_collected'] == 2500.0
    assert result['deposit_conversion_rate'] == 50.0
    assert result['cancelled_appointments'] == 1


def test_appointment_analytics(db, professional, history, fixed_now) -> None:
    result = get_appointment_analytics(current_user=professional, db=db)

    assert result['total_appointments'] == 3
    assert result['upcoming_appointments'] == 1
    assert result['completion_rate'] == 50.0
