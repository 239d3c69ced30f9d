from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_backend.auth.dependencies import get_current_user
from salon_backend.database import get_db
from salon_backend.models.service import Service
from salon_backend.models.user import User
from salon_backend.routes.common import database_unavailable
from salon_backend.services.deposits import (
    DepositSettings,
    apply_deposit_settings,
    calculate_deposit_amount,
    deposit_settings_for,
    round_currency,
)

router = APIRouter(tags=['settings'])


class DepositQuoteResponse(BaseModel):
    service_id: int
    service_price: float
    deposit_required: bool
    deposit_amount: float
    remaining_balance: float
    deposit_policy: str | None = None


@router.get('/deposits', response_model=DepositSettings)
def get_deposit_settings(current_user: User = Depends(get_current_user)):
    return deposit_settings_for(current_user)


@router.put('/deposits', response_model=DepositSettings)
def update_deposit_settings(
    data: DepositSettings,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        apply_deposit_settings(current_user, data)
        db.commit()
        db.refresh(current_user)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    return deposit_settings_for(current_user)


@router.get('/deposits/quote/{professional_id}', response_model=DepositQuoteResponse)
def quote_deposit(
    professional_id: int,
    service_id: int = Query(...),
    db: Session = Depends(get_db),
):
    try:
        professional = db.get(User, professional_id)
        service = db.query(Service).filter(
            Service.id == service_id,
            Service.professional_id == professional_id,
        ).first()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    if professional is None or service is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Service not found.',
        )

    settings = deposit_settings_for(professional)
    deposit_amount = calculate_deposit_amount(settings, service.price)

    return DepositQuoteResponse(
        service_id=service.id,
        service_price=service.price,
        deposit_required=deposit_amount > 0,
        deposit_amount=deposit_amount,
        remaining_balance=round_currency(service.price - deposit_amount),
        deposit_policy=settings.deposit_policy if deposit_amount > 0 else None,
    )
