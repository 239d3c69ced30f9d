from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_backend.auth.dependencies import get_current_user
from salon_backend.database import get_db
from salon_backend.models.client_profile import ClientProfile
from salon_backend.models.user import User
from salon_backend.routes.common import database_unavailable

router = APIRouter(tags=['clients'])


class ClientResponse(BaseModel):
    id: int
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    original_lead_id: int | None = None
    client_since: datetime | None = None
    total_appointments: int
    total_spent: float
    last_appointment_date: datetime | None = None
    notes: str | None = None

    class Config:
        from_attributes = True


@router.get('', response_model=list[ClientResponse])
def list_clients(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return db.query(ClientProfile).filter(
            ClientProfile.professional_id == current_user.id,
        ).order_by(ClientProfile.client_name.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc
