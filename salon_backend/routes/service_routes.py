from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_backend.auth.dependencies import get_current_user
from salon_backend.database import get_db
from salon_backend.models.service import Service
from salon_backend.models.user import User
from salon_backend.routes.common import database_unavailable, normalize_optional_text

router = APIRouter(tags=['services'])

MAX_SERVICE_DURATION_MINUTES = 12 * 60
MAX_SERVICE_NAME_LENGTH = 120
MAX_SERVICE_DESCRIPTION_LENGTH = 1000


def _validate_duration(value: int) -> int:
    if value <= 0:
        raise ValueError('Service duration must be greater than zero minutes.')
    if value > MAX_SERVICE_DURATION_MINUTES:
        raise ValueError('Service duration cannot exceed 12 hours.')
    return value


def _validate_price(value: float) -> float:
    if value < 0:
        raise ValueError('Service price cannot be negative.')
    return value


class ServiceRequest(BaseModel):
    name: str
    duration_minutes: int
    price: float = 0.0
    description: str | None = None
    category: str | None = None
    is_active: bool = True

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Service name is required.')
        if len(normalized) > MAX_SERVICE_NAME_LENGTH:
            raise ValueError(f'Service name must be {MAX_SERVICE_NAME_LENGTH} characters or fewer.')
        return normalized

    @field_validator('duration_minutes')
    @classmethod
    def validate_duration(cls, value: int) -> int:
        return _validate_duration(value)

    @field_validator('price')
    @classmethod
    def validate_price(cls, value: float) -> float:
        return _validate_price(value)

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        return normalize_optional_text(value, MAX_SERVICE_DESCRIPTION_LENGTH, 'Description')

    @field_validator('category')
    @classmethod
    def validate_category(cls, value: str | None) -> str | None:
        normalized = normalize_optional_text(value, 60, 'Category')
        return normalized.lower() if normalized else None


class ServiceResponse(BaseModel):
    id: int
    professional_id: int
    name: str
    description: str | None = None
    category: str | None = None
    duration_minutes: int
    price: float
    is_active: bool

    class Config:
        from_attributes = True


def get_owned_service(service_id: int, professional_id: int, db: Session) -> Service:
    service = db.query(Service).filter(
        Service.id == service_id,
        Service.professional_id == professional_id,
    ).first()
    if not service:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Service not found.',
        )
    return service


@router.get('', response_model=list[ServiceResponse])
def list_my_services(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return db.query(Service).filter(
            Service.professional_id == current_user.id,
        ).order_by(Service.name.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/public/{professional_id}', response_model=list[ServiceResponse])
def list_public_services(professional_id: int, db: Session = Depends(get_db)):
    try:
        return db.query(Service).filter(
            Service.professional_id == professional_id,
            Service.is_active.is_(True),
        ).order_by(Service.name.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('', response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def create_service(
    data: ServiceRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        service = Service(professional_id=current_user.id, **data.model_dump())
        db.add(service)
        db.commit()
        db.refresh(service)
        return service
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.put('/{service_id}', response_model=ServiceResponse)
def update_service(
    service_id: int,
    data: ServiceRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        service = get_owned_service(service_id, current_user.id, db)
        for field_name, value in data.model_dump().items():
            setattr(service, field_name, value)
        db.commit()
        db.refresh(service)
        return service
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/{service_id}', status_code=status.HTTP_204_NO_CONTENT)
def deactivate_service(
    service_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # Appointments keep pointing at the service, so it is only hidden.
    try:
        service = get_owned_service(service_id, current_user.id, db)
        service.is_active = False
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc
