from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_backend.auth import jwt_handler
from salon_backend.auth.dependencies import get_current_user
from salon_backend.auth.passwords import MIN_PASSWORD_LENGTH, hash_password, verify_password
from salon_backend.database import get_db
from salon_backend.models.user import User
from salon_backend.routes.common import database_unavailable, normalize_email, normalize_optional_text

router = APIRouter(tags=['auth'])


class RegisterRequest(BaseModel):
    email: str
    password: str
    full_name: str | None = None
    business_name: str | None = None
    phone: str | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters long.')
        return value

    @field_validator('full_name', 'business_name', 'phone')
    @classmethod
    def validate_profile_text(cls, value: str | None) -> str | None:
        return normalize_optional_text(value, 120, 'Profile fields')


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'


class ProfileResponse(BaseModel):
    id: int
    email: str
    full_name: str | None = None
    business_name: str | None = None
    phone: str | None = None
    role: str

    class Config:
        from_attributes = True


@router.post('/register', response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    try:
        existing = db.query(User).filter(User.email == data.email).first()
        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='An account with this email already exists.',
            )

        user = User(
            email=data.email,
            hashed_password=hash_password(data.password),
            full_name=data.full_name,
            business_name=data.business_name,
            phone=data.phone,
            role='professional',
        )
        db.add(user)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    return TokenResponse(access_token=jwt_handler.create_access_token(subject=data.email))


@router.post('/login', response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = db.query(User).filter(User.email == data.email).first()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    if user is None or not verify_password(data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Invalid email or password.',
        )

    token = jwt_handler.create_access_token(subject=user.email, role=user.role or 'professional')
    return TokenResponse(access_token=token)


@router.get('/me', response_model=ProfileResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
