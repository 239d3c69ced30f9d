import os
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
os.environ.setdefault('NOTIFICATION_FUNCTION_URL', '')

from salon_backend.auth.passwords import hash_password  # noqa: E402
from salon_backend.database import Base  # noqa: E402
from salon_backend.models import appointment, client_profile, lead, payment, time_block  # noqa: E402,F401
from salon_backend.models.service import Service  # noqa: E402
from salon_backend.models.user import User  # noqa: E402

# Monday, before the salon opens.
FIXED_NOW = datetime(2030, 1, 7, 7, 0)

ROUTE_MODULES = (
    'salon_backend.routes.analytics_routes',
    'salon_backend.routes.appointment_routes',
    'salon_backend.routes.availability_routes',
    'salon_backend.routes.lead_routes',
    'salon_backend.routes.payment_routes',
)


@pytest.fixture
def db():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def fixed_now(monkeypatch: pytest.MonkeyPatch) -> datetime:
    for module_path in ROUTE_MODULES:
        monkeypatch.setattr(f'{module_path}.current_time', lambda: FIXED_NOW)
    return FIXED_NOW


@pytest.fixture
def professional(db) -> User:
    user = User(
        email='stylist@example.com',
        hashed_password=hash_password('correct-horse'),
        full_name='Ada Stylist',
        business_name='Ada Hair Studio',
        role='professional',
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def other_professional(db) -> User:
    user = User(
        email='barber@example.com',
        hashed_password=hash_password('another-secret'),
        full_name='Bo Barber',
        role='professional',
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def haircut(db, professional) -> Service:
    service = Service(
        professional_id=professional.id,
        name='Silk Press',
        duration_minutes=60,
        price=10000.0,
        is_active=True,
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    return service
