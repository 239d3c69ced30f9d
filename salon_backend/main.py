import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from salon_backend.core import config
from salon_backend.database import Base, engine, ensure_scheduling_indexes
from salon_backend.models import appointment, client_profile, lead, payment, service, time_block, user  # noqa: F401
from salon_backend.routes import (
    analytics_routes,
    appointment_routes,
    auth_routes,
    availability_routes,
    client_routes,
    lead_routes,
    payment_routes,
    service_routes,
    settings_routes,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
)

logger = logging.getLogger(__name__)

config.validate_runtime_config()

app = FastAPI(title='Salon Booking API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_scheduling_indexes()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Salon Booking API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(service_routes.router, prefix='/services')
app.include_router(availability_routes.router, prefix='/availability')
app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(lead_routes.router, prefix='/leads')
app.include_router(client_routes.router, prefix='/clients')
app.include_router(settings_routes.router, prefix='/settings')
app.include_router(payment_routes.router, prefix='/payments')
app.include_router(analytics_routes.router, prefix='/analytics')


if __name__ == '__main__':
    import uvicorn

    uvicorn.run(
        'salon_backend.main:app',
        host=config.HOST,
        port=config.PORT,
        log_level=config.LOG_LEVEL.lower(),
    )
