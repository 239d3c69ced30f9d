import os
from datetime import time

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_time(value: str | None, default: time) -> time:
    if not value:
        return default
    hours, minutes = value.strip().split(":", 1)
    return time(int(hours), int(minutes))


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "8000"))

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./salon.db")

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:5173"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

BUSINESS_DAY_START = _get_time(os.getenv("BUSINESS_DAY_START"), time(8, 0))
BUSINESS_DAY_END = _get_time(os.getenv("BUSINESS_DAY_END"), time(18, 0))
SLOT_CADENCE_MINUTES = int(os.getenv("SLOT_CADENCE_MINUTES", "30"))
BOOKING_RANGE_DAYS = int(os.getenv("BOOKING_RANGE_DAYS", "7"))

PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY", "")
PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "NGN")
PAYMENT_REFERENCE_PREFIX = os.getenv("PAYMENT_REFERENCE_PREFIX", "SB")
PAYMENT_TIMEOUT_SECONDS = float(os.getenv("PAYMENT_TIMEOUT_SECONDS", "30"))

NOTIFICATIONS_ENABLED = _get_bool(os.getenv("NOTIFICATIONS_ENABLED"), default=True)
NOTIFICATION_FUNCTION_URL = os.getenv("NOTIFICATION_FUNCTION_URL", "")
NOTIFICATION_API_KEY = os.getenv("NOTIFICATION_API_KEY", "")
NOTIFICATION_TIMEOUT_SECONDS = float(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "10"))


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if BUSINESS_DAY_END <= BUSINESS_DAY_START:
        raise RuntimeError("BUSINESS_DAY_END must be later than BUSINESS_DAY_START.")
    if SLOT_CADENCE_MINUTES <= 0:
        raise RuntimeError("SLOT_CADENCE_MINUTES must be a positive number of minutes.")
