from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, field_validator

from salon_backend.models.user import User

DEPOSIT_TYPES = ('percentage', 'fixed')
DEFAULT_DEPOSIT_POLICY = (
    'Deposits are required to secure your appointment and are non-refundable '
    'if cancelled within 24 hours.'
)
MAX_POLICY_LENGTH = 1000


class DepositSettings(BaseModel):
    require_deposit: bool = False
    deposit_type: str = 'percentage'
    deposit_percentage: float = 25.0
    deposit_fixed_amount: float = 5000.0
    deposit_policy: str = DEFAULT_DEPOSIT_POLICY

    @field_validator('deposit_type')
    @classmethod
    def validate_deposit_type(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in DEPOSIT_TYPES:
            raise ValueError('Deposit type must be "percentage" or "fixed".')
        return normalized

    @field_validator('deposit_percentage')
    @classmethod
    def validate_deposit_percentage(cls, value: float) -> float:
        if value < 0 or value > 100:
            raise ValueError('Deposit percentage must be between 0 and 100.')
        return value

    @field_validator('deposit_fixed_amount')
    @classmethod
    def validate_deposit_fixed_amount(cls, value: float) -> float:
        if value < 0:
            raise ValueError('Deposit amount cannot be negative.')
        return value

    @field_validator('deposit_policy')
    @classmethod
    def validate_deposit_policy(cls, value: str) -> str:
        normalized = value.strip()
        if len(normalized) > MAX_POLICY_LENGTH:
            raise ValueError(f'Deposit policy must be {MAX_POLICY_LENGTH} characters or fewer.')
        return normalized


def round_currency(amount: float) -> float:
    return float(Decimal(str(amount)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def deposit_settings_for(user: User) -> DepositSettings:
    return DepositSettings(
        require_deposit=bool(user.require_deposit),
        deposit_type=user.deposit_type or 'percentage',
        deposit_percentage=user.deposit_percentage if user.deposit_percentage is not None else 25.0,
        deposit_fixed_amount=user.deposit_fixed_amount if user.deposit_fixed_amount is not None else 5000.0,
        deposit_policy=user.deposit_policy or DEFAULT_DEPOSIT_POLICY,
    )


def apply_deposit_settings(user: User, settings: DepositSettings) -> None:
    user.require_deposit = settings.require_deposit
    user.deposit_type = settings.deposit_type
    user.deposit_percentage = settings.deposit_percentage
    user.deposit_fixed_amount = settings.deposit_fixed_amount
    user.deposit_policy = settings.deposit_policy


def calculate_deposit_amount(settings: DepositSettings, service_price: float) -> float:
    """Deposit owed for a service; zero when deposits are off or the service is free."""
    if not settings.require_deposit or not service_price or service_price <= 0:
        return 0.0

    if settings.deposit_type == 'percentage':
        amount = service_price * settings.deposit_percentage / 100
    else:
        amount = settings.deposit_fixed_amount

    return round_currency(min(amount, service_price))
