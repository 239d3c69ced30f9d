"""User model definitions."""

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, func
from salon_backend.database import Base


class User(Base):
    """Represents a beauty professional who owns a booking calendar."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    full_name = Column(String)
    business_name = Column(String)
    phone = Column(String)
    role = Column(String, default="professional")
    created_at = Column(DateTime, server_default=func.now())

    # deposit settings
    require_deposit = Column(Boolean, default=False, nullable=False)
    deposit_type = Column(String, default="percentage", nullable=False)
    deposit_percentage = Column(Float, default=25.0, nullable=False)
    deposit_fixed_amount = Column(Float, default=5000.0, nullable=False)
    deposit_policy = Column(String)

    @property
    def display_name(self) -> str:
        return self.full_name or self.business_name or "Beauty Professional"
