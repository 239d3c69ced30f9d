"""Service catalog model definitions."""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, func
from salon_backend.database import Base


class Service(Base):
    """A bookable service offered by a professional."""
    __tablename__ = "services"

    id = Column(Integer, primary_key=True)
    professional_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    description = Column(String)
    category = Column(String)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Float, default=0.0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
