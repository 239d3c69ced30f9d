"""Client profile model definitions."""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, func
from salon_backend.database import Base


class ClientProfile(Base):
    """A client in a professional's client list."""
    __tablename__ = "client_profiles"

    id = Column(Integer, primary_key=True)
    professional_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    client_name = Column(String)
    client_email = Column(String, index=True)
    client_phone = Column(String)
    original_lead_id = Column(Integer)
    client_since = Column(DateTime, server_default=func.now())
    total_appointments = Column(Integer, default=0, nullable=False)
    total_spent = Column(Float, default=0.0, nullable=False)
    last_appointment_date = Column(DateTime)
    notes = Column(String)
