"""Payment transaction model definitions."""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, func
from salon_backend.database import Base

TRANSACTION_TYPES = ("deposit", "full_payment")
TRANSACTION_STATUSES = ("pending", "success", "failed", "refunded")


class PaymentTransaction(Base):
    """A payment attempt recorded against an appointment."""
    __tablename__ = "payment_transactions"

    id = Column(Integer, primary_key=True)
    professional_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    appointment_id = Column(Integer, ForeignKey("appointments.id"))
    reference = Column(String, unique=True, index=True, nullable=False)
    amount = Column(Float, nullable=False)
    currency = Column(String, nullable=False)
    transaction_type = Column(String, default="deposit", nullable=False)
    status = Column(String, default="pending", nullable=False)
    gateway_response = Column(String)
    created_at = Column(DateTime, server_default=func.now())
    paid_at = Column(DateTime)
