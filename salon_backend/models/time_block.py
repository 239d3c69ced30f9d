"""Time block model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from salon_backend.database import Base

TIME_BLOCK_TYPES = ("unavailable", "break", "vacation")


class TimeBlock(Base):
    """An owner-declared blackout interval on the calendar."""
    __tablename__ = "time_blocks"

    id = Column(Integer, primary_key=True)
    professional_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    type = Column(String, default="unavailable", nullable=False)
    title = Column(String)
    description = Column(String)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
