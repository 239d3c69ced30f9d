"""Lead and follow-up task model definitions."""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, func
from salon_backend.database import Base

LEAD_STATUSES = ("new", "contacted", "qualified", "converted", "lost")
LEAD_SCORES = ("cold", "warm", "hot")


class Lead(Base):
    """A prospective client captured through a public form."""
    __tablename__ = "leads"

    id = Column(Integer, primary_key=True)
    professional_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    display_name = Column(String)
    display_email = Column(String)
    display_phone = Column(String)
    source = Column(String)
    score = Column(String, default="cold", nullable=False)
    status = Column(String, default="new", nullable=False)
    notes = Column(String)
    converted_client_id = Column(Integer, ForeignKey("client_profiles.id"))
    conversion_date = Column(DateTime)
    created_at = Column(DateTime, server_default=func.now())


class FollowUpTask(Base):
    """A reminder to contact a lead."""
    __tablename__ = "follow_up_tasks"

    id = Column(Integer, primary_key=True)
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=False)
    professional_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    task_type = Column(String, default="call", nullable=False)
    title = Column(String, nullable=False)
    description = Column(String)
    priority = Column(String, default="medium", nullable=False)
    due_date = Column(DateTime, nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime)
