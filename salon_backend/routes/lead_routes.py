from datetime import datetime
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_backend.auth.dependencies import get_current_user
from salon_backend.database import get_db
from salon_backend.models.lead import LEAD_STATUSES, FollowUpTask, Lead
from salon_backend.models.user import User
from salon_backend.routes.common import current_time, database_unavailable, normalize_optional_text
from salon_backend.services import notifications
from salon_backend.services.clients import convert_lead
from salon_backend.services.leads import extract_contact, plan_follow_up, score_lead

router = APIRouter(tags=['leads'])

MAX_LEAD_FIELDS = 50
MAX_LEAD_VALUE_LENGTH = 2000


class LeadCaptureRequest(BaseModel):
    data: dict[str, Any]
    source: str | None = None

    @field_validator('data')
    @classmethod
    def validate_data(cls, value: dict[str, Any]) -> dict[str, Any]:
        if not value:
            raise ValueError('Form answers are required.')
        if len(value) > MAX_LEAD_FIELDS:
            raise ValueError(f'Forms can have at most {MAX_LEAD_FIELDS} fields.')
        for answer in value.values():
            if isinstance(answer, str) and len(answer) > MAX_LEAD_VALUE_LENGTH:
                raise ValueError(f'Answers must be {MAX_LEAD_VALUE_LENGTH} characters or fewer.')
        return value

    @field_validator('source')
    @classmethod
    def validate_source(cls, value: str | None) -> str | None:
        return normalize_optional_text(value, 60, 'Source')


class LeadUpdateRequest(BaseModel):
    status: str | None = None
    notes: str | None = None

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        if normalized not in LEAD_STATUSES:
            raise ValueError('Invalid lead status.')
        if normalized == 'converted':
            raise ValueError('Use the convert endpoint to convert a lead into a client.')
        return normalized

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return normalize_optional_text(value, 2000, 'Notes')


class LeadResponse(BaseModel):
    id: int
    data: dict[str, Any]
    display_name: str | None = None
    display_email: str | None = None
    display_phone: str | None = None
    source: str | None = None
    score: str
    status: str
    notes: str | None = None
    converted_client_id: int | None = None
    conversion_date: datetime | None = None

    class Config:
        from_attributes = True


class LeadCaptureResponse(BaseModel):
    lead_id: int
    score: str


class FollowUpTaskResponse(BaseModel):
    id: int
    lead_id: int
    task_type: str
    title: str
    description: str | None = None
    priority: str
    due_date: datetime
    is_completed: bool
    completed_at: datetime | None = None

    class Config:
        from_attributes = True


class ConversionResponse(BaseModel):
    lead_id: int
    client_id: int


def get_owned_lead(lead_id: int, professional_id: int, db: Session) -> Lead:
    lead = db.query(Lead).filter(
        Lead.id == lead_id,
        Lead.professional_id == professional_id,
    ).first()
    if not lead:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Lead not found.',
        )
    return lead


@router.post(
    '/capture/{professional_id}',
    response_model=LeadCaptureResponse,
    status_code=status.HTTP_201_CREATED,
)
def capture_lead(
    professional_id: int,
    data: LeadCaptureRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    try:
        professional = db.get(User, professional_id)
        if professional is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Professional not found.',
            )

        name, email, phone = extract_contact(data.data)
        score = score_lead(data.data)
        lead = Lead(
            professional_id=professional_id,
            data=data.data,
            display_name=name or 'Unknown Lead',
            display_email=email,
            display_phone=phone,
            source=data.source,
            score=score,
            status='new',
        )
        db.add(lead)
        db.flush()

        plan = plan_follow_up(score, current_time())
        db.add(FollowUpTask(
            lead_id=lead.id,
            professional_id=professional_id,
            task_type='call',
            title=plan.title,
            description='New lead submission requires follow-up contact',
            priority=plan.priority,
            due_date=plan.due_date,
        ))
        db.commit()
        db.refresh(lead)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    background_tasks.add_task(
        notifications.dispatch_notification,
        notifications.lead_notification(lead, professional),
    )

    return LeadCaptureResponse(lead_id=lead.id, score=lead.score)


@router.get('', response_model=list[LeadResponse])
def list_leads(
    status_filter: str | None = Query(default=None, alias='status'),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        query = db.query(Lead).filter(Lead.professional_id == current_user.id)
        if status_filter:
            query = query.filter(Lead.status == status_filter.strip().lower())
        return query.order_by(Lead.created_at.desc(), Lead.id.desc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.patch('/{lead_id}', response_model=LeadResponse)
def update_lead(
    lead_id: int,
    data: LeadUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        lead = get_owned_lead(lead_id, current_user.id, db)
        if data.status is not None:
            if lead.status == 'converted':
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail='Converted leads cannot change status.',
                )
            lead.status = data.status
        if data.notes is not None:
            lead.notes = data.notes
        db.commit()
        db.refresh(lead)
        return lead
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.post('/{lead_id}/convert', response_model=ConversionResponse)
def convert_lead_to_client(
    lead_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        lead = get_owned_lead(lead_id, current_user.id, db)
        if lead.status == 'converted':
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='Lead has already been converted.',
            )

        client = convert_lead(db, lead, current_time())
        db.commit()
        return ConversionResponse(lead_id=lead.id, client_id=client.id)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/tasks', response_model=list[FollowUpTaskResponse])
def list_follow_up_tasks(
    include_completed: bool = Query(default=False),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        query = db.query(FollowUpTask).filter(FollowUpTask.professional_id == current_user.id)
        if not include_completed:
            query = query.filter(FollowUpTask.is_completed.is_(False))
        return query.order_by(FollowUpTask.due_date.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('/tasks/{task_id}/complete', response_model=FollowUpTaskResponse)
def complete_follow_up_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        task = db.query(FollowUpTask).filter(
            FollowUpTask.id == task_id,
            FollowUpTask.professional_id == current_user.id,
        ).first()
        if not task:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Task not found.',
            )
        if not task.is_completed:
            task.is_completed = True
            task.completed_at = current_time()
            db.commit()
            db.refresh(task)
        return task
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc
