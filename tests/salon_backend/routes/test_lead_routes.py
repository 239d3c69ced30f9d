from datetime import datetime, timedelta

import pytest
from fastapi import BackgroundTasks, HTTPException
from pydantic import ValidationError

from salon_backend.models.client_profile import ClientProfile
from salon_backend.routes.client_routes import list_clients
from salon_backend.routes.lead_routes import (
    LeadCaptureRequest,
    LeadUpdateRequest,
    capture_lead,
    complete_follow_up_task,
    convert_lead_to_client,
    list_follow_up_tasks,
    list_leads,
    update_lead,
)

HOT_MESSAGE = 'Looking for bridal hair and makeup for six people on a Saturday morning in March.'


def capture(db, professional, data: dict, background_tasks: BackgroundTasks | None = None):
    return capture_lead(
        professional.id,
        LeadCaptureRequest(data=data, source='instagram'),
        background_tasks or BackgroundTasks(),
        db=db,
    )


def test_lead_capture_request_rejects_empty_form() -> None:
    with pytest.raises(ValidationError):
        LeadCaptureRequest(data={})


def test_lead_update_request_rejects_manual_conversion() -> None:
    with pytest.raises(ValidationError):
        LeadUpdateRequest(status='converted')


def test_capture_scores_lead_and_schedules_follow_up(db, professional, fixed_now) -> None:
    background_tasks = BackgroundTasks()

    response = capture(
        db,
        professional,
        {'name': 'Tobi Ade', 'email': 'Tobi@Example.com', 'phone': '0800', 'message': HOT_MESSAGE},
        background_tasks,
    )

    assert response.score == 'hot'
    assert len(background_tasks.tasks) == 1

    lead = list_leads(status_filter=None, current_user=professional, db=db)[0]
    assert lead.display_email == 'tobi@example.com'
    assert lead.source == 'instagram'

    task = list_follow_up_tasks(include_completed=False, current_user=professional, db=db)[0]
    assert task.lead_id == response.lead_id
    assert task.priority == 'urgent'
    assert task.due_date == fixed_now + timedelta(hours=1)


def test_capture_for_unknown_professional(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        capture_lead(999, LeadCaptureRequest(data={'name': 'Tobi'}), BackgroundTasks(), db=db)

    assert exception_info.value.status_code == 404


def test_lead_without_name_is_labelled_unknown(db, professional, fixed_now) -> None:
    capture(db, professional, {'q1': 'tobi@example.com'})

    lead = list_leads(status_filter='new', current_user=professional, db=db)[0]

    assert lead.display_name == 'Unknown Lead'
    assert lead.score == 'cold'


def test_update_lead_status_and_notes(db, professional, fixed_now) -> None:
    captured = capture(db, professional, {'name': 'Tobi Ade'})

    lead = update_lead(
        captured.lead_id,
        LeadUpdateRequest(status='Contacted', notes='Left a voicemail'),
        current_user=professional,
        db=db,
    )

    assert lead.status == 'contacted'
    assert lead.notes == 'Left a voicemail'


def test_other_professional_cannot_update_lead(db, professional, other_professional, fixed_now) -> None:
    captured = capture(db, professional, {'name': 'Tobi Ade'})

    with pytest.raises(HTTPException) as exception_info:
        update_lead(captured.lead_id, LeadUpdateRequest(status='lost'), current_user=other_professional, db=db)

    assert exception_info.value.status_code == 404


def test_convert_lead_to_client_once(db, professional, fixed_now) -> None:
    captured = capture(db, professional, {'name': 'Tobi Ade', 'email': 'tobi@example.com'})

    conversion = convert_lead_to_client(captured.lead_id, current_user=professional, db=db)

    clients = list_clients(current_user=professional, db=db)
    assert [c.id for c in clients] == [conversion.client_id]
    assert clients[0].original_lead_id == captured.lead_id
    assert db.get(ClientProfile, conversion.client_id).client_since == fixed_now

    with pytest.raises(HTTPException) as exception_info:
        convert_lead_to_client(captured.lead_id, current_user=professional, db=db)
    assert exception_info.value.status_code == 409

    with pytest.raises(HTTPException) as exception_info:
        update_lead(captured.lead_id, LeadUpdateRequest(status='lost'), current_user=professional, db=db)
    assert exception_info.value.status_code == 409


def test_complete_follow_up_task(db, professional, fixed_now) -> None:
    capture(db, professional, {'name': 'Tobi Ade'})
    task = list_follow_up_tasks(include_completed=False, current_user=professional, db=db)[0]

    completed = complete_follow_up_task(task.id, current_user=professional, db=db)

    assert completed.is_completed
    assert completed.completed_at == fixed_now
    assert list_follow_up_tasks(include_completed=False, current_user=professional, db=db) == []
    assert len(list_follow_up_tasks(include_completed=True, current_user=professional, db=db)) == 1


def test_capture_uses_fixed_clock(db, professional, fixed_now) -> None:
    capture(db, professional, {'name': 'Tobi Ade', 'email': 'tobi@example.com', 'phone': '0800'})

    task = list_follow_up_tasks(include_completed=False, current_user=professional, db=db)[0]

    assert task.priority == 'high'
    assert task.due_date == datetime(2030, 1, 8, 7, 0)
