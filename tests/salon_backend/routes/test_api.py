from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from salon_backend.auth.dependencies import get_current_user
from salon_backend.database import get_db
from salon_backend.main import app


@pytest.fixture
def client(db, professional):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: professional
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_root(client) -> None:
    response = client.get('/')

    assert response.status_code == 200
    assert response.json() == {'status': 'Salon Booking API Running'}


def test_public_slots_use_date_query_parameter(client, professional, haircut, fixed_now) -> None:
    response = client.get(
        f'/availability/professionals/{professional.id}/slots',
        params={'date': '2030-01-08', 'service_id': haircut.id},
    )

    assert response.status_code == 200
    body = response.json()
    assert len(body) == 20
    assert body[0]['time'] == '08:00:00'
    assert body[0]['status'] == 'available'


def test_booking_conflict_returns_reason(client, professional, haircut, fixed_now) -> None:
    payload = {
        'professional_id': professional.id,
        'service_id': haircut.id,
        'start_time': datetime(2030, 1, 8, 10, 0).isoformat(),
        'client_name': 'Grace Client',
        'client_email': 'grace@example.com',
    }

    first = client.post('/appointments/book', json=payload)
    second = client.post('/appointments/book', json={**payload, 'client_email': 'other@example.com'})

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()['detail']['reason'] == 'occupied'


def test_invalid_service_payload_is_unprocessable(client) -> None:
    response = client.post('/services', json={'name': 'Braids', 'duration_minutes': 0})

    assert response.status_code == 422


def test_missing_bearer_token_is_rejected(db) -> None:
    app.dependency_overrides[get_db] = lambda: db
    try:
        response = TestClient(app).get('/auth/me')
    finally:
        app.dependency_overrides.clear()

    assert response.status_code in (401, 403)
