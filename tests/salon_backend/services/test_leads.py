from datetime import datetime, timedelta

import pytest

from salon_backend.services.leads import extract_contact, plan_follow_up, score_lead


def test_extract_contact_from_known_keys() -> None:
    name, email, phone = extract_contact({
        'full_name': ' Tobi Ade ',
        'email': 'Tobi@Example.com',
        'phone_number': '0800 000 0000',
    })

    assert name == 'Tobi Ade'
    assert email == 'tobi@example.com'
    assert phone == '0800 000 0000'


def test_extract_contact_falls_back_to_values() -> None:
    name, email, phone = extract_contact({
        'q1': 'mary@example.com',
        'q2': 'Mary Jane',
    })

    assert name == 'Mary Jane'
    assert email == 'mary@example.com'
    assert phone is None


def test_extract_contact_skips_service_answers_for_name() -> None:
    name, _, _ = extract_contact({'service_choice': 'Silk Press', 'your_answer': 'Kemi Bello'})

    assert name == 'Kemi Bello'


@pytest.mark.parametrize(
    ('data', 'expected'),
    [
        ({'name': 'Ann'}, 'cold'),
        ({'email': 'ann@example.com'}, 'cold'),
        ({'email': 'ann@example.com', 'phone': '0800'}, 'warm'),
        ({'name': 'Ann', 'message': 'I would love a full set of knotless braids before my wedding next month.'}, 'hot'),
    ],
)
def test_score_lead(data: dict, expected: str) -> None:
    assert score_lead(data) == expected


@pytest.mark.parametrize(
    ('score', 'priority', 'delay'),
    [
        ('hot', 'urgent', timedelta(hours=1)),
        ('warm', 'high', timedelta(days=1)),
        ('cold', 'medium', timedelta(days=3)),
    ],
)
def test_plan_follow_up(score: str, priority: str, delay: timedelta) -> None:
    now = datetime(2030, 1, 7, 9, 0)

    plan = plan_follow_up(score, now)

    assert plan.priority == priority
    assert plan.due_date == now + delay
