from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

NAME_KEYS = ('name', 'full_name', 'firstName', 'first_name', 'client_name')
EMAIL_KEYS = ('email', 'email_address', 'contact_email')
PHONE_KEYS = ('phone', 'phone_number', 'contact_phone', 'mobile')
MESSAGE_KEYS = ('message', 'notes', 'details')

HOT_MESSAGE_LENGTH = 50


@dataclass(frozen=True)
class FollowUpPlan:
    title: str
    priority: str
    due_date: datetime


def _first_value(data: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def extract_contact(data: dict[str, Any]) -> tuple[str | None, str | None, str | None]:
    """Pull a display name, email and phone out of free-form form answers."""
    name = _first_value(data, NAME_KEYS)
    email = _first_value(data, EMAIL_KEYS)
    phone = _first_value(data, PHONE_KEYS)

    if email is None:
        for value in data.values():
            if isinstance(value, str) and '@' in value:
                email = value.strip()
                break

    if name is None:
        for key, value in data.items():
            lowered = key.lower()
            if not isinstance(value, str) or '@' in value:
                continue
            if 'service' in lowered or 'message' in lowered:
                continue
            candidate = value.strip()
            if ' ' in candidate or (len(candidate) > 2 and candidate[0].isupper()):
                name = candidate
                break

    return name, email.lower() if email else None, phone


def score_lead(data: dict[str, Any]) -> str:
    score = 'cold'
    _, email, phone = extract_contact(data)
    if email and phone:
        score = 'warm'
    message = _first_value(data, MESSAGE_KEYS)
    if message and len(message) > HOT_MESSAGE_LENGTH:
        score = 'hot'
    return score


def plan_follow_up(score: str, now: datetime) -> FollowUpPlan:
    if score == 'hot':
        return FollowUpPlan('URGENT: Contact hot lead within 1 hour', 'urgent', now + timedelta(hours=1))
    if score == 'warm':
        return FollowUpPlan('Follow up with warm lead within 24 hours', 'high', now + timedelta(days=1))
    return FollowUpPlan('Follow up with lead within 3 days', 'medium', now + timedelta(days=3))
