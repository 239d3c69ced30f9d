"""
Email notifications.

Notifications are delivered by an externally hosted function. Delivery is
best effort: a failed call is logged and never propagates to the caller, so a
booking is never rolled back because an email could not be sent.
"""

import logging
from typing import Any

import httpx

from salon_backend.core import config

logger = logging.getLogger(__name__)

TYPE_CONFIRMATION = 'confirmation'
TYPE_PROFESSIONAL_NOTIFICATION = 'professional_notification'
TYPE_CANCELLATION = 'cancellation'
TYPE_RESCHEDULED = 'rescheduled'
TYPE_DEPOSIT_CONFIRMATION = 'deposit_confirmation'
TYPE_DEPOSIT_RECEIVED = 'deposit_received'
TYPE_NEW_LEAD = 'new_lead'


def dispatch_notification(payload: dict[str, Any], transport: httpx.BaseTransport | None = None) -> bool:
    notification_type = payload.get('type', 'unknown')

    if not config.NOTIFICATIONS_ENABLED or not config.NOTIFICATION_FUNCTION_URL:
        logger.info('Notification dispatch disabled, skipping %s email', notification_type)
        return False

    if not payload.get('recipientEmail'):
        logger.info('No recipient email for %s notification, skipping', notification_type)
        return False

    headers = {'Content-Type': 'application/json'}
    if config.NOTIFICATION_API_KEY:
        headers['Authorization'] = f'Bearer {config.NOTIFICATION_API_KEY}'

    try:
        with httpx.Client(timeout=config.NOTIFICATION_TIMEOUT_SECONDS, transport=transport) as client:
            response = client.post(config.NOTIFICATION_FUNCTION_URL, json=payload, headers=headers)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning('Failed to send %s email to %s: %s', notification_type, payload['recipientEmail'], exc)
        return False

    logger.info('Sent %s email to %s', notification_type, payload['recipientEmail'])
    return True


def _format_time(value) -> str:
    return value.strftime('%I:%M %p').lstrip('0')


def build_appointment_payload(
    notification_type: str,
    appointment,
    service,
    professional,
    recipient_email: str | None,
    recipient_name: str | None,
) -> dict[str, Any]:
    """Snapshot an appointment into the JSON body the email function expects."""
    return {
        'type': notification_type,
        'appointmentId': appointment.id,
        'recipientEmail': recipient_email,
        'recipientName': recipient_name or '',
        'professionalName': professional.display_name,
        'serviceName': service.name,
        'appointmentDate': appointment.start_time.isoformat(),
        'appointmentTime': _format_time(appointment.start_time),
        'duration': service.duration_minutes,
        'price': service.price or 0,
        'notes': appointment.notes or '',
        'clientName': appointment.client_name or '',
        'clientEmail': appointment.client_email or '',
        'clientPhone': appointment.client_phone or '',
        'depositAmount': appointment.deposit_amount or 0,
        'totalAmount': appointment.total_amount or 0,
        'remainingBalance': (appointment.total_amount or 0) - (appointment.deposit_amount or 0),
    }


def booking_notifications(appointment, service, professional) -> list[dict[str, Any]]:
    return [
        build_appointment_payload(
            TYPE_CONFIRMATION,
            appointment,
            service,
            professional,
            recipient_email=appointment.client_email,
            recipient_name=appointment.client_name,
        ),
        build_appointment_payload(
            TYPE_PROFESSIONAL_NOTIFICATION,
            appointment,
            service,
            professional,
            recipient_email=professional.email,
            recipient_name=professional.display_name,
        ),
    ]


def client_notification(notification_type: str, appointment, service, professional) -> dict[str, Any]:
    return build_appointment_payload(
        notification_type,
        appointment,
        service,
        professional,
        recipient_email=appointment.client_email,
        recipient_name=appointment.client_name,
    )


def deposit_notifications(appointment, service, professional) -> list[dict[str, Any]]:
    return [
        client_notification(TYPE_DEPOSIT_CONFIRMATION, appointment, service, professional),
        build_appointment_payload(
            TYPE_DEPOSIT_RECEIVED,
            appointment,
            service,
            professional,
            recipient_email=professional.email,
            recipient_name=professional.display_name,
        ),
    ]


def lead_notification(lead, professional) -> dict[str, Any]:
    return {
        'type': TYPE_NEW_LEAD,
        'leadId': lead.id,
        'recipientEmail': professional.email,
        'recipientName': professional.display_name,
        'leadName': lead.display_name or '',
        'leadEmail': lead.display_email or '',
        'leadPhone': lead.display_phone or '',
        'score': lead.score,
    }
