import logging
from datetime import datetime

from sqlalchemy.orm import Session

from salon_backend.models.appointment import Appointment
from salon_backend.models.client_profile import ClientProfile
from salon_backend.models.lead import Lead

logger = logging.getLogger(__name__)


def find_client(db: Session, professional_id: int, email: str | None) -> ClientProfile | None:
    if not email:
        return None
    return db.query(ClientProfile).filter(
        ClientProfile.professional_id == professional_id,
        ClientProfile.client_email == email.strip().lower(),
    ).first()


def record_completed_appointment(db: Session, appointment: Appointment) -> ClientProfile | None:
    """Add the appointment's client to the professional's client list, or update their totals."""
    client = None
    if appointment.client_id is not None:
        client = db.get(ClientProfile, appointment.client_id)
    if client is None:
        client = find_client(db, appointment.professional_id, appointment.client_email)

    if client is None:
        if not appointment.client_email and not appointment.client_name:
            logger.info('Appointment %s has no client details, client list unchanged', appointment.id)
            return None

        service_name = appointment.service.name if appointment.service else 'a service'
        client = ClientProfile(
            professional_id=appointment.professional_id,
            client_name=appointment.client_name,
            client_email=(appointment.client_email or '').strip().lower() or None,
            client_phone=appointment.client_phone,
            total_appointments=0,
            total_spent=0.0,
            notes=f'Client added automatically after completing appointment: {service_name}',
        )
        db.add(client)
        db.flush()
        logger.info('Added client %s for professional %s', client.id, appointment.professional_id)

    client.total_appointments = (client.total_appointments or 0) + 1
    client.total_spent = (client.total_spent or 0.0) + (appointment.total_amount or 0.0)
    if client.last_appointment_date is None or appointment.start_time > client.last_appointment_date:
        client.last_appointment_date = appointment.start_time
    appointment.client_id = client.id
    return client


def convert_lead(db: Session, lead: Lead, now: datetime) -> ClientProfile:
    client = find_client(db, lead.professional_id, lead.display_email)
    if client is None:
        client = ClientProfile(
            professional_id=lead.professional_id,
            client_name=lead.display_name,
            client_email=lead.display_email,
            client_phone=lead.display_phone,
            original_lead_id=lead.id,
            client_since=now,
            total_appointments=0,
            total_spent=0.0,
        )
        db.add(client)
        db.flush()
    elif client.original_lead_id is None:
        client.original_lead_id = lead.id

    lead.status = 'converted'
    lead.converted_client_id = client.id
    lead.conversion_date = now
    return client
