"""
Reschedule Validation

Checks a proposed move of an existing appointment against the rest of the
calendar before the move is committed.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from salon_backend.scheduling.overlap import KIND_APPOINTMENT, OccupiedInterval, find_conflict

REASON_OCCUPIED = 'occupied'
REASON_BLOCKED = 'blocked'

REJECTION_MESSAGES = {
    REASON_OCCUPIED: 'This time slot is already occupied.',
    REASON_BLOCKED: 'This time slot is blocked.',
}


@dataclass(frozen=True)
class RescheduleDecision:
    accepted: bool
    new_start: datetime
    new_end: datetime
    reason: Optional[str] = None
    conflict: Optional[OccupiedInterval] = None

    @property
    def message(self) -> Optional[str]:
        if self.reason is None:
            return None
        return REJECTION_MESSAGES[self.reason]


def validate_reschedule(
    appointment_id: int,
    new_start: datetime,
    duration_minutes: int,
    occupied: Iterable[OccupiedInterval],
) -> RescheduleDecision:
    """
    Validate moving appointment ``appointment_id`` to start at ``new_start``.

    The appointment itself is excluded from ``occupied``, so moving it onto
    its current slot is always accepted. Rejections carry ``occupied`` when
    another appointment is in the way and ``blocked`` for a time block.
    """
    if duration_minutes <= 0:
        raise ValueError('Appointment duration must be a positive number of minutes.')

    new_end = new_start + timedelta(minutes=duration_minutes)
    conflict = find_conflict(new_start, new_end, occupied, exclude_appointment_id=appointment_id)

    if conflict is None:
        return RescheduleDecision(accepted=True, new_start=new_start, new_end=new_end)

    reason = REASON_OCCUPIED if conflict.kind == KIND_APPOINTMENT else REASON_BLOCKED
    return RescheduleDecision(
        accepted=False,
        new_start=new_start,
        new_end=new_end,
        reason=reason,
        conflict=conflict,
    )


def reschedule(appointment, new_start: datetime, duration_minutes: int, occupied) -> RescheduleDecision:
    """Validate the move and, when accepted, update the appointment's start and end in place."""
    decision = validate_reschedule(appointment.id, new_start, duration_minutes, occupied)
    if decision.accepted:
        appointment.start_time = decision.new_start
        appointment.end_time = decision.new_end
    return decision
