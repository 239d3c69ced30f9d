"""
Day Availability

Combines slot generation with overlap detection to describe which slots of a
day can take a service of a given length.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional

from salon_backend.scheduling.overlap import KIND_APPOINTMENT, OccupiedInterval, find_conflict
from salon_backend.scheduling.reschedule import REASON_BLOCKED, REASON_OCCUPIED
from salon_backend.scheduling.slots import generate_slots

REASON_PAST = 'past'
REASON_CLOSED = 'closed'


@dataclass(frozen=True)
class SlotAvailability:
    start: datetime
    end: datetime
    is_available: bool
    reason: Optional[str] = None


def evaluate_day_slots(
    base_date: date,
    day_start: time,
    day_end: time,
    cadence_minutes: int,
    duration_minutes: int,
    occupied: Iterable[OccupiedInterval],
    now: Optional[datetime] = None,
) -> List[SlotAvailability]:
    """
    Flag every slot of ``base_date`` as bookable or not for a service lasting
    ``duration_minutes``.

    Each slot is tested with the full service window ``[start, start +
    duration)``. A slot is unavailable when it starts at or before ``now``
    (``past``), when the service would run past ``day_end`` (``closed``), or
    when the service window collides with an appointment (``occupied``) or a
    time block (``blocked``).
    """
    if duration_minutes <= 0:
        raise ValueError('Service duration must be a positive number of minutes.')

    occupied = list(occupied)
    closing = datetime.combine(base_date, day_end)
    service_length = timedelta(minutes=duration_minutes)

    results: List[SlotAvailability] = []
    for slot in generate_slots(base_date, day_start, day_end, cadence_minutes):
        reason = None
        service_end = slot.start + service_length

        if now is not None and slot.start <= now:
            reason = REASON_PAST
        elif service_end > closing:
            reason = REASON_CLOSED
        else:
            conflict = find_conflict(slot.start, service_end, occupied)
            if conflict is not None:
                reason = REASON_OCCUPIED if conflict.kind == KIND_APPOINTMENT else REASON_BLOCKED

        results.append(
            SlotAvailability(
                start=slot.start,
                end=slot.end,
                is_available=reason is None,
                reason=reason,
            )
        )

    return results
