"""
Slot Generation

Produces the fixed-cadence candidate windows of a business day. Windows are
half-open, ``[start, start + cadence)``, and are generated in order.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List


@dataclass(frozen=True)
class Slot:
    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


def generate_slots(
    base_date: date,
    day_start: time,
    day_end: time,
    cadence_minutes: int,
) -> List[Slot]:
    """
    Generate the candidate slots of ``base_date`` between two day boundaries.

    A window that would run past ``day_end`` is not emitted, so every slot
    lasts exactly ``cadence_minutes``. Returns an empty list when the
    boundaries are inverted or equal.

    Raises:
        ValueError: if ``cadence_minutes`` is not positive.
    """
    if cadence_minutes <= 0:
        raise ValueError('Slot cadence must be a positive number of minutes.')

    cadence = timedelta(minutes=cadence_minutes)
    current_start = datetime.combine(base_date, day_start)
    boundary = datetime.combine(base_date, day_end)

    slots: List[Slot] = []
    while current_start + cadence <= boundary:
        slots.append(Slot(start=current_start, end=current_start + cadence))
        current_start += cadence

    return slots


def is_on_slot_grid(
    candidate: datetime,
    day_start: time,
    day_end: time,
    cadence_minutes: int,
) -> bool:
    """True when ``candidate`` is the start of one of its day's generated slots."""
    return any(
        slot.start == candidate
        for slot in generate_slots(candidate.date(), day_start, day_end, cadence_minutes)
    )
