"""
Overlap Detection

Decides whether a candidate window collides with anything already on a
professional's calendar. Intervals are half-open: ``[a0, a1)`` and
``[b0, b1)`` overlap iff ``a0 < b1 and b0 < a1``, so an appointment ending at
10:00 never conflicts with one starting at 10:00.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

KIND_APPOINTMENT = 'appointment'
KIND_TIME_BLOCK = 'time_block'


@dataclass(frozen=True)
class OccupiedInterval:
    start: datetime
    end: datetime
    kind: str
    ref_id: Optional[int] = None


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    return a_start < b_end and b_start < a_end


def find_conflict(
    start: datetime,
    end: datetime,
    occupied: Iterable[OccupiedInterval],
    exclude_appointment_id: Optional[int] = None,
) -> Optional[OccupiedInterval]:
    """
    Return the first occupied interval that overlaps ``[start, end)``.

    Appointments are reported before time blocks so that a window sitting on
    both is rejected as occupied. ``exclude_appointment_id`` drops that
    appointment from consideration, which is what makes moving an appointment
    onto its own slot a no-op.

    Raises:
        ValueError: for an empty or inverted window.
    """
    if end <= start:
        raise ValueError('A candidate window must end after it starts.')

    block_conflict: Optional[OccupiedInterval] = None
    for interval in occupied:
        if (
            interval.kind == KIND_APPOINTMENT
            and exclude_appointment_id is not None
            and interval.ref_id == exclude_appointment_id
        ):
            continue
        if not intervals_overlap(start, end, interval.start, interval.end):
            continue
        if interval.kind == KIND_APPOINTMENT:
            return interval
        if block_conflict is None:
            block_conflict = interval

    return block_conflict


def is_window_available(
    start: datetime,
    end: datetime,
    occupied: Iterable[OccupiedInterval],
    exclude_appointment_id: Optional[int] = None,
) -> bool:
    return find_conflict(start, end, occupied, exclude_appointment_id) is None
