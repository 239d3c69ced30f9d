from datetime import date, datetime, time, timedelta

import pytest

from salon_backend.scheduling.slots import generate_slots, is_on_slot_grid

DAY = date(2030, 1, 7)


def test_generate_slots_covers_business_day_in_half_hours() -> None:
    slots = generate_slots(DAY, time(8, 0), time(18, 0), 30)

    assert len(slots) == 20
    assert slots[0].start == datetime(2030, 1, 7, 8, 0)
    assert slots[-1].start == datetime(2030, 1, 7, 17, 30)
    assert slots[-1].end == datetime(2030, 1, 7, 18, 0)


@pytest.mark.parametrize('cadence_minutes', [15, 30, 45, 60, 90])
def test_every_slot_lasts_exactly_one_cadence(cadence_minutes: int) -> None:
    slots = generate_slots(DAY, time(8, 0), time(18, 0), cadence_minutes)

    assert slots
    assert all(slot.duration == timedelta(minutes=cadence_minutes) for slot in slots)
    assert all(slot.end <= datetime(2030, 1, 7, 18, 0) for slot in slots)


def test_slots_are_ordered_and_contiguous() -> None:
    slots = generate_slots(DAY, time(9, 0), time(12, 0), 30)

    for previous, following in zip(slots, slots[1:]):
        assert previous.end == following.start


def test_generate_slots_is_deterministic() -> None:
    assert generate_slots(DAY, time(8, 0), time(18, 0), 30) == generate_slots(DAY, time(8, 0), time(18, 0), 30)


def test_generate_slots_returns_nothing_for_inverted_boundaries() -> None:
    assert generate_slots(DAY, time(18, 0), time(8, 0), 30) == []
    assert generate_slots(DAY, time(8, 0), time(8, 0), 30) == []


@pytest.mark.parametrize('cadence_minutes', [0, -30])
def test_generate_slots_rejects_non_positive_cadence(cadence_minutes: int) -> None:
    with pytest.raises(ValueError):
        generate_slots(DAY, time(8, 0), time(18, 0), cadence_minutes)


@pytest.mark.parametrize(
    ('candidate', 'expected'),
    [
        (datetime(2030, 1, 7, 8, 0), True),
        (datetime(2030, 1, 7, 9, 30), True),
        (datetime(2030, 1, 7, 17, 30), True),
        (datetime(2030, 1, 7, 9, 15), False),
        (datetime(2030, 1, 7, 7, 30), False),
        (datetime(2030, 1, 7, 18, 0), False),
    ],
)
def test_is_on_slot_grid(candidate: datetime, expected: bool) -> None:
    assert is_on_slot_grid(candidate, time(8, 0), time(18, 0), 30) is expected
