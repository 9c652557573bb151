from __future__ import annotations

import pytest

from mailer_picker.domain.appointment_queue import AppointmentQueue, IndexOutOfRange
from mailer_picker.domain.models import AppointmentRecord


def _record(date: str, time: str, **fields: str) -> AppointmentRecord:
    return AppointmentRecord(date=date, time=time, day=fields.pop("day", "Maandag"), **fields)


def test_add_keeps_insertion_order() -> None:
    queue = AppointmentQueue()
    queue.add(_record("03/02/2025", "09:00"))
    queue.add(_record("01/02/2025", "10:00"))

    assert [record.date for record in queue] == ["03/02/2025", "01/02/2025"]


def test_duplicate_date_and_time_is_ignored_even_with_other_fields() -> None:
    first = _record("01/02/2025", "10:00", street="Main St", location="Alkmaar")
    second = _record("01/02/2025", "10:00", street="Other St", location="Bergen", day="Zaterdag")
    queue = AppointmentQueue()

    assert queue.add(first) is True
    assert queue.add(second) is False
    assert queue.records == (first,)


def test_same_date_different_time_is_kept() -> None:
    queue = AppointmentQueue([_record("01/02/2025", "10:00"), _record("01/02/2025", "10:15")])
    assert len(queue) == 2


def test_remove_shifts_remaining_and_preserves_order() -> None:
    records = [_record(f"0{day}/02/2025", "10:00") for day in range(1, 5)]
    queue = AppointmentQueue(records)

    removed = queue.remove(1)

    assert removed == records[1]
    assert queue.records == (records[0], records[2], records[3])


@pytest.mark.parametrize("index", [-1, 2, 10])
def test_remove_out_of_range_raises_and_leaves_queue_unchanged(index: int) -> None:
    records = [_record("01/02/2025", "10:00"), _record("02/02/2025", "10:00")]
    queue = AppointmentQueue(records)

    with pytest.raises(IndexOutOfRange) as excinfo:
        queue.remove(index)

    assert isinstance(excinfo.value, IndexError)
    assert excinfo.value.index == index
    assert queue.records == tuple(records)


def test_remove_from_empty_queue_raises() -> None:
    with pytest.raises(IndexOutOfRange):
        AppointmentQueue().remove(0)


def test_clear_then_add_yields_single_element() -> None:
    queue = AppointmentQueue([_record("01/02/2025", "10:00"), _record("02/02/2025", "11:00")])
    queue.clear()
    queue.add(_record("01/02/2025", "10:00"))

    assert len(queue) == 1


def test_copy_is_independent() -> None:
    queue = AppointmentQueue([_record("01/02/2025", "10:00")])
    clone = queue.copy()
    clone.add(_record("02/02/2025", "10:00"))

    assert len(queue) == 1
    assert len(clone) == 2
    assert clone != queue
