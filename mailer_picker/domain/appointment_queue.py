from __future__ import annotations

from typing import Iterable, Iterator

from mailer_picker.domain.models import AppointmentRecord


class IndexOutOfRange(IndexError):
    """Raised when removing a queue position that does not exist."""

    def __init__(self, index: int, size: int) -> None:
        super().__init__(f"Queue index {index} is out of range for {size} appointment(s).")
        self.index = index
        self.size = size


class AppointmentQueue:
    """Ordered appointments keyed on (date, time).

    Insertion order is display order. Adding an appointment whose date and
    time are already queued is a silent no-op, regardless of its other fields.
    """

    def __init__(self, records: Iterable[AppointmentRecord] = ()) -> None:
        self._records: list[AppointmentRecord] = []
        for record in records:
            self.add(record)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[AppointmentRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> AppointmentRecord:
        return self._records[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AppointmentQueue):
            return NotImplemented
        return self._records == other._records

    def __repr__(self) -> str:
        return f"AppointmentQueue({self._records!r})"

    @property
    def records(self) -> tuple[AppointmentRecord, ...]:
        return tuple(self._records)

    def contains_key(self, record: AppointmentRecord) -> bool:
        return any(existing.key == record.key for existing in self._records)

    def add(self, record: AppointmentRecord) -> bool:
        """Append ``record`` unless its (date, time) is queued; return whether it was added."""
        if self.contains_key(record):
            return False
        self._records.append(record)
        return True

    def remove(self, index: int) -> AppointmentRecord:
        if not 0 <= index < len(self._records):
            raise IndexOutOfRange(index, len(self._records))
        return self._records.pop(index)

    def clear(self) -> None:
        self._records.clear()

    def copy(self) -> AppointmentQueue:
        clone = AppointmentQueue()
        clone._records = list(self._records)
        return clone
