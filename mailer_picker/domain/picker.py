"""Date/time picker selection and the formats derived from it."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, replace
from datetime import datetime

from mailer_picker.config import MailerConfig
from mailer_picker.domain.models import AppointmentRecord, ClientDetails

DUTCH_WEEKDAYS = ("Maandag", "Dinsdag", "Woensdag", "Donderdag", "Vrijdag", "Zaterdag", "Zondag")
UNKNOWN_WEEKDAY = "Onbekend"

MAILER_PRESET = "mailer"
PRESETS: dict[str, str] = {
    "ymd": "%Y-%m-%d %H:%M",
    "dmy": "%d/%m/%Y %H:%M",
    "mdy": "%m-%d-%Y %H:%M",
    "iso8601": "%Y-%m-%dT%H:%M:%S%z",
    MAILER_PRESET: "--date %d/%m/%Y --time %H:%M",
}


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


@dataclass(frozen=True, slots=True)
class PickerSelection:
    year: int
    month: int
    day: int
    hour: int = 12
    minute: int = 0

    @classmethod
    def now(cls) -> PickerSelection:
        current = datetime.now()
        return cls(year=current.year, month=current.month, day=current.day)

    @classmethod
    def from_cli(cls, date: str, time: str) -> PickerSelection:
        """Parse ``DD/MM/YYYY`` and ``HH:MM``; raise ValueError on anything else."""
        parsed = datetime.strptime(f"{date} {time}", "%d/%m/%Y %H:%M")
        return cls(parsed.year, parsed.month, parsed.day, parsed.hour, parsed.minute)

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be 1-12, got {self.month}")
        if not 0 <= self.hour <= 23:
            raise ValueError(f"hour must be 0-23, got {self.hour}")
        if not 0 <= self.minute <= 59:
            raise ValueError(f"minute must be 0-59, got {self.minute}")
        # clamp so switching from a 31-day month never yields an invalid date
        clamped = min(max(self.day, 1), days_in_month(self.year, self.month))
        object.__setattr__(self, "day", clamped)

    def with_month(self, month: int) -> PickerSelection:
        return replace(self, month=month)

    def with_year(self, year: int) -> PickerSelection:
        return replace(self, year=year)

    def as_datetime(self) -> datetime:
        return datetime(self.year, self.month, self.day, self.hour, self.minute)

    @property
    def cli_date(self) -> str:
        return f"{self.day:02d}/{self.month:02d}/{self.year:04d}"

    @property
    def cli_time(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


def dutch_weekday(selection: PickerSelection) -> str:
    try:
        return DUTCH_WEEKDAYS[selection.as_datetime().weekday()]
    except ValueError:
        return UNKNOWN_WEEKDAY


def format_selection(selection: PickerSelection, preset: str) -> str:
    try:
        pattern = PRESETS[preset]
    except KeyError as exc:
        raise ValueError(f"Unknown preset {preset!r}; choose from {', '.join(PRESETS)}") from exc
    # local timezone is attached so the ISO preset carries an offset
    return selection.as_datetime().astimezone().strftime(pattern)


def create_appointment(
    selection: PickerSelection,
    details: ClientDetails,
    *,
    config: MailerConfig,
    local: bool = False,
) -> AppointmentRecord:
    """Build a queue record from the picker selection and address fields.

    Local appointments take place at the salon, so street and location come
    from configuration and house number and area code stay empty.
    """
    if local:
        return AppointmentRecord(
            date=selection.cli_date,
            time=selection.cli_time,
            day=dutch_weekday(selection),
            street=config.local_street,
            number="",
            area_code="",
            location=config.local_location,
        )
    return AppointmentRecord(
        date=selection.cli_date,
        time=selection.cli_time,
        day=dutch_weekday(selection),
        street=details.street,
        number=details.number,
        area_code=details.area_code,
        location=details.location,
    )
