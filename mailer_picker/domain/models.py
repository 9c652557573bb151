from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class AppointmentRecord:
    date: str
    time: str
    day: str
    street: str = ""
    number: str = ""
    area_code: str = ""
    location: str = ""

    @property
    def key(self) -> tuple[str, str]:
        return (self.date, self.time)

    def to_wire(self) -> dict[str, str]:
        # the mailer expects area_code under "area", in this field order
        return {
            "date": self.date,
            "time": self.time,
            "day": self.day,
            "street": self.street,
            "number": self.number,
            "area": self.area_code,
            "location": self.location,
        }


@dataclass(frozen=True, slots=True)
class ClientDetails:
    client: str = ""
    email: str = ""
    dog: str = ""
    street: str = ""
    number: str = ""
    area_code: str = ""
    location: str = ""


@dataclass(frozen=True, slots=True)
class PostalAddress:
    city: str = ""
    street: str = ""
    postal_code: str = ""


@dataclass(frozen=True, slots=True)
class Contact:
    given_name: str
    family_name: str = ""
    emails: tuple[str, ...] = ()
    postal_addresses: tuple[PostalAddress, ...] = ()
    identifier: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.given_name} {self.family_name}".strip()

    @property
    def primary_email(self) -> str:
        return self.emails[0] if self.emails else ""


@dataclass(frozen=True, slots=True)
class Outcome:
    success: bool
    message: str
    status_code: int | None = None
    exit_code: int | None = None

    @classmethod
    def ok(cls, message: str, **kwargs: int | None) -> Outcome:
        return cls(success=True, message=message, **kwargs)

    @classmethod
    def fail(cls, message: str, **kwargs: int | None) -> Outcome:
        return cls(success=False, message=message, **kwargs)


@dataclass(slots=True)
class SendRequest:
    details: ClientDetails
    appointments: list[AppointmentRecord] = field(default_factory=list)
