"""Contact directory capability and a JSON-file backed implementation."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

from mailer_picker.domain.models import ClientDetails, Contact, PostalAddress
from mailer_picker.utils.search import normalize_for_search

logger = logging.getLogger(__name__)

CLIENT_DOG_SEPARATOR = " | "
INVALID_SPLIT = "ERR"


class ContactDirectoryError(ValueError):
    """Raised when the contact source cannot be read."""


class ContactDirectory(Protocol):
    def fetch_all(self) -> list[Contact]: ...


def _strings(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(item).strip() for item in value if isinstance(item, str) and item.strip())


def _addresses(value: Any) -> tuple[PostalAddress, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(
        PostalAddress(
            city=str(item.get("city", "")),
            street=str(item.get("street", "")),
            postal_code=str(item.get("postal_code", "")),
        )
        for item in value
        if isinstance(item, dict)
    )


class JsonContactDirectory:
    """Contacts exported to a JSON list of objects.

    Each object carries ``given_name`` and optionally ``family_name``,
    ``emails``, ``postal_addresses`` (``city``, ``street``, ``postal_code``)
    and ``identifier``. Entries without a given name are skipped.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def fetch_all(self) -> list[Contact]:
        if not self.path.exists():
            logger.info("No contact directory at %s; returning zero contacts", self.path)
            return []
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ContactDirectoryError(f"Contacts file {self.path} is not valid JSON: {exc}") from exc
        if not isinstance(payload, list):
            raise ContactDirectoryError("Contacts JSON must be a list of objects.")

        contacts: list[Contact] = []
        for index, item in enumerate(payload):
            if not isinstance(item, dict):
                continue
            given_name = str(item.get("given_name", "")).strip()
            if not given_name:
                continue
            contacts.append(
                Contact(
                    given_name=given_name,
                    family_name=str(item.get("family_name", "")).strip(),
                    emails=_strings(item.get("emails")),
                    postal_addresses=_addresses(item.get("postal_addresses")),
                    identifier=str(item.get("identifier") or index),
                )
            )
        return contacts


def filter_contacts(contacts: list[Contact], query: str) -> list[Contact]:
    """Match on given name, family name or first email, ignoring case and accents."""
    if not query:
        return list(contacts)
    needle = normalize_for_search(query)
    return [
        contact
        for contact in contacts
        if needle in normalize_for_search(contact.given_name)
        or needle in normalize_for_search(contact.family_name)
        or needle in normalize_for_search(contact.primary_email)
    ]


def split_client_dog(given_name: str) -> tuple[str, str]:
    """Split ``"Client | Dog"`` as stored in the address book.

    Returns ``("ERR", "ERR")`` when the name does not contain exactly one
    separator, so the mistake is visible in the mailer fields.
    """
    parts = given_name.split(CLIENT_DOG_SEPARATOR)
    if len(parts) != 2:
        logger.warning("Invalid contact name format: expected 'ClientName | DogName'")
        return INVALID_SPLIT, INVALID_SPLIT
    return parts[0].rstrip(), parts[1].rstrip()


def details_from_contact(contact: Contact) -> ClientDetails:
    client, dog = split_client_dog(contact.given_name)
    address = contact.postal_addresses[0] if contact.postal_addresses else PostalAddress()
    return ClientDetails(
        client=client,
        email=contact.primary_email,
        dog=dog,
        street=address.street,
        area_code=address.postal_code,
        location=address.city,
    )
