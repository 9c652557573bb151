from __future__ import annotations

import json
from pathlib import Path

import pytest

from mailer_picker.adapters.clipboard import ClipboardError, CommandClipboard
from mailer_picker.adapters.contacts import (
    ContactDirectoryError,
    JsonContactDirectory,
    details_from_contact,
    filter_contacts,
    split_client_dog,
)
from mailer_picker.domain.models import Contact, PostalAddress
from mailer_picker.utils.search import normalize_for_search


def _write_contacts(path: Path, payload) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_missing_file_returns_no_contacts(tmp_path: Path) -> None:
    assert JsonContactDirectory(tmp_path / "absent.json").fetch_all() == []


def test_loads_contacts_and_skips_invalid_entries(tmp_path: Path) -> None:
    path = _write_contacts(
        tmp_path / "contacts.json",
        [
            {
                "given_name": "Renée | Bello",
                "family_name": "Jansen",
                "emails": ["renee@example.nl", ""],
                "postal_addresses": [{"city": "Alkmaar", "street": "Laat 1", "postal_code": "1811EA"}],
                "identifier": "abc",
            },
            {"family_name": "No Given Name"},
            "not an object",
        ],
    )

    contacts = JsonContactDirectory(path).fetch_all()

    assert contacts == [
        Contact(
            given_name="Renée | Bello",
            family_name="Jansen",
            emails=("renee@example.nl",),
            postal_addresses=(PostalAddress(city="Alkmaar", street="Laat 1", postal_code="1811EA"),),
            identifier="abc",
        )
    ]


def test_invalid_json_raises(tmp_path: Path) -> None:
    path = tmp_path / "contacts.json"
    path.write_text("{broken", encoding="utf-8")

    with pytest.raises(ContactDirectoryError):
        JsonContactDirectory(path).fetch_all()


def test_non_list_payload_raises(tmp_path: Path) -> None:
    path = _write_contacts(tmp_path / "contacts.json", {"given_name": "x"})

    with pytest.raises(ContactDirectoryError, match="list"):
        JsonContactDirectory(path).fetch_all()


def test_normalize_for_search() -> None:
    assert normalize_for_search("  Renée |  Bello ") == "renee bello"


def test_filter_matches_names_and_email_ignoring_accents() -> None:
    renee = Contact(given_name="Renée | Bello", family_name="Jansen", emails=("r@example.nl",))
    piet = Contact(given_name="Piet | Max", family_name="Bakker", emails=("piet@example.nl",))
    contacts = [renee, piet]

    assert filter_contacts(contacts, "RENEE") == [renee]
    assert filter_contacts(contacts, "bakker") == [piet]
    assert filter_contacts(contacts, "piet@") == [piet]
    assert filter_contacts(contacts, "") == contacts


def test_split_client_dog() -> None:
    assert split_client_dog("Jane Doe | Rex ") == ("Jane Doe", "Rex")
    assert split_client_dog("Jane Doe") == ("ERR", "ERR")
    assert split_client_dog("a | b | c") == ("ERR", "ERR")


def test_details_from_contact_without_address() -> None:
    details = details_from_contact(Contact(given_name="Jane | Rex"))

    assert (details.client, details.dog, details.email, details.location) == ("Jane", "Rex", "", "")


def test_command_clipboard_pipes_text(tmp_path: Path) -> None:
    target = tmp_path / "clip.txt"
    clipboard = CommandClipboard(f"tee {target}")

    clipboard.set_text("mailer appointment")

    assert target.read_text() == "mailer appointment"


def test_command_clipboard_errors() -> None:
    with pytest.raises(ClipboardError, match="not found"):
        CommandClipboard("definitely-not-a-clipboard-tool").set_text("x")
    with pytest.raises(ClipboardError, match="failed"):
        CommandClipboard("false").set_text("x")
    with pytest.raises(ClipboardError):
        CommandClipboard("  ")
