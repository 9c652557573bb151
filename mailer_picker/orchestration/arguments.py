"""Build the mailer command line from client details and queued appointments."""

from __future__ import annotations

import json
import re
from typing import Iterable

from mailer_picker.domain.models import AppointmentRecord, ClientDetails
from mailer_picker.utils.logging import get_structured_logger, log_workflow_event

BINARY_TOKEN = "mailer"
SUBCOMMAND = "appointment"
EMPTY_ARRAY = "'[]'"

_DOUBLE_QUOTE_SPECIALS = re.compile(r'([\\"$`])')


def wrap_single_quoted(text: str) -> str:
    """Quote ``text`` for a POSIX shell: close, escape and reopen around each ``'``."""
    return "'" + text.replace("'", "'\\''") + "'"


def quote_option_value(value: str) -> str:
    return '"' + _DOUBLE_QUOTE_SPECIALS.sub(r"\\\1", value) + '"'


def appointments_to_json(appointments: Iterable[AppointmentRecord]) -> str:
    """Serialize appointments as a shell-quoted JSON array.

    Keys keep the wire order ``date, time, day, street, number, area,
    location``. If encoding fails the mailer still receives a valid, empty
    array.
    """
    try:
        payload = json.dumps(
            [record.to_wire() for record in appointments],
            ensure_ascii=False,
            separators=(",", ":"),
        )
    except (TypeError, ValueError) as exc:
        log_workflow_event(
            get_structured_logger(),
            workflow_step="build_arguments",
            status="failed",
            error_code="SERIALIZATION_FAILURE",
            error_message=str(exc),
            message="Failed to encode appointments; sending empty array",
        )
        return EMPTY_ARRAY
    return wrap_single_quoted(payload)


def build_mailer_arguments(
    details: ClientDetails,
    appointments: Iterable[AppointmentRecord],
    *,
    include_binary: bool = True,
) -> str:
    """Return the space-joined mailer arguments.

    With ``include_binary`` the string starts with the bare ``mailer`` token,
    which is what gets copied for manual use. The invoker passes
    ``include_binary=False`` and prefixes the configured binary path itself.
    """
    tokens = [
        SUBCOMMAND,
        f"--client {quote_option_value(details.client)}",
        f"--email {quote_option_value(details.email)}",
        f"--dog {quote_option_value(details.dog)}",
        appointments_to_json(appointments),
    ]
    if include_binary:
        tokens.insert(0, BINARY_TOKEN)
    return " ".join(tokens)
