"""Top-level mailer-picker command line interface."""

from __future__ import annotations

import argparse
import shlex
import sys
from dataclasses import replace
from datetime import date as Date
from datetime import datetime
from typing import Sequence

from mailer_picker.adapters.clipboard import ClipboardError, CommandClipboard
from mailer_picker.adapters.contacts import ContactDirectoryError, JsonContactDirectory
from mailer_picker.config import ConfigError, MailerConfig, resolve_config
from mailer_picker.domain.models import Outcome
from mailer_picker.domain.picker import PRESETS, PickerSelection, format_selection
from mailer_picker.orchestration.arguments import build_mailer_arguments
from mailer_picker.orchestration.send import build_command_line, preview_command
from mailer_picker.session.controller import SessionController
from mailer_picker.session.state import SessionState
from mailer_picker.utils.logging import configure_logging

DETAIL_FIELDS = ("client", "email", "dog", "street", "number", "area_code", "location")


def _appointment(value: str) -> PickerSelection:
    try:
        date_part, time_part = value.split()
        return PickerSelection.from_cli(date_part, time_part)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            "--appointment must be 'DD/MM/YYYY HH:MM' (example: '01/02/2025 10:00')"
        ) from exc


def _clock(value: str) -> tuple[int, int]:
    try:
        parsed = datetime.strptime(value, "%H:%M")
    except ValueError as exc:
        raise argparse.ArgumentTypeError("--time must be HH:MM (24-hour)") from exc
    return parsed.hour, parsed.minute


def _add_session_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--appointment",
        action="append",
        type=_appointment,
        default=[],
        help="Appointment as 'DD/MM/YYYY HH:MM'. May be repeated; duplicates are ignored.",
    )
    parser.add_argument("--contact", help="Fill client fields from the first contact matching this query")
    parser.add_argument("--client", help="Client name")
    parser.add_argument("--email", help="Client email address")
    parser.add_argument("--dog", help="Dog name")
    parser.add_argument("--street", help="Street of the visit address")
    parser.add_argument("--number", help="House number of the visit address")
    parser.add_argument("--area-code", dest="area_code", help="Postal code of the visit address")
    parser.add_argument("--location", help="City of the visit address")
    parser.add_argument(
        "--local",
        action="store_true",
        help="Appointments take place at the salon (uses MAILER_LOCAL_STREET/MAILER_LOCAL_LOCATION)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mailer-picker", description="Appointment picker for the mailer tool")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    send_parser = subparsers.add_parser("send", help="Send the appointment confirmation through the mailer")
    _add_session_arguments(send_parser)
    send_parser.add_argument("--dry-run", action="store_true", help="Print the shell invocation without running it")
    send_parser.add_argument("--copy-output", action="store_true", help="Copy the mailer log to the clipboard")
    send_parser.add_argument("--timeout", type=float, help="Seconds to wait for the mailer before giving up")
    send_parser.set_defaults(handler=_handle_send)

    command_parser = subparsers.add_parser("command", help="Print the mailer command for manual use")
    _add_session_arguments(command_parser)
    command_parser.add_argument("--copy", action="store_true", help="Also copy the command to the clipboard")
    command_parser.set_defaults(handler=_handle_command)

    format_parser = subparsers.add_parser("format", help="Format a date and time with a preset")
    format_parser.add_argument("--date", type=Date.fromisoformat, required=True, help="Date in YYYY-MM-DD format")
    format_parser.add_argument("--time", type=_clock, default=(12, 0), help="Time in HH:MM format (default 12:00)")
    format_parser.add_argument("--preset", choices=tuple(PRESETS), default="ymd", help="Output preset")
    format_parser.set_defaults(handler=_handle_format)

    contacts_parser = subparsers.add_parser("contacts", help="List contacts matching a query")
    contacts_parser.add_argument("query", nargs="?", default="", help="Search text (accents and case ignored)")
    contacts_parser.set_defaults(handler=_handle_contacts)

    return parser


def _build_controller(args: argparse.Namespace, config: MailerConfig) -> SessionController:
    controller = SessionController(
        config,
        contacts=JsonContactDirectory(config.contacts_path),
        clipboard=CommandClipboard(config.clipboard_command),
    )

    if args.contact:
        controller.load_contacts()
        matches = controller.search_contacts(args.contact)
        if not matches:
            raise SystemExit(f"No contact matches {args.contact!r} in {config.contacts_path}")
        controller.select_contact(matches[0])

    overrides = {name: getattr(args, name) for name in DETAIL_FIELDS if getattr(args, name) is not None}
    if overrides:
        controller.update_details(replace(controller.state.details, **overrides))

    for selection in args.appointment:
        controller.add_selection(selection, local=args.local)
    return controller


def _print_new_output(previous: SessionState, current: SessionState) -> None:
    if len(current.output) > len(previous.output) and current.output.startswith(previous.output):
        sys.stdout.write(current.output[len(previous.output) :])
        sys.stdout.flush()


def _describe(outcome: Outcome) -> str:
    label = "ok" if outcome.success else "failed"
    suffix = f" (HTTP {outcome.status_code})" if outcome.status_code is not None else ""
    return f"[{label}] {outcome.message}{suffix}"


def _handle_send(args: argparse.Namespace, config: MailerConfig) -> int:
    controller = _build_controller(args, config)
    try:
        if args.dry_run:
            request = controller.state.send_request()
            tail = build_mailer_arguments(request.details, request.appointments, include_binary=False)
            print(shlex.join([config.shell, "-c", build_command_line(config, tail)]))
            return 0

        controller.subscribe(_print_new_output)
        controller.send()
        outcome = controller.wait_for_outcome(timeout=args.timeout)
        if controller.state.output and not controller.state.output.endswith("\n"):
            print()
        print(_describe(outcome))
        if args.copy_output:
            controller.copy_output()
        return 0 if outcome.success else 1
    finally:
        controller.close()


def _handle_command(args: argparse.Namespace, config: MailerConfig) -> int:
    controller = _build_controller(args, config)
    try:
        if args.copy:
            command = controller.copy_command()
        else:
            command = preview_command(controller.state.send_request())
        print(command)
        return 0
    finally:
        controller.close()


def _handle_format(args: argparse.Namespace, _config: MailerConfig) -> int:
    hour, minute = args.time
    selection = PickerSelection(args.date.year, args.date.month, args.date.day, hour, minute)
    print(format_selection(selection, args.preset))
    return 0


def _handle_contacts(args: argparse.Namespace, config: MailerConfig) -> int:
    controller = SessionController(config, contacts=JsonContactDirectory(config.contacts_path))
    controller.load_contacts()
    for contact in controller.search_contacts(args.query):
        print(f"{contact.display_name}\t{contact.primary_email}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose)
    try:
        config = resolve_config()
        return args.handler(args, config)
    except (ConfigError, ContactDirectoryError, ClipboardError, TimeoutError) as exc:
        raise SystemExit(f"error: {exc}") from exc


if __name__ == "__main__":
    raise SystemExit(main())
