"""Session state and the pure functions that advance it.

Every change to the session is a message folded into ``SessionState`` by
``apply_message``, which returns a new state and never mutates its input.
Messages come from user actions, from the invoker's background threads and
from the banner timer; the controller applies them on its own thread.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from mailer_picker.domain.appointment_queue import AppointmentQueue
from mailer_picker.domain.models import AppointmentRecord, ClientDetails, Contact, Outcome, SendRequest
from mailer_picker.orchestration.invoker import LaunchFailed, OutputChunk, ProcessExited
from mailer_picker.orchestration.result import interpret_result


class SendPhase(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class SessionState:
    queue: AppointmentQueue = field(default_factory=AppointmentQueue)
    details: ClientDetails = field(default_factory=ClientDetails)
    contacts: tuple[Contact, ...] = ()
    selected_contact: Contact | None = None
    phase: SendPhase = SendPhase.IDLE
    output: str = ""
    outcome: Outcome | None = None
    send_id: int = 0

    @property
    def banner_visible(self) -> bool:
        return self.phase is SendPhase.COMPLETED

    def send_request(self) -> SendRequest:
        return SendRequest(details=self.details, appointments=list(self.queue))


@dataclass(frozen=True, slots=True)
class AddAppointment:
    record: AppointmentRecord


@dataclass(frozen=True, slots=True)
class RemoveAppointment:
    index: int


@dataclass(frozen=True, slots=True)
class ClearQueue:
    pass


@dataclass(frozen=True, slots=True)
class ContactsLoaded:
    contacts: tuple[Contact, ...]


@dataclass(frozen=True, slots=True)
class SelectContact:
    contact: Contact
    details: ClientDetails


@dataclass(frozen=True, slots=True)
class UpdateDetails:
    details: ClientDetails


@dataclass(frozen=True, slots=True)
class ClearContact:
    pass


@dataclass(frozen=True, slots=True)
class SendStarted:
    send_id: int


@dataclass(frozen=True, slots=True)
class DismissBanner:
    send_id: int


def add_appointment(state: SessionState, record: AppointmentRecord) -> SessionState:
    queue = state.queue.copy()
    if not queue.add(record):
        return state
    return replace(state, queue=queue)


def remove_appointment(state: SessionState, index: int) -> SessionState:
    queue = state.queue.copy()
    queue.remove(index)
    return replace(state, queue=queue)


def clear_queue(state: SessionState) -> SessionState:
    return replace(state, queue=AppointmentQueue())


def clear_contact(state: SessionState) -> SessionState:
    return replace(state, details=ClientDetails(), selected_contact=None)


def start_send(state: SessionState, send_id: int) -> SessionState:
    return replace(state, phase=SendPhase.SENDING, output="", outcome=None, send_id=send_id)


def append_output(state: SessionState, chunk: OutputChunk) -> SessionState:
    if chunk.invocation_id != state.send_id or state.phase is not SendPhase.SENDING:
        return state
    return replace(state, output=state.output + chunk.text)


def complete_send(state: SessionState, exit_code: int | None, launch_error: str | None = None) -> SessionState:
    outcome = interpret_result(state.output, exit_code, launch_error=launch_error)
    completed = replace(state, phase=SendPhase.COMPLETED, outcome=outcome)
    if outcome.success:
        # failures keep queue and contact so the user can retry
        completed = clear_contact(clear_queue(completed))
    return completed


def dismiss_banner(state: SessionState, send_id: int) -> SessionState:
    if state.phase is not SendPhase.COMPLETED or state.send_id != send_id:
        return state
    return replace(state, phase=SendPhase.IDLE)


def apply_message(state: SessionState, message: object) -> SessionState:
    """Fold one message into the state.

    Raises ``IndexOutOfRange`` for ``RemoveAppointment`` with a bad index and
    ``TypeError`` for unknown messages; everything else resolves locally.
    """
    if isinstance(message, AddAppointment):
        return add_appointment(state, message.record)
    if isinstance(message, RemoveAppointment):
        return remove_appointment(state, message.index)
    if isinstance(message, ClearQueue):
        return clear_queue(state)
    if isinstance(message, ContactsLoaded):
        return replace(state, contacts=message.contacts)
    if isinstance(message, SelectContact):
        return replace(state, details=message.details, selected_contact=message.contact)
    if isinstance(message, UpdateDetails):
        return replace(state, details=message.details)
    if isinstance(message, ClearContact):
        return clear_contact(state)
    if isinstance(message, SendStarted):
        return start_send(state, message.send_id)
    if isinstance(message, OutputChunk):
        return append_output(state, message)
    if isinstance(message, ProcessExited):
        if message.invocation_id != state.send_id or state.phase is not SendPhase.SENDING:
            return state
        return complete_send(state, message.exit_code)
    if isinstance(message, LaunchFailed):
        if message.invocation_id != state.send_id or state.phase is not SendPhase.SENDING:
            return state
        return complete_send(state, None, launch_error=message.error)
    if isinstance(message, DismissBanner):
        return dismiss_banner(state, message.send_id)
    raise TypeError(f"Unsupported session message: {type(message).__name__}")
