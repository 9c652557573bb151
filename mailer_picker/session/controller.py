"""Single-threaded owner of the picker session."""

from __future__ import annotations

import logging
import queue
import threading
import time
from datetime import datetime, timedelta
from typing import Any, Callable
from zoneinfo import ZoneInfo

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

from mailer_picker.adapters.clipboard import Clipboard
from mailer_picker.adapters.contacts import ContactDirectory, details_from_contact, filter_contacts
from mailer_picker.config import MailerConfig
from mailer_picker.domain.models import AppointmentRecord, ClientDetails, Contact, Outcome
from mailer_picker.domain.picker import PickerSelection, create_appointment
from mailer_picker.orchestration.invoker import ProcessInvoker
from mailer_picker.orchestration.send import orchestrate_send, preview_command
from mailer_picker.session.state import (
    AddAppointment,
    ClearContact,
    ClearQueue,
    ContactsLoaded,
    DismissBanner,
    RemoveAppointment,
    SelectContact,
    SendPhase,
    SendStarted,
    SessionState,
    UpdateDetails,
    apply_message,
)
from mailer_picker.utils.logging import get_structured_logger, log_workflow_event

UTC = ZoneInfo("UTC")

logger = logging.getLogger(__name__)

Subscriber = Callable[[SessionState, SessionState], None]


class SessionController:
    """Owns ``SessionState`` and applies every change on the owning thread.

    Background producers (invoker threads, the banner timer) call ``post``,
    which only enqueues. The owner drains the channel with
    ``process_pending`` or ``wait_for_outcome``; subscribers are notified
    with ``(previous, current)`` after each state change.
    """

    def __init__(
        self,
        config: MailerConfig,
        *,
        invoker: ProcessInvoker | None = None,
        contacts: ContactDirectory | None = None,
        clipboard: Clipboard | None = None,
        scheduler: Any | None = None,
    ) -> None:
        self.config = config
        self.invoker = invoker or ProcessInvoker(config.shell)
        self.contacts = contacts
        self.clipboard = clipboard
        self.scheduler = scheduler or BackgroundScheduler(timezone=UTC)
        self._state = SessionState()
        self._channel: queue.Queue[object] = queue.Queue()
        self._subscribers: list[Subscriber] = []
        self._owner = threading.get_ident()
        self._last_send_id = 0
        self._log = get_structured_logger()

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def post(self, message: object) -> None:
        """Thread-safe: queue a message for the owning thread."""
        self._channel.put(message)

    def dispatch(self, message: object) -> SessionState:
        if threading.get_ident() != self._owner:
            raise RuntimeError("Session state may only be changed on its owning thread; use post().")

        previous = self._state
        current = apply_message(previous, message)
        if current is previous:
            return current

        self._state = current
        if previous.phase is SendPhase.SENDING and current.phase is SendPhase.COMPLETED:
            self._on_send_completed(previous, current)
        for subscriber in list(self._subscribers):
            subscriber(previous, current)
        return current

    def process_pending(self, timeout: float | None = 0) -> int:
        """Apply queued messages; wait up to ``timeout`` for the first one."""
        handled = 0
        wait = timeout
        while True:
            try:
                message = self._channel.get_nowait() if wait == 0 else self._channel.get(timeout=wait)
            except queue.Empty:
                return handled
            self.dispatch(message)
            handled += 1
            wait = 0

    def wait_for_outcome(self, timeout: float | None = None) -> Outcome:
        """Drain messages until the current send has an outcome."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while not self._has_outcome():
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                raise TimeoutError("Mailer did not finish in time.")
            try:
                message = self._channel.get(timeout=remaining)
            except queue.Empty as exc:
                raise TimeoutError("Mailer did not finish in time.") from exc
            self.dispatch(message)
        outcome = self._state.outcome
        if outcome is None:
            raise RuntimeError("Send finished without an outcome.")
        return outcome

    def _has_outcome(self) -> bool:
        if self._last_send_id == 0:
            raise RuntimeError("No send has been started.")
        return self._state.send_id == self._last_send_id and self._state.outcome is not None

    # Queue and contact actions

    def add_appointment(self, record: AppointmentRecord) -> None:
        before = len(self._state.queue)
        state = self.dispatch(AddAppointment(record))
        log_workflow_event(
            self._log,
            workflow_step="queue_add",
            client_name=state.details.client,
            queue_size=len(state.queue),
            status="added" if len(state.queue) > before else "skipped",
            message=f"{record.date} {record.time}",
        )

    def add_selection(self, selection: PickerSelection, *, local: bool = False) -> AppointmentRecord:
        record = create_appointment(selection, self._state.details, config=self.config, local=local)
        self.add_appointment(record)
        return record

    def remove_appointment(self, index: int) -> None:
        state = self.dispatch(RemoveAppointment(index))
        log_workflow_event(
            self._log,
            workflow_step="queue_remove",
            client_name=state.details.client,
            queue_size=len(state.queue),
            status="removed",
        )

    def clear_queue(self) -> None:
        self.dispatch(ClearQueue())
        log_workflow_event(self._log, workflow_step="queue_clear", queue_size=0, status="cleared")

    def update_details(self, details: ClientDetails) -> None:
        self.dispatch(UpdateDetails(details))

    def clear_contact(self) -> None:
        self.dispatch(ClearContact())

    def load_contacts(self) -> tuple[Contact, ...]:
        if self.contacts is None:
            return ()
        loaded = tuple(self.contacts.fetch_all())
        self.dispatch(ContactsLoaded(loaded))
        logger.info("Loaded %s contacts", len(loaded))
        return loaded

    def search_contacts(self, query: str) -> list[Contact]:
        return filter_contacts(list(self._state.contacts), query)

    def select_contact(self, contact: Contact) -> ClientDetails:
        details = details_from_contact(contact)
        self.dispatch(SelectContact(contact, details))
        return details

    # Clipboard actions

    def copy_command(self) -> str:
        command = preview_command(self._state.send_request())
        self._require_clipboard().set_text(command)
        return command

    def copy_output(self) -> str:
        self._require_clipboard().set_text(self._state.output)
        return self._state.output

    def _require_clipboard(self) -> Clipboard:
        if self.clipboard is None:
            raise RuntimeError("No clipboard configured.")
        return self.clipboard

    # Sending

    def send(self) -> bool:
        """Launch the mailer for the current queue; ignored while a send is in flight."""
        if self._state.phase is SendPhase.SENDING:
            log_workflow_event(
                self._log,
                workflow_step="send",
                client_name=self._state.details.client,
                status="skipped",
                message="Send already in progress",
            )
            return False

        self._last_send_id += 1
        send_id = self._last_send_id
        request = self._state.send_request()
        self.dispatch(SendStarted(send_id))
        orchestrate_send(
            request,
            config=self.config,
            invoker=self.invoker,
            post=self.post,
            invocation_id=send_id,
        )
        return True

    def _on_send_completed(self, previous: SessionState, state: SessionState) -> None:
        outcome = state.outcome
        if outcome is None:
            raise RuntimeError("Send completed without an outcome.")
        # a successful send has already cleared the contact
        log_workflow_event(
            self._log,
            workflow_step="send",
            client_name=previous.details.client,
            status="sent" if outcome.success else "failed",
            error_code=None if outcome.success else _error_code(outcome),
            error_message=None if outcome.success else outcome.message,
            message=outcome.message,
        )
        self._schedule_dismissal(state.send_id)

    def _schedule_dismissal(self, send_id: int) -> None:
        if not self.scheduler.running:
            self.scheduler.start()
        run_at = datetime.now(tz=UTC) + timedelta(seconds=self.config.banner_seconds)
        self.scheduler.add_job(
            self.post,
            trigger=DateTrigger(run_date=run_at, timezone=UTC),
            args=[DismissBanner(send_id)],
            id=f"dismiss-banner-{send_id}",
            replace_existing=True,
            misfire_grace_time=None,
        )

    def close(self) -> None:
        if self.scheduler.running:
            # a due dismissal must not be removed by the scheduler thread after shutdown
            self.scheduler.remove_all_jobs()
            self.scheduler.shutdown(wait=False)


def _error_code(outcome: Outcome) -> str:
    if outcome.exit_code is None:
        return "LAUNCH_FAILURE"
    if outcome.status_code is not None:
        return f"HTTP_{outcome.status_code}"
    if outcome.exit_code != 0:
        return "NON_ZERO_EXIT"
    return "MAILER_REPORTED_FAILURE"
