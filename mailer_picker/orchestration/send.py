from __future__ import annotations

import shlex

from mailer_picker.config import MailerConfig
from mailer_picker.domain.models import SendRequest
from mailer_picker.orchestration.arguments import build_mailer_arguments
from mailer_picker.orchestration.invoker import Invocation, PostFn, ProcessInvoker
from mailer_picker.utils.logging import get_structured_logger, log_workflow_event


def build_command_line(config: MailerConfig, arguments: str) -> str:
    """Prefix the argument tail with the binary path and the optional setup command."""
    command = f"{shlex.quote(config.binary)} {arguments}"
    if config.setup_command:
        return f"{config.setup_command} && {command}"
    return command


def preview_command(request: SendRequest) -> str:
    """The command a user would paste into a terminal, with the bare ``mailer`` token."""
    return build_mailer_arguments(request.details, request.appointments, include_binary=True)


def orchestrate_send(
    request: SendRequest,
    *,
    config: MailerConfig,
    invoker: ProcessInvoker,
    post: PostFn,
    invocation_id: int,
) -> Invocation:
    """Serialize the request and launch the mailer once; results arrive via ``post``."""
    logger = get_structured_logger()
    arguments = build_mailer_arguments(request.details, request.appointments, include_binary=False)
    command_line = build_command_line(config, arguments)

    log_workflow_event(
        logger,
        workflow_step="launch",
        client_name=request.details.client,
        queue_size=len(request.appointments),
        status="attempted",
        message=f"Launching mailer (invocation={invocation_id})",
    )
    return invoker.launch(command_line, post=post, invocation_id=invocation_id)
