"""Turn a mailer run (exit code plus captured output) into an Outcome.

Three passes, each allowed to override the previous one:

1. exit code: 0 is success, anything else a failure naming the code;
2. the first ``HTTP Status Code: NNN`` line decides success/failure by
   whether NNN is 2xx, but leaves the message alone;
3. a trailing ``{"success": bool, "message": str}`` object decides both.

The mailer can fail before it prints the JSON response (network errors only
print the status line, a launch failure prints neither), hence the fallbacks.
"""

from __future__ import annotations

import json
import re
from typing import Any

from mailer_picker.domain.models import Outcome
from mailer_picker.utils.logging import get_structured_logger, log_workflow_event

SUCCESS_MESSAGE = "mailer completed successfully."
STATUS_LINE = re.compile(r"HTTP Status Code:\s*(\d{3})", re.IGNORECASE)


def extract_status_code(output: str) -> int | None:
    match = STATUS_LINE.search(output)
    return int(match.group(1)) if match else None


def extract_trailing_object(output: str) -> dict[str, Any] | None:
    """Return the widest ``{...}`` ending at the last ``}`` that parses as an object.

    Spans are tried from the earliest ``{`` onward, so stray braces in log
    lines before the response are skipped and, when several objects are
    printed back to back, the last complete one wins.
    """
    end = output.rfind("}")
    if end == -1:
        return None

    start = output.find("{")
    while 0 <= start < end:
        try:
            candidate = json.loads(output[start : end + 1])
        except json.JSONDecodeError:
            candidate = None
        if isinstance(candidate, dict):
            return candidate
        start = output.find("{", start + 1)
    return None


def interpret_result(
    output: str,
    exit_code: int | None,
    *,
    launch_error: str | None = None,
) -> Outcome:
    if launch_error is not None:
        outcome = Outcome.fail(f"mailer could not be launched: {launch_error}")
    elif exit_code == 0:
        outcome = Outcome.ok(SUCCESS_MESSAGE, exit_code=exit_code)
    else:
        outcome = Outcome.fail(f"mailer exited with code {exit_code}.", exit_code=exit_code)

    status_code = extract_status_code(output)
    if status_code is not None:
        outcome = Outcome(
            success=200 <= status_code < 300,
            message=outcome.message,
            status_code=status_code,
            exit_code=outcome.exit_code,
        )

    trailer = extract_trailing_object(output)
    if trailer is None:
        return outcome

    success = trailer.get("success")
    message = trailer.get("message")
    if not isinstance(success, bool) or not isinstance(message, str):
        log_workflow_event(
            get_structured_logger(),
            workflow_step="interpret",
            status="ignored",
            error_code="MALFORMED_TOOL_OUTPUT",
            error_message=f"keys={sorted(trailer)}",
            message="Trailing JSON lacks success/message; keeping exit-code result",
        )
        return outcome

    return Outcome(
        success=success,
        message=message,
        status_code=outcome.status_code,
        exit_code=outcome.exit_code,
    )
