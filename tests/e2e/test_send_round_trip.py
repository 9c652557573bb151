from __future__ import annotations

import json
from pathlib import Path

import pytest

from mailer_picker.domain.models import ClientDetails
from mailer_picker.domain.picker import PickerSelection
from mailer_picker.session.controller import SessionController
from mailer_picker.session.state import SendPhase


@pytest.mark.e2e
def test_mailer_receives_queue_through_real_shell(tmp_path: Path, make_config, write_mailer) -> None:
    received = tmp_path / "received.json"
    write_mailer(
        f'printf "%s" "$8" > "{received}"\n'
        'echo "HTTP Status Code: 500"\n'
        'echo "retry succeeded" >&2\n'
        'echo \'{"success": true, "message": "2 afspraken bevestigd"}\'\n'
        "exit 1\n"
    )
    controller = SessionController(make_config())
    streamed: list[str] = []
    controller.subscribe(lambda previous, current: streamed.append(current.output[len(previous.output) :]))

    controller.update_details(ClientDetails(client="Jane O'Neil", email="jane@x.com", dog="Rex", location="Alkmaar"))
    controller.add_selection(PickerSelection(2025, 2, 1, 10, 0))
    controller.add_selection(PickerSelection(2025, 2, 1, 10, 0))
    controller.add_selection(PickerSelection(2025, 2, 3, 14, 30), local=True)

    try:
        assert controller.send() is True
        outcome = controller.wait_for_outcome(timeout=15)
    finally:
        controller.close()

    assert outcome.success is True
    assert outcome.message == "2 afspraken bevestigd"
    assert outcome.status_code == 500
    assert outcome.exit_code == 1
    assert controller.state.phase is SendPhase.COMPLETED
    assert len(controller.state.queue) == 0
    assert "retry succeeded" in controller.state.output
    assert "".join(streamed).endswith(controller.state.output)

    appointments = json.loads(received.read_text(encoding="utf-8"))
    assert [(item["date"], item["time"], item["day"]) for item in appointments] == [
        ("01/02/2025", "10:00", "Zaterdag"),
        ("03/02/2025", "14:30", "Maandag"),
    ]
    assert appointments[1]["street"] == "Prins Hendrikstraat"


@pytest.mark.e2e
def test_missing_shell_is_a_launch_failure(make_config) -> None:
    controller = SessionController(make_config(MAILER_SHELL="/nonexistent/shell"))
    try:
        controller.send()
        outcome = controller.wait_for_outcome(timeout=15)
    finally:
        controller.close()

    assert outcome.success is False
    assert outcome.exit_code is None
    assert controller.state.output.startswith("launch failed: ")
