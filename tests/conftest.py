from __future__ import annotations

import stat
from pathlib import Path
from typing import Any, Callable

import pytest

from mailer_picker.config import MailerConfig, resolve_config
from mailer_picker.domain.models import AppointmentRecord, ClientDetails


class FakeScheduler:
    """Records banner jobs instead of running a background thread."""

    def __init__(self) -> None:
        self.running = False
        self.jobs: list[dict[str, Any]] = []

    def start(self) -> None:
        self.running = True

    def shutdown(self, wait: bool = True) -> None:
        self.running = False

    def add_job(self, func, **kwargs) -> None:
        self.jobs.append({"func": func, **kwargs})

    def remove_all_jobs(self) -> None:
        self.jobs.clear()

    def fire_all(self) -> None:
        for job in self.jobs:
            job["func"](*job.get("args", ()))
        self.jobs.clear()


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., MailerConfig]:
    def _make(**overrides: str) -> MailerConfig:
        env = {
            "MAILER_SHELL": "/bin/sh",
            "MAILER_BINARY": str(tmp_path / "mailer"),
            "MAILER_BANNER_SECONDS": "0",
            "MAILER_CONTACTS_PATH": str(tmp_path / "contacts.json"),
            "MAILER_CLIPBOARD_COMMAND": "cat",
        }
        env.update(overrides)
        return resolve_config(env)

    return _make


@pytest.fixture
def config(make_config) -> MailerConfig:
    return make_config()


@pytest.fixture
def write_mailer(tmp_path: Path) -> Callable[[str], Path]:
    """Write an executable shell script standing in for the mailer binary."""

    def _write(body: str, name: str = "mailer") -> Path:
        path = tmp_path / name
        path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _write


@pytest.fixture
def fake_scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def saturday_visit() -> AppointmentRecord:
    return AppointmentRecord(
        date="01/02/2025",
        time="10:00",
        day="Saturday",
        street="Main St",
        number="5",
        area_code="1000AB",
        location="Alkmaar",
    )


@pytest.fixture
def jane() -> ClientDetails:
    return ClientDetails(client="Jane Doe", email="jane@x.com", dog="Rex")
