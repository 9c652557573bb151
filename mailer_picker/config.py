"""Environment-driven runtime configuration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

logger = logging.getLogger(__name__)

DEFAULT_BINARY = "~/sbm-bin/mailer"
DEFAULT_BANNER_SECONDS = 3.0
DEFAULT_LOCAL_LOCATION = "Alkmaar"
DEFAULT_LOCAL_STREET = "Prins Hendrikstraat"
DEFAULT_CONTACTS_PATH = "state/contacts.json"
DEFAULT_CLIPBOARD_COMMAND = "pbcopy"


class ConfigError(ValueError):
    """Raised when an environment value cannot be used."""


@dataclass(frozen=True, slots=True)
class MailerConfig:
    shell: str
    setup_command: str
    binary: str
    banner_seconds: float
    local_location: str
    local_street: str
    contacts_path: Path
    clipboard_command: str


def _default_shell() -> str:
    return "/bin/zsh" if Path("/bin/zsh").exists() else "/bin/sh"


def _parse_seconds(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"MAILER_BANNER_SECONDS must be a number, got {raw!r}") from exc
    if value < 0:
        raise ConfigError(f"MAILER_BANNER_SECONDS must not be negative, got {raw!r}")
    return value


def resolve_config(env: Mapping[str, str] | None = None) -> MailerConfig:
    env = os.environ if env is None else env

    shell = env.get("MAILER_SHELL", "").strip() or _default_shell()
    binary = env.get("MAILER_BINARY", "").strip() or DEFAULT_BINARY
    config = MailerConfig(
        shell=shell,
        setup_command=env.get("MAILER_SETUP_COMMAND", "").strip(),
        binary=os.path.expanduser(binary),
        banner_seconds=_parse_seconds(env.get("MAILER_BANNER_SECONDS", str(DEFAULT_BANNER_SECONDS))),
        local_location=env.get("MAILER_LOCAL_LOCATION", DEFAULT_LOCAL_LOCATION),
        local_street=env.get("MAILER_LOCAL_STREET", DEFAULT_LOCAL_STREET),
        contacts_path=Path(env.get("MAILER_CONTACTS_PATH", DEFAULT_CONTACTS_PATH)),
        clipboard_command=env.get("MAILER_CLIPBOARD_COMMAND", "").strip() or DEFAULT_CLIPBOARD_COMMAND,
    )
    logger.debug(
        "Resolved mailer config (shell=%s, binary=%s, setup=%s, banner_seconds=%s)",
        config.shell,
        config.binary,
        bool(config.setup_command),
        config.banner_seconds,
    )
    return config
