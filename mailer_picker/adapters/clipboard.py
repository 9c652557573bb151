from __future__ import annotations

import shlex
import subprocess
from typing import Protocol


class ClipboardError(RuntimeError):
    """Raised when text could not be placed on the clipboard."""


class Clipboard(Protocol):
    def set_text(self, text: str) -> None: ...


class CommandClipboard:
    """Clipboard backed by a copy command reading stdin (``pbcopy``, ``xclip -selection clipboard``)."""

    def __init__(self, command: str) -> None:
        self.argv = shlex.split(command)
        if not self.argv:
            raise ClipboardError("Clipboard command is empty.")

    def set_text(self, text: str) -> None:
        try:
            subprocess.run(self.argv, input=text, text=True, check=True, capture_output=True)
        except FileNotFoundError as exc:
            raise ClipboardError(f"Clipboard command not found: {self.argv[0]}") from exc
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or f"exit code {exc.returncode}"
            raise ClipboardError(f"Clipboard command failed: {detail}") from exc
