"""Run the mailer through a shell and stream its output as events."""

from __future__ import annotations

import codecs
import logging
import subprocess
import threading
from dataclasses import dataclass
from functools import partial
from typing import IO, Callable, Mapping

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4096


@dataclass(frozen=True, slots=True)
class OutputChunk:
    invocation_id: int
    stream: str
    text: str


@dataclass(frozen=True, slots=True)
class ProcessExited:
    invocation_id: int
    exit_code: int


@dataclass(frozen=True, slots=True)
class LaunchFailed:
    invocation_id: int
    error: str


InvokerEvent = OutputChunk | ProcessExited | LaunchFailed
PostFn = Callable[[InvokerEvent], None]


class Invocation:
    """Handle on a running invocation's waiter thread."""

    def __init__(self, invocation_id: int, thread: threading.Thread) -> None:
        self.invocation_id = invocation_id
        self._thread = thread

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the process to exit and all output to be posted."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    @property
    def done(self) -> bool:
        return not self._thread.is_alive()


def _pump_stream(stream: IO[bytes], name: str, invocation_id: int, post: PostFn, chunk_size: int) -> None:
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    with stream:
        for chunk in iter(partial(stream.read1, chunk_size), b""):
            text = decoder.decode(chunk)
            if text:
                post(OutputChunk(invocation_id, name, text))
    tail = decoder.decode(b"", final=True)
    if tail:
        post(OutputChunk(invocation_id, name, tail))


class ProcessInvoker:
    """Launch one shell command per call and report output and exit as events.

    Events are handed to ``post``, which is called from background threads;
    it must only enqueue them for the owning thread. Chunks of one stream
    arrive in order; stdout and stderr are not ordered relative to each
    other. ``ProcessExited`` is posted after both streams are drained.
    """

    def __init__(
        self,
        shell: str,
        *,
        env: Mapping[str, str] | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.shell = shell
        self.env = dict(env) if env is not None else None
        self.chunk_size = chunk_size

    def launch(self, command_line: str, *, post: PostFn, invocation_id: int = 0) -> Invocation:
        thread = threading.Thread(
            target=self._run,
            args=(command_line, post, invocation_id),
            name=f"mailer-invocation-{invocation_id}",
            daemon=True,
        )
        thread.start()
        return Invocation(invocation_id, thread)

    def _run(self, command_line: str, post: PostFn, invocation_id: int) -> None:
        argv = [self.shell, "-c", command_line]
        try:
            process = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=self.env,
            )
        except OSError as exc:
            logger.warning("Mailer launch failed (invocation=%s): %s", invocation_id, exc)
            post(OutputChunk(invocation_id, "launch", f"launch failed: {exc}\n"))
            post(LaunchFailed(invocation_id, str(exc)))
            return

        logger.debug("Mailer started (invocation=%s, pid=%s)", invocation_id, process.pid)
        readers = [
            threading.Thread(
                target=_pump_stream,
                args=(stream, name, invocation_id, post, self.chunk_size),
                name=f"mailer-{name}-{invocation_id}",
                daemon=True,
            )
            for stream, name in ((process.stdout, "stdout"), (process.stderr, "stderr"))
        ]
        for reader in readers:
            reader.start()

        exit_code = process.wait()
        for reader in readers:
            reader.join()

        logger.debug("Mailer exited (invocation=%s, exit_code=%s)", invocation_id, exit_code)
        post(ProcessExited(invocation_id, exit_code))
