"""Bounded external command — an owned child-process handle.

The child runs detached from the caller's control flow (fire and
monitor). Its combined stdout/stderr is spooled to an anonymous temp file
instead of a pipe, so a chatty child can never stall on a full pipe
buffer while the supervisor polls it.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
from collections.abc import Sequence
from typing import IO

logger = logging.getLogger(__name__)


class BoundedCommand:
    """poll / terminate / kill / wait over a single child process.

    Lifecycle:
        cmd = BoundedCommand(["weka", "local", "restart"])
        cmd.start()
        while cmd.poll() is None: ...
        output = cmd.read_output()
        cmd.close()
    """

    def __init__(self, command: Sequence[str]) -> None:
        self.command = list(command)
        self._proc: subprocess.Popen[bytes] | None = None
        self._spool: IO[bytes] | None = None

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc else None

    def start(self) -> None:
        """Launch the child. Raises OSError if it cannot be started."""
        self._spool = tempfile.TemporaryFile()
        try:
            self._proc = subprocess.Popen(
                self.command,
                stdin=subprocess.DEVNULL,
                stdout=self._spool,
                stderr=subprocess.STDOUT,
            )
        except OSError:
            self.close()
            raise
        logger.debug("Started %s (pid %d)", " ".join(self.command), self._proc.pid)

    def poll(self) -> int | None:
        return self._require_proc().poll()

    def terminate(self) -> None:
        proc = self._require_proc()
        if proc.poll() is None:
            proc.terminate()

    def kill(self) -> None:
        proc = self._require_proc()
        if proc.poll() is None:
            proc.kill()

    def wait(self, timeout: float) -> int | None:
        """Wait up to `timeout` seconds; returns the exit code or None if still alive."""
        try:
            return self._require_proc().wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return None

    def read_output(self) -> str:
        """Everything the child has written so far, with null bytes removed."""
        if self._spool is None:
            return ""
        self._spool.flush()
        self._spool.seek(0)
        data = self._spool.read()
        return data.decode("utf-8", errors="replace").replace("\x00", "")

    def close(self) -> None:
        if self._spool is not None:
            self._spool.close()
            self._spool = None

    def _require_proc(self) -> subprocess.Popen[bytes]:
        if self._proc is None:
            raise RuntimeError("Command has not been started")
        return self._proc
