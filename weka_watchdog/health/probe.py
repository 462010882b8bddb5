"""Status probe — one bounded invocation of the Weka status subcommand."""

from __future__ import annotations

import logging
import subprocess
import time
from collections.abc import Sequence

from .models import ProbeResult

logger = logging.getLogger(__name__)

EXIT_NOT_FOUND = 127
EXIT_TIMED_OUT = 124


class StatusProbe:
    """Runs the status command and captures combined stdout/stderr.

    Never raises: launch errors and timeouts become a non-zero ProbeResult
    so the parser treats them as unhealthy.
    """

    def __init__(self, command: Sequence[str], timeout_sec: int = 30) -> None:
        self.command = list(command)
        self.timeout_sec = timeout_sec

    def run(self) -> ProbeResult:
        t0 = time.perf_counter()
        try:
            result = subprocess.run(
                self.command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=self.timeout_sec,
                encoding="utf-8",
                errors="replace",
            )
            return ProbeResult(
                exit_code=result.returncode,
                raw_text=result.stdout or "",
                duration_ms=_elapsed_ms(t0),
            )
        except subprocess.TimeoutExpired:
            return ProbeResult(
                exit_code=EXIT_TIMED_OUT,
                raw_text=f"Status command timed out after {self.timeout_sec}s",
                duration_ms=_elapsed_ms(t0),
            )
        except FileNotFoundError as e:
            logger.debug("Status command not found: %s", self.command[0])
            return ProbeResult(
                exit_code=EXIT_NOT_FOUND,
                raw_text=f"Command not found: {e}",
                duration_ms=_elapsed_ms(t0),
            )
        except Exception as e:
            return ProbeResult(
                exit_code=1,
                raw_text=f"Error: {type(e).__name__}: {e}",
                duration_ms=_elapsed_ms(t0),
            )


def _elapsed_ms(t0: float) -> int:
    return int((time.perf_counter() - t0) * 1000)
