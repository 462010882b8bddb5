"""Restart supervisor — one monitored, time-bounded restart attempt.

Flow:
1. Launch the restart command as a child and poll it every `poll_interval`.
2. On timeout: terminate, wait `grace_period`, then kill. The attempt is
   recorded as timed out with exit code 124 whatever the child reports later.
3. Wait `settle_period` so the service can initialise, then run a fresh
   status probe.

Exactly one attempt per call. Retrying is left to the next scheduled run.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..health.models import HealthVerdict
from ..health.parser import StatusParser, sanitize_output
from ..health.probe import StatusProbe
from .command import BoundedCommand

logger = logging.getLogger(__name__)

TIMEOUT_EXIT_CODE = 124

DEFAULT_RESTART_TIMEOUT = 60
DEFAULT_POLL_INTERVAL = 2
DEFAULT_GRACE_PERIOD = 3
DEFAULT_SETTLE_PERIOD = 20


# ── Models ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RestartOutcome:
    """Result of exactly one restart attempt."""

    completed: bool
    exit_code: int | None
    timed_out: bool
    output: str = ""
    duration_ms: int = 0


class FailureReason(str, Enum):
    LAUNCH_FAILED = "launch_failed"
    TIMED_OUT = "timed_out"
    COMMAND_FAILED = "command_failed"
    STILL_UNHEALTHY = "still_unhealthy"


@dataclass(frozen=True)
class RecoveryResult:
    outcome: RestartOutcome
    verdict: HealthVerdict
    reason: FailureReason | None = None

    @property
    def success(self) -> bool:
        return self.reason is None


# ── Supervisor ───────────────────────────────────────────────────────────────


class RestartSupervisor:
    """Drives a restart command through launch, monitor, escalate and verify."""

    def __init__(
        self,
        command: Sequence[str],
        probe: StatusProbe,
        parser: StatusParser | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        settle_period: float = DEFAULT_SETTLE_PERIOD,
        command_factory: Callable[[Sequence[str]], Any] = BoundedCommand,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.command = list(command)
        self.probe = probe
        self.parser = parser or StatusParser()
        self.poll_interval = poll_interval
        self.grace_period = grace_period
        self.settle_period = settle_period
        self._command_factory = command_factory
        self._sleep = sleep
        self._clock = clock

    def restart(self, timeout_seconds: int = DEFAULT_RESTART_TIMEOUT) -> RestartOutcome:
        """Run the restart command under the timeout and escalation policy."""
        t0 = self._clock()
        handle = self._command_factory(self.command)
        try:
            handle.start()
        except OSError as e:
            return RestartOutcome(
                completed=False,
                exit_code=None,
                timed_out=False,
                output=f"Failed to launch {' '.join(self.command)}: {type(e).__name__}: {e}",
                duration_ms=self._elapsed_ms(t0),
            )

        try:
            exit_code = handle.poll()
            while exit_code is None:
                remaining = timeout_seconds - (self._clock() - t0)
                if remaining <= 0:
                    break
                self._sleep(min(self.poll_interval, remaining))
                exit_code = handle.poll()

            if exit_code is not None:
                return RestartOutcome(
                    completed=True,
                    exit_code=exit_code,
                    timed_out=False,
                    output=handle.read_output(),
                    duration_ms=self._elapsed_ms(t0),
                )

            self._escalate(handle)
            return RestartOutcome(
                completed=False,
                exit_code=TIMEOUT_EXIT_CODE,
                timed_out=True,
                output=handle.read_output(),
                duration_ms=self._elapsed_ms(t0),
            )
        finally:
            handle.close()

    def recover(self, timeout_seconds: int = DEFAULT_RESTART_TIMEOUT) -> RecoveryResult:
        """Restart, let the service settle, then verify with a fresh probe."""
        logger.info("Restarting service: %s (timeout %ds)", " ".join(self.command), timeout_seconds)
        outcome = self.restart(timeout_seconds)
        logger.debug(
            "Restart finished: completed=%s exit_code=%s timed_out=%s duration=%dms\n%s",
            outcome.completed, outcome.exit_code, outcome.timed_out,
            outcome.duration_ms, outcome.output,
        )

        logger.info("Waiting %ss for service to settle", self.settle_period)
        self._sleep(self.settle_period)

        probe = self.probe.run()
        verdict = self.parser.classify(probe)
        logger.debug(
            "Verification probe exit=%d verdict=%s\n%s",
            probe.exit_code, verdict.value, sanitize_output(probe.raw_text),
        )

        reason = self._failure_reason(outcome, verdict, timeout_seconds)
        return RecoveryResult(outcome=outcome, verdict=verdict, reason=reason)

    # -- internals -------------------------------------------------------------

    def _escalate(self, handle: Any) -> None:
        logger.warning(
            "Restart command still running, sending SIGTERM (pid %s)", getattr(handle, "pid", "?"),
        )
        handle.terminate()
        if handle.wait(self.grace_period) is not None:
            return
        logger.warning("Restart command ignored SIGTERM, sending SIGKILL")
        handle.kill()
        if handle.wait(self.grace_period) is None:
            logger.error("Restart command survived SIGKILL, abandoning it")

    def _failure_reason(
        self,
        outcome: RestartOutcome,
        verdict: HealthVerdict,
        timeout_seconds: int,
    ) -> FailureReason | None:
        if outcome.timed_out:
            logger.error(
                "Restart command hung for more than %ds and was force-terminated (exit %d)",
                timeout_seconds, TIMEOUT_EXIT_CODE,
            )
            return FailureReason.TIMED_OUT
        if not outcome.completed:
            logger.error("Restart command could not be launched: %s", outcome.output)
            return FailureReason.LAUNCH_FAILED
        if outcome.exit_code != 0:
            logger.error("Restart command failed with exit code %s", outcome.exit_code)
            return FailureReason.COMMAND_FAILED
        if not verdict.is_healthy:
            logger.error(
                "Restart command succeeded but service is still down (verdict: %s)", verdict.value,
            )
            return FailureReason.STILL_UNHEALTHY
        return None

    def _elapsed_ms(self, t0: float) -> int:
        return int((self._clock() - t0) * 1000)
