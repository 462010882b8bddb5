"""Recovery orchestrator — one watchdog run, from quiet check to exit code.

States:
    QUIET       silent probe; healthy → exit 0 with nothing written to the log
    RECOVERING  open log, diagnose verbosely, restart, verify → exit 0 or 1

Callers must ensure at most one run per node at a time; overlapping runs
share the log file and the service unguarded.
"""

from __future__ import annotations

import logging
from enum import Enum

from rich.console import Console
from rich.markup import escape

from ..health.models import HealthVerdict
from ..health.parser import StatusParser, sanitize_output
from ..health.probe import StatusProbe
from ..logsink import LogSink, LogSinkUnavailable
from .supervisor import DEFAULT_RESTART_TIMEOUT, RestartSupervisor

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1


class RunState(str, Enum):
    QUIET = "quiet"
    RECOVERING = "recovering"


class RecoveryOrchestrator:
    """Top-level control flow. `run()` never raises; it returns an exit code."""

    def __init__(
        self,
        probe: StatusProbe,
        supervisor: RestartSupervisor,
        sink: LogSink,
        parser: StatusParser | None = None,
        restart_timeout: int = DEFAULT_RESTART_TIMEOUT,
        console: Console | None = None,
    ) -> None:
        self.probe = probe
        self.supervisor = supervisor
        self.sink = sink
        self.parser = parser or StatusParser()
        self.restart_timeout = restart_timeout
        self.console = console or Console(stderr=True)
        self.state = RunState.QUIET

    def run(self) -> int:
        self.state = RunState.QUIET
        if self.parser.classify(self.probe.run()).is_healthy:
            return EXIT_OK

        self.state = RunState.RECOVERING
        try:
            self.sink.open()
        except LogSinkUnavailable as e:
            self.console.print(f"[bold red]weka-watchdog: {escape(str(e))}[/bold red]")
            return EXIT_FAILED

        try:
            return self._recover()
        except Exception:
            logger.exception("Unexpected error during recovery")
            return EXIT_FAILED
        finally:
            self.sink.close()

    def _recover(self) -> int:
        logger.warning("Weka service unhealthy, starting recovery")
        self.diagnose()

        result = self.supervisor.recover(self.restart_timeout)
        if result.success:
            logger.info("Recovery succeeded, Weka service is healthy")
            return EXIT_OK

        logger.error(
            "Recovery failed (%s); manual intervention required",
            result.reason.value if result.reason else "unknown",
        )
        return EXIT_FAILED

    def diagnose(self) -> HealthVerdict:
        """Re-probe with full diagnostic logging of the raw output."""
        probe = self.probe.run()
        verdict = self.parser.classify(probe)
        logger.debug(
            "Status probe exit=%d duration=%dms output:\n%s",
            probe.exit_code, probe.duration_ms, sanitize_output(probe.raw_text),
        )
        if probe.exit_code != 0:
            logger.warning("Status command failed with exit code %d", probe.exit_code)
        elif verdict is HealthVerdict.INDETERMINATE:
            logger.warning("Status output matched no known pattern, treating as unhealthy")
        else:
            logger.warning("Status verdict: %s", verdict.value)
        return verdict
