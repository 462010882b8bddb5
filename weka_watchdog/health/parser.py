"""Status parser — turns `weka local ps` output into a health verdict.

Rules are applied in order, first match wins:

1. Non-zero probe exit code → unhealthy.
2. Control bytes are stripped before any matching.
3. Tabular report (a "STATE" header): a data row containing "Running" is
   healthy unless a connectivity-failure marker appears anywhere in the
   output. No "Running" row → unhealthy.
4. Free text: failure keywords → unhealthy, then health keywords →
   healthy, otherwise indeterminate.

Note: the free-text keyword "up" also matches words like "backup". This is
a known weakness of the heuristic and is kept as-is.
"""

from __future__ import annotations

import re

from .models import HealthVerdict, ProbeResult

# Everything below 0x20 except tab/newline/carriage return, plus DEL
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

STATE_HEADER = "STATE"
RUNNING_TOKEN = "Running"

CONNECTIVITY_FAILURE_MARKERS: tuple[str, ...] = ("timed out", "connection failed", "reject reason")
FAILURE_KEYWORDS: tuple[str, ...] = ("not running", "down", "stopped", "failed", "inactive")
HEALTH_KEYWORDS: tuple[str, ...] = ("running", "active", "up", "started")


def sanitize_output(text: str | None) -> str:
    """Remove null and other control bytes that would corrupt line matching."""
    return _CONTROL_CHARS.sub("", text or "")


class StatusParser:
    """Pure classifier over probe output.

    Keyword sets are instance attributes so a deployment can extend them
    without touching the supervisor or orchestrator.
    """

    def __init__(
        self,
        connectivity_markers: tuple[str, ...] = CONNECTIVITY_FAILURE_MARKERS,
        failure_keywords: tuple[str, ...] = FAILURE_KEYWORDS,
        health_keywords: tuple[str, ...] = HEALTH_KEYWORDS,
    ) -> None:
        self.connectivity_markers = tuple(m.lower() for m in connectivity_markers)
        self.failure_keywords = tuple(k.lower() for k in failure_keywords)
        self.health_keywords = tuple(k.lower() for k in health_keywords)

    def classify(self, probe: ProbeResult) -> HealthVerdict:
        if probe.exit_code != 0:
            return HealthVerdict.UNHEALTHY

        text = sanitize_output(probe.raw_text)

        if STATE_HEADER in text:
            return self._classify_table(text)
        return self._classify_free_text(text)

    def _classify_table(self, text: str) -> HealthVerdict:
        rows = [line for line in text.splitlines() if STATE_HEADER not in line]
        if not any(RUNNING_TOKEN in row for row in rows):
            return HealthVerdict.UNHEALTHY

        # Process is up but not serving
        lowered = text.lower()
        if any(marker in lowered for marker in self.connectivity_markers):
            return HealthVerdict.UNHEALTHY
        return HealthVerdict.HEALTHY

    def _classify_free_text(self, text: str) -> HealthVerdict:
        lowered = text.lower()
        if any(word in lowered for word in self.failure_keywords):
            return HealthVerdict.UNHEALTHY
        if any(word in lowered for word in self.health_keywords):
            return HealthVerdict.HEALTHY
        return HealthVerdict.INDETERMINATE


_default_parser = StatusParser()


def classify(probe: ProbeResult) -> HealthVerdict:
    """Classify a probe with the default keyword sets."""
    return _default_parser.classify(probe)
