"""Probe and verdict models shared by the parser, supervisor and orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class HealthVerdict(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    INDETERMINATE = "indeterminate"

    @property
    def is_healthy(self) -> bool:
        # Indeterminate never counts as healthy
        return self is HealthVerdict.HEALTHY


@dataclass(frozen=True)
class ProbeResult:
    """Captured output of one status-command invocation."""

    exit_code: int
    raw_text: str = ""
    duration_ms: int = 0
