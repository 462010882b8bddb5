"""Recovery subsystem — bounded restart supervision and the top-level run flow."""

from .command import BoundedCommand
from .orchestrator import RecoveryOrchestrator, RunState
from .supervisor import FailureReason, RecoveryResult, RestartOutcome, RestartSupervisor
