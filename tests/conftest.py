"""Shared test fixtures — fake clock, fake child process, scripted probe."""

from __future__ import annotations

import logging
from collections.abc import Generator, Sequence

import pytest

from weka_watchdog.health.models import ProbeResult
from weka_watchdog.logsink import PACKAGE_LOGGER

HEALTHY_TABLE = "NAME STATE\nweka Running"
DOWN_TABLE = "NAME STATE\nweka Stopped"


class FakeClock:
    """Monotonic clock that only moves when something sleeps on it."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeCommand:
    """Stands in for BoundedCommand, driven by a FakeClock.

    finish_after: seconds until the child exits on its own (None = hangs).
    dies_on: "term", "kill" or None (survives both signals).
    """

    def __init__(
        self,
        clock: FakeClock,
        finish_after: float | None = 0,
        exit_code: int = 0,
        output: str = "",
        dies_on: str | None = "term",
    ) -> None:
        self.clock = clock
        self.finish_after = finish_after
        self.exit_code = exit_code
        self.output = output
        self.dies_on = dies_on
        self.command: list[str] = []
        self.started = False
        self.terminated = False
        self.killed = False
        self.closed = False
        self.pid = 4242
        self._signal_code: int | None = None
        self._started_at = 0.0

    def __call__(self, command: Sequence[str]) -> FakeCommand:
        # Used as the supervisor's command_factory
        self.command = list(command)
        return self

    def start(self) -> None:
        self.started = True
        self._started_at = self.clock.now

    def poll(self) -> int | None:
        if self._signal_code is not None:
            return self._signal_code
        if self.finish_after is not None and self.clock.now - self._started_at >= self.finish_after:
            return self.exit_code
        return None

    def terminate(self) -> None:
        self.terminated = True
        if self.dies_on == "term":
            self._signal_code = -15

    def kill(self) -> None:
        self.killed = True
        if self.dies_on in ("term", "kill"):
            self._signal_code = -9

    def wait(self, timeout: float) -> int | None:
        code = self.poll()
        if code is None:
            self.clock.sleep(timeout)
        return code

    def read_output(self) -> str:
        return self.output

    def close(self) -> None:
        self.closed = True


class ScriptedProbe:
    """Returns queued ProbeResults in order, repeating the last one."""

    def __init__(self, *results: ProbeResult) -> None:
        self.results = list(results)
        self.calls = 0
        self.call_times: list[float] = []
        self.clock: FakeClock | None = None

    def run(self) -> ProbeResult:
        if self.clock is not None:
            self.call_times.append(self.clock.now)
        idx = min(self.calls, len(self.results) - 1)
        self.calls += 1
        return self.results[idx]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def healthy_probe() -> ProbeResult:
    return ProbeResult(exit_code=0, raw_text=HEALTHY_TABLE)


@pytest.fixture
def unhealthy_probe() -> ProbeResult:
    return ProbeResult(exit_code=0, raw_text=DOWN_TABLE)


@pytest.fixture(autouse=True)
def reset_package_logger() -> Generator[None, None, None]:
    """Detach any file handlers a test left on the package logger."""
    yield
    log = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()
    log.setLevel(logging.NOTSET)
