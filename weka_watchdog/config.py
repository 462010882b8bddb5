"""Watchdog configuration — defaults are the fixed operating constants.

Values can be overridden from the environment (WEKA_WATCHDOG_*) or a .env
file. Components never read settings themselves; `main` passes them in.
"""

from __future__ import annotations

import socket

from pydantic import Field
from pydantic_settings import BaseSettings


class WatchdogSettings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {
        "env_prefix": "WEKA_WATCHDOG_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    # Weka CLI
    weka_cli_path: str = "weka"
    status_args: list[str] = ["local", "ps"]
    restart_args: list[str] = ["local", "restart"]

    # Timing (seconds)
    probe_timeout: int = 30
    restart_timeout: int = 60
    poll_interval: float = 2
    grace_period: float = 3
    settle_period: float = 20  # restart may return before the service serves

    # Log file
    log_file: str = "/var/log/weka_watchdog.log"
    log_max_bytes: int = 5 * 1024 * 1024
    node_name: str = Field(default_factory=socket.gethostname)

    # Console logging (stderr)
    log_level: str = "WARNING"

    @property
    def status_command(self) -> list[str]:
        return [self.weka_cli_path, *self.status_args]

    @property
    def restart_command(self) -> list[str]:
        return [self.weka_cli_path, *self.restart_args]


settings = WatchdogSettings()
