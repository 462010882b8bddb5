"""Entry point — `weka-watchdog` console script, meant to be run from cron."""

from __future__ import annotations

import argparse
import logging
import sys

from weka_watchdog import __version__
from weka_watchdog.config import WatchdogSettings, settings
from weka_watchdog.health.parser import StatusParser
from weka_watchdog.health.probe import StatusProbe
from weka_watchdog.logsink import LogSink
from weka_watchdog.recovery.orchestrator import RecoveryOrchestrator
from weka_watchdog.recovery.supervisor import RestartSupervisor


def build_orchestrator(cfg: WatchdogSettings) -> RecoveryOrchestrator:
    """Wire the components from settings."""
    parser = StatusParser()
    probe = StatusProbe(cfg.status_command, timeout_sec=cfg.probe_timeout)
    supervisor = RestartSupervisor(
        cfg.restart_command,
        probe=probe,
        parser=parser,
        poll_interval=cfg.poll_interval,
        grace_period=cfg.grace_period,
        settle_period=cfg.settle_period,
    )
    sink = LogSink(cfg.log_file, node_name=cfg.node_name, max_bytes=cfg.log_max_bytes)
    return RecoveryOrchestrator(
        probe, supervisor, sink, parser=parser, restart_timeout=cfg.restart_timeout,
    )


def configure_console_logging(level_name: str) -> None:
    # Handler-level filter: the package logger drops to DEBUG while the file sink is open
    level = getattr(logging, level_name.upper(), logging.WARNING)
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        handlers=[handler],
    )


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="weka-watchdog",
        description="Check the local Weka service and restart it if unhealthy",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.parse_args()

    configure_console_logging(settings.log_level)
    sys.exit(build_orchestrator(settings).run())


if __name__ == "__main__":
    main()
