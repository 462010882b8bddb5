"""Append-only log file with single-generation size rotation.

Records look like::

    [2025-01-01 12:00:00] [WARN] [node-01] Service unhealthy, starting recovery

Before each append, if the file is larger than `max_bytes` it is renamed
to `<path>.old` (replacing any previous `.old`) and writing continues in
a fresh file.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

DEFAULT_MAX_BYTES = 5 * 1024 * 1024
PACKAGE_LOGGER = "weka_watchdog"

_LEVEL_NAMES = {"WARNING": "WARN", "CRITICAL": "ERROR"}


class LogSinkUnavailable(Exception):
    """Raised when the log file cannot be created or opened for append."""


class NodeFormatter(logging.Formatter):
    """`[timestamp] [LEVEL] [node] message` with WARN/ERROR level names."""

    def __init__(self, node_name: str) -> None:
        super().__init__(
            fmt="[%(asctime)s] [%(levelname)s] [%(node)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.node_name = node_name

    def format(self, record: logging.LogRecord) -> str:
        # Copy so console handlers still see the stock level name
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = _LEVEL_NAMES.get(record.levelname, record.levelname)
        record.node = self.node_name
        return super().format(record)


class SizeRotatingFileHandler(RotatingFileHandler):
    """Rotates to a single `.old` file once the current file exceeds max_bytes."""

    def __init__(self, filename: str | Path, max_bytes: int = DEFAULT_MAX_BYTES) -> None:
        super().__init__(filename, mode="a", maxBytes=max_bytes, backupCount=1, encoding="utf-8")

    def shouldRollover(self, record: logging.LogRecord) -> bool:  # noqa: N802
        try:
            return os.path.getsize(self.baseFilename) > self.maxBytes
        except FileNotFoundError:
            return False

    def rotation_filename(self, default_name: str) -> str:
        return self.baseFilename + ".old"


class LogSink:
    """Attaches the rotating file handler to the package logger on demand.

    Nothing touches the filesystem until `open()` is called, so a healthy
    run leaves the log file alone.
    """

    def __init__(
        self,
        path: str | Path,
        node_name: str,
        max_bytes: int = DEFAULT_MAX_BYTES,
        logger_name: str = PACKAGE_LOGGER,
    ) -> None:
        self.path = Path(path)
        self.node_name = node_name
        self.max_bytes = max_bytes
        self.logger_name = logger_name
        self._handler: SizeRotatingFileHandler | None = None
        self._previous_level = logging.NOTSET

    @property
    def is_open(self) -> bool:
        return self._handler is not None

    def open(self) -> logging.Logger:
        """Create the file if needed and start routing package records into it."""
        log = logging.getLogger(self.logger_name)
        if self._handler is not None:
            return log
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            handler = SizeRotatingFileHandler(self.path, max_bytes=self.max_bytes)
        except OSError as e:
            raise LogSinkUnavailable(f"Cannot open log file {self.path}: {e}") from e

        handler.setLevel(logging.DEBUG)
        handler.setFormatter(NodeFormatter(self.node_name))
        self._previous_level = log.level
        log.addHandler(handler)
        log.setLevel(logging.DEBUG)
        self._handler = handler
        return log

    def close(self) -> None:
        if self._handler is None:
            return
        log = logging.getLogger(self.logger_name)
        log.removeHandler(self._handler)
        log.setLevel(self._previous_level)
        self._handler.close()
        self._handler = None
