"""Tests for the log sink — record layout, lazy creation, single-generation rotation."""

from __future__ import annotations

import logging
import re
from pathlib import Path

import pytest

from weka_watchdog.logsink import (
    DEFAULT_MAX_BYTES,
    PACKAGE_LOGGER,
    LogSink,
    LogSinkUnavailable,
    NodeFormatter,
)

log = logging.getLogger(f"{PACKAGE_LOGGER}.tests")

RECORD_RE = re.compile(r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] \[(\w+)\] \[node-7\] (.*)$")


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    return tmp_path / "logs" / "weka_watchdog.log"


def _lines(path: Path) -> list[str]:
    return path.read_text(encoding="utf-8").splitlines()


# ── Lifecycle ────────────────────────────────────────────────────────────────


class TestLifecycle:
    def test_nothing_written_before_open(self, log_path: Path) -> None:
        sink = LogSink(log_path, node_name="node-7")
        log.warning("should go nowhere")
        assert not sink.is_open
        assert not log_path.exists()

    def test_open_creates_file_and_parents(self, log_path: Path) -> None:
        sink = LogSink(log_path, node_name="node-7")
        sink.open()
        try:
            assert log_path.exists()
            assert sink.is_open
        finally:
            sink.close()

    def test_open_twice_adds_one_handler(self, log_path: Path) -> None:
        sink = LogSink(log_path, node_name="node-7")
        sink.open()
        sink.open()
        log.info("once")
        sink.close()
        assert len(_lines(log_path)) == 1

    def test_close_detaches(self, log_path: Path) -> None:
        sink = LogSink(log_path, node_name="node-7")
        sink.open()
        log.info("inside")
        sink.close()
        log.warning("outside")
        assert len(_lines(log_path)) == 1
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.NOTSET

    def test_unavailable_when_parent_is_a_file(self, tmp_path: Path) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        sink = LogSink(blocker / "weka_watchdog.log", node_name="node-7")
        with pytest.raises(LogSinkUnavailable):
            sink.open()
        assert not sink.is_open


# ── Record format ────────────────────────────────────────────────────────────


class TestRecordFormat:
    def test_layout_and_level_names(self, log_path: Path) -> None:
        sink = LogSink(log_path, node_name="node-7")
        sink.open()
        log.debug("raw probe output")
        log.info("recovered")
        log.warning("unhealthy")
        log.error("restart failed")
        log.critical("very bad")
        sink.close()

        parsed = [RECORD_RE.match(line) for line in _lines(log_path)]
        assert all(parsed)
        assert [m.group(1) for m in parsed] == ["DEBUG", "INFO", "WARN", "ERROR", "ERROR"]
        assert parsed[2].group(2) == "unhealthy"

    def test_formatter_leaves_record_untouched(self) -> None:
        record = logging.makeLogRecord({"msg": "x", "levelname": "WARNING", "levelno": logging.WARNING})
        assert "[WARN]" in NodeFormatter("n").format(record)
        assert record.levelname == "WARNING"

    def test_appends_to_existing_file(self, log_path: Path) -> None:
        log_path.parent.mkdir(parents=True)
        log_path.write_text("previous line\n", encoding="utf-8")
        sink = LogSink(log_path, node_name="node-7")
        sink.open()
        log.info("new line")
        sink.close()
        lines = _lines(log_path)
        assert lines[0] == "previous line"
        assert lines[1].endswith("new line")


# ── Rotation ─────────────────────────────────────────────────────────────────


class TestRotation:
    def test_rotates_once_over_threshold(self, log_path: Path) -> None:
        log_path.parent.mkdir(parents=True)
        log_path.write_bytes(b"x" * 101)
        old = Path(str(log_path) + ".old")

        sink = LogSink(log_path, node_name="node-7", max_bytes=100)
        sink.open()
        log.warning("triggering record")
        log.info("second record")
        sink.close()

        assert old.read_bytes() == b"x" * 101
        lines = _lines(log_path)
        assert len(lines) == 2
        assert lines[0].endswith("triggering record")

    def test_no_rotation_at_exact_threshold(self, log_path: Path) -> None:
        log_path.parent.mkdir(parents=True)
        log_path.write_bytes(b"x" * 100)

        sink = LogSink(log_path, node_name="node-7", max_bytes=100)
        sink.open()
        log.info("fits")
        sink.close()

        assert not Path(str(log_path) + ".old").exists()

    def test_overwrites_previous_old_file(self, log_path: Path) -> None:
        log_path.parent.mkdir(parents=True)
        old = Path(str(log_path) + ".old")
        old.write_text("ancient history")
        log_path.write_bytes(b"y" * 200)

        sink = LogSink(log_path, node_name="node-7", max_bytes=100)
        sink.open()
        log.info("fresh")
        sink.close()

        assert old.read_bytes() == b"y" * 200
        assert not list(log_path.parent.glob("*.old.*"))

    def test_default_threshold_is_five_mib(self, log_path: Path) -> None:
        assert DEFAULT_MAX_BYTES == 5 * 1024 * 1024
        log_path.parent.mkdir(parents=True)
        log_path.write_bytes(b"z" * (DEFAULT_MAX_BYTES + 1))

        sink = LogSink(log_path, node_name="node-7")
        sink.open()
        log.warning("after rotation")
        sink.close()

        assert Path(str(log_path) + ".old").stat().st_size == DEFAULT_MAX_BYTES + 1
        assert log_path.stat().st_size < 200
