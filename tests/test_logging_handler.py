"""Tests for routing stdlib logging records into a GzLog."""

from __future__ import annotations

import gzip
import logging
from pathlib import Path

from gzlog.handle import open_log
from gzlog.logging_handler import GzLogHandler

RECORD_PREFIX = "2024/03/09 14:05:07 "


def test_handler_writes_formatted_records(tmp_path: Path, fixed_clock) -> None:
    log = open_log(tmp_path, "events", 1000, clock=fixed_clock)
    handler = GzLogHandler(log)
    logger = logging.getLogger("tests.gzlog.handler")
    logger.setLevel(logging.INFO)
    logger.propagate = False
    logger.addHandler(handler)
    try:
        logger.info("service started on port %d", 8080)
        logger.debug("not recorded")
        logger.warning("disk at %d%%", 91)
    finally:
        logger.removeHandler(handler)
        handler.close()

    assert log.ready is False
    lines = (tmp_path / "events.log").read_text(encoding="utf-8").splitlines()
    assert lines == [
        f"{RECORD_PREFIX}[INFO] tests.gzlog.handler: service started on port 8080",
        f"{RECORD_PREFIX}[WARNING] tests.gzlog.handler: disk at 91%",
    ]


def test_handler_rotates_with_log(tmp_path: Path, fixed_clock) -> None:
    log = open_log(tmp_path, "events", 80, clock=fixed_clock)
    handler = GzLogHandler(log, close_log=False)
    logger = logging.getLogger("tests.gzlog.rotation")
    logger.setLevel(logging.INFO)
    logger.propagate = False
    logger.addHandler(handler)
    try:
        for idx in range(6):
            logger.info("event number %d", idx)
    finally:
        logger.removeHandler(handler)
        handler.close()

    assert log.ready is True
    assert log.filename.name != "events.log"
    log.close()
    assert b"event number 0" in gzip.decompress((tmp_path / "events.log.gz").read_bytes())


def test_handler_ignores_records_from_gzlog_itself(tmp_path: Path, fixed_clock) -> None:
    with open_log(tmp_path, "events", 1000, clock=fixed_clock) as log:
        handler = GzLogHandler(log, close_log=False)
        record = logging.LogRecord("gzlog.selector", logging.DEBUG, __file__, 1, "internal", None, None)
        handler.handle(record)
        assert log.size() == 0
