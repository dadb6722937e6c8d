"""Tests for wrapping caller-owned streams."""

from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest

from gzlog.errors import InvalidConfigurationError, ResourceUnavailableError
from gzlog.handle import import_stream

RECORD_PREFIX = "2024/03/09 14:05:07 "


@pytest.mark.parametrize("stream_name", ["stdout", "stderr"])
def test_standard_stream_is_never_rotated(
    stream_name: str, tmp_path: Path, capsys, fixed_clock, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    stream = getattr(sys, stream_name)

    log = import_stream(stream, "ignored", 10, clock=fixed_clock)

    assert log.is_external is True
    assert log.is_standard_stream is True
    assert log.max_size == 0
    assert log.basename == ""
    assert log.filename is None
    for _ in range(5):
        log.write("x" * 50)
    assert log.size() == 0
    assert log.compress_now() is None

    log.close()
    assert log.ready is True
    log.write("still open")

    captured = getattr(capsys.readouterr(), "out" if stream_name == "stdout" else "err")
    assert captured.splitlines()[-1] == f"{RECORD_PREFIX}still open"
    assert list(tmp_path.iterdir()) == []


def test_explicit_standard_stream_flag(fixed_clock) -> None:
    sink = io.StringIO()

    log = import_stream(sink, "app", 100, standard_stream=True, clock=fixed_clock)
    log.write("to the sink")
    log.close()

    assert sink.getvalue() == f"{RECORD_PREFIX}to the sink\n"
    assert log.size() == 0
    assert sink.closed is False


def test_missing_stream_is_rejected() -> None:
    with pytest.raises(ResourceUnavailableError):
        import_stream(None, "app", 100)


def test_closed_stream_is_rejected(tmp_path: Path) -> None:
    handle = open(tmp_path / "closed.log", "ab")
    handle.close()

    with pytest.raises(ResourceUnavailableError):
        import_stream(handle, "app", 100)


def test_negative_size_is_rejected_on_import(tmp_path: Path) -> None:
    with open(tmp_path / "external.log", "ab") as handle:
        with pytest.raises(InvalidConfigurationError):
            import_stream(handle, "app", -1)


def test_stream_without_path_is_rejected() -> None:
    with pytest.raises(ResourceUnavailableError):
        import_stream(io.BytesIO(), "app", 100)


def test_imported_file_records_slot_and_keeps_ownership(tmp_path: Path, fixed_clock) -> None:
    external = tmp_path / "external.txt"
    with open(external, "a+b") as handle:
        log = import_stream(handle, "app", 1000, clock=fixed_clock)

        assert log.is_external is True
        assert log.is_standard_stream is False
        assert log.directory == tmp_path.resolve()
        assert log.filename == (tmp_path / "app.log").resolve()

        log.write("via caller stream")
        assert log.size() == len(f"{RECORD_PREFIX}via caller stream\n")
        log.close()
        assert handle.closed is False

    assert external.read_text(encoding="utf-8") == f"{RECORD_PREFIX}via caller stream\n"
    assert not (tmp_path / "app.log").exists()


def test_imported_file_rotates_into_owned_slot(tmp_path: Path, fixed_clock) -> None:
    external = tmp_path / "external.txt"
    with open(external, "a+b") as handle:
        log = import_stream(handle, "app", 30, clock=fixed_clock)
        log.write("y" * 40)
        log.write("after rotation")

        assert handle.closed is False
        assert log.filename == (tmp_path / "app.log").resolve()
        assert log.read_all_string() == f"{RECORD_PREFIX}after rotation\n"
        log.close()
        assert log.ready is False
        assert handle.closed is False

    assert external.read_text(encoding="utf-8") == f"{RECORD_PREFIX}{'y' * 40}\n"


def test_text_mode_stream_receives_text(tmp_path: Path, fixed_clock) -> None:
    external = tmp_path / "text.log"
    with open(external, "a", encoding="utf-8") as handle:
        log = import_stream(handle, "app", 0, clock=fixed_clock)
        log.write("plain text")

    assert external.read_text(encoding="utf-8") == f"{RECORD_PREFIX}plain text\n"
