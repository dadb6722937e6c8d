"""Slot selection and gzip archiving for numbered log files.

A logical log ``basename`` inside ``directory`` is stored as a sequence of
slots: ``basename.log``, ``basename.1.log``, ``basename.2.log`` and so on.
Once a slot reaches the size limit it is archived next to itself as
``<slot>.gz`` and writing moves on to the next slot. The plain ``.log`` file
is left in place, and the archive's existence marks the slot as used up.
"""

from __future__ import annotations

import gzip
import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from .errors import InvalidConfigurationError, LogIOError

LOGGER = logging.getLogger(__name__)

LOG_SUFFIX = ".log"
ARCHIVE_SUFFIX = ".gz"
DEFAULT_FILE_MODE = 0o644

PathLike = Union[str, Path]


def validate_max_size(max_size: int) -> int:
    """Return ``max_size`` unchanged or raise if it is not a usable limit."""

    if isinstance(max_size, bool) or not isinstance(max_size, int):
        raise InvalidConfigurationError(f"log size must be an integer, got {max_size!r}")
    if max_size < 0:
        raise InvalidConfigurationError(f"log size must not be negative, got {max_size}")
    return max_size


def validate_basename(basename: str) -> str:
    """Return ``basename`` unchanged or raise if it cannot name a log file."""

    if not isinstance(basename, str) or not basename.strip():
        raise InvalidConfigurationError("log basename must be a non-empty string")
    separators = [sep for sep in (os.sep, os.altsep) if sep]
    if basename in {".", ".."} or any(sep in basename for sep in separators):
        raise InvalidConfigurationError(f"log basename must be a plain file name, got {basename!r}")
    return basename


def slot_name(basename: str, number: int) -> str:
    if number == 0:
        return f"{basename}{LOG_SUFFIX}"
    return f"{basename}.{number}{LOG_SUFFIX}"


def slot_path(directory: PathLike, basename: str, number: int) -> Path:
    """Return the absolute path of slot ``number`` for ``basename``."""

    return Path(directory).resolve() / slot_name(basename, number)


def archive_path(path: PathLike) -> Path:
    path = Path(path)
    return path.with_name(path.name + ARCHIVE_SUFFIX)


def gzip_file(path: PathLike, mode: int = DEFAULT_FILE_MODE) -> Path:
    """Write a gzip copy of ``path`` to ``<path>.gz`` and return the archive path.

    The original file is not modified. The archive is written to a temporary
    sibling first and moved into place with :func:`os.replace`, so an existing
    ``.gz`` is always complete.
    """

    source = Path(path)
    target = archive_path(source)
    try:
        data = source.read_bytes()
    except OSError as exc:
        raise LogIOError(f"Unable to read {source} for archiving: {exc}") from exc

    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=source.parent,
            prefix=".tmp_gzlog_",
            suffix=ARCHIVE_SUFFIX,
        )
    except OSError as exc:
        raise LogIOError(f"Unable to create archive next to {source}: {exc}") from exc
    try:
        with os.fdopen(fd, "wb") as raw:
            with gzip.GzipFile(filename=source.name, mode="wb", fileobj=raw) as handle:
                handle.write(data)
            raw.flush()
            os.fsync(raw.fileno())
        os.chmod(tmp_path, mode & 0o777)
        os.replace(tmp_path, target)
    except OSError as exc:
        raise LogIOError(f"Unable to write archive {target}: {exc}") from exc
    finally:
        if os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError:
                LOGGER.debug("Unable to remove temporary archive: %s", tmp_path)

    LOGGER.debug("Archived %s (%d bytes) to %s", source, len(data), target.name)
    return target


def select_writable_file(
    directory: PathLike,
    basename: str,
    max_size: int,
    mode: int = DEFAULT_FILE_MODE,
) -> Path:
    """Return the first slot that is missing or still under ``max_size``.

    Slots are visited in increasing order. A missing slot is returned straight
    away, even when its archive exists or later slots are present. A full slot
    is archived unless ``<slot>.gz`` already exists, then the scan moves on.
    With ``max_size == 0`` rotation is disabled and ``basename.log`` is always
    returned.

    Archiving during the scan is best effort: a failure is logged as a warning
    and the scan still moves past the full slot.
    """

    validate_max_size(max_size)
    number = 0
    while True:
        candidate = slot_path(directory, basename, number)
        try:
            size = candidate.stat().st_size
        except FileNotFoundError:
            LOGGER.debug("Selected free slot %s", candidate)
            return candidate
        except OSError as exc:
            raise LogIOError(f"Unable to stat {candidate}: {exc}") from exc

        if candidate.name.endswith(ARCHIVE_SUFFIX):
            number += 1
            continue

        if max_size == 0 or size < max_size:
            LOGGER.debug("Selected %s (%d/%d bytes)", candidate, size, max_size)
            return candidate

        if not archive_path(candidate).exists():
            try:
                gzip_file(candidate, mode)
            except LogIOError as exc:
                LOGGER.warning("Skipping full slot %s without archive: %s", candidate, exc)
        number += 1


__all__ = [
    "ARCHIVE_SUFFIX",
    "DEFAULT_FILE_MODE",
    "LOG_SUFFIX",
    "archive_path",
    "gzip_file",
    "select_writable_file",
    "slot_name",
    "slot_path",
    "validate_basename",
    "validate_max_size",
]
