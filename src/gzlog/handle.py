"""Log handle bound to one self-rotating, self-compressing log stream."""

from __future__ import annotations

import io
import logging
import os
import stat
import sys
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import IO, Any, Callable, Optional

from .errors import GzLogError, LogIOError, ResourceUnavailableError
from .selector import (
    DEFAULT_FILE_MODE,
    PathLike,
    gzip_file,
    select_writable_file,
    validate_basename,
    validate_max_size,
)

LOGGER = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M:%S"

Clock = Callable[[], datetime]


def _open_append(path: Path, mode: int) -> IO[bytes]:
    return open(path, "a+b", opener=lambda name, flags: os.open(name, flags, mode))


def _prepare_directory(directory: PathLike) -> Path:
    target = Path(directory)
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ResourceUnavailableError(f"Unable to create log directory {target}: {exc}") from exc
    return target.resolve()


def _is_standard_stream(stream: Any) -> bool:
    candidates = (sys.stdout, sys.stderr, sys.__stdout__, sys.__stderr__)
    for candidate in candidates:
        if candidate is None:
            continue
        if stream is candidate or stream is getattr(candidate, "buffer", None):
            return True
    return False


class GzLog:
    """Append timestamped lines to a log that rotates and gzips itself.

    Before each write the current file's size is compared against
    ``max_size``. Once it is reached the file is closed, the next free slot is
    chosen with :func:`~gzlog.selector.select_writable_file` (archiving the
    full one on the way) and writing continues there.

    Handles created by :func:`import_stream` wrap a stream owned by the
    caller. That stream is never closed here. Standard streams additionally
    report a size of 0 and never rotate or archive.

    If a rotation closes the old file but cannot open the next one, the
    handle is left without a file and every later call that needs one raises
    :class:`~gzlog.errors.LogIOError`. Check :attr:`ready` to detect this.
    """

    def __init__(
        self,
        *,
        stream: Optional[IO[Any]],
        filename: Optional[Path],
        directory: Optional[Path],
        basename: str,
        max_size: int,
        external: bool = False,
        standard_stream: bool = False,
        owns_stream: bool = True,
        clock: Optional[Clock] = None,
    ) -> None:
        self._stream = stream
        self._filename = filename
        self._directory = directory
        self._basename = basename
        self._max_size = max_size
        self._external = external
        self._standard_stream = standard_stream
        self._owns_stream = owns_stream
        self._clock = clock or datetime.now
        self._stat: Optional[os.stat_result] = None
        self._lock = Lock()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def filename(self) -> Optional[Path]:
        """Path of the slot currently in use, ``None`` for standard streams."""

        return self._filename

    @property
    def directory(self) -> Optional[Path]:
        return self._directory

    @property
    def basename(self) -> str:
        return self._basename

    @property
    def max_size(self) -> int:
        """Rotation threshold in bytes. ``0`` means the log never rotates."""

        return self._max_size

    @property
    def is_external(self) -> bool:
        return self._external

    @property
    def is_standard_stream(self) -> bool:
        return self._standard_stream

    @property
    def ready(self) -> bool:
        """``False`` once the handle has been closed or a rotation failed."""

        return self._stream is not None

    def size(self) -> int:
        """Return the current file size in bytes, re-reading it from disk."""

        if self._standard_stream:
            return 0
        with self._lock:
            return self._refresh_stat().st_size

    def file_mode(self) -> int:
        """Return the permission bits of the current file (e.g. ``0o644``)."""

        with self._lock:
            return stat.S_IMODE(self._refresh_stat().st_mode)

    def read_all(self) -> bytes:
        """Return the content of the current file from offset 0."""

        with self._lock:
            if self._standard_stream:
                raise LogIOError("Standard streams cannot be read back")
            stream = self._require_stream()
            size = self._refresh_stat().st_size
            try:
                return os.pread(stream.fileno(), size, 0)
            except (OSError, ValueError) as exc:
                raise LogIOError(f"Unable to read {self._describe()}: {exc}") from exc

    def read_all_string(self) -> str:
        return self.read_all().decode("utf-8", errors="replace")

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------
    def write(self, text: str) -> str:
        """Append ``text`` as one timestamped record and return it unchanged.

        Surrounding whitespace is stripped. If nothing is left no record is
        written, although rotation may still have happened.
        """

        with self._lock:
            self._rotate_if_needed()
            line = text.strip()
            if not line:
                return text
            stamp = self._clock().strftime(TIMESTAMP_FORMAT)
            self._append(f"{stamp} {line}\n")
        return text

    def print(self, *args: object) -> str:
        return self.write(" ".join(str(arg) for arg in args))

    def printf(self, fmt: str, *args: object) -> str:
        text = fmt % args if args else fmt
        return self.write(text)

    def println(self, *args: object) -> str:
        return self.write(" ".join(str(arg) for arg in args) + "\n")

    def compress_now(self) -> Optional[Path]:
        """Archive the current file to ``<filename>.gz`` whatever its size.

        Any earlier archive of the same slot is replaced. Returns the archive
        path, or ``None`` for standard streams.
        """

        with self._lock:
            if self._standard_stream:
                return None
            self._require_stream()
            mode = stat.S_IMODE(self._refresh_stat().st_mode)
            return gzip_file(self._filename, mode)

    def close(self) -> None:
        """Close the current file if this handle opened it."""

        with self._lock:
            if self._stream is None or not self._owns_stream:
                return
            stream, self._stream = self._stream, None
            try:
                stream.close()
            except OSError as exc:
                raise LogIOError(f"Unable to close {self._describe()}: {exc}") from exc

    def __enter__(self) -> "GzLog":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"GzLog(filename={self._describe()!r}, max_size={self._max_size}, "
            f"external={self._external}, ready={self.ready})"
        )

    # ------------------------------------------------------------------
    # Internal helpers, called with the lock held
    # ------------------------------------------------------------------
    def _describe(self) -> str:
        if self._filename is not None:
            return str(self._filename)
        return str(getattr(self._stream, "name", "<stream>"))

    def _require_stream(self) -> IO[Any]:
        if self._stream is None:
            raise LogIOError(f"Log handle for {self._describe()} has no open file")
        return self._stream

    def _refresh_stat(self) -> os.stat_result:
        stream = self._require_stream()
        try:
            self._stat = os.fstat(stream.fileno())
        except (OSError, ValueError) as exc:
            raise LogIOError(f"Unable to stat {self._describe()}: {exc}") from exc
        return self._stat

    def _append(self, record: str) -> None:
        stream = self._require_stream()
        try:
            if isinstance(stream, io.TextIOBase):
                stream.write(record)
            else:
                stream.write(record.encode("utf-8"))
            stream.flush()
        except (OSError, ValueError) as exc:
            raise LogIOError(f"Unable to write to {self._describe()}: {exc}") from exc

    def _rotate_if_needed(self) -> None:
        if self._standard_stream or self._max_size == 0:
            self._require_stream()
            return
        current = self._refresh_stat()
        if current.st_size < self._max_size:
            return

        mode = stat.S_IMODE(current.st_mode)
        previous = self._describe()
        stream, self._stream = self._stream, None
        if self._owns_stream:
            try:
                stream.close()
            except OSError as exc:
                raise LogIOError(f"Unable to close {previous}: {exc}") from exc

        filename = select_writable_file(self._directory, self._basename, self._max_size, mode)
        try:
            self._stream = _open_append(filename, mode)
        except OSError as exc:
            raise ResourceUnavailableError(f"Unable to open log file {filename}: {exc}") from exc
        self._filename = filename
        self._owns_stream = True
        self._refresh_stat()
        LOGGER.debug("Rotated %s -> %s", previous, filename.name)


def open_log(
    directory: PathLike,
    basename: str,
    max_size: int,
    file_mode: int = DEFAULT_FILE_MODE,
    *,
    clock: Optional[Clock] = None,
) -> GzLog:
    """Open the log ``basename`` inside ``directory``, creating it as needed.

    Do not include an extension in ``basename``; files are named
    ``basename.log``, ``basename.1.log`` and so on. Full slots found while
    picking the initial file are archived. ``max_size == 0`` disables rotation.
    """

    validate_max_size(max_size)
    validate_basename(basename)
    log_dir = _prepare_directory(directory)
    filename = select_writable_file(log_dir, basename, max_size, file_mode)
    try:
        stream = _open_append(filename, file_mode)
    except OSError as exc:
        raise ResourceUnavailableError(f"Unable to open log file {filename}: {exc}") from exc

    log = GzLog(
        stream=stream,
        filename=filename,
        directory=log_dir,
        basename=basename,
        max_size=max_size,
        clock=clock,
    )
    try:
        log._refresh_stat()
    except GzLogError:
        stream.close()
        raise
    LOGGER.debug("Opened %s (max_size=%d)", filename, max_size)
    return log


def import_stream(
    stream: Optional[IO[Any]],
    basename: str = "",
    max_size: int = 0,
    *,
    standard_stream: Optional[bool] = None,
    clock: Optional[Clock] = None,
) -> GzLog:
    """Wrap an already open ``stream`` owned by the caller.

    ``standard_stream`` marks the stream as process-wide output such as
    ``sys.stdout``; when left as ``None`` it is detected by comparing against
    the ``sys`` streams. Standard streams get ``max_size = 0`` and no
    basename. For any other stream the log directory is the stream's own
    parent directory and slot selection runs once to record the current
    filename; the imported stream keeps receiving writes until a rotation
    replaces it.
    """

    if stream is None:
        raise ResourceUnavailableError("Cannot import a missing stream")
    if getattr(stream, "closed", False):
        raise ResourceUnavailableError("Cannot import a closed stream")
    validate_max_size(max_size)

    if standard_stream is None:
        standard_stream = _is_standard_stream(stream)
    if standard_stream:
        return GzLog(
            stream=stream,
            filename=None,
            directory=None,
            basename="",
            max_size=0,
            external=True,
            standard_stream=True,
            owns_stream=False,
            clock=clock,
        )

    validate_basename(basename)
    name = getattr(stream, "name", None)
    if not isinstance(name, (str, bytes, os.PathLike)):
        raise ResourceUnavailableError(f"Cannot derive a log directory from stream {stream!r}")
    try:
        info = os.fstat(stream.fileno())
    except (OSError, ValueError, AttributeError) as exc:
        raise ResourceUnavailableError(f"Cannot stat imported stream {name!r}: {exc}") from exc

    log_dir = Path(os.fsdecode(name)).resolve().parent
    filename = select_writable_file(log_dir, basename, max_size, stat.S_IMODE(info.st_mode))
    log = GzLog(
        stream=stream,
        filename=filename,
        directory=log_dir,
        basename=basename,
        max_size=max_size,
        external=True,
        owns_stream=False,
        clock=clock,
    )
    log._stat = info
    return log


__all__ = ["GzLog", "TIMESTAMP_FORMAT", "import_stream", "open_log"]
