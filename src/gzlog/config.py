"""Configuration helpers for opening gzlog streams."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import InvalidConfigurationError
from .handle import Clock, GzLog, open_log
from .selector import DEFAULT_FILE_MODE, validate_basename, validate_max_size

DEFAULT_MAX_SIZE = 10 * 1024 * 1024

_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*([kmgt]?)(i?b)?\s*$", re.IGNORECASE)
_SIZE_UNITS = {"": 1, "k": 1024, "m": 1024**2, "g": 1024**3, "t": 1024**4}


def parse_size(text: str) -> int:
    """Parse ``"512"``, ``"64K"``, ``"10MB"`` or ``"1GiB"`` into a byte count."""

    match = _SIZE_PATTERN.match(str(text))
    if match is None:
        raise InvalidConfigurationError(f"Invalid size: {text!r}")
    number, unit, _ = match.groups()
    return int(number) * _SIZE_UNITS[unit.lower()]


def parse_mode(text: str) -> int:
    """Parse an octal permission string such as ``"644"`` or ``"0o600"``."""

    value = str(text).strip().lower()
    if value.startswith("0o"):
        value = value[2:]
    try:
        mode = int(value, 8)
    except ValueError as exc:
        raise InvalidConfigurationError(f"Invalid file mode: {text!r}") from exc
    if not 0 <= mode <= 0o777:
        raise InvalidConfigurationError(f"File mode out of range: {text!r}")
    return mode


@dataclass(frozen=True)
class LogConfig:
    """Where a log lives and when it rotates."""

    directory: Path
    basename: str
    max_size: int = DEFAULT_MAX_SIZE
    file_mode: int = DEFAULT_FILE_MODE

    def __post_init__(self) -> None:
        object.__setattr__(self, "directory", Path(self.directory))
        validate_basename(self.basename)
        validate_max_size(self.max_size)
        if not 0 <= self.file_mode <= 0o777:
            raise InvalidConfigurationError(f"File mode out of range: {oct(self.file_mode)}")

    def open(self, *, clock: Optional[Clock] = None) -> GzLog:
        return open_log(
            self.directory,
            self.basename,
            self.max_size,
            self.file_mode,
            clock=clock,
        )


__all__ = ["DEFAULT_MAX_SIZE", "LogConfig", "parse_mode", "parse_size"]
