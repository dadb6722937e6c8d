"""Exceptions raised by the gzlog package."""

from __future__ import annotations


class GzLogError(RuntimeError):
    """Base class for every error raised by gzlog."""


class InvalidConfigurationError(GzLogError, ValueError):
    """Raised when a log is configured with an unusable size, name or mode."""


class ResourceUnavailableError(GzLogError):
    """Raised when a log directory, file or stream cannot be obtained."""


class LogIOError(GzLogError):
    """Raised when reading, writing, statting or compressing an open log fails."""


__all__ = [
    "GzLogError",
    "InvalidConfigurationError",
    "LogIOError",
    "ResourceUnavailableError",
]
