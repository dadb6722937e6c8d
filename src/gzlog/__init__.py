"""Size-bounded, self-compressing append logs."""

from .config import DEFAULT_MAX_SIZE, LogConfig, parse_mode, parse_size
from .errors import (
    GzLogError,
    InvalidConfigurationError,
    LogIOError,
    ResourceUnavailableError,
)
from .handle import GzLog, import_stream, open_log
from .logging_handler import GzLogHandler
from .selector import archive_path, gzip_file, select_writable_file, slot_path

__all__ = [
    "DEFAULT_MAX_SIZE",
    "GzLog",
    "GzLogError",
    "GzLogHandler",
    "InvalidConfigurationError",
    "LogConfig",
    "LogIOError",
    "ResourceUnavailableError",
    "archive_path",
    "gzip_file",
    "import_stream",
    "open_log",
    "parse_mode",
    "parse_size",
    "select_writable_file",
    "slot_path",
]
