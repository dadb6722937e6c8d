"""Bridge from the standard :mod:`logging` module into a :class:`GzLog`."""

from __future__ import annotations

import logging

from .handle import GzLog

DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

_PACKAGE = __name__.rpartition(".")[0]


class GzLogHandler(logging.Handler):
    """Logging handler that writes each record through :meth:`GzLog.write`.

    ``GzLog`` adds its own timestamp, so the default format leaves it out.
    """

    def __init__(self, log: GzLog, *, level: int = logging.NOTSET, close_log: bool = True) -> None:
        super().__init__(level)
        self.log = log
        self.close_log = close_log
        self.setFormatter(logging.Formatter(DEFAULT_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:
        # gzlog's own diagnostics are emitted while the log's lock is held.
        if record.name == _PACKAGE or record.name.startswith(_PACKAGE + "."):
            return
        try:
            self.log.write(self.format(record))
        except Exception:  # noqa: BLE001 - logging must not raise into callers
            self.handleError(record)

    def close(self) -> None:
        try:
            if self.close_log:
                self.log.close()
        finally:
            super().close()


__all__ = ["DEFAULT_FORMAT", "GzLogHandler"]
