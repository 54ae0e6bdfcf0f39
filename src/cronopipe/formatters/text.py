"""Human readable text formatter for diagnostics."""

from __future__ import annotations

import logging
import os

__all__ = ["DebugTextFormatter"]

_DEFAULT_FMT = "%(asctime)s | %(levelname)-5s | %(name)s | %(message)s"
_DEFAULT_FMT_WITH_PID = "%(asctime)s | %(levelname)-5s | %(name)s[%(process)d] | %(message)s"


class DebugTextFormatter(logging.Formatter):
    """Formatter for cronopipe diagnostics.

    Several instances commonly share one debug file, so the process id can be
    included to tell their messages apart.
    """

    def __init__(self, *, show_pid: bool = False, fmt: str | None = None, datefmt: str | None = "%Y-%m-%d %H:%M:%S") -> None:
        final_fmt = fmt or (_DEFAULT_FMT_WITH_PID if show_pid else _DEFAULT_FMT)
        super().__init__(final_fmt, datefmt=datefmt)
        self.show_pid = show_pid

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        if self.show_pid and record.process is None:
            record.process = os.getpid()
        return super().format(record)
