"""Logging manager responsible for the diagnostics of one cronopipe run."""

from __future__ import annotations

import logging
from typing import List

from ..config.schema import LoggingConfig
from ..formatters.text import DebugTextFormatter
from ..handlers.debug import STDERR_TARGET, DebugSinkConfig, build_debug_handler, build_stderr_handler
from .levels import TRACE_LEVEL_NUM, ensure_level, register_trace_level

LOGGER_NAME = "cronopipe"


class LogManager:
    """Attach and detach the handlers of the ``cronopipe`` logger.

    One instance is owned by each run; nothing is configured at import time.
    """

    def __init__(self, name: str = LOGGER_NAME) -> None:
        self.name = name
        self._config: LoggingConfig | None = None
        self._handlers: List[logging.Handler] = []

    # ------------------------------------------------------------------
    @property
    def logger(self) -> logging.Logger:
        return logging.getLogger(self.name)

    def configure(self, config: LoggingConfig) -> logging.Logger:
        """Apply the supplied configuration and return the package logger."""

        self._teardown()
        self._config = config
        register_trace_level(config.enable_trace)
        formatter = DebugTextFormatter(datefmt=config.datefmt)

        stderr_level = ensure_level(config.level)
        levels = [stderr_level]
        debug_to_stderr = config.debug_file == STDERR_TARGET
        if not debug_to_stderr:
            self._add(build_stderr_handler(stderr_level), formatter)

        if config.debug_file:
            sink_level = TRACE_LEVEL_NUM if config.enable_trace else logging.DEBUG
            sink = build_debug_handler(DebugSinkConfig(target=config.debug_file, level=sink_level))
            self._add(sink, DebugTextFormatter(show_pid=not debug_to_stderr, datefmt=config.datefmt))
            levels.append(sink_level)

        logger = self.logger
        logger.setLevel(min(levels))
        logger.propagate = False
        return logger

    # ------------------------------------------------------------------
    def shutdown(self) -> None:
        """Flush and close the handlers installed by :meth:`configure`."""

        self._teardown()
        self._config = None

    def __enter__(self) -> "LogManager":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    # ------------------------------------------------------------------
    def _add(self, handler: logging.Handler, formatter: logging.Formatter) -> None:
        handler.setFormatter(formatter)
        self.logger.addHandler(handler)
        self._handlers.append(handler)

    def _teardown(self) -> None:
        logger = self.logger
        for handler in self._handlers:
            logger.removeHandler(handler)
            handler.flush()
            handler.close()
        self._handlers.clear()
