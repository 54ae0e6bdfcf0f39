"""Handlers for the stderr channel and the debug sink."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass

from ..core.errors import ConfigurationError

__all__ = ["DebugSinkConfig", "build_stderr_handler", "build_debug_handler"]

STDERR_TARGET = "-"


@dataclass(slots=True)
class DebugSinkConfig:
    """Where debug messages go: ``"-"`` for standard error, otherwise a file path."""

    target: str = STDERR_TARGET
    level: int = logging.DEBUG
    encoding: str = "utf-8"


def build_stderr_handler(level: int = logging.WARNING) -> logging.Handler:
    """Construct a :class:`logging.StreamHandler` on standard error."""

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(level)
    return handler


def build_debug_handler(config: DebugSinkConfig | None = None) -> logging.Handler:
    """Construct the handler for ``config``; files are opened for appending."""

    cfg = config or DebugSinkConfig()
    handler: logging.Handler
    if cfg.target == STDERR_TARGET:
        handler = logging.StreamHandler(stream=sys.stderr)
    else:
        try:
            handler = logging.FileHandler(cfg.target, mode="a", encoding=cfg.encoding)
        except OSError as exc:
            raise ConfigurationError(f"Cannot open debug file {cfg.target}: {exc}") from exc
    handler.setLevel(cfg.level)
    return handler
