"""Exception hierarchy for cronopipe."""

from __future__ import annotations

__all__ = [
    "ConfigurationError",
    "RotationError",
    "OutputOpenError",
    "PathTooLongError",
    "OutputWriteError",
    "InputReadError",
]


class ConfigurationError(ValueError):
    """Raised when configuration validation fails."""


class RotationError(OSError):
    """Base class for fatal resource errors raised while rotating."""


class OutputOpenError(RotationError):
    """The log file for the current period could not be opened."""


class PathTooLongError(OutputOpenError):
    """The rendered file name exceeds the configured maximum length."""


class OutputWriteError(RotationError):
    """Writing to the currently open log file failed."""


class InputReadError(RotationError):
    """Reading from the input stream failed."""
