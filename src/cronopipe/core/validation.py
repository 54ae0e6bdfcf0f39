"""Configuration validation helpers."""

from __future__ import annotations

from ..config.schema import CronopipeConfig
from ..utils.paths import render_path
from ..utils.time import epoch_now, localize
from .errors import ConfigurationError, PathTooLongError
from .periods import validate_delay, validate_period

__all__ = ["ConfigurationError", "validate_configuration"]


def validate_configuration(config: CronopipeConfig) -> None:
    """Ensure the configuration can drive a rotation loop."""

    rotation = config.rotation
    validate_period(rotation.period)
    if rotation.delay is not None:
        validate_delay(rotation.delay, rotation.period)

    if rotation.max_path_length < 1:
        raise ConfigurationError("max_path_length must be positive")
    moment = rotation.start_time if rotation.start_time is not None else epoch_now()
    try:
        render_path(rotation.template, localize(moment, rotation.tz), max_length=rotation.max_path_length)
    except PathTooLongError as exc:
        raise ConfigurationError(str(exc)) from exc

    if config.io.buffer_size < 1:
        raise ConfigurationError("buffer_size must be positive")

    links = config.links
    if links.previous and not links.current:
        raise ConfigurationError("A previous link requires a current link")
    if links.current and links.previous and links.current == links.previous:
        raise ConfigurationError("The current and previous links must differ")
