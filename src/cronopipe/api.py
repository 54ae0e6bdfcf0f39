"""Public API surface for cronopipe."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Dict, List

from .config.loader import load_configuration
from .config.schema import CronopipeConfig
from .core.controller import Clock, build_controller
from .core.manager import LogManager
from .core.periods import start_of_next_period, start_of_period
from .core.pump import copy_stream
from .core.validation import validate_configuration
from .utils.paths import DirectoryMaterializer, render_path
from .utils.time import epoch_now, localize, timestamp
from .version import __version__


@dataclass(slots=True)
class PeriodPreview:
    start: int
    path: Path
    label: str


def configure(overrides: Dict[str, Any] | None = None) -> CronopipeConfig:
    """Load and validate configuration using the provided overrides."""

    config = load_configuration(overrides or {})
    validate_configuration(config)
    return config


def run(
    overrides: Dict[str, Any] | None = None,
    *,
    source: BinaryIO | None = None,
    clock: Clock = epoch_now,
) -> int:
    """Copy ``source`` (standard input by default) into rotated log files.

    Returns the number of bytes copied once the input is exhausted.
    """

    config = configure(overrides)
    stream = source if source is not None else sys.stdin.buffer
    with LogManager() as manager:
        logger = manager.configure(config.logging)
        rotation = config.rotation
        logger.debug("cronopipe version %s", __version__)
        logger.debug("periodicity = %s", rotation.period.describe())
        controller = build_controller(config, clock=clock)
        return copy_stream(stream, controller, buffer_size=config.io.buffer_size)


def preview(
    overrides: Dict[str, Any] | None = None,
    count: int = 10,
    *,
    create_dirs: bool = False,
    clock: Clock = epoch_now,
) -> List[PeriodPreview]:
    """List the next ``count`` periods and the file names they would use."""

    config = configure(overrides)
    rotation = config.rotation
    materializer = DirectoryMaterializer()
    moment = rotation.start_time if rotation.start_time is not None else clock()
    moment = start_of_period(moment, rotation.period, rotation.tz)
    previews: List[PeriodPreview] = []
    for _ in range(count):
        path = render_path(rotation.template, localize(moment, rotation.tz), max_length=rotation.max_path_length)
        if create_dirs:
            materializer.ensure_directories(path)
        previews.append(PeriodPreview(start=moment, path=path, label=timestamp(moment, rotation.tz)))
        if not rotation.period.granularity.rotates:
            break
        moment = start_of_next_period(moment, rotation.period, rotation.tz)
    return previews
