"""The schedule controller owning the log file of the current period."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable

from ..config.schema import CronopipeConfig, LinkConfig, RotationSettings
from ..utils.paths import FILE_MODE, DirectoryMaterializer, refresh_link, render_path
from ..utils.time import epoch_now, localize, timestamp
from .errors import OutputOpenError, OutputWriteError
from .levels import TRACE_LEVEL_NUM
from .periods import FAR_DISTANT_FUTURE, start_of_next_period, start_of_period

__all__ = ["ActiveTarget", "ScheduleController", "build_controller"]

Clock = Callable[[], int]


def _append_opener(path: str, flags: int) -> int:
    return os.open(path, flags, FILE_MODE)


@dataclass(slots=True)
class ActiveTarget:
    """The open log file and the instant its period ends."""

    path: Path
    handle: BinaryIO
    boundary: int


class ScheduleController:
    """Route writes to the log file of the period containing "now".

    At most one file is open.  A write arriving after the current period ended
    closes it and opens the file of the period containing the write; periods
    without writes never get a file.
    """

    def __init__(
        self,
        settings: RotationSettings,
        *,
        links: LinkConfig | None = None,
        materializer: DirectoryMaterializer | None = None,
        clock: Clock = epoch_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings
        self.links = links or LinkConfig()
        self.materializer = materializer or DirectoryMaterializer()
        self.logger = logger or logging.getLogger(__name__)
        self._clock = clock
        self._target: ActiveTarget | None = None
        self._offset = 0
        if settings.start_time is not None:
            self._offset = settings.start_time - clock()
            self.logger.debug("Using offset of %d seconds from real time", self._offset)

    # ------------------------------------------------------------------
    @property
    def target(self) -> ActiveTarget | None:
        return self._target

    def current_time(self) -> int:
        return self._clock() + self._offset

    def write(self, chunk: bytes, now: int | None = None) -> None:
        """Write ``chunk`` to the log file of the period containing ``now``."""

        moment = self.current_time() if now is None else now
        target = self.rotate_if_due(moment)
        view = memoryview(chunk)
        try:
            while view:
                written = target.handle.write(view)
                if not written:
                    raise OSError(f"short write to {target.path}")
                view = view[written:]
        except OSError as exc:
            raise OutputWriteError(f"Cannot write to {target.path}: {exc}") from exc
        self.logger.log(
            TRACE_LEVEL_NUM,
            "%s (%d): wrote %d bytes; next period starts at %s (%d) in %d secs",
            timestamp(moment, self.settings.tz),
            moment,
            len(chunk),
            self._describe_boundary(target.boundary),
            target.boundary,
            target.boundary - moment,
        )

    def rotate_if_due(self, now: int) -> ActiveTarget:
        """Close the current file if its period ended and make sure one is open."""

        if self._target is not None and now >= self._target.boundary:
            self.logger.debug("Period of %s ended", self._target.path)
            self._close_target()
        if self._target is None:
            self._target = self._open_target(now)
        return self._target

    def close(self) -> None:
        self._close_target()

    def __enter__(self) -> "ScheduleController":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    def _describe_boundary(self, boundary: int) -> str:
        if boundary >= FAR_DISTANT_FUTURE:
            return "the end of time"
        return timestamp(boundary, self.settings.tz)

    def _open_target(self, now: int) -> ActiveTarget:
        settings = self.settings
        delay = settings.delay_seconds
        start = start_of_period(now - delay, settings.period, settings.tz)
        path = render_path(
            settings.template,
            localize(start, settings.tz),
            max_length=settings.max_path_length,
        )
        boundary = start_of_next_period(start, settings.period, settings.tz)
        if boundary != FAR_DISTANT_FUTURE:
            boundary += delay

        handle = self._open_handle(path)
        self.logger.debug(
            "%s (%d): using log file \"%s\" until %s (%d)",
            timestamp(now, settings.tz),
            now,
            path,
            self._describe_boundary(boundary),
            boundary,
        )
        self._refresh_links(path)
        return ActiveTarget(path=path, handle=handle, boundary=boundary)

    def _open_handle(self, path: Path) -> BinaryIO:
        try:
            try:
                return open(path, "ab", buffering=0, opener=_append_opener)
            except FileNotFoundError:
                self.materializer.ensure_directories(path)
                return open(path, "ab", buffering=0, opener=_append_opener)
        except OSError as exc:
            raise OutputOpenError(f"Cannot open log file {path}: {exc}") from exc

    def _refresh_links(self, path: Path) -> None:
        links = self.links
        if not links.current:
            return
        try:
            refresh_link(path, links.current, links.kind, links.previous)
        except OSError as exc:
            self.logger.warning("Cannot link %s to %s: %s", links.current, path, exc)

    def _close_target(self) -> None:
        target = self._target
        if target is None:
            return
        self._target = None
        try:
            target.handle.close()
        except OSError as exc:
            raise OutputWriteError(f"Cannot close {target.path}: {exc}") from exc


def build_controller(config: CronopipeConfig, *, clock: Clock = epoch_now) -> ScheduleController:
    """Create a controller for a validated configuration."""

    return ScheduleController(config.rotation, links=config.links, clock=clock)
