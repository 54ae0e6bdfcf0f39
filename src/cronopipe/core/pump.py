"""The copy loop between the input stream and the schedule controller."""

from __future__ import annotations

import logging
from typing import BinaryIO

from .controller import ScheduleController
from .errors import InputReadError

__all__ = ["DEFAULT_BUFFER_SIZE", "copy_stream"]

DEFAULT_BUFFER_SIZE = 65536

logger = logging.getLogger(__name__)


def copy_stream(source: BinaryIO, controller: ScheduleController, *, buffer_size: int = DEFAULT_BUFFER_SIZE) -> int:
    """Copy ``source`` to the controller until end of input.

    Each chunk is whatever one read returned, so data reaches the log file as
    soon as the producer writes it.  The open log file is closed at end of
    input.  Returns the number of bytes copied.
    """

    read = getattr(source, "read1", None) or source.read
    total = 0
    with controller:
        while True:
            try:
                chunk = read(buffer_size)
            except OSError as exc:
                raise InputReadError(f"Cannot read input: {exc}") from exc
            if not chunk:
                logger.debug("End of input after %d bytes", total)
                return total
            controller.write(chunk)
            total += len(chunk)
