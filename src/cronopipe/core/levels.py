"""Level names for cronopipe diagnostics.

TRACE sits below DEBUG.  It carries the message logged after every chunk
written, which would drown the ordinary debug output.
"""

from __future__ import annotations

import logging

TRACE_LEVEL_NAME = "TRACE"
TRACE_LEVEL_NUM = 5


def register_trace_level(enable: bool = True) -> None:
    if enable and logging.getLevelName(TRACE_LEVEL_NUM) != TRACE_LEVEL_NAME:
        logging.addLevelName(TRACE_LEVEL_NUM, TRACE_LEVEL_NAME)


def ensure_level(value: int | str) -> int:
    """Turn a level number or a name such as ``"debug"`` or ``"15"`` into a number.

    Unknown names fall back to WARNING, the threshold of the stderr channel.
    """

    if isinstance(value, int):
        return value
    name = value.strip().upper()
    if name == TRACE_LEVEL_NAME:
        return TRACE_LEVEL_NUM
    if name.isdigit():
        return int(name)
    resolved = logging.getLevelName(name)
    if isinstance(resolved, int):
        return resolved
    return logging.WARNING
