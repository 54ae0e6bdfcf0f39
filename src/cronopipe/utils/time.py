"""Time utilities for cronopipe."""

from __future__ import annotations

import time
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.errors import ConfigurationError

__all__ = ["epoch_now", "localize", "wall_to_instant", "load_time_zone", "timestamp"]


def epoch_now() -> int:
    """Return the current POSIX time in whole seconds."""

    return int(time.time())


def localize(instant: int, tz: tzinfo | None = None) -> datetime:
    """Return an aware ``datetime`` for ``instant`` in ``tz`` (system local when ``None``)."""

    if tz is not None:
        return datetime.fromtimestamp(instant, tz)
    return datetime.fromtimestamp(instant, timezone.utc).astimezone()


def wall_to_instant(wall: datetime, tz: tzinfo | None, *, not_after: int) -> int:
    """Convert a naive wall-clock time in ``tz`` to a POSIX instant.

    Wall times that are ambiguous (repeated by a DST fall-back) or missing
    (skipped by a spring-forward) have two interpretations, one per ``fold``.
    The latest interpretation that is not after ``not_after`` is returned; for a
    skipped time that is the first instant after the gap.
    """

    naive = wall.replace(tzinfo=None)
    candidates = []
    for fold in (0, 1):
        moment = naive.replace(fold=fold)
        if tz is not None:
            moment = moment.replace(tzinfo=tz)
        candidates.append(int(moment.timestamp()))
    eligible = [candidate for candidate in candidates if candidate <= not_after]
    if eligible:
        return max(eligible)
    return min(candidates)


def load_time_zone(name: str | None) -> tzinfo | None:
    """Resolve an IANA zone name; ``None`` or an empty name selects local time."""

    if not name:
        return None
    if name.upper() in {"UTC", "GMT", "Z"}:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown time zone '{name}'") from exc


def timestamp(instant: int, tz: tzinfo | None = None) -> str:
    """Render ``instant`` for diagnostic messages."""

    return localize(instant, tz).strftime("%Y/%m/%d-%H:%M:%S %Z")
