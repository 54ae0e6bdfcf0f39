"""Rotation periods and the arithmetic of their boundaries.

Boundaries are POSIX timestamps (``int``).  The start of a period is found by
breaking an instant down into local calendar fields and subtracting the time
elapsed since the period began.  The start of the next period is found by
over-shooting the current period by a generous amount and normalizing the
result with :func:`start_of_period`, which keeps the computation correct across
DST transitions without any calendar increment logic.
"""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from enum import IntEnum

from ..utils.time import localize, wall_to_instant
from .errors import ConfigurationError

__all__ = [
    "Granularity",
    "PeriodSpec",
    "Delay",
    "FAR_DISTANT_FUTURE",
    "start_of_period",
    "start_of_next_period",
    "period_span",
    "nominal_length",
    "parse_period",
    "parse_delay",
    "validate_period",
    "validate_delay",
]

logger = logging.getLogger(__name__)

SECS_PER_MIN = 60
SECS_PER_HOUR = 60 * SECS_PER_MIN
SECS_PER_DAY = 24 * SECS_PER_HOUR
SECS_PER_WEEK = 7 * SECS_PER_DAY

# Slack added when over-shooting a period: leap seconds for sub-day periods,
# plus a DST shift for day-scale periods.
LEAP_SECOND_ALLOWANCE = 2
DST_ALLOWANCE = 3 * SECS_PER_HOUR + LEAP_SECOND_ALLOWANCE

# When the log file is never rotated this is when it would be closed.
FAR_DISTANT_FUTURE = sys.maxsize


class Granularity(IntEnum):
    """Rotation units, ordered from finest to coarsest."""

    SECOND = 0
    MINUTE = 1
    HOUR = 2
    DAY = 3
    WEEK = 4
    MONTH = 5
    YEAR = 6
    ONCE_ONLY = 7
    UNSPECIFIED = 8

    @property
    def label(self) -> str:
        if self is Granularity.ONCE_ONLY:
            return "aeon"
        return self.name.lower()

    @property
    def rotates(self) -> bool:
        return self <= Granularity.YEAR


@dataclass(frozen=True, slots=True)
class PeriodSpec:
    """A rotation period: ``multiplier`` units of ``granularity``."""

    granularity: Granularity
    multiplier: int = 1
    weeks_start_on_monday: bool = False

    def describe(self) -> str:
        if not self.granularity.rotates:
            return self.granularity.label
        unit = self.granularity.label
        if self.multiplier == 1:
            return unit
        return f"{self.multiplier} {unit}s"


@dataclass(frozen=True, slots=True)
class Delay:
    """Offset applied to every period boundary."""

    granularity: Granularity
    amount: int

    @property
    def seconds(self) -> int:
        return self.amount * _UNIT_SECONDS[self.granularity]


_UNIT_SECONDS = {
    Granularity.SECOND: 1,
    Granularity.MINUTE: SECS_PER_MIN,
    Granularity.HOUR: SECS_PER_HOUR,
    Granularity.DAY: SECS_PER_DAY,
    Granularity.WEEK: SECS_PER_WEEK,
}

# Upper bound for the length of one period of each unit.
_SPAN_SECONDS = {
    Granularity.SECOND: 1,
    Granularity.MINUTE: SECS_PER_MIN,
    Granularity.HOUR: SECS_PER_HOUR,
    Granularity.DAY: SECS_PER_DAY,
    Granularity.WEEK: SECS_PER_WEEK,
    Granularity.MONTH: 31 * SECS_PER_DAY,
    Granularity.YEAR: 366 * SECS_PER_DAY,
}

# Lower bound for the length of one period of each unit.
_NOMINAL_SECONDS = {
    **_SPAN_SECONDS,
    Granularity.MONTH: 28 * SECS_PER_DAY,
    Granularity.YEAR: 365 * SECS_PER_DAY,
}

# Multipliers must divide the cycle the unit repeats in...
_CYCLES = {
    Granularity.SECOND: 60,
    Granularity.MINUTE: 60,
    Granularity.HOUR: 24,
    Granularity.MONTH: 12,
}

# ...or stay within these limits where periods are anchored to their first start.
_LIMITS = {
    Granularity.DAY: 365,
    Granularity.WEEK: 52,
    Granularity.YEAR: 100,
}

_UNIT_NAMES = {
    "s": Granularity.SECOND,
    "sec": Granularity.SECOND,
    "secs": Granularity.SECOND,
    "second": Granularity.SECOND,
    "seconds": Granularity.SECOND,
    "m": Granularity.MINUTE,
    "min": Granularity.MINUTE,
    "mins": Granularity.MINUTE,
    "minute": Granularity.MINUTE,
    "minutes": Granularity.MINUTE,
    "h": Granularity.HOUR,
    "hr": Granularity.HOUR,
    "hrs": Granularity.HOUR,
    "hour": Granularity.HOUR,
    "hours": Granularity.HOUR,
    "d": Granularity.DAY,
    "day": Granularity.DAY,
    "days": Granularity.DAY,
    "w": Granularity.WEEK,
    "wk": Granularity.WEEK,
    "week": Granularity.WEEK,
    "weeks": Granularity.WEEK,
    "mon": Granularity.MONTH,
    "month": Granularity.MONTH,
    "months": Granularity.MONTH,
    "y": Granularity.YEAR,
    "yr": Granularity.YEAR,
    "year": Granularity.YEAR,
    "years": Granularity.YEAR,
}

_TIMESPEC = re.compile(r"^\s*([+-]?\d+)?\s*([A-Za-z]+)\s*$")


def _seconds_into_day(fields: datetime) -> int:
    return fields.hour * SECS_PER_HOUR + fields.minute * SECS_PER_MIN + fields.second


def _first_day(fields: datetime, spec: PeriodSpec) -> date:
    day = fields.date()
    if spec.granularity == Granularity.YEAR:
        return day.replace(month=1, day=1)
    if spec.granularity == Granularity.MONTH:
        month = fields.month - (fields.month - 1) % spec.multiplier
        return day.replace(month=month, day=1)
    if spec.granularity == Granularity.WEEK:
        if spec.weeks_start_on_monday:
            weekday = fields.weekday()
        else:
            weekday = (fields.weekday() + 1) % 7
        return day - timedelta(days=weekday)
    return day


def _start_of_calendar_period(instant: int, fields: datetime, spec: PeriodSpec, tz: tzinfo | None) -> int:
    first = _first_day(fields, spec)
    start = instant - ((fields.date() - first).days * SECS_PER_DAY + _seconds_into_day(fields))

    # A DST transition inside the period leaves the result off local midnight.
    # Move back to midnight; if that lands on the wrong day, midnight did not
    # exist on the boundary date and the first instant of the day is used.
    adjusted = localize(start, tz)
    residual = _seconds_into_day(adjusted)
    if residual:
        adjust = -residual
        if adjusted.date() != first:
            adjust += SECS_PER_DAY
        start += adjust
        logger.debug(
            "Adjusted %s boundary for DST: %s -> %+d seconds",
            spec.granularity.label,
            fields.strftime("%d/%m/%Y %H:%M:%S"),
            adjust,
        )
    return start


def start_of_period(instant: int, spec: PeriodSpec, tz: tzinfo | None = None) -> int:
    """Return the start of the period of ``spec`` containing ``instant``."""

    instant = int(instant)
    granularity = spec.granularity
    if not granularity.rotates:
        return instant

    fields = localize(instant, tz)
    multiplier = spec.multiplier
    if granularity >= Granularity.DAY:
        return _start_of_calendar_period(instant, fields, spec, tz)

    if granularity == Granularity.HOUR:
        start = instant - (fields.minute * SECS_PER_MIN + fields.second)
        if fields.hour % multiplier:
            wall = fields.replace(hour=fields.hour - fields.hour % multiplier, minute=0, second=0, microsecond=0)
            start = wall_to_instant(wall, tz, not_after=instant)
        return start

    if granularity == Granularity.MINUTE:
        return instant - ((fields.minute % multiplier) * SECS_PER_MIN + fields.second)

    return instant - fields.second % multiplier


def period_span(spec: PeriodSpec) -> int:
    """Upper bound, in seconds, of the length of one period."""

    return _SPAN_SECONDS[spec.granularity] * spec.multiplier


def nominal_length(spec: PeriodSpec) -> int | None:
    """Lower bound, in seconds, of the length of one period; ``None`` if it never ends."""

    if not spec.granularity.rotates:
        return None
    return _NOMINAL_SECONDS[spec.granularity] * spec.multiplier


def start_of_next_period(instant: int, spec: PeriodSpec, tz: tzinfo | None = None) -> int:
    """Return the start of the period following the one containing ``instant``."""

    if not spec.granularity.rotates:
        return FAR_DISTANT_FUTURE

    span = period_span(spec)
    if spec.granularity >= Granularity.DAY:
        allowance = DST_ALLOWANCE
    elif spec.granularity > Granularity.SECOND:
        allowance = LEAP_SECOND_ALLOWANCE
    else:
        allowance = 0

    current = start_of_period(instant, spec, tz)
    probe = current + span + allowance
    candidate = start_of_period(probe, spec, tz)
    # A period stretched by a DST fall-back can outlast the span.
    while candidate <= current:
        probe += span
        candidate = start_of_period(probe, spec, tz)
    return candidate


def _parse_timespec(text: str, *, what: str) -> tuple[int, Granularity]:
    match = _TIMESPEC.match(text)
    if match is None:
        raise ConfigurationError(f"Invalid {what} '{text}'")
    count_text, unit_text = match.groups()
    unit = _UNIT_NAMES.get(unit_text.lower())
    if unit is None:
        raise ConfigurationError(f"Unknown unit '{unit_text}' in {what} '{text}'")
    count = int(count_text) if count_text is not None else 1
    return count, unit


def validate_period(spec: PeriodSpec) -> PeriodSpec:
    """Reject multipliers that do not fit the natural cycle of their unit."""

    granularity = spec.granularity
    multiplier = spec.multiplier
    if multiplier < 1:
        raise ConfigurationError(f"Period multiplier must be a positive integer, got {multiplier}")
    if not granularity.rotates:
        if multiplier != 1:
            raise ConfigurationError("A period that never rotates cannot have a multiplier")
        return spec
    cycle = _CYCLES.get(granularity)
    if cycle is not None and cycle % multiplier:
        raise ConfigurationError(
            f"Invalid period '{spec.describe()}': {multiplier} does not divide {cycle}"
        )
    limit = _LIMITS.get(granularity)
    if limit is not None and multiplier > limit:
        raise ConfigurationError(
            f"Invalid period '{spec.describe()}': at most {limit} {granularity.label}s allowed"
        )
    return spec


def parse_period(text: str, *, weeks_start_on_monday: bool = False) -> PeriodSpec:
    """Parse ``"15 minutes"``, ``"2 weeks"``, ``"hour"`` and similar."""

    multiplier, granularity = _parse_timespec(text, what="period")
    spec = PeriodSpec(granularity, multiplier, weeks_start_on_monday)
    return validate_period(spec)


def parse_delay(value: str | int) -> Delay:
    """Parse a rotation delay; bare integers are seconds."""

    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid delay {value!r}")
    if isinstance(value, int):
        return Delay(Granularity.SECOND, value)
    text = str(value).strip()
    if re.fullmatch(r"[+-]?\d+", text):
        return Delay(Granularity.SECOND, int(text))
    amount, granularity = _parse_timespec(text, what="delay")
    if granularity not in _UNIT_SECONDS:
        raise ConfigurationError(f"Delay '{text}' must be expressed in seconds, minutes, hours, days or weeks")
    return Delay(granularity, amount)


def validate_delay(delay: Delay, spec: PeriodSpec) -> Delay:
    """A delay must be finer than the period and shorter than one period."""

    length = nominal_length(spec)
    if length is None:
        return delay
    if delay.granularity > spec.granularity:
        raise ConfigurationError(
            f"Delay unit '{delay.granularity.label}' is coarser than the rotation period '{spec.describe()}'"
        )
    if abs(delay.seconds) >= length:
        raise ConfigurationError(
            f"Delay of {delay.seconds} seconds is not shorter than the rotation period '{spec.describe()}'"
        )
    return delay
