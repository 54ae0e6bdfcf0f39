"""Infer the rotation period implied by a file name template."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .periods import Granularity

__all__ = ["TemplateAnalysis", "analyze_template", "infer_granularity"]

logger = logging.getLogger(__name__)

_CONVERSIONS = {
    **dict.fromkeys("yYCGg", Granularity.YEAR),
    **dict.fromkeys("bhBm", Granularity.MONTH),
    **dict.fromkeys("UWV", Granularity.WEEK),
    **dict.fromkeys("aAdejwuDxF", Granularity.DAY),
    **dict.fromkeys("HIklpP", Granularity.HOUR),
    "M": Granularity.MINUTE,
    **dict.fromkeys("SscTrR", Granularity.SECOND),
}

# Week numbers where weeks start on a Monday; %U counts from Sunday.
_MONDAY_WEEKS = frozenset("WV")


@dataclass(frozen=True, slots=True)
class TemplateAnalysis:
    granularity: Granularity
    weeks_start_on_monday: bool = False


def analyze_template(template: str) -> TemplateAnalysis:
    """Scan ``template`` for strftime conversions.

    The finest unit referenced wins; a template without any date or time
    conversion is never rotated.  Unknown conversions are passed through to
    strftime untouched and ignored here.
    """

    granularity = Granularity.ONCE_ONLY
    weeks_start_on_monday = False
    index = 0
    length = len(template)
    while index < length:
        if template[index] != "%":
            index += 1
            continue
        index += 1
        # Skip E and O modifiers (%Ey, %OH).
        while index < length and template[index] in "EO":
            index += 1
        if index >= length:
            break
        conversion = template[index]
        index += 1

        implied = _CONVERSIONS.get(conversion)
        if implied is None:
            logger.debug("ignoring %%%s", conversion)
            continue
        if implied == Granularity.WEEK:
            weeks_start_on_monday = conversion in _MONDAY_WEEKS
        if implied < granularity:
            logger.debug("%%%s -> %s", conversion, implied.label)
            granularity = implied
    return TemplateAnalysis(granularity, weeks_start_on_monday)


def infer_granularity(template: str) -> Granularity:
    """Return the rotation granularity implied by ``template``."""

    return analyze_template(template).granularity
