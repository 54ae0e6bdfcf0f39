"""Parsing of the start time used to offset the rotation clock."""

from __future__ import annotations

from datetime import datetime, timezone

from .errors import ConfigurationError

__all__ = ["EUROPEAN_DATE_FORMATS", "AMERICAN_DATE_FORMATS", "parse_start_time"]

EUROPEAN_DATE_FORMATS = (
    "%d %b %Y %H:%M:%S",
    "%d %b %Y %H:%M",
    "%d %b %Y",
    "%d-%b-%Y %H:%M:%S",
    "%d-%b-%Y %H:%M",
    "%d-%b-%y %H:%M:%S",
    "%d-%b-%y %H:%M",
    "%d-%b-%Y",
    "%b %d %H:%M:%S %Y",
    "%b %d %Y",
)

AMERICAN_DATE_FORMATS = (
    "%b %d %Y %H:%M:%S",
    "%b %d %Y %H:%M",
    "%b %d %Y",
    "%b-%d-%Y %H:%M:%S",
    "%b-%d-%Y %H:%M",
    "%b-%d-%Y",
    "%b/%d/%Y %H:%M:%S",
    "%b/%d/%Y %H:%M",
    "%b/%d/%Y",
)


def _as_utc(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


def parse_start_time(text: str, *, american: bool = False) -> int:
    """Parse ``text`` into a POSIX timestamp.

    ISO 8601 is always accepted; otherwise the European (day first) or
    American (month first) formats are tried in order.  Times without a zone
    are taken as UTC and a trailing ``GMT`` is allowed.
    """

    cleaned = text.strip()
    if cleaned.endswith("GMT"):
        cleaned = cleaned[:-3].rstrip()
    if not cleaned:
        raise ConfigurationError(f"Invalid start time '{text}'")

    try:
        return _as_utc(datetime.fromisoformat(cleaned))
    except ValueError:
        pass

    formats = AMERICAN_DATE_FORMATS if american else EUROPEAN_DATE_FORMATS
    for fmt in formats:
        try:
            parsed = datetime.strptime(cleaned, fmt)
        except ValueError:
            continue
        return _as_utc(parsed)
    raise ConfigurationError(f"Invalid start time '{text}'")
