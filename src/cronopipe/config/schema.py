"""Configuration schema definition for cronopipe."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Any, Dict, Mapping

from ..core.errors import ConfigurationError
from ..core.periods import Delay, Granularity, PeriodSpec, parse_delay, parse_period
from ..core.template import analyze_template
from ..core.timeparse import parse_start_time
from ..utils.paths import MAX_PATH, LinkKind
from ..utils.time import load_time_zone

DEFAULT_CONFIG: Dict[str, Any] = {
    "rotation": {
        "template": None,
        "period": None,
        "delay": None,
        "once_only": False,
        "week_start": None,
        "time_zone": None,
        "start_time": None,
        "american_dates": False,
        "max_path_length": MAX_PATH,
    },
    "links": {
        "current": None,
        "kind": "symlink",
        "previous": None,
    },
    "io": {
        "buffer_size": 65536,
    },
    "logging": {
        "level": "WARNING",
        "debug_file": None,
        "enable_trace": False,
        "datefmt": "%Y-%m-%d %H:%M:%S",
    },
}

_WEEK_STARTS = {"sunday": False, "monday": True}


def default_config() -> Dict[str, Any]:
    """Return a deep copy of the default configuration mapping."""

    return deepcopy(DEFAULT_CONFIG)


@dataclass(slots=True)
class RotationSettings:
    template: str
    period: PeriodSpec
    delay: Delay | None = None
    start_time: int | None = None
    tz: tzinfo | None = None
    max_path_length: int = MAX_PATH

    @property
    def delay_seconds(self) -> int:
        return self.delay.seconds if self.delay is not None else 0


@dataclass(slots=True)
class LinkConfig:
    current: str | None = None
    kind: LinkKind = "symlink"
    previous: str | None = None


@dataclass(slots=True)
class IOConfig:
    buffer_size: int = 65536


@dataclass(slots=True)
class LoggingConfig:
    level: str | int = "WARNING"
    debug_file: str | None = None
    enable_trace: bool = False
    datefmt: str | None = "%Y-%m-%d %H:%M:%S"


@dataclass(slots=True)
class CronopipeConfig:
    rotation: RotationSettings
    links: LinkConfig
    io: IOConfig
    logging: LoggingConfig
    raw: Dict[str, Any] = field(repr=False, default_factory=dict)


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text or None


def _to_period(data: Mapping[str, Any], template: str) -> PeriodSpec:
    analysis = analyze_template(template)
    week_start = data.get("week_start")
    if week_start is None:
        monday = analysis.weeks_start_on_monday
    else:
        key = str(week_start).strip().lower()
        if key not in _WEEK_STARTS:
            raise ConfigurationError(f"Invalid week_start '{week_start}': use 'sunday' or 'monday'")
        monday = _WEEK_STARTS[key]

    if data.get("once_only"):
        return PeriodSpec(Granularity.ONCE_ONLY, 1, monday)
    period = data.get("period")
    if period:
        return parse_period(str(period), weeks_start_on_monday=monday)
    return PeriodSpec(analysis.granularity, 1, monday)


def _to_rotation(data: Mapping[str, Any]) -> RotationSettings:
    template = data.get("template")
    if not template:
        raise ConfigurationError("A log file name template is required")
    template = str(template)

    delay_raw = data.get("delay")
    delay = parse_delay(delay_raw) if delay_raw not in (None, "") else None

    start_raw = data.get("start_time")
    start_time = None
    if start_raw not in (None, ""):
        start_time = parse_start_time(str(start_raw), american=bool(data.get("american_dates", False)))

    try:
        max_path_length = int(data.get("max_path_length", MAX_PATH))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid max_path_length {data.get('max_path_length')!r}") from exc

    return RotationSettings(
        template=template,
        period=_to_period(data, template),
        delay=delay,
        start_time=start_time,
        tz=load_time_zone(_optional_str(data.get("time_zone"))),
        max_path_length=max_path_length,
    )


def _to_links(data: Mapping[str, Any]) -> LinkConfig:
    kind = str(data.get("kind", "symlink")).lower()
    if kind not in {"symlink", "hardlink"}:
        raise ConfigurationError(f"Invalid link kind '{kind}': use 'symlink' or 'hardlink'")
    return LinkConfig(
        current=_optional_str(data.get("current")),
        kind=kind,  # type: ignore[arg-type]
        previous=_optional_str(data.get("previous")),
    )


def _to_io(data: Mapping[str, Any]) -> IOConfig:
    try:
        return IOConfig(buffer_size=int(data.get("buffer_size", 65536)))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid buffer_size {data.get('buffer_size')!r}") from exc


def _to_logging(data: Mapping[str, Any]) -> LoggingConfig:
    return LoggingConfig(
        level=data.get("level", "WARNING"),
        debug_file=_optional_str(data.get("debug_file")),
        enable_trace=bool(data.get("enable_trace", False)),
        datefmt=data.get("datefmt", "%Y-%m-%d %H:%M:%S"),
    )


def build_config(data: Mapping[str, Any]) -> CronopipeConfig:
    rotation = _to_rotation(data.get("rotation", {}))
    links = _to_links(data.get("links", {}))
    io_config = _to_io(data.get("io", {}))
    logging_config = _to_logging(data.get("logging", {}))

    raw_copy: Dict[str, Any] = deepcopy({k: v for k, v in data.items()})

    return CronopipeConfig(
        rotation=rotation,
        links=links,
        io=io_config,
        logging=logging_config,
        raw=raw_copy,
    )
