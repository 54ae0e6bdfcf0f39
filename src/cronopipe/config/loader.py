"""Configuration sources and the order in which they are merged.

Later sources win:

1. built-in defaults
2. ``cronopipe.toml`` / ``cronopipe.yaml`` / ``cronopipe.yml`` in the user config directory
3. the same files in the working directory
4. ``[tool.cronopipe]`` in the working directory's ``pyproject.toml``
5. ``CRONOPIPE__SECTION__KEY`` environment variables
6. explicit overrides (command line options)
"""

from __future__ import annotations

import importlib
import json
import os
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Dict, Iterable, Mapping

from platformdirs import user_config_dir

from ..core.errors import ConfigurationError
from .schema import CronopipeConfig, build_config, default_config

try:  # pragma: no cover
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore[no-redef]

try:  # pragma: no cover
    yaml_module = importlib.import_module("yaml")
except ModuleNotFoundError:  # pragma: no cover
    yaml_module = None

yaml: ModuleType | None = yaml_module

_PARSE_ERRORS: tuple = (OSError, ValueError) + ((yaml.YAMLError,) if yaml is not None else ())

APP_NAME = "cronopipe"
ENV_PREFIX = "CRONOPIPE__"
CONFIG_FILENAMES = (f"{APP_NAME}.toml", f"{APP_NAME}.yaml", f"{APP_NAME}.yml")

Settings = Dict[str, Any]


def _read_toml(path: Path) -> Any:
    with path.open("rb") as fh:
        return tomllib.load(fh)


def _read_yaml(path: Path) -> Any:
    if yaml is None:
        return None
    with path.open("r", encoding="utf-8") as fh:
        return yaml.safe_load(fh)


_READERS: Dict[str, Callable[[Path], Any]] = {
    ".toml": _read_toml,
    ".yaml": _read_yaml,
    ".yml": _read_yaml,
}


def _read_file(path: Path) -> Settings:
    if not path.is_file():
        return {}
    try:
        data = _READERS[path.suffix](path)
    except _PARSE_ERRORS as exc:
        raise ConfigurationError(f"Cannot read configuration file {path}: {exc}") from exc
    if not isinstance(data, Mapping):
        return {}
    return {str(key): value for key, value in data.items()}


def deep_merge(base: Settings, incoming: Mapping[str, Any]) -> Settings:
    """Merge ``incoming`` into ``base`` in place, section by section."""

    for key, value in incoming.items():
        if isinstance(value, Mapping):
            section = base.get(key)
            base[key] = deep_merge(section if isinstance(section, dict) else {}, value)
        else:
            base[key] = value
    return base


def _directory_settings(directory: Path) -> Settings:
    merged: Settings = {}
    for filename in CONFIG_FILENAMES:
        deep_merge(merged, _read_file(directory / filename))
    return merged


def user_settings() -> Settings:
    return _directory_settings(Path(user_config_dir(APP_NAME)))


def local_settings() -> Settings:
    return _directory_settings(Path.cwd())


def pyproject_settings() -> Settings:
    tool = _read_file(Path("pyproject.toml")).get("tool")
    section = tool.get(APP_NAME) if isinstance(tool, Mapping) else None
    if not isinstance(section, Mapping):
        return {}
    return {str(key): value for key, value in section.items()}


def _parse_env_value(raw: str) -> Any:
    """Interpret an environment value: booleans, integers, then JSON lists or tables."""

    value = raw.strip()
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.lstrip("+-").isdigit():
        return int(value)
    if value[:1] in ("[", "{"):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value
    return value


def env_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Collect ``CRONOPIPE__ROTATION__PERIOD=...`` style variables into sections."""

    source = os.environ if environ is None else environ
    settings: Settings = {}
    for name, raw in source.items():
        if not name.startswith(ENV_PREFIX):
            continue
        *sections, key = name[len(ENV_PREFIX) :].lower().split("__")
        target = settings
        for section in sections:
            target = target.setdefault(section, {})
        target[key] = _parse_env_value(raw)
    return settings


def _sources(overrides: Mapping[str, Any]) -> Iterable[Mapping[str, Any]]:
    yield user_settings()
    yield local_settings()
    yield pyproject_settings()
    yield env_settings()
    yield overrides


def merged_settings(overrides: Mapping[str, Any] | None = None) -> Settings:
    settings = default_config()
    for source in _sources(overrides or {}):
        deep_merge(settings, source)
    return settings


def load_configuration(overrides: Mapping[str, Any] | None = None) -> CronopipeConfig:
    """Load configuration from every source and build the typed config."""

    return build_config(merged_settings(overrides))
