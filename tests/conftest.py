from __future__ import annotations

import logging
import os
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Iterator
from zoneinfo import ZoneInfo

import pytest

from cronopipe.config import loader

UTC = timezone.utc
NEW_YORK = ZoneInfo("America/New_York")


def ts(*fields: int, tz: tzinfo = UTC, fold: int = 0) -> int:
    """POSIX time of the wall-clock ``fields`` in ``tz``."""

    return int(datetime(*fields, tzinfo=tz, fold=fold).timestamp())


class FakeClock:
    def __init__(self, now: int = 0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture(autouse=True)
def isolate_cronopipe(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    user_dir = tmp_path / "user-config"
    monkeypatch.setattr(loader, "user_config_dir", lambda _: str(user_dir))
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    for key in list(os.environ):
        if key.startswith("CRONOPIPE__"):
            monkeypatch.delenv(key)
    yield
    logger = logging.getLogger("cronopipe")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(ts(2024, 5, 15, 10, 30))
