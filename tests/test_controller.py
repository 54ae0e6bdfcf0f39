from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from conftest import UTC, FakeClock, ts
from cronopipe.config.schema import LinkConfig, RotationSettings
from cronopipe.core.controller import ScheduleController
from cronopipe.core.errors import OutputOpenError, OutputWriteError, PathTooLongError
from cronopipe.core.periods import FAR_DISTANT_FUTURE, Delay, Granularity, PeriodSpec

HOURLY_TEMPLATE = "logs/%Y%m%d-%H.log"


def _settings(template: str = HOURLY_TEMPLATE, granularity: Granularity = Granularity.HOUR, **kwargs) -> RotationSettings:
    return RotationSettings(template=template, period=PeriodSpec(granularity), tz=UTC, **kwargs)


def _log_files() -> list[str]:
    return sorted(path.name for path in Path("logs").iterdir())


def test_first_write_opens_the_file_of_the_current_period(clock: FakeClock) -> None:
    with ScheduleController(_settings(), clock=clock) as controller:
        controller.write(b"hello\n")
        target = controller.target
        assert target is not None
        assert target.boundary == ts(2024, 5, 15, 11)

    assert Path("logs/20240515-10.log").read_bytes() == b"hello\n"
    assert controller.target is None


def test_writes_within_a_period_append(clock: FakeClock) -> None:
    Path("logs").mkdir()
    Path("logs/20240515-10.log").write_bytes(b"earlier\n")

    with ScheduleController(_settings(), clock=clock) as controller:
        controller.write(b"one\n")
        clock.now += 20 * 60
        controller.write(b"two\n")

    assert Path("logs/20240515-10.log").read_bytes() == b"earlier\none\ntwo\n"


def test_idle_periods_get_no_file(clock: FakeClock) -> None:
    with ScheduleController(_settings(), clock=clock) as controller:
        controller.write(b"before\n")
        clock.now += 10 * 3600
        controller.write(b"after\n")

    assert _log_files() == ["20240515-10.log", "20240515-20.log"]
    assert Path("logs/20240515-20.log").read_bytes() == b"after\n"


def test_rotation_happens_exactly_at_the_boundary() -> None:
    controller = ScheduleController(_settings())
    with controller:
        controller.write(b"a", now=ts(2024, 5, 15, 10, 59, 59))
        controller.write(b"b", now=ts(2024, 5, 15, 11))

    assert Path("logs/20240515-10.log").read_bytes() == b"a"
    assert Path("logs/20240515-11.log").read_bytes() == b"b"


def test_delay_shifts_the_switch_but_not_the_name() -> None:
    settings = _settings(delay=Delay(Granularity.SECOND, 300))

    with ScheduleController(settings) as controller:
        controller.write(b"1", now=ts(2024, 5, 15, 10, 30))
        controller.write(b"2", now=ts(2024, 5, 15, 11, 2))
        assert controller.target is not None
        assert controller.target.boundary == ts(2024, 5, 15, 11, 5)
        controller.write(b"3", now=ts(2024, 5, 15, 11, 6))

    assert Path("logs/20240515-10.log").read_bytes() == b"12"
    assert Path("logs/20240515-11.log").read_bytes() == b"3"

    with ScheduleController(settings) as fresh:
        fresh.write(b"4", now=ts(2024, 5, 15, 11, 2))

    assert Path("logs/20240515-10.log").read_bytes() == b"124"


def test_missing_directories_are_created(clock: FakeClock) -> None:
    settings = _settings(template="archive/%Y/%m/%d/%H.log")
    with ScheduleController(settings, clock=clock) as controller:
        controller.write(b"x")

    assert Path("archive/2024/05/15/10.log").read_bytes() == b"x"


def test_symlinks_follow_the_current_and_previous_files(clock: FakeClock) -> None:
    links = LinkConfig(current="current.log", previous="previous.log")
    with ScheduleController(_settings(), links=links, clock=clock) as controller:
        controller.write(b"x")
        assert os.readlink("current.log") == str(Path("logs/20240515-10.log"))
        assert not os.path.lexists("previous.log")

        clock.now += 3600
        controller.write(b"y")

    assert os.readlink("current.log") == str(Path("logs/20240515-11.log"))
    assert os.readlink("previous.log") == str(Path("logs/20240515-10.log"))
    assert Path("current.log").read_bytes() == b"y"


def test_hardlink_to_the_current_file(clock: FakeClock) -> None:
    links = LinkConfig(current="current.log", kind="hardlink")
    with ScheduleController(_settings(), links=links, clock=clock) as controller:
        controller.write(b"x")

    assert os.path.samefile("current.log", "logs/20240515-10.log")
    assert not Path("current.log").is_symlink()


def test_link_failure_is_only_a_warning(clock: FakeClock, caplog: pytest.LogCaptureFixture) -> None:
    links = LinkConfig(current="missing/current.log")
    with caplog.at_level(logging.WARNING):
        with ScheduleController(_settings(), links=links, clock=clock) as controller:
            controller.write(b"x")

    assert Path("logs/20240515-10.log").read_bytes() == b"x"
    assert "Cannot link" in caplog.text


def test_open_failure(clock: FakeClock) -> None:
    Path("blocker").write_text("not a directory")
    settings = _settings(template="blocker/%H.log")

    with pytest.raises(OutputOpenError):
        ScheduleController(settings, clock=clock).write(b"x")


class BrokenHandle:
    def write(self, data: memoryview) -> int:
        raise OSError(28, "No space left on device")

    def close(self) -> None:
        pass


def test_write_failure(clock: FakeClock) -> None:
    controller = ScheduleController(_settings(), clock=clock)
    controller.write(b"x")
    target = controller.target
    assert target is not None
    target.handle.close()
    target.handle = BrokenHandle()  # type: ignore[assignment]

    with pytest.raises(OutputWriteError):
        controller.write(b"y")
    controller.close()


def test_once_only_keeps_one_file(clock: FakeClock) -> None:
    settings = _settings(template="once.log", granularity=Granularity.ONCE_ONLY)
    with ScheduleController(settings, clock=clock) as controller:
        controller.write(b"a")
        assert controller.target is not None
        assert controller.target.boundary == FAR_DISTANT_FUTURE
        clock.now += 10 * 365 * 86400
        controller.write(b"b")

    assert Path("once.log").read_bytes() == b"ab"


def test_start_time_offsets_the_clock(clock: FakeClock) -> None:
    settings = _settings(start_time=ts(2001, 2, 3, 4, 5))
    with ScheduleController(settings, clock=clock) as controller:
        assert controller.current_time() == ts(2001, 2, 3, 4, 5)
        controller.write(b"a")
        clock.now += 3600
        assert controller.current_time() == ts(2001, 2, 3, 5, 5)
        controller.write(b"b")

    assert _log_files() == ["20010203-04.log", "20010203-05.log"]


def test_path_too_long(clock: FakeClock) -> None:
    settings = _settings(max_path_length=8)
    with pytest.raises(PathTooLongError):
        ScheduleController(settings, clock=clock).write(b"x")
