from __future__ import annotations

import pytest

from conftest import ts
from cronopipe.core.errors import ConfigurationError
from cronopipe.core.timeparse import parse_start_time


@pytest.mark.parametrize(
    "text",
    [
        "12 Mar 2024 10:30:00",
        "12-Mar-2024 10:30:00",
        "12-Mar-24 10:30:00",
        "12 Mar 2024 10:30:00 GMT",
        "2024-03-12T10:30:00",
        "2024-03-12T11:30:00+01:00",
    ],
)
def test_european_and_iso_formats(text: str) -> None:
    assert parse_start_time(text) == ts(2024, 3, 12, 10, 30)


def test_date_only() -> None:
    assert parse_start_time("12 Mar 2024") == ts(2024, 3, 12)


def test_american_formats() -> None:
    assert parse_start_time("Mar 12 2024 10:30", american=True) == ts(2024, 3, 12, 10, 30)
    assert parse_start_time("Mar/12/2024", american=True) == ts(2024, 3, 12)


@pytest.mark.parametrize("text", ["", "yesterday", "Mar 12 2024 10:30"])
def test_invalid_start_time(text: str) -> None:
    with pytest.raises(ConfigurationError):
        parse_start_time(text)
