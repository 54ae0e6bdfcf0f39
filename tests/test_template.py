from __future__ import annotations

import pytest

from cronopipe.core.periods import Granularity
from cronopipe.core.template import analyze_template, infer_granularity


@pytest.mark.parametrize(
    "template,expected",
    [
        ("/logs/%Y/%m/%d/access.log", Granularity.DAY),
        ("/logs/%Y/access.log", Granularity.YEAR),
        ("/logs/%Y-%b.log", Granularity.MONTH),
        ("/logs/%Y/week-%U.log", Granularity.WEEK),
        ("/logs/%F/%H.log", Granularity.HOUR),
        ("/logs/%Y%m%d-%H%M.log", Granularity.MINUTE),
        ("/logs/%T.log", Granularity.SECOND),
        ("/logs/%s.log", Granularity.SECOND),
        ("/logs/%Ey/%OH.log", Granularity.HOUR),
        ("/logs/access.log", Granularity.ONCE_ONLY),
    ],
)
def test_infer_granularity(template: str, expected: Granularity) -> None:
    assert infer_granularity(template) == expected


def test_finest_unit_wins_regardless_of_order() -> None:
    assert infer_granularity("%d/%m/%Y.log") == Granularity.DAY
    assert infer_granularity("%M-%Y.log") == Granularity.MINUTE


def test_literal_percent_and_unknown_conversions_are_ignored() -> None:
    assert infer_granularity("/logs/100%%d.log") == Granularity.ONCE_ONLY
    assert infer_granularity("/logs/%q%Z.log") == Granularity.ONCE_ONLY
    assert infer_granularity("/logs/trailing%") == Granularity.ONCE_ONLY


def test_week_start_convention() -> None:
    assert analyze_template("/logs/%Y-W%W.log").weeks_start_on_monday is True
    assert analyze_template("/logs/%G-W%V.log").weeks_start_on_monday is True
    assert analyze_template("/logs/%Y-W%U.log").weeks_start_on_monday is False
    assert analyze_template("/logs/%U-%W.log").weeks_start_on_monday is True
