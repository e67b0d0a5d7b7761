from __future__ import annotations

import pytest

from tools.graphite_check.stats import mean, percentile, total


def test_mean_of_values() -> None:
    assert mean([2, 4, 6]) == 4
    assert total([2, 4, 6]) == 12


def test_mean_of_empty_sequence_is_undefined() -> None:
    assert mean([]) is None


@pytest.mark.parametrize(
    "values, expected",
    [
        ([1, 2, 3, 4, 5], 3),
        ([5, 1, 4, 2, 3], 3),
        ([1, 2, 3, 4], 2.5),
    ],
)
def test_median_follows_nist_definition(values, expected) -> None:
    assert percentile(values, 50) == pytest.approx(expected)


def test_percentile_interpolates_between_ranks() -> None:
    # rank = 0.9 * 11 = 9.9 -> 9 + 0.9 * (10 - 9)
    assert percentile(list(range(1, 11)), 90) == pytest.approx(9.9)


def test_percentile_clamps_out_of_range_ranks() -> None:
    assert percentile([10, 20, 30], 10) == 10
    assert percentile([10, 20, 30], 100) == 30
    assert percentile([7], 90) == 7


@pytest.mark.parametrize("percent", [1, 50, 90, 100])
def test_percentile_of_empty_sequence_is_undefined(percent: int) -> None:
    assert percentile([], percent) is None
