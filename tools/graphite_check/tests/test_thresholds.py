from __future__ import annotations

import pytest

from tools.graphite_check.thresholds import (
    ESCALATION_ORDER,
    Severity,
    ThresholdLevels,
    ThresholdParseError,
    evaluate_thresholds,
    format_number,
)


def test_value_above_cap_breaches_warning() -> None:
    breaches = evaluate_thresholds(15, ThresholdLevels(warning=10))
    assert [breach.severity for breach in breaches] == [Severity.WARNING]
    assert breaches[0].message == "15 is greater than 10"


def test_greater_than_flips_direction_and_wording() -> None:
    assert evaluate_thresholds(15, ThresholdLevels(warning=10), greater_than=True) == []

    breaches = evaluate_thresholds(5, ThresholdLevels(warning=10), greater_than=True)
    assert [breach.severity for breach in breaches] == [Severity.WARNING]
    assert "less" in breaches[0].message
    assert breaches[0].message == "5 is less than 10"


def test_breaches_are_reported_in_escalation_order() -> None:
    levels = ThresholdLevels(warning=10, error=20, fatal=30)
    breaches = evaluate_thresholds(35, levels)
    assert [breach.severity for breach in breaches] == [Severity.FATAL, Severity.ERROR, Severity.WARNING]
    assert [breach.threshold for breach in breaches] == [30, 20, 10]


def test_short_circuit_stops_after_first_breach() -> None:
    levels = ThresholdLevels(warning=10, error=20, fatal=30)
    breaches = evaluate_thresholds(25, levels, short_circuit=True)
    assert [breach.severity for breach in breaches] == [Severity.ERROR]


def test_unconfigured_severities_are_skipped() -> None:
    breaches = evaluate_thresholds(100, ThresholdLevels(error=50))
    assert [breach.severity for breach in breaches] == [Severity.ERROR]


def test_undefined_measurement_never_breaches() -> None:
    assert evaluate_thresholds(None, ThresholdLevels(warning=0, error=0, fatal=0)) == []


def test_unit_is_rendered_on_both_sides() -> None:
    breaches = evaluate_thresholds(150.5, ThresholdLevels(warning=120), unit="%")
    assert breaches[0].message == "150.5% is greater than 120%"


def test_escalation_order_is_fatal_error_warning() -> None:
    assert ESCALATION_ORDER == (Severity.FATAL, Severity.ERROR, Severity.WARNING)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("10", ThresholdLevels(warning=10)),
        ("10,20,30", ThresholdLevels(warning=10, error=20, fatal=30)),
        (",20", ThresholdLevels(error=20)),
        (",,0.5", ThresholdLevels(fatal=0.5)),
        (" 1 , , 3 ", ThresholdLevels(warning=1, fatal=3)),
    ],
)
def test_parse_threshold_strings(raw: str, expected: ThresholdLevels) -> None:
    assert ThresholdLevels.parse(raw) == expected


@pytest.mark.parametrize("raw", ["1,2,3,4", "ten", "1,x"])
def test_parse_rejects_malformed_threshold_strings(raw: str) -> None:
    with pytest.raises(ThresholdParseError):
        ThresholdLevels.parse(raw)


def test_empty_levels() -> None:
    assert ThresholdLevels.parse(",,").is_empty()
    assert list(ThresholdLevels(warning=1, fatal=3).configured()) == [(Severity.FATAL, 3), (Severity.WARNING, 1)]


def test_format_number() -> None:
    assert format_number(7.0) == "7"
    assert format_number(2.5) == "2.5"
    assert format_number(1 / 3) == "0.3333"
