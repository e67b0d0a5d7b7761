"""Series evaluators for the graphite check.

Each evaluator turns the series returned for one target into messages in the
four result buckets. The aggregation differs per check; the threshold handling
is shared through :func:`_apply_thresholds`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from tools.graphite_check.errors import EmptyResultError
from tools.graphite_check.series import Series
from tools.graphite_check.settings import DebugFn, RunConfig, no_debug
from tools.graphite_check.stats import mean, percentile
from tools.graphite_check.thresholds import Severity, ThresholdLevels, evaluate_thresholds, format_number


@dataclass
class CheckResult:
    warnings: List[str] = field(default_factory=list)
    criticals: List[str] = field(default_factory=list)
    fatals: List[str] = field(default_factory=list)
    oks: List[str] = field(default_factory=list)

    def add(self, severity: Severity, message: str) -> None:
        if severity is Severity.FATAL:
            self.fatals.append(message)
        elif severity is Severity.ERROR:
            self.criticals.append(message)
        else:
            self.warnings.append(message)

    def extend(self, other: "CheckResult") -> None:
        self.warnings.extend(other.warnings)
        self.criticals.extend(other.criticals)
        self.fatals.extend(other.fatals)
        self.oks.extend(other.oks)

    def counts(self) -> Dict[str, int]:
        return {
            "warning": len(self.warnings),
            "critical": len(self.criticals),
            "fatal": len(self.fatals),
            "ok": len(self.oks),
        }


@dataclass(frozen=True)
class EvaluationContext:
    config: RunConfig
    now: float
    debug: DebugFn = no_debug


@dataclass(frozen=True)
class Measurement:
    label: str
    value: Optional[float]
    unit: str = ""


def _ordinal(number: int) -> str:
    if 10 <= number % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")
    return f"{number}{suffix}"


def _ratio_percent(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    if numerator is None or denominator is None or denominator == 0:
        return None
    return 100.0 * numerator / denominator


def _require_series(target: str, series_list: Sequence[Series], check: str) -> None:
    if not series_list:
        raise EmptyResultError(target, check)


def _apply_thresholds(
    result: CheckResult,
    series: Series,
    measurement: Measurement,
    levels: ThresholdLevels,
    config: RunConfig,
) -> None:
    subject = f"{series.name} {measurement.label}"
    if measurement.value is None:
        result.oks.append(f"{subject} has no data")
        return
    breaches = evaluate_thresholds(
        measurement.value,
        levels,
        greater_than=config.greater_than,
        short_circuit=config.short_output,
        unit=measurement.unit,
    )
    for breach in breaches:
        result.add(breach.severity, f"{subject} {breach.message}")
    if not breaches:
        result.oks.append(f"{subject} is {format_number(measurement.value)}{measurement.unit}")


def check_increasing(target: str, series_list: Sequence[Series], context: EvaluationContext) -> CheckResult:
    """Critical when a series dropped below its earlier maximum.

    The maximum is taken over completed buckets and treats empty buckets as
    zero. Unless nulls are ignored, a series whose newest value is older than
    ``updated_since`` also raises a warning.
    """

    config = context.config
    _require_series(target, series_list, "increasing")
    result = CheckResult()
    for series in series_list:
        completed = series.completed()
        last = mean(series.last_values(config.data_points))
        if not completed or last is None:
            result.oks.append(f"{series.name} increasing has no data")
        else:
            peak = max(point.value if point.value is not None else 0.0 for point in completed)
            allowed = last * (1 + config.acceptable_diff_percentage / 100.0)
            context.debug(f"{series.name} increasing: max={peak} last={last} allowed={allowed}")
            if peak > allowed:
                result.criticals.append(
                    f"{series.name} is not increasing: max {format_number(peak)} is greater than "
                    f"last {format_number(last)} (allowed diff {format_number(config.acceptable_diff_percentage)}%)"
                )
            else:
                result.oks.append(f"{series.name} is increasing (last {format_number(last)})")

        if config.ignore_nulls:
            continue
        updated = series.last_updated()
        if updated is None:
            result.warnings.append(f"{series.name} has no datapoints")
        elif updated < context.now - config.updated_since:
            age = int(context.now - updated)
            result.warnings.append(
                f"{series.name} has not been updated for {age}s (limit {config.updated_since}s)"
            )
    return result


def check_last(target: str, series_list: Sequence[Series], context: EvaluationContext) -> CheckResult:
    config = context.config
    _require_series(target, series_list, "last")
    result = CheckResult()
    for series in series_list:
        last = mean(series.last_values(config.data_points))
        context.debug(f"{series.name} last: {last}")
        _apply_thresholds(result, series, Measurement("last value", last), config.thresholds["last"], config)
    return result


def check_average(target: str, series_list: Sequence[Series], context: EvaluationContext) -> CheckResult:
    config = context.config
    _require_series(target, series_list, "average")
    result = CheckResult()
    for series in series_list:
        average = mean(series.values())
        context.debug(f"{series.name} average: {average}")
        _apply_thresholds(result, series, Measurement("average", average), config.thresholds["average"], config)
    return result


def check_average_percent(target: str, series_list: Sequence[Series], context: EvaluationContext) -> CheckResult:
    """Compare the recent value against the period average, as a percentage."""

    config = context.config
    _require_series(target, series_list, "average_percent")
    result = CheckResult()
    for series in series_list:
        average = mean(series.values())
        last = mean(series.last_values(config.data_points))
        ratio = _ratio_percent(last, average)
        context.debug(f"{series.name} average percent: last={last} average={average} ratio={ratio}")
        _apply_thresholds(
            result,
            series,
            Measurement("last value as percent of average", ratio, unit="%"),
            config.thresholds["average_percent"],
            config,
        )
    return result


def check_percentile(target: str, series_list: Sequence[Series], context: EvaluationContext) -> CheckResult:
    """Compare the recent value against the configured percentile, as a percentage."""

    config = context.config
    _require_series(target, series_list, "percentile")
    result = CheckResult()
    label = f"last value as percent of {_ordinal(config.percentile)} percentile"
    for series in series_list:
        baseline = percentile(series.values(), config.percentile)
        last = mean(series.last_values(config.data_points))
        ratio = _ratio_percent(last, baseline)
        context.debug(f"{series.name} percentile: last={last} p{config.percentile}={baseline} ratio={ratio}")
        _apply_thresholds(result, series, Measurement(label, ratio, unit="%"), config.thresholds["percentile"], config)
    return result


Evaluator = Callable[[str, Sequence[Series], EvaluationContext], CheckResult]

CHECKS: Tuple[Tuple[str, Evaluator], ...] = (
    ("increasing", check_increasing),
    ("last", check_last),
    ("average", check_average),
    ("average_percent", check_average_percent),
    ("percentile", check_percentile),
)


def enabled_checks(config: RunConfig) -> List[Tuple[str, Evaluator]]:
    enabled: List[Tuple[str, Evaluator]] = []
    for name, evaluator in CHECKS:
        if name == "increasing":
            if config.check_increasing:
                enabled.append((name, evaluator))
        elif name in config.thresholds:
            enabled.append((name, evaluator))
    return enabled
