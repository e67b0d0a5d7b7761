"""Graphite threshold checks for monitoring supervisors."""

from .client import GraphiteClient, SeriesCache
from .errors import ConfigurationError, EmptyResultError, FetchError, GraphiteCheckError
from .evaluators import CHECKS, CheckResult, EvaluationContext
from .series import Datapoint, Series, decode_series
from .settings import RunConfig
from .stats import mean, percentile
from .thresholds import ESCALATION_ORDER, Severity, ThresholdLevels, evaluate_thresholds

__all__ = [
    "CHECKS",
    "CheckResult",
    "ConfigurationError",
    "Datapoint",
    "ESCALATION_ORDER",
    "EmptyResultError",
    "EvaluationContext",
    "FetchError",
    "GraphiteCheckError",
    "GraphiteClient",
    "RunConfig",
    "Series",
    "SeriesCache",
    "Severity",
    "ThresholdLevels",
    "decode_series",
    "evaluate_thresholds",
    "mean",
    "percentile",
]
