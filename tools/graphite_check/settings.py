from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Collection, Dict, Mapping, Optional, Tuple

import yaml

from tools.graphite_check.errors import ConfigurationError
from tools.graphite_check.thresholds import ThresholdLevels, ThresholdParseError

DEFAULT_PERIOD = "2hours"
DEFAULT_UPDATED_SINCE_SECONDS = 600
DEFAULT_PERCENTILE = 90
DEFAULT_DATA_POINTS = 1
DEFAULT_TIMEOUT_SECONDS = 20.0

THRESHOLD_CHECKS: Tuple[str, ...] = ("last", "average", "average_percent", "percentile")

DebugFn = Callable[[str], None]


def no_debug(message: str) -> None:
    return None


@dataclass(frozen=True)
class RunConfig:
    host: str
    targets: Tuple[str, ...]
    period: str = DEFAULT_PERIOD
    updated_since: int = DEFAULT_UPDATED_SINCE_SECONDS
    acceptable_diff_percentage: float = 0.0
    check_increasing: bool = False
    greater_than: bool = False
    thresholds: Mapping[str, ThresholdLevels] = field(default_factory=dict)
    percentile: int = DEFAULT_PERCENTILE
    data_points: int = DEFAULT_DATA_POINTS
    ignore_nulls: bool = False
    short_output: bool = False
    concat_output: bool = False
    debug: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS


def normalize_host(host: str) -> str:
    host = host.strip()
    if "://" not in host:
        host = f"http://{host}"
    return host.rstrip("/")


def split_targets(target: Optional[str], complex_target: Optional[str]) -> Tuple[str, ...]:
    """Comma-split ``target``; a complex target is used verbatim."""

    if complex_target:
        return (complex_target,)
    if not target:
        return ()
    return tuple(part.strip() for part in target.split(",") if part.strip())


def load_config_file(path: Path, allowed_keys: Collection[str]) -> Dict[str, Any]:
    """Read option defaults from a YAML mapping, normalising ``-`` to ``_`` in keys."""

    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        raise ConfigurationError(f"cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML in config file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"config file {path} must contain a mapping")
    options = {str(key).replace("-", "_"): value for key, value in data.items()}
    unknown = sorted(set(options) - set(allowed_keys))
    if unknown:
        raise ConfigurationError(f"unknown keys in config file {path}: {', '.join(unknown)}")
    for key, value in options.items():
        if key == "target" and isinstance(value, list) and all(isinstance(item, str) for item in value):
            options[key] = ",".join(value)
        elif isinstance(value, (list, dict)):
            raise ConfigurationError(f"config file {path}: option {key} must be a single value")
    return options


def _parse_thresholds(args: argparse.Namespace) -> Dict[str, ThresholdLevels]:
    thresholds: Dict[str, ThresholdLevels] = {}
    for check in THRESHOLD_CHECKS:
        raw = getattr(args, f"check_{check}", None)
        if raw is None or str(raw).strip() == "":
            continue
        try:
            levels = ThresholdLevels.parse(str(raw))
        except ThresholdParseError as exc:
            raise ConfigurationError(f"--check-{check.replace('_', '-')}: {exc}") from exc
        if levels.is_empty():
            continue
        thresholds[check] = levels
    return thresholds


def _integer_option(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"--{name} must be an integer, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ConfigurationError(f"--{name} must be an integer, got {value!r}")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"--{name} must be an integer, got {value!r}") from exc


def build_config(args: argparse.Namespace) -> RunConfig:
    if not args.host:
        raise ConfigurationError("a graphite host is required (--host)")
    targets = split_targets(args.target, args.complex_target)
    if not targets:
        raise ConfigurationError("a target is required (--target or --complex-target)")
    percentile = _integer_option("percentile", args.percentile)
    data_points = _integer_option("data-points", args.data_points)
    updated_since = _integer_option("updated-since", args.updated_since)
    try:
        acceptable_diff = float(args.acceptable_diff_percentage)
        timeout = float(args.timeout)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"invalid numeric option: {exc}") from exc
    if not 1 <= percentile <= 100:
        raise ConfigurationError(f"--percentile must be between 1 and 100, got {percentile}")
    if data_points < 1:
        raise ConfigurationError(f"--data-points must be at least 1, got {data_points}")

    thresholds = _parse_thresholds(args)
    if not thresholds and not args.check_increasing:
        raise ConfigurationError(
            "no checks enabled (use --check-increasing or one of --check-last, --check-average, "
            "--check-average-percent, --check-percentile)"
        )

    return RunConfig(
        host=normalize_host(str(args.host)),
        targets=targets,
        period=str(args.period),
        updated_since=updated_since,
        acceptable_diff_percentage=acceptable_diff,
        check_increasing=bool(args.check_increasing),
        greater_than=bool(args.greater_than),
        thresholds=thresholds,
        percentile=percentile,
        data_points=data_points,
        ignore_nulls=bool(args.ignore_nulls),
        short_output=bool(args.short_output),
        concat_output=bool(args.concat_output),
        debug=bool(args.debug),
        username=args.username,
        password=args.password,
        timeout_seconds=timeout,
    )
