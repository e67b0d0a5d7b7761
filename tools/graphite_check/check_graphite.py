#!/usr/bin/env python3
"""Monitoring check that evaluates Graphite series against thresholds.

The check queries the Graphite render API once per target, runs the enabled
checks (increasing, last, average, average percent, percentile) over every
returned series, and prints a single ``LEVEL - message`` line. The exit code
follows the Nagios plugin convention: 0 OK, 1 WARNING, 2 CRITICAL, 3 UNKNOWN.
"""
from __future__ import annotations

import argparse
import os
import sys
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

try:  # pragma: no cover - direct execution fallback
    from tools.graphite_check.client import GraphiteClient, SeriesCache
    from tools.graphite_check.errors import ConfigurationError, GraphiteCheckError
    from tools.graphite_check.evaluators import CheckResult, EvaluationContext, enabled_checks
    from tools.graphite_check.exporter import write_verdict
    from tools.graphite_check.settings import (
        DEFAULT_DATA_POINTS,
        DEFAULT_PERCENTILE,
        DEFAULT_PERIOD,
        DEFAULT_TIMEOUT_SECONDS,
        DEFAULT_UPDATED_SINCE_SECONDS,
        DebugFn,
        RunConfig,
        build_config,
        load_config_file,
        no_debug,
    )
except ModuleNotFoundError:  # pragma: no cover - allow execution via python path/to/script.py
    REPO_ROOT = Path(__file__).resolve().parents[2]
    sys.path.append(str(REPO_ROOT))
    from tools.graphite_check.client import GraphiteClient, SeriesCache  # type: ignore
    from tools.graphite_check.errors import ConfigurationError, GraphiteCheckError  # type: ignore
    from tools.graphite_check.evaluators import CheckResult, EvaluationContext, enabled_checks  # type: ignore
    from tools.graphite_check.exporter import write_verdict  # type: ignore
    from tools.graphite_check.settings import (  # type: ignore
        DEFAULT_DATA_POINTS,
        DEFAULT_PERCENTILE,
        DEFAULT_PERIOD,
        DEFAULT_TIMEOUT_SECONDS,
        DEFAULT_UPDATED_SINCE_SECONDS,
        DebugFn,
        RunConfig,
        build_config,
        load_config_file,
        no_debug,
    )

STATUS_OK = 0
STATUS_WARNING = 1
STATUS_CRITICAL = 2
STATUS_UNKNOWN = 3

STATUS_LABELS = {
    STATUS_OK: "OK",
    STATUS_WARNING: "WARNING",
    STATUS_CRITICAL: "CRITICAL",
    STATUS_UNKNOWN: "UNKNOWN",
}

ClientFactory = Callable[[RunConfig, DebugFn], GraphiteClient]


class _CheckArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise ConfigurationError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = _CheckArgumentParser(description="Check Graphite series against thresholds")
    parser.add_argument("--config", type=Path, default=None, help="YAML file with option defaults")
    parser.add_argument("--host", default=None, help="Graphite host, http:// is assumed when no scheme is given")
    parser.add_argument("--target", default=None, help="Comma separated list of targets")
    parser.add_argument("--complex-target", default=None, help="Single target that is never split on commas")
    parser.add_argument(
        "--period", default=DEFAULT_PERIOD, help=f"Relative period to fetch, e.g. 24hours (default: {DEFAULT_PERIOD})"
    )
    parser.add_argument(
        "--updated-since",
        type=int,
        default=DEFAULT_UPDATED_SINCE_SECONDS,
        help="Warn when a series has no value newer than this many seconds (increasing check)",
    )
    parser.add_argument(
        "--acceptable-diff-percentage",
        type=float,
        default=0.0,
        help="Tolerated drop, in percent, before the increasing check fails",
    )
    parser.add_argument("--check-increasing", action="store_true", help="Fail when a series stops increasing")
    parser.add_argument(
        "--greater-than",
        action="store_true",
        help="Alert when values fall below the thresholds instead of above them",
    )
    parser.add_argument("--check-last", default=None, help="warn,error,fatal thresholds for the last value")
    parser.add_argument("--check-average", default=None, help="warn,error,fatal thresholds for the average")
    parser.add_argument(
        "--check-average-percent",
        default=None,
        help="warn,error,fatal thresholds for the last value as a percentage of the average",
    )
    parser.add_argument(
        "--check-percentile",
        default=None,
        help="warn,error,fatal thresholds for the last value as a percentage of the percentile",
    )
    parser.add_argument(
        "--percentile", type=int, default=DEFAULT_PERCENTILE, help=f"Percentile to compare against (default: {DEFAULT_PERCENTILE})"
    )
    parser.add_argument(
        "--data-points",
        type=int,
        default=DEFAULT_DATA_POINTS,
        help="Number of most recent non-null datapoints averaged as the last value",
    )
    parser.add_argument("--ignore-nulls", action="store_true", help="Skip freshness warnings for series with nulls")
    parser.add_argument("--concat-output", action="store_true", help="Append lower severity messages to the output")
    parser.add_argument("--short-output", action="store_true", help="Stop at the first breached severity per series")
    parser.add_argument("--debug", action="store_true", help="Print DEBUG lines while running")
    parser.add_argument("--username", default=os.getenv("GRAPHITE_USERNAME"), help="Basic auth username")
    parser.add_argument("--password", default=os.getenv("GRAPHITE_PASSWORD"), help="Basic auth password")
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_SECONDS,
        help=f"HTTP timeout in seconds (default: {DEFAULT_TIMEOUT_SECONDS:g})",
    )
    parser.add_argument(
        "--textfile", type=Path, default=None, help="Also write the verdict in Prometheus textfile format"
    )
    return parser


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = _build_parser()
    preliminary, _ = parser.parse_known_args(argv)
    if preliminary.config is not None:
        allowed = {action.dest for action in parser._actions if action.dest not in ("help", "config")}
        parser.set_defaults(**load_config_file(preliminary.config, allowed))
    return parser.parse_args(argv)


def _debug_printer(enabled: bool) -> DebugFn:
    if not enabled:
        return no_debug
    return lambda message: print(f"DEBUG: {message}")


def _default_client(config: RunConfig, debug: DebugFn) -> GraphiteClient:
    return GraphiteClient(
        config.host,
        username=config.username,
        password=config.password,
        timeout_seconds=config.timeout_seconds,
        debug=debug,
    )


def run_checks(
    config: RunConfig,
    cache: SeriesCache,
    *,
    now: Optional[float] = None,
    debug: DebugFn = no_debug,
) -> CheckResult:
    """Run every enabled check for every target, accumulating one result."""

    context = EvaluationContext(config=config, now=time.time() if now is None else now, debug=debug)
    checks = enabled_checks(config)
    result = CheckResult()
    for target in config.targets:
        series_list = cache.get(target)
        for name, evaluator in checks:
            outcome = evaluator(target, series_list, context)
            debug(f"{target} {name}: {outcome.counts()}")
            result.extend(outcome)
    return result


def render_output(result: CheckResult, concat_output: bool = False) -> Tuple[int, str]:
    buckets: List[Tuple[int, List[str]]] = [
        (STATUS_CRITICAL, result.fatals),
        (STATUS_CRITICAL, result.criticals),
        (STATUS_WARNING, result.warnings),
        (STATUS_OK, result.oks),
    ]
    index = 0
    while index < len(buckets) - 1 and not buckets[index][1]:
        index += 1
    status, messages = buckets[index]
    body = list(messages)
    if concat_output:
        for _, lower in buckets[index + 1 :]:
            body.extend(lower)
    return status, f"{STATUS_LABELS[status]} - {', '.join(body)}"


def main(argv: Optional[Sequence[str]] = None, client_factory: ClientFactory = _default_client) -> int:
    try:
        args = _parse_args(sys.argv[1:] if argv is None else argv)
        config = build_config(args)
        debug = _debug_printer(config.debug)
        cache = SeriesCache(client_factory(config, debug), config.period)
        result = run_checks(config, cache, debug=debug)
    except GraphiteCheckError as exc:
        print(f"{STATUS_LABELS[STATUS_UNKNOWN]} - {exc}")
        return STATUS_UNKNOWN

    debug(f"buckets: {result.counts()}")
    status, line = render_output(result, config.concat_output)
    print(line)
    if args.textfile is not None:
        try:
            write_verdict(args.textfile, status, result)
        except OSError as exc:
            print(f"::error ::Failed to write {args.textfile}: {exc}", file=sys.stderr)
    return status


if __name__ == "__main__":
    raise SystemExit(main())
