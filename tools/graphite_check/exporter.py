"""Prometheus textfile export of a graphite check verdict."""
from __future__ import annotations

import time
from pathlib import Path
from typing import Optional

from prometheus_client import CollectorRegistry, Gauge, write_to_textfile

from tools.graphite_check.evaluators import CheckResult


def write_verdict(path: Path, status: int, result: CheckResult, timestamp: Optional[float] = None) -> None:
    registry = CollectorRegistry()
    status_gauge = Gauge("graphite_check_status", "Exit code of the last graphite check run", registry=registry)
    messages = Gauge(
        "graphite_check_messages",
        "Messages recorded per result bucket in the last run",
        ["bucket"],
        registry=registry,
    )
    last_run = Gauge(
        "graphite_check_last_run_timestamp_seconds",
        "Wall-clock time of the last graphite check run",
        registry=registry,
    )
    status_gauge.set(status)
    for bucket, count in result.counts().items():
        messages.labels(bucket=bucket).set(count)
    last_run.set(time.time() if timestamp is None else timestamp)
    path.parent.mkdir(parents=True, exist_ok=True)
    write_to_textfile(str(path), registry)
