from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple


class Severity(enum.Enum):
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"


ESCALATION_ORDER: Tuple[Severity, ...] = (Severity.FATAL, Severity.ERROR, Severity.WARNING)


class ThresholdParseError(ValueError):
    """Raised when a ``warn,error,fatal`` threshold string is malformed."""


@dataclass(frozen=True)
class ThresholdLevels:
    """Per-severity thresholds. ``None`` means the severity is not evaluated."""

    warning: Optional[float] = None
    error: Optional[float] = None
    fatal: Optional[float] = None

    @classmethod
    def parse(cls, raw: str) -> "ThresholdLevels":
        parts = [part.strip() for part in raw.split(",")]
        if len(parts) > 3:
            raise ThresholdParseError(f"expected at most three thresholds (warn,error,fatal), got {raw!r}")
        values: List[Optional[float]] = []
        for part in parts:
            if not part:
                values.append(None)
                continue
            try:
                values.append(float(part))
            except ValueError as exc:
                raise ThresholdParseError(f"threshold {part!r} in {raw!r} is not a number") from exc
        values.extend([None] * (3 - len(values)))
        return cls(warning=values[0], error=values[1], fatal=values[2])

    def get(self, severity: Severity) -> Optional[float]:
        return getattr(self, severity.value)

    def configured(self) -> Iterator[Tuple[Severity, float]]:
        """Yield configured severities in escalation order."""

        for severity in ESCALATION_ORDER:
            threshold = self.get(severity)
            if threshold is not None:
                yield severity, threshold

    def is_empty(self) -> bool:
        return all(self.get(severity) is None for severity in ESCALATION_ORDER)


@dataclass(frozen=True)
class Breach:
    severity: Severity
    threshold: float
    message: str


def format_number(value: float) -> str:
    rounded = round(float(value), 4)
    if rounded.is_integer():
        return str(int(rounded))
    return f"{rounded}"


def evaluate_thresholds(
    measured: Optional[float],
    levels: ThresholdLevels,
    *,
    greater_than: bool = False,
    short_circuit: bool = False,
    unit: str = "",
) -> List[Breach]:
    """Return the breached severities for ``measured``, most severe first.

    By default a value above a threshold is bad. With ``greater_than`` the
    sense flips and a value below the threshold is bad. ``short_circuit`` stops
    after the first breach.
    """

    if measured is None:
        return []
    wording = "less" if greater_than else "greater"
    breaches: List[Breach] = []
    for severity, threshold in levels.configured():
        breached = threshold > measured if greater_than else measured > threshold
        if not breached:
            continue
        message = f"{format_number(measured)}{unit} is {wording} than {format_number(threshold)}{unit}"
        breaches.append(Breach(severity=severity, threshold=threshold, message=message))
        if short_circuit:
            break
    return breaches
