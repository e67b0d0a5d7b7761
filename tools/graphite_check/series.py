from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Datapoint:
    """A single bucket returned by the render API. ``value`` is ``None`` for empty buckets."""

    value: Optional[float]
    timestamp: int


@dataclass(frozen=True)
class Series:
    """Chronological datapoints for one concrete metric name."""

    name: str
    datapoints: Tuple[Datapoint, ...]

    def values(self) -> List[float]:
        return [point.value for point in self.datapoints if point.value is not None]

    def last_values(self, count: int) -> List[float]:
        values = self.values()
        if count <= 0:
            return []
        return values[-count:]

    def completed(self) -> Sequence[Datapoint]:
        """All datapoints except the in-progress final bucket."""

        return self.datapoints[:-1]

    def last_updated(self) -> Optional[int]:
        for point in reversed(self.datapoints):
            if point.value is not None:
                return point.timestamp
        return None


class SeriesDecodeError(ValueError):
    """Raised when the render API payload does not have the expected shape."""


def _coerce_value(raw: object) -> Optional[float]:
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise SeriesDecodeError(f"datapoint value {raw!r} is not numeric")
    value = float(raw)
    if not math.isfinite(value):
        return None
    return value


def decode_series(payload: object) -> List[Series]:
    """Turn a decoded ``format=json`` render response into :class:`Series` records."""

    if not isinstance(payload, list):
        raise SeriesDecodeError("render response is not a JSON array")
    decoded: List[Series] = []
    for entry in payload:
        if not isinstance(entry, dict):
            raise SeriesDecodeError("render response entry is not an object")
        name = entry.get("target")
        raw_points = entry.get("datapoints")
        if not isinstance(name, str):
            raise SeriesDecodeError("render response entry is missing 'target'")
        if not isinstance(raw_points, list):
            raise SeriesDecodeError(f"series {name} is missing 'datapoints'")
        points: List[Datapoint] = []
        for raw in raw_points:
            if not isinstance(raw, (list, tuple)) or len(raw) != 2:
                raise SeriesDecodeError(f"series {name} has a malformed datapoint: {raw!r}")
            raw_value, raw_timestamp = raw
            if isinstance(raw_timestamp, bool) or not isinstance(raw_timestamp, (int, float)):
                raise SeriesDecodeError(f"series {name} has a non-numeric timestamp: {raw_timestamp!r}")
            points.append(Datapoint(value=_coerce_value(raw_value), timestamp=int(raw_timestamp)))
        decoded.append(Series(name=name, datapoints=tuple(points)))
    return decoded
