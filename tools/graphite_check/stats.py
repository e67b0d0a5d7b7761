from __future__ import annotations

import math
from typing import Optional, Sequence


def total(values: Sequence[float]) -> float:
    return float(sum(values))


def mean(values: Sequence[float]) -> Optional[float]:
    """Arithmetic mean, or ``None`` when there is nothing to average."""

    if not values:
        return None
    return total(values) / float(len(values))


def percentile(values: Sequence[float], percent: float) -> Optional[float]:
    """NIST linear-interpolation percentile with rank ``p/100 * (n + 1)``.

    Ranks below the first sample clamp to the minimum and ranks at or past the
    last sample clamp to the maximum.
    """

    if not values:
        return None
    sorted_values = sorted(values)
    count = len(sorted_values)
    rank = (percent / 100.0) * (count + 1)
    if rank <= 1:
        return sorted_values[0]
    if rank >= count:
        return sorted_values[-1]
    lower = math.floor(rank)
    fraction = rank - lower
    lower_value = sorted_values[lower - 1]
    if fraction == 0:
        return lower_value
    upper_value = sorted_values[lower]
    return lower_value + fraction * (upper_value - lower_value)
