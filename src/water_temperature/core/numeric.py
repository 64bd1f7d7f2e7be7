"""
Numeric guards shared by the physics modules.

Every weather value is passed through these helpers so that a missing or
non-finite input degrades to a documented default instead of propagating NaN.
"""

import math
from typing import Any, Iterable, List, Optional, Sequence


def to_finite(value: Any) -> Optional[float]:
    """Return value as a float if it is a finite number, else None."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def finite_or(value: Any, default: Optional[float]) -> Optional[float]:
    """Return value as a finite float, or `default`."""
    number = to_finite(value)
    return default if number is None else number


def first_finite(*values: Any) -> Optional[float]:
    """Return the first finite value among the arguments."""
    for value in values:
        number = to_finite(value)
        if number is not None:
            return number
    return None


def finite_values(values: Optional[Iterable[Any]]) -> List[float]:
    """Keep only the finite numbers of a series."""
    if values is None or isinstance(values, (str, bytes, dict)):
        return []
    try:
        return [n for n in (to_finite(v) for v in values) if n is not None]
    except TypeError:
        return []


def mean(values: Sequence[float]) -> Optional[float]:
    """Arithmetic mean, None for an empty sequence."""
    if not values:
        return None
    return sum(values) / len(values)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def round1(value: float) -> float:
    """Round to 0.1."""
    return round(value * 10) / 10
