"""
Rating scale and unit conversions.

Athletes rate sessions on a 1-5 scale while the database stores ratings on
a 1-10 scale. The two conversions below are NOT exact inverses: odd values
on the 10-scale lose their last step on the way down (7 -> 4 -> 8). The
formulas are kept exactly as-is and pinned by tests.

Rounding is half-up everywhere (4.5 -> 5). Python's built-in round() does
banker's rounding (4.5 -> 4), which would silently shift ratings.
"""

import math
from typing import Any, Optional


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up."""
    return int(math.floor(value + 0.5))


def _as_finite(value: Any) -> Optional[float]:
    """Coerce to a finite float, or None when that is not possible."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def to_five_scale(value: Any) -> Optional[int]:
    """
    Normalize a rating to the 1-5 scale.

    Values already on the 5-scale are rounded and floored at 1; larger
    values are treated as 10-scale, halved and clamped to [1, 5].
    """
    number = _as_finite(value)
    if number is None:
        return None
    if number <= 5:
        return max(1, round_half_up(number))
    return min(5, max(1, round_half_up(number / 2)))


def to_ten_scale(value: Any) -> Optional[int]:
    """Expand a 1-5 rating to the 1-10 scale. 10-scale input passes through."""
    number = _as_finite(value)
    if number is None:
        return None
    if number <= 5:
        return round_half_up(number * 2)
    return round_half_up(number)


def meters_to_km(meters: Any) -> Optional[float]:
    number = _as_finite(meters)
    if number is None:
        return None
    return round_half_up(number / 10) / 100


def km_to_meters(km: Any) -> Optional[int]:
    number = _as_finite(km)
    if number is None:
        return None
    return round_half_up(number * 1000)


# ---------------------------------------------------------------------------
# Total coercions used by the row mappers
# ---------------------------------------------------------------------------

def safe_int(value: Any, fallback: int = 0) -> int:
    """Integer value of anything numeric, fallback otherwise. Never raises."""
    number = _as_finite(value)
    return round_half_up(number) if number is not None else fallback


def safe_optional_int(value: Any) -> Optional[int]:
    number = _as_finite(value)
    return round_half_up(number) if number is not None else None


def safe_optional_number(value: Any) -> Optional[float]:
    return _as_finite(value)
