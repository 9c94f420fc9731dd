"""
Rating scale shared by learners and questions.

Ability ratings and question difficulties live on the same Elo-style scale,
bounded to [800, 2400] with 1500 as the neutral starting point.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from numbers import Real

from .errors import EngineValidationError

RATING_MIN = 800
RATING_MAX = 2400
DEFAULT_RATING = 1500


def is_number(value: object) -> bool:
    """True for real numbers that are not booleans."""
    return isinstance(value, Real) and not isinstance(value, bool)


def to_float(value: object) -> float:
    """Convert a number to float, saturating integers beyond float range to +/-inf."""
    try:
        return float(value)
    except OverflowError:
        return math.inf if value > 0 else -math.inf


def is_finite_number(value: object) -> bool:
    return is_number(value) and math.isfinite(to_float(value))


def require_number(name: str, value: object) -> float:
    """Return value as a float, raising EngineValidationError unless it is a finite number."""
    if not is_finite_number(value):
        raise EngineValidationError(f"{name} must be a finite number, got {value!r}")
    return float(value)


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


def round_to(value: float, places: int) -> float:
    """Round to a number of decimal places, halves away from zero."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def clamp(value: int, low: int = RATING_MIN, high: int = RATING_MAX) -> int:
    return max(low, min(high, value))


def clamp_rating(value: object, default: int = DEFAULT_RATING) -> int:
    """
    Coerce anything into a valid rating.

    Non-numbers and NaN fall back to ``default``; numbers are rounded and
    clamped to the rating bounds.

    Args:
        value: Raw rating, possibly corrupted
        default: Rating used when value is unusable

    Returns:
        Integer rating in [RATING_MIN, RATING_MAX]
    """
    if not is_number(value):
        return default
    number = to_float(value)
    if math.isnan(number):
        return default
    if math.isinf(number):
        return RATING_MAX if number > 0 else RATING_MIN
    return clamp(round_half_away(number))
