"""
Elo-style ability estimation.

A learner's ability and a question's difficulty sit on the same rating
scale. After each answer the rating moves toward the observed outcome by an
amount scaled by the learner's self-reported confidence:

    expected = 1 / (1 + 10^((difficulty - ability) / 400))
    adjK     = 32 * (1 + confidence * 0.5)
    new      = clamp(round(ability + adjK * (actual - expected)))
"""

from __future__ import annotations

from loguru import logger

from ..core.errors import EngineValidationError
from ..core.models import DEFAULT_CONFIDENCE
from ..core.rating import clamp, require_number, round_half_away

BASE_K = 32
ELO_SCALE = 400


def _require_confidence(confidence: object) -> float:
    value = require_number("confidence", confidence)
    if not 0.0 <= value <= 1.0:
        raise EngineValidationError(f"confidence must be in [0, 1], got {confidence!r}")
    return value


def expected_score(ability: float, difficulty: float) -> float:
    """Probability of a correct answer under the Elo model (base-10 logistic)."""
    exponent = (difficulty - ability) / ELO_SCALE
    if exponent > 300:
        return 0.0
    return 1.0 / (1.0 + 10**exponent)


def adjusted_k(base_k: float, confidence: float) -> float:
    """K-factor scaled by confidence: from base_k at 0 up to 1.5 x base_k at 1."""
    return base_k * (1 + _require_confidence(confidence) * 0.5)


def update_ability(
    current_ability: float,
    correct: bool,
    item_difficulty: float,
    confidence: float = DEFAULT_CONFIDENCE,
) -> int:
    """
    Update a rating after one answer.

    Args:
        current_ability: Current rating (may be out of bounds, the result never is)
        correct: Whether the answer was correct
        item_difficulty: Difficulty rating of the answered item
        confidence: Self-reported confidence in [0, 1]

    Returns:
        New integer rating in [800, 2400]

    Raises:
        EngineValidationError: On non-numeric ratings, non-bool correctness
            or confidence outside [0, 1]
    """
    ability = require_number("current_ability", current_ability)
    difficulty = require_number("item_difficulty", item_difficulty)
    if not isinstance(correct, bool):
        raise EngineValidationError(f"correct must be a bool, got {correct!r}")

    expected = expected_score(ability, difficulty)
    actual = 1.0 if correct else 0.0
    k = adjusted_k(BASE_K, confidence)

    new_ability = clamp(round_half_away(ability + k * (actual - expected)))
    logger.debug(
        f"Elo update: {ability:.0f} vs {difficulty:.0f} "
        f"({'correct' if correct else 'incorrect'}, K={k:.1f}) -> {new_ability}"
    )
    return new_ability


def effective_confidence(
    confidence: float,
    response_time_ms: float | None,
    fast_ms: float,
    slow_ms: float,
    cap: float,
) -> float:
    """
    Down-weight answers given at an implausible speed.

    Very fast answers are likely guesses and very slow ones likely
    distracted, so neither should move the rating at full strength.

    Args:
        confidence: Self-reported confidence in [0, 1]
        response_time_ms: Time taken to answer (None = unknown)
        fast_ms: Answers below this are treated as guesses
        slow_ms: Answers above this are treated as distracted
        cap: Confidence ceiling for such answers

    Returns:
        Confidence to feed into update_ability
    """
    confidence = _require_confidence(confidence)
    if response_time_ms is None:
        return confidence
    if response_time_ms < fast_ms or response_time_ms > slow_ms:
        capped = min(confidence, cap)
        if capped < confidence:
            logger.debug(f"Capping confidence {confidence:.2f} -> {capped:.2f} for {response_time_ms}ms answer")
        return capped
    return confidence
