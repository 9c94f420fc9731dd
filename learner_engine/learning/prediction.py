"""
Performance prediction.

Two questions answered here: how likely is a learner to get an item right,
and how many study sessions separate them from a target rating.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from ..core.models import MasteryEstimate, Prediction
from ..core.rating import require_number

PREDICTION_SCALE = 400
CONFIDENCE_SPAN = 800
MIN_CONFIDENCE = 0.1

DEFAULT_SESSION_GAIN = 10
MASTERY_GAP_SCALE = 500
MASTERY_VARIANCE_SCALE = 100


def predict(ability: float, difficulty: float) -> Prediction:
    """
    Predict the outcome of one item.

    Confidence falls linearly as the gap between ability and difficulty
    grows, bottoming out at MIN_CONFIDENCE for gaps of 720 or more.

    Args:
        ability: Learner rating
        difficulty: Item difficulty rating

    Returns:
        Prediction with probability in (0, 1) and confidence in [0.1, 1]

    Raises:
        EngineValidationError: If either rating is not a finite number
    """
    gap = require_number("ability", ability) - require_number("difficulty", difficulty)
    z = gap / PREDICTION_SCALE
    if z < -700:
        probability = 0.0
    else:
        probability = 1.0 / (1.0 + math.exp(-z))
    confidence = max(MIN_CONFIDENCE, 1.0 - abs(gap) / CONFIDENCE_SPAN)
    return Prediction(probability=probability, confidence=confidence)


def estimate_sessions_to_mastery(
    current_ability: float,
    target_ability: float,
    recent_progress: Sequence[float] = (),
) -> MasteryEstimate:
    """
    Estimate study sessions needed to reach a target rating.

    Args:
        current_ability: Learner's current rating
        target_ability: Rating that counts as mastery
        recent_progress: Rating gained in each recent session

    Returns:
        MasteryEstimate; (0, 1.0) when the target is already reached

    Raises:
        EngineValidationError: If a rating or progress sample is not a finite number
    """
    current = require_number("current_ability", current_ability)
    target = require_number("target_ability", target_ability)
    samples = [require_number("recent_progress entry", gain) for gain in recent_progress]
    if target <= current:
        return MasteryEstimate(sessions=0, confidence=1.0)

    gap = target - current

    avg_gain = sum(samples) / len(samples) if samples else DEFAULT_SESSION_GAIN
    avg_gain = max(1.0, avg_gain)

    sessions = math.ceil(gap / avg_gain)

    variance = 0.0
    if len(samples) > 1:
        variance = sum((gain - avg_gain) ** 2 for gain in samples) / len(samples)

    confidence = max(MIN_CONFIDENCE, 1.0 - gap / MASTERY_GAP_SCALE - variance / MASTERY_VARIANCE_SCALE)
    return MasteryEstimate(sessions=sessions, confidence=confidence)
