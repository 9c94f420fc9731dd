"""
Core types, rating scale, errors and the profile sanitizer.
"""

from .errors import ConcurrentUpdateError, EngineError, EngineValidationError
from .models import (
    AttemptRecord,
    CardStatus,
    ItemAttempt,
    LearnerProfile,
    MasteryEstimate,
    NextItemsResult,
    Prediction,
    QuestionCandidate,
    ReviewCard,
    SelectionResult,
    SRSMetrics,
)
from .rating import DEFAULT_RATING, RATING_MAX, RATING_MIN, clamp_rating, round_half_away
from .sanitizer import sanitize_profile

__all__ = [
    "AttemptRecord",
    "CardStatus",
    "ConcurrentUpdateError",
    "DEFAULT_RATING",
    "EngineError",
    "EngineValidationError",
    "ItemAttempt",
    "LearnerProfile",
    "MasteryEstimate",
    "NextItemsResult",
    "Prediction",
    "QuestionCandidate",
    "RATING_MAX",
    "RATING_MIN",
    "ReviewCard",
    "SelectionResult",
    "SRSMetrics",
    "clamp_rating",
    "round_half_away",
    "sanitize_profile",
]
