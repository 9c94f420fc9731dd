"""
Learner Engine.

Adaptive learner modeling and scheduling: Elo ability ratings per topic,
SM-2 spaced repetition, adaptive question selection and outcome prediction.
"""

from .core.errors import ConcurrentUpdateError, EngineError, EngineValidationError
from .core.models import AttemptRecord, LearnerProfile, QuestionCandidate, ReviewCard
from .core.sanitizer import sanitize_profile
from .engine import PersonalizationEngine

__version__ = "1.0.0"

__all__ = [
    "AttemptRecord",
    "ConcurrentUpdateError",
    "EngineError",
    "EngineValidationError",
    "LearnerProfile",
    "PersonalizationEngine",
    "QuestionCandidate",
    "ReviewCard",
    "sanitize_profile",
]
