"""
Core domain types for the learner engine.

Design:
- LearnerProfile: persisted learner state (ratings, attempt counts, history)
- ReviewCard: persisted SM-2 state for one learner x item pair
- QuestionCandidate / AttemptRecord: transient inputs, validated on construction
- Prediction, MasteryEstimate, SelectionResult, SRSMetrics: results
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .errors import EngineValidationError
from .rating import DEFAULT_RATING, is_finite_number, is_number

MATURE_INTERVAL_DAYS = 21

DEFAULT_CONFIDENCE = 0.7

# Self-reported confidence labels accepted in place of a number
CONFIDENCE_LABELS: dict[str, float] = {
    "low": 0.3,
    "medium": 0.7,
    "high": 1.0,
}


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a datetime or ISO-8601 string, None if unusable."""
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, str) and value:
        try:
            return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def parse_confidence(value: Any, default: float = DEFAULT_CONFIDENCE) -> float:
    """
    Normalize a self-reported confidence.

    Args:
        value: Number in [0, 1], a label (low/medium/high) or None
        default: Confidence used when value is None

    Returns:
        Confidence in [0, 1]

    Raises:
        EngineValidationError: If value is out of range or an unknown label
    """
    if value is None:
        return default
    if isinstance(value, str):
        label = value.strip().lower()
        if label not in CONFIDENCE_LABELS:
            raise EngineValidationError(f"Unknown confidence label: {value!r}")
        return CONFIDENCE_LABELS[label]
    if not is_number(value) or not 0.0 <= value <= 1.0:
        raise EngineValidationError(f"Confidence must be a number in [0, 1], got {value!r}")
    return float(value)


class CardStatus(str, Enum):
    """Lifecycle stage of a review card, derived from its interval."""

    NEW = "new"
    LEARNING = "learning"
    MATURE = "mature"

    @classmethod
    def from_interval(cls, interval: int) -> CardStatus:
        if interval <= 0:
            return cls.NEW
        elif interval < MATURE_INTERVAL_DAYS:
            return cls.LEARNING
        else:
            return cls.MATURE


@dataclass(frozen=True)
class ItemAttempt:
    """One entry of a learner's answer history."""

    item_id: str
    correct: bool
    timestamp: datetime | None = None
    topic: str | None = None
    confidence: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "correct": self.correct,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "topic": self.topic,
            "confidence": self.confidence,
        }


@dataclass
class LearnerProfile:
    """
    Persisted learner state.

    Ratings are integers on the shared rating scale. Topics missing from
    topic_abilities have never been answered.
    """

    user_id: str = ""
    overall_ability: int = DEFAULT_RATING
    topic_abilities: dict[str, int] = field(default_factory=dict)
    topic_attempt_counts: dict[str, int] = field(default_factory=dict)
    item_history: list[ItemAttempt] = field(default_factory=list)
    last_updated: datetime | None = None

    def recent_history(self, limit: int) -> list[ItemAttempt]:
        """Most recent history entries, oldest first."""
        if limit <= 0:
            return []
        return self.item_history[-limit:]

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted representation."""
        return {
            "user_id": self.user_id,
            "overall_ability": self.overall_ability,
            "topic_abilities": dict(self.topic_abilities),
            "topic_attempt_counts": dict(self.topic_attempt_counts),
            "item_history": [attempt.to_dict() for attempt in self.item_history],
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }


@dataclass(frozen=True)
class ReviewCard:
    """
    SM-2 state for one item under spaced review.

    Transitions never mutate a card; the scheduler returns a new one.
    """

    item_id: str
    next_review_at: datetime
    interval: int = 0
    easiness_factor: float = 2.5
    repetition_count: int = 0
    last_reviewed_at: datetime | None = None

    def __post_init__(self):
        if not self.item_id:
            raise EngineValidationError("ReviewCard requires an item_id")
        object.__setattr__(self, "next_review_at", as_utc(self.next_review_at))
        if self.last_reviewed_at is not None:
            object.__setattr__(self, "last_reviewed_at", as_utc(self.last_reviewed_at))

    @property
    def status(self) -> CardStatus:
        return CardStatus.from_interval(self.interval)

    def is_due(self, now: datetime) -> bool:
        return self.next_review_at <= as_utc(now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "interval": self.interval,
            "easiness_factor": self.easiness_factor,
            "repetition_count": self.repetition_count,
            "next_review_at": self.next_review_at.isoformat(),
            "last_reviewed_at": self.last_reviewed_at.isoformat() if self.last_reviewed_at else None,
            "status": self.status.value,
        }


@dataclass
class QuestionCandidate:
    """A question that may be served, with its calibrated difficulty."""

    id: str
    topic: str
    difficulty: float
    match_score: float | None = None

    def __post_init__(self):
        if not self.id:
            raise EngineValidationError("QuestionCandidate requires an id")
        if not is_finite_number(self.difficulty):
            raise EngineValidationError(
                f"QuestionCandidate {self.id!r} has a non-numeric or infinite difficulty: {self.difficulty!r}"
            )

    def scored(self, score: float) -> QuestionCandidate:
        return replace(self, match_score=score)


@dataclass
class AttemptRecord:
    """A single answer event as submitted by the caller."""

    item_id: str
    correct: bool
    item_difficulty: float
    confidence: float | None = None  # None = engine default
    response_time_ms: int | None = None
    topic: str | None = None

    def __post_init__(self):
        if not self.item_id:
            raise EngineValidationError("AttemptRecord requires an item_id")
        if not isinstance(self.correct, bool):
            raise EngineValidationError(f"correct must be a bool, got {self.correct!r}")
        if not is_finite_number(self.item_difficulty):
            raise EngineValidationError(f"item_difficulty must be a finite number, got {self.item_difficulty!r}")
        if self.confidence is not None:
            self.confidence = parse_confidence(self.confidence)
        if self.response_time_ms is not None and (
            not is_number(self.response_time_ms) or self.response_time_ms < 0
        ):
            raise EngineValidationError(f"response_time_ms must be >= 0, got {self.response_time_ms!r}")


@dataclass(frozen=True)
class Prediction:
    """Probability of a correct answer and how far to trust it."""

    probability: float
    confidence: float


@dataclass(frozen=True)
class MasteryEstimate:
    """Sessions needed to reach a target rating."""

    sessions: int
    confidence: float


@dataclass
class SelectionResult:
    """Outcome of an adaptive selection."""

    questions: list[QuestionCandidate] = field(default_factory=list)
    total_available: int = 0
    fallback_recommendation: str | None = None
    suggested_action: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.questions


@dataclass
class NextItemsResult(SelectionResult):
    """Selection enriched with the rating used and per-topic priorities."""

    ability_used: int = DEFAULT_RATING
    topic_priorities: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class SRSMetrics:
    """Deck summary for a learner's review cards."""

    total_cards: int = 0
    due_cards: int = 0
    new_cards: int = 0
    learning_cards: int = 0
    mature_cards: int = 0
    avg_easiness: float = 0.0
    avg_interval: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_cards": self.total_cards,
            "due_cards": self.due_cards,
            "new_cards": self.new_cards,
            "learning_cards": self.learning_cards,
            "mature_cards": self.mature_cards,
            "avg_easiness": self.avg_easiness,
            "avg_interval": self.avg_interval,
        }
