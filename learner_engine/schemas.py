"""
Request payloads for the engine.

JSON arriving from the request-serving layer (or from files given to the
CLI) is validated here and converted into domain types. Learner profiles are
deliberately not modeled: they go through the sanitizer, which repairs
instead of rejecting.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, Field, TypeAdapter, field_validator

from .core.models import AttemptRecord, QuestionCandidate, ReviewCard

# ========================================
# Request Models
# ========================================


class CandidatePayload(BaseModel):
    """A question that may be served."""

    id: str = Field(..., min_length=1, description="Question identifier")
    topic: str = Field("", description="Topic the question belongs to")
    difficulty: float = Field(..., allow_inf_nan=False, description="Difficulty on the rating scale")

    def to_domain(self) -> QuestionCandidate:
        return QuestionCandidate(id=self.id, topic=self.topic, difficulty=self.difficulty)


class AttemptPayload(BaseModel):
    """One answer event."""

    item_id: str = Field(..., min_length=1, validation_alias=AliasChoices("item_id", "itemId"))
    correct: bool = Field(..., validation_alias=AliasChoices("correct", "isCorrect"))
    item_difficulty: float = Field(
        ...,
        allow_inf_nan=False,
        validation_alias=AliasChoices("item_difficulty", "itemDifficulty", "difficulty"),
    )
    confidence: float | Literal["low", "medium", "high"] | None = Field(
        None, description="Self-reported confidence, 0-1 or a label"
    )
    response_time_ms: int | None = Field(
        None, ge=0, validation_alias=AliasChoices("response_time_ms", "responseTimeMs")
    )
    topic: str | None = None

    @field_validator("confidence", mode="before")
    @classmethod
    def _normalize_label(cls, value: Any) -> Any:
        # Clients send Low/Medium/High
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def to_domain(self) -> AttemptRecord:
        return AttemptRecord(
            item_id=self.item_id,
            correct=self.correct,
            item_difficulty=self.item_difficulty,
            confidence=self.confidence,
            response_time_ms=self.response_time_ms,
            topic=self.topic,
        )


class ReviewCardPayload(BaseModel):
    """Stored SM-2 state for one item."""

    item_id: str = Field(..., min_length=1, validation_alias=AliasChoices("item_id", "itemId"))
    interval: int = Field(0, ge=0, description="Days between reviews (0 = new)")
    easiness_factor: float = Field(
        2.5, ge=1.3, validation_alias=AliasChoices("easiness_factor", "easinessFactor", "easeFactor")
    )
    repetition_count: int = Field(
        0, ge=0, validation_alias=AliasChoices("repetition_count", "repetitionCount", "repetitions")
    )
    next_review_at: datetime = Field(
        ..., validation_alias=AliasChoices("next_review_at", "nextReviewAt", "nextReview")
    )
    last_reviewed_at: datetime | None = Field(
        None, validation_alias=AliasChoices("last_reviewed_at", "lastReviewedAt")
    )

    def to_domain(self) -> ReviewCard:
        return ReviewCard(
            item_id=self.item_id,
            interval=self.interval,
            easiness_factor=self.easiness_factor,
            repetition_count=self.repetition_count,
            next_review_at=self.next_review_at,
            last_reviewed_at=self.last_reviewed_at,
        )


_candidates_adapter = TypeAdapter(list[CandidatePayload])
_cards_adapter = TypeAdapter(list[ReviewCardPayload])


def parse_candidates(data: Any) -> list[QuestionCandidate]:
    """Validate a JSON list of candidates."""
    return [payload.to_domain() for payload in _candidates_adapter.validate_python(data)]


def parse_cards(data: Any) -> list[ReviewCard]:
    """Validate a JSON list of review cards."""
    return [payload.to_domain() for payload in _cards_adapter.validate_python(data)]
