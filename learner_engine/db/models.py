"""
Learner store models.

SQLAlchemy models for persisted learner state:
- Learner profiles (ratings, attempt counts, answer history)
- Review cards (SM-2 state per learner per item)

Both tables carry a version column used for optimistic concurrency: a write
based on a stale read fails at flush instead of silently overwriting a
concurrent update.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, Index, Integer, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..core.models import ReviewCard
from ..core.sanitizer import sanitize_profile

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Declarative base for learner store tables."""

    pass


class LearnerProfileRecord(Base):
    """
    Persisted learner profile.

    Stored as loosely-typed JSON; rows are always read back through the
    profile sanitizer.
    """

    __tablename__ = "learner_profiles"

    user_id: Mapped[str] = mapped_column(Text, primary_key=True)
    overall_ability: Mapped[int] = mapped_column(Integer, default=1500)
    topic_abilities: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    topic_attempt_counts: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    item_history: Mapped[list[Any]] = mapped_column(JSONType, default=list)
    last_updated: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_profile(self):
        return sanitize_profile(
            {
                "user_id": self.user_id,
                "overall_ability": self.overall_ability,
                "topic_abilities": self.topic_abilities,
                "topic_attempt_counts": self.topic_attempt_counts,
                "item_history": self.item_history,
                "last_updated": self.last_updated,
            }
        )

    def __repr__(self) -> str:
        return f"<LearnerProfileRecord user={self.user_id} ability={self.overall_ability} v{self.version}>"


class ReviewCardRecord(Base):
    """SM-2 state for one learner x item pair."""

    __tablename__ = "review_cards"

    user_id: Mapped[str] = mapped_column(Text, primary_key=True)
    item_id: Mapped[str] = mapped_column(Text, primary_key=True)
    interval: Mapped[int] = mapped_column(Integer, default=0)
    easiness_factor: Mapped[float] = mapped_column(Float, default=2.5)
    repetition_count: Mapped[int] = mapped_column(Integer, default=0)
    next_review_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), onupdate=func.now()
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (Index("idx_review_cards_due", "user_id", "next_review_at"),)

    def to_card(self) -> ReviewCard:
        return ReviewCard(
            item_id=self.item_id,
            interval=self.interval,
            easiness_factor=self.easiness_factor,
            repetition_count=self.repetition_count,
            next_review_at=self.next_review_at,
            last_reviewed_at=self.last_reviewed_at,
        )

    def apply(self, card: ReviewCard) -> None:
        self.interval = card.interval
        self.easiness_factor = card.easiness_factor
        self.repetition_count = card.repetition_count
        self.next_review_at = card.next_review_at
        self.last_reviewed_at = card.last_reviewed_at

    def __repr__(self) -> str:
        return f"<ReviewCardRecord user={self.user_id} item={self.item_id} interval={self.interval}d>"
