"""
Learner store.

Persists profiles and review cards and serializes concurrent answers for the
same learner. Every answer is an atomic read-modify-write: the profile and
card are read, run through the engine and written back in one transaction.
If another writer committed in between, the version check fails at flush,
the transaction rolls back and the whole cycle is retried from a fresh read.
"""

from __future__ import annotations

from datetime import datetime

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from ..core.errors import ConcurrentUpdateError
from ..core.models import AttemptRecord, LearnerProfile, ReviewCard, SRSMetrics
from ..engine import PersonalizationEngine
from ..study.scheduler import card_metrics, due_cards
from .database import get_session_factory, session_scope
from .models import LearnerProfileRecord, ReviewCardRecord


class LearnerStore:
    """
    Database-backed access to learner state.

    Example:
        store = LearnerStore()
        profile, card = store.record_answer("learner-1", attempt, review=True)
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        engine: PersonalizationEngine | None = None,
        max_retries: int | None = None,
    ):
        """
        Initialize the store.

        Args:
            session_factory: Session factory (configured database if None)
            engine: Personalization engine applied inside each transaction
            max_retries: Read-modify-write attempts (settings default if None)
        """
        self._factory = session_factory or get_session_factory()
        self.engine = engine or PersonalizationEngine()
        self.max_retries = max_retries or self.engine.settings.max_update_retries

    # ========================================
    # Reads
    # ========================================

    def load_profile(self, user_id: str) -> LearnerProfile:
        """Load a learner's profile; unknown learners get a default profile."""
        with session_scope(self._factory) as session:
            record = session.get(LearnerProfileRecord, user_id)
            if record is None:
                return LearnerProfile(user_id=user_id)
            return record.to_profile()

    def load_cards(self, user_id: str) -> list[ReviewCard]:
        """Load all review cards of a learner."""
        with session_scope(self._factory) as session:
            rows = session.scalars(
                select(ReviewCardRecord).where(ReviewCardRecord.user_id == user_id)
            ).all()
            return [row.to_card() for row in rows]

    def due_items(
        self,
        user_id: str,
        now: datetime | None = None,
        limit: int | None = None,
    ) -> list[ReviewCard]:
        """Cards of a learner that are due for review."""
        return due_cards(self.load_cards(user_id), now, limit)

    def metrics(self, user_id: str, now: datetime | None = None) -> SRSMetrics:
        """Deck summary for a learner."""
        return card_metrics(self.load_cards(user_id), now)

    # ========================================
    # Writes
    # ========================================

    def save_profile(self, profile: LearnerProfile) -> None:
        """Insert or overwrite a learner profile."""
        with session_scope(self._factory) as session:
            record = session.get(LearnerProfileRecord, profile.user_id)
            if record is None:
                record = LearnerProfileRecord(user_id=profile.user_id)
                session.add(record)
            _write_profile(record, profile)
        logger.info(f"Saved profile for '{profile.user_id}'")

    def record_answer(
        self,
        user_id: str,
        attempt: AttemptRecord,
        *,
        review: bool = False,
        now: datetime | None = None,
    ) -> tuple[LearnerProfile, ReviewCard | None]:
        """
        Apply an answer to a stored learner.

        Args:
            user_id: Learner identifier
            attempt: The answer event
            review: Put the item under spaced review if it is not already
            now: Event time (defaults to current UTC time)

        Returns:
            (updated profile, updated card or None)

        Raises:
            ConcurrentUpdateError: If every attempt lost a race with another writer
        """
        for attempt_no in range(1, self.max_retries + 1):
            try:
                result = self._apply_answer(user_id, attempt, review, now)
            except (StaleDataError, IntegrityError) as e:
                logger.warning(
                    f"Conflicting update for '{user_id}' (attempt {attempt_no}/{self.max_retries}): "
                    f"{type(e).__name__}"
                )
                continue
            logger.info(f"Recorded answer on {attempt.item_id} for '{user_id}'")
            return result

        raise ConcurrentUpdateError(user_id, self.max_retries)

    def _apply_answer(
        self,
        user_id: str,
        attempt: AttemptRecord,
        review: bool,
        now: datetime | None,
    ) -> tuple[LearnerProfile, ReviewCard | None]:
        with session_scope(self._factory) as session:
            record = session.get(LearnerProfileRecord, user_id)
            card_record = session.get(ReviewCardRecord, (user_id, attempt.item_id))

            profile = record.to_profile() if record is not None else LearnerProfile(user_id=user_id)
            card = card_record.to_card() if card_record is not None else None

            updated, new_card = self.engine.record_answer(profile, attempt, card, review=review, now=now)

            if record is None:
                record = LearnerProfileRecord(user_id=user_id)
                session.add(record)
            _write_profile(record, updated)

            if new_card is not None:
                if card_record is None:
                    card_record = ReviewCardRecord(user_id=user_id, item_id=new_card.item_id)
                    session.add(card_record)
                card_record.apply(new_card)

            session.flush()
            return updated, new_card


def _write_profile(record: LearnerProfileRecord, profile: LearnerProfile) -> None:
    data = profile.to_dict()
    record.overall_ability = data["overall_ability"]
    record.topic_abilities = data["topic_abilities"]
    record.topic_attempt_counts = data["topic_attempt_counts"]
    record.item_history = data["item_history"]
    record.last_updated = profile.last_updated
