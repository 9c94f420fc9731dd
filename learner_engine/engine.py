"""
Personalization engine.

Entry points used by the request-serving layer:
- record_answer: update ratings (and the review card) after an answer
- get_next_items: adaptively select the next questions
- get_due_items: review cards due now
- predict_outcome / estimate_mastery: forecasts for a learner

The engine holds configuration and a random generator only. Learner state
goes in and comes out explicitly; persisting it (and serializing concurrent
updates to one learner) is the caller's job, see ``learner_engine.db``.
"""

from __future__ import annotations

import random
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from .adaptive.selector import select_questions, topic_priority
from .config import Settings, get_settings
from .core.errors import EngineValidationError
from .core.models import (
    AttemptRecord,
    ItemAttempt,
    LearnerProfile,
    MasteryEstimate,
    NextItemsResult,
    Prediction,
    QuestionCandidate,
    ReviewCard,
    as_utc,
)
from .core.sanitizer import sanitize_profile
from .learning.ability import effective_confidence, update_ability
from .learning.gaps import recent_errors
from .learning.prediction import estimate_sessions_to_mastery, predict
from .learning.topics import overall_ability, record_topic_ability, record_topic_attempt, topic_ability
from .study.scheduler import SM2Config, SM2Scheduler, due_cards


class PersonalizationEngine:
    """
    Facade over the learner-modeling components.

    Example:
        engine = PersonalizationEngine(rng=random.Random(7))
        profile, card = engine.record_answer(raw_profile, attempt, card)
        batch = engine.get_next_items(profile, pool, count=5)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        rng: random.Random | None = None,
        scheduler: SM2Scheduler | None = None,
    ):
        """
        Initialize the engine.

        Args:
            settings: Engine settings (cached environment settings if None)
            rng: Generator for adaptive selection (seeded from settings if None)
            scheduler: SM-2 scheduler (built from settings if None)
        """
        self.settings = settings or get_settings()
        self.rng = rng or random.Random(self.settings.selection_seed)
        self.scheduler = scheduler or SM2Scheduler(
            SM2Config(expected_response_ms=self.settings.expected_response_ms)
        )

    # =========================================================================
    # Answer Recording
    # =========================================================================

    def record_answer(
        self,
        profile: Any,
        attempt: AttemptRecord,
        card: ReviewCard | None = None,
        *,
        review: bool = False,
        now: datetime | None = None,
    ) -> tuple[LearnerProfile, ReviewCard | None]:
        """
        Apply one answer to a learner.

        Args:
            profile: Raw or typed learner profile (sanitized first)
            attempt: The answer event
            card: Review card for the item, if it is under spaced review
            review: Create a review card when none is given
            now: Event time (defaults to current UTC time)

        Returns:
            (updated profile, updated card or None)

        Raises:
            EngineValidationError: If the card belongs to a different item
        """
        if not isinstance(attempt, AttemptRecord):
            raise EngineValidationError(f"attempt must be an AttemptRecord, got {type(attempt).__name__}")
        if card is not None and card.item_id != attempt.item_id:
            raise EngineValidationError(
                f"Review card for '{card.item_id}' does not match attempt item '{attempt.item_id}'"
            )

        now = as_utc(now or datetime.now(UTC))
        learner = sanitize_profile(profile)
        reported = self.settings.default_confidence if attempt.confidence is None else attempt.confidence
        confidence = effective_confidence(
            reported,
            attempt.response_time_ms,
            fast_ms=self.settings.fast_answer_ms,
            slow_ms=self.settings.slow_answer_ms,
            cap=self.settings.outlier_confidence_cap,
        )

        if attempt.topic:
            current = topic_ability(learner.topic_abilities, attempt.topic, learner.overall_ability)
            new_topic_ability = update_ability(current, attempt.correct, attempt.item_difficulty, confidence)
            abilities = record_topic_ability(learner, attempt.topic, new_topic_ability)
            counts = record_topic_attempt(learner.topic_attempt_counts, attempt.topic)
            new_overall = overall_ability(abilities, counts)
        else:
            abilities = dict(learner.topic_abilities)
            counts = dict(learner.topic_attempt_counts)
            new_overall = update_ability(
                learner.overall_ability, attempt.correct, attempt.item_difficulty, confidence
            )

        history = list(learner.item_history)
        history.append(
            ItemAttempt(
                item_id=attempt.item_id,
                correct=attempt.correct,
                timestamp=now,
                topic=attempt.topic,
                confidence=reported,
            )
        )

        updated = replace(
            learner,
            overall_ability=new_overall,
            topic_abilities=abilities,
            topic_attempt_counts=counts,
            item_history=history,
            last_updated=now,
        )
        logger.debug(
            f"Recorded {'correct' if attempt.correct else 'incorrect'} answer on {attempt.item_id} "
            f"for '{learner.user_id}': overall {learner.overall_ability} -> {new_overall}"
        )

        if card is None and review:
            card = self.scheduler.new_card(attempt.item_id, now)
        if card is not None:
            grade = self.scheduler.grade_from_response(attempt.correct, attempt.response_time_ms)
            card = self.scheduler.review(card, grade, now)

        return updated, card

    # =========================================================================
    # Selection
    # =========================================================================

    def get_next_items(
        self,
        profile: Any,
        candidate_pool: Iterable[QuestionCandidate],
        count: int,
        topic_filter: Sequence[str] | str | None = None,
        exclude_ids: Iterable[str] | None = None,
        learning_goals: Iterable[str] | None = None,
    ) -> NextItemsResult:
        """
        Select the next questions for a learner.

        Args:
            profile: Raw or typed learner profile (sanitized first)
            candidate_pool: Questions that may be served
            count: Questions wanted (capped at settings.max_next_items)
            topic_filter: Restrict to these topics (None = all)
            exclude_ids: Question ids to leave out, e.g. recently served
            learning_goals: Topics boosted in the returned priorities

        Returns:
            NextItemsResult with the selection, the rating it was matched
            against and per-topic priorities

        Raises:
            EngineValidationError: If count is not a positive integer
        """
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise EngineValidationError(f"count must be a positive integer, got {count!r}")
        count = min(count, self.settings.max_next_items)

        learner = sanitize_profile(profile)
        topics = [topic_filter] if isinstance(topic_filter, str) else list(topic_filter or [])
        excluded = set(exclude_ids or ())

        pool = [
            candidate
            for candidate in candidate_pool
            if candidate.id not in excluded and (not topics or candidate.topic in topics)
        ]

        ability = learner.overall_ability
        if len(topics) == 1:
            ability = topic_ability(learner.topic_abilities, topics[0], learner.overall_ability)

        selection = select_questions(
            ability,
            pool,
            count,
            rng=self.rng,
            window=self.settings.selection_window,
            pool_multiplier=self.settings.candidate_pool_multiplier,
        )
        priorities = topic_priority(
            learner.topic_abilities,
            learning_goals or (),
            recent_errors(learner.item_history, self.settings.recent_error_window),
        )

        return NextItemsResult(
            questions=selection.questions,
            total_available=selection.total_available,
            fallback_recommendation=selection.fallback_recommendation,
            suggested_action=selection.suggested_action,
            ability_used=ability,
            topic_priorities=priorities,
        )

    def get_due_items(
        self,
        cards: Iterable[ReviewCard],
        now: datetime | None = None,
        limit: int | None = None,
    ) -> list[ReviewCard]:
        """Review cards due at ``now``, most overdue first."""
        return due_cards(cards, now, limit)

    # =========================================================================
    # Prediction
    # =========================================================================

    def predict_outcome(
        self,
        profile: Any,
        candidate_difficulty: float,
        topic: str | None = None,
    ) -> Prediction:
        """Predict a learner's chance of answering an item correctly."""
        learner = sanitize_profile(profile)
        ability = learner.overall_ability
        if topic:
            ability = topic_ability(learner.topic_abilities, topic, learner.overall_ability)
        return predict(ability, candidate_difficulty)

    def estimate_mastery(
        self,
        profile: Any,
        target_ability: float,
        recent_progress: Sequence[float] = (),
        topic: str | None = None,
    ) -> MasteryEstimate:
        """Estimate sessions until the learner (or one topic) reaches target_ability."""
        learner = sanitize_profile(profile)
        ability = learner.overall_ability
        if topic:
            ability = topic_ability(learner.topic_abilities, topic, learner.overall_ability)
        return estimate_sessions_to_mastery(ability, target_ability, recent_progress)
