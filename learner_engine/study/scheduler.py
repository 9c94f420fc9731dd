"""
SM-2 Spaced Repetition Scheduler.

Implements:
- SM-2 transitions for review cards (new -> learning -> mature)
- Due-card retrieval in review order
- Deck metrics and topic review urgency

SM-2 Grade Scale:
0 - Complete blackout, wrong response
1 - Incorrect, but upon seeing answer remembered
2 - Incorrect, but answer seemed easy to recall
3 - Correct, but with significant difficulty
4 - Correct, with some hesitation
5 - Correct, with perfect recall
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta

from loguru import logger

from ..core.errors import EngineValidationError
from ..core.models import CardStatus, ReviewCard, SRSMetrics, as_utc
from ..core.rating import round_half_away, round_to

# =============================================================================
# SM-2 Algorithm
# =============================================================================


@dataclass
class SM2Config:
    """Configuration for SM-2 algorithm."""

    initial_easiness: float = 2.5
    minimum_easiness: float = 1.3
    first_interval: int = 1  # Days after a new card's first success
    second_interval: int = 6  # Days after the second success
    failure_penalty: float = 0.2  # Easiness lost on a failed recall
    passing_grade: int = 3
    expected_response_ms: int = 15000


class SM2Scheduler:
    """
    Implements the SM-2 spaced repetition algorithm.

    The SuperMemo 2 algorithm calculates review intervals from performance
    history. Each card has:
    - Easiness Factor (EF): How easy the item is (2.5 default, min 1.3)
    - Interval: Days until next review (0 for a card never reviewed)
    - Repetitions: Consecutive correct recalls
    """

    def __init__(self, config: SM2Config | None = None):
        """
        Initialize SM-2 scheduler.

        Args:
            config: Custom configuration (uses defaults if None)
        """
        self.config = config or SM2Config()

    def new_card(self, item_id: str, now: datetime | None = None) -> ReviewCard:
        """Create a card that is due immediately."""
        now = as_utc(now or datetime.now(UTC))
        return ReviewCard(
            item_id=item_id,
            next_review_at=now,
            interval=0,
            easiness_factor=self.config.initial_easiness,
        )

    def review(
        self,
        card: ReviewCard,
        grade: int,
        now: datetime | None = None,
    ) -> ReviewCard:
        """
        Apply one graded review to a card.

        Args:
            card: Current card state (left untouched)
            grade: Recall quality (0-5)
            now: Review time (defaults to current UTC time)

        Returns:
            New ReviewCard with updated interval, easiness and next review

        Raises:
            EngineValidationError: If grade is not an integer in 0..5
        """
        if isinstance(grade, bool) or not isinstance(grade, int) or not 0 <= grade <= 5:
            raise EngineValidationError(f"SM-2 grade must be an integer 0-5, got {grade!r}")
        now = as_utc(now or datetime.now(UTC))

        if grade >= self.config.passing_grade:
            # Passed - advance using the easiness before this review
            if card.interval == 0:
                new_interval = self.config.first_interval
            elif card.interval == 1:
                new_interval = self.config.second_interval
            else:
                new_interval = round_half_away(card.interval * card.easiness_factor)

            # EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
            ef_delta = 0.1 - (5 - grade) * (0.08 + (5 - grade) * 0.02)
            new_ef = max(self.config.minimum_easiness, card.easiness_factor + ef_delta)
            new_repetitions = card.repetition_count + 1
        else:
            # Failed - back to a one-day interval
            new_interval = self.config.first_interval
            new_ef = max(self.config.minimum_easiness, card.easiness_factor - self.config.failure_penalty)
            new_repetitions = 0

        logger.debug(
            f"SM-2 review of {card.item_id}: grade={grade}, "
            f"interval {card.interval}->{new_interval}d, EF {card.easiness_factor:.2f}->{new_ef:.2f}"
        )

        return replace(
            card,
            interval=new_interval,
            easiness_factor=new_ef,
            repetition_count=new_repetitions,
            next_review_at=now + timedelta(days=new_interval),
            last_reviewed_at=now,
        )

    def grade_from_response(
        self,
        is_correct: bool,
        response_ms: int | None,
        expected_ms: int | None = None,
    ) -> int:
        """
        Convert a response to an SM-2 grade.

        Args:
            is_correct: Whether the answer was correct
            response_ms: Time taken to respond (None = unknown, graded as hesitant)
            expected_ms: Expected response time (config default if None)

        Returns:
            Grade 0-5
        """
        expected_ms = expected_ms or self.config.expected_response_ms
        if response_ms is None:
            return 4 if is_correct else 1

        if not is_correct:
            # Incorrect responses: 0-2
            if response_ms < expected_ms * 0.5:
                return 2  # Quick wrong = almost knew it
            elif response_ms < expected_ms:
                return 1  # Wrong but remembered when shown
            else:
                return 0  # Complete blackout

        # Correct responses: 3-5
        if response_ms < expected_ms * 0.5:
            return 5  # Quick and correct = perfect recall
        elif response_ms < expected_ms:
            return 4  # Correct with some hesitation
        else:
            return 3  # Correct but struggled


# =============================================================================
# Deck Queries
# =============================================================================


def due_cards(
    cards: Iterable[ReviewCard],
    now: datetime | None = None,
    limit: int | None = None,
) -> list[ReviewCard]:
    """
    Cards due for review, most overdue first.

    Args:
        cards: A learner's review cards
        now: Reference time (defaults to current UTC time)
        limit: Maximum number of cards to return (None = all)

    Returns:
        Due cards sorted by next_review_at, ties broken by item_id
    """
    now = as_utc(now or datetime.now(UTC))
    due = sorted(
        (card for card in cards if card.next_review_at <= now),
        key=lambda card: (card.next_review_at, card.item_id),
    )
    if limit is not None:
        if limit < 0:
            raise EngineValidationError(f"limit must be >= 0, got {limit}")
        due = due[:limit]
    return due


def card_metrics(cards: Iterable[ReviewCard], now: datetime | None = None) -> SRSMetrics:
    """Summarize a deck: counts by status, due count and averages."""
    now = as_utc(now or datetime.now(UTC))
    cards = list(cards)
    if not cards:
        return SRSMetrics()

    statuses = [card.status for card in cards]
    return SRSMetrics(
        total_cards=len(cards),
        due_cards=sum(1 for card in cards if card.next_review_at <= now),
        new_cards=statuses.count(CardStatus.NEW),
        learning_cards=statuses.count(CardStatus.LEARNING),
        mature_cards=statuses.count(CardStatus.MATURE),
        avg_easiness=round_to(sum(card.easiness_factor for card in cards) / len(cards), 2),
        avg_interval=round_to(sum(card.interval for card in cards) / len(cards), 1),
    )


def topic_review_urgency(days_since_study: float, mastery_level: int) -> float:
    """
    How overdue a topic is for review.

    A topic at mastery level n can rest 2^n days; urgency is the excess
    rest expressed in multiples of that allowance.

    Args:
        days_since_study: Days since the topic was last studied
        mastery_level: Non-negative mastery level

    Returns:
        0 when not yet overdue, otherwise the relative overrun
    """
    if mastery_level < 0:
        raise EngineValidationError(f"mastery_level must be >= 0, got {mastery_level}")
    allowance = 2**mastery_level
    return max(0.0, days_since_study - allowance) / allowance
