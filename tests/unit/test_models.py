"""
Unit tests for core domain types.
"""

from datetime import UTC, datetime

import pytest

from learner_engine.core.errors import EngineValidationError
from learner_engine.core.models import (
    AttemptRecord,
    CardStatus,
    ItemAttempt,
    LearnerProfile,
    QuestionCandidate,
    ReviewCard,
)


class TestCardStatus:
    """Tests for status derivation from the interval."""

    @pytest.mark.parametrize(
        ("interval", "status"),
        [(0, CardStatus.NEW), (1, CardStatus.LEARNING), (20, CardStatus.LEARNING), (21, CardStatus.MATURE), (90, CardStatus.MATURE)],
    )
    def test_from_interval(self, interval, status):
        assert CardStatus.from_interval(interval) is status

    def test_card_status_property(self, now):
        card = ReviewCard(item_id="q1", next_review_at=now, interval=30)

        assert card.status is CardStatus.MATURE


class TestReviewCard:
    """Tests for ReviewCard construction."""

    def test_naive_datetimes_treated_as_utc(self):
        card = ReviewCard(item_id="q1", next_review_at=datetime(2025, 1, 1, 9, 0))

        assert card.next_review_at == datetime(2025, 1, 1, 9, 0, tzinfo=UTC)

    def test_requires_item_id(self, now):
        with pytest.raises(EngineValidationError):
            ReviewCard(item_id="", next_review_at=now)

    def test_is_due(self, now):
        card = ReviewCard(item_id="q1", next_review_at=now)

        assert card.is_due(now)
        assert card.to_dict()["status"] == "new"


class TestQuestionCandidate:
    """Tests for candidate validation."""

    def test_valid_candidate(self):
        candidate = QuestionCandidate(id="q1", topic="math", difficulty=1500)

        assert candidate.match_score is None
        assert candidate.scored(75.0).match_score == 75.0

    @pytest.mark.parametrize(("qid", "difficulty"), [("", 1500), ("q1", "hard"), ("q1", None), ("q1", float("nan")), ("q1", float("inf")), ("q1", 10**400)])
    def test_contract_violations_raise(self, qid, difficulty):
        with pytest.raises(EngineValidationError):
            QuestionCandidate(id=qid, topic="math", difficulty=difficulty)


class TestAttemptRecord:
    """Tests for answer events."""

    def test_confidence_unset_by_default(self):
        attempt = AttemptRecord(item_id="q1", correct=True, item_difficulty=1500)

        assert attempt.confidence is None

    @pytest.mark.parametrize(("label", "value"), [("low", 0.3), ("Medium", 0.7), ("HIGH", 1.0)])
    def test_confidence_labels(self, label, value):
        attempt = AttemptRecord(item_id="q1", correct=True, item_difficulty=1500, confidence=label)

        assert attempt.confidence == value

    @pytest.mark.parametrize("confidence", [1.5, -0.1, "unsure"])
    def test_invalid_confidence(self, confidence):
        with pytest.raises(EngineValidationError):
            AttemptRecord(item_id="q1", correct=True, item_difficulty=1500, confidence=confidence)

    def test_correct_must_be_bool(self):
        with pytest.raises(EngineValidationError):
            AttemptRecord(item_id="q1", correct=1, item_difficulty=1500)

    def test_negative_response_time(self):
        with pytest.raises(EngineValidationError):
            AttemptRecord(item_id="q1", correct=True, item_difficulty=1500, response_time_ms=-5)


class TestLearnerProfile:
    """Tests for the profile container."""

    def test_recent_history(self):
        history = [ItemAttempt(item_id=f"q{i}", correct=True) for i in range(10)]
        profile = LearnerProfile(item_history=history)

        assert [a.item_id for a in profile.recent_history(3)] == ["q7", "q8", "q9"]
        assert profile.recent_history(0) == []

    def test_to_dict(self, now):
        profile = LearnerProfile(
            user_id="u1",
            overall_ability=1600,
            item_history=[ItemAttempt(item_id="q1", correct=True, timestamp=now)],
            last_updated=now,
        )

        data = profile.to_dict()
        assert data["user_id"] == "u1"
        assert data["item_history"][0]["timestamp"] == now.isoformat()
        assert data["last_updated"] == "2025-03-01T12:00:00+00:00"
