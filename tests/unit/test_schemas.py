"""
Unit tests for request payload validation.
"""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from learner_engine.schemas import AttemptPayload, parse_candidates, parse_cards


class TestCandidates:
    """Tests for candidate pools."""

    def test_valid_pool(self):
        pool = parse_candidates([{"id": "q1", "topic": "math", "difficulty": 1500}, {"id": "q2", "difficulty": "1620"}])

        assert [c.id for c in pool] == ["q1", "q2"]
        assert pool[1].difficulty == 1620.0
        assert pool[1].topic == ""

    @pytest.mark.parametrize(
        "entry",
        [{"id": "", "difficulty": 1500}, {"id": "q1"}, {"id": "q1", "difficulty": "hard"}, {"id": "q1", "difficulty": "nan"}],
    )
    def test_invalid_entries_rejected(self, entry):
        with pytest.raises(ValidationError):
            parse_candidates([entry])

    def test_not_a_list(self):
        with pytest.raises(ValidationError):
            parse_candidates({"id": "q1", "difficulty": 1500})


class TestCards:
    """Tests for review card payloads."""

    def test_camel_case_card(self):
        (card,) = parse_cards([{"itemId": "q1", "interval": 6, "easeFactor": 2.4, "nextReviewAt": "2025-03-01T00:00:00Z"}])

        assert card.item_id == "q1"
        assert card.easiness_factor == 2.4
        assert card.next_review_at == datetime(2025, 3, 1, tzinfo=UTC)

    def test_easiness_below_floor_rejected(self):
        with pytest.raises(ValidationError):
            parse_cards([{"item_id": "q1", "easiness_factor": 1.0, "next_review_at": "2025-03-01T00:00:00Z"}])


class TestAttempts:
    """Tests for answer payloads."""

    def test_label_confidence(self):
        attempt = AttemptPayload.model_validate(
            {"itemId": "q1", "isCorrect": True, "difficulty": 1500, "confidence": "high"}
        ).to_domain()

        assert attempt.confidence == 1.0

    @pytest.mark.parametrize(("label", "value"), [("Low", 0.3), ("Medium", 0.7), ("High", 1.0), (" HIGH ", 1.0)])
    def test_capitalized_label_confidence(self, label, value):
        attempt = AttemptPayload.model_validate(
            {"itemId": "q1", "correct": True, "itemDifficulty": 1500, "confidence": label}
        ).to_domain()

        assert attempt.confidence == value

    def test_unknown_label_rejected(self):
        with pytest.raises(ValidationError):
            AttemptPayload.model_validate({"item_id": "q1", "correct": True, "item_difficulty": 1500, "confidence": "unsure"})

    def test_missing_confidence_left_to_engine(self):
        attempt = AttemptPayload.model_validate({"item_id": "q1", "correct": False, "item_difficulty": 1400}).to_domain()

        assert attempt.confidence is None
        assert attempt.correct is False

    def test_negative_response_time_rejected(self):
        with pytest.raises(ValidationError):
            AttemptPayload.model_validate(
                {"item_id": "q1", "correct": True, "item_difficulty": 1500, "response_time_ms": -1}
            )
