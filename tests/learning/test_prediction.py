"""
Unit tests for performance prediction.

Tests:
- Logistic probability and gap-based confidence
- Sessions-to-mastery estimates
"""

import math

import pytest

from learner_engine.core.errors import EngineValidationError
from learner_engine.learning.prediction import estimate_sessions_to_mastery, predict


class TestPredict:
    """Tests for predict."""

    def test_even_match(self):
        prediction = predict(1500, 1500)

        assert prediction.probability == pytest.approx(0.5)
        assert prediction.confidence == pytest.approx(1.0)

    def test_stronger_learner(self):
        prediction = predict(1900, 1500)

        assert prediction.probability == pytest.approx(1 / (1 + math.exp(-1)))
        assert prediction.confidence == pytest.approx(0.5)

    def test_confidence_floor(self):
        assert predict(1500, 2400).confidence == pytest.approx(0.1)

    def test_probability_increases_with_ability(self):
        probabilities = [predict(ability, 1600).probability for ability in range(800, 2401, 50)]

        assert probabilities == sorted(probabilities)
        assert all(0 < p < 1 for p in probabilities)

    @pytest.mark.parametrize(("ability", "difficulty"), [(1500, "hard"), (None, 1500), (1500, float("nan")), (float("inf"), 1500)])
    def test_non_numeric_ratings_raise(self, ability, difficulty):
        with pytest.raises(EngineValidationError, match="finite number"):
            predict(ability, difficulty)


class TestSessionsToMastery:
    """Tests for estimate_sessions_to_mastery."""

    def test_close_target_with_steady_progress(self):
        estimate = estimate_sessions_to_mastery(1450, 1500, [8, 12, 10, 9])

        assert estimate.sessions == 6
        assert estimate.sessions < 10
        assert estimate.confidence == pytest.approx(0.878125)
        assert estimate.confidence > 0.7

    def test_distant_target_with_erratic_progress(self):
        estimate = estimate_sessions_to_mastery(1200, 1600, [5, 8, 3, 12])

        assert estimate.sessions == 58
        assert estimate.sessions > 20
        assert estimate.confidence == pytest.approx(0.1)
        assert estimate.confidence < 0.6

    @pytest.mark.parametrize(("current", "target"), [(1500, 1500), (1600, 1500)])
    def test_target_already_reached(self, current, target):
        estimate = estimate_sessions_to_mastery(current, target, [0, 0])

        assert estimate.sessions == 0
        assert estimate.confidence == 1.0

    def test_no_samples_assumes_default_gain(self):
        estimate = estimate_sessions_to_mastery(1400, 1500)

        assert estimate.sessions == 10
        assert estimate.confidence == pytest.approx(0.8)

    def test_single_sample_has_no_variance(self):
        estimate = estimate_sessions_to_mastery(1400, 1500, [20])

        assert estimate.sessions == 5
        assert estimate.confidence == pytest.approx(0.8)

    def test_regressing_learner_floors_gain(self):
        estimate = estimate_sessions_to_mastery(1450, 1500, [-5, -3])

        assert estimate.sessions == 50
        # variance around the floored mean of 1: (36 + 16) / 2
        assert estimate.confidence == pytest.approx(1 - 0.1 - 0.26)

    @pytest.mark.parametrize(
        ("current", "target", "progress"),
        [(1500, float("nan"), []), ("1500", 1600, []), (1500, None, []), (1500, 1600, [10, "fast"]), (1500, 1600, [float("inf")])],
    )
    def test_non_numeric_inputs_raise(self, current, target, progress):
        with pytest.raises(EngineValidationError):
            estimate_sessions_to_mastery(current, target, progress)


class TestReferenceCases:
    """Reference cases for predictions."""

    def test_probability_direction(self):
        assert predict(1500, 1500).probability == pytest.approx(0.5, abs=0.1)
        assert predict(1500, 1500).confidence > 0.9
        assert predict(1600, 1500).probability > 0.5
        assert predict(1400, 1500).probability < 0.5
        assert predict(1500, 2000).confidence < 0.5

    def test_already_past_target(self):
        estimate = estimate_sessions_to_mastery(1500, 1450, [])

        assert (estimate.sessions, estimate.confidence) == (0, 1.0)
