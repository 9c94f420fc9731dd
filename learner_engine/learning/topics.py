"""
Per-topic ability bookkeeping.

The overall rating is derived from topic ratings, weighted by how many
answers each topic has seen, so a topic answered once cannot outweigh one
answered fifty times.
"""

from __future__ import annotations

from collections.abc import Mapping

from ..core.errors import EngineValidationError
from ..core.models import LearnerProfile
from ..core.rating import DEFAULT_RATING, clamp_rating, round_half_away


def _require_topic(topic: str) -> None:
    if not isinstance(topic, str) or not topic:
        raise EngineValidationError(f"topic must be a non-empty string, got {topic!r}")


def record_topic_ability(profile: LearnerProfile, topic: str, new_ability: float) -> dict[str, int]:
    """Return a copy of the profile's topic ratings with one topic set."""
    _require_topic(topic)
    abilities = dict(profile.topic_abilities)
    abilities[topic] = clamp_rating(new_ability)
    return abilities


def record_topic_attempt(attempt_counts: Mapping[str, int], topic: str) -> dict[str, int]:
    """Return a copy of the attempt counts with one more attempt for topic."""
    _require_topic(topic)
    counts = dict(attempt_counts)
    counts[topic] = counts.get(topic, 0) + 1
    return counts


def overall_ability(
    topic_abilities: Mapping[str, int],
    attempt_counts: Mapping[str, int] | None = None,
) -> int:
    """
    Attempt-weighted mean of topic ratings.

    Args:
        topic_abilities: Topic -> rating
        attempt_counts: Topic -> attempts; missing or zero counts weigh 1

    Returns:
        Overall rating, DEFAULT_RATING when there are no topics
    """
    if not topic_abilities:
        return DEFAULT_RATING

    attempt_counts = attempt_counts or {}
    weighted = 0.0
    total_weight = 0
    for topic, ability in topic_abilities.items():
        weight = max(1, attempt_counts.get(topic, 1))
        weighted += ability * weight
        total_weight += weight
    return clamp_rating(round_half_away(weighted / total_weight))


def topic_ability(topic_abilities: Mapping[str, int], topic: str, fallback: int) -> int:
    """Rating for a topic; topics never answered inherit the fallback rating."""
    return topic_abilities.get(topic, fallback)
