"""
Profile sanitizer.

Every raw learner profile passes through ``sanitize_profile`` before any
algorithm sees it. Stored profiles may be missing fields, carry the legacy
camelCase keys, or hold garbage left behind by old clients; the sanitizer
repairs all of that and never raises.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from numbers import Integral
from typing import Any

from loguru import logger

from .models import ItemAttempt, LearnerProfile, parse_timestamp
from .rating import DEFAULT_RATING, clamp_rating, is_number, to_float

# Persisted field -> legacy spelling
_LEGACY_KEYS = {
    "user_id": "userId",
    "overall_ability": "overallAbility",
    "topic_abilities": "topicAbilities",
    "topic_attempt_counts": "topicAttemptCounts",
    "item_history": "itemHistory",
    "last_updated": "lastUpdated",
}

_MISSING = object()


def _field(raw: Mapping, name: str) -> Any:
    if name in raw:
        return raw[name]
    return raw.get(_LEGACY_KEYS[name], _MISSING)


def _is_usable_rating(value: Any) -> bool:
    # Integers too large for a float are still ratings; clamp_rating saturates them
    if not is_number(value):
        return False
    if not isinstance(value, Integral) and not math.isfinite(to_float(value)):
        return False
    return value > 0


def _sanitize_overall(value: Any) -> int:
    if not _is_usable_rating(value):
        if value is not _MISSING:
            logger.debug(f"Replacing invalid overall ability {value!r} with {DEFAULT_RATING}")
        return DEFAULT_RATING
    return clamp_rating(value)


def _sanitize_abilities(value: Any) -> dict[str, int]:
    if not isinstance(value, Mapping):
        if value is not _MISSING:
            logger.debug(f"Discarding non-mapping topic abilities: {type(value).__name__}")
        return {}

    abilities = {}
    for topic, rating in value.items():
        if not isinstance(topic, str) or not topic:
            continue
        if not _is_usable_rating(rating):
            logger.debug(f"Dropping invalid rating {rating!r} for topic '{topic}'")
            continue
        abilities[topic] = clamp_rating(rating)
    return abilities


def _sanitize_counts(value: Any) -> dict[str, int]:
    if not isinstance(value, Mapping):
        return {}

    counts = {}
    for topic, count in value.items():
        if not isinstance(topic, str) or not topic:
            continue
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            logger.debug(f"Dropping invalid attempt count {count!r} for topic '{topic}'")
            continue
        counts[topic] = count
    return counts


def _sanitize_attempt(entry: Any) -> ItemAttempt | None:
    if isinstance(entry, ItemAttempt):
        return entry
    if not isinstance(entry, Mapping):
        return None

    item_id = entry.get("item_id", entry.get("itemId"))
    if not isinstance(item_id, str) or not item_id:
        return None

    confidence = entry.get("confidence")
    if not is_number(confidence) or not 0.0 <= confidence <= 1.0:
        confidence = None

    topic = entry.get("topic")
    return ItemAttempt(
        item_id=item_id,
        correct=entry.get("correct", entry.get("isCorrect")) is True,
        timestamp=parse_timestamp(entry.get("timestamp")),
        topic=topic if isinstance(topic, str) and topic else None,
        confidence=float(confidence) if confidence is not None else None,
    )


def _sanitize_history(value: Any) -> list[ItemAttempt]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        if value is not _MISSING:
            logger.debug(f"Discarding non-list item history: {type(value).__name__}")
        return []

    history = []
    for entry in value:
        attempt = _sanitize_attempt(entry)
        if attempt is None:
            logger.debug(f"Dropping malformed history entry: {entry!r}")
            continue
        history.append(attempt)
    return history


def sanitize_profile(raw: Any) -> LearnerProfile:
    """
    Normalize a raw learner profile.

    Args:
        raw: Mapping (snake_case or camelCase keys), LearnerProfile, None, or anything else

    Returns:
        A fresh LearnerProfile satisfying every rating, count and history invariant
    """
    if isinstance(raw, LearnerProfile):
        raw = {
            "user_id": raw.user_id,
            "overall_ability": raw.overall_ability,
            "topic_abilities": raw.topic_abilities,
            "topic_attempt_counts": raw.topic_attempt_counts,
            "item_history": raw.item_history,
            "last_updated": raw.last_updated,
        }
    elif not isinstance(raw, Mapping):
        if raw is not None:
            logger.debug(f"Replacing non-mapping profile of type {type(raw).__name__} with defaults")
        return LearnerProfile()

    user_id = _field(raw, "user_id")
    return LearnerProfile(
        user_id=user_id if isinstance(user_id, str) else "",
        overall_ability=_sanitize_overall(_field(raw, "overall_ability")),
        topic_abilities=_sanitize_abilities(_field(raw, "topic_abilities")),
        topic_attempt_counts=_sanitize_counts(_field(raw, "topic_attempt_counts")),
        item_history=_sanitize_history(_field(raw, "item_history")),
        last_updated=parse_timestamp(_field(raw, "last_updated")),
    )
