"""
Knowledge-gap analysis over a learner's answer history.

A gap is a topic the learner keeps missing. Misses answered with low
confidence indicate the learner knows they don't know, which makes the gap
more severe than confident slips.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from ..core.models import ItemAttempt

MIN_MISSES = 2
LOW_CONFIDENCE_THRESHOLD = 0.5


class GapSeverity(str, Enum):
    """How urgently a knowledge gap needs remediation."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {GapSeverity.HIGH: 0, GapSeverity.MEDIUM: 1, GapSeverity.LOW: 2}[self]

    @classmethod
    def classify(cls, misses: int, low_confidence_rate: float) -> GapSeverity:
        if misses >= 4 and low_confidence_rate > 0.6:
            return cls.HIGH
        elif misses >= 3 or low_confidence_rate > 0.4:
            return cls.MEDIUM
        else:
            return cls.LOW


@dataclass(frozen=True)
class KnowledgeGap:
    """A topic the learner repeatedly answers incorrectly."""

    topic: str
    misses: int
    low_confidence_rate: float
    severity: GapSeverity
    item_ids: tuple[str, ...] = ()


def recent_errors(history: Sequence[ItemAttempt], window: int = 20) -> dict[str, int]:
    """Incorrect answers per topic among the last ``window`` history entries."""
    if window <= 0:
        return {}
    errors: Counter[str] = Counter()
    for attempt in history[-window:]:
        if not attempt.correct and attempt.topic:
            errors[attempt.topic] += 1
    return dict(errors)


def find_knowledge_gaps(
    history: Sequence[ItemAttempt],
    low_confidence_threshold: float = LOW_CONFIDENCE_THRESHOLD,
) -> list[KnowledgeGap]:
    """
    Find topics with repeated misses.

    Args:
        history: Learner answer history
        low_confidence_threshold: Misses below this confidence count as low-confidence

    Returns:
        Gaps ordered by severity, then by number of misses (descending), then topic
    """
    misses: dict[str, list[ItemAttempt]] = defaultdict(list)
    for attempt in history:
        if not attempt.correct and attempt.topic:
            misses[attempt.topic].append(attempt)

    gaps = []
    for topic, missed in misses.items():
        if len(missed) < MIN_MISSES:
            continue
        low = sum(
            1 for attempt in missed if attempt.confidence is not None and attempt.confidence < low_confidence_threshold
        )
        rate = low / len(missed)
        gaps.append(
            KnowledgeGap(
                topic=topic,
                misses=len(missed),
                low_confidence_rate=rate,
                severity=GapSeverity.classify(len(missed), rate),
                item_ids=tuple(dict.fromkeys(attempt.item_id for attempt in missed)),
            )
        )

    gaps.sort(key=lambda gap: (gap.severity.rank, -gap.misses, gap.topic))
    return gaps
