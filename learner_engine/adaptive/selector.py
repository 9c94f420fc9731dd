"""
Adaptive question selection.

Candidates are scored by how close their difficulty is to the learner's
rating. The best-matching slice of the pool is kept, and picks are drawn at
random from its top few entries so a learner does not see the same sequence
every session while still getting well-matched questions.
"""

from __future__ import annotations

import random
from collections.abc import Iterable, Mapping
from statistics import fmean

from loguru import logger

from ..core.errors import EngineValidationError
from ..core.models import QuestionCandidate, SelectionResult

MATCH_BAND = 50  # Difficulty gap that drops the match score to zero

NO_QUESTIONS_MESSAGE = "No questions available for current ability level"
BROADEN_CRITERIA = "broaden_criteria"

GOAL_BOOST = 0.5
ERROR_WEIGHT = 0.2
WEAKNESS_SCALE = 200


def match_score(ability: float, difficulty: float) -> float:
    """Score in [0, 100]: 100 for an exact match, 0 beyond MATCH_BAND."""
    return max(0.0, 100.0 - abs(difficulty - ability) / MATCH_BAND * 100.0)


def select_questions(
    ability: float,
    candidates: Iterable[QuestionCandidate],
    target_count: int,
    rng: random.Random | None = None,
    window: int = 3,
    pool_multiplier: int = 2,
) -> SelectionResult:
    """
    Pick questions matched to a learner's rating.

    Args:
        ability: Rating to match against (overall or topic)
        candidates: Question pool
        target_count: Number of questions wanted
        rng: Random generator for the picks (a private one if None)
        window: Top-ranked candidates eligible for each pick
        pool_multiplier: Pool kept after ranking, as a multiple of target_count

    Returns:
        SelectionResult with up to target_count distinct questions, or an
        empty result carrying a fallback recommendation

    Raises:
        EngineValidationError: If target_count is not a non-negative integer
    """
    if isinstance(target_count, bool) or not isinstance(target_count, int) or target_count < 0:
        raise EngineValidationError(f"target_count must be a non-negative integer, got {target_count!r}")
    if window < 1 or pool_multiplier < 1:
        raise EngineValidationError("window and pool_multiplier must be >= 1")

    pool = list(candidates)
    if not pool:
        logger.debug("Selection requested from an empty candidate pool")
        return SelectionResult(
            questions=[],
            total_available=0,
            fallback_recommendation=NO_QUESTIONS_MESSAGE,
            suggested_action=BROADEN_CRITERIA,
        )

    rng = rng or random.Random()

    scored = [candidate.scored(match_score(ability, candidate.difficulty)) for candidate in pool]
    scored.sort(key=lambda c: (-c.match_score, abs(c.difficulty - ability), c.id))
    remaining = scored[: pool_multiplier * target_count]

    selected: list[QuestionCandidate] = []
    while remaining and len(selected) < target_count:
        index = rng.randrange(min(window, len(remaining)))
        selected.append(remaining.pop(index))

    logger.debug(
        f"Selected {len(selected)}/{target_count} questions from {len(pool)} candidates at ability {ability:.0f}"
    )
    return SelectionResult(questions=selected, total_available=len(pool))


def topic_priority(
    topic_abilities: Mapping[str, float],
    learning_goals: Iterable[str] = (),
    recent_errors: Mapping[str, int] | None = None,
) -> dict[str, float]:
    """
    Rank topics by how much attention they need.

    priority = 1 + 0.5 if a learning goal
                 + 0.2 per recent error
                 + max(0, (mean rating - topic rating) / 200)

    Args:
        topic_abilities: Topic -> rating
        learning_goals: Topics the learner is working toward
        recent_errors: Topic -> recent incorrect answers

    Returns:
        Topic -> priority, higher first
    """
    if not topic_abilities:
        return {}

    goals = set(learning_goals)
    recent_errors = recent_errors or {}
    mean_ability = fmean(topic_abilities.values())

    priorities = {}
    for topic, ability in topic_abilities.items():
        priority = 1.0
        if topic in goals:
            priority += GOAL_BOOST
        priority += recent_errors.get(topic, 0) * ERROR_WEIGHT
        priority += max(0.0, (mean_ability - ability) / WEAKNESS_SCALE)
        priorities[topic] = priority

    return dict(sorted(priorities.items(), key=lambda item: (-item[1], item[0])))
