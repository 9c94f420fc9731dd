"""
Learner modeling: ability estimation, topic aggregation, prediction and gap analysis.
"""

from .ability import adjusted_k, effective_confidence, expected_score, update_ability
from .gaps import GapSeverity, KnowledgeGap, find_knowledge_gaps, recent_errors
from .prediction import estimate_sessions_to_mastery, predict
from .topics import overall_ability, record_topic_ability, record_topic_attempt, topic_ability

__all__ = [
    "GapSeverity",
    "KnowledgeGap",
    "adjusted_k",
    "effective_confidence",
    "estimate_sessions_to_mastery",
    "expected_score",
    "find_knowledge_gaps",
    "overall_ability",
    "predict",
    "recent_errors",
    "record_topic_ability",
    "record_topic_attempt",
    "topic_ability",
    "update_ability",
]
