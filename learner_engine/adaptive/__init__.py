"""
Adaptive selection of the next questions.
"""

from .selector import match_score, select_questions, topic_priority

__all__ = ["match_score", "select_questions", "topic_priority"]
