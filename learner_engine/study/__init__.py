"""
Spaced repetition scheduling.
"""

from .scheduler import SM2Config, SM2Scheduler, card_metrics, due_cards, topic_review_urgency

__all__ = [
    "SM2Config",
    "SM2Scheduler",
    "card_metrics",
    "due_cards",
    "topic_review_urgency",
]
