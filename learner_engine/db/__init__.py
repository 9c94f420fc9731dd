"""
Relational learner store.
"""

from .database import get_engine, get_session_factory, init_db, make_engine, make_session_factory, session_scope
from .models import Base, LearnerProfileRecord, ReviewCardRecord
from .repository import LearnerStore

__all__ = [
    "Base",
    "LearnerProfileRecord",
    "LearnerStore",
    "ReviewCardRecord",
    "get_engine",
    "get_session_factory",
    "init_db",
    "make_engine",
    "make_session_factory",
    "session_scope",
]
