"""
Exceptions raised by the learner engine.

Caller mistakes (a grade of 7, a question without an id) raise
``EngineValidationError``. Damaged learner state never does: the sanitizer
repairs it instead.
"""


class EngineError(Exception):
    """Base class for learner engine errors."""

    pass


class EngineValidationError(EngineError, ValueError):
    """Raised when an operation is called with arguments that break its contract."""

    pass


class ConcurrentUpdateError(EngineError):
    """Raised when a learner could not be updated after repeated write conflicts."""

    def __init__(self, user_id: str, attempts: int):
        self.user_id = user_id
        self.attempts = attempts
        super().__init__(f"Gave up updating learner '{user_id}' after {attempts} conflicting attempts")
