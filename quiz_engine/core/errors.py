"""Exception taxonomy raised by the quiz engine services.

Services raise these; :class:`quiz_engine.core.quiz_manager.QuizManager`
catches them at the operation boundary and turns them into structured
results. Messages are deliberately generic so that a caller cannot learn why
access failed or whether a record it may not see exists.
"""

from __future__ import annotations


class QuizEngineError(Exception):
    """Base class for every error the engine reports to callers."""

    kind: str = "internal"


class ValidationFailed(QuizEngineError):
    """Raised when input or a record fails validation. Carries every error."""

    kind = "validation"

    def __init__(self, errors: list[str]) -> None:
        super().__init__("Validation failed")
        self.errors = list(errors)


class NotFound(QuizEngineError):
    """Raised when a quiz, question or attempt is absent or not visible."""

    kind = "not_found"

    def __init__(self, entity: str = "Resource") -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity


class AccessDenied(QuizEngineError):
    """Raised when the principal lacks rights on an existing record."""

    kind = "access_denied"

    def __init__(self) -> None:
        super().__init__("Access denied")


class InvalidState(QuizEngineError):
    """Raised when an operation does not fit the record's current state."""

    kind = "invalid_state"


class QuizInactive(InvalidState):
    def __init__(self) -> None:
        super().__init__("Quiz is not active")


class AlreadyCompleted(InvalidState):
    def __init__(self) -> None:
        super().__init__("Attempt already completed")


class StoreError(QuizEngineError):
    """Raised by a data store when it cannot read or write records."""


class WriteConflict(StoreError):
    """Raised when a conditioned write finds the record in an unexpected state."""
