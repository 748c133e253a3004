"""Operation boundary shared by the HTTP server and any other caller.

Every public method takes an explicit principal, runs one service operation
and returns an :class:`OperationResult`. Domain errors become failure results
with a generic message; anything else is logged and reported as an internal
error. No exception escapes a public method.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
from typing import Any

from quiz_engine.constants.quiz_constants import RESUMED_ATTEMPT_MESSAGE
from quiz_engine.core.access_policy import AccessPolicy
from quiz_engine.core.errors import QuizEngineError, ValidationFailed
from quiz_engine.core.inputs import (
    AnswerSubmission,
    PracticeTestRequest,
    QuestionCreate,
    QuestionPatch,
    QuizCreate,
    QuizPatch,
    QuizStatusUpdate,
    QuizTextImport,
    parse_payload,
)
from quiz_engine.core.markdown_math_renderer import MarkdownMathRenderer, renderer
from quiz_engine.core.models import Principal, Quiz, Role
from quiz_engine.core.services.attempt_service import AttemptService
from quiz_engine.core.services.data_store import DataStore, InMemoryDataStore
from quiz_engine.core.services.quiz_authoring import QuizAuthoringService
from quiz_engine.core.services.review_generators import ReviewGenerator
from quiz_engine.core.student_views import sanitize_quiz

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


@dataclass(slots=True)
class OperationResult:
    """Outcome of one operation, shaped like the HTTP response envelope."""

    success: bool
    data: Any = None
    error: str | None = None
    details: list[str] | None = None
    percentage: float | None = None
    message: str | None = None
    error_kind: str | None = None
    created: bool = False

    @classmethod
    def ok(cls, data: Any = None, **extra: Any) -> "OperationResult":
        return cls(success=True, data=data, **extra)

    @classmethod
    def failure(cls, error: QuizEngineError) -> "OperationResult":
        details = error.errors if isinstance(error, ValidationFailed) else None
        return cls(success=False, error=str(error), details=details, error_kind=error.kind)

    def to_envelope(self) -> dict[str, Any]:
        envelope: dict[str, Any] = {"success": self.success}
        for key in ("data", "error", "details", "percentage", "message"):
            value = getattr(self, key)
            if value is not None:
                envelope[key] = value
        return envelope


class QuizManager:
    """Facade over the authoring, attempt and review services."""

    def __init__(
        self,
        store: DataStore | None = None,
        policy: AccessPolicy | None = None,
        markdown: MarkdownMathRenderer = renderer,
    ) -> None:
        self._store = store if store is not None else InMemoryDataStore()
        self._policy = policy if policy is not None else AccessPolicy()
        self._markdown = markdown
        self._authoring = QuizAuthoringService(self._store, self._policy)
        self._attempts = AttemptService(self._store, self._policy)
        self._reviews = ReviewGenerator(self._store)

    # --- Quiz authoring ---

    def list_quizzes(self, principal: Principal) -> OperationResult:
        return self._run(
            "list_quizzes",
            lambda: OperationResult.ok(
                [self._quiz_view(quiz, principal) for quiz in self._authoring.list_quizzes(principal)]
            ),
        )

    def get_quiz(self, quiz_id: str, principal: Principal) -> OperationResult:
        return self._run(
            "get_quiz",
            lambda: OperationResult.ok(self._quiz_view(self._authoring.get_quiz(quiz_id, principal), principal)),
        )

    def create_quiz(self, principal: Principal, payload: QuizCreate | dict[str, Any]) -> OperationResult:
        return self._run(
            "create_quiz",
            lambda: OperationResult.ok(self._authoring.create_quiz(principal, payload).to_dict(), created=True),
        )

    def update_quiz(
        self,
        quiz_id: str,
        principal: Principal,
        payload: QuizPatch | dict[str, Any],
    ) -> OperationResult:
        return self._run(
            "update_quiz",
            lambda: OperationResult.ok(self._authoring.update_quiz(quiz_id, principal, payload).to_dict()),
        )

    def delete_quiz(self, quiz_id: str, principal: Principal) -> OperationResult:
        def operation() -> OperationResult:
            self._authoring.delete_quiz(quiz_id, principal)
            return OperationResult.ok(message="Quiz deleted successfully")

        return self._run("delete_quiz", operation)

    def set_quiz_active(
        self,
        quiz_id: str,
        principal: Principal,
        payload: QuizStatusUpdate | dict[str, Any] | bool,
    ) -> OperationResult:
        def operation() -> OperationResult:
            status = parse_payload(
                QuizStatusUpdate,
                {"isActive": payload} if isinstance(payload, bool) else payload,
            )
            quiz = self._authoring.set_quiz_active(quiz_id, principal, status.is_active)
            return OperationResult.ok(quiz.to_dict())

        return self._run("set_quiz_active", operation)

    def add_question(
        self,
        quiz_id: str,
        principal: Principal,
        payload: QuestionCreate | dict[str, Any],
    ) -> OperationResult:
        return self._run(
            "add_question",
            lambda: OperationResult.ok(
                self._authoring.add_question(quiz_id, principal, payload).to_dict(),
                created=True,
            ),
        )

    def update_question(
        self,
        quiz_id: str,
        question_id: str,
        principal: Principal,
        payload: QuestionPatch | dict[str, Any],
    ) -> OperationResult:
        return self._run(
            "update_question",
            lambda: OperationResult.ok(
                self._authoring.update_question(quiz_id, question_id, principal, payload).to_dict()
            ),
        )

    def delete_question(self, quiz_id: str, question_id: str, principal: Principal) -> OperationResult:
        def operation() -> OperationResult:
            self._authoring.delete_question(quiz_id, question_id, principal)
            return OperationResult.ok(message="Question deleted successfully")

        return self._run("delete_question", operation)

    def import_questions(
        self,
        quiz_id: str,
        principal: Principal,
        payload: QuizTextImport | dict[str, Any] | str,
    ) -> OperationResult:
        def operation() -> OperationResult:
            request = parse_payload(QuizTextImport, {"text": payload} if isinstance(payload, str) else payload)
            added = self._authoring.import_questions(quiz_id, principal, request.text)
            return OperationResult.ok([question.to_dict() for question in added], created=True)

        return self._run("import_questions", operation)

    def export_quiz(self, quiz_id: str, principal: Principal) -> OperationResult:
        return self._run(
            "export_quiz",
            lambda: OperationResult.ok(self._authoring.export_quiz(quiz_id, principal)),
        )

    # --- Student side ---

    def list_available_quizzes(self) -> OperationResult:
        return self._run(
            "list_available_quizzes",
            lambda: OperationResult.ok(
                [sanitize_quiz(quiz, self._markdown) for quiz in self._authoring.list_available_quizzes()]
            ),
        )

    def start_quiz_attempt(self, quiz_id: str, principal: Principal) -> OperationResult:
        def operation() -> OperationResult:
            started = self._attempts.start_quiz_attempt(quiz_id, principal)
            if started.resumed:
                return OperationResult.ok(started.attempt.to_dict(), message=RESUMED_ATTEMPT_MESSAGE)
            return OperationResult.ok(started.attempt.to_dict(), created=True)

        return self._run("start_quiz_attempt", operation)

    def submit_answer(
        self,
        attempt_id: str,
        principal: Principal,
        payload: AnswerSubmission | dict[str, Any],
    ) -> OperationResult:
        def operation() -> OperationResult:
            submission = parse_payload(AnswerSubmission, payload)
            attempt = self._attempts.submit_answer(
                attempt_id,
                principal,
                submission.question_id,
                submission.answer,
            )
            return OperationResult.ok(attempt.to_dict())

        return self._run("submit_answer", operation)

    def complete_quiz_attempt(self, attempt_id: str, principal: Principal) -> OperationResult:
        def operation() -> OperationResult:
            completed = self._attempts.complete_quiz_attempt(attempt_id, principal)
            return OperationResult.ok(completed.attempt.to_dict(), percentage=completed.percentage)

        return self._run("complete_quiz_attempt", operation)

    def get_quiz_history(self, principal: Principal) -> OperationResult:
        return self._run(
            "get_quiz_history",
            lambda: OperationResult.ok([entry.to_dict() for entry in self._attempts.get_quiz_history(principal)]),
        )

    def get_attempt_details(self, attempt_id: str, principal: Principal) -> OperationResult:
        return self._run(
            "get_attempt_details",
            lambda: OperationResult.ok(self._attempts.get_attempt_details(attempt_id, principal).to_dict()),
        )

    def create_flashcards(self, principal: Principal) -> OperationResult:
        return self._run(
            "create_flashcards",
            lambda: OperationResult.ok([card.to_dict() for card in self._reviews.create_flashcards(principal)]),
        )

    def create_practice_test(self, payload: PracticeTestRequest | dict[str, Any]) -> OperationResult:
        def operation() -> OperationResult:
            request = parse_payload(PracticeTestRequest, payload)
            quiz = self._reviews.create_practice_test(request.topic, request.difficulty, request.question_count)
            return OperationResult.ok(quiz.to_dict())

        return self._run("create_practice_test", operation)

    # --- Helpers ---

    def _quiz_view(self, quiz: Quiz, principal: Principal) -> dict[str, Any]:
        if principal.role is Role.STUDENT:
            return sanitize_quiz(quiz, self._markdown)
        return quiz.to_dict()

    def _run(self, action: str, operation: Callable[[], OperationResult]) -> OperationResult:
        try:
            return operation()
        except QuizEngineError as exc:
            if exc.kind == "internal":
                logger.exception("Store failure during %s", action)
                return OperationResult(success=False, error=INTERNAL_ERROR_MESSAGE, error_kind=exc.kind)
            logger.debug("%s failed: %s", action, exc)
            return OperationResult.failure(exc)
        except Exception:
            logger.exception("Unexpected error during %s", action)
            return OperationResult(success=False, error=INTERNAL_ERROR_MESSAGE, error_kind="internal")
