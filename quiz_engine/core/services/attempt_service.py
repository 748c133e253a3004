"""Service for the student side of a quiz: attempts, history and review."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

from quiz_engine.constants.quiz_constants import NO_ANSWER_TEXT, UNKNOWN_QUIZ_TITLE
from quiz_engine.core import scoring
from quiz_engine.core.access_policy import AccessPolicy
from quiz_engine.core.errors import AlreadyCompleted, NotFound, QuizInactive, WriteConflict
from quiz_engine.core.models import Attempt, Principal, Quiz, utc_now
from quiz_engine.core.services.data_store import DataStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StartedAttempt:
    attempt: Attempt
    resumed: bool


@dataclass(slots=True)
class CompletedAttempt:
    attempt: Attempt
    percentage: float


@dataclass(slots=True)
class AttemptHistoryEntry:
    attempt: Attempt
    quiz_title: str
    quiz_description: str

    def to_dict(self) -> dict[str, Any]:
        payload = self.attempt.to_dict()
        payload["quizTitle"] = self.quiz_title
        payload["quizDescription"] = self.quiz_description
        return payload


@dataclass(slots=True)
class QuestionReview:
    """Per-question outcome revealed once an attempt is completed."""

    question: str
    user_answer: str
    correct_answer: str
    is_correct: bool
    points: int
    explanation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "question": self.question,
            "userAnswer": self.user_answer,
            "correctAnswer": self.correct_answer,
            "isCorrect": self.is_correct,
            "points": self.points,
            "explanation": self.explanation,
        }


@dataclass(slots=True)
class AttemptDetails:
    attempt: Attempt
    quiz_title: str
    quiz_description: str
    results: list[QuestionReview] | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempt": self.attempt.to_dict(),
            "quiz": {"title": self.quiz_title, "description": self.quiz_description},
            "results": None if self.results is None else [r.to_dict() for r in self.results],
        }


class AttemptService:
    """Runs the attempt state machine: not started -> in progress -> completed.

    Attempts are read as snapshots and written back with a write that only
    succeeds while the stored attempt is still incomplete, so an answer that
    arrives after completion is rejected instead of altering a finished attempt.
    """

    def __init__(self, store: DataStore, policy: AccessPolicy) -> None:
        self._store = store
        self._policy = policy

    def start_quiz_attempt(self, quiz_id: str, principal: Principal) -> StartedAttempt:
        """Start a new attempt, or resume the student's open attempt on this quiz."""
        quiz = self._store.get_quiz(quiz_id)
        if quiz is None:
            raise NotFound("Quiz")
        if not quiz.is_active:
            raise QuizInactive()

        total = scoring.total_points(quiz.questions)
        attempt, created = self._store.get_or_create_open_attempt(
            Attempt(
                id="",
                quiz_id=quiz_id,
                student_id=principal.user_id,
                total_points=total,
                total_points_at_start=total,
                started_at=utc_now(),
            )
        )
        if not created:
            return StartedAttempt(attempt=attempt, resumed=True)
        logger.info("Attempt %s started on quiz %s by %s", attempt.id, quiz_id, principal.user_id)
        return StartedAttempt(attempt=attempt, resumed=False)

    def submit_answer(self, attempt_id: str, principal: Principal, question_id: str, answer: str) -> Attempt:
        """Record ``answer`` for ``question_id``, replacing any earlier answer."""
        attempt = self._load_open_attempt(attempt_id, principal)
        answers = dict(attempt.answers)
        answers[question_id] = answer
        return self._write_open_attempt(attempt_id, {"answers": answers})

    def complete_quiz_attempt(self, attempt_id: str, principal: Principal) -> CompletedAttempt:
        """Score the attempt against the quiz as it is now and freeze it."""
        attempt = self._load_open_attempt(attempt_id, principal)
        quiz = self._store.get_quiz(attempt.quiz_id)
        if quiz is None:
            raise NotFound("Quiz")

        result = scoring.score_answers(quiz.questions, attempt.answers)
        completed = self._write_open_attempt(
            attempt_id,
            {
                "score": result.score,
                "total_points": result.total_points,
                "completed_at": utc_now(),
                "is_completed": True,
            },
        )
        if completed.has_point_drift:
            logger.info(
                "Quiz %s changed during attempt %s: %d point(s) at start, %d at completion",
                quiz.id,
                attempt_id,
                completed.total_points_at_start,
                completed.total_points,
            )
        logger.info("Attempt %s completed: %d/%d", attempt_id, result.score, result.total_points)
        return CompletedAttempt(attempt=completed, percentage=result.percentage)

    def get_quiz_history(self, principal: Principal) -> list[AttemptHistoryEntry]:
        quizzes: dict[str, Quiz | None] = {}
        history: list[AttemptHistoryEntry] = []
        for attempt in self._store.list_attempts_by_student(principal.user_id):
            if attempt.quiz_id not in quizzes:
                quizzes[attempt.quiz_id] = self._store.get_quiz(attempt.quiz_id)
            quiz = quizzes[attempt.quiz_id]
            history.append(
                AttemptHistoryEntry(
                    attempt=attempt,
                    quiz_title=quiz.title if quiz else UNKNOWN_QUIZ_TITLE,
                    quiz_description=quiz.description if quiz else "",
                )
            )
        return history

    def get_attempt_details(self, attempt_id: str, principal: Principal) -> AttemptDetails:
        """Return the attempt and, once completed, the per-question review."""
        attempt = self._policy.ensure_can_access_attempt(principal, self._store.get_attempt(attempt_id))
        quiz = self._store.get_quiz(attempt.quiz_id)
        if quiz is None:
            raise NotFound("Quiz")

        results = None
        if attempt.is_completed:
            results = [
                QuestionReview(
                    question=question.question,
                    user_answer=attempt.answers.get(question.id) or NO_ANSWER_TEXT,
                    correct_answer=question.correct_answer,
                    is_correct=scoring.is_correct(question, attempt.answers.get(question.id)),
                    points=question.points,
                    explanation=question.explanation,
                )
                for question in quiz.questions
            ]
        return AttemptDetails(
            attempt=attempt,
            quiz_title=quiz.title,
            quiz_description=quiz.description,
            results=results,
        )

    def _load_open_attempt(self, attempt_id: str, principal: Principal) -> Attempt:
        attempt = self._policy.ensure_can_access_attempt(principal, self._store.get_attempt(attempt_id))
        if attempt.is_completed:
            raise AlreadyCompleted()
        return attempt

    def _write_open_attempt(self, attempt_id: str, changes: dict[str, Any]) -> Attempt:
        try:
            updated = self._store.update_attempt(attempt_id, changes, require_incomplete=True)
        except WriteConflict as exc:
            raise AlreadyCompleted() from exc
        if updated is None:
            raise NotFound("Attempt")
        return updated
