"""Service for authoring quizzes and their questions."""

from __future__ import annotations

from dataclasses import replace
import logging
from typing import Any
from uuid import uuid4

from quiz_engine.constants.quiz_constants import DEFAULT_QUESTION_POINTS
from quiz_engine.core.access_policy import AccessPolicy
from quiz_engine.core.errors import NotFound, ValidationFailed
from quiz_engine.core.inputs import (
    QuestionCreate,
    QuestionPatch,
    QuizCreate,
    QuizPatch,
    parse_payload,
)
from quiz_engine.core.models import Principal, Question, Quiz, Role
from quiz_engine.core.quiz_exporter import serialize_questions
from quiz_engine.core.quiz_importer import QuizImportError, parse_quiz_text
from quiz_engine.core.services.data_store import DataStore

logger = logging.getLogger(__name__)

# Fields that may be cleared by sending null; everything else ignores nulls.
_NULLABLE_QUIZ_FIELDS = frozenset({"time_limit"})


class QuizAuthoringService:
    """Create, edit and delete quizzes. Every mutation re-checks ownership."""

    def __init__(self, store: DataStore, policy: AccessPolicy) -> None:
        self._store = store
        self._policy = policy

    # --- Quizzes ---

    def list_quizzes(self, principal: Principal) -> list[Quiz]:
        """Teachers see their own quizzes, admins see all, students only active ones."""
        if principal.role is Role.TEACHER:
            return self._store.list_quizzes_by_teacher(principal.user_id)
        quizzes = self._store.list_quizzes()
        if principal.role is Role.STUDENT:
            return [quiz for quiz in quizzes if quiz.is_active]
        return quizzes

    def list_available_quizzes(self) -> list[Quiz]:
        return [quiz for quiz in self._store.list_quizzes() if quiz.is_active]

    def get_quiz(self, quiz_id: str, principal: Principal) -> Quiz:
        quiz = self._store.get_quiz(quiz_id)
        if quiz is None or (principal.role is Role.STUDENT and not quiz.is_active):
            raise NotFound("Quiz")
        return quiz

    def create_quiz(self, principal: Principal, data: QuizCreate | dict[str, Any]) -> Quiz:
        self._policy.ensure_can_author(principal)
        payload = parse_payload(QuizCreate, data)
        questions = [
            self._build_question(question_payload, order=index)
            for index, question_payload in enumerate(payload.questions)
        ]
        quiz = Quiz(
            id="",
            title=payload.title,
            teacher_id=principal.user_id,
            description=payload.description,
            is_active=payload.is_active,
            time_limit=payload.time_limit,
            questions=questions,
        )
        errors = list(quiz.validate().errors)
        errors.extend(_question_errors(questions))
        if errors:
            raise ValidationFailed(errors)

        stored = self._store.create_quiz(quiz)
        logger.info("Quiz %s created by %s", stored.id, principal.user_id)
        return stored

    def update_quiz(self, quiz_id: str, principal: Principal, data: QuizPatch | dict[str, Any]) -> Quiz:
        quiz = self._load_writable_quiz(quiz_id, principal)
        patch = parse_payload(QuizPatch, data)
        changes = {
            key: value
            for key, value in patch.model_dump(exclude_unset=True).items()
            if value is not None or key in _NULLABLE_QUIZ_FIELDS
        }
        candidate = replace(quiz, **changes)
        validation = candidate.validate()
        if not validation.is_valid:
            raise ValidationFailed(validation.errors)
        return self._write_quiz(quiz_id, changes)

    def delete_quiz(self, quiz_id: str, principal: Principal) -> None:
        self._load_writable_quiz(quiz_id, principal)
        if not self._store.delete_quiz(quiz_id):
            raise NotFound("Quiz")
        logger.info("Quiz %s deleted by %s", quiz_id, principal.user_id)

    def set_quiz_active(self, quiz_id: str, principal: Principal, is_active: bool) -> Quiz:
        self._load_writable_quiz(quiz_id, principal)
        quiz = self._write_quiz(quiz_id, {"is_active": is_active})
        logger.info("Quiz %s %s by %s", quiz_id, "activated" if is_active else "deactivated", principal.user_id)
        return quiz

    # --- Questions ---

    def add_question(
        self,
        quiz_id: str,
        principal: Principal,
        data: QuestionCreate | dict[str, Any],
    ) -> Question:
        quiz = self._load_writable_quiz(quiz_id, principal)
        payload = parse_payload(QuestionCreate, data)
        question = self._build_question(payload, order=len(quiz.questions))
        validation = question.validate()
        if not validation.is_valid:
            raise ValidationFailed(validation.errors)
        self._write_quiz(quiz_id, {"questions": [*quiz.questions, question]})
        return question

    def update_question(
        self,
        quiz_id: str,
        question_id: str,
        principal: Principal,
        data: QuestionPatch | dict[str, Any],
    ) -> Question:
        quiz = self._load_writable_quiz(quiz_id, principal)
        index = next((i for i, q in enumerate(quiz.questions) if q.id == question_id), -1)
        if index < 0:
            raise NotFound("Question")

        patch = parse_payload(QuestionPatch, data)
        changes = {key: value for key, value in patch.model_dump(exclude_unset=True).items() if value is not None}
        updated = replace(quiz.questions[index], **changes)
        validation = updated.validate()
        if not validation.is_valid:
            raise ValidationFailed(validation.errors)

        questions = list(quiz.questions)
        questions[index] = updated
        self._write_quiz(quiz_id, {"questions": questions})
        return updated

    def delete_question(self, quiz_id: str, question_id: str, principal: Principal) -> None:
        quiz = self._load_writable_quiz(quiz_id, principal)
        remaining = [q for q in quiz.questions if q.id != question_id]
        if len(remaining) == len(quiz.questions):
            raise NotFound("Question")
        # Orders of the remaining questions are left as they were.
        self._write_quiz(quiz_id, {"questions": remaining})

    # --- Text import/export ---

    def import_questions(self, quiz_id: str, principal: Principal, text: str) -> list[Question]:
        """Append every question found in ``text`` (plain quiz format) to the quiz."""
        quiz = self._load_writable_quiz(quiz_id, principal)
        try:
            payloads = parse_quiz_text(text)
        except QuizImportError as exc:
            raise ValidationFailed([str(exc)]) from exc

        start = len(quiz.questions)
        added = [self._build_question(payload, order=start + i) for i, payload in enumerate(payloads)]
        errors = _question_errors(added)
        if errors:
            raise ValidationFailed(errors)
        self._write_quiz(quiz_id, {"questions": [*quiz.questions, *added]})
        logger.info("Imported %d question(s) into quiz %s", len(added), quiz_id)
        return added

    def export_quiz(self, quiz_id: str, principal: Principal) -> str:
        quiz = self._load_writable_quiz(quiz_id, principal)
        return serialize_questions(quiz.questions)

    # --- Helpers ---

    def _load_writable_quiz(self, quiz_id: str, principal: Principal) -> Quiz:
        quiz = self._store.get_quiz(quiz_id)
        if quiz is None:
            raise NotFound("Quiz")
        self._policy.ensure_can_write(principal, quiz.teacher_id)
        return quiz

    def _write_quiz(self, quiz_id: str, changes: dict[str, Any]) -> Quiz:
        updated = self._store.update_quiz(quiz_id, changes)
        if updated is None:
            # Deleted between the read and this write.
            raise NotFound("Quiz")
        return updated

    @staticmethod
    def _build_question(payload: QuestionCreate, order: int) -> Question:
        return Question(
            id=str(uuid4()),
            question=payload.question,
            correct_answer=payload.correct_answer,
            type=payload.type,
            options=list(payload.options),
            points=DEFAULT_QUESTION_POINTS if payload.points is None else payload.points,
            explanation=payload.explanation,
            order=order,
        )


def _question_errors(questions: list[Question]) -> list[str]:
    errors: list[str] = []
    for position, question in enumerate(questions, start=1):
        errors.extend(f"Question {position}: {error}" for error in question.validate().errors)
    return errors
