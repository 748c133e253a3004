"""Domain models for the quiz engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from quiz_engine.constants.quiz_constants import DEFAULT_QUESTION_POINTS


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Role(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    SHORT_ANSWER = "short_answer"


@dataclass(slots=True, frozen=True)
class Principal:
    """The resolved identity making a request."""

    user_id: str
    role: Role


@dataclass(slots=True)
class ValidationResult:
    is_valid: bool
    errors: list[str]

    @classmethod
    def from_errors(cls, errors: list[str]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=list(errors))


@dataclass(slots=True)
class Question:
    """A single scoring unit inside a quiz."""

    id: str
    question: str
    correct_answer: str
    type: QuestionType = QuestionType.MULTIPLE_CHOICE
    options: list[str] = field(default_factory=list)
    points: int = DEFAULT_QUESTION_POINTS
    explanation: str = ""
    order: int = 0

    def validate(self) -> ValidationResult:
        """Check the fields every question type needs."""
        errors: list[str] = []
        if not self.question or not self.question.strip():
            errors.append("Question text is required")
        if not self.correct_answer:
            errors.append("Correct answer is required")
        if self.points <= 0:
            errors.append("Points must be a positive integer")
        return ValidationResult.from_errors(errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "question": self.question,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
            "points": self.points,
            "explanation": self.explanation,
            "order": self.order,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Question":
        return cls(
            id=str(data["id"]),
            question=data.get("question", ""),
            correct_answer=data.get("correctAnswer", ""),
            type=QuestionType(data.get("type", QuestionType.MULTIPLE_CHOICE.value)),
            options=list(data.get("options") or []),
            points=int(data.get("points", DEFAULT_QUESTION_POINTS)),
            explanation=data.get("explanation") or "",
            order=int(data.get("order", 0)),
        )


@dataclass(slots=True)
class Quiz:
    """An ordered collection of questions owned by a teacher."""

    id: str
    title: str
    teacher_id: str
    description: str = ""
    is_active: bool = False
    time_limit: int | None = None  # minutes, informational only
    questions: list[Question] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    is_practice_test: bool = False

    def validate(self) -> ValidationResult:
        """Validate quiz metadata. Questions are validated when they are added."""
        errors: list[str] = []
        if not self.title or not self.title.strip():
            errors.append("Title is required")
        return ValidationResult.from_errors(errors)

    def find_question(self, question_id: str) -> Question | None:
        return next((q for q in self.questions if q.id == question_id), None)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "teacherId": self.teacher_id,
            "isActive": self.is_active,
            "timeLimit": self.time_limit,
            "questions": [question.to_dict() for question in self.questions],
            "createdAt": _format_timestamp(self.created_at),
            "updatedAt": _format_timestamp(self.updated_at),
        }
        if self.is_practice_test:
            payload["isPracticeTest"] = True
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Quiz":
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            teacher_id=str(data.get("teacherId", "")),
            description=data.get("description") or "",
            is_active=bool(data.get("isActive", False)),
            time_limit=data.get("timeLimit"),
            questions=[Question.from_dict(item) for item in data.get("questions", [])],
            created_at=_parse_timestamp(data.get("createdAt")) or utc_now(),
            updated_at=_parse_timestamp(data.get("updatedAt")) or utc_now(),
            is_practice_test=bool(data.get("isPracticeTest", False)),
        )


@dataclass(slots=True)
class Attempt:
    """One student's run through a quiz."""

    id: str
    quiz_id: str
    student_id: str
    answers: dict[str, str] = field(default_factory=dict)
    score: int = 0
    total_points: int = 0
    total_points_at_start: int = 0
    started_at: datetime = field(default_factory=utc_now)
    completed_at: datetime | None = None
    is_completed: bool = False

    @property
    def has_point_drift(self) -> bool:
        """True when the quiz's point total changed between start and completion."""
        return self.total_points != self.total_points_at_start

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "quizId": self.quiz_id,
            "studentId": self.student_id,
            "answers": dict(self.answers),
            "score": self.score,
            "totalPoints": self.total_points,
            "totalPointsAtStart": self.total_points_at_start,
            "startedAt": _format_timestamp(self.started_at),
            "completedAt": _format_timestamp(self.completed_at),
            "isCompleted": self.is_completed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Attempt":
        total_points = int(data.get("totalPoints", 0))
        return cls(
            id=str(data["id"]),
            quiz_id=str(data["quizId"]),
            student_id=str(data["studentId"]),
            answers={str(key): str(value) for key, value in (data.get("answers") or {}).items()},
            score=int(data.get("score", 0)),
            total_points=total_points,
            total_points_at_start=int(data.get("totalPointsAtStart", total_points)),
            started_at=_parse_timestamp(data.get("startedAt")) or utc_now(),
            completed_at=_parse_timestamp(data.get("completedAt")),
            is_completed=bool(data.get("isCompleted", False)),
        )


@dataclass(slots=True)
class Flashcard:
    """Review item derived from one question of one completed attempt."""

    id: str
    question: str
    answer: str
    explanation: str
    quiz_title: str
    was_incorrect: bool

    @property
    def difficulty(self) -> str:
        return "hard" if self.was_incorrect else "easy"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "question": self.question,
            "answer": self.answer,
            "explanation": self.explanation,
            "quizTitle": self.quiz_title,
            "wasIncorrect": self.was_incorrect,
            "difficulty": self.difficulty,
        }
