"""Validated input types for every mutating operation.

Payloads arrive from untrusted clients as JSON objects with camelCase keys.
Each operation parses its payload into one of these models before any domain
logic runs; unknown keys and wrong types are rejected here. Domain rules
(required title, required answer, positive points) are checked afterwards by
the models' ``validate()`` methods so that all of them are reported together.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from quiz_engine.constants.quiz_constants import PRACTICE_TEST_MAX_QUESTION_COUNT
from quiz_engine.core.errors import ValidationFailed
from quiz_engine.core.models import QuestionType


class _Payload(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class QuestionCreate(_Payload):
    """Payload schema for a new question."""

    type: QuestionType = QuestionType.MULTIPLE_CHOICE
    question: str = ""
    options: list[str] = Field(default_factory=list)
    correct_answer: str = ""
    points: int | None = None
    explanation: str = ""


class QuestionPatch(_Payload):
    """Partial update of a question. Only the fields sent are applied."""

    type: QuestionType | None = None
    question: str | None = None
    options: list[str] | None = None
    correct_answer: str | None = None
    points: int | None = None
    explanation: str | None = None


class QuizCreate(_Payload):
    """Payload schema for a new quiz, optionally with initial questions."""

    title: str = ""
    description: str = ""
    is_active: bool = False
    time_limit: int | None = Field(default=None, gt=0)
    questions: list[QuestionCreate] = Field(default_factory=list)


class QuizPatch(_Payload):
    """Partial update of quiz metadata."""

    title: str | None = None
    description: str | None = None
    is_active: bool | None = None
    time_limit: int | None = Field(default=None, gt=0)


class QuizStatusUpdate(_Payload):
    is_active: bool


class AnswerSubmission(_Payload):
    question_id: str
    answer: str


class QuizTextImport(_Payload):
    text: str


class PracticeTestRequest(_Payload):
    topic: str
    difficulty: str = "medium"
    question_count: int | None = Field(default=None, ge=0, le=PRACTICE_TEST_MAX_QUESTION_COUNT)


PayloadT = TypeVar("PayloadT", bound=BaseModel)


def parse_payload(model: type[PayloadT], payload: Any) -> PayloadT:
    """Return ``payload`` as an instance of ``model`` or raise ValidationFailed."""
    if isinstance(payload, model):
        return payload
    if payload is None:
        payload = {}
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailed(format_validation_errors(exc.errors())) from exc


def format_validation_errors(errors: list[dict[str, Any]]) -> list[str]:
    """Flatten pydantic error entries into ``"field: message"`` strings."""
    messages: list[str] = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "Invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return messages
