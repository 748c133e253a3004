"""Pure scoring functions comparing an attempt's answers with a quiz."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from quiz_engine.core.models import Question


@dataclass(slots=True, frozen=True)
class ScoreResult:
    score: int
    total_points: int
    percentage: float


def is_correct(question: Question, answer: str | None) -> bool:
    """Exact, case-sensitive match with no trimming."""
    return answer is not None and answer == question.correct_answer


def total_points(questions: Iterable[Question]) -> int:
    return sum(question.points for question in questions)


def percentage(score: int, total: int) -> float:
    """Return the score as a percentage rounded to two decimals, 0 for an empty quiz."""
    if total <= 0:
        return 0.0
    return round(score / total * 100, 2)


def score_answers(questions: Iterable[Question], answers: Mapping[str, str]) -> ScoreResult:
    """Score ``answers`` against ``questions``.

    Only questions present in ``questions`` count; answers keyed by an id the
    quiz no longer has are ignored.
    """
    questions = list(questions)
    earned = sum(
        question.points
        for question in questions
        if is_correct(question, answers.get(question.id))
    )
    total = total_points(questions)
    return ScoreResult(score=earned, total_points=total, percentage=percentage(earned, total))
