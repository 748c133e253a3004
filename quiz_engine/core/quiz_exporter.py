"""Utilities for exporting quiz questions to the plain-text import format."""

from __future__ import annotations

from quiz_engine.constants.quiz_constants import DEFAULT_QUESTION_POINTS
from quiz_engine.core.models import Question, QuestionType
from quiz_engine.core.quiz_importer import OPTION_LETTERS


def serialize_questions(questions: list[Question]) -> str:
    """Render questions in the format understood by ``parse_quiz_text``."""
    blocks = [_serialize_question(question) for question in questions]
    if not blocks:
        return ""
    return "\n\n---\n\n".join(blocks) + "\n"


def _serialize_question(question: Question) -> str:
    lines: list[str] = []

    question_lines = question.question.splitlines() or [question.question]
    lines.append(f"Q: {question_lines[0]}")
    lines.extend(question_lines[1:])
    lines.append(f"TYPE: {question.type.value}")

    if question.type is QuestionType.MULTIPLE_CHOICE:
        for letter, option_text in zip(OPTION_LETTERS, question.options):
            option_lines = option_text.splitlines() or [option_text]
            lines.append(f"{letter}: {option_lines[0]}")
            lines.extend(option_lines[1:])
        if question.correct_answer in question.options:
            correct_letter = OPTION_LETTERS[question.options.index(question.correct_answer)]
            lines.append(f"CORRECT: {correct_letter}")
    else:
        lines.append(f"ANSWER: {question.correct_answer}")

    if question.points != DEFAULT_QUESTION_POINTS:
        lines.append(f"POINTS: {question.points}")

    if question.explanation:
        explanation_lines = question.explanation.splitlines()
        lines.append(f"EXPLANATION: {explanation_lines[0]}")
        lines.extend(explanation_lines[1:])

    return "\n".join(lines)
