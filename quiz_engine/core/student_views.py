"""Answer-free views of quizzes for students who have not completed them.

Every field is copied from an explicit whitelist rather than deleting the
answer key from a full record, so a field added to ``Question`` later does
not leak to students by accident.
"""

from __future__ import annotations

from typing import Any

from quiz_engine.core.markdown_math_renderer import MarkdownMathRenderer, renderer
from quiz_engine.core.models import Question, Quiz


def sanitize_question(question: Question, markdown: MarkdownMathRenderer = renderer) -> dict[str, Any]:
    return {
        "id": question.id,
        "type": question.type.value,
        "question": question.question,
        "questionHtml": markdown.render_fragment(question.question),
        "options": list(question.options),
        "points": question.points,
        "order": question.order,
    }


def sanitize_quiz(quiz: Quiz, markdown: MarkdownMathRenderer = renderer) -> dict[str, Any]:
    payload = quiz.to_dict()
    payload["questions"] = [sanitize_question(question, markdown) for question in quiz.questions]
    return payload
