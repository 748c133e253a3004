"""Utilities for importing quiz questions from a human-friendly text format.

Format (repeat blocks separated by blank lines or '---'):

    Q: Question text (supports markdown + LaTeX). Additional lines until the
       next marker are treated as part of the question.
    A: First option text          (A-F, multiple choice only)
    B: Second option text
    CORRECT: A-F                  (letter of the correct option)
    ANSWER: literal answer        (true_false and short_answer questions)
    TYPE: multiple_choice|true_false|short_answer   (optional)
    POINTS: positive integer      (optional, defaults to 1)
    EXPLANATION: text shown after completion (optional)

Example:

    Q: What is $2 + 2$?
    A: 3
    B: 4
    C: 5
    CORRECT: B
    POINTS: 2

    ---

    Q: Capital of France?
    ANSWER: Paris
    EXPLANATION: Paris has been the capital since 987.

When TYPE is omitted, a block with options is multiple choice and a block
without options is short answer.
"""

from __future__ import annotations

from quiz_engine.core.inputs import QuestionCreate
from quiz_engine.core.models import QuestionType


class QuizImportError(Exception):
    """Raised when a quiz definition cannot be parsed."""


OPTION_LETTERS = ("A", "B", "C", "D", "E", "F")
_KEYWORDS = ("CORRECT:", "ANSWER:", "TYPE:", "POINTS:", "EXPLANATION:")


def parse_quiz_text(text: str) -> list[QuestionCreate]:
    """Parse ``text`` into question payloads, one per block."""
    blocks = _split_blocks(text)
    if not blocks:
        raise QuizImportError("Quiz text did not contain any questions.")
    questions: list[QuestionCreate] = []
    for position, block in enumerate(blocks, start=1):
        try:
            questions.append(_parse_block(block))
        except QuizImportError as exc:
            raise QuizImportError(f"Question block {position}: {exc}") from exc
    return questions


def _split_blocks(text: str) -> list[str]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())
    return [block for block in blocks if block]


def _parse_block(block: str) -> QuestionCreate:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    fields: dict[str, str] = {}
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        keyword = next((k for k in _KEYWORDS if upper.startswith(k)), None)
        if keyword is not None:
            name = keyword[:-1]
            fields[name] = line.split(":", 1)[1].strip()
            current_section = name if name == "EXPLANATION" else None
            continue

        if len(line) > 2 and line[0].upper() in OPTION_LETTERS and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section == "EXPLANATION":
            fields["EXPLANATION"] = f"{fields['EXPLANATION']}\n{line}"
        elif current_section in OPTION_LETTERS:
            options[current_section] = f"{options[current_section]}\n{line}"
        else:
            raise QuizImportError(f"Encountered text outside of a known section: '{line}'.")

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuizImportError("Question text missing (Q: ...)")

    letters = [letter for letter in OPTION_LETTERS if letter in options]
    if letters != list(OPTION_LETTERS[: len(letters)]):
        raise QuizImportError("Options must be lettered consecutively starting at A.")
    option_list = [options[letter].strip() for letter in letters]
    if any(not option for option in option_list):
        raise QuizImportError("Option text cannot be empty.")

    question_type = _parse_type(fields.get("TYPE"), has_options=bool(option_list))
    correct_answer = _resolve_correct_answer(question_type, fields, letters, option_list)

    return QuestionCreate(
        type=question_type,
        question=question_text,
        options=option_list if question_type is QuestionType.MULTIPLE_CHOICE else [],
        correct_answer=correct_answer,
        points=_parse_points(fields.get("POINTS")),
        explanation=fields.get("EXPLANATION", "").strip(),
    )


def _parse_type(raw_value: str | None, has_options: bool) -> QuestionType:
    if not raw_value:
        return QuestionType.MULTIPLE_CHOICE if has_options else QuestionType.SHORT_ANSWER
    try:
        return QuestionType(raw_value.strip().lower())
    except ValueError as exc:
        raise QuizImportError(f"Unknown TYPE '{raw_value}'.") from exc


def _resolve_correct_answer(
    question_type: QuestionType,
    fields: dict[str, str],
    letters: list[str],
    options: list[str],
) -> str:
    if question_type is QuestionType.MULTIPLE_CHOICE:
        if not options:
            raise QuizImportError("Multiple choice questions need options (A: ...).")
        correct_letter = fields.get("CORRECT", "").upper()
        if not correct_letter:
            raise QuizImportError("CORRECT is required for multiple choice questions.")
        if correct_letter not in letters:
            raise QuizImportError(f"CORRECT must be one of {', '.join(letters)}.")
        return options[letters.index(correct_letter)]

    answer = fields.get("ANSWER", "")
    if not answer:
        raise QuizImportError("ANSWER is required for true/false and short answer questions.")
    return answer


def _parse_points(raw_value: str | None) -> int | None:
    if raw_value is None:
        return None
    try:
        points = int(raw_value)
    except ValueError as exc:
        raise QuizImportError("POINTS must be an integer.") from exc
    if points <= 0:
        raise QuizImportError("POINTS must be a positive integer.")
    return points
