"""Review material derived from a student's completed attempts."""

from __future__ import annotations

from datetime import datetime
import logging

from quiz_engine.constants.quiz_constants import (
    PRACTICE_TEST_CORRECT_ANSWER,
    PRACTICE_TEST_DEFAULT_QUESTION_COUNT,
    PRACTICE_TEST_OPTIONS,
    PRACTICE_TEST_TEACHER_ID,
)
from quiz_engine.core import scoring
from quiz_engine.core.models import Flashcard, Principal, Question, QuestionType, Quiz, utc_now
from quiz_engine.core.services.data_store import DataStore

logger = logging.getLogger(__name__)


class ReviewGenerator:
    """Builds flashcards and practice tests for a student."""

    def __init__(self, store: DataStore) -> None:
        self._store = store

    def create_flashcards(self, principal: Principal) -> list[Flashcard]:
        """One flashcard per question of every completed attempt.

        Correctness is judged against the quiz as it is now. Attempts whose quiz
        was deleted are skipped.
        """
        flashcards: list[Flashcard] = []
        for attempt in self._store.list_attempts_by_student(principal.user_id):
            if not attempt.is_completed:
                continue
            quiz = self._store.get_quiz(attempt.quiz_id)
            if quiz is None:
                continue
            for question in quiz.questions:
                flashcards.append(
                    Flashcard(
                        id=f"{attempt.id}-{question.id}",
                        question=question.question,
                        answer=question.correct_answer,
                        explanation=question.explanation,
                        quiz_title=quiz.title,
                        was_incorrect=not scoring.is_correct(question, attempt.answers.get(question.id)),
                    )
                )
        return flashcards

    def create_practice_test(
        self,
        topic: str,
        difficulty: str,
        question_count: int | None = None,
        now: datetime | None = None,
    ) -> Quiz:
        """Return a throwaway practice quiz.

        This is a placeholder generator: the questions are synthetic and every
        one has the same answer key. The quiz is never persisted.
        """
        now = now or utc_now()
        stamp = int(now.timestamp() * 1000)
        count = question_count or PRACTICE_TEST_DEFAULT_QUESTION_COUNT
        questions = [
            Question(
                id=f"practice-{stamp}-{index}",
                type=QuestionType.MULTIPLE_CHOICE,
                question=f"Sample {topic} question {index + 1} ({difficulty} level)",
                options=list(PRACTICE_TEST_OPTIONS),
                correct_answer=PRACTICE_TEST_CORRECT_ANSWER,
                points=1,
                explanation=f"This is a sample explanation for {topic} question {index + 1}",
                order=index,
            )
            for index in range(count)
        ]
        logger.info("Generated placeholder practice test on %r with %d question(s)", topic, count)
        return Quiz(
            id=f"practice-{stamp}",
            title=f"AI Practice Test: {topic}",
            description=f"Auto-generated {difficulty} level practice test for {topic}",
            teacher_id=PRACTICE_TEST_TEACHER_ID,
            is_active=True,
            time_limit=None,
            questions=questions,
            created_at=now,
            updated_at=now,
            is_practice_test=True,
        )
