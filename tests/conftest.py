"""Shared fixtures for the quiz engine tests."""

from __future__ import annotations

import pytest

from quiz_engine.core.access_policy import AccessPolicy
from quiz_engine.core.models import Principal, Role
from quiz_engine.core.quiz_manager import QuizManager
from quiz_engine.core.services.attempt_service import AttemptService
from quiz_engine.core.services.data_store import InMemoryDataStore
from quiz_engine.core.services.quiz_authoring import QuizAuthoringService
from quiz_engine.core.services.review_generators import ReviewGenerator


@pytest.fixture
def teacher() -> Principal:
    return Principal(user_id="teacher-a", role=Role.TEACHER)


@pytest.fixture
def other_teacher() -> Principal:
    return Principal(user_id="teacher-b", role=Role.TEACHER)


@pytest.fixture
def admin() -> Principal:
    return Principal(user_id="admin-1", role=Role.ADMIN)


@pytest.fixture
def student() -> Principal:
    return Principal(user_id="student-1", role=Role.STUDENT)


@pytest.fixture
def other_student() -> Principal:
    return Principal(user_id="student-2", role=Role.STUDENT)


@pytest.fixture
def store() -> InMemoryDataStore:
    return InMemoryDataStore()


@pytest.fixture
def authoring(store: InMemoryDataStore) -> QuizAuthoringService:
    return QuizAuthoringService(store, AccessPolicy())


@pytest.fixture
def attempts(store: InMemoryDataStore) -> AttemptService:
    return AttemptService(store, AccessPolicy())


@pytest.fixture
def reviews(store: InMemoryDataStore) -> ReviewGenerator:
    return ReviewGenerator(store)


@pytest.fixture
def manager(store: InMemoryDataStore) -> QuizManager:
    return QuizManager(store=store)


@pytest.fixture
def basics_quiz(authoring: QuizAuthoringService, teacher: Principal):
    """Active quiz with a 2-point and a 3-point question."""
    quiz = authoring.create_quiz(
        teacher,
        {
            "title": "Basics",
            "description": "Warm-up questions",
            "isActive": True,
            "questions": [
                {
                    "type": "short_answer",
                    "question": "What is $2 + 2$?",
                    "correctAnswer": "4",
                    "points": 2,
                    "explanation": "Simple addition.",
                },
                {
                    "type": "multiple_choice",
                    "question": "Capital of France?",
                    "options": ["London", "Paris", "Berlin"],
                    "correctAnswer": "Paris",
                    "points": 3,
                    "explanation": "Paris is the capital.",
                },
            ],
        },
    )
    return quiz
