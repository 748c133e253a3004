"""Tests for the attempt lifecycle, history and review."""

from concurrent.futures import ThreadPoolExecutor
import threading

import pytest

from quiz_engine.core.access_policy import AccessPolicy
from quiz_engine.core.errors import AlreadyCompleted, NotFound, QuizInactive
from quiz_engine.core.services.attempt_service import AttemptService
from quiz_engine.core.services.data_store import InMemoryDataStore
from quiz_engine.core.services.quiz_authoring import QuizAuthoringService


def _answer_all(attempts, attempt_id, principal, quiz, answers) -> None:
    for question, answer in zip(quiz.questions, answers):
        attempts.submit_answer(attempt_id, principal, question.id, answer)


def test_start_creates_attempt_with_point_total(attempts, basics_quiz, student) -> None:
    started = attempts.start_quiz_attempt(basics_quiz.id, student)
    assert not started.resumed
    attempt = started.attempt
    assert attempt.student_id == student.user_id
    assert attempt.answers == {}
    assert attempt.score == 0
    assert attempt.total_points == attempt.total_points_at_start == 5
    assert attempt.is_completed is False
    assert attempt.completed_at is None


def test_starting_twice_resumes_the_open_attempt(attempts, basics_quiz, student) -> None:
    first = attempts.start_quiz_attempt(basics_quiz.id, student)
    second = attempts.start_quiz_attempt(basics_quiz.id, student)
    assert second.resumed
    assert second.attempt.id == first.attempt.id


def test_completed_attempts_accumulate(attempts, basics_quiz, student) -> None:
    first = attempts.start_quiz_attempt(basics_quiz.id, student).attempt
    attempts.complete_quiz_attempt(first.id, student)
    second = attempts.start_quiz_attempt(basics_quiz.id, student)
    assert not second.resumed
    assert second.attempt.id != first.id
    assert len(attempts.get_quiz_history(student)) == 2


def test_start_requires_existing_active_quiz(attempts, authoring, teacher, student) -> None:
    draft = authoring.create_quiz(teacher, {"title": "Draft"})
    with pytest.raises(QuizInactive):
        attempts.start_quiz_attempt(draft.id, student)
    with pytest.raises(NotFound):
        attempts.start_quiz_attempt("missing", student)


def test_submit_answer_upserts(attempts, basics_quiz, student) -> None:
    attempt = attempts.start_quiz_attempt(basics_quiz.id, student).attempt
    q1 = basics_quiz.questions[0].id
    attempts.submit_answer(attempt.id, student, q1, "5")
    updated = attempts.submit_answer(attempt.id, student, q1, "4")
    assert updated.answers == {q1: "4"}


def test_other_students_cannot_see_or_touch_attempt(attempts, basics_quiz, student, other_student) -> None:
    attempt = attempts.start_quiz_attempt(basics_quiz.id, student).attempt
    with pytest.raises(NotFound):
        attempts.submit_answer(attempt.id, other_student, basics_quiz.questions[0].id, "4")
    with pytest.raises(NotFound):
        attempts.complete_quiz_attempt(attempt.id, other_student)
    with pytest.raises(NotFound):
        attempts.get_attempt_details(attempt.id, other_student)


def test_scenario_complete_with_partial_credit(attempts, basics_quiz, student) -> None:
    attempt = attempts.start_quiz_attempt(basics_quiz.id, student).attempt
    _answer_all(attempts, attempt.id, student, basics_quiz, ["4", "London"])
    completed = attempts.complete_quiz_attempt(attempt.id, student)
    assert completed.attempt.score == 2
    assert completed.attempt.total_points == 5
    assert completed.percentage == 40.0
    assert completed.attempt.is_completed
    assert completed.attempt.completed_at is not None


def test_answers_are_frozen_after_completion(attempts, store, basics_quiz, student) -> None:
    attempt = attempts.start_quiz_attempt(basics_quiz.id, student).attempt
    attempts.submit_answer(attempt.id, student, basics_quiz.questions[0].id, "4")
    attempts.complete_quiz_attempt(attempt.id, student)

    with pytest.raises(AlreadyCompleted):
        attempts.submit_answer(attempt.id, student, basics_quiz.questions[1].id, "Paris")
    with pytest.raises(AlreadyCompleted):
        attempts.complete_quiz_attempt(attempt.id, student)
    assert store.get_attempt(attempt.id).answers == {basics_quiz.questions[0].id: "4"}


def test_empty_quiz_completes_with_zero_percent(attempts, authoring, teacher, student) -> None:
    quiz = authoring.create_quiz(teacher, {"title": "Empty", "isActive": True})
    attempt = attempts.start_quiz_attempt(quiz.id, student).attempt
    completed = attempts.complete_quiz_attempt(attempt.id, student)
    assert completed.attempt.total_points == 0
    assert completed.percentage == 0


def test_quiz_edits_during_attempt_change_score_and_expose_drift(
    attempts, authoring, basics_quiz, teacher, student
) -> None:
    attempt = attempts.start_quiz_attempt(basics_quiz.id, student).attempt
    _answer_all(attempts, attempt.id, student, basics_quiz, ["4", "Paris"])
    authoring.add_question(basics_quiz.id, teacher, {"question": "1 + 1?", "correctAnswer": "2", "points": 5})

    completed = attempts.complete_quiz_attempt(attempt.id, student).attempt
    assert completed.total_points_at_start == 5
    assert completed.total_points == 10
    assert completed.score == 5
    assert completed.has_point_drift


def test_completing_after_quiz_deleted_is_not_found(attempts, authoring, basics_quiz, teacher, student) -> None:
    attempt = attempts.start_quiz_attempt(basics_quiz.id, student).attempt
    authoring.delete_quiz(basics_quiz.id, teacher)
    with pytest.raises(NotFound):
        attempts.complete_quiz_attempt(attempt.id, student)


class _CompletingStore(InMemoryDataStore):
    """Store that lets another request complete the attempt right after our read."""

    def get_attempt(self, attempt_id):
        snapshot = super().get_attempt(attempt_id)
        if snapshot is not None and not snapshot.is_completed:
            super().update_attempt(attempt_id, {"is_completed": True})
        return snapshot


def test_late_answer_after_concurrent_completion_is_rejected(student, teacher) -> None:
    racing_store = _CompletingStore()
    quiz = QuizAuthoringService(racing_store, AccessPolicy()).create_quiz(
        teacher, {"title": "Race", "isActive": True, "questions": [{"question": "x", "correctAnswer": "y"}]}
    )
    service = AttemptService(racing_store, AccessPolicy())
    attempt = service.start_quiz_attempt(quiz.id, student).attempt

    with pytest.raises(AlreadyCompleted):
        service.submit_answer(attempt.id, student, quiz.questions[0].id, "y")
    assert racing_store.list_attempts_by_student(student.user_id)[0].answers == {}


def test_history_joins_quiz_titles_and_survives_deletion(attempts, authoring, basics_quiz, teacher, student) -> None:
    attempts.start_quiz_attempt(basics_quiz.id, student)
    history = attempts.get_quiz_history(student)
    assert [(h.quiz_title, h.quiz_description) for h in history] == [("Basics", "Warm-up questions")]

    authoring.delete_quiz(basics_quiz.id, teacher)
    history = attempts.get_quiz_history(student)
    assert len(history) == 1
    assert history[0].quiz_title == "Unknown Quiz"
    assert history[0].to_dict()["quizDescription"] == ""


def test_history_only_contains_own_attempts(attempts, basics_quiz, student, other_student) -> None:
    attempts.start_quiz_attempt(basics_quiz.id, other_student)
    assert attempts.get_quiz_history(student) == []


def test_details_hide_results_until_completion(attempts, basics_quiz, student) -> None:
    attempt = attempts.start_quiz_attempt(basics_quiz.id, student).attempt
    details = attempts.get_attempt_details(attempt.id, student)
    assert details.results is None
    assert details.to_dict()["quiz"] == {"title": "Basics", "description": "Warm-up questions"}


def test_details_review_each_question_after_completion(attempts, basics_quiz, student) -> None:
    attempt = attempts.start_quiz_attempt(basics_quiz.id, student).attempt
    attempts.submit_answer(attempt.id, student, basics_quiz.questions[1].id, "Paris")
    attempts.complete_quiz_attempt(attempt.id, student)

    results = attempts.get_attempt_details(attempt.id, student).to_dict()["results"]
    assert results == [
        {
            "question": "What is $2 + 2$?",
            "userAnswer": "No answer",
            "correctAnswer": "4",
            "isCorrect": False,
            "points": 2,
            "explanation": "Simple addition.",
        },
        {
            "question": "Capital of France?",
            "userAnswer": "Paris",
            "correctAnswer": "Paris",
            "isCorrect": True,
            "points": 3,
            "explanation": "Paris is the capital.",
        },
    ]


class _LockstepStore(InMemoryDataStore):
    """Holds every quiz read until ``parties`` callers have made one."""

    def __init__(self) -> None:
        super().__init__()
        self.barrier: threading.Barrier | None = None

    def get_quiz(self, quiz_id):
        quiz = super().get_quiz(quiz_id)
        if self.barrier is not None:
            self.barrier.wait(timeout=5)
        return quiz


def test_simultaneous_starts_share_one_open_attempt(student, teacher) -> None:
    lockstep_store = _LockstepStore()
    quiz = QuizAuthoringService(lockstep_store, AccessPolicy()).create_quiz(
        teacher, {"title": "Race", "isActive": True, "questions": [{"question": "x", "correctAnswer": "y"}]}
    )
    service = AttemptService(lockstep_store, AccessPolicy())
    lockstep_store.barrier = threading.Barrier(2)

    with ThreadPoolExecutor(max_workers=2) as pool:
        started = list(pool.map(lambda _: service.start_quiz_attempt(quiz.id, student), range(2)))

    assert started[0].attempt.id == started[1].attempt.id
    assert sorted(s.resumed for s in started) == [False, True]
    open_attempts = [a for a in lockstep_store.list_attempts_by_student(student.user_id) if not a.is_completed]
    assert len(open_attempts) == 1
