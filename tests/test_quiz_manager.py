"""Tests for the operation boundary and its structured results."""

from quiz_engine.core.errors import StoreError
from quiz_engine.core.quiz_manager import QuizManager
from quiz_engine.core.services.data_store import InMemoryDataStore


def _create_basics(manager, teacher) -> dict:
    result = manager.create_quiz(
        teacher,
        {
            "title": "Basics",
            "isActive": True,
            "questions": [
                {"question": "2 + 2?", "correctAnswer": "4", "points": 2, "type": "short_answer"},
                {"question": "Capital of France?", "correctAnswer": "Paris", "points": 3, "type": "short_answer"},
            ],
        },
    )
    assert result.success and result.created
    return result.data


def test_create_quiz_validation_failure_envelope(manager, teacher) -> None:
    result = manager.create_quiz(teacher, {"title": ""})
    assert result.to_envelope() == {
        "success": False,
        "error": "Validation failed",
        "details": ["Title is required"],
    }
    assert result.error_kind == "validation"
    assert manager.list_quizzes(teacher).data == []


def test_scenario_a_through_the_facade(manager, teacher, student) -> None:
    quiz = _create_basics(manager, teacher)
    q1, q2 = (q["id"] for q in quiz["questions"])

    started = manager.start_quiz_attempt(quiz["id"], student)
    assert started.created
    attempt_id = started.data["id"]
    manager.submit_answer(attempt_id, student, {"questionId": q1, "answer": "4"})
    manager.submit_answer(attempt_id, student, {"questionId": q2, "answer": "London"})

    completed = manager.complete_quiz_attempt(attempt_id, student)
    envelope = completed.to_envelope()
    assert envelope["success"] is True
    assert envelope["percentage"] == 40.0
    assert envelope["data"]["score"] == 2
    assert envelope["data"]["totalPoints"] == 5


def test_resumed_attempt_has_message(manager, teacher, student) -> None:
    quiz = _create_basics(manager, teacher)
    first = manager.start_quiz_attempt(quiz["id"], student)
    second = manager.start_quiz_attempt(quiz["id"], student)
    assert second.data["id"] == first.data["id"]
    assert not second.created
    assert second.message == "Resuming existing attempt"


def test_completed_attempt_rejects_answers(manager, teacher, student) -> None:
    quiz = _create_basics(manager, teacher)
    attempt_id = manager.start_quiz_attempt(quiz["id"], student).data["id"]
    manager.complete_quiz_attempt(attempt_id, student)
    result = manager.submit_answer(attempt_id, student, {"questionId": "q", "answer": "x"})
    assert not result.success
    assert result.error_kind == "invalid_state"
    assert result.error == "Attempt already completed"


def test_scenario_c_access_denied_then_admin(manager, teacher, other_teacher, admin) -> None:
    quiz = _create_basics(manager, other_teacher)
    denied = manager.update_quiz(quiz["id"], teacher, {"title": "Mine now"})
    assert denied.to_envelope() == {"success": False, "error": "Access denied"}
    allowed = manager.update_quiz(quiz["id"], admin, {"title": "Fixed"})
    assert allowed.success and allowed.data["title"] == "Fixed"


def test_students_get_sanitized_views_everywhere(manager, teacher, student) -> None:
    quiz = _create_basics(manager, teacher)
    for result in (
        manager.list_available_quizzes(),
        manager.list_quizzes(student),
    ):
        for question in result.data[0]["questions"]:
            assert "correctAnswer" not in question
            assert "explanation" not in question
    single = manager.get_quiz(quiz["id"], student).data
    assert all("correctAnswer" not in q for q in single["questions"])
    assert manager.get_quiz(quiz["id"], teacher).data["questions"][0]["correctAnswer"] == "4"


def test_malformed_payload_is_a_validation_failure(manager, teacher, student) -> None:
    quiz = _create_basics(manager, teacher)
    attempt_id = manager.start_quiz_attempt(quiz["id"], student).data["id"]
    result = manager.submit_answer(attempt_id, student, {"questionId": "q"})
    assert result.error_kind == "validation"
    assert any(detail.startswith("answer") for detail in result.details)


def test_set_quiz_active_accepts_plain_bool(manager, teacher) -> None:
    quiz = manager.create_quiz(teacher, {"title": "Draft"}).data
    assert manager.set_quiz_active(quiz["id"], teacher, True).data["isActive"] is True
    assert manager.set_quiz_active(quiz["id"], teacher, {"isActive": False}).data["isActive"] is False


def test_delete_reports_message_and_not_found(manager, teacher) -> None:
    quiz = manager.create_quiz(teacher, {"title": "Temp"}).data
    assert manager.delete_quiz(quiz["id"], teacher).to_envelope() == {
        "success": True,
        "message": "Quiz deleted successfully",
    }
    missing = manager.delete_quiz(quiz["id"], teacher)
    assert missing.error == "Quiz not found"
    assert missing.error_kind == "not_found"


def test_practice_test_and_flashcards(manager, teacher, student) -> None:
    assert manager.create_flashcards(student).data == []
    practice = manager.create_practice_test({"topic": "Kanji", "difficulty": "easy", "questionCount": 2})
    assert practice.data["isPracticeTest"] is True
    assert len(practice.data["questions"]) == 2


class _BrokenStore(InMemoryDataStore):
    def list_quizzes(self):
        raise StoreError("disk on fire")


def test_store_failures_become_internal_errors(admin, caplog) -> None:
    manager = QuizManager(store=_BrokenStore())
    result = manager.list_quizzes(admin)
    assert result.to_envelope() == {"success": False, "error": "Internal server error"}
    assert result.error_kind == "internal"
    assert "Store failure during list_quizzes" in caplog.text


class _FlakyStore(InMemoryDataStore):
    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False

    def _persist(self, quizzes, attempts) -> None:
        if self.fail_writes:
            raise StoreError("disk full")


def test_completion_can_be_retried_after_a_failed_write(teacher, student) -> None:
    store = _FlakyStore()
    manager = QuizManager(store=store)
    quiz = manager.create_quiz(
        teacher,
        {"title": "Retry", "isActive": True, "questions": [{"question": "x", "correctAnswer": "y"}]},
    ).data
    attempt = manager.start_quiz_attempt(quiz["id"], student).data
    manager.submit_answer(attempt["id"], student, {"questionId": quiz["questions"][0]["id"], "answer": "y"})

    store.fail_writes = True
    failed = manager.complete_quiz_attempt(attempt["id"], student)
    assert failed.error == "Internal server error"
    assert store.get_attempt(attempt["id"]).is_completed is False

    store.fail_writes = False
    retried = manager.complete_quiz_attempt(attempt["id"], student)
    assert retried.success
    assert retried.percentage == 100.0
    assert retried.data["isCompleted"] is True
