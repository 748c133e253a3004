"""Persistence contract for quizzes and attempts, plus an in-memory store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from copy import deepcopy
from dataclasses import replace
from threading import Lock
from typing import Any
from uuid import uuid4

from quiz_engine.core.errors import WriteConflict
from quiz_engine.core.models import Attempt, Quiz, utc_now


class DataStore(ABC):
    """Create/read/update/delete access to quiz and attempt records.

    Implementations hand out copies: callers work on snapshots and write
    changes back explicitly. Each call is atomic on its own; no lock is held
    between calls.
    """

    @abstractmethod
    def list_quizzes(self) -> list[Quiz]: ...

    @abstractmethod
    def list_quizzes_by_teacher(self, teacher_id: str) -> list[Quiz]: ...

    @abstractmethod
    def get_quiz(self, quiz_id: str) -> Quiz | None: ...

    @abstractmethod
    def create_quiz(self, quiz: Quiz) -> Quiz:
        """Store a new quiz under a fresh id and return the stored copy."""

    @abstractmethod
    def update_quiz(self, quiz_id: str, changes: dict[str, Any]) -> Quiz | None:
        """Apply field changes and return the updated quiz, or None if absent."""

    @abstractmethod
    def delete_quiz(self, quiz_id: str) -> bool: ...

    @abstractmethod
    def list_attempts_by_student(self, student_id: str) -> list[Attempt]: ...

    @abstractmethod
    def get_attempt(self, attempt_id: str) -> Attempt | None: ...

    @abstractmethod
    def create_attempt(self, attempt: Attempt) -> Attempt: ...

    @abstractmethod
    def get_or_create_open_attempt(self, attempt: Attempt) -> tuple[Attempt, bool]:
        """Return the student's incomplete attempt on the quiz, creating ``attempt`` if none.

        The lookup and the insert happen as one step. The flag is True when a
        new attempt was stored.
        """

    @abstractmethod
    def update_attempt(
        self,
        attempt_id: str,
        changes: dict[str, Any],
        *,
        require_incomplete: bool = False,
    ) -> Attempt | None:
        """Apply field changes to an attempt.

        With ``require_incomplete`` the write only happens if the stored
        attempt is still incomplete; otherwise WriteConflict is raised.
        """


class InMemoryDataStore(DataStore):
    """Thread-safe dictionary-backed store.

    Every mutation builds the next version of the record maps, hands it to
    :meth:`_persist` and only then swaps it in, so a failed write leaves the
    store unchanged.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._quizzes: dict[str, Quiz] = {}
        self._attempts: dict[str, Attempt] = {}

    # --- Quizzes ---

    def list_quizzes(self) -> list[Quiz]:
        with self._lock:
            return deepcopy(list(self._quizzes.values()))

    def list_quizzes_by_teacher(self, teacher_id: str) -> list[Quiz]:
        with self._lock:
            return deepcopy([q for q in self._quizzes.values() if q.teacher_id == teacher_id])

    def get_quiz(self, quiz_id: str) -> Quiz | None:
        with self._lock:
            return deepcopy(self._quizzes.get(quiz_id))

    def create_quiz(self, quiz: Quiz) -> Quiz:
        now = utc_now()
        stored = replace(deepcopy(quiz), id=str(uuid4()), created_at=now, updated_at=now)
        with self._lock:
            self._commit(quizzes={**self._quizzes, stored.id: stored})
            return deepcopy(stored)

    def update_quiz(self, quiz_id: str, changes: dict[str, Any]) -> Quiz | None:
        with self._lock:
            existing = self._quizzes.get(quiz_id)
            if existing is None:
                return None
            updated = replace(existing, **deepcopy(changes), updated_at=utc_now())
            self._commit(quizzes={**self._quizzes, quiz_id: updated})
            return deepcopy(updated)

    def delete_quiz(self, quiz_id: str) -> bool:
        with self._lock:
            if quiz_id not in self._quizzes:
                return False
            self._commit(quizzes={key: quiz for key, quiz in self._quizzes.items() if key != quiz_id})
            return True

    # --- Attempts ---

    def list_attempts_by_student(self, student_id: str) -> list[Attempt]:
        with self._lock:
            return deepcopy([a for a in self._attempts.values() if a.student_id == student_id])

    def get_attempt(self, attempt_id: str) -> Attempt | None:
        with self._lock:
            return deepcopy(self._attempts.get(attempt_id))

    def create_attempt(self, attempt: Attempt) -> Attempt:
        stored = replace(deepcopy(attempt), id=str(uuid4()))
        with self._lock:
            self._commit(attempts={**self._attempts, stored.id: stored})
            return deepcopy(stored)

    def get_or_create_open_attempt(self, attempt: Attempt) -> tuple[Attempt, bool]:
        with self._lock:
            for existing in self._attempts.values():
                if (
                    existing.student_id == attempt.student_id
                    and existing.quiz_id == attempt.quiz_id
                    and not existing.is_completed
                ):
                    return deepcopy(existing), False
            stored = replace(deepcopy(attempt), id=str(uuid4()))
            self._commit(attempts={**self._attempts, stored.id: stored})
            return deepcopy(stored), True

    def update_attempt(
        self,
        attempt_id: str,
        changes: dict[str, Any],
        *,
        require_incomplete: bool = False,
    ) -> Attempt | None:
        with self._lock:
            existing = self._attempts.get(attempt_id)
            if existing is None:
                return None
            if require_incomplete and existing.is_completed:
                raise WriteConflict(f"Attempt {attempt_id} is already completed")
            updated = replace(existing, **deepcopy(changes))
            self._commit(attempts={**self._attempts, attempt_id: updated})
            return deepcopy(updated)

    def _commit(
        self,
        quizzes: dict[str, Quiz] | None = None,
        attempts: dict[str, Attempt] | None = None,
    ) -> None:
        quizzes = self._quizzes if quizzes is None else quizzes
        attempts = self._attempts if attempts is None else attempts
        self._persist(quizzes, attempts)
        self._quizzes = quizzes
        self._attempts = attempts

    def _persist(self, quizzes: dict[str, Quiz], attempts: dict[str, Attempt]) -> None:
        """Hook called with the lock held before a mutation is committed.

        Raising here (StoreError) aborts the mutation.
        """
