"""Data store that keeps its records in a single JSON document on disk."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from quiz_engine.core.errors import StoreError
from quiz_engine.core.models import Attempt, Quiz
from quiz_engine.core.services.data_store import InMemoryDataStore

logger = logging.getLogger(__name__)


class JsonFileDataStore(InMemoryDataStore):
    """In-memory store that rewrites ``file_path`` after every mutation.

    Document layout::

        {"quizzes": [<quiz>, ...], "attempts": [<attempt>, ...]}

    Records use the same camelCase keys as the HTTP responses.
    """

    def __init__(self, file_path: Path) -> None:
        super().__init__()
        self._file_path = file_path.resolve()
        self._load()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def _load(self) -> None:
        if not self._file_path.exists():
            logger.info("No data file at %s; starting with an empty store", self._file_path)
            return
        try:
            document = json.loads(self._file_path.read_text(encoding="utf-8"))
            quizzes = [Quiz.from_dict(item) for item in document.get("quizzes", [])]
            attempts = [Attempt.from_dict(item) for item in document.get("attempts", [])]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise StoreError(f"Unable to load data file {self._file_path}") from exc
        self._quizzes = {quiz.id: quiz for quiz in quizzes}
        self._attempts = {attempt.id: attempt for attempt in attempts}
        logger.info(
            "Loaded %d quiz(zes) and %d attempt(s) from %s",
            len(self._quizzes),
            len(self._attempts),
            self._file_path,
        )

    def _persist(self, quizzes: dict[str, Quiz], attempts: dict[str, Attempt]) -> None:
        document = {
            "quizzes": [quiz.to_dict() for quiz in quizzes.values()],
            "attempts": [attempt.to_dict() for attempt in attempts.values()],
        }
        temp_path = self._file_path.with_suffix(self._file_path.suffix + ".tmp")
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(json.dumps(document, indent=2), encoding="utf-8")
            temp_path.replace(self._file_path)
        except OSError as exc:
            raise StoreError(f"Unable to write data file {self._file_path}") from exc
