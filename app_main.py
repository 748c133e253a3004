"""Application entry point for the quiz attempt engine server."""

from __future__ import annotations

import os
from pathlib import Path

from quiz_engine.constants.network_constants import DATA_FILE_ENV_VAR, DEFAULT_HOST, DEFAULT_PORT
from quiz_engine.core.quiz_manager import QuizManager
from quiz_engine.core.services.data_store import DataStore, InMemoryDataStore
from quiz_engine.core.services.json_file_store import JsonFileDataStore
from quiz_engine.server.api_server import run_api_server
from quiz_engine.utils.logging_config import configure_logging


def _create_store() -> DataStore:
    """Use the JSON file named by the environment, or keep everything in memory."""
    data_file = os.environ.get(DATA_FILE_ENV_VAR)
    if data_file:
        return JsonFileDataStore(Path(data_file))
    return InMemoryDataStore()


def main() -> None:
    """Initialize logging and the data store, then serve the API."""
    logger = configure_logging()
    logger.info("Starting quiz attempt engine…")

    store = _create_store()
    if isinstance(store, JsonFileDataStore):
        logger.info("Persisting quizzes and attempts to %s", store.file_path)
    else:
        logger.info("Using in-memory store; data is lost on exit (set %s to persist)", DATA_FILE_ENV_VAR)

    quiz_manager = QuizManager(store=store)
    logger.info("API listening on http://%s:%d/", DEFAULT_HOST, DEFAULT_PORT)
    run_api_server(quiz_manager=quiz_manager, host=DEFAULT_HOST, port=DEFAULT_PORT)


if __name__ == "__main__":
    main()
