"""Network configuration constants for the quiz engine server."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000

USER_ID_HEADER: str = "X-User-Id"
USER_ROLE_HEADER: str = "X-User-Role"

# When set, quizzes and attempts are persisted to this JSON file.
DATA_FILE_ENV_VAR: str = "QUIZ_ENGINE_DATA_FILE"
