"""Quiz-related constants shared across the core and server layers."""

DEFAULT_QUESTION_POINTS: int = 1

UNKNOWN_QUIZ_TITLE: str = "Unknown Quiz"
NO_ANSWER_TEXT: str = "No answer"
RESUMED_ATTEMPT_MESSAGE: str = "Resuming existing attempt"

PRACTICE_TEST_TEACHER_ID: str = "ai-system"
PRACTICE_TEST_DEFAULT_QUESTION_COUNT: int = 5
PRACTICE_TEST_MAX_QUESTION_COUNT: int = 100
PRACTICE_TEST_OPTIONS: tuple[str, ...] = (
    "Sample answer A",
    "Sample answer B (correct)",
    "Sample answer C",
    "Sample answer D",
)
PRACTICE_TEST_CORRECT_ANSWER: str = "Sample answer B (correct)"
