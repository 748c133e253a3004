"""Static metadata describing the quiz attempt engine."""

APP_NAME = "Quiz Attempt Engine"
APP_VERSION = "0.1"
