"""FastAPI server that exposes the authoring and student endpoints."""

from __future__ import annotations

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from quiz_engine.constants.about import APP_NAME, APP_VERSION
from quiz_engine.constants.network_constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    USER_ID_HEADER,
    USER_ROLE_HEADER,
)
from quiz_engine.core.inputs import (
    AnswerSubmission,
    PracticeTestRequest,
    QuestionCreate,
    QuestionPatch,
    QuizCreate,
    QuizPatch,
    QuizStatusUpdate,
    QuizTextImport,
    format_validation_errors,
)
from quiz_engine.core.models import Principal, Role
from quiz_engine.core.quiz_manager import OperationResult, QuizManager

_STATUS_BY_ERROR_KIND = {
    "validation": 400,
    "invalid_state": 400,
    "access_denied": 403,
    "not_found": 404,
    "internal": 500,
}


def get_principal(
    x_user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
    x_user_role: str | None = Header(default=None, alias=USER_ROLE_HEADER),
) -> Principal:
    """Resolve the caller from the headers set by the upstream auth layer."""
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        role = Role(x_user_role.strip().lower())
    except ValueError as exc:
        raise HTTPException(status_code=401, detail="Authentication required") from exc
    return Principal(user_id=x_user_id, role=role)


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def _respond(result: OperationResult) -> JSONResponse:
    if result.success:
        status_code = 201 if result.created else 200
    else:
        status_code = _STATUS_BY_ERROR_KIND.get(result.error_kind or "internal", 500)
    return JSONResponse(status_code=status_code, content=result.to_envelope())


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "Validation failed",
                "details": format_validation_errors(list(exc.errors())),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.get("/health")
    def health() -> dict[str, object]:
        return {"success": True, "data": {"status": "ok", "version": APP_VERSION}}

    # --- Quiz authoring ---

    @app.get("/quizzes")
    def list_quizzes(
        principal: Principal = Depends(get_principal),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> JSONResponse:
        return _respond(manager.list_quizzes(principal))

    @app.get("/quizzes/{quiz_id}")
    def get_quiz(
        quiz_id: str,
        principal: Principal = Depends(get_principal),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> JSONResponse:
        return _respond(manager.get_quiz(quiz_id, principal))

    @app.post("/quizzes")
    def create_quiz(
        payload: QuizCreate,
        principal: Principal = Depends(get_principal),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> JSONResponse:
        return _respond(manager.create_quiz(principal, payload))

    @app.put("/quizzes/{quiz_id}")
    def update_quiz(
        quiz_id: str,
        payload: QuizPatch,
        principal: Principal = Depends(get_principal),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> JSONResponse:
        return _respond(manager.update_quiz(quiz_id, principal, payload))

    @app.delete("/quizzes/{quiz_id}")
    def delete_quiz(
        quiz_id: str,
        principal: Principal = Depends(get_principal),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> JSONResponse:
        return _respond(manager.delete_quiz(quiz_id, principal))

    @app.patch("/quizzes/{quiz_id}/status")
    def set_quiz_status(
        quiz_id: str,
        payload: QuizStatusUpdate,
        principal: Principal = Depends(get_principal),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> JSONResponse:
        return _respond(manager.set_quiz_active(quiz_id, principal, payload))

    @app.post("/quizzes/{quiz_id}/questions")
    def add_question(
        quiz_id: str,
        payload: QuestionCreate,
        principal: Principal = Depends(get_principal),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> JSONResponse:
        return _respond(manager.add_question(quiz_id, principal, payload))

    @app.patch("/quizzes/{quiz_id}/questions/{question_id}")
    def update_question(
        quiz_id: str,
        question_id: str,
        payload: QuestionPatch,
        principal: Principal = Depends(get_principal),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> JSONResponse:
        return _respond(manager.update_question(quiz_id, question_id, principal, payload))

    @app.delete("/quizzes/{quiz_id}/questions/{question_id}")
    def delete_question(
        quiz_id: str,
        question_id: str,
        principal: Principal = Depends(get_principal),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> JSONResponse:
        return _respond(manager.delete_question(quiz_id, question_id, principal))

    @app.post("/quizzes/{quiz_id}/import")
    def import_questions(
        quiz_id: str,
        payload: QuizTextImport,
        principal: Principal = Depends(get_principal),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> JSONResponse:
        return _respond(manager.import_questions(quiz_id, principal, payload))

    @app.get("/quizzes/{quiz_id}/export")
    def export_quiz(
        quiz_id: str,
        principal: Principal = Depends(get_principal),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> Response:
        result = manager.export_quiz(quiz_id, principal)
        if not result.success:
            return _respond(result)
        return PlainTextResponse(result.data)

    # --- Student side ---

    @app.get("/student/quizzes")
    def list_available_quizzes(manager: QuizManager = Depends(quiz_manager_dep)) -> JSONResponse:
        return _respond(manager.list_available_quizzes())

    @app.post("/student/quizzes/{quiz_id}/attempt")
    def start_quiz_attempt(
        quiz_id: str,
        principal: Principal = Depends(get_principal),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> JSONResponse:
        return _respond(manager.start_quiz_attempt(quiz_id, principal))

    @app.patch("/student/attempts/{attempt_id}/answer")
    def submit_answer(
        attempt_id: str,
        payload: AnswerSubmission,
        principal: Principal = Depends(get_principal),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> JSONResponse:
        return _respond(manager.submit_answer(attempt_id, principal, payload))

    @app.post("/student/attempts/{attempt_id}/complete")
    def complete_quiz_attempt(
        attempt_id: str,
        principal: Principal = Depends(get_principal),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> JSONResponse:
        return _respond(manager.complete_quiz_attempt(attempt_id, principal))

    @app.get("/student/history")
    def get_quiz_history(
        principal: Principal = Depends(get_principal),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> JSONResponse:
        return _respond(manager.get_quiz_history(principal))

    @app.get("/student/attempts/{attempt_id}")
    def get_attempt_details(
        attempt_id: str,
        principal: Principal = Depends(get_principal),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> JSONResponse:
        return _respond(manager.get_attempt_details(attempt_id, principal))

    @app.get("/student/flashcards")
    def create_flashcards(
        principal: Principal = Depends(get_principal),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> JSONResponse:
        return _respond(manager.create_flashcards(principal))

    @app.post("/student/practice-test")
    def create_practice_test(
        payload: PracticeTestRequest,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> JSONResponse:
        return _respond(manager.create_practice_test(payload))

    return app


def run_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API until the process is interrupted."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    server.run()
