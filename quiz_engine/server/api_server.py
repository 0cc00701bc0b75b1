"""FastAPI server that exposes the quiz engine over HTTP.

Authentication happens upstream; the already-authenticated caller id arrives
in the ``X-User-Id`` header.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from threading import Thread
from typing import Any, Sequence, Union

from fastapi import Body, Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
import uvicorn

from quiz_engine.constants.network_constants import API_LOG_LEVEL, DEFAULT_HOST, DEFAULT_PORT, USER_ID_HEADER
from quiz_engine.core.errors import (
    AccessError,
    ErrorDetail,
    NotFoundError,
    QuizEngineError,
    StateError,
    ValidationError,
)
from quiz_engine.core.models import Attempt, AttemptSummary, ScoreResult
from quiz_engine.core.quiz_exporter import quiz_to_document
from quiz_engine.core.quiz_manager import QuizManager
from quiz_engine.core.services.quiz_repository import StoredQuiz

logger = logging.getLogger(__name__)

AnswerPayloadValue = Union[str, list[str], bool, None]

_REQUEST_LOCATIONS = frozenset({"body", "query", "path", "header", "cookie"})


class AnswersPayload(BaseModel):
    """Payload schema for saving answers."""

    model_config = ConfigDict(strict=True)

    answers: dict[str, AnswerPayloadValue] = {}


class SubmitPayload(AnswersPayload):
    """Payload schema for submitting an attempt."""

    forced: bool = False


def _status_for(error: QuizEngineError) -> int:
    if isinstance(error, AccessError):
        return 403
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, StateError):
        return 409
    return 400


def _error_response(status: int, error: QuizEngineError) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={
            "error": {
                "message": error.message,
                "code": error.code,
                "details": [{"field": d.field, "message": d.message} for d in error.details],
            }
        },
    )


def _request_error_details(errors: Sequence[Any]) -> list[ErrorDetail]:
    details: list[ErrorDetail] = []
    for error in errors:
        location = list(error.get("loc", ()))
        # Drop the request part ("body", "query", ...) so paths match document fields.
        if location and location[0] in _REQUEST_LOCATIONS:
            location = location[1:]
        details.append(
            ErrorDetail(
                field=".".join(str(part) for part in location),
                message=error.get("msg", "Invalid value."),
            )
        )
    return details


def _isoformat(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc).isoformat()
    return value.astimezone(timezone.utc).isoformat()


def _score_payload(result: ScoreResult) -> dict[str, object]:
    return {
        "totalScore": result.total_score,
        "maxScore": result.max_score,
        "percentage": result.percentage,
        "passed": result.passed,
        "perQuestion": [
            {
                "questionId": item.question_id,
                "isCorrect": item.is_correct,
                "score": item.score,
                "maxScore": item.max_score,
                "answer": item.answer,
            }
            for item in result.per_question
        ],
    }


def _attempt_payload(attempt: Attempt) -> dict[str, object]:
    return {
        "id": attempt.id,
        "quizId": attempt.quiz_id,
        "userId": attempt.user_id,
        "state": attempt.state.value,
        "startedAt": _isoformat(attempt.started_at),
        "submittedAt": _isoformat(attempt.submitted_at),
        "timeTakenSeconds": attempt.time_taken_seconds,
        "score": attempt.score,
        "percentage": attempt.percentage,
        "passed": attempt.passed,
        "forced": attempt.forced,
        "answers": {
            question_id: {
                "value": entry.value,
                "isCorrect": entry.is_correct,
                "earnedPoints": entry.earned_points,
            }
            for question_id, entry in attempt.answers.items()
        },
    }


def _summary_payload(summary: AttemptSummary) -> dict[str, int]:
    return {
        "attempts": summary.attempts,
        "averageScore": summary.average_score,
        "medianScore": summary.median_score,
        "passRate": summary.pass_rate,
        "averageTime": summary.average_time,
    }


def _quiz_listing(stored: StoredQuiz) -> dict[str, object]:
    return {
        "id": stored.quiz.id,
        "title": stored.quiz.title,
        "description": stored.quiz.description,
        "visibility": stored.quiz.visibility,
        "status": stored.status,
        "createdAt": _isoformat(stored.created_at),
        "updatedAt": _isoformat(stored.updated_at),
    }


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def current_user_id(x_user_id: str | None = Header(default=None, alias=USER_ID_HEADER)) -> str:
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Authentication required.")
    return user_id


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(title="Quiz Engine API", version="0.1.0")
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    @app.exception_handler(QuizEngineError)
    async def handle_engine_error(request: Request, exc: QuizEngineError) -> JSONResponse:
        status = _status_for(exc)
        if status == 409:
            logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return _error_response(status, exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        error = ValidationError("Invalid request payload.", _request_error_details(exc.errors()))
        logger.info("%s %s rejected: %d invalid field(s)", request.method, request.url.path, len(error.details))
        return _error_response(400, error)

    @app.post("/quizzes/validate")
    def validate_document(
        document: Any = Body(...),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        result = manager.validate_document(document)
        return {
            "valid": result.is_valid,
            "errors": result.errors,
            "warnings": result.warnings,
            "details": [{"field": d.field, "message": d.message} for d in result.error_details],
        }

    @app.post("/quizzes", status_code=201)
    def create_quiz(
        document: Any = Body(...),
        user_id: str = Depends(current_user_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        stored, warnings = manager.create_quiz(user_id, document)
        return {"id": stored.quiz.id, "status": stored.status, "warnings": warnings}

    @app.get("/quizzes/mine")
    def list_my_quizzes(
        user_id: str = Depends(current_user_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return {"quizzes": [_quiz_listing(stored) for stored in manager.list_quizzes(user_id)]}

    @app.get("/quizzes/{quiz_id}")
    def get_quiz(
        quiz_id: str,
        user_id: str = Depends(current_user_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        stored = manager.get_quiz(quiz_id, user_id)
        # Participants get the presentation order; owners see the stored one.
        quiz = stored.quiz if stored.owner_id == user_id else manager.get_presentation_quiz(quiz_id, user_id)
        document = quiz_to_document(quiz)
        document["status"] = stored.status
        return document

    @app.put("/quizzes/{quiz_id}")
    def update_quiz(
        quiz_id: str,
        document: Any = Body(...),
        user_id: str = Depends(current_user_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        stored, warnings = manager.update_quiz(quiz_id, user_id, document)
        return {"id": stored.quiz.id, "status": stored.status, "warnings": warnings}

    @app.post("/quizzes/{quiz_id}/publish")
    def publish_quiz(
        quiz_id: str,
        user_id: str = Depends(current_user_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        stored = manager.publish_quiz(quiz_id, user_id)
        return {"id": stored.quiz.id, "status": stored.status}

    @app.delete("/quizzes/{quiz_id}")
    def delete_quiz(
        quiz_id: str,
        user_id: str = Depends(current_user_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        manager.delete_quiz(quiz_id, user_id)
        return {"success": True}

    @app.post("/quizzes/{quiz_id}/preview-score")
    def preview_score(
        quiz_id: str,
        payload: AnswersPayload,
        user_id: str = Depends(current_user_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _score_payload(manager.preview_score(quiz_id, user_id, payload.answers))

    @app.post("/quizzes/{quiz_id}/attempts/start", status_code=201)
    def start_attempt(
        quiz_id: str,
        user_id: str = Depends(current_user_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        attempt_id = manager.start_attempt(quiz_id, user_id)
        return {
            "attemptId": attempt_id,
            "remainingSeconds": manager.get_remaining_seconds(attempt_id),
        }

    @app.get("/quizzes/{quiz_id}/attempts")
    def get_quiz_attempts(
        quiz_id: str,
        user_id: str = Depends(current_user_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        attempts, summary = manager.get_quiz_attempts(quiz_id, user_id)
        return {
            "attempts": [_attempt_payload(attempt) for attempt in attempts],
            "summary": _summary_payload(summary),
        }

    @app.post("/attempts/{attempt_id}/answer")
    def record_answers(
        attempt_id: str,
        payload: AnswersPayload,
        user_id: str = Depends(current_user_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        manager.record_answers(attempt_id, user_id, payload.answers)
        return {"success": True}

    @app.post("/attempts/{attempt_id}/submit")
    def submit_attempt(
        attempt_id: str,
        payload: SubmitPayload,
        user_id: str = Depends(current_user_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        result = manager.submit_attempt(attempt_id, user_id, payload.answers, forced=payload.forced)
        attempt = manager.get_attempt(attempt_id, user_id)
        body = _score_payload(result)
        body.update({"attemptId": attempt_id, "timeTakenSeconds": attempt.time_taken_seconds})
        return body

    @app.get("/attempts/mine")
    def list_my_attempts(
        user_id: str = Depends(current_user_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return {"attempts": [_attempt_payload(attempt) for attempt in manager.list_attempts(user_id)]}

    @app.get("/attempts/{attempt_id}")
    def get_attempt(
        attempt_id: str,
        user_id: str = Depends(current_user_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        attempt = manager.get_attempt(attempt_id, user_id)
        return {
            "attempt": _attempt_payload(attempt),
            "remainingSeconds": manager.get_remaining_seconds(attempt_id),
        }

    return app


def start_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level=API_LOG_LEVEL)
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="QuizApiServer", daemon=True)
    thread.start()
    return thread
