"""Exception hierarchy raised by the quiz engine."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class ErrorDetail:
    """A single problem tied to a field path."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}" if self.field else self.message


class QuizEngineError(Exception):
    """Base class for every error the engine raises on purpose."""

    code = "bad_request"

    def __init__(self, message: str, details: list[ErrorDetail] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: list[ErrorDetail] = list(details or [])


class ValidationError(QuizEngineError):
    """Raised when a quiz document is structurally invalid."""

    code = "validation_error"


class StateError(QuizEngineError):
    """Raised when an attempt is not in a state that allows the operation."""

    code = "invalid_state"


class PreconditionError(QuizEngineError):
    """Raised when required answers are missing on a voluntary submit."""

    code = "missing_required"

    def __init__(
        self,
        message: str,
        details: list[ErrorDetail] | None = None,
        missing_question_ids: list[str] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.missing_question_ids: list[str] = list(missing_question_ids or [])


class AccessError(PreconditionError):
    """Raised when a quiz or attempt is not visible to the caller."""

    code = "forbidden"


class NotFoundError(QuizEngineError):
    """Raised when a quiz, attempt or question id does not exist."""

    code = "not_found"
