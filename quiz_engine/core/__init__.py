"""Quiz assessment engine: validation, normalization, scoring and attempts."""

from .errors import (
    AccessError,
    ErrorDetail,
    NotFoundError,
    PreconditionError,
    QuizEngineError,
    StateError,
    ValidationError,
)
from .normalizer import normalize_quiz
from .scoring import score_attempt, score_quiz
from .services.analytics import summarize
from .validator import ValidationResult, validate_quiz

__all__ = [
    "AccessError",
    "ErrorDetail",
    "NotFoundError",
    "PreconditionError",
    "QuizEngineError",
    "StateError",
    "ValidationError",
    "ValidationResult",
    "normalize_quiz",
    "score_attempt",
    "score_quiz",
    "summarize",
    "validate_quiz",
]
