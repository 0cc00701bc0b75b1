"""Structural validation and semantic warnings for quiz documents."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any

from pydantic import ValidationError as SchemaValidationError

from quiz_engine.constants.quiz_constants import QUESTION_TYPES
from quiz_engine.core.errors import ErrorDetail, ValidationError
from quiz_engine.core.models import (
    MultiChoiceQuestion,
    Quiz,
    ShortTextQuestion,
    SingleChoiceQuestion,
    TrueFalseQuestion,
)
from quiz_engine.core.quiz_schema import QuizDocument

logger = logging.getLogger(__name__)

# Friendlier wording for the most common authoring mistakes, keyed by
# (field name, pydantic error type).
_MESSAGE_OVERRIDES: dict[tuple[str, str], str] = {
    ("title", "string_too_short"): "Quiz title is required.",
    ("id", "string_too_short"): "Id is required.",
    ("prompt", "string_too_short"): "Prompt is required.",
    ("questions", "too_short"): "Provide at least 1 question.",
    ("options", "too_short"): "Provide at least 2 options.",
    ("correctAnswers", "too_short"): "Provide at least 1 correct answer.",
    ("acceptedAnswers", "too_short"): "Provide at least 1 accepted answer.",
}


@dataclass(slots=True)
class ValidationResult:
    """Outcome of :func:`validate_quiz`. ``data`` is None whenever errors exist."""

    data: Quiz | None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error_details: list[ErrorDetail] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.data is not None and not self.errors


def validate_quiz(document: Any) -> ValidationResult:
    """Validate an untyped quiz document.

    Structural problems produce errors and no quiz. A structurally valid
    document is converted to a :class:`Quiz` and checked for non-blocking
    semantic issues, which are reported as warnings.
    """
    try:
        parsed = QuizDocument.model_validate(document)
    except SchemaValidationError as exc:
        details = [_to_error_detail(error) for error in exc.errors()]
        return ValidationResult(
            data=None,
            errors=[str(detail) for detail in details],
            error_details=details,
        )

    quiz = parsed.to_quiz()
    warnings = collect_warnings(quiz)
    if warnings:
        logger.info("Quiz %s validated with %d warning(s)", quiz.id, len(warnings))
    return ValidationResult(data=quiz, warnings=warnings)


def require_valid_quiz(document: Any) -> Quiz:
    """Return the typed quiz or raise :class:`ValidationError` with every problem."""
    result = validate_quiz(document)
    if result.data is None:
        raise ValidationError("Validation failed.", result.error_details)
    return result.data


def collect_warnings(quiz: Quiz) -> list[str]:
    """Semantic checks that never reject a quiz."""
    warnings: list[str] = []

    seen_ids: set[str] = set()
    for question in quiz.questions:
        if question.id in seen_ids:
            warnings.append(f"Duplicate question id detected: {question.id}.")
        seen_ids.add(question.id)

        if isinstance(question, (SingleChoiceQuestion, MultiChoiceQuestion)):
            if len(set(question.options)) != len(question.options):
                warnings.append(f"Question {question.id} has repeated options.")

    for question in quiz.questions:
        warning = _correct_answer_warning(question)
        if warning:
            warnings.append(warning)

    return warnings


def _correct_answer_warning(question: object) -> str | None:
    if isinstance(question, SingleChoiceQuestion):
        if question.correct_answer not in question.options:
            return f"Question {question.id} has a correctAnswer not in options."
        return None
    if isinstance(question, MultiChoiceQuestion):
        if any(answer not in question.options for answer in question.correct_answers):
            return f"Question {question.id} has correctAnswers not in options."
        return None
    if isinstance(question, (TrueFalseQuestion, ShortTextQuestion)):
        # The accepted set is authoritative for these variants.
        return None
    raise TypeError(f"Unsupported question variant: {type(question).__name__}")


def _to_error_detail(error: dict[str, Any]) -> ErrorDetail:
    # Discriminated unions add the tag to the location; it is not a field.
    location = [part for part in error.get("loc", ()) if part not in QUESTION_TYPES]
    field_path = ".".join(str(part) for part in location)
    field_name = next((str(part) for part in reversed(location) if isinstance(part, str)), "")
    message = _MESSAGE_OVERRIDES.get((field_name, error.get("type", "")), error.get("msg", "Invalid value."))
    return ErrorDetail(field=field_path, message=message)
