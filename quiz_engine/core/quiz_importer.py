"""Utilities for importing quizzes from JSON documents on disk.

A quiz file holds one JSON object in the same camelCase shape the API
accepts, for example::

    {
      "id": "capitals",
      "title": "European capitals",
      "passingScore": 60,
      "questions": [
        {"id": "q1", "type": "multiple_choice_single", "prompt": "Capital of Norway?",
         "options": ["Oslo", "Bergen"], "correctAnswer": "Oslo"},
        {"id": "q2", "type": "short_text", "prompt": "Capital of France?",
         "acceptedAnswers": ["Paris"]}
      ]
    }

Everything goes through :func:`quiz_engine.core.validator.validate_quiz`, so
files are held to exactly the same rules as documents posted over HTTP.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path

from quiz_engine.core.errors import ErrorDetail, ValidationError
from quiz_engine.core.models import Quiz
from quiz_engine.core.validator import validate_quiz


class QuizImportError(ValidationError):
    """Raised when a quiz file cannot be read, parsed or validated."""

    code = "import_error"


@dataclass(slots=True)
class ImportedQuiz:
    """Container for an imported quiz and the warnings raised while validating it."""

    source_path: Path
    quiz: Quiz
    warnings: list[str] = field(default_factory=list)


def load_quiz_from_file(file_path: Path) -> ImportedQuiz:
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise QuizImportError(f"Could not read quiz file {file_path}.") from exc
    quiz, warnings = parse_quiz_text(text)
    return ImportedQuiz(source_path=file_path, quiz=quiz, warnings=warnings)


def parse_quiz_text(text: str) -> tuple[Quiz, list[str]]:
    """Parse and validate a JSON quiz document."""
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise QuizImportError(
            "Quiz file is not valid JSON.",
            [ErrorDetail(field=f"line {exc.lineno}", message=exc.msg)],
        ) from exc

    result = validate_quiz(document)
    if result.data is None:
        raise QuizImportError("Quiz file failed validation.", result.error_details)
    return result.data, result.warnings
