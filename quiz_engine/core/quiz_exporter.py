"""Utilities for exporting quizzes to the JSON document format used for imports."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from quiz_engine.core.models import (
    MultiChoiceQuestion,
    Question,
    Quiz,
    ShortTextQuestion,
    SingleChoiceQuestion,
    TrueFalseQuestion,
)


def save_quiz_to_file(file_path: Path, quiz: Quiz) -> None:
    """Persist the quiz to disk as an importable JSON document."""

    if not quiz.questions:
        raise ValueError("Cannot export an empty quiz.")

    file_path = file_path.resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    document = json.dumps(quiz_to_document(quiz), indent=2, ensure_ascii=False)
    file_path.write_text(document + "\n", encoding="utf-8")


def quiz_to_document(quiz: Quiz) -> dict[str, Any]:
    """Serialize a quiz into the camelCase document accepted by the validator."""
    document: dict[str, Any] = {"id": quiz.id, "title": quiz.title}
    if quiz.description is not None:
        document["description"] = quiz.description
    if quiz.time_limit_seconds is not None:
        document["timeLimitSeconds"] = quiz.time_limit_seconds
    if quiz.passing_score is not None:
        document["passingScore"] = quiz.passing_score
    document.update(
        {
            "shuffleQuestions": quiz.shuffle_questions,
            "shuffleOptions": quiz.shuffle_options,
            "showQuestionList": quiz.show_question_list,
            "allowSkip": quiz.allow_skip,
            "enforceRequiredBeforeSubmit": quiz.enforce_required_before_submit,
            "visibility": quiz.visibility,
            "questions": [question_to_document(question) for question in quiz.questions],
        }
    )
    return document


def question_to_document(question: Question) -> dict[str, Any]:
    document: dict[str, Any] = {
        "id": question.id,
        "type": question.type,
        "prompt": question.prompt,
        "required": question.required,
        "points": question.points,
    }
    if question.explanation is not None:
        document["explanation"] = question.explanation

    if isinstance(question, SingleChoiceQuestion):
        document["options"] = list(question.options)
        document["correctAnswer"] = question.correct_answer
    elif isinstance(question, MultiChoiceQuestion):
        document["options"] = list(question.options)
        document["correctAnswers"] = list(question.correct_answers)
    elif isinstance(question, TrueFalseQuestion):
        document["correctAnswer"] = question.correct_answer
    elif isinstance(question, ShortTextQuestion):
        document["acceptedAnswers"] = list(question.accepted_answers)
    else:
        raise TypeError(f"Unsupported question variant: {type(question).__name__}")
    return document
