"""Shared fixtures for the quiz engine tests."""

from __future__ import annotations

from copy import deepcopy
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from quiz_engine.core.models import Quiz
from quiz_engine.core.services.quiz_repository import QuizRepository
from quiz_engine.core.validator import require_valid_quiz

SAMPLE_DOCUMENT: dict[str, Any] = {
    "id": "sample",
    "title": "Sample Quiz",
    "questions": [
        {
            "id": "q1",
            "type": "multiple_choice_single",
            "prompt": "Pick one",
            "options": ["A", "B"],
            "correctAnswer": "A",
        },
        {
            "id": "q2",
            "type": "true_false",
            "prompt": "True?",
            "correctAnswer": True,
        },
        {
            "id": "q3",
            "type": "multiple_choice_multi",
            "prompt": "Pick two",
            "options": ["A", "B", "C"],
            "correctAnswers": ["A", "B"],
        },
        {
            "id": "q4",
            "type": "short_text",
            "prompt": "Say hello",
            "acceptedAnswers": ["Hello"],
        },
    ],
}

ALL_CORRECT = {"q1": "A", "q2": True, "q3": ["B", "A"], "q4": "hello"}

AUTHOR = "author-1"
PARTICIPANT = "participant-1"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_document(**overrides: Any) -> dict[str, Any]:
    document = deepcopy(SAMPLE_DOCUMENT)
    document.update(overrides)
    return document


@pytest.fixture
def quiz_document() -> dict[str, Any]:
    return make_document()


@pytest.fixture
def quiz(quiz_document: dict[str, Any]) -> Quiz:
    return require_valid_quiz(quiz_document)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository(clock: FakeClock, quiz: Quiz) -> QuizRepository:
    """Repository holding the sample quiz, published and public."""
    repo = QuizRepository(clock=clock)
    quiz.visibility = "public"
    repo.create(AUTHOR, quiz)
    repo.publish(quiz.id, AUTHOR)
    return repo
