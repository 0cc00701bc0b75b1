"""Presentation-only reordering of questions and options."""

from __future__ import annotations

from dataclasses import replace
import random
from typing import Sequence, TypeVar

from quiz_engine.core.models import CHOICE_QUESTION_CLASSES, Question, Quiz

T = TypeVar("T")


def shuffle_items(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Return a uniformly shuffled copy of ``items`` (Fisher-Yates via ``Random.shuffle``)."""
    shuffled = list(items)
    (rng or random.Random()).shuffle(shuffled)
    return shuffled


def normalize_quiz(quiz: Quiz, rng: random.Random | None = None) -> Quiz:
    """Return a presentation copy of ``quiz`` honoring its shuffle settings.

    The input quiz is left untouched. Grading compares answers by value, so
    the copy scores exactly like the original. Never store the result as the
    authoritative question order.
    """
    questions = shuffle_items(quiz.questions, rng) if quiz.shuffle_questions else list(quiz.questions)
    return replace(quiz, questions=[_present_question(question, quiz.shuffle_options, rng) for question in questions])


def _present_question(question: Question, shuffle_options: bool, rng: random.Random | None) -> Question:
    if not isinstance(question, CHOICE_QUESTION_CLASSES):
        return question
    if shuffle_options:
        return replace(question, options=shuffle_items(question.options, rng))
    return replace(question, options=list(question.options))
