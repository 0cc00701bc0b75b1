"""Answer-completeness predicates shared by navigation and submission."""

from __future__ import annotations

from typing import Iterable

from quiz_engine.core.models import AnswerMap, AnswerValue, Question


def is_answer_empty(answer: AnswerValue) -> bool:
    """None, a blank string and an empty list all count as unanswered."""
    if answer is None:
        return True
    if isinstance(answer, list):
        return len(answer) == 0
    if isinstance(answer, str):
        return not answer.strip()
    return False


def answered_count(answers: AnswerMap) -> int:
    return sum(1 for value in answers.values() if not is_answer_empty(value))


def missing_required_answers(questions: Iterable[Question], answers: AnswerMap) -> list[str]:
    """Ids of required questions without a non-empty answer, in question order."""
    return [
        question.id
        for question in questions
        if question.required and is_answer_empty(answers.get(question.id))
    ]


def can_advance(question: Question, answer: AnswerValue, allow_skip: bool) -> bool:
    """Whether a participant may move past ``question`` with the given answer."""
    if not is_answer_empty(answer):
        return True
    if question.required:
        return False
    return allow_skip
