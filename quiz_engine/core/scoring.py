"""Grading of answer maps against quiz questions.

Both the preview path (:func:`score_quiz`, given a full quiz) and the
authoritative path (:func:`score_attempt`, given the stored questions) run the
same per-question rules, so their results cannot drift apart.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from quiz_engine.core.models import (
    AnswerMap,
    AnswerValue,
    MultiChoiceQuestion,
    Question,
    QuestionScore,
    Quiz,
    ScoreResult,
    ShortTextQuestion,
    SingleChoiceQuestion,
    TrueFalseQuestion,
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (``round`` rounds to even)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def normalize_text(value: object) -> str:
    """Trimmed, lower-cased text form of an answer; lists are comma-joined."""
    if isinstance(value, list):
        value = ",".join(str(item) for item in value)
    return str(value).strip().lower()


def is_answer_correct(question: Question, answer: AnswerValue) -> bool:
    """Grade one answer. Missing or mistyped answers are incorrect, never an error."""
    if isinstance(question, SingleChoiceQuestion):
        return isinstance(answer, str) and answer == question.correct_answer

    if isinstance(question, MultiChoiceQuestion):
        if isinstance(answer, list) and not all(isinstance(item, str) for item in answer):
            return False
        provided = sorted(answer) if isinstance(answer, list) else []
        expected = sorted(question.correct_answers)
        return len(provided) == len(expected) and all(
            given == wanted for given, wanted in zip(provided, expected)
        )

    if isinstance(question, TrueFalseQuestion):
        return isinstance(answer, bool) and answer is question.correct_answer

    if isinstance(question, ShortTextQuestion):
        given = normalize_text("" if answer is None else answer)
        return any(normalize_text(accepted) == given for accepted in question.accepted_answers)

    raise TypeError(f"Unsupported question variant: {type(question).__name__}")


def score_attempt(
    questions: Sequence[Question],
    answers: AnswerMap,
    passing_score: float | None = None,
) -> ScoreResult:
    """Score ``answers`` against an ordered sequence of questions."""
    per_question: list[QuestionScore] = []
    for question in questions:
        answer = answers.get(question.id)
        is_correct = is_answer_correct(question, answer)
        per_question.append(
            QuestionScore(
                question_id=question.id,
                is_correct=is_correct,
                score=question.points if is_correct else 0,
                max_score=question.points,
                answer=answer,
            )
        )

    total_score = sum(item.score for item in per_question)
    max_score = sum(item.max_score for item in per_question)
    percentage = 0 if max_score == 0 else round_half_up(total_score / max_score * 100)
    passed = True if passing_score is None else percentage >= passing_score

    return ScoreResult(
        total_score=total_score,
        max_score=max_score,
        percentage=percentage,
        passed=passed,
        per_question=per_question,
    )


def score_quiz(quiz: Quiz, answers: AnswerMap) -> ScoreResult:
    """Score ``answers`` against every question of ``quiz``."""
    return score_attempt(quiz.questions, answers, quiz.passing_score)
