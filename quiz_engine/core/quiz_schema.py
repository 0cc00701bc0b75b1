"""Pydantic description of the quiz document accepted by the validator.

The document uses camelCase keys (``correctAnswer``, ``timeLimitSeconds``)
while the domain dataclasses in :mod:`quiz_engine.core.models` use
snake_case. Models here are strict: a string is never coerced into a boolean
or a float into an integer, so malformed documents are rejected rather than
guessed at.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

from quiz_engine.constants.quiz_constants import (
    DEFAULT_QUESTION_POINTS,
    MAX_PASSING_SCORE,
    MIN_CHOICE_OPTIONS,
    MIN_PASSING_SCORE,
    VISIBILITY_PRIVATE,
)
from quiz_engine.core.models import (
    MultiChoiceQuestion,
    Question,
    Quiz,
    ShortTextQuestion,
    SingleChoiceQuestion,
    TrueFalseQuestion,
)

NonEmptyStr = Annotated[str, StringConstraints(min_length=1)]


class _DocumentModel(BaseModel):
    model_config = ConfigDict(
        strict=True,
        extra="ignore",
        alias_generator=to_camel,
    )


class _QuestionDocument(_DocumentModel):
    id: NonEmptyStr
    prompt: NonEmptyStr
    required: bool = True
    points: int = Field(default=DEFAULT_QUESTION_POINTS, ge=1)
    explanation: str | None = None

    def _common(self) -> dict[str, object]:
        return {
            "id": self.id,
            "prompt": self.prompt,
            "required": self.required,
            "points": self.points,
            "explanation": self.explanation,
        }


class SingleChoiceDocument(_QuestionDocument):
    type: Literal["multiple_choice_single"]
    options: list[NonEmptyStr] = Field(min_length=MIN_CHOICE_OPTIONS)
    correct_answer: NonEmptyStr

    def to_question(self) -> SingleChoiceQuestion:
        return SingleChoiceQuestion(
            options=list(self.options),
            correct_answer=self.correct_answer,
            **self._common(),
        )


class MultiChoiceDocument(_QuestionDocument):
    type: Literal["multiple_choice_multi"]
    options: list[NonEmptyStr] = Field(min_length=MIN_CHOICE_OPTIONS)
    correct_answers: list[NonEmptyStr] = Field(min_length=1)

    def to_question(self) -> MultiChoiceQuestion:
        return MultiChoiceQuestion(
            options=list(self.options),
            correct_answers=list(self.correct_answers),
            **self._common(),
        )


class TrueFalseDocument(_QuestionDocument):
    type: Literal["true_false"]
    correct_answer: bool

    def to_question(self) -> TrueFalseQuestion:
        return TrueFalseQuestion(correct_answer=self.correct_answer, **self._common())


class ShortTextDocument(_QuestionDocument):
    type: Literal["short_text"]
    accepted_answers: list[NonEmptyStr] = Field(min_length=1)

    def to_question(self) -> ShortTextQuestion:
        return ShortTextQuestion(accepted_answers=list(self.accepted_answers), **self._common())


QuestionDocument = Annotated[
    Union[SingleChoiceDocument, MultiChoiceDocument, TrueFalseDocument, ShortTextDocument],
    Field(discriminator="type"),
]


class QuizDocument(_DocumentModel):
    """Top-level quiz document."""

    id: NonEmptyStr
    title: NonEmptyStr
    description: str | None = None
    time_limit_seconds: int | None = Field(default=None, gt=0)
    passing_score: float | None = Field(default=None, ge=MIN_PASSING_SCORE, le=MAX_PASSING_SCORE)
    shuffle_questions: bool = False
    shuffle_options: bool = False
    show_question_list: bool = False
    allow_skip: bool = True
    enforce_required_before_submit: bool = True
    visibility: Literal["private", "unlisted", "public"] = VISIBILITY_PRIVATE
    questions: list[QuestionDocument] = Field(min_length=1)

    def to_quiz(self) -> Quiz:
        questions: list[Question] = [document.to_question() for document in self.questions]
        return Quiz(
            id=self.id,
            title=self.title,
            description=self.description,
            time_limit_seconds=self.time_limit_seconds,
            passing_score=self.passing_score,
            shuffle_questions=self.shuffle_questions,
            shuffle_options=self.shuffle_options,
            show_question_list=self.show_question_list,
            allow_skip=self.allow_skip,
            enforce_required_before_submit=self.enforce_required_before_submit,
            visibility=self.visibility,
            questions=questions,
        )
