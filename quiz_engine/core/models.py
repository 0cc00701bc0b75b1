"""Domain models for the quiz engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar, Mapping, Union

from quiz_engine.constants.quiz_constants import (
    DEFAULT_QUESTION_POINTS,
    QUESTION_TYPE_MULTI,
    QUESTION_TYPE_SHORT_TEXT,
    QUESTION_TYPE_SINGLE,
    QUESTION_TYPE_TRUE_FALSE,
    VISIBILITY_PRIVATE,
)

AnswerValue = Union[str, list[str], bool, None]
AnswerMap = Mapping[str, AnswerValue]


@dataclass(slots=True, kw_only=True)
class QuestionBase:
    """Fields shared by every question variant."""

    id: str
    prompt: str
    required: bool = True
    points: int = DEFAULT_QUESTION_POINTS
    explanation: str | None = None


@dataclass(slots=True, kw_only=True)
class SingleChoiceQuestion(QuestionBase):
    """Pick exactly one option; graded by exact text match."""

    type: ClassVar[str] = QUESTION_TYPE_SINGLE

    options: list[str]
    correct_answer: str


@dataclass(slots=True, kw_only=True)
class MultiChoiceQuestion(QuestionBase):
    """Pick every correct option; graded as a set."""

    type: ClassVar[str] = QUESTION_TYPE_MULTI

    options: list[str]
    correct_answers: list[str]


@dataclass(slots=True, kw_only=True)
class TrueFalseQuestion(QuestionBase):
    type: ClassVar[str] = QUESTION_TYPE_TRUE_FALSE

    correct_answer: bool


@dataclass(slots=True, kw_only=True)
class ShortTextQuestion(QuestionBase):
    """Free text compared case- and whitespace-insensitively."""

    type: ClassVar[str] = QUESTION_TYPE_SHORT_TEXT

    accepted_answers: list[str]


Question = Union[SingleChoiceQuestion, MultiChoiceQuestion, TrueFalseQuestion, ShortTextQuestion]
ChoiceQuestion = Union[SingleChoiceQuestion, MultiChoiceQuestion]
CHOICE_QUESTION_CLASSES: tuple[type, ...] = (SingleChoiceQuestion, MultiChoiceQuestion)


@dataclass(slots=True, kw_only=True)
class Quiz:
    """An authored quiz with its settings and ordered questions."""

    id: str
    title: str
    questions: list[Question]
    description: str | None = None
    time_limit_seconds: int | None = None
    passing_score: float | None = None
    shuffle_questions: bool = False
    shuffle_options: bool = False
    show_question_list: bool = False
    allow_skip: bool = True
    enforce_required_before_submit: bool = True
    visibility: str = VISIBILITY_PRIVATE

    def get_question(self, question_id: str) -> Question | None:
        return next((q for q in self.questions if q.id == question_id), None)


@dataclass(slots=True)
class QuestionScore:
    """Grading outcome of a single question."""

    question_id: str
    is_correct: bool
    score: int
    max_score: int
    answer: AnswerValue


@dataclass(slots=True)
class ScoreResult:
    total_score: int
    max_score: int
    percentage: int
    passed: bool
    per_question: list[QuestionScore]


class AttemptState(str, Enum):
    """Attempt states.

    ``NOT_STARTED`` names the state before an attempt exists; a stored attempt
    is created ``IN_PROGRESS`` and is never moved back.
    """

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


@dataclass(slots=True)
class RecordedAnswer:
    """An answer stored on an attempt; grading fields are set at submit."""

    value: AnswerValue
    is_correct: bool | None = None
    earned_points: int | None = None


@dataclass(slots=True)
class Attempt:
    """One participant's run through a quiz."""

    id: str
    quiz_id: str
    user_id: str
    started_at: datetime
    state: AttemptState = AttemptState.IN_PROGRESS
    submitted_at: datetime | None = None
    time_taken_seconds: int | None = None
    score: int | None = None
    percentage: int | None = None
    passed: bool | None = None
    forced: bool = False
    answers: dict[str, RecordedAnswer] = field(default_factory=dict)

    def answer_values(self) -> dict[str, AnswerValue]:
        return {question_id: entry.value for question_id, entry in self.answers.items()}


@dataclass(slots=True)
class AttemptSummary:
    """Aggregate statistics over the submitted attempts of one quiz."""

    attempts: int = 0
    average_score: int = 0
    median_score: int = 0
    pass_rate: int = 0
    average_time: int = 0
