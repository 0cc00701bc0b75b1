"""State machine for quiz attempts: start, record answers, submit.

Every attempt moves ``IN_PROGRESS -> SUBMITTED`` exactly once. Answer
recording and submission take the attempt's own lock, so two concurrent
submits on one attempt cannot both grade it: the second one finds the
attempt already submitted and fails with :class:`StateError`.
"""

from __future__ import annotations

from copy import deepcopy
import logging
from typing import Callable
from uuid import uuid4

from quiz_engine.core.errors import (
    AccessError,
    ErrorDetail,
    NotFoundError,
    PreconditionError,
    StateError,
    ValidationError,
)
from quiz_engine.core.models import (
    AnswerMap,
    AnswerValue,
    Attempt,
    AttemptState,
    AttemptSummary,
    RecordedAnswer,
    ScoreResult,
)
from quiz_engine.core.navigation import missing_required_answers
from quiz_engine.core.scoring import round_half_up, score_attempt
from quiz_engine.core.services.analytics import summarize
from quiz_engine.core.services.attempt_store import AttemptStore
from quiz_engine.core.services.quiz_repository import QuizRepository
from quiz_engine.utils.time_utils import Clock, elapsed_seconds, utc_now

logger = logging.getLogger(__name__)


def _new_attempt_id() -> str:
    return uuid4().hex


def check_answer_value(question_id: str, value: object) -> AnswerValue:
    """Reject answer payloads that are not a string, list of strings, bool or None."""
    if value is None or isinstance(value, (str, bool)):
        return value
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise ValidationError(
        "Validation failed.",
        [ErrorDetail(field=f"answers.{question_id}", message="Answer must be a string, a list of strings, a boolean or null.")],
    )


class AttemptLifecycle:
    """Owns attempt transitions and the single grading event of each attempt."""

    def __init__(
        self,
        quizzes: QuizRepository,
        attempts: AttemptStore | None = None,
        clock: Clock = utc_now,
        id_factory: Callable[[], str] = _new_attempt_id,
    ) -> None:
        self._quizzes = quizzes
        self._attempts = attempts if attempts is not None else AttemptStore()
        self._clock = clock
        self._id_factory = id_factory

    def start(self, quiz_id: str, user_id: str) -> str:
        """Create an in-progress attempt and return its id."""
        stored = self._quizzes.get(quiz_id)
        if not stored.is_published:
            raise AccessError("Quiz is not published.")
        if not stored.is_visible_to(user_id):
            raise AccessError("Quiz is private.")

        attempt = Attempt(
            id=self._id_factory(),
            quiz_id=quiz_id,
            user_id=user_id,
            started_at=self._clock(),
            state=AttemptState.IN_PROGRESS,
        )
        self._attempts.add(attempt)
        logger.info("Attempt %s started on quiz %s by %s", attempt.id, quiz_id, user_id)
        return attempt.id

    def record_answer(
        self,
        attempt_id: str,
        question_id: str,
        value: AnswerValue,
        user_id: str | None = None,
    ) -> None:
        """Save one answer; a later answer for the same question replaces it."""
        self.record_answers(attempt_id, {question_id: value}, user_id=user_id)

    def record_answers(self, attempt_id: str, answers: AnswerMap, user_id: str | None = None) -> None:
        with self._attempts.lock_for(attempt_id):
            attempt = self._get_owned(attempt_id, user_id)
            self._require_in_progress(attempt, "record answers for")
            quiz = self._quizzes.get(attempt.quiz_id).quiz
            checked: dict[str, AnswerValue] = {}
            for question_id, value in answers.items():
                if quiz.get_question(question_id) is None:
                    raise NotFoundError(f"Question {question_id} not found.")
                checked[question_id] = check_answer_value(question_id, value)
            for question_id, value in checked.items():
                attempt.answers[question_id] = RecordedAnswer(value=value)

    def submit(
        self,
        attempt_id: str,
        answers: AnswerMap | None = None,
        forced: bool = False,
        user_id: str | None = None,
    ) -> ScoreResult:
        """Grade the attempt and make it terminal.

        ``answers`` are merged over previously recorded ones. A voluntary
        submission refuses to grade while required questions are unanswered
        (when the quiz enforces it); a forced, time-driven submission grades
        whatever is there.
        """
        with self._attempts.lock_for(attempt_id):
            attempt = self._get_owned(attempt_id, user_id)
            self._require_in_progress(attempt, "submit")
            quiz = self._quizzes.get(attempt.quiz_id).quiz

            merged: dict[str, AnswerValue] = attempt.answer_values()
            for question_id, value in (answers or {}).items():
                merged[question_id] = check_answer_value(question_id, value)

            if not forced and quiz.enforce_required_before_submit:
                missing = missing_required_answers(quiz.questions, merged)
                if missing:
                    logger.warning("Attempt %s submit refused: %d required answer(s) missing", attempt_id, len(missing))
                    raise PreconditionError(
                        "Required questions are missing answers.",
                        [ErrorDetail(field=f"answers.{question_id}", message="Answer required questions before submitting.") for question_id in missing],
                        missing_question_ids=missing,
                    )

            now = self._clock()
            elapsed = elapsed_seconds(attempt.started_at, now)
            if forced:
                self._log_forced_submission(attempt_id, elapsed, quiz.time_limit_seconds)

            result = score_attempt(quiz.questions, merged, quiz.passing_score)

            attempt.answers = {
                item.question_id: RecordedAnswer(
                    value=item.answer,
                    is_correct=item.is_correct,
                    earned_points=item.score,
                )
                for item in result.per_question
            }
            attempt.time_taken_seconds = round_half_up(max(elapsed, 0.0))
            attempt.score = result.total_score
            attempt.percentage = result.percentage
            attempt.passed = result.passed
            attempt.forced = forced
            attempt.submitted_at = now
            attempt.state = AttemptState.SUBMITTED

        logger.info(
            "Attempt %s submitted%s: %d/%d (%d%%)",
            attempt_id,
            " (forced)" if forced else "",
            result.total_score,
            result.max_score,
            result.percentage,
        )
        return result

    def get_attempt(self, attempt_id: str, viewer_id: str) -> Attempt:
        """Snapshot of an attempt for its participant or the quiz owner."""
        with self._attempts.lock_for(attempt_id):
            attempt = self._attempts.get(attempt_id)
            if attempt.user_id != viewer_id and not self._is_quiz_owner(attempt.quiz_id, viewer_id):
                raise AccessError("Not authorized to view this attempt.")
            return deepcopy(attempt)

    def list_attempts_for_user(self, user_id: str) -> list[Attempt]:
        attempts = [self._snapshot(attempt.id) for attempt in self._attempts.list_for_user(user_id)]
        return sorted(attempts, key=lambda attempt: attempt.started_at, reverse=True)

    def summarize_quiz(self, quiz_id: str, viewer_id: str) -> tuple[list[Attempt], AttemptSummary]:
        """Submitted attempts of a quiz and their summary; quiz owner only."""
        stored = self._quizzes.get(quiz_id)
        if stored.owner_id != viewer_id:
            raise AccessError("Not authorized to view attempts.")
        submitted = [
            self._snapshot(attempt.id)
            for attempt in self._attempts.list_for_quiz(quiz_id, AttemptState.SUBMITTED)
        ]
        submitted.sort(key=lambda attempt: attempt.submitted_at, reverse=True)
        return submitted, summarize(submitted)

    def _snapshot(self, attempt_id: str) -> Attempt:
        with self._attempts.lock_for(attempt_id):
            return deepcopy(self._attempts.get(attempt_id))

    def _get_owned(self, attempt_id: str, user_id: str | None) -> Attempt:
        attempt = self._attempts.get(attempt_id)
        if user_id is not None and attempt.user_id != user_id:
            raise NotFoundError("Attempt not found.")
        return attempt

    def _is_quiz_owner(self, quiz_id: str, viewer_id: str) -> bool:
        try:
            return self._quizzes.get(quiz_id).owner_id == viewer_id
        except NotFoundError:
            return False

    @staticmethod
    def _require_in_progress(attempt: Attempt, action: str) -> None:
        if attempt.state is not AttemptState.IN_PROGRESS:
            logger.warning("Refused to %s attempt %s in state %s", action, attempt.id, attempt.state.value)
            raise StateError(f"Cannot {action} an attempt that is {attempt.state.value}.")

    @staticmethod
    def _log_forced_submission(attempt_id: str, elapsed: float, time_limit_seconds: int | None) -> None:
        # Forced submissions are honored as-is; early or limitless ones are only flagged.
        if time_limit_seconds is None:
            logger.warning("Attempt %s force-submitted on a quiz without a time limit", attempt_id)
        elif elapsed < time_limit_seconds:
            logger.warning(
                "Attempt %s force-submitted after %.1fs, before its %ds limit",
                attempt_id,
                elapsed,
                time_limit_seconds,
            )
        else:
            logger.info("Attempt %s reached its %ds time limit", attempt_id, time_limit_seconds)
