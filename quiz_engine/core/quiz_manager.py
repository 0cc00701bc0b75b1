"""Business logic shared between the API server and command-line entry point."""

from __future__ import annotations

import logging
from pathlib import Path
import random
from threading import Lock
from typing import Any, Callable

from quiz_engine.core.errors import NotFoundError, StateError, ValidationError
from quiz_engine.core.models import AnswerMap, Attempt, AttemptSummary, Quiz, ScoreResult
from quiz_engine.core.normalizer import normalize_quiz
from quiz_engine.core.quiz_importer import load_quiz_from_file
from quiz_engine.core.scoring import score_quiz
from quiz_engine.core.services.attempt_lifecycle import AttemptLifecycle
from quiz_engine.core.services.attempt_store import AttemptStore
from quiz_engine.core.services.attempt_timer import AttemptTimer
from quiz_engine.core.services.quiz_repository import QuizRepository, StoredQuiz
from quiz_engine.core.validator import ValidationResult, validate_quiz
from quiz_engine.utils.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)

TimerFactory = Callable[[str, float, Callable[[str], None]], AttemptTimer]


class QuizManager:
    """Facade for quiz services: repository, attempt lifecycle and attempt timers."""

    def __init__(
        self,
        clock: Clock = utc_now,
        timer_factory: TimerFactory = AttemptTimer,
        rng: random.Random | None = None,
    ) -> None:
        self._timers_lock = Lock()
        self._timers: dict[str, AttemptTimer] = {}
        self._timer_factory = timer_factory
        self._rng = rng

        # Services
        self._repository = QuizRepository(clock=clock)
        self._attempts = AttemptStore()
        self._lifecycle = AttemptLifecycle(self._repository, self._attempts, clock=clock)

    # --- Quiz authoring ---

    def validate_document(self, document: Any) -> ValidationResult:
        return validate_quiz(document)

    def create_quiz(self, owner_id: str, document: Any) -> tuple[StoredQuiz, list[str]]:
        result = self._require_valid(document)
        return self._repository.create(owner_id, result.data), result.warnings

    def import_quiz_file(self, owner_id: str, file_path: Path, publish: bool = False) -> StoredQuiz:
        imported = load_quiz_from_file(file_path)
        for warning in imported.warnings:
            logger.warning("%s: %s", file_path.name, warning)
        stored = self._repository.create(owner_id, imported.quiz)
        if publish:
            stored = self._repository.publish(stored.quiz.id, owner_id)
        return stored

    def update_quiz(self, quiz_id: str, owner_id: str, document: Any) -> tuple[StoredQuiz, list[str]]:
        result = self._require_valid(document)
        return self._repository.update(quiz_id, owner_id, result.data), result.warnings

    def publish_quiz(self, quiz_id: str, owner_id: str) -> StoredQuiz:
        return self._repository.publish(quiz_id, owner_id)

    def delete_quiz(self, quiz_id: str, owner_id: str) -> None:
        """Delete a quiz together with its attempts and their pending timers."""
        self._repository.delete(quiz_id, owner_id)
        removed = self._attempts.remove_for_quiz(quiz_id)
        for attempt_id in removed:
            self._discard_timer(attempt_id)
        if removed:
            logger.info("Removed %d attempt(s) of deleted quiz %s", len(removed), quiz_id)

    def list_quizzes(self, owner_id: str) -> list[StoredQuiz]:
        return self._repository.list_for_owner(owner_id)

    def get_quiz(self, quiz_id: str, viewer_id: str) -> StoredQuiz:
        return self._repository.get_for_viewer(quiz_id, viewer_id)

    def get_presentation_quiz(self, quiz_id: str, viewer_id: str) -> Quiz:
        """Shuffled copy for display; the stored quiz keeps its order."""
        stored = self._repository.get_for_viewer(quiz_id, viewer_id)
        return normalize_quiz(stored.quiz, self._rng)

    def preview_score(self, quiz_id: str, viewer_id: str, answers: AnswerMap) -> ScoreResult:
        stored = self._repository.get_for_viewer(quiz_id, viewer_id)
        return score_quiz(stored.quiz, answers)

    # --- Attempts ---

    def start_attempt(self, quiz_id: str, user_id: str) -> str:
        attempt_id = self._lifecycle.start(quiz_id, user_id)
        time_limit = self._repository.get(quiz_id).quiz.time_limit_seconds
        if time_limit:
            timer = self._timer_factory(attempt_id, time_limit, self._expire_attempt)
            with self._timers_lock:
                self._timers[attempt_id] = timer
            timer.start()
        return attempt_id

    def record_answers(self, attempt_id: str, user_id: str, answers: AnswerMap) -> None:
        self._lifecycle.record_answers(attempt_id, answers, user_id=user_id)

    def submit_attempt(
        self,
        attempt_id: str,
        user_id: str,
        answers: AnswerMap | None = None,
        forced: bool = False,
    ) -> ScoreResult:
        result = self._lifecycle.submit(attempt_id, answers, forced=forced, user_id=user_id)
        self._discard_timer(attempt_id)
        return result

    def get_attempt(self, attempt_id: str, viewer_id: str) -> Attempt:
        return self._lifecycle.get_attempt(attempt_id, viewer_id)

    def list_attempts(self, user_id: str) -> list[Attempt]:
        return self._lifecycle.list_attempts_for_user(user_id)

    def get_quiz_attempts(self, quiz_id: str, viewer_id: str) -> tuple[list[Attempt], AttemptSummary]:
        return self._lifecycle.summarize_quiz(quiz_id, viewer_id)

    def get_remaining_seconds(self, attempt_id: str) -> int | None:
        with self._timers_lock:
            timer = self._timers.get(attempt_id)
        return timer.remaining_seconds() if timer is not None else None

    def shutdown(self) -> None:
        """Cancel every pending attempt timer."""
        with self._timers_lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()

    @staticmethod
    def _require_valid(document: Any) -> ValidationResult:
        result = validate_quiz(document)
        if result.data is None:
            raise ValidationError("Validation failed.", result.error_details)
        return result

    # --- Timer callbacks ---

    def _expire_attempt(self, attempt_id: str) -> None:
        try:
            self._lifecycle.submit(attempt_id, forced=True)
        except StateError:
            # The participant submitted just before the deadline.
            logger.info("Attempt %s was already submitted when its timer expired", attempt_id)
        except NotFoundError:
            # The quiz and its attempts were deleted while the timer was pending.
            logger.info("Attempt %s no longer exists when its timer expired", attempt_id)
        finally:
            self._discard_timer(attempt_id)

    def _discard_timer(self, attempt_id: str) -> None:
        with self._timers_lock:
            timer = self._timers.pop(attempt_id, None)
        if timer is not None:
            timer.cancel()
