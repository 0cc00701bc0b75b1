"""Service for storing authored quizzes and deciding who may see them."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
import logging
from threading import Lock

from quiz_engine.constants.quiz_constants import STATUS_DRAFT, STATUS_PUBLISHED, VISIBILITY_PRIVATE
from quiz_engine.core.errors import AccessError, NotFoundError, StateError
from quiz_engine.core.models import Quiz
from quiz_engine.utils.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StoredQuiz:
    """A quiz together with its ownership and publication state."""

    quiz: Quiz
    owner_id: str
    status: str
    created_at: datetime
    updated_at: datetime

    @property
    def is_published(self) -> bool:
        return self.status == STATUS_PUBLISHED

    def is_visible_to(self, viewer_id: str) -> bool:
        """Owners always see their quizzes; others only published, non-private ones."""
        if viewer_id == self.owner_id:
            return True
        return self.is_published and self.quiz.visibility != VISIBILITY_PRIVATE


class QuizRepository:
    """Holds the authoritative copy of every quiz. Never stores shuffled copies."""

    def __init__(self, clock: Clock = utc_now) -> None:
        self._lock = Lock()
        self._clock = clock
        self._quizzes: dict[str, StoredQuiz] = {}

    def create(self, owner_id: str, quiz: Quiz) -> StoredQuiz:
        """Store a new draft quiz under ``quiz.id``."""
        with self._lock:
            if quiz.id in self._quizzes:
                raise StateError(f"Quiz id {quiz.id} already exists.")
            now = self._clock()
            stored = StoredQuiz(
                quiz=quiz,
                owner_id=owner_id,
                status=STATUS_DRAFT,
                created_at=now,
                updated_at=now,
            )
            self._quizzes[quiz.id] = stored
        logger.info("Quiz %s created by %s", quiz.id, owner_id)
        return stored

    def update(self, quiz_id: str, owner_id: str, quiz: Quiz) -> StoredQuiz:
        """Replace settings and questions; the stored id and status are preserved."""
        with self._lock:
            current = self._get_owned(quiz_id, owner_id)
            updated = replace(current, quiz=replace(quiz, id=quiz_id), updated_at=self._clock())
            self._quizzes[quiz_id] = updated
        logger.info("Quiz %s updated", quiz_id)
        return updated

    def publish(self, quiz_id: str, owner_id: str) -> StoredQuiz:
        with self._lock:
            current = self._get_owned(quiz_id, owner_id)
            published = replace(current, status=STATUS_PUBLISHED, updated_at=self._clock())
            self._quizzes[quiz_id] = published
        logger.info("Quiz %s published", quiz_id)
        return published

    def delete(self, quiz_id: str, owner_id: str) -> None:
        with self._lock:
            self._get_owned(quiz_id, owner_id)
            del self._quizzes[quiz_id]
        logger.info("Quiz %s deleted", quiz_id)

    def get(self, quiz_id: str) -> StoredQuiz:
        with self._lock:
            stored = self._quizzes.get(quiz_id)
        if stored is None:
            raise NotFoundError("Quiz not found.")
        return stored

    def get_for_viewer(self, quiz_id: str, viewer_id: str) -> StoredQuiz:
        stored = self.get(quiz_id)
        if viewer_id == stored.owner_id:
            return stored
        if not stored.is_published:
            raise AccessError("Quiz is not published.")
        if stored.quiz.visibility == VISIBILITY_PRIVATE:
            raise AccessError("Quiz is private.")
        return stored

    def get_owned(self, quiz_id: str, owner_id: str) -> StoredQuiz:
        with self._lock:
            return self._get_owned(quiz_id, owner_id)

    def list_for_owner(self, owner_id: str) -> list[StoredQuiz]:
        """Owner's quizzes, most recently updated first."""
        with self._lock:
            owned = [stored for stored in self._quizzes.values() if stored.owner_id == owner_id]
        return sorted(owned, key=lambda stored: stored.updated_at, reverse=True)

    def _get_owned(self, quiz_id: str, owner_id: str) -> StoredQuiz:
        stored = self._quizzes.get(quiz_id)
        if stored is None or stored.owner_id != owner_id:
            raise NotFoundError("Quiz not found.")
        return stored
