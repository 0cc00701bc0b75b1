"""In-memory attempt storage with one lock per attempt."""

from __future__ import annotations

from threading import Lock

from quiz_engine.core.errors import NotFoundError
from quiz_engine.core.models import Attempt, AttemptState


class AttemptStore:
    """Keeps attempts and the lock that serializes transitions on each of them.

    The index lock only protects the dictionaries. Transitions on an attempt
    take that attempt's own lock, so unrelated attempts never wait on each
    other.
    """

    def __init__(self) -> None:
        self._index_lock = Lock()
        self._attempts: dict[str, Attempt] = {}
        self._attempt_locks: dict[str, Lock] = {}

    def add(self, attempt: Attempt) -> None:
        with self._index_lock:
            if attempt.id in self._attempts:
                raise ValueError(f"Attempt {attempt.id} is already stored.")
            self._attempts[attempt.id] = attempt
            self._attempt_locks[attempt.id] = Lock()

    def get(self, attempt_id: str) -> Attempt:
        with self._index_lock:
            attempt = self._attempts.get(attempt_id)
        if attempt is None:
            raise NotFoundError("Attempt not found.")
        return attempt

    def lock_for(self, attempt_id: str) -> Lock:
        with self._index_lock:
            lock = self._attempt_locks.get(attempt_id)
        if lock is None:
            raise NotFoundError("Attempt not found.")
        return lock

    def list_for_quiz(self, quiz_id: str, state: AttemptState | None = None) -> list[Attempt]:
        with self._index_lock:
            attempts = list(self._attempts.values())
        return [
            attempt
            for attempt in attempts
            if attempt.quiz_id == quiz_id and (state is None or attempt.state is state)
        ]

    def list_for_user(self, user_id: str) -> list[Attempt]:
        with self._index_lock:
            return [attempt for attempt in self._attempts.values() if attempt.user_id == user_id]

    def remove_for_quiz(self, quiz_id: str) -> list[str]:
        """Drop every attempt of ``quiz_id`` and return the removed ids."""
        with self._index_lock:
            removed = [attempt_id for attempt_id, attempt in self._attempts.items() if attempt.quiz_id == quiz_id]
            for attempt_id in removed:
                del self._attempts[attempt_id]
                del self._attempt_locks[attempt_id]
        return removed

    def count(self) -> int:
        with self._index_lock:
            return len(self._attempts)
