"""Cancellable countdown that force-submits an attempt when time runs out."""

from __future__ import annotations

import logging
import math
from threading import Lock, Timer
import time
from typing import Callable

logger = logging.getLogger(__name__)


def format_countdown(seconds: int) -> str:
    """Render whole seconds as ``m:ss``."""
    minutes, remainder = divmod(max(seconds, 0), 60)
    return f"{minutes}:{remainder:02d}"


class AttemptTimer:
    """Runs ``on_expire(attempt_id)`` once after ``duration_seconds`` unless cancelled.

    Expiry and the explicit submit action end up in the same submit call; the
    timer only decides when the forced variant is triggered.
    """

    def __init__(
        self,
        attempt_id: str,
        duration_seconds: float,
        on_expire: Callable[[str], None],
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        if duration_seconds <= 0:
            raise ValueError("Timer duration must be positive.")
        self._attempt_id = attempt_id
        self._duration = float(duration_seconds)
        self._on_expire = on_expire
        self._monotonic = monotonic
        self._lock = Lock()
        self._timer: Timer | None = None
        self._deadline: float | None = None
        self._fired = False
        self._cancelled = False

    @property
    def attempt_id(self) -> str:
        return self._attempt_id

    def start(self) -> None:
        with self._lock:
            if self._timer is not None:
                raise RuntimeError("Timer already started.")
            self._deadline = self._monotonic() + self._duration
            self._timer = Timer(self._duration, self._expire)
            self._timer.name = f"AttemptTimer-{self._attempt_id}"
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            if self._timer is not None:
                self._timer.cancel()

    def is_running(self) -> bool:
        with self._lock:
            return self._timer is not None and not self._cancelled and not self._fired

    def remaining_seconds(self) -> int:
        """Whole seconds left, rounded up; zero once expired or cancelled."""
        with self._lock:
            if self._deadline is None:
                return math.ceil(self._duration)
            if self._cancelled or self._fired:
                return 0
            return max(math.ceil(self._deadline - self._monotonic()), 0)

    def format_remaining(self) -> str:
        return format_countdown(self.remaining_seconds())

    def expire_now(self) -> None:
        """Fire immediately, as if the countdown had reached zero."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
        self._expire()

    def _expire(self) -> None:
        with self._lock:
            if self._fired or self._cancelled:
                return
            self._fired = True
        logger.info("Time limit reached for attempt %s", self._attempt_id)
        self._on_expire(self._attempt_id)
