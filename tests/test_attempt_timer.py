from __future__ import annotations

from threading import Event

import pytest

from quiz_engine.core.services.attempt_timer import AttemptTimer, format_countdown


class FakeMonotonic:
    def __init__(self) -> None:
        self.value = 100.0

    def __call__(self) -> float:
        return self.value


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(0, "0:00"), (5, "0:05"), (60, "1:00"), (125, "2:05"), (-3, "0:00")],
)
def test_format_countdown(seconds, expected):
    assert format_countdown(seconds) == expected


def test_rejects_non_positive_duration():
    with pytest.raises(ValueError):
        AttemptTimer("a1", 0, lambda attempt_id: None)


def test_remaining_seconds_counts_down_and_rounds_up():
    monotonic = FakeMonotonic()
    timer = AttemptTimer("a1", 90, lambda attempt_id: None, monotonic=monotonic)
    assert timer.remaining_seconds() == 90

    timer.start()
    try:
        monotonic.value += 29.5
        assert timer.remaining_seconds() == 61
        assert timer.format_remaining() == "1:01"
        assert timer.is_running()
    finally:
        timer.cancel()

    assert timer.remaining_seconds() == 0
    assert not timer.is_running()


def test_start_twice_is_an_error():
    timer = AttemptTimer("a1", 60, lambda attempt_id: None)
    timer.start()
    try:
        with pytest.raises(RuntimeError):
            timer.start()
    finally:
        timer.cancel()


def test_expire_now_fires_once():
    fired: list[str] = []
    timer = AttemptTimer("a1", 60, fired.append)
    timer.start()

    timer.expire_now()
    timer.expire_now()

    assert fired == ["a1"]
    assert timer.remaining_seconds() == 0


def test_cancelled_timer_never_fires():
    fired: list[str] = []
    timer = AttemptTimer("a1", 60, fired.append)
    timer.start()
    timer.cancel()

    timer.expire_now()

    assert fired == []


def test_short_timer_expires_on_its_own():
    expired = Event()
    timer = AttemptTimer("a1", 0.05, lambda attempt_id: expired.set())
    timer.start()

    assert expired.wait(timeout=5)
    assert not timer.is_running()
