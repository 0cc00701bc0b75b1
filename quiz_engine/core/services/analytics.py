"""Aggregate statistics over the submitted attempts of a quiz."""

from __future__ import annotations

from typing import Iterable, Sequence

from quiz_engine.core.models import Attempt, AttemptSummary
from quiz_engine.core.scoring import round_half_up


def median(values: Sequence[float]) -> float:
    """Median of ``values``; the mean of the two middle values for even counts."""
    if not values:
        return 0
    ordered = sorted(values)
    middle = len(ordered) // 2
    if len(ordered) % 2 == 1:
        return ordered[middle]
    return (ordered[middle - 1] + ordered[middle]) / 2


def summarize(attempts: Iterable[Attempt]) -> AttemptSummary:
    """Summarize terminal attempts. Unset scores and durations count as zero."""
    attempt_list = list(attempts)
    if not attempt_list:
        return AttemptSummary()

    count = len(attempt_list)
    scores = [attempt.score or 0 for attempt in attempt_list]
    times = [attempt.time_taken_seconds or 0 for attempt in attempt_list]
    pass_count = sum(1 for attempt in attempt_list if attempt.passed)

    return AttemptSummary(
        attempts=count,
        average_score=round_half_up(sum(scores) / count),
        median_score=round_half_up(median(scores)),
        pass_rate=round_half_up(pass_count / count * 100),
        average_time=round_half_up(sum(times) / count),
    )
