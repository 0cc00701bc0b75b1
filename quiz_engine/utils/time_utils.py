"""Clock helpers so services can be driven by a fake clock in tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def elapsed_seconds(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds()
