"""Time source for lazy expiry checks."""

from datetime import datetime, timedelta, timezone


class Clock:
    """Generic clock interface."""

    def now(self) -> datetime:
        """Current time as a timezone-aware UTC datetime."""
        raise NotImplementedError


class SystemClock(Clock):
    """Wall clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock(Clock):
    """Manually advanced clock for development and testing."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2024, 8, 19, 12, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def set(self, moment: datetime) -> None:
        self._now = moment

    def advance(self, seconds: float) -> datetime:
        self._now = self._now + timedelta(seconds=seconds)
        return self._now
