"""
Time provider abstraction for deterministic voting windows

Every mutating operation reads "now" exactly once from the provider and
uses that snapshot for all of its deadline checks and event timestamps.
Tests swap in a controllable clock to land exactly on a proposal's end time.
"""

from datetime import datetime, timedelta, timezone
from typing import Protocol


class TimeProvider(Protocol):
    """Protocol for time providers - allows deterministic testing"""

    def now(self) -> datetime:
        """Return current UTC datetime"""
        ...


class RealTimeProvider:
    """Production time provider using system clock"""

    def now(self) -> datetime:
        """Return current UTC time from system clock"""
        return datetime.now(timezone.utc)


class TestTimeProvider:
    """
    Controllable time provider for deterministic tests

    Time only moves when the test moves it, so a proposal's deadline can be
    hit to the microsecond.
    """

    def __init__(self, initial_time: datetime | None = None) -> None:
        """
        Initialize with optional fixed time

        Args:
            initial_time: Starting time (defaults to Unix epoch)
        """
        self._current_time = initial_time or datetime(1970, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        """Return current test time"""
        return self._current_time

    def set_time(self, dt: datetime) -> None:
        """Set current time to specific value"""
        self._current_time = dt

    def advance_seconds(self, seconds: int | float) -> None:
        """Advance time by specified seconds"""
        self._current_time += timedelta(seconds=seconds)

    def advance(self, delta: timedelta) -> None:
        """Advance time by an arbitrary timedelta"""
        self._current_time += delta
