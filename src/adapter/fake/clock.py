"""Controllable clock for testing."""

from datetime import datetime, timedelta, timezone


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        """Move time forward by timedelta(**kwargs)."""
        self.current += timedelta(**kwargs)
        return self.current
