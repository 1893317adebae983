from __future__ import annotations


class HabitEngineError(Exception):
    """Base error for the habit engine."""


class InvalidTimezoneError(HabitEngineError):
    """Raised when a caller supplies a time zone pytz does not know."""

    def __init__(self, tz_name: str):
        super().__init__(f"Unknown time zone: {tz_name}")
        self.tz_name = tz_name


class ReminderRefreshError(HabitEngineError):
    """Reading the day's snapshot failed; the previous queue is kept."""
