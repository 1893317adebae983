from __future__ import annotations

import sys
from datetime import date

from pydantic import BaseModel, Field, model_validator


NO_LOG_SENTINEL = sys.maxsize


class Streak(BaseModel):
    """Day-level streak counter for one user."""

    uid: str
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_log_date: date | None = None
    streak_start_date: date | None = None
    total_logs: int = Field(default=0, ge=0)

    model_config = dict(from_attributes=True)

    @model_validator(mode="after")
    def _longest_covers_current(self) -> "Streak":
        if self.longest_streak < self.current_streak:
            raise ValueError("longest_streak must be >= current_streak")
        return self

    def days_since_last_log(self, today: date) -> int:
        if self.last_log_date is None:
            return NO_LOG_SENTINEL
        return (today - self.last_log_date).days

    def is_active(self, today: date) -> bool:
        return self.days_since_last_log(today) <= 1

    @property
    def status_message(self) -> str:
        n = self.current_streak
        if n == 0:
            return "Start your streak today!"
        if n == 1:
            return "1 day logged. Keep it up!"
        if n < 7:
            return f"{n} days in a row!"
        return f"{n} day streak! 🔥"


class Badge(BaseModel):
    id: str
    title: str
    description: str
    icon: str
