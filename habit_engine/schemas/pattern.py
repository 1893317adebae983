from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class PatternType(str, Enum):
    CONSISTENCY = "CONSISTENCY"
    TIMING = "TIMING"
    WEEKDAY_WEEKEND = "WEEKDAY_WEEKEND"
    SEQUENTIAL = "SEQUENTIAL"
    ENVIRONMENTAL = "ENVIRONMENTAL"
    STRESS_CORRELATED = "STRESS_CORRELATED"


class TimeRange(str, Enum):
    WEEK = "WEEK"
    MONTH = "MONTH"
    QUARTER = "QUARTER"
    YEAR = "YEAR"

    @property
    def days(self) -> int:
        return {"WEEK": 7, "MONTH": 30, "QUARTER": 90, "YEAR": 365}[self.value]


class PatternDataPoint(BaseModel):
    date: date
    value: float
    context: str = ""


class HabitPattern(BaseModel):
    """Threshold-gated observation about one habit's history. Always recomputable."""

    habit_id: str
    pattern_type: PatternType
    strength: float = Field(ge=0.0, le=1.0)
    description: str
    insight: str
    actionable_advice: str
    data_points: list[PatternDataPoint] = Field(default_factory=list)
    detected_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
