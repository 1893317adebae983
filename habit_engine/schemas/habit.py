from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field


class HabitCategory(str, Enum):
    health = "health"
    fitness = "fitness"
    nutrition = "nutrition"
    sleep = "sleep"
    mental_health = "mental_health"
    social = "social"
    learning = "learning"
    productivity = "productivity"
    other = "other"


class HabitFrequency(str, Enum):
    daily = "daily"
    weekly = "weekly"
    custom = "custom"


class Habit(BaseModel):
    """Habit definition owned by the user; the engine only reads it."""

    id: str
    title: str
    description: str | None = None
    category: HabitCategory = HabitCategory.other
    frequency: HabitFrequency = HabitFrequency.daily
    target_value: float = 1.0
    unit: str = "times"
    is_active: bool = True
    created_at: datetime | None = None

    model_config = dict(from_attributes=True)


class HabitCompletion(BaseModel):
    """Single append-only completion row."""

    habit_id: str
    completed_at: datetime
    value: float = 1.0
    notes: str | None = None

    model_config = dict(from_attributes=True)


class HabitCompletionSummary(BaseModel):
    """Per-habit totals over whatever completions were passed in."""

    habit_id: str
    total_completions: int = Field(ge=0)
    distinct_days: int = Field(ge=0)
    last_completed_on: date | None = None
