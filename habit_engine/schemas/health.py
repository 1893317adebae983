from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from habit_engine.utils.timezone_utils import ensure_aware


class _HealthLogBase(BaseModel):
    entry_id: str
    timestamp: datetime

    model_config = dict(from_attributes=True)


class MealLog(_HealthLogBase):
    type: Literal["meal"] = "meal"
    food_name: str = ""
    calories: int = 0


class WaterLog(_HealthLogBase):
    type: Literal["water"] = "water"
    ml: int = Field(ge=0)


class WeightLog(_HealthLogBase):
    type: Literal["weight"] = "weight"
    weight: float
    unit: str = "kg"


class SleepLog(_HealthLogBase):
    """Night of sleep; quality is the 1..5 self rating."""

    type: Literal["sleep"] = "sleep"
    start_time: datetime
    end_time: datetime
    quality: int = Field(default=3, ge=1, le=5)

    @property
    def duration_hours(self) -> float:
        return (ensure_aware(self.end_time) - ensure_aware(self.start_time)).total_seconds() / 3600.0


class WorkoutLog(_HealthLogBase):
    type: Literal["workout"] = "workout"
    workout_type: str = "general"
    duration_min: int = 0
    calories_burned: int = 0


class SupplementLog(_HealthLogBase):
    type: Literal["supplement"] = "supplement"
    name: str = ""


class JournalLog(_HealthLogBase):
    type: Literal["journal"] = "journal"
    is_completed: bool = False


HealthLog = Annotated[
    Union[MealLog, WaterLog, WeightLog, SleepLog, WorkoutLog, SupplementLog, JournalLog],
    Field(discriminator="type"),
]


class DailyLog(BaseModel):
    """Aggregate counters for one day; water is the running ml total."""

    uid: str
    date: date
    water: int = 0
    steps: int = 0
    calories_burned: int = 0
    mood: int | None = None

    model_config = dict(from_attributes=True)


class MindfulnessSession(BaseModel):
    session_id: str
    generated_date: date
    played_count: int = 0
    last_played_at: datetime | None = None

    model_config = dict(from_attributes=True)
