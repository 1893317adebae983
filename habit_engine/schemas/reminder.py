from __future__ import annotations

from datetime import date, time
from enum import Enum

from pydantic import BaseModel, Field

from .habit import Habit, HabitCompletion
from .health import DailyLog, HealthLog, MindfulnessSession


class ReminderType(str, Enum):
    HEALTH_LOG = "HEALTH_LOG"
    WELLNESS = "WELLNESS"
    HABIT = "HABIT"
    MINDFULNESS = "MINDFULNESS"
    CHALLENGE = "CHALLENGE"


class ReminderPriority(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        return ["CRITICAL", "HIGH", "MEDIUM", "LOW"].index(self.value)


class ReminderActionType(str, Enum):
    LOG_MEAL = "LOG_MEAL"
    LOG_WATER = "LOG_WATER"
    LOG_WEIGHT = "LOG_WEIGHT"
    LOG_SLEEP = "LOG_SLEEP"
    LOG_WORKOUT = "LOG_WORKOUT"
    LOG_SUPPLEMENT = "LOG_SUPPLEMENT"
    START_JOURNAL = "START_JOURNAL"
    START_MINDFULNESS = "START_MINDFULNESS"
    START_MEDITATION = "START_MEDITATION"
    COMPLETE_HABIT = "COMPLETE_HABIT"
    VIEW_HABITS = "VIEW_HABITS"
    VIEW_HEALTH_TRACKING = "VIEW_HEALTH_TRACKING"
    VIEW_WELLNESS = "VIEW_WELLNESS"

    @property
    def is_view(self) -> bool:
        return self.value.startswith("VIEW_")


class Reminder(BaseModel):
    """One Today's Focus prompt. The id is stable for the whole day."""

    id: str
    type: ReminderType
    title: str
    description: str = ""
    icon: str = ""
    priority: ReminderPriority = ReminderPriority.MEDIUM
    action_type: ReminderActionType
    action_data: dict[str, str] = Field(default_factory=dict)
    estimated_duration: int = 1
    due_time: time | None = None

    model_config = dict(from_attributes=True)


class DaySnapshot(BaseModel):
    """Read-only view of one user's day, as loaded from the stores."""

    user_id: str
    day: date
    habits: list[Habit] = Field(default_factory=list)
    completions: list[HabitCompletion] = Field(default_factory=list)
    health_logs: list[HealthLog] = Field(default_factory=list)
    daily_log: DailyLog | None = None
    mindfulness_session: MindfulnessSession | None = None

    def habit_by_id(self, habit_id: str) -> Habit | None:
        for habit in self.habits:
            if habit.id == habit_id:
                return habit
        return None


class FocusState(BaseModel):
    """Immutable view of the queue handed to the UI layer."""

    day: date | None = None
    reminders: list[Reminder] = Field(default_factory=list)
    current: Reminder | None = None
    current_index: int = -1
    completed_count: int = 0

    model_config = dict(frozen=True)
