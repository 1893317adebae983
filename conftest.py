from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

import pytest

from habit_engine.schemas.habit import Habit, HabitCategory, HabitCompletion, HabitFrequency
from habit_engine.schemas.reminder import DaySnapshot, Reminder, ReminderActionType, ReminderType


TODAY = date(2024, 3, 15)  # Friday
NOW = datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc)


def at(day: date, hour: int = 7, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=timezone.utc)


def days_ago(n: int) -> date:
    return TODAY - timedelta(days=n)


def completions_for(habit_id: str, days, hour: int = 7, minute: int = 0) -> list[HabitCompletion]:
    return [HabitCompletion(habit_id=habit_id, completed_at=at(d, hour, minute)) for d in days]


def reminder(reminder_id: str, action: ReminderActionType, **data) -> Reminder:
    return Reminder(
        id=reminder_id,
        type=ReminderType.HEALTH_LOG,
        title=reminder_id.replace("_", " ").title(),
        action_type=action,
        action_data=data,
    )


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def run_habit() -> Habit:
    return Habit(id="run", title="Morning run", category=HabitCategory.fitness, target_value=3, unit="km")


@pytest.fixture
def read_habit() -> Habit:
    return Habit(id="read", title="Read", category=HabitCategory.learning)


@pytest.fixture
def water_habit() -> Habit:
    return Habit(id="water", title="Drink water", category=HabitCategory.health, target_value=10, unit="glasses")


@pytest.fixture
def weekly_habit() -> Habit:
    return Habit(id="clean", title="Deep clean", category=HabitCategory.productivity,
                 frequency=HabitFrequency.weekly)


@pytest.fixture
def empty_snapshot(today) -> DaySnapshot:
    return DaySnapshot(user_id="u1", day=today)
