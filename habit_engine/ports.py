from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Optional

from habit_engine.schemas.habit import Habit, HabitCompletion
from habit_engine.schemas.health import DailyLog, HealthLog, MindfulnessSession
from habit_engine.schemas.reminder import DaySnapshot, Reminder
from habit_engine.schemas.streak import Streak


class HabitRepository(ABC):
    @abstractmethod
    async def list_habits(self, user_id: str) -> list[Habit]:
        """All habits of the user, active and inactive."""

    @abstractmethod
    async def list_completions(self, user_id: str, start: date, end: date) -> list[HabitCompletion]:
        """Completions whose local date falls in [start, end]."""


class HealthLogRepository(ABC):
    @abstractmethod
    async def get_daily_log(self, user_id: str, day: date) -> Optional[DailyLog]:
        pass

    @abstractmethod
    async def list_health_logs(self, user_id: str, day: date) -> list[HealthLog]:
        pass


class MindfulnessRepository(ABC):
    @abstractmethod
    async def get_session(self, user_id: str, day: date) -> Optional[MindfulnessSession]:
        pass


class StreakRepository(ABC):
    @abstractmethod
    async def get_streak(self, user_id: str) -> Optional[Streak]:
        pass

    @abstractmethod
    async def save_streak(self, streak: Streak) -> Streak:
        pass


class ReminderGenerator(ABC):
    @abstractmethod
    def generate(self, snapshot: DaySnapshot, now: Optional[datetime] = None) -> list[Reminder]:
        """Ordered candidate reminders for the snapshot's day."""
