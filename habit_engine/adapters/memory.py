from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Optional

from habit_engine.ports import (
    HabitRepository,
    HealthLogRepository,
    MindfulnessRepository,
    StreakRepository,
)
from habit_engine.schemas.habit import Habit, HabitCompletion
from habit_engine.schemas.health import DailyLog, HealthLog, MindfulnessSession
from habit_engine.schemas.streak import Streak
from habit_engine.utils.timezone_utils import local_date


class InMemoryHabitRepository(HabitRepository):
    """Dict-backed store; `fail_reads` makes every read raise, for failure paths."""

    def __init__(self, user_timezone: Optional[str] = None):
        self.user_timezone = user_timezone
        self.habits: dict[str, list[Habit]] = defaultdict(list)
        self.completions: dict[str, list[HabitCompletion]] = defaultdict(list)
        self.fail_reads = False

    def add_habit(self, user_id: str, habit: Habit) -> None:
        self.habits[user_id].append(habit)

    def add_completion(self, user_id: str, completion: HabitCompletion) -> None:
        self.completions[user_id].append(completion)

    def _check(self) -> None:
        if self.fail_reads:
            raise ConnectionError("habit store unavailable")

    async def list_habits(self, user_id: str) -> list[Habit]:
        self._check()
        return list(self.habits[user_id])

    async def list_completions(self, user_id: str, start: date, end: date) -> list[HabitCompletion]:
        self._check()
        return [
            c for c in self.completions[user_id]
            if start <= local_date(c.completed_at, self.user_timezone) <= end
        ]


class InMemoryHealthLogRepository(HealthLogRepository):
    def __init__(self):
        self.daily_logs: dict[tuple[str, date], DailyLog] = {}
        self.health_logs: dict[tuple[str, date], list[HealthLog]] = defaultdict(list)

    def set_daily_log(self, user_id: str, log: DailyLog) -> None:
        self.daily_logs[(user_id, log.date)] = log

    def add_health_log(self, user_id: str, day: date, log: HealthLog) -> None:
        self.health_logs[(user_id, day)].append(log)

    async def get_daily_log(self, user_id: str, day: date) -> Optional[DailyLog]:
        return self.daily_logs.get((user_id, day))

    async def list_health_logs(self, user_id: str, day: date) -> list[HealthLog]:
        return list(self.health_logs[(user_id, day)])


class InMemoryMindfulnessRepository(MindfulnessRepository):
    def __init__(self):
        self.sessions: dict[tuple[str, date], MindfulnessSession] = {}

    def set_session(self, user_id: str, session: MindfulnessSession) -> None:
        self.sessions[(user_id, session.generated_date)] = session

    async def get_session(self, user_id: str, day: date) -> Optional[MindfulnessSession]:
        return self.sessions.get((user_id, day))


class InMemoryStreakRepository(StreakRepository):
    def __init__(self):
        self.streaks: dict[str, Streak] = {}

    async def get_streak(self, user_id: str) -> Optional[Streak]:
        return self.streaks.get(user_id)

    async def save_streak(self, streak: Streak) -> Streak:
        self.streaks[streak.uid] = streak
        return streak
