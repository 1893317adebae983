from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

from habit_engine.adapters.memory import (
    InMemoryHabitRepository,
    InMemoryHealthLogRepository,
    InMemoryMindfulnessRepository,
    InMemoryStreakRepository,
)
from habit_engine.config import settings
from habit_engine.logging_config import setup_logging
from habit_engine.schemas.habit import Habit, HabitCategory, HabitCompletion
from habit_engine.schemas.health import DailyLog, WaterLog
from habit_engine.schemas.pattern import TimeRange
from habit_engine.services.auto_completion import habits_to_auto_complete
from habit_engine.services.pattern_miner import mine_all_patterns
from habit_engine.services.scheduling import build_circadian_profile, build_environmental_factors, recommend_schedule
from habit_engine.services.suggestions import generate_suggestions
from habit_engine.services.todays_focus import TodaysFocusSession
from habit_engine.utils.scheduler import FocusScheduler
from habit_engine.utils.timezone_utils import local_today

DEMO_USER = "demo"


def _seed(habits: InMemoryHabitRepository, health: InMemoryHealthLogRepository, now: datetime) -> None:
    run = Habit(id="run", title="Morning run", category=HabitCategory.fitness, target_value=3, unit="km")
    water = Habit(id="water", title="Drink water", category=HabitCategory.health, target_value=8, unit="glasses")
    stretch = Habit(id="stretch", title="Stretch", category=HabitCategory.fitness)
    for habit in (run, water, stretch):
        habits.add_habit(DEMO_USER, habit)

    for days_ago in range(1, 22):
        day = now - timedelta(days=days_ago)
        habits.add_completion(DEMO_USER, HabitCompletion(
            habit_id="run", completed_at=day.replace(hour=6, minute=30), value=3))
        habits.add_completion(DEMO_USER, HabitCompletion(
            habit_id="stretch", completed_at=day.replace(hour=6, minute=50)))

    today = local_today(settings.DEFAULT_TIMEZONE, now)
    health.set_daily_log(DEMO_USER, DailyLog(uid=DEMO_USER, date=today, water=480))
    health.add_health_log(DEMO_USER, today, WaterLog(entry_id="w1", timestamp=now, ml=240))


async def main() -> None:
    logger = setup_logging()
    logger.info("Starting habit engine demo")

    now = datetime.now(timezone.utc)
    today = local_today(settings.DEFAULT_TIMEZONE, now)
    habits = InMemoryHabitRepository(settings.DEFAULT_TIMEZONE)
    health = InMemoryHealthLogRepository()
    _seed(habits, health, now)

    all_habits = await habits.list_habits(DEMO_USER)
    completions = await habits.list_completions(DEMO_USER, today - timedelta(days=TimeRange.MONTH.days), today)

    patterns = mine_all_patterns(all_habits, completions, today, user_timezone=settings.DEFAULT_TIMEZONE)
    for p in patterns:
        logger.info("Pattern %s %s %.2f: %s", p.habit_id, p.pattern_type.value, p.strength, p.description)

    for s in generate_suggestions(all_habits, completions, patterns, today, settings.DEFAULT_TIMEZONE):
        logger.info("Suggestion %s (%.2f): %s", s.suggestion_type.value, s.score, s.description)

    profile = build_circadian_profile()
    factors = build_environmental_factors(now, settings.DEFAULT_TIMEZONE)
    for r in recommend_schedule(all_habits, profile, factors):
        logger.info("Schedule %s at %s (p=%.2f)", r.habit_title, r.recommended_time, r.success_probability)

    session = TodaysFocusSession(
        DEMO_USER, habits, health, InMemoryMindfulnessRepository(),
        streaks=InMemoryStreakRepository(),
        user_timezone=settings.DEFAULT_TIMEZONE,
        settle_delay=0,
    )
    snapshot = await session.load_snapshot(today)
    for log in snapshot.health_logs:
        for completion in habits_to_auto_complete(snapshot, log, settings.DEFAULT_TIMEZONE):
            habits.add_completion(DEMO_USER, completion)

    state = await session.refresh()
    for i, reminder in enumerate(state.reminders):
        marker = "->" if i == state.current_index else "  "
        logger.info("%s %s [%s] %s", marker, reminder.id, reminder.action_type.value, reminder.title)

    await session.load_streak()
    streak = await session.record_activity(now)
    logger.info("Streak: %s", streak.status_message)

    scheduler = FocusScheduler()
    scheduler.register(session)
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown()
