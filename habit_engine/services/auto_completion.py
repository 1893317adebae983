"""
Habit completions implied by a freshly written health log.

A meal, water, sleep or workout log can meet a habit's goal on its own; these
functions decide which active habits to complete and with what value. Nothing
is written here, the caller stores the returned completions.
"""
from __future__ import annotations

import logging
from typing import Optional

from habit_engine.schemas.habit import Habit, HabitCategory, HabitCompletion
from habit_engine.schemas.health import HealthLog, MealLog, SleepLog, WaterLog, WorkoutLog
from habit_engine.schemas.reminder import DaySnapshot
from habit_engine.services.reminder_queue import (
    habit_completed_today,
    is_water_habit,
    total_water_ml,
    water_target_ml,
)

logger = logging.getLogger(__name__)

MEAL_KEYWORDS = ("protein", "meal", "eat")
PER_MEAL_PHRASES = ("every meal", "each meal")
SLEEP_KEYWORDS = ("sleep", "bed")
WORKOUT_KEYWORDS = ("workout", "exercise", "gym", "run", "walk")
AVOIDANCE_MARKERS = ("no ", "avoid", "don't", "dont", "stop", "quit")


def is_avoidance_habit(habit: Habit) -> bool:
    """Habits like "no phone before bed" are never completed by a log."""
    title = habit.title.lower()
    return any(marker in title for marker in AVOIDANCE_MARKERS)


def _is_per_meal(habit: Habit) -> bool:
    title = habit.title.lower()
    return ("protein" in title and "meal" in title) or any(p in title for p in PER_MEAL_PHRASES)


def _with_log(snapshot: DaySnapshot, log: HealthLog) -> DaySnapshot:
    if any(existing.entry_id == log.entry_id for existing in snapshot.health_logs):
        return snapshot
    return snapshot.model_copy(update={"health_logs": [*snapshot.health_logs, log]})


def _meal_completions(habits: list[Habit], done) -> list[tuple[Habit, float, str]]:
    results = []
    for habit in habits:
        title = habit.title.lower()
        if habit.category != HabitCategory.nutrition and not any(w in title for w in MEAL_KEYWORDS):
            continue
        if _is_per_meal(habit):
            results.append((habit, 1.0, "Auto-completed: meal logged"))
        elif habit.category == HabitCategory.nutrition and habit.target_value == 1 and not done(habit):
            results.append((habit, 1.0, "Auto-completed: meal logged"))
    return results


def _water_completions(habits: list[Habit], snapshot: DaySnapshot, done) -> list[tuple[Habit, float, str]]:
    total = total_water_ml(snapshot)
    results = []
    for habit in habits:
        if not is_water_habit(habit) or done(habit):
            continue
        if total >= water_target_ml(habit):
            results.append((habit, habit.target_value, f"Auto-completed: {total} ml logged"))
    return results


def _sleep_completions(habits: list[Habit], log: SleepLog, done) -> list[tuple[Habit, float, str]]:
    hours = log.duration_hours
    results = []
    for habit in habits:
        title = habit.title.lower()
        if habit.category != HabitCategory.sleep and not any(w in title for w in SLEEP_KEYWORDS):
            continue
        if is_avoidance_habit(habit) or done(habit):
            continue
        if "sleep" in title and "hour" in habit.unit.lower():
            if hours >= habit.target_value:
                results.append((habit, round(hours, 2), f"Auto-completed: {hours:.1f}h sleep logged"))
        elif any(w in title for w in SLEEP_KEYWORDS):
            results.append((habit, 1.0, "Auto-completed: sleep logged"))
    return results


def _workout_completions(habits: list[Habit], log: WorkoutLog, done) -> list[tuple[Habit, float, str]]:
    results = []
    for habit in habits:
        title = habit.title.lower()
        if habit.category != HabitCategory.fitness and not any(w in title for w in WORKOUT_KEYWORDS):
            continue
        if done(habit):
            continue
        if log.duration_min and "min" in habit.unit.lower():
            if log.duration_min >= habit.target_value:
                results.append((habit, float(log.duration_min),
                                f"Auto-completed: {log.duration_min}min workout logged"))
        elif "workout" in title or "exercise" in title:
            results.append((habit, 1.0, "Auto-completed: workout logged"))
    return results


def habits_to_auto_complete(
    snapshot: DaySnapshot,
    log: HealthLog,
    user_timezone: Optional[str] = None,
) -> list[HabitCompletion]:
    """
    Completions implied by `log` for the snapshot's day.

    The snapshot may or may not already contain `log`. Habits already completed
    today are skipped, except per-meal habits ("protein with every meal") which
    complete once per meal. Other log types complete nothing.
    """
    snapshot = _with_log(snapshot, log)
    habits = [h for h in snapshot.habits if h.is_active]

    def done(habit: Habit) -> bool:
        return habit_completed_today(habit.id, snapshot, user_timezone)

    if isinstance(log, MealLog):
        matches = _meal_completions(habits, done)
    elif isinstance(log, WaterLog):
        matches = _water_completions(habits, snapshot, done)
    elif isinstance(log, SleepLog):
        matches = _sleep_completions(habits, log, done)
    elif isinstance(log, WorkoutLog):
        matches = _workout_completions(habits, log, done)
    else:
        matches = []

    completions = [
        HabitCompletion(habit_id=habit.id, completed_at=log.timestamp, value=value, notes=notes)
        for habit, value, notes in matches
    ]
    if completions:
        logger.info(
            "Auto-completing %s for %s after %s log",
            ", ".join(c.habit_id for c in completions), snapshot.user_id, log.type,
        )
    return completions
