from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from habit_engine.ports import ReminderGenerator
from habit_engine.schemas.habit import HabitFrequency
from habit_engine.schemas.health import JournalLog
from habit_engine.schemas.reminder import (
    DaySnapshot,
    Reminder,
    ReminderActionType,
    ReminderPriority,
    ReminderType,
)
from habit_engine.services.reminder_queue import is_reminder_satisfied, total_water_ml
from habit_engine.utils.timezone_utils import to_local

logger = logging.getLogger(__name__)

MORNING_WATER_ML = 500
AFTERNOON_WATER_ML = 1000
EVENING_WATER_ML = 1500

_MINDFULNESS_TITLES = ("3-Min Mindfulness Reset", "Deep Breathing Break", "Quick Body Check-In")
_JOURNAL_TITLES = ("Evening Reflection", "Daily Review", "Mindful Moment")


def _count(snapshot: DaySnapshot, log_type: str) -> int:
    return sum(1 for log in snapshot.health_logs if log.type == log_type)


class DefaultReminderGenerator(ReminderGenerator):
    """
    Builds the day's candidate reminders from the snapshot and the local hour.

    Ids are `<kind>_<yyyy-mm-dd>` so a reminder keeps its identity across
    refreshes for the whole day. Titles rotate by weekday.
    """

    def __init__(self, user_timezone: Optional[str] = None):
        self.user_timezone = user_timezone

    def generate(self, snapshot: DaySnapshot, now: Optional[datetime] = None) -> list[Reminder]:
        now = now or datetime.now(timezone.utc)
        hour = to_local(now, self.user_timezone).hour
        day = snapshot.day.isoformat()
        weekday = snapshot.day.weekday()
        water = total_water_ml(snapshot)
        meals = _count(snapshot, "meal")

        reminders: list[Reminder] = []
        used_ids: set[str] = set()

        def add(reminder: Reminder) -> None:
            if reminder.id not in used_ids:
                used_ids.add(reminder.id)
                reminders.append(reminder)

        mindfulness = Reminder(
            id=f"mindfulness_session_{day}",
            type=ReminderType.MINDFULNESS,
            title=_MINDFULNESS_TITLES[weekday % len(_MINDFULNESS_TITLES)],
            description="A short guided reset to calm your mind",
            icon="self_improvement",
            priority=ReminderPriority.HIGH,
            action_type=ReminderActionType.START_MINDFULNESS,
            estimated_duration=3,
        )
        if not is_reminder_satisfied(mindfulness, snapshot, now, self.user_timezone):
            add(mindfulness)

        if hour < 12:
            if water < MORNING_WATER_ML:
                add(self._water(f"water_morning_{day}", "Morning Hydration"))
            if meals == 0:
                add(Reminder(
                    id=f"breakfast_{day}",
                    type=ReminderType.HEALTH_LOG,
                    title="Breakfast Time",
                    description="Log your breakfast to start the day right",
                    icon="restaurant",
                    action_type=ReminderActionType.LOG_MEAL,
                    estimated_duration=2,
                ))
            if _count(snapshot, "weight") == 0:
                add(Reminder(
                    id=f"weight_{day}",
                    type=ReminderType.HEALTH_LOG,
                    title="Log Your Weight",
                    description="Track your progress by logging your weight",
                    icon="monitor_weight",
                    priority=ReminderPriority.LOW,
                    action_type=ReminderActionType.LOG_WEIGHT,
                    estimated_duration=1,
                ))
        elif hour < 17:
            if water < AFTERNOON_WATER_ML:
                add(self._water(f"water_afternoon_{day}", "Afternoon Hydration"))
            if meals <= 1:
                add(Reminder(
                    id=f"lunch_{day}",
                    type=ReminderType.HEALTH_LOG,
                    title="Lunch Break",
                    description="Log your lunch to keep your nutrition on track",
                    icon="restaurant",
                    action_type=ReminderActionType.LOG_MEAL,
                    estimated_duration=2,
                ))
            if hour >= 14 and _count(snapshot, "workout") == 0:
                add(Reminder(
                    id=f"workout_afternoon_{day}",
                    type=ReminderType.HEALTH_LOG,
                    title="Afternoon Activity",
                    description="A short workout keeps your energy up",
                    icon="fitness_center",
                    action_type=ReminderActionType.LOG_WORKOUT,
                    estimated_duration=10,
                ))
        else:
            if water < EVENING_WATER_ML:
                add(self._water(f"water_evening_{day}", "Evening Hydration"))
            if meals < 2:
                add(Reminder(
                    id=f"dinner_{day}",
                    type=ReminderType.HEALTH_LOG,
                    title="Dinner Time",
                    description="Log your dinner to complete today's nutrition",
                    icon="restaurant",
                    action_type=ReminderActionType.LOG_MEAL,
                    estimated_duration=2,
                ))
            if hour >= 20 and _count(snapshot, "sleep") == 0:
                add(Reminder(
                    id=f"sleep_{day}",
                    type=ReminderType.HEALTH_LOG,
                    title="Sleep Check",
                    description="Log last night's sleep before winding down",
                    icon="bedtime",
                    action_type=ReminderActionType.LOG_SLEEP,
                    estimated_duration=2,
                ))
            journals = [log for log in snapshot.health_logs if isinstance(log, JournalLog)]
            if not any(j.is_completed for j in journals):
                add(Reminder(
                    id=f"journal_{day}",
                    type=ReminderType.WELLNESS,
                    title=_JOURNAL_TITLES[weekday % len(_JOURNAL_TITLES)],
                    description="Take a moment to reflect on your day with journaling",
                    icon="edit_note",
                    priority=ReminderPriority.HIGH,
                    action_type=ReminderActionType.START_JOURNAL,
                    estimated_duration=5,
                ))

        if hour >= 8 and _count(snapshot, "supplement") == 0:
            add(Reminder(
                id=f"supplement_{day}",
                type=ReminderType.HEALTH_LOG,
                title="Supplements",
                description="Log the supplements you took today",
                icon="medication",
                priority=ReminderPriority.LOW,
                action_type=ReminderActionType.LOG_SUPPLEMENT,
                estimated_duration=1,
            ))

        for habit in snapshot.habits:
            if not habit.is_active or habit.frequency != HabitFrequency.daily:
                continue
            add(Reminder(
                id=f"habit_{habit.id}_{day}",
                type=ReminderType.HABIT,
                title=habit.title,
                description=habit.description or f"Complete your daily habit: {habit.title}",
                icon="check_circle",
                priority=ReminderPriority.HIGH,
                action_type=ReminderActionType.COMPLETE_HABIT,
                action_data={"habitId": habit.id, "habitTitle": habit.title},
                estimated_duration=5,
            ))

        reminders.sort(key=lambda r: r.priority.rank)
        logger.debug("Generated %d candidate reminders for %s", len(reminders), snapshot.user_id)
        return reminders

    @staticmethod
    def _water(reminder_id: str, title: str) -> Reminder:
        return Reminder(
            id=reminder_id,
            type=ReminderType.HEALTH_LOG,
            title=title,
            description="Log a glass of water",
            icon="local_drink",
            action_type=ReminderActionType.LOG_WATER,
            estimated_duration=1,
        )
