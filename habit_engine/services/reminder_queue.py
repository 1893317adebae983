"""
Today's Focus reminder queue.

Candidates from a generator are checked against the live day snapshot,
anything already satisfied or consumed this session is dropped, the rest is
padded up to a floor with generic prompts and exposed through a cursor.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional, Sequence

from habit_engine.config import settings
from habit_engine.schemas.habit import Habit
from habit_engine.schemas.health import JournalLog, WaterLog
from habit_engine.schemas.reminder import (
    DaySnapshot,
    Reminder,
    ReminderActionType,
    ReminderPriority,
    ReminderType,
)
from habit_engine.utils.timezone_utils import ensure_aware, local_date

logger = logging.getLogger(__name__)

WATER_KEYWORDS = ("water", "drink", "hydrate", "glass")
MINDFULNESS_WINDOW = timedelta(hours=24)

_LOG_TYPE_BY_ACTION = {
    ReminderActionType.LOG_MEAL: "meal",
    ReminderActionType.LOG_WEIGHT: "weight",
    ReminderActionType.LOG_SLEEP: "sleep",
    ReminderActionType.LOG_WORKOUT: "workout",
    ReminderActionType.LOG_SUPPLEMENT: "supplement",
}

# (id prefix, action, type, title, description, icon, minutes) in padding order
_FALLBACKS = (
    ("health_check", ReminderActionType.VIEW_HEALTH_TRACKING, ReminderType.HEALTH_LOG,
     "Health Check-In", "Take a moment to check in with your body and mind", "favorite", 2),
    ("wellness_break", ReminderActionType.VIEW_WELLNESS, ReminderType.WELLNESS,
     "Wellness Break", "Take a short break to focus on your wellbeing", "self_improvement", 5),
    ("habit_review", ReminderActionType.VIEW_HABITS, ReminderType.HABIT,
     "Review Habits", "Check in on your daily habits and progress", "check_circle", 3),
    ("nutrition_tracking", ReminderActionType.LOG_MEAL, ReminderType.HEALTH_LOG,
     "Track Nutrition", "Keep track of your meals for better health insights", "restaurant", 2),
    ("hydration_check", ReminderActionType.LOG_WATER, ReminderType.HEALTH_LOG,
     "Stay Hydrated", "Make sure you're drinking enough water throughout the day", "local_drink", 1),
    ("movement_reminder", ReminderActionType.LOG_WORKOUT, ReminderType.HEALTH_LOG,
     "Move Your Body", "Even a short walk or stretch can boost your energy", "directions_walk", 10),
    ("daily_reflection", ReminderActionType.START_JOURNAL, ReminderType.WELLNESS,
     "Daily Reflection", "Take a moment to reflect on your day", "edit_note", 5),
)
_GENERIC_ACTIONS = (
    ReminderActionType.VIEW_WELLNESS,
    ReminderActionType.VIEW_HEALTH_TRACKING,
    ReminderActionType.VIEW_HABITS,
)


def water_target_ml(habit: Optional[Habit]) -> float:
    """Daily water goal in ml; habits counted in glasses/cups or unknown units use 240 ml per unit."""
    if habit is None:
        return settings.FALLBACK_WATER_GLASSES * settings.ML_PER_GLASS
    unit = habit.unit.lower()
    if "glass" in unit or "cup" in unit:
        return habit.target_value * settings.ML_PER_GLASS
    if "ml" in unit or "liter" in unit:
        return habit.target_value
    return habit.target_value * settings.ML_PER_GLASS


def total_water_ml(snapshot: DaySnapshot) -> int:
    logged = sum(log.ml for log in snapshot.health_logs if isinstance(log, WaterLog))
    running = snapshot.daily_log.water if snapshot.daily_log else 0
    return running + logged


def _has_log(snapshot: DaySnapshot, log_type: str) -> bool:
    return any(log.type == log_type for log in snapshot.health_logs)


def _linked_habit(reminder: Reminder, snapshot: DaySnapshot) -> Optional[Habit]:
    habit_id = reminder.action_data.get("habitId")
    return snapshot.habit_by_id(habit_id) if habit_id else None


def is_water_habit(habit: Habit) -> bool:
    title = habit.title.lower()
    return any(word in title for word in WATER_KEYWORDS)


def habit_completed_today(habit_id: str, snapshot: DaySnapshot, user_timezone: Optional[str]) -> bool:
    return any(
        c.habit_id == habit_id and local_date(c.completed_at, user_timezone) == snapshot.day
        for c in snapshot.completions
    )


def is_reminder_satisfied(
    reminder: Reminder,
    snapshot: DaySnapshot,
    now: Optional[datetime] = None,
    user_timezone: Optional[str] = None,
) -> bool:
    """True when the data in the snapshot already meets the reminder's goal."""
    action = reminder.action_type

    if action in _LOG_TYPE_BY_ACTION:
        return _has_log(snapshot, _LOG_TYPE_BY_ACTION[action])

    if action == ReminderActionType.LOG_WATER:
        return total_water_ml(snapshot) >= water_target_ml(_linked_habit(reminder, snapshot))

    if action == ReminderActionType.START_JOURNAL:
        return any(isinstance(log, JournalLog) and log.is_completed for log in snapshot.health_logs)

    if action in (ReminderActionType.START_MINDFULNESS, ReminderActionType.START_MEDITATION):
        session = snapshot.mindfulness_session
        if session is None or session.played_count <= 0 or session.last_played_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return ensure_aware(now) - ensure_aware(session.last_played_at) < MINDFULNESS_WINDOW

    if action == ReminderActionType.COMPLETE_HABIT:
        habit_id = reminder.action_data.get("habitId")
        if not habit_id:
            return False
        if habit_completed_today(habit_id, snapshot, user_timezone):
            return True
        habit = snapshot.habit_by_id(habit_id)
        if habit is not None and is_water_habit(habit):
            return total_water_ml(snapshot) >= water_target_ml(habit)
        return False

    return False


def filter_reminders(
    candidates: Iterable[Reminder],
    snapshot: DaySnapshot,
    completed_ids: Iterable[str] = (),
    now: Optional[datetime] = None,
    user_timezone: Optional[str] = None,
) -> list[Reminder]:
    consumed = set(completed_ids)
    seen: set[str] = set()
    active: list[Reminder] = []
    for reminder in candidates:
        if reminder.id in consumed or reminder.id in seen:
            continue
        seen.add(reminder.id)
        if is_reminder_satisfied(reminder, snapshot, now, user_timezone):
            logger.debug("Reminder %s already satisfied", reminder.id)
            continue
        active.append(reminder)
    return active


def pad_reminders(
    active: Sequence[Reminder],
    day: date,
    completed_ids: Iterable[str] = (),
    floor: Optional[int] = None,
    snapshot: Optional[DaySnapshot] = None,
) -> list[Reminder]:
    """
    Tops the list up to `floor` items.

    Named fallbacks are used first, each only if no reminder with its action type
    is present and, given a snapshot, only if its goal is not already met.
    Generic wellness fillers come last, typed so they do not repeat an action
    type the active list already has where possible.
    """
    floor = settings.REMINDER_FLOOR if floor is None else floor
    result = list(active)
    if len(result) >= floor:
        return result

    used_ids = {r.id for r in result} | set(completed_ids)
    active_actions = {r.action_type for r in active}

    for prefix, action, rtype, title, description, icon, minutes in _FALLBACKS:
        if len(result) >= floor:
            break
        reminder_id = f"{prefix}_{day.isoformat()}"
        if reminder_id in used_ids or any(r.action_type == action for r in result):
            continue
        fallback = Reminder(
            id=reminder_id,
            type=rtype,
            title=title,
            description=description,
            icon=icon,
            priority=ReminderPriority.MEDIUM,
            action_type=action,
            estimated_duration=minutes,
        )
        if snapshot is not None and is_reminder_satisfied(fallback, snapshot):
            continue
        result.append(fallback)
        used_ids.add(reminder_id)

    generic_action = next(
        (a for a in _GENERIC_ACTIONS if a not in active_actions),
        ReminderActionType.VIEW_WELLNESS,
    )
    n = 0
    while len(result) < floor:
        n += 1
        reminder_id = f"wellness_generic_{day.isoformat()}_{n}"
        if reminder_id in used_ids:
            continue
        result.append(Reminder(
            id=reminder_id,
            type=ReminderType.WELLNESS,
            title="Wellness Activity",
            description="Take time for your wellbeing today",
            icon="self_improvement",
            priority=ReminderPriority.LOW,
            action_type=generic_action,
            estimated_duration=5,
        ))
        used_ids.add(reminder_id)

    return result


def build_active_list(
    candidates: Iterable[Reminder],
    snapshot: DaySnapshot,
    completed_ids: Iterable[str] = (),
    now: Optional[datetime] = None,
    user_timezone: Optional[str] = None,
    floor: Optional[int] = None,
) -> list[Reminder]:
    consumed = set(completed_ids)
    active = filter_reminders(candidates, snapshot, consumed, now, user_timezone)
    return pad_reminders(active, snapshot.day, consumed, floor, snapshot)


class ReminderQueue:
    """Ordered active reminders, a cursor kept by id, and the session's consumed ids."""

    def __init__(self, floor: Optional[int] = None, user_timezone: Optional[str] = None):
        self.floor = settings.REMINDER_FLOOR if floor is None else floor
        self.user_timezone = user_timezone
        self.day: Optional[date] = None
        self._items: list[Reminder] = []
        self._current_id: Optional[str] = None
        self._completed_ids: set[str] = set()

    @property
    def items(self) -> list[Reminder]:
        return list(self._items)

    @property
    def completed_ids(self) -> frozenset[str]:
        return frozenset(self._completed_ids)

    @property
    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)

    def current(self) -> Optional[Reminder]:
        for reminder in self._items:
            if reminder.id == self._current_id:
                return reminder
        return None

    @property
    def current_index(self) -> int:
        """Position of the current reminder, -1 when there is none."""
        for i, reminder in enumerate(self._items):
            if reminder.id == self._current_id:
                return i
        return -1

    def next(self) -> Optional[Reminder]:
        i = self.current_index
        if 0 <= i < len(self._items) - 1:
            self._current_id = self._items[i + 1].id
        return self.current()

    def previous(self) -> Optional[Reminder]:
        i = self.current_index
        if i > 0:
            self._current_id = self._items[i - 1].id
        return self.current()

    def navigate_to(self, index: int) -> Optional[Reminder]:
        if 0 <= index < len(self._items):
            self._current_id = self._items[index].id
        return self.current()

    def _consume_current(self, reason: str) -> Optional[Reminder]:
        current = self.current()
        if current is None:
            return None
        self._completed_ids.add(current.id)
        self._items = [r for r in self._items if r.id != current.id]
        self._current_id = self._items[0].id if self._items else None
        logger.info(
            "%s reminder %s, next: %s, remaining: %d",
            reason, current.id, self._current_id, len(self._items),
        )
        return current

    def complete_current(self) -> Optional[Reminder]:
        """Consumes the current reminder and moves to the new first item."""
        return self._consume_current("Completed")

    def skip_current(self) -> Optional[Reminder]:
        return self._consume_current("Skipped")

    def check_and_advance_if_completed(
        self, reminder: Reminder, snapshot: DaySnapshot, now: Optional[datetime] = None
    ) -> bool:
        """Completes `reminder` if the fresh snapshot satisfies it and it is the current item."""
        if not is_reminder_satisfied(reminder, snapshot, now, self.user_timezone):
            return False
        current = self.current()
        if current is None or current.id != reminder.id:
            return False
        self.complete_current()
        return True

    def build(self, candidates: Iterable[Reminder], snapshot: DaySnapshot, now: Optional[datetime] = None) -> list[Reminder]:
        """Filtered and padded list for `snapshot`; does not touch the queue."""
        return build_active_list(
            candidates, snapshot, self._completed_ids, now, self.user_timezone, self.floor,
        )

    def replace(self, day: date, items: Sequence[Reminder]) -> None:
        """
        Swaps in a freshly built list.

        A new day drops the session state first. The cursor stays on the same id
        when it survived, otherwise it moves to the first item.
        """
        if self.day is not None and day != self.day:
            self.reset()
        self.day = day
        self._items = [r for r in items if r.id not in self._completed_ids]
        if not any(r.id == self._current_id for r in self._items):
            self._current_id = self._items[0].id if self._items else None

    def apply(self, candidates: Iterable[Reminder], snapshot: DaySnapshot, now: Optional[datetime] = None) -> None:
        """Refresh from a new set of candidates."""
        if self.day is not None and snapshot.day != self.day:
            self.reset()
        self.replace(snapshot.day, self.build(candidates, snapshot, now))

    def reset(self) -> None:
        """Day rollover: forget the list, the cursor and the consumed ids."""
        self.day = None
        self._items = []
        self._current_id = None
        self._completed_ids = set()
