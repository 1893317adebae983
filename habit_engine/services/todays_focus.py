"""
Caller-side owner of the Today's Focus queue.

Reads go through the ports, the queue is only touched once a complete
snapshot is in hand, so a failed or cancelled refresh leaves it as it was.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

from habit_engine.config import settings
from habit_engine.exceptions import ReminderRefreshError
from habit_engine.ports import (
    HabitRepository,
    HealthLogRepository,
    MindfulnessRepository,
    ReminderGenerator,
    StreakRepository,
)
from habit_engine.schemas.reminder import DaySnapshot, FocusState, Reminder
from habit_engine.schemas.streak import Streak
from habit_engine.services.reminder_generator import DefaultReminderGenerator
from habit_engine.services.reminder_queue import ReminderQueue
from habit_engine.services.streaks import calculate_updated_streak, log_date_for, validate_streak
from habit_engine.utils.timezone_utils import local_today

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TodaysFocusSession:
    """One user's Today's Focus session: queue state plus reconciliation with the stores."""

    def __init__(
        self,
        user_id: str,
        habits: HabitRepository,
        health_logs: HealthLogRepository,
        mindfulness: MindfulnessRepository,
        generator: Optional[ReminderGenerator] = None,
        *,
        streaks: Optional[StreakRepository] = None,
        user_timezone: Optional[str] = None,
        settle_delay: Optional[float] = None,
        snapshot_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.user_id = user_id
        self.habits = habits
        self.health_logs = health_logs
        self.mindfulness = mindfulness
        self.streaks = streaks
        self.user_timezone = user_timezone
        self.generator = generator or DefaultReminderGenerator(user_timezone)
        self.settle_delay = settings.SETTLE_DELAY_SECONDS if settle_delay is None else settle_delay
        self.snapshot_timeout = settings.SNAPSHOT_TIMEOUT_SECONDS if snapshot_timeout is None else snapshot_timeout
        self.clock = clock
        self.queue = ReminderQueue(user_timezone=user_timezone)

    @property
    def state(self) -> FocusState:
        return FocusState(
            day=self.queue.day,
            reminders=self.queue.items,
            current=self.queue.current(),
            current_index=self.queue.current_index,
            completed_count=len(self.queue.completed_ids),
        )

    async def _read_snapshot(self, day: date) -> DaySnapshot:
        habits, completions, health_logs, daily_log, session = await asyncio.gather(
            self.habits.list_habits(self.user_id),
            self.habits.list_completions(self.user_id, day, day),
            self.health_logs.list_health_logs(self.user_id, day),
            self.health_logs.get_daily_log(self.user_id, day),
            self.mindfulness.get_session(self.user_id, day),
        )
        return DaySnapshot(
            user_id=self.user_id,
            day=day,
            habits=[h for h in habits if h.is_active],
            completions=completions,
            health_logs=health_logs,
            daily_log=daily_log,
            mindfulness_session=session,
        )

    async def load_snapshot(self, day: date) -> DaySnapshot:
        try:
            return await asyncio.wait_for(self._read_snapshot(day), timeout=self.snapshot_timeout)
        except asyncio.TimeoutError as exc:
            raise ReminderRefreshError(
                f"Timed out after {self.snapshot_timeout}s reading snapshot for {self.user_id}"
            ) from exc
        except Exception as exc:
            raise ReminderRefreshError(f"Could not read snapshot for {self.user_id}: {exc}") from exc

    async def refresh(self) -> FocusState:
        """
        Regenerates and re-filters the queue.

        Raises ReminderRefreshError when the stores cannot be read; the
        previous queue is kept in that case.
        """
        now = self.clock()
        day = local_today(self.user_timezone, now)
        try:
            snapshot = await self.load_snapshot(day)
        except ReminderRefreshError:
            logger.warning("Reminder refresh failed for %s, keeping %d reminders", self.user_id, len(self.queue))
            raise

        candidates = self.generator.generate(snapshot, now)
        self.queue.apply(candidates, snapshot, now)
        logger.info("Refreshed Today's Focus for %s: %d reminders", self.user_id, len(self.queue))
        return self.state

    async def _settle_and_refresh(self) -> None:
        await asyncio.sleep(self.settle_delay)
        try:
            await self.refresh()
        except ReminderRefreshError as e:
            logger.warning("Reconcile after write skipped: %s", e)

    async def mark_complete(self) -> Optional[Reminder]:
        reminder = self.queue.complete_current()
        if reminder is not None:
            await self._settle_and_refresh()
        return reminder

    async def skip(self) -> Optional[Reminder]:
        reminder = self.queue.skip_current()
        if reminder is not None:
            await self._settle_and_refresh()
        return reminder

    async def check_and_advance_if_completed(self, reminder: Reminder) -> bool:
        """Waits for the write to settle, re-reads the day and completes `reminder` if it is now satisfied."""
        await asyncio.sleep(self.settle_delay)
        now = self.clock()
        snapshot = await self.load_snapshot(local_today(self.user_timezone, now))
        return self.queue.check_and_advance_if_completed(reminder, snapshot, now)

    def _require_streaks(self) -> StreakRepository:
        if self.streaks is None:
            raise RuntimeError("No streak repository configured for this session")
        return self.streaks

    async def _has_activity(self, day: date) -> bool:
        completions, logs = await asyncio.gather(
            self.habits.list_completions(self.user_id, day, day),
            self.health_logs.list_health_logs(self.user_id, day),
        )
        return bool(completions or logs)

    async def load_streak(self) -> Streak:
        """Reads the stored streak and resets it if the user has missed a full day."""
        streaks = self._require_streaks()
        today = local_today(self.user_timezone, self.clock())
        streak = await streaks.get_streak(self.user_id) or Streak(uid=self.user_id)
        active_today, active_yesterday = await asyncio.gather(
            self._has_activity(today),
            self._has_activity(today - timedelta(days=1)),
        )
        validated = validate_streak(streak, today, active_today, active_yesterday)
        if validated is not streak:
            await streaks.save_streak(validated)
        return validated

    async def record_activity(self, moment: Optional[datetime] = None) -> Streak:
        """Counts a log towards the user's streak and persists the result."""
        streak = await self._require_streaks().get_streak(self.user_id) or Streak(uid=self.user_id)
        updated = calculate_updated_streak(streak, log_date_for(moment or self.clock(), self.user_timezone))
        if updated is not streak:
            await self.streaks.save_streak(updated)
        return updated
