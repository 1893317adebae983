from __future__ import annotations

import logging
from typing import Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from habit_engine.config import settings
from habit_engine.exceptions import ReminderRefreshError
from habit_engine.services.todays_focus import TodaysFocusSession
from habit_engine.utils.timezone_utils import resolve_timezone

logger = logging.getLogger(__name__)


class FocusScheduler:
    """Wrapper around APScheduler that keeps registered Today's Focus sessions fresh."""

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None, interval_minutes: Optional[int] = None):
        self.scheduler = scheduler or AsyncIOScheduler(timezone="UTC")
        self.interval_minutes = interval_minutes or settings.REFRESH_INTERVAL_MINUTES
        self.sessions: Dict[str, TodaysFocusSession] = {}

    def _refresh_job_id(self, user_id: str) -> str:
        return f"focus_refresh_{user_id}"

    def _rollover_job_id(self, user_id: str) -> str:
        return f"focus_rollover_{user_id}"

    def register(self, session: TodaysFocusSession) -> None:
        """Adds periodic refresh and a local-midnight rollover for the session's user."""
        user_id = session.user_id
        self.sessions[user_id] = session
        self.scheduler.add_job(
            self._refresh_job,
            IntervalTrigger(minutes=self.interval_minutes),
            args=[user_id],
            id=self._refresh_job_id(user_id),
            replace_existing=True,
        )
        self.scheduler.add_job(
            self._rollover_job,
            CronTrigger(hour=0, minute=0, timezone=resolve_timezone(session.user_timezone)),
            args=[user_id],
            id=self._rollover_job_id(user_id),
            replace_existing=True,
        )
        logger.info("Registered Today's Focus jobs for %s", user_id)

    def unregister(self, user_id: str) -> None:
        self.sessions.pop(user_id, None)
        for job_id in (self._refresh_job_id(user_id), self._rollover_job_id(user_id)):
            if self.scheduler.get_job(job_id) is not None:
                self.scheduler.remove_job(job_id)

    def start(self) -> None:
        self.scheduler.start()
        logger.info("FocusScheduler started with %d sessions", len(self.sessions))

    def shutdown(self) -> None:
        self.scheduler.shutdown(wait=False)

    async def _refresh_job(self, user_id: str) -> None:
        session = self.sessions.get(user_id)
        if session is None:
            return
        try:
            await session.refresh()
        except ReminderRefreshError as e:
            logger.warning("Scheduled refresh for %s failed: %s", user_id, e)

    async def _rollover_job(self, user_id: str) -> None:
        session = self.sessions.get(user_id)
        if session is None:
            return
        session.queue.reset()
        logger.info("Day rolled over for %s, queue reset", user_id)
        await self._refresh_job(user_id)
