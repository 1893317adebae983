#!/usr/bin/env python3
"""
APScheduler jobs that keep Today's Focus sessions fresh
"""

import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from conftest import NOW
from habit_engine.adapters.memory import (
    InMemoryHabitRepository,
    InMemoryHealthLogRepository,
    InMemoryMindfulnessRepository,
)
from habit_engine.logging_config import setup_logging
from habit_engine.services.todays_focus import TodaysFocusSession
from habit_engine.utils.scheduler import FocusScheduler


def _session(run_habit, user_timezone=None):
    habits = InMemoryHabitRepository()
    habits.add_habit("u1", run_habit)
    return TodaysFocusSession(
        "u1", habits, InMemoryHealthLogRepository(), InMemoryMindfulnessRepository(),
        user_timezone=user_timezone,
        settle_delay=0,
        clock=lambda: NOW,
    )


def test_register_adds_refresh_and_rollover_jobs(run_habit):
    focus = FocusScheduler(AsyncIOScheduler(timezone="UTC"), interval_minutes=5)
    focus.register(_session(run_habit, "Europe/Moscow"))

    refresh = focus.scheduler.get_job("focus_refresh_u1")
    rollover = focus.scheduler.get_job("focus_rollover_u1")
    assert refresh is not None
    assert refresh.trigger.interval.total_seconds() == 300
    assert rollover is not None
    assert str(rollover.trigger.timezone) == "Europe/Moscow"


def test_unregister_removes_jobs(run_habit):
    focus = FocusScheduler(AsyncIOScheduler(timezone="UTC"))
    focus.register(_session(run_habit))
    focus.unregister("u1")

    assert focus.scheduler.get_job("focus_refresh_u1") is None
    assert focus.scheduler.get_job("focus_rollover_u1") is None
    assert "u1" not in focus.sessions
    focus.unregister("u1")


def test_refresh_job_survives_store_failure(run_habit):
    focus = FocusScheduler(AsyncIOScheduler(timezone="UTC"))
    session = _session(run_habit)
    focus.register(session)

    asyncio.run(focus._refresh_job("u1"))
    assert len(session.queue) >= 7

    session.habits.fail_reads = True
    asyncio.run(focus._refresh_job("u1"))
    assert len(session.queue) >= 7

    asyncio.run(focus._refresh_job("unknown"))


def test_rollover_job_resets_completed(run_habit):
    focus = FocusScheduler(AsyncIOScheduler(timezone="UTC"))
    session = _session(run_habit)
    focus.register(session)

    async def scenario():
        await session.refresh()
        done = await session.mark_complete()
        await focus._rollover_job("u1")
        return done

    done = asyncio.run(scenario())
    assert session.state.completed_count == 0
    assert done.id in {r.id for r in session.queue.items}


def test_setup_logging_keeps_scheduler_quiet():
    logger = setup_logging("DEBUG")
    assert logger.name == "habit_engine"
    assert logging.getLogger("apscheduler.scheduler").level == logging.WARNING
