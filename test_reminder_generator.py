#!/usr/bin/env python3
"""
Default candidate generator for Today's Focus
"""

from datetime import datetime, timedelta, timezone

from conftest import NOW, TODAY, at
from habit_engine.schemas.habit import HabitCompletion
from habit_engine.schemas.health import DailyLog, JournalLog, MindfulnessSession, WeightLog
from habit_engine.schemas.reminder import DaySnapshot, ReminderActionType
from habit_engine.services.reminder_generator import DefaultReminderGenerator


def _ids(reminders):
    return [r.id for r in reminders]


def test_morning_candidates(run_habit, weekly_habit):
    snapshot = DaySnapshot(user_id="u1", day=TODAY, habits=[run_habit, weekly_habit])
    reminders = DefaultReminderGenerator().generate(snapshot, NOW)
    ids = _ids(reminders)

    for expected in ("mindfulness_session_2024-03-15", "water_morning_2024-03-15", "breakfast_2024-03-15",
                     "weight_2024-03-15", "supplement_2024-03-15", "habit_run_2024-03-15"):
        assert expected in ids
    assert "habit_clean_2024-03-15" not in ids
    assert len(ids) == len(set(ids))

    ranks = [r.priority.rank for r in reminders]
    assert ranks == sorted(ranks)

    habit_reminder = next(r for r in reminders if r.action_type == ReminderActionType.COMPLETE_HABIT)
    assert habit_reminder.action_data == {"habitId": "run", "habitTitle": "Morning run"}


def test_logged_data_suppresses_candidates(run_habit):
    snapshot = DaySnapshot(
        user_id="u1",
        day=TODAY,
        habits=[run_habit],
        daily_log=DailyLog(uid="u1", date=TODAY, water=600),
        health_logs=[WeightLog(entry_id="w1", timestamp=NOW, weight=70)],
        mindfulness_session=MindfulnessSession(
            session_id="s1", generated_date=TODAY, played_count=1, last_played_at=NOW - timedelta(hours=1),
        ),
        completions=[HabitCompletion(habit_id="run", completed_at=at(TODAY, 6))],
    )
    ids = _ids(DefaultReminderGenerator().generate(snapshot, NOW))
    assert "water_morning_2024-03-15" not in ids
    assert "weight_2024-03-15" not in ids
    assert "mindfulness_session_2024-03-15" not in ids
    # completed habits are still generated; the queue filter drops them
    assert "habit_run_2024-03-15" in ids


def test_evening_candidates():
    evening = datetime(2024, 3, 15, 21, 0, tzinfo=timezone.utc)
    snapshot = DaySnapshot(user_id="u1", day=TODAY)
    ids = _ids(DefaultReminderGenerator().generate(snapshot, evening))
    assert "water_evening_2024-03-15" in ids
    assert "dinner_2024-03-15" in ids
    assert "sleep_2024-03-15" in ids
    assert "journal_2024-03-15" in ids
    assert "breakfast_2024-03-15" not in ids

    journaled = snapshot.model_copy(update={
        "health_logs": [JournalLog(entry_id="j1", timestamp=evening, is_completed=True)],
    })
    assert "journal_2024-03-15" not in _ids(DefaultReminderGenerator().generate(journaled, evening))


def test_local_hour_drives_windows():
    # 09:00 UTC is 18:00 in Tokyo
    snapshot = DaySnapshot(user_id="u1", day=TODAY)
    ids = _ids(DefaultReminderGenerator("Asia/Tokyo").generate(snapshot, NOW))
    assert "dinner_2024-03-15" in ids
    assert "breakfast_2024-03-15" not in ids


def test_ids_stable_across_calls(run_habit):
    snapshot = DaySnapshot(user_id="u1", day=TODAY, habits=[run_habit])
    generator = DefaultReminderGenerator()
    assert _ids(generator.generate(snapshot, NOW)) == _ids(generator.generate(snapshot, NOW + timedelta(minutes=30)))
