#!/usr/bin/env python3
"""
Streak counter: continuation, gaps, idempotent re-logs and history rebuild
"""

import sys
from datetime import date, datetime, timedelta, timezone

import pytest

from habit_engine.schemas.streak import Streak
from habit_engine.services.streaks import (
    apply_logs,
    calculate_updated_streak,
    earned_badges,
    log_date_for,
    recalculate_streak_from_history,
    validate_streak,
)


def test_first_log_starts_streak():
    streak = calculate_updated_streak(Streak(uid="u1"), date(2024, 1, 10))
    assert streak.current_streak == 1
    assert streak.longest_streak == 1
    assert streak.streak_start_date == date(2024, 1, 10)
    assert streak.last_log_date == date(2024, 1, 10)
    assert streak.total_logs == 1


def test_next_day_extends_streak():
    streak = Streak(uid="u1", current_streak=3, longest_streak=5,
                    last_log_date=date(2024, 1, 10), total_logs=3)
    updated = calculate_updated_streak(streak, date(2024, 1, 11))
    assert updated.current_streak == 4
    assert updated.longest_streak == 5
    assert updated.total_logs == 4
    assert updated.last_log_date == date(2024, 1, 11)


def test_gap_resets_current_but_keeps_longest():
    streak = Streak(uid="u1", current_streak=5, longest_streak=7,
                    last_log_date=date(2024, 1, 5), total_logs=12)
    updated = calculate_updated_streak(streak, date(2024, 1, 10))
    assert updated.current_streak == 1
    assert updated.longest_streak == 7
    assert updated.streak_start_date == date(2024, 1, 10)
    assert updated.total_logs == 13


def test_same_day_relog_is_noop():
    streak = apply_logs(Streak(uid="u1"), [date(2024, 1, 1), date(2024, 1, 2)])
    again = calculate_updated_streak(streak, date(2024, 1, 2))
    assert (again.current_streak, again.longest_streak, again.total_logs) == (2, 2, 2)


def test_out_of_order_log_is_ignored():
    streak = apply_logs(Streak(uid="u1"), [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)])
    updated = calculate_updated_streak(streak, date(2023, 12, 30))
    assert updated == streak


def test_longest_never_decreases():
    """Longest streak is non-decreasing and always covers the current one"""
    start = date(2024, 1, 1)
    offsets = [0, 1, 2, 2, 3, 6, 7, 8, 9, 10, 10, 15, 16, 30, 31, 32, 33, 34, 35]
    streak = Streak(uid="u1")
    previous_longest = 0
    for offset in offsets:
        streak = calculate_updated_streak(streak, start + timedelta(days=offset))
        assert streak.longest_streak >= previous_longest
        assert streak.longest_streak >= streak.current_streak
        previous_longest = streak.longest_streak
    assert streak.current_streak == 6
    assert streak.longest_streak == 6
    assert streak.total_logs == len(set(offsets))


def test_days_since_and_is_active():
    today = date(2024, 3, 15)
    assert Streak(uid="u1").days_since_last_log(today) == sys.maxsize
    assert not Streak(uid="u1").is_active(today)

    logged = Streak(uid="u1", current_streak=1, longest_streak=1, last_log_date=today)
    assert logged.is_active(today)
    assert logged.is_active(today + timedelta(days=1))
    assert not logged.is_active(today + timedelta(days=2))


@pytest.mark.parametrize("current, message", [
    (0, "Start your streak today!"),
    (1, "1 day logged. Keep it up!"),
    (4, "4 days in a row!"),
    (7, "7 day streak! 🔥"),
])
def test_status_message(current, message):
    assert Streak(uid="u1", current_streak=current, longest_streak=current).status_message == message


def test_longest_below_current_is_rejected():
    with pytest.raises(ValueError):
        Streak(uid="u1", current_streak=3, longest_streak=2)


def test_log_date_uses_user_timezone():
    moment = datetime(2024, 3, 15, 23, 30, tzinfo=timezone.utc)
    assert log_date_for(moment, "Asia/Tokyo") == date(2024, 3, 16)
    assert log_date_for(moment, "UTC-5") == date(2024, 3, 15)


def test_recalculate_from_history():
    today = date(2024, 3, 15)
    stored = Streak(uid="u1", current_streak=1, longest_streak=10,
                    last_log_date=date(2024, 3, 1), total_logs=40)
    activity = [today, today - timedelta(days=1), today - timedelta(days=2), today - timedelta(days=5)]

    rebuilt = recalculate_streak_from_history(stored, activity, today)
    assert rebuilt.current_streak == 3
    assert rebuilt.longest_streak == 10
    assert rebuilt.streak_start_date == today - timedelta(days=2)
    assert rebuilt.total_logs == 40


def test_recalculate_without_activity_today():
    today = date(2024, 3, 15)
    stored = Streak(uid="u1", current_streak=4, longest_streak=4, last_log_date=today - timedelta(days=1))
    rebuilt = recalculate_streak_from_history(stored, [today - timedelta(days=1)], today)
    assert rebuilt.current_streak == 0
    assert rebuilt.longest_streak == 4


def test_badges():
    streak = Streak(uid="u1", current_streak=2, longest_streak=8)
    assert [b.id for b in earned_badges(streak)] == ["three_day_hero", "week_warrior"]
    assert [b.id for b in earned_badges(Streak(uid="u1"), scan_count=1)] == ["scan_star"]


def _stored(current=5, last=date(2024, 3, 14), start=date(2024, 3, 10)):
    return Streak(uid="u1", current_streak=current, longest_streak=max(current, 6),
                  last_log_date=last, streak_start_date=start, total_logs=12)


def test_validate_keeps_streak_when_only_yesterday_logged():
    stored = _stored()
    assert validate_streak(stored, date(2024, 3, 15), False, True) is stored


def test_validate_resets_after_missed_day():
    stored = _stored(last=date(2024, 3, 8), start=date(2024, 3, 4))
    checked = validate_streak(stored, date(2024, 3, 15), False, False)

    assert checked.current_streak == 0
    assert checked.streak_start_date is None
    assert checked.last_log_date == date(2024, 3, 8)
    assert checked.longest_streak == 6
    assert checked.total_logs == 12
    assert checked.status_message == "Start your streak today!"
    assert validate_streak(checked, date(2024, 3, 15), False, False) is checked


def test_validate_folds_in_todays_activity():
    today = date(2024, 3, 15)
    continued = validate_streak(_stored(), today, True, True)
    assert continued.current_streak == 6
    assert continued.last_log_date == today
    assert continued.streak_start_date == date(2024, 3, 10)

    after_gap = validate_streak(_stored(last=date(2024, 3, 8)), today, True, False)
    assert after_gap.current_streak == 1
    assert after_gap.streak_start_date == today
    assert after_gap.longest_streak == 6

    already = _stored(last=today)
    assert validate_streak(already, today, True, True) is already
