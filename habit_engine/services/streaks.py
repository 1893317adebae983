from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from habit_engine.schemas.streak import Badge, Streak
from habit_engine.utils.timezone_utils import days_between, local_date

logger = logging.getLogger(__name__)

HISTORY_LOOKBACK_DAYS = 365

BADGES = (
    (3, Badge(id="three_day_hero", title="3-Day Hero", description="Logged 3 days in a row", icon="🥉")),
    (7, Badge(id="week_warrior", title="Week Warrior", description="Logged 7 days in a row", icon="🏆")),
)
SCAN_STAR = Badge(id="scan_star", title="Scan Star", description="Logged your first scan", icon="⭐")


def log_date_for(moment: datetime, user_timezone: Optional[str] = None) -> date:
    """Calendar date a log counts towards, in the user's local zone."""
    return local_date(moment, user_timezone)


def calculate_updated_streak(streak: Streak, log_date: date) -> Streak:
    """
    Applies one log to the streak.

    - first log starts a 1-day streak
    - same day again changes nothing
    - the day after the last log extends the streak
    - a gap of 2+ days restarts at 1, longest is kept
    - a date before the last log is ignored
    """
    if streak.last_log_date is None:
        return streak.model_copy(update={
            "current_streak": 1,
            "longest_streak": max(streak.longest_streak, 1),
            "last_log_date": log_date,
            "streak_start_date": log_date,
            "total_logs": streak.total_logs + 1,
        })

    gap = days_between(streak.last_log_date, log_date)

    if gap == 0:
        return streak

    if gap < 0:
        logger.warning(
            "Ignoring out-of-order log for %s: %s is before last log %s",
            streak.uid, log_date, streak.last_log_date,
        )
        return streak

    if gap == 1:
        current = streak.current_streak + 1
        return streak.model_copy(update={
            "current_streak": current,
            "longest_streak": max(streak.longest_streak, current),
            "last_log_date": log_date,
            "streak_start_date": streak.streak_start_date or streak.last_log_date,
            "total_logs": streak.total_logs + 1,
        })

    return streak.model_copy(update={
        "current_streak": 1,
        "longest_streak": max(streak.longest_streak, 1),
        "last_log_date": log_date,
        "streak_start_date": log_date,
        "total_logs": streak.total_logs + 1,
    })


def apply_logs(streak: Streak, log_dates: Iterable[date]) -> Streak:
    for d in log_dates:
        streak = calculate_updated_streak(streak, d)
    return streak


def validate_streak(
    streak: Streak,
    today: date,
    has_activity_today: bool,
    has_activity_yesterday: bool,
) -> Streak:
    """
    Checks a stored streak against recent activity when it is read.

    Activity yesterday but not yet today keeps the streak, since the user can
    still log today. No activity on either day drops current_streak to 0 and
    clears the start date; last_log_date is kept. Activity today that the stored
    streak has not seen yet is folded in as a log for today.
    """
    if not has_activity_today:
        if has_activity_yesterday:
            return streak
        if streak.current_streak == 0 and streak.streak_start_date is None:
            return streak
        logger.info(
            "Resetting streak for %s from %d to 0, last log %s",
            streak.uid, streak.current_streak, streak.last_log_date,
        )
        return streak.model_copy(update={"current_streak": 0, "streak_start_date": None})

    if streak.last_log_date is not None and streak.last_log_date >= today:
        return streak

    if streak.last_log_date is not None and days_between(streak.last_log_date, today) == 1:
        current = streak.current_streak + 1
        start = streak.streak_start_date or today - timedelta(days=current - 1)
    else:
        current = 1
        start = today
    return streak.model_copy(update={
        "current_streak": current,
        "longest_streak": max(streak.longest_streak, current),
        "last_log_date": today,
        "streak_start_date": start,
    })


def recalculate_streak_from_history(streak: Streak, activity_dates: Iterable[date], today: date) -> Streak:
    """
    Rebuilds the current run from raw activity days, walking back from today.

    The run is 0 when today has no activity. total_logs is left as stored.
    """
    days = set(activity_dates)
    current = 0
    cursor = today
    while cursor in days and current < HISTORY_LOOKBACK_DAYS:
        current += 1
        cursor -= timedelta(days=1)

    if current == 0:
        return streak.model_copy(update={"current_streak": 0})

    return streak.model_copy(update={
        "current_streak": current,
        "longest_streak": max(streak.longest_streak, current),
        "last_log_date": today,
        "streak_start_date": today - timedelta(days=current - 1),
    })


def earned_badges(streak: Streak, scan_count: int = 0) -> list[Badge]:
    badges = [badge for threshold, badge in BADGES if streak.longest_streak >= threshold]
    if scan_count > 0:
        badges.append(SCAN_STAR)
    return badges
