"""
Behavioral pattern mining over a habit's completion history.

Every detector follows the same policy: not enough evidence means no pattern.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from habit_engine.schemas.habit import Habit, HabitCompletion, HabitFrequency
from habit_engine.schemas.pattern import HabitPattern, PatternDataPoint, PatternType, TimeRange
from habit_engine.utils.timezone_utils import (
    circular_hour_distance,
    circular_mean_hour,
    hour_of_day,
    local_date,
)

logger = logging.getLogger(__name__)

CONSISTENCY_MIN_COMPLETIONS = 7
CONSISTENCY_MIN_STRENGTH = 0.8
TIMING_MIN_COMPLETIONS = 5
TIMING_MIN_VALID_TIMES = 3
TIMING_MIN_STRENGTH = 0.6
WEEKDAY_MIN_COMPLETIONS = 10
WEEKDAY_MIN_DIFFERENCE = 0.2
SEQUENTIAL_MIN_COMPLETIONS = 5
SEQUENTIAL_MIN_SHARE = 0.6


def format_hour(hour: float) -> str:
    total_minutes = int(round(hour * 60)) % (24 * 60)
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def window_start(today: date, time_range: TimeRange) -> date:
    return today - timedelta(days=time_range.days - 1)


def completions_in_window(
    completions: Iterable[HabitCompletion],
    today: date,
    time_range: TimeRange,
    user_timezone: Optional[str] = None,
) -> list[HabitCompletion]:
    start = window_start(today, time_range)
    return [c for c in completions if start <= local_date(c.completed_at, user_timezone) <= today]


def completion_dates(completions: Iterable[HabitCompletion], user_timezone: Optional[str] = None) -> list[date]:
    """Distinct local completion dates, sorted."""
    return sorted({local_date(c.completed_at, user_timezone) for c in completions})


def detect_consistency(
    habit: Habit, completions: Sequence[HabitCompletion], user_timezone: Optional[str] = None
) -> Optional[HabitPattern]:
    if len(completions) < CONSISTENCY_MIN_COMPLETIONS:
        return None

    dates = completion_dates(completions, user_timezone)
    gaps = [(b - a).days for a, b in zip(dates, dates[1:])]
    if not gaps:
        return None

    avg_gap = sum(gaps) / len(gaps)
    ideal_gap = 7.0 if habit.frequency == HabitFrequency.weekly else 1.0
    strength = 1.0 / (1.0 + abs(avg_gap - ideal_gap))
    if strength <= CONSISTENCY_MIN_STRENGTH:
        return None

    if strength > 0.9:
        tier = "Exceptionally consistent"
        advice = f"Your rhythm for {habit.title} is locked in. Consider raising the target a little."
    else:
        tier = "Very consistent"
        advice = f"Keep the same cue and time for {habit.title} to protect this rhythm."

    return HabitPattern(
        habit_id=habit.id,
        pattern_type=PatternType.CONSISTENCY,
        strength=strength,
        description=f"{tier} with {habit.title}",
        insight=f"You complete {habit.title} every {avg_gap:.1f} days on average (target {ideal_gap:.0f}).",
        actionable_advice=advice,
        data_points=[PatternDataPoint(date=d, value=1.0, context="completed") for d in dates],
    )


def detect_timing(
    habit: Habit, completions: Sequence[HabitCompletion], user_timezone: Optional[str] = None
) -> Optional[HabitPattern]:
    if len(completions) < TIMING_MIN_COMPLETIONS:
        return None

    points = [
        (local_date(c.completed_at, user_timezone), hour_of_day(c.completed_at, user_timezone))
        for c in completions
    ]
    if len(points) < TIMING_MIN_VALID_TIMES:
        return None

    mean_hour = circular_mean_hour(h for _, h in points)
    if mean_hour is None:
        return None

    deviation = sum(circular_hour_distance(h, mean_hour) for _, h in points) / len(points)
    strength = 1.0 / (1.0 + deviation)
    if strength < TIMING_MIN_STRENGTH:
        return None

    at = format_hour(mean_hour)
    if strength > 0.8:
        advice = f"Schedule {habit.title} at {at} every day to make it automatic."
    else:
        advice = f"Try doing {habit.title} closer to {at} to build a steadier routine."

    return HabitPattern(
        habit_id=habit.id,
        pattern_type=PatternType.TIMING,
        strength=strength,
        description=f"Usually completed around {at}",
        insight=f"Completion times stay within about {deviation:.1f} hours of {at}.",
        actionable_advice=advice,
        data_points=[PatternDataPoint(date=d, value=h, context="hour_of_day") for d, h in points],
    )


def detect_weekday_weekend(
    habit: Habit, completions: Sequence[HabitCompletion], user_timezone: Optional[str] = None
) -> Optional[HabitPattern]:
    total = len(completions)
    if total < WEEKDAY_MIN_COMPLETIONS:
        return None

    dates = [local_date(c.completed_at, user_timezone) for c in completions]
    weekday = sum(1 for d in dates if d.weekday() < 5)
    weekend = total - weekday
    weekday_ratio = weekday / total
    weekend_ratio = weekend / total
    difference = abs(weekday_ratio - weekend_ratio)
    if difference < WEEKDAY_MIN_DIFFERENCE:
        return None

    if weekday_ratio > weekend_ratio:
        description = f"{habit.title} happens mostly on weekdays"
        advice = "Plan a specific weekend time slot so the habit survives the change of routine."
    else:
        description = f"{habit.title} happens mostly on weekends"
        advice = "Attach the habit to something you already do on workdays."

    return HabitPattern(
        habit_id=habit.id,
        pattern_type=PatternType.WEEKDAY_WEEKEND,
        strength=min(1.0, difference),
        description=description,
        insight=f"{weekday_ratio:.0%} of completions fall on weekdays, {weekend_ratio:.0%} on weekends.",
        actionable_advice=advice,
        data_points=[
            PatternDataPoint(date=d, value=1.0, context="weekday" if d.weekday() < 5 else "weekend")
            for d in dates
        ],
    )


def detect_sequential(
    habit: Habit,
    completions: Sequence[HabitCompletion],
    other_completions: Sequence[HabitCompletion],
    habits: Sequence[Habit] = (),
    user_timezone: Optional[str] = None,
) -> Optional[HabitPattern]:
    if len(completions) < SEQUENTIAL_MIN_COMPLETIONS:
        return None

    anchor_days = set(completion_dates(completions, user_timezone))
    days_by_habit: dict[str, set[date]] = defaultdict(set)
    for c in other_completions:
        if c.habit_id == habit.id:
            continue
        d = local_date(c.completed_at, user_timezone)
        if d in anchor_days:
            days_by_habit[c.habit_id].add(d)

    candidates = [
        (len(days), habit_id)
        for habit_id, days in days_by_habit.items()
        if len(days) >= SEQUENTIAL_MIN_SHARE * len(anchor_days)
    ]
    if not candidates:
        return None

    count, other_id = min(candidates, key=lambda item: (-item[0], item[1]))
    share = count / len(anchor_days)
    titles = {h.id: h.title for h in habits}
    other_title = titles.get(other_id, other_id)

    return HabitPattern(
        habit_id=habit.id,
        pattern_type=PatternType.SEQUENTIAL,
        strength=min(1.0, share),
        description=f"{habit.title} is often done on the same day as {other_title}",
        insight=f"{other_title} was also completed on {share:.0%} of the days you did {habit.title}.",
        actionable_advice=(
            f"Consider habit stacking: Use {other_title} as a cue to do {habit.title} right after it."
        ),
        data_points=[
            PatternDataPoint(date=d, value=1.0, context=other_id)
            for d in sorted(days_by_habit[other_id])
        ],
    )


def mine_patterns(
    habit: Habit,
    completions: Sequence[HabitCompletion],
    today: date,
    *,
    habits: Sequence[Habit] = (),
    time_range: TimeRange = TimeRange.MONTH,
    user_timezone: Optional[str] = None,
) -> list[HabitPattern]:
    """
    Runs every detector for one habit.

    `completions` is the user's full log (all habits); rows outside the window
    are dropped here. Result is sorted by strength, strongest first.
    """
    in_window = completions_in_window(completions, today, time_range, user_timezone)
    own = [c for c in in_window if c.habit_id == habit.id]

    found = [
        detect_consistency(habit, own, user_timezone),
        detect_timing(habit, own, user_timezone),
        detect_weekday_weekend(habit, own, user_timezone),
        detect_sequential(habit, own, in_window, habits, user_timezone),
    ]
    patterns = [p for p in found if p is not None]
    patterns.sort(key=lambda p: p.strength, reverse=True)
    return patterns


def mine_all_patterns(
    habits: Sequence[Habit],
    completions: Sequence[HabitCompletion],
    today: date,
    *,
    time_range: TimeRange = TimeRange.MONTH,
    user_timezone: Optional[str] = None,
) -> list[HabitPattern]:
    patterns: list[HabitPattern] = []
    for habit in habits:
        if not habit.is_active:
            continue
        patterns.extend(
            mine_patterns(habit, completions, today, habits=habits,
                          time_range=time_range, user_timezone=user_timezone)
        )
    patterns.sort(key=lambda p: p.strength, reverse=True)
    logger.debug("Mined %d patterns for %d habits", len(patterns), len(habits))
    return patterns
