"""
Adaptive suggestions, performance insights and difficulty levels.

Suggestions are ranked by expected_improvement * confidence.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from habit_engine.schemas.habit import (
    Habit,
    HabitCategory,
    HabitCompletion,
    HabitCompletionSummary,
    HabitFrequency,
)
from habit_engine.schemas.pattern import HabitPattern, PatternType, TimeRange
from habit_engine.schemas.suggestion import (
    AdaptiveSuggestion,
    DifficultyAdjustment,
    DifficultyLevel,
    InsightType,
    IntelligenceScore,
    PerformanceInsight,
    SuggestionType,
    TrendDirection,
)
from habit_engine.services.pattern_miner import completions_in_window, format_hour
from habit_engine.utils.timezone_utils import (
    circular_hour_distance,
    circular_mean_hour,
    hour_of_day,
    local_date,
)

logger = logging.getLogger(__name__)

OPTIMAL_HOURS = {
    HabitCategory.fitness: 8,
    HabitCategory.mental_health: 7,
    HabitCategory.learning: 10,
}
DEFAULT_OPTIMAL_HOUR = 9

DIFFICULTY_MIN_COMPLETIONS = 7
DIFFICULTY_WINDOW_DAYS = 7
TIMING_MIN_PATTERN_STRENGTH = 0.7
FREQUENCY_MIN_COMPLETIONS = 14
FREQUENCY_WINDOW_DAYS = 14
FREQUENCY_TREND_THRESHOLD = 0.2
STACKING_MIN_PATTERN_STRENGTH = 0.6


def optimal_hour_for(habit: Habit) -> int:
    return OPTIMAL_HOURS.get(habit.category, DEFAULT_OPTIMAL_HOUR)


def completion_days(completions: Iterable[HabitCompletion], user_timezone: Optional[str] = None) -> set[date]:
    return {local_date(c.completed_at, user_timezone) for c in completions}


def summarize_completions(
    completions: Iterable[HabitCompletion], user_timezone: Optional[str] = None
) -> dict[str, HabitCompletionSummary]:
    rows: dict[str, list[HabitCompletion]] = {}
    for c in completions:
        rows.setdefault(c.habit_id, []).append(c)
    summaries = {}
    for habit_id, own in rows.items():
        days = completion_days(own, user_timezone)
        summaries[habit_id] = HabitCompletionSummary(
            habit_id=habit_id,
            total_completions=len(own),
            distinct_days=len(days),
            last_completed_on=max(days),
        )
    return summaries


def completion_rate(days: set[date], end: date, window_days: int) -> float:
    """Share of the `window_days` calendar days ending at `end` with a completion."""
    start = end - timedelta(days=window_days - 1)
    hits = sum(1 for d in days if start <= d <= end)
    return hits / window_days


def rank_suggestions(suggestions: Iterable[AdaptiveSuggestion]) -> list[AdaptiveSuggestion]:
    return sorted(suggestions, key=lambda s: s.score, reverse=True)


def _pattern_for(patterns: Sequence[HabitPattern], habit_id: str, pattern_type: PatternType) -> Optional[HabitPattern]:
    matching = [p for p in patterns if p.habit_id == habit_id and p.pattern_type == pattern_type]
    return max(matching, key=lambda p: p.strength, default=None)


def suggest_difficulty(
    habit: Habit, completions: Sequence[HabitCompletion], today: date, user_timezone: Optional[str] = None
) -> Optional[AdaptiveSuggestion]:
    if len(completions) < DIFFICULTY_MIN_COMPLETIONS:
        return None

    rate = completion_rate(completion_days(completions, user_timezone), today, DIFFICULTY_WINDOW_DAYS)
    target = habit.target_value

    if rate >= 0.8 and target > 1:
        new_target = target + 1
        return AdaptiveSuggestion(
            habit_id=habit.id,
            suggestion_type=SuggestionType.DIFFICULTY_ADJUSTMENT,
            title="Increase challenge",
            description=f"Raise the target for {habit.title} from {target:g} to {new_target:g} {habit.unit}.",
            rationale=f"You completed it on {rate:.0%} of the last {DIFFICULTY_WINDOW_DAYS} days.",
            expected_improvement=0.15,
            confidence=0.85,
            implementation=f"Set the new target to {new_target:g} {habit.unit} starting tomorrow.",
            risks=["May feel harder at first", "Could break the current streak"],
        )

    if rate <= 0.3:
        new_target = max(1.0, target - 1)
        if new_target == target:
            return None
        return AdaptiveSuggestion(
            habit_id=habit.id,
            suggestion_type=SuggestionType.DIFFICULTY_ADJUSTMENT,
            title="Make it easier",
            description=f"Lower the target for {habit.title} from {target:g} to {new_target:g} {habit.unit}.",
            rationale=f"Only {rate:.0%} of the last {DIFFICULTY_WINDOW_DAYS} days had a completion.",
            expected_improvement=0.25,
            confidence=0.75,
            implementation=f"Aim for {new_target:g} {habit.unit} until it feels automatic, then step back up.",
            risks=["Progress may feel slower"],
        )

    return None


def suggest_timing(
    habit: Habit, patterns: Sequence[HabitPattern]
) -> Optional[AdaptiveSuggestion]:
    pattern = _pattern_for(patterns, habit.id, PatternType.TIMING)
    if pattern is None or pattern.strength < TIMING_MIN_PATTERN_STRENGTH:
        return None

    mean_hour = circular_mean_hour(p.value for p in pattern.data_points)
    if mean_hour is None:
        return None

    current = round(mean_hour) % 24
    optimal = optimal_hour_for(habit)
    if circular_hour_distance(current, optimal) <= 1:
        return None

    return AdaptiveSuggestion(
        habit_id=habit.id,
        suggestion_type=SuggestionType.TIMING_OPTIMIZATION,
        title="Shift to a better time",
        description=f"Move {habit.title} from around {format_hour(mean_hour)} to {optimal:02d}:00.",
        rationale=f"{habit.category.value} habits tend to stick best around {optimal:02d}:00.",
        expected_improvement=0.20,
        confidence=pattern.strength,
        implementation=f"Set a reminder for {optimal:02d}:00 and move the habit gradually, 30 minutes at a time.",
        risks=["Your current time is already a routine", "New slot may clash with other plans"],
    )


def suggest_frequency(
    habit: Habit, completions: Sequence[HabitCompletion], today: date, user_timezone: Optional[str] = None
) -> Optional[AdaptiveSuggestion]:
    if len(completions) < FREQUENCY_MIN_COMPLETIONS:
        return None

    days = completion_days(completions, user_timezone)
    recent_start = today - timedelta(days=FREQUENCY_WINDOW_DAYS - 1)
    recent_rate = completion_rate(days, today, FREQUENCY_WINDOW_DAYS)

    earlier = [d for d in days if d < recent_start]
    if not earlier:
        return None
    span = (recent_start - min(earlier)).days
    previous_rate = len(earlier) / max(1, span)
    trend = recent_rate - previous_rate

    if trend > FREQUENCY_TREND_THRESHOLD and habit.frequency == HabitFrequency.weekly:
        return AdaptiveSuggestion(
            habit_id=habit.id,
            suggestion_type=SuggestionType.FREQUENCY_CHANGE,
            title="Go daily",
            description=f"You are doing {habit.title} far more often than weekly. Make it a daily habit.",
            rationale=f"Completion rate rose from {previous_rate:.0%} to {recent_rate:.0%} over the last two weeks.",
            expected_improvement=0.30,
            confidence=0.70,
            implementation="Switch the frequency to daily and keep the target the same.",
            risks=["Daily frequency can feel demanding on busy days"],
        )

    if trend < -FREQUENCY_TREND_THRESHOLD and habit.frequency == HabitFrequency.daily:
        return AdaptiveSuggestion(
            habit_id=habit.id,
            suggestion_type=SuggestionType.FREQUENCY_CHANGE,
            title="Reduce frequency",
            description=f"Daily {habit.title} is slipping. A few set days per week may be easier to keep.",
            rationale=f"Completion rate dropped from {previous_rate:.0%} to {recent_rate:.0%} over the last two weeks.",
            expected_improvement=0.20,
            confidence=0.65,
            implementation="Pick 3-4 fixed days per week and go back to daily once they stick.",
            risks=["Fewer repetitions can slow habit formation"],
        )

    return None


def suggest_stacking(habit: Habit, patterns: Sequence[HabitPattern]) -> Optional[AdaptiveSuggestion]:
    pattern = _pattern_for(patterns, habit.id, PatternType.SEQUENTIAL)
    if pattern is None or pattern.strength < STACKING_MIN_PATTERN_STRENGTH:
        return None

    return AdaptiveSuggestion(
        habit_id=habit.id,
        suggestion_type=SuggestionType.HABIT_STACKING,
        title="Stack it on a habit you already do",
        description=pattern.description,
        rationale=pattern.insight,
        expected_improvement=0.35,
        confidence=pattern.strength,
        implementation=pattern.actionable_advice,
        risks=["If the anchor habit is skipped, this one may be skipped too"],
    )


def generate_suggestions(
    habits: Sequence[Habit],
    completions: Sequence[HabitCompletion],
    patterns: Sequence[HabitPattern],
    today: date,
    user_timezone: Optional[str] = None,
) -> list[AdaptiveSuggestion]:
    """At most one suggestion per rule family per active habit, best first."""
    suggestions: list[AdaptiveSuggestion] = []
    for habit in habits:
        if not habit.is_active:
            continue
        own = [c for c in completions if c.habit_id == habit.id]
        for suggestion in (
            suggest_difficulty(habit, own, today, user_timezone),
            suggest_timing(habit, patterns),
            suggest_frequency(habit, own, today, user_timezone),
            suggest_stacking(habit, patterns),
        ):
            if suggestion is not None:
                suggestions.append(suggestion)

    logger.debug("Generated %d suggestions for %d habits", len(suggestions), len(habits))
    return rank_suggestions(suggestions)


def calculate_trend(days: set[date], today: date, window_days: int = 7) -> TrendDirection:
    """Compares the last `window_days` with the same span just before it."""
    recent = completion_rate(days, today, window_days)
    previous = completion_rate(days, today - timedelta(days=window_days), window_days)
    if recent > previous * 1.2 and recent > previous:
        return TrendDirection.IMPROVING
    if recent < previous * 0.8:
        return TrendDirection.DECLINING
    return TrendDirection.STABLE


def _current_run(days: set[date], today: date) -> int:
    run = 0
    cursor = today
    while cursor in days:
        run += 1
        cursor -= timedelta(days=1)
    return run


def _longest_run(days: set[date]) -> int:
    longest = current = 0
    previous: Optional[date] = None
    for d in sorted(days):
        current = current + 1 if previous is not None and (d - previous).days == 1 else 1
        longest = max(longest, current)
        previous = d
    return longest


def analyze_success_rate(
    habit: Habit, completions: Sequence[HabitCompletion], today: date,
    time_range: TimeRange, user_timezone: Optional[str] = None,
) -> Optional[PerformanceInsight]:
    if len(completions) < 7:
        return None

    days = completion_days(completions, user_timezone)
    rate = completion_rate(days, today, time_range.days)
    if rate >= 0.8:
        title, recommendation = "Excellent Success Rate", "Keep up the excellent work! Consider increasing difficulty."
    elif rate >= 0.6:
        title, recommendation = "Good Success Rate", "Good progress. Focus on maintaining consistency."
    else:
        title, recommendation = "Needs Improvement", "Consider breaking the habit into smaller steps or adjusting timing."

    return PerformanceInsight(
        habit_id=habit.id,
        insight_type=InsightType.SUCCESS_RATE,
        title=title,
        description=f"{habit.title} shows {rate:.1%} completion rate over the last {time_range.days} days",
        magnitude=rate,
        trend=calculate_trend(days, today),
        recommendation=recommendation,
    )


def analyze_streak(
    habit: Habit, completions: Sequence[HabitCompletion], today: date, user_timezone: Optional[str] = None
) -> Optional[PerformanceInsight]:
    if len(completions) < 5:
        return None

    days = completion_days(completions, user_timezone)
    current = _current_run(days, today)
    longest = _longest_run(days)
    ratio = current / longest if longest else 0.0

    if ratio > 0.8:
        trend, recommendation = TrendDirection.IMPROVING, "Outstanding streak maintenance!"
    elif ratio > 0.5:
        trend, recommendation = TrendDirection.STABLE, "Good streak performance. Keep building!"
    else:
        trend = TrendDirection.DECLINING if ratio < 0.3 else TrendDirection.STABLE
        recommendation = "Focus on rebuilding momentum. Start small and consistent."

    return PerformanceInsight(
        habit_id=habit.id,
        insight_type=InsightType.STREAK_ANALYSIS,
        title="Streak Performance",
        description=f"Current streak: {current} days, Best: {longest} days",
        magnitude=ratio,
        trend=trend,
        recommendation=recommendation,
    )


def analyze_timing_optimality(
    habit: Habit, completions: Sequence[HabitCompletion], user_timezone: Optional[str] = None
) -> Optional[PerformanceInsight]:
    if len(completions) < 5:
        return None

    mean_hour = circular_mean_hour(hour_of_day(c.completed_at, user_timezone) for c in completions)
    if mean_hour is None:
        return None

    optimal = optimal_hour_for(habit)
    optimality = 1.0 / (1.0 + circular_hour_distance(mean_hour, optimal) / 24.0)
    if optimality > 0.8:
        recommendation = "Excellent timing alignment with optimal performance windows!"
    else:
        recommendation = f"Consider adjusting to {optimal:02d}:00 for potentially better results."

    return PerformanceInsight(
        habit_id=habit.id,
        insight_type=InsightType.TIMING_OPTIMALITY,
        title="Timing Analysis",
        description=f"Average completion time: {format_hour(mean_hour)}",
        magnitude=optimality,
        recommendation=recommendation,
    )


def generate_insights(
    habits: Sequence[Habit],
    completions: Sequence[HabitCompletion],
    today: date,
    *,
    time_range: TimeRange = TimeRange.MONTH,
    user_timezone: Optional[str] = None,
) -> list[PerformanceInsight]:
    in_window = completions_in_window(completions, today, time_range, user_timezone)
    insights: list[PerformanceInsight] = []
    for habit in habits:
        if not habit.is_active:
            continue
        own = [c for c in in_window if c.habit_id == habit.id]
        for insight in (
            analyze_success_rate(habit, own, today, time_range, user_timezone),
            analyze_streak(habit, own, today, user_timezone),
            analyze_timing_optimality(habit, own, user_timezone),
        ):
            if insight is not None:
                insights.append(insight)
    insights.sort(key=lambda i: i.magnitude, reverse=True)
    return insights


_DIFFICULTY_ORDER = [DifficultyLevel.EASY, DifficultyLevel.MEDIUM, DifficultyLevel.HARD]


def difficulty_of(habit: Habit) -> DifficultyLevel:
    if habit.target_value > 5:
        return DifficultyLevel.HARD
    if habit.target_value > 2:
        return DifficultyLevel.MEDIUM
    return DifficultyLevel.EASY


def suggest_difficulty_adjustments(
    habits: Sequence[Habit],
    completions: Sequence[HabitCompletion],
    today: date,
    user_timezone: Optional[str] = None,
) -> list[DifficultyAdjustment]:
    adjustments: list[DifficultyAdjustment] = []
    for habit in habits:
        if not habit.is_active:
            continue
        own = [c for c in completions if c.habit_id == habit.id]
        if len(own) < DIFFICULTY_MIN_COMPLETIONS:
            continue

        success = completion_rate(completion_days(own, user_timezone), today, DIFFICULTY_WINDOW_DAYS)
        if success >= 0.8:
            recommended = DifficultyLevel.HARD
        elif success >= 0.6:
            recommended = DifficultyLevel.MEDIUM
        else:
            recommended = DifficultyLevel.EASY

        current = difficulty_of(habit)
        if current == recommended:
            continue

        if _DIFFICULTY_ORDER.index(recommended) > _DIFFICULTY_ORDER.index(current):
            reason = "You're excelling consistently. Ready for more challenge."
        elif success < 0.4:
            reason = "Recent struggles suggest starting smaller may help."
        else:
            reason = "Performance data suggests this difficulty level."

        adjustments.append(DifficultyAdjustment(
            habit_id=habit.id,
            current_difficulty=current,
            suggested_difficulty=recommended,
            reason=reason,
            confidence=0.75,
        ))
    return adjustments


def calculate_intelligence_score(
    habits: Sequence[Habit],
    completions: Sequence[HabitCompletion],
    patterns: Sequence[HabitPattern],
    suggestions: Sequence[AdaptiveSuggestion],
    insights: Sequence[PerformanceInsight],
) -> IntelligenceScore:
    if len(patterns) >= 3:
        pattern_score = sum(p.strength for p in patterns) / len(patterns) * 25
    else:
        pattern_score = len(patterns) * 8.0

    adaptive_score = min(len(suggestions) * 3.0, 25.0)

    if habits:
        summaries = summarize_completions(completions)
        established = sum(
            1 for h in habits if h.id in summaries and summaries[h.id].total_completions >= 5
        )
        predictive_score = established / len(habits) * 25
    else:
        predictive_score = 0.0

    insight_score = min(len(insights) * 2.5, 25.0)

    return IntelligenceScore(
        overall=float(round(pattern_score + adaptive_score + predictive_score + insight_score)),
        pattern_recognition=pattern_score,
        adaptive_learning=adaptive_score,
        predictive_accuracy=predictive_score,
        insight_quality=insight_score,
    )
