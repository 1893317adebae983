from .habit import Habit, HabitCategory, HabitCompletion, HabitCompletionSummary, HabitFrequency
from .health import (
    DailyLog, HealthLog, JournalLog, MealLog, MindfulnessSession,
    SleepLog, SupplementLog, WaterLog, WeightLog, WorkoutLog,
)
from .streak import Badge, Streak
from .pattern import HabitPattern, PatternDataPoint, PatternType, TimeRange
from .suggestion import (
    AdaptiveSuggestion, DifficultyAdjustment, DifficultyLevel, InsightType,
    IntelligenceScore, PerformanceInsight, SuggestionType, TrendDirection,
)
from .schedule import (
    CircadianProfile, DayOfWeek, EnergyLevel, EnvironmentalFactors,
    HabitScheduleRecommendation, LocationData, LocationType, SleepSchedule,
    TimeOfDay, TimeSlot, WeatherData,
)
from .reminder import DaySnapshot, FocusState, Reminder, ReminderActionType, ReminderPriority, ReminderType

__all__ = [
    "Habit",
    "HabitCategory",
    "HabitCompletion",
    "HabitCompletionSummary",
    "HabitFrequency",
    "DailyLog",
    "HealthLog",
    "JournalLog",
    "MealLog",
    "MindfulnessSession",
    "SleepLog",
    "SupplementLog",
    "WaterLog",
    "WeightLog",
    "WorkoutLog",
    "Badge",
    "Streak",
    "HabitPattern",
    "PatternDataPoint",
    "PatternType",
    "TimeRange",
    "AdaptiveSuggestion",
    "DifficultyAdjustment",
    "DifficultyLevel",
    "InsightType",
    "IntelligenceScore",
    "PerformanceInsight",
    "SuggestionType",
    "TrendDirection",
    "CircadianProfile",
    "DayOfWeek",
    "EnergyLevel",
    "EnvironmentalFactors",
    "HabitScheduleRecommendation",
    "LocationData",
    "LocationType",
    "SleepSchedule",
    "TimeOfDay",
    "TimeSlot",
    "WeatherData",
    "DaySnapshot",
    "FocusState",
    "Reminder",
    "ReminderActionType",
    "ReminderPriority",
    "ReminderType",
]
