"""
Circadian-energy profile and per-habit schedule recommendations.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

from habit_engine.config import settings
from habit_engine.schemas.habit import Habit, HabitCategory
from habit_engine.schemas.health import SleepLog
from habit_engine.schemas.schedule import (
    CircadianProfile,
    DayOfWeek,
    EnergyLevel,
    EnvironmentalFactors,
    HabitScheduleRecommendation,
    LocationData,
    SleepSchedule,
    TimeOfDay,
    TimeSlot,
    WeatherData,
)
from habit_engine.utils.timezone_utils import (
    circular_mean_hour,
    ensure_aware,
    hour_of_day,
    local_date,
    to_local,
)

logger = logging.getLogger(__name__)

PEAK_ENERGY = 0.7
FOCUS_ENERGY = 0.6
ALTERNATIVE_ENERGY = 0.5
MAX_ALTERNATIVES = 3

OUTDOOR_KEYWORDS = ("walk", "run", "outdoor", "bike", "hike", "jog")
MEAL_TIMES = (
    ("breakfast", time(7, 30)),
    ("lunch", time(12, 30)),
    ("dinner", time(18, 30)),
)

# Category -> (first hour, last hour) that earns the band bonus.
CATEGORY_BANDS = {
    HabitCategory.fitness: (6, 10),
    HabitCategory.mental_health: (8, 12),
    HabitCategory.sleep: (20, 23),
}


def typical_energy(hour: int) -> float:
    """Population-typical energy curve before any personal sleep data."""
    hour %= 24
    if 6 <= hour <= 9:
        return 0.8
    if 10 <= hour <= 12:
        return 0.7
    if 13 <= hour <= 15:
        return 0.5
    if 16 <= hour <= 18:
        return 0.75
    if 19 <= hour <= 21:
        return 0.6
    return 0.3


def _hour_to_time(hour: float) -> time:
    minutes = int(round(hour * 60)) % (24 * 60)
    return time(minutes // 60, minutes % 60)


def _time_to_hour(t: time) -> float:
    return t.hour + t.minute / 60.0


def build_sleep_schedule(
    sleep_logs: Sequence[SleepLog],
    today: date,
    user_timezone: Optional[str] = None,
    lookback_days: Optional[int] = None,
) -> Optional[SleepSchedule]:
    """Averages the sleep logs that ended within the lookback window; None if there are none."""
    lookback = lookback_days or settings.SLEEP_LOOKBACK_DAYS
    start = today - timedelta(days=lookback - 1)
    recent = []
    for log in sleep_logs:
        if not start <= local_date(log.end_time, user_timezone) <= today:
            continue
        if ensure_aware(log.end_time) <= ensure_aware(log.start_time):
            logger.warning("Skipping sleep log %s: ends before it starts", log.entry_id)
            continue
        recent.append(log)
    if not recent:
        return None

    bed = circular_mean_hour(hour_of_day(log.start_time, user_timezone) for log in recent)
    wake = circular_mean_hour(hour_of_day(log.end_time, user_timezone) for log in recent)
    defaults = SleepSchedule()
    return SleepSchedule(
        average_bedtime=_hour_to_time(bed) if bed is not None else defaults.average_bedtime,
        average_wake_time=_hour_to_time(wake) if wake is not None else defaults.average_wake_time,
        average_duration_hours=sum(log.duration_hours for log in recent) / len(recent),
        sleep_quality=sum(log.quality for log in recent) / len(recent) / 5.0,
    )


def calculate_rhythm_strength(energy_levels: Sequence[EnergyLevel], sleep: SleepSchedule) -> float:
    energy = {e.hour: e.energy for e in energy_levels}
    strength = 0.0
    if any(energy.get(h, 0.0) > PEAK_ENERGY for h in range(6, 11)):
        strength += 0.3
    if any(energy.get(h, 1.0) < 0.4 for h in (22, 23)):
        strength += 0.3
    if 21 <= sleep.average_bedtime.hour <= 23:
        strength += 0.15
    if 6 <= sleep.average_wake_time.hour <= 9:
        strength += 0.15
    if 7.0 <= sleep.average_duration_hours <= 9.0:
        strength += 0.1
    return max(0.0, min(1.0, strength))


def build_circadian_profile(
    sleep_logs: Sequence[SleepLog] = (),
    today: Optional[date] = None,
    user_timezone: Optional[str] = None,
) -> CircadianProfile:
    """
    Typical energy curve shifted by the user's average wake time.

    With no sleep logs in the lookback window the default 22:30 - 07:00 schedule is used
    and the curve is not shifted.
    """
    sleep = None
    if sleep_logs and today is not None:
        sleep = build_sleep_schedule(sleep_logs, today, user_timezone)
    from_logs = sleep is not None
    sleep = sleep or SleepSchedule()

    shift = round(_time_to_hour(sleep.average_wake_time) - 7.0)
    if shift > 12:
        shift -= 24
    levels = [EnergyLevel(hour=h, energy=typical_energy(h - shift)) for h in range(24)]
    peaks = [e.hour for e in levels if e.energy > PEAK_ENERGY]

    return CircadianProfile(
        energy_levels=levels,
        peak_hours=peaks,
        sleep_schedule=sleep,
        rhythm_strength=calculate_rhythm_strength(levels, sleep),
        from_sleep_logs=from_logs,
    )


def _best_hour(profile: CircadianProfile, hours: range) -> int:
    # max() keeps the first of equal values, so ties go to the earlier hour
    return max(hours, key=profile.energy_at)


def find_optimal_time(habit: Habit, profile: CircadianProfile) -> time:
    category = habit.category

    if category in (HabitCategory.fitness, HabitCategory.health):
        morning = [h for h in range(6, 11) if profile.energy_at(h) > PEAK_ENERGY]
        return time(_best_hour(profile, range(6, 11))) if morning else time(8, 0)

    if category in (HabitCategory.mental_health, HabitCategory.learning):
        for h in range(9, 15):
            if profile.energy_at(h) > FOCUS_ENERGY:
                return time(h)
        return time(10, 0)

    if category == HabitCategory.nutrition:
        title = habit.title.lower()
        for meal, at in MEAL_TIMES:
            if meal in title:
                return at
        return time(12, 0)

    if category == HabitCategory.sleep:
        return time(21, 0)

    if profile.peak_hours:
        return time(_best_hour(profile, range(24)))
    return time(9, 0)


def _in_category_band(habit: Habit, hour: int) -> bool:
    band = CATEGORY_BANDS.get(habit.category)
    return band is not None and band[0] <= hour <= band[1]


def _is_outdoor_habit(habit: Habit) -> bool:
    title = habit.title.lower()
    return any(word in title for word in OUTDOOR_KEYWORDS)


def calculate_success_probability(
    habit: Habit,
    at: time,
    profile: CircadianProfile,
    factors: Optional[EnvironmentalFactors] = None,
) -> float:
    probability = 0.5
    probability += (profile.energy_at(at.hour) - 0.5) * 0.3
    probability += (profile.rhythm_strength - 0.5) * 0.2
    if _in_category_band(habit, at.hour):
        probability += 0.1
    if factors and factors.weather and factors.weather.is_outdoor_friendly:
        probability += 0.05
    return max(0.1, min(0.95, probability))


def _reasoning(
    habit: Habit, at: time, profile: CircadianProfile, factors: Optional[EnvironmentalFactors]
) -> list[str]:
    reasons: list[str] = []
    if profile.energy_at(at.hour) > PEAK_ENERGY:
        reasons.append(f"{at.strftime('%H:%M')} falls in one of your peak energy hours")
    if _in_category_band(habit, at.hour):
        reasons.append(f"{habit.category.value.replace('_', ' ')} habits work best at this time of day")
    if factors and factors.weather and factors.weather.is_outdoor_friendly and _is_outdoor_habit(habit):
        reasons.append(f"Weather is good for outdoor activity ({factors.weather.condition})")
    if profile.rhythm_strength > 0.7:
        reasons.append("Your daily rhythm is regular, so this slot is a reliable prediction")
    return reasons


def _alternatives(profile: CircadianProfile, chosen: time) -> list[time]:
    candidates = [
        e for e in profile.energy_levels
        if e.energy > ALTERNATIVE_ENERGY and e.hour != chosen.hour
    ]
    candidates.sort(key=lambda e: (-e.energy, e.hour))
    return [time(e.hour) for e in candidates[:MAX_ALTERNATIVES]]


def recommend_schedule(
    habits: Sequence[Habit],
    profile: CircadianProfile,
    factors: Optional[EnvironmentalFactors] = None,
) -> list[HabitScheduleRecommendation]:
    recommendations = []
    for habit in habits:
        if not habit.is_active:
            continue
        at = find_optimal_time(habit, profile)
        recommendations.append(HabitScheduleRecommendation(
            habit_id=habit.id,
            habit_title=habit.title,
            recommended_time=at,
            success_probability=calculate_success_probability(habit, at, profile, factors),
            reasoning=_reasoning(habit, at, profile, factors),
            alternative_times=_alternatives(profile, at),
        ))
    recommendations.sort(key=lambda r: r.success_probability, reverse=True)
    return recommendations


def time_of_day_for(hour: int) -> TimeOfDay:
    if 5 <= hour < 8:
        return TimeOfDay.EARLY_MORNING
    if 8 <= hour < 12:
        return TimeOfDay.MORNING
    if 12 <= hour < 17:
        return TimeOfDay.AFTERNOON
    if 17 <= hour < 21:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


def build_environmental_factors(
    now: datetime,
    user_timezone: Optional[str] = None,
    weather: Optional[WeatherData] = None,
    location: Optional[LocationData] = None,
) -> EnvironmentalFactors:
    local = to_local(now, user_timezone)
    return EnvironmentalFactors(
        time_of_day=time_of_day_for(local.hour),
        day_of_week=list(DayOfWeek)[local.weekday()],
        weather=weather,
        location=location,
    )


def build_time_slots(
    profile: CircadianProfile,
    recommendations: Sequence[HabitScheduleRecommendation] = (),
) -> list[TimeSlot]:
    """Hourly slots from 06:00 to 22:00; optimal means high energy and nothing booked."""
    slots = []
    for hour in range(6, 23):
        booked = [r.habit_id for r in recommendations if r.recommended_time.hour == hour]
        energy = profile.energy_at(hour)
        slots.append(TimeSlot(
            start=time(hour),
            end=time(hour + 1) if hour < 23 else time(23, 59),
            energy_level=energy,
            is_optimal=energy > PEAK_ENERGY and not booked,
            booked_habit_ids=booked,
        ))
    return slots
