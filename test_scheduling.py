#!/usr/bin/env python3
"""
Circadian profile, optimal times and success probability
"""

from datetime import datetime, time, timezone

import pytest

from conftest import TODAY, at, days_ago
from habit_engine.schemas.habit import Habit, HabitCategory
from habit_engine.schemas.health import SleepLog
from habit_engine.schemas.schedule import (
    DayOfWeek,
    EnvironmentalFactors,
    TimeOfDay,
    WeatherData,
)
from habit_engine.services.scheduling import (
    build_circadian_profile,
    build_environmental_factors,
    build_time_slots,
    calculate_success_probability,
    find_optimal_time,
    recommend_schedule,
    typical_energy,
)


def _sleep(n, bed_hour, wake_hour, quality=4):
    start_day = days_ago(n + 1) if bed_hour >= 12 else days_ago(n)
    return SleepLog(
        entry_id=f"s{n}",
        timestamp=at(days_ago(n), wake_hour),
        start_time=at(start_day, bed_hour),
        end_time=at(days_ago(n), wake_hour),
        quality=quality,
    )


def test_typical_energy_curve():
    assert typical_energy(7) == 0.8
    assert typical_energy(11) == 0.7
    assert typical_energy(14) == 0.5
    assert typical_energy(17) == 0.75
    assert typical_energy(20) == 0.6
    assert typical_energy(2) == 0.3
    assert typical_energy(23) == 0.3


def test_default_profile():
    profile = build_circadian_profile()
    assert not profile.from_sleep_logs
    assert profile.sleep_schedule.average_bedtime == time(22, 30)
    assert profile.sleep_schedule.average_wake_time == time(7, 0)
    assert profile.peak_hours == [6, 7, 8, 9, 16, 17, 18]
    assert profile.rhythm_strength == pytest.approx(1.0)


def test_profile_from_sleep_logs_shifts_curve():
    logs = [_sleep(n, 23, 6) for n in range(3)]
    profile = build_circadian_profile(logs, TODAY, "UTC")

    assert profile.from_sleep_logs
    assert profile.sleep_schedule.average_wake_time == time(6, 0)
    assert profile.sleep_schedule.average_bedtime == time(23, 0)
    assert profile.sleep_schedule.average_duration_hours == pytest.approx(7.0)
    assert profile.sleep_schedule.sleep_quality == pytest.approx(0.8)
    assert profile.energy_at(5) == 0.8
    assert 5 in profile.peak_hours


def test_bedtime_average_wraps_midnight():
    logs = [_sleep(0, 23, 7), _sleep(1, 1, 9)]
    profile = build_circadian_profile(logs, TODAY, "UTC")
    assert profile.sleep_schedule.average_bedtime == time(0, 0)
    # bedtime outside 21-23 loses that bonus
    assert profile.rhythm_strength == pytest.approx(0.85)


def test_old_sleep_logs_are_ignored():
    profile = build_circadian_profile([_sleep(40, 23, 6)], TODAY, "UTC")
    assert not profile.from_sleep_logs


@pytest.mark.parametrize("habit, expected", [
    (Habit(id="1", title="Run", category=HabitCategory.fitness), time(6, 0)),
    (Habit(id="2", title="Vitamins", category=HabitCategory.health), time(6, 0)),
    (Habit(id="3", title="Study", category=HabitCategory.learning), time(9, 0)),
    (Habit(id="4", title="Healthy breakfast", category=HabitCategory.nutrition), time(7, 30)),
    (Habit(id="5", title="Dinner prep", category=HabitCategory.nutrition), time(18, 30)),
    (Habit(id="6", title="Eat veggies", category=HabitCategory.nutrition), time(12, 0)),
    (Habit(id="7", title="Wind down", category=HabitCategory.sleep), time(21, 0)),
    (Habit(id="8", title="Inbox zero", category=HabitCategory.productivity), time(6, 0)),
])
def test_find_optimal_time(habit, expected):
    assert find_optimal_time(habit, build_circadian_profile()) == expected


def test_success_probability_components():
    profile = build_circadian_profile()
    run = Habit(id="1", title="Morning walk", category=HabitCategory.fitness)

    assert calculate_success_probability(run, time(6, 0), profile) == pytest.approx(0.79)

    sunny = EnvironmentalFactors(
        time_of_day=TimeOfDay.MORNING,
        day_of_week=DayOfWeek.FRIDAY,
        weather=WeatherData(condition="sunny", is_outdoor_friendly=True),
    )
    assert calculate_success_probability(run, time(6, 0), profile, sunny) == pytest.approx(0.84)

    other = Habit(id="2", title="Call mom", category=HabitCategory.social)
    assert calculate_success_probability(other, time(23, 0), profile) == pytest.approx(0.54)


def test_recommend_schedule_sorted_with_reasoning():
    habits = [
        Habit(id="1", title="Morning walk", category=HabitCategory.fitness),
        Habit(id="2", title="Call mom", category=HabitCategory.social),
        Habit(id="3", title="Lights out", category=HabitCategory.sleep),
        Habit(id="4", title="Old habit", category=HabitCategory.fitness, is_active=False),
    ]
    factors = EnvironmentalFactors(
        time_of_day=TimeOfDay.MORNING,
        day_of_week=DayOfWeek.FRIDAY,
        weather=WeatherData(condition="sunny", is_outdoor_friendly=True),
    )
    recommendations = recommend_schedule(habits, build_circadian_profile(), factors)

    assert [r.habit_id for r in recommendations][0] == "1"
    assert "4" not in {r.habit_id for r in recommendations}
    probabilities = [r.success_probability for r in recommendations]
    assert probabilities == sorted(probabilities, reverse=True)
    assert all(0.1 <= p <= 0.95 for p in probabilities)

    walk = recommendations[0]
    assert walk.alternative_times == [time(7), time(8), time(9)]
    assert any("peak energy" in reason for reason in walk.reasoning)
    assert any("Weather is good" in reason for reason in walk.reasoning)


def test_time_slots():
    profile = build_circadian_profile()
    run = Habit(id="run", title="Run", category=HabitCategory.fitness)
    slots = build_time_slots(profile, recommend_schedule([run], profile))

    assert len(slots) == 17
    assert slots[0].start == time(6) and slots[-1].start == time(22)
    assert slots[0].booked_habit_ids == ["run"]
    assert not slots[0].is_optimal
    assert slots[1].is_optimal
    assert not slots[8].is_optimal  # 14:00 trough


def test_environmental_factors():
    factors = build_environmental_factors(datetime(2024, 3, 15, 10, 0, tzinfo=timezone.utc), "UTC")
    assert factors.time_of_day == TimeOfDay.MORNING
    assert factors.day_of_week == DayOfWeek.FRIDAY

    evening_tokyo = build_environmental_factors(datetime(2024, 3, 15, 10, 0, tzinfo=timezone.utc), "Asia/Tokyo")
    assert evening_tokyo.time_of_day == TimeOfDay.EVENING


def test_naive_sleep_start_is_read_as_utc():
    mixed = SleepLog(
        entry_id="mixed",
        timestamp=at(TODAY, 7),
        start_time=datetime(2024, 3, 14, 23, 0),
        end_time=datetime(2024, 3, 15, 7, 0, tzinfo=timezone.utc),
        quality=4,
    )
    assert mixed.duration_hours == pytest.approx(8.0)

    profile = build_circadian_profile([_sleep(1, 23, 7), mixed], TODAY, "UTC")
    assert profile.from_sleep_logs
    assert profile.sleep_schedule.average_bedtime == time(23, 0)
    assert profile.sleep_schedule.average_wake_time == time(7, 0)
    assert profile.sleep_schedule.average_duration_hours == pytest.approx(8.0)


def test_sleep_log_ending_before_start_is_skipped():
    backwards = SleepLog(
        entry_id="backwards",
        timestamp=at(TODAY, 7),
        start_time=at(TODAY, 7),
        end_time=at(TODAY, 6),
    )
    profile = build_circadian_profile([_sleep(1, 23, 7), backwards], TODAY, "UTC")
    assert profile.sleep_schedule.average_duration_hours == pytest.approx(8.0)
    assert not build_circadian_profile([backwards], TODAY, "UTC").from_sleep_logs
