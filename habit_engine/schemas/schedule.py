from __future__ import annotations

from datetime import time
from enum import Enum

from pydantic import BaseModel, Field


class TimeOfDay(str, Enum):
    EARLY_MORNING = "EARLY_MORNING"
    MORNING = "MORNING"
    AFTERNOON = "AFTERNOON"
    EVENING = "EVENING"
    NIGHT = "NIGHT"


class DayOfWeek(str, Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"


class LocationType(str, Enum):
    HOME = "HOME"
    WORK = "WORK"
    GYM = "GYM"
    OUTDOORS = "OUTDOORS"
    OTHER = "OTHER"


class EnergyLevel(BaseModel):
    hour: int = Field(ge=0, le=23)
    energy: float = Field(ge=0.0, le=1.0)


class SleepSchedule(BaseModel):
    average_bedtime: time = time(22, 30)
    average_wake_time: time = time(7, 0)
    average_duration_hours: float = 8.0
    sleep_quality: float = Field(default=0.7, ge=0.0, le=1.0)


class CircadianProfile(BaseModel):
    energy_levels: list[EnergyLevel]
    peak_hours: list[int]
    sleep_schedule: SleepSchedule
    rhythm_strength: float = Field(ge=0.0, le=1.0)
    from_sleep_logs: bool = False

    def energy_at(self, hour: int) -> float:
        return self.energy_levels[hour % 24].energy


class WeatherData(BaseModel):
    condition: str = "clear"
    temperature_c: float = 20.0
    is_outdoor_friendly: bool = True


class LocationData(BaseModel):
    location_type: LocationType = LocationType.HOME


class EnvironmentalFactors(BaseModel):
    time_of_day: TimeOfDay
    day_of_week: DayOfWeek
    weather: WeatherData | None = None
    location: LocationData | None = None


class HabitScheduleRecommendation(BaseModel):
    habit_id: str
    habit_title: str
    recommended_time: time
    success_probability: float
    reasoning: list[str] = Field(default_factory=list)
    alternative_times: list[time] = Field(default_factory=list)


class TimeSlot(BaseModel):
    start: time
    end: time
    energy_level: float
    is_optimal: bool
    booked_habit_ids: list[str] = Field(default_factory=list)
