from .memory import (
    InMemoryHabitRepository,
    InMemoryHealthLogRepository,
    InMemoryMindfulnessRepository,
    InMemoryStreakRepository,
)

__all__ = [
    "InMemoryHabitRepository",
    "InMemoryHealthLogRepository",
    "InMemoryMindfulnessRepository",
    "InMemoryStreakRepository",
]
