from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from pydantic import TypeAdapter, ValidationError

from habit_engine.schemas.habit import Habit, HabitCompletion
from habit_engine.schemas.health import HealthLog

logger = logging.getLogger(__name__)

_health_log_adapter = TypeAdapter(HealthLog)


def parse_habits(rows: Iterable[Mapping[str, Any]]) -> list[Habit]:
    habits: list[Habit] = []
    for row in rows:
        try:
            habits.append(Habit.model_validate(row))
        except ValidationError as e:
            logger.warning("Skipping malformed habit row %r: %s", row.get("id"), e.error_count())
    return habits


def parse_completions(rows: Iterable[Mapping[str, Any]]) -> list[HabitCompletion]:
    """Builds completions from raw store rows; a bad row is dropped on its own."""
    completions: list[HabitCompletion] = []
    for row in rows:
        try:
            completions.append(HabitCompletion.model_validate(row))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed completion for habit %r: %s",
                row.get("habit_id"), e.errors()[0]["msg"],
            )
    return completions


def parse_health_logs(rows: Iterable[Mapping[str, Any]]) -> list[HealthLog]:
    logs: list[HealthLog] = []
    for row in rows:
        try:
            logs.append(_health_log_adapter.validate_python(row))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed %s log %r: %s",
                row.get("type", "unknown"), row.get("entry_id"), e.errors()[0]["msg"],
            )
    return logs
