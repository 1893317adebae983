from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone, tzinfo
from typing import Iterable, Optional

import pytz

from habit_engine.config import settings
from habit_engine.exceptions import InvalidTimezoneError


def parse_utc_offset(timezone_str: str) -> Optional[int]:
    """
    Parses strings like UTC+3, UTC-5, UTC+3:30 and returns the offset in minutes.

    Returns None when the string is not in that format.
    """
    pattern = r'^UTC([+-])(\d{1,2})(?::(\d{2}))?$'
    match = re.match(pattern, timezone_str)
    if not match:
        return None

    hours = int(match.group(2))
    minutes = int(match.group(3)) if match.group(3) else 0
    if hours > 14 or minutes >= 60:
        return None

    total = hours * 60 + minutes
    return -total if match.group(1) == '-' else total


def resolve_timezone(timezone_str: Optional[str]) -> tzinfo:
    """
    Resolves a zone name ("Europe/Moscow", "UTC", "UTC+3") to a pytz zone.
    An empty value falls back to DEFAULT_TIMEZONE.
    """
    name = timezone_str or settings.DEFAULT_TIMEZONE
    if name.startswith("UTC") and name != "UTC":
        offset = parse_utc_offset(name)
        if offset is None:
            raise InvalidTimezoneError(name)
        return pytz.FixedOffset(offset)
    try:
        return pytz.timezone(name)
    except pytz.exceptions.UnknownTimeZoneError as exc:
        raise InvalidTimezoneError(name) from exc


def validate_timezone(timezone_str: str) -> bool:
    """Checks that the string is a zone name or a UTC+N offset."""
    try:
        resolve_timezone(timezone_str)
    except InvalidTimezoneError:
        return False
    return True


def ensure_aware(moment: datetime) -> datetime:
    """Naive timestamps are taken as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def to_local(moment: datetime, user_timezone: Optional[str] = None) -> datetime:
    """Converts a timestamp to the user's zone. Naive timestamps are taken as UTC."""
    return ensure_aware(moment).astimezone(resolve_timezone(user_timezone))


def local_date(moment: datetime, user_timezone: Optional[str] = None) -> date:
    return to_local(moment, user_timezone).date()


def get_user_local_time(user_timezone: Optional[str] = None, now: Optional[datetime] = None) -> datetime:
    """Current local time of the user; `now` pins the clock in tests."""
    return to_local(now or datetime.now(timezone.utc), user_timezone)


def local_today(user_timezone: Optional[str] = None, now: Optional[datetime] = None) -> date:
    return get_user_local_time(user_timezone, now).date()


def days_between(start: date, end: date) -> int:
    """Whole calendar days from start to end (negative if end is earlier)."""
    return (end - start).days


def hour_of_day(moment: datetime, user_timezone: Optional[str] = None) -> float:
    local = to_local(moment, user_timezone)
    return local.hour + local.minute / 60.0


def circular_mean_hour(hours: Iterable[float]) -> Optional[float]:
    """
    Mean of clock hours on the 24h circle: 23:00 and 01:00 average to 00:00.
    Returns None for an empty input or when the hours cancel out.
    """
    xs = list(hours)
    if not xs:
        return None
    sin_sum = sum(math.sin(h / 24.0 * 2 * math.pi) for h in xs)
    cos_sum = sum(math.cos(h / 24.0 * 2 * math.pi) for h in xs)
    if abs(sin_sum) < 1e-9 and abs(cos_sum) < 1e-9:
        return None
    angle = math.atan2(sin_sum, cos_sum)
    return (angle / (2 * math.pi) * 24.0) % 24.0


def circular_hour_distance(a: float, b: float) -> float:
    """Shortest distance in hours between two clock hours."""
    diff = abs(a - b) % 24.0
    return min(diff, 24.0 - diff)
