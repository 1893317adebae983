#!/usr/bin/env python3
"""
Timezone handling: UTC offsets, local dates and circular hour means
"""

from datetime import date, datetime, timezone

import pytest

from habit_engine.exceptions import InvalidTimezoneError
from habit_engine.utils.timezone_utils import (
    circular_hour_distance,
    circular_mean_hour,
    ensure_aware,
    get_user_local_time,
    hour_of_day,
    local_date,
    parse_utc_offset,
    resolve_timezone,
    validate_timezone,
)


@pytest.mark.parametrize("value, expected", [
    ("UTC+3", 180),
    ("UTC-5", -300),
    ("UTC+0", 0),
    ("UTC+3:30", 210),
    ("UTC-5:30", -330),
    ("invalid", None),
    ("UTC++3", None),
    ("UTC-", None),
    ("UTC+15", None),
])
def test_timezone_parsing(value, expected):
    assert parse_utc_offset(value) == expected


@pytest.mark.parametrize("value, expected", [
    ("Europe/Moscow", True),
    ("America/New_York", True),
    ("UTC", True),
    ("UTC+3", True),
    ("UTC-5", True),
    ("invalid_timezone", False),
    ("UTC+99", False),
])
def test_timezone_validation(value, expected):
    assert validate_timezone(value) is expected


def test_unknown_zone_raises():
    with pytest.raises(InvalidTimezoneError) as exc_info:
        resolve_timezone("Mars/Olympus")
    assert exc_info.value.tz_name == "Mars/Olympus"


def test_local_date_crosses_midnight():
    moment = datetime(2024, 3, 15, 22, 30, tzinfo=timezone.utc)
    assert local_date(moment, "UTC") == date(2024, 3, 15)
    assert local_date(moment, "Europe/Moscow") == date(2024, 3, 16)
    assert local_date(moment, "UTC+3") == date(2024, 3, 16)
    assert local_date(datetime(2024, 3, 15, 2, 0, tzinfo=timezone.utc), "America/New_York") == date(2024, 3, 14)


def test_naive_timestamps_are_utc():
    assert local_date(datetime(2024, 3, 15, 22, 30), "Asia/Tokyo") == date(2024, 3, 16)
    naive = datetime(2024, 3, 15, 22, 30)
    aware = datetime(2024, 3, 16, 6, 30, tzinfo=timezone.utc)
    assert ensure_aware(naive).tzinfo is timezone.utc
    assert ensure_aware(aware) is aware
    assert (aware - ensure_aware(naive)).total_seconds() == 8 * 3600


def test_user_local_time():
    now = datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc)
    local = get_user_local_time("Asia/Tokyo", now)
    assert (local.hour, local.minute) == (18, 0)
    assert hour_of_day(datetime(2024, 3, 15, 9, 45, tzinfo=timezone.utc), "UTC") == pytest.approx(9.75)


def test_circular_mean_wraps_midnight():
    assert circular_hour_distance(circular_mean_hour([23, 1]), 0) == pytest.approx(0.0, abs=1e-6)
    assert circular_mean_hour([6, 8]) == pytest.approx(7.0)
    assert circular_mean_hour([]) is None
    assert circular_mean_hour([0, 12]) is None


def test_circular_distance():
    assert circular_hour_distance(23, 1) == pytest.approx(2.0)
    assert circular_hour_distance(7, 10) == pytest.approx(3.0)
    assert circular_hour_distance(0, 12) == pytest.approx(12.0)
