"""Tests for interval and notify schedule translation."""

import pytest

from src.crawler.errors import InvalidInterval
from src.scheduling.translator import (
    ScheduleFields,
    interval_to_schedule,
    notify_schedule,
    parse_schedule,
)


class TestIntervalToSchedule:
    @pytest.mark.parametrize(
        "minutes,expected",
        [
            (5, "0 */5 * * * *"),
            (45, "0 */45 * * * *"),
            (60, "0 0 */1 * * *"),
            (90, "0 30 */1 * * *"),
            (120, "0 0 */2 * * *"),
            (1440, "0 0 */24 * * *"),
        ],
    )
    def test_mapping(self, minutes, expected):
        assert interval_to_schedule(minutes) == expected

    @pytest.mark.parametrize("minutes", [0, 4, 1441])
    def test_out_of_range(self, minutes):
        with pytest.raises(InvalidInterval):
            interval_to_schedule(minutes)

    def test_invalid_interval_is_a_value_error(self):
        with pytest.raises(ValueError):
            interval_to_schedule(-1)


class TestNotifySchedule:
    def test_hourly(self):
        assert notify_schedule("hourly") == "0 0 * * * *"

    def test_daily_at_time(self):
        assert notify_schedule("daily", "07:30") == "0 30 7 * * *"

    def test_daily_default_time(self):
        assert notify_schedule("daily") == "0 0 9 * * *"

    @pytest.mark.parametrize("value", ["24:00", "9", "09:60", ""])
    def test_daily_bad_time(self, value):
        with pytest.raises(InvalidInterval):
            notify_schedule("daily", value)

    def test_unknown_period(self):
        with pytest.raises(InvalidInterval):
            notify_schedule("weekly")


class TestParseSchedule:
    def test_fields(self):
        fields = parse_schedule("0 30 */1 * * *")

        assert fields == ScheduleFields("0", "30", "*/1", "*", "*", "*")
        assert fields.as_trigger_kwargs()["minute"] == "30"

    def test_wrong_field_count(self):
        with pytest.raises(ValueError):
            parse_schedule("*/5 * * * *")
