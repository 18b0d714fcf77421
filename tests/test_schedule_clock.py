"""Tests for next-run computation."""

from datetime import date, datetime, time

import pytest

from church_reports.models.scheduler import ScheduleFrequency
from church_reports.services.schedule_clock import add_months, month_bounds, next_trigger, parse_time_of_day


class TestNextTrigger:
    def test_daily_later_today(self):
        assert next_trigger("daily", "09:00", datetime(2024, 3, 1, 8, 0)) == datetime(2024, 3, 1, 9, 0)

    def test_daily_rolls_to_tomorrow_once_passed(self):
        assert next_trigger("daily", "09:00", datetime(2024, 3, 1, 10, 0)) == datetime(2024, 3, 2, 9, 0)

    def test_daily_exactly_now_is_not_in_the_future(self):
        assert next_trigger("daily", "09:00", datetime(2024, 3, 1, 9, 0)) == datetime(2024, 3, 2, 9, 0)

    def test_monthly_is_first_of_next_month(self):
        assert next_trigger("monthly", "09:00", datetime(2024, 3, 15, 12, 0)) == datetime(2024, 4, 1, 9, 0)
        assert next_trigger("monthly", "07:30", datetime(2024, 12, 31, 23, 0)) == datetime(2025, 1, 1, 7, 30)

    def test_weekly_on_a_monday_after_the_time_is_next_monday(self):
        monday = datetime(2024, 3, 4, 10, 0)
        assert monday.weekday() == 0
        assert next_trigger("weekly", "09:00", monday) == datetime(2024, 3, 11, 9, 0)

    def test_weekly_never_lands_on_the_same_day(self):
        early_monday = datetime(2024, 3, 4, 6, 0)
        assert next_trigger("weekly", "09:00", early_monday) == datetime(2024, 3, 11, 9, 0)

    @pytest.mark.parametrize("day", range(5, 11))
    def test_weekly_from_other_days_is_the_coming_monday(self, day):
        result = next_trigger(ScheduleFrequency.WEEKLY, "09:00", datetime(2024, 3, day, 12, 0))
        assert result == datetime(2024, 3, 11, 9, 0)

    def test_quarterly_is_three_months_later(self):
        assert next_trigger("quarterly", "09:00", datetime(2024, 3, 15, 12, 0)) == datetime(2024, 6, 15, 9, 0)

    def test_quarterly_clamps_to_month_end(self):
        assert next_trigger("quarterly", "09:00", datetime(2023, 11, 30, 12, 0)) == datetime(2024, 2, 29, 9, 0)

    def test_unknown_frequency_falls_back_to_one_day(self, caplog):
        now = datetime(2024, 3, 1, 10, 15)
        assert next_trigger("fortnightly", "09:00", now) == datetime(2024, 3, 2, 10, 15)
        assert "fortnightly" in caplog.text

    @pytest.mark.parametrize("frequency", ["daily", "weekly", "monthly", "quarterly"])
    def test_result_is_always_in_the_future(self, frequency):
        now = datetime(2024, 1, 31, 23, 59)
        assert next_trigger(frequency, "23:59", now) > now


class TestHelpers:
    def test_parse_time_of_day(self):
        assert parse_time_of_day("09:05") == time(9, 5)
        assert parse_time_of_day(" 18:30:45 ") == time(18, 30)
        assert parse_time_of_day(time(7, 15, 30)) == time(7, 15)

    @pytest.mark.parametrize("value", ["25:00", "9am", "", "12:60"])
    def test_parse_time_of_day_rejects_garbage(self, value):
        with pytest.raises(ValueError):
            parse_time_of_day(value)

    def test_add_months(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2024, 3, 10), -3) == date(2023, 12, 10)
        assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)

    def test_month_bounds(self):
        assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
