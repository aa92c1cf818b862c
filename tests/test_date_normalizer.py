"""Unit tests for date normalization."""
from datetime import date

import pytest

from processor.date_normalizer import add_days, parse_date


class TestParseDate:
    """Test cases for parse_date."""

    def test_parse_iso_format(self):
        """Test year-first dates."""
        assert parse_date("2024-03-15") == date(2024, 3, 15)
        assert parse_date("2024/03/15") == date(2024, 3, 15)

    def test_parse_day_first_two_digit_year(self):
        """Test DD/MM/YY dates are placed in the 2000s."""
        assert parse_date("15/03/24") == date(2024, 3, 15)

    def test_parse_day_first_four_digit_year(self):
        """Test DD-MM-YYYY and DD/MM/YYYY dates."""
        assert parse_date("15-03-2024") == date(2024, 3, 15)
        assert parse_date("5/1/2024") == date(2024, 1, 5)

    def test_month_day_order_is_not_guessed(self):
        """Test that US ordering is read as day-month and rejected."""
        assert parse_date("03-15-2024") is None

    def test_parse_iso_datetime_keeps_written_date(self):
        """Test that a time component is ignored without timezone shifting."""
        assert parse_date("2024-01-10T23:30:00.000Z") == date(2024, 1, 10)
        assert parse_date("2024-01-10T00:00:00-03:00") == date(2024, 1, 10)
        assert parse_date("10/01/2024 09:30") == date(2024, 1, 10)

    @pytest.mark.parametrize("value", [
        None,
        "",
        "   ",
        "not-a-date",
        "2024-01",
        "2024-01-10-05",
        "32/01/2024",
        "2024-13-01",
        "aa/bb/cccc",
    ])
    def test_invalid_inputs_return_none(self, value):
        """Test that malformed dates are rejected instead of raising."""
        assert parse_date(value) is None


class TestAddDays:
    """Test cases for add_days."""

    def test_add_days_crosses_month(self):
        """Test shifting across a month boundary."""
        assert add_days(date(2024, 1, 31), 1) == date(2024, 2, 1)

    def test_add_days_leap_year(self):
        """Test shifting across February in a leap year."""
        assert add_days(date(2024, 2, 28), 1) == date(2024, 2, 29)
