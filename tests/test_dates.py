"""
Unit tests for dates module.
"""

from datetime import date
import pytest

from multicurve.conventions import BusinessDayConvention
from multicurve.dates import DateUtils


class TestDateUtils:
    """Tests for DateUtils class."""

    def test_parse_tenor(self):
        """Test parsing tenors of every unit."""
        assert DateUtils.parse_tenor("3M") == (3, 'M')
        assert DateUtils.parse_tenor("10Y") == (10, 'Y')
        assert DateUtils.parse_tenor("2W") == (2, 'W')
        assert DateUtils.parse_tenor("30D") == (30, 'D')

    def test_parse_tenor_lowercase(self):
        """Test parsing lowercase tenors."""
        assert DateUtils.parse_tenor("3m") == (3, 'M')
        assert DateUtils.parse_tenor("5y") == (5, 'Y')

    def test_parse_tenor_invalid(self):
        """Test invalid tenor raises error."""
        with pytest.raises(ValueError):
            DateUtils.parse_tenor("invalid")
        with pytest.raises(ValueError):
            DateUtils.parse_tenor("3X")

    def test_add_tenor(self):
        """Test adding month, year, week and day tenors."""
        base = date(2024, 1, 15)
        assert DateUtils.add_tenor(base, "3M") == date(2024, 4, 15)
        assert DateUtils.add_tenor(base, "5Y") == date(2029, 1, 15)
        assert DateUtils.add_tenor(base, "1W") == date(2024, 1, 22)
        assert DateUtils.add_tenor(base, "10D") == date(2024, 1, 25)

    def test_add_tenor_end_of_month(self):
        """Day is clipped to the month end."""
        assert DateUtils.add_tenor(date(2024, 1, 31), "1M") == date(2024, 2, 29)

    def test_add_negative_months(self):
        """Negative months go back across year ends."""
        assert DateUtils.add_months(date(2024, 2, 15), -3) == date(2023, 11, 15)

    def test_tenor_months(self):
        assert DateUtils.tenor_months("6M") == 6
        assert DateUtils.tenor_months("2Y") == 24
        with pytest.raises(ValueError):
            DateUtils.tenor_months("1W")

    def test_add_business_days(self):
        """Signed business day shifts skip weekends."""
        friday = date(2024, 6, 7)
        assert DateUtils.add_business_days(friday, 1) == date(2024, 6, 10)
        assert DateUtils.add_business_days(date(2024, 6, 10), -2) == date(2024, 6, 6)
        assert DateUtils.add_business_days(friday, 0) == friday


class TestScheduleGeneration:
    """Tests for schedule generation."""

    def test_semi_annual_schedule(self):
        """Schedule excludes start and ends at maturity."""
        schedule = DateUtils.generate_schedule(date(2024, 1, 15), date(2026, 1, 15), 6)
        assert len(schedule) == 4
        assert schedule[-1] == date(2026, 1, 15)
        assert date(2024, 1, 15) not in schedule

    def test_schedule_frequency_annual(self):
        """Test annual frequency."""
        schedule = DateUtils.generate_schedule(date(2024, 1, 15), date(2027, 1, 15), 12)
        assert len(schedule) == 3

    def test_front_stub(self):
        """Dates roll back from the end so the stub is first."""
        schedule = DateUtils.generate_schedule(date(2024, 3, 1), date(2025, 1, 15), 6)
        assert schedule == [date(2024, 7, 15), date(2025, 1, 15)]

    def test_schedule_dates_adjusted(self):
        """Period ends on weekends are rolled."""
        schedule = DateUtils.generate_schedule(
            date(2024, 3, 1), date(2024, 6, 1), 3, BusinessDayConvention.FOLLOWING
        )
        assert schedule == [date(2024, 6, 3)]

    def test_invalid_schedule(self):
        with pytest.raises(ValueError):
            DateUtils.generate_schedule(date(2024, 1, 1), date(2023, 1, 1), 6)
        with pytest.raises(ValueError):
            DateUtils.generate_schedule(date(2024, 1, 1), date(2025, 1, 1), 0)
