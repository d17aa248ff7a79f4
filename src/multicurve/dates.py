"""
Date utilities for calibration instruments.

Provides:
- Tenor parsing and tenor arithmetic
- Business day shifting (spot lags, payment lags)
- Regular schedule generation for swap legs and bond coupons
"""

from datetime import date, timedelta
from typing import List, Optional, Tuple
import calendar
import re

from .conventions import BusinessDayConvention, adjust_business_day, is_business_day


class DateUtils:
    """Utility class for date manipulation in rates contexts."""

    # Tenor regex pattern: number + unit (D/W/M/Y)
    TENOR_PATTERN = re.compile(r'^(\d+)([DWMY])$', re.IGNORECASE)

    @staticmethod
    def parse_tenor(tenor: str) -> Tuple[int, str]:
        """
        Parse a tenor string into (amount, unit).

        Raises:
            ValueError: If tenor format is invalid
        """
        match = DateUtils.TENOR_PATTERN.match(tenor.upper().strip())
        if not match:
            raise ValueError(f"Invalid tenor format: {tenor}. Expected format like '3M', '2Y'")
        return int(match.group(1)), match.group(2).upper()

    @staticmethod
    def add_months(start: date, months: int) -> date:
        """Add calendar months, clipping the day to the month end."""
        year = start.year + (start.month + months - 1) // 12
        month = (start.month + months - 1) % 12 + 1
        day = min(start.day, calendar.monthrange(year, month)[1])
        return date(year, month, day)

    @staticmethod
    def add_tenor(start: date, tenor: str) -> date:
        """
        Add a tenor to a date without business day adjustment.

        Day tenors are calendar days; use ``add_business_days`` for lags.
        """
        amount, unit = DateUtils.parse_tenor(tenor)
        if unit == 'D':
            return start + timedelta(days=amount)
        if unit == 'W':
            return start + timedelta(weeks=amount)
        if unit == 'M':
            return DateUtils.add_months(start, amount)
        return DateUtils.add_months(start, 12 * amount)

    @staticmethod
    def tenor_months(tenor: str) -> int:
        """Number of months in a month or year tenor."""
        amount, unit = DateUtils.parse_tenor(tenor)
        if unit == 'M':
            return amount
        if unit == 'Y':
            return 12 * amount
        raise ValueError(f"Tenor {tenor} is not a whole number of months")

    @staticmethod
    def add_business_days(start: date, days: int, holidays: Optional[set] = None) -> date:
        """Shift by a signed number of business days."""
        step = 1 if days >= 0 else -1
        result = start
        remaining = abs(days)
        while remaining > 0:
            result += timedelta(days=step)
            if is_business_day(result, holidays):
                remaining -= 1
        return result

    @staticmethod
    def generate_schedule(
        start: date,
        end: date,
        months_per_period: int,
        convention: BusinessDayConvention = BusinessDayConvention.MODIFIED_FOLLOWING,
        holidays: Optional[set] = None
    ) -> List[date]:
        """
        Generate adjusted period end dates between start and end.

        Dates roll backward from ``end`` so any stub is at the front.
        The returned list excludes ``start`` and ends with adjusted ``end``.
        """
        if months_per_period <= 0:
            raise ValueError("Period length must be positive")
        if end <= start:
            raise ValueError(f"Schedule end {end} must be after start {start}")

        unadjusted = [end]
        periods = 1
        while True:
            previous = DateUtils.add_months(end, -months_per_period * periods)
            if previous <= start:
                break
            unadjusted.insert(0, previous)
            periods += 1

        return [adjust_business_day(d, convention, holidays) for d in unadjusted]


__all__ = ["DateUtils"]
