"""
Day count and business day conventions used by calibration instruments.

Supported Day Counts:
- ACT/360: Actual days / 360 (money markets, ibor and overnight indices)
- ACT/365: Actual days / 365 (curve time axis)
- ACT/ACT: Actual days / actual days in year (government bonds)
- 30/360: 30 days per month / 360 (fixed swap legs)

Business Day Conventions:
- Modified Following: Move to next business day, unless it falls in next month (then previous)
- Following: Move to next business day
- Preceding: Move to previous business day

All curves are parameterized on ACT/365 year fractions measured from the
valuation date; see ``curve_time``.
"""

from datetime import date, timedelta
from enum import Enum
from typing import Optional
import calendar


class DayCount(Enum):
    """Day count convention enumeration."""
    ACT_360 = "ACT/360"
    ACT_365 = "ACT/365"
    ACT_ACT = "ACT/ACT"
    THIRTY_360 = "30/360"

    @classmethod
    def from_string(cls, s: str) -> "DayCount":
        """Parse day count from string representation."""
        key = s.upper().replace(" ", "").replace("/", "")
        for member in cls:
            if member.value.replace("/", "") == key:
                return member
        if key == "ACT365F":
            return cls.ACT_365
        raise ValueError(f"Unknown day count convention: {s}")


class BusinessDayConvention(Enum):
    """Business day adjustment convention."""
    MODIFIED_FOLLOWING = "ModifiedFollowing"
    FOLLOWING = "Following"
    PRECEDING = "Preceding"
    UNADJUSTED = "Unadjusted"


def year_fraction(start: date, end: date, day_count: DayCount) -> float:
    """
    Calculate the accrual fraction between two dates.

    Returns 0.0 when end is on or before start.
    """
    if start >= end:
        return 0.0

    actual_days = (end - start).days

    if day_count == DayCount.ACT_360:
        return actual_days / 360.0

    elif day_count == DayCount.ACT_365:
        return actual_days / 365.0

    elif day_count == DayCount.ACT_ACT:
        # ISDA: split by calendar year
        total = 0.0
        current = start
        while current < end:
            next_year = date(current.year + 1, 1, 1)
            period_end = min(next_year, end)
            days_in_year = 366 if calendar.isleap(current.year) else 365
            total += (period_end - current).days / days_in_year
            current = period_end
        return total

    elif day_count == DayCount.THIRTY_360:
        d1 = min(start.day, 30)
        d2 = min(end.day, 30) if d1 == 30 else end.day
        return (360 * (end.year - start.year) + 30 * (end.month - start.month) + (d2 - d1)) / 360.0

    raise ValueError(f"Unknown day count: {day_count}")


def curve_time(valuation_date: date, d: date) -> float:
    """
    Signed ACT/365 time from the valuation date to ``d``.

    Dates before the valuation date give negative times.
    """
    return (d - valuation_date).days / 365.0


def is_business_day(d: date, holidays: Optional[set] = None) -> bool:
    """Weekend-only calendar unless a holiday set is supplied."""
    if d.weekday() >= 5:
        return False
    if holidays and d in holidays:
        return False
    return True


def adjust_business_day(
    d: date,
    convention: BusinessDayConvention,
    holidays: Optional[set] = None
) -> date:
    """
    Adjust a date according to business day convention.

    Args:
        d: Date to adjust
        convention: Business day adjustment rule
        holidays: Optional set of holiday dates

    Returns:
        Adjusted date
    """
    if convention == BusinessDayConvention.UNADJUSTED or is_business_day(d, holidays):
        return d

    if convention == BusinessDayConvention.PRECEDING:
        return _roll(d, -1, holidays)

    following = _roll(d, 1, holidays)
    if convention == BusinessDayConvention.MODIFIED_FOLLOWING and following.month != d.month:
        return _roll(d, -1, holidays)
    return following


def _roll(d: date, step: int, holidays: Optional[set]) -> date:
    while not is_business_day(d, holidays):
        d += timedelta(days=step)
    return d


__all__ = [
    "DayCount",
    "BusinessDayConvention",
    "year_fraction",
    "curve_time",
    "is_business_day",
    "adjust_business_day",
]
