"""
Working-day calendar.

Monday-Friday working days with US federal holidays removed. Fixed-date
holidays that land on a weekend are observed on the nearest weekday
(Saturday -> Friday, Sunday -> Monday).
"""

from datetime import date, timedelta
from typing import Dict, Optional, Set

from bayplan.datetime_utils import to_calendar_day

# Weekday numbers as used by date.weekday()
MONDAY = 0
THURSDAY = 3
SATURDAY = 5

# (month, day) -> name
FIXED_HOLIDAYS = {
    (1, 1): "New Year's Day",
    (7, 4): "Independence Day",
    (11, 11): "Veterans Day",
    (12, 25): "Christmas Day",
}

# name -> (month, weekday, occurrence); occurrence -1 means last
FLOATING_HOLIDAYS = {
    "Martin Luther King Jr. Day": (1, MONDAY, 3),
    "Presidents' Day": (2, MONDAY, 3),
    "Memorial Day": (5, MONDAY, -1),
    "Labor Day": (9, MONDAY, 1),
    "Columbus Day": (10, MONDAY, 2),
    "Thanksgiving": (11, THURSDAY, 4),
}


def nth_weekday_of_month(year: int, month: int, weekday: int, n: int) -> date:
    """
    The n-th given weekday of a month (n = -1 for the last one).

    Args:
        year: Calendar year
        month: Month (1-12)
        weekday: 0=Monday ... 6=Sunday
        n: Occurrence, 1-based, or -1 for last

    Returns:
        date: The matching day
    """
    if n < 0:
        if month == 12:
            last_day = date(year, 12, 31)
        else:
            last_day = date(year, month + 1, 1) - timedelta(days=1)
        return last_day - timedelta(days=(last_day.weekday() - weekday) % 7)

    first_day = date(year, month, 1)
    first_match = first_day + timedelta(days=(weekday - first_day.weekday()) % 7)
    return first_match + timedelta(weeks=n - 1)


def _observed(day: date) -> date:
    if day.weekday() == SATURDAY:
        return day - timedelta(days=1)
    if day.weekday() == SATURDAY + 1:
        return day + timedelta(days=1)
    return day


def us_holidays(year: int) -> Dict[date, str]:
    """
    Observed US federal holidays for a year.

    Note that New Year's Day of `year` may be observed on December 31 of the
    previous year.
    """
    holidays = {}
    for (month, day), name in FIXED_HOLIDAYS.items():
        holidays[_observed(date(year, month, day))] = name
    for name, (month, weekday, n) in FLOATING_HOLIDAYS.items():
        holidays[nth_weekday_of_month(year, month, weekday, n)] = name
    return holidays


def _holiday_dates(first_year: int, last_year: int) -> Set[date]:
    # Include the following year for a New Year's Day observed on Dec 31
    days: Set[date] = set()
    for year in range(first_year, last_year + 2):
        days.update(us_holidays(year))
    return days


def is_holiday(day) -> bool:
    day = to_calendar_day(day)
    return day in _holiday_dates(day.year, day.year)


def is_business_day(day) -> bool:
    """
    True for a weekday that is not an observed holiday.

    Empty or unparseable values are not business days.
    """
    try:
        day = to_calendar_day(day)
    except (TypeError, ValueError):
        return False
    if day is None:
        return False
    return day.weekday() < SATURDAY and not is_holiday(day)


def count_working_days(start, end) -> Optional[int]:
    """
    Count working days from start to end, both inclusive.

    Returns:
        int: Number of working days, or None if either date is missing or
             invalid, or if start is after end
    """
    try:
        start = to_calendar_day(start)
        end = to_calendar_day(end)
    except (TypeError, ValueError):
        return None
    if start is None or end is None or start > end:
        return None

    holidays = _holiday_dates(start.year, end.year)
    count = 0
    current = start
    while current <= end:
        if current.weekday() < SATURDAY and current not in holidays:
            count += 1
        current += timedelta(days=1)
    return count


def adjust_to_next_business_day(day) -> Optional[date]:
    """The day itself if it is a business day, otherwise the next one."""
    day = to_calendar_day(day)
    if day is None:
        return None
    while not is_business_day(day):
        day += timedelta(days=1)
    return day


def adjust_to_previous_business_day(day) -> Optional[date]:
    """The day itself if it is a business day, otherwise the previous one."""
    day = to_calendar_day(day)
    if day is None:
        return None
    while not is_business_day(day):
        day -= timedelta(days=1)
    return day


def add_business_days(start_date, business_days: int, observe_holidays: bool = True) -> date:
    """
    Calculate the date that is a number of business days after start_date.

    The start date itself is not counted. A negative count moves backward.

    Args:
        start_date: The start date (date, datetime or ISO string)
        business_days: Number of business days to add
        observe_holidays: If False, only weekends are skipped

    Returns:
        date: The calculated date
    """
    current = to_calendar_day(start_date)
    step = timedelta(days=1 if business_days >= 0 else -1)
    remaining = abs(business_days)

    while remaining > 0:
        current += step
        if current.weekday() >= SATURDAY:
            continue
        if observe_holidays and is_holiday(current):
            continue
        remaining -= 1
    return current
