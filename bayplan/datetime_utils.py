"""
DateTime utility functions for the application.

Every date the scheduling engine compares is first reduced to a calendar day
in the shop's timezone, so sub-day drift and UTC offsets never move a
schedule boundary by a day.
"""
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from bayplan.config import Config


def get_shop_timezone(name=None):
    """
    Get the shop's timezone object.

    Args:
        name: IANA timezone name; defaults to the configured SHOP_TIMEZONE

    Returns:
        ZoneInfo: Shop timezone object
    """
    return ZoneInfo(name or Config.SHOP_TIMEZONE)


def to_calendar_day(value, tz=None):
    """
    Normalize a date-like value to a calendar day (midnight, no time component).

    Accepts:
    - date objects (returned as-is)
    - naive datetimes (time portion dropped)
    - aware datetimes (converted to the shop timezone, then time dropped)
    - ISO strings ('2025-01-31', '2025-01-31T06:00:00Z', '2025-01-31T06:00:00+00:00')
    - None or empty string (returns None)

    Args:
        value: The value to normalize
        tz: Optional timezone used for aware datetimes (defaults to shop timezone)

    Returns:
        date: Calendar day, or None if value is empty

    Raises:
        ValueError: If value is a string that is not an ISO date/datetime
        TypeError: If value is of an unsupported type
    """
    if value is None or value == '':
        return None

    # datetime is a subclass of date, so check it first
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz or get_shop_timezone())
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if len(text) == 10:
            return date.fromisoformat(text)
        parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
        return to_calendar_day(parsed, tz)

    raise TypeError(f"Cannot interpret {type(value).__name__} as a date")


def days_between(start, end):
    """
    Whole calendar days from start to end (negative when end is before start).

    Both values are normalized with to_calendar_day first.
    """
    return (to_calendar_day(end) - to_calendar_day(start)).days


def add_days(day, days):
    """Return the calendar day that is `days` after `day`."""
    return to_calendar_day(day) + timedelta(days=days)


def shop_today(tz=None):
    """
    Today's calendar day in the shop timezone.

    Only the outer layers (HTTP routes, scripts) call this; the engine always
    receives "today" as an argument.
    """
    return datetime.now(timezone.utc).astimezone(tz or get_shop_timezone()).date()


def format_date(d):
    """Format a date for display, or 'None' if None."""
    if d is None:
        return 'None'
    return d.isoformat()
