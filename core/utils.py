"""
Date utility functions for consistent date handling across the application.
"""
import calendar
from datetime import datetime, timedelta

from django.utils import timezone


def local_now():
    """
    Get the current datetime in the configured clinic timezone.

    Returns:
        datetime: Current datetime localized to settings.TIME_ZONE
    """
    return timezone.localtime(timezone.now())


def local_today():
    """
    Get today's date in the configured clinic timezone.

    This is the default clock for report generation; components accept any
    zero-argument callable in its place.
    """
    return local_now().date()


def parse_date(value):
    """Parse a YYYY-MM-DD string (dates and datetimes pass through as dates)"""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if hasattr(value, 'year') and hasattr(value, 'day'):
        return value
    return datetime.strptime(value, '%Y-%m-%d').date()


def week_bounds(date_obj):
    """Monday..Sunday of the week containing date_obj"""
    start = date_obj - timedelta(days=date_obj.weekday())
    return start, start + timedelta(days=6)


def month_bounds(date_obj):
    """First and last day of the calendar month containing date_obj"""
    last_day = calendar.monthrange(date_obj.year, date_obj.month)[1]
    return date_obj.replace(day=1), date_obj.replace(day=last_day)


def whole_months_between(start, end):
    """
    Number of whole calendar months elapsed from start to end.

    A month counts once the day of month is reached again, so Jan 15 -> Feb 14
    is 0 and Jan 15 -> Feb 15 is 1. When the dates are one calendar month
    apart and end is the last day of its month, that month counts as well
    (Jan 31 -> Feb 29 is 1). Returns 0 when end precedes start.
    """
    if end <= start:
        return 0
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        last_day = calendar.monthrange(end.year, end.month)[1]
        if not (months == 1 and end.day == last_day):
            months -= 1
    return max(months, 0)
