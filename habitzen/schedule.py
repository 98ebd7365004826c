"""Weekday schedules: is a habit due on a given day."""

from .dates import WEEKDAYS, day_of_week


def normalize_days(days):
    """Known weekday tags only, no duplicates, Sun..Sat order; None when empty"""
    if not days:
        return None
    wanted = {d.strip().title() for d in days if isinstance(d, str)}
    ordered = [d for d in WEEKDAYS if d in wanted]
    return ordered or None


def is_due(days, day_key):
    # No schedule means every day
    if not days:
        return True
    return day_of_week(day_key) in days


def habit_is_due(habit, day_key):
    return is_due(habit.get('days'), day_key)
