"""Day-key helpers. Every other module works with day keys, never raw timestamps."""

import re
from datetime import datetime, timedelta

DAY_KEY_FORMAT = "%Y-%m-%d"
WEEKDAYS = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']

_TIME_RE = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')


def today(now=None):
    """Day key for the current instant in the local time zone"""
    if now is None:
        now = datetime.now()
    return now.date().isoformat()


def parse_day_key(day_key):
    return datetime.strptime(day_key, DAY_KEY_FORMAT).date()


def is_valid_day_key(value):
    if not isinstance(value, str) or len(value) != 10:
        return False
    try:
        parse_day_key(value)
    except ValueError:
        return False
    return True


def day_of_week(day_key):
    """Weekday tag (Sun..Sat) for a day key"""
    # date.weekday() is Monday=0; the tags start on Sunday
    return WEEKDAYS[(parse_day_key(day_key).weekday() + 1) % 7]


def add_days(day_key, n):
    return (parse_day_key(day_key) + timedelta(days=n)).isoformat()


def short_label(day_key):
    return day_of_week(day_key)


def is_valid_time(value):
    """Check for a 24-hour HH:MM time of day"""
    return isinstance(value, str) and bool(_TIME_RE.match(value))


def current_time(now=None):
    if now is None:
        now = datetime.now()
    return now.strftime("%H:%M")
