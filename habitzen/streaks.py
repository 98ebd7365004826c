"""Current and longest-ever streaks derived from a completion ledger."""

from datetime import timedelta

from .dates import is_valid_day_key, parse_day_key


def completed_dates(completions):
    """Set of dates with a true completion; malformed keys are skipped"""
    dates = set()
    for day_key, done in (completions or {}).items():
        if done and is_valid_day_key(day_key):
            dates.add(parse_day_key(day_key))
    return dates


def current_streak(completions, today):
    """Consecutive completed days ending today, or yesterday if today is still open"""
    habit_dates = completed_dates(completions)
    if not habit_dates:
        return 0

    current_day = parse_day_key(today)

    # Today not checked off yet: the streak may still be alive from yesterday
    if current_day not in habit_dates:
        current_day -= timedelta(days=1)

    streak = 0
    while current_day in habit_dates:
        streak += 1
        current_day -= timedelta(days=1)
    return streak


def longest_streak(completions):
    """Longest run of calendar-consecutive completed days in the whole ledger"""
    dates = sorted(completed_dates(completions))
    if not dates:
        return 0

    longest = 1
    run = 1
    for previous, current in zip(dates, dates[1:]):
        if current == previous + timedelta(days=1):
            run += 1
            longest = max(longest, run)
        else:
            run = 1
    return longest
