"""Dashboard numbers: weekly completion series, top streaks, today's progress."""

import math

from .dates import add_days, short_label
from .schedule import habit_is_due
from .streaks import current_streak, longest_streak


def percentage(completed, total):
    """Integer percentage rounded half up; 0 when nothing is due"""
    if total <= 0:
        return 0
    return int(math.floor(completed * 100 / total + 0.5))


def is_completed(habit, day_key):
    return bool(habit.get('completions', {}).get(day_key))


def weekly_completion(habits, today):
    """Seven entries, oldest first, ending today"""
    data = []
    for offset in range(6, -1, -1):
        day_key = add_days(today, -offset)
        due = [h for h in habits if habit_is_due(h, day_key)]
        completed = sum(1 for h in due if is_completed(h, day_key))
        data.append({
            'date': day_key,
            'label': short_label(day_key),
            'completed': completed,
            'total': len(due),
            'percentage': percentage(completed, len(due)),
        })
    return data


def top_longest_streaks(habits, limit=3):
    ranked = [
        {'id': h['id'], 'name': h['name'], 'streak': longest_streak(h.get('completions'))}
        for h in habits
    ]
    ranked = [r for r in ranked if r['streak'] > 0]
    # sorted() is stable, so ties keep collection order
    ranked = sorted(ranked, key=lambda r: r['streak'], reverse=True)
    return ranked[:limit]


def today_progress(habits, today):
    due = [h for h in habits if habit_is_due(h, today)]
    completed = sum(1 for h in due if is_completed(h, today))
    return {
        'completed': completed,
        'total': len(due),
        'percentage': percentage(completed, len(due)),
        'all_done': bool(due) and completed == len(due),
    }


def coaching_context(habits, today):
    """Input for the coaching service: today's habits and the best running streak"""
    due = [h for h in habits if habit_is_due(h, today)]
    best_name = None
    best_streak = 0
    for habit in habits:
        streak = current_streak(habit.get('completions'), today)
        if streak > best_streak:
            best_streak = streak
            best_name = habit['name']

    return {
        'habits': [{'name': h['name'], 'completed': is_completed(h, today)} for h in due],
        'completed_today': sum(1 for h in due if is_completed(h, today)),
        'total_today': len(due),
        'longest_streak': best_streak,
        'longest_streak_habit': best_name,
    }


def habit_summary(habit, today):
    """Habit record plus the derived fields the dashboard shows"""
    completions = habit.get('completions', {})
    return {
        **habit,
        'completedToday': is_completed(habit, today),
        'due': habit_is_due(habit, today),
        'currentStreak': current_streak(completions, today),
        'longestStreak': longest_streak(completions),
    }
