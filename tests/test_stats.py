from habitzen.dates import add_days
from habitzen.stats import (
    coaching_context,
    percentage,
    today_progress,
    top_longest_streaks,
    weekly_completion,
)

TODAY = '2024-01-13'  # a Saturday


def make_habit(name, done_offsets=(), days=None, habit_id=None):
    habit = {
        'id': habit_id or name,
        'name': name,
        'completions': {add_days(TODAY, -o): True for o in done_offsets},
        'createdAt': '2024-01-01T00:00:00',
    }
    if days:
        habit['days'] = days
    return habit


def test_weekly_series_covers_last_seven_days_oldest_first():
    week = weekly_completion([], TODAY)
    assert [d['date'] for d in week] == [add_days(TODAY, -o) for o in range(6, -1, -1)]
    assert week[0]['label'] == 'Sun'
    assert week[-1]['label'] == 'Sat'
    assert all(d['percentage'] == 0 and d['total'] == 0 for d in week)


def test_weekly_series_for_single_daily_habit():
    habit = make_habit('Read', done_offsets=(0, 2, 5))
    week = weekly_completion([habit], TODAY)
    percentages = [d['percentage'] for d in week]
    assert percentages.count(100) == 3
    assert percentages.count(0) == 4
    assert all(d['total'] == 1 for d in week)


def test_weekly_series_respects_schedule():
    weekdays_only = make_habit('Gym', done_offsets=(1,), days=['Mon', 'Fri'])
    daily = make_habit('Water', done_offsets=(0, 1))
    week = {d['label']: d for d in weekly_completion([weekdays_only, daily], TODAY)}

    assert week['Fri']['total'] == 2
    assert week['Fri']['completed'] == 2
    assert week['Sat']['total'] == 1
    assert week['Sat']['percentage'] == 100
    assert week['Tue']['total'] == 1
    assert week['Tue']['percentage'] == 0


def test_percentage_rounds_half_up():
    assert percentage(1, 3) == 33
    assert percentage(2, 3) == 67
    assert percentage(1, 8) == 13
    assert percentage(0, 0) == 0


def test_top_longest_streaks():
    habits = [
        make_habit('A', done_offsets=(0,)),
        make_habit('B', done_offsets=(0, 1, 2)),
        make_habit('C'),
        make_habit('D', done_offsets=(3, 4)),
        make_habit('E', done_offsets=(0, 1, 2, 3)),
    ]
    top = top_longest_streaks(habits)
    assert [(t['name'], t['streak']) for t in top] == [('E', 4), ('B', 3), ('D', 2)]


def test_today_progress_counts_only_due_habits():
    habits = [
        make_habit('Run', done_offsets=(0,)),
        make_habit('Swim', days=['Mon']),
    ]
    progress = today_progress(habits, TODAY)
    assert progress == {'completed': 1, 'total': 1, 'percentage': 100, 'all_done': True}
    assert today_progress([], TODAY)['all_done'] is False


def test_coaching_context():
    habits = [
        make_habit('Run', done_offsets=(1, 2, 3)),
        make_habit('Read', done_offsets=(0,)),
    ]
    context = coaching_context(habits, TODAY)
    assert context['completed_today'] == 1
    assert context['total_today'] == 2
    assert context['longest_streak'] == 3
    assert context['longest_streak_habit'] == 'Run'
    assert {'name': 'Run', 'completed': False} in context['habits']
