import threading
from datetime import datetime

from habitzen.reminders import (
    PERMISSION_DENIED,
    PERMISSION_GRANTED,
    PERMISSION_UNSUPPORTED,
    ReminderScheduler,
    due_reminders,
)

SAT_MORNING = datetime(2024, 1, 13, 7, 30)


def granted(store):
    scheduler = ReminderScheduler(store, interval=3600)
    scheduler.permission = PERMISSION_GRANTED
    return scheduler


def test_due_reminders_filters_time_schedule_and_completion(store):
    wanted = store.create('Stretch', time='07:30')
    store.create('Later', time='08:00')
    store.create('Weekdays', time='07:30', days=['Mon'])
    done = store.create('Done', time='07:30')
    store.toggle_completion(done['id'], '2024-01-13')

    assert [h['id'] for h in due_reminders(store.habits, SAT_MORNING)] == [wanted['id']]


def test_reminder_fires_once_per_day(store):
    store.create('Stretch', time='07:30')
    scheduler = granted(store)

    assert len(scheduler.check_reminders(SAT_MORNING)) == 1
    assert scheduler.check_reminders(SAT_MORNING) == []
    assert len(scheduler.check_reminders(datetime(2024, 1, 14, 7, 30))) == 1


def test_drain_empties_queue(store):
    store.create('Stretch', time='07:30')
    scheduler = granted(store)
    scheduler.check_reminders(SAT_MORNING)

    pending = scheduler.drain()
    assert pending[0]['body'] == 'Time for "Stretch"'
    assert scheduler.drain() == []


def test_no_reminders_without_permission(store):
    store.create('Stretch', time='07:30')
    scheduler = ReminderScheduler(store)
    assert scheduler.check_reminders(SAT_MORNING) == []


def test_permission_is_requested_once(store):
    scheduler = ReminderScheduler(store)
    assert scheduler.request_permission(False) == PERMISSION_DENIED
    assert scheduler.request_permission(True) == PERMISSION_DENIED
    assert not scheduler.enabled


def test_unsupported_stays_unsupported(store):
    scheduler = ReminderScheduler(store, supported=False)
    assert scheduler.request_permission(True) == PERMISSION_UNSUPPORTED


def test_granting_starts_and_stop_shuts_down_scheduler(store):
    scheduler = ReminderScheduler(store, interval=3600)
    assert scheduler.request_permission(True) == PERMISSION_GRANTED
    assert scheduler.running
    assert scheduler._scheduler.get_job('habit_reminders') is not None
    scheduler.stop()
    assert not scheduler.running


def test_drain_waits_for_a_running_check(store):
    store.create('Stretch', time='07:30')
    scheduler = granted(store)
    result = []

    scheduler._lock.acquire()
    worker = threading.Thread(target=lambda: result.append(scheduler.drain()))
    worker.start()
    worker.join(timeout=0.2)
    assert worker.is_alive()

    # Simulates the job queueing a reminder while the drain is blocked
    scheduler.notifications.append({'habit_id': 'x'})
    scheduler._lock.release()
    worker.join(timeout=2)
    assert result == [[{'habit_id': 'x'}]]
    assert scheduler.drain() == []
