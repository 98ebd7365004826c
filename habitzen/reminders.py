"""Local reminders for habits with a time of day.

An APScheduler interval job runs about once a minute, scans the latest habit snapshot
and queues a notification for every habit that is due today, scheduled for the
current minute and not yet done. The client drains the queue and shows the
notifications itself.
"""

import logging
import threading
from collections import deque
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .dates import current_time, today as today_key
from .schedule import habit_is_due

logger = logging.getLogger(__name__)

PERMISSION_DEFAULT = 'default'
PERMISSION_GRANTED = 'granted'
PERMISSION_DENIED = 'denied'
PERMISSION_UNSUPPORTED = 'unsupported'
PERMISSION_STATES = (PERMISSION_DEFAULT, PERMISSION_GRANTED, PERMISSION_DENIED, PERMISSION_UNSUPPORTED)


def due_reminders(habits, now):
    """Habits whose reminder should fire at `now`"""
    day_key = today_key(now)
    hhmm = current_time(now)
    return [
        h for h in habits
        if h.get('time') == hhmm
        and habit_is_due(h, day_key)
        and not h.get('completions', {}).get(day_key)
    ]


class ReminderScheduler:
    def __init__(self, store, interval=60, supported=True):
        self.store = store
        self.interval = interval
        self.permission = PERMISSION_DEFAULT if supported else PERMISSION_UNSUPPORTED
        self.notifications = deque(maxlen=100)
        self.reminders_sent = set()
        self._lock = threading.Lock()
        self._scheduler = None

    def request_permission(self, granted):
        """Ask once; after the first answer the state sticks"""
        if self.permission == PERMISSION_DEFAULT:
            self.permission = PERMISSION_GRANTED if granted else PERMISSION_DENIED
            logger.info("Reminder permission %s", self.permission)
            if self.permission == PERMISSION_GRANTED:
                self.start()
        return self.permission

    @property
    def enabled(self):
        return self.permission == PERMISSION_GRANTED

    def check_reminders(self, now=None):
        """Queue notifications for this minute; returns the new ones"""
        if not self.enabled:
            return []
        if now is None:
            now = datetime.now()

        day_key = today_key(now)
        fired = []
        with self._lock:
            # Only today's ids can still collide
            self.reminders_sent = {r for r in self.reminders_sent if f"_{day_key}_" in r}

            for habit in due_reminders(self.store.habits, now):
                unique_id = f"{habit['id']}_{day_key}_{habit['time']}"
                if unique_id in self.reminders_sent:
                    continue
                notification = {
                    'title': 'HabitZen Reminder',
                    'body': f"Time for \"{habit['name']}\"",
                    'habit_id': habit['id'],
                    'time': habit['time'],
                }
                self.notifications.append(notification)
                self.reminders_sent.add(unique_id)
                fired.append(notification)
                logger.info("Reminder queued for %s at %s", habit['name'], habit['time'])
        return fired

    def drain(self):
        with self._lock:
            pending = list(self.notifications)
            self.notifications.clear()
        return pending

    def _tick(self):
        try:
            self.check_reminders()
        except Exception:
            logger.exception("Error in reminder job")

    @property
    def running(self):
        return self._scheduler is not None and self._scheduler.running

    def start(self):
        if self.running:
            return
        self._scheduler = BackgroundScheduler()
        self._scheduler.add_job(
            self._tick,
            IntervalTrigger(seconds=self.interval),
            id='habit_reminders',
            replace_existing=True,
            next_run_time=datetime.now(),
        )
        self._scheduler.start()
        logger.info("Reminder scheduler started (every %ss)", self.interval)

    def stop(self):
        if self.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
