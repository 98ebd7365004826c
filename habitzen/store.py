"""The habit collection and its JSON file.

HabitStore is the only thing that mutates habits. Every mutation builds a new
list (records are replaced, never edited in place) and then writes the whole
collection back to disk.
"""

import json
import logging
import threading
import uuid
from datetime import datetime

from .dates import is_valid_day_key, is_valid_time, today as today_key
from .schedule import normalize_days

logger = logging.getLogger(__name__)


def create_habit_entry(name, time=None, days=None):
    """Create a new habit record with all required fields"""
    new_habit = {
        'id': str(uuid.uuid4()),
        'name': name.strip(),
        'completions': {},
        'createdAt': datetime.now().isoformat(),
    }

    # Optional fields are left out entirely when unset
    if time and is_valid_time(time):
        new_habit['time'] = time
    days = normalize_days(days)
    if days:
        new_habit['days'] = days

    return new_habit


def _is_habit_record(value):
    return (isinstance(value, dict)
            and isinstance(value.get('id'), str)
            and isinstance(value.get('name'), str)
            and bool(value['name'].strip()))


def _clean_record(record):
    completions = record.get('completions')
    if not isinstance(completions, dict):
        completions = {}
    habit = {
        'id': record['id'],
        'name': record['name'].strip(),
        'completions': {k: bool(v) for k, v in completions.items() if is_valid_day_key(k)},
        'createdAt': record['createdAt'] if isinstance(record.get('createdAt'), str) else '',
    }
    if is_valid_time(record.get('time')):
        habit['time'] = record['time']
    days = normalize_days(record.get('days')) if isinstance(record.get('days'), list) else None
    if days:
        habit['days'] = days
    return habit


def sort_key(habit):
    # Timed habits first in clock order, then creation order
    time = habit.get('time')
    return (time is None, time or '', habit.get('createdAt', ''))


class HabitStore:
    def __init__(self, path):
        self.path = path
        self.is_loaded = False
        self._habits = []
        self._lock = threading.Lock()

    # ----- persistence -----

    def load(self):
        """Read the collection once; a missing or corrupt file is an empty store"""
        habits = []
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except FileNotFoundError:
            data = []
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error("Failed to load habits from %s: %s", self.path, e)
            data = []

        if not isinstance(data, list):
            logger.error("Habit file %s does not hold a list, starting empty", self.path)
            data = []

        seen = set()
        for record in data:
            if not _is_habit_record(record) or record['id'] in seen:
                logger.warning("Skipping malformed habit record: %r", record)
                continue
            seen.add(record['id'])
            habits.append(_clean_record(record))

        with self._lock:
            self._habits = habits
            self.is_loaded = True
        logger.info("Loaded %d habits from %s", len(habits), self.path)
        return list(habits)

    def _save(self, habits):
        try:
            with open(self.path, 'w') as f:
                json.dump(habits, f, indent=2)
        except (OSError, TypeError, ValueError):
            logger.exception("Failed to save habits to %s", self.path)

    def _commit(self, habits):
        self._habits = habits
        self._save(habits)

    # ----- reads -----

    @property
    def habits(self):
        return list(self._habits)

    def sorted_habits(self):
        return sorted(self._habits, key=sort_key)

    def get(self, habit_id):
        for habit in self._habits:
            if habit['id'] == habit_id:
                return habit
        return None

    # ----- mutations -----

    def create(self, name, time=None, days=None):
        if not isinstance(name, str) or not name.strip():
            return None
        new_habit = create_habit_entry(name, time=time, days=days)
        with self._lock:
            self._commit(self._habits + [new_habit])
        logger.info("Created habit %s (%s)", new_habit['id'], new_habit['name'])
        return new_habit

    def create_batch(self, names):
        """Bulk create, used for accepted AI suggestions"""
        new_habits = [
            create_habit_entry(name) for name in names
            if isinstance(name, str) and name.strip()
        ]
        if not new_habits:
            return []
        with self._lock:
            self._commit(self._habits + new_habits)
        logger.info("Created %d habits from suggestions", len(new_habits))
        return new_habits

    def edit(self, habit_id, name=None, time=None, days=None):
        """Replace name/time/days. Empty time or days unset them."""
        with self._lock:
            habit = self.get(habit_id)
            if habit is None:
                return None

            updated = {k: v for k, v in habit.items() if k not in ('time', 'days')}
            # A blank name keeps the current one, same rule as create
            if isinstance(name, str) and name.strip():
                updated['name'] = name.strip()
            if time and is_valid_time(time):
                updated['time'] = time
            days = normalize_days(days)
            if days:
                updated['days'] = days

            self._commit([updated if h['id'] == habit_id else h for h in self._habits])
        return updated

    def delete(self, habit_id):
        with self._lock:
            habits = [h for h in self._habits if h['id'] != habit_id]
            if len(habits) == len(self._habits):
                return False
            self._commit(habits)
        logger.info("Deleted habit %s", habit_id)
        return True

    def toggle_completion(self, habit_id, day_key=None):
        """Flip the completion for a day (today by default); returns the new value"""
        if day_key is None:
            day_key = today_key()
        if not is_valid_day_key(day_key):
            return None

        with self._lock:
            habit = self.get(habit_id)
            if habit is None:
                return None
            completions = dict(habit['completions'])
            completions[day_key] = not completions.get(day_key, False)
            updated = {**habit, 'completions': completions}
            self._commit([updated if h['id'] == habit_id else h for h in self._habits])
        return completions[day_key]
