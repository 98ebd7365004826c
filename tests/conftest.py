import pytest

from habitzen.app import app, init_services
from habitzen.store import HabitStore


@pytest.fixture
def store(tmp_path):
    s = HabitStore(str(tmp_path / 'habits.json'))
    s.load()
    return s


@pytest.fixture
def flask_app(tmp_path):
    app.config.update(
        TESTING=True,
        HABITS_FILE=str(tmp_path / 'habits.json'),
        LLM_PROVIDER='none',
        REMINDERS_ENABLED=True,
        REMINDER_INTERVAL_SECONDS=3600,
    )
    init_services(app)
    yield app
    app.extensions['reminders'].stop()


@pytest.fixture
def client(flask_app):
    return flask_app.test_client()
