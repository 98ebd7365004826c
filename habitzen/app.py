from flask import Flask, request, redirect, url_for, flash, jsonify, get_flashed_messages

from . import config
from .ai import HabitAI, LLMClient, AIServiceError, SUGGESTIONS_FAILED
from .dates import today, is_valid_day_key, is_valid_time
from .reminders import ReminderScheduler
from .stats import (
    coaching_context,
    habit_summary,
    today_progress,
    top_longest_streaks,
    weekly_completion,
)
from .store import HabitStore

logger = config.setup_logging()

app = Flask(__name__)
app.secret_key = config.SECRET_KEY

# Secure session cookies (configure FLASK_SECURE_COOKIES=1 in production)
app.config.update(
    SESSION_COOKIE_HTTPONLY=True,
    SESSION_COOKIE_SAMESITE='Lax',
    SESSION_COOKIE_SECURE=config.SECURE_COOKIES,
    HABITS_FILE=config.HABITS_FILE,
    LLM_PROVIDER=config.LLM_PROVIDER,
    AI_TIMEOUT=config.AI_TIMEOUT,
    REMINDERS_ENABLED=config.REMINDERS_ENABLED,
    REMINDER_INTERVAL_SECONDS=config.REMINDER_INTERVAL_SECONDS,
)

# Basic security headers
@app.after_request
def set_security_headers(resp):
    resp.headers['X-Content-Type-Options'] = 'nosniff'
    resp.headers['X-Frame-Options'] = 'DENY'
    resp.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
    resp.headers['Permissions-Policy'] = 'geolocation=(), microphone=(), camera=()'
    return resp


def build_llm_client(cfg):
    provider = cfg['LLM_PROVIDER']
    if provider == 'openai':
        return LLMClient('openai', model=config.OPENAI_MODEL, api_url=config.OPENAI_API_URL,
                         api_key=config.OPENAI_API_KEY, timeout=cfg['AI_TIMEOUT'])
    if provider == 'ollama':
        return LLMClient('ollama', model=config.OLLAMA_MODEL, api_url=config.OLLAMA_API_URL,
                         timeout=cfg['AI_TIMEOUT'])
    return LLMClient('none')


def init_services(flask_app):
    """(Re)build the store, AI client and reminder scheduler from the app config"""
    old = flask_app.extensions.get('reminders')
    if old is not None:
        old.stop()

    store = HabitStore(flask_app.config['HABITS_FILE'])
    store.load()
    flask_app.extensions['habit_store'] = store
    flask_app.extensions['habit_ai'] = HabitAI(build_llm_client(flask_app.config))
    flask_app.extensions['reminders'] = ReminderScheduler(
        store,
        interval=flask_app.config['REMINDER_INTERVAL_SECONDS'],
        supported=flask_app.config['REMINDERS_ENABLED'],
    )


def get_store():
    return app.extensions['habit_store']


def get_ai():
    return app.extensions['habit_ai']


def get_reminders():
    return app.extensions['reminders']


def is_ajax_request(request):
    """Check if the request is an AJAX request"""
    return (request.is_json or
            request.headers.get('X-Requested-With') == 'XMLHttpRequest' or
            request.accept_mimetypes.best == 'application/json')


def get_payload():
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    return request.form


def get_days(data):
    if hasattr(data, 'getlist'):
        return data.getlist('days')
    days = data.get('days')
    return days if isinstance(days, list) else []


def handle_habit_response(success, message, is_ajax, status=400, **extra):
    """Handle response for habit operations (AJAX or regular)"""
    if is_ajax:
        if success:
            return jsonify({'success': True, 'message': message, **extra})
        else:
            return jsonify({'success': False, 'error': message}), status
    else:
        flash(message, 'success' if success else 'error')
        return redirect(url_for('index'))


def validate_habit_fields(name, time, required=True):
    """Validate habit fields and return error message if invalid"""
    if not isinstance(name, str) or not isinstance(time, str):
        return 'Habit name and time must be text'

    if required and (not name or not name.strip()):
        return 'Habit name is required'

    if name and len(name.strip()) > 200:
        return 'Habit name is too long (max 200 characters)'

    if time and not is_valid_time(time):
        return 'Time must be in HH:MM format'

    return None  # No errors


@app.route('/')
def index():
    store = get_store()
    day = today()
    habits = store.sorted_habits()

    return jsonify({
        'loaded': store.is_loaded,
        'today': day,
        'habits': [habit_summary(h, day) for h in habits],
        'progress': today_progress(habits, day),
        'messages': [
            {'category': category, 'message': message}
            for category, message in get_flashed_messages(with_categories=True)
        ],
    })


@app.route('/api/habits', methods=['GET'])
def list_habits():
    day = today()
    return jsonify([habit_summary(h, day) for h in get_store().sorted_habits()])


@app.route('/api/habit/<habit_id>')
def get_habit(habit_id):
    """API endpoint to get a specific habit"""
    habit = get_store().get(habit_id)
    if habit is None:
        return jsonify({'error': 'Habit not found'}), 404
    return jsonify(habit_summary(habit, today()))


@app.route('/api/habits', methods=['POST'])
def add_habit():
    data = get_payload()
    name = data.get('name') or ''
    time = data.get('time') or ''
    is_ajax = is_ajax_request(request)

    error = validate_habit_fields(name, time)
    if error:
        return handle_habit_response(False, error, is_ajax)
    time = time.strip()

    habit = get_store().create(name, time=time or None, days=get_days(data))
    return handle_habit_response(True, 'Habit added successfully!', is_ajax, habit=habit)


@app.route('/api/habits/batch', methods=['POST'])
def add_suggested_habits():
    data = get_payload()
    names = data.get('names')
    if not isinstance(names, list):
        return jsonify({'success': False, 'error': 'names must be a list'}), 400

    habits = get_store().create_batch(names)
    return jsonify({'success': True, 'habits': habits})


@app.route('/api/habit/<habit_id>/edit', methods=['POST'])
def update_habit(habit_id):
    data = get_payload()
    name = data.get('name') or ''
    time = data.get('time') or ''
    is_ajax = is_ajax_request(request)

    error = validate_habit_fields(name, time, required=False)
    if error:
        return handle_habit_response(False, error, is_ajax)
    time = time.strip()

    habit = get_store().edit(habit_id, name=name, time=time or None, days=get_days(data))
    if habit is None:
        return handle_habit_response(False, 'Habit not found.', is_ajax, status=404)
    return handle_habit_response(True, 'Habit updated successfully!', is_ajax, habit=habit)


@app.route('/api/habit/<habit_id>/delete', methods=['POST'])
def delete_habit(habit_id):
    is_ajax = is_ajax_request(request)
    if get_store().delete(habit_id):
        return handle_habit_response(True, 'Habit deleted successfully!', is_ajax)
    return handle_habit_response(False, 'Habit not found.', is_ajax, status=404)


@app.route('/api/habit/<habit_id>/toggle', methods=['POST'])
def toggle_habit(habit_id):
    data = get_payload()
    day = data.get('date') or today()
    is_ajax = is_ajax_request(request)

    if not is_valid_day_key(day):
        return handle_habit_response(False, 'Date must be in YYYY-MM-DD format', is_ajax)

    store = get_store()
    checked = store.toggle_completion(habit_id, day)
    if checked is None:
        return handle_habit_response(False, 'Habit not found.', is_ajax, status=404)

    habit = store.get(habit_id)
    return handle_habit_response(
        True, 'Habit completed!' if checked else 'Habit unchecked.', is_ajax,
        checked=checked,
        habit=habit_summary(habit, today()),
        progress=today_progress(store.habits, today()),
    )


@app.route('/api/stats')
def get_stats():
    """API endpoint for the weekly chart and streak leaderboard"""
    day = today()
    habits = get_store().habits
    return jsonify({
        'weekly': weekly_completion(habits, day),
        'longest_streaks': top_longest_streaks(habits),
        'progress': today_progress(habits, day),
    })


@app.route('/api/suggestions', methods=['POST'])
def suggest_habits():
    data = get_payload()
    interests = data.get('interests') or ''
    if not isinstance(interests, str) or not interests.strip():
        return jsonify({'success': False, 'error': 'Tell us about your interests first.'}), 400

    try:
        suggestions = get_ai().suggest(interests.strip())
    except AIServiceError as e:
        logger.warning("Habit suggestions failed: %s", e)
        return jsonify({'success': False, 'error': SUGGESTIONS_FAILED}), 502

    existing = {h['name'].lower() for h in get_store().habits}
    return jsonify({
        'success': True,
        'habits': [s for s in suggestions if s.lower() not in existing],
    })


@app.route('/api/motivation')
def get_motivation():
    context = coaching_context(get_store().habits, today())
    return jsonify({'message': get_ai().coach(context)})


@app.route('/api/reminders/permission', methods=['GET', 'POST'])
def reminder_permission():
    reminders = get_reminders()
    if request.method == 'POST':
        data = get_payload()
        granted = str(data.get('granted', '')).lower() in ('1', 'true', 'yes', 'granted')
        reminders.request_permission(granted)
    return jsonify({'permission': reminders.permission, 'enabled': reminders.enabled})


@app.route('/api/notifications')
def get_notifications():
    return jsonify({'notifications': get_reminders().drain()})


@app.route('/healthz')
def healthz():
    return jsonify({'status': 'ok'}), 200


init_services(app)


if __name__ == '__main__':
    app.run(debug=config.DEBUG)
