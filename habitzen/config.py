import logging
import os

from dotenv import load_dotenv

# Load environment variables from a .env file if present (for local dev)
load_dotenv()

SECRET_KEY = os.environ.get('SECRET_KEY', 'habitzen_local_secret_key')
SECURE_COOKIES = os.environ.get('FLASK_SECURE_COOKIES', '0') == '1'
DEBUG = os.environ.get('FLASK_DEBUG', '1') == '1'
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

HABITS_FILE = os.environ.get('HABITS_FILE', 'habits.json')

# AI provider: "ollama", "openai" or "none"
LLM_PROVIDER = os.environ.get('LLM_PROVIDER', 'ollama').lower()
OLLAMA_MODEL = os.environ.get('OLLAMA_MODEL', 'llama3:8b-instruct-q4_K_M')
OLLAMA_API_URL = os.environ.get('OLLAMA_API_URL', 'http://localhost:11434/api/generate')
OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY')
OPENAI_MODEL = os.environ.get('OPENAI_MODEL', 'gpt-4o-mini')
OPENAI_API_URL = os.environ.get('OPENAI_API_URL', 'https://api.openai.com/v1/chat/completions')
AI_TIMEOUT = int(os.environ.get('AI_TIMEOUT', 15))

REMINDERS_ENABLED = os.environ.get('REMINDERS_ENABLED', '1') == '1'
REMINDER_INTERVAL_SECONDS = int(os.environ.get('REMINDER_INTERVAL_SECONDS', 60))


def setup_logging(level=None):
    """Configure the root logger for the application."""
    level = getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return logging.getLogger("habitzen")
