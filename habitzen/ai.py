"""Thin clients for the two AI features: habit suggestions and a daily coaching line.

Both talk to an LLM over HTTP with requests. Suggestions raise AIServiceError so
the caller can show an error banner; coaching never raises and falls back to a
static message instead.
"""

import logging
import re

import requests

logger = logging.getLogger(__name__)

SUGGESTIONS_FAILED = "Failed to get suggestions. Please try again."
FALLBACK_MESSAGE = "Every small step counts. Keep showing up for your habits today!"
RATE_LIMITED_MESSAGE = "Your coach is catching their breath. Keep going, you're doing great!"

SUGGEST_PROMPT = """You are a helpful assistant that suggests new habits to users based on their interests and goals.

Given the user's interests, suggest a list of habits that they might find beneficial.
The habits should be simple and easy to incorporate into their daily routine.

Interests: {interests}

Format the habits as a numbered list, one short habit name per line, with no other text."""

COACH_PROMPT = """You are HabitZen's AI Motivational Coach. Your tone is upbeat, encouraging, and fun. Your messages must be concise (1-2 sentences).

Generate a personalized motivational message based on the user's progress today.

Here's the user's status:
- Habits completed today: {completed_today}
- Total habits for today: {total_today}
{habit_lines}{streak_line}
Follow these rules for the message:
- If all habits for today are completed (and there's at least one), be celebratory and enthusiastic.
- If no habits are scheduled for today, encourage the user to add one.
- If they have a long streak (more than 5 days), praise that specifically.
- If they've made some progress but aren't finished, acknowledge the progress and gently encourage them to continue.
- If they haven't started yet, give a positive message to kickstart their day.

Reply with the message only."""

_LIST_MARKER = re.compile(r'^\s*(?:\d+[.)]|[-*•])\s+')
_RATE_LIMIT_HINTS = ('rate limit', 'rate-limit', 'ratelimit', 'quota', 'too many requests', '429')


class AIServiceError(Exception):
    """Base error for the AI services"""
    pass


class AIRateLimitError(AIServiceError):
    """The provider refused the request because of rate limiting"""
    pass


def looks_rate_limited(text):
    text = (text or '').lower()
    return any(hint in text for hint in _RATE_LIMIT_HINTS)


class LLMClient:
    """Raw text completion against Ollama or an OpenAI-compatible endpoint"""

    def __init__(self, provider='ollama', model=None, api_url=None, api_key=None, timeout=15):
        self.provider = (provider or 'none').lower()
        self.model = model
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout

    @property
    def enabled(self):
        if self.provider == 'ollama':
            return bool(self.api_url)
        if self.provider == 'openai':
            return bool(self.api_key and self.api_url)
        return False

    def _payload(self, prompt):
        if self.provider == 'openai':
            return {
                'model': self.model,
                'messages': [{'role': 'user', 'content': prompt}],
                'temperature': 0.8,
            }
        return {'model': self.model, 'prompt': prompt, 'stream': False}

    def _headers(self):
        headers = {'Content-Type': 'application/json'}
        if self.provider == 'openai':
            headers['Authorization'] = f"Bearer {self.api_key}"
        return headers

    def _extract(self, data):
        if self.provider == 'openai':
            return data['choices'][0]['message']['content']
        return data['response']

    def complete(self, prompt):
        if not self.enabled:
            raise AIServiceError(f"AI provider '{self.provider}' is not configured")

        try:
            response = requests.post(self.api_url, headers=self._headers(),
                                     json=self._payload(prompt), timeout=self.timeout)
        except requests.RequestException as e:
            raise AIServiceError(f"{self.provider} request failed: {e}") from e

        if response.status_code == 429 or (response.status_code >= 400 and looks_rate_limited(response.text)):
            raise AIRateLimitError(f"{self.provider} rate limited the request ({response.status_code})")
        try:
            response.raise_for_status()
            text = self._extract(response.json())
        except requests.HTTPError as e:
            raise AIServiceError(f"{self.provider} returned an error: {e}") from e
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AIServiceError(f"Unexpected {self.provider} response: {e}") from e

        if not isinstance(text, str) or not text.strip():
            raise AIServiceError(f"Empty {self.provider} response")
        return text.strip()


def parse_habit_list(text):
    """Turn a numbered or bulleted list into clean habit names"""
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    marked = [line for line in lines if _LIST_MARKER.match(line)]
    # Without list markers every non-empty line is taken as a habit
    candidates = marked or lines

    habits = []
    for line in candidates:
        name = _LIST_MARKER.sub('', line).strip().strip('*"\'').strip()
        if name and name not in habits:
            habits.append(name)
    return habits


class HabitAI:
    """The two AI capabilities the app uses: suggest and coach"""

    def __init__(self, llm):
        self.llm = llm

    def suggest(self, interests):
        """Habit names for a free-text interests string; raises AIServiceError"""
        interests = (interests or '').strip()
        if not interests:
            raise AIServiceError("Interests are required")
        text = self.llm.complete(SUGGEST_PROMPT.format(interests=interests))
        habits = parse_habit_list(text)
        if not habits:
            raise AIServiceError("No suggestions in AI response")
        return habits

    def coach(self, context):
        """One short motivational message; falls back to a static line on any failure"""
        habit_lines = ''.join(
            f"- {h['name']}: {'done' if h['completed'] else 'not done yet'}\n"
            for h in context.get('habits', [])
        )
        streak_line = ''
        if context.get('longest_streak_habit'):
            streak_line = (f"- Longest current streak: {context['longest_streak']} days "
                           f"for \"{context['longest_streak_habit']}\"\n")
        prompt = COACH_PROMPT.format(
            completed_today=context.get('completed_today', 0),
            total_today=context.get('total_today', 0),
            habit_lines=habit_lines,
            streak_line=streak_line,
        )

        try:
            return self.llm.complete(prompt)
        except AIRateLimitError as e:
            logger.warning("Coaching message rate limited: %s", e)
            return RATE_LIMITED_MESSAGE
        except AIServiceError as e:
            logger.warning("Coaching message failed: %s", e)
            return FALLBACK_MESSAGE
