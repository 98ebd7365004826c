"""HabitZen: a single-user habit tracker with streaks, weekly stats and AI coaching."""

__version__ = '1.0.0'
