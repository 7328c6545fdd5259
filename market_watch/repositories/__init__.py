"""Persistence and alerting collaborators."""

from market_watch.repositories.base import EventSink, LevelRepository, PatternRepository
from market_watch.repositories.memory import (
    InMemoryEventSink,
    InMemoryLevelRepository,
    InMemoryPatternRepository,
)

__all__ = [
    "EventSink",
    "LevelRepository",
    "PatternRepository",
    "InMemoryEventSink",
    "InMemoryLevelRepository",
    "InMemoryPatternRepository",
]
