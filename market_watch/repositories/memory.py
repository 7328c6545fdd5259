"""In-memory collaborator implementations.

Useful for:
- Unit testing services without a storage backend
- Local development and demonstrations

Stored objects are copied on the way in and out, so callers cannot mutate
repository state without going through the interface.
"""
import copy
import itertools
import logging
import threading

from market_watch.core.exceptions import PersistenceError
from market_watch.models.events import EngineEvent
from market_watch.models.pattern import Pattern, PatternFamily
from market_watch.models.support_resistance import (
    LevelType,
    SRLevelTouch,
    SupportResistanceLevel,
)
from market_watch.repositories.base import EventSink, LevelRepository, PatternRepository

logger = logging.getLogger(__name__)


class InMemoryLevelRepository(LevelRepository):
    """Thread-safe in-memory level catalog.

    Example:
        >>> repo = InMemoryLevelRepository()
        >>> stored = repo.insert_level(level)
        >>> repo.get_level(stored.id).price == level.price
        True
    """

    def __init__(self) -> None:
        self._levels: dict[int, SupportResistanceLevel] = {}
        self._touches: dict[int, list[SRLevelTouch]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def list_levels(
        self,
        symbol: str,
        level_type: LevelType | None = None,
        active_only: bool = True,
    ) -> list[SupportResistanceLevel]:
        with self._lock:
            return [
                copy.copy(level)
                for level in self._levels.values()
                if level.symbol == symbol
                and (level_type is None or level.level_type == level_type)
                and (level.is_active or not active_only)
            ]

    def list_active_levels(self) -> list[SupportResistanceLevel]:
        with self._lock:
            return [copy.copy(level) for level in self._levels.values() if level.is_active]

    def get_level(self, level_id: int) -> SupportResistanceLevel | None:
        with self._lock:
            level = self._levels.get(level_id)
            return copy.copy(level) if level is not None else None

    def insert_level(self, level: SupportResistanceLevel) -> SupportResistanceLevel:
        with self._lock:
            stored = copy.copy(level)
            stored.id = next(self._ids)
            self._levels[stored.id] = stored
            self._touches.setdefault(stored.id, [])
            logger.debug(f"Inserted {stored.level_type.value} level {stored.id} for {stored.symbol}")
            return copy.copy(stored)

    def update_level(self, level: SupportResistanceLevel) -> None:
        with self._lock:
            if level.id is None or level.id not in self._levels:
                raise PersistenceError(f"Level {level.id} does not exist")
            self._levels[level.id] = copy.copy(level)

    def deactivate_level(self, level_id: int) -> None:
        with self._lock:
            level = self._levels.get(level_id)
            if level is None:
                raise PersistenceError(f"Level {level_id} does not exist")
            level.is_active = False

    def add_touch(self, touch: SRLevelTouch) -> None:
        with self._lock:
            if touch.level_id not in self._levels:
                raise PersistenceError(f"Level {touch.level_id} does not exist")
            self._touches[touch.level_id].append(touch)

    def list_touches(self, level_id: int) -> list[SRLevelTouch]:
        with self._lock:
            return list(self._touches.get(level_id, []))


class InMemoryPatternRepository(PatternRepository):
    """Thread-safe in-memory pattern store keyed by pattern_id."""

    def __init__(self) -> None:
        self._patterns: dict[str, Pattern] = {}
        self._lock = threading.Lock()

    def save(self, pattern: Pattern) -> None:
        with self._lock:
            self._patterns[pattern.pattern_id] = copy.deepcopy(pattern)

    def get(self, pattern_id: str) -> Pattern | None:
        with self._lock:
            pattern = self._patterns.get(pattern_id)
            return copy.deepcopy(pattern) if pattern is not None else None

    def list_active(
        self, symbol: str | None = None, family: PatternFamily | None = None
    ) -> list[Pattern]:
        with self._lock:
            return [
                copy.deepcopy(pattern)
                for pattern in self._patterns.values()
                if pattern.is_active
                and (symbol is None or pattern.symbol == symbol)
                and (family is None or pattern.family == family)
            ]


class InMemoryEventSink(EventSink):
    """Collects published events in order."""

    def __init__(self) -> None:
        self.events: list[EngineEvent] = []
        self._lock = threading.Lock()

    def publish(self, event: EngineEvent) -> None:
        with self._lock:
            self.events.append(event)
        logger.info(f"Event published: {event.alert_type.value}")

    def of_type(self, event_type: type) -> list[EngineEvent]:
        with self._lock:
            return [event for event in self.events if isinstance(event, event_type)]
