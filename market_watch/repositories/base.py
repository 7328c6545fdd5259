"""Collaborator interfaces for persistence and alert delivery.

The engine never talks to a database or a mail server directly. It calls these
interfaces, and callers plug in real implementations or the in-memory ones
from market_watch.repositories.memory.
"""
from abc import ABC
from abc import abstractmethod

from market_watch.models.events import EngineEvent
from market_watch.models.pattern import Pattern, PatternFamily
from market_watch.models.support_resistance import (
    LevelType,
    SRLevelTouch,
    SupportResistanceLevel,
)


class LevelRepository(ABC):
    """Storage contract for the support/resistance catalog.

    Levels are never deleted, only deactivated. Touch records are
    append-only.
    """

    @abstractmethod
    def list_levels(
        self,
        symbol: str,
        level_type: LevelType | None = None,
        active_only: bool = True,
    ) -> list[SupportResistanceLevel]:
        """List levels for a symbol, optionally filtered by type and activity."""
        pass

    @abstractmethod
    def list_active_levels(self) -> list[SupportResistanceLevel]:
        """List active levels across all symbols."""
        pass

    @abstractmethod
    def get_level(self, level_id: int) -> SupportResistanceLevel | None:
        pass

    @abstractmethod
    def insert_level(self, level: SupportResistanceLevel) -> SupportResistanceLevel:
        """Store a new level and return it with its assigned id."""
        pass

    @abstractmethod
    def update_level(self, level: SupportResistanceLevel) -> None:
        """Overwrite a stored level.

        Raises:
            PersistenceError: If the level does not exist
        """
        pass

    @abstractmethod
    def deactivate_level(self, level_id: int) -> None:
        """Mark a level inactive.

        Raises:
            PersistenceError: If the level does not exist
        """
        pass

    @abstractmethod
    def add_touch(self, touch: SRLevelTouch) -> None:
        pass

    @abstractmethod
    def list_touches(self, level_id: int) -> list[SRLevelTouch]:
        pass


class PatternRepository(ABC):
    """Storage contract for detected patterns and their theses."""

    @abstractmethod
    def save(self, pattern: Pattern) -> None:
        """Insert or overwrite a pattern keyed by its pattern_id."""
        pass

    @abstractmethod
    def get(self, pattern_id: str) -> Pattern | None:
        pass

    @abstractmethod
    def list_active(
        self, symbol: str | None = None, family: PatternFamily | None = None
    ) -> list[Pattern]:
        """List patterns that are neither complete nor superseded."""
        pass


class EventSink(ABC):
    """Receives lifecycle and catalog events for alert delivery."""

    @abstractmethod
    def publish(self, event: EngineEvent) -> None:
        pass
