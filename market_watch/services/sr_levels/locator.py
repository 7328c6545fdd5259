"""Read-only queries over the level catalog."""
from datetime import datetime, timezone

import numpy as np

from market_watch.models.support_resistance import LevelType, SupportResistanceLevel
from market_watch.repositories.base import LevelRepository
from market_watch.utils.timeouts import call_with_timeout

from .types import LevelSummary, NearestLevels


class NearestLevelLocator:
    """Finds levels around a price and summarizes a symbol's catalog.

    Only active levels are considered. Nothing here mutates the catalog.
    """

    def __init__(self, repository: LevelRepository, timeout: float | None = None) -> None:
        """Initialize locator.

        Args:
            repository: Level persistence collaborator
            timeout: Seconds allowed per repository call; None means unbounded
        """
        self.repository = repository
        self.timeout = timeout

    def _levels(
        self, symbol: str, level_type: LevelType | None = None
    ) -> list[SupportResistanceLevel]:
        return call_with_timeout(
            self.repository.list_levels,
            symbol,
            level_type=level_type,
            active_only=True,
            timeout=self.timeout,
        )

    def find_nearest(self, symbol: str, current_price: float) -> NearestLevels:
        """Highest support strictly below and lowest resistance strictly above a price.

        A level exactly at current_price is neither.
        """
        supports = [
            level
            for level in self._levels(symbol, LevelType.SUPPORT)
            if level.price < current_price
        ]
        resistances = [
            level
            for level in self._levels(symbol, LevelType.RESISTANCE)
            if level.price > current_price
        ]
        return NearestLevels(
            support=max(supports, key=lambda level: level.price, default=None),
            resistance=min(resistances, key=lambda level: level.price, default=None),
        )

    def key_levels(self, symbol: str, count: int = 5) -> list[SupportResistanceLevel]:
        """Strongest active levels, strongest first."""
        levels = sorted(self._levels(symbol), key=lambda level: level.strength, reverse=True)
        return levels[:count]

    def summarize(self, symbol: str, now: datetime | None = None) -> LevelSummary:
        """Summarize the active levels of a symbol.

        Args:
            symbol: Stock symbol
            now: Reference time for the 24h recent-touch window (defaults to now, UTC)
        """
        now = now or datetime.now(timezone.utc)
        levels = self._levels(symbol)

        strengths = np.array([level.strength for level in levels], dtype=float)
        has_levels = strengths.size > 0

        return LevelSummary(
            symbol=symbol,
            total_levels=len(levels),
            support_levels=sum(1 for level in levels if level.level_type == LevelType.SUPPORT),
            resistance_levels=sum(
                1 for level in levels if level.level_type == LevelType.RESISTANCE
            ),
            average_strength=float(strengths.mean()) if has_levels else None,
            max_strength=float(strengths.max()) if has_levels else None,
            min_strength=float(strengths.min()) if has_levels else None,
            recent_touches=sum(1 for level in levels if level.is_recent(now, hours=24.0)),
            last_touch=max((level.last_touch for level in levels), default=None),
        )
