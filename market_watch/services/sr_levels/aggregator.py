"""Support/resistance level aggregation.

Attaches touch events to existing levels or creates new ones. The
match-then-create sequence for a symbol runs under that symbol's lock, so two
concurrent touches near the same price can never create duplicate levels.
"""
import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import datetime, timezone

from market_watch.core.config import Settings, get_settings
from market_watch.models.events import LevelCreatedEvent
from market_watch.models.support_resistance import (
    LevelType,
    SRLevelTouch,
    SupportResistanceLevel,
    TouchEvent,
    TouchType,
)
from market_watch.repositories.base import EventSink, LevelRepository
from market_watch.services.batch import BatchResult
from market_watch.utils.keyed_lock import KeyedLockRegistry
from market_watch.utils.timeouts import call_with_timeout

from .strength import calculate_strength
from .types import LevelCandidate, SRConfig, StrengthWeights, TouchResult

logger = logging.getLogger(__name__)


def distance_percent(price: float, level_price: float) -> float:
    """Distance between a price and a level as percent of the level price."""
    return abs(price - level_price) / level_price * 100


def find_match(
    levels: Iterable[SupportResistanceLevel], price: float, tolerance_pct: float
) -> SupportResistanceLevel | None:
    """Nearest level within tolerance of price, ties broken by lowest id."""
    best: SupportResistanceLevel | None = None
    best_key: tuple[float, int] | None = None
    for level in levels:
        distance = distance_percent(price, level.price)
        if distance > tolerance_pct:
            continue
        key = (distance, level.id if level.id is not None else 0)
        if best_key is None or key < best_key:
            best, best_key = level, key
    return best


class SRLevelAggregator:
    """Maintains the support/resistance catalog from touch events and pivot clusters."""

    def __init__(
        self,
        repository: LevelRepository,
        event_sink: EventSink | None = None,
        config: SRConfig | None = None,
        weights: StrengthWeights | None = None,
        settings: Settings | None = None,
        locks: KeyedLockRegistry | None = None,
    ) -> None:
        """Initialize aggregator with collaborators.

        Args:
            repository: Level persistence collaborator
            event_sink: Alert collaborator; events are dropped when None
            config: Matching configuration. Built from settings if not provided.
            weights: Strength coefficients. Built from settings if not provided.
            settings: Application settings. Uses cached settings if not provided.
            locks: Lock registry shared with other writers of the same symbols
        """
        self.settings = settings or get_settings()
        self.config = config or SRConfig.from_settings(self.settings)
        self.weights = weights or StrengthWeights.from_settings(self.settings)
        self.repository = repository
        self.event_sink = event_sink
        self.locks = locks or KeyedLockRegistry()

    @property
    def _timeout(self) -> float:
        return self.settings.persistence_timeout_seconds

    def _active_levels(self, symbol: str, level_type: LevelType) -> list[SupportResistanceLevel]:
        return call_with_timeout(
            self.repository.list_levels,
            symbol,
            level_type=level_type,
            active_only=True,
            timeout=self._timeout,
        )

    def ingest_touch(
        self, symbol: str, touch: TouchEvent, as_of: datetime | None = None
    ) -> TouchResult:
        """Attach a touch to the nearest matching level or create a new level.

        The level type is implied by the approach direction. A matching level
        is the nearest active level of that type within touch_tolerance_pct of
        the touch price. The level price stays anchored; touches only update
        its statistics.

        Args:
            symbol: Stock symbol
            touch: Touch event from the detector
            as_of: Reference time for strength (defaults to now, UTC)

        Returns:
            TouchResult with the updated or created level and the touch record

        Raises:
            PersistenceError: If the repository fails
            PersistenceTimeoutError: If a repository call times out
        """
        as_of = as_of or datetime.now(timezone.utc)
        level_type = touch.level_type

        with self.locks.hold(symbol):
            match = find_match(
                self._active_levels(symbol, level_type), touch.price, self.config.touch_tolerance_pct
            )

            if match is not None:
                level = self._attach(match, touch, as_of)
                call_with_timeout(self.repository.update_level, level, timeout=self._timeout)
                created = False
            else:
                level = self._new_level(symbol, touch, as_of)
                level = call_with_timeout(self.repository.insert_level, level, timeout=self._timeout)
                created = True

            record = self._touch_record(level, touch)
            call_with_timeout(self.repository.add_touch, record, timeout=self._timeout)

        if created:
            logger.info(
                f"Created {level.level_type.value} level {level.id} for {symbol} at {level.price:.2f}"
            )
            self._publish(
                LevelCreatedEvent(
                    level_id=level.id,
                    symbol=symbol,
                    price=level.price,
                    level_type=level.level_type,
                    triggered_at=as_of,
                )
            )
        else:
            logger.debug(
                f"Touch at {touch.price:.2f} attached to level {level.id} ({level.touches} touches)"
            )
        return TouchResult(level=level, created=created, touch=record)

    def _attach(
        self, level: SupportResistanceLevel, touch: TouchEvent, as_of: datetime
    ) -> SupportResistanceLevel:
        n = level.touches
        updated = replace(
            level,
            touches=n + 1,
            avg_bounce_percent=(level.avg_bounce_percent * n + touch.bounce_percent) / (n + 1),
            max_bounce_percent=max(level.max_bounce_percent, touch.bounce_percent),
            avg_volume=(level.avg_volume * n + touch.volume) / (n + 1),
            volume_confirmed=level.volume_confirmed or touch.volume_spike,
            first_touch=min(level.first_touch, touch.timestamp),
            last_touch=max(level.last_touch, touch.timestamp),
            last_validated=as_of,
        )
        updated.strength = calculate_strength(updated, as_of, self.weights)
        return updated

    def _new_level(self, symbol: str, touch: TouchEvent, as_of: datetime) -> SupportResistanceLevel:
        level = SupportResistanceLevel(
            symbol=symbol,
            price=touch.price,
            level_type=touch.level_type,
            first_touch=touch.timestamp,
            last_touch=touch.timestamp,
            touches=1,
            volume_confirmed=touch.volume_spike,
            avg_bounce_percent=touch.bounce_percent,
            max_bounce_percent=touch.bounce_percent,
            avg_volume=float(touch.volume),
            last_validated=as_of,
        )
        level.strength = calculate_strength(level, as_of, self.weights)
        return level

    def _touch_record(self, level: SupportResistanceLevel, touch: TouchEvent) -> SRLevelTouch:
        confirmed = touch.bounce_percent >= self.config.min_bounce_pct
        return SRLevelTouch(
            level_id=level.id,
            symbol=level.symbol,
            touch_time=touch.timestamp,
            touch_price=touch.price,
            level_price=level.price,
            distance_percent=distance_percent(touch.price, level.price),
            bounce_percent=touch.bounce_percent,
            volume_at_touch=touch.volume,
            volume_spike=touch.volume_spike,
            bounce_confirmed=confirmed,
            touch_type=TouchType.BOUNCE if confirmed else TouchType.TEST,
        )

    def ingest_batch(
        self,
        touches: Mapping[str, Iterable[TouchEvent]],
        as_of: datetime | None = None,
    ) -> BatchResult:
        """Ingest touches for many symbols, continuing past failures.

        Each touch is recorded under the key "<symbol>@<timestamp>".
        """
        as_of = as_of or datetime.now(timezone.utc)
        result = BatchResult()
        for symbol, events in touches.items():
            for touch in events:
                key = f"{symbol}@{touch.timestamp.isoformat()}"
                try:
                    self.ingest_touch(symbol, touch, as_of)
                    result.record_success(key)
                except Exception as e:
                    logger.error(f"Failed to ingest touch {key}: {e}")
                    result.record_failure(key, e)

        logger.info(
            f"Touch batch finished: {result.success_count} ingested, {result.failure_count} failed"
        )
        return result

    def merge_candidates(
        self,
        symbol: str,
        candidates: Iterable[LevelCandidate],
        as_of: datetime | None = None,
    ) -> list[SupportResistanceLevel]:
        """Merge clustered candidates into the catalog.

        A candidate matching an active level of the same type within
        touch_tolerance_pct refreshes that level's statistics; otherwise it is
        inserted as a new level. Touch counts never decrease on refresh and
        average volume is weighted by the touch counts on both sides.

        Returns:
            The updated or inserted levels, in candidate order
        """
        as_of = as_of or datetime.now(timezone.utc)
        merged: list[SupportResistanceLevel] = []
        created: list[SupportResistanceLevel] = []

        with self.locks.hold(symbol):
            for candidate in candidates:
                existing = self._active_levels(symbol, candidate.level_type)
                match = find_match(existing, candidate.price, self.config.touch_tolerance_pct)
                if match is not None:
                    level = replace(
                        match,
                        touches=max(match.touches, candidate.touches),
                        first_touch=min(match.first_touch, candidate.first_touch),
                        last_touch=max(match.last_touch, candidate.last_touch),
                        avg_bounce_percent=candidate.avg_bounce_percent or match.avg_bounce_percent,
                        max_bounce_percent=max(
                            match.max_bounce_percent, candidate.max_bounce_percent
                        ),
                        avg_volume=(
                            match.avg_volume * match.touches
                            + candidate.avg_volume * candidate.touches
                        )
                        / (match.touches + candidate.touches),
                        volume_confirmed=match.volume_confirmed or candidate.volume_confirmed,
                        last_validated=as_of,
                    )
                    level.strength = calculate_strength(level, as_of, self.weights)
                    call_with_timeout(self.repository.update_level, level, timeout=self._timeout)
                else:
                    level = SupportResistanceLevel(
                        symbol=symbol,
                        price=candidate.price,
                        level_type=candidate.level_type,
                        first_touch=candidate.first_touch,
                        last_touch=candidate.last_touch,
                        touches=candidate.touches,
                        volume_confirmed=candidate.volume_confirmed,
                        avg_bounce_percent=candidate.avg_bounce_percent,
                        max_bounce_percent=candidate.max_bounce_percent,
                        avg_volume=candidate.avg_volume,
                        last_validated=as_of,
                    )
                    level.strength = calculate_strength(level, as_of, self.weights)
                    level = call_with_timeout(
                        self.repository.insert_level, level, timeout=self._timeout
                    )
                    created.append(level)
                merged.append(level)

        for level in created:
            self._publish(
                LevelCreatedEvent(
                    level_id=level.id,
                    symbol=symbol,
                    price=level.price,
                    level_type=level.level_type,
                    triggered_at=as_of,
                )
            )
        logger.info(
            f"Merged {len(merged)} candidates for {symbol} ({len(created)} new levels)"
        )
        return merged

    def _publish(self, event: LevelCreatedEvent) -> None:
        if self.event_sink is not None:
            self.event_sink.publish(event)
