"""Deactivation sweep for stale levels."""
import logging
from datetime import datetime, timezone

from market_watch.core.config import Settings, get_settings
from market_watch.models.events import LevelDeactivatedEvent
from market_watch.repositories.base import EventSink, LevelRepository
from market_watch.services.batch import BatchResult
from market_watch.utils.keyed_lock import KeyedLockRegistry
from market_watch.utils.timeouts import call_with_timeout

logger = logging.getLogger(__name__)


class DeactivationSweep:
    """Retires active levels that have not been touched recently.

    A level is retired when the hours since its last touch strictly exceed
    the limit. The sweep is idempotent: retired levels are no longer active,
    so a second run with the same inputs changes nothing.
    """

    def __init__(
        self,
        repository: LevelRepository,
        event_sink: EventSink | None = None,
        settings: Settings | None = None,
        locks: KeyedLockRegistry | None = None,
    ) -> None:
        """Initialize sweep with collaborators.

        Args:
            repository: Level persistence collaborator
            event_sink: Alert collaborator; events are dropped when None
            settings: Application settings. Uses cached settings if not provided.
            locks: Lock registry shared with the aggregator so a sweep never
                races a touch on the same symbol
        """
        self.settings = settings or get_settings()
        self.repository = repository
        self.event_sink = event_sink
        self.locks = locks or KeyedLockRegistry()

    def sweep(self, max_age_hours: float | None = None, now: datetime | None = None) -> BatchResult:
        """Deactivate every active level whose last touch is older than max_age_hours.

        Continue-on-error: a level that fails to deactivate, or whose alert
        cannot be published, is recorded in the result and the sweep moves on.

        Args:
            max_age_hours: Age limit in hours (defaults to sr_max_level_age_hours)
            now: Reference time (defaults to now, UTC)

        Returns:
            BatchResult keyed by level id; only retired or failed levels appear
        """
        if max_age_hours is None:
            max_age_hours = float(self.settings.sr_max_level_age_hours)
        now = now or datetime.now(timezone.utc)
        timeout = self.settings.persistence_timeout_seconds
        result = BatchResult()

        levels = call_with_timeout(self.repository.list_active_levels, timeout=timeout)
        for level in levels:
            age_hours = level.hours_since_last_touch(now)
            if age_hours <= max_age_hours:
                continue

            key = str(level.id)
            try:
                with self.locks.hold(level.symbol):
                    current = call_with_timeout(
                        self.repository.get_level, level.id, timeout=timeout
                    )
                    # touched or retired since the listing
                    if current is None or not current.is_active:
                        continue
                    age_hours = current.hours_since_last_touch(now)
                    if age_hours <= max_age_hours:
                        continue
                    call_with_timeout(self.repository.deactivate_level, level.id, timeout=timeout)

                if self.event_sink is not None:
                    self.event_sink.publish(
                        LevelDeactivatedEvent(
                            level_id=level.id,
                            symbol=level.symbol,
                            price=level.price,
                            level_type=level.level_type,
                            hours_since_last_touch=age_hours,
                            triggered_at=now,
                        )
                    )
                result.record_success(key)
            except Exception as e:
                logger.error(f"Failed to deactivate level {key} for {level.symbol}: {e}")
                result.record_failure(key, e)

        logger.info(
            f"Sweep finished: {result.success_count} levels deactivated, "
            f"{result.failure_count} failed"
        )
        return result
