"""Pattern lifecycle service.

Registers detected patterns, applies evidence under a per-pattern lock,
re-derives the phase after every mutation and publishes events for newly
completed components and phase transitions.
"""
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone

from market_watch.core.config import Settings, get_settings
from market_watch.core.exceptions import PatternNotFoundError
from market_watch.models.events import (
    AlertType,
    ComponentCompletedEvent,
    PatternEvent,
    PhaseTransitionEvent,
)
from market_watch.models.pattern import Pattern, PatternFamily, PatternGeometry, Phase
from market_watch.repositories.base import EventSink, PatternRepository
from market_watch.schemas.thesis import PatternThesisSnapshot
from market_watch.services.batch import BatchResult
from market_watch.services.pattern_quality import PatternQualityScorer, QualityBreakdown
from market_watch.services.thesis_config import ThesisConfig
from market_watch.services.thesis_evaluator import EvidenceUpdate, ThesisEvaluator
from market_watch.thesis.pattern_thesis import PatternThesis, UpdateOutcome
from market_watch.utils.keyed_lock import KeyedLockRegistry
from market_watch.utils.structured_logging import get_logger
from market_watch.utils.timeouts import call_with_timeout

logger = get_logger(__name__)


def _transition_alert_type(new_phase: Phase) -> AlertType:
    if new_phase == Phase.COMPLETED:
        return AlertType.TARGET_REACHED
    if new_phase in (Phase.BREAKOUT, Phase.TARGET_PURSUIT):
        return AlertType.BREAKOUT_CONFIRMED
    return AlertType.PHASE_TRANSITION


class PatternLifecycleService:
    """Drives detected patterns through their thesis lifecycle.

    Every read-modify-write of a pattern happens under the pattern's lock
    and every repository call runs under the persistence timeout.
    """

    def __init__(
        self,
        repository: PatternRepository,
        event_sink: EventSink | None = None,
        config: ThesisConfig | None = None,
        settings: Settings | None = None,
        locks: KeyedLockRegistry | None = None,
    ) -> None:
        """Initialize service with collaborators.

        Args:
            repository: Pattern persistence collaborator
            event_sink: Alert collaborator; events are dropped when None
            config: Thesis configuration. Built from settings if not provided.
            settings: Application settings. Uses cached settings if not provided.
            locks: Lock registry shared with other writers of the same patterns
        """
        self.settings = settings or get_settings()
        self.config = config or ThesisConfig.from_settings(self.settings)
        self.repository = repository
        self.event_sink = event_sink
        self.locks = locks or KeyedLockRegistry()
        self._evaluator = ThesisEvaluator(self.config)
        self._scorer = PatternQualityScorer()

    @property
    def _timeout(self) -> float:
        return self.settings.persistence_timeout_seconds

    def register(
        self,
        symbol: str,
        family: PatternFamily | str,
        geometry: PatternGeometry,
        detected_at: datetime | None = None,
    ) -> Pattern:
        """Register a new detection and evaluate its initial thesis.

        Older active patterns of the same symbol and family are superseded
        before any event for the new pattern is published.

        Raises:
            UnknownPatternFamilyError: If the family is not supported
            PersistenceTimeoutError: If a repository call times out
        """
        detected_at = detected_at or datetime.now(timezone.utc)
        thesis = PatternThesis(family)
        pattern = Pattern(
            symbol=symbol,
            family=thesis.family,
            detected_at=detected_at,
            geometry=geometry,
            thesis=thesis,
            last_updated=detected_at,
        )

        with self.locks.hold(pattern.pattern_id):
            existing = call_with_timeout(
                self.repository.get, pattern.pattern_id, timeout=self._timeout
            )
            if existing is not None:
                return existing
            outcome = thesis.apply_updates(self._evaluator.evaluate_initial(pattern), detected_at)
            events = self._finalize(pattern, outcome, detected_at)
            call_with_timeout(self.repository.save, pattern, timeout=self._timeout)

        self._supersede_older(pattern, detected_at)
        self._publish(events)
        logger.info(
            "pattern_registered",
            pattern_id=pattern.pattern_id,
            symbol=symbol,
            family=pattern.family.value,
            phase=pattern.current_phase.value,
            completion=round(thesis.calculate_completion(), 2),
        )
        return pattern

    def _supersede_older(self, newest: Pattern, now: datetime) -> None:
        older = call_with_timeout(
            self.repository.list_active,
            symbol=newest.symbol,
            family=newest.family,
            timeout=self._timeout,
        )
        for candidate in older:
            if candidate.pattern_id == newest.pattern_id:
                continue
            if candidate.detected_at >= newest.detected_at:
                continue
            with self.locks.hold(candidate.pattern_id):
                current = call_with_timeout(
                    self.repository.get, candidate.pattern_id, timeout=self._timeout
                )
                if current is None or not current.is_active:
                    continue
                current.superseded = True
                current.last_updated = now
                call_with_timeout(self.repository.save, current, timeout=self._timeout)
            logger.info(
                "pattern_superseded",
                pattern_id=candidate.pattern_id,
                superseded_by=newest.pattern_id,
            )

    def get(self, pattern_id: str) -> Pattern:
        """Load a pattern.

        Raises:
            PatternNotFoundError: If the id is unknown
        """
        pattern = call_with_timeout(self.repository.get, pattern_id, timeout=self._timeout)
        if pattern is None:
            raise PatternNotFoundError(f"Pattern not found: {pattern_id}")
        return pattern

    def apply_evidence(
        self,
        pattern_id: str,
        updates: Iterable[EvidenceUpdate],
        now: datetime | None = None,
    ) -> UpdateOutcome:
        """Apply a batch of evidence updates to a stored pattern.

        The whole load, mutate and save sequence runs under the pattern's
        lock. An invalid update aborts the batch and nothing is saved.

        Raises:
            PatternNotFoundError: If the id is unknown
            ComponentNotFoundError: If an update names a component outside the schema
            InvalidEvidenceError: If an update carries malformed values
            PersistenceTimeoutError: If a repository call times out
        """
        now = now or datetime.now(timezone.utc)
        with self.locks.hold(pattern_id):
            pattern = self.get(pattern_id)
            outcome = pattern.thesis.apply_updates(updates, now)
            events = self._finalize(pattern, outcome, now)
            call_with_timeout(self.repository.save, pattern, timeout=self._timeout)
        self._publish(events)
        return outcome

    def evaluate_price(
        self,
        pattern_id: str,
        price: float,
        volume_ratio: float | None = None,
        now: datetime | None = None,
    ) -> UpdateOutcome:
        """Evaluate the latest price for one pattern and apply the resulting evidence."""
        now = now or datetime.now(timezone.utc)
        with self.locks.hold(pattern_id):
            pattern = self.get(pattern_id)
            if not pattern.is_active:
                phase = pattern.current_phase
                return UpdateOutcome(previous_phase=phase, current_phase=phase)
            updates = self._evaluator.evaluate_price(pattern, price, volume_ratio)
            return self.apply_evidence(pattern_id, updates, now)

    def reset_component(self, pattern_id: str, name: str, now: datetime | None = None) -> Phase:
        """Explicitly revert one component and return the re-derived phase."""
        now = now or datetime.now(timezone.utc)
        with self.locks.hold(pattern_id):
            pattern = self.get(pattern_id)
            previous = pattern.current_phase
            pattern.thesis.reset_component(name)
            outcome = UpdateOutcome(previous_phase=previous, current_phase=pattern.current_phase)
            events = self._finalize(pattern, outcome, now)
            call_with_timeout(self.repository.save, pattern, timeout=self._timeout)
        self._publish(events)
        return outcome.current_phase

    def monitor(
        self,
        prices: Mapping[str, float],
        volume_ratios: Mapping[str, float] | None = None,
        now: datetime | None = None,
    ) -> BatchResult:
        """Evaluate every active pattern against its symbol's latest price.

        Continue-on-error: a failing pattern is recorded and the batch moves on.
        Patterns whose symbol has no price are skipped.
        """
        now = now or datetime.now(timezone.utc)
        volume_ratios = volume_ratios or {}
        result = BatchResult()

        active = call_with_timeout(self.repository.list_active, timeout=self._timeout)
        logger.info("monitor_started", active_patterns=len(active))

        for pattern in active:
            price = prices.get(pattern.symbol)
            if price is None:
                continue
            try:
                self.evaluate_price(
                    pattern.pattern_id, price, volume_ratios.get(pattern.symbol), now
                )
                result.record_success(pattern.pattern_id)
            except Exception as e:
                logger.error(
                    "monitor_pattern_failed", pattern_id=pattern.pattern_id, error=str(e)
                )
                result.record_failure(pattern.pattern_id, e)

        logger.info(
            "monitor_finished",
            succeeded=result.success_count,
            failed=result.failure_count,
        )
        return result

    def snapshot(self, pattern_id: str) -> PatternThesisSnapshot:
        return self.get(pattern_id).thesis.to_snapshot()

    def quality(self, pattern_id: str) -> QualityBreakdown:
        """Score the quality of a stored pattern."""
        return self._scorer.score(self.get(pattern_id))

    def _finalize(
        self, pattern: Pattern, outcome: UpdateOutcome, now: datetime
    ) -> list[PatternEvent]:
        """Record completion state and build events after a mutation.

        Returns:
            Events to publish once the pattern has been saved
        """
        thesis = pattern.thesis
        pattern.last_updated = now
        pattern.is_complete = outcome.current_phase == Phase.COMPLETED
        events: list[PatternEvent] = []

        pending = thesis.pending_notifications()
        for component in pending:
            events.append(
                ComponentCompletedEvent(
                    pattern_id=pattern.pattern_id,
                    symbol=pattern.symbol,
                    family=pattern.family,
                    component_name=component.name,
                    message=f"{pattern.symbol}: {component.description}",
                    triggered_at=now,
                )
            )
        thesis.mark_notified(component.name for component in pending)

        if outcome.phase_changed:
            completion = thesis.calculate_completion()
            events.append(
                PhaseTransitionEvent(
                    pattern_id=pattern.pattern_id,
                    symbol=pattern.symbol,
                    family=pattern.family,
                    previous_phase=outcome.previous_phase,
                    new_phase=outcome.current_phase,
                    completion_percent=completion,
                    message=(
                        f"{pattern.symbol} {pattern.family.value} moved from "
                        f"{outcome.previous_phase.value} to {outcome.current_phase.value}"
                    ),
                    triggered_at=now,
                    alert_type=_transition_alert_type(outcome.current_phase),
                )
            )
            logger.info(
                "phase_transition",
                pattern_id=pattern.pattern_id,
                previous_phase=outcome.previous_phase.value,
                new_phase=outcome.current_phase.value,
                completion=round(completion, 2),
            )

        pattern.alerts.extend(events)
        return events

    def _publish(self, events: list[PatternEvent]) -> None:
        if self.event_sink is None:
            return
        for event in events:
            self.event_sink.publish(event)
