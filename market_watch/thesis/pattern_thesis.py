"""Pattern thesis: a family's weighted checklist with derived completion and phase."""
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from market_watch.core.exceptions import ComponentNotFoundError, InvalidEvidenceError
from market_watch.models.pattern import PatternFamily, Phase, Tier
from market_watch.schemas.thesis import PatternThesisSnapshot, ThesisComponentSchema
from market_watch.thesis.catalog import FamilySchema, get_family_schema
from market_watch.thesis.component import ThesisComponent
from market_watch.thesis.lifecycle import derive_phase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComponentUpdate:
    """One evidence update addressed to a component by name."""

    name: str
    completed: bool
    confidence: float = 0.0
    evidence: tuple[str, ...] = ()


@dataclass
class UpdateOutcome:
    """What a batch of component updates changed.

    Attributes:
        newly_completed: Components that moved to completed in this batch
        previous_phase: Phase before the batch
        current_phase: Phase after the batch
    """

    newly_completed: list[str] = field(default_factory=list)
    previous_phase: Phase = Phase.FORMATION
    current_phase: Phase = Phase.FORMATION

    @property
    def phase_changed(self) -> bool:
        return self.previous_phase != self.current_phase


def _validate(confidence: float, evidence: Iterable[str]) -> tuple[str, ...]:
    if not 0 <= confidence <= 100:
        raise InvalidEvidenceError(f"Confidence must be between 0 and 100, got {confidence}")
    items = tuple(evidence)
    for item in items:
        if not isinstance(item, str):
            raise InvalidEvidenceError(f"Evidence items must be strings, got {type(item).__name__}")
    return items


class PatternThesis:
    """Weighted checklist tracking how far a pattern has progressed.

    The component set is fixed by the family schema. Completion percentage and
    phase are always derived from component state, never stored.

    Example:
        >>> thesis = PatternThesis(PatternFamily.FALLING_WEDGE)
        >>> thesis.update_component("downtrend_established", True, 90, ["lower highs"])
        True
        >>> thesis.calculate_completion()
        10.0
    """

    def __init__(self, family: PatternFamily | str) -> None:
        """Seed the family's components with zeroed completion state.

        Raises:
            UnknownPatternFamilyError: If the family has no schema
        """
        self._schema: FamilySchema = get_family_schema(family)
        self._components: dict[str, ThesisComponent] = {
            spec.name: ThesisComponent(spec=spec) for spec in self._schema.components
        }

    @classmethod
    def initialize(cls, family: PatternFamily | str) -> "PatternThesis":
        return cls(family)

    @property
    def family(self) -> PatternFamily:
        return self._schema.family

    @property
    def schema(self) -> FamilySchema:
        return self._schema

    @property
    def components(self) -> list[ThesisComponent]:
        """Components in schema order."""
        return list(self._components.values())

    def get_component(self, name: str) -> ThesisComponent:
        """Look up a component by name.

        Raises:
            ComponentNotFoundError: If the name is not in this family's schema
        """
        component = self._components.get(name)
        if component is None:
            raise ComponentNotFoundError(name, self.family.value)
        return component

    def is_completed(self, name: str) -> bool:
        return self.get_component(name).completed

    def update_component(
        self,
        name: str,
        completed: bool,
        confidence: float = 0.0,
        evidence: Iterable[str] = (),
        checked_at: datetime | None = None,
    ) -> bool:
        """Apply one evidence update to a component.

        Completion is sticky: completed=False never reverts a completed
        component. Evidence is merged without duplicates, so the same update
        applied twice with the same checked_at yields the same state.

        Args:
            name: Component name from the family schema
            completed: Whether the criterion is currently met
            confidence: Confidence in the evaluation (0-100)
            evidence: Evidence strings supporting the evaluation
            checked_at: Evaluation time (defaults to now, UTC)

        Returns:
            True if the component became completed with this update

        Raises:
            ComponentNotFoundError: If the name is not in this family's schema
            InvalidEvidenceError: If confidence or evidence are malformed
        """
        component = self.get_component(name)
        items = _validate(confidence, evidence)
        checked_at = checked_at or datetime.now(timezone.utc)
        became_complete = component.apply(completed, confidence, items, checked_at)
        if became_complete:
            logger.debug(f"{self.family.value} component {name} completed")
        return became_complete

    def apply_updates(
        self, updates: Iterable[ComponentUpdate], checked_at: datetime | None = None
    ) -> UpdateOutcome:
        """Apply a batch of updates atomically.

        Every update is validated before any is applied, so an unknown name or
        malformed value leaves the thesis untouched.

        Raises:
            ComponentNotFoundError: If any name is not in this family's schema
            InvalidEvidenceError: If any update carries malformed values
        """
        batch = list(updates)
        for update in batch:
            self.get_component(update.name)
            _validate(update.confidence, update.evidence)

        checked_at = checked_at or datetime.now(timezone.utc)
        outcome = UpdateOutcome(previous_phase=self.current_phase)
        for update in batch:
            if self.update_component(
                update.name, update.completed, update.confidence, update.evidence, checked_at
            ):
                outcome.newly_completed.append(update.name)
        outcome.current_phase = self.current_phase
        return outcome

    def reset_component(self, name: str) -> None:
        """Explicitly revert a component to incomplete.

        Raises:
            ComponentNotFoundError: If the name is not in this family's schema
        """
        self.get_component(name).reset()
        logger.info(f"{self.family.value} component {name} reset")

    @property
    def completed_count(self) -> int:
        return sum(1 for c in self._components.values() if c.completed)

    @property
    def total_count(self) -> int:
        return len(self._components)

    def calculate_completion(self) -> float:
        """Weighted completion percentage: 100 * completed weight / total weight."""
        total = sum(c.weight for c in self._components.values())
        if total <= 0:
            return 0.0
        done = sum(c.weight for c in self._components.values() if c.completed)
        return 100.0 * done / total

    @property
    def completion_percent(self) -> float:
        return self.calculate_completion()

    def tier_completion(self, tier: Tier) -> float:
        """Weighted completion percentage within one tier."""
        members = [c for c in self._components.values() if c.tier == tier]
        total = sum(c.weight for c in members)
        if total <= 0:
            return 0.0
        return 100.0 * sum(c.weight for c in members if c.completed) / total

    def update_phase(self) -> Phase:
        """Derive the current phase from component completion."""
        return derive_phase(
            self._schema, {name: c.completed for name, c in self._components.items()}
        )

    @property
    def current_phase(self) -> Phase:
        return self.update_phase()

    def pending_notifications(self) -> list[ThesisComponent]:
        """Completed components whose completion alert has not been emitted."""
        return [c for c in self._components.values() if c.completed and not c.notification_sent]

    def mark_notified(self, names: Iterable[str]) -> None:
        for name in names:
            self.get_component(name).notification_sent = True

    def to_snapshot(self) -> PatternThesisSnapshot:
        """Export the thesis as a validated snapshot."""
        return PatternThesisSnapshot(
            family=self.family,
            completion_percent=self.calculate_completion(),
            phase=self.current_phase,
            completed_count=self.completed_count,
            total_count=self.total_count,
            components=[
                ThesisComponentSchema(
                    name=c.name,
                    description=c.description,
                    weight=c.weight,
                    required=c.required,
                    tier=c.tier,
                    completed=c.completed,
                    completed_at=c.completed_at,
                    confidence=c.confidence,
                    evidence=list(c.evidence),
                    last_checked=c.last_checked,
                    auto_detected=c.auto_detected,
                    notification_sent=c.notification_sent,
                )
                for c in self._components.values()
            ],
        )

    @classmethod
    def from_snapshot(cls, snapshot: PatternThesisSnapshot) -> "PatternThesis":
        """Rebuild a thesis from a snapshot.

        Weight, required and tier always come from the current schema; the
        snapshot supplies only mutable completion state.

        Raises:
            ComponentNotFoundError: If the snapshot names a component outside
                the family schema
        """
        thesis = cls(snapshot.family)
        for item in snapshot.components:
            component = thesis.get_component(item.name)
            component.completed = item.completed
            component.completed_at = item.completed_at
            component.confidence = item.confidence
            component.evidence = list(item.evidence)
            component.last_checked = item.last_checked
            component.auto_detected = item.auto_detected
            component.notification_sent = item.notification_sent
        return thesis

    def __repr__(self) -> str:
        return (
            f"PatternThesis(family={self.family.value}, "
            f"completion={self.calculate_completion():.1f}%, phase={self.current_phase.value})"
        )
