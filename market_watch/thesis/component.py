"""A single weighted, completable thesis criterion."""
from dataclasses import dataclass, field
from datetime import datetime

from market_watch.models.pattern import Tier
from market_watch.thesis.catalog import ComponentSpec


@dataclass
class ThesisComponent:
    """Named criterion of a pattern thesis.

    Weight, required and tier come from the family schema and are read-only.
    Completion is sticky: once completed, only reset() reverts it.

    Attributes:
        spec: Schema row this component was seeded from
        completed: Whether the criterion has been met
        completed_at: Time of the first completion
        confidence: Confidence in the completion (0-100)
        evidence: Ordered, de-duplicated evidence strings
        last_checked: Time of the most recent evaluation
        auto_detected: Whether completion came from automated evaluation
        notification_sent: Whether a completion alert has been emitted
    """

    spec: ComponentSpec
    completed: bool = False
    completed_at: datetime | None = None
    confidence: float = 0.0
    evidence: list[str] = field(default_factory=list)
    last_checked: datetime | None = None
    auto_detected: bool = False
    notification_sent: bool = False

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def description(self) -> str:
        return self.spec.description

    @property
    def weight(self) -> float:
        return self.spec.weight

    @property
    def required(self) -> bool:
        return self.spec.required

    @property
    def tier(self) -> Tier:
        return self.spec.tier

    def apply(
        self,
        completed: bool,
        confidence: float,
        evidence: list[str] | tuple[str, ...],
        checked_at: datetime,
        auto_detected: bool = True,
    ) -> bool:
        """Apply one evaluation to this component.

        Returns:
            True if this call moved the component to completed
        """
        self.last_checked = checked_at
        self.confidence = confidence
        for item in evidence:
            if item not in self.evidence:
                self.evidence.append(item)

        if completed and not self.completed:
            self.completed = True
            self.completed_at = checked_at
            self.auto_detected = auto_detected
            return True
        return False

    def reset(self) -> None:
        """Return the component to its seeded, incomplete state."""
        self.completed = False
        self.completed_at = None
        self.confidence = 0.0
        self.evidence = []
        self.last_checked = None
        self.auto_detected = False
        self.notification_sent = False
