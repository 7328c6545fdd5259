"""Events produced by the core for the alerting collaborator."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from market_watch.models.pattern import PatternFamily, Phase
from market_watch.models.support_resistance import LevelType


class AlertType(str, Enum):
    """Kinds of events emitted by the engine."""

    COMPONENT_COMPLETED = "component_completed"
    PHASE_TRANSITION = "phase_transition"
    BREAKOUT_CONFIRMED = "breakout_confirmed"
    TARGET_REACHED = "target_reached"
    LEVEL_CREATED = "level_created"
    LEVEL_DEACTIVATED = "level_deactivated"


@dataclass(frozen=True)
class ComponentCompletedEvent:
    """A thesis component was completed for the first time."""

    pattern_id: str
    symbol: str
    family: PatternFamily
    component_name: str
    message: str
    triggered_at: datetime
    alert_type: AlertType = AlertType.COMPONENT_COMPLETED


@dataclass(frozen=True)
class PhaseTransitionEvent:
    """A pattern moved from one phase to another.

    alert_type is BREAKOUT_CONFIRMED when entering breakout or target
    pursuit, TARGET_REACHED when entering completed.
    """

    pattern_id: str
    symbol: str
    family: PatternFamily
    previous_phase: Phase
    new_phase: Phase
    completion_percent: float
    message: str
    triggered_at: datetime
    alert_type: AlertType = AlertType.PHASE_TRANSITION


@dataclass(frozen=True)
class LevelCreatedEvent:
    """A new support/resistance level entered the catalog."""

    level_id: int
    symbol: str
    price: float
    level_type: LevelType
    triggered_at: datetime
    alert_type: AlertType = AlertType.LEVEL_CREATED


@dataclass(frozen=True)
class LevelDeactivatedEvent:
    """A level was retired by the deactivation sweep."""

    level_id: int
    symbol: str
    price: float
    level_type: LevelType
    hours_since_last_touch: float
    triggered_at: datetime
    alert_type: AlertType = AlertType.LEVEL_DEACTIVATED


PatternEvent = ComponentCompletedEvent | PhaseTransitionEvent
LevelEvent = LevelCreatedEvent | LevelDeactivatedEvent
EngineEvent = PatternEvent | LevelEvent
