"""Domain models for the Market Watch pattern engine.

Import models from this module to ensure proper dependency resolution.
"""

from market_watch.models.pattern import (
    Pattern,
    PatternFamily,
    PatternGeometry,
    PatternPoint,
    Phase,
    PointRole,
    Tier,
    VolumeProfile,
)
from market_watch.models.support_resistance import (
    LevelType,
    PivotPoint,
    PivotType,
    SRLevelTouch,
    SupportResistanceLevel,
    TouchDirection,
    TouchEvent,
    TouchType,
)
from market_watch.models.events import (
    AlertType,
    ComponentCompletedEvent,
    EngineEvent,
    LevelCreatedEvent,
    LevelDeactivatedEvent,
    PatternEvent,
    PhaseTransitionEvent,
)

__all__ = [
    "Pattern",
    "PatternFamily",
    "PatternGeometry",
    "PatternPoint",
    "Phase",
    "PointRole",
    "Tier",
    "VolumeProfile",
    "LevelType",
    "PivotPoint",
    "PivotType",
    "SRLevelTouch",
    "SupportResistanceLevel",
    "TouchDirection",
    "TouchEvent",
    "TouchType",
    "AlertType",
    "ComponentCompletedEvent",
    "EngineEvent",
    "LevelCreatedEvent",
    "LevelDeactivatedEvent",
    "PatternEvent",
    "PhaseTransitionEvent",
]
