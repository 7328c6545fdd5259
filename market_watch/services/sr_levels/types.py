"""Type definitions for the support/resistance level catalog."""

from dataclasses import dataclass
from datetime import datetime

from market_watch.core.config import Settings, get_settings
from market_watch.models.support_resistance import (
    LevelType,
    SRLevelTouch,
    SupportResistanceLevel,
)
from market_watch.schemas.levels import LevelSummarySchema


@dataclass
class SRConfig:
    """Configuration for level matching and clustering.

    Attributes:
        touch_tolerance_pct: Max distance (percent of level price) for a touch to attach
        min_touches: Minimum pivots in a cluster before it becomes a level
        min_level_distance_pct: Clustering width as percent of the cluster's first price
        min_bounce_pct: Bounce percent at which a touch counts as a confirmed bounce
        max_level_age_hours: Default hours since last touch before a level is retired
    """

    touch_tolerance_pct: float = 0.5
    min_touches: int = 3
    min_level_distance_pct: float = 1.0
    min_bounce_pct: float = 2.0
    max_level_age_hours: float = 168.0

    def __post_init__(self) -> None:
        """Validate configuration values after initialization."""
        if self.touch_tolerance_pct < 0:
            raise ValueError(f"Touch tolerance ({self.touch_tolerance_pct}) cannot be negative")
        if self.min_touches < 1:
            raise ValueError(f"Minimum touches ({self.min_touches}) must be at least 1")
        if self.max_level_age_hours <= 0:
            raise ValueError(f"Max level age ({self.max_level_age_hours}) must be positive")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "SRConfig":
        """Create from application settings."""
        settings = settings or get_settings()
        return cls(
            touch_tolerance_pct=settings.sr_touch_tolerance_pct,
            min_touches=settings.sr_min_touches,
            min_level_distance_pct=settings.sr_min_level_distance_pct,
            min_bounce_pct=settings.sr_min_bounce_pct,
            max_level_age_hours=float(settings.sr_max_level_age_hours),
        )


@dataclass
class StrengthWeights:
    """Coefficients of the level strength score.

    Strength is the sum of five capped terms, clamped to [0, 100]:

    - touches: touch_cap * (1 - (1 - touch_points / touch_cap) ** touches).
      The first touch is worth touch_points and each further touch is worth
      less, approaching touch_cap.
    - bounce: min(bounce_cap, avg_bounce_percent * bounce_multiplier)
    - volume: volume_points when the level is volume confirmed
    - age: max(0, age_points - age_days * age_decay_per_day)
    - recency: recent_points when last touched within recent_hours, else
      week_points when within week_hours
    """

    touch_points: float = 5.0
    touch_cap: float = 30.0
    bounce_multiplier: float = 2.5
    bounce_cap: float = 25.0
    volume_points: float = 20.0
    age_points: float = 15.0
    age_decay_per_day: float = 0.25
    recent_points: float = 10.0
    recent_hours: float = 24.0
    week_points: float = 5.0
    week_hours: float = 168.0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON storage."""
        return dict(self.__dict__)

    @classmethod
    def from_dict(cls, data: dict) -> "StrengthWeights":
        """Create from dictionary, keeping defaults for missing keys."""
        defaults = cls()
        return cls(**{key: data.get(key, value) for key, value in defaults.__dict__.items()})

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "StrengthWeights":
        """Create from application settings."""
        settings = settings or get_settings()
        return cls(
            touch_points=settings.strength_touch_points,
            touch_cap=settings.strength_touch_cap,
            bounce_multiplier=settings.strength_bounce_multiplier,
            bounce_cap=settings.strength_bounce_cap,
            volume_points=settings.strength_volume_points,
            age_points=settings.strength_age_points,
            age_decay_per_day=settings.strength_age_decay_per_day,
            recent_points=settings.strength_recent_points,
            recent_hours=settings.strength_recent_hours,
            week_points=settings.strength_week_points,
            week_hours=settings.strength_week_hours,
        )


@dataclass(frozen=True)
class LevelCandidate:
    """A level proposed by pivot clustering, before it is merged into the catalog."""

    symbol: str
    price: float
    level_type: LevelType
    touches: int
    first_touch: datetime
    last_touch: datetime
    avg_volume: float = 0.0
    avg_bounce_percent: float = 0.0
    max_bounce_percent: float = 0.0
    volume_confirmed: bool = False


@dataclass
class TouchResult:
    """Result of ingesting one touch event.

    Attributes:
        level: Level the touch attached to, after the update
        created: Whether the level was created by this touch
        touch: Immutable touch record appended to the level
    """

    level: SupportResistanceLevel
    created: bool
    touch: SRLevelTouch


@dataclass
class NearestLevels:
    """Nearest active levels around a price; either side may be absent."""

    support: SupportResistanceLevel | None = None
    resistance: SupportResistanceLevel | None = None


@dataclass
class LevelSummary:
    """Per-symbol catalog statistics over active levels.

    Strength statistics are None when the symbol has no active levels.
    """

    symbol: str
    total_levels: int
    support_levels: int
    resistance_levels: int
    average_strength: float | None
    max_strength: float | None
    min_strength: float | None
    recent_touches: int
    last_touch: datetime | None

    def to_schema(self) -> LevelSummarySchema:
        return LevelSummarySchema(**self.__dict__)
