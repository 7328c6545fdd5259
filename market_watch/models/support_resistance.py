"""Support/resistance level entities and the inputs that feed them."""
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


class LevelType(str, Enum):
    """Kind of price level."""

    SUPPORT = "support"
    RESISTANCE = "resistance"


class TouchDirection(str, Enum):
    """Side from which price approached a level."""

    FROM_ABOVE = "from_above"
    FROM_BELOW = "from_below"

    @property
    def implied_level_type(self) -> LevelType:
        """Price falling onto a level tests support; rising into it tests resistance."""
        if self == TouchDirection.FROM_ABOVE:
            return LevelType.SUPPORT
        return LevelType.RESISTANCE


class PivotType(str, Enum):
    """Pivot high or pivot low."""

    HIGH = "high"
    LOW = "low"


class TouchType(str, Enum):
    """Outcome of a touch."""

    TEST = "test"
    BOUNCE = "bounce"


def _require_aware(value: datetime, field_name: str) -> None:
    if value.tzinfo is None:
        raise ValueError(f"{field_name} must be timezone-aware")


@dataclass(frozen=True)
class TouchEvent:
    """A single approach of price to a level, emitted by the pivot/touch detector.

    Attributes:
        price: Price at which the level was touched
        timestamp: Time of the touch (timezone-aware)
        bounce_percent: Reaction away from the level after the touch
        volume: Volume at the touch
        volume_spike: Whether the detector flagged unusual volume
        direction: Side from which price approached the level
    """

    price: float
    timestamp: datetime
    bounce_percent: float = 0.0
    volume: int = 0
    volume_spike: bool = False
    direction: TouchDirection = TouchDirection.FROM_ABOVE

    def __post_init__(self) -> None:
        """Validate touch values after initialization."""
        if self.price <= 0:
            raise ValueError(f"Touch price ({self.price}) must be positive")
        if self.volume < 0:
            raise ValueError(f"Touch volume ({self.volume}) cannot be negative")
        if self.bounce_percent < 0:
            raise ValueError(f"Bounce percent ({self.bounce_percent}) cannot be negative")
        _require_aware(self.timestamp, "Touch timestamp")

    @property
    def level_type(self) -> LevelType:
        return self.direction.implied_level_type


@dataclass(frozen=True)
class PivotPoint:
    """A local price high or low."""

    price: float
    timestamp: datetime
    pivot_type: PivotType
    volume: int = 0

    def __post_init__(self) -> None:
        """Validate pivot values after initialization."""
        if self.price <= 0:
            raise ValueError(f"Pivot price ({self.price}) must be positive")
        if self.volume < 0:
            raise ValueError(f"Pivot volume ({self.volume}) cannot be negative")
        _require_aware(self.timestamp, "Pivot timestamp")


@dataclass
class SupportResistanceLevel:
    """A support or resistance level in the catalog.

    Levels are never deleted, only deactivated. Strength is recomputed from
    touch history and age whenever the level is touched.
    """

    symbol: str
    price: float
    level_type: LevelType
    first_touch: datetime
    last_touch: datetime
    touches: int = 1
    strength: float = 0.0
    volume_confirmed: bool = False
    avg_bounce_percent: float = 0.0
    max_bounce_percent: float = 0.0
    avg_volume: float = 0.0
    is_active: bool = True
    timeframe_origin: str = "1m"
    last_validated: datetime | None = None
    id: int | None = None

    def get_age_days(self, now: datetime | None = None) -> float:
        """Age of the level in days since its first touch."""
        now = now or datetime.now(timezone.utc)
        return (now - self.first_touch).total_seconds() / 86400

    def hours_since_last_touch(self, now: datetime | None = None) -> float:
        now = now or datetime.now(timezone.utc)
        return (now - self.last_touch).total_seconds() / 3600

    def is_recent(self, now: datetime | None = None, hours: float = 24.0) -> bool:
        """Check if the level was touched within the last `hours`."""
        return self.hours_since_last_touch(now) <= hours


@dataclass(frozen=True)
class SRLevelTouch:
    """Immutable record of one touch, linked to exactly one level."""

    level_id: int
    symbol: str
    touch_time: datetime
    touch_price: float
    level_price: float
    distance_percent: float
    bounce_percent: float
    volume_at_touch: int
    volume_spike: bool
    bounce_confirmed: bool
    touch_type: TouchType
