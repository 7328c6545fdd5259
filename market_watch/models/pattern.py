"""Pattern entities: families, phases, geometry and the Pattern aggregate.

Geometry arrives finished from an external detector. Every point is optional:
an absent point is None, never a zero price.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from market_watch.models.events import PatternEvent
    from market_watch.thesis.pattern_thesis import PatternThesis


class PatternFamily(str, Enum):
    """Supported chart formation families."""

    INVERSE_HEAD_SHOULDERS = "inverse_head_shoulders"
    HEAD_SHOULDERS = "head_shoulders"
    FALLING_WEDGE = "falling_wedge"

    @property
    def is_bullish(self) -> bool:
        """Whether a confirmed breakout projects price upward."""
        return self != PatternFamily.HEAD_SHOULDERS


class Phase(str, Enum):
    """Lifecycle phase of a detected pattern."""

    FORMATION = "formation"
    BREAKOUT = "breakout"
    TARGET_PURSUIT = "target_pursuit"
    COMPLETED = "completed"


class Tier(str, Enum):
    """Phase tier a thesis component belongs to."""

    FORMATION = "formation"
    BREAKOUT = "breakout"
    TARGET = "target"


class PointRole(str, Enum):
    """Role of a geometric point within a pattern."""

    LEFT_SHOULDER_HIGH = "left_shoulder_high"
    LEFT_SHOULDER_LOW = "left_shoulder_low"
    HEAD_HIGH = "head_high"
    HEAD_LOW = "head_low"
    RIGHT_SHOULDER_HIGH = "right_shoulder_high"
    RIGHT_SHOULDER_LOW = "right_shoulder_low"
    NECKLINE_TOUCH_1 = "neckline_touch_1"
    NECKLINE_TOUCH_2 = "neckline_touch_2"
    UPPER_LINE_1 = "upper_line_1"
    UPPER_LINE_2 = "upper_line_2"
    LOWER_LINE_1 = "lower_line_1"
    LOWER_LINE_2 = "lower_line_2"


class VolumeProfile(str, Enum):
    """Volume behaviour while a wedge forms."""

    DECREASING = "decreasing"
    STABLE = "stable"
    INCREASING = "increasing"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class PatternPoint:
    """A single geometric point of a pattern.

    Attributes:
        timestamp: Bar time of the point
        price: Price at the point
        volume: Volume of the bar
        volume_ratio: Bar volume relative to the average volume
    """

    timestamp: datetime
    price: float
    volume: int = 0
    volume_ratio: float = 1.0

    def __post_init__(self) -> None:
        """Validate point values after initialization."""
        if self.price < 0:
            raise ValueError(f"Point price ({self.price}) cannot be negative")
        if self.volume < 0:
            raise ValueError(f"Point volume ({self.volume}) cannot be negative")


@dataclass
class PatternGeometry:
    """Finished geometry handed over by the detector.

    Attributes:
        points: Geometric points keyed by role; missing roles are not formed yet
        key_level: Neckline level (head-and-shoulders) or breakout level (wedge)
        slopes: Neckline slope, or (upper, lower) trend line slopes for a wedge
        width_minutes: Pattern duration in minutes
        height: Caller-supplied pattern height (used by the wedge family)
        symmetry: Detector-reported shoulder symmetry (0-100)
        convergence: Wedge trend line convergence in percent
        volume_profile: Volume behaviour during formation
        touch_count: Number of trend line touches reported by the detector
    """

    points: dict[PointRole, PatternPoint] = field(default_factory=dict)
    key_level: float | None = None
    slopes: tuple[float, ...] = ()
    width_minutes: int = 0
    height: float | None = None
    symmetry: float | None = None
    convergence: float | None = None
    volume_profile: VolumeProfile = VolumeProfile.INSUFFICIENT_DATA
    touch_count: int | None = None

    def point(self, role: PointRole) -> PatternPoint | None:
        """Get a point by role, or None when it has not formed."""
        return self.points.get(role)

    def price_of(self, role: PointRole) -> float | None:
        """Get the price of a point by role, or None when it has not formed."""
        point = self.points.get(role)
        return point.price if point is not None else None

    def has(self, *roles: PointRole) -> bool:
        """Check that every given role is present."""
        return all(role in self.points for role in roles)

    @property
    def trend_line_touches(self) -> int:
        """Trend line touches: detector count when given, else line points present."""
        if self.touch_count is not None:
            return self.touch_count
        line_roles = (
            PointRole.UPPER_LINE_1,
            PointRole.UPPER_LINE_2,
            PointRole.LOWER_LINE_1,
            PointRole.LOWER_LINE_2,
        )
        return sum(1 for role in line_roles if role in self.points)


@dataclass
class Pattern:
    """A detected pattern instance owning exactly one thesis.

    Identity is symbol + family + detection time. A pattern is retired when
    its thesis reaches the completed phase or a newer detection for the same
    symbol and family supersedes it.
    """

    symbol: str
    family: PatternFamily
    detected_at: datetime
    geometry: PatternGeometry
    thesis: PatternThesis
    is_complete: bool = False
    superseded: bool = False
    last_updated: datetime | None = None
    alerts: list[PatternEvent] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate identity and thesis family after initialization."""
        if not self.symbol:
            raise ValueError("Pattern symbol cannot be empty")
        if self.thesis.family != self.family:
            raise ValueError(
                f"Thesis family ({self.thesis.family.value}) does not match "
                f"pattern family ({self.family.value})"
            )

    @property
    def pattern_id(self) -> str:
        """Stable identifier derived from symbol, family and detection time."""
        return f"{self.symbol}:{self.family.value}:{self.detected_at.isoformat()}"

    @property
    def current_phase(self) -> Phase:
        return self.thesis.current_phase

    @property
    def is_active(self) -> bool:
        """Whether the pattern is still being monitored."""
        return not self.is_complete and not self.superseded

    def get_age_hours(self, now: datetime | None = None) -> float:
        """Age of the pattern in hours since detection."""
        now = now or datetime.now(timezone.utc)
        return (now - self.detected_at).total_seconds() / 3600
