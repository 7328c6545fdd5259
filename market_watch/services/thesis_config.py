"""Configuration for thesis evaluation and target projection."""
from dataclasses import dataclass

from market_watch.core.config import Settings, get_settings


@dataclass
class ThesisConfig:
    """Thresholds used to evaluate pattern theses.

    Attributes:
        min_symmetry_score: Shoulder symmetry (0-100) that completes right_shoulder_symmetry
        min_head_depth_pct: Head depth below the left shoulder that completes head_lower_low
        breakout_volume_ratio: Volume ratio that confirms a breakout
        partial_target_1_fraction: Fraction of the projected move for the first partial target
        partial_target_2_fraction: Fraction of the projected move for the second partial target
        near_breakout_pct: Distance below a wedge breakout level counted as near breakout
        min_touch_points: Trend line touches that complete minimum_touch_points
    """

    min_symmetry_score: float = 60.0
    min_head_depth_pct: float = 3.0
    breakout_volume_ratio: float = 1.5
    partial_target_1_fraction: float = 0.5
    partial_target_2_fraction: float = 0.75
    near_breakout_pct: float = 2.0
    min_touch_points: int = 4

    def __post_init__(self) -> None:
        """Validate fractions after initialization."""
        if not 0 < self.partial_target_1_fraction < self.partial_target_2_fraction < 1:
            raise ValueError(
                "Partial target fractions must satisfy 0 < first < second < 1, got "
                f"{self.partial_target_1_fraction} and {self.partial_target_2_fraction}"
            )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON storage."""
        return {
            "min_symmetry_score": self.min_symmetry_score,
            "min_head_depth_pct": self.min_head_depth_pct,
            "breakout_volume_ratio": self.breakout_volume_ratio,
            "partial_target_1_fraction": self.partial_target_1_fraction,
            "partial_target_2_fraction": self.partial_target_2_fraction,
            "near_breakout_pct": self.near_breakout_pct,
            "min_touch_points": self.min_touch_points,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ThesisConfig":
        """Create from dictionary."""
        return cls(
            min_symmetry_score=data.get("min_symmetry_score", 60.0),
            min_head_depth_pct=data.get("min_head_depth_pct", 3.0),
            breakout_volume_ratio=data.get("breakout_volume_ratio", 1.5),
            partial_target_1_fraction=data.get("partial_target_1_fraction", 0.5),
            partial_target_2_fraction=data.get("partial_target_2_fraction", 0.75),
            near_breakout_pct=data.get("near_breakout_pct", 2.0),
            min_touch_points=data.get("min_touch_points", 4),
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ThesisConfig":
        """Create from application settings."""
        settings = settings or get_settings()
        return cls(
            min_symmetry_score=settings.hs_min_symmetry_score,
            min_head_depth_pct=settings.hs_min_head_depth_pct,
            breakout_volume_ratio=settings.breakout_volume_ratio,
            partial_target_1_fraction=settings.partial_target_1_fraction,
            partial_target_2_fraction=settings.partial_target_2_fraction,
            near_breakout_pct=settings.wedge_near_breakout_pct,
            min_touch_points=settings.wedge_min_touch_points,
        )
