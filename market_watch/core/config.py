"""Configuration management using Pydantic v2 settings.
"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application
    app_name: str = Field(default="Market Watch Pattern Engine", description="Application name")
    environment: str = Field(
        default="development", description="Environment (development, production)"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")

    # Support/Resistance matching
    sr_touch_tolerance_pct: float = Field(
        default=0.5,
        description="Max distance (percent of level price) for a touch to attach to a level",
    )
    sr_min_touches: int = Field(
        default=3, description="Minimum pivots in a cluster before it becomes a level"
    )
    sr_min_level_distance_pct: float = Field(
        default=1.0, description="Pivot clustering width as percent of the cluster's first price"
    )
    sr_min_bounce_pct: float = Field(
        default=2.0, description="Bounce percent at which a touch counts as a confirmed bounce"
    )
    sr_max_level_age_hours: int = Field(
        default=168, description="Default age (hours since last touch) before a level is retired"
    )

    # Support/Resistance strength weights
    strength_touch_points: float = Field(
        default=5.0, description="Strength points awarded by the first touch"
    )
    strength_touch_cap: float = Field(
        default=30.0, description="Upper bound of the touch-count strength component"
    )
    strength_bounce_multiplier: float = Field(
        default=2.5, description="Strength points per percent of average bounce"
    )
    strength_bounce_cap: float = Field(
        default=25.0, description="Upper bound of the bounce strength component"
    )
    strength_volume_points: float = Field(
        default=20.0, description="Strength points for a volume-confirmed level"
    )
    strength_age_points: float = Field(
        default=15.0, description="Strength points for a brand new level (decays with age)"
    )
    strength_age_decay_per_day: float = Field(
        default=0.25, description="Age points lost per day since the first touch"
    )
    strength_recent_points: float = Field(
        default=10.0, description="Strength bonus when last touched within the recent window"
    )
    strength_recent_hours: float = Field(
        default=24.0, description="Recent window in hours"
    )
    strength_week_points: float = Field(
        default=5.0, description="Strength bonus when last touched within the weekly window"
    )
    strength_week_hours: float = Field(
        default=168.0, description="Weekly window in hours"
    )

    # Pattern thesis
    hs_min_symmetry_score: float = Field(
        default=60.0, description="Minimum shoulder symmetry (0-100) to confirm symmetry"
    )
    hs_min_head_depth_pct: float = Field(
        default=3.0, description="Minimum head depth below the left shoulder (percent)"
    )
    breakout_volume_ratio: float = Field(
        default=1.5, description="Volume ratio that confirms a breakout"
    )
    partial_target_1_fraction: float = Field(
        default=0.5, description="Fraction of the projected move for the first partial target"
    )
    partial_target_2_fraction: float = Field(
        default=0.75, description="Fraction of the projected move for the second partial target"
    )
    wedge_near_breakout_pct: float = Field(
        default=2.0, description="Distance below the breakout level considered near breakout"
    )
    wedge_min_touch_points: int = Field(
        default=4, description="Minimum trend line touch points for a falling wedge"
    )

    # Collaborators
    persistence_timeout_seconds: float = Field(
        default=5.0, description="Timeout for a single persistence collaborator call"
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()
