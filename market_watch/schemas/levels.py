"""Snapshot schemas for support/resistance levels."""
from datetime import datetime

from pydantic import Field

from market_watch.models.support_resistance import LevelType, SupportResistanceLevel
from market_watch.schemas.base import StrictBaseModel


class SupportResistanceLevelSnapshot(StrictBaseModel):
    """Serialized support/resistance level."""

    id: int | None = Field(default=None, description="Level id assigned by the repository")
    symbol: str = Field(..., min_length=1, description="Stock symbol")
    price: float = Field(..., gt=0, description="Level price")
    level_type: LevelType = Field(..., description="Support or resistance")
    strength: float = Field(..., ge=0, le=100, description="Strength score (0-100)")
    touches: int = Field(..., ge=1, description="Number of touches")
    first_touch: datetime = Field(..., description="Earliest touch time")
    last_touch: datetime = Field(..., description="Latest touch time")
    volume_confirmed: bool = Field(default=False, description="Confirmed by a volume spike")
    avg_bounce_percent: float = Field(default=0.0, ge=0, description="Average bounce percent")
    max_bounce_percent: float = Field(default=0.0, ge=0, description="Largest bounce percent")
    avg_volume: float = Field(default=0.0, ge=0, description="Average volume at touches")
    active: bool = Field(default=True, description="Whether the level is active")

    @classmethod
    def from_level(cls, level: SupportResistanceLevel) -> "SupportResistanceLevelSnapshot":
        return cls(
            id=level.id,
            symbol=level.symbol,
            price=level.price,
            level_type=level.level_type,
            strength=level.strength,
            touches=level.touches,
            first_touch=level.first_touch,
            last_touch=level.last_touch,
            volume_confirmed=level.volume_confirmed,
            avg_bounce_percent=level.avg_bounce_percent,
            max_bounce_percent=level.max_bounce_percent,
            avg_volume=level.avg_volume,
            active=level.is_active,
        )


class LevelSummarySchema(StrictBaseModel):
    """Serialized per-symbol catalog summary."""

    symbol: str
    total_levels: int = Field(..., ge=0)
    support_levels: int = Field(..., ge=0)
    resistance_levels: int = Field(..., ge=0)
    average_strength: float | None = None
    max_strength: float | None = None
    min_strength: float | None = None
    recent_touches: int = Field(..., ge=0, description="Active levels touched in the last 24h")
    last_touch: datetime | None = None
