"""Snapshot schemas for pattern theses."""
from datetime import datetime

from pydantic import Field

from market_watch.models.pattern import PatternFamily, Phase, Tier
from market_watch.schemas.base import StrictBaseModel


class ThesisComponentSchema(StrictBaseModel):
    """Serialized state of one thesis component."""

    name: str = Field(..., min_length=1, description="Component name, unique within its thesis")
    description: str = Field(default="", description="Human readable criterion")
    weight: float = Field(..., gt=0, description="Component weight")
    required: bool = Field(..., description="Whether the component gates its tier")
    tier: Tier = Field(..., description="Phase tier of the component")
    completed: bool = Field(default=False, description="Whether the criterion is met")
    completed_at: datetime | None = Field(default=None, description="First completion time")
    confidence: float = Field(default=0.0, ge=0, le=100, description="Confidence (0-100)")
    evidence: list[str] = Field(default_factory=list, description="Supporting evidence")
    last_checked: datetime | None = Field(default=None, description="Last evaluation time")
    auto_detected: bool = Field(default=False, description="Completed by automated evaluation")
    notification_sent: bool = Field(default=False, description="Completion alert emitted")


class PatternThesisSnapshot(StrictBaseModel):
    """Serialized thesis handed to the persistence collaborator."""

    family: PatternFamily = Field(..., description="Pattern family")
    completion_percent: float = Field(..., ge=0, le=100, description="Weighted completion")
    phase: Phase = Field(..., description="Derived lifecycle phase")
    completed_count: int = Field(..., ge=0, description="Number of completed components")
    total_count: int = Field(..., ge=0, description="Number of components")
    components: list[ThesisComponentSchema] = Field(
        default_factory=list, description="Components in schema order"
    )
