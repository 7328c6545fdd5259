"""Unit tests for snapshot schemas."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from market_watch.models.pattern import PatternFamily, Phase
from market_watch.models.support_resistance import LevelType, SupportResistanceLevel
from market_watch.schemas import PatternThesisSnapshot, SupportResistanceLevelSnapshot
from market_watch.thesis import PatternThesis


class TestPatternThesisSnapshot:
    """Tests for thesis snapshots."""

    @pytest.mark.unit
    def test_snapshot_fields(self, now) -> None:
        """Test the snapshot carries completion, phase and every component."""
        thesis = PatternThesis(PatternFamily.FALLING_WEDGE)
        thesis.update_component("downtrend_established", True, 85.0, ["slopes negative"], now)

        snapshot = thesis.to_snapshot()

        assert snapshot.family == PatternFamily.FALLING_WEDGE
        assert snapshot.completion_percent == pytest.approx(10.0)
        assert snapshot.phase == Phase.FORMATION
        assert snapshot.completed_count == 1
        assert snapshot.total_count == len(snapshot.components) == 9
        assert snapshot.components[0].evidence == ["slopes negative"]

    @pytest.mark.unit
    def test_extra_fields_forbidden(self) -> None:
        """Test unknown fields are rejected."""
        with pytest.raises(ValidationError):
            PatternThesisSnapshot(
                family="falling_wedge",
                completion_percent=0.0,
                phase="formation",
                completed_count=0,
                total_count=9,
                unexpected=True,
            )

    @pytest.mark.unit
    def test_completion_bounds(self) -> None:
        """Test completion above 100 is rejected."""
        with pytest.raises(ValidationError):
            PatternThesisSnapshot(
                family="falling_wedge",
                completion_percent=120.0,
                phase="formation",
                completed_count=0,
                total_count=9,
            )


class TestLevelSnapshot:
    """Tests for level snapshots."""

    @pytest.mark.unit
    def test_from_level(self, now) -> None:
        """Test a level converts with is_active exposed as active."""
        level = SupportResistanceLevel(
            symbol="AAPL",
            price=100.0,
            level_type=LevelType.SUPPORT,
            first_touch=now - timedelta(days=1),
            last_touch=now,
            touches=3,
            strength=42.0,
            is_active=False,
            id=7,
        )

        snapshot = SupportResistanceLevelSnapshot.from_level(level)

        assert snapshot.id == 7
        assert snapshot.active is False
        assert snapshot.model_dump()["level_type"] == LevelType.SUPPORT
        assert snapshot.model_dump(mode="json")["level_type"] == "support"

    @pytest.mark.unit
    def test_strength_out_of_range(self, now) -> None:
        """Test strength above 100 is rejected."""
        with pytest.raises(ValidationError):
            SupportResistanceLevelSnapshot(
                symbol="AAPL",
                price=100.0,
                level_type="support",
                strength=101.0,
                touches=1,
                first_touch=now,
                last_touch=now,
            )
