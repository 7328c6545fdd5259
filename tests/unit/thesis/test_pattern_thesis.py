"""Unit tests for PatternThesis.

Tests initialization, component updates, sticky completion, weighted
completion and snapshot export.
"""

from datetime import datetime, timedelta, timezone

import pytest

from market_watch.core.exceptions import (
    ComponentNotFoundError,
    InvalidEvidenceError,
    UnknownPatternFamilyError,
)
from market_watch.models.pattern import PatternFamily, Phase, Tier
from market_watch.thesis import ComponentUpdate, PatternThesis

T0 = datetime(2026, 3, 2, 15, 30, tzinfo=timezone.utc)


class TestPatternThesisInit:
    """Tests for thesis initialization."""

    @pytest.mark.unit
    def test_inverse_head_shoulders_components(self) -> None:
        """Test inverse H&S is seeded with its full component set."""
        thesis = PatternThesis(PatternFamily.INVERSE_HEAD_SHOULDERS)

        assert thesis.total_count == 16
        assert thesis.completed_count == 0
        assert thesis.calculate_completion() == 0.0
        assert thesis.current_phase == Phase.FORMATION
        assert "head_lower_low" in [c.name for c in thesis.components]

    @pytest.mark.unit
    def test_regular_head_shoulders_has_no_lower_low(self) -> None:
        """Test regular H&S omits the inverse-only component."""
        thesis = PatternThesis(PatternFamily.HEAD_SHOULDERS)

        assert thesis.total_count == 15
        assert "head_lower_low" not in [c.name for c in thesis.components]

    @pytest.mark.unit
    def test_falling_wedge_components(self) -> None:
        """Test falling wedge is seeded with its own component set."""
        thesis = PatternThesis(PatternFamily.FALLING_WEDGE)

        assert thesis.total_count == 9
        assert thesis.get_component("upper_trend_line_break").weight == 15
        assert thesis.get_component("upper_trend_line_break").required is True

    @pytest.mark.unit
    def test_initialize_accepts_family_string(self) -> None:
        """Test initialize with the family's string value."""
        thesis = PatternThesis.initialize("falling_wedge")

        assert thesis.family == PatternFamily.FALLING_WEDGE

    @pytest.mark.unit
    def test_unknown_family_raises(self) -> None:
        """Test an unknown family produces no thesis."""
        with pytest.raises(UnknownPatternFamilyError):
            PatternThesis("cup_and_handle")

    @pytest.mark.unit
    def test_components_start_zeroed(self) -> None:
        """Test every component starts incomplete with no evidence."""
        thesis = PatternThesis(PatternFamily.HEAD_SHOULDERS)

        for component in thesis.components:
            assert component.completed is False
            assert component.completed_at is None
            assert component.confidence == 0.0
            assert component.evidence == []
            assert component.last_checked is None


class TestUpdateComponent:
    """Tests for PatternThesis.update_component."""

    @pytest.mark.unit
    def test_completes_component(self) -> None:
        """Test a completing update sets completion fields."""
        thesis = PatternThesis(PatternFamily.FALLING_WEDGE)

        became = thesis.update_component(
            "downtrend_established", True, 90.0, ["lower highs"], checked_at=T0
        )

        component = thesis.get_component("downtrend_established")
        assert became is True
        assert component.completed is True
        assert component.completed_at == T0
        assert component.confidence == 90.0
        assert component.evidence == ["lower highs"]
        assert component.last_checked == T0

    @pytest.mark.unit
    def test_unknown_name_raises_and_leaves_state(self) -> None:
        """Test an unknown component name aborts only that update."""
        thesis = PatternThesis(PatternFamily.FALLING_WEDGE)
        thesis.update_component("downtrend_established", True, 90.0, checked_at=T0)
        before = thesis.to_snapshot()

        with pytest.raises(ComponentNotFoundError) as exc_info:
            thesis.update_component("no_such_component", True, 50.0)

        assert exc_info.value.name == "no_such_component"
        assert thesis.to_snapshot() == before

    @pytest.mark.unit
    def test_cross_family_component_rejected(self) -> None:
        """Test a wedge-only criterion cannot be applied to an H&S thesis."""
        thesis = PatternThesis(PatternFamily.HEAD_SHOULDERS)

        with pytest.raises(ComponentNotFoundError):
            thesis.update_component("upper_trend_line_break", True, 80.0)

    @pytest.mark.unit
    def test_inverse_only_component_rejected_on_regular(self) -> None:
        """Test head_lower_low is unknown to the regular H&S thesis."""
        thesis = PatternThesis(PatternFamily.HEAD_SHOULDERS)

        with pytest.raises(ComponentNotFoundError):
            thesis.update_component("head_lower_low", True, 80.0)

    @pytest.mark.unit
    def test_same_update_twice_is_idempotent(self) -> None:
        """Test applying an identical update twice yields the same state."""
        thesis = PatternThesis(PatternFamily.INVERSE_HEAD_SHOULDERS)
        thesis.update_component("head_formed", True, 95.0, ["head low at $80"], checked_at=T0)
        once = thesis.to_snapshot()

        thesis.update_component("head_formed", True, 95.0, ["head low at $80"], checked_at=T0)

        assert thesis.to_snapshot() == once
        assert thesis.get_component("head_formed").evidence == ["head low at $80"]

    @pytest.mark.unit
    def test_evidence_merged_in_order(self) -> None:
        """Test new evidence is appended and duplicates dropped."""
        thesis = PatternThesis(PatternFamily.INVERSE_HEAD_SHOULDERS)
        thesis.update_component("head_formed", False, 40.0, ["a", "b"], checked_at=T0)
        thesis.update_component("head_formed", False, 60.0, ["b", "c"], checked_at=T0)

        assert thesis.get_component("head_formed").evidence == ["a", "b", "c"]

    @pytest.mark.unit
    def test_completed_at_set_on_first_completion_only(self) -> None:
        """Test a repeated completion keeps the original completion time."""
        thesis = PatternThesis(PatternFamily.INVERSE_HEAD_SHOULDERS)
        later = T0 + timedelta(hours=3)

        first = thesis.update_component("head_formed", True, 95.0, checked_at=T0)
        second = thesis.update_component("head_formed", True, 97.0, checked_at=later)

        component = thesis.get_component("head_formed")
        assert first is True
        assert second is False
        assert component.completed_at == T0
        assert component.last_checked == later
        assert component.confidence == 97.0

    @pytest.mark.unit
    def test_completion_is_sticky(self) -> None:
        """Test completed=False does not revert a completed component."""
        thesis = PatternThesis(PatternFamily.FALLING_WEDGE)
        thesis.update_component("volume_decline", True, 80.0, checked_at=T0)

        thesis.update_component("volume_decline", False, 10.0, ["volume rose"], checked_at=T0)

        assert thesis.get_component("volume_decline").completed is True
        assert thesis.calculate_completion() == pytest.approx(10.0)

    @pytest.mark.unit
    def test_reset_reverts_component(self) -> None:
        """Test an explicit reset is the only way back to incomplete."""
        thesis = PatternThesis(PatternFamily.FALLING_WEDGE)
        thesis.update_component("volume_decline", True, 80.0, ["vol down"], checked_at=T0)

        thesis.reset_component("volume_decline")

        component = thesis.get_component("volume_decline")
        assert component.completed is False
        assert component.completed_at is None
        assert component.evidence == []
        assert thesis.calculate_completion() == 0.0

    @pytest.mark.unit
    def test_reset_unknown_component_raises(self) -> None:
        """Test reset with an unknown name raises."""
        thesis = PatternThesis(PatternFamily.FALLING_WEDGE)

        with pytest.raises(ComponentNotFoundError):
            thesis.reset_component("neckline_breakout")

    @pytest.mark.unit
    @pytest.mark.parametrize("confidence", [-1.0, 100.5])
    def test_confidence_out_of_range_raises(self, confidence: float) -> None:
        """Test confidence must stay within 0-100."""
        thesis = PatternThesis(PatternFamily.FALLING_WEDGE)

        with pytest.raises(InvalidEvidenceError):
            thesis.update_component("volume_decline", True, confidence)

        assert thesis.get_component("volume_decline").completed is False

    @pytest.mark.unit
    def test_weight_and_required_read_only(self) -> None:
        """Test schema-fixed attributes cannot be reassigned."""
        thesis = PatternThesis(PatternFamily.FALLING_WEDGE)
        component = thesis.get_component("volume_decline")

        with pytest.raises(AttributeError):
            component.weight = 99  # type: ignore[misc]
        with pytest.raises(AttributeError):
            component.required = True  # type: ignore[misc]


class TestApplyUpdates:
    """Tests for batched, atomic updates."""

    @pytest.mark.unit
    def test_batch_reports_new_completions_and_phase(self) -> None:
        """Test a batch reports which components completed and the phase change."""
        thesis = PatternThesis(PatternFamily.FALLING_WEDGE)
        updates = [
            ComponentUpdate("downtrend_established", True, 90.0),
            ComponentUpdate("converging_trend_lines", True, 80.0),
            ComponentUpdate("minimum_touch_points", True, 85.0),
            ComponentUpdate("upper_trend_line_break", True, 85.0),
        ]

        outcome = thesis.apply_updates(updates, checked_at=T0)

        assert outcome.newly_completed == [
            "downtrend_established",
            "converging_trend_lines",
            "minimum_touch_points",
            "upper_trend_line_break",
        ]
        assert outcome.previous_phase == Phase.FORMATION
        assert outcome.current_phase == Phase.BREAKOUT
        assert outcome.phase_changed is True

    @pytest.mark.unit
    def test_batch_with_unknown_name_applies_nothing(self) -> None:
        """Test one bad update leaves the whole batch unapplied."""
        thesis = PatternThesis(PatternFamily.FALLING_WEDGE)
        updates = [
            ComponentUpdate("downtrend_established", True, 90.0),
            ComponentUpdate("neckline_breakout", True, 80.0),
        ]

        with pytest.raises(ComponentNotFoundError):
            thesis.apply_updates(updates, checked_at=T0)

        assert thesis.completed_count == 0


class TestCompletion:
    """Tests for weighted completion."""

    @pytest.mark.unit
    def test_weighted_percentage(self) -> None:
        """Test completion is completed weight over total weight."""
        thesis = PatternThesis(PatternFamily.INVERSE_HEAD_SHOULDERS)
        thesis.update_component("head_formed", True, 95.0, checked_at=T0)
        thesis.update_component("full_target", True, 100.0, checked_at=T0)

        # (15 + 5) / 132
        assert thesis.calculate_completion() == pytest.approx(100 * 20 / 132)
        assert thesis.completion_percent == thesis.calculate_completion()

    @pytest.mark.unit
    def test_all_complete_is_100(self) -> None:
        """Test completing every component gives exactly 100."""
        thesis = PatternThesis(PatternFamily.HEAD_SHOULDERS)
        for component in thesis.components:
            thesis.update_component(component.name, True, 90.0, checked_at=T0)

        assert thesis.calculate_completion() == 100.0
        assert thesis.completed_count == thesis.total_count

    @pytest.mark.unit
    def test_tier_completion(self) -> None:
        """Test completion restricted to one tier."""
        thesis = PatternThesis(PatternFamily.FALLING_WEDGE)
        thesis.update_component("partial_target", True, 90.0, checked_at=T0)

        # partial_target 10 of target tier 25
        assert thesis.tier_completion(Tier.TARGET) == pytest.approx(40.0)
        assert thesis.tier_completion(Tier.FORMATION) == 0.0


class TestSnapshot:
    """Tests for snapshot export and restore."""

    @pytest.mark.unit
    def test_snapshot_fields(self) -> None:
        """Test the snapshot carries completion, phase and components."""
        thesis = PatternThesis(PatternFamily.FALLING_WEDGE)
        thesis.update_component("downtrend_established", True, 90.0, ["lower highs"], T0)

        snapshot = thesis.to_snapshot()

        assert snapshot.family == PatternFamily.FALLING_WEDGE
        assert snapshot.completion_percent == pytest.approx(10.0)
        assert snapshot.phase == Phase.FORMATION
        assert snapshot.completed_count == 1
        assert snapshot.total_count == 9
        assert snapshot.components[0].name == "downtrend_established"
        assert snapshot.components[0].evidence == ["lower highs"]

    @pytest.mark.unit
    def test_restore_from_snapshot(self) -> None:
        """Test a thesis rebuilt from its snapshot has the same state."""
        thesis = PatternThesis(PatternFamily.INVERSE_HEAD_SHOULDERS)
        thesis.update_component("head_formed", True, 95.0, ["head"], T0)
        thesis.update_component("neckline_retest", False, 30.0, ["near"], T0)

        restored = PatternThesis.from_snapshot(thesis.to_snapshot())

        assert restored.to_snapshot() == thesis.to_snapshot()
        assert restored.current_phase == thesis.current_phase

    @pytest.mark.unit
    def test_snapshot_json_round_trip(self) -> None:
        """Test the snapshot survives JSON serialization."""
        thesis = PatternThesis(PatternFamily.HEAD_SHOULDERS)
        thesis.update_component("head_formed", True, 95.0, ["head"], T0)
        snapshot = thesis.to_snapshot()

        again = type(snapshot).model_validate_json(snapshot.model_dump_json())

        assert again == snapshot
