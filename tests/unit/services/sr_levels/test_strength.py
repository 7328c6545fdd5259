"""Unit tests for level strength scoring."""

from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from market_watch.models.support_resistance import LevelType, SupportResistanceLevel
from market_watch.services.sr_levels import StrengthWeights, calculate_strength
from market_watch.services.sr_levels.strength import touch_component

AS_OF = datetime(2026, 3, 2, 15, 30, tzinfo=timezone.utc)


def make_level(
    touches: int = 1,
    first_days_ago: float = 0.0,
    last_hours_ago: float = 0.0,
    bounce: float = 0.0,
    volume_confirmed: bool = False,
) -> SupportResistanceLevel:
    return SupportResistanceLevel(
        symbol="AAPL",
        price=100.0,
        level_type=LevelType.SUPPORT,
        first_touch=AS_OF - timedelta(days=first_days_ago),
        last_touch=AS_OF - timedelta(hours=last_hours_ago),
        touches=touches,
        avg_bounce_percent=bounce,
        volume_confirmed=volume_confirmed,
    )


class TestTouchComponent:
    """Tests for the diminishing-returns touch term."""

    @pytest.mark.unit
    def test_first_touch_worth_touch_points(self) -> None:
        """Test a single touch is worth exactly touch_points."""
        assert touch_component(1, StrengthWeights()) == pytest.approx(5.0)

    @pytest.mark.unit
    def test_each_touch_worth_less(self) -> None:
        """Test marginal value of a touch declines."""
        weights = StrengthWeights()
        gains = [touch_component(n + 1, weights) - touch_component(n, weights) for n in range(1, 6)]

        assert all(later < earlier for earlier, later in zip(gains, gains[1:]))

    @pytest.mark.unit
    def test_no_touches(self) -> None:
        """Test zero touches score nothing."""
        assert touch_component(0, StrengthWeights()) == 0.0


class TestCalculateStrength:
    """Tests for the full strength score."""

    @pytest.mark.unit
    def test_fresh_single_touch(self) -> None:
        """Test a brand new level scores touch, age and recency points."""
        assert calculate_strength(make_level(), AS_OF, StrengthWeights()) == pytest.approx(30.0)

    @pytest.mark.unit
    def test_everything_maxed(self) -> None:
        """Test the score is clamped at 100."""
        level = make_level(touches=500, bounce=20.0, volume_confirmed=True)

        assert calculate_strength(level, AS_OF, StrengthWeights()) == pytest.approx(100.0)

    @pytest.mark.unit
    def test_old_level_touched_this_week(self) -> None:
        """Test age points are gone after 60 days while weekly recency remains."""
        level = make_level(first_days_ago=100, last_hours_ago=72)

        assert calculate_strength(level, AS_OF, StrengthWeights()) == pytest.approx(10.0)

    @pytest.mark.unit
    def test_bounce_capped(self) -> None:
        """Test bounce contributes at most bounce_cap."""
        weights = StrengthWeights(age_points=0, recent_points=0, touch_points=0.0)
        level = make_level(bounce=40.0)

        assert calculate_strength(level, AS_OF, weights) == pytest.approx(25.0)

    @pytest.mark.unit
    def test_weights_round_trip(self) -> None:
        """Test weights survive dict conversion and fill missing keys with defaults."""
        weights = StrengthWeights(volume_points=12.0)

        assert StrengthWeights.from_dict(weights.to_dict()) == weights
        assert StrengthWeights.from_dict({"touch_cap": 40.0}).volume_points == 20.0


class TestStrengthProperties:
    """Property-based tests for strength bounds and monotonicity."""

    @pytest.mark.unit
    @given(
        touches=st.integers(min_value=0, max_value=1000),
        first_days=st.floats(min_value=0, max_value=3650, allow_nan=False),
        last_hours=st.floats(min_value=0, max_value=1000, allow_nan=False),
        bounce=st.floats(min_value=0, max_value=100, allow_nan=False),
        confirmed=st.booleans(),
    )
    @settings(max_examples=200, deadline=1000)
    def test_bounded(self, touches, first_days, last_hours, bounce, confirmed) -> None:
        """Test strength always lies in [0, 100]."""
        level = make_level(touches, first_days, last_hours, bounce, confirmed)

        assert 0.0 <= calculate_strength(level, AS_OF, StrengthWeights()) <= 100.0

    @pytest.mark.unit
    @given(touches=st.integers(min_value=0, max_value=200))
    @settings(max_examples=100, deadline=1000)
    def test_more_touches_never_weaker(self, touches) -> None:
        """Test one more touch never lowers strength."""
        weights = StrengthWeights()
        fewer = calculate_strength(make_level(touches), AS_OF, weights)
        more = calculate_strength(make_level(touches + 1), AS_OF, weights)

        assert more >= fewer
