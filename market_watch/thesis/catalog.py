"""Declarative component tables for each pattern family.

Each family lists its thesis components as {name, weight, required, tier} rows
plus two anchors used by the phase rules: the breakout trigger and the
terminal component that marks the pattern as completed.
"""
from dataclasses import dataclass

from market_watch.core.exceptions import UnknownPatternFamilyError
from market_watch.models.pattern import PatternFamily, Tier


@dataclass(frozen=True)
class ComponentSpec:
    """Schema row for one thesis component."""

    name: str
    description: str
    weight: float
    required: bool
    tier: Tier

    def __post_init__(self) -> None:
        if self.weight <= 0:
            raise ValueError(f"Component weight must be positive, got {self.weight} for {self.name}")


@dataclass(frozen=True)
class FamilySchema:
    """Component set and phase anchors for a pattern family.

    Attributes:
        family: Pattern family this schema describes
        components: Ordered component rows
        breakout_trigger: Component whose completion signals the breakout
        terminal_component: Component whose completion signals the full target
    """

    family: PatternFamily
    components: tuple[ComponentSpec, ...]
    breakout_trigger: str
    terminal_component: str

    def __post_init__(self) -> None:
        names = [spec.name for spec in self.components]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate component names in {self.family.value} schema")
        for anchor in (self.breakout_trigger, self.terminal_component):
            if anchor not in names:
                raise ValueError(f"Anchor {anchor!r} missing from {self.family.value} schema")

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.components)

    def spec(self, name: str) -> ComponentSpec | None:
        for spec in self.components:
            if spec.name == name:
                return spec
        return None

    def required_in_tier(self, tier: Tier) -> tuple[str, ...]:
        """Names of the required components belonging to a tier."""
        return tuple(spec.name for spec in self.components if spec.tier == tier and spec.required)


def _formation(name: str, description: str, weight: float, required: bool = False) -> ComponentSpec:
    return ComponentSpec(name, description, weight, required, Tier.FORMATION)


def _breakout(name: str, description: str, weight: float, required: bool = False) -> ComponentSpec:
    return ComponentSpec(name, description, weight, required, Tier.BREAKOUT)


def _target(name: str, description: str, weight: float, required: bool = False) -> ComponentSpec:
    return ComponentSpec(name, description, weight, required, Tier.TARGET)


def _head_shoulders_components(inverse: bool) -> tuple[ComponentSpec, ...]:
    extreme = "low" if inverse else "high"
    direction = "above" if inverse else "below"
    rows = [
        _formation("left_shoulder_formed", f"Left shoulder {extreme} established", 10, True),
        _formation("left_shoulder_volume", "Volume on left shoulder formation", 5),
        _formation("head_formed", f"Head {extreme} established", 15, True),
        _formation("head_volume_spike", "Volume spike at the head", 8),
    ]
    if inverse:
        rows.append(
            _formation("head_lower_low", "Head makes a lower low than the left shoulder", 12, True)
        )
    rows += [
        _formation("right_shoulder_formed", f"Right shoulder {extreme} established", 10, True),
        _formation("right_shoulder_symmetry", "Right shoulder mirrors the left shoulder", 8),
        _formation("right_shoulder_volume", "Lower volume on the right shoulder", 5),
        _formation("neckline_established", "Neckline drawn through the reaction points", 12, True),
        _breakout("neckline_retest", "Price retests the neckline", 6),
        _breakout("neckline_breakout", f"Price closes {direction} the neckline", 15, True),
        _breakout("breakout_volume", "Breakout confirmed by volume", 10, True),
        _target("target_projected", "Price target projected from pattern height", 3),
        _target("partial_target_1", "First partial target reached", 4),
        _target("partial_target_2", "Second partial target reached", 4),
        _target("full_target", "Full projected target reached", 5),
    ]
    return tuple(rows)


FAMILY_SCHEMAS: dict[PatternFamily, FamilySchema] = {
    PatternFamily.INVERSE_HEAD_SHOULDERS: FamilySchema(
        family=PatternFamily.INVERSE_HEAD_SHOULDERS,
        components=_head_shoulders_components(inverse=True),
        breakout_trigger="neckline_breakout",
        terminal_component="full_target",
    ),
    PatternFamily.HEAD_SHOULDERS: FamilySchema(
        family=PatternFamily.HEAD_SHOULDERS,
        components=_head_shoulders_components(inverse=False),
        breakout_trigger="neckline_breakout",
        terminal_component="full_target",
    ),
    PatternFamily.FALLING_WEDGE: FamilySchema(
        family=PatternFamily.FALLING_WEDGE,
        components=(
            _formation("downtrend_established", "Prior downtrend in place", 10, True),
            _formation("converging_trend_lines", "Upper and lower trend lines converge", 10, True),
            _formation("minimum_touch_points", "Enough touches on both trend lines", 10, True),
            _formation("volume_decline", "Volume declines while the wedge forms", 10),
            _breakout("upper_trend_line_break", "Price breaks above the upper trend line", 15, True),
            _breakout("volume_confirmation", "Breakout confirmed by volume", 10),
            _breakout("price_close_above_line", "Price closes above the breakout level", 10, True),
            _target("partial_target", "Partial target reached", 10),
            _target("full_target", "Full projected target reached", 15),
        ),
        breakout_trigger="upper_trend_line_break",
        terminal_component="full_target",
    ),
}


def get_family_schema(family: PatternFamily | str) -> FamilySchema:
    """Look up the component schema for a pattern family.

    Args:
        family: Pattern family enum or its string value

    Returns:
        The family's schema

    Raises:
        UnknownPatternFamilyError: If the family is not supported
    """
    try:
        key = PatternFamily(family)
    except ValueError:
        raise UnknownPatternFamilyError(f"Unknown pattern family: {family!r}") from None
    return FAMILY_SCHEMAS[key]
