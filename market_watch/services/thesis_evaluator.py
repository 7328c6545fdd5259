"""Evidence evaluation for pattern theses.

Turns finished geometry and the latest price into ComponentUpdate batches.
The evaluator never mutates a thesis; it only proposes updates, which the
lifecycle service applies under the pattern's lock.

Usage:
    evaluator = ThesisEvaluator()
    updates = evaluator.evaluate_initial(pattern)
    updates += evaluator.evaluate_price(pattern, price=101.5, volume_ratio=1.8)
"""

from market_watch.models.pattern import Pattern, PatternFamily, PointRole, VolumeProfile
from market_watch.services.target_projector import TargetProjector
from market_watch.services.thesis_config import ThesisConfig
from market_watch.thesis.pattern_thesis import ComponentUpdate

EvidenceUpdate = ComponentUpdate


def _day(point) -> str:
    return point.timestamp.strftime("%Y-%m-%d")


class ThesisEvaluator:
    """Evaluates pattern geometry and price action against thesis components."""

    HEAD_VOLUME_SPIKE_RATIO = 1.2
    SHOULDER_VOLUME_RATIO = 1.0
    RETEST_TOLERANCE_PCT = 1.0

    def __init__(self, config: ThesisConfig | None = None):
        """Initialize evaluator with configuration.

        Args:
            config: Thesis configuration. Uses defaults if not provided.
        """
        self.config = config or ThesisConfig()

    def evaluate_initial(self, pattern: Pattern) -> list[EvidenceUpdate]:
        """Evaluate the geometry of a freshly detected pattern.

        Only satisfied criteria produce updates.
        """
        if pattern.family == PatternFamily.FALLING_WEDGE:
            return self._initial_wedge(pattern)
        return self._initial_head_shoulders(pattern)

    def evaluate_price(
        self, pattern: Pattern, price: float, volume_ratio: float | None = None
    ) -> list[EvidenceUpdate]:
        """Evaluate the latest price against breakout and target conditions.

        Targets are only evaluated once the breakout trigger has completed,
        either earlier or in this same evaluation.

        Args:
            pattern: Pattern to evaluate
            price: Latest close
            volume_ratio: Latest volume relative to average, if known

        Returns:
            Updates for every satisfied condition
        """
        level = pattern.geometry.key_level
        if level is None or price <= 0:
            return []

        if pattern.family == PatternFamily.FALLING_WEDGE:
            return self._price_wedge(pattern, level, price, volume_ratio)
        return self._price_head_shoulders(pattern, level, price, volume_ratio)

    def _initial_head_shoulders(self, pattern: Pattern) -> list[EvidenceUpdate]:
        geometry = pattern.geometry
        inverse = pattern.family == PatternFamily.INVERSE_HEAD_SHOULDERS
        extreme = "low" if inverse else "high"
        if inverse:
            left_role, head_role, right_role = (
                PointRole.LEFT_SHOULDER_LOW,
                PointRole.HEAD_LOW,
                PointRole.RIGHT_SHOULDER_LOW,
            )
        else:
            left_role, head_role, right_role = (
                PointRole.LEFT_SHOULDER_HIGH,
                PointRole.HEAD_HIGH,
                PointRole.RIGHT_SHOULDER_HIGH,
            )
        projector = TargetProjector(pattern.family, geometry, self.config)
        updates: list[EvidenceUpdate] = []

        left = geometry.point(left_role)
        if left is not None:
            updates.append(
                ComponentUpdate(
                    "left_shoulder_formed",
                    True,
                    95.0,
                    (f"Left shoulder {extreme} at ${left.price:.2f} on {_day(left)}",),
                )
            )
            if left.volume_ratio > self.SHOULDER_VOLUME_RATIO:
                updates.append(
                    ComponentUpdate(
                        "left_shoulder_volume",
                        True,
                        70.0,
                        (f"Left shoulder volume ratio {left.volume_ratio:.2f}",),
                    )
                )

        head = geometry.point(head_role)
        if head is not None:
            updates.append(
                ComponentUpdate(
                    "head_formed",
                    True,
                    95.0,
                    (f"Head {extreme} at ${head.price:.2f} on {_day(head)}",),
                )
            )
            if head.volume_ratio > self.HEAD_VOLUME_SPIKE_RATIO:
                updates.append(
                    ComponentUpdate(
                        "head_volume_spike",
                        True,
                        80.0,
                        (f"Head volume ratio {head.volume_ratio:.2f}",),
                    )
                )

        if inverse and left is not None and head is not None and left.price > 0:
            depth = (left.price - head.price) / left.price * 100
            if depth >= self.config.min_head_depth_pct:
                updates.append(
                    ComponentUpdate(
                        "head_lower_low",
                        True,
                        90.0,
                        (f"Head is {depth:.1f}% lower than left shoulder",),
                    )
                )

        right = geometry.point(right_role)
        if right is not None:
            updates.append(
                ComponentUpdate(
                    "right_shoulder_formed",
                    True,
                    95.0,
                    (f"Right shoulder {extreme} at ${right.price:.2f} on {_day(right)}",),
                )
            )
            symmetry = projector.get_symmetry_score()
            if symmetry is None:
                symmetry = geometry.symmetry
            if symmetry is not None and symmetry >= self.config.min_symmetry_score:
                updates.append(
                    ComponentUpdate(
                        "right_shoulder_symmetry",
                        True,
                        min(100.0, max(0.0, symmetry)),
                        (f"Shoulder symmetry score: {symmetry:.1f}%",),
                    )
                )
            if left is not None and right.volume_ratio < left.volume_ratio:
                updates.append(
                    ComponentUpdate(
                        "right_shoulder_volume",
                        True,
                        70.0,
                        (
                            f"Right shoulder volume ratio {right.volume_ratio:.2f} "
                            f"below left {left.volume_ratio:.2f}",
                        ),
                    )
                )

        if geometry.key_level is not None:
            evidence = [f"Neckline level at ${geometry.key_level:.2f}"]
            if geometry.slopes:
                evidence.append(f"Neckline slope: {geometry.slopes[0]:.4f}")
            updates.append(ComponentUpdate("neckline_established", True, 85.0, tuple(evidence)))

        target = projector.calculate_target_price()
        height = projector.calculate_pattern_height()
        if target is not None and height is not None:
            updates.append(
                ComponentUpdate(
                    "target_projected",
                    True,
                    80.0,
                    (f"Target price projected at ${target:.2f}", f"Pattern height: ${height:.2f}"),
                )
            )
        return updates

    def _initial_wedge(self, pattern: Pattern) -> list[EvidenceUpdate]:
        geometry = pattern.geometry
        projector = TargetProjector(pattern.family, geometry, self.config)
        updates: list[EvidenceUpdate] = []

        if len(geometry.slopes) >= 2 and all(slope < 0 for slope in geometry.slopes[:2]):
            upper, lower = geometry.slopes[0], geometry.slopes[1]
            updates.append(
                ComponentUpdate(
                    "downtrend_established",
                    True,
                    85.0,
                    (f"Upper slope {upper:.4f}, lower slope {lower:.4f}",),
                )
            )

        score = projector.convergence_score()
        if score is not None and score > 0:
            updates.append(
                ComponentUpdate(
                    "converging_trend_lines",
                    True,
                    score,
                    (f"Trend lines converge by {geometry.convergence:.2f}%",),
                )
            )

        touches = geometry.trend_line_touches
        if touches >= self.config.min_touch_points:
            updates.append(
                ComponentUpdate(
                    "minimum_touch_points",
                    True,
                    90.0,
                    (f"{touches} trend line touch points",),
                )
            )

        if geometry.volume_profile == VolumeProfile.DECREASING:
            updates.append(
                ComponentUpdate(
                    "volume_decline", True, 80.0, ("Volume decreasing during formation",)
                )
            )
        return updates

    def _broke_out(self, pattern: Pattern, level: float, price: float) -> bool:
        if pattern.family.is_bullish:
            return price > level
        return price < level

    def _reached(self, pattern: Pattern, target: float, price: float) -> bool:
        if pattern.family.is_bullish:
            return price >= target
        return price <= target

    def _price_head_shoulders(
        self, pattern: Pattern, level: float, price: float, volume_ratio: float | None
    ) -> list[EvidenceUpdate]:
        thesis = pattern.thesis
        updates: list[EvidenceUpdate] = []
        side = "above" if pattern.family.is_bullish else "below"

        already_broken = thesis.is_completed("neckline_breakout")
        broke = self._broke_out(pattern, level, price)
        if broke:
            updates.append(
                ComponentUpdate(
                    "neckline_breakout",
                    True,
                    85.0,
                    (f"Price broke {side} neckline: ${price:.2f} vs ${level:.2f}",),
                )
            )
            if volume_ratio is not None and volume_ratio >= self.config.breakout_volume_ratio:
                updates.append(
                    ComponentUpdate(
                        "breakout_volume",
                        True,
                        85.0,
                        (f"Breakout volume ratio {volume_ratio:.2f}",),
                    )
                )

        if already_broken and abs(price - level) / level * 100 <= self.RETEST_TOLERANCE_PCT:
            updates.append(
                ComponentUpdate(
                    "neckline_retest",
                    True,
                    75.0,
                    (f"Price retested neckline at ${price:.2f}",),
                )
            )

        if already_broken or broke:
            updates.extend(
                self._target_updates(pattern, price, "partial_target_1", "partial_target_2")
            )
        return updates

    def _price_wedge(
        self, pattern: Pattern, level: float, price: float, volume_ratio: float | None
    ) -> list[EvidenceUpdate]:
        thesis = pattern.thesis
        updates: list[EvidenceUpdate] = []

        already_broken = thesis.is_completed("upper_trend_line_break")
        broke = self._broke_out(pattern, level, price)
        if broke:
            updates.append(
                ComponentUpdate(
                    "upper_trend_line_break",
                    True,
                    85.0,
                    (f"Price broke above upper trend line: ${price:.2f} > ${level:.2f}",),
                )
            )
            updates.append(
                ComponentUpdate(
                    "price_close_above_line",
                    True,
                    80.0,
                    (f"Close ${price:.2f} above breakout level ${level:.2f}",),
                )
            )
            if volume_ratio is not None and volume_ratio >= self.config.breakout_volume_ratio:
                updates.append(
                    ComponentUpdate(
                        "volume_confirmation",
                        True,
                        85.0,
                        (f"Breakout volume ratio {volume_ratio:.2f}",),
                    )
                )

        if already_broken or broke:
            updates.extend(self._target_updates(pattern, price, "partial_target", None))
        return updates

    def _target_updates(
        self, pattern: Pattern, price: float, first_name: str, second_name: str | None
    ) -> list[EvidenceUpdate]:
        targets = TargetProjector(pattern.family, pattern.geometry, self.config).partial_targets()
        if targets is None:
            return []

        updates: list[EvidenceUpdate] = []
        first_pct = self.config.partial_target_1_fraction * 100
        if self._reached(pattern, targets.first, price):
            updates.append(
                ComponentUpdate(
                    first_name, True, 90.0, (f"{first_pct:.0f}% target reached: ${targets.first:.2f}",)
                )
            )
        if second_name is not None and self._reached(pattern, targets.second, price):
            second_pct = self.config.partial_target_2_fraction * 100
            updates.append(
                ComponentUpdate(
                    second_name,
                    True,
                    95.0,
                    (f"{second_pct:.0f}% target reached: ${targets.second:.2f}",),
                )
            )
        if self._reached(pattern, targets.full, price):
            updates.append(
                ComponentUpdate(
                    "full_target", True, 100.0, (f"Full target reached: ${targets.full:.2f}",)
                )
            )
        return updates
