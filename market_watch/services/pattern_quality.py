"""Pattern quality scoring.

Scores a detected pattern from 0 to 100 by summing weighted sub-scores.
Head-and-shoulders and falling wedge use different criteria:

Head-and-shoulders (100 total):
1. Symmetry (25) - shoulder symmetry score scaled to 25
2. Duration (15) - closeness of pattern width to one week
3. Head depth (20) - height relative to the neckline, 4 points per percent
4. Volume (15) - volume ratios at the head and both shoulders
5. Completion (25) - thesis completion scaled to 25

Falling wedge (100 total):
1. Convergence (25) - 2.5 points per percent of convergence
2. Volume profile (20) - decreasing 20, stable 10, increasing 5
3. Duration (15) - closeness of pattern width to ten days
4. Height (20) - 2 points per percent of height relative to the breakout level
5. Slope difference (20) - 100 points per unit of slope difference

Usage:
    scorer = PatternQualityScorer()
    breakdown = scorer.score(pattern)
    breakdown.total
"""

from dataclasses import dataclass, field

from market_watch.models.pattern import Pattern, PatternFamily, PointRole, VolumeProfile
from market_watch.services.target_projector import TargetProjector


@dataclass
class QualityCriterion:
    """Points awarded for one quality criterion.

    Attributes:
        name: Criterion identifier (symmetry, duration, head_depth, ...)
        points: Points awarded
        max_points: Maximum points available
    """

    name: str
    points: float
    max_points: float


@dataclass
class QualityBreakdown:
    """All criteria scored for a pattern."""

    criteria: list[QualityCriterion] = field(default_factory=list)

    @property
    def total(self) -> float:
        return min(100.0, sum(c.points for c in self.criteria))

    def points_for(self, name: str) -> float | None:
        for criterion in self.criteria:
            if criterion.name == name:
                return criterion.points
        return None


def _duration_points(width_minutes: int, ideal_hours: float, max_points: float) -> float:
    hours = width_minutes / 60.0
    return max(0.0, max_points - abs(hours - ideal_hours) / ideal_hours * max_points)


class PatternQualityScorer:
    """Scores pattern quality from geometry and thesis completion."""

    HS_IDEAL_DURATION_HOURS = 168.0  # 1 week
    WEDGE_IDEAL_DURATION_HOURS = 240.0  # 10 days
    HEAD_VOLUME_RATIO = 1.2
    SHOULDER_VOLUME_RATIO = 1.0

    VOLUME_PROFILE_POINTS = {
        VolumeProfile.DECREASING: 20.0,
        VolumeProfile.STABLE: 10.0,
        VolumeProfile.INCREASING: 5.0,
        VolumeProfile.INSUFFICIENT_DATA: 0.0,
    }

    def score(self, pattern: Pattern) -> QualityBreakdown:
        """Score a pattern according to its family."""
        if pattern.family == PatternFamily.FALLING_WEDGE:
            return self._score_wedge(pattern)
        return self._score_head_shoulders(pattern)

    def _score_head_shoulders(self, pattern: Pattern) -> QualityBreakdown:
        geometry = pattern.geometry
        projector = TargetProjector(pattern.family, geometry)
        breakdown = QualityBreakdown()

        symmetry = projector.get_symmetry_score()
        if symmetry is None:
            symmetry = geometry.symmetry
        breakdown.criteria.append(
            QualityCriterion("symmetry", (symmetry or 0.0) / 100.0 * 25.0, 25.0)
        )

        breakdown.criteria.append(
            QualityCriterion(
                "duration",
                _duration_points(geometry.width_minutes, self.HS_IDEAL_DURATION_HOURS, 15.0),
                15.0,
            )
        )

        height = projector.calculate_pattern_height()
        depth_points = 0.0
        if height is not None and geometry.key_level:
            depth_points = max(0.0, min(20.0, height / geometry.key_level * 100 * 4))
        breakdown.criteria.append(QualityCriterion("head_depth", depth_points, 20.0))

        if pattern.family == PatternFamily.INVERSE_HEAD_SHOULDERS:
            head, left, right = (
                PointRole.HEAD_LOW,
                PointRole.LEFT_SHOULDER_LOW,
                PointRole.RIGHT_SHOULDER_LOW,
            )
        else:
            head, left, right = (
                PointRole.HEAD_HIGH,
                PointRole.LEFT_SHOULDER_HIGH,
                PointRole.RIGHT_SHOULDER_HIGH,
            )
        volume_points = 0.0
        head_point = geometry.point(head)
        if head_point is not None and head_point.volume_ratio > self.HEAD_VOLUME_RATIO:
            volume_points += 8.0
        for role in (left, right):
            point = geometry.point(role)
            if point is not None and point.volume_ratio > self.SHOULDER_VOLUME_RATIO:
                volume_points += 3.5
        breakdown.criteria.append(QualityCriterion("volume", volume_points, 15.0))

        breakdown.criteria.append(
            QualityCriterion(
                "completion", pattern.thesis.calculate_completion() / 100.0 * 25.0, 25.0
            )
        )
        return breakdown

    def _score_wedge(self, pattern: Pattern) -> QualityBreakdown:
        geometry = pattern.geometry
        breakdown = QualityBreakdown()

        convergence = geometry.convergence or 0.0
        breakdown.criteria.append(
            QualityCriterion("convergence", max(0.0, min(25.0, convergence * 2.5)), 25.0)
        )

        breakdown.criteria.append(
            QualityCriterion(
                "volume_profile", self.VOLUME_PROFILE_POINTS[geometry.volume_profile], 20.0
            )
        )

        breakdown.criteria.append(
            QualityCriterion(
                "duration",
                _duration_points(geometry.width_minutes, self.WEDGE_IDEAL_DURATION_HOURS, 15.0),
                15.0,
            )
        )

        height_points = 0.0
        if geometry.height is not None and geometry.key_level:
            height_points = max(0.0, min(20.0, geometry.height / geometry.key_level * 100 * 2))
        breakdown.criteria.append(QualityCriterion("height", height_points, 20.0))

        slope_points = 0.0
        if len(geometry.slopes) >= 2:
            upper, lower = geometry.slopes[0], geometry.slopes[1]
            slope_points = min(20.0, abs(upper - lower) * 100)
        breakdown.criteria.append(QualityCriterion("slope_difference", slope_points, 20.0))

        return breakdown
