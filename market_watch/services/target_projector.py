"""Pattern height, price target and symmetry projection."""
import logging
from dataclasses import dataclass

from market_watch.models.pattern import PatternFamily, PatternGeometry, PointRole
from market_watch.services.thesis_config import ThesisConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PartialTargets:
    """Staged targets along the projected move.

    Attributes:
        first: Price at the first partial fraction of the move
        second: Price at the second partial fraction of the move
        full: Full projected target
    """

    first: float
    second: float
    full: float


class TargetProjector:
    """Projects targets from finished pattern geometry.

    Every calculation returns None when a point it depends on has not formed,
    so callers can tell "not yet available" apart from a real zero.

    Head-and-shoulders height is measured from the head extreme to the
    neckline. Falling wedge height is supplied by the detector.
    """

    def __init__(
        self,
        family: PatternFamily,
        geometry: PatternGeometry,
        config: ThesisConfig | None = None,
    ):
        """Initialize projector for one pattern.

        Args:
            family: Pattern family
            geometry: Pattern geometry from the detector
            config: Thesis configuration. Uses defaults if not provided.
        """
        self.family = family
        self.geometry = geometry
        self.config = config or ThesisConfig()

    def calculate_pattern_height(self) -> float | None:
        """Vertical extent of the pattern.

        Returns:
            neckline - head low (inverse), head high - neckline (regular),
            the supplied height (wedge), or None if a point is missing or the
            height is not positive
        """
        height = self._raw_height()
        if height is not None and height <= 0:
            logger.debug(f"Non-positive {self.family.value} height {height}; no target")
            return None
        return height

    def _raw_height(self) -> float | None:
        level = self.geometry.key_level

        if self.family == PatternFamily.FALLING_WEDGE:
            return self.geometry.height

        if level is None:
            return None

        if self.family == PatternFamily.INVERSE_HEAD_SHOULDERS:
            head_low = self.geometry.price_of(PointRole.HEAD_LOW)
            return None if head_low is None else level - head_low

        head_high = self.geometry.price_of(PointRole.HEAD_HIGH)
        return None if head_high is None else head_high - level

    def calculate_target_price(self) -> float | None:
        """Projected price target.

        Returns:
            neckline + height (inverse), neckline - height (regular),
            breakout level + height (wedge), or None when undefined
        """
        height = self.calculate_pattern_height()
        level = self.geometry.key_level
        if height is None or level is None:
            return None

        if self.family == PatternFamily.HEAD_SHOULDERS:
            return level - height
        return level + height

    def get_symmetry_score(self) -> float | None:
        """Shoulder symmetry in [0, 100].

        Each shoulder's height is its high minus its low. The score is
        100 * (1 - |left - right| / mean(left, right)), clamped.

        Returns:
            Symmetry score, or None if a shoulder has not formed or has a
            non-positive height
        """
        g = self.geometry
        if not g.has(
            PointRole.LEFT_SHOULDER_HIGH,
            PointRole.LEFT_SHOULDER_LOW,
            PointRole.RIGHT_SHOULDER_HIGH,
            PointRole.RIGHT_SHOULDER_LOW,
        ):
            return None

        left = g.price_of(PointRole.LEFT_SHOULDER_HIGH) - g.price_of(PointRole.LEFT_SHOULDER_LOW)
        right = g.price_of(PointRole.RIGHT_SHOULDER_HIGH) - g.price_of(PointRole.RIGHT_SHOULDER_LOW)
        if left <= 0 or right <= 0:
            logger.debug(f"Degenerate shoulder heights left={left} right={right}")
            return None

        mean = (left + right) / 2
        score = 100 * (1 - abs(left - right) / mean)
        return max(0.0, min(100.0, score))

    def partial_targets(self) -> PartialTargets | None:
        """Staged targets at the configured fractions of the projected move."""
        target = self.calculate_target_price()
        level = self.geometry.key_level
        if target is None or level is None:
            return None

        move = target - level
        return PartialTargets(
            first=level + move * self.config.partial_target_1_fraction,
            second=level + move * self.config.partial_target_2_fraction,
            full=target,
        )

    def convergence_score(self) -> float | None:
        """Wedge convergence score: convergence percent x 10, capped at 100."""
        convergence = self.geometry.convergence
        if convergence is None:
            return None
        return max(0.0, min(100.0, convergence * 10))

    def is_near_breakout(self, current_price: float) -> bool:
        """Check if price is within the configured percent below the breakout level."""
        level = self.geometry.key_level
        if level is None:
            return False
        threshold = level * (1 - self.config.near_breakout_pct / 100)
        return current_price >= threshold
