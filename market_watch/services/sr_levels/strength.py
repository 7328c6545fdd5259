"""Level strength scoring."""
from datetime import datetime

from market_watch.models.support_resistance import SupportResistanceLevel

from .types import StrengthWeights


def touch_component(touches: int, weights: StrengthWeights) -> float:
    """Touch-count term with diminishing returns, bounded by touch_cap."""
    if touches <= 0 or weights.touch_cap <= 0:
        return 0.0
    if weights.touch_points >= weights.touch_cap:
        return weights.touch_cap
    retained = 1 - weights.touch_points / weights.touch_cap
    return weights.touch_cap * (1 - retained**touches)


def calculate_strength(
    level: SupportResistanceLevel, as_of: datetime, weights: StrengthWeights
) -> float:
    """Score a level from 0 to 100.

    Args:
        level: Level to score
        as_of: Reference time for the age and recency terms
        weights: Strength coefficients

    Returns:
        Strength score clamped to [0, 100]
    """
    score = touch_component(level.touches, weights)
    score += min(weights.bounce_cap, max(0.0, level.avg_bounce_percent) * weights.bounce_multiplier)

    if level.volume_confirmed:
        score += weights.volume_points

    age_days = max(0.0, level.get_age_days(as_of))
    score += max(0.0, weights.age_points - age_days * weights.age_decay_per_day)

    hours_since_touch = level.hours_since_last_touch(as_of)
    if hours_since_touch <= weights.recent_hours:
        score += weights.recent_points
    elif hours_since_touch <= weights.week_hours:
        score += weights.week_points

    return max(0.0, min(100.0, score))
