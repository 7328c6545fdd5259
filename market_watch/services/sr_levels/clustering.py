"""Pivot clustering into candidate levels."""
import logging
from collections.abc import Iterable

import numpy as np

from market_watch.models.support_resistance import LevelType, PivotPoint, PivotType

from .types import LevelCandidate, SRConfig

logger = logging.getLogger(__name__)


def _candidate_from_cluster(symbol: str, cluster: list[PivotPoint]) -> LevelCandidate:
    prices = np.array([pivot.price for pivot in cluster], dtype=float)
    volumes = np.array([pivot.volume for pivot in cluster], dtype=float)
    lows = sum(1 for pivot in cluster if pivot.pivot_type == PivotType.LOW)
    highs = len(cluster) - lows
    timestamps = [pivot.timestamp for pivot in cluster]

    return LevelCandidate(
        symbol=symbol,
        price=float(prices.mean()),
        level_type=LevelType.RESISTANCE if highs > lows else LevelType.SUPPORT,
        touches=len(cluster),
        first_touch=min(timestamps),
        last_touch=max(timestamps),
        avg_volume=float(volumes.mean()),
    )


def cluster_pivots(
    symbol: str, pivots: Iterable[PivotPoint], config: SRConfig | None = None
) -> list[LevelCandidate]:
    """Group nearby pivots into candidate levels.

    Pivots are sorted by price. A cluster starts at the lowest unclaimed pivot
    and takes every following pivot within min_level_distance_pct of that
    first price. Clusters with fewer than min_touches pivots are dropped.
    The candidate price is the cluster mean and its type is decided by
    majority, ties going to support.

    Args:
        symbol: Stock symbol the pivots belong to
        pivots: Pivot highs and lows in any order
        config: Clustering configuration. Uses defaults if not provided.

    Returns:
        Candidates ordered by price
    """
    config = config or SRConfig()
    ordered = sorted(pivots, key=lambda pivot: pivot.price)
    if not ordered:
        return []

    max_distance = config.min_level_distance_pct / 100.0
    candidates: list[LevelCandidate] = []

    i = 0
    while i < len(ordered):
        anchor = ordered[i].price
        j = i + 1
        while j < len(ordered) and abs(ordered[j].price - anchor) / anchor <= max_distance:
            j += 1

        cluster = ordered[i:j]
        if len(cluster) >= config.min_touches:
            candidates.append(_candidate_from_cluster(symbol, cluster))
        i = j

    logger.debug(f"Clustered {len(ordered)} pivots for {symbol} into {len(candidates)} candidates")
    return candidates
