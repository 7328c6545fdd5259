"""Support/resistance level catalog module."""

from .types import (
    LevelCandidate,
    LevelSummary,
    NearestLevels,
    SRConfig,
    StrengthWeights,
    TouchResult,
)
from .strength import calculate_strength
from .clustering import cluster_pivots
from .aggregator import SRLevelAggregator
from .locator import NearestLevelLocator
from .sweep import DeactivationSweep

__all__ = [
    "LevelCandidate",
    "LevelSummary",
    "NearestLevels",
    "SRConfig",
    "StrengthWeights",
    "TouchResult",
    "calculate_strength",
    "cluster_pivots",
    "SRLevelAggregator",
    "NearestLevelLocator",
    "DeactivationSweep",
]
