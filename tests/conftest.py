"""Shared pytest fixtures for the pattern engine tests.

Environment variables are set before importing engine code so Settings picks
up the test configuration.
"""
import os

os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timedelta, timezone

import pytest

from market_watch.core.config import Settings
from market_watch.models.pattern import PatternGeometry, PatternPoint, PointRole, VolumeProfile
from market_watch.repositories.memory import (
    InMemoryEventSink,
    InMemoryLevelRepository,
    InMemoryPatternRepository,
)
from market_watch.utils.keyed_lock import KeyedLockRegistry
from market_watch.utils.structured_logging import configure_structured_logging

configure_structured_logging(log_level="WARNING", json_output=True)

FIXED_NOW = datetime(2026, 3, 2, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for deterministic age and recency math."""
    return FIXED_NOW


@pytest.fixture
def test_settings() -> Settings:
    """Settings with defaults and a short persistence timeout."""
    return Settings(environment="test", log_level="WARNING", persistence_timeout_seconds=2.0)


@pytest.fixture
def level_repository() -> InMemoryLevelRepository:
    return InMemoryLevelRepository()


@pytest.fixture
def pattern_repository() -> InMemoryPatternRepository:
    return InMemoryPatternRepository()


@pytest.fixture
def event_sink() -> InMemoryEventSink:
    return InMemoryEventSink()


@pytest.fixture
def locks() -> KeyedLockRegistry:
    return KeyedLockRegistry()


def make_point(price: float, days_ago: int, volume_ratio: float = 1.0) -> PatternPoint:
    """Build a pattern point days_ago days before FIXED_NOW."""
    return PatternPoint(
        timestamp=FIXED_NOW - timedelta(days=days_ago),
        price=price,
        volume=100_000,
        volume_ratio=volume_ratio,
    )


@pytest.fixture
def inverse_hs_geometry() -> PatternGeometry:
    """Complete inverse head-and-shoulders: neckline 100, head low 80."""
    return PatternGeometry(
        points={
            PointRole.LEFT_SHOULDER_HIGH: make_point(100.0, 20),
            PointRole.LEFT_SHOULDER_LOW: make_point(90.0, 18, volume_ratio=1.1),
            PointRole.HEAD_HIGH: make_point(100.0, 14),
            PointRole.HEAD_LOW: make_point(80.0, 12, volume_ratio=1.5),
            PointRole.RIGHT_SHOULDER_HIGH: make_point(100.0, 8),
            PointRole.RIGHT_SHOULDER_LOW: make_point(90.5, 6, volume_ratio=0.9),
        },
        key_level=100.0,
        slopes=(0.0,),
        width_minutes=7 * 24 * 60,
    )


@pytest.fixture
def regular_hs_geometry() -> PatternGeometry:
    """Complete regular head-and-shoulders: neckline 100, head high 130."""
    return PatternGeometry(
        points={
            PointRole.LEFT_SHOULDER_HIGH: make_point(115.0, 20),
            PointRole.LEFT_SHOULDER_LOW: make_point(100.0, 18),
            PointRole.HEAD_HIGH: make_point(130.0, 12, volume_ratio=1.4),
            PointRole.HEAD_LOW: make_point(100.0, 10),
            PointRole.RIGHT_SHOULDER_HIGH: make_point(114.0, 6),
            PointRole.RIGHT_SHOULDER_LOW: make_point(100.0, 4),
        },
        key_level=100.0,
        slopes=(0.0,),
        width_minutes=7 * 24 * 60,
    )


@pytest.fixture
def wedge_geometry() -> PatternGeometry:
    """Falling wedge: breakout level 50, height 10."""
    return PatternGeometry(
        points={
            PointRole.UPPER_LINE_1: make_point(60.0, 10),
            PointRole.UPPER_LINE_2: make_point(52.0, 2),
            PointRole.LOWER_LINE_1: make_point(50.0, 9),
            PointRole.LOWER_LINE_2: make_point(47.0, 3),
        },
        key_level=50.0,
        slopes=(-0.8, -0.3),
        width_minutes=10 * 24 * 60,
        height=10.0,
        convergence=5.0,
        volume_profile=VolumeProfile.DECREASING,
    )
