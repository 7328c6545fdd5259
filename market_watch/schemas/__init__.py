"""Pydantic snapshot schemas.

This module exports all Pydantic schemas produced by the engine.
"""

from market_watch.schemas.base import StrictBaseModel
from market_watch.schemas.levels import LevelSummarySchema, SupportResistanceLevelSnapshot
from market_watch.schemas.thesis import PatternThesisSnapshot, ThesisComponentSchema

__all__ = [
    "StrictBaseModel",
    "LevelSummarySchema",
    "SupportResistanceLevelSnapshot",
    "PatternThesisSnapshot",
    "ThesisComponentSchema",
]
