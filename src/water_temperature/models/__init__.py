"""
Data models for the water temperature engine.

Contains the water body profile table and DTOs for persisted records,
normalized contexts and estimate results.
"""

from .water_body import WaterBodyProfile, WATER_BODIES, get_profile
from .records import Coordinates, MemoEntry, ObservedReading, CrowdReport
from .estimate import WaterTempContext, EstimateResult, ProjectionDayExplanation

__all__ = [
    "WaterBodyProfile",
    "WATER_BODIES",
    "get_profile",
    "Coordinates",
    "MemoEntry",
    "ObservedReading",
    "CrowdReport",
    "WaterTempContext",
    "EstimateResult",
    "ProjectionDayExplanation",
]
