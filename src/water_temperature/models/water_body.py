"""
Water body profile models.

Static per-class physical constants for the supported water body classes.
"""

import math
from dataclasses import dataclass
from typing import Dict

from ..core import constants


@dataclass(frozen=True)
class WaterBodyProfile:
    """Thermal characteristics of a water body class."""

    name: str
    thermal_lag_days: int  # Days before water responds to sustained air change
    seasonal_lag_days: int  # Peak temp lags the solar peak by this many days
    annual_amplitude: float  # °F swing around the annual mean
    thermocline_depth: float  # ft
    max_daily_change: float  # °F/day
    deep_stable_temp: float  # °F below the thermocline in summer
    mixing_wind_threshold: float  # mph
    wind_reduction_factor: float = 1.0  # 0-1 sheltering factor for on-water wind
    evaporation_multiplier: float = 1.0  # Scales evaporative cooling intensity

    @property
    def depth_mass_delta(self) -> float:
        """Thermal mass of this class relative to the pond reference depth (log scale)."""
        return max(
            0.0,
            math.log1p(self.thermocline_depth) - math.log1p(constants.POND_REFERENCE_DEPTH_FT)
        )


WATER_BODIES: Dict[str, WaterBodyProfile] = {
    # Tuned for very small impoundments (roughly <= 5 acres)
    "pond": WaterBodyProfile(
        name="pond",
        thermal_lag_days=5,
        seasonal_lag_days=10,
        annual_amplitude=24,
        thermocline_depth=8,
        max_daily_change=3,
        deep_stable_temp=55,
        mixing_wind_threshold=5,
        wind_reduction_factor=0.68,
        evaporation_multiplier=0.85,
    ),
    "lake": WaterBodyProfile(
        name="lake",
        thermal_lag_days=10,
        seasonal_lag_days=25,
        annual_amplitude=20,
        thermocline_depth=15,
        max_daily_change=2,
        deep_stable_temp=50,
        mixing_wind_threshold=8,
        wind_reduction_factor=0.8,
        evaporation_multiplier=1,
    ),
    "reservoir": WaterBodyProfile(
        name="reservoir",
        thermal_lag_days=14,
        seasonal_lag_days=35,
        annual_amplitude=18,
        thermocline_depth=25,
        max_daily_change=1.5,
        deep_stable_temp=45,
        mixing_wind_threshold=10,
        wind_reduction_factor=0.9,
        evaporation_multiplier=1,
    ),
}


def get_profile(water_type: str) -> WaterBodyProfile:
    """
    Look up the profile for a water body class.

    Args:
        water_type: 'pond', 'lake' or 'reservoir' (case-insensitive)

    Returns:
        WaterBodyProfile

    Raises:
        ValueError: If the class is unknown
    """
    key = str(water_type or "").strip().lower()
    if key not in WATER_BODIES:
        raise ValueError(
            f"Unknown water type '{water_type}'. "
            f"Expected one of: {', '.join(WATER_BODIES.keys())}"
        )
    return WATER_BODIES[key]
