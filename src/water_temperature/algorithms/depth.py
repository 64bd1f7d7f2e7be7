"""
Depth profile module.

Estimates temperature below the surface from the surface value using a
month-keyed stratification model.
"""

from datetime import date
from typing import Dict, List, Union

from ..core import constants
from ..core.numeric import clamp, round1
from ..models import WaterBodyProfile

SUMMER_MONTHS = (5, 6, 7, 8, 9)
TURNOVER_MONTHS = (3, 4, 10, 11)


class DepthProfile:
    """Thermocline falloff model."""

    @staticmethod
    def temperature_at_depth(
        surface_temp: float,
        profile: WaterBodyProfile,
        depth_ft: float,
        when: Union[date, int]
    ) -> float:
        """
        Estimate water temperature at a depth.

        Summer (May-Sep) is stratified: a gentle epilimnion gradient down to the
        thermocline, a steep gradient through it, then the deep stable
        temperature. Spring and fall turnover use a uniform gentle gradient.
        Winter is inversely stratified under near-freezing surfaces.

        Args:
            surface_temp: Surface temperature (°F), held to the physical bounds
            profile: Water body profile
            depth_ft: Depth below the surface (ft)
            when: Date, or month number (1-12)

        Returns:
            Temperature at depth (°F)
        """
        month = when if isinstance(when, int) else when.month
        surface_temp = clamp(surface_temp, constants.MIN_WATER_TEMP_F, constants.MAX_WATER_TEMP_F)
        depth = max(0.0, float(depth_ft))
        if depth == 0:
            return surface_temp

        if month in SUMMER_MONTHS:
            thermocline = profile.thermocline_depth
            if depth < thermocline:
                return max(constants.MIN_WATER_TEMP_F, surface_temp - depth * constants.SUMMER_EPILIMNION_RATE)
            if depth < thermocline + constants.THERMOCLINE_THICKNESS_FT:
                top = surface_temp - thermocline * constants.SUMMER_EPILIMNION_RATE
                return max(
                    constants.MIN_WATER_TEMP_F,
                    top - (depth - thermocline) * constants.SUMMER_THERMOCLINE_RATE,
                )
            return max(constants.MIN_WATER_TEMP_F, profile.deep_stable_temp)

        if month in TURNOVER_MONTHS:
            return max(constants.MIN_WATER_TEMP_F, surface_temp - depth * constants.TURNOVER_RATE)

        if surface_temp <= constants.WINTER_ICE_SURFACE_F:
            return surface_temp if depth < constants.WINTER_SHALLOW_DEPTH_FT else constants.WINTER_DENSE_WATER_F
        return max(constants.MIN_WATER_TEMP_F, surface_temp - depth * constants.WINTER_RATE)

    @staticmethod
    def profile_temps(
        surface_temp: float,
        profile: WaterBodyProfile,
        when: Union[date, int]
    ) -> List[Dict[str, float]]:
        """Temperatures at the standard profile depths (0-30 ft)."""
        return [
            {
                "depth": depth,
                "temperature": round1(DepthProfile.temperature_at_depth(surface_temp, profile, depth, when)),
            }
            for depth in constants.PROFILE_DEPTHS_FT
        ]
