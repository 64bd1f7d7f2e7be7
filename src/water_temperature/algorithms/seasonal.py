"""
Seasonal baseline module.

The seasonal baseline is the climatological prior every estimate starts from:
an annual harmonic keyed to latitude and water body class, cooled for deep
water bodies through winter and early spring, and optionally pulled toward the
recently observed air temperature.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from ..core import constants
from ..core.numeric import clamp, finite_values, mean
from ..models import WaterBodyProfile


@dataclass
class BaselineBlend:
    """Result of blending the harmonic prior with recent air temperatures."""

    value: float  # °F
    prior: float  # °F, harmonic prior before blending
    target: Optional[float]  # °F, recent air mean plus water-type offset
    weight: float  # 0-0.55
    samples: int


class SeasonalModel:
    """Harmonic seasonal baseline for surface water temperature."""

    # =========================================================================
    # SECTION 1: Season windows
    # =========================================================================

    @staticmethod
    def day_distance(day_a: float, day_b: float) -> float:
        """Distance in days between two days of year, wrapping at year end."""
        distance = abs(day_a - day_b) % constants.DAYS_PER_YEAR
        return min(distance, constants.DAYS_PER_YEAR - distance)

    @staticmethod
    def triangular_window(day_of_year: float, center: float, half_width: float) -> float:
        """
        Triangular season window.

        Args:
            day_of_year: Day of year (1-366)
            center: Day where the window peaks at 1
            half_width: Days from the center where the window reaches 0

        Returns:
            Window weight in [0, 1]
        """
        distance = SeasonalModel.day_distance(day_of_year, center)
        return max(0.0, 1.0 - distance / half_width)

    @staticmethod
    def winter_factor(day_of_year: float) -> float:
        """Deep-winter weight, peaking mid-January."""
        return SeasonalModel.triangular_window(
            day_of_year, constants.WINTER_CENTER_DAY, constants.WINTER_HALF_WIDTH_DAYS
        )

    @staticmethod
    def shoulder_factor(day_of_year: float) -> float:
        """Late-winter shoulder weight, peaking mid-March."""
        return SeasonalModel.triangular_window(
            day_of_year, constants.SHOULDER_CENTER_DAY, constants.SHOULDER_HALF_WIDTH_DAYS
        )

    @staticmethod
    def cold_season_factor(day_of_year: float) -> float:
        """Strongest of the winter and shoulder weights."""
        return max(SeasonalModel.winter_factor(day_of_year), SeasonalModel.shoulder_factor(day_of_year))

    # =========================================================================
    # SECTION 2: Harmonic baseline
    # =========================================================================

    @staticmethod
    def annual_mean(latitude: float) -> float:
        """Annual mean surface temperature (°F) at a latitude."""
        return constants.ANNUAL_MEAN_BASE_F - constants.ANNUAL_MEAN_LAT_SLOPE * abs(
            latitude - constants.ANNUAL_MEAN_LAT_REF
        )

    @staticmethod
    def harmonic_base(latitude: float, day_of_year: float, profile: WaterBodyProfile) -> float:
        """
        Annual cosine around the latitude mean, peaking after midsummer.

        Args:
            latitude: Latitude (degrees)
            day_of_year: Day of year (1-366)
            profile: Water body profile

        Returns:
            Harmonic baseline (°F)
        """
        peak_day = constants.SEASONAL_PEAK_DAY + profile.seasonal_lag_days
        radians = 2 * math.pi * (day_of_year - peak_day) / constants.DAYS_PER_YEAR
        return SeasonalModel.annual_mean(latitude) + profile.annual_amplitude * math.cos(radians)

    @staticmethod
    def cold_season_cooling(day_of_year: float, profile: WaterBodyProfile) -> float:
        """
        Extra winter cooling for water bodies deeper than the pond reference.

        Returns:
            Cooling in °F (>= 0, subtracted from the harmonic baseline)
        """
        return profile.depth_mass_delta * (
            constants.WINTER_COOLING_F * SeasonalModel.winter_factor(day_of_year)
            + constants.SHOULDER_COOLING_F * SeasonalModel.shoulder_factor(day_of_year)
        )

    @staticmethod
    def seasonal_base(latitude: float, day_of_year: float, profile: WaterBodyProfile) -> float:
        """
        Seasonal baseline temperature.

        Args:
            latitude: Latitude (degrees)
            day_of_year: Day of year (1-366)
            profile: Water body profile

        Returns:
            Baseline surface temperature (°F)
        """
        return (
            SeasonalModel.harmonic_base(latitude, day_of_year, profile)
            - SeasonalModel.cold_season_cooling(day_of_year, profile)
        )

    # =========================================================================
    # SECTION 3: Data-driven blend
    # =========================================================================

    @staticmethod
    def blend_window(profile: WaterBodyProfile) -> int:
        """Number of recent days the baseline blend looks at."""
        return int(clamp(
            2 * profile.thermal_lag_days,
            constants.BASELINE_WINDOW_MIN_DAYS,
            constants.BASELINE_WINDOW_MAX_DAYS,
        ))

    @staticmethod
    def blend_with_air(
        prior: float,
        air_temps: Optional[Sequence[float]],
        profile: WaterBodyProfile
    ) -> BaselineBlend:
        """
        Pull the harmonic prior toward recent observed air temperatures.

        The blend weight grows with the number of finite samples in the window
        and never exceeds 0.55, so the prior is never fully discarded.

        Args:
            prior: Harmonic seasonal baseline (°F)
            air_temps: Daily mean air temperatures, oldest first (°F)
            profile: Water body profile

        Returns:
            BaselineBlend
        """
        window = SeasonalModel.blend_window(profile)
        recent = finite_values(list(air_temps or [])[-window:])
        if not recent:
            return BaselineBlend(value=prior, prior=prior, target=None, weight=0.0, samples=0)

        target = mean(recent) + constants.BASELINE_WATER_OFFSET_F.get(profile.name, 0.0)
        weight = constants.BASELINE_MAX_BLEND * min(1.0, len(recent) / window)
        value = prior + weight * (target - prior)
        return BaselineBlend(value=value, prior=prior, target=target, weight=weight, samples=len(recent))
