"""
Weather forcing terms.

Each function turns one weather signal into a signed temperature effect (°F).
The same-day estimator and the multi-day projector both sum these terms; every
input is finiteness-guarded so a gap in the weather data degrades to "no
effect" instead of propagating NaN.
"""

import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Sequence

from ..core import constants
from ..core.numeric import clamp, finite_or, finite_values, mean, to_finite
from ..models import WaterBodyProfile
from .seasonal import SeasonalModel


@dataclass
class AirInfluence:
    """Recency-weighted recent air temperature and its trend."""

    average: Optional[float]  # °F, None when no air history exists
    trend: float  # °F/day
    samples: int


@dataclass
class WindEstimate:
    """Breakdown of the effective mixing wind."""

    base_mph: float
    source: str  # 'mean', 'max', 'default'
    reduced_mph: float
    pressure_boost_mph: float
    storm_boost_mph: float
    effective_mph: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ForcingModel:
    """Per-term physics shared by the estimator and the projector."""

    # =========================================================================
    # SECTION 1: Air coupling
    # =========================================================================

    @staticmethod
    def air_influence(air_temps: Optional[Sequence[Any]], profile: WaterBodyProfile) -> AirInfluence:
        """
        Exponentially recency-weighted mean of the last `thermal_lag_days` of air.

        Args:
            air_temps: Daily mean air temperatures, oldest first (°F)
            profile: Water body profile

        Returns:
            AirInfluence (average is None without any finite sample)
        """
        recent = finite_values(air_temps)[-profile.thermal_lag_days:]
        if not recent:
            return AirInfluence(average=None, trend=0.0, samples=0)

        trend = 0.0
        if len(recent) > 1:
            trend = sum(recent[i] - recent[i - 1] for i in range(1, len(recent))) / (len(recent) - 1)

        half_life = profile.thermal_lag_days * constants.AIR_HALF_LIFE_FRACTION
        weighted_sum = 0.0
        total_weight = 0.0
        for i, temp in enumerate(recent):
            age = len(recent) - i - 1
            weight = math.exp(-age / half_life)
            weighted_sum += temp * weight
            total_weight += weight

        return AirInfluence(average=weighted_sum / total_weight, trend=trend, samples=len(recent))

    @staticmethod
    def thermal_inertia(profile: WaterBodyProfile, water_temp: float, air_temp: float) -> float:
        """
        Fraction of the air-water gap the water follows.

        Grows with the gap and never changes sign; the sign lives in the gap.
        """
        base = constants.THERMAL_INERTIA_BASE.get(profile.name, constants.THERMAL_INERTIA_BASE["lake"])
        return base * math.tanh(abs(air_temp - water_temp) / constants.THERMAL_INERTIA_SCALE_F)

    @staticmethod
    def air_effect(profile: WaterBodyProfile, water_temp: float, air_temp: Optional[float]) -> float:
        """Pull toward the recent air temperature (°F)."""
        if air_temp is None:
            return 0.0
        return (air_temp - water_temp) * ForcingModel.thermal_inertia(profile, water_temp, air_temp)

    # =========================================================================
    # SECTION 2: Solar deviation
    # =========================================================================

    @staticmethod
    def normal_cloud_cover(day_of_year: float) -> float:
        """Climatological cloud cover (%) for the month containing the day."""
        month = int(clamp(math.floor((day_of_year - 1) / constants.DAYS_PER_YEAR * 12), 0, 11))
        return float(constants.NORMAL_CLOUD_BY_MONTH[month])

    @staticmethod
    def insolation_factor(latitude: float, day_of_year: float) -> float:
        """
        Midday sun strength relative to a 45° sun angle.

        Args:
            latitude: Latitude (degrees)
            day_of_year: Day of year (1-366)

        Returns:
            Factor clamped to [0.3, 1.3]
        """
        declination = constants.SOLAR_DECLINATION_DEG * math.sin(
            2 * math.pi / constants.DAYS_PER_YEAR * (day_of_year - constants.SOLAR_DECLINATION_OFFSET_DAY)
        )
        lat_rad = math.radians(latitude)
        decl_rad = math.radians(declination)
        sin_elevation = clamp(
            math.sin(lat_rad) * math.sin(decl_rad) + math.cos(lat_rad) * math.cos(decl_rad),
            -1.0,
            1.0,
        )
        elevation = math.asin(sin_elevation)
        low, high = constants.INSOLATION_FACTOR_RANGE
        return clamp(math.sin(elevation) / math.sin(math.pi / 4), low, high)

    @staticmethod
    def solar_sensitivity(profile: WaterBodyProfile) -> float:
        """Solar response of a water body class, damped by thermal mass."""
        base = constants.SOLAR_SENSITIVITY.get(profile.name, constants.SOLAR_SENSITIVITY["lake"])
        return base / (1 + 0.25 * profile.depth_mass_delta)

    @staticmethod
    def solar_deviation(
        latitude: float,
        day_of_year: float,
        cloud_cover: Optional[Sequence[Any]],
        profile: WaterBodyProfile
    ) -> float:
        """
        Warming from clearer-than-normal skies over the last week.

        Never negative: cloudier-than-normal weeks do not push the estimate
        below the seasonal baseline through this term alone.

        Args:
            latitude: Latitude (degrees)
            day_of_year: Day of year (1-366)
            cloud_cover: Daily mean cloud cover (%), oldest first
            profile: Water body profile

        Returns:
            Solar effect (°F, >= 0)
        """
        recent = finite_values(cloud_cover)[-constants.SOLAR_CLOUD_WINDOW_DAYS:]
        if not recent:
            return 0.0
        deviation = ForcingModel.normal_cloud_cover(day_of_year) - mean(recent)
        effect = (
            deviation
            * constants.SOLAR_CLOUD_COEF
            * ForcingModel.insolation_factor(latitude, day_of_year)
            * ForcingModel.solar_sensitivity(profile)
        )
        return max(0.0, effect)

    # =========================================================================
    # SECTION 3: Wind
    # =========================================================================

    @staticmethod
    def pressure_slope(pressures: Optional[Sequence[Any]], step_days: float) -> float:
        """
        Pressure tendency in hPa/day between the first and last finite samples.

        Args:
            pressures: Pressure series (hPa), oldest first
            step_days: Spacing of the series in days (1/24 for hourly)

        Returns:
            Slope in hPa/day (0 with fewer than two samples)
        """
        values = finite_values(pressures)
        if len(values) < 2 or step_days <= 0:
            return 0.0
        return (values[-1] - values[0]) / ((len(values) - 1) * step_days)

    @staticmethod
    def storm_boost(precipitation_in: Optional[float], weather_code: Optional[float]) -> float:
        """Extra mixing wind (mph) from rain and thunderstorms."""
        boost = max(0.0, to_finite(precipitation_in) or 0.0) * constants.STORM_PRECIP_MPH_PER_INCH
        code = to_finite(weather_code)
        if code is not None and code >= constants.THUNDERSTORM_CODE_MIN:
            boost += constants.STORM_THUNDER_BOOST_MPH
        return min(constants.STORM_BOOST_CAP_MPH, boost)

    @staticmethod
    def wind_estimate(
        profile: WaterBodyProfile,
        mean_winds: Optional[Sequence[Any]] = None,
        max_winds: Optional[Sequence[Any]] = None,
        pressure_slope: float = 0.0,
        precipitation_in: Optional[float] = None,
        weather_code: Optional[float] = None
    ) -> WindEstimate:
        """
        Effective mixing wind over the water surface.

        Uses the mean of the last week of daily mean wind, falling back to a
        fraction of the daily max wind, then to calm. The result is reduced by
        the sheltering factor and boosted by pressure tendency and storms.

        Args:
            profile: Water body profile
            mean_winds: Daily mean wind speeds (mph), oldest first
            max_winds: Daily max wind speeds (mph), oldest first
            pressure_slope: Pressure tendency (hPa/day)
            precipitation_in: Current precipitation (inch)
            weather_code: Current WMO weather code

        Returns:
            WindEstimate
        """
        means = finite_values(mean_winds)[-constants.WIND_WINDOW_DAYS:]
        maxes = finite_values(max_winds)[-constants.WIND_WINDOW_DAYS:]
        if means:
            base, source = mean(means), "mean"
        elif maxes:
            base, source = mean(maxes) * constants.GUST_TO_MEAN_RATIO, "max"
        else:
            base, source = constants.DEFAULT_WIND_MPH, "default"
        base = max(0.0, base)

        reduced = base * profile.wind_reduction_factor
        pressure_boost = min(
            constants.PRESSURE_BOOST_CAP_MPH,
            abs(to_finite(pressure_slope) or 0.0) * constants.PRESSURE_BOOST_PER_HPA_DAY,
        )
        storm = ForcingModel.storm_boost(precipitation_in, weather_code)
        return WindEstimate(
            base_mph=base,
            source=source,
            reduced_mph=reduced,
            pressure_boost_mph=pressure_boost,
            storm_boost_mph=storm,
            effective_mph=reduced + pressure_boost + storm,
        )

    @staticmethod
    def wind_mixing_effect(
        wind_mph: float,
        profile: WaterBodyProfile,
        water_temp: float,
        air_temp: Optional[float]
    ) -> float:
        """
        Mixing toward air temperature once wind exceeds the mixing threshold.

        Args:
            wind_mph: Effective wind (mph)
            profile: Water body profile
            water_temp: Current water estimate (°F)
            air_temp: Recent air temperature (°F)

        Returns:
            Effect in °F, within [-3, 2]
        """
        wind = to_finite(wind_mph)
        if wind is None or air_temp is None or wind <= profile.mixing_wind_threshold:
            return 0.0
        excess = wind - profile.mixing_wind_threshold
        gap = water_temp - air_temp
        if gap > constants.WIND_MIXING_GAP_F:
            return max(constants.WIND_COOLING_CAP, constants.WIND_COOLING_RATE * excess)
        if gap < -constants.WIND_MIXING_GAP_F:
            return min(constants.WIND_WARMING_CAP, constants.WIND_WARMING_RATE * excess)
        return 0.0

    # =========================================================================
    # SECTION 4: Evaporation, trend, cold season
    # =========================================================================

    @staticmethod
    def evaporative_cooling(humidity_pct: Optional[float], wind_mph: float, profile: WaterBodyProfile) -> float:
        """
        Evaporative cooling from the humidity deficit and wind.

        Returns:
            Effect in °F (<= 0)
        """
        humidity = clamp(finite_or(humidity_pct, constants.DEFAULT_HUMIDITY_PCT), 0.0, 100.0)
        wind = max(0.0, to_finite(wind_mph) or 0.0)
        cooling = min(constants.EVAP_CAP_F, (100 - humidity) / 100 * wind * constants.EVAP_RATE)
        return -cooling * profile.evaporation_multiplier

    @staticmethod
    def trend_effect(trend: float) -> float:
        """
        Smoothed response to the air temperature trend (°F/day).

        Quadratic below 0.5 °F/day and linear above it, capped at 4 °F/day
        before the 0.5 scale.
        """
        value = to_finite(trend) or 0.0
        magnitude = abs(value)
        if magnitude == 0:
            return 0.0
        knee = constants.TREND_RAMP_KNEE
        if magnitude < knee:
            ramp = magnitude ** 2 / (2 * knee)
        else:
            ramp = magnitude - knee / 2
        ramp = min(constants.TREND_CAP_F_PER_DAY, ramp)
        return math.copysign(ramp * constants.TREND_EFFECT_SCALE, value)

    @staticmethod
    def cold_season_pond_correction(
        profile: WaterBodyProfile,
        day_of_year: float,
        cloud_pct: Optional[float],
        baseline: float,
        air_temp: Optional[float]
    ) -> float:
        """
        Extra cooling for shallow ponds under cold, overcast late-winter weather.

        Args:
            profile: Water body profile (only ponds are corrected)
            day_of_year: Day of year
            cloud_pct: Recent mean cloud cover (%)
            baseline: Seasonal baseline (°F)
            air_temp: Recent air temperature (°F)

        Returns:
            Correction in °F, within [-4, 0]
        """
        if profile.name != "pond":
            return 0.0
        season = SeasonalModel.cold_season_factor(day_of_year)
        if season <= 0:
            return 0.0

        cloud = to_finite(cloud_pct)
        overcast = 0.0
        if cloud is not None:
            overcast = clamp(
                (cloud - constants.OVERCAST_SIGNAL_START_PCT) / constants.OVERCAST_SIGNAL_SPAN_PCT, 0.0, 1.0
            )
        cool_air = 0.0
        if air_temp is not None:
            cool_air = clamp((baseline - air_temp) / constants.COOL_AIR_SIGNAL_SPAN_F, 0.0, 1.0)

        return -min(
            constants.COLD_SEASON_POND_CAP_F,
            constants.COLD_SEASON_POND_RATE * season * (cool_air + overcast),
        )

    # =========================================================================
    # SECTION 5: Energy-balance regression terms
    # =========================================================================

    @staticmethod
    def longwave_loss(cloud_pct: Optional[float], longwave_factor: float = 1.0, depth_flux_scale: float = 1.0) -> float:
        """
        Net longwave heat loss (°F/day equivalent).

        Clouds re-radiate toward the surface, so more cloud never increases the
        loss.

        Args:
            cloud_pct: Cloud cover (%), missing treated as clear
            longwave_factor: Site-specific longwave scaling
            depth_flux_scale: Flux scaling for the mixed-layer depth

        Returns:
            Loss magnitude (>= 0)
        """
        cloud_fraction = clamp((to_finite(cloud_pct) or 0.0) / 100.0, 0.0, 1.0)
        clear_sky = constants.LONGWAVE_CLEAR_COEFF * longwave_factor * depth_flux_scale
        return clear_sky * (1 - constants.LONGWAVE_CLOUD_REDUCTION_MAX * cloud_fraction)
