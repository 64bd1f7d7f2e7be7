"""
Same-day water temperature estimator.

Sums independently computed weather terms onto the seasonal baseline, applies
field-data calibration and physical bounds, and limits how far a same-day
re-estimate may move from the previously persisted value.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..core import Config, constants
from ..core.date_utils import DateUtils
from ..core.numeric import clamp, finite_values, mean, round1
from ..models import (
    Coordinates,
    CrowdReport,
    EstimateResult,
    MemoEntry,
    ObservedReading,
    WaterBodyProfile,
    WaterTempContext,
    get_profile,
)
from ..storage import WaterTempStore
from ..trace import PayloadReader
from .calibration import Calibrator
from .forcing import ForcingModel
from .seasonal import SeasonalModel


class WaterTempEstimator:
    """
    Explainable same-day estimator.

    The persisted memo is the only state this class mutates, and only through
    the injected store.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        store: Optional[WaterTempStore] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize estimator.

        Args:
            config: Engine configuration
            store: Record store (memo, observed readings, crowd reports); None disables persistence
            logger: Logger instance
        """
        self.config = config or Config()
        self.store = store
        self.logger = logger or logging.getLogger(__name__)
        self.calibrator = Calibrator(self.logger)

    def estimate(
        self,
        context: WaterTempContext,
        when: datetime,
        persist: bool = True,
        trace: bool = False
    ) -> EstimateResult:
        """
        Estimate today's surface water temperature.

        Args:
            context: Normalized weather context (coords and water type set)
            when: Estimate instant (naive means UTC)
            persist: Write the memo entry when done
            trace: Record every payload path read into `fields_read`

        Returns:
            EstimateResult with the final value and its decomposition

        Raises:
            ValueError: If coordinates or water type are missing or invalid
        """
        coords = context.coords
        if coords is None:
            raise ValueError("Missing coordinates")
        profile = get_profile(context.water_type)
        water_type = profile.name

        local_day = DateUtils.instant_to_local_naive(when, context.timezone).date()
        day_key = local_day.isoformat()
        day_of_year = DateUtils.day_of_year(local_day)
        model_version = self.config.model_version

        # Last safe value if anything below fails
        persist_value = round1(clamp(
            SeasonalModel.seasonal_base(coords.lat, day_of_year, profile),
            constants.MIN_WATER_TEMP_F,
            constants.MAX_WATER_TEMP_F,
        ))

        try:
            result = self._run_pipeline(
                context=context,
                reader=PayloadReader(context.payload, set() if trace else None),
                coords=coords,
                profile=profile,
                when=when,
                day_key=day_key,
                day_of_year=day_of_year,
                model_version=model_version,
            )
            persist_value = result.final
            return result
        finally:
            if persist and self.config.persist_memo and self.store is not None:
                self.store.set_memo(coords, water_type, MemoEntry(persist_value, day_key, model_version))

    def _run_pipeline(
        self,
        context: WaterTempContext,
        reader: PayloadReader,
        coords: Coordinates,
        profile: WaterBodyProfile,
        when: datetime,
        day_key: str,
        day_of_year: int,
        model_version: str
    ) -> EstimateResult:
        water_type = profile.name
        terms: Dict[str, float] = {}
        clamps: List[str] = []

        memo = self.store.get_memo(coords, water_type) if self.store else None
        observed = self.store.get_observed(coords, water_type) if self.store else None
        reports = self.store.get_reports() if self.store else []

        # Baseline
        harmonic = SeasonalModel.seasonal_base(coords.lat, day_of_year, profile)
        air_temps = reader.series("historical.daily.temperature_2m_mean")
        blend = SeasonalModel.blend_with_air(harmonic, air_temps, profile)
        terms["seasonal_base"] = harmonic
        terms["data_blend"] = blend.value - harmonic
        base = blend.value

        observed_usable = self._observed_usable(observed, water_type, when)
        crowd_count = 0
        if not observed_usable and reports:
            crowd = self.calibrator.crowd_blend(
                base,
                reports,
                coords,
                water_type,
                when,
                radius_miles=self.config.report_radius_miles,
                days_back=self.config.report_days_back,
                trusted_floor_enabled=self.config.trusted_report_floor,
            )
            terms["crowd_blend"] = crowd.value - base
            crowd_count = crowd.report_count
            base = crowd.value
        else:
            terms["crowd_blend"] = 0.0

        # Weather terms
        air = ForcingModel.air_influence(air_temps, profile)
        clouds = reader.series("historical.daily.cloud_cover_mean")
        recent_clouds = finite_values(clouds)[-constants.SOLAR_CLOUD_WINDOW_DAYS:]
        cloud_mean = mean(recent_clouds)

        solar = ForcingModel.solar_deviation(coords.lat, day_of_year, clouds, profile)
        air_effect = ForcingModel.air_effect(profile, base, air.average)

        wind = ForcingModel.wind_estimate(
            profile,
            mean_winds=reader.series("historical.daily.wind_speed_10m_mean"),
            max_winds=reader.series("historical.daily.wind_speed_10m_max"),
            pressure_slope=self._pressure_slope(reader, context.now_hour_index),
            precipitation_in=reader.number("forecast.current.precipitation"),
            weather_code=reader.number("forecast.current.weather_code"),
        )
        wind_effect = ForcingModel.wind_mixing_effect(
            wind.effective_mph, profile, base + solar + air_effect, air.average
        )

        humidity = reader.number("forecast.current.relative_humidity_2m", constants.DEFAULT_HUMIDITY_PCT)
        evaporation = ForcingModel.evaporative_cooling(humidity, wind.effective_mph, profile)
        trend = ForcingModel.trend_effect(air.trend)
        cold_season = ForcingModel.cold_season_pond_correction(
            profile, day_of_year, cloud_mean, base, air.average
        )

        terms["solar"] = solar
        terms["air"] = air_effect
        terms["wind"] = wind_effect
        terms["evaporation"] = evaporation
        terms["trend"] = trend
        terms["cold_season_pond"] = cold_season

        estimate = base + solar + air_effect + wind_effect + evaporation + trend + cold_season

        # Cold-season guardrail for configured sources
        guarded = self._apply_guardrail(estimate, context, profile, day_of_year, air_temps)
        terms["guardrail"] = guarded - estimate
        if guarded != estimate:
            clamps.append("cold_season_guardrail")
        estimate = guarded

        # Observed reading calibration
        calibration = self.calibrator.observed_offset(
            observed if observed_usable else None, estimate, water_type, when
        )
        terms["observed"] = calibration.offset
        estimate += calibration.offset

        # Physical bounds
        bounded = clamp(estimate, constants.MIN_WATER_TEMP_F, constants.MAX_WATER_TEMP_F)
        if bounded != estimate:
            clamps.append("physical_bounds")
        terms["bounds"] = bounded - estimate
        estimate = bounded

        # Day continuity
        continuous = self._apply_memo_clamp(
            estimate, memo, day_key, model_version, profile, reports, coords, when, clamps
        )
        terms["continuity"] = continuous - estimate
        estimate = continuous

        final = round1(estimate)

        signals = {
            "day_of_year": day_of_year,
            "air_average": air.average,
            "air_trend": air.trend,
            "air_samples": air.samples,
            "cloud_mean": cloud_mean,
            "humidity": humidity,
            "blend_weight": blend.weight,
            "blend_target": blend.target,
            "crowd_reports": crowd_count,
            "observed_age_hours": calibration.age_hours,
            "memo_temp": memo.temp if memo else None,
            "source": context.source,
            "timezone": context.timezone,
        }

        self.logger.debug(
            f"Estimate {coords.key(water_type)} {day_key}: "
            + ", ".join(f"{name}={value:+.2f}" for name, value in terms.items())
            + f" -> {final}"
        )

        return EstimateResult(
            final=final,
            breakdown_terms=terms,
            clamps_applied=clamps,
            wind_estimate=wind.to_dict(),
            weather_signals=signals,
            fields_read=reader.fields_read(),
            day_key=day_key,
            model_version=model_version,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _observed_usable(observed: Optional[ObservedReading], water_type: str, when: datetime) -> bool:
        if observed is None:
            return False
        if observed.water_type and observed.water_type.strip().lower() != water_type:
            return False
        return observed.age_hours(when) <= constants.OBSERVED_MAX_AGE_HOURS

    @staticmethod
    def _pressure_slope(reader: PayloadReader, now_hour_index: Optional[int]) -> float:
        """Pressure tendency over the last day (hPa/day)."""
        if now_hour_index is not None:
            hourly = reader.series("forecast.hourly.surface_pressure")
            if hourly:
                window = hourly[max(0, now_hour_index - 24):now_hour_index + 1]
                if len(finite_values(window)) >= 2:
                    return ForcingModel.pressure_slope(window, 1 / 24)
        daily = reader.series("historical.daily.surface_pressure_mean")
        return ForcingModel.pressure_slope(daily[-4:], 1.0)

    def _apply_guardrail(
        self,
        estimate: float,
        context: WaterTempContext,
        profile: WaterBodyProfile,
        day_of_year: int,
        air_temps: List[Any]
    ) -> float:
        """Cap cold-season pond estimates near recent air for configured live sources."""
        if not self.config.cold_season_guardrail or profile.name != "pond":
            return estimate
        if context.source.upper() not in self.config.guardrail_sources:
            return estimate
        if SeasonalModel.cold_season_factor(day_of_year) <= 0:
            return estimate
        recent = finite_values(air_temps)[-constants.SOLAR_CLOUD_WINDOW_DAYS:]
        if not recent:
            return estimate
        return min(estimate, mean(recent) + constants.COLD_SEASON_GUARDRAIL_MARGIN_F)

    def _apply_memo_clamp(
        self,
        estimate: float,
        memo: Optional[MemoEntry],
        day_key: str,
        model_version: str,
        profile: WaterBodyProfile,
        reports: List[CrowdReport],
        coords: Coordinates,
        when: datetime,
        clamps: List[str]
    ) -> float:
        """Limit the change from a same-day memo of the same model version."""
        if memo is None or memo.day_key != day_key or memo.model_version != model_version:
            return estimate

        limit = profile.max_daily_change
        label = "day_continuity"
        trusted = self.calibrator.trusted_report_count(
            reports,
            coords,
            profile.name,
            when,
            constants.RELAXED_CLAMP_RADIUS_MILES,
            constants.RELAXED_CLAMP_DAYS * 24,
        )
        if trusted >= constants.TRUSTED_REPORT_MIN_COUNT:
            limit *= constants.RELAXED_CLAMP_MULTIPLIER
            label = "day_continuity_relaxed"

        change = estimate - memo.temp
        if abs(change) <= limit:
            return estimate
        clamps.append(label)
        return memo.temp + (limit if change > 0 else -limit)
