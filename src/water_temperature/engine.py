"""
Water temperature engine.

Facade exposing the public operations: same-day estimate, explained estimate,
multi-day projection and its per-day breakdown, period estimates, the daily view
and depth estimates.
"""

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

import pytz

from .core import Config, LoggerContext, constants, setup_logger
from .core.date_utils import DateUtils
from .core.numeric import round1
from .models import EstimateResult, ProjectionDayExplanation, WaterTempContext, get_profile
from .processing import DataProcessor
from .algorithms import (
    DepthProfile,
    IntradayModel,
    WaterTempEstimator,
    WaterTempProjector,
)
from .storage import InMemoryStore, KeyValueStore, WaterTempStore

DateLike = Union[datetime, date, str, None]


class WaterTempEngine:
    """Main entry point for water temperature estimation and projection."""

    def __init__(
        self,
        config_file: Optional[str] = None,
        config: Optional[Config] = None,
        store: Union[WaterTempStore, KeyValueStore, None] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize engine.

        Args:
            config_file: Path to configuration file
            config: Ready configuration, wins over `config_file`
            store: Record store or raw key-value store; defaults to an in-memory store
            logger: Logger instance; defaults to the configured package logger
        """
        self.config = config or Config(config_file)
        self.logger = logger or setup_logger(
            log_file=self.config.log_file,
            log_level=self.config.log_level,
        )

        if store is None:
            store = InMemoryStore()
        self.store = store if isinstance(store, WaterTempStore) else WaterTempStore(store, self.logger)

        self.processor = DataProcessor(logger=self.logger)
        self.estimator = WaterTempEstimator(config=self.config, store=self.store, logger=self.logger)
        self.projector = WaterTempProjector(logger=self.logger)
        self.intraday = IntradayModel(logger=self.logger)

    # =========================================================================
    # Context
    # =========================================================================

    def normalize(
        self,
        weather_payload: Any,
        coords: Any = None,
        water_type: Optional[str] = None,
        timezone: Optional[str] = None,
        now_override: Any = None
    ) -> WaterTempContext:
        """
        Normalize a raw weather payload.

        Args:
            weather_payload: Raw payload
            coords: Coordinates of the water body
            water_type: Target water type
            timezone: Timezone override
            now_override: Instant to treat as "now"

        Returns:
            WaterTempContext in canonical units
        """
        return self.processor.normalize(
            weather_payload,
            coords=coords,
            water_type=water_type,
            timezone=timezone,
            now_override=now_override,
        )

    def _prepare(
        self,
        coords: Any,
        water_type: str,
        when: DateLike,
        weather_payload: Any,
        context: Optional[WaterTempContext]
    ):
        coordinates = self.processor.validator.require_coordinates(coords)
        self.processor.validator.require_water_type(water_type)
        if context is None:
            context = self.normalize(
                weather_payload,
                coords=coords,
                water_type=water_type,
                now_override=when,
            )
        else:
            # Callers may reuse one context for several water types
            context = replace(context, coords=coordinates, water_type=water_type)
        return context, self._resolve_instant(
            when if when is not None else context.now_iso, context.timezone
        )

    @staticmethod
    def _resolve_instant(when: DateLike, timezone: str = constants.DEFAULT_TIMEZONE) -> datetime:
        if when is None:
            return datetime.now(pytz.UTC)
        # A bare calendar day means that local day
        day = DateUtils.calendar_date(when)
        if day is not None:
            return DateUtils.local_noon(day, timezone)
        parsed = DateUtils.parse_timestamp(when)
        if parsed is None:
            raise ValueError(f"Invalid date: {when!r}")
        return parsed

    # =========================================================================
    # Same-day estimate
    # =========================================================================

    def estimate(
        self,
        coords: Any,
        water_type: str,
        when: DateLike = None,
        weather_payload: Any = None,
        context: Optional[WaterTempContext] = None
    ) -> float:
        """
        Estimate today's surface water temperature and persist the memo.

        Args:
            coords: {'lat', 'lon'} of the water body
            water_type: 'pond', 'lake' or 'reservoir'
            when: Estimate instant (naive means UTC) or local calendar day; defaults to now
            weather_payload: Raw weather payload
            context: Already-normalized context, skips normalization

        Returns:
            Estimate (°F) rounded to 0.1

        Raises:
            ValueError: If coordinates or water type are invalid
        """
        try:
            context, instant = self._prepare(coords, water_type, when, weather_payload, context)
            location = context.coords.key(water_type)
            with LoggerContext(self.logger, "estimate", water_type=water_type, location=location):
                result = self.estimator.estimate(context, instant, persist=True, trace=False)
            self.logger.info(f"Estimated {result.day_key} {water_type} surface temperature: {result.final}°F")
            return result.final
        except Exception as e:
            self.logger.error(f"Water temperature estimate failed: {e}", exc_info=True)
            raise

    def explain_terms(
        self,
        coords: Any,
        water_type: str,
        when: DateLike = None,
        weather_payload: Any = None,
        context: Optional[WaterTempContext] = None
    ) -> EstimateResult:
        """
        Re-run the estimator without persisting, recording every field read.

        Args:
            coords: {'lat', 'lon'} of the water body
            water_type: 'pond', 'lake' or 'reservoir'
            when: Estimate instant (naive means UTC) or local calendar day; defaults to now
            weather_payload: Raw weather payload
            context: Already-normalized context, skips normalization

        Returns:
            EstimateResult whose `final` matches `estimate` for the same inputs
        """
        context, instant = self._prepare(coords, water_type, when, weather_payload, context)
        location = context.coords.key(water_type)
        with LoggerContext(self.logger, "explain", water_type=water_type, location=location):
            return self.estimator.estimate(context, instant, persist=False, trace=True)

    # =========================================================================
    # Projection
    # =========================================================================

    def project_daily(
        self,
        seed_temp: float,
        forecast: Union[WaterTempContext, Dict[str, Any]],
        water_type: str,
        latitude: float,
        units: Optional[Dict[str, str]] = None,
        historical_daily: Optional[Dict[str, Any]] = None
    ) -> List[float]:
        """
        Project water temperature over the forecast days.

        Args:
            seed_temp: Today's estimate (°F), becomes day 0
            forecast: Normalized context, or a bare daily block
                      ({'time': [...], 'temperature_2m_mean': [...], ...})
            water_type: 'pond', 'lake' or 'reservoir'
            latitude: Latitude (degrees)
            units: Source units of a bare daily block ({'temp': 'C', ...})
            historical_daily: Historical daily block of a bare forecast

        Returns:
            One value (°F) per forecast day, day 0 equal to the seed

        Raises:
            ValueError: If the seed is not finite, the timeline is empty or
                        the water type is unknown
        """
        forecast_daily, historical_daily, anchor_date = self._projection_inputs(forecast, units, historical_daily)

        times = forecast_daily.get("time")
        days = len(times) if isinstance(times, list) else 0
        with LoggerContext(self.logger, "projection", water_type=water_type, days=days):
            return self.projector.project(
                seed_temp,
                forecast_daily,
                water_type,
                latitude,
                anchor_date=anchor_date,
                historical_daily=historical_daily,
            )

    def explain_projection_day(
        self,
        seed_temp: float,
        forecast: Union[WaterTempContext, Dict[str, Any]],
        water_type: str,
        latitude: float,
        day_index: int,
        units: Optional[Dict[str, str]] = None,
        historical_daily: Optional[Dict[str, Any]] = None
    ) -> ProjectionDayExplanation:
        """
        Break one projected day into its terms, recording every field read.

        Takes the same inputs as `project_daily` plus the day to explain; the
        explained value equals `project_daily(...)[day_index]`.
        """
        forecast_daily, historical_daily, anchor_date = self._projection_inputs(forecast, units, historical_daily)
        with LoggerContext(self.logger, "explain_projection", water_type=water_type, day=day_index):
            return self.projector.explain_day(
                seed_temp,
                forecast_daily,
                water_type,
                latitude,
                day_index,
                anchor_date=anchor_date,
                historical_daily=historical_daily,
            )

    def _projection_inputs(
        self,
        forecast: Union[WaterTempContext, Dict[str, Any]],
        units: Optional[Dict[str, str]],
        historical_daily: Optional[Dict[str, Any]]
    ):
        anchor_date = None
        if isinstance(forecast, WaterTempContext):
            forecast_daily = (forecast.payload.get("forecast") or {}).get("daily") or {}
            historical_daily = (forecast.payload.get("historical") or {}).get("daily")
            now = DateUtils.parse_timestamp(forecast.now_iso)
            if now is not None:
                anchor_date = DateUtils.instant_to_local_naive(now, forecast.timezone).date()
        else:
            forecast_daily = self.processor.normalizer.convert_daily(forecast, units)
            if historical_daily is not None:
                historical_daily = self.processor.normalizer.convert_daily(historical_daily, units)
        return forecast_daily, historical_daily, anchor_date

    # =========================================================================
    # Intraday
    # =========================================================================

    def estimate_period(
        self,
        daily_surface_temp: float,
        water_type: str,
        period: Optional[str] = "midday",
        context: Optional[WaterTempContext] = None,
        target_hour: Optional[float] = None,
        hourly: Optional[Dict[str, Any]] = None,
        timezone: Optional[str] = None,
        when: DateLike = None,
        sunrise: Any = None,
        sunset: Any = None
    ) -> float:
        """
        Estimate water temperature at a time of day.

        With a context, the hourly series, timezone, day and sunrise/sunset
        come from it; explicit arguments override them.

        Args:
            daily_surface_temp: Daily surface estimate (°F)
            water_type: 'pond', 'lake' or 'reservoir'
            period: 'morning', 'midday' or 'afternoon'
            context: Normalized context
            target_hour: Explicit fractional local hour
            hourly: forecast.hourly block (canonical units)
            timezone: IANA timezone
            when: Instant selecting the local day
            sunrise: Sunrise ISO time
            sunset: Sunset ISO time

        Returns:
            Temperature (°F) rounded to 0.1
        """
        forecast_daily = None
        if context is not None:
            forecast = context.payload.get("forecast") or {}
            if hourly is None:
                hourly = forecast.get("hourly")
            forecast_daily = forecast.get("daily")
            timezone = timezone or context.timezone
            when = when or context.now_iso
        timezone = self.processor.normalizer.date_utils.resolve_timezone(timezone)

        return self.intraday.estimate_period(
            daily_surface_temp,
            water_type,
            hourly,
            timezone=timezone,
            when=self._resolve_instant(when, timezone) if when is not None else None,
            period=period,
            target_hour=target_hour,
            sunrise=sunrise,
            sunset=sunset,
            forecast_daily=forecast_daily,
        )

    def build_daily_view(
        self,
        daily_surface_temp: float,
        water_type: str,
        context: WaterTempContext
    ) -> Dict[str, Any]:
        """
        Build {surfaceNow, sunrise, midday, sunset, depthTemps} for the context's local day.

        Args:
            daily_surface_temp: Daily surface estimate (°F)
            water_type: 'pond', 'lake' or 'reservoir'
            context: Normalized context

        Returns:
            Daily view dict
        """
        observed = None
        if context.coords is not None:
            observed = self.store.get_observed(context.coords, get_profile(water_type).name)
        return self.intraday.build_daily_view(daily_surface_temp, water_type, context, observed)

    # =========================================================================
    # Depth
    # =========================================================================

    def estimate_at_depth(
        self,
        surface_temp: float,
        water_type: str,
        depth_ft: float,
        when: DateLike = None
    ) -> float:
        """
        Estimate temperature below the surface.

        Args:
            surface_temp: Surface temperature (°F)
            water_type: 'pond', 'lake' or 'reservoir'
            depth_ft: Depth (ft)
            when: Date selecting the stratification regime; defaults to today

        Returns:
            Temperature at depth (°F) rounded to 0.1, within physical bounds

        Raises:
            ValueError: If the surface temperature is not finite or the
                        water type is unknown
        """
        surface = self.processor.validator.require_surface_temp(surface_temp)
        profile = get_profile(water_type)
        day = self._resolve_instant(when).date()
        return round1(DepthProfile.temperature_at_depth(surface, profile, depth_ft, day))
