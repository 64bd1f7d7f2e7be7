"""
Intraday disaggregation module.

Turns the single daily surface estimate into time-of-day values (sunrise,
midday, sunset or any fractional local hour) from the hourly forecast of
that local day.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

import pytz

from ..core import constants
from ..core.date_utils import DateUtils
from ..core.numeric import clamp, mean, round1, to_finite
from ..models import ObservedReading, WaterBodyProfile, WaterTempContext, get_profile
from .calibration import Calibrator
from .depth import DepthProfile

PERIOD_ALIASES = {
    "morning": "morning",
    "sunrise": "morning",
    "midday": "midday",
    "noon": "midday",
    "afternoon": "afternoon",
    "sunset": "afternoon",
}

HOURLY_FIELDS = {
    "air": "temperature_2m",
    "cloud": "cloud_cover",
    "wind": "wind_speed_10m",
    "shortwave": "shortwave_radiation",
}


class HourlyDay:
    """Hourly forcing of one local day, keyed by fractional local hour."""

    def __init__(self, day: date, rows: List[Tuple[float, Dict[str, Optional[float]]]]):
        self.day = day
        self.rows = sorted(rows, key=lambda row: row[0])

    @classmethod
    def from_hourly(cls, hourly: Optional[Dict[str, Any]], timezone: str, day: date) -> "HourlyDay":
        """
        Select the rows of `hourly` that fall on a local day.

        Zoned timestamps are converted into the timezone; zone-naive ones are
        already local wall-clock values.

        Args:
            hourly: forecast.hourly block
            timezone: IANA timezone name
            day: Local day

        Returns:
            HourlyDay (possibly empty)
        """
        rows = []
        times = (hourly or {}).get("time")
        if not isinstance(times, list):
            return cls(day, rows)

        for i, value in enumerate(times):
            parsed = DateUtils.parse_timestamp(value)
            if parsed is None:
                continue
            local = DateUtils.to_local_naive(parsed, timezone)
            if local.date() != day:
                continue
            values = {name: cls._series_value(hourly, field, i) for name, field in HOURLY_FIELDS.items()}
            rows.append((DateUtils.fractional_hour(local), values))
        return cls(day, rows)

    @staticmethod
    def _series_value(hourly: Dict[str, Any], field: str, i: int) -> Optional[float]:
        values = hourly.get(field)
        if not isinstance(values, list) or i >= len(values):
            return None
        return to_finite(values[i])

    def __bool__(self) -> bool:
        return bool(self.rows)

    def points(self, name: str) -> List[Tuple[float, float]]:
        return [(hour, values[name]) for hour, values in self.rows if values[name] is not None]

    def at(self, name: str, hour: float) -> Optional[float]:
        """Linearly interpolated value at a fractional hour, held flat past the ends."""
        points = self.points(name)
        if not points:
            return None
        if hour <= points[0][0]:
            return points[0][1]
        if hour >= points[-1][0]:
            return points[-1][1]
        for (h0, v0), (h1, v1) in zip(points, points[1:]):
            if h0 <= hour <= h1:
                if h1 == h0:
                    return v1
                return v0 + (v1 - v0) * (hour - h0) / (h1 - h0)
        return points[-1][1]

    def day_mean(self, name: str) -> Optional[float]:
        return mean([value for _, value in self.points(name)])

    def day_max(self, name: str) -> Optional[float]:
        values = [value for _, value in self.points(name)]
        return max(values) if values else None

    def day_range(self, name: str) -> float:
        values = [value for _, value in self.points(name)]
        return max(values) - min(values) if values else 0.0

    def since(self, name: str, start: float, hour: float) -> Optional[float]:
        """Mean of samples between `start` and `hour`, or the value at `hour` when none."""
        window = [value for h, value in self.points(name) if start <= h <= hour]
        if window:
            return mean(window)
        return self.at(name, hour)


@dataclass
class SunHours:
    """Local sunrise and sunset as fractional hours."""

    sunrise: float = constants.DEFAULT_SUNRISE_HOUR
    sunset: float = constants.DEFAULT_SUNSET_HOUR

    @property
    def midpoint(self) -> float:
        return (self.sunrise + self.sunset) / 2

    @classmethod
    def from_times(cls, sunrise: Any, sunset: Any, timezone: str) -> "SunHours":
        """Build from ISO sunrise/sunset strings; unusable values fall back to 07:00/17:00."""
        rise = cls._local_hour(sunrise, timezone)
        set_ = cls._local_hour(sunset, timezone)
        if rise is None or set_ is None or set_ <= rise:
            return cls()
        return cls(rise, set_)

    @staticmethod
    def _local_hour(value: Any, timezone: str) -> Optional[float]:
        parsed = DateUtils.parse_timestamp(value)
        if parsed is None:
            return None
        return DateUtils.fractional_hour(DateUtils.to_local_naive(parsed, timezone))


class IntradayModel:
    """
    Time-of-day water temperature model.

    The adjustment on top of the daily value sums a solar phase term, an air
    anomaly term and a shortwave anomaly term. Air and shortwave anomalies use
    the mean since sunrise so that heat gained through the day is retained
    into the late afternoon.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize intraday model.

        Args:
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self.calibrator = Calibrator(self.logger)

    @staticmethod
    def resolve_target_hour(
        period: Optional[str],
        sun: SunHours,
        target_hour: Optional[float] = None
    ) -> float:
        """
        Resolve the local hour a period refers to.

        Args:
            period: 'morning', 'midday' or 'afternoon' (aliases 'sunrise', 'noon', 'sunset')
            sun: Local sunrise/sunset hours
            target_hour: Explicit fractional hour, overrides the period

        Returns:
            Fractional local hour

        Raises:
            ValueError: If neither a known period nor a target hour is given
        """
        explicit = to_finite(target_hour)
        if explicit is not None:
            return clamp(explicit, 0.0, 24.0)

        bucket = PERIOD_ALIASES.get(str(period or "").strip().lower())
        if bucket == "morning":
            return sun.sunrise
        if bucket == "midday":
            return sun.midpoint
        if bucket == "afternoon":
            return sun.sunset
        raise ValueError(f"Unknown period: {period}")

    @staticmethod
    def sun_hours_for_day(forecast_daily: Optional[Dict[str, Any]], day: date, timezone: str) -> SunHours:
        """Find the sunrise/sunset of a local day in forecast.daily."""
        daily = forecast_daily or {}
        times = daily.get("time")
        if not isinstance(times, list):
            return SunHours()
        for i, value in enumerate(times):
            if DateUtils.parse_day_key(value) != day:
                continue
            sunrise = daily.get("sunrise") or []
            sunset = daily.get("sunset") or []
            return SunHours.from_times(
                sunrise[i] if i < len(sunrise) else None,
                sunset[i] if i < len(sunset) else None,
                timezone,
            )
        return SunHours()

    # ===== SECTION 1: DAMPING AND LIMITS =====

    @staticmethod
    def cloud_damping(cloud_pct: float) -> float:
        """Solar damping from cloud cover, 1 (clear) down to 0.4 (overcast)."""
        return 1 - constants.CLOUD_DAMPING_MAX * clamp(cloud_pct, 0.0, 100.0) / 100.0

    @staticmethod
    def wind_damping(wind_mph: float) -> float:
        """Mixing damping from wind, 1 when calm down to 0.5 in strong wind."""
        strength = clamp(
            (wind_mph - constants.WIND_DAMPING_CALM_MPH) / constants.WIND_DAMPING_SPAN_MPH, 0.0, 1.0
        )
        return 1 - constants.WIND_DAMPING_MAX * strength

    @staticmethod
    def is_hot_bright_calm(hours: HourlyDay) -> bool:
        air_max = hours.day_max("air")
        cloud_mean = hours.day_mean("cloud")
        wind_mean = hours.day_mean("wind")
        return (
            air_max is not None
            and air_max >= constants.HOT_AIR_THRESHOLD_F
            and cloud_mean is not None
            and cloud_mean <= constants.BRIGHT_CLOUD_MAX_PCT
            and (wind_mean or 0.0) <= constants.CALM_WIND_MAX_MPH
        )

    @staticmethod
    def is_cold_season(surface_temp: float, month: int) -> bool:
        return (
            surface_temp < constants.INTRADAY_COLD_SEASON_SURFACE_F
            or month in constants.INTRADAY_COLD_SEASON_MONTHS
        )

    def _limit_adjustment(
        self,
        adjustment: float,
        profile: WaterBodyProfile,
        hours: HourlyDay,
        surface_temp: float,
        cloud_pct: float,
        wind_damp: float
    ) -> float:
        water_type = profile.name
        hot_bright_calm = water_type == "pond" and self.is_hot_bright_calm(hours)
        if hot_bright_calm:
            limit = constants.INTRADAY_HOT_BRIGHT_CALM_LIMIT
        else:
            limit = constants.INTRADAY_ADJUSTMENT_LIMIT[water_type]
        adjustment = clamp(adjustment, -limit, limit)

        if not hot_bright_calm and self.is_cold_season(surface_temp, hours.day.month):
            clear_fraction = max(constants.INTRADAY_COLD_SEASON_CLEAR_FLOOR, 1 - cloud_pct / 100.0)
            cap = constants.INTRADAY_COLD_SEASON_WARM_CAP[water_type] * clear_fraction * wind_damp
            adjustment = min(adjustment, cap)
        return adjustment

    # ===== SECTION 2: PERIOD MODEL =====

    def model_at(
        self,
        daily_surface_temp: float,
        profile: WaterBodyProfile,
        hours: HourlyDay,
        hour: float,
        sun: SunHours
    ) -> float:
        """
        Unrounded water temperature at a local hour.

        Args:
            daily_surface_temp: Daily surface estimate (°F)
            profile: Water body profile
            hours: Hourly forcing of the local day
            hour: Fractional local hour
            sun: Local sunrise/sunset hours

        Returns:
            Temperature (°F) within physical bounds
        """
        if not hours:
            return clamp(daily_surface_temp, constants.MIN_WATER_TEMP_F, constants.MAX_WATER_TEMP_F)

        water_type = profile.name
        normal_cloud = constants.NORMAL_CLOUD_BY_MONTH[hours.day.month - 1]
        cloud = hours.at("cloud", hour)
        cloud = normal_cloud if cloud is None else clamp(cloud, 0.0, 100.0)
        wind = max(0.0, hours.at("wind", hour) or constants.DEFAULT_WIND_MPH)
        wind_damp = self.wind_damping(wind)

        # Solar phase over a stretched daylight span so warming peaks late in the day
        span = (sun.sunset - sun.sunrise) * constants.DAYLIGHT_PHASE_STRETCH
        position = clamp((hour - sun.sunrise) / span, 0.0, 1.0)
        solar = (
            hours.day_range("air")
            * constants.INTRADAY_SOLAR_GAIN[water_type]
            * math.sin(math.pi * position)
            * self.cloud_damping(cloud)
            * wind_damp
        )

        air_term = 0.0
        air_mean = hours.day_mean("air")
        air_since = hours.since("air", sun.sunrise, hour)
        if air_mean is not None and air_since is not None:
            air_term = (air_since - air_mean) * constants.INTRADAY_AIR_COUPLING[water_type] * wind_damp

        shortwave_term = 0.0
        shortwave_mean = hours.day_mean("shortwave")
        shortwave_since = hours.since("shortwave", sun.sunrise, hour)
        if shortwave_mean is not None and shortwave_since is not None:
            anomaly = clamp(
                (shortwave_since - shortwave_mean) / constants.SHORTWAVE_ANOMALY_SCALE,
                -constants.SHORTWAVE_ANOMALY_CAP,
                constants.SHORTWAVE_ANOMALY_CAP,
            )
            shortwave_term = anomaly * constants.INTRADAY_SHORTWAVE_COUPLING[water_type] * wind_damp

        adjustment = self._limit_adjustment(
            solar + air_term + shortwave_term, profile, hours, daily_surface_temp, cloud, wind_damp
        )

        # Pond mornings lose heat under overcast or windy skies
        if water_type == "pond" and sun.sunrise <= hour <= sun.sunrise + constants.POND_MORNING_WINDOW_HOURS:
            windy = clamp(
                (wind - constants.WINDY_SIGNAL_START_MPH) / constants.WINDY_SIGNAL_SPAN_MPH, 0.0, 1.0
            )
            cooling = (
                cloud / 100.0 * constants.POND_MORNING_OVERCAST_COOLING_F
                + windy * constants.POND_MORNING_WIND_COOLING_F
            )
            adjustment = min(adjustment, -cooling)

        return clamp(
            daily_surface_temp + adjustment, constants.MIN_WATER_TEMP_F, constants.MAX_WATER_TEMP_F
        )

    def estimate_period(
        self,
        daily_surface_temp: float,
        water_type: str,
        hourly: Optional[Dict[str, Any]],
        timezone: str = constants.DEFAULT_TIMEZONE,
        when: Optional[datetime] = None,
        day_key: Optional[str] = None,
        period: Optional[str] = "midday",
        target_hour: Optional[float] = None,
        sunrise: Any = None,
        sunset: Any = None,
        forecast_daily: Optional[Dict[str, Any]] = None
    ) -> float:
        """
        Estimate water temperature for a time-of-day bucket or hour.

        Args:
            daily_surface_temp: Daily surface estimate (°F)
            water_type: 'pond', 'lake' or 'reservoir'
            hourly: forecast.hourly block (canonical units)
            timezone: IANA timezone of the water body
            when: Instant selecting the local day (naive means UTC)
            day_key: Local day 'YYYY-MM-DD', overrides `when`
            period: 'morning', 'midday' or 'afternoon'
            target_hour: Explicit fractional local hour, overrides `period`
            sunrise: Sunrise ISO time of the day
            sunset: Sunset ISO time of the day
            forecast_daily: forecast.daily block to look sunrise/sunset up in
                            when they are not given

        Returns:
            Temperature (°F) rounded to 0.1; the daily value unchanged when
            the day has no hourly data
        """
        profile = get_profile(water_type)
        daily = to_finite(daily_surface_temp)
        if daily is None:
            raise ValueError(f"Daily surface temperature must be finite, got {daily_surface_temp!r}")

        day = self._resolve_day(hourly, timezone, when, day_key)
        if day is None:
            self.logger.warning("No hourly data to disaggregate, returning daily surface value")
            return round1(clamp(daily, constants.MIN_WATER_TEMP_F, constants.MAX_WATER_TEMP_F))

        hours = HourlyDay.from_hourly(hourly, timezone, day)
        if sunrise is None and sunset is None and forecast_daily is not None:
            sun = self.sun_hours_for_day(forecast_daily, day, timezone)
        else:
            sun = SunHours.from_times(sunrise, sunset, timezone)
        hour = self.resolve_target_hour(period, sun, target_hour)
        return round1(self.model_at(daily, profile, hours, hour, sun))

    @staticmethod
    def _resolve_day(
        hourly: Optional[Dict[str, Any]],
        timezone: str,
        when: Optional[datetime],
        day_key: Optional[str]
    ) -> Optional[date]:
        """Local day from the day key, the instant, or the first hourly entry."""
        day = DateUtils.parse_day_key(day_key)
        if day is not None:
            return day
        if when is not None:
            return DateUtils.instant_to_local_naive(when, timezone).date()
        for value in (hourly or {}).get("time") or []:
            parsed = DateUtils.parse_timestamp(value)
            if parsed is not None:
                return DateUtils.to_local_naive(parsed, timezone).date()
        return None

    # ===== SECTION 3: DAILY VIEW =====

    def build_daily_view(
        self,
        daily_surface_temp: float,
        water_type: str,
        context: WaterTempContext,
        observed: Optional[ObservedReading] = None
    ) -> Dict[str, Any]:
        """
        Build the per-day view shown to users.

        Sunrise, midday and sunset come from the period model alone. The
        "surface now" value additionally carries the recency-weighted offset
        toward a same-type observed reading.

        Args:
            daily_surface_temp: Daily surface estimate (°F)
            water_type: 'pond', 'lake' or 'reservoir'
            context: Normalized weather context
            observed: Latest observed reading for this water body, if any

        Returns:
            Dict with surfaceNow, sunrise, midday, sunset and depthTemps
        """
        profile = get_profile(water_type)
        daily = to_finite(daily_surface_temp)
        if daily is None:
            raise ValueError(f"Daily surface temperature must be finite, got {daily_surface_temp!r}")

        timezone = context.timezone
        forecast = context.payload.get("forecast") or {}
        hourly = forecast.get("hourly")
        forecast_daily = forecast.get("daily")

        now = DateUtils.parse_timestamp(context.now_iso) or datetime.now(pytz.UTC)
        local_now = DateUtils.instant_to_local_naive(now, timezone)
        hours = HourlyDay.from_hourly(hourly, timezone, local_now.date())
        sun = self.sun_hours_for_day(forecast_daily, local_now.date(), timezone)

        periods = {
            name: round1(self.model_at(daily, profile, hours, self.resolve_target_hour(name, sun), sun))
            for name in ("morning", "midday", "afternoon")
        }

        surface_now = self.model_at(daily, profile, hours, DateUtils.fractional_hour(local_now), sun)
        anchor = self._anchor_offset(daily, profile, context, observed, now)
        if anchor:
            self.logger.debug(f"Anchoring surface-now to observed reading: {anchor:+.2f}°F")
        surface_now = round1(clamp(surface_now + anchor, constants.MIN_WATER_TEMP_F, constants.MAX_WATER_TEMP_F))

        return {
            "surfaceNow": surface_now,
            "sunrise": periods["morning"],
            "midday": periods["midday"],
            "sunset": periods["afternoon"],
            "depthTemps": DepthProfile.profile_temps(daily, profile, local_now.date()),
        }

    def _anchor_offset(
        self,
        daily: float,
        profile: WaterBodyProfile,
        context: WaterTempContext,
        observed: Optional[ObservedReading],
        now: datetime
    ) -> float:
        """Offset toward an observed reading, modeled at the reading's own local hour."""
        if observed is None:
            return 0.0
        if observed.water_type and observed.water_type.strip().lower() != profile.name:
            return 0.0

        age = observed.age_hours(now)
        if age < 0 or age > constants.ANCHOR_MAX_AGE_HOURS:
            return 0.0

        timezone = context.timezone
        forecast = context.payload.get("forecast") or {}
        local_obs = DateUtils.instant_to_local_naive(observed.timestamp, timezone)
        hours = HourlyDay.from_hourly(forecast.get("hourly"), timezone, local_obs.date())
        sun = self.sun_hours_for_day(forecast.get("daily"), local_obs.date(), timezone)
        modeled = self.model_at(daily, profile, hours, DateUtils.fractional_hour(local_obs), sun)
        return self.calibrator.anchor_offset(observed.temp_f, modeled, age)
