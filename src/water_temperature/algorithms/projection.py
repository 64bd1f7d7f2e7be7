"""
Multi-day projection module.

Marches today's estimate forward one forecast day at a time. Each day depends
only on the previous projected day and that day's forcing.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core import constants
from ..core.date_utils import DateUtils
from ..core.numeric import clamp, first_finite, round1, to_finite
from ..models import ProjectionDayExplanation, WaterBodyProfile
from ..processing.validator import PayloadValidator
from ..trace import PayloadReader
from .forcing import ForcingModel
from .seasonal import SeasonalModel


@dataclass
class _Step:
    """One projected day: unrounded value, additive terms and clamp labels."""

    value: float
    terms: Dict[str, float]
    clamps: List[str]
    synoptic: float


class WaterTempProjector:
    """Day-by-day water temperature projection."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize projector.

        Args:
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self.validator = PayloadValidator(self.logger)

    def project(
        self,
        seed_temp: float,
        forecast_daily: Dict[str, Any],
        water_type: str,
        latitude: float,
        anchor_date: Optional[date] = None,
        historical_daily: Optional[Dict[str, Any]] = None
    ) -> List[float]:
        """
        Project water temperature over the forecast days.

        Args:
            seed_temp: Today's estimate (°F), becomes day 0
            forecast_daily: forecast.daily block (time-aligned series)
            water_type: 'pond', 'lake' or 'reservoir'
            latitude: Latitude (degrees)
            anchor_date: Date of day 0 when the daily timeline lacks parseable dates
            historical_daily: historical.daily block, used for the cloud-cover tail

        Returns:
            One rounded value per forecast day

        Raises:
            ValueError: If the seed is not finite, the timeline is empty or
                        the water type is unknown
        """
        reader = self._reader(forecast_daily, historical_daily)
        seed, profile, _, steps = self._march(seed_temp, reader, water_type, latitude, anchor_date)

        projected = [round1(seed)] + [round1(step.value) for step in steps]
        self.logger.debug(f"Projected {profile.name} from {round1(seed)}°F: {projected}")
        return projected

    def explain_day(
        self,
        seed_temp: float,
        forecast_daily: Dict[str, Any],
        water_type: str,
        latitude: float,
        day_index: int,
        anchor_date: Optional[date] = None,
        historical_daily: Optional[Dict[str, Any]] = None
    ) -> ProjectionDayExplanation:
        """
        Decompose one projected day into its terms.

        The previous value plus the breakdown terms equals the day's unrounded
        value; `value` equals `project(...)[day_index]`.

        Args:
            seed_temp: Today's estimate (°F), becomes day 0
            forecast_daily: forecast.daily block
            water_type: 'pond', 'lake' or 'reservoir'
            latitude: Latitude (degrees)
            day_index: Forecast day to explain (0 is the seed)
            anchor_date: Date of day 0 when the daily timeline lacks parseable dates
            historical_daily: historical.daily block

        Returns:
            ProjectionDayExplanation with the payload fields read

        Raises:
            ValueError: On the same inputs `project` rejects, or if the day
                        index is outside the timeline
        """
        reader = self._reader(forecast_daily, historical_daily, set())
        seed, _, days, steps = self._march(
            seed_temp, reader, water_type, latitude, anchor_date, through=day_index
        )
        if not 0 <= day_index < len(days):
            raise ValueError(f"Day index {day_index} is outside the {len(days)}-day timeline")

        day = days[day_index].isoformat()
        if day_index == 0:
            clamps = [] if seed == to_finite(seed_temp) else ["physical_bounds"]
            return ProjectionDayExplanation(
                day_index=0,
                day=day,
                value=round1(seed),
                previous=None,
                breakdown_terms={"seed": round1(seed)},
                clamps_applied=clamps,
                fields_read=reader.fields_read(),
            )

        step = steps[day_index - 1]
        previous = steps[day_index - 2].value if day_index > 1 else seed
        return ProjectionDayExplanation(
            day_index=day_index,
            day=day,
            value=round1(step.value),
            previous=round(previous, 3),
            breakdown_terms={name: round(value, 3) for name, value in step.terms.items()},
            clamps_applied=list(step.clamps),
            synoptic_strength=round(step.synoptic, 3),
            fields_read=reader.fields_read(),
        )

    @staticmethod
    def _reader(
        forecast_daily: Dict[str, Any],
        historical_daily: Optional[Dict[str, Any]],
        visited: Optional[set] = None
    ) -> PayloadReader:
        payload = {
            "forecast": {"daily": forecast_daily if isinstance(forecast_daily, dict) else {}},
            "historical": {"daily": historical_daily if isinstance(historical_daily, dict) else {}},
        }
        return PayloadReader(payload, visited)

    def _march(
        self,
        seed_temp: float,
        reader: PayloadReader,
        water_type: str,
        latitude: float,
        anchor_date: Optional[date],
        through: Optional[int] = None
    ) -> Tuple[float, WaterBodyProfile, List[date], List[_Step]]:
        """Validate inputs and advance day by day, optionally stopping at a day index."""
        seed = clamp(
            self.validator.require_seed(seed_temp), constants.MIN_WATER_TEMP_F, constants.MAX_WATER_TEMP_F
        )
        self.validator.require_daily_timeline(reader.get("forecast.daily"))
        profile = self.validator.require_water_type(water_type)

        days = self._day_dates(reader.strings("forecast.daily.time"), anchor_date)
        series = _DailySeries(reader)
        cloud_tail = reader.finite_series("historical.daily.cloud_cover_mean")[
            -constants.PROJECTION_CLOUD_TAIL_DAYS:
        ]

        last = len(days) - 1 if through is None else min(through, len(days) - 1)
        steps: List[_Step] = []
        prev = seed
        air_prev = series.air(0)
        for i in range(1, last + 1):
            air = series.air(i)
            if air is None:
                air = air_prev
            step = self._step(i, prev, air, air_prev, series, cloud_tail, days, profile, latitude)
            steps.append(step)
            prev = step.value
            air_prev = air
        return seed, profile, days, steps

    def _step(
        self,
        i: int,
        prev: float,
        air: Optional[float],
        air_prev: Optional[float],
        series: "_DailySeries",
        cloud_tail: List[float],
        days: List[date],
        profile: WaterBodyProfile,
        latitude: float
    ) -> _Step:
        """Advance one day from the previous (unrounded) projected value."""
        day_of_year = DateUtils.day_of_year(days[i])
        prev_day_of_year = DateUtils.day_of_year(days[i - 1])
        terms: Dict[str, float] = {}
        clamps: List[str] = []

        # Air coupling
        terms["air_coupling"] = 0.0
        if air is not None:
            terms["air_coupling"] = (air - prev) * (1 - math.exp(-1 / profile.thermal_lag_days))

        # Solar: change in deviation as the forecast day enters the cloud window
        clouds_today = cloud_tail + series.clouds_through(i)
        clouds_yesterday = cloud_tail + series.clouds_through(i - 1)
        terms["solar"] = (
            ForcingModel.solar_deviation(latitude, day_of_year, clouds_today, profile)
            - ForcingModel.solar_deviation(latitude, prev_day_of_year, clouds_yesterday, profile)
        )

        # Wind mixing with gust stress
        wind_mean, wind_max = series.wind(i)
        wind = wind_mean * profile.wind_reduction_factor + constants.PROJECTION_GUST_STRESS * max(
            0.0, wind_max - wind_mean
        )
        terms["wind"] = ForcingModel.wind_mixing_effect(wind, profile, prev, air) * constants.PROJECTION_WIND_SCALE

        # Synoptic event strength
        jump = (air - air_prev) if air is not None and air_prev is not None else 0.0
        synoptic = self.synoptic_strength(jump, wind_mean, series.precip_expectation(i))

        # Smoothed trend
        limit = constants.PROJECTION_TREND_LIMIT.get(profile.name, constants.PROJECTION_TREND_LIMIT["lake"])
        terms["trend"] = clamp(jump, -limit, limit) * constants.PROJECTION_TREND_GAIN * (1 + synoptic)

        terms["evaporation"] = (
            ForcingModel.evaporative_cooling(series.humidity(i), wind, profile) * constants.PROJECTION_EVAP_SCALE
        )

        next_temp = prev + sum(terms.values())

        # Long-horizon reversion toward the seasonal baseline
        terms["reversion"] = 0.0
        if i > constants.PROJECTION_REVERSION_START_DAY:
            reversion = min(
                constants.PROJECTION_REVERSION_MAX,
                constants.PROJECTION_REVERSION_STEP * (i - constants.PROJECTION_REVERSION_START_DAY),
            ) * (1 - synoptic)
            baseline = SeasonalModel.seasonal_base(latitude, day_of_year, profile)
            terms["reversion"] = reversion * (baseline - next_temp)
            next_temp += terms["reversion"]

        # Daily delta envelope
        raw_delta = next_temp - prev
        envelope = profile.max_daily_change * (1 + synoptic)
        delta = clamp(raw_delta, -envelope, envelope)
        if delta != raw_delta:
            clamps.append("daily_envelope")

        if profile.name == "reservoir" and air is not None:
            low, high = self.reservoir_delta_range(air - prev, profile)
            banded = clamp(delta, low, high)
            if banded != delta:
                clamps.append("reservoir_delta")
            delta = banded

        value = clamp(prev + delta, constants.MIN_WATER_TEMP_F, constants.MAX_WATER_TEMP_F)
        if value != prev + delta:
            clamps.append("physical_bounds")
        terms["limits"] = value - (prev + raw_delta)
        return _Step(value, terms, clamps, synoptic)

    @staticmethod
    def synoptic_strength(air_jump: float, wind_mph: float, precip_expectation: float) -> float:
        """
        Strength of a frontal passage in [0, 1].

        Args:
            air_jump: Day-over-day air temperature change (°F)
            wind_mph: Daily mean wind (mph)
            precip_expectation: Precipitation weighted by its probability (inch)

        Returns:
            Weighted combination of air jump, wind and precipitation signals
        """
        w_air, w_wind, w_precip = constants.SYNOPTIC_WEIGHTS
        return clamp(
            w_air * min(1.0, abs(air_jump) / constants.SYNOPTIC_AIR_JUMP_SPAN_F)
            + w_wind * clamp(
                (wind_mph - constants.SYNOPTIC_WIND_START_MPH) / constants.SYNOPTIC_WIND_SPAN_MPH, 0.0, 1.0
            )
            + w_precip * clamp(precip_expectation / constants.SYNOPTIC_PRECIP_SPAN_IN, 0.0, 1.0),
            0.0,
            1.0,
        )

    @staticmethod
    def reservoir_delta_range(gap: float, profile: WaterBodyProfile) -> Sequence[float]:
        """
        Allowed daily change for a reservoir given the air-water gap.

        During a sustained warm-up the water may only cool by a small reversal
        allowance, and it may warm by at most the gap spread over the thermal
        lag (and vice versa for cool-downs).

        Returns:
            (lowest delta, highest delta) in °F
        """
        allowance = constants.RESERVOIR_REVERSAL_ALLOWANCE_F
        response = max(
            constants.RESERVOIR_MIN_RESPONSE_F,
            abs(gap) / profile.thermal_lag_days * constants.RESERVOIR_RESPONSE_GAIN,
        )
        if gap > 0:
            return -allowance, response
        if gap < 0:
            return -response, allowance
        return -allowance, allowance

    @staticmethod
    def _day_dates(times: List[Optional[str]], anchor_date: Optional[date]) -> List[date]:
        """Dates of each forecast day, filling unparseable entries by counting on."""
        parsed = [DateUtils.parse_day_key(value) for value in times]
        start = parsed[0] or anchor_date or date.today()
        days = []
        for i, value in enumerate(parsed):
            if value is not None:
                days.append(value)
            elif days:
                days.append(days[-1] + timedelta(days=1))
            else:
                days.append(start + timedelta(days=i))
        return days


class _DailySeries:
    """Index-guarded access to forecast.daily series."""

    def __init__(self, reader: PayloadReader):
        self.reader = reader
        self._cache: Dict[str, List[Optional[float]]] = {}

    def _series(self, field: str) -> List[Optional[float]]:
        if field not in self._cache:
            self._cache[field] = self.reader.series(f"forecast.daily.{field}")
        return self._cache[field]

    def _value(self, field: str, i: int) -> Optional[float]:
        values = self._series(field)
        return values[i] if i < len(values) else None

    def air(self, i: int) -> Optional[float]:
        mean_temp = self._value("temperature_2m_mean", i)
        if mean_temp is not None:
            return mean_temp
        low = self._value("temperature_2m_min", i)
        high = self._value("temperature_2m_max", i)
        if low is not None and high is not None:
            return (low + high) / 2
        return first_finite(high, low)

    def clouds_through(self, i: int) -> List[float]:
        return [v for v in self._series("cloud_cover_mean")[:i + 1] if v is not None]

    def wind(self, i: int):
        """(mean, max) wind in mph; missing values degrade to calm."""
        mean_wind = self._value("wind_speed_10m_mean", i)
        max_wind = self._value("wind_speed_10m_max", i)
        if mean_wind is None:
            mean_wind = max_wind * constants.GUST_TO_MEAN_RATIO if max_wind is not None else constants.DEFAULT_WIND_MPH
        if max_wind is None:
            max_wind = mean_wind
        return max(0.0, mean_wind), max(0.0, max_wind)

    def humidity(self, i: int) -> float:
        return first_finite(
            self._value("relative_humidity_2m_mean", i),
            constants.DEFAULT_HUMIDITY_PCT,
        )

    def precip_expectation(self, i: int) -> float:
        precip = self._value("precipitation_sum", i)
        if precip is None or precip <= 0:
            return 0.0
        probability = self._value("precipitation_probability_max", i)
        probability = 1.0 if probability is None else clamp(probability / 100.0, 0.0, 1.0)
        return precip * probability
