"""
Weather payload normalization.

Turns an arbitrary weather payload (mixed units, zone-naive or zoned
timestamps, flat or nested layout) into the canonical payload the physics
modules read, plus the anchor metadata describing which hourly slot is "now".
"""

import copy
import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional
import pytz

from ..core import constants
from ..core.date_utils import DateUtils
from ..models import Coordinates, WaterTempContext
from .converter import UnitConverter


# Field families converted per quantity kind
TEMPERATURE_FIELDS = (
    "temperature_2m",
    "temperature_2m_mean",
    "temperature_2m_min",
    "temperature_2m_max",
    "apparent_temperature",
    "apparent_temperature_max",
    "apparent_temperature_min",
    "dew_point_2m",
)
WIND_FIELDS = (
    "wind_speed_10m",
    "wind_speed_10m_mean",
    "wind_speed_10m_max",
    "wind_gusts_10m",
    "wind_gusts_10m_max",
)
PRECIPITATION_FIELDS = (
    "precipitation",
    "precipitation_sum",
    "rain",
    "rain_sum",
)
PRESSURE_FIELDS = (
    "surface_pressure",
    "pressure_msl",
    "surface_pressure_mean",
    "pressure_msl_mean",
)

FIELD_KINDS: Dict[str, str] = {}
FIELD_KINDS.update({name: "temp" for name in TEMPERATURE_FIELDS})
FIELD_KINDS.update({name: "wind" for name in WIND_FIELDS})
FIELD_KINDS.update({name: "precip" for name in PRECIPITATION_FIELDS})
FIELD_KINDS.update({name: "pressure" for name in PRESSURE_FIELDS})

# Unit strings written back into per-field hint blocks
CANONICAL_HINTS = {
    "temp": "°F",
    "wind": "mph",
    "precip": "inch",
    "pressure": "hPa",
}

# meta.units key per quantity kind
META_UNIT_KEYS = {
    "temp": "temp",
    "wind": "wind",
    "precip": "precip",
    "pressure": "pressure",
}

_DAY_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})")


class ContextNormalizer:
    """Build a canonical `WaterTempContext` from a raw weather payload."""

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        converter: Optional[UnitConverter] = None,
        date_utils: Optional[DateUtils] = None
    ):
        """
        Initialize normalizer.

        Args:
            logger: Logger instance
            converter: Unit converter (created if not given)
            date_utils: Date utilities (created if not given)
        """
        self.logger = logger or logging.getLogger(__name__)
        self.converter = converter or UnitConverter(self.logger)
        self.date_utils = date_utils or DateUtils(self.logger)
        self._fingerprint_logged = False

    def normalize(
        self,
        weather_payload: Any,
        coords: Any = None,
        water_type: Optional[str] = None,
        timezone: Optional[str] = None,
        now_override: Any = None
    ) -> WaterTempContext:
        """
        Normalize a weather payload.

        Args:
            weather_payload: Raw payload ({historical, forecast, meta} or a flat
                             forecast-style dict)
            coords: Coordinates of the water body, if known
            water_type: Target water type, if known
            timezone: Timezone override (wins over the payload's own timezone)
            now_override: Instant to treat as "now" (wins over meta.nowIso)

        Returns:
            WaterTempContext holding the canonical payload and anchor metadata
        """
        payload = weather_payload if isinstance(weather_payload, dict) else {}
        meta = payload.get("meta") if isinstance(payload.get("meta"), dict) else {}

        if isinstance(payload.get("forecast"), dict):
            forecast = copy.deepcopy(payload["forecast"])
        elif any(key in payload for key in ("hourly", "current")):
            forecast = copy.deepcopy({k: v for k, v in payload.items() if k not in ("historical", "meta")})
        else:
            forecast = {}

        historical = payload.get("historical") if isinstance(payload.get("historical"), dict) else {}
        historical_daily = historical.get("daily")
        if not isinstance(historical_daily, dict):
            historical_daily = payload.get("daily")
        historical_daily = copy.deepcopy(historical_daily) if isinstance(historical_daily, dict) else {}

        hourly = forecast.get("hourly") if isinstance(forecast.get("hourly"), dict) else {}
        current = forecast.get("current") if isinstance(forecast.get("current"), dict) else {}
        daily = forecast.get("daily") if isinstance(forecast.get("daily"), dict) else {}

        tz_name = self.date_utils.resolve_timezone(
            timezone or forecast.get("timezone") or meta.get("timezone")
        )

        # Units
        units = self._resolve_input_units(meta, forecast)
        for block in (historical_daily, hourly, daily):
            self._convert_block(block, units)
        self._convert_current(current, units)
        for units_key in ("hourly_units", "daily_units", "current_units"):
            if isinstance(forecast.get(units_key), dict):
                forecast[units_key] = self._canonical_unit_hints(forecast[units_key])

        # Timeline
        if isinstance(hourly.get("time"), list):
            hourly["time"] = self._normalize_hourly_times(hourly["time"])
        if isinstance(daily.get("time"), list):
            daily["time"] = self._normalize_daily_times(daily["time"])
        if isinstance(historical_daily.get("time"), list):
            historical_daily["time"] = self._normalize_daily_times(historical_daily["time"])

        now = self._resolve_now(now_override, meta, tz_name)
        now_iso = DateUtils.to_iso_z(now)
        now_hour_index = self.closest_hour_index(hourly.get("time") or [], now, tz_name)
        if now_hour_index is not None:
            hourly_now_time = hourly["time"][now_hour_index]
        else:
            hourly_now_time = now_iso
        anchor_date_iso = hourly_now_time

        forecast["hourly"] = hourly
        forecast["current"] = current
        forecast["daily"] = daily
        forecast["timezone"] = tz_name

        canonical_units = {
            "temp": constants.CANONICAL_UNITS["temp"],
            "wind": constants.CANONICAL_UNITS["wind"],
            "precip": constants.CANONICAL_UNITS["precip"],
            "pressure": constants.CANONICAL_UNITS["pressure"],
        }
        normalized_meta = dict(meta)
        normalized_meta.update({
            "timezone": tz_name,
            "source": meta.get("source") or constants.DEFAULT_SOURCE,
            "nowIso": now_iso,
            "nowHourIndex": now_hour_index,
            "anchorDateISOZ": anchor_date_iso,
            "hourlyNowTimeISOZ": hourly_now_time,
            "units": canonical_units,
        })

        normalized_payload = {
            "historical": {"daily": historical_daily},
            "forecast": forecast,
            "meta": normalized_meta,
        }

        context = WaterTempContext(
            coords=Coordinates.from_value(coords),
            water_type=water_type,
            timezone=tz_name,
            anchor_date_iso=anchor_date_iso,
            now_hour_index=now_hour_index,
            hourly_now_time_iso=hourly_now_time,
            now_iso=now_iso,
            units=dict(canonical_units),
            payload=normalized_payload,
        )

        if not self._fingerprint_logged:
            self._fingerprint_logged = True
            self.logger.debug(f"Payload fingerprint: {self.fingerprint(context)}")

        return context

    # =========================================================================
    # Anchor resolution
    # =========================================================================

    def closest_hour_index(self, hourly_times: List[Any], now: datetime, tz_name: str) -> Optional[int]:
        """
        Find the hourly slot closest to `now`.

        Zone-naive entries are local wall-clock values and are compared with the
        local wall-clock time of `now`; zoned entries are compared as instants.
        Ties resolve to the first index.

        Args:
            hourly_times: Hourly time strings
            now: The current instant (naive means UTC)
            tz_name: Payload timezone

        Returns:
            Index of the closest slot, or None if no entry parses
        """
        now_utc = DateUtils.to_utc(now)
        now_local = DateUtils.instant_to_local_naive(now, tz_name)

        closest_index = None
        closest_delta = None
        for index, value in enumerate(hourly_times):
            parsed = DateUtils.parse_timestamp(value)
            if parsed is None:
                continue
            if parsed.tzinfo is None:
                delta = abs((parsed - now_local).total_seconds())
            else:
                delta = abs((DateUtils.to_utc(parsed) - now_utc).total_seconds())
            if closest_delta is None or delta < closest_delta:
                closest_delta = delta
                closest_index = index
        return closest_index

    def _resolve_now(self, now_override: Any, meta: Dict[str, Any], tz_name: str) -> datetime:
        for candidate in (now_override, meta.get("nowIso")):
            if candidate is None:
                continue
            day = DateUtils.calendar_date(candidate)
            if day is not None:
                return DateUtils.local_noon(day, tz_name)
            parsed = DateUtils.parse_timestamp(candidate)
            if parsed is not None:
                return DateUtils.to_utc(parsed)
            self.logger.warning(f"Ignoring unparseable 'now' value: {candidate!r}")
        return datetime.now(pytz.UTC)

    @staticmethod
    def _normalize_hourly_times(values: List[Any]) -> List[Any]:
        """Trim hourly strings; zoned entries are rewritten as UTC 'Z' strings."""
        normalized = []
        for value in values:
            if not isinstance(value, str):
                normalized.append(value)
                continue
            text = value.strip()
            if DateUtils.has_zone_suffix(text):
                parsed = DateUtils.parse_timestamp(text)
                normalized.append(DateUtils.to_iso_z(parsed) if parsed is not None else text)
            else:
                normalized.append(text)
        return normalized

    @staticmethod
    def _normalize_daily_times(values: List[Any]) -> List[Optional[str]]:
        """Truncate daily entries to their 'YYYY-MM-DD' prefix (None if absent)."""
        normalized = []
        for value in values:
            match = _DAY_PREFIX.match(value.strip()) if isinstance(value, str) else None
            normalized.append(match.group(1) if match else None)
        return normalized

    # =========================================================================
    # Units
    # =========================================================================

    def _resolve_input_units(self, meta: Dict[str, Any], forecast: Dict[str, Any]) -> Dict[str, Dict[str, Optional[str]]]:
        """
        Resolve the source unit of every convertible field.

        meta.units wins; otherwise per-field hints from hourly_units,
        current_units and daily_units are used, falling back to the first
        hint found for the same quantity kind.

        Returns:
            {"default": {kind: unit}, "fields": {field: unit}}
        """
        meta_units = meta.get("units") if isinstance(meta.get("units"), dict) else {}
        hint_blocks = [
            forecast.get(key) for key in ("hourly_units", "current_units", "daily_units")
            if isinstance(forecast.get(key), dict)
        ]

        field_units: Dict[str, Optional[str]] = {}
        kind_defaults: Dict[str, Optional[str]] = {}
        for kind in ("temp", "wind", "precip", "pressure"):
            meta_hint = meta_units.get(META_UNIT_KEYS[kind])
            if meta_hint:
                kind_defaults[kind] = self.converter.interpret(kind, meta_hint)
                if kind_defaults[kind] is None:
                    self.logger.warning(f"Unrecognized {kind} unit hint '{meta_hint}'")
                continue
            kind_defaults[kind] = None
            for block in hint_blocks:
                for field_name, hint in block.items():
                    if FIELD_KINDS.get(field_name) != kind:
                        continue
                    unit = self.converter.interpret(kind, hint)
                    field_units.setdefault(field_name, unit)
                    if kind_defaults[kind] is None:
                        kind_defaults[kind] = unit

        return {"default": kind_defaults, "fields": field_units, "meta": bool(meta_units)}

    def _unit_for(self, field_name: str, units: Dict[str, Any]) -> Optional[str]:
        kind = FIELD_KINDS[field_name]
        if units["meta"] and units["default"].get(kind):
            return units["default"][kind]
        return units["fields"].get(field_name) or units["default"].get(kind)

    def _convert_block(self, block: Dict[str, Any], units: Dict[str, Any]) -> None:
        for field_name, values in list(block.items()):
            if field_name not in FIELD_KINDS or not isinstance(values, list):
                continue
            block[field_name] = self.converter.convert_series(
                FIELD_KINDS[field_name], self._unit_for(field_name, units), values
            )

    def _convert_current(self, current: Dict[str, Any], units: Dict[str, Any]) -> None:
        for field_name, value in list(current.items()):
            if field_name not in FIELD_KINDS:
                continue
            current[field_name] = self.converter.convert_scalar(
                FIELD_KINDS[field_name], self._unit_for(field_name, units), value
            )

    def convert_daily(self, daily: Any, units: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Convert a bare daily block to canonical units.

        Used when a forecast series is handed over without its payload.

        Args:
            daily: Daily block (time-aligned series)
            units: Source units by kind, e.g. {'temp': 'C', 'wind': 'km/h', 'precip': 'mm'}

        Returns:
            Converted copy of the block
        """
        converted = copy.deepcopy(daily) if isinstance(daily, dict) else {}
        self._convert_block(converted, self._resolve_input_units({"units": units or {}}, {}))
        return converted

    @staticmethod
    def _canonical_unit_hints(hints: Dict[str, Any]) -> Dict[str, Any]:
        """Rewrite per-field unit hints to the canonical units so a second pass is a no-op."""
        rewritten = dict(hints)
        for field_name in hints:
            kind = FIELD_KINDS.get(field_name)
            if kind:
                rewritten[field_name] = CANONICAL_HINTS[kind]
        return rewritten

    # =========================================================================
    # Debug fingerprint
    # =========================================================================

    @staticmethod
    def fingerprint(context: WaterTempContext) -> Dict[str, Any]:
        """
        Summarize the anchor of a normalized context.

        Used to compare a live payload against a fixture when two estimates
        disagree.

        Args:
            context: Normalized context

        Returns:
            Dictionary with anchor, index, hourly-now values and last historical values
        """
        forecast = context.payload.get("forecast", {})
        hourly = forecast.get("hourly", {})
        historical = context.payload.get("historical", {}).get("daily", {})
        index = context.now_hour_index

        def at_index(series: Any) -> Any:
            if index is None or not isinstance(series, list) or index >= len(series):
                return None
            return series[index]

        def last(series: Any) -> Any:
            return series[-1] if isinstance(series, list) and series else None

        return {
            "anchorDateISOZ": context.anchor_date_iso,
            "nowHourIndex": index,
            "hourlyNowTimeISOZ": context.hourly_now_time_iso,
            "hourlyTempNow": at_index(hourly.get("temperature_2m")),
            "currentTemp": forecast.get("current", {}).get("temperature_2m"),
            "lastHistoricalAirMean": last(historical.get("temperature_2m_mean")),
            "lastHistoricalCloudMean": last(historical.get("cloud_cover_mean")),
            "timezone": context.timezone,
            "source": context.source,
        }

