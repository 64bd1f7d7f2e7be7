"""
Unit conversion module.

Converts weather values into the canonical engine units (°F, mph, inch, hPa)
and interprets the loose unit hint strings weather providers attach to payloads.
"""

import logging
from typing import Any, Iterable, Optional

from ..core import constants
from ..core.numeric import to_finite


class UnitConverter:
    """Convert between different meteorological units."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize unit converter.

        Args:
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger(__name__)

    # =========================================================================
    # Hint interpretation
    # =========================================================================

    @staticmethod
    def temperature_unit(hint: Any) -> Optional[str]:
        """
        Interpret a temperature unit hint.

        Returns:
            'C', 'F', 'K' or None if the hint is not recognized
        """
        text = str(hint or "").strip().lower().replace("°", "").replace("deg", "")
        if not text:
            return None
        if text.startswith("c"):
            return "C"
        if text.startswith("f"):
            return "F"
        if text.startswith("k"):
            return "K"
        return None

    @staticmethod
    def wind_unit(hint: Any) -> Optional[str]:
        """
        Interpret a wind speed unit hint.

        Returns:
            'mph', 'km/h', 'kn', 'm/s' or None if the hint is not recognized
        """
        text = str(hint or "").strip().lower()
        if not text:
            return None
        if "mph" in text or "mp/h" in text or "mi/h" in text or "mile" in text:
            return "mph"
        if "km" in text or "kph" in text:
            return "km/h"
        if "kn" in text or text in ("kt", "kts"):
            return "kn"
        if "m/s" in text or "ms" in text:
            return "m/s"
        return None

    @staticmethod
    def precipitation_unit(hint: Any) -> Optional[str]:
        """
        Interpret a precipitation unit hint.

        Returns:
            'mm', 'cm', 'in' or None if the hint is not recognized
        """
        text = str(hint or "").strip().lower()
        if not text:
            return None
        if "mm" in text:
            return "mm"
        if "cm" in text:
            return "cm"
        if text.startswith("in") or text == '"':
            return "in"
        return None

    @staticmethod
    def pressure_unit(hint: Any) -> Optional[str]:
        """
        Interpret a pressure unit hint.

        Returns:
            'hPa', 'kPa', 'inHg', 'Pa' or None if the hint is not recognized
        """
        text = str(hint or "").strip().lower()
        if not text:
            return None
        if "hpa" in text or "mb" in text:
            return "hPa"
        if "kpa" in text:
            return "kPa"
        if "inhg" in text or "in" == text:
            return "inHg"
        if text == "pa":
            return "Pa"
        return None

    # =========================================================================
    # Scalar conversions
    # =========================================================================

    def convert_temperature(self, value: float, from_unit: str, to_unit: str = "F") -> float:
        """
        Convert temperature between units.

        Args:
            value: Temperature value
            from_unit: Source unit (C, F, K)
            to_unit: Target unit

        Returns:
            Converted temperature value
        """
        if from_unit == to_unit:
            return value

        # Convert to Celsius first
        if from_unit == "F":
            celsius = (value - 32) * 5 / 9
        elif from_unit == "K":
            celsius = value - 273.15
        else:
            celsius = value

        # Convert from Celsius to target
        if to_unit == "F":
            return celsius * 9 / 5 + 32
        elif to_unit == "K":
            return celsius + 273.15
        else:
            return celsius

    def convert_wind_speed(self, value: float, from_unit: str, to_unit: str = "mph") -> float:
        """
        Convert wind speed between units.

        Args:
            value: Wind speed value
            from_unit: Source unit (km/h, m/s, mph, kn)
            to_unit: Target unit

        Returns:
            Converted wind speed value
        """
        if from_unit == to_unit:
            return value

        # Convert to m/s first
        if from_unit == "km/h":
            ms = value / 3.6
        elif from_unit == "mph":
            ms = value * 0.44704
        elif from_unit == "kn":
            ms = value * 0.514444
        else:
            ms = value  # Assume m/s

        # Convert from m/s to target
        if to_unit == "km/h":
            return ms * 3.6
        elif to_unit == "mph":
            return ms / 0.44704
        elif to_unit == "kn":
            return ms / 0.514444
        else:
            return ms

    def convert_precipitation(self, value: float, from_unit: str, to_unit: str = "in") -> float:
        """
        Convert precipitation depth between units.

        Args:
            value: Precipitation depth
            from_unit: Source unit (mm, cm, in)
            to_unit: Target unit

        Returns:
            Converted precipitation depth
        """
        if from_unit == to_unit:
            return value

        if from_unit == "in":
            mm = value * 25.4
        elif from_unit == "cm":
            mm = value * 10
        else:
            mm = value

        if to_unit == "in":
            return mm / 25.4
        elif to_unit == "cm":
            return mm / 10
        else:
            return mm

    def convert_pressure(self, value: float, from_unit: str, to_unit: str = "hPa") -> float:
        """
        Convert air pressure between units.

        Args:
            value: Pressure value
            from_unit: Source unit (hPa, kPa, Pa, inHg)
            to_unit: Target unit

        Returns:
            Converted pressure value
        """
        if from_unit == to_unit:
            return value

        # Convert to hPa first
        if from_unit == "kPa":
            hpa = value * 10
        elif from_unit == "Pa":
            hpa = value / 100
        elif from_unit == "inHg":
            hpa = value * 33.8639
        else:
            hpa = value

        if to_unit == "kPa":
            return hpa / 10
        elif to_unit == "Pa":
            return hpa * 100
        elif to_unit == "inHg":
            return hpa / 33.8639
        else:
            return hpa

    # =========================================================================
    # Series conversions with double-conversion guards
    # =========================================================================

    def needs_conversion(self, kind: str, unit: Optional[str], values: Iterable[Any]) -> bool:
        """
        Decide whether a hinted series really needs converting.

        A series is converted only when its hint names a non-canonical unit AND
        its magnitudes are plausible for that unit. A Celsius-hinted series that
        already holds Fahrenheit-sized values, or an hPa-hinted series holding
        kPa-sized values, is a sign the payload was converted upstream.

        Args:
            kind: 'temp', 'wind', 'precip' or 'pressure'
            unit: Interpreted unit of the hint (None if unknown)
            values: Series values

        Returns:
            True if the series should be converted
        """
        finite = [n for n in (to_finite(v) for v in values) if n is not None]
        if not finite:
            return False

        if kind == "temp":
            if unit not in ("C", "K"):
                return False
            if unit == "C" and max(finite) > constants.CELSIUS_PLAUSIBLE_MAX:
                self.logger.warning(
                    f"Celsius-hinted series peaks at {max(finite):.1f}; treating it as °F already"
                )
                return False
            return True

        if kind == "pressure":
            if unit == "hPa" or unit is None:
                low, high = constants.HPA_PLAUSIBLE_RANGE
                return unit == "hPa" and not any(low <= v <= high for v in finite)
            return True

        canonical = constants.CANONICAL_UNITS[kind]
        return unit is not None and unit != canonical

    def convert_series(self, kind: str, unit: Optional[str], values: Any) -> Any:
        """
        Convert a series to the canonical unit for its kind.

        Non-numeric entries are left in place so index alignment is preserved.

        Args:
            kind: 'temp', 'wind', 'precip' or 'pressure'
            unit: Interpreted source unit
            values: List of values (anything else is returned unchanged)

        Returns:
            Converted list
        """
        if not isinstance(values, list):
            return values
        if not self.needs_conversion(kind, unit, values):
            return list(values)

        if kind == "pressure" and unit == "hPa":
            # hPa-hinted but kPa-sized
            unit = "kPa"

        convert = self._converter_for(kind)
        converted = []
        for value in values:
            number = to_finite(value)
            converted.append(convert(number, unit) if number is not None else value)
        return converted

    def convert_scalar(self, kind: str, unit: Optional[str], value: Any) -> Any:
        """Convert a single value with the same guards as a series."""
        if to_finite(value) is None:
            return value
        return self.convert_series(kind, unit, [value])[0]

    def _converter_for(self, kind: str):
        if kind == "temp":
            return lambda v, u: self.convert_temperature(v, u, "F")
        if kind == "wind":
            return lambda v, u: self.convert_wind_speed(v, u, "mph")
        if kind == "precip":
            return lambda v, u: self.convert_precipitation(v, u, "in")
        return lambda v, u: self.convert_pressure(v, u, "hPa")

    def interpret(self, kind: str, hint: Any) -> Optional[str]:
        """Interpret a hint string for the given quantity kind."""
        if kind == "temp":
            return self.temperature_unit(hint)
        if kind == "wind":
            return self.wind_unit(hint)
        if kind == "precip":
            return self.precipitation_unit(hint)
        return self.pressure_unit(hint)
