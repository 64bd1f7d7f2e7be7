"""
Payload validation module.

Checks the caller contract (coordinates, water type, projection seed and
forecast timeline) and reports series-alignment problems in weather payloads.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from ..core.numeric import to_finite
from ..models import Coordinates, WaterBodyProfile, get_profile


class PayloadValidator:
    """Validate engine inputs."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize payload validator.

        Args:
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger(__name__)

    def require_coordinates(self, coords: Any) -> Coordinates:
        """
        Validate coordinates.

        Args:
            coords: Coordinates, {'lat','lon'} dict or (lat, lon) pair

        Returns:
            Coordinates

        Raises:
            ValueError: If coordinates are missing, non-finite or out of range
        """
        parsed = Coordinates.from_value(coords)
        if parsed is None:
            self.logger.error(f"Missing coordinates: {coords!r}")
            raise ValueError("Missing coordinates")
        if not (-90 <= parsed.lat <= 90) or not (-180 <= parsed.lon <= 180):
            self.logger.error(f"Coordinates out of range: {parsed}")
            raise ValueError(f"Coordinates out of range: lat={parsed.lat}, lon={parsed.lon}")
        return parsed

    def require_water_type(self, water_type: Any) -> WaterBodyProfile:
        """
        Validate the water type.

        Raises:
            ValueError: If the water type is unknown
        """
        try:
            return get_profile(water_type)
        except ValueError:
            self.logger.error(f"Unknown water type: {water_type!r}")
            raise

    def require_seed(self, seed: Any) -> float:
        """
        Validate the projection seed temperature.

        Raises:
            ValueError: If the seed is not a finite number
        """
        value = to_finite(seed)
        if value is None:
            self.logger.error(f"Projection seed is not finite: {seed!r}")
            raise ValueError(f"Seed temperature must be a finite number, got {seed!r}")
        return value

    def require_surface_temp(self, surface: Any) -> float:
        """
        Validate a surface temperature input.

        Raises:
            ValueError: If the temperature is not a finite number
        """
        value = to_finite(surface)
        if value is None:
            self.logger.error(f"Surface temperature is not finite: {surface!r}")
            raise ValueError(f"Surface temperature must be a finite number, got {surface!r}")
        return value

    def require_daily_timeline(self, daily: Any) -> List[Any]:
        """
        Validate the forecast daily timeline.

        Args:
            daily: forecast.daily block

        Returns:
            The daily time list

        Raises:
            ValueError: If the timeline is missing or empty
        """
        times = daily.get("time") if isinstance(daily, dict) else None
        if not isinstance(times, list) or not times:
            self.logger.error("Forecast daily timeline is empty")
            raise ValueError("Forecast daily timeline is empty")
        return times

    def check_alignment(self, block: Any, block_name: str) -> Tuple[bool, List[str]]:
        """
        Check that every array of a series block shares the length of its time axis.

        Misalignment is data noise, not a contract violation: it is reported and
        logged, and readers treat missing positions as gaps.

        Args:
            block: Series block such as forecast.hourly
            block_name: Name used in messages

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = []
        if not isinstance(block, dict):
            return True, errors

        times = block.get("time")
        if not isinstance(times, list):
            return True, errors

        for field_name, values in block.items():
            if field_name == "time" or not isinstance(values, list):
                continue
            if len(values) != len(times):
                errors.append(
                    f"{block_name}.{field_name} has {len(values)} values for {len(times)} time slots"
                )

        for error in errors:
            self.logger.warning(f"Series misalignment: {error}")

        is_valid = len(errors) == 0
        return is_valid, errors

    def check_payload(self, payload: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """
        Run alignment checks across every block of a normalized payload.

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors: List[str] = []
        forecast = payload.get("forecast", {}) if isinstance(payload, dict) else {}
        historical = payload.get("historical", {}) if isinstance(payload, dict) else {}

        for name, block in (
            ("historical.daily", historical.get("daily")),
            ("forecast.hourly", forecast.get("hourly")),
            ("forecast.daily", forecast.get("daily")),
        ):
            _, block_errors = self.check_alignment(block, name)
            errors.extend(block_errors)

        return len(errors) == 0, errors
