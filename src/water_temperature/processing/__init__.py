"""
Data processing module for water temperature estimation.

Provides unit conversion, payload normalization and validation.
"""

import logging
from typing import Any, Optional

from .converter import UnitConverter
from .normalizer import ContextNormalizer
from .validator import PayloadValidator
from ..models import WaterTempContext


class DataProcessor:
    """
    Unified data processor combining conversion, normalization, and validation.

    This class provides a convenient interface to all processing operations.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize data processor.

        Args:
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self.converter = UnitConverter(self.logger)
        self.normalizer = ContextNormalizer(self.logger, converter=self.converter)
        self.validator = PayloadValidator(self.logger)

    def normalize(
        self,
        weather_payload: Any,
        coords: Any = None,
        water_type: Optional[str] = None,
        timezone: Optional[str] = None,
        now_override: Any = None
    ) -> WaterTempContext:
        """
        Normalize a raw weather payload into a canonical context.

        Args:
            weather_payload: Raw payload
            coords: Coordinates of the water body
            water_type: Target water type
            timezone: Timezone override
            now_override: Instant to treat as "now"

        Returns:
            WaterTempContext
        """
        context = self.normalizer.normalize(
            weather_payload,
            coords=coords,
            water_type=water_type,
            timezone=timezone,
            now_override=now_override,
        )
        self.validator.check_payload(context.payload)
        return context


__all__ = [
    "UnitConverter",
    "ContextNormalizer",
    "PayloadValidator",
    "DataProcessor",
]
