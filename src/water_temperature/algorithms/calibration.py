"""
Observed-report calibration module.

Three independent corrections pull the physics model toward field data:
the crowd-report blend of the seasonal baseline, the single observed-reading
offset of the same-day estimate, and the recency-weighted anchor applied only
to the "surface now" value.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from ..core import constants
from ..core.date_utils import DateUtils
from ..core.numeric import clamp
from ..models import Coordinates, CrowdReport, ObservedReading


@dataclass
class CrowdBlend:
    """Outcome of blending crowd reports into the seasonal baseline."""

    value: float  # °F
    applied: bool
    blend_factor: float
    report_count: int
    user_average: Optional[float]
    floor: float


@dataclass
class ObservedCalibration:
    """Outcome of calibrating against a single observed reading."""

    offset: float  # °F
    applied: bool
    age_hours: Optional[float]
    weight: float


class Calibrator:
    """Field-data corrections for the physics model."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize calibrator.

        Args:
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Great-circle distance in miles."""
        phi1, phi2 = math.radians(lat1), math.radians(lat2)
        d_phi = math.radians(lat2 - lat1)
        d_lambda = math.radians(lon2 - lon1)
        a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
        return 2 * constants.EARTH_RADIUS_MILES * math.asin(min(1.0, math.sqrt(a)))

    @staticmethod
    def _report_age_days(report: CrowdReport, now: datetime) -> float:
        # Reports stamped slightly after "now" count as fresh
        return max(0.0, DateUtils.hours_between(report.timestamp, now) / 24.0)

    def nearby_reports(
        self,
        reports: Sequence[CrowdReport],
        coords: Coordinates,
        now: datetime,
        radius_miles: float,
        days_back: float
    ) -> List[CrowdReport]:
        """
        Filter reports to those within a radius and age window.

        Args:
            reports: Candidate reports
            coords: Water body coordinates
            now: Reference instant
            radius_miles: Search radius
            days_back: Maximum report age in days

        Returns:
            Matching reports
        """
        nearby = []
        for report in reports:
            distance = self.haversine_miles(coords.lat, coords.lon, report.latitude, report.longitude)
            if distance > radius_miles:
                continue
            if self._report_age_days(report, now) > days_back:
                continue
            nearby.append(report)
        return nearby

    def trusted_report_count(
        self,
        reports: Sequence[CrowdReport],
        coords: Coordinates,
        water_type: str,
        now: datetime,
        radius_miles: float,
        max_age_hours: float
    ) -> int:
        """Count same-type reports within a radius and age window."""
        nearby = self.nearby_reports(reports, coords, now, radius_miles, max_age_hours / 24.0)
        return sum(1 for report in nearby if report.matches_type(water_type))

    def crowd_blend(
        self,
        baseline: float,
        reports: Sequence[CrowdReport],
        coords: Coordinates,
        water_type: str,
        now: datetime,
        radius_miles: float = constants.REPORT_RADIUS_MILES,
        days_back: float = constants.REPORT_DAYS_BACK,
        trusted_floor_enabled: bool = False
    ) -> CrowdBlend:
        """
        Blend nearby crowd reports into the baseline.

        Each report is weighted by inverse-square distance, a 3-day recency
        decay and a 1.5x bonus when its water body type matches.

        Args:
            baseline: Seasonal baseline (°F)
            reports: All known crowd reports
            coords: Water body coordinates
            water_type: Target water type
            now: Reference instant
            radius_miles: Search radius
            days_back: Maximum report age in days
            trusted_floor_enabled: Raise the blend floor when trusted local reports exist

        Returns:
            CrowdBlend
        """
        nearby = self.nearby_reports(reports, coords, now, radius_miles, days_back)
        if not nearby:
            return CrowdBlend(baseline, False, 0.0, 0, None, 0.0)

        weighted_sum = 0.0
        total_weight = 0.0
        for report in nearby:
            distance = self.haversine_miles(coords.lat, coords.lon, report.latitude, report.longitude)
            distance_weight = 1 / (distance + 1) ** 2
            recency_weight = math.exp(-self._report_age_days(report, now) / constants.REPORT_HALF_LIFE_DAYS)
            type_weight = constants.REPORT_TYPE_MATCH_WEIGHT if report.matches_type(water_type) else 1.0
            weight = distance_weight * recency_weight * type_weight
            weighted_sum += report.temperature * weight
            total_weight += weight

        if total_weight <= 0:
            return CrowdBlend(baseline, False, 0.0, len(nearby), None, 0.0)

        floor = 0.0
        if trusted_floor_enabled:
            trusted = self.trusted_report_count(
                nearby,
                coords,
                water_type,
                now,
                constants.TRUSTED_REPORT_RADIUS_MILES,
                constants.TRUSTED_REPORT_MAX_AGE_HOURS,
            )
            if trusted >= constants.TRUSTED_REPORT_MIN_COUNT:
                floor = constants.TRUSTED_BLEND_FLOOR

        user_average = weighted_sum / total_weight
        factor = clamp(
            min(constants.REPORT_BLEND_MAX, len(nearby) * constants.REPORT_BLEND_PER_REPORT),
            floor,
            constants.REPORT_BLEND_MAX,
        )
        value = user_average * factor + baseline * (1 - factor)

        self.logger.debug(
            f"Blending {len(nearby)} crowd reports: {factor:.0%} user data "
            f"(avg {user_average:.1f}°F), {1 - factor:.0%} model"
        )
        return CrowdBlend(value, True, factor, len(nearby), user_average, floor)

    def observed_offset(
        self,
        observed: Optional[ObservedReading],
        pre_estimate: float,
        water_type: str,
        now: datetime
    ) -> ObservedCalibration:
        """
        Offset toward a single recent observed reading of the same water type.

        Args:
            observed: Observed reading, if any
            pre_estimate: Estimate before calibration (°F)
            water_type: Target water type
            now: Reference instant

        Returns:
            ObservedCalibration (offset within ±6 °F, decaying linearly to 0 over 60 h)
        """
        if observed is None:
            return ObservedCalibration(0.0, False, None, 0.0)
        if observed.water_type and observed.water_type.strip().lower() != str(water_type).strip().lower():
            return ObservedCalibration(0.0, False, None, 0.0)

        age = max(0.0, observed.age_hours(now))
        if age > constants.OBSERVED_MAX_AGE_HOURS:
            return ObservedCalibration(0.0, False, age, 0.0)

        weight = max(0.0, 1 - age / constants.OBSERVED_DECAY_HOURS)
        delta = clamp(
            observed.temp_f - pre_estimate,
            -constants.OBSERVED_MAX_OFFSET_F,
            constants.OBSERVED_MAX_OFFSET_F,
        )
        return ObservedCalibration(delta * weight, weight > 0, age, weight)

    @staticmethod
    def anchor_offset(observed_temp: float, modeled_temp: float, age_hours: float) -> float:
        """
        Recency-weighted offset of the "now" value toward an observed reading.

        Args:
            observed_temp: Observed water temperature (°F)
            modeled_temp: Model value at the reading's local hour (°F)
            age_hours: Reading age in hours

        Returns:
            Offset in °F (0 beyond 16 h, halved every 8 h)
        """
        if age_hours < 0 or age_hours > constants.ANCHOR_MAX_AGE_HOURS:
            return 0.0
        delta = clamp(
            observed_temp - modeled_temp,
            -constants.OBSERVED_MAX_OFFSET_F,
            constants.OBSERVED_MAX_OFFSET_F,
        )
        return delta * 0.5 ** (age_hours / constants.ANCHOR_HALF_LIFE_HOURS)
