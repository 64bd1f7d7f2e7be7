"""
Water temperature algorithms.

Seasonal baseline, per-term weather forcing, the same-day estimator, the
multi-day projector, intraday disaggregation, field-data calibration and the
depth profile.
"""

from .seasonal import BaselineBlend, SeasonalModel
from .forcing import AirInfluence, ForcingModel, WindEstimate
from .calibration import Calibrator, CrowdBlend, ObservedCalibration
from .depth import DepthProfile
from .estimator import WaterTempEstimator
from .projection import WaterTempProjector
from .intraday import HourlyDay, IntradayModel, SunHours

__all__ = [
    "BaselineBlend",
    "SeasonalModel",
    "AirInfluence",
    "ForcingModel",
    "WindEstimate",
    "Calibrator",
    "CrowdBlend",
    "ObservedCalibration",
    "DepthProfile",
    "WaterTempEstimator",
    "WaterTempProjector",
    "HourlyDay",
    "IntradayModel",
    "SunHours",
]
