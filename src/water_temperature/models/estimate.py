"""
Estimation result models.

Contains DTOs describing a normalized weather context, an explainable
same-day estimate and an explained projection day.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

from .records import Coordinates


@dataclass
class WaterTempContext:
    """Canonical weather payload plus the anchor metadata derived from it."""

    coords: Optional[Coordinates]
    water_type: Optional[str]
    timezone: str
    anchor_date_iso: str  # Hourly 'now' time, local wall-clock if the input was zone-naive
    now_hour_index: Optional[int]
    hourly_now_time_iso: str
    now_iso: str  # The 'now' instant, UTC
    units: Dict[str, str]
    payload: Dict[str, Any]

    @property
    def source(self) -> str:
        """Source tag of the payload (e.g. 'LIVE', 'FIXTURE')."""
        return str(self.payload.get("meta", {}).get("source", "UNKNOWN"))


@dataclass
class EstimateResult:
    """Explainable decomposition of a same-day water temperature estimate."""

    final: float  # °F, always within physical bounds
    breakdown_terms: Dict[str, float] = field(default_factory=dict)
    clamps_applied: List[str] = field(default_factory=list)
    wind_estimate: Dict[str, Any] = field(default_factory=dict)
    weather_signals: Dict[str, Any] = field(default_factory=dict)
    fields_read: List[str] = field(default_factory=list)
    day_key: Optional[str] = None
    model_version: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "final": self.final,
            "breakdownTerms": dict(self.breakdown_terms),
            "clampsApplied": list(self.clamps_applied),
            "windEstimate": dict(self.wind_estimate),
            "weatherSignals": dict(self.weather_signals),
            "fieldsRead": list(self.fields_read),
            "dayKey": self.day_key,
            "modelVersion": self.model_version,
        }


@dataclass
class ProjectionDayExplanation:
    """Term decomposition of one projected day."""

    day_index: int
    day: Optional[str]
    value: float  # °F, equal to the projection's value for the day
    previous: Optional[float]
    breakdown_terms: Dict[str, float] = field(default_factory=dict)
    clamps_applied: List[str] = field(default_factory=list)
    synoptic_strength: float = 0.0
    fields_read: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dayIndex": self.day_index,
            "day": self.day,
            "value": self.value,
            "previous": self.previous,
            "breakdownTerms": dict(self.breakdown_terms),
            "clampsApplied": list(self.clamps_applied),
            "synopticStrength": self.synoptic_strength,
            "fieldsRead": list(self.fields_read),
        }
