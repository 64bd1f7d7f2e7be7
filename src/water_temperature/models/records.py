"""
Persisted record models.

Contains DTOs for coordinates, the same-day memo, observed readings and crowd
reports. Records are stored as plain dicts; `to_dict`/`from_dict` do the mapping.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional, Dict, Any

from ..core.date_utils import DateUtils
from ..core.numeric import to_finite as _finite


@dataclass(frozen=True)
class Coordinates:
    """Geographic position of a water body."""

    lat: float
    lon: float

    @classmethod
    def from_value(cls, value: Any) -> Optional["Coordinates"]:
        """
        Build coordinates from a Coordinates, dict or (lat, lon) pair.

        Returns:
            Coordinates, or None when either component is missing or not finite
        """
        if isinstance(value, Coordinates):
            return value
        if isinstance(value, dict):
            lat = _finite(value.get("lat", value.get("latitude")))
            lon = _finite(value.get("lon", value.get("longitude")))
        elif isinstance(value, (tuple, list)) and len(value) == 2:
            lat, lon = _finite(value[0]), _finite(value[1])
        else:
            return None
        if lat is None or lon is None:
            return None
        return cls(lat=lat, lon=lon)

    def key(self, water_type: str) -> str:
        """Storage key fragment '{lat:.4f}_{lon:.4f}_{water_type}'."""
        return f"{self.lat:.4f}_{self.lon:.4f}_{water_type}"


@dataclass
class MemoEntry:
    """Last persisted same-day estimate for a location and water type."""

    temp: float
    day_key: str
    model_version: str

    def to_dict(self) -> Dict[str, Any]:
        return {"temp": self.temp, "dayKey": self.day_key, "modelVersion": self.model_version}

    @classmethod
    def from_dict(cls, data: Any) -> Optional["MemoEntry"]:
        if not isinstance(data, dict):
            return None
        temp = _finite(data.get("temp"))
        if temp is None:
            return None
        return cls(
            temp=temp,
            day_key=str(data.get("dayKey", data.get("day_key", ""))),
            model_version=str(data.get("modelVersion", data.get("model_version", ""))),
        )


@dataclass
class ObservedReading:
    """A single trusted field measurement of water temperature."""

    temp_f: float
    timestamp: datetime
    water_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"tempF": self.temp_f, "timestamp": DateUtils.to_iso_z(self.timestamp)}
        if self.water_type:
            data["waterType"] = self.water_type
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Optional["ObservedReading"]:
        if not isinstance(data, dict):
            return None
        temp = _finite(data.get("tempF", data.get("temp_f")))
        timestamp = DateUtils.parse_timestamp(data.get("timestamp"))
        if temp is None or timestamp is None:
            return None
        water_type = data.get("waterType", data.get("water_type"))
        return cls(temp_f=temp, timestamp=timestamp, water_type=water_type)

    def age_hours(self, now: datetime) -> float:
        """Hours elapsed between the reading and `now`."""
        return DateUtils.hours_between(self.timestamp, now)


@dataclass
class CrowdReport:
    """A user-submitted water temperature report."""

    latitude: float
    longitude: float
    timestamp: datetime
    temperature: float
    water_body: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = DateUtils.to_iso_z(self.timestamp)
        data["waterBody"] = data.pop("water_body")
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Optional["CrowdReport"]:
        if not isinstance(data, dict):
            return None
        latitude = _finite(data.get("latitude"))
        longitude = _finite(data.get("longitude"))
        temperature = _finite(data.get("temperature"))
        timestamp = DateUtils.parse_timestamp(data.get("timestamp"))
        if None in (latitude, longitude, temperature) or timestamp is None:
            return None
        return cls(
            latitude=latitude,
            longitude=longitude,
            timestamp=timestamp,
            temperature=temperature,
            water_body=str(data.get("waterBody", data.get("water_body", ""))),
        )

    def matches_type(self, water_type: str) -> bool:
        """Case-insensitive water body match."""
        return self.water_body.strip().lower() == str(water_type).strip().lower()
