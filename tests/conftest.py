"""
Pytest configuration and shared fixtures for all tests.
"""

import sys
from pathlib import Path

import pytest
import json

# Add the project root to sys.path so we can import from src
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture(scope="session")
def fixtures_dir():
    """Get the fixtures directory path."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def weather_payload(fixtures_dir):
    """Load the metric-unit weather payload recorded for a Tupelo, MS pond."""
    data_file = fixtures_dir / "weather_payload_sample.json"
    with open(data_file) as f:
        return json.load(f)


def build_hourly_day(date="2026-02-12", temps=None, clouds=None, winds=None, shortwave=None):
    """
    Build a zone-naive forecast.hourly block for one local day.

    Missing values default to 50°F air, 40% cloud, 5 mph wind and no shortwave.
    """
    temps = temps or []
    clouds = clouds or []
    winds = winds or []
    shortwave = shortwave or []

    def pick(values, hour, default):
        return values[hour] if hour < len(values) else default

    hourly = {
        "time": [],
        "temperature_2m": [],
        "cloud_cover": [],
        "wind_speed_10m": [],
        "shortwave_radiation": [],
    }
    for hour in range(24):
        hourly["time"].append(f"{date}T{hour:02d}:00")
        hourly["temperature_2m"].append(pick(temps, hour, 50))
        hourly["cloud_cover"].append(pick(clouds, hour, 40))
        hourly["wind_speed_10m"].append(pick(winds, hour, 5))
        hourly["shortwave_radiation"].append(pick(shortwave, hour, 0))
    return hourly


@pytest.fixture
def hourly_day():
    """Factory for single-day hourly blocks."""
    return build_hourly_day


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test running the full engine"
    )
    config.addinivalue_line(
        "markers", "unit: mark test as unit test (no external dependencies)"
    )
