"""
Tests for traced payload access.
"""

import pytest

from src.water_temperature.trace import PayloadReader

PAYLOAD = {
    "forecast": {
        "hourly": {"time": ["2026-02-19T06:00", "2026-02-19T07:00"], "temperature_2m": [41, None]},
        "current": {"relative_humidity_2m": "72"},
    },
    "historical": {"daily": {"cloud_cover_mean": [80, "n/a", float("nan"), 60]}},
}


class TestPayloadReader:
    """Test cases for PayloadReader."""

    def test_dotted_paths_and_indices(self):
        """Test dict keys, list indices and negative indices."""
        reader = PayloadReader(PAYLOAD)

        assert reader.get("forecast.hourly.time.1") == "2026-02-19T07:00"
        assert reader.get("forecast.hourly.time.-1") == "2026-02-19T07:00"
        assert reader.get("forecast.hourly.time.5") is None
        assert reader.get("forecast.hourly.time.x", "d") == "d"
        assert reader.get("forecast.missing", "d") == "d"
        assert reader.get("forecast.hourly.temperature_2m.1", 0) == 0

    def test_number(self):
        """Test numeric coercion with defaults."""
        reader = PayloadReader(PAYLOAD)
        assert reader.number("forecast.current.relative_humidity_2m") == 72.0
        assert reader.number("forecast.current.precipitation", 0.0) == 0.0

    def test_series_keep_positions(self):
        """Test that non-finite entries become None in place."""
        reader = PayloadReader(PAYLOAD)

        assert reader.series("historical.daily.cloud_cover_mean") == [80.0, None, None, 60.0]
        assert reader.finite_series("historical.daily.cloud_cover_mean") == [80.0, 60.0]
        assert reader.series("forecast.current") == []
        assert reader.strings("forecast.hourly.temperature_2m") == [None, None]

    def test_fields_read_only_when_tracing(self):
        """Test read tracing."""
        traced = PayloadReader(PAYLOAD, set())
        traced.series("historical.daily.cloud_cover_mean")
        traced.number("forecast.current.relative_humidity_2m")
        traced.get("forecast.missing")

        assert traced.fields_read() == [
            "forecast.current.relative_humidity_2m",
            "forecast.missing",
            "historical.daily.cloud_cover_mean",
        ]

        untraced = PayloadReader(PAYLOAD)
        untraced.get("forecast.hourly")
        assert untraced.fields_read() == []

    @pytest.mark.parametrize("payload", [None, {}, []])
    def test_empty_payload(self, payload):
        """Test that empty payloads resolve to defaults."""
        assert PayloadReader(payload).get("a.b", 1) == 1
