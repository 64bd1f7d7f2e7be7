"""
Tests for payload normalization and validation.

Tests unit normalization, the hourly "now" anchor, idempotence and the
caller-contract checks.
"""

import copy

import pytest
from src.water_temperature.processing import DataProcessor, PayloadValidator
from src.water_temperature.processing.normalizer import ContextNormalizer


def chicago_morning_payload():
    return {
        "meta": {"timezone": "America/Chicago", "source": "LIVE"},
        "forecast": {
            "timezone": "America/Chicago",
            "hourly": {
                "time": [
                    "2026-02-19T04:00",
                    "2026-02-19T05:00",
                    "2026-02-19T06:00",
                    "2026-02-19T07:00",
                    "2026-02-19T08:00",
                ],
                "temperature_2m": [41, 40, 40, 42, 45],
            },
        },
    }


class TestContextNormalizer:
    """Test cases for ContextNormalizer."""

    @pytest.fixture
    def normalizer(self):
        """Create normalizer instance."""
        return ContextNormalizer()

    def test_zone_naive_hourly_anchor_uses_local_wall_clock(self, normalizer):
        """Test that naive hourly times are matched against local 'now'."""
        context = normalizer.normalize(
            chicago_morning_payload(),
            now_override="2026-02-19T12:35:00Z",
        )

        # 12:35Z is 06:35 in Chicago; 07:00 is the closest slot
        assert context.now_hour_index == 3
        assert context.anchor_date_iso == "2026-02-19T07:00"
        assert context.hourly_now_time_iso == "2026-02-19T07:00"
        assert context.now_iso == "2026-02-19T12:35:00Z"
        assert context.timezone == "America/Chicago"

    def test_zoned_hourly_times_are_compared_as_instants(self, normalizer):
        """Test that zoned hourly entries are rewritten to UTC and matched as instants."""
        payload = {
            "forecast": {
                "timezone": "America/Chicago",
                "hourly": {
                    "time": [
                        "2026-02-19T06:00:00-06:00",
                        "2026-02-19T07:00:00-06:00",
                        "2026-02-19T08:00:00-06:00",
                    ],
                    "temperature_2m": [40, 42, 45],
                },
            },
        }

        context = normalizer.normalize(payload, now_override="2026-02-19T13:10:00Z")

        assert context.payload["forecast"]["hourly"]["time"][1] == "2026-02-19T13:00:00Z"
        assert context.now_hour_index == 1

    def test_ties_resolve_to_first_index(self, normalizer):
        """Test that an equidistant 'now' picks the earlier slot."""
        payload = {"hourly": {"time": ["2026-02-19T06:00", "2026-02-19T07:00"]}}
        context = normalizer.normalize(payload, timezone="UTC", now_override="2026-02-19T06:30:00Z")
        assert context.now_hour_index == 0

    def test_missing_hourly_falls_back_to_now(self, normalizer):
        """Test anchor fallback when the payload has no hourly times."""
        context = normalizer.normalize({"daily": {"temperature_2m_mean": [50]}}, now_override="2026-02-16T12:00:00Z")

        assert context.now_hour_index is None
        assert context.anchor_date_iso == "2026-02-16T12:00:00Z"
        assert context.payload["historical"]["daily"]["temperature_2m_mean"] == [50]

    def test_meta_now_iso_is_used_without_override(self, normalizer):
        """Test that meta.nowIso pins 'now'."""
        payload = chicago_morning_payload()
        payload["meta"]["nowIso"] = "2026-02-19T10:00:00Z"

        context = normalizer.normalize(payload)

        assert context.now_iso == "2026-02-19T10:00:00Z"
        assert context.now_hour_index == 0

    def test_timezone_override_wins(self, normalizer):
        """Test that the explicit timezone overrides the payload timezone."""
        context = normalizer.normalize(chicago_morning_payload(), timezone="UTC", now_override="2026-02-19T07:10:00Z")
        assert context.timezone == "UTC"
        assert context.now_hour_index == 3

    def test_invalid_timezone_falls_back_to_utc(self, normalizer):
        """Test that an unknown timezone degrades to UTC."""
        context = normalizer.normalize({"forecast": {"timezone": "Mars/Olympus"}}, now_override="2026-02-19T07:00:00Z")
        assert context.timezone == "UTC"

    def test_celsius_payload_converted_to_fahrenheit(self, normalizer, weather_payload):
        """Test conversion of a hinted metric payload."""
        context = normalizer.normalize(weather_payload)
        forecast = context.payload["forecast"]
        historical = context.payload["historical"]["daily"]

        assert forecast["hourly"]["temperature_2m"][0] == pytest.approx(8.1 * 9 / 5 + 32)
        assert forecast["daily"]["wind_speed_10m_mean"][0] == pytest.approx(11.6 / 1.609344, abs=0.001)
        assert forecast["daily"]["precipitation_sum"][2] == pytest.approx(18.6 / 25.4)
        assert forecast["current"]["temperature_2m"] == pytest.approx(15.8 * 9 / 5 + 32)
        assert historical["temperature_2m_mean"][0] == pytest.approx(8.9 * 9 / 5 + 32)
        # Pressure is already in hPa
        assert forecast["hourly"]["surface_pressure"][0] == 1016.8
        assert forecast["hourly_units"]["temperature_2m"] == "°F"
        assert context.units == {"temp": "F", "wind": "mph", "precip": "in", "pressure": "hPa"}

    def test_meta_units_win_over_field_hints(self, normalizer):
        """Test that meta.units overrides per-field hints."""
        payload = {
            "meta": {"units": {"temp": "C"}},
            "forecast": {
                "hourly_units": {"temperature_2m": "°F"},
                "hourly": {"time": ["2026-02-19T07:00"], "temperature_2m": [10.0]},
            },
        }
        context = normalizer.normalize(payload, now_override="2026-02-19T07:00:00Z")
        assert context.payload["forecast"]["hourly"]["temperature_2m"] == [pytest.approx(50.0)]

    def test_normalization_is_idempotent(self, normalizer, weather_payload):
        """Test that normalizing an already-normalized payload changes nothing."""
        first = normalizer.normalize(weather_payload)
        second = normalizer.normalize(copy.deepcopy(first.payload))

        assert second.payload == first.payload
        assert second.now_hour_index == first.now_hour_index
        assert second.anchor_date_iso == first.anchor_date_iso

    def test_normalize_does_not_mutate_input(self, normalizer, weather_payload):
        """Test that the raw payload is left untouched."""
        original = copy.deepcopy(weather_payload)
        normalizer.normalize(weather_payload)
        assert weather_payload == original

    def test_daily_times_truncated_to_day(self, normalizer):
        """Test that daily timestamps are cut to their date prefix."""
        payload = {"forecast": {"daily": {"time": ["2026-02-19T00:00", "bad", None]}}}
        context = normalizer.normalize(payload, now_override="2026-02-19T07:00:00Z")
        assert context.payload["forecast"]["daily"]["time"] == ["2026-02-19", None, None]

    def test_convert_daily(self, normalizer):
        """Test conversion of a bare daily block."""
        daily = {"time": ["2026-06-01"], "temperature_2m_mean": [25.0], "wind_speed_10m_mean": [16.0934]}
        converted = normalizer.convert_daily(daily, {"temp": "C", "wind": "km/h"})

        assert converted["temperature_2m_mean"] == [pytest.approx(77.0)]
        assert converted["wind_speed_10m_mean"] == [pytest.approx(10.0, abs=0.01)]
        assert daily["temperature_2m_mean"] == [25.0]

    def test_fingerprint(self, normalizer, weather_payload):
        """Test the debug fingerprint of a normalized context."""
        context = normalizer.normalize(weather_payload)
        fingerprint = ContextNormalizer.fingerprint(context)

        # 18:00Z is 12:00 in Chicago
        assert fingerprint["nowHourIndex"] == 12
        assert fingerprint["hourlyNowTimeISOZ"] == "2026-02-19T12:00"
        assert fingerprint["hourlyTempNow"] == pytest.approx(15.8 * 9 / 5 + 32)
        assert fingerprint["lastHistoricalCloudMean"] == 74
        assert fingerprint["source"] == "FIXTURE"


class TestPayloadValidator:
    """Test cases for PayloadValidator."""

    @pytest.fixture
    def validator(self):
        """Create validator instance."""
        return PayloadValidator()

    def test_require_coordinates(self, validator):
        """Test coordinate parsing and validation."""
        coords = validator.require_coordinates({"lat": 34.2576, "lon": -88.7034})
        assert coords.lat == 34.2576
        assert validator.require_coordinates((33.75, -84.39)).lon == -84.39

    @pytest.mark.parametrize("coords", [None, {}, {"lat": 34.0}, {"lat": float("nan"), "lon": 1.0}, {"lat": 95, "lon": 0}])
    def test_require_coordinates_rejects_invalid(self, validator, coords):
        """Test that missing or out-of-range coordinates raise."""
        with pytest.raises(ValueError):
            validator.require_coordinates(coords)

    def test_require_water_type(self, validator):
        """Test water type validation."""
        assert validator.require_water_type("Pond").name == "pond"
        with pytest.raises(ValueError):
            validator.require_water_type("ocean")

    def test_require_seed(self, validator):
        """Test projection seed validation."""
        assert validator.require_seed("61.5") == 61.5
        with pytest.raises(ValueError):
            validator.require_seed(float("inf"))

    def test_require_daily_timeline(self, validator):
        """Test forecast timeline validation."""
        assert validator.require_daily_timeline({"time": ["2026-06-01"]}) == ["2026-06-01"]
        with pytest.raises(ValueError):
            validator.require_daily_timeline({"time": []})

    def test_check_alignment_reports_short_series(self, validator):
        """Test that misaligned series are reported, not raised."""
        is_valid, errors = validator.check_alignment(
            {"time": ["a", "b", "c"], "temperature_2m": [1, 2]}, "forecast.hourly"
        )
        assert not is_valid
        assert errors == ["forecast.hourly.temperature_2m has 2 values for 3 time slots"]

    def test_processor_validates_fixture(self, weather_payload):
        """Test that the recorded payload is aligned after normalization."""
        processor = DataProcessor()
        context = processor.normalize(weather_payload)
        is_valid, errors = processor.validator.check_payload(context.payload)
        assert is_valid, errors
