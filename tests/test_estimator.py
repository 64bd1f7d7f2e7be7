"""
Tests for the same-day estimator.

Tests the term decomposition, observed-reading calibration, the day
continuity clamp and memo persistence.
"""

import math
from datetime import datetime, timedelta

import pytest
import pytz

from src.water_temperature.algorithms import WaterTempEstimator
from src.water_temperature.core import Config, constants
from src.water_temperature.models import (
    Coordinates,
    CrowdReport,
    MemoEntry,
    ObservedReading,
    get_profile,
)
from src.water_temperature.processing.normalizer import ContextNormalizer
from src.water_temperature.storage import InMemoryStore, WaterTempStore

TUPELO = Coordinates(34.2576, -88.7034)
ATLANTA = Coordinates(33.75, -84.39)
FEB_16_NOON = datetime(2026, 2, 16, 12, tzinfo=pytz.UTC)
JUL_15_NOON = datetime(2026, 7, 15, 12, tzinfo=pytz.UTC)


def february_payload(cloud_cover):
    return {
        "daily": {
            "time": [f"2026-02-{day:02d}" for day in range(9, 16)],
            "temperature_2m_mean": [49, 50, 51, 52, 53, 54, 55],
            "cloud_cover_mean": [cloud_cover] * 7,
            "wind_speed_10m_mean": [6, 6, 6, 7, 7, 6, 6],
        }
    }


def july_payload():
    return {
        "daily": {
            "time": [f"2026-07-{day:02d}" for day in range(8, 15)],
            "temperature_2m_mean": [90, 91, 92, 93, 94, 95, 96],
            "cloud_cover_mean": [30] * 7,
            "wind_speed_10m_mean": [6] * 7,
        }
    }


def make_context(payload, coords, water_type):
    return ContextNormalizer().normalize(
        payload,
        coords={"lat": coords.lat, "lon": coords.lon},
        water_type=water_type,
    )


class TestWaterTempEstimator:
    """Test cases for WaterTempEstimator."""

    @pytest.fixture
    def store(self):
        """Create an empty record store."""
        return WaterTempStore(InMemoryStore())

    @pytest.fixture
    def estimator(self, store):
        """Create estimator instance with default config."""
        return WaterTempEstimator(config=Config(), store=store)

    def test_overcast_cold_season_pond_stays_cool(self, estimator):
        """Test that a persistently overcast February pond is not pushed warm."""
        result = estimator.estimate(make_context(february_payload(98), TUPELO, "pond"), FEB_16_NOON)

        assert result.final <= 50.0
        assert result.day_key == "2026-02-16"
        assert result.model_version == constants.MODEL_VERSION

    def test_clear_sky_warms_relative_to_overcast(self):
        """Test that clear skies produce a warmer estimate than overcast."""
        overcast = WaterTempEstimator(store=WaterTempStore(InMemoryStore())).estimate(
            make_context(february_payload(98), TUPELO, "pond"), FEB_16_NOON
        )
        clear = WaterTempEstimator(store=WaterTempStore(InMemoryStore())).estimate(
            make_context(february_payload(15), TUPELO, "pond"), FEB_16_NOON
        )

        assert clear.final > overcast.final
        assert clear.breakdown_terms["solar"] > overcast.breakdown_terms["solar"]

    def test_terms_sum_to_final(self, estimator):
        """Test that the breakdown reconstructs the final value."""
        result = estimator.estimate(make_context(february_payload(60), TUPELO, "pond"), FEB_16_NOON)

        expected_keys = {
            "seasonal_base", "data_blend", "crowd_blend", "solar", "air", "wind",
            "evaporation", "trend", "cold_season_pond", "guardrail", "observed",
            "bounds", "continuity",
        }
        assert set(result.breakdown_terms) == expected_keys
        assert sum(result.breakdown_terms.values()) == pytest.approx(result.final, abs=0.05)

    def test_result_within_physical_bounds(self, estimator):
        """Test that the estimate always lies within freezing and 95°F."""
        payload = july_payload()
        payload["daily"]["temperature_2m_mean"] = [118] * 7
        result = estimator.estimate(make_context(payload, ATLANTA, "pond"), JUL_15_NOON, persist=False)

        assert constants.MIN_WATER_TEMP_F <= result.final <= constants.MAX_WATER_TEMP_F

    def test_repeated_runs_are_deterministic(self, estimator):
        """Test that the same inputs without persistence give the same output."""
        context = make_context(february_payload(60), TUPELO, "lake")
        first = estimator.estimate(context, FEB_16_NOON, persist=False)
        second = estimator.estimate(context, FEB_16_NOON, persist=False)

        assert first.final == second.final
        assert first.breakdown_terms == second.breakdown_terms

    def test_observed_reading_pulls_estimate(self, estimator, store):
        """Test the recency-weighted, clamped pull toward a fresh observed reading."""
        store.set_observed(
            TUPELO, "pond", ObservedReading(56.8, datetime(2026, 2, 16, 10, tzinfo=pytz.UTC), "pond")
        )

        result = estimator.estimate(make_context(february_payload(98), TUPELO, "pond"), FEB_16_NOON)

        # Offset is clamped to 6°F, then weighted by 1 - 2h/60h
        assert result.breakdown_terms["observed"] == pytest.approx(6 * (1 - 2 / 60))
        assert result.final == pytest.approx(55.0, abs=0.1)
        assert result.weather_signals["observed_age_hours"] == pytest.approx(2.0)

    def test_observed_reading_of_other_type_is_ignored(self, estimator, store):
        """Test that a lake reading never calibrates a pond estimate."""
        baseline = WaterTempEstimator(store=WaterTempStore(InMemoryStore())).estimate(
            make_context(february_payload(98), TUPELO, "pond"), FEB_16_NOON
        )
        store.set_observed(
            TUPELO, "pond", ObservedReading(56.8, datetime(2026, 2, 16, 10, tzinfo=pytz.UTC), "lake")
        )

        result = estimator.estimate(make_context(february_payload(98), TUPELO, "pond"), FEB_16_NOON)

        assert result.breakdown_terms["observed"] == 0.0
        assert result.final == baseline.final

    def test_stale_observed_reading_is_ignored(self, estimator, store):
        """Test that readings older than the calibration window have no effect."""
        store.set_observed(
            TUPELO, "pond", ObservedReading(56.8, FEB_16_NOON - timedelta(hours=80), "pond")
        )
        result = estimator.estimate(make_context(february_payload(98), TUPELO, "pond"), FEB_16_NOON)
        assert result.breakdown_terms["observed"] == 0.0

    def test_same_day_memo_limits_change(self, estimator, store):
        """Test the day continuity clamp against a same-day memo."""
        store.set_memo(ATLANTA, "lake", MemoEntry(60.0, "2026-07-15", constants.MODEL_VERSION))

        result = estimator.estimate(make_context(july_payload(), ATLANTA, "lake"), JUL_15_NOON)

        assert result.final == 62.0
        assert result.clamps_applied == ["day_continuity"]
        assert result.weather_signals["memo_temp"] == 60.0

    def test_trusted_reports_relax_continuity_clamp(self, estimator, store):
        """Test that two nearby same-type reports double the continuity limit."""
        store.set_memo(ATLANTA, "lake", MemoEntry(60.0, "2026-07-15", constants.MODEL_VERSION))
        for offset in (0.01, -0.02):
            store.add_report(CrowdReport(
                latitude=ATLANTA.lat + offset,
                longitude=ATLANTA.lon,
                timestamp=JUL_15_NOON - timedelta(days=1),
                temperature=95.0,
                water_body="lake",
            ))

        result = estimator.estimate(make_context(july_payload(), ATLANTA, "lake"), JUL_15_NOON)

        assert result.final == 64.0
        assert "day_continuity_relaxed" in result.clamps_applied
        assert result.weather_signals["crowd_reports"] == 2

    @pytest.mark.parametrize("memo", [
        MemoEntry(60.0, "2026-07-14", constants.MODEL_VERSION),
        MemoEntry(60.0, "2026-07-15", "1.0.0"),
    ])
    def test_memo_from_other_day_or_version_is_ignored(self, estimator, store, memo):
        """Test that only a same-day, same-version memo constrains the estimate."""
        store.set_memo(ATLANTA, "lake", memo)
        result = estimator.estimate(make_context(july_payload(), ATLANTA, "lake"), JUL_15_NOON)
        assert "day_continuity" not in result.clamps_applied
        assert result.breakdown_terms["continuity"] == 0.0

    def test_estimate_persists_memo(self, estimator, store):
        """Test that the final value is written back as today's memo."""
        result = estimator.estimate(make_context(february_payload(60), TUPELO, "pond"), FEB_16_NOON)

        memo = store.get_memo(TUPELO, "pond")
        assert memo == MemoEntry(result.final, "2026-02-16", constants.MODEL_VERSION)

    def test_estimate_without_persist_leaves_store_untouched(self, estimator, store):
        """Test that explain-style runs do not write the memo."""
        estimator.estimate(make_context(february_payload(60), TUPELO, "pond"), FEB_16_NOON, persist=False)
        assert store.get_memo(TUPELO, "pond") is None

    def test_trace_records_fields_read(self, estimator):
        """Test that a traced run lists every payload path it read."""
        context = make_context(february_payload(60), TUPELO, "pond")

        traced = estimator.estimate(context, FEB_16_NOON, persist=False, trace=True)
        untraced = estimator.estimate(context, FEB_16_NOON, persist=False)

        assert "historical.daily.temperature_2m_mean" in traced.fields_read
        assert "historical.daily.cloud_cover_mean" in traced.fields_read
        assert traced.fields_read == sorted(traced.fields_read)
        assert untraced.fields_read == []
        assert traced.final == untraced.final

    def test_missing_coordinates_raise(self, estimator):
        """Test that a context without coordinates is rejected."""
        context = ContextNormalizer().normalize(february_payload(60), water_type="pond")
        with pytest.raises(ValueError):
            estimator.estimate(context, FEB_16_NOON)

    def test_cold_season_guardrail(self, tmp_path):
        """Test the guardrail cap for live cold-season pond payloads."""
        config_file = tmp_path / "config.json"
        config_file.write_text('{"guardrail": {"cold_season_enabled": true}}')
        estimator = WaterTempEstimator(config=Config(str(config_file)))

        payload = {"meta": {"source": "LIVE"}, "historical": february_payload(60)}
        live = make_context(payload, TUPELO, "pond")
        recorded = make_context(february_payload(60), TUPELO, "pond")
        air = [50] * 7
        day_of_year = 47

        assert estimator._apply_guardrail(70.0, live, get_profile("pond"), day_of_year, air) == 53.0
        assert estimator._apply_guardrail(70.0, recorded, get_profile("pond"), day_of_year, air) == 70.0
        assert estimator._apply_guardrail(70.0, live, get_profile("lake"), day_of_year, air) == 70.0

    def test_metric_payload_matches_imperial(self):
        """Test that equivalent °C/km/h and °F/mph payloads give the same estimate."""
        imperial = february_payload(60)
        metric = february_payload(60)
        metric["meta"] = {"units": {"temp": "C", "wind": "km/h"}}
        daily = metric["daily"]
        daily["temperature_2m_mean"] = [(t - 32) * 5 / 9 for t in daily["temperature_2m_mean"]]
        daily["wind_speed_10m_mean"] = [w * 1.609344 for w in daily["wind_speed_10m_mean"]]

        fahrenheit = WaterTempEstimator(store=WaterTempStore(InMemoryStore())).estimate(
            make_context(imperial, TUPELO, "pond"), FEB_16_NOON
        )
        celsius = WaterTempEstimator(store=WaterTempStore(InMemoryStore())).estimate(
            make_context(metric, TUPELO, "pond"), FEB_16_NOON
        )

        assert celsius.final == pytest.approx(fahrenheit.final, abs=0.2)

    @pytest.mark.parametrize("humidity,wind,weather_code,precipitation", [
        (0, 0, 0, 0),
        (100, 150, 99, 4.0),
        (-20, 500, 95, 30.0),
        (None, float("nan"), None, float("inf")),
    ])
    def test_extreme_weather_stays_bounded(self, estimator, humidity, wind, weather_code, precipitation):
        """Test that adversarial current conditions never escape the physical bounds."""
        payload = {
            "historical": february_payload(60),
            "forecast": {
                "current": {
                    "relative_humidity_2m": humidity,
                    "precipitation": precipitation,
                    "weather_code": weather_code,
                },
                "hourly": {
                    "time": [f"2026-02-16T{hour:02d}:00" for hour in range(13)],
                    "surface_pressure": [1030 - 6 * hour for hour in range(13)],
                },
            },
        }
        payload["historical"]["daily"]["wind_speed_10m_max"] = [wind] * 7

        result = estimator.estimate(make_context(payload, TUPELO, "pond"), FEB_16_NOON, persist=False)

        assert math.isfinite(result.final)
        assert constants.MIN_WATER_TEMP_F <= result.final <= constants.MAX_WATER_TEMP_F
        assert all(math.isfinite(value) for value in result.breakdown_terms.values())
