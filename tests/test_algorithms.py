"""
Tests for the physics building blocks.

Tests the seasonal baseline, the per-term weather forcing, field-data
calibration and the depth profile in isolation.
"""

import math
from datetime import date, datetime, timedelta

import pytest
import pytz

from src.water_temperature.algorithms import Calibrator, DepthProfile, ForcingModel, SeasonalModel
from src.water_temperature.models import Coordinates, CrowdReport, ObservedReading, get_profile


NOW = datetime(2026, 2, 16, 12, 0, tzinfo=pytz.UTC)


class TestSeasonalModel:
    """Test cases for the seasonal baseline."""

    def test_day_distance_wraps_year_end(self):
        """Test that season windows wrap around New Year."""
        assert SeasonalModel.day_distance(360, 10) == pytest.approx(15)
        assert SeasonalModel.triangular_window(15, 15, 95) == 1.0
        assert SeasonalModel.triangular_window(200, 15, 95) == 0.0

    def test_annual_mean_falls_off_with_latitude(self):
        """Test the latitude dependence of the annual mean."""
        assert SeasonalModel.annual_mean(30) == pytest.approx(77.5)
        assert SeasonalModel.annual_mean(40) == pytest.approx(71.5)
        assert SeasonalModel.annual_mean(20) == pytest.approx(71.5)

    def test_harmonic_peak_lags_midsummer(self):
        """Test that the pond harmonic peaks at its lagged peak day."""
        pond = get_profile("pond")
        assert SeasonalModel.harmonic_base(30, 220, pond) == pytest.approx(101.5)
        assert SeasonalModel.harmonic_base(30, 220, pond) > SeasonalModel.harmonic_base(30, 180, pond)

    def test_deep_water_winter_cooling(self):
        """Test extra winter cooling for bodies deeper than a pond."""
        pond = get_profile("pond")
        lake = get_profile("lake")

        assert SeasonalModel.cold_season_cooling(20, pond) == 0.0
        assert SeasonalModel.cold_season_cooling(20, lake) > 0.0
        assert SeasonalModel.cold_season_cooling(200, lake) == 0.0
        assert (
            SeasonalModel.cold_season_cooling(20, get_profile("reservoir"))
            > SeasonalModel.cold_season_cooling(20, lake)
        )

    def test_blend_without_air_keeps_prior(self):
        """Test that a missing air history leaves the prior unchanged."""
        blend = SeasonalModel.blend_with_air(51.0, [None, float("nan")], get_profile("pond"))
        assert blend.value == 51.0
        assert blend.weight == 0.0
        assert blend.target is None

    def test_blend_weight_never_exceeds_cap(self):
        """Test that the baseline never fully discards the prior."""
        blend = SeasonalModel.blend_with_air(50.0, [70.0] * 30, get_profile("lake"))
        assert blend.weight == pytest.approx(0.55)
        assert blend.value == pytest.approx(50.0 + 0.55 * 20.0)

    def test_blend_weight_scales_with_samples(self):
        """Test the partial blend with a short air history."""
        blend = SeasonalModel.blend_with_air(51.27, [49, 50, 51, 52, 53, 54, 55], get_profile("pond"))
        assert blend.samples == 7
        assert blend.weight == pytest.approx(0.385)
        assert blend.target == pytest.approx(52.5)


class TestForcingModel:
    """Test cases for the weather forcing terms."""

    @pytest.fixture
    def pond(self):
        return get_profile("pond")

    @pytest.fixture
    def lake(self):
        return get_profile("lake")

    def test_air_influence_recency_weighting(self, pond):
        """Test the recency-weighted air mean and trend."""
        air = ForcingModel.air_influence([49, 50, 51, 52, 53, 54, 55], pond)

        assert air.samples == 5
        assert air.trend == pytest.approx(1.0)
        assert air.average == pytest.approx(53.9, abs=0.01)

    def test_air_influence_without_history(self, pond):
        """Test that no air history yields no air effect."""
        air = ForcingModel.air_influence([None, None], pond)
        assert air.average is None
        assert ForcingModel.air_effect(pond, 50.0, air.average) == 0.0

    def test_air_effect_follows_gap_sign(self, pond):
        """Test that water is pulled toward air from either side."""
        assert ForcingModel.air_effect(pond, 60.0, 70.0) > 0
        assert ForcingModel.air_effect(pond, 60.0, 50.0) < 0
        assert ForcingModel.thermal_inertia(pond, 60.0, 50.0) > 0

    def test_insolation_factor_bounds(self):
        """Test the clamped insolation factor."""
        for latitude in (-60, 0, 34.2, 65):
            for day in (1, 172, 355):
                assert 0.3 <= ForcingModel.insolation_factor(latitude, day) <= 1.3

    def test_normal_cloud_cover_by_month(self):
        """Test the monthly cloud climatology lookup."""
        assert ForcingModel.normal_cloud_cover(15) == 55
        assert ForcingModel.normal_cloud_cover(47) == 52
        assert ForcingModel.normal_cloud_cover(365) == 52

    def test_solar_deviation_never_negative(self, pond):
        """Test that cloudier-than-normal weeks do not cool through the solar term."""
        assert ForcingModel.solar_deviation(34.26, 47, [98] * 7, pond) == 0.0
        assert ForcingModel.solar_deviation(34.26, 47, [], pond) == 0.0
        assert ForcingModel.solar_deviation(34.26, 47, [15] * 7, pond) == pytest.approx(2.84, abs=0.02)

    def test_wind_estimate_fallbacks(self, pond):
        """Test the mean, max and calm wind fallbacks."""
        from_mean = ForcingModel.wind_estimate(pond, mean_winds=[6, 6, 6, 7, 7, 6, 6])
        assert from_mean.source == "mean"
        assert from_mean.effective_mph == pytest.approx(44 / 7 * 0.68)

        from_max = ForcingModel.wind_estimate(pond, max_winds=[20, 20])
        assert from_max.source == "max"
        assert from_max.base_mph == pytest.approx(12.0)

        calm = ForcingModel.wind_estimate(pond)
        assert calm.source == "default"
        assert calm.effective_mph == 0.0

    def test_wind_boosts_are_capped(self, lake):
        """Test the pressure and storm boost caps."""
        wind = ForcingModel.wind_estimate(
            lake, mean_winds=[10], pressure_slope=-25.0, precipitation_in=4.0, weather_code=95
        )
        assert wind.pressure_boost_mph == 2.0
        assert wind.storm_boost_mph == 3.0
        assert wind.effective_mph == pytest.approx(8.0 + 2.0 + 3.0)

    def test_pressure_slope(self):
        """Test the pressure tendency in hPa/day."""
        assert ForcingModel.pressure_slope([1010, 1012, 1014], 1.0) == pytest.approx(2.0)
        assert ForcingModel.pressure_slope([1010, 1011], 1 / 24) == pytest.approx(24.0)
        assert ForcingModel.pressure_slope([1010], 1.0) == 0.0

    def test_wind_mixing_effect(self, lake):
        """Test mixing toward air only above the wind threshold and gap."""
        assert ForcingModel.wind_mixing_effect(6.0, lake, 80.0, 60.0) == 0.0
        assert ForcingModel.wind_mixing_effect(12.0, lake, 80.0, 60.0) == pytest.approx(-1.6)
        assert ForcingModel.wind_mixing_effect(30.0, lake, 80.0, 60.0) == -3.0
        assert ForcingModel.wind_mixing_effect(30.0, lake, 60.0, 80.0) == 2.0
        assert ForcingModel.wind_mixing_effect(30.0, lake, 60.0, 62.0) == 0.0
        assert ForcingModel.wind_mixing_effect(30.0, lake, 60.0, None) == 0.0

    def test_evaporative_cooling(self, pond, lake):
        """Test the evaporative cooling sign and cap."""
        assert ForcingModel.evaporative_cooling(100, 20, lake) == 0.0
        assert ForcingModel.evaporative_cooling(None, 4.27, pond) == pytest.approx(-0.35 * 4.27 * 0.12 * 0.85)
        assert ForcingModel.evaporative_cooling(0, 100, lake) == -1.5

    @pytest.mark.parametrize("trend,expected", [
        (0.0, 0.0),
        (0.25, 0.03125),
        (1.0, 0.375),
        (-1.0, -0.375),
        (20.0, 2.0),
    ])
    def test_trend_effect(self, trend, expected):
        """Test the smoothed trend kicker."""
        assert ForcingModel.trend_effect(trend) == pytest.approx(expected)

    def test_trend_effect_is_continuous_at_knee(self):
        """Test that both ramp branches meet at the knee."""
        assert ForcingModel.trend_effect(0.4999999) == pytest.approx(ForcingModel.trend_effect(0.5), abs=1e-6)

    def test_cold_season_pond_correction(self, pond, lake):
        """Test the cold, overcast late-winter pond correction."""
        correction = ForcingModel.cold_season_pond_correction(pond, 47, 98, 51.74, 53.9)
        assert correction == pytest.approx(-4 * (1 - 28 / 110) * 0.95, abs=0.01)

        assert ForcingModel.cold_season_pond_correction(lake, 47, 98, 51.74, 53.9) == 0.0
        assert ForcingModel.cold_season_pond_correction(pond, 200, 98, 80.0, 70.0) == 0.0
        assert ForcingModel.cold_season_pond_correction(pond, 20, 100, 60.0, 40.0) == -4.0

    def test_longwave_loss_decreases_with_cloud(self):
        """Test that more cloud never increases the longwave loss."""
        losses = [ForcingModel.longwave_loss(cloud) for cloud in range(0, 101, 10)]
        assert all(later <= earlier for earlier, later in zip(losses, losses[1:]))
        assert ForcingModel.longwave_loss(None) == pytest.approx(0.22)
        assert ForcingModel.longwave_loss(100) == pytest.approx(0.22 * 0.45)
        assert ForcingModel.longwave_loss(50, longwave_factor=2.0) == pytest.approx(2 * ForcingModel.longwave_loss(50))


class TestCalibrator:
    """Test cases for field-data calibration."""

    @pytest.fixture
    def calibrator(self):
        """Create calibrator instance."""
        return Calibrator()

    @pytest.fixture
    def coords(self):
        return Coordinates(34.2576, -88.7034)

    def report(self, temperature, hours_ago=1.0, water_body="lake", lat=34.2576, lon=-88.7034):
        return CrowdReport(lat, lon, NOW - timedelta(hours=hours_ago), temperature, water_body)

    def test_haversine_one_degree_latitude(self):
        """Test the great-circle distance."""
        assert Calibrator.haversine_miles(34.0, -88.0, 35.0, -88.0) == pytest.approx(69.1, abs=0.1)
        assert Calibrator.haversine_miles(34.0, -88.0, 34.0, -88.0) == 0.0

    def test_crowd_blend_without_reports(self, calibrator, coords):
        """Test that no nearby reports leave the baseline unchanged."""
        blend = calibrator.crowd_blend(60.0, [], coords, "lake", NOW)
        assert not blend.applied
        assert blend.value == 60.0

    def test_crowd_blend_single_report(self, calibrator, coords):
        """Test the per-report blend factor."""
        blend = calibrator.crowd_blend(60.0, [self.report(70.0)], coords, "lake", NOW)
        assert blend.applied
        assert blend.blend_factor == pytest.approx(0.15)
        assert blend.value == pytest.approx(61.5)

    def test_crowd_blend_filters_distance_and_age(self, calibrator, coords):
        """Test that far and stale reports are ignored."""
        far = self.report(90.0, lat=35.5)
        stale = self.report(90.0, hours_ago=24 * 9)
        blend = calibrator.crowd_blend(60.0, [far, stale], coords, "lake", NOW)
        assert not blend.applied

    def test_crowd_blend_factor_is_capped(self, calibrator, coords):
        """Test the maximum share of user data."""
        reports = [self.report(70.0) for _ in range(10)]
        blend = calibrator.crowd_blend(60.0, reports, coords, "lake", NOW)
        assert blend.blend_factor == pytest.approx(0.86)

    def test_trusted_floor(self, calibrator, coords):
        """Test the trusted-report blend floor."""
        reports = [self.report(52.0, water_body="Pond"), self.report(54.0, water_body="POND")]
        without_floor = calibrator.crowd_blend(58.0, reports, coords, "pond", NOW)
        with_floor = calibrator.crowd_blend(58.0, reports, coords, "pond", NOW, trusted_floor_enabled=True)

        assert without_floor.blend_factor == pytest.approx(0.30)
        assert with_floor.blend_factor == pytest.approx(0.58)
        assert with_floor.value < without_floor.value

    def test_observed_offset(self, calibrator):
        """Test the decaying, clamped observed-reading offset."""
        reading = ObservedReading(60.0, NOW - timedelta(hours=2), "pond")
        calibration = calibrator.observed_offset(reading, 50.0, "pond", NOW)

        assert calibration.applied
        assert calibration.age_hours == pytest.approx(2.0)
        assert calibration.offset == pytest.approx(6.0 * (1 - 2 / 60))

    def test_observed_offset_ignored(self, calibrator):
        """Test readings that must not move the estimate."""
        other_type = ObservedReading(60.0, NOW - timedelta(hours=2), "lake")
        too_old = ObservedReading(60.0, NOW - timedelta(hours=80), "pond")
        decayed = ObservedReading(60.0, NOW - timedelta(hours=60), "pond")

        assert calibrator.observed_offset(None, 50.0, "pond", NOW).offset == 0.0
        assert calibrator.observed_offset(other_type, 50.0, "pond", NOW).offset == 0.0
        assert calibrator.observed_offset(too_old, 50.0, "pond", NOW).offset == 0.0
        assert not calibrator.observed_offset(decayed, 50.0, "pond", NOW).applied

    def test_anchor_offset_half_life(self):
        """Test the recency-weighted anchor offset."""
        assert Calibrator.anchor_offset(55.0, 53.0, 0.0) == pytest.approx(2.0)
        assert Calibrator.anchor_offset(55.0, 53.0, 8.0) == pytest.approx(1.0)
        assert Calibrator.anchor_offset(70.0, 53.0, 0.0) == pytest.approx(6.0)
        assert Calibrator.anchor_offset(55.0, 53.0, 16.5) == 0.0
        assert Calibrator.anchor_offset(55.0, 53.0, -1.0) == 0.0


class TestDepthProfile:
    """Test cases for the depth profile."""

    @pytest.fixture
    def lake(self):
        return get_profile("lake")

    def test_surface_depth_returns_surface(self, lake):
        """Test that depth 0 is the surface value."""
        assert DepthProfile.temperature_at_depth(81.3, lake, 0, date(2026, 7, 1)) == 81.3

    def test_summer_stratification(self, lake):
        """Test the epilimnion, thermocline and deep layers."""
        july = date(2026, 7, 15)
        assert DepthProfile.temperature_at_depth(85.0, lake, 10, july) == pytest.approx(80.0)
        assert DepthProfile.temperature_at_depth(85.0, lake, 20, july) == pytest.approx(67.5)
        assert DepthProfile.temperature_at_depth(85.0, lake, 30, july) == 50.0

    def test_turnover_gradient(self, lake):
        """Test the uniform spring and fall gradient."""
        assert DepthProfile.temperature_at_depth(60.0, lake, 20, 4) == pytest.approx(54.0)
        assert DepthProfile.temperature_at_depth(60.0, lake, 20, 10) == pytest.approx(54.0)

    def test_winter_inverse_stratification(self, lake):
        """Test the winter regime under a near-freezing surface."""
        assert DepthProfile.temperature_at_depth(34.0, lake, 3, 1) == 34.0
        assert DepthProfile.temperature_at_depth(34.0, lake, 10, 1) == 39.0
        assert DepthProfile.temperature_at_depth(45.0, lake, 10, 1) == pytest.approx(43.0)

    def test_never_below_freezing(self, lake):
        """Test the lower physical bound."""
        assert DepthProfile.temperature_at_depth(35.0, lake, 30, 4) == 32.0

    def test_surface_held_to_physical_bounds(self, lake):
        """Test that an out-of-range surface cannot produce out-of-range depths."""
        assert DepthProfile.temperature_at_depth(140.0, lake, 0, 1) == 95.0
        assert DepthProfile.temperature_at_depth(140.0, lake, 5, 1) <= 95.0
        assert DepthProfile.temperature_at_depth(10.0, lake, 5, 7) == 32.0

    def test_profile_temps(self, lake):
        """Test the standard depth profile."""
        profile = DepthProfile.profile_temps(85.0, lake, date(2026, 7, 15))
        assert [row["depth"] for row in profile] == [0, 5, 10, 15, 20, 25, 30]
        assert profile[0]["temperature"] == 85.0
        temps = [row["temperature"] for row in profile]
        assert all(later <= earlier for earlier, later in zip(temps, temps[1:]))
        assert not any(math.isnan(t) for t in temps)
