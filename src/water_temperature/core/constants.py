"""
Application-wide constants for water temperature estimation.

This module defines default values, physical bounds and tuning constants used
throughout the engine. Heuristic thresholds used by the unit-detection boundary
are kept here as well so they can be reviewed in one place.
"""

# Model identity
# Memo entries written by a different model version are ignored
MODEL_VERSION = "2.3.0"

# Physical bounds for surface water (°F)
MIN_WATER_TEMP_F = 32.0
MAX_WATER_TEMP_F = 95.0

# Defaults for missing weather inputs
DEFAULT_HUMIDITY_PCT = 65.0
DEFAULT_WIND_MPH = 0.0
DEFAULT_TIMEZONE = "UTC"
DEFAULT_SOURCE = "UNKNOWN"

# Canonical units after normalization
CANONICAL_UNITS = {
    "temp": "F",
    "wind": "mph",
    "precip": "in",
    "pressure": "hPa",
}

# Unit detection heuristics
# A Celsius-hinted temperature series with any value above this is assumed to be
# Fahrenheit already (no surface air temperature reaches 50°C)
CELSIUS_PLAUSIBLE_MAX = 50.0
# An hPa-hinted pressure outside this band is assumed to be kPa
HPA_PLAUSIBLE_RANGE = (850.0, 1090.0)

# Seasonal baseline
ANNUAL_MEAN_BASE_F = 77.5
ANNUAL_MEAN_LAT_REF = 30.0
ANNUAL_MEAN_LAT_SLOPE = 0.6
SEASONAL_PEAK_DAY = 210
DAYS_PER_YEAR = 365.0
POND_REFERENCE_DEPTH_FT = 8.0
WINTER_CENTER_DAY = 15
WINTER_HALF_WIDTH_DAYS = 95
SHOULDER_CENTER_DAY = 75
SHOULDER_HALF_WIDTH_DAYS = 110
WINTER_COOLING_F = 7.0
SHOULDER_COOLING_F = 3.0

# Data-driven baseline blend
BASELINE_WINDOW_MIN_DAYS = 4
BASELINE_WINDOW_MAX_DAYS = 10
BASELINE_MAX_BLEND = 0.55
BASELINE_WATER_OFFSET_F = {
    "pond": 0.5,
    "lake": 0.0,
    "reservoir": -0.5,
}

# Solar deviation
NORMAL_CLOUD_BY_MONTH = [55, 52, 50, 45, 40, 35, 35, 35, 38, 42, 48, 52]
SOLAR_CLOUD_COEF = 0.08
SOLAR_DECLINATION_DEG = 23.44
SOLAR_DECLINATION_OFFSET_DAY = 81
INSOLATION_FACTOR_RANGE = (0.3, 1.3)
SOLAR_SENSITIVITY = {
    "pond": 1.0,
    "lake": 0.8,
    "reservoir": 0.65,
}
SOLAR_CLOUD_WINDOW_DAYS = 7

# Air coupling
THERMAL_INERTIA_BASE = {
    "pond": 0.15,
    "lake": 0.08,
    "reservoir": 0.05,
}
THERMAL_INERTIA_SCALE_F = 15.0
AIR_HALF_LIFE_FRACTION = 0.4

# Wind mixing
WIND_MIXING_GAP_F = 5.0
WIND_COOLING_RATE = -0.4
WIND_COOLING_CAP = -3.0
WIND_WARMING_RATE = 0.2
WIND_WARMING_CAP = 2.0
WIND_WINDOW_DAYS = 7
GUST_TO_MEAN_RATIO = 0.6
PRESSURE_BOOST_PER_HPA_DAY = 0.3
PRESSURE_BOOST_CAP_MPH = 2.0
STORM_PRECIP_MPH_PER_INCH = 3.0
STORM_THUNDER_BOOST_MPH = 2.0
STORM_BOOST_CAP_MPH = 3.0
THUNDERSTORM_CODE_MIN = 95

# Evaporative cooling
EVAP_RATE = 0.12
EVAP_CAP_F = 1.5

# Trend kicker
TREND_RAMP_KNEE = 0.5
TREND_CAP_F_PER_DAY = 4.0
TREND_EFFECT_SCALE = 0.5

# Cold-season pond correction
COLD_SEASON_POND_RATE = 4.0
COLD_SEASON_POND_CAP_F = 4.0
OVERCAST_SIGNAL_START_PCT = 60.0
OVERCAST_SIGNAL_SPAN_PCT = 40.0
COOL_AIR_SIGNAL_SPAN_F = 10.0
COLD_SEASON_GUARDRAIL_MARGIN_F = 3.0

# Observed reading calibration
OBSERVED_MAX_AGE_HOURS = 72.0
OBSERVED_DECAY_HOURS = 60.0
OBSERVED_MAX_OFFSET_F = 6.0
ANCHOR_HALF_LIFE_HOURS = 8.0
ANCHOR_MAX_AGE_HOURS = 16.0

# Crowd reports
EARTH_RADIUS_MILES = 3959.0
REPORT_RADIUS_MILES = 25.0
REPORT_DAYS_BACK = 7
REPORT_HALF_LIFE_DAYS = 3.0
REPORT_TYPE_MATCH_WEIGHT = 1.5
REPORT_BLEND_PER_REPORT = 0.15
REPORT_BLEND_MAX = 0.86
TRUSTED_BLEND_FLOOR = 0.58
TRUSTED_REPORT_RADIUS_MILES = 6.0
TRUSTED_REPORT_MAX_AGE_HOURS = 30.0
TRUSTED_REPORT_MIN_COUNT = 2

# Day-continuity clamp relaxation
RELAXED_CLAMP_RADIUS_MILES = 20.0
RELAXED_CLAMP_DAYS = 7
RELAXED_CLAMP_MULTIPLIER = 2.0

# Multi-day projection
PROJECTION_CLOUD_TAIL_DAYS = 6
PROJECTION_WIND_SCALE = 0.5
PROJECTION_EVAP_SCALE = 0.5
PROJECTION_TREND_GAIN = 0.3
PROJECTION_GUST_STRESS = 0.15
PROJECTION_TREND_LIMIT = {
    "pond": 1.5,
    "lake": 1.0,
    "reservoir": 0.7,
}
PROJECTION_REVERSION_START_DAY = 4
PROJECTION_REVERSION_STEP = 0.05
PROJECTION_REVERSION_MAX = 0.25
SYNOPTIC_AIR_JUMP_SPAN_F = 12.0
SYNOPTIC_WIND_START_MPH = 10.0
SYNOPTIC_WIND_SPAN_MPH = 20.0
SYNOPTIC_PRECIP_SPAN_IN = 1.2
SYNOPTIC_WEIGHTS = (0.55, 0.25, 0.2)
RESERVOIR_REVERSAL_ALLOWANCE_F = 0.25
RESERVOIR_MIN_RESPONSE_F = 0.2
RESERVOIR_RESPONSE_GAIN = 1.5

# Intraday disaggregation
DEFAULT_SUNRISE_HOUR = 7.0
DEFAULT_SUNSET_HOUR = 17.0
DAYLIGHT_PHASE_STRETCH = 1.6
INTRADAY_SOLAR_GAIN = {
    "pond": 0.12,
    "lake": 0.07,
    "reservoir": 0.05,
}
INTRADAY_AIR_COUPLING = {
    "pond": 0.12,
    "lake": 0.07,
    "reservoir": 0.05,
}
INTRADAY_SHORTWAVE_COUPLING = {
    "pond": 1.0,
    "lake": 0.6,
    "reservoir": 0.4,
}
INTRADAY_ADJUSTMENT_LIMIT = {
    "pond": 3.0,
    "lake": 2.0,
    "reservoir": 1.4,
}
INTRADAY_HOT_BRIGHT_CALM_LIMIT = 7.0
INTRADAY_COLD_SEASON_WARM_CAP = {
    "pond": 2.0,
    "lake": 1.2,
    "reservoir": 0.8,
}
INTRADAY_COLD_SEASON_SURFACE_F = 60.0
INTRADAY_COLD_SEASON_MONTHS = (11, 12, 1, 2, 3)
INTRADAY_COLD_SEASON_CLEAR_FLOOR = 0.15
SHORTWAVE_ANOMALY_SCALE = 350.0
SHORTWAVE_ANOMALY_CAP = 1.2
CLOUD_DAMPING_MAX = 0.6
WIND_DAMPING_MAX = 0.5
WIND_DAMPING_CALM_MPH = 3.0
WIND_DAMPING_SPAN_MPH = 10.0
POND_MORNING_WINDOW_HOURS = 3.0
POND_MORNING_OVERCAST_COOLING_F = 0.4
POND_MORNING_WIND_COOLING_F = 0.3
WINDY_SIGNAL_START_MPH = 8.0
WINDY_SIGNAL_SPAN_MPH = 10.0
HOT_AIR_THRESHOLD_F = 80.0
BRIGHT_CLOUD_MAX_PCT = 30.0
CALM_WIND_MAX_MPH = 6.0

# Longwave loss (energy-balance regression term)
LONGWAVE_CLEAR_COEFF = 0.22
LONGWAVE_CLOUD_REDUCTION_MAX = 0.55

# Depth profile
PROFILE_DEPTHS_FT = [0, 5, 10, 15, 20, 25, 30]
THERMOCLINE_THICKNESS_FT = 10.0
SUMMER_EPILIMNION_RATE = 0.5
SUMMER_THERMOCLINE_RATE = 2.0
TURNOVER_RATE = 0.3
WINTER_RATE = 0.2
WINTER_ICE_SURFACE_F = 35.0
WINTER_DENSE_WATER_F = 39.0
WINTER_SHALLOW_DEPTH_FT = 5.0

# Storage key formats
MEMO_KEY_PREFIX = "water_temp_memo_"
OBSERVED_KEY_PREFIX = "water_temp_observed_"
REPORTS_KEY = "water_temp_reports"
