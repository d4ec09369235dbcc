"""
Configuration settings for the PowerPredict household forecasting engine.

Contains API endpoints, tariff and weather constants, static fallback tables
and the device catalog used for the consumption breakdown.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

# ============================================================================
# API CONFIGURATION
# ============================================================================

# Open-Meteo forecast API (no key required)
OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"
OPEN_METEO_HOURLY_FIELDS = [
    'temperature_2m',
    'relative_humidity_2m',
    'apparent_temperature',
    'precipitation',
]
WEATHER_PAST_DAYS = 5
WEATHER_FORECAST_DAYS = 7

# Fallback coordinates (Lisbon) when no location is configured
FALLBACK_LAT = 38.7223
FALLBACK_LON = -9.1393

# REN Datahub - Portuguese TSO, national monthly consumption (GWh)
REN_BASE_URL = "https://servicebus.ren.pt/datahubapi/electricity"
REN_CONSUMPTION_ENDPOINT = "/ElectricityConsumptionVariationYearly"
REN_CULTURE = "en-US"

MONTH_INDEX = {
    'January': 1, 'February': 2, 'March': 3, 'April': 4,
    'May': 5, 'June': 6, 'July': 7, 'August': 8,
    'September': 9, 'October': 10, 'November': 11, 'December': 12,
}

# HTTP behaviour
REQUEST_TIMEOUT = 15  # seconds
REQUEST_DELAY = 0.5  # Seconds between REN requests

# ============================================================================
# DATA PARAMETERS
# ============================================================================

# Readings are bucketed by the local calendar date in this timezone
HOUSEHOLD_TIMEZONE = "Europe/Lisbon"

# Hours whose weather is averaged into a day's temperature/humidity
DAYTIME_HOURS = (7, 21)

# Horizon sizes
FORECAST_DAYS = 7
HOURS_PER_DAY = 24
TREND_WINDOW_DAYS = 7

# ============================================================================
# FILE PATHS
# ============================================================================

DATA_DIR = "data"
RAW_DATA_DIR = f"{DATA_DIR}/raw"

DEFAULT_HISTORY_FILE = f"{DATA_DIR}/raw_history.json"
DEFAULT_WEATHER_FILE = f"{RAW_DATA_DIR}/weather_snapshot.json"
DEFAULT_GRID_FILE = f"{RAW_DATA_DIR}/national_grid.json"

# ============================================================================
# MODEL CONSTANTS
# ============================================================================

# Two-rate tariff (currency units per kWh)
OFF_PEAK_RATE = 0.10
PEAK_RATE = 0.22
PEAK_START_HOUR = 8  # hours 0-7 off-peak, 8-23 peak

# Thermal factor: 1 + |apparent - comfort| * coefficient
COMFORT_TEMPERATURE_C = 18.0
THERMAL_COEFFICIENT = 0.02

# Condition factor ladder, checked top-down, first match wins
PRECIPITATION_STEPS = (
    (15.0, 1.08),
    (5.0, 1.05),
    (1.0, 1.03),
)
HUMIDITY_THRESHOLD_PCT = 80.0
HUMIDITY_FACTOR = 1.02

# Confidence interval and horizon confidence
INTERVAL_STD_MULTIPLIER = 0.8
CONFIDENCE_MAX = 95.0
CONFIDENCE_MIN = 60.0

# Hourly disaggregation blend
HISTORICAL_BLEND_WEIGHT = 0.7
THERMAL_BLEND_WEIGHT = 0.3

# Seasonal fallback - monthly mean temperature, Portugal (degC)
SEASONAL_TEMPERATURE_C = {
    1: 11.0, 2: 12.0, 3: 14.0, 4: 16.0, 5: 19.0, 6: 23.0,
    7: 27.0, 8: 27.0, 9: 24.0, 10: 19.0, 11: 14.0, 12: 12.0,
}
SEASONAL_HUMIDITY_PCT = 60.0
SEASONAL_PRECIPITATION_MM = 0.0

# Weather condition labels (threshold, label); humidity steps after rain steps
CONDITION_PRECIPITATION_LABELS = (
    (15.0, 'Storm'),
    (5.0, 'Heavy rain'),
    (1.0, 'Rain'),
    (0.2, 'Drizzle'),
)
CONDITION_HUMIDITY_LABELS = (
    (85.0, 'Overcast'),
    (65.0, 'Partly cloudy'),
)
CONDITION_CLEAR = 'Clear'

# National trend: months averaged for the recent corrected YoY %
NATIONAL_RECENT_MONTHS = 3

# Static fallback - REN national grid 2024-2025, corrected YoY %
# (year, month, consumption GWh, YoY %, corrected YoY %)
STATIC_GRID_MONTHS = [
    (2024, 1, 5312, 1.8, 1.5),
    (2024, 2, 4890, 2.1, 1.9),
    (2024, 3, 4741, 1.4, 1.2),
    (2024, 4, 4368, 2.3, 2.0),
    (2024, 5, 4422, 1.7, 1.6),
    (2024, 6, 4510, 2.5, 2.2),
    (2024, 7, 4830, 2.9, 2.6),
    (2024, 8, 4760, 2.4, 2.1),
    (2024, 9, 4540, 1.9, 1.7),
    (2024, 10, 4680, 1.6, 1.4),
    (2024, 11, 4990, 2.0, 1.8),
    (2024, 12, 5480, 1.5, 1.3),
    (2025, 1, 5410, 1.8, 1.7),
]

# ============================================================================
# DEVICE CATALOG
# ============================================================================

# Nominal archetypes: name -> (power kW, assumed hours/day, display colour)
DEVICE_CATALOG = {
    'Air conditioning': (1.2, 3.0, '#2E86AB'),
    'Refrigerator': (0.15, 24.0, '#A23B72'),
    'Washing machine': (0.5, 1.0, '#F18F01'),
    'Oven': (2.0, 0.5, '#C73E1D'),
    'Desktop PC': (0.25, 4.0, '#3B1F2B'),
    'Lighting': (0.1, 6.0, '#6A994E'),
}


@dataclass(frozen=True)
class ForecastConstants:
    """
    Every fixed coefficient the forecasting engine uses.

    Grouped so tests can swap a single value without touching the
    algorithm modules.
    """

    off_peak_rate: float = OFF_PEAK_RATE
    peak_rate: float = PEAK_RATE
    peak_start_hour: int = PEAK_START_HOUR
    comfort_temperature: float = COMFORT_TEMPERATURE_C
    thermal_coefficient: float = THERMAL_COEFFICIENT
    precipitation_steps: Tuple[Tuple[float, float], ...] = PRECIPITATION_STEPS
    humidity_threshold: float = HUMIDITY_THRESHOLD_PCT
    humidity_factor: float = HUMIDITY_FACTOR
    interval_std_multiplier: float = INTERVAL_STD_MULTIPLIER
    confidence_min: float = CONFIDENCE_MIN
    confidence_max: float = CONFIDENCE_MAX
    historical_blend_weight: float = HISTORICAL_BLEND_WEIGHT
    thermal_blend_weight: float = THERMAL_BLEND_WEIGHT
    seasonal_temperature: Dict[int, float] = field(
        default_factory=lambda: dict(SEASONAL_TEMPERATURE_C)
    )
    seasonal_humidity: float = SEASONAL_HUMIDITY_PCT
    seasonal_precipitation: float = SEASONAL_PRECIPITATION_MM
    forecast_days: int = FORECAST_DAYS
    trend_window_days: int = TREND_WINDOW_DAYS

    def rate_for_hour(self, hour: int) -> float:
        """Tariff rate applying to an hour of the day."""
        return self.off_peak_rate if hour < self.peak_start_hour else self.peak_rate

    def is_peak_hour(self, hour: int) -> bool:
        return hour >= self.peak_start_hour


DEFAULT_CONSTANTS = ForecastConstants()
