"""
Weather-driven adjustment factors.

Converts a day's (or an hour's) apparent temperature, humidity and
precipitation into the two multiplicative factors used by the forecaster:

- thermal factor:   1 + |apparent - 18| * 0.02
- condition factor: precipitation/humidity ladder, first match wins

Days without a record in the weather snapshot fall back to the seasonal
monthly temperature table.
"""

import logging
import math
from collections import OrderedDict
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from .config import (
    CONDITION_CLEAR,
    CONDITION_HUMIDITY_LABELS,
    CONDITION_PRECIPITATION_LABELS,
    DAYTIME_HOURS,
    DEFAULT_CONSTANTS,
    HOURS_PER_DAY,
    ForecastConstants,
)
from .schemas import (
    DayWeather,
    Sourced,
    SourceKind,
    WeatherDayRecord,
    WeatherHourRecord,
    WeatherSnapshot,
)

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> float:
    """Nearest integer, halves rounded up (72.5 -> 73)."""
    return float(math.floor(value + 0.5))


def derive_condition_label(precipitation_mm: float, humidity_pct: float) -> str:
    """Human-readable condition for a day's precipitation and humidity."""
    for threshold, label in CONDITION_PRECIPITATION_LABELS:
        if precipitation_mm > threshold:
            return label
    for threshold, label in CONDITION_HUMIDITY_LABELS:
        if humidity_pct > threshold:
            return label
    return CONDITION_CLEAR


def summarize_days(
    hours: Iterable[WeatherHourRecord],
    today: date,
    daytime_hours=DAYTIME_HOURS
) -> List[WeatherDayRecord]:
    """
    Collapse hourly records into one record per calendar date.

    Temperatures and humidity are averaged over daytime hours only;
    precipitation is summed over the whole day.
    """
    first_hour, last_hour = daytime_hours
    buckets: Dict[date, Dict[str, list]] = OrderedDict()

    for record in sorted(hours, key=lambda r: r.timestamp):
        day = record.timestamp.date()
        bucket = buckets.setdefault(day, {'temp': [], 'apparent': [], 'humidity': [], 'precip': []})
        bucket['precip'].append(record.precipitation_mm)
        if first_hour <= record.timestamp.hour <= last_hour:
            bucket['temp'].append(record.temperature)
            bucket['apparent'].append(record.apparent_temperature)
            bucket['humidity'].append(record.humidity_pct)

    def _avg(values):
        return float(np.mean(values)) if values else 0.0

    days = []
    for day, bucket in buckets.items():
        precipitation = float(np.sum(bucket['precip']))
        humidity = round_half_up(_avg(bucket['humidity']))
        days.append(WeatherDayRecord(
            date=day,
            mean_temperature=round(_avg(bucket['temp']), 1),
            apparent_temperature=round(_avg(bucket['apparent']), 1),
            humidity_pct=humidity,
            precipitation_mm=round(precipitation, 1),
            condition=derive_condition_label(precipitation, humidity),
            is_forecast=day >= today,
        ))
    return days


class WeatherFactorCalculator:
    """Thermal and condition factors plus the seasonal fallback."""

    def __init__(self, constants: ForecastConstants = DEFAULT_CONSTANTS):
        self.constants = constants

    def thermal_factor(self, apparent_temperature: float) -> float:
        c = self.constants
        return 1 + abs(apparent_temperature - c.comfort_temperature) * c.thermal_coefficient

    def condition_factor(self, precipitation_mm: float, humidity_pct: float) -> float:
        c = self.constants
        for threshold, factor in c.precipitation_steps:
            if precipitation_mm > threshold:
                return factor
        if humidity_pct > c.humidity_threshold:
            return c.humidity_factor
        return 1.0

    def seasonal_day(self, target: date) -> DayWeather:
        c = self.constants
        temperature = c.seasonal_temperature[target.month]
        return DayWeather(
            mean_temperature=temperature,
            apparent_temperature=temperature,
            humidity_pct=c.seasonal_humidity,
            precipitation_mm=c.seasonal_precipitation,
            condition=derive_condition_label(c.seasonal_precipitation, c.seasonal_humidity),
            used_live_weather=False,
        )

    def resolve_day(self, snapshot: Optional[WeatherSnapshot], target: date) -> Sourced[DayWeather]:
        """Weather for one date: the snapshot's record, else the seasonal table."""
        record = snapshot.day(target) if snapshot is not None else None
        if record is None:
            return Sourced(self.seasonal_day(target), SourceKind.FALLBACK)

        return Sourced(
            DayWeather(
                mean_temperature=record.mean_temperature,
                apparent_temperature=record.apparent_temperature,
                humidity_pct=record.humidity_pct,
                precipitation_mm=record.precipitation_mm,
                condition=record.condition,
                used_live_weather=True,
            ),
            snapshot.source,
        )

    def hourly_thermal_weights(
        self,
        hour_records: Dict[int, WeatherHourRecord],
        day_apparent_temperature: float,
        hours_per_day: int = HOURS_PER_DAY
    ) -> List[float]:
        """Thermal factor per hour, using the day's value for missing hours."""
        weights = []
        for hour in range(hours_per_day):
            record = hour_records.get(hour)
            apparent = record.apparent_temperature if record is not None else day_apparent_temperature
            weights.append(self.thermal_factor(apparent))
        return weights


def count_live_days(resolved: Sequence[Sourced]) -> int:
    return sum(1 for item in resolved if item.value.used_live_weather)
