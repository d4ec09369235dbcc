"""
Tests for weather factors, seasonal fallback and daily summaries.
"""

from dataclasses import replace
from datetime import date, datetime

import pytest

from powerpredict.config import DEFAULT_CONSTANTS, SEASONAL_TEMPERATURE_C
from powerpredict.schemas import SourceKind, WeatherHourRecord
from powerpredict.weather import (
    WeatherFactorCalculator,
    derive_condition_label,
    round_half_up,
    summarize_days,
)


@pytest.fixture
def calculator():
    return WeatherFactorCalculator()


class TestThermalFactor:
    """1 + |apparent - 18| * 0.02"""

    def test_comfort_temperature_is_neutral(self, calculator):
        assert calculator.thermal_factor(18.0) == 1.0

    def test_hot_day(self, calculator):
        assert calculator.thermal_factor(28.0) == pytest.approx(1.20)

    def test_cold_day(self, calculator):
        assert calculator.thermal_factor(5.0) == pytest.approx(1.26)

    def test_symmetric(self, calculator):
        assert calculator.thermal_factor(10.0) == pytest.approx(calculator.thermal_factor(26.0))

    def test_uses_configured_comfort_point(self):
        calculator = WeatherFactorCalculator(replace(DEFAULT_CONSTANTS, comfort_temperature=20.0))
        assert calculator.thermal_factor(20.0) == 1.0


class TestConditionFactor:
    """Precipitation/humidity ladder, first match wins."""

    @pytest.mark.parametrize("precipitation, humidity, expected", [
        (20.0, 90.0, 1.08),
        (15.0, 50.0, 1.05),
        (10.0, 50.0, 1.05),
        (5.0, 50.0, 1.03),
        (2.0, 95.0, 1.03),
        (1.0, 85.0, 1.02),
        (0.0, 80.0, 1.00),
        (0.0, 40.0, 1.00),
    ])
    def test_ladder(self, calculator, precipitation, humidity, expected):
        assert calculator.condition_factor(precipitation, humidity) == expected


class TestConditionLabel:

    @pytest.mark.parametrize("precipitation, humidity, label", [
        (16.0, 50.0, 'Storm'),
        (6.0, 50.0, 'Heavy rain'),
        (1.5, 50.0, 'Rain'),
        (0.5, 50.0, 'Drizzle'),
        (0.0, 90.0, 'Overcast'),
        (0.0, 70.0, 'Partly cloudy'),
        (0.0, 50.0, 'Clear'),
    ])
    def test_labels(self, precipitation, humidity, label):
        assert derive_condition_label(precipitation, humidity) == label


class TestResolveDay:
    """Snapshot record first, seasonal table otherwise."""

    def test_seasonal_fallback_without_snapshot(self, calculator):
        resolved = calculator.resolve_day(None, date(2026, 7, 15))
        assert resolved.source is SourceKind.FALLBACK
        assert resolved.value.used_live_weather is False
        assert resolved.value.apparent_temperature == SEASONAL_TEMPERATURE_C[7]
        assert resolved.value.humidity_pct == 60.0
        assert resolved.value.precipitation_mm == 0.0

    def test_snapshot_record_used(self, calculator, make_weather):
        snapshot = make_weather(date(2026, 3, 1), 3, apparent=25.0, precipitation=6.0)
        resolved = calculator.resolve_day(snapshot, date(2026, 3, 2))
        assert resolved.source is SourceKind.LIVE
        assert resolved.value.used_live_weather is True
        assert resolved.value.apparent_temperature == 25.0

    def test_date_outside_window_falls_back(self, calculator, make_weather):
        snapshot = make_weather(date(2026, 3, 1), 3)
        resolved = calculator.resolve_day(snapshot, date(2026, 3, 5))
        assert resolved.source is SourceKind.FALLBACK
        assert resolved.value.apparent_temperature == SEASONAL_TEMPERATURE_C[3]

    def test_cached_snapshot_keeps_source(self, calculator, make_weather):
        snapshot = make_weather(date(2026, 3, 1), 1, source=SourceKind.CACHED)
        resolved = calculator.resolve_day(snapshot, date(2026, 3, 1))
        assert resolved.source is SourceKind.CACHED
        assert resolved.value.used_live_weather is True

    def test_seasonal_table_covers_every_month(self):
        assert sorted(SEASONAL_TEMPERATURE_C) == list(range(1, 13))


class TestHourlyThermalWeights:

    def test_missing_hours_use_day_value(self, calculator):
        records = {
            14: WeatherHourRecord(datetime(2026, 3, 2, 14), 30.0, 28.0, 40.0, 0.0),
        }
        weights = calculator.hourly_thermal_weights(records, day_apparent_temperature=18.0)
        assert len(weights) == 24
        assert weights[14] == pytest.approx(1.20)
        assert weights[3] == 1.0


class TestSummarizeDays:
    """Hourly records collapsed into daily records."""

    def _hours(self, day, temperature_by_hour, precipitation=0.0, humidity=70.0):
        return [
            WeatherHourRecord(
                timestamp=datetime(day.year, day.month, day.day, hour),
                temperature=temperature_by_hour(hour),
                apparent_temperature=temperature_by_hour(hour) - 1,
                humidity_pct=humidity,
                precipitation_mm=precipitation,
            )
            for hour in range(24)
        ]

    def test_daytime_average_and_precipitation_sum(self):
        day = date(2026, 3, 2)
        # Night hours are very cold; only 07-21 count towards the average
        hours = self._hours(day, lambda h: 20.0 if 7 <= h <= 21 else -10.0, precipitation=0.5)
        summary = summarize_days(hours, today=date(2026, 3, 1))
        assert len(summary) == 1
        record = summary[0]
        assert record.date == day
        assert record.mean_temperature == 20.0
        assert record.apparent_temperature == 19.0
        assert record.precipitation_mm == 12.0
        assert record.condition == 'Heavy rain'
        assert record.is_forecast is True

    def test_past_days_not_forecast(self):
        past = date(2026, 2, 27)
        today = date(2026, 3, 1)
        hours = self._hours(past, lambda h: 15.0) + self._hours(today, lambda h: 16.0)
        summary = summarize_days(hours, today=today)
        assert [r.date for r in summary] == [past, today]
        assert [r.is_forecast for r in summary] == [False, True]

    def test_humidity_halves_round_up(self):
        day = date(2026, 3, 2)
        hours = self._hours(day, lambda h: 15.0, humidity=72.5)
        record = summarize_days(hours, today=day)[0]
        assert record.humidity_pct == 73.0


class TestRoundHalfUp:

    @pytest.mark.parametrize("value, expected", [
        (0.5, 1.0),
        (2.5, 3.0),
        (72.5, 73.0),
        (72.49, 72.0),
        (84.6, 85.0),
    ])
    def test_rounding(self, value, expected):
        assert round_half_up(value) == expected
