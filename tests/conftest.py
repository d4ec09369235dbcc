"""Pytest fixtures and configuration."""

import os
import sys
from datetime import date, datetime, timedelta

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from powerpredict.schemas import (
    HistoryReading,
    SourceKind,
    WeatherDayRecord,
    WeatherHourRecord,
    WeatherSnapshot,
)

# 2026-02-01 is a Sunday
HISTORY_START = date(2026, 2, 1)


@pytest.fixture
def make_readings():
    """Build hourly readings from a list of daily totals."""

    def _make(daily_totals, start=HISTORY_START, hourly_shape=None):
        shape = hourly_shape or [1.0] * 24
        shape_total = sum(shape)
        readings = []
        for offset, total in enumerate(daily_totals):
            day = start + timedelta(days=offset)
            for hour in range(24):
                readings.append(HistoryReading(
                    timestamp=datetime(day.year, day.month, day.day, hour),
                    kwh=total * shape[hour] / shape_total,
                ))
        return readings

    return _make


@pytest.fixture
def monday_pattern(make_readings):
    """Four weeks: every Monday 10 kWh, every other day 5 kWh."""
    totals = []
    for offset in range(28):
        day = HISTORY_START + timedelta(days=offset)
        totals.append(10.0 if day.weekday() == 0 else 5.0)
    return make_readings(totals)


@pytest.fixture
def make_weather():
    """Weather snapshot with identical days (and optionally hours)."""

    def _make(start, days, apparent=18.0, humidity=50.0, precipitation=0.0,
              with_hours=False, source=SourceKind.LIVE):
        day_records, hour_records = [], []
        for offset in range(days):
            day = start + timedelta(days=offset)
            day_records.append(WeatherDayRecord(
                date=day,
                mean_temperature=apparent,
                apparent_temperature=apparent,
                humidity_pct=humidity,
                precipitation_mm=precipitation,
                condition='Clear',
                is_forecast=True,
            ))
            if with_hours:
                for hour in range(24):
                    hour_records.append(WeatherHourRecord(
                        timestamp=datetime(day.year, day.month, day.day, hour),
                        temperature=apparent,
                        apparent_temperature=apparent,
                        humidity_pct=humidity,
                        precipitation_mm=precipitation / 24,
                    ))
        return WeatherSnapshot(
            current_temperature=apparent,
            days=tuple(day_records),
            hours=tuple(hour_records),
            source=source,
        )

    return _make
