"""
Tests for weekly totals and the device breakdown.
"""

from datetime import date

import pytest

from powerpredict.config import DEVICE_CATALOG
from powerpredict.rollup import CostAndDeviceRollup
from powerpredict.schemas import DayPrediction


def _day(kwh, cost):
    return DayPrediction(
        date=date(2026, 3, 1), label='Sun', weekday_index=0,
        predicted_kwh=kwh, lower_bound=kwh, upper_bound=kwh, cost=cost,
        peak_kwh=kwh, off_peak_kwh=0.0, mean_temperature=18.0,
        apparent_temperature=18.0, humidity_pct=50.0, precipitation_mm=0.0,
        condition='Clear', thermal_factor=1.0, condition_factor=1.0,
        used_live_weather=True,
    )


class TestWeeklySummary:

    def test_totals_and_change(self):
        days = [_day(10.0, 2.0)] * 7
        summary = CostAndDeviceRollup().weekly_summary(days, [8.0] * 10 + [5.0] * 7)
        assert summary.total_kwh == pytest.approx(70.0)
        assert summary.total_cost == pytest.approx(14.0)
        assert summary.previous_week_kwh == pytest.approx(35.0)
        assert summary.change_pct == pytest.approx(100.0)

    def test_zero_history_reports_no_change(self):
        summary = CostAndDeviceRollup().weekly_summary([_day(10.0, 2.0)] * 7, [0.0] * 7)
        assert summary.change_pct == 0.0

    def test_empty_history(self):
        summary = CostAndDeviceRollup().weekly_summary([_day(1.0, 0.2)] * 7, [])
        assert summary.previous_week_kwh == 0.0
        assert summary.change_pct == 0.0


class TestDeviceBreakdown:

    def test_shares_sum_to_total(self):
        shares = CostAndDeviceRollup().device_breakdown(12.5)
        assert len(shares) == len(DEVICE_CATALOG)
        assert sum(s.kwh for s in shares) == pytest.approx(12.5)
        assert sum(s.percent for s in shares) == pytest.approx(100.0)

    def test_proportional_to_nominal_use(self):
        catalog = {
            'Heater': (2.0, 2.0, '#111111'),    # 4 kWh nominal
            'Fridge': (0.5, 24.0, '#222222'),   # 12 kWh nominal
        }
        shares = CostAndDeviceRollup(catalog).device_breakdown(8.0)
        assert [s.name for s in shares] == ['Heater', 'Fridge']
        assert shares[0].kwh == pytest.approx(2.0)
        assert shares[1].kwh == pytest.approx(6.0)
        assert shares[1].percent == pytest.approx(75.0)
        assert shares[0].color == '#111111'

    def test_zero_day_total(self):
        shares = CostAndDeviceRollup().device_breakdown(0.0)
        assert all(s.kwh == 0.0 for s in shares)

    def test_empty_catalog(self):
        assert CostAndDeviceRollup({}).device_breakdown(5.0) == ()
