"""
Weekly cost rollup and per-device consumption breakdown.
"""

from typing import Dict, Sequence, Tuple

from .config import DEVICE_CATALOG, TREND_WINDOW_DAYS
from .schemas import DayPrediction, DeviceShare, WeeklySummary


class CostAndDeviceRollup:
    """
    Sums a forecast horizon and splits a day total across device archetypes.

    Device shares are a fixed proportional split of the already-predicted
    total (nominal kW x assumed hours per device), so they always add up to
    that total.
    """

    def __init__(
        self,
        catalog: Dict[str, Tuple[float, float, str]] = DEVICE_CATALOG,
        history_window_days: int = TREND_WINDOW_DAYS
    ):
        self.catalog = catalog
        self.history_window_days = history_window_days

    def weekly_summary(
        self,
        days: Sequence[DayPrediction],
        daily_history: Sequence[float]
    ) -> WeeklySummary:
        total_kwh = sum(day.predicted_kwh for day in days)
        total_cost = sum(day.cost for day in days)
        previous = float(sum(daily_history[-self.history_window_days:]))

        return WeeklySummary(
            total_kwh=total_kwh,
            total_cost=total_cost,
            previous_week_kwh=previous,
            change_pct=self.change_pct(total_kwh, previous),
        )

    @staticmethod
    def change_pct(current: float, previous: float) -> float:
        # No comparable history is reported as no change
        if previous == 0:
            return 0.0
        return (current - previous) / previous * 100

    def device_breakdown(self, day_total_kwh: float) -> Tuple[DeviceShare, ...]:
        nominal = {
            name: power_kw * hours
            for name, (power_kw, hours, _color) in self.catalog.items()
        }
        nominal_total = sum(nominal.values())
        if nominal_total <= 0:
            return ()

        shares = []
        for name, (_power, _hours, color) in self.catalog.items():
            fraction = nominal[name] / nominal_total
            shares.append(DeviceShare(
                name=name,
                kwh=day_total_kwh * fraction,
                percent=fraction * 100,
                color=color,
            ))
        return tuple(shares)
