"""
Household consumption forecasting model.

Daily forecast for a 7-day horizon starting today:

    predicted = weekday_average * personal_trend * thermal * condition * national
    interval  = predicted -/+ 0.8 * std_dev   (lower bound floored at 0)

Hourly forecast for tomorrow spreads the day total over 24 hours with a
0.7 historical / 0.3 thermal blend and prices each hour on the two-rate
tariff.

`predict()` is a pure function of (history, as-of date, weather snapshot,
national factor); it performs no I/O and never mutates its inputs.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .config import DEFAULT_CONSTANTS, HOURS_PER_DAY, ForecastConstants
from .national import coerce_national_factor
from .preprocessing import HistoryAggregator, TrendEstimator
from .rollup import CostAndDeviceRollup
from .schemas import (
    DayPrediction,
    DayWeather,
    HistoryDocument,
    HistoryProfile,
    HistoryReading,
    HourlyPrediction,
    PredictionResult,
    Sourced,
    SourceKind,
    WeatherHourRecord,
    WeatherSnapshot,
)
from .weather import WeatherFactorCalculator, count_live_days

logger = logging.getLogger(__name__)

WEEKDAY_LABELS = ('Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat')


def weekday_index(day: date) -> int:
    """0=Sunday .. 6=Saturday."""
    return (day.weekday() + 1) % 7


class DailyPredictor:
    """Composes the weekday baseline with trend, weather and national factors."""

    def __init__(self, constants: ForecastConstants = DEFAULT_CONSTANTS):
        self.constants = constants
        self.weather = WeatherFactorCalculator(constants)

    def confidence(self, personal_trend: float) -> float:
        """Horizon-wide confidence %, shrinking as the trend leaves 1.0."""
        c = self.constants
        raw = c.confidence_max - abs(personal_trend - 1) * 100
        return max(c.confidence_min, min(c.confidence_max, raw))

    def interval(self, predicted: float, std_dev: float) -> Tuple[float, float]:
        half_width = self.constants.interval_std_multiplier * std_dev
        return max(0.0, predicted - half_width), predicted + half_width

    def off_peak_share(self, hourly_profile: Sequence[float]) -> float:
        return float(sum(hourly_profile[:self.constants.peak_start_hour]))

    def predict_day(
        self,
        target: date,
        profile: HistoryProfile,
        personal_trend: float,
        day_weather: DayWeather,
        national_factor: float
    ) -> DayPrediction:
        c = self.constants
        weekday = weekday_index(target)
        thermal = self.weather.thermal_factor(day_weather.apparent_temperature)
        condition = self.weather.condition_factor(
            day_weather.precipitation_mm, day_weather.humidity_pct
        )

        predicted = (
            profile.weekday_averages[weekday]
            * personal_trend
            * thermal
            * condition
            * national_factor
        )
        lower, upper = self.interval(predicted, profile.statistics.std_dev)

        off_peak_kwh = predicted * self.off_peak_share(profile.hourly_profile)
        peak_kwh = predicted - off_peak_kwh

        return DayPrediction(
            date=target,
            label=WEEKDAY_LABELS[weekday],
            weekday_index=weekday,
            predicted_kwh=predicted,
            lower_bound=lower,
            upper_bound=upper,
            cost=off_peak_kwh * c.off_peak_rate + peak_kwh * c.peak_rate,
            peak_kwh=peak_kwh,
            off_peak_kwh=off_peak_kwh,
            mean_temperature=day_weather.mean_temperature,
            apparent_temperature=day_weather.apparent_temperature,
            humidity_pct=day_weather.humidity_pct,
            precipitation_mm=day_weather.precipitation_mm,
            condition=day_weather.condition,
            thermal_factor=thermal,
            condition_factor=condition,
            used_live_weather=day_weather.used_live_weather,
        )

    def predict_horizon(
        self,
        as_of: date,
        profile: HistoryProfile,
        personal_trend: float,
        snapshot: Optional[WeatherSnapshot],
        national_factor: float
    ) -> Tuple[List[DayPrediction], List[Sourced]]:
        """Predict each day of the horizon; weather is resolved per day."""
        days, resolved = [], []
        for offset in range(self.constants.forecast_days):
            target = as_of + timedelta(days=offset)
            day_weather = self.weather.resolve_day(snapshot, target)
            resolved.append(day_weather)
            days.append(self.predict_day(
                target, profile, personal_trend, day_weather.value, national_factor
            ))
        return days, resolved


class HourlyDisaggregator:
    """Spreads one day's predicted total across 24 hours and prices it."""

    def __init__(self, constants: ForecastConstants = DEFAULT_CONSTANTS,
                 hours_per_day: int = HOURS_PER_DAY):
        self.constants = constants
        self.hours_per_day = hours_per_day
        self.weather = WeatherFactorCalculator(constants)

    def blended_shares(
        self,
        hourly_profile: Sequence[float],
        thermal_weights: Sequence[float]
    ) -> List[float]:
        c = self.constants
        weight_sum = sum(thermal_weights)
        if weight_sum > 0:
            thermal_shares = [weight / weight_sum for weight in thermal_weights]
        else:
            thermal_shares = [1.0 / self.hours_per_day] * self.hours_per_day

        return [
            c.historical_blend_weight * hourly_profile[hour]
            + c.thermal_blend_weight * thermal_shares[hour]
            for hour in range(self.hours_per_day)
        ]

    def disaggregate(
        self,
        day_total_kwh: float,
        hourly_profile: Sequence[float],
        day_weather: DayWeather,
        hour_records: Dict[int, WeatherHourRecord]
    ) -> Tuple[HourlyPrediction, ...]:
        c = self.constants
        weights = self.weather.hourly_thermal_weights(
            hour_records, day_weather.apparent_temperature, self.hours_per_day
        )
        shares = self.blended_shares(hourly_profile, weights)

        hours = []
        for hour, share in enumerate(shares):
            kwh = day_total_kwh * share
            record = hour_records.get(hour)
            hours.append(HourlyPrediction(
                hour=hour,
                label=f"{hour:02d}:00",
                kwh=kwh,
                cost=kwh * c.rate_for_hour(hour),
                is_peak=c.is_peak_hour(hour),
                temperature=record.temperature if record is not None else None,
                apparent_temperature=record.apparent_temperature if record is not None else None,
            ))
        return tuple(hours)


def _readings_of(history) -> Sequence[HistoryReading]:
    if isinstance(history, HistoryDocument):
        return history.readings
    return tuple(history)


def predict(
    history: Union[HistoryDocument, Sequence[HistoryReading]],
    as_of: Union[date, datetime],
    weather: Optional[WeatherSnapshot] = None,
    national: Union[Sourced, float, None] = None,
    constants: ForecastConstants = DEFAULT_CONSTANTS
) -> PredictionResult:
    """
    Run the full forecasting pipeline over one data snapshot.

    Args:
        history: Validated readings (or the document holding them)
        as_of: "Today"; day 0 of the horizon
        weather: Latest weather snapshot, or None when unavailable
        national: National trend factor (tagged or bare), or None
        constants: Fixed model coefficients

    Returns:
        PredictionResult with 7 daily and 24 hourly predictions
    """
    if isinstance(as_of, datetime):
        as_of = as_of.date()

    advisories = []

    profile = HistoryAggregator().aggregate(_readings_of(history))
    if not profile.buckets:
        advisories.append("No consumption history; predictions are zero.")

    personal_trend = TrendEstimator(constants.trend_window_days).estimate(profile.daily_totals)
    if len(profile.buckets) < 2 * constants.trend_window_days:
        advisories.append(
            f"Less than {2 * constants.trend_window_days} days of history; personal trend is neutral."
        )

    national_factor = coerce_national_factor(national)
    if national_factor.source is SourceKind.FALLBACK:
        advisories.append(
            f"National grid trend unavailable live; using fallback factor {national_factor.value}."
        )

    daily = DailyPredictor(constants)
    days, resolved = daily.predict_horizon(
        as_of, profile, personal_trend, weather, national_factor.value
    )
    seasonal_days = len(resolved) - count_live_days(resolved)
    if seasonal_days:
        advisories.append(f"{seasonal_days} day(s) use seasonal weather averages.")

    tomorrow = days[1]
    hour_records = weather.hours_for(tomorrow.date) if weather is not None else {}
    hours = HourlyDisaggregator(constants).disaggregate(
        tomorrow.predicted_kwh,
        profile.hourly_profile,
        resolved[1].value,
        hour_records,
    )

    rollup = CostAndDeviceRollup(history_window_days=constants.trend_window_days)

    for message in advisories:
        logger.info(message)

    return PredictionResult(
        as_of=as_of,
        days=tuple(days),
        hours=hours,
        weekly=rollup.weekly_summary(days, profile.daily_totals),
        devices=rollup.device_breakdown(tomorrow.predicted_kwh),
        confidence=daily.confidence(personal_trend),
        personal_trend=personal_trend,
        national_factor=national_factor,
        statistics=profile.statistics,
        advisories=tuple(advisories),
    )
