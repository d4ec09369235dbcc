"""
Preprocessing pipeline for household consumption history.

Handles:
- Validation of the raw history document (ingestion boundary)
- Local-time temporal features (calendar date, hour, weekday)
- Daily buckets, weekday averages and the normalized hourly profile
- Personal trend (last 7 days vs the 7 before)

Local-date rule: timezone-aware timestamps are converted to the household
timezone and the offset is dropped; naive timestamps are already local.
A reading belongs to the calendar date of its local timestamp truncated to
YYYY-MM-DD.
"""

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, Iterable, Sequence, Union

import numpy as np
import pandas as pd

from .config import HOURS_PER_DAY, HOUSEHOLD_TIMEZONE, TREND_WINDOW_DAYS
from .schemas import (
    DailyBucket,
    HistoryDocument,
    HistoryProfile,
    HistoryReading,
    HistoryStatistics,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('timestamp', 'kwh')


class HistoryValidationError(ValueError):
    """Raised when a history document or one of its records is malformed."""


# ============================================================================
# INGESTION
# ============================================================================

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_float(value: Any, name: str, index: int) -> float:
    if not _is_number(value):
        raise HistoryValidationError(
            f"history[{index}]: {name} must be a finite number, got {value!r}"
        )
    try:
        return float(value)
    except OverflowError as e:
        raise HistoryValidationError(f"history[{index}]: {name} is out of range ({e})") from e


def _parse_timestamp(value: Any, index: int, timezone: str):
    if not isinstance(value, str) or not value.strip():
        raise HistoryValidationError(
            f"history[{index}]: timestamp must be a non-empty ISO-8601 string, got {value!r}"
        )
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError) as e:
        raise HistoryValidationError(
            f"history[{index}]: cannot parse timestamp {value!r} ({e})"
        ) from e
    if ts is pd.NaT:
        raise HistoryValidationError(f"history[{index}]: timestamp {value!r} is not a date")

    if ts.tzinfo is not None:
        ts = ts.tz_convert(timezone).tz_localize(None)
    return ts.to_pydatetime()


def _parse_record(record: Any, index: int, timezone: str) -> HistoryReading:
    if not isinstance(record, dict):
        raise HistoryValidationError(
            f"history[{index}]: expected an object, got {type(record).__name__}"
        )

    missing = [name for name in REQUIRED_FIELDS if name not in record]
    if missing:
        raise HistoryValidationError(f"history[{index}]: missing field(s) {', '.join(missing)}")

    kwh = _as_float(record['kwh'], 'kwh', index)
    if not math.isfinite(kwh):
        raise HistoryValidationError(f"history[{index}]: kwh must be a finite number, got {kwh!r}")
    if kwh < 0:
        raise HistoryValidationError(f"history[{index}]: kwh must be non-negative, got {kwh!r}")

    cost_rate = record.get('cost_rate')
    if cost_rate is not None:
        cost_rate = _as_float(cost_rate, 'cost_rate', index)

    return HistoryReading(
        timestamp=_parse_timestamp(record['timestamp'], index, timezone),
        kwh=kwh,
        cost_rate=cost_rate,
    )


def parse_history(document: Any, timezone: str = HOUSEHOLD_TIMEZONE) -> HistoryDocument:
    """
    Validate a decoded history document.

    Args:
        document: Decoded JSON, {"clientId": str, "history": [...]}
        timezone: Household timezone used for aware timestamps

    Returns:
        HistoryDocument with readings in document order

    Raises:
        HistoryValidationError: naming the first malformed record
    """
    if not isinstance(document, dict):
        raise HistoryValidationError("history document must be a JSON object")
    if 'history' not in document:
        raise HistoryValidationError("history document has no 'history' list")

    records = document['history']
    if not isinstance(records, list):
        raise HistoryValidationError(
            f"'history' must be a list, got {type(records).__name__}"
        )

    client_id = document.get('clientId')
    if client_id is not None and not isinstance(client_id, str):
        raise HistoryValidationError(f"clientId must be a string, got {client_id!r}")

    readings = tuple(
        _parse_record(record, index, timezone) for index, record in enumerate(records)
    )
    return HistoryDocument(client_id=client_id, readings=readings)


def load_history(
    filepath: Union[str, Path],
    timezone: str = HOUSEHOLD_TIMEZONE
) -> HistoryDocument:
    """Load and validate a history JSON file."""
    path = Path(filepath)
    try:
        with open(path, encoding='utf-8') as f:
            document = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise HistoryValidationError(f"{path}: not valid JSON ({e})") from e

    history = parse_history(document, timezone)
    logger.info("Loaded %d readings for client %s from %s",
                len(history.readings), history.client_id, path)
    return history


# ============================================================================
# FEATURES
# ============================================================================

def readings_to_frame(readings: Sequence[HistoryReading]) -> pd.DataFrame:
    """Flatten readings into a frame; `position` indexes back into the input."""
    return pd.DataFrame({
        'position': np.arange(len(readings), dtype=int),
        'timestamp': pd.to_datetime([r.timestamp for r in readings]),
        'kwh': np.array([r.kwh for r in readings], dtype=float),
    })


class TemporalFeatureEngineer:
    """Extract local calendar features from the timestamp column."""

    @staticmethod
    def add_temporal_features(df: pd.DataFrame, datetime_col: str = 'timestamp') -> pd.DataFrame:
        """
        Add date, hour and weekday columns.

        Args:
            df: DataFrame with a naive local datetime column
            datetime_col: Name of datetime column

        Returns:
            DataFrame with added features
        """
        df = df.copy()
        stamps = pd.to_datetime(df[datetime_col])

        df['date'] = stamps.dt.date
        df['hour'] = stamps.dt.hour
        # pandas counts Monday=0; the engine counts Sunday=0
        df['weekday'] = (stamps.dt.dayofweek + 1) % 7

        return df


# ============================================================================
# AGGREGATION
# ============================================================================

class HistoryAggregator:
    """
    Turns hourly readings into the statistical profile used for forecasting.

    Output:
    1. One DailyBucket per local calendar date (sorted by date)
    2. Weekday averages (0=Sunday), unobserved weekdays -> overall mean
    3. 24-slot hourly share profile summing to 1
    4. Mean and population std dev of the daily totals

    An empty history gives no buckets, zero averages, a uniform profile
    and zero statistics.
    """

    def __init__(self, hours_per_day: int = HOURS_PER_DAY):
        self.hours_per_day = hours_per_day
        self.feature_engineer = TemporalFeatureEngineer()

    def aggregate(self, readings: Sequence[HistoryReading]) -> HistoryProfile:
        readings = tuple(readings)
        if not readings:
            logger.warning("Empty history: forecasts will degrade to zero consumption")
            return self._empty_profile()

        df = self.feature_engineer.add_temporal_features(readings_to_frame(readings))

        buckets = self._build_buckets(df, readings)
        statistics = self._statistics(buckets)

        return HistoryProfile(
            buckets=buckets,
            weekday_averages=self._weekday_averages(buckets, statistics.mean),
            hourly_profile=self._hourly_profile(df),
            statistics=statistics,
        )

    def _empty_profile(self) -> HistoryProfile:
        return HistoryProfile(
            buckets=(),
            weekday_averages={weekday: 0.0 for weekday in range(7)},
            hourly_profile=self._uniform_profile(),
            statistics=HistoryStatistics(mean=0.0, std_dev=0.0),
        )

    def _uniform_profile(self):
        return tuple(1.0 / self.hours_per_day for _ in range(self.hours_per_day))

    def _build_buckets(self, df: pd.DataFrame, readings: Sequence[HistoryReading]):
        buckets = []
        for day, group in df.groupby('date', sort=True):
            group = group.sort_values('timestamp', kind='mergesort')
            buckets.append(DailyBucket(
                calendar_date=day,
                weekday_index=int(group['weekday'].iloc[0]),
                total_kwh=float(group['kwh'].sum()),
                readings=tuple(readings[pos] for pos in group['position']),
            ))
        return tuple(buckets)

    @staticmethod
    def _statistics(buckets: Sequence[DailyBucket]) -> HistoryStatistics:
        totals = np.array([bucket.total_kwh for bucket in buckets], dtype=float)
        # ddof=0: population standard deviation
        return HistoryStatistics(mean=float(totals.mean()), std_dev=float(totals.std(ddof=0)))

    @staticmethod
    def _weekday_averages(buckets: Sequence[DailyBucket], overall_mean: float) -> Dict[int, float]:
        daily = pd.DataFrame({
            'weekday': [bucket.weekday_index for bucket in buckets],
            'total': [bucket.total_kwh for bucket in buckets],
        })
        by_weekday = daily.groupby('weekday')['total'].mean()

        averages = {}
        for weekday in range(7):
            if weekday in by_weekday.index:
                averages[weekday] = float(by_weekday.loc[weekday])
            else:
                averages[weekday] = overall_mean
        return averages

    def _hourly_profile(self, df: pd.DataFrame):
        hour_means = (
            df.groupby('hour')['kwh'].mean()
            .reindex(range(self.hours_per_day), fill_value=0.0)
        )
        total = float(hour_means.sum())
        if total <= 0:
            return self._uniform_profile()
        return tuple(float(value) / total for value in hour_means.to_numpy())


# ============================================================================
# TREND
# ============================================================================

class TrendEstimator:
    """
    Personal trend = mean(last N daily totals) / mean(previous N).

    Fewer than 2N days gives exactly 1.0. The ratio is not clamped.
    """

    def __init__(self, window_days: int = TREND_WINDOW_DAYS):
        self.window_days = window_days

    def estimate(self, daily_totals: Iterable[float]) -> float:
        totals = [float(total) for total in daily_totals]
        window = self.window_days

        if len(totals) < 2 * window:
            return 1.0

        recent = float(np.mean(totals[-window:]))
        previous = float(np.mean(totals[-2 * window:-window]))

        if previous <= 0:
            logger.warning("Previous %d days have zero consumption; using neutral trend", window)
            return 1.0

        return recent / previous


def aggregate_history(readings: Sequence[HistoryReading]) -> HistoryProfile:
    """Quick aggregation with default settings."""
    return HistoryAggregator().aggregate(readings)
