"""
Data structures shared by the forecasting pipeline.

Inputs (readings, weather and grid snapshots) are produced by the ingestion
boundary and the fetchers; outputs (day/hour predictions, device shares) are
built fresh on every run and never mutated afterwards.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, Generic, List, Optional, Tuple, TypeVar

T = TypeVar("T")


class SourceKind(Enum):
    """Where a value used by the pipeline came from."""
    LIVE = "live"           # Fresh response from the collaborator
    CACHED = "cached"       # Previously saved snapshot
    FALLBACK = "fallback"   # Static table or neutral default


@dataclass(frozen=True)
class Sourced(Generic[T]):
    """A value tagged with the kind of source that supplied it."""

    value: T
    source: SourceKind

    @property
    def is_live(self) -> bool:
        return self.source is SourceKind.LIVE


# ============================================================================
# HISTORY
# ============================================================================

@dataclass(frozen=True)
class HistoryReading:
    """One hourly meter reading, timestamp in local wall-clock time."""
    timestamp: datetime
    kwh: float
    cost_rate: Optional[float] = None  # carried from the source, not used for pricing


@dataclass(frozen=True)
class DailyBucket:
    """All readings of one local calendar date."""
    calendar_date: date
    weekday_index: int  # 0=Sunday .. 6=Saturday
    total_kwh: float
    readings: Tuple[HistoryReading, ...] = ()


@dataclass(frozen=True)
class HistoryStatistics:
    mean: float
    std_dev: float  # population standard deviation of daily totals


@dataclass(frozen=True)
class HistoryProfile:
    """Everything the aggregator derives from the raw readings."""
    buckets: Tuple[DailyBucket, ...]
    weekday_averages: Dict[int, float]
    hourly_profile: Tuple[float, ...]
    statistics: HistoryStatistics

    @property
    def daily_totals(self) -> List[float]:
        return [bucket.total_kwh for bucket in self.buckets]


# ============================================================================
# WEATHER
# ============================================================================

@dataclass(frozen=True)
class WeatherDayRecord:
    date: date
    mean_temperature: float
    apparent_temperature: float
    humidity_pct: float
    precipitation_mm: float
    condition: str
    is_forecast: bool


@dataclass(frozen=True)
class WeatherHourRecord:
    timestamp: datetime  # truncated to the hour, local time
    temperature: float
    apparent_temperature: float
    humidity_pct: float
    precipitation_mm: float


@dataclass(frozen=True)
class WeatherSnapshot:
    """Latest known output of the weather collaborator."""
    current_temperature: Optional[float] = None
    days: Tuple[WeatherDayRecord, ...] = ()
    hours: Tuple[WeatherHourRecord, ...] = ()
    source: SourceKind = SourceKind.LIVE

    def day(self, target: date) -> Optional[WeatherDayRecord]:
        for record in self.days:
            if record.date == target:
                return record
        return None

    def hours_for(self, target: date) -> Dict[int, WeatherHourRecord]:
        """Hour-of-day -> record for one calendar date."""
        return {
            record.timestamp.hour: record
            for record in self.hours
            if record.timestamp.date() == target
        }


@dataclass(frozen=True)
class DayWeather:
    """Weather inputs resolved for one forecast day."""
    mean_temperature: float
    apparent_temperature: float
    humidity_pct: float
    precipitation_mm: float
    condition: str
    used_live_weather: bool


# ============================================================================
# NATIONAL GRID
# ============================================================================

@dataclass(frozen=True)
class GridMonth:
    year: int
    month: int  # 1-12
    consumption_gwh: float
    yoy_pct: float
    yoy_corrected_pct: float


@dataclass(frozen=True)
class NationalGridSnapshot:
    months: Tuple[GridMonth, ...] = ()
    recent_average_corrected_pct: Optional[float] = None


# ============================================================================
# OUTPUTS
# ============================================================================

@dataclass(frozen=True)
class DayPrediction:
    date: date
    label: str
    weekday_index: int
    predicted_kwh: float
    lower_bound: float
    upper_bound: float
    cost: float
    peak_kwh: float
    off_peak_kwh: float
    mean_temperature: float
    apparent_temperature: float
    humidity_pct: float
    precipitation_mm: float
    condition: str
    thermal_factor: float
    condition_factor: float
    used_live_weather: bool


@dataclass(frozen=True)
class HourlyPrediction:
    hour: int
    label: str  # "HH:00"
    kwh: float
    cost: float
    is_peak: bool
    temperature: Optional[float] = None
    apparent_temperature: Optional[float] = None


@dataclass(frozen=True)
class DeviceShare:
    name: str
    kwh: float
    percent: float
    color: str


@dataclass(frozen=True)
class WeeklySummary:
    total_kwh: float
    total_cost: float
    previous_week_kwh: float
    change_pct: float


@dataclass(frozen=True)
class PredictionResult:
    """Complete output of one forecasting run."""
    as_of: date
    days: Tuple[DayPrediction, ...]
    hours: Tuple[HourlyPrediction, ...]
    weekly: WeeklySummary
    devices: Tuple[DeviceShare, ...]
    confidence: float
    personal_trend: float
    national_factor: Sourced
    statistics: HistoryStatistics
    advisories: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def tomorrow(self) -> DayPrediction:
        return self.days[1]


@dataclass(frozen=True)
class HistoryDocument:
    """Validated contents of a history JSON document."""
    client_id: Optional[str]
    readings: Tuple[HistoryReading, ...]
