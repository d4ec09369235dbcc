"""
Data fetchers for the forecasting engine's external collaborators.

- Open-Meteo: hourly weather for the past 5 days and the next 7
- REN Datahub: Portuguese national monthly consumption and YoY change

Fetchers return snapshots; the forecasting pipeline never calls them itself.
The `*_with_fallback` helpers degrade to a saved snapshot (and, for the grid,
to the bundled static table) when the live API fails.
"""

import json
import logging
import math
import time
from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

import pandas as pd
import requests
from tqdm import tqdm

from .config import (
    DEFAULT_GRID_FILE,
    DEFAULT_WEATHER_FILE,
    FALLBACK_LAT,
    FALLBACK_LON,
    MONTH_INDEX,
    OPEN_METEO_HOURLY_FIELDS,
    OPEN_METEO_URL,
    REN_BASE_URL,
    REN_CONSUMPTION_ENDPOINT,
    REN_CULTURE,
    REQUEST_DELAY,
    REQUEST_TIMEOUT,
    WEATHER_FORECAST_DAYS,
    WEATHER_PAST_DAYS,
)
from .national import NationalTrendAdapter
from .schemas import (
    GridMonth,
    NationalGridSnapshot,
    Sourced,
    SourceKind,
    WeatherDayRecord,
    WeatherHourRecord,
    WeatherSnapshot,
)
from .weather import round_half_up, summarize_days

logger = logging.getLogger(__name__)


class OpenMeteoFetcher:
    """
    Fetches hourly weather from the Open-Meteo forecast API.

    Features:
    - No API key; timezone resolved from the coordinates
    - Hourly records plus per-day summaries (daytime averages)
    """

    def __init__(self, base_url=OPEN_METEO_URL, timeout=REQUEST_TIMEOUT, session=None):
        """
        Initialize the fetcher.

        Args:
            base_url (str): Forecast endpoint
            timeout (float): Request timeout in seconds
            session (requests.Session): Optional shared session
        """
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, lat=FALLBACK_LAT, lon=FALLBACK_LON, today=None):
        """
        Fetch a weather snapshot for a location.

        Args:
            lat (float): Latitude
            lon (float): Longitude
            today (date): Date splitting past days from forecast days

        Returns:
            WeatherSnapshot: hourly and daily records, source LIVE
        """
        params = {
            'latitude': lat,
            'longitude': lon,
            'timezone': 'auto',
            'past_days': WEATHER_PAST_DAYS,
            'forecast_days': WEATHER_FORECAST_DAYS,
            'current': 'temperature_2m',
            'hourly': ','.join(OPEN_METEO_HOURLY_FIELDS),
        }

        logger.info("Fetching Open-Meteo weather for (%.4f, %.4f)", lat, lon)
        response = self.session.get(self.base_url, params=params, timeout=self.timeout)
        response.raise_for_status()

        try:
            data = response.json()
        except ValueError as e:
            raise ValueError(f"Open-Meteo returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ValueError("Open-Meteo returned an unexpected payload.")
        hourly = data.get('hourly') or {}
        current = data.get('current') or {}
        if not isinstance(hourly, dict) or not isinstance(current, dict):
            raise ValueError("Open-Meteo returned an unexpected payload.")

        hours = self._parse_hourly(hourly)
        if not hours:
            raise ValueError("Open-Meteo returned no hourly data.")

        current = current.get('temperature_2m')
        if isinstance(current, bool) or not isinstance(current, (int, float)):
            current = None
        today = today or date.today()

        return WeatherSnapshot(
            current_temperature=None if current is None else float(current),
            days=tuple(summarize_days(hours, today)),
            hours=tuple(hours),
            source=SourceKind.LIVE,
        )

    @staticmethod
    def _parse_hourly(hourly):
        """
        Convert Open-Meteo's column arrays into hourly records.

        Missing or null values are read as 0.
        """
        times = list(hourly.get('time') or [])
        if not times:
            return []

        df = pd.DataFrame({'timestamp': pd.to_datetime(times)})
        for field in OPEN_METEO_HOURLY_FIELDS:
            values = list(hourly.get(field) or [])[:len(times)]
            values += [None] * (len(times) - len(values))
            df[field] = pd.to_numeric(pd.Series(values, dtype=object), errors='coerce').fillna(0.0)

        df['timestamp'] = df['timestamp'].dt.floor('h')

        return [
            WeatherHourRecord(
                timestamp=row.timestamp.to_pydatetime(),
                temperature=round(float(row.temperature_2m), 1),
                apparent_temperature=round(float(row.apparent_temperature), 1),
                humidity_pct=round_half_up(float(row.relative_humidity_2m)),
                precipitation_mm=round(float(row.precipitation), 2),
            )
            for row in df.itertuples(index=False)
        ]


def _ren_number(row, field, year):
    """A numeric REN field; missing or null reads as 0."""
    value = row.get(field)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"REN returned a non-numeric {field} for {year}: {value!r}")
    try:
        number = float(value)
    except OverflowError as e:
        raise ValueError(f"REN returned an out-of-range {field} for {year}") from e
    if not math.isfinite(number):
        raise ValueError(f"REN returned a non-finite {field} for {year}: {value!r}")
    return number


class RENDataFetcher:
    """
    Fetches national monthly electricity consumption from REN Datahub.

    Each year is one request; rows with unknown month names or no
    consumption yet are dropped.
    """

    def __init__(self, base_url=REN_BASE_URL, timeout=REQUEST_TIMEOUT, session=None):
        self.base_url = base_url + REN_CONSUMPTION_ENDPOINT
        self.timeout = timeout
        self.session = session or requests.Session()
        self.adapter = NationalTrendAdapter()

    def fetch_year(self, year):
        """
        Fetch one year of monthly records.

        Args:
            year (int): Calendar year

        Returns:
            list[GridMonth]: months of that year with consumption > 0
        """
        params = {'culture': REN_CULTURE, 'year': year}
        response = self.session.get(self.base_url, params=params, timeout=self.timeout)
        response.raise_for_status()

        try:
            rows = response.json()
        except ValueError as e:
            raise ValueError(f"REN returned invalid JSON for {year}: {e}") from e
        if not isinstance(rows, list):
            raise ValueError(f"REN returned an unexpected payload for {year}")

        months = []
        for row in rows:
            if not isinstance(row, dict):
                raise ValueError(f"REN returned a malformed row for {year}: {row!r}")
            row_type = row.get('type')
            month = MONTH_INDEX.get(row_type) if isinstance(row_type, str) else None
            if month is None:
                continue
            consumption = _ren_number(row, 'consumption', year)
            yoy_pct = _ren_number(row, 'yearEvol', year)
            yoy_corrected_pct = _ren_number(row, 'yearEvolCTWD', year)
            if consumption <= 0:
                continue
            months.append(GridMonth(
                year=year,
                month=month,
                consumption_gwh=consumption,
                yoy_pct=yoy_pct,
                yoy_corrected_pct=yoy_corrected_pct,
            ))
        return months

    def fetch(self, years=None, show_progress=False):
        """
        Fetch several years and compute the recent corrected YoY average.

        Args:
            years (list[int]): Years to fetch (default: last year and this year)
            show_progress (bool): Show progress bar

        Returns:
            NationalGridSnapshot: months sorted oldest first
        """
        if years is None:
            this_year = date.today().year
            years = [this_year - 1, this_year]

        all_months: List[GridMonth] = []
        iterator = tqdm(years, desc="REN years", unit=" year") if show_progress else years
        for i, year in enumerate(iterator):
            if i > 0:
                time.sleep(REQUEST_DELAY)
            all_months.extend(self.fetch_year(year))

        all_months.sort(key=lambda m: (m.year, m.month))
        return NationalGridSnapshot(
            months=tuple(all_months),
            recent_average_corrected_pct=self.adapter.recent_average_pct(all_months),
        )


# ============================================================================
# SNAPSHOT FILES
# ============================================================================

def _json_default(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, SourceKind):
        return value.value
    raise TypeError(f"Cannot serialize {type(value).__name__}")


def _write_json(payload, path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(payload, f, indent=2, default=_json_default)
    logger.info("Saved snapshot to %s", path)


def save_weather_snapshot(snapshot: WeatherSnapshot, path: Union[str, Path] = DEFAULT_WEATHER_FILE):
    _write_json(asdict(snapshot), path)


def load_weather_snapshot(path: Union[str, Path] = DEFAULT_WEATHER_FILE) -> WeatherSnapshot:
    """Read a saved weather snapshot; it is tagged as CACHED."""
    with open(path, encoding='utf-8') as f:
        data = json.load(f)

    days = tuple(
        WeatherDayRecord(
            date=date.fromisoformat(day['date']),
            mean_temperature=float(day['mean_temperature']),
            apparent_temperature=float(day['apparent_temperature']),
            humidity_pct=float(day['humidity_pct']),
            precipitation_mm=float(day['precipitation_mm']),
            condition=str(day['condition']),
            is_forecast=bool(day['is_forecast']),
        )
        for day in data.get('days', [])
    )
    hours = tuple(
        WeatherHourRecord(
            timestamp=datetime.fromisoformat(hour['timestamp']),
            temperature=float(hour['temperature']),
            apparent_temperature=float(hour['apparent_temperature']),
            humidity_pct=float(hour['humidity_pct']),
            precipitation_mm=float(hour['precipitation_mm']),
        )
        for hour in data.get('hours', [])
    )
    current = data.get('current_temperature')
    return WeatherSnapshot(
        current_temperature=None if current is None else float(current),
        days=days,
        hours=hours,
        source=SourceKind.CACHED,
    )


def save_grid_snapshot(snapshot: NationalGridSnapshot, path: Union[str, Path] = DEFAULT_GRID_FILE):
    _write_json(asdict(snapshot), path)


def load_grid_snapshot(path: Union[str, Path] = DEFAULT_GRID_FILE) -> NationalGridSnapshot:
    with open(path, encoding='utf-8') as f:
        data = json.load(f)

    months = tuple(
        GridMonth(
            year=int(month['year']),
            month=int(month['month']),
            consumption_gwh=float(month['consumption_gwh']),
            yoy_pct=float(month['yoy_pct']),
            yoy_corrected_pct=float(month['yoy_corrected_pct']),
        )
        for month in data.get('months', [])
    )
    recent = data.get('recent_average_corrected_pct')
    return NationalGridSnapshot(
        months=months,
        recent_average_corrected_pct=None if recent is None else float(recent),
    )


# Raised by the loaders for missing, truncated or schema-drifted files
SNAPSHOT_READ_ERRORS = (OSError, ValueError, TypeError, KeyError, AttributeError)


def read_cached_snapshot(loader, path):
    """
    Load a saved snapshot, or return None when it is missing or unreadable.

    Args:
        loader: load_weather_snapshot or load_grid_snapshot
        path: Snapshot file
    """
    if not Path(path).exists():
        return None
    try:
        return loader(path)
    except SNAPSHOT_READ_ERRORS as e:
        logger.warning("Ignoring unreadable snapshot %s: %s", path, e)
        return None


# ============================================================================
# FALLBACK CHAINS
# ============================================================================

def _refresh_cache(saver, snapshot, path):
    try:
        saver(snapshot, path)
    except OSError as e:
        logger.warning("Could not update snapshot %s: %s", path, e)


def weather_with_fallback(
    lat=FALLBACK_LAT,
    lon=FALLBACK_LON,
    fetcher: Optional[OpenMeteoFetcher] = None,
    cache_path: Union[str, Path] = DEFAULT_WEATHER_FILE
) -> Optional[WeatherSnapshot]:
    """
    Live weather, else the saved snapshot, else None.

    None makes every forecast day use the seasonal averages.
    """
    fetcher = fetcher or OpenMeteoFetcher()
    try:
        snapshot = fetcher.fetch(lat, lon)
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning("Open-Meteo unavailable: %s", e)
    else:
        _refresh_cache(save_weather_snapshot, snapshot, cache_path)
        return snapshot

    snapshot = read_cached_snapshot(load_weather_snapshot, cache_path)
    if snapshot is not None:
        logger.info("Using cached weather snapshot %s", cache_path)
        return snapshot

    logger.warning("No weather data available; forecasts use seasonal averages")
    return None


def national_trend_with_fallback(
    fetcher: Optional[RENDataFetcher] = None,
    cache_path: Union[str, Path] = DEFAULT_GRID_FILE,
    years: Optional[Iterable[int]] = None
) -> Tuple[Sourced, Optional[NationalGridSnapshot]]:
    """
    National trend factor: live REN data, else saved snapshot, else static table.

    Returns:
        (tagged factor, snapshot used or None for the static table)
    """
    fetcher = fetcher or RENDataFetcher()
    adapter = fetcher.adapter
    try:
        snapshot = fetcher.fetch(years=None if years is None else list(years))
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning("REN Datahub unavailable: %s", e)
    else:
        _refresh_cache(save_grid_snapshot, snapshot, cache_path)
        return adapter.from_snapshot(snapshot, SourceKind.LIVE), snapshot

    snapshot = read_cached_snapshot(load_grid_snapshot, cache_path)
    if snapshot is not None:
        logger.info("Using cached national grid snapshot %s", cache_path)
        return adapter.from_snapshot(snapshot, SourceKind.CACHED), snapshot

    logger.info("Using static national grid reference data")
    return adapter.static_fallback(), None
