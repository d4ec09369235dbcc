"""
Download weather and national grid snapshots for offline forecasting.

Fetches the Open-Meteo 12-day hourly window for the household location and
the REN Datahub monthly national consumption, and saves both to data/raw/

Usage:
    python scripts/download_data.py
"""

import sys
import os
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import requests
from dotenv import load_dotenv

from powerpredict.config import (
    DEFAULT_GRID_FILE,
    DEFAULT_WEATHER_FILE,
    FALLBACK_LAT,
    FALLBACK_LON,
)
from powerpredict.data_fetcher import (
    OpenMeteoFetcher,
    RENDataFetcher,
    save_grid_snapshot,
    save_weather_snapshot,
)


def main():
    """Main download function."""

    print("=" * 70)
    print("  WEATHER & NATIONAL GRID DOWNLOADER")
    print("=" * 70)
    print()

    # Location from .env, Lisbon otherwise
    load_dotenv()
    lat = float(os.getenv('POWERPREDICT_LAT', FALLBACK_LAT))
    lon = float(os.getenv('POWERPREDICT_LON', FALLBACK_LON))

    print(f"📍 Location: ({lat:.4f}, {lon:.4f})")
    print()

    failures = 0

    try:
        weather = OpenMeteoFetcher().fetch(lat, lon)
        save_weather_snapshot(weather, DEFAULT_WEATHER_FILE)
        live_days = sum(1 for day in weather.days if day.is_forecast)
        print(f"✅ Weather: {len(weather.hours)} hours, {len(weather.days)} days "
              f"({live_days} forecast)")
        print(f"   Saved to: {DEFAULT_WEATHER_FILE}")
    except (requests.exceptions.RequestException, ValueError) as e:
        failures += 1
        print(f"❌ Weather download failed: {e}")

    print()

    try:
        grid = RENDataFetcher().fetch(show_progress=True)
        save_grid_snapshot(grid, DEFAULT_GRID_FILE)
        print(f"✅ National grid: {len(grid.months)} months, "
              f"recent corrected YoY {grid.recent_average_corrected_pct}%")
        print(f"   Saved to: {DEFAULT_GRID_FILE}")
    except (requests.exceptions.RequestException, ValueError) as e:
        failures += 1
        print(f"❌ National grid download failed: {e}")

    print()
    if failures:
        print("Troubleshooting:")
        print("1. Verify internet connection")
        print("2. Check POWERPREDICT_LAT / POWERPREDICT_LON in .env")
        print("3. Forecasts still run: missing data falls back to seasonal/static tables")
        print()
        sys.exit(1)

    print("🎉 Next step: python predict.py --offline")
    print()


if __name__ == "__main__":
    main()
