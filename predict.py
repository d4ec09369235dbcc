"""
Forecast Script for household consumption and cost.

Runs the full pipeline once:
- Loads the consumption history (JSON)
- Fetches weather and national grid data, falling back to saved snapshots
- Prints the 7-day forecast, tomorrow's hourly profile and device split

Usage:
    python predict.py --history data/raw_history.json
    python predict.py --offline --as-of 2026-02-23
"""

import argparse
import logging
import os
import sys
from datetime import date

from dotenv import load_dotenv

from powerpredict.config import (
    DEFAULT_GRID_FILE,
    DEFAULT_HISTORY_FILE,
    DEFAULT_WEATHER_FILE,
    FALLBACK_LAT,
    FALLBACK_LON,
)
from powerpredict.data_fetcher import (
    load_grid_snapshot,
    load_weather_snapshot,
    national_trend_with_fallback,
    read_cached_snapshot,
    weather_with_fallback,
)
from powerpredict.model import predict
from powerpredict.national import NationalTrendAdapter
from powerpredict.preprocessing import HistoryValidationError, load_history
from powerpredict.schemas import SourceKind


def parse_args(argv=None):
    load_dotenv()

    parser = argparse.ArgumentParser(description="Household consumption forecast")
    parser.add_argument('--history', default=os.getenv('POWERPREDICT_HISTORY', DEFAULT_HISTORY_FILE),
                        help="History JSON document")
    parser.add_argument('--lat', type=float, default=float(os.getenv('POWERPREDICT_LAT', FALLBACK_LAT)))
    parser.add_argument('--lon', type=float, default=float(os.getenv('POWERPREDICT_LON', FALLBACK_LON)))
    parser.add_argument('--as-of', type=date.fromisoformat, default=None,
                        help="Forecast start date, YYYY-MM-DD (default: today)")
    parser.add_argument('--offline', action='store_true',
                        help="Use saved snapshots only, no network")
    parser.add_argument('--verbose', action='store_true')
    return parser.parse_args(argv)


def _offline_inputs(weather_path=DEFAULT_WEATHER_FILE, grid_path=DEFAULT_GRID_FILE):
    weather = read_cached_snapshot(load_weather_snapshot, weather_path)

    adapter = NationalTrendAdapter()
    grid = read_cached_snapshot(load_grid_snapshot, grid_path)
    if grid is not None:
        national = adapter.from_snapshot(grid, SourceKind.CACHED)
    else:
        national = adapter.static_fallback()
    return weather, national


def print_report(result, client_id=None):
    print("=" * 70)
    print("  POWERPREDICT FORECAST")
    print("=" * 70)
    if client_id:
        print(f"\n   Client: {client_id}")
    print(f"   As of: {result.as_of}")
    print(f"   Personal trend: x{result.personal_trend:.3f}")
    print(f"   National factor: x{result.national_factor.value:.4f} ({result.national_factor.source.value})")
    print(f"   Confidence: {result.confidence:.0f}%")

    print("\n📅 Next 7 days:")
    for day in result.days:
        weather_tag = "live" if day.used_live_weather else "seasonal"
        print(f"   {day.label} {day.date}  {day.predicted_kwh:6.2f} kWh "
              f"[{day.lower_bound:5.2f} - {day.upper_bound:5.2f}]  "
              f"€{day.cost:5.2f}  {day.apparent_temperature:5.1f}°C {day.condition} ({weather_tag})")

    print(f"\n💶 Week: {result.weekly.total_kwh:.2f} kWh, €{result.weekly.total_cost:.2f} "
          f"({result.weekly.change_pct:+.1f}% vs last 7 days)")

    print(f"\n🕐 Tomorrow ({result.tomorrow.date}) by hour:")
    for hour in result.hours:
        band = "peak" if hour.is_peak else "off-peak"
        print(f"   {hour.label}  {hour.kwh:5.3f} kWh  €{hour.cost:5.3f}  {band}")

    print("\n🔌 Tomorrow by device:")
    for device in result.devices:
        print(f"   {device.name:<18} {device.kwh:5.2f} kWh  {device.percent:4.1f}%")

    if result.advisories:
        print("\n⚠️  Notes:")
        for message in result.advisories:
            print(f"   - {message}")
    print()


def main(argv=None):
    """Main forecast function."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        history = load_history(args.history)
    except FileNotFoundError:
        print(f"❌ ERROR: history file not found: {args.history}")
        print("   Generate one with: python scripts/generate_history.py")
        sys.exit(1)
    except HistoryValidationError as e:
        print(f"❌ ERROR: invalid history: {e}")
        sys.exit(1)

    if args.offline:
        weather, national = _offline_inputs()
    else:
        weather = weather_with_fallback(args.lat, args.lon)
        national, _snapshot = national_trend_with_fallback()

    result = predict(history, args.as_of or date.today(), weather, national)
    print_report(result, history.client_id)
    return result


if __name__ == "__main__":
    main()
