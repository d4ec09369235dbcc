"""
Generate a synthetic hourly consumption history.

30 days of hourly readings starting 2026-01-24: an evening peak (19h-22h)
around 1.8 kWh, 0.5 kWh otherwise, plus up to 0.7 kWh of uniform noise.

Usage:
    python scripts/generate_history.py [--output data/raw_history.json] [--seed 42]
"""

import argparse
import json
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import numpy as np

from powerpredict.config import DEFAULT_HISTORY_FILE, OFF_PEAK_RATE, PEAK_RATE, PEAK_START_HOUR

START_DATE = datetime(2026, 1, 24)
EVENING_PEAK = (19, 22)


def generate_raw_history(client_id="GE-HACK-2026", days=30, start=START_DATE, seed=None):
    """
    Build a history document.

    Args:
        client_id (str): Client identifier
        days (int): Number of days
        start (datetime): First day (local midnight)
        seed (int): Random seed for reproducible output

    Returns:
        dict: {"clientId": ..., "history": [...]}
    """
    rng = np.random.default_rng(seed)
    history = []

    for d in range(days):
        day = start + timedelta(days=d)
        for h in range(24):
            is_peak = EVENING_PEAK[0] <= h <= EVENING_PEAK[1]
            base = 1.8 if is_peak else 0.5
            history.append({
                'timestamp': (day + timedelta(hours=h)).isoformat(),
                'kwh': round(base + float(rng.random()) * 0.7, 2),
                'cost_rate': OFF_PEAK_RATE if h < PEAK_START_HOUR else PEAK_RATE,
            })

    return {'clientId': client_id, 'history': history}


def main():
    parser = argparse.ArgumentParser(description="Generate a synthetic history document")
    parser.add_argument('--output', default=DEFAULT_HISTORY_FILE)
    parser.add_argument('--days', type=int, default=30)
    parser.add_argument('--seed', type=int, default=None)
    args = parser.parse_args()

    document = generate_raw_history(days=args.days, seed=args.seed)

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, 'w', encoding='utf-8') as f:
        json.dump(document, f, indent=2)

    print(f"✅ {len(document['history']):,} readings written to {output}")


if __name__ == "__main__":
    main()
