"""
Historical Data Source - Candle CSV files for offline backtests.

CSV columns: timestamp (ISO-8601), open, high, low, close, volume
"""

import csv
from pathlib import Path

from monitor.core.models import Candle, parse_timestamp

CSV_FIELDS = ["timestamp", "open", "high", "low", "close", "volume"]


def load_candles_csv(filepath: str | Path) -> list[Candle]:
    """
    Read candles from a CSV file.

    Args:
        filepath: Path to the CSV file

    Returns:
        Candles sorted by timestamp ascending

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file has no rows
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Historical data file not found: {filepath}")

    candles: list[Candle] = []
    with path.open() as f:
        reader = csv.DictReader(f)
        for row in reader:
            candles.append(
                Candle(
                    timestamp=parse_timestamp(row["timestamp"]),
                    open=float(row["open"]),
                    high=float(row["high"]),
                    low=float(row["low"]),
                    close=float(row["close"]),
                    volume=float(row.get("volume") or 0.0),
                )
            )

    if not candles:
        raise ValueError(f"No data found in {path}")

    candles.sort(key=lambda c: c.timestamp)
    return candles


def save_candles_csv(candles: list[Candle], filepath: str | Path) -> Path:
    """
    Save candles to a CSV file, creating parent directories.

    Returns:
        Path to saved file
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for candle in candles:
            writer.writerow(candle.to_dict())

    return path


def generate_filename(symbol: str, interval: str, candles: list[Candle]) -> str:
    """Generate a descriptive filename, e.g. BTCUSDT_4h_20260101_to_20260330.csv"""
    start = candles[0].timestamp.strftime("%Y%m%d") if candles else "empty"
    end = candles[-1].timestamp.strftime("%Y%m%d") if candles else "empty"
    return f"{symbol}_{interval}_{start}_to_{end}.csv"
