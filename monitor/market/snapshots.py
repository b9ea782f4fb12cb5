"""
Snapshot builder - Turns a price series into the readings rules consume.
"""

from monitor.core.models import AssetSnapshot
from monitor.indicators import MACDResult, macd, rsi

from .models import SeriesData


def build_snapshot(series: SeriesData, rsi_period: int = 14) -> AssetSnapshot:
    """
    Compute the latest RSI and MACD for a series.

    Args:
        series: Chronological closes plus the latest open/close
        rsi_period: RSI lookback

    Returns:
        AssetSnapshot priced at the latest close
    """
    macd_value = macd(series.close_prices) or MACDResult(0.0, 0.0, 0.0)
    return AssetSnapshot(
        rsi=rsi(series.close_prices, rsi_period),
        macd=macd_value,
        price=series.latest_close,
        change_percent=series.change_percent,
    )
