"""
Market Data Module - Vendor clients and snapshot building.

Binance supplies crypto klines, Twelve Data supplies daily stock bars and
alternative.me supplies the crypto Fear & Greed Index.
Everything above this layer only sees SeriesData and AssetSnapshot.
"""

from .binance import BinanceClient, parse_kline
from .fear_greed import FearGreedClient, FearGreedReading, SentimentBand
from .historical import generate_filename, load_candles_csv, save_candles_csv
from .models import MarketDataError, SeriesData
from .service import MarketDataService, RefreshResult
from .snapshots import build_snapshot
from .twelve_data import TwelveDataClient

__all__ = [
    "BinanceClient",
    "FearGreedClient",
    "FearGreedReading",
    "MarketDataError",
    "MarketDataService",
    "RefreshResult",
    "SentimentBand",
    "SeriesData",
    "TwelveDataClient",
    "build_snapshot",
    "generate_filename",
    "load_candles_csv",
    "parse_kline",
    "save_candles_csv",
]
