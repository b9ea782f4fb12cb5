"""
Core data models for market monitoring.

Contains:
- Timeframe / AssetType: enums shared by every layer
- AssetInfo: static description of a watched symbol
- Candle: one OHLC candlestick
- AssetSnapshot: indicator readings for one asset on one timeframe
- MarketAsset: one refresh cycle's readings for an asset across timeframes
- parse_timestamp: ISO-8601 parsing that also accepts a trailing "Z"
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from monitor.indicators import MACDResult


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp.

    A trailing "Z" (as written by JavaScript's toISOString) is read as UTC;
    datetime.fromisoformat only accepts it from Python 3.11 on.
    """
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


class Timeframe(Enum):
    """Candle timeframes shown on the dashboard."""

    M15 = "15m"
    H2 = "2h"
    H4 = "4h"
    D1 = "1d"
    W1 = "1w"


class AssetType(Enum):
    """Market an asset belongs to."""

    CRYPTO = "CRYPTO"
    STOCK = "STOCK"
    COMMODITY = "COMMODITY"


@dataclass(frozen=True)
class AssetInfo:
    """
    A watched symbol.

    Example: AssetInfo("btc", "BTC", "Bitcoin", AssetType.CRYPTO, "BTCUSDT")
    """

    id: str  # Stable id used by rules ("btc", "aapl")
    symbol: str  # Display symbol ("BTC", "AAPL")
    name: str
    asset_type: AssetType
    vendor_symbol: str = ""  # Symbol on the data vendor ("BTCUSDT")

    @property
    def fetch_symbol(self) -> str:
        """Symbol to request from the data vendor."""
        return self.vendor_symbol or self.symbol


@dataclass
class Candle:
    """A single OHLC candlestick."""

    timestamp: datetime  # Candle open time
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @property
    def is_bullish(self) -> bool:
        """Returns True if close >= open (green candle)."""
        return self.close >= self.open

    @property
    def change_percent(self) -> float:
        """Open-to-close change in percent."""
        return (self.close - self.open) / self.open * 100 if self.open else 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }


@dataclass
class AssetSnapshot:
    """Indicator readings for one asset on one timeframe at a point in time."""

    rsi: float
    macd: MACDResult
    price: float
    change_percent: float

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "rsi": self.rsi,
            "macd": self.macd.to_dict(),
            "price": self.price,
            "change_percent": self.change_percent,
        }


@dataclass
class MarketAsset:
    """
    An asset with its snapshots from one refresh cycle.

    Snapshots are keyed by timeframe; a timeframe is missing only if the
    fetch layer had no data for it.
    """

    info: AssetInfo
    snapshots: dict[Timeframe, AssetSnapshot] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.info.id

    @property
    def symbol(self) -> str:
        return self.info.symbol

    def snapshot(self, timeframe: Timeframe) -> AssetSnapshot | None:
        """Get the snapshot for a timeframe, or None if not available."""
        return self.snapshots.get(timeframe)
