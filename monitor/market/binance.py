"""
Binance Market Data Client.

Downloads kline (candlestick) data from Binance's public REST API.
No API key is needed.
"""

import logging
from datetime import datetime, timezone

import httpx

from monitor.core.models import Candle

from .models import MarketDataError, SeriesData

logger = logging.getLogger(__name__)

# Binance API endpoint
BINANCE_API_URL = "https://api.binance.com"
KLINES_PATH = "/api/v3/klines"

# Maximum candles per request (Binance limit)
MAX_LIMIT = 1000


def parse_kline(row: list) -> Candle:
    """
    Convert a Binance kline row into a Candle.

    Row layout: [open_time_ms, open, high, low, close, volume, close_time_ms, ...]
    """
    return Candle(
        timestamp=datetime.fromtimestamp(int(row[0]) / 1000, tz=timezone.utc),
        open=float(row[1]),
        high=float(row[2]),
        low=float(row[3]),
        close=float(row[4]),
        volume=float(row[5]),
    )


class BinanceClient:
    """
    Fetches klines from Binance.

    Usage:
        async with BinanceClient() as client:
            candles = await client.fetch_candles("BTCUSDT", "4h", limit=200)
    """

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 30.0):
        """
        Initialize the client.

        Args:
            client: Pre-configured httpx client (a new one is created if None)
            timeout: Request timeout in seconds for the created client
        """
        self.client = client or httpx.AsyncClient(base_url=BINANCE_API_URL, timeout=timeout)

    async def fetch_candles(self, symbol: str, interval: str, limit: int = 200) -> list[Candle]:
        """
        Fetch the most recent klines.

        Args:
            symbol: Trading pair (e.g., "BTCUSDT")
            interval: Kline interval ("15m", "2h", "4h", "1d", "1w")
            limit: Number of candles (capped at 1000)

        Returns:
            Candles sorted by timestamp ascending

        Raises:
            MarketDataError: On HTTP failure, an error payload or a malformed row
        """
        params: dict[str, str | int] = {
            "symbol": symbol,
            "interval": interval,
            "limit": min(limit, MAX_LIMIT),
        }
        try:
            response = await self.client.get(KLINES_PATH, params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise MarketDataError(f"Binance request failed for {symbol} {interval}: {e}") from e

        if not isinstance(data, list):
            message = data.get("msg", "Unknown error") if isinstance(data, dict) else data
            raise MarketDataError(f"Binance API error for {symbol}: {message}")
        if not data:
            raise MarketDataError(f"No data available for {symbol} {interval}")

        try:
            candles = [parse_kline(row) for row in data]
        except (IndexError, TypeError, ValueError) as e:
            raise MarketDataError(f"Malformed Binance kline for {symbol} {interval}: {e}") from e
        candles.sort(key=lambda c: c.timestamp)
        return candles

    async def fetch_series(self, symbol: str, interval: str, limit: int = 200) -> SeriesData:
        """Fetch klines and reduce them to closes plus the latest candle's open/close."""
        candles = await self.fetch_candles(symbol, interval, limit)
        latest = candles[-1]
        return SeriesData(
            close_prices=[c.close for c in candles],
            latest_open=latest.open,
            latest_close=latest.close,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()
