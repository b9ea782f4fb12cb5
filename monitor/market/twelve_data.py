"""
Twelve Data Client - daily bars for US stocks.

The free tier allows 8 requests per minute; pacing is left to the caller
(see MarketDataService).
"""

import logging

import httpx

from .models import MarketDataError, SeriesData

logger = logging.getLogger(__name__)

TWELVE_DATA_API_URL = "https://api.twelvedata.com"
TIME_SERIES_PATH = "/time_series"


class TwelveDataClient:
    """
    Fetches daily time series from Twelve Data.

    Usage:
        async with TwelveDataClient(api_key) as client:
            series = await client.fetch_series("AAPL")
    """

    def __init__(
        self,
        api_key: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        """
        Initialize the client.

        Args:
            api_key: Twelve Data API key
            client: Pre-configured httpx client (a new one is created if None)
            timeout: Request timeout in seconds for the created client
        """
        self.api_key = api_key
        self.client = client or httpx.AsyncClient(base_url=TWELVE_DATA_API_URL, timeout=timeout)

    async def fetch_series(self, symbol: str, output_size: int = 200) -> SeriesData:
        """
        Fetch daily closes for a stock.

        The vendor returns bars newest first; they are reversed into
        chronological order. latest_open is set to the previous close so
        the reported change is day-over-day.

        Raises:
            MarketDataError: On HTTP failure or an error payload
        """
        params: dict[str, str | int] = {
            "symbol": symbol,
            "interval": "1day",
            "outputsize": output_size,
            "apikey": self.api_key,
        }
        try:
            response = await self.client.get(TIME_SERIES_PATH, params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise MarketDataError(f"Twelve Data request failed for {symbol}: {e}") from e

        if not isinstance(data, dict):
            raise MarketDataError(f"Unexpected Twelve Data payload for {symbol}")
        values = data.get("values")
        if data.get("status") == "error" or not values:
            raise MarketDataError(
                f"Twelve Data error for {symbol}: {data.get('message', 'no values returned')}"
            )

        try:
            closes = [float(v["close"]) for v in reversed(values)]
        except (KeyError, TypeError, ValueError) as e:
            raise MarketDataError(f"Malformed Twelve Data bar for {symbol}: {e}") from e

        latest_close = closes[-1]
        previous_close = closes[-2] if len(closes) > 1 else latest_close
        return SeriesData(
            close_prices=closes,
            latest_open=previous_close,
            latest_close=latest_close,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()
