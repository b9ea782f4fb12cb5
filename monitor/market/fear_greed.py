"""
Crypto Fear & Greed Index Client.

Reads the daily index from alternative.me (no API key needed). The
latest two readings are requested so the change since the previous day
can be shown next to the current value.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

import httpx

from .models import MarketDataError

logger = logging.getLogger(__name__)

FEAR_GREED_API_URL = "https://api.alternative.me"
FEAR_GREED_PATH = "/fng/"


class SentimentBand(Enum):
    """Index bands, each with an inclusive upper bound."""

    EXTREME_FEAR = ("Extreme Fear", 25)
    FEAR = ("Fear", 45)
    NEUTRAL = ("Neutral", 55)
    GREED = ("Greed", 75)
    EXTREME_GREED = ("Extreme Greed", 100)

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def upper(self) -> int:
        return self.value[1]

    @classmethod
    def for_value(cls, value: int) -> "SentimentBand":
        for band in cls:
            if value <= band.upper:
                return band
        return cls.EXTREME_GREED


@dataclass
class FearGreedReading:
    """Current index value with the previous day's for comparison."""

    value: int  # 0 (extreme fear) .. 100 (extreme greed)
    classification: str  # Vendor label ("Fear", "Greed", ...)
    timestamp: datetime
    previous_value: int | None = None
    previous_classification: str | None = None

    @property
    def change(self) -> int | None:
        """Points gained since the previous reading."""
        if self.previous_value is None:
            return None
        return self.value - self.previous_value

    @property
    def band(self) -> SentimentBand:
        return SentimentBand.for_value(self.value)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "value": self.value,
            "classification": self.classification,
            "timestamp": self.timestamp.isoformat(),
            "previous_value": self.previous_value,
            "previous_classification": self.previous_classification,
            "change": self.change,
        }


class FearGreedClient:
    """
    Fetches the Fear & Greed Index.

    Usage:
        async with FearGreedClient() as client:
            reading = await client.fetch()
    """

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 15.0):
        self.client = client or httpx.AsyncClient(base_url=FEAR_GREED_API_URL, timeout=timeout)

    async def fetch(self) -> FearGreedReading:
        """
        Fetch the latest reading.

        Raises:
            MarketDataError: On HTTP failure or an unusable payload
        """
        try:
            response = await self.client.get(FEAR_GREED_PATH, params={"limit": 2})
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise MarketDataError(f"Fear & Greed request failed: {e}") from e

        entries = data.get("data") if isinstance(data, dict) else None
        if not entries:
            raise MarketDataError("Fear & Greed payload has no data")

        try:
            current = entries[0]
            previous = entries[1] if len(entries) > 1 else None
            reading = FearGreedReading(
                value=int(current["value"]),
                classification=current["value_classification"],
                timestamp=datetime.fromtimestamp(int(current["timestamp"]), tz=timezone.utc),
                previous_value=int(previous["value"]) if previous else None,
                previous_classification=previous["value_classification"] if previous else None,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MarketDataError(f"Malformed Fear & Greed entry: {e}") from e

        logger.debug(f"Fear & Greed: {reading.value} ({reading.classification})")
        return reading

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()
