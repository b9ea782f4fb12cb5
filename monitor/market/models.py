"""
Data models for the market-data layer.
"""

from dataclasses import dataclass


class MarketDataError(RuntimeError):
    """Raised when a data vendor fails or returns an unusable payload."""


@dataclass
class SeriesData:
    """
    Price history for one symbol on one timeframe.

    close_prices is chronological (oldest first). latest_open and
    latest_close define the change shown next to the price.
    """

    close_prices: list[float]
    latest_open: float
    latest_close: float

    def __post_init__(self) -> None:
        """Validate series."""
        if not self.close_prices:
            raise ValueError("close_prices must not be empty")

    @property
    def change_percent(self) -> float:
        """Change from latest_open to latest_close in percent."""
        if self.latest_open == 0:
            return 0.0
        return (self.latest_close - self.latest_open) / self.latest_open * 100
