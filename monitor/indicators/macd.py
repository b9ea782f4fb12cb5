"""
MACD Indicator - Moving Average Convergence Divergence.

Trend-following momentum indicator showing the relationship
between two exponential moving averages of price.
"""

from dataclasses import dataclass

from .moving_averages import ema_series


@dataclass
class MACDResult:
    """Result of MACD calculation."""

    macd_line: float  # Fast EMA - Slow EMA
    signal_line: float  # EMA of MACD line
    histogram: float  # MACD line - Signal line

    @property
    def is_bullish(self) -> bool:
        """True if MACD is above signal line."""
        return self.histogram > 0

    @property
    def is_bearish(self) -> bool:
        """True if MACD is below signal line."""
        return self.histogram < 0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "macd_line": self.macd_line,
            "signal_line": self.signal_line,
            "histogram": self.histogram,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MACDResult":
        """Create from dictionary."""
        return cls(
            macd_line=float(data["macd_line"]),
            signal_line=float(data["signal_line"]),
            histogram=float(data["histogram"]),
        )


def macd_series(
    prices: list[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> list[MACDResult]:
    """
    Calculate MACD for every data point.

    MACD Line = Fast EMA - Slow EMA
    Signal Line = EMA of MACD Line
    Histogram = MACD Line - Signal Line

    All EMAs are seeded with their first input value, so every series
    has the same length as prices and no warm-up points are dropped.

    Args:
        prices: List of prices (most recent last)
        fast: Fast EMA period (default 12)
        slow: Slow EMA period (default 26)
        signal: Signal line EMA period (default 9)

    Returns:
        List of MACDResult objects, index-aligned with prices
    """
    fast_ema = ema_series(prices, fast)
    slow_ema = ema_series(prices, slow)

    macd_line = [f - s for f, s in zip(fast_ema, slow_ema)]
    signal_line = ema_series(macd_line, signal)

    return [
        MACDResult(macd_line=m, signal_line=s, histogram=m - s)
        for m, s in zip(macd_line, signal_line)
    ]


def macd(
    prices: list[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> MACDResult | None:
    """
    Calculate the current MACD reading.

    Args:
        prices: List of prices (most recent last)
        fast: Fast EMA period (default 12)
        slow: Slow EMA period (default 26)
        signal: Signal line EMA period (default 9)

    Returns:
        Latest MACDResult, or None for an empty series
    """
    results = macd_series(prices, fast=fast, slow=slow, signal=signal)
    return results[-1] if results else None
