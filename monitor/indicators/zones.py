"""
RSI Zones - Bucket RSI readings into heat-map bands.

Used by the dashboard to summarize how many assets sit in each
part of the RSI range on a given timeframe.
"""

from enum import Enum


class RSIZone(Enum):
    """RSI bands as (label, lower bound inclusive, upper bound exclusive)."""

    OVERBOUGHT = ("Overbought", 70.0, 100.0)
    STRONG = ("Strong", 60.0, 70.0)
    NEUTRAL = ("Neutral", 40.0, 60.0)
    WEAK = ("Weak", 30.0, 40.0)
    OVERSOLD = ("Oversold", 0.0, 30.0)

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def lower(self) -> float:
        return self.value[1]

    @property
    def upper(self) -> float:
        return self.value[2]

    def contains(self, value: float) -> bool:
        """True if value falls inside this band (100 belongs to OVERBOUGHT)."""
        if self is RSIZone.OVERBOUGHT:
            return self.lower <= value <= self.upper
        return self.lower <= value < self.upper


def rsi_zone(value: float) -> RSIZone:
    """
    Classify an RSI reading.

    Values outside [0, 100] (or NaN) fall back to NEUTRAL.
    """
    for zone in RSIZone:
        if zone.contains(value):
            return zone
    return RSIZone.NEUTRAL


def zone_distribution(values: list[float]) -> dict[RSIZone, int]:
    """Count readings per zone. Every zone is present, even with a zero count."""
    counts = {zone: 0 for zone in RSIZone}
    for value in values:
        counts[rsi_zone(value)] += 1
    return counts


def average_rsi(values: list[float]) -> float:
    """Mean RSI across readings (0 when there are none)."""
    if not values:
        return 0.0
    return sum(values) / len(values)
