"""
Technical Indicators Module - Pure math functions for market analysis.

Layer 1 of the monitor: all functions are stateless, operate on
close-price lists and return series aligned with their input.
"""

from .macd import MACDResult, macd, macd_series
from .moving_averages import ema, ema_series
from .rsi import NEUTRAL_RSI, rsi, rsi_series
from .zones import RSIZone, average_rsi, rsi_zone, zone_distribution

__all__ = [
    # Moving Averages
    "ema",
    "ema_series",
    # RSI
    "NEUTRAL_RSI",
    "rsi",
    "rsi_series",
    # MACD
    "macd",
    "macd_series",
    "MACDResult",
    # RSI Zones
    "RSIZone",
    "rsi_zone",
    "zone_distribution",
    "average_rsi",
]
