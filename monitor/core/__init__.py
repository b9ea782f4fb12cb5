"""
Core models and configuration for the market monitor.

Modules:
- models: Timeframes, asset descriptions and indicator snapshots
- config: Watch list, refresh cadence and retention limits
"""

from monitor.core.config import CRYPTO_ASSETS, DEFAULT_CONFIG, STOCK_ASSETS, MonitorConfig
from monitor.core.models import (
    AssetInfo,
    AssetSnapshot,
    AssetType,
    Candle,
    MarketAsset,
    Timeframe,
    parse_timestamp,
)

__all__ = [
    "AssetInfo",
    "AssetSnapshot",
    "AssetType",
    "Candle",
    "CRYPTO_ASSETS",
    "DEFAULT_CONFIG",
    "MarketAsset",
    "MonitorConfig",
    "STOCK_ASSETS",
    "Timeframe",
    "parse_timestamp",
]
