"""
Monitor configuration and thresholds.

Centralizes the watch list, refresh cadence and retention limits for easy tuning.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from monitor.core.models import AssetInfo, AssetType, Timeframe

CRYPTO_ASSETS: tuple[AssetInfo, ...] = (
    AssetInfo("btc", "BTC", "Bitcoin", AssetType.CRYPTO, "BTCUSDT"),
    AssetInfo("eth", "ETH", "Ethereum", AssetType.CRYPTO, "ETHUSDT"),
    AssetInfo("bnb", "BNB", "Binance Coin", AssetType.CRYPTO, "BNBUSDT"),
    AssetInfo("sol", "SOL", "Solana", AssetType.CRYPTO, "SOLUSDT"),
    AssetInfo("xrp", "XRP", "Ripple", AssetType.CRYPTO, "XRPUSDT"),
    AssetInfo("doge", "DOGE", "Dogecoin", AssetType.CRYPTO, "DOGEUSDT"),
    AssetInfo("ada", "ADA", "Cardano", AssetType.CRYPTO, "ADAUSDT"),
    AssetInfo("avax", "AVAX", "Avalanche", AssetType.CRYPTO, "AVAXUSDT"),
    AssetInfo("shib", "SHIB", "Shiba Inu", AssetType.CRYPTO, "SHIBUSDT"),
    AssetInfo("dot", "DOT", "Polkadot", AssetType.CRYPTO, "DOTUSDT"),
    AssetInfo("link", "LINK", "Chainlink", AssetType.CRYPTO, "LINKUSDT"),
    AssetInfo("trx", "TRX", "Tron", AssetType.CRYPTO, "TRXUSDT"),
    AssetInfo("matic", "MATIC", "Polygon", AssetType.CRYPTO, "MATICUSDT"),
    AssetInfo("ltc", "LTC", "Litecoin", AssetType.CRYPTO, "LTCUSDT"),
    AssetInfo("near", "NEAR", "Near Protocol", AssetType.CRYPTO, "NEARUSDT"),
    # Gold token trades on Binance but is not part of "all crypto"
    AssetInfo("gold", "PAXG", "Gold (Pax)", AssetType.COMMODITY, "PAXGUSDT"),
)

STOCK_ASSETS: tuple[AssetInfo, ...] = (
    AssetInfo("aapl", "AAPL", "Apple", AssetType.STOCK),
    AssetInfo("msft", "MSFT", "Microsoft", AssetType.STOCK),
    AssetInfo("googl", "GOOGL", "Google", AssetType.STOCK),
    AssetInfo("amzn", "AMZN", "Amazon", AssetType.STOCK),
    AssetInfo("tsla", "TSLA", "Tesla", AssetType.STOCK),
    AssetInfo("meta", "META", "Meta", AssetType.STOCK),
    AssetInfo("nvda", "NVDA", "Nvidia", AssetType.STOCK),
)


@dataclass
class MonitorConfig:
    """Configuration for the monitoring pipeline.

    TUNABLE PARAMETERS:
    - Cadence: refresh_interval_seconds, stock_request_delay_seconds
    - Data: kline_limit, stock_output_size, rsi_period
    - Retention: signal_retention
    """

    # =========================================================
    # Watch List
    # =========================================================

    crypto_assets: tuple[AssetInfo, ...] = CRYPTO_ASSETS
    stock_assets: tuple[AssetInfo, ...] = STOCK_ASSETS

    # Timeframes fetched for every crypto asset on each refresh
    timeframes: tuple[Timeframe, ...] = tuple(Timeframe)

    # =========================================================
    # Refresh Cadence
    # =========================================================

    # Seconds between market-data refreshes (one rule evaluation per refresh)
    refresh_interval_seconds: float = 60.0

    # Delay between stock requests (free tier allows 8 requests per minute)
    stock_request_delay_seconds: float = 8.0

    # =========================================================
    # Data & Indicators
    # =========================================================

    # Candles requested per crypto symbol and timeframe
    kline_limit: int = 200

    # Daily bars requested per stock symbol
    stock_output_size: int = 200

    rsi_period: int = 14

    # =========================================================
    # Retention & Storage
    # =========================================================

    # Maximum signals kept in the feed (oldest evicted first)
    signal_retention: int = 50

    data_dir: Path = field(default_factory=lambda: Path("data"))

    # API key for Twelve Data (stocks); stocks are skipped without it
    twelve_data_api_key: str | None = None

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.refresh_interval_seconds <= 0:
            raise ValueError("refresh_interval_seconds must be positive")
        if self.signal_retention < 1:
            raise ValueError("signal_retention must be at least 1")
        if not 0 < self.kline_limit <= 1000:
            raise ValueError("kline_limit must be between 1 and 1000")
        if self.rsi_period <= 0:
            raise ValueError("rsi_period must be positive")

    @property
    def all_assets(self) -> tuple[AssetInfo, ...]:
        """Every watched asset, crypto first."""
        return self.crypto_assets + self.stock_assets

    def find_asset(self, asset_id: str) -> AssetInfo | None:
        """Look up an asset by id."""
        for asset in self.all_assets:
            if asset.id == asset_id:
                return asset
        return None

    @classmethod
    def from_env(cls, env_path: str | Path | None = None, **overrides) -> "MonitorConfig":
        """
        Build a config using environment variables (and a .env file if present).

        Recognized variables:
            TWELVE_DATA_API_KEY: API key for stock data
            MONITOR_DATA_DIR: Directory for rules/signals JSON
            MONITOR_REFRESH_SECONDS: Refresh interval
        """
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        values: dict = {}
        if api_key := os.getenv("TWELVE_DATA_API_KEY"):
            values["twelve_data_api_key"] = api_key
        if data_dir := os.getenv("MONITOR_DATA_DIR"):
            values["data_dir"] = Path(data_dir)
        if refresh := os.getenv("MONITOR_REFRESH_SECONDS"):
            values["refresh_interval_seconds"] = float(refresh)

        values.update(overrides)
        return cls(**values)


# Default configuration instance
DEFAULT_CONFIG = MonitorConfig()
