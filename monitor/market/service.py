"""
Market Data Service - Builds one refresh cycle's asset list.

Crypto assets are fetched concurrently from Binance on every configured
timeframe. Stocks come from Twelve Data one at a time with a pause
between requests; their single daily snapshot is reused for every
timeframe. An asset is either returned with all of its snapshots or
skipped for the cycle.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field

from monitor.core.config import MonitorConfig
from monitor.core.models import AssetInfo, AssetSnapshot, AssetType, MarketAsset, Timeframe

from .binance import BinanceClient
from .models import MarketDataError
from .snapshots import build_snapshot
from .twelve_data import TwelveDataClient

logger = logging.getLogger(__name__)


@dataclass
class RefreshResult:
    """Assets fetched in one cycle plus the symbols that had to be skipped."""

    assets: list[MarketAsset] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)  # symbol -> error message

    @property
    def is_empty(self) -> bool:
        return not self.assets


class MarketDataService:
    """
    Fetches and indexes market data for the watch list.

    Usage:
        service = MarketDataService(config, BinanceClient())
        result = await service.refresh()
    """

    def __init__(
        self,
        config: MonitorConfig,
        binance: BinanceClient,
        twelve_data: TwelveDataClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize the service.

        Args:
            config: Watch list and fetch limits
            binance: Client for crypto klines
            twelve_data: Client for stocks (stocks are skipped if None)
            sleep: Awaitable used to pace stock requests
        """
        self.config = config
        self.binance = binance
        self.twelve_data = twelve_data
        self._sleep = sleep

    async def refresh(self, timeframes: tuple[Timeframe, ...] | None = None) -> RefreshResult:
        """
        Fetch every watched asset.

        Args:
            timeframes: Timeframes for crypto assets (default: config.timeframes)

        Returns:
            RefreshResult with crypto assets first, then stocks
        """
        timeframes = timeframes or self.config.timeframes
        result = RefreshResult()

        crypto = await asyncio.gather(
            *(self._fetch_crypto(info, timeframes) for info in self.config.crypto_assets),
            return_exceptions=True,
        )
        for info, outcome in zip(self.config.crypto_assets, crypto):
            if isinstance(outcome, MarketDataError):
                logger.warning(f"Skipping {info.symbol}: {outcome}")
                result.failures[info.symbol] = str(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.assets.append(outcome)

        if self.twelve_data is None:
            if self.config.stock_assets:
                logger.info("No Twelve Data API key configured, skipping stocks")
        else:
            await self._fetch_stocks(self.twelve_data, timeframes, result)

        logger.info(
            f"Refreshed {len(result.assets)} assets ({len(result.failures)} skipped)"
        )
        return result

    async def latest_prices(self, symbols: Iterable[str]) -> dict[str, float]:
        """
        Fetch the latest price of a few watched symbols.

        Crypto prices come from the newest 15m candle, stocks from the
        latest daily bar. Symbols that are not watched or cannot be
        fetched are left out.

        Returns:
            Price by uppercase display symbol
        """
        wanted = {s.upper() for s in symbols}
        assets = [a for a in self.config.all_assets if a.symbol.upper() in wanted]
        crypto = [a for a in assets if a.asset_type is not AssetType.STOCK]
        stocks = [a for a in assets if a.asset_type is AssetType.STOCK]
        prices: dict[str, float] = {}

        outcomes = await asyncio.gather(
            *(self.binance.fetch_series(a.fetch_symbol, Timeframe.M15.value, 2) for a in crypto),
            return_exceptions=True,
        )
        for info, outcome in zip(crypto, outcomes):
            if isinstance(outcome, MarketDataError):
                logger.warning(f"No price for {info.symbol}: {outcome}")
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                prices[info.symbol.upper()] = outcome.latest_close

        client = self.twelve_data
        if stocks and client is None:
            logger.info("No Twelve Data API key configured, stock prices unavailable")
        elif client is not None:
            for i, info in enumerate(stocks):
                try:
                    series = await client.fetch_series(info.fetch_symbol, 2)
                except MarketDataError as e:
                    logger.warning(f"No price for {info.symbol}: {e}")
                else:
                    prices[info.symbol.upper()] = series.latest_close
                if i < len(stocks) - 1:
                    await self._sleep(self.config.stock_request_delay_seconds)

        unknown = wanted - {a.symbol.upper() for a in assets}
        if unknown:
            logger.info(f"Not on the watch list: {', '.join(sorted(unknown))}")
        return prices

    async def _fetch_crypto(
        self, info: AssetInfo, timeframes: tuple[Timeframe, ...]
    ) -> MarketAsset:
        series = await asyncio.gather(
            *(
                self.binance.fetch_series(info.fetch_symbol, tf.value, self.config.kline_limit)
                for tf in timeframes
            )
        )
        snapshots = {
            tf: build_snapshot(s, self.config.rsi_period) for tf, s in zip(timeframes, series)
        }
        return MarketAsset(info=info, snapshots=snapshots)

    async def _fetch_stocks(
        self,
        client: TwelveDataClient,
        timeframes: tuple[Timeframe, ...],
        result: RefreshResult,
    ) -> None:
        stocks = self.config.stock_assets

        for i, info in enumerate(stocks):
            try:
                series = await client.fetch_series(
                    info.fetch_symbol, self.config.stock_output_size
                )
            except MarketDataError as e:
                logger.warning(f"Skipping {info.symbol}: {e}")
                result.failures[info.symbol] = str(e)
            else:
                snapshot: AssetSnapshot = build_snapshot(series, self.config.rsi_period)
                result.assets.append(
                    MarketAsset(info=info, snapshots={tf: snapshot for tf in timeframes})
                )

            if i < len(stocks) - 1:
                await self._sleep(self.config.stock_request_delay_seconds)
