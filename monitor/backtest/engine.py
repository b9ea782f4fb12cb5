"""
Backtest Engine - Replays a candle series through an RSI entry rule.

Flow: Candles → RSI series → FLAT / IN_TRADE walk → Trade ledger → Statistics

One position at a time. A position is opened when the entry rule holds
and closed when the close moves take_profit_pct above or stop_loss_pct
below the entry close. A position still open when the data runs out is
discarded.
"""

import logging

from monitor.core.models import Candle
from monitor.indicators import rsi_series

from .models import (
    BacktestConfig,
    BacktestResult,
    EntryCondition,
    ExitReason,
    Trade,
    TradeOutcome,
)

logger = logging.getLogger(__name__)


def run_backtest(
    candles: list[Candle],
    entry: EntryCondition,
    take_profit_pct: float,
    stop_loss_pct: float,
    rsi_period: int = 14,
    max_recent_trades: int = 20,
) -> BacktestResult:
    """
    Simulate the entry rule with take-profit / stop-loss exits.

    RSI is computed over every close, then the first `rsi_period` candles
    are dropped so each remaining candle carries a real RSI reading.

    Args:
        candles: OHLC candles in chronological order
        entry: RSI entry rule
        take_profit_pct: Exit with a win at this % gain (e.g. 10 = +10%)
        stop_loss_pct: Exit with a loss at this % drop (positive number)
        rsi_period: RSI lookback
        max_recent_trades: Trades kept in the result ledger

    Returns:
        BacktestResult with statistics over all closed trades
    """
    closes = [c.close for c in candles]
    rsi_values = rsi_series(closes, rsi_period)

    trades: list[Trade] = []
    entry_candle: Candle | None = None
    entry_rsi = 0.0

    for candle, rsi_value in list(zip(candles, rsi_values))[rsi_period:]:
        if entry_candle is None:
            if entry.is_met(rsi_value):
                entry_candle = candle
                entry_rsi = rsi_value
            continue

        price_change = (candle.close - entry_candle.close) / entry_candle.close * 100

        # Take-profit is checked first and wins if both are hit
        if price_change >= take_profit_pct:
            outcome, reason = TradeOutcome.WIN, ExitReason.TAKE_PROFIT
        elif price_change <= -stop_loss_pct:
            outcome, reason = TradeOutcome.LOSS, ExitReason.STOP_LOSS
        else:
            continue

        trades.append(
            Trade(
                entry_timestamp=entry_candle.timestamp,
                exit_timestamp=candle.timestamp,
                entry_price=entry_candle.close,
                exit_price=candle.close,
                rsi_at_entry=entry_rsi,
                profit_percent=price_change,
                outcome=outcome,
                exit_reason=reason,
            )
        )
        entry_candle = None

    if entry_candle is not None:
        logger.debug(f"Discarding position opened at {entry_candle.timestamp} (still open)")

    return BacktestResult.from_trades(trades, max_recent=max_recent_trades)


class BacktestEngine:
    """
    Runs configured backtests.

    Usage:
        engine = BacktestEngine(config)
        result = engine.run(candles)
    """

    def __init__(self, config: BacktestConfig) -> None:
        self.config = config

    def run(self, candles: list[Candle]) -> BacktestResult:
        """
        Backtest the configured rule over candles.

        Only the most recent `candle_limit` candles are used, matching what
        a live fetch for the configured day range would return.
        """
        window = candles[-self.config.candle_limit :]
        logger.info(
            f"Backtesting {self.config.symbol} on {self.config.timeframe.value}: "
            f"{len(window)} candles, RSI {self.config.entry.operator.value} "
            f"{self.config.entry.threshold:g}, TP {self.config.take_profit_pct:g}%, "
            f"SL {self.config.stop_loss_pct:g}%"
        )
        result = run_backtest(
            window,
            self.config.entry,
            self.config.take_profit_pct,
            self.config.stop_loss_pct,
            rsi_period=self.config.rsi_period,
            max_recent_trades=self.config.max_recent_trades,
        )
        logger.info(
            f"Backtest finished: {result.total_trades} trades, "
            f"win rate {result.win_rate:.1f}%, total {result.total_profit:+.2f}%"
        )
        return result
