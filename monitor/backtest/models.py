"""
Data models for backtesting configuration and results.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from monitor.core.models import Timeframe

# Maximum candles the exchange returns in one kline request
MAX_CANDLES = 1000

CANDLES_PER_DAY = {
    Timeframe.H4: 6,
    Timeframe.D1: 1,
}


class EntryOperator(Enum):
    """Direction of the RSI entry comparison."""

    BELOW = "below"
    ABOVE = "above"


class TradeOutcome(Enum):
    WIN = "win"
    LOSS = "loss"


class ExitReason(Enum):
    TAKE_PROFIT = "take-profit"
    STOP_LOSS = "stop-loss"


@dataclass(frozen=True)
class EntryCondition:
    """
    Single-condition entry rule.

    Example: EntryCondition(EntryOperator.BELOW, 30) enters when RSI < 30.
    """

    operator: EntryOperator
    threshold: float
    indicator: str = "RSI"

    def __post_init__(self) -> None:
        """Validate the entry rule."""
        if self.indicator != "RSI":
            raise ValueError("Backtests only support RSI entry conditions")
        if not 0 <= self.threshold <= 100:
            raise ValueError("RSI threshold must be between 0 and 100")

    def is_met(self, rsi_value: float) -> bool:
        """True if the RSI reading triggers an entry."""
        if self.operator is EntryOperator.BELOW:
            return rsi_value < self.threshold
        return rsi_value > self.threshold


@dataclass
class BacktestConfig:
    """
    Configuration for a backtest run.

    Defines the symbol and candle history to fetch plus the
    entry rule and exit thresholds.
    """

    symbol: str  # Exchange symbol, e.g. "BTCUSDT"
    entry: EntryCondition = field(
        default_factory=lambda: EntryCondition(EntryOperator.BELOW, 30.0)
    )
    timeframe: Timeframe = Timeframe.H4
    days: int = 90
    take_profit_pct: float = 10.0
    stop_loss_pct: float = 10.0
    rsi_period: int = 14
    max_recent_trades: int = 20  # Trades kept in the result ledger for display

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.timeframe not in CANDLES_PER_DAY:
            raise ValueError("Backtests support the 4h and 1d timeframes")
        if self.days < 1:
            raise ValueError("days must be at least 1")
        if self.take_profit_pct <= 0:
            raise ValueError("take_profit_pct must be positive")
        if self.stop_loss_pct <= 0:
            raise ValueError("stop_loss_pct must be positive")
        if self.rsi_period <= 0:
            raise ValueError("rsi_period must be positive")

    @property
    def candle_limit(self) -> int:
        """Candles to request: days of history, capped at the exchange limit."""
        return min(self.days * CANDLES_PER_DAY[self.timeframe], MAX_CANDLES)


@dataclass(frozen=True)
class Trade:
    """A closed backtest trade. Exists only within one result set."""

    entry_timestamp: datetime
    exit_timestamp: datetime
    entry_price: float
    exit_price: float
    rsi_at_entry: float
    profit_percent: float
    outcome: TradeOutcome
    exit_reason: ExitReason

    @property
    def is_win(self) -> bool:
        return self.outcome is TradeOutcome.WIN

    @property
    def duration_seconds(self) -> float:
        """How long the position was held."""
        return (self.exit_timestamp - self.entry_timestamp).total_seconds()

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "entry_timestamp": self.entry_timestamp.isoformat(),
            "exit_timestamp": self.exit_timestamp.isoformat(),
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "rsi_at_entry": self.rsi_at_entry,
            "profit_percent": self.profit_percent,
            "outcome": self.outcome.value,
            "exit_reason": self.exit_reason.value,
        }


@dataclass
class BacktestResult:
    """
    Results from a completed backtest run.

    Statistics cover every closed trade; `trades` holds only the most
    recent ones, newest first, for display.
    """

    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float  # % of winning trades
    total_profit: float  # Sum of profit_percent
    average_profit: float  # Mean profit_percent of wins
    average_loss: float  # Mean profit_percent of losses
    max_profit: float
    max_loss: float
    trades: list[Trade]

    @classmethod
    def from_trades(cls, trades: list[Trade], max_recent: int = 20) -> "BacktestResult":
        """
        Aggregate a full, chronological trade list.

        Empty subsets yield 0 instead of dividing by zero or taking
        min/max of nothing.
        """
        wins = [t.profit_percent for t in trades if t.outcome is TradeOutcome.WIN]
        losses = [t.profit_percent for t in trades if t.outcome is TradeOutcome.LOSS]
        profits = [t.profit_percent for t in trades]
        total = len(trades)

        return cls(
            total_trades=total,
            winning_trades=len(wins),
            losing_trades=len(losses),
            win_rate=len(wins) / total * 100 if total else 0.0,
            total_profit=sum(profits),
            average_profit=sum(wins) / len(wins) if wins else 0.0,
            average_loss=sum(losses) / len(losses) if losses else 0.0,
            max_profit=max(profits) if profits else 0.0,
            max_loss=min(profits) if profits else 0.0,
            trades=list(reversed(trades[-max_recent:])) if max_recent > 0 else [],
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "performance": {
                "total_trades": self.total_trades,
                "winning_trades": self.winning_trades,
                "losing_trades": self.losing_trades,
                "win_rate": self.win_rate,
                "total_profit": self.total_profit,
                "average_profit": self.average_profit,
                "average_loss": self.average_loss,
                "max_profit": self.max_profit,
                "max_loss": self.max_loss,
            },
            "trades": [t.to_dict() for t in self.trades],
        }
