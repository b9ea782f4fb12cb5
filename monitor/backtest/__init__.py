"""
Backtest Module - Historical simulation of an RSI entry strategy.

Orchestrates the flow: Historical Candles → RSI → Entry/Exit walk → Statistics
"""

from .engine import BacktestEngine, run_backtest
from .models import (
    BacktestConfig,
    BacktestResult,
    EntryCondition,
    EntryOperator,
    ExitReason,
    Trade,
    TradeOutcome,
)

__all__ = [
    "BacktestConfig",
    "BacktestEngine",
    "BacktestResult",
    "EntryCondition",
    "EntryOperator",
    "ExitReason",
    "Trade",
    "TradeOutcome",
    "run_backtest",
]
