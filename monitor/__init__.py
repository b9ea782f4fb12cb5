"""
Market Monitor - RSI/MACD dashboard core with alarms and backtesting.

Architecture:
    Layer 1 (indicators): RSI, MACD and RSI zones from close prices
    Layer 2 (rules): Alert rules evaluated against indicator snapshots
    Layer 3 (alarms): Rule lifecycle, signals and notifications

Supporting packages:
    market:    Binance / Twelve Data / Fear & Greed clients and snapshot building
    backtest:  RSI entry strategy with take-profit / stop-loss exits
    storage:   JSON persistence for rules, signals and the portfolio
    portfolio: Positions with unrealized and realized P&L
    live:      Scheduled refresh pipeline
"""

__version__ = "0.1.0"
