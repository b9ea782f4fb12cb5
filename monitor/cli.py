#!/usr/bin/env python3
"""
Command-line interface for the market monitor.

Usage:
    monitor watch                                  # Refresh every 60s, evaluate alarms
    monitor watch --once --timeframe 1d            # Single refresh, show daily readings
    monitor backtest --symbol ETHUSDT --days 180   # RSI backtest on Binance candles
    monitor backtest --data data/historical/BTCUSDT_4h.csv --condition above --threshold 70
    monitor rules list
    monitor rules add --asset btc --timeframe 2h --when RSI:LESS_THAN:25 --when MACD:CROSS_ABOVE
    monitor rules toggle <id>
    monitor signals list
    monitor portfolio add BTC 0.5 60000 --date 2026-01-15
    monitor portfolio list
    monitor portfolio sell <id> --price 72000
    monitor sentiment                              # Crypto Fear & Greed Index
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import date
from pathlib import Path

from rich.console import Console
from rich.table import Table

from monitor.alarms import (
    AlarmStateMachine,
    ConsoleNotifier,
    NotificationDispatcher,
    Signal,
    SignalClassification,
)
from monitor.backtest import (
    BacktestConfig,
    BacktestEngine,
    BacktestResult,
    EntryCondition,
    EntryOperator,
)
from monitor.backtest.models import CANDLES_PER_DAY
from monitor.core import MarketAsset, MonitorConfig, Timeframe
from monitor.indicators import RSIZone, average_rsi, rsi_zone, zone_distribution
from monitor.live import MonitorEngine
from monitor.market import (
    BinanceClient,
    FearGreedClient,
    FearGreedReading,
    MarketDataError,
    MarketDataService,
    SentimentBand,
    TwelveDataClient,
    generate_filename,
    load_candles_csv,
    save_candles_csv,
)
from monitor.portfolio import PortfolioItem, PortfolioSummary, PortfolioTracker, parse_date
from monitor.rules import (
    ALL_CRYPTO,
    ALL_STOCKS,
    AlertRule,
    ComparisonOperator,
    IndicatorType,
    Logic,
    RuleCondition,
)
from monitor.storage import StateManager

logger = logging.getLogger(__name__)

console = Console()

OPERATOR_ALIASES = {
    "<": ComparisonOperator.LESS_THAN,
    "LT": ComparisonOperator.LESS_THAN,
    ">": ComparisonOperator.GREATER_THAN,
    "GT": ComparisonOperator.GREATER_THAN,
    "XA": ComparisonOperator.CROSS_ABOVE,
    "XB": ComparisonOperator.CROSS_BELOW,
}

ZONE_STYLES = {
    RSIZone.OVERBOUGHT: "bold red",
    RSIZone.STRONG: "yellow",
    RSIZone.NEUTRAL: "white",
    RSIZone.WEAK: "cyan",
    RSIZone.OVERSOLD: "bold green",
}

SENTIMENT_STYLES = {
    SentimentBand.EXTREME_FEAR: "bold red",
    SentimentBand.FEAR: "red",
    SentimentBand.NEUTRAL: "yellow",
    SentimentBand.GREED: "green",
    SentimentBand.EXTREME_GREED: "bold green",
}


def parse_condition(value: str) -> RuleCondition:
    """
    Parse a condition from format: INDICATOR:OPERATOR[:THRESHOLD]

    Examples:
        RSI:LESS_THAN:30   -> RSI < 30
        RSI:>:70           -> RSI > 70
        MACD:CROSS_ABOVE   -> MACD histogram crosses above 0
        MACD:GT            -> MACD histogram > 0 (default threshold)
    """
    parts = value.split(":")
    if len(parts) not in (2, 3):
        raise argparse.ArgumentTypeError(
            f"Invalid condition: '{value}'. Expected: INDICATOR:OPERATOR[:THRESHOLD] "
            f"(e.g., RSI:LESS_THAN:30)"
        )
    try:
        indicator = IndicatorType(parts[0].upper())
        op_name = parts[1].upper()
        operator = OPERATOR_ALIASES.get(op_name) or ComparisonOperator(op_name)
        threshold = float(parts[2]) if len(parts) == 3 and parts[2] else None
        return RuleCondition(indicator=indicator, operator=operator, threshold=threshold)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid condition: '{value}': {e}") from e


def date_arg(value: str) -> date:
    """Parse a YYYY-MM-DD date argument."""
    try:
        return parse_date(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid date: '{value}'. Expected YYYY-MM-DD") from e


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="monitor",
        description="Crypto & stock RSI/MACD monitor with alarms and backtesting",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help=(
            "Directory for the rules, signals and portfolio files "
            "(default: data/ or $MONITOR_DATA_DIR)"
        ),
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file (default: .env in the working directory)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Log debug output to the log file"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # watch
    watch = subparsers.add_parser("watch", help="Refresh market data and evaluate alarms")
    watch.add_argument(
        "--interval",
        "-i",
        type=float,
        default=None,
        help="Seconds between refreshes (default: 60)",
    )
    watch.add_argument(
        "--iterations",
        "-n",
        type=int,
        default=None,
        help="Stop after this many refreshes (default: run until interrupted)",
    )
    watch.add_argument("--once", action="store_true", help="Refresh once and exit")
    watch.add_argument(
        "--timeframe",
        "-t",
        default=Timeframe.H4.value,
        choices=[tf.value for tf in Timeframe],
        help="Timeframe shown in the readings table (default: 4h)",
    )
    watch.add_argument(
        "--no-notify", action="store_true", help="Evaluate alarms without printing notifications"
    )

    # backtest
    backtest = subparsers.add_parser("backtest", help="Backtest an RSI entry rule")
    backtest.add_argument(
        "--symbol", "-s", default="BTCUSDT", help="Binance symbol (default: BTCUSDT)"
    )
    backtest.add_argument(
        "--timeframe",
        "-t",
        default=Timeframe.H4.value,
        choices=[tf.value for tf in CANDLES_PER_DAY],
        help="Candle timeframe (default: 4h)",
    )
    backtest.add_argument(
        "--days", "-d", type=int, default=90, help="Days of history (default: 90)"
    )
    backtest.add_argument(
        "--condition",
        "-c",
        default=EntryOperator.BELOW.value,
        choices=[op.value for op in EntryOperator],
        help="Enter when RSI is below/above the threshold (default: below)",
    )
    backtest.add_argument(
        "--threshold", type=float, default=30.0, help="RSI entry threshold (default: 30)"
    )
    backtest.add_argument(
        "--take-profit", "-tp", type=float, default=10.0, help="Take profit %% (default: 10)"
    )
    backtest.add_argument(
        "--stop-loss", "-sl", type=float, default=10.0, help="Stop loss %% (default: 10)"
    )
    backtest.add_argument(
        "--data", help="Backtest a saved OHLCV CSV instead of fetching from Binance"
    )
    backtest.add_argument(
        "--save-csv",
        type=Path,
        metavar="DIR",
        help="Save the fetched candles to DIR for later offline runs",
    )
    backtest.add_argument("--json", action="store_true", help="Print the result as JSON")

    # rules
    rules = subparsers.add_parser("rules", help="Manage alert rules")
    rules_sub = rules.add_subparsers(dest="rules_command", required=True)
    rules_sub.add_parser("list", help="List rules and their state")

    add = rules_sub.add_parser("add", help="Add a rule")
    add.add_argument(
        "--asset",
        "-a",
        default=ALL_CRYPTO,
        help=f"Asset id (e.g. btc, aapl) or {ALL_CRYPTO} / {ALL_STOCKS} (default: {ALL_CRYPTO})",
    )
    add.add_argument(
        "--timeframe",
        "-t",
        default=Timeframe.H4.value,
        choices=[tf.value for tf in Timeframe],
        help="Timeframe (default: 4h)",
    )
    add.add_argument(
        "--when",
        "-w",
        type=parse_condition,
        action="append",
        required=True,
        metavar="CONDITION",
        help="Condition INDICATOR:OPERATOR[:THRESHOLD]; repeat for up to 3",
    )
    add.add_argument(
        "--logic",
        default=Logic.AND.value,
        choices=[lg.value for lg in Logic],
        help="How conditions combine (default: AND)",
    )

    for name, help_text in (
        ("delete", "Delete a rule"),
        ("toggle", "Activate or deactivate a rule"),
        ("reset", "Re-arm a fired rule"),
    ):
        cmd = rules_sub.add_parser(name, help=help_text)
        cmd.add_argument("rule_id", help="Rule id")

    # signals
    signals = subparsers.add_parser("signals", help="Show or clear the signal feed")
    signals_sub = signals.add_subparsers(dest="signals_command", required=True)
    signals_list = signals_sub.add_parser("list", help="Show recent signals, newest first")
    signals_list.add_argument("--rule", help="Only signals from this rule id")
    signals_list.add_argument(
        "--limit", "-n", type=int, default=20, help="Signals to show (default: 20)"
    )
    signals_sub.add_parser("clear", help="Delete every saved signal")

    # portfolio
    portfolio = subparsers.add_parser("portfolio", help="Track positions and P&L")
    portfolio_sub = portfolio.add_subparsers(dest="portfolio_command", required=True)
    p_list = portfolio_sub.add_parser("list", help="Holdings, P&L, allocation and sold history")
    p_list.add_argument(
        "--offline", action="store_true", help="Value holdings at their buy price, no fetching"
    )
    p_list.add_argument("--json", action="store_true", help="Print the summary as JSON")

    p_add = portfolio_sub.add_parser("add", help="Record a purchase")
    p_add.add_argument("symbol", help="Asset symbol (e.g. BTC, AAPL)")
    p_add.add_argument("amount", type=float, help="Units bought")
    p_add.add_argument("price", type=float, help="Buy price per unit")
    p_add.add_argument(
        "--date", type=date_arg, default=None, help="Buy date YYYY-MM-DD (default: today)"
    )

    p_edit = portfolio_sub.add_parser("edit", help="Change a recorded purchase")
    p_edit.add_argument("item_id", help="Item id (or a unique prefix)")
    p_edit.add_argument("--symbol", help="New asset symbol")
    p_edit.add_argument("--amount", type=float, help="New amount")
    p_edit.add_argument("--price", type=float, help="New buy price")
    p_edit.add_argument("--date", type=date_arg, help="New buy date YYYY-MM-DD")

    p_sell = portfolio_sub.add_parser("sell", help="Mark a position as sold")
    p_sell.add_argument("item_id", help="Item id (or a unique prefix)")
    p_sell.add_argument(
        "--price", type=float, default=None, help="Sell price (default: latest price)"
    )
    p_sell.add_argument(
        "--date", type=date_arg, default=None, help="Sell date YYYY-MM-DD (default: today)"
    )
    p_sell.add_argument(
        "--offline", action="store_true", help="Without --price, sell at the buy price"
    )

    p_delete = portfolio_sub.add_parser("delete", help="Remove an item")
    p_delete.add_argument("item_id", help="Item id (or a unique prefix)")

    # sentiment
    sentiment = subparsers.add_parser("sentiment", help="Show the crypto Fear & Greed Index")
    sentiment.add_argument("--json", action="store_true", help="Print the reading as JSON")

    return parser


def setup_logging(verbose: bool = False) -> None:
    """Log to market_monitor.log; the console is reserved for tables and notifications."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.FileHandler("market_monitor.log")],
    )
    # Silence per-request logs from the HTTP client
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def load_config(args: argparse.Namespace, **overrides) -> MonitorConfig:
    if args.data_dir is not None:
        overrides["data_dir"] = args.data_dir
    return MonitorConfig.from_env(args.env_file, **overrides)


# =========================================================
# Rendering
# =========================================================


def render_assets(assets: list[MarketAsset], timeframe: Timeframe) -> Table:
    """Table of price, RSI zone and MACD per asset on one timeframe."""
    table = Table(title=f"Market ({timeframe.value})")
    table.add_column("Symbol", style="bold")
    table.add_column("Name")
    table.add_column("Price", justify="right")
    table.add_column("Change", justify="right")
    table.add_column("RSI", justify="right")
    table.add_column("Zone")
    table.add_column("MACD Hist", justify="right")

    for asset in assets:
        snap = asset.snapshot(timeframe)
        if snap is None:
            continue
        zone = rsi_zone(snap.rsi)
        change_style = "green" if snap.change_percent >= 0 else "red"
        hist_style = "green" if snap.macd.histogram >= 0 else "red"
        table.add_row(
            asset.symbol,
            asset.info.name,
            f"${snap.price:,.2f}",
            f"[{change_style}]{snap.change_percent:+.2f}%[/]",
            f"{snap.rsi:.1f}",
            f"[{ZONE_STYLES[zone]}]{zone.label}[/]",
            f"[{hist_style}]{snap.macd.histogram:+.4f}[/]",
        )
    return table


def render_zone_summary(assets: list[MarketAsset], timeframe: Timeframe) -> Table:
    """RSI heatmap summary: asset count per zone and the average RSI."""
    values = [s.rsi for a in assets if (s := a.snapshot(timeframe)) is not None]
    distribution = zone_distribution(values)

    table = Table(title=f"RSI Zones ({timeframe.value}) - average {average_rsi(values):.1f}")
    table.add_column("Zone")
    table.add_column("Range", justify="center")
    table.add_column("Assets", justify="right")
    for zone in RSIZone:
        table.add_row(
            f"[{ZONE_STYLES[zone]}]{zone.label}[/]",
            f"{zone.lower:g}-{zone.upper:g}",
            str(distribution[zone]),
        )
    return table


def render_rules(rules: list[AlertRule]) -> Table:
    table = Table(title=f"Alert Rules ({len(rules)})")
    table.add_column("ID", style="dim")
    table.add_column("Asset", style="bold")
    table.add_column("TF")
    table.add_column("Conditions")
    table.add_column("State")
    table.add_column("Triggered")

    state_styles = {"ARMED": "green", "FIRED": "bold yellow", "INACTIVE": "dim"}
    for rule in rules:
        state = rule.state.value
        triggered = ""
        if rule.triggered_at is not None:
            value = f" @ {rule.triggered_value:.2f}" if rule.triggered_value is not None else ""
            triggered = f"{rule.triggered_at:%Y-%m-%d %H:%M}{value}"
        table.add_row(
            rule.id,
            rule.asset_selector,
            rule.timeframe.value,
            rule.describe(),
            f"[{state_styles.get(state, 'white')}]{state}[/]",
            triggered,
        )
    return table


def render_signals(signals: list[Signal]) -> Table:
    table = Table(title=f"Signals ({len(signals)})")
    table.add_column("Time")
    table.add_column("Asset", style="bold")
    table.add_column("TF")
    table.add_column("Type")
    table.add_column("Message")
    table.add_column("Rule", style="dim")

    type_styles = {
        SignalClassification.BULLISH: "green",
        SignalClassification.BEARISH: "red",
        SignalClassification.NEUTRAL: "white",
    }
    for signal in signals:
        table.add_row(
            f"{signal.timestamp:%Y-%m-%d %H:%M}",
            signal.asset_symbol,
            signal.timeframe.value,
            f"[{type_styles[signal.classification]}]{signal.classification.value}[/]",
            signal.message,
            signal.rule_id,
        )
    return table


def _signed(value: float, text: str) -> str:
    return f"[{'green' if value >= 0 else 'red'}]{text}[/]"


def render_portfolio(summary: PortfolioSummary) -> None:
    totals = Table(title="Portfolio")
    totals.add_column("Metric")
    totals.add_column("Value", justify="right")
    totals.add_row("Invested", f"${summary.total_invested:,.2f}")
    totals.add_row("Current value", f"${summary.current_value:,.2f}")
    totals.add_row("Unrealized P&L", _signed(summary.unrealized_pnl, f"{summary.unrealized_pnl:+,.2f}"))
    totals.add_row("Realized P&L", _signed(summary.realized_pnl, f"{summary.realized_pnl:+,.2f}"))
    totals.add_row(
        "Total P&L",
        _signed(summary.total_pnl, f"{summary.total_pnl:+,.2f} ({summary.total_pnl_percent:+.2f}%)"),
    )
    console.print(totals)

    if summary.holdings:
        holdings = Table(title=f"Holdings ({len(summary.holdings)})")
        holdings.add_column("ID", style="dim")
        holdings.add_column("Asset", style="bold")
        holdings.add_column("Amount", justify="right")
        holdings.add_column("Bought")
        holdings.add_column("Buy $", justify="right")
        holdings.add_column("Price $", justify="right")
        holdings.add_column("Value $", justify="right")
        holdings.add_column("Profit", justify="right")
        for h in summary.holdings:
            price = f"{h.current_price:,.2f}" if h.priced else f"[dim]{h.current_price:,.2f}[/]"
            holdings.add_row(
                h.item.id[:8],
                h.item.asset_symbol,
                f"{h.item.amount:g}",
                f"{h.item.buy_date:%Y-%m-%d}",
                f"{h.item.buy_price:,.2f}",
                price,
                f"{h.value:,.2f}",
                _signed(h.profit, f"{h.profit:+,.2f} ({h.profit_percent:+.2f}%)"),
            )
        console.print(holdings)

        allocation = Table(title="Allocation")
        allocation.add_column("Asset", style="bold")
        allocation.add_column("Value $", justify="right")
        allocation.add_column("Share", justify="right")
        for s in summary.allocation:
            allocation.add_row(s.symbol, f"{s.value:,.2f}", f"{s.percent:.1f}%")
        console.print(allocation)
    else:
        console.print("\n📭 No open positions")

    if summary.sold:
        sold = Table(title=f"Sold ({len(summary.sold)}, newest first)")
        sold.add_column("ID", style="dim")
        sold.add_column("Asset", style="bold")
        sold.add_column("Amount", justify="right")
        sold.add_column("Buy $", justify="right")
        sold.add_column("Sell $", justify="right")
        sold.add_column("Sold")
        sold.add_column("Profit", justify="right")
        for item in summary.sold:
            sell_price = item.sell_price or 0.0
            sold.add_row(
                item.id[:8],
                item.asset_symbol,
                f"{item.amount:g}",
                f"{item.buy_price:,.2f}",
                f"{sell_price:,.2f}",
                f"{item.sell_date:%Y-%m-%d}",
                _signed(
                    item.realized_pnl,
                    f"{item.realized_pnl:+,.2f} ({item.profit_percent_at(sell_price):+.2f}%)",
                ),
            )
        console.print(sold)


def render_sentiment(reading: FearGreedReading) -> None:
    style = SENTIMENT_STYLES[reading.band]
    console.print()
    console.print(
        f"😱 Fear & Greed: [{style}]{reading.value} {reading.classification}[/] "
        f"({reading.timestamp:%Y-%m-%d})"
    )
    if reading.change is not None:
        console.print(
            f"   Previous: {reading.previous_value} {reading.previous_classification} "
            f"({_signed(reading.change, f'{reading.change:+d}')})"
        )


def render_backtest(config: BacktestConfig, result: BacktestResult) -> None:
    console.print()
    console.print("=" * 60)
    console.print(f"📈 Backtest: {config.symbol} {config.timeframe.value}, {config.days} days")
    console.print("=" * 60)
    console.print(
        f"   Entry: RSI {config.entry.operator.value} {config.entry.threshold:g} | "
        f"TP {config.take_profit_pct:g}% | SL {config.stop_loss_pct:g}%"
    )

    perf = Table(title="Performance")
    perf.add_column("Metric")
    perf.add_column("Value", justify="right")
    perf.add_row("Total trades", str(result.total_trades))
    perf.add_row("Wins / Losses", f"{result.winning_trades} / {result.losing_trades}")
    perf.add_row("Win rate", f"{result.win_rate:.1f}%")
    perf.add_row("Total profit", f"{result.total_profit:+.2f}%")
    perf.add_row("Average win", f"{result.average_profit:+.2f}%")
    perf.add_row("Average loss", f"{result.average_loss:+.2f}%")
    perf.add_row("Best trade", f"{result.max_profit:+.2f}%")
    perf.add_row("Worst trade", f"{result.max_loss:+.2f}%")
    console.print(perf)

    if not result.trades:
        console.print("\n📭 No closed trades in this period")
        return

    ledger = Table(title=f"Recent Trades ({len(result.trades)}, newest first)")
    ledger.add_column("Entry")
    ledger.add_column("Exit")
    ledger.add_column("Entry $", justify="right")
    ledger.add_column("Exit $", justify="right")
    ledger.add_column("RSI", justify="right")
    ledger.add_column("Profit", justify="right")
    ledger.add_column("Reason")
    for trade in result.trades:
        style = "green" if trade.is_win else "red"
        ledger.add_row(
            f"{trade.entry_timestamp:%Y-%m-%d %H:%M}",
            f"{trade.exit_timestamp:%Y-%m-%d %H:%M}",
            f"{trade.entry_price:,.2f}",
            f"{trade.exit_price:,.2f}",
            f"{trade.rsi_at_entry:.1f}",
            f"[{style}]{trade.profit_percent:+.2f}%[/]",
            trade.exit_reason.value,
        )
    console.print(ledger)


# =========================================================
# Commands
# =========================================================


async def run_watch(args: argparse.Namespace) -> int:
    overrides = {}
    if args.interval is not None:
        overrides["refresh_interval_seconds"] = args.interval
    config = load_config(args, **overrides)
    timeframe = Timeframe(args.timeframe)
    iterations = 1 if args.once else args.iterations

    state = StateManager(config.data_dir)
    dispatcher = NotificationDispatcher(ConsoleNotifier(console), enabled=not args.no_notify)

    console.print()
    console.print("=" * 60)
    console.print("📡 Market Monitor")
    console.print("=" * 60)
    console.print(f"   Assets:   {len(config.crypto_assets)} crypto, {len(config.stock_assets)} stocks")
    console.print(f"   Interval: {config.refresh_interval_seconds:g}s")
    console.print(f"   Data:     {config.data_dir}")
    if not config.twelve_data_api_key:
        console.print("   ⚠️  TWELVE_DATA_API_KEY not set - stocks are skipped")
    try:
        render_sentiment(await fetch_sentiment())
    except MarketDataError as e:
        logger.warning(f"Fear & Greed unavailable: {e}")
    console.print()

    twelve_data = TwelveDataClient(config.twelve_data_api_key) if config.twelve_data_api_key else None
    async with BinanceClient() as binance:
        market = MarketDataService(config, binance, twelve_data)
        engine = MonitorEngine(config, market, state, dispatcher)
        console.print(render_rules(engine.rules))

        def show(cycle) -> None:
            if cycle is None:
                return
            console.print(render_assets(engine.assets, timeframe))
            console.print(render_zone_summary(engine.assets, timeframe))
            if cycle.signals:
                console.print(f"🔔 {len(cycle.signals)} new signals")

        try:
            await engine.run(iterations=iterations, on_cycle=show)
        finally:
            if twelve_data is not None:
                await twelve_data.close()

    console.print(f"\n✅ Stopped after {engine.cycles} refreshes")
    return 0


async def fetch_backtest_candles(config: BacktestConfig, save_dir: Path | None) -> list:
    async with BinanceClient() as binance:
        candles = await binance.fetch_candles(
            config.symbol, config.timeframe.value, limit=config.candle_limit
        )
    if save_dir is not None:
        path = save_candles_csv(
            candles, save_dir / generate_filename(config.symbol, config.timeframe.value, candles)
        )
        console.print(f"💾 Saved {len(candles)} candles to {path}")
    return candles


def run_backtest_command(args: argparse.Namespace) -> int:
    try:
        config = BacktestConfig(
            symbol=args.symbol.upper(),
            entry=EntryCondition(EntryOperator(args.condition), args.threshold),
            timeframe=Timeframe(args.timeframe),
            days=args.days,
            take_profit_pct=args.take_profit,
            stop_loss_pct=args.stop_loss,
        )
    except ValueError as e:
        console.print(f"❌ Invalid backtest settings: {e}")
        return 2

    try:
        if args.data:
            candles = load_candles_csv(args.data)
        else:
            candles = asyncio.run(fetch_backtest_candles(config, args.save_csv))
    except (MarketDataError, FileNotFoundError, ValueError) as e:
        logger.error(f"Backtest data unavailable: {e}")
        console.print(f"❌ Error loading candles: {e}")
        return 1

    result = BacktestEngine(config).run(candles)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        render_backtest(config, result)
    return 0


def run_rules_command(args: argparse.Namespace) -> int:
    config = load_config(args)
    state = StateManager(config.data_dir)
    machine = AlarmStateMachine()
    rules = state.load_rules()

    if args.rules_command == "list":
        console.print(render_rules(rules))
        return 0

    try:
        if args.rules_command == "add":
            selector = args.asset if args.asset in (ALL_CRYPTO, ALL_STOCKS) else args.asset.lower()
            if selector not in (ALL_CRYPTO, ALL_STOCKS) and config.find_asset(selector) is None:
                console.print(f"❌ Unknown asset: {args.asset}")
                return 1
            rule = AlertRule(
                asset_selector=selector,
                timeframe=Timeframe(args.timeframe),
                conditions=tuple(args.when),
                logic=Logic(args.logic),
            )
            rules = machine.add_rule(rules, rule)
            console.print(f"✅ Added rule {rule.id}: {rule.asset_selector} {rule.describe()}")
        elif args.rules_command == "delete":
            rules = machine.delete_rule(rules, args.rule_id)
            console.print(f"🗑️  Deleted rule {args.rule_id}")
        elif args.rules_command == "toggle":
            rules = machine.toggle_rule(rules, args.rule_id)
            state_name = machine.state_of(rules, args.rule_id).value
            console.print(f"🔁 Rule {args.rule_id} is now {state_name}")
        elif args.rules_command == "reset":
            rules = machine.reset_triggered(rules, args.rule_id)
            console.print(f"🔄 Rule {args.rule_id} re-armed")
    except KeyError:
        console.print(f"❌ No rule with id {args.rule_id}")
        return 1
    except ValueError as e:
        console.print(f"❌ {e}")
        return 1

    state.save_rules(rules)
    return 0


def run_signals_command(args: argparse.Namespace) -> int:
    config = load_config(args)
    state = StateManager(config.data_dir)

    if args.signals_command == "clear":
        state.save_signals([])
        console.print("🧹 Signal feed cleared")
        return 0

    signals = state.load_signals()
    if args.rule:
        signals = [s for s in signals if s.rule_id == args.rule]
    if not signals:
        console.print("\n📭 No signals yet")
        return 0
    console.print(render_signals(signals[: args.limit]))
    return 0


async def fetch_prices(config: MonitorConfig, symbols: set[str]) -> dict[str, float]:
    twelve_data = TwelveDataClient(config.twelve_data_api_key) if config.twelve_data_api_key else None
    try:
        async with BinanceClient() as binance:
            return await MarketDataService(config, binance, twelve_data).latest_prices(symbols)
    finally:
        if twelve_data is not None:
            await twelve_data.close()


def resolve_item_id(items: list[PortfolioItem], value: str) -> str:
    """Full id for an id or a unique id prefix. Raises KeyError otherwise."""
    if any(i.id == value for i in items):
        return value
    candidates = [i.id for i in items if i.id.startswith(value)]
    if len(candidates) != 1:
        raise KeyError(value)
    return candidates[0]


def run_portfolio_command(args: argparse.Namespace) -> int:
    config = load_config(args)
    state = StateManager(config.data_dir)
    tracker = PortfolioTracker()
    items = state.load_portfolio()

    if args.portfolio_command == "list":
        held = {i.asset_symbol for i in items if not i.is_sold}
        prices = {} if args.offline or not held else asyncio.run(fetch_prices(config, held))
        summary = PortfolioSummary.from_items(items, prices)
        if args.json:
            print(json.dumps(summary.to_dict(), indent=2))
        else:
            render_portfolio(summary)
        return 0

    try:
        if args.portfolio_command == "add":
            item = PortfolioItem(
                asset_symbol=args.symbol,
                amount=args.amount,
                buy_price=args.price,
                buy_date=args.date or date.today(),
            )
            items = tracker.add_item(items, item)
            console.print(
                f"✅ Added {item.id[:8]}: {item.amount:g} {item.asset_symbol} @ {item.buy_price:,.2f}"
            )
        elif args.portfolio_command == "edit":
            item_id = resolve_item_id(items, args.item_id)
            changes = {
                field_name: value
                for field_name, value in (
                    ("asset_symbol", args.symbol),
                    ("amount", args.amount),
                    ("buy_price", args.price),
                    ("buy_date", args.date),
                )
                if value is not None
            }
            items = tracker.edit_item(items, item_id, **changes)
            console.print(f"✏️  Updated {item_id[:8]}")
        elif args.portfolio_command == "sell":
            item_id = resolve_item_id(items, args.item_id)
            quotes: dict[str, float] = {}
            if args.price is None and not args.offline:
                symbol = next(i.asset_symbol for i in items if i.id == item_id)
                quotes = asyncio.run(fetch_prices(config, {symbol}))
            items = tracker.sell_item(items, item_id, args.price, args.date, quotes)
            sold = next(i for i in items if i.id == item_id)
            console.print(
                f"💰 Sold {sold.amount:g} {sold.asset_symbol} @ {sold.sell_price:,.2f} "
                f"(P&L {sold.realized_pnl:+,.2f})"
            )
        elif args.portfolio_command == "delete":
            item_id = resolve_item_id(items, args.item_id)
            items = tracker.delete_item(items, item_id)
            console.print(f"🗑️  Deleted {item_id[:8]}")
    except KeyError:
        console.print(f"❌ No portfolio item matching {args.item_id}")
        return 1
    except ValueError as e:
        console.print(f"❌ {e}")
        return 1

    state.save_portfolio(items)
    return 0


async def fetch_sentiment() -> FearGreedReading:
    async with FearGreedClient() as client:
        return await client.fetch()


def run_sentiment_command(args: argparse.Namespace) -> int:
    try:
        reading = asyncio.run(fetch_sentiment())
    except MarketDataError as e:
        logger.error(f"Fear & Greed unavailable: {e}")
        console.print(f"❌ Could not load the Fear & Greed Index: {e}")
        return 1

    if args.json:
        print(json.dumps(reading.to_dict(), indent=2))
    else:
        render_sentiment(reading)
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        if args.command == "watch":
            return asyncio.run(run_watch(args))
        if args.command == "backtest":
            return run_backtest_command(args)
        if args.command == "rules":
            return run_rules_command(args)
        if args.command == "signals":
            return run_signals_command(args)
        if args.command == "portfolio":
            return run_portfolio_command(args)
        if args.command == "sentiment":
            return run_sentiment_command(args)
    except KeyboardInterrupt:
        console.print("\n👋 Interrupted")
        return 130

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
