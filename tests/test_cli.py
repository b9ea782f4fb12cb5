#!/usr/bin/env python3
"""
Tests for the command-line interface and environment configuration.

Run with:
    python -m pytest tests/test_cli.py -v
"""

import argparse
import json
import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path for standalone execution
sys.path.insert(0, str(Path(__file__).parent.parent))

from monitor import cli
from monitor.cli import create_parser, main, parse_condition
from monitor.core import Candle, MonitorConfig
from monitor.market import FearGreedReading, MarketDataError, save_candles_csv
from monitor.rules import AlarmState, ComparisonOperator, IndicatorType, Logic
from monitor.storage import StateManager


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run each CLI call in a scratch directory with a clean environment."""
    monkeypatch.chdir(tmp_path)
    for name in ("TWELVE_DATA_API_KEY", "MONITOR_DATA_DIR", "MONITOR_REFRESH_SECONDS"):
        # setenv first so values loaded from .env files are removed on teardown
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return tmp_path


class TestParseCondition:
    """Tests for the condition argument format."""

    def test_full_names(self):
        condition = parse_condition("RSI:LESS_THAN:30")
        assert condition.indicator is IndicatorType.RSI
        assert condition.operator is ComparisonOperator.LESS_THAN
        assert condition.threshold == 30.0

    def test_aliases_and_case(self):
        assert parse_condition("rsi:>:70").operator is ComparisonOperator.GREATER_THAN
        assert parse_condition("macd:xa").operator is ComparisonOperator.CROSS_ABOVE

    def test_threshold_optional(self):
        assert parse_condition("MACD:CROSS_BELOW").threshold is None

    @pytest.mark.parametrize("value", ["RSI", "RSI:BETWEEN:30", "VOLUME:<:3", "RSI:XA", "RSI:<:low"])
    def test_invalid(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_condition(value)


class TestParser:
    """Tests for argument parsing."""

    def test_watch_defaults(self):
        args = create_parser().parse_args(["watch"])
        assert args.timeframe == "4h"
        assert not args.once
        assert args.interval is None

    def test_backtest_rejects_unsupported_timeframe(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["backtest", "--timeframe", "15m"])

    def test_rules_add_collects_conditions(self):
        args = create_parser().parse_args(
            ["rules", "add", "--when", "RSI:<:30", "--when", "MACD:XA", "--logic", "OR"]
        )
        assert len(args.when) == 2
        assert args.logic == "OR"


class TestRulesCommand:
    """Tests for rule management through the CLI."""

    def test_add_toggle_reset_delete(self, workdir):
        data_dir = workdir / "data"
        assert main(
            ["--data-dir", str(data_dir), "rules", "add", "--asset", "BTC",
             "--timeframe", "1d", "--when", "RSI:>:75", "--when", "MACD:XB", "--logic", "OR"]
        ) == 0

        rules = StateManager(data_dir).load_rules()
        assert [r.id for r in rules][0] == "1"
        added = rules[1]
        assert added.asset_selector == "btc"
        assert added.logic is Logic.OR
        assert len(added.conditions) == 2

        assert main(["--data-dir", str(data_dir), "rules", "toggle", added.id]) == 0
        assert StateManager(data_dir).load_rules()[1].state is AlarmState.INACTIVE

        assert main(["--data-dir", str(data_dir), "rules", "delete", "1"]) == 0
        assert [r.id for r in StateManager(data_dir).load_rules()] == [added.id]

    def test_unknown_asset(self, workdir):
        code = main(["--data-dir", str(workdir), "rules", "add", "--asset", "pepe", "--when", "RSI:<:30"])
        assert code == 1

    def test_unknown_rule_id(self, workdir):
        assert main(["--data-dir", str(workdir), "rules", "reset", "missing"]) == 1

    def test_list(self, workdir, capsys):
        assert main(["--data-dir", str(workdir), "rules", "list"]) == 0
        assert "ALL_CRYPTO" in capsys.readouterr().out


class TestSignalsCommand:
    def test_empty_feed(self, workdir, capsys):
        assert main(["--data-dir", str(workdir), "signals", "list"]) == 0
        assert "No signals yet" in capsys.readouterr().out

    def test_clear(self, workdir):
        assert main(["--data-dir", str(workdir), "signals", "clear"]) == 0
        assert StateManager(workdir).load_signals() == []


class TestPortfolioCommand:
    """Tests for portfolio management through the CLI (no price fetching)."""

    def run(self, workdir, *args) -> int:
        return main(["--data-dir", str(workdir), "portfolio", *args])

    def test_add_list_sell_delete(self, workdir, capsys):
        assert self.run(workdir, "add", "btc", "0.5", "60000", "--date", "2026-01-15") == 0
        assert self.run(workdir, "add", "ETH", "2", "1500") == 0

        items = StateManager(workdir).load_portfolio()
        assert [i.asset_symbol for i in items] == ["ETH", "BTC"]
        btc = items[1]
        assert btc.buy_date == date(2026, 1, 15)

        assert self.run(workdir, "sell", btc.id[:8], "--price", "72000", "--date", "2026-03-01") == 0
        sold = StateManager(workdir).load_portfolio()[1]
        assert sold.is_sold
        assert sold.realized_pnl == pytest.approx(6000)

        capsys.readouterr()
        assert self.run(workdir, "list", "--offline", "--json") == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["realized_pnl"] == pytest.approx(6000)
        assert summary["unrealized_pnl"] == 0.0
        assert [h["asset_symbol"] for h in summary["holdings"]] == ["ETH"]

        assert self.run(workdir, "delete", btc.id) == 0
        assert [i.asset_symbol for i in StateManager(workdir).load_portfolio()] == ["ETH"]

    def test_offline_sell_uses_buy_price(self, workdir):
        self.run(workdir, "add", "SOL", "10", "100")
        item_id = StateManager(workdir).load_portfolio()[0].id
        assert self.run(workdir, "sell", item_id, "--offline") == 0
        assert StateManager(workdir).load_portfolio()[0].sell_price == 100

    def test_edit(self, workdir):
        self.run(workdir, "add", "SOL", "10", "100")
        item_id = StateManager(workdir).load_portfolio()[0].id
        assert self.run(workdir, "edit", item_id, "--amount", "12", "--symbol", "eth") == 0
        item = StateManager(workdir).load_portfolio()[0]
        assert (item.id, item.asset_symbol, item.amount, item.buy_price) == (item_id, "ETH", 12.0, 100.0)

    def test_sell_twice_fails(self, workdir):
        self.run(workdir, "add", "SOL", "10", "100")
        item_id = StateManager(workdir).load_portfolio()[0].id
        assert self.run(workdir, "sell", item_id, "--price", "120") == 0
        assert self.run(workdir, "sell", item_id, "--price", "130") == 1
        assert StateManager(workdir).load_portfolio()[0].sell_price == 120

    def test_invalid_amount(self, workdir):
        assert self.run(workdir, "add", "BTC", "0", "100") == 1
        assert StateManager(workdir).load_portfolio() == []

    def test_unknown_id(self, workdir):
        assert self.run(workdir, "delete", "missing") == 1

    def test_invalid_date(self, workdir):
        with pytest.raises(SystemExit):
            self.run(workdir, "add", "BTC", "1", "100", "--date", "15/01/2026")

    def test_empty_list(self, workdir, capsys):
        assert self.run(workdir, "list") == 0
        assert "No open positions" in capsys.readouterr().out


class TestSentimentCommand:
    def test_fetch_failure(self, workdir, monkeypatch):
        async def unavailable():
            raise MarketDataError("offline")

        monkeypatch.setattr(cli, "fetch_sentiment", unavailable)
        assert main(["sentiment"]) == 1

    def test_json_output(self, workdir, monkeypatch, capsys):
        reading = FearGreedReading(71, "Greed", datetime(2026, 1, 1, tzinfo=timezone.utc), 65, "Greed")

        async def fetch():
            return reading

        monkeypatch.setattr(cli, "fetch_sentiment", fetch)
        assert main(["sentiment", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["value"] == 71
        assert data["change"] == 6


class TestBacktestCommand:
    """Tests for offline backtests from CSV."""

    def test_json_output_from_csv(self, workdir, capsys):
        closes = [100.0, 101.0, 102.0, 103.0] + [102.0 - i for i in range(9)] + [94.0, 94.0, 105.28]
        start = datetime(2026, 1, 1)
        candles = [
            Candle(start + timedelta(hours=4 * i), c, c, c, c) for i, c in enumerate(closes)
        ]
        path = save_candles_csv(candles, workdir / "btc.csv")

        assert main(["backtest", "--data", str(path), "--json"]) == 0
        result = json.loads(capsys.readouterr().out)
        assert result["performance"]["total_trades"] == 1
        assert result["trades"][0]["outcome"] == "win"

    def test_missing_csv(self, workdir):
        assert main(["backtest", "--data", str(workdir / "nope.csv")]) == 1

    def test_invalid_settings(self, workdir):
        assert main(["backtest", "--data", "x.csv", "--threshold", "150"]) == 2


class TestConfigFromEnv:
    """Tests for environment-based configuration."""

    def test_reads_environment(self, workdir, monkeypatch):
        monkeypatch.setenv("TWELVE_DATA_API_KEY", "abc")
        monkeypatch.setenv("MONITOR_DATA_DIR", str(workdir / "state"))
        monkeypatch.setenv("MONITOR_REFRESH_SECONDS", "30")
        config = MonitorConfig.from_env()
        assert config.twelve_data_api_key == "abc"
        assert config.data_dir == workdir / "state"
        assert config.refresh_interval_seconds == 30.0

    def test_overrides_win(self, workdir, monkeypatch):
        monkeypatch.setenv("MONITOR_REFRESH_SECONDS", "30")
        assert MonitorConfig.from_env(refresh_interval_seconds=5).refresh_interval_seconds == 5

    def test_env_file(self, workdir):
        env_file = workdir / "custom.env"
        env_file.write_text("MONITOR_REFRESH_SECONDS=45\n")
        assert MonitorConfig.from_env(env_file).refresh_interval_seconds == 45.0

    def test_validation(self):
        with pytest.raises(ValueError):
            MonitorConfig(refresh_interval_seconds=0)
        with pytest.raises(ValueError):
            MonitorConfig(signal_retention=0)

    def test_find_asset(self):
        config = MonitorConfig()
        assert config.find_asset("btc").symbol == "BTC"
        assert config.find_asset("nope") is None


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
