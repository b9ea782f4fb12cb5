#!/usr/bin/env python3
"""
Tests for the live refresh pipeline.

Run with:
    python -m pytest tests/test_engine.py -v
"""

import asyncio
import sys
from datetime import datetime
from pathlib import Path

import httpx
import pytest

# Add project root to path for standalone execution
sys.path.insert(0, str(Path(__file__).parent.parent))

from monitor.alarms import Notification, NotificationDispatcher, Severity
from monitor.core import AssetInfo, AssetSnapshot, AssetType, MarketAsset, MonitorConfig, Timeframe
from monitor.indicators import MACDResult
from monitor.live import MonitorEngine
from monitor.market import BinanceClient, MarketDataError, MarketDataService, RefreshResult
from monitor.market.binance import BINANCE_API_URL
from monitor.rules import AlarmState, AlertRule, ComparisonOperator, IndicatorType, RuleCondition
from monitor.storage import StateManager

NOW = datetime(2026, 4, 1, 9, 30)


def make_asset(asset_id: str, rsi: float, histogram: float = 0.0) -> MarketAsset:
    info = AssetInfo(asset_id, asset_id.upper(), asset_id.title(), AssetType.CRYPTO)
    macd = MACDResult(histogram, 0.0, histogram)
    snapshot = AssetSnapshot(rsi=rsi, macd=macd, price=10.0, change_percent=0.0)
    return MarketAsset(info=info, snapshots={tf: snapshot for tf in Timeframe})


class FakeMarket:
    """Returns queued refresh outcomes (RefreshResult or an exception)."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def refresh(self):
        self.calls += 1
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingNotifier:
    def __init__(self):
        self.received: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.received.append(notification)


class TestMonitorEngine:
    """Tests for MonitorEngine refresh cycles and rule management."""

    def make_engine(self, tmp_path, market, **config):
        self.notifier = RecordingNotifier()
        self.state = StateManager(tmp_path)
        cfg = MonitorConfig(data_dir=tmp_path, refresh_interval_seconds=0.01, **config)
        return MonitorEngine(cfg, market, self.state, NotificationDispatcher(self.notifier))

    def test_starts_with_default_rule(self, tmp_path):
        engine = self.make_engine(tmp_path, FakeMarket(RefreshResult()))
        assert [r.id for r in engine.rules] == ["1"]
        assert len(engine.feed) == 0

    def test_refresh_fires_default_rule_and_persists(self, tmp_path):
        market = FakeMarket(RefreshResult(assets=[make_asset("btc", 25), make_asset("eth", 50)]))
        engine = self.make_engine(tmp_path, market)

        cycle = asyncio.run(engine.refresh(now=NOW))

        assert cycle is not None
        assert [s.asset_symbol for s in cycle.signals] == ["BTC"]
        assert engine.rules[0].state is AlarmState.FIRED
        assert len(engine.feed) == 1
        assert [n.title for n in self.notifier.received] == ["Alert: BTC"]

        # Reloaded state matches
        assert StateManager(tmp_path).load_rules()[0].triggered_at == NOW
        assert len(StateManager(tmp_path).load_signals()) == 1

    def test_no_repeat_signal_while_fired(self, tmp_path):
        market = FakeMarket(RefreshResult(assets=[make_asset("btc", 25)]))
        engine = self.make_engine(tmp_path, market)
        asyncio.run(engine.refresh(now=NOW))
        second = asyncio.run(engine.refresh(now=NOW))
        assert second.signals == []
        assert len(engine.feed) == 1
        assert engine.cycles == 2

    def test_fetch_error_notifies_and_keeps_state(self, tmp_path):
        market = FakeMarket(MarketDataError("down"))
        engine = self.make_engine(tmp_path, market)
        rules_before = engine.rules

        assert asyncio.run(engine.refresh(now=NOW)) is None
        assert engine.rules == rules_before
        assert engine.cycles == 0
        assert self.notifier.received == [
            Notification("Failed to load data", "Could not fetch market data.", Severity.ERROR)
        ]

    def test_empty_refresh_is_a_failure(self, tmp_path):
        engine = self.make_engine(tmp_path, FakeMarket(RefreshResult(failures={"BTC": "x"})))
        assert asyncio.run(engine.refresh()) is None
        assert self.notifier.received[0].severity is Severity.ERROR

    def test_malformed_klines_are_a_fetch_failure(self, tmp_path):
        """Unparseable vendor rows end the cycle with a notification, not a crash."""
        btc = AssetInfo("btc", "BTC", "Bitcoin", AssetType.CRYPTO, "BTCUSDT")
        rows = [[1_767_225_600_000, "oops", "1", "1", "1", "1"]]
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=rows))
        market = MarketDataService(
            MonitorConfig(crypto_assets=(btc,), stock_assets=(), timeframes=(Timeframe.H4,)),
            BinanceClient(httpx.AsyncClient(transport=transport, base_url=BINANCE_API_URL)),
        )
        engine = self.make_engine(tmp_path, market)

        assert asyncio.run(engine.refresh(now=NOW)) is None
        assert engine.cycles == 0
        assert [n.severity for n in self.notifier.received] == [Severity.ERROR]

    def test_cross_detected_after_skipped_cycle(self, tmp_path):
        """An asset missing for one cycle is compared against its last good reading."""
        market = FakeMarket(
            RefreshResult(assets=[make_asset("btc", 50), make_asset("eth", 50, histogram=-0.5)]),
            RefreshResult(assets=[make_asset("btc", 50)], failures={"ETH": "timeout"}),
            RefreshResult(assets=[make_asset("btc", 50), make_asset("eth", 50, histogram=0.5)]),
        )
        engine = self.make_engine(tmp_path, market)
        engine.add_rule(
            AlertRule(
                id="eth-cross",
                asset_selector="eth",
                timeframe=Timeframe.H4,
                conditions=(RuleCondition(IndicatorType.MACD, ComparisonOperator.CROSS_ABOVE),),
            )
        )

        assert asyncio.run(engine.refresh(now=NOW)).signals == []
        assert asyncio.run(engine.refresh(now=NOW)).signals == []
        third = asyncio.run(engine.refresh(now=NOW))
        assert [s.asset_symbol for s in third.signals] == ["ETH"]
        assert [a.id for a in engine.assets] == ["btc", "eth"]

    def test_run_iterations_and_callback(self, tmp_path):
        market = FakeMarket(RefreshResult(assets=[make_asset("btc", 45)]))
        engine = self.make_engine(tmp_path, market)
        seen = []
        asyncio.run(engine.run(iterations=3, on_cycle=seen.append))
        assert market.calls == 3
        assert len(seen) == 3
        assert engine.cycles == 3

    def test_feed_respects_retention(self, tmp_path):
        engine = self.make_engine(
            tmp_path,
            FakeMarket(RefreshResult(assets=[make_asset(f"c{i}", 20) for i in range(5)])),
            signal_retention=3,
        )
        cycle = asyncio.run(engine.refresh(now=NOW))
        assert len(cycle.signals) == 5
        assert [s.asset_symbol for s in engine.feed] == ["C4", "C3", "C2"]

    def test_rule_management_persists(self, tmp_path):
        engine = self.make_engine(tmp_path, FakeMarket(RefreshResult()))
        rule = AlertRule(
            id="mine",
            asset_selector="btc",
            timeframe=Timeframe.D1,
            conditions=(RuleCondition(IndicatorType.RSI, ComparisonOperator.GREATER_THAN, 70.0),),
        )
        engine.add_rule(rule)
        engine.toggle_rule("mine")
        engine.delete_rule("1")

        saved = StateManager(tmp_path).load_rules()
        assert [r.id for r in saved] == ["mine"]
        assert saved[0].state is AlarmState.INACTIVE

        with pytest.raises(KeyError):
            engine.reset_triggered("1")

    def test_clear_signals(self, tmp_path):
        engine = self.make_engine(tmp_path, FakeMarket(RefreshResult(assets=[make_asset("btc", 25)])))
        asyncio.run(engine.refresh(now=NOW))
        engine.clear_signals()
        assert len(engine.feed) == 0
        assert StateManager(tmp_path).load_signals() == []


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
