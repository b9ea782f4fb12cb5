#!/usr/bin/env python3
"""
Unit tests for alert rule models and the rule evaluator.

Run with:
    python -m pytest tests/test_rules.py -v
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add project root to path for standalone execution
sys.path.insert(0, str(Path(__file__).parent.parent))

from monitor.core import AssetInfo, AssetSnapshot, AssetType, MarketAsset, Timeframe
from monitor.indicators import MACDResult
from monitor.rules import (
    ALL_CRYPTO,
    ALL_STOCKS,
    AlarmState,
    AlertRule,
    ComparisonOperator,
    ConditionResult,
    IndicatorType,
    Logic,
    RuleCondition,
    combine,
    default_rule,
    evaluate_condition,
    evaluate_rule,
    normalize_conditions,
    resolve_selector,
)


def snap(rsi: float = 50.0, histogram: float = 0.0) -> AssetSnapshot:
    return AssetSnapshot(
        rsi=rsi,
        macd=MACDResult(macd_line=histogram, signal_line=0.0, histogram=histogram),
        price=100.0,
        change_percent=0.0,
    )


def make_asset(
    asset_id: str,
    asset_type: AssetType = AssetType.CRYPTO,
    rsi: float = 50.0,
    histogram: float = 0.0,
    timeframe: Timeframe = Timeframe.H4,
) -> MarketAsset:
    info = AssetInfo(asset_id, asset_id.upper(), asset_id.title(), asset_type)
    return MarketAsset(info=info, snapshots={timeframe: snap(rsi, histogram)})


def rsi_below(threshold: float | None = 30.0) -> RuleCondition:
    return RuleCondition(IndicatorType.RSI, ComparisonOperator.LESS_THAN, threshold)


def rsi_above(threshold: float | None = 70.0) -> RuleCondition:
    return RuleCondition(IndicatorType.RSI, ComparisonOperator.GREATER_THAN, threshold)


def macd_cross(operator: ComparisonOperator) -> RuleCondition:
    return RuleCondition(IndicatorType.MACD, operator)


class TestRuleModels:
    """Tests for rule construction and serialization."""

    def test_default_rule(self):
        rule = default_rule()
        assert rule.id == "1"
        assert rule.asset_selector == ALL_CRYPTO
        assert rule.timeframe is Timeframe.H4
        assert rule.conditions[0].threshold == 30
        assert rule.state is AlarmState.ARMED

    def test_requires_a_condition(self):
        with pytest.raises(ValueError):
            AlertRule(asset_selector="btc", timeframe=Timeframe.H4, conditions=())

    def test_at_most_three_conditions(self):
        with pytest.raises(ValueError):
            AlertRule(
                asset_selector="btc",
                timeframe=Timeframe.H4,
                conditions=(rsi_below(), rsi_below(), rsi_below(), rsi_below()),
            )

    def test_list_conditions_become_tuple(self):
        rule = AlertRule(asset_selector="btc", timeframe=Timeframe.H4, conditions=[rsi_below()])
        assert isinstance(rule.conditions, tuple)

    def test_cross_only_for_macd(self):
        with pytest.raises(ValueError):
            RuleCondition(IndicatorType.RSI, ComparisonOperator.CROSS_ABOVE)

    def test_states(self):
        rule = AlertRule(asset_selector="btc", timeframe=Timeframe.H4, conditions=(rsi_below(),))
        assert rule.state is AlarmState.ARMED
        assert AlertRule(
            asset_selector="btc",
            timeframe=Timeframe.H4,
            conditions=(rsi_below(),),
            triggered=True,
        ).state is AlarmState.FIRED
        assert AlertRule(
            asset_selector="btc",
            timeframe=Timeframe.H4,
            conditions=(rsi_below(),),
            active=False,
            triggered=True,
        ).state is AlarmState.INACTIVE

    def test_describe(self):
        rule = AlertRule(
            asset_selector="btc",
            timeframe=Timeframe.H4,
            conditions=(rsi_below(25), macd_cross(ComparisonOperator.CROSS_ABOVE)),
            logic=Logic.OR,
        )
        assert rule.describe() == "RSI < 25 OR MACD crosses above 0"

    def test_dict_roundtrip_keeps_trigger(self):
        rule = AlertRule(
            id="r1",
            asset_selector="eth",
            timeframe=Timeframe.D1,
            conditions=(rsi_above(75),),
            triggered=True,
            triggered_at=datetime(2026, 1, 2, 3, 4),
            triggered_value=81.5,
        )
        data = rule.to_dict()
        assert data["asset_id"] == "eth"
        assert data["indicator"] == "RSI"
        assert AlertRule.from_dict(data) == rule


class TestNormalizeConditions:
    """Tests for legacy and multi-condition rule shapes."""

    def test_legacy_shape(self):
        conditions, logic = normalize_conditions(
            {"indicator": "RSI", "operator": "LESS_THAN", "threshold": 25}
        )
        assert logic is Logic.AND
        assert len(conditions) == 1
        assert conditions[0].id == "legacy"
        assert conditions[0].threshold == 25.0

    def test_multi_shape_wins_over_legacy(self):
        conditions, logic = normalize_conditions(
            {
                "indicator": "RSI",
                "operator": "LESS_THAN",
                "conditions": [
                    {"id": "a", "indicator": "MACD", "operator": "CROSS_ABOVE"},
                    {"id": "b", "indicator": "RSI", "operator": "GREATER_THAN", "threshold": 60},
                ],
                "logic": "OR",
            }
        )
        assert [c.id for c in conditions] == ["a", "b"]
        assert logic is Logic.OR

    def test_neither_shape(self):
        with pytest.raises(ValueError):
            normalize_conditions({"id": "x"})

    def test_legacy_rule_from_dict(self):
        rule = AlertRule.from_dict(
            {
                "id": "7",
                "asset_id": "sol",
                "timeframe": "15m",
                "indicator": "MACD",
                "operator": "CROSS_BELOW",
                "threshold": None,
                "active": True,
                "triggered": False,
            }
        )
        assert rule.conditions[0].operator is ComparisonOperator.CROSS_BELOW
        assert rule.timeframe is Timeframe.M15


class TestEvaluateCondition:
    """Tests for single condition checks."""

    def test_rsi_less_than(self):
        result = evaluate_condition(rsi_below(30), snap(rsi=25))
        assert result.matched
        assert result.observed_value == 25

    def test_rsi_default_thresholds(self):
        assert evaluate_condition(rsi_below(None), snap(rsi=29)).matched
        assert not evaluate_condition(rsi_below(None), snap(rsi=30)).matched
        assert evaluate_condition(rsi_above(None), snap(rsi=71)).matched
        assert not evaluate_condition(rsi_above(None), snap(rsi=70)).matched

    def test_unmatched_still_reports_value(self):
        result = evaluate_condition(rsi_below(30), snap(rsi=55))
        assert not result.matched
        assert result.observed_value == 55

    def test_macd_threshold_default_zero(self):
        gt = RuleCondition(IndicatorType.MACD, ComparisonOperator.GREATER_THAN)
        lt = RuleCondition(IndicatorType.MACD, ComparisonOperator.LESS_THAN)
        assert evaluate_condition(gt, snap(histogram=0.2)).matched
        assert evaluate_condition(lt, snap(histogram=-0.2)).matched

    def test_cross_needs_previous(self):
        condition = macd_cross(ComparisonOperator.CROSS_ABOVE)
        result = evaluate_condition(condition, snap(histogram=0.5))
        assert not result.matched
        assert result.observed_value == 0.5

    def test_cross_above(self):
        condition = macd_cross(ComparisonOperator.CROSS_ABOVE)
        assert evaluate_condition(condition, snap(histogram=0.0), snap(histogram=-0.1)).matched
        assert not evaluate_condition(condition, snap(histogram=0.2), snap(histogram=0.1)).matched

    def test_cross_below(self):
        condition = macd_cross(ComparisonOperator.CROSS_BELOW)
        assert evaluate_condition(condition, snap(histogram=0.0), snap(histogram=0.1)).matched
        assert not evaluate_condition(condition, snap(histogram=-0.2), snap(histogram=-0.1)).matched


class TestCombine:
    """Tests for AND / OR logic."""

    def test_and_requires_all(self):
        results = [ConditionResult(True, 25.0), ConditionResult(False, -0.1)]
        assert combine(results, Logic.AND) == (False, None)

    def test_or_reports_first_matched_value(self):
        results = [ConditionResult(False, 55.0), ConditionResult(True, 0.3)]
        assert combine(results, Logic.OR) == (True, 0.3)

    def test_and_reports_first_value(self):
        results = [ConditionResult(True, 25.0), ConditionResult(True, 0.3)]
        assert combine(results, Logic.AND) == (True, 25.0)


class TestEvaluateRule:
    """Tests for rule evaluation across assets."""

    def setup_method(self):
        self.assets = [
            make_asset("btc", rsi=25),
            make_asset("eth", rsi=45),
            make_asset("gold", AssetType.COMMODITY, rsi=20),
            make_asset("aapl", AssetType.STOCK, rsi=28),
        ]

    def test_resolve_all_crypto_excludes_commodity(self):
        ids = [a.id for a in resolve_selector(ALL_CRYPTO, self.assets)]
        assert ids == ["btc", "eth"]

    def test_resolve_all_stocks(self):
        assert [a.id for a in resolve_selector(ALL_STOCKS, self.assets)] == ["aapl"]

    def test_resolve_single_asset(self):
        assert [a.id for a in resolve_selector("gold", self.assets)] == ["gold"]

    def test_broad_rule_evaluates_each_asset(self):
        rule = AlertRule(asset_selector=ALL_CRYPTO, timeframe=Timeframe.H4, conditions=(rsi_below(),))
        matches = evaluate_rule(rule, self.assets)
        assert [(m.asset.id, m.matched) for m in matches] == [("btc", True), ("eth", False)]
        assert matches[1].observed_value == 45

    def test_missing_timeframe_is_skipped(self):
        rule = AlertRule(asset_selector="btc", timeframe=Timeframe.D1, conditions=(rsi_below(),))
        assert evaluate_rule(rule, self.assets) == []

    def test_cross_uses_previous_cycle_by_id(self):
        rule = AlertRule(
            asset_selector="btc",
            timeframe=Timeframe.H4,
            conditions=(macd_cross(ComparisonOperator.CROSS_ABOVE),),
        )
        previous = [make_asset("btc", histogram=-0.5)]
        current = [make_asset("btc", histogram=0.5)]
        assert not evaluate_rule(rule, current)[0].matched
        match = evaluate_rule(rule, current, previous)[0]
        assert match.matched
        assert match.first_matched_index == 0


class TestOversoldCrossRule:
    """AND of RSI < 30 and a bullish MACD cross, evaluated on real snapshots."""

    def make_rule(self) -> AlertRule:
        return AlertRule(
            asset_selector="btc",
            timeframe=Timeframe.H4,
            conditions=(rsi_below(30.0), macd_cross(ComparisonOperator.CROSS_ABOVE)),
            logic=Logic.AND,
        )

    def test_matches_when_oversold_and_crossing(self):
        previous = [make_asset("btc", rsi=27, histogram=-0.5)]
        current = [make_asset("btc", rsi=25, histogram=0.5)]
        match = evaluate_rule(self.make_rule(), current, previous)[0]
        assert match.matched
        assert [r.matched for r in match.results] == [True, True]
        assert match.observed_value == 25

    def test_no_previous_snapshot_never_matches(self):
        current = [make_asset("btc", rsi=25, histogram=0.5)]
        match = evaluate_rule(self.make_rule(), current)[0]
        assert not match.matched
        assert [r.matched for r in match.results] == [True, False]

    def test_cross_without_oversold_rsi(self):
        previous = [make_asset("btc", rsi=44, histogram=-0.5)]
        current = [make_asset("btc", rsi=45, histogram=0.5)]
        match = evaluate_rule(self.make_rule(), current, previous)[0]
        assert not match.matched
        assert [r.matched for r in match.results] == [False, True]


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
