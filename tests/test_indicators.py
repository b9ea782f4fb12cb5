#!/usr/bin/env python3
"""
Unit tests for the indicators module.

Run with:
    python -m pytest tests/test_indicators.py -v
"""

import sys
from pathlib import Path

import pytest

# Add project root to path for standalone execution
sys.path.insert(0, str(Path(__file__).parent.parent))

from monitor.indicators import (
    NEUTRAL_RSI,
    RSIZone,
    average_rsi,
    ema,
    ema_series,
    macd,
    macd_series,
    rsi,
    rsi_series,
    rsi_zone,
    zone_distribution,
)
from monitor.indicators.macd import MACDResult

SAMPLE_PRICES = [
    100, 102, 101, 105, 107, 103, 99, 98, 97, 96,
    95, 94, 93, 92, 91, 90, 95, 100, 105, 110,
]


class TestEMA:
    """Tests for Exponential Moving Average."""

    def test_ema_series_seeded_with_first_value(self):
        """The first EMA value is the first raw value."""
        result = ema_series([10.0, 20.0, 30.0], span=3)
        assert result[0] == 10.0
        assert len(result) == 3

    def test_ema_series_recursion(self):
        """Each value uses k = 2 / (span + 1)."""
        result = ema_series([10.0, 20.0], span=3)
        # k = 0.5 -> 20 * 0.5 + 10 * 0.5
        assert result[1] == pytest.approx(15.0)

    def test_ema_constant_series(self):
        assert ema([5.0] * 10, span=4) == pytest.approx(5.0)

    def test_ema_empty(self):
        assert ema_series([], span=3) == []
        assert ema([], span=3) is None


class TestRSI:
    """Tests for Relative Strength Index."""

    def test_short_series_is_all_neutral(self):
        """Fewer than period + 1 prices gives a neutral series."""
        prices = [float(p) for p in range(1, 15)]
        result = rsi_series(prices, period=14)
        assert result == [NEUTRAL_RSI] * 14

    def test_empty_series(self):
        assert rsi_series([], period=14) == []
        assert rsi([], period=14) == NEUTRAL_RSI

    def test_length_matches_input(self):
        assert len(rsi_series(SAMPLE_PRICES, period=14)) == len(SAMPLE_PRICES)

    def test_warmup_positions_are_neutral(self):
        result = rsi_series(SAMPLE_PRICES, period=14)
        assert result[:14] == [50.0] * 14

    def test_first_value_uses_simple_averages(self):
        """Deltas 1..14: gains 8, losses 17 -> RSI = 100 * 8 / 25."""
        result = rsi_series(SAMPLE_PRICES, period=14)
        assert result[14] == pytest.approx(32.0)

    def test_wilder_smoothing(self):
        """Index 15 smooths the index-14 averages with a -1 delta."""
        result = rsi_series(SAMPLE_PRICES, period=14)
        # avg_gain = 104/196, avg_loss = 235/196
        assert result[15] == pytest.approx(100 * 104 / 339)

    def test_values_within_bounds(self):
        result = rsi_series(SAMPLE_PRICES, period=14)
        assert all(0 <= v <= 100 for v in result)

    def test_rally_recovers_rsi(self):
        """The closing rally lifts RSI above its trough."""
        result = rsi_series(SAMPLE_PRICES, period=14)
        assert result[-1] > min(result[14:])

    def test_flat_series_is_zero(self):
        """No losses use divisor 1 and no gains give RS = 0."""
        assert rsi([100.0] * 20, period=14) == pytest.approx(0.0)

    def test_invalid_period(self):
        assert rsi_series([1.0, 2.0, 3.0], period=0) == [NEUTRAL_RSI] * 3

    def test_rsi_returns_last_value(self):
        assert rsi(SAMPLE_PRICES) == rsi_series(SAMPLE_PRICES)[-1]


class TestMACD:
    """Tests for MACD indicator."""

    def test_series_length_matches_input(self):
        assert len(macd_series(SAMPLE_PRICES)) == len(SAMPLE_PRICES)

    def test_histogram_is_line_minus_signal(self):
        for point in macd_series(SAMPLE_PRICES):
            assert point.histogram == pytest.approx(point.macd_line - point.signal_line)

    def test_first_point_is_zero(self):
        """All EMAs share the first price as seed."""
        first = macd_series(SAMPLE_PRICES)[0]
        assert first.macd_line == 0
        assert first.histogram == 0

    def test_uptrend_positive_line(self):
        prices = [100.0 + i for i in range(60)]
        result = macd(prices)
        assert result is not None
        assert result.macd_line > 0

    def test_empty(self):
        assert macd_series([]) == []
        assert macd([]) is None

    def test_result_flags(self):
        assert MACDResult(1.0, 0.5, 0.5).is_bullish
        assert MACDResult(-1.0, -0.5, -0.5).is_bearish

    def test_result_dict_roundtrip(self):
        result = MACDResult(1.5, 1.0, 0.5)
        assert MACDResult.from_dict(result.to_dict()) == result


class TestRSIZones:
    """Tests for RSI heat-map zones."""

    @pytest.mark.parametrize(
        "value,zone",
        [
            (85.0, RSIZone.OVERBOUGHT),
            (70.0, RSIZone.OVERBOUGHT),
            (100.0, RSIZone.OVERBOUGHT),
            (65.0, RSIZone.STRONG),
            (50.0, RSIZone.NEUTRAL),
            (35.0, RSIZone.WEAK),
            (29.9, RSIZone.OVERSOLD),
            (0.0, RSIZone.OVERSOLD),
        ],
    )
    def test_zone_bounds(self, value, zone):
        assert rsi_zone(value) is zone

    def test_out_of_range_falls_back_to_neutral(self):
        assert rsi_zone(120.0) is RSIZone.NEUTRAL

    def test_distribution_has_every_zone(self):
        counts = zone_distribution([25.0, 28.0, 75.0])
        assert set(counts) == set(RSIZone)
        assert counts[RSIZone.OVERSOLD] == 2
        assert counts[RSIZone.OVERBOUGHT] == 1
        assert counts[RSIZone.NEUTRAL] == 0

    def test_average(self):
        assert average_rsi([20.0, 40.0]) == 30.0
        assert average_rsi([]) == 0.0


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
