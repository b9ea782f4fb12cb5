"""
RSI Indicator - Relative Strength Index calculation.

Measures the speed and magnitude of recent price changes
to evaluate overbought or oversold conditions.
"""

NEUTRAL_RSI = 50.0


def rsi_series(prices: list[float], period: int = 14) -> list[float]:
    """
    Calculate the RSI series using Wilder's smoothing method.

    The first `period` price changes are averaged with a simple mean, then
    each following change is smoothed recursively:
        avg = (prev_avg * (period - 1) + current) / period

    When the average loss is exactly zero, 1 is used as the divisor of RS.
    This pushes RSI toward 100 for strong rallies (and to 0 for a flat
    series) instead of dividing by zero.

    Args:
        prices: List of prices (most recent last)
        period: Lookback period (default 14)

    Returns:
        RSI values aligned index-for-index with prices. Positions before
        `period` hold the neutral value 50, and a series shorter than
        period + 1 is all 50s.
    """
    if len(prices) < period + 1 or period <= 0:
        return [NEUTRAL_RSI] * len(prices)

    gains = 0.0
    losses = 0.0
    for i in range(1, period + 1):
        change = prices[i] - prices[i - 1]
        if change >= 0:
            gains += change
        else:
            losses -= change

    avg_gain = gains / period
    avg_loss = losses / period

    result = [NEUTRAL_RSI] * period
    result.append(_rsi_from_averages(avg_gain, avg_loss))

    for i in range(period + 1, len(prices)):
        change = prices[i] - prices[i - 1]
        gain = change if change > 0 else 0.0
        loss = -change if change < 0 else 0.0

        # Wilder's smoothing: (prev_avg * (period-1) + current) / period
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

        result.append(_rsi_from_averages(avg_gain, avg_loss))

    return result


def rsi(prices: list[float], period: int = 14) -> float:
    """
    Calculate the current Relative Strength Index.

    Args:
        prices: List of prices (most recent last)
        period: Lookback period (default 14)

    Returns:
        Latest RSI value (0-100), or 50 if there is not enough data
    """
    series = rsi_series(prices, period)
    return series[-1] if series else NEUTRAL_RSI


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    rs = avg_gain / (avg_loss if avg_loss != 0 else 1)
    return 100 - (100 / (1 + rs))
