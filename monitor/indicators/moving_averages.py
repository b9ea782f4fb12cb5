"""
Moving Average Indicators - EMA calculation.

The dashboard seeds every EMA with the first raw value instead of an SMA,
so the series is defined from the very first point.
"""


def ema_series(values: list[float], span: int) -> list[float]:
    """
    Calculate EMA series for all data points.

    Uses the smoothing factor k = 2 / (span + 1). The first EMA value
    is the first raw value (no SMA warm-up), so the output has the
    same length as the input.

    Args:
        values: List of values (most recent last)
        span: Number of periods for EMA calculation

    Returns:
        List of EMA values, index-aligned with values
    """
    if not values:
        return []

    k = 2 / (span + 1)
    result: list[float] = [values[0]]

    for value in values[1:]:
        result.append(value * k + result[-1] * (1 - k))

    return result


def ema(values: list[float], span: int) -> float | None:
    """
    Calculate the current Exponential Moving Average.

    Args:
        values: List of values (most recent last)
        span: Number of periods for EMA calculation

    Returns:
        Latest EMA value or None for an empty series
    """
    series = ema_series(values, span)
    return series[-1] if series else None
