"""
Technical indicators for strategy calculations.

All functions are pure and deterministic - same inputs always produce same outputs.
Value i only uses inputs up to index i (no lookahead). Positions without enough
history are NaN, so callers must check with math.isnan before comparing.
"""

import math
from collections.abc import Sequence
from typing import NamedTuple

NAN = math.nan


class Bands(NamedTuple):
    """Bollinger band lines."""

    middle: list[float]
    upper: list[float]
    lower: list[float]


class MacdLines(NamedTuple):
    """MACD line, signal line and histogram."""

    macd: list[float]
    signal: list[float]
    histogram: list[float]


def _window_mean(window: Sequence[float]) -> float:
    # Offsets from the first value keep a flat window's mean exact
    base = window[0]
    return base + math.fsum(x - base for x in window) / len(window)


def sma(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Simple Moving Average.

    Each window is averaged from its own slice, so a large value leaving the
    window leaves no rounding residue behind.

    Args:
        values: Price series
        period: SMA period

    Returns:
        SMA values, NaN until the first full window (all NaN if period <= 0)
    """
    result = [NAN] * len(values)
    if period <= 0 or len(values) < period:
        return result

    for i in range(period - 1, len(values)):
        result[i] = _window_mean(values[i - period + 1 : i + 1])

    return result



def ema(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Exponential Moving Average.

    Leading NaN inputs are skipped, so an EMA of an indicator line starts
    once that line has warmed up. The first value is seeded with the SMA of
    the first full window.

    Args:
        values: Price series
        period: EMA period

    Returns:
        EMA values, NaN during warm-up
    """
    result = [NAN] * len(values)
    if period <= 0:
        return result

    start = 0
    while start < len(values) and math.isnan(values[start]):
        start += 1
    seed_end = start + period
    if seed_end > len(values):
        return result

    multiplier = 2.0 / (period + 1)
    result[seed_end - 1] = _window_mean(values[start:seed_end])

    for i in range(seed_end, len(values)):
        result[i] = (values[i] - result[i - 1]) * multiplier + result[i - 1]

    return result


def bollinger_bands(
    closes: Sequence[float],
    period: int = 20,
    std_dev: float = 2.0,
) -> Bands:
    """
    Calculate Bollinger Bands.

    Uses the population standard deviation of the same window as the SMA.

    Args:
        closes: Close prices
        period: SMA period (default 20)
        std_dev: Standard deviation multiplier (default 2.0)

    Returns:
        Bands(middle, upper, lower)
    """
    middle = sma(closes, period)
    upper = [NAN] * len(closes)
    lower = [NAN] * len(closes)

    for i in range(period - 1, len(closes)):
        if period <= 0 or math.isnan(middle[i]):
            continue
        window = closes[i - period + 1 : i + 1]
        mean = middle[i]
        variance = math.fsum((x - mean) ** 2 for x in window) / period
        std = math.sqrt(variance)

        upper[i] = mean + std_dev * std
        lower[i] = mean - std_dev * std

    return Bands(middle=middle, upper=upper, lower=lower)


def rsi(closes: Sequence[float], period: int = 14) -> list[float]:
    """
    Calculate Relative Strength Index with Wilder smoothing.

    Args:
        closes: Close prices
        period: RSI period (default 14)

    Returns:
        RSI values in [0, 100]; NaN for the first `period` positions
    """
    result = [NAN] * len(closes)
    if period <= 0 or len(closes) < period + 1:
        return result

    gains = [0.0] * len(closes)
    losses = [0.0] * len(closes)
    for i in range(1, len(closes)):
        change = closes[i] - closes[i - 1]
        if change > 0:
            gains[i] = change
        else:
            losses[i] = -change

    avg_gain = sum(gains[1 : period + 1]) / period
    avg_loss = sum(losses[1 : period + 1]) / period
    result[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period + 1, len(closes)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        result[i] = _rsi_value(avg_gain, avg_loss)

    return result


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    # No losses in the window reads as maximum strength, flat windows included
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def macd(
    closes: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MacdLines:
    """
    Calculate MACD (Moving Average Convergence Divergence).

    Args:
        closes: Close prices
        fast_period: Fast EMA period (default 12)
        slow_period: Slow EMA period (default 26)
        signal_period: Signal line period (default 9)

    Returns:
        MacdLines(macd, signal, histogram)
    """
    fast_ema = ema(closes, fast_period)
    slow_ema = ema(closes, slow_period)

    macd_line = [f - s for f, s in zip(fast_ema, slow_ema, strict=True)]
    signal_line = ema(macd_line, signal_period)
    histogram = [m - s for m, s in zip(macd_line, signal_line, strict=True)]

    return MacdLines(macd=macd_line, signal=signal_line, histogram=histogram)


# =============================================================================
# Ichimoku Cloud Components
# =============================================================================


def donchian_mid(
    highs: Sequence[float],
    lows: Sequence[float],
    period: int,
    index: int,
) -> float | None:
    """Midpoint of the highest high and lowest low over period ending at index."""
    hh = highest(highs, period, index)
    ll = lowest(lows, period, index)
    if hh is None or ll is None:
        return None
    return (hh + ll) / 2


def is_price_above_cloud(price: float, senkou_a: float, senkou_b: float) -> bool:
    """Check if price is above the Kumo cloud."""
    return price > max(senkou_a, senkou_b)


def is_price_below_cloud(price: float, senkou_a: float, senkou_b: float) -> bool:
    """Check if price is below the Kumo cloud."""
    return price < min(senkou_a, senkou_b)


# =============================================================================
# Utility Functions
# =============================================================================


def crossover(series1: Sequence[float], series2: Sequence[float], index: int) -> bool:
    """Check if series1 crosses above series2 at index."""
    if index < 1 or index >= len(series1) or index >= len(series2):
        return False
    return series1[index - 1] < series2[index - 1] and series1[index] > series2[index]


def crossunder(series1: Sequence[float], series2: Sequence[float], index: int) -> bool:
    """Check if series1 crosses below series2 at index."""
    if index < 1 or index >= len(series1) or index >= len(series2):
        return False
    return series1[index - 1] > series2[index - 1] and series1[index] < series2[index]


def highest(values: Sequence[float], period: int, index: int) -> float | None:
    """Get highest value over period ending at index; None if the window is incomplete."""
    if period <= 0 or index < period - 1 or index >= len(values):
        return None
    return max(values[index - period + 1 : index + 1])


def lowest(values: Sequence[float], period: int, index: int) -> float | None:
    """Get lowest value over period ending at index; None if the window is incomplete."""
    if period <= 0 or index < period - 1 or index >= len(values):
        return None
    return min(values[index - period + 1 : index + 1])
