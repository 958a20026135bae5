"""Technical indicators over ordered price and volume sequences.

All functions are pure and return neutral values instead of raising when
the input is too short to be meaningful.
"""

from typing import List, Sequence
import math

import numpy as np
import pandas as pd

from .models import MACDResult


def sign(value: float) -> int:
    """Three-valued sign: -1, 0 or 1."""
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def ema(values: Sequence[float], period: int) -> List[float]:
    """
    Exponential moving average of equal length to *values*.

    The first output is seeded with ``values[0]`` rather than a simple
    average over the first *period* values.
    """
    if len(values) == 0:
        return []
    series = pd.Series(values, dtype=float)
    return series.ewm(span=period, adjust=False).mean().tolist()


def rsi(values: Sequence[float], period: int = 14) -> float:
    """Relative strength index with Wilder smoothing.

    Returns 50 when there are not more than *period* values, and 80 when
    the average loss ends at exactly zero.
    """
    if len(values) <= period:
        return 50.0

    deltas = np.diff(np.asarray(values, dtype=float))
    gains = np.where(deltas >= 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = float(gains[:period].sum()) / period
    avg_loss = float(losses[:period].sum()) / period

    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

    if avg_loss == 0:
        return 80.0
    rs = avg_gain / avg_loss
    return float(100 - 100 / (1 + rs))


def macd(
    values: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MACDResult:
    """Moving average convergence divergence.

    The signal line is an EMA of the MACD series starting at index
    ``slow_period - 1``. Too little data yields an all-zero result.
    """
    if len(values) < slow_period + signal_period:
        return MACDResult()

    fast_ema = np.asarray(ema(values, fast_period))
    slow_ema = np.asarray(ema(values, slow_period))
    macd_series = fast_ema - slow_ema
    signal_series = ema(macd_series[slow_period - 1:], signal_period)

    macd_value = float(macd_series[-1])
    signal_value = float(signal_series[-1])
    return MACDResult(
        macd=macd_value,
        signal=signal_value,
        histogram=macd_value - signal_value,
    )


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation (divides by N)."""
    if len(values) == 0:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float)))


def volatility_percent(closes: Sequence[float]) -> float:
    """Standard deviation of simple returns scaled by sqrt(N), as a percentage."""
    if len(closes) < 2:
        return 0.0

    prices = np.asarray(closes, dtype=float)
    with np.errstate(divide='ignore', invalid='ignore'):
        returns = np.diff(prices) / prices[:-1]

    result = standard_deviation(returns) * math.sqrt(len(returns)) * 100
    return result if math.isfinite(result) else 0.0


def volume_spike_ratio(volumes: Sequence[float], lookback: int = 20) -> float:
    """Latest volume relative to the mean of the preceding *lookback* volumes.

    Missing or non-finite volumes yield the neutral ratio 1.0.
    """
    if len(volumes) == 0:
        return 1.0

    window = list(volumes)[-(lookback + 1):]
    if len(window) < 2:
        return 1.0

    latest = window[-1]
    avg = float(np.mean(window[:-1]))
    if avg == 0:
        return 1.0
    ratio = float(latest / avg)
    return ratio if math.isfinite(ratio) else 1.0
