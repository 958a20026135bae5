"""Intermediate records passed between indicator and scoring stages."""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class MACDResult:
    """Last values of the MACD line, its signal line and their difference."""

    macd: float = 0.0
    signal: float = 0.0
    histogram: float = 0.0


@dataclass(frozen=True)
class BreakoutState:
    """Price position relative to the recent rolling high and low."""

    near_high: float
    near_low: float
    is_breakout: bool
    is_breakdown: bool


@dataclass(frozen=True)
class IndicatorBundle:
    """Derived indicator values for one symbol in one scan pass."""

    rsi_1h: float
    rsi_4h: float
    macd_1h: MACDResult
    macd_4h: MACDResult
    ema_trend_1h: float
    ema_trend_4h: float
    vol_spike_1h: float
    vol_spike_15m: float
    volatility: float
    oi_change_pct: float
    funding_rate_pct: float
    breakout_1h: BreakoutState
    breakout_4h: BreakoutState


@dataclass(frozen=True)
class TradeLevels:
    """Rounded entry, take-profit and stop prices."""

    entry: float
    take_profits: Tuple[float, float, float]
    stop_loss: float
