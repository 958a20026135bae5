"""Indicators, classification and explanations."""

from .indicators import ema, rsi, macd, standard_deviation, volatility_percent, volume_spike_ratio
from .classifier import classify, composite_score, risk_score, derive_confidence
from .models import IndicatorBundle, MACDResult, BreakoutState, TradeLevels

__all__ = [
    "ema",
    "rsi",
    "macd",
    "standard_deviation",
    "volatility_percent",
    "volume_spike_ratio",
    "classify",
    "composite_score",
    "risk_score",
    "derive_confidence",
    "IndicatorBundle",
    "MACDResult",
    "BreakoutState",
    "TradeLevels",
]
