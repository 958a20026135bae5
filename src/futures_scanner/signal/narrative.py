"""Human-readable explanations attached to each evaluated symbol.

The wording here is user-facing output and downstream consumers may match
on it. Each template sits next to the threshold checks that select it.
"""

from typing import List

from ..core.enums import Direction
from .indicators import sign
from .models import BreakoutState, IndicatorBundle

SEPARATOR = " · "


def build_reason(direction: Direction, bundle: IndicatorBundle) -> str:
    """Compose the headline reason from the signals that fired."""
    pieces: List[str] = []
    if direction == Direction.LONG:
        pieces.append("Bullish alignment across 1H/4H EMAs")
    else:
        pieces.append("Bearish alignment across 1H/4H EMAs")

    if bundle.vol_spike_1h > 1.5 or bundle.vol_spike_15m > 1.3:
        pieces.append("Live volume expansion confirmed")

    hist_1h = bundle.macd_1h.histogram
    if sign(hist_1h) == sign(bundle.macd_4h.histogram):
        polarity = "positive" if hist_1h > 0 else "negative"
        pieces.append(f"MACD momentum {polarity} on 1H & 4H")

    if bundle.breakout_1h.is_breakout or bundle.breakout_4h.is_breakout:
        pieces.append("Price pressing breakout liquidity")

    if abs(bundle.oi_change_pct) > 0.5:
        pieces.append("Open interest rising with price action")

    if (bundle.rsi_1h > 65 or bundle.rsi_4h > 60
            or bundle.rsi_1h < 35 or bundle.rsi_4h < 40):
        drive = "bullish" if direction == Direction.LONG else "bearish"
        pieces.append(f"RSI extremes reinforcing {drive} drive")

    return SEPARATOR.join(pieces)


def describe_trend_strength(direction: Direction, bundle: IndicatorBundle) -> str:
    slope_1h = bundle.ema_trend_1h * 100
    slope_4h = bundle.ema_trend_4h * 100

    if abs(slope_1h) > 1.2 and abs(slope_4h) > 0.8:
        slope_descriptor = "Strong"
    elif abs(slope_1h) > 0.6:
        slope_descriptor = "Firm"
    else:
        slope_descriptor = "Moderate"

    rsi_descriptor = f"RSI {bundle.rsi_1h:.1f}/{bundle.rsi_4h:.1f}"
    macd_diff = bundle.macd_1h.macd - bundle.macd_1h.signal
    macd_descriptor = "MACD accelerating" if macd_diff > 0 else "MACD flattening"

    return SEPARATOR.join([
        f"{slope_descriptor} {direction.value.lower()} bias",
        rsi_descriptor,
        macd_descriptor,
    ])


def describe_breakout_signal(
    direction: Direction,
    breakout: BreakoutState,
    longer_breakout: BreakoutState,
) -> str:
    """Describe where price sits against the 1H and 4H ranges."""
    if direction == Direction.LONG:
        if breakout.is_breakout:
            return "Testing intraday highs; watch for breakout follow-through"
        if longer_breakout.is_breakout:
            return "Pressing 4H supply; breakout likely with sustained bids"
        if breakout.near_low < -0.001:
            return "Liquidity sweep completed; bounce expected"
        return "Range-bound but building pressure"

    if breakout.is_breakdown:
        return "Slipping beneath intraday support; breakdown watch"
    if longer_breakout.is_breakdown:
        return "4H support vulnerable; short continuation favoured"
    if breakout.near_high > -0.001:
        return "Liquidity grab above highs; reversal setup"
    return "Compression; fade rallies until momentum shifts"


def describe_whale_activity(vol_spike_1h: float, vol_spike_15m: float, oi_change_pct: float) -> str:
    if vol_spike_15m > 1.8 and abs(oi_change_pct) > 1.2:
        return "Aggressive block flow detected (OI + volume spike)"
    if vol_spike_1h > 1.6 and abs(oi_change_pct) > 0.6:
        return "Institutional flow building steadily"
    if vol_spike_1h < 1.1 and abs(oi_change_pct) < 0.2:
        return "No notable whale footprints right now"
    return "Moderate leveraged participation active"


def describe_volatility(volatility: float) -> str:
    if volatility < 1.5:
        return f"Calm {volatility:.2f}%"
    if volatility < 3:
        return f"Controlled {volatility:.2f}%"
    if volatility < 5:
        return f"Elevated {volatility:.2f}%"
    return f"High {volatility:.2f}%"


def format_volume_spike(vol_spike_1h: float, vol_spike_15m: float) -> str:
    return f"{vol_spike_1h:.2f}x (1H) / {vol_spike_15m:.2f}x (15M)"


def format_funding_rate(funding_rate_pct: float) -> str:
    return f"{funding_rate_pct:.3f}%"


def format_open_interest_change(oi_change_pct: float, period: str = "5m") -> str:
    prefix = "+" if oi_change_pct >= 0 else ""
    return f"{prefix}{oi_change_pct:.2f}% ({period})"
