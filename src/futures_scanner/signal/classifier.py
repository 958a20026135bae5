"""Classification and composite scoring of evaluated symbols.

Every function here is a pure function of an ``IndicatorBundle`` plus the
24h price change and the reference price. Identical inputs always produce
an identical ``EvaluatedSymbol``.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Sequence, Tuple
import logging
import math

from ..core.enums import Confidence, Direction, MovementStatus
from ..core.models import EvaluatedSymbol, SignalMetadata
from . import narrative
from .indicators import sign
from .models import BreakoutState, IndicatorBundle, TradeLevels

logger = logging.getLogger(__name__)

BREAKOUT_LOOKBACK = 20
BREAKOUT_TOLERANCE = 0.002

LONG_TP_MULTIPLIERS = (1.006, 1.012, 1.02)
SHORT_TP_MULTIPLIERS = (0.994, 0.988, 0.978)


# ----------------------------------------------------------------------
# Direction & breakout
# ----------------------------------------------------------------------

def determine_direction(bundle: IndicatorBundle) -> Direction:
    """Long/short bias from EMA trends, falling back to the stronger trend."""
    trend_1h = bundle.ema_trend_1h
    trend_4h = bundle.ema_trend_4h

    if trend_1h >= 0 and trend_4h >= 0 and bundle.rsi_1h >= 48:
        return Direction.LONG
    if trend_1h <= 0 and trend_4h <= 0 and bundle.rsi_1h <= 52:
        return Direction.SHORT
    return Direction.LONG if trend_1h >= trend_4h else Direction.SHORT


def detect_breakout(
    highs: Sequence[float],
    lows: Sequence[float],
    price: float,
    lookback: int = BREAKOUT_LOOKBACK,
) -> BreakoutState:
    """Compare *price* with the rolling high/low of the last *lookback* bars."""
    if len(highs) == 0 or len(lows) == 0:
        raise ValueError("Breakout detection needs at least one bar")

    recent_high = max(highs[-lookback:])
    recent_low = min(lows[-lookback:])
    near_high = (price - recent_high) / recent_high
    near_low = (price - recent_low) / recent_low

    return BreakoutState(
        near_high=near_high,
        near_low=near_low,
        is_breakout=near_high > -BREAKOUT_TOLERANCE,
        is_breakdown=near_low < BREAKOUT_TOLERANCE,
    )


# ----------------------------------------------------------------------
# Movement state rules
# ----------------------------------------------------------------------

def is_strong_momentum(bundle: IndicatorBundle, price_change: float) -> bool:
    """Volume, price, MACD, trend and open interest all pushing together."""
    return (
        bundle.vol_spike_1h > 1.6
        and bundle.vol_spike_15m > 1.4
        and abs(price_change) > 1
        and sign(bundle.macd_1h.histogram) == sign(bundle.macd_4h.histogram)
        and abs(bundle.ema_trend_1h) > 0.01
        and abs(bundle.ema_trend_4h) > 0.01
        and abs(bundle.oi_change_pct) > 0.5
    )


def is_volatile_breakout(bundle: IndicatorBundle, price_change: float) -> bool:
    """Breaking out on both timeframes with enough volatility to follow through."""
    return (
        bundle.breakout_1h.is_breakout
        and bundle.breakout_4h.is_breakout
        and bundle.volatility > 2.5
    )


def is_aligned_momentum(bundle: IndicatorBundle) -> bool:
    volume_led = (
        bundle.vol_spike_1h > 1.3
        and abs(bundle.ema_trend_1h) > 0.006
        and abs(bundle.macd_1h.histogram) > 0.0005
    )
    positioning_led = bundle.vol_spike_15m > 1.2 and abs(bundle.oi_change_pct) > 0.3
    return volume_led or positioning_led


def has_rsi_bias(bundle: IndicatorBundle) -> bool:
    return (
        (bundle.rsi_1h > 52 and bundle.rsi_4h > 50)
        or (bundle.rsi_1h < 48 and bundle.rsi_4h < 50)
    )


def is_aligned_setup(bundle: IndicatorBundle, price_change: float) -> bool:
    """Momentum building with trend, MACD and RSI agreeing across timeframes."""
    return (
        is_aligned_momentum(bundle)
        and sign(bundle.ema_trend_1h) == sign(bundle.ema_trend_4h)
        and sign(bundle.macd_1h.histogram) == sign(bundle.macd_4h.histogram)
        and has_rsi_bias(bundle)
    )


MovementRule = Tuple[MovementStatus, Callable[[IndicatorBundle, float], bool]]

# Evaluated in order, first match wins
MOVEMENT_RULES: Tuple[MovementRule, ...] = (
    (MovementStatus.MOVING_NOW, is_strong_momentum),
    (MovementStatus.MOVING_NOW, is_volatile_breakout),
    (MovementStatus.ABOUT_TO_MOVE, is_aligned_setup),
)


def determine_movement_status(bundle: IndicatorBundle, price_change: float) -> MovementStatus:
    for status, predicate in MOVEMENT_RULES:
        if predicate(bundle, price_change):
            return status
    return MovementStatus.LIKELY_IN_24H


# ----------------------------------------------------------------------
# Scores
# ----------------------------------------------------------------------

def composite_score(bundle: IndicatorBundle) -> float:
    """
    Fuse all signals into a single rank key.

    Each contribution is capped separately so that no single indicator
    dominates. Non-finite results collapse to 0.
    """
    trend_alignment = 1 if sign(bundle.ema_trend_1h) == sign(bundle.ema_trend_4h) else 0
    macd_alignment = 1 if sign(bundle.macd_1h.histogram) == sign(bundle.macd_4h.histogram) else 0
    rsi_alignment = 1 if (
        (bundle.rsi_1h > 55 and bundle.rsi_4h > 52)
        or (bundle.rsi_1h < 45 and bundle.rsi_4h < 48)
    ) else 0

    break_factor = (
        (1 if bundle.breakout_1h.is_breakout else 0)
        + (0.8 if bundle.breakout_4h.is_breakout else 0)
    )

    vol_score = min(bundle.vol_spike_1h * 15, 18) + min(bundle.vol_spike_15m * 12, 15)
    trend_score = (
        min(abs(bundle.ema_trend_1h) * 110, 18)
        + min(abs(bundle.ema_trend_4h) * 90, 16)
    )
    # Histogram values are tiny, hence the large multipliers
    macd_score = (
        min(abs(bundle.macd_1h.histogram) * 70000, 12)
        + min(abs(bundle.macd_4h.histogram) * 40000, 10)
    )
    rsi_score = 10 if rsi_alignment else 4
    oi_score = min(abs(bundle.oi_change_pct) * 4, 12)
    volatility_score = min(bundle.volatility * 4, 15)
    funding_penalty = max(abs(bundle.funding_rate_pct) - 0.03, 0) * 120

    base = vol_score + trend_score + macd_score + rsi_score + oi_score + volatility_score
    alignment_bonus = (trend_alignment + macd_alignment + rsi_alignment) * 6
    breakout_bonus = break_factor * 8

    composite = base + alignment_bonus + breakout_bonus - funding_penalty
    return composite if math.isfinite(composite) else 0.0


def risk_score(bundle: IndicatorBundle) -> float:
    """Adverse-outcome estimate on a 1-10 scale, one decimal."""
    vol_risk = min(bundle.volatility / 1.5, 6)
    funding_risk = min(abs(bundle.funding_rate_pct) * 120, 4)
    oi_risk = max(0, 3 - min(abs(bundle.oi_change_pct), 3))

    if bundle.vol_spike_1h > 2.2 or bundle.vol_spike_15m > 2.2:
        volume_risk = 1.5  # frothy
    elif bundle.vol_spike_1h < 1:
        volume_risk = 4  # no confirming volume
    else:
        volume_risk = 1

    raw = round(vol_risk + funding_risk + oi_risk + volume_risk, 1)
    if not math.isfinite(raw):
        return 10.0
    return float(max(1, min(10, raw)))


def derive_confidence(composite: float, risk: float) -> Confidence:
    if composite > 90 and risk <= 4:
        return Confidence.HIGH
    if composite > 70 and risk <= 6:
        return Confidence.MEDIUM
    return Confidence.LOW


# ----------------------------------------------------------------------
# Trade levels
# ----------------------------------------------------------------------

TICK_DECIMALS = ((1000, 1), (100, 2), (10, 3), (1, 4))


def round_to_tick_size(price: float) -> float:
    """Round half up, with more decimals for cheaper instruments."""
    decimals = next((d for floor, d in TICK_DECIMALS if price >= floor), 5)
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(price).quantize(quantum, rounding=ROUND_HALF_UP))


def stop_multiplier(direction: Direction, volatility: float) -> float:
    """Stop distance widens with volatility but stays within 1.4% of entry."""
    distance = max(volatility / 150, 0.012)
    if direction == Direction.LONG:
        return max(0.986, 1 - distance)
    return min(1.014, 1 + distance)


def trade_levels(price: float, direction: Direction, volatility: float) -> TradeLevels:
    multipliers = LONG_TP_MULTIPLIERS if direction == Direction.LONG else SHORT_TP_MULTIPLIERS
    take_profits = tuple(round_to_tick_size(price * m) for m in multipliers)
    return TradeLevels(
        entry=round_to_tick_size(price),
        take_profits=take_profits,
        stop_loss=round_to_tick_size(price * stop_multiplier(direction, volatility)),
    )


def safe_leverage(volatility: float) -> str:
    if volatility < 2:
        return "15-20x"
    if volatility < 3.5:
        return "10-15x"
    if volatility < 5:
        return "6-10x"
    if volatility < 7:
        return "4-6x"
    return "3-4x"


# ----------------------------------------------------------------------
# Assembly
# ----------------------------------------------------------------------

def classify(
    symbol: str,
    bundle: IndicatorBundle,
    price_change: float,
    price: float,
    oi_period: str = "5m",
) -> EvaluatedSymbol:
    """Build the full evaluation record for one symbol."""
    direction = determine_direction(bundle)
    movement_status = determine_movement_status(bundle, price_change)
    composite = composite_score(bundle)
    risk = risk_score(bundle)
    confidence = derive_confidence(composite, risk)
    levels = trade_levels(price, direction, bundle.volatility)

    logger.debug(
        f"{symbol}: {movement_status.value} {direction.value} "
        f"composite={composite:.2f} risk={risk:.1f} confidence={confidence.value}"
    )

    return EvaluatedSymbol(
        symbol=symbol,
        movement_status=movement_status,
        reason=narrative.build_reason(direction, bundle),
        trend_strength=narrative.describe_trend_strength(direction, bundle),
        volume_spike=narrative.format_volume_spike(bundle.vol_spike_1h, bundle.vol_spike_15m),
        funding_rate=narrative.format_funding_rate(bundle.funding_rate_pct),
        open_interest_change=narrative.format_open_interest_change(bundle.oi_change_pct, oi_period),
        volatility=narrative.describe_volatility(bundle.volatility),
        breakout_signal=narrative.describe_breakout_signal(
            direction, bundle.breakout_1h, bundle.breakout_4h
        ),
        whale_activity=narrative.describe_whale_activity(
            bundle.vol_spike_1h, bundle.vol_spike_15m, bundle.oi_change_pct
        ),
        risk_score=risk,
        confidence=confidence,
        direction=direction,
        entry=levels.entry,
        take_profits=list(levels.take_profits),
        stop_loss=levels.stop_loss,
        safe_leverage=safe_leverage(bundle.volatility),
        composite_score=composite,
        metadata=SignalMetadata(
            rsi_1h=bundle.rsi_1h,
            rsi_4h=bundle.rsi_4h,
            macd_1h=bundle.macd_1h.macd,
            macd_histogram_1h=bundle.macd_1h.histogram,
            macd_4h=bundle.macd_4h.macd,
            macd_histogram_4h=bundle.macd_4h.histogram,
            ema_trend_1h=bundle.ema_trend_1h,
            ema_trend_4h=bundle.ema_trend_4h,
            volume_spike_ratio=bundle.vol_spike_1h,
            open_interest_delta_pct=bundle.oi_change_pct,
            funding_rate_pct=bundle.funding_rate_pct,
            volatility_pct=bundle.volatility,
            price_change_24h=price_change,
        ),
    )
