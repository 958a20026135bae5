"""Decoding of raw exchange payloads into scanner models."""

from typing import Dict, Iterable, List, Optional, Set, Tuple
import logging
import math

import numpy as np
import pandas as pd
from pydantic import ValidationError

from ..core.models import FundingSnapshot, OpenInterestPoint, TickerSnapshot

logger = logging.getLogger(__name__)


def filter_perpetual_symbols(
    markets: Iterable[Dict],
    quote: str = 'USDT',
    blacklist: Optional[Iterable[str]] = None,
) -> List[str]:
    """Keep trading perpetual contracts settled in *quote*."""
    excluded: Set[str] = set(blacklist or [])
    result: List[str] = []
    total = 0

    for info in markets:
        total += 1
        symbol = info.get('symbol')
        if not symbol or symbol in excluded:
            continue
        if info.get('contractType') != 'PERPETUAL':
            continue
        if info.get('status') != 'TRADING':
            continue
        if info.get('quoteAsset') != quote:
            continue
        result.append(symbol)

    logger.info(f"Filtered {len(result)} {quote} perpetuals from {total} instruments")
    return result


def _to_float(value, default: float = 0.0) -> float:
    if value is None or value == '':
        return default
    result = float(value)
    if not math.isfinite(result):
        raise ValueError(f"Non-finite numeric value: {value!r}")
    return result


def normalize_ticker(raw: Dict) -> Optional[TickerSnapshot]:
    """Decode a raw 24h ticker, or None if it is malformed."""
    try:
        return TickerSnapshot(
            symbol=raw['symbol'],
            last_price=_to_float(raw.get('lastPrice')),
            price_change_percent=_to_float(raw.get('priceChangePercent')),
            quote_volume=_to_float(raw.get('quoteVolume')),
            volume=_to_float(raw.get('volume')),
            trade_count=int(raw.get('count') or 0),
            high_price=_to_float(raw.get('highPrice')),
            low_price=_to_float(raw.get('lowPrice')),
            weighted_avg_price=_to_float(raw.get('weightedAvgPrice')),
        )
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        logger.debug(f"Discarding malformed ticker {raw.get('symbol', '?')}: {e}")
        return None


def parse_funding(raw: Dict) -> FundingSnapshot:
    """Decode a premium index payload."""
    return FundingSnapshot(
        symbol=raw.get('symbol', ''),
        mark_price=_to_float(raw.get('markPrice')),
        index_price=_to_float(raw.get('indexPrice')),
        last_funding_rate=_to_float(raw.get('lastFundingRate')),
        next_funding_time=int(raw.get('nextFundingTime') or 0),
    )


def parse_open_interest(raw_points: Iterable[Dict]) -> List[OpenInterestPoint]:
    """Decode open interest samples, sorted oldest first."""
    points = [
        OpenInterestPoint(
            symbol=p.get('symbol', ''),
            sum_open_interest=_to_float(p.get('sumOpenInterest')),
            sum_open_interest_value=_to_float(p.get('sumOpenInterestValue')),
            timestamp=int(p['timestamp']),
        )
        for p in raw_points
    ]
    return sorted(points, key=lambda p: p.timestamp)


def open_interest_delta_pct(points: List[OpenInterestPoint]) -> float:
    """Percent change between the two most recent open interest samples."""
    if len(points) < 2:
        return 0.0
    ordered = sorted(points, key=lambda p: p.timestamp)
    latest = ordered[-1].sum_open_interest
    prev = ordered[-2].sum_open_interest
    if prev == 0:
        return 0.0
    return (latest - prev) / prev * 100


def validate_ohlcv(df: pd.DataFrame) -> bool:
    """Check that bars are usable for indicator math."""
    if df.empty:
        return False

    if df.isnull().any().any() or np.isinf(df.values).any():
        logger.debug("OHLCV contains NaN or inf values")
        return False

    price_cols = ['open', 'high', 'low', 'close']
    if (df[price_cols] <= 0).any().any():
        logger.debug("OHLCV contains zero or negative prices")
        return False

    return True


def series_arrays(df: pd.DataFrame) -> Tuple[List[float], List[float], List[float], List[float]]:
    """Split a candle frame into index-aligned closes, highs, lows and volumes."""
    return (
        df['close'].tolist(),
        df['high'].tolist(),
        df['low'].tolist(),
        df['volume'].tolist(),
    )
