"""Cheap single-pass scoring that shrinks the universe to a shortlist."""

import logging
import math
from typing import Dict, Iterable, List, Optional

from ..core.models import TickerSnapshot
from .models import ShortlistCandidate

logger = logging.getLogger(__name__)


def intraday_range_pct(ticker: TickerSnapshot) -> float:
    """High/low range as a percentage of the low."""
    if ticker.low_price <= 0:
        return 0.0
    return (ticker.high_price - ticker.low_price) / ticker.low_price * 100


def pre_score(ticker: TickerSnapshot) -> float:
    """
    Sum of four capped sub-scores: price move, log quote volume,
    intraday range and move velocity relative to range.
    """
    move = abs(ticker.price_change_percent)
    price_move_score = min(move * 1.2, 25)
    volume_score = min(math.log10(ticker.quote_volume + 1) * 12, 25)
    range_pct = intraday_range_pct(ticker)
    range_score = min(range_pct, 20)
    velocity = move / max(range_pct, 1)
    velocity_score = min(velocity * 10, 15)
    return price_move_score + volume_score + range_score + velocity_score


class PreScreener:
    """
    Filters tickers by liquidity, scores them cheaply and returns the
    top N for deep evaluation.
    """

    def __init__(self, config: Optional[Dict] = None):
        defaults = self._default_config()
        if config:
            defaults.update(config)
        self.config = defaults

    @staticmethod
    def _default_config() -> Dict:
        return {
            "min_quote_volume": 2_000_000,
            "max_deep_symbols": 25,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def filter_liquid(self, tickers: Iterable[TickerSnapshot]) -> List[TickerSnapshot]:
        """Drop tickers at or below the quote volume floor."""
        floor = self.config["min_quote_volume"]
        return [t for t in tickers if t.quote_volume > floor]

    def shortlist(self, tickers: Iterable[TickerSnapshot]) -> List[ShortlistCandidate]:
        """Score liquid tickers and keep the best ``max_deep_symbols``."""
        liquid = self.filter_liquid(tickers)
        candidates = [ShortlistCandidate(ticker=t, pre_score=pre_score(t)) for t in liquid]

        # sort is stable, ties keep input order
        candidates.sort(key=lambda c: c.pre_score, reverse=True)
        shortlist = candidates[: self.config["max_deep_symbols"]]

        logger.info(
            f"Pre-screen kept {len(shortlist)} of {len(liquid)} liquid symbols"
        )
        return shortlist

