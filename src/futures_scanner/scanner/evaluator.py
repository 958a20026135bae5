"""Deep multi-timeframe evaluation of shortlisted symbols under a concurrency cap."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from ..core.gate import ConcurrencyGate
from ..core.models import EvaluatedSymbol, FundingSnapshot, OpenInterestPoint, TickerSnapshot
from ..data.connector import DataConnector
from ..data.processor import (
    open_interest_delta_pct,
    parse_funding,
    parse_open_interest,
    series_arrays,
    validate_ohlcv,
)
from ..signal.classifier import classify, detect_breakout
from ..signal.indicators import ema, macd, rsi, volatility_percent, volume_spike_ratio
from ..signal.models import IndicatorBundle
from .models import ShortlistCandidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SymbolInputs:
    """Everything fetched for one symbol in one pass."""

    short_trend: pd.DataFrame
    long_trend: pd.DataFrame
    confirmation: pd.DataFrame
    funding: FundingSnapshot
    open_interest: List[OpenInterestPoint]


def ema_trend(closes: Sequence[float], price: float) -> float:
    """Price distance from EMA21 minus EMA21 distance from EMA50."""
    ema21 = ema(closes, 21)[-1]
    ema50 = ema(closes, 50)[-1]
    return (price - ema21) / ema21 - (ema21 - ema50) / ema50


class BoundedEvaluator:
    """
    Fetches candles, funding and open interest for each shortlisted symbol
    and turns them into an ``EvaluatedSymbol``.

    At most ``max_concurrency`` symbols are evaluated at once. A failure
    for one symbol drops that symbol only.
    """

    def __init__(self, connector: DataConnector, config: Optional[Dict] = None):
        defaults = self._default_config()
        if config:
            for key, val in config.items():
                if isinstance(val, dict) and isinstance(defaults.get(key), dict):
                    defaults[key].update(val)
                else:
                    defaults[key] = val
        self.config = defaults
        self.connector = connector
        self.gate = ConcurrencyGate("evaluator", self.config["max_concurrency"])

    @staticmethod
    def _default_config() -> Dict:
        return {
            "max_concurrency": 6,
            "candle_limit": 180,
            "min_candles": 30,
            "oi_period": "5m",
            "oi_limit": 12,
            "timeframes": {
                "trend_short": "1h",
                "trend_long": "4h",
                "confirm": "15m",
            },
            # trailing windows fed to each indicator
            "rsi_window": 120,
            "macd_window": 160,
            "volatility_window": 48,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def evaluate_all(
        self, shortlist: Sequence[ShortlistCandidate]
    ) -> List[Optional[EvaluatedSymbol]]:
        """
        Evaluate every candidate; the result is aligned with *shortlist*
        and holds None for dropped symbols.
        """
        results = await asyncio.gather(
            *(self._evaluate_gated(c.ticker) for c in shortlist)
        )
        dropped = sum(1 for r in results if r is None)
        logger.info(
            f"Evaluated {len(results) - dropped} of {len(results)} symbols "
            f"({dropped} dropped, peak concurrency {self.gate.peak()})"
        )
        return list(results)

    async def evaluate_symbol(self, ticker: TickerSnapshot) -> Optional[EvaluatedSymbol]:
        """Evaluate one symbol; None when its candle history is too short."""
        inputs = await self.fetch_inputs(ticker.symbol)

        min_candles = self.config["min_candles"]
        if len(inputs.short_trend) < min_candles or len(inputs.long_trend) < min_candles:
            logger.debug(
                f"Skipping {ticker.symbol}: insufficient candles "
                f"({len(inputs.short_trend)}/{len(inputs.long_trend)})"
            )
            return None

        for frame in (inputs.short_trend, inputs.long_trend):
            if not validate_ohlcv(frame):
                raise ValueError(f"Invalid OHLCV data for {ticker.symbol}")

        bundle, price = self.build_bundle(inputs)
        return classify(
            ticker.symbol,
            bundle,
            ticker.price_change_percent,
            price,
            oi_period=self.config["oi_period"],
        )

    async def fetch_inputs(self, symbol: str) -> SymbolInputs:
        """Issue the five independent fetches for *symbol* concurrently."""
        timeframes = self.config["timeframes"]
        limit = self.config["candle_limit"]

        short_trend, long_trend, confirmation, funding_raw, oi_raw = await asyncio.gather(
            self.connector.get_ohlcv(symbol, timeframes["trend_short"], limit),
            self.connector.get_ohlcv(symbol, timeframes["trend_long"], limit),
            self.connector.get_ohlcv(symbol, timeframes["confirm"], limit),
            self.connector.get_funding_snapshot(symbol),
            self.connector.get_open_interest_history(
                symbol, self.config["oi_period"], self.config["oi_limit"]
            ),
        )

        return SymbolInputs(
            short_trend=short_trend,
            long_trend=long_trend,
            confirmation=confirmation,
            funding=parse_funding(funding_raw),
            open_interest=parse_open_interest(oi_raw),
        )

    def build_bundle(self, inputs: SymbolInputs) -> Tuple[IndicatorBundle, float]:
        """Derive the indicator bundle and reference price from fetched inputs."""
        closes_1h, highs_1h, lows_1h, volumes_1h = series_arrays(inputs.short_trend)
        closes_4h, highs_4h, lows_4h, _ = series_arrays(inputs.long_trend)
        volumes_15m = self._confirmation_volumes(inputs.confirmation)

        rsi_window = self.config["rsi_window"]
        macd_window = self.config["macd_window"]
        price = closes_1h[-1]

        bundle = IndicatorBundle(
            rsi_1h=rsi(closes_1h[-rsi_window:]),
            rsi_4h=rsi(closes_4h[-rsi_window:]),
            macd_1h=macd(closes_1h[-macd_window:]),
            macd_4h=macd(closes_4h[-macd_window:]),
            ema_trend_1h=ema_trend(closes_1h, price),
            ema_trend_4h=ema_trend(closes_4h, price),
            vol_spike_1h=volume_spike_ratio(volumes_1h),
            vol_spike_15m=volume_spike_ratio(volumes_15m),
            volatility=volatility_percent(closes_1h[-self.config["volatility_window"]:]),
            oi_change_pct=open_interest_delta_pct(inputs.open_interest),
            funding_rate_pct=inputs.funding.last_funding_rate * 100,
            breakout_1h=detect_breakout(highs_1h, lows_1h, price),
            breakout_4h=detect_breakout(highs_4h, lows_4h, price),
        )
        return bundle, price

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _confirmation_volumes(frame: pd.DataFrame) -> List[float]:
        """Confirmation volumes, or none at all when the frame is unusable."""
        if not validate_ohlcv(frame):
            if len(frame):
                logger.debug("Ignoring invalid confirmation candles")
            return []
        return frame['volume'].tolist()

    async def _evaluate_gated(self, ticker: TickerSnapshot) -> Optional[EvaluatedSymbol]:
        async with self.gate.slot():
            try:
                return await self.evaluate_symbol(ticker)
            except Exception as e:
                logger.warning(f"Dropping {ticker.symbol}: {e}")
                return None
