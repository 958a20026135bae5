"""Pytest configuration and fixtures."""

import asyncio
from typing import Dict, List, Optional

import pandas as pd
import pytest

from futures_scanner.signal.models import BreakoutState, IndicatorBundle, MACDResult


NO_BREAKOUT = BreakoutState(near_high=-0.05, near_low=0.05, is_breakout=False, is_breakdown=False)
AT_HIGHS = BreakoutState(near_high=-0.001, near_low=0.08, is_breakout=True, is_breakdown=False)


def build_bundle(**overrides) -> IndicatorBundle:
    """Neutral indicator bundle with selected fields overridden."""
    fields = dict(
        rsi_1h=50.0,
        rsi_4h=50.0,
        macd_1h=MACDResult(),
        macd_4h=MACDResult(),
        ema_trend_1h=0.0,
        ema_trend_4h=0.0,
        vol_spike_1h=1.0,
        vol_spike_15m=1.0,
        volatility=1.0,
        oi_change_pct=0.0,
        funding_rate_pct=0.0,
        breakout_1h=NO_BREAKOUT,
        breakout_4h=NO_BREAKOUT,
    )
    fields.update(overrides)
    return IndicatorBundle(**fields)


def rally_closes(n: int = 180, rally_bars: int = 20, step: float = 0.5) -> List[float]:
    """Strictly rising closes: a slow drift followed by a sharp rally."""
    drift_bars = n - rally_bars
    closes = [100.0 + 0.001 * i for i in range(drift_bars)]
    base = closes[-1]
    closes.extend(base + step * j for j in range(1, rally_bars + 1))
    return closes


def make_frame(closes: List[float], volumes: Optional[List[float]] = None) -> pd.DataFrame:
    """Candle frame whose highs/lows hug the closes by 0.1%."""
    n = len(closes)
    dates = pd.date_range(start='2024-01-01', periods=n, freq='1h')
    volumes = volumes if volumes is not None else [1000.0] * n
    return pd.DataFrame({
        'open': closes,
        'high': [c * 1.001 for c in closes],
        'low': [c * 0.999 for c in closes],
        'close': closes,
        'volume': volumes,
    }, index=dates)


def spiking_volumes(n: int = 180, ratio: float = 1.8) -> List[float]:
    return [1000.0] * (n - 1) + [1000.0 * ratio]


def raw_ticker(symbol: str, quote_volume: float = 5_000_000, change: float = 5.0,
               last: float = 110.0) -> Dict:
    return {
        'symbol': symbol,
        'lastPrice': str(last),
        'priceChangePercent': str(change),
        'volume': '45000',
        'quoteVolume': str(quote_volume),
        'count': 12000,
        'highPrice': str(last * 1.02),
        'lowPrice': str(last * 0.95),
        'weightedAvgPrice': str(last * 0.99),
    }


def raw_market(symbol: str, contract_type: str = 'PERPETUAL', status: str = 'TRADING',
               quote: str = 'USDT') -> Dict:
    return {
        'symbol': symbol,
        'contractType': contract_type,
        'status': status,
        'baseAsset': symbol.replace(quote, ''),
        'quoteAsset': quote,
    }


class MockFuturesConnector:
    """In-memory futures data connector for testing."""

    def __init__(self):
        self.markets: List[Dict] = []
        self.tickers: List[Dict] = []
        self.frames: Dict[str, Dict[str, pd.DataFrame]] = {}
        self.funding: Dict[str, Dict] = {}
        self.open_interest: Dict[str, List[Dict]] = {}
        self.failing: set = set()
        self.universe_error: Optional[Exception] = None
        self.delay = 0.0
        self.active = 0
        self.max_active = 0
        self.closed = False

    def add_symbol(self, symbol: str, frame: pd.DataFrame, *, long_frame=None, confirm_frame=None,
                   funding_rate: float = 0.0001, oi=(1000.0, 1020.0), **ticker_kwargs):
        self.markets.append(raw_market(symbol))
        self.tickers.append(raw_ticker(symbol, **ticker_kwargs))
        self.frames[symbol] = {
            '1h': frame,
            '4h': long_frame if long_frame is not None else frame,
            '15m': confirm_frame if confirm_frame is not None else frame,
        }
        self.funding[symbol] = {
            'symbol': symbol,
            'markPrice': '110.0',
            'indexPrice': '110.0',
            'lastFundingRate': str(funding_rate),
            'nextFundingTime': 1700000000000,
        }
        # newest first, the engine must sort
        self.open_interest[symbol] = [
            {'symbol': symbol, 'sumOpenInterest': str(oi[1]),
             'sumOpenInterestValue': '0', 'timestamp': 1700000300000},
            {'symbol': symbol, 'sumOpenInterest': str(oi[0]),
             'sumOpenInterestValue': '0', 'timestamp': 1700000000000},
        ]

    async def get_markets(self):
        if self.universe_error:
            raise self.universe_error
        return self.markets

    async def get_tickers(self):
        if self.universe_error:
            raise self.universe_error
        return self.tickers

    async def get_ohlcv(self, symbol, timeframe, limit=120):
        if symbol in self.failing:
            raise ConnectionError(f"boom {symbol}")
        await asyncio.sleep(self.delay)
        return self.frames[symbol][timeframe].tail(limit)

    async def get_funding_snapshot(self, symbol):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            return self.funding[symbol]
        finally:
            self.active -= 1

    async def get_open_interest_history(self, symbol, period, limit=2):
        return self.open_interest[symbol][:limit]

    async def close(self):
        self.closed = True


@pytest.fixture
def bundle_factory():
    """Factory for indicator bundles."""
    return build_bundle


@pytest.fixture
def neutral_bundle():
    return build_bundle()


@pytest.fixture
def strong_bundle():
    """Bundle satisfying every strong-momentum condition for a long."""
    return build_bundle(
        rsi_1h=70.0,
        rsi_4h=60.0,
        macd_1h=MACDResult(macd=0.5, signal=0.3, histogram=0.002),
        macd_4h=MACDResult(macd=0.8, signal=0.7, histogram=0.001),
        ema_trend_1h=0.015,
        ema_trend_4h=0.012,
        vol_spike_1h=1.8,
        vol_spike_15m=1.8,
        volatility=1.6,
        oi_change_pct=2.0,
        funding_rate_pct=0.01,
        breakout_1h=AT_HIGHS,
    )


@pytest.fixture
def mock_connector():
    return MockFuturesConnector()


@pytest.fixture
def frame_factory():
    return make_frame


@pytest.fixture
def rally_frame():
    """180 strictly rising bars ending in a sharp rally with a 1.8x volume spike."""
    return make_frame(rally_closes(), spiking_volumes())


def pullback_rally_closes(n: int = 180, rally_bars: int = 13, up: float = 1.0,
                          down: float = 0.55) -> List[float]:
    """A slow drift, then a rally that gives back part of every other bar.

    With the defaults the rally ends on an up bar at a new high and the
    short-timeframe RSI lands in the high 60s.
    """
    drift_bars = n - rally_bars
    closes = [100.0 + 0.001 * i for i in range(drift_bars)]
    for j in range(rally_bars):
        closes.append(closes[-1] + (up if j % 2 == 0 else -down))
    return closes


@pytest.fixture
def pullback_rally_frame():
    """180 bars rallying with pullbacks, ending with a 1.8x volume spike."""
    return make_frame(pullback_rally_closes(), spiking_volumes())
