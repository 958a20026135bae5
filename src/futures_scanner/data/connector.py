"""Market data connector interface and implementations."""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional
import logging

import pandas as pd
import ccxt.async_support as ccxt

logger = logging.getLogger(__name__)


class DataConnector(ABC):
    """Abstract base class for futures market data connectors.

    Payloads are returned in the provider's raw shape; decoding into
    models happens in ``futures_scanner.data.processor``.
    """

    @abstractmethod
    async def get_markets(self) -> List[Dict]:
        """List instruments with symbol, contractType, status, baseAsset, quoteAsset."""
        pass

    @abstractmethod
    async def get_tickers(self) -> List[Dict]:
        """Fetch 24h ticker statistics for every instrument."""
        pass

    @abstractmethod
    async def get_ohlcv(
        self,
        symbol: str,
        timeframe: str,
        limit: int = 120
    ) -> pd.DataFrame:
        """Get OHLCV bars, oldest first."""
        pass

    @abstractmethod
    async def get_funding_snapshot(self, symbol: str) -> Dict:
        """Get mark price and last funding rate."""
        pass

    @abstractmethod
    async def get_open_interest_history(
        self,
        symbol: str,
        period: str,
        limit: int = 2
    ) -> List[Dict]:
        """Get recent open interest samples."""
        pass

    @abstractmethod
    async def close(self):
        """Close connection."""
        pass


def ohlcv_to_frame(rows: List[List]) -> pd.DataFrame:
    """Convert ``[timestamp, open, high, low, close, volume]`` rows to a frame."""
    df = pd.DataFrame(rows, columns=['timestamp', 'open', 'high', 'low', 'close', 'volume'])
    df['timestamp'] = pd.to_datetime(df['timestamp'], unit='ms')
    df.set_index('timestamp', inplace=True)
    return df.astype(float).sort_index()


class CCXTConnector(DataConnector):
    """CCXT-based connector for USDT-margined perpetual futures."""

    def __init__(self, exchange_name: str = 'binanceusdm', config: Optional[Dict] = None):
        """Initialize CCXT connector."""
        self.exchange_name = exchange_name
        self.config = config or {}

        is_sandbox = self.config.get('sandbox', False)
        ccxt_keys = {k: v for k, v in self.config.items() if k != 'sandbox'}
        exchange_class = getattr(ccxt, exchange_name)
        self.exchange = exchange_class({
            'enableRateLimit': True,
            'timeout': 30000,
            'options': {'defaultType': 'future'},
            **ccxt_keys
        })
        if is_sandbox:
            self.exchange.set_sandbox_mode(True)

        # Exchange ids (e.g. BTCUSDT) to unified ccxt symbols
        self._unified: Dict[str, str] = {}

        logger.info(f"Initialized CCXT connector for {exchange_name} (sandbox={is_sandbox})")

    def _resolve(self, symbol: str) -> str:
        return self._unified.get(symbol, symbol)

    async def get_markets(self) -> List[Dict]:
        """Load markets and return each instrument's raw exchange metadata."""
        try:
            markets = await self.exchange.load_markets()
        except Exception as e:
            logger.error(f"Error loading markets: {e}")
            raise

        result: List[Dict] = []
        for unified, market in markets.items():
            info = market.get('info') or {}
            exchange_id = info.get('symbol') or market.get('id')
            if not exchange_id:
                continue
            self._unified[exchange_id] = unified
            result.append(info)

        logger.debug(f"Loaded {len(result)} markets")
        return result

    async def get_tickers(self) -> List[Dict]:
        """Fetch all 24h tickers in one call."""
        try:
            tickers = await self.exchange.fetch_tickers()
        except Exception as e:
            logger.error(f"Error fetching tickers: {e}")
            raise

        result = [t['info'] for t in tickers.values() if t.get('info')]
        logger.debug(f"Fetched {len(result)} tickers")
        return result

    async def get_ohlcv(
        self,
        symbol: str,
        timeframe: str = '1h',
        limit: int = 120
    ) -> pd.DataFrame:
        """Get OHLCV data."""
        try:
            rows = await self.exchange.fetch_ohlcv(self._resolve(symbol), timeframe, limit=limit)
        except Exception as e:
            logger.warning(f"Error fetching {timeframe} OHLCV for {symbol}: {e}")
            raise

        df = ohlcv_to_frame(rows)
        logger.debug(f"Retrieved {len(df)} {timeframe} bars for {symbol}")
        return df

    async def get_funding_snapshot(self, symbol: str) -> Dict:
        """Get premium index (mark price and funding) for a perpetual."""
        try:
            funding = await self.exchange.fetch_funding_rate(self._resolve(symbol))
        except Exception as e:
            logger.warning(f"Error fetching funding rate for {symbol}: {e}")
            raise
        return funding.get('info') or {}

    async def get_open_interest_history(
        self,
        symbol: str,
        period: str = '5m',
        limit: int = 2
    ) -> List[Dict]:
        """Get open interest history samples."""
        try:
            history = await self.exchange.fetch_open_interest_history(
                self._resolve(symbol), period, limit=limit
            )
        except Exception as e:
            logger.warning(f"Error fetching open interest for {symbol}: {e}")
            raise
        return [point['info'] for point in history if point.get('info')]

    async def close(self):
        """Close exchange connection."""
        await self.exchange.close()
        logger.info(f"Closed connection to {self.exchange_name}")
