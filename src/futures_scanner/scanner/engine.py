"""One full scan pass: universe, pre-screen, bounded evaluation, ranking."""

import asyncio
import logging
from typing import Dict, List, Optional

from ..core.models import ScanResult, TickerSnapshot
from ..data.connector import DataConnector
from ..data.processor import filter_perpetual_symbols, normalize_ticker
from .evaluator import BoundedEvaluator
from .pre_screener import PreScreener
from .ranking import build_scan_result, empty_result

logger = logging.getLogger(__name__)


class ScanError(RuntimeError):
    """The scan could not run because the instrument universe was unavailable."""


class ScanEngine:
    """Runs stateless scan passes over the eligible futures universe."""

    def __init__(self, connector: DataConnector, config: Optional[Dict] = None):
        """Initialize scan engine."""
        defaults = self._default_config()
        if config:
            defaults.update(config)
        self.config = defaults
        self.connector = connector

        self.pre_screener = PreScreener({
            "min_quote_volume": self.config["min_quote_volume"],
            "max_deep_symbols": self.config["max_deep_symbols"],
        })
        self.evaluator = BoundedEvaluator(connector, self.config.get("evaluator"))

        logger.info(
            f"Scan engine initialized (shortlist={self.config['max_deep_symbols']}, "
            f"concurrency={self.evaluator.config['max_concurrency']})"
        )

    @staticmethod
    def _default_config() -> Dict:
        return {
            "quote_currency": "USDT",
            "blacklist": [],
            "min_quote_volume": 2_000_000,
            "max_deep_symbols": 25,
            "min_composite_score": 55,
            "movers_size": 5,
            "strongest_size": 3,
            "evaluator": {},
        }

    async def load_universe(self) -> List[TickerSnapshot]:
        """Fetch tradable symbols and tickers; failures here abort the scan."""
        try:
            markets, raw_tickers = await asyncio.gather(
                self.connector.get_markets(),
                self.connector.get_tickers(),
            )
        except Exception as e:
            logger.error(f"Failed to load instrument universe: {e}")
            raise ScanError("Failed to load instrument universe") from e

        try:
            return self._decode_universe(markets, raw_tickers)
        except Exception as e:
            logger.error(f"Failed to decode instrument universe: {e}")
            raise ScanError("Failed to decode instrument universe") from e

    def _decode_universe(self, markets: List[Dict], raw_tickers: List[Dict]) -> List[TickerSnapshot]:
        tradable = set(filter_perpetual_symbols(
            markets,
            quote=self.config["quote_currency"],
            blacklist=self.config["blacklist"],
        ))

        tickers: List[TickerSnapshot] = []
        for raw in raw_tickers:
            if raw.get("symbol") not in tradable:
                continue
            ticker = normalize_ticker(raw)
            if ticker is not None:
                tickers.append(ticker)
        return tickers

    async def run_scan(self) -> ScanResult:
        """
        Run one scan pass.

        Returns a ``ScanResult`` (possibly with no candidates and a message
        set). Raises ``ScanError`` only when the universe cannot be loaded.
        """
        tickers = await self.load_universe()

        shortlist = self.pre_screener.shortlist(tickers)
        if not shortlist:
            logger.info("No liquid symbols to evaluate")
            return empty_result()

        evaluated = await self.evaluator.evaluate_all(shortlist)
        return build_scan_result(
            evaluated,
            min_score=self.config["min_composite_score"],
            movers_size=self.config["movers_size"],
            strongest_size=self.config["strongest_size"],
        )
