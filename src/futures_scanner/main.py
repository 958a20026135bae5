"""Scanner runner: one-shot or polling scans printed as JSON."""

import asyncio
import json
import logging
import os
import signal
import sys
from typing import Dict, Optional

from dotenv import load_dotenv

load_dotenv()

from .core.models import ScanResult
from .data.connector import CCXTConnector
from .scanner.engine import ScanEngine, ScanError

logger = logging.getLogger(__name__)

SCAN_FAILED_MESSAGE = "Failed to run live Binance Futures scan."


def configure_logging(level: str = 'INFO', log_file: Optional[str] = None):
    """Configure root logging once for the process."""
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


class ScannerApp:
    """Owns the exchange connector and scan engine."""

    def __init__(self, config: Optional[Dict] = None, connector=None):
        """Initialize scanner app."""
        defaults = self._default_config()
        if config:
            for key, val in config.items():
                if isinstance(val, dict) and key in defaults and isinstance(defaults[key], dict):
                    defaults[key].update(val)
                else:
                    defaults[key] = val
        self.config = defaults
        self._running = False

        if connector is None:
            exchange_config = self.config['exchange'].copy()
            exchange_name = exchange_config.pop('name')
            connector = CCXTConnector(exchange_name, exchange_config)
        self.connector = connector
        self.engine = ScanEngine(self.connector, self.config['scanner'])

        logger.info("Scanner app initialized")

    def _default_config(self) -> Dict:
        """Default configuration."""
        return {
            'exchange': {
                'name': 'binanceusdm',
                'sandbox': False,
            },
            'scanner': {
                'quote_currency': 'USDT',
                'blacklist': [],
                'min_quote_volume': 2_000_000,
                'max_deep_symbols': 25,
                'min_composite_score': 55,
                'evaluator': {
                    'max_concurrency': 6,
                },
            },
            'scan_interval_seconds': 60,
            'log_level': 'INFO',
            'log_file': None,
        }

    async def scan_once(self) -> Dict:
        """Run one pass and return the payload handed to presentation."""
        try:
            result: ScanResult = await self.engine.run_scan()
        except ScanError as e:
            logger.error(f"Scan failed: {e}")
            return {'error': SCAN_FAILED_MESSAGE}
        return result.model_dump(mode='json', exclude_none=True)

    async def run_once(self) -> int:
        """Scan once, print JSON and return a process exit code."""
        try:
            payload = await self.scan_once()
        finally:
            await self.stop()
        print(json.dumps(payload, indent=2))
        return 1 if 'error' in payload else 0

    async def run_forever(self):
        """Scan every ``scan_interval_seconds`` until stopped."""
        self._running = True
        interval = self.config['scan_interval_seconds']
        logger.info(f"Polling every {interval}s")
        try:
            while self._running:
                payload = await self.scan_once()
                print(json.dumps(payload), flush=True)
                await asyncio.sleep(interval)
        finally:
            await self.stop()

    async def stop(self):
        """Stop polling and close the connector."""
        self._running = False
        try:
            await self.connector.close()
        except Exception as e:
            logger.error(f"Error closing connector: {e}")

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals."""
        logger.info(f"Received signal {signum}, shutting down...")
        self._running = False


def _config_from_env() -> Dict:
    """Build config dict from environment variables."""
    config: Dict = {}

    exchange_name = os.getenv('SCANNER_EXCHANGE', '').strip()
    if exchange_name:
        config['exchange'] = {'name': exchange_name}

    scanner: Dict = {}
    min_volume = os.getenv('SCANNER_MIN_QUOTE_VOLUME', '').strip()
    max_deep = os.getenv('SCANNER_MAX_DEEP_SYMBOLS', '').strip()
    min_score = os.getenv('SCANNER_MIN_SCORE', '').strip()
    blacklist = os.getenv('SCANNER_BLACKLIST', '').strip()
    concurrency = os.getenv('SCANNER_MAX_CONCURRENCY', '').strip()
    if min_volume:
        scanner['min_quote_volume'] = float(min_volume)
    if max_deep:
        scanner['max_deep_symbols'] = int(max_deep)
    if min_score:
        scanner['min_composite_score'] = float(min_score)
    if blacklist:
        scanner['blacklist'] = [s.strip() for s in blacklist.split(',') if s.strip()]
    if concurrency:
        scanner['evaluator'] = {'max_concurrency': int(concurrency)}
    if scanner:
        config['scanner'] = scanner

    interval = os.getenv('SCANNER_INTERVAL_SECONDS', '').strip()
    if interval:
        config['scan_interval_seconds'] = int(interval)

    log_level = os.getenv('SCANNER_LOG_LEVEL', '').strip()
    if log_level:
        config['log_level'] = log_level
    log_file = os.getenv('SCANNER_LOG_FILE', '').strip()
    if log_file:
        config['log_file'] = log_file

    once_raw = os.getenv('SCANNER_ONCE', '').strip().lower()
    config['once'] = once_raw in ('1', 'true', 'yes')

    return config


async def main() -> int:
    """Main entry point."""
    config = _config_from_env()
    once = config.pop('once', False) or '--once' in sys.argv[1:]

    configure_logging(config.get('log_level', 'INFO'), config.get('log_file'))
    app = ScannerApp(config)

    if once:
        return await app.run_once()

    signal.signal(signal.SIGINT, app._signal_handler)
    signal.signal(signal.SIGTERM, app._signal_handler)
    await app.run_forever()
    return 0


def run():
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
