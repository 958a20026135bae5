"""Unit tests for the CCXT futures connector."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from futures_scanner.data.connector import CCXTConnector, ohlcv_to_frame


def _connector(mock_exchange):
    connector = CCXTConnector.__new__(CCXTConnector)
    connector.exchange = mock_exchange
    connector.exchange_name = 'binanceusdm'
    connector.config = {}
    connector._unified = {}
    return connector


class TestOHLCVFrame:
    def test_rows_to_frame(self):
        rows = [
            [1700003600000, 101.0, 102.0, 100.0, 101.5, 20.0],
            [1700000000000, 100.0, 101.0, 99.0, 100.5, 10.0],
        ]
        df = ohlcv_to_frame(rows)

        assert list(df.columns) == ['open', 'high', 'low', 'close', 'volume']
        assert df['close'].tolist() == [100.5, 101.5]
        assert df.index.is_monotonic_increasing

    def test_empty(self):
        assert ohlcv_to_frame([]).empty


class TestMarkets:
    @pytest.mark.asyncio
    async def test_get_markets_returns_raw_info(self):
        """Raw exchange info is returned and unified symbols are remembered."""
        mock_exchange = MagicMock()
        mock_exchange.load_markets = AsyncMock(return_value={
            'BTC/USDT:USDT': {
                'id': 'BTCUSDT',
                'info': {'symbol': 'BTCUSDT', 'contractType': 'PERPETUAL',
                         'status': 'TRADING', 'quoteAsset': 'USDT'},
            },
            'ETH/USDT:USDT': {
                'id': 'ETHUSDT',
                'info': {'symbol': 'ETHUSDT', 'contractType': 'PERPETUAL',
                         'status': 'TRADING', 'quoteAsset': 'USDT'},
            },
        })
        connector = _connector(mock_exchange)

        markets = await connector.get_markets()

        assert [m['symbol'] for m in markets] == ['BTCUSDT', 'ETHUSDT']
        assert connector._resolve('BTCUSDT') == 'BTC/USDT:USDT'
        assert connector._resolve('UNKNOWN') == 'UNKNOWN'

    @pytest.mark.asyncio
    async def test_get_markets_error_propagates(self):
        mock_exchange = MagicMock()
        mock_exchange.load_markets = AsyncMock(side_effect=Exception("Network error"))
        connector = _connector(mock_exchange)

        with pytest.raises(Exception, match="Network error"):
            await connector.get_markets()

    @pytest.mark.asyncio
    async def test_get_tickers_returns_raw_info(self):
        mock_exchange = MagicMock()
        mock_exchange.fetch_tickers = AsyncMock(return_value={
            'BTC/USDT:USDT': {'last': 65000.0, 'info': {'symbol': 'BTCUSDT', 'lastPrice': '65000'}},
            'BROKEN': {'last': 1.0},
        })
        connector = _connector(mock_exchange)

        tickers = await connector.get_tickers()

        assert tickers == [{'symbol': 'BTCUSDT', 'lastPrice': '65000'}]


class TestSymbolData:
    @pytest.mark.asyncio
    async def test_get_ohlcv_uses_unified_symbol(self):
        mock_exchange = MagicMock()
        mock_exchange.fetch_ohlcv = AsyncMock(return_value=[
            [1700000000000, 100.0, 101.0, 99.0, 100.5, 10.0],
        ])
        connector = _connector(mock_exchange)
        connector._unified['BTCUSDT'] = 'BTC/USDT:USDT'

        df = await connector.get_ohlcv('BTCUSDT', '4h', limit=50)

        assert len(df) == 1
        mock_exchange.fetch_ohlcv.assert_called_once_with('BTC/USDT:USDT', '4h', limit=50)

    @pytest.mark.asyncio
    async def test_get_ohlcv_error_propagates(self):
        mock_exchange = MagicMock()
        mock_exchange.fetch_ohlcv = AsyncMock(side_effect=Exception("Rate limited"))
        connector = _connector(mock_exchange)

        with pytest.raises(Exception, match="Rate limited"):
            await connector.get_ohlcv('BTCUSDT', '1h')

    @pytest.mark.asyncio
    async def test_get_funding_snapshot(self):
        mock_exchange = MagicMock()
        mock_exchange.fetch_funding_rate = AsyncMock(return_value={
            'fundingRate': 0.0001,
            'info': {'symbol': 'BTCUSDT', 'lastFundingRate': '0.00010000'},
        })
        connector = _connector(mock_exchange)

        snapshot = await connector.get_funding_snapshot('BTCUSDT')

        assert snapshot['lastFundingRate'] == '0.00010000'
        mock_exchange.fetch_funding_rate.assert_called_once_with('BTCUSDT')

    @pytest.mark.asyncio
    async def test_get_funding_snapshot_error_propagates(self):
        mock_exchange = MagicMock()
        mock_exchange.fetch_funding_rate = AsyncMock(side_effect=Exception("Network error"))
        connector = _connector(mock_exchange)

        with pytest.raises(Exception):
            await connector.get_funding_snapshot('BTCUSDT')

    @pytest.mark.asyncio
    async def test_get_open_interest_history(self):
        mock_exchange = MagicMock()
        mock_exchange.fetch_open_interest_history = AsyncMock(return_value=[
            {'openInterestAmount': 1000.0,
             'info': {'symbol': 'BTCUSDT', 'sumOpenInterest': '1000', 'timestamp': 1}},
            {'openInterestAmount': 1020.0,
             'info': {'symbol': 'BTCUSDT', 'sumOpenInterest': '1020', 'timestamp': 2}},
        ])
        connector = _connector(mock_exchange)

        history = await connector.get_open_interest_history('BTCUSDT', '5m', limit=2)

        assert [p['sumOpenInterest'] for p in history] == ['1000', '1020']
        mock_exchange.fetch_open_interest_history.assert_called_once_with('BTCUSDT', '5m', limit=2)

    @pytest.mark.asyncio
    async def test_close(self):
        mock_exchange = MagicMock()
        mock_exchange.close = AsyncMock()
        connector = _connector(mock_exchange)

        await connector.close()

        mock_exchange.close.assert_awaited_once()
