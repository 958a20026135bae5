"""Market data module."""

from .connector import DataConnector, CCXTConnector
from .processor import filter_perpetual_symbols, normalize_ticker

__all__ = [
    "DataConnector",
    "CCXTConnector",
    "filter_perpetual_symbols",
    "normalize_ticker",
]
