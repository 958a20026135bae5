"""
Futures Momentum Scanner

Scores USDT perpetual futures across multiple timeframes, classifies how
imminent a move looks and derives explainable trade levels.
"""

__version__ = "0.1.0"
__author__ = "Futures Scanner Team"

from .core.models import EvaluatedSymbol, ScanResult, TickerSnapshot
from .core.enums import Confidence, Direction, MovementStatus
from .scanner.engine import ScanEngine, ScanError

__all__ = [
    "EvaluatedSymbol",
    "ScanResult",
    "TickerSnapshot",
    "Confidence",
    "Direction",
    "MovementStatus",
    "ScanEngine",
    "ScanError",
]
