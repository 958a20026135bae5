"""Core module for the futures scanner."""

from .models import (
    TickerSnapshot, FundingSnapshot, OpenInterestPoint,
    SignalMetadata, EvaluatedSymbol, ScanResult
)
from .enums import Direction, MovementStatus, Confidence
from .gate import ConcurrencyGate

__all__ = [
    "TickerSnapshot",
    "FundingSnapshot",
    "OpenInterestPoint",
    "SignalMetadata",
    "EvaluatedSymbol",
    "ScanResult",
    "Direction",
    "MovementStatus",
    "Confidence",
    "ConcurrencyGate",
]
