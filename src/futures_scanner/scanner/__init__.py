"""Scan pipeline: pre-screen, bounded evaluation and ranking."""

from .engine import ScanEngine, ScanError
from .evaluator import BoundedEvaluator
from .models import ShortlistCandidate
from .pre_screener import PreScreener, pre_score
from .ranking import build_scan_result, rank_candidates

__all__ = [
    "ScanEngine",
    "ScanError",
    "BoundedEvaluator",
    "ShortlistCandidate",
    "PreScreener",
    "pre_score",
    "build_scan_result",
    "rank_candidates",
]
