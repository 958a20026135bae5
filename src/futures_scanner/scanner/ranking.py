"""Global ranking of evaluated symbols and slicing into result views."""

import logging
import time
from typing import Iterable, List, Optional

from ..core.models import EvaluatedSymbol, ScanResult

logger = logging.getLogger(__name__)

MIN_COMPOSITE_SCORE = 55
MOVERS_SIZE = 5
STRONGEST_SIZE = 3
NO_CANDIDATE_MESSAGE = "NO SAFE FUTURES TRADE RIGHT NOW."


def rank_candidates(
    evaluated: Iterable[Optional[EvaluatedSymbol]],
    min_score: float = MIN_COMPOSITE_SCORE,
) -> List[EvaluatedSymbol]:
    """Drop missing and weak entries, then sort by composite score descending.

    Ties keep their input order.
    """
    qualified = [
        item for item in evaluated
        if item is not None and item.composite_score >= min_score
    ]
    qualified.sort(key=lambda item: item.composite_score, reverse=True)
    return qualified


def now_ms() -> int:
    return int(time.time() * 1000)


def empty_result(timestamp: Optional[int] = None) -> ScanResult:
    """A successful pass that found nothing worth trading."""
    return ScanResult(
        timestamp=timestamp if timestamp is not None else now_ms(),
        message=NO_CANDIDATE_MESSAGE,
    )


def build_scan_result(
    evaluated: Iterable[Optional[EvaluatedSymbol]],
    min_score: float = MIN_COMPOSITE_SCORE,
    movers_size: int = MOVERS_SIZE,
    strongest_size: int = STRONGEST_SIZE,
    timestamp: Optional[int] = None,
) -> ScanResult:
    """Rank evaluated symbols and expose the movers/strongest/all views."""
    ranked = rank_candidates(evaluated, min_score)
    if not ranked:
        logger.info("No candidate reached the minimum composite score")
        return empty_result(timestamp)

    logger.info(
        f"{len(ranked)} candidates qualified; leader {ranked[0].symbol} "
        f"({ranked[0].composite_score:.1f})"
    )
    return ScanResult(
        timestamp=timestamp if timestamp is not None else now_ms(),
        movers=ranked[:movers_size],
        strongest=ranked[:strongest_size],
        all=ranked,
    )
