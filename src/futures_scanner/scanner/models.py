"""Models for the scan pipeline."""

from dataclasses import dataclass

from ..core.models import TickerSnapshot


@dataclass
class ShortlistCandidate:
    """A liquid ticker with its cheap pre-screen score."""

    ticker: TickerSnapshot
    pre_score: float

    @property
    def symbol(self) -> str:
        return self.ticker.symbol
