"""Core data models for the futures scanner."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import Confidence, Direction, MovementStatus


class TickerSnapshot(BaseModel):
    """24h ticker summary for one instrument."""

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(description="Exchange symbol identifier")
    last_price: float = Field(description="Last traded price")
    price_change_percent: float = Field(description="24h price change %")
    quote_volume: float = Field(ge=0.0, description="24h quote asset volume")
    volume: float = Field(default=0.0, description="24h base asset volume")
    trade_count: int = Field(default=0, description="24h trade count")
    high_price: float = Field(ge=0.0, description="24h high")
    low_price: float = Field(ge=0.0, description="24h low")
    weighted_avg_price: float = Field(default=0.0, description="24h volume-weighted average price")

    @field_validator('low_price')
    @classmethod
    def validate_low_below_high(cls, v, info):
        high = info.data.get('high_price')
        if high is not None and v > high:
            raise ValueError("High price must not be below low price")
        return v


class FundingSnapshot(BaseModel):
    """Mark price and funding data for a perpetual contract."""

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(description="Exchange symbol identifier")
    mark_price: float = Field(default=0.0, description="Current mark price")
    index_price: float = Field(default=0.0, description="Current index price")
    last_funding_rate: float = Field(default=0.0, description="Last funding rate (fraction)")
    next_funding_time: int = Field(default=0, description="Next funding time (ms)")


class OpenInterestPoint(BaseModel):
    """Total open interest at a point in time."""

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(description="Exchange symbol identifier")
    sum_open_interest: float = Field(description="Open interest in contracts")
    sum_open_interest_value: float = Field(default=0.0, description="Open interest notional")
    timestamp: int = Field(description="Sample time (ms)")


class SignalMetadata(BaseModel):
    """Raw indicator values behind an evaluation."""

    model_config = ConfigDict(frozen=True)

    rsi_1h: float
    rsi_4h: float
    macd_1h: float
    macd_histogram_1h: float
    macd_4h: float
    macd_histogram_4h: float
    ema_trend_1h: float
    ema_trend_4h: float
    volume_spike_ratio: float
    open_interest_delta_pct: float
    funding_rate_pct: float
    volatility_pct: float
    price_change_24h: float


class EvaluatedSymbol(BaseModel):
    """Scored and classified instrument produced by one scan pass."""

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(description="Exchange symbol identifier")
    movement_status: MovementStatus = Field(description="Movement state label")
    reason: str = Field(description="Why the symbol was flagged")
    trend_strength: str = Field(description="Trend strength descriptor")
    volume_spike: str = Field(description="Formatted volume spike ratios")
    funding_rate: str = Field(description="Formatted funding rate")
    open_interest_change: str = Field(description="Formatted open interest delta")
    volatility: str = Field(description="Volatility descriptor")
    breakout_signal: str = Field(description="Breakout descriptor")
    whale_activity: str = Field(description="Large participant flow descriptor")
    risk_score: float = Field(ge=1.0, le=10.0, description="Risk score (1-10)")
    confidence: Confidence = Field(description="Confidence tier")
    direction: Direction = Field(description="Suggested direction")
    entry: float = Field(description="Entry price")
    take_profits: List[float] = Field(description="Three take-profit prices")
    stop_loss: float = Field(description="Stop-loss price")
    safe_leverage: str = Field(description="Suggested leverage band")
    composite_score: float = Field(description="Composite momentum score")
    metadata: SignalMetadata = Field(description="Raw indicator values")


class ScanResult(BaseModel):
    """Outcome of one scan pass."""

    model_config = ConfigDict(frozen=True)

    timestamp: int = Field(description="Scan completion time (ms)")
    movers: List[EvaluatedSymbol] = Field(default_factory=list, description="Top candidates")
    strongest: List[EvaluatedSymbol] = Field(default_factory=list, description="Strongest candidates")
    all: List[EvaluatedSymbol] = Field(default_factory=list, description="Full filtered ranking")
    message: Optional[str] = Field(default=None, description="Set when no candidate qualified")

    @property
    def is_empty(self) -> bool:
        return not self.all
