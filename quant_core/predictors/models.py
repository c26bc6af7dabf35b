"""Market snapshot and prediction models for the specialized predictors."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from quant_core.models import PriceSeries


class MarketSnapshot(BaseModel):
    """Inputs shared by all predictors.

    Every field except ``symbols`` may be empty; predictors treat missing
    data as unknown and fall back to neutral contributions.
    """

    model_config = ConfigDict(frozen=True)

    symbols: list[str]
    prices: list[float] = Field(default_factory=list)
    volumes: list[float] = Field(default_factory=list)
    indicators: dict[str, Any] = Field(default_factory=dict)
    news_sentiment: float | None = None  # 0 (bearish) .. 1 (bullish)
    social_text: str | None = None
    market_indicators: dict[str, float] = Field(default_factory=dict)

    @classmethod
    def from_series(
        cls,
        series: PriceSeries,
        indicators: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> "MarketSnapshot":
        return cls(
            symbols=[series.symbol],
            prices=series.closes(),
            volumes=series.volumes(),
            indicators=indicators or {},
            **kwargs,
        )

    def indicator(self, name: str) -> float | None:
        """Numeric value of an indicator, or None when absent.

        Composite indicators given as mappings (e.g. MACD) resolve to their
        ``histogram`` entry, then to the entry named like the indicator.
        """
        value = self.indicators.get(name)
        if isinstance(value, dict):
            value = value.get("histogram", value.get(name))
        if value is None:
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None


class Prediction(BaseModel):
    """Output of one predictor."""

    model_config = ConfigDict(frozen=True)

    model: str
    score: float = Field(default=0.5, ge=0.0, le=1.0)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    details: dict[str, Any] = Field(default_factory=dict)
    is_fallback: bool = False

    @classmethod
    def fallback(cls, model: str, reason: str | None = None) -> "Prediction":
        details = {"reason": reason} if reason else {}
        return cls(model=model, score=0.5, confidence=0.1, details=details, is_fallback=True)


class EnsemblePrediction(BaseModel):
    """Weighted combination of the predictor outputs."""

    model_config = ConfigDict(frozen=True)

    score: float = 0.5
    confidence: float = 0.3
    direction: str = "NEUTRAL"  # BULLISH, BEARISH or NEUTRAL
    magnitude: float = 0.0
    horizon: int = 5
    details: dict[str, Prediction] = Field(default_factory=dict)
    recommendations: list[str] = Field(default_factory=list)
    fingerprint: str = ""
    is_fallback: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def fallback(cls, horizon: int = 5, reason: str = "prediction unavailable") -> "EnsemblePrediction":
        return cls(
            score=0.5,
            confidence=0.3,
            direction="NEUTRAL",
            magnitude=0.0,
            horizon=horizon,
            recommendations=[f"HOLD: {reason}"],
            is_fallback=True,
        )
