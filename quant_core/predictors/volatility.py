"""Volatility predictor: realized volatility scaled into [0, 1]."""

from quant_core.indicators import volatility
from quant_core.predictors.base import BasePredictor
from quant_core.predictors.models import MarketSnapshot, Prediction

DATA_RECENCY = 0.8
FULL_SAMPLE = 30


def classify_volatility(score: float) -> str:
    if score > 0.8:
        return "EXTREME"
    if score > 0.6:
        return "HIGH"
    if score > 0.4:
        return "MEDIUM"
    if score > 0.2:
        return "LOW"
    return "VERY_LOW"


def risk_implications(score: float) -> list[str]:
    if score > 0.7:
        return [
            "Use wide stop losses",
            "Prefer smaller positions",
            "Watch for sudden jumps",
        ]
    if score > 0.5:
        return ["Standard stop losses are sufficient", "Manage risk actively"]
    return ["Stable trading conditions", "Normal stop losses are sufficient"]


class VolatilityPredictor(BasePredictor):
    name = "volatility"

    def score(self, snapshot: MarketSnapshot) -> Prediction:
        prices = snapshot.prices
        score = 0.5 if len(prices) < 2 else min(1.0, volatility(prices) * 10)
        confidence = min(1.0, (len(prices) / FULL_SAMPLE) * 0.6 + DATA_RECENCY * 0.4)
        return Prediction(
            model=self.name,
            score=score,
            confidence=confidence,
            details={
                "level": classify_volatility(score),
                "implications": risk_implications(score),
            },
        )
