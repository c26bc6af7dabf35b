"""Trend predictor: multi-horizon price trend, simple pattern and momentum."""

from quant_core.predictors.base import BasePredictor, clamp, simple_change
from quant_core.predictors.models import MarketSnapshot, Prediction

MODEL_ACCURACY = 0.8
FULL_HISTORY = 50


def simple_trend(prices: list[float]) -> float:
    """0.5 + 5 * relative change, clamped to [0, 1]."""
    if len(prices) < 2:
        return 0.5
    return clamp(0.5 + simple_change(prices) * 5)


def horizon_trend(prices: list[float]) -> float:
    """Short (5), medium (10) and full-history trends weighted .5/.3/.2."""
    if len(prices) < 3:
        return 0.5
    return (
        simple_trend(prices[-5:]) * 0.5
        + simple_trend(prices[-10:]) * 0.3
        + simple_trend(prices) * 0.2
    )


def pattern_score(prices: list[float]) -> tuple[float, str | None]:
    if len(prices) < 5:
        return 0.5, None
    recent = simple_trend(prices[-5:])
    if recent > 0.6:
        return 0.7, "UPTREND"
    if recent < 0.4:
        return 0.3, "DOWNTREND"
    return 0.5, "SIDEWAYS"


def rsi_momentum(rsi: float) -> float:
    if rsi < 30:
        return 0.8
    if rsi > 70:
        return 0.2
    if rsi > 50:
        return 0.6
    return 0.4


def momentum_score(snapshot: MarketSnapshot) -> float:
    """Mean of RSI and MACD momentum reads; 0.5 when neither is known."""
    components = []
    rsi = snapshot.indicator("rsi")
    if rsi is not None:
        components.append(rsi_momentum(rsi))
    macd = snapshot.indicator("macd")
    if macd is not None:
        components.append(0.7 if macd > 0 else 0.3)
    if not components:
        return 0.5
    return sum(components) / len(components)


def classify_trend(score: float) -> str:
    if score > 0.7:
        return "STRONG_UPTREND"
    if score > 0.6:
        return "UPTREND"
    if score < 0.3:
        return "STRONG_DOWNTREND"
    if score < 0.4:
        return "DOWNTREND"
    return "SIDEWAYS"


class TrendPredictor(BasePredictor):
    name = "trend"

    def score(self, snapshot: MarketSnapshot) -> Prediction:
        prices = snapshot.prices
        trend = horizon_trend(prices)
        pattern, pattern_name = pattern_score(prices)
        momentum = momentum_score(snapshot)
        final = clamp((trend + pattern + momentum) / 3)

        quality = min(1.0, len(prices) / FULL_HISTORY)
        return Prediction(
            model=self.name,
            score=final,
            confidence=0.7 * quality + 0.3 * MODEL_ACCURACY,
            details={
                "trend_type": classify_trend(final),
                "pattern": pattern_name,
                "trend_score": trend,
                "pattern_score": pattern,
                "momentum_score": momentum,
            },
        )
