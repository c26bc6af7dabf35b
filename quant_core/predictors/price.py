"""Price momentum predictor.

score = mean(recent trend, volume confirmation, technical read), where
- recent trend: 0.5 + 10 * mean return over the last 10 prices
- volume confirmation: 0.7 when the last volume beats 1.2x the mean, else 0.5
- technical read: 0.5, +0.2 if RSI < 30, -0.2 if RSI > 70, +/-0.1 by MACD sign
"""

from quant_core.indicators import highest, linear_regression, lowest, returns
from quant_core.predictors.base import BasePredictor, clamp
from quant_core.predictors.models import MarketSnapshot, Prediction

MODEL_CONSISTENCY = 0.8


def recent_trend(prices: list[float], window: int = 10) -> float:
    rets = returns(prices[-window:])
    if not rets:
        return 0.5
    return clamp(0.5 + (sum(rets) / len(rets)) * 10)


def volume_confirmation(volumes: list[float]) -> float:
    if len(volumes) < 2:
        return 0.5
    avg = sum(volumes) / len(volumes)
    return 0.7 if volumes[-1] > avg * 1.2 else 0.5


def technical_read(snapshot: MarketSnapshot) -> float:
    score = 0.5
    rsi = snapshot.indicator("rsi")
    if rsi is not None:
        if rsi < 30:
            score += 0.2
        elif rsi > 70:
            score -= 0.2
    macd = snapshot.indicator("macd")
    if macd is not None:
        score += 0.1 if macd > 0 else -0.1
    return clamp(score)


def data_quality(snapshot: MarketSnapshot) -> float:
    """0.3 for >= 20 prices, 0.3 for >= 20 volumes, 0.4 for any indicators."""
    quality = 0.0
    if len(snapshot.prices) >= 20:
        quality += 0.3
    if len(snapshot.volumes) >= 20:
        quality += 0.3
    if snapshot.indicators:
        quality += 0.4
    return quality if quality > 0 else 0.1


def volume_pattern(volumes: list[float]) -> str:
    if len(volumes) < 5:
        return "UNKNOWN"
    avg = sum(volumes) / len(volumes)
    if volumes[-1] > avg * 1.5:
        return "HIGH_VOLUME"
    if volumes[-1] < avg * 0.5:
        return "LOW_VOLUME"
    return "NORMAL_VOLUME"


class PricePredictor(BasePredictor):
    name = "price"

    def score(self, snapshot: MarketSnapshot) -> Prediction:
        prices = snapshot.prices
        if len(prices) < 2:
            momentum = 0.5
        else:
            momentum = (
                recent_trend(prices) + volume_confirmation(snapshot.volumes) + technical_read(snapshot)
            ) / 3

        details = {
            "trend_strength": abs(linear_regression(prices, 5).slope) if len(prices) >= 5 else 0.0,
            "volume_pattern": volume_pattern(snapshot.volumes),
        }
        if len(prices) >= 10:
            details["support"] = lowest(prices, 10)
            details["resistance"] = highest(prices, 10)

        return Prediction(
            model=self.name,
            score=clamp(momentum),
            confidence=(data_quality(snapshot) + MODEL_CONSISTENCY) / 2,
            details=details,
        )
