"""Prediction ensemble.

Runs the specialized predictors concurrently over one market snapshot and
blends their scores into an EnsemblePrediction. Each predictor is isolated:
a timeout or exception replaces its output with a low-confidence fallback.
"""

import asyncio
import logging

from quant_core.models import Direction, Signal
from quant_core.predictors import (
    BasePredictor,
    EnsemblePrediction,
    MarketSnapshot,
    Prediction,
    default_predictors,
)
from quant_engine.config import PredictionConfig
from quant_engine.storage import BoundedCache, fingerprint

logger = logging.getLogger(__name__)

ENSEMBLE_SIGNAL_NAME = "prediction_ensemble"

# Volatility score above which a protective stop is recommended
HIGH_VOLATILITY_SCORE = 0.8


class PredictionEnsemble:
    """Weighted ensemble over the price, trend, volatility and sentiment predictors."""

    def __init__(
        self,
        config: PredictionConfig | None = None,
        predictors: list[BasePredictor] | None = None,
        cache: BoundedCache[EnsemblePrediction] | None = None,
    ):
        self.config = config or PredictionConfig()
        self.predictors = predictors if predictors is not None else default_predictors()
        self.cache = cache or BoundedCache(self.config.cache_size)

    async def predict(self, snapshot: MarketSnapshot, timeframe: str = "1d") -> EnsemblePrediction:
        """Blend all predictor outputs for ``snapshot``.

        Never raises; a failure outside the per-predictor isolation yields
        ``EnsemblePrediction.fallback``.
        """
        key = fingerprint(
            snapshot.symbols,
            timeframe,
            snapshot.indicators.keys(),
            bars=len(snapshot.prices),
            last_price=snapshot.prices[-1] if snapshot.prices else None,
            last_volume=snapshot.volumes[-1] if snapshot.volumes else None,
            news_sentiment=snapshot.news_sentiment,
            social_text=snapshot.social_text,
            market_indicators=snapshot.market_indicators,
        )
        try:
            return await self.cache.get_or_compute(
                key,
                lambda: self._compute(snapshot, key),
                should_cache=lambda p: not p.is_fallback,
            )
        except Exception as e:
            logger.warning(f"Ensemble prediction failed for {snapshot.symbols}: {e}")
            return EnsemblePrediction.fallback(self.config.horizon, reason=str(e))

    async def _compute(self, snapshot: MarketSnapshot, key: str) -> EnsemblePrediction:
        predictions = await asyncio.gather(
            *(self._run_predictor(p, snapshot) for p in self.predictors)
        )
        details = {p.model: p for p in predictions}

        score = self.weighted_score(details)
        confidence = sum(p.confidence for p in predictions) / len(predictions) if predictions else 0.0
        direction = self.classify_direction(score)

        return EnsemblePrediction(
            score=score,
            confidence=confidence,
            direction=direction,
            magnitude=abs(score - 0.5) * 2,
            horizon=self.config.horizon,
            details=details,
            recommendations=self.recommendations(direction, score, details),
            fingerprint=key,
        )

    async def _run_predictor(self, predictor: BasePredictor, snapshot: MarketSnapshot) -> Prediction:
        try:
            return await asyncio.wait_for(predictor.predict(snapshot), timeout=self.config.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Predictor {predictor.name} timed out after {self.config.timeout}s")
            return Prediction.fallback(predictor.name, reason="timeout")
        except Exception as e:
            logger.warning(f"Predictor {predictor.name} failed: {e}")
            return Prediction.fallback(predictor.name, reason=str(e))

    def weighted_score(self, details: dict[str, Prediction]) -> float:
        """Weighted mean over the predictions above the confidence threshold.

        Returns 0.5 when no prediction qualifies.
        """
        total = 0.0
        weight_sum = 0.0
        for name, prediction in details.items():
            if prediction.confidence <= self.config.confidence_threshold:
                continue
            weight = self.config.weights.get(name, 0.0)
            total += prediction.score * weight
            weight_sum += weight
        if weight_sum <= 0:
            return 0.5
        return total / weight_sum

    def classify_direction(self, score: float) -> str:
        if score > self.config.bullish_threshold:
            return "BULLISH"
        if score < self.config.bearish_threshold:
            return "BEARISH"
        return "NEUTRAL"

    def recommendations(self, direction: str, score: float, details: dict[str, Prediction]) -> list[str]:
        if direction == "BULLISH":
            items = [f"BUY: bullish outlook (score {score:.2f})"]
        elif direction == "BEARISH":
            items = [f"SELL: bearish outlook (score {score:.2f})"]
        else:
            items = [f"HOLD: no clear direction (score {score:.2f})"]

        vol = details.get("volatility")
        if vol is not None and not vol.is_fallback and vol.score > HIGH_VOLATILITY_SCORE:
            items.append("SET_STOP_LOSS: high expected volatility")
        return items

    def clear_cache(self) -> None:
        self.cache.clear()


def to_signal(prediction: EnsemblePrediction) -> Signal:
    """Express an ensemble prediction as a strategy-style signal for fusion."""
    if prediction.is_fallback:
        return Signal.neutral(ENSEMBLE_SIGNAL_NAME, reason="prediction unavailable", fallback=True)
    if prediction.direction == "BULLISH":
        direction = Direction.LONG
    elif prediction.direction == "BEARISH":
        direction = Direction.SHORT
    else:
        return Signal.neutral(ENSEMBLE_SIGNAL_NAME, reason="no clear direction", score=prediction.score)
    return Signal(
        strategy_id=ENSEMBLE_SIGNAL_NAME,
        direction=direction,
        strength=min(prediction.magnitude, 1.0),
        confidence=prediction.confidence,
        parameters={"score": prediction.score, "horizon": prediction.horizon},
    )
