"""Tests for the prediction ensemble service."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from quant_core.models import Direction
from quant_core.predictors import BasePredictor, EnsemblePrediction, MarketSnapshot, Prediction
from quant_engine.config import PredictionConfig
from quant_engine.services import ENSEMBLE_SIGNAL_NAME, PredictionEnsemble, to_signal


class StubPredictor(BasePredictor):
    def __init__(self, name, score, confidence):
        self.name = name
        self._score = score
        self._confidence = confidence
        self.calls = 0

    def score(self, snapshot):
        self.calls += 1
        return Prediction(model=self.name, score=self._score, confidence=self._confidence)


class FailingPredictor(BasePredictor):
    name = "trend"

    def score(self, snapshot):
        raise RuntimeError("model exploded")


class SlowPredictor(BasePredictor):
    name = "sentiment"

    async def predict(self, snapshot):
        await asyncio.sleep(10)


def _snapshot(**kwargs):
    return MarketSnapshot(symbols=["BTC"], prices=[100.0, 101.0], **kwargs)


class TestPredictionEnsemble:
    """Tests for PredictionEnsemble."""

    @pytest.fixture
    def stubs(self):
        return [
            StubPredictor("price", 0.9, 0.9),
            StubPredictor("trend", 0.8, 0.8),
            StubPredictor("volatility", 0.2, 0.9),
            StubPredictor("sentiment", 0.1, 0.5),
        ]

    @pytest.mark.asyncio
    async def test_weighted_score(self, stubs):
        """Only predictions above the confidence threshold enter the score."""
        ensemble = PredictionEnsemble(PredictionConfig(), stubs)
        result = await ensemble.predict(_snapshot())

        expected = (0.9 * 0.4 + 0.8 * 0.3 + 0.2 * 0.2) / 0.9
        assert result.score == pytest.approx(expected)
        assert result.direction == "BULLISH"
        assert result.magnitude == pytest.approx(abs(expected - 0.5) * 2)
        assert result.confidence == pytest.approx((0.9 + 0.8 + 0.9 + 0.5) / 4)
        assert result.recommendations[0].startswith("BUY")
        assert not any(r.startswith("SET_STOP_LOSS") for r in result.recommendations)
        assert set(result.details) == {"price", "trend", "volatility", "sentiment"}

    @pytest.mark.asyncio
    async def test_nothing_confident_is_neutral(self):
        stubs = [StubPredictor("price", 0.9, 0.5), StubPredictor("trend", 0.1, 0.6)]
        result = await PredictionEnsemble(PredictionConfig(), stubs).predict(_snapshot())

        assert result.score == 0.5
        assert result.direction == "NEUTRAL"
        assert result.magnitude == 0.0
        assert result.recommendations[0].startswith("HOLD")

    @pytest.mark.asyncio
    async def test_bearish_with_high_volatility(self):
        stubs = [StubPredictor("price", 0.1, 0.9), StubPredictor("volatility", 0.9, 0.9)]
        config = PredictionConfig(weights={"price": 0.8, "volatility": 0.2})
        result = await PredictionEnsemble(config, stubs).predict(_snapshot())

        assert result.score == pytest.approx(0.1 * 0.8 + 0.9 * 0.2)
        assert result.direction == "BEARISH"
        assert result.recommendations[0].startswith("SELL")
        assert result.recommendations[-1].startswith("SET_STOP_LOSS")

    @pytest.mark.asyncio
    async def test_failing_predictor_isolated(self, stubs):
        stubs[1] = FailingPredictor()
        result = await PredictionEnsemble(PredictionConfig(), stubs).predict(_snapshot())

        trend = result.details["trend"]
        assert trend.is_fallback
        assert trend.confidence == 0.1
        assert "model exploded" in trend.details["reason"]
        assert not result.is_fallback

    @pytest.mark.asyncio
    async def test_timeout_isolated(self, stubs):
        stubs[3] = SlowPredictor()
        config = PredictionConfig(timeout=0.01)
        result = await PredictionEnsemble(config, stubs).predict(_snapshot())

        assert result.details["sentiment"].is_fallback
        assert result.details["sentiment"].details["reason"] == "timeout"

    @pytest.mark.asyncio
    async def test_results_cached_by_fingerprint(self, stubs):
        ensemble = PredictionEnsemble(PredictionConfig(), stubs)
        first = await ensemble.predict(_snapshot(), "1d")
        second = await ensemble.predict(_snapshot(), "1d")
        await ensemble.predict(_snapshot(), "1h")

        assert first is second
        assert stubs[0].calls == 2
        assert len(ensemble.cache) == 2

        ensemble.clear_cache()
        assert len(ensemble.cache) == 0

    @pytest.mark.asyncio
    async def test_new_prices_miss_cache(self, stubs):
        ensemble = PredictionEnsemble(PredictionConfig(), stubs)
        first = await ensemble.predict(_snapshot(), "1d")
        moved = await ensemble.predict(
            MarketSnapshot(symbols=["BTC"], prices=[100.0, 95.0]), "1d"
        )

        assert moved is not first
        assert stubs[0].calls == 2
        assert len(ensemble.cache) == 2

    @pytest.mark.asyncio
    async def test_top_level_failure_falls_back(self, stubs):
        cache = MagicMock()
        cache.get_or_compute = AsyncMock(side_effect=RuntimeError("cache down"))
        result = await PredictionEnsemble(PredictionConfig(), stubs, cache=cache).predict(_snapshot())

        assert result.is_fallback
        assert result.score == 0.5
        assert result.confidence == 0.3
        assert result.recommendations == ["HOLD: cache down"]

    @pytest.mark.asyncio
    async def test_default_predictors_deterministic(self):
        snapshot = MarketSnapshot(
            symbols=["BTC"],
            prices=[100 + (i % 7) for i in range(40)],
            volumes=[1000.0 + i for i in range(40)],
            indicators={"rsi": 45.0},
        )
        first = await PredictionEnsemble().predict(snapshot)
        second = await PredictionEnsemble().predict(snapshot)

        assert first.score == second.score
        assert first.confidence == second.confidence
        assert 0.0 <= first.score <= 1.0


class TestToSignal:
    """Tests for converting ensemble output into a fusion signal."""

    def test_bullish(self):
        signal = to_signal(EnsemblePrediction(score=0.8, confidence=0.7, direction="BULLISH", magnitude=0.6))

        assert signal.strategy_id == ENSEMBLE_SIGNAL_NAME
        assert signal.direction == Direction.LONG
        assert signal.strength == pytest.approx(0.6)
        assert signal.confidence == pytest.approx(0.7)

    def test_bearish(self):
        signal = to_signal(EnsemblePrediction(score=0.2, confidence=0.7, direction="BEARISH", magnitude=0.6))
        assert signal.direction == Direction.SHORT

    def test_neutral_and_fallback(self):
        assert to_signal(EnsemblePrediction()).direction == Direction.NEUTRAL
        fallback = to_signal(EnsemblePrediction.fallback())
        assert fallback.is_fallback
        assert fallback.direction == Direction.NEUTRAL
