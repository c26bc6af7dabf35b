"""Tests for the signal fusion engine service."""

import asyncio

import pytest

from conftest import make_series
from quant_core.models import Direction, RiskLevel, Signal
from quant_core.strategy import BaseStrategy
from quant_core.strategy.trend_breakout import TrendBreakoutStrategy
from quant_engine.config import FusionConfig
from quant_engine.services import (
    ENSEMBLE_SIGNAL_NAME,
    AnalysisOptions,
    SignalFusionEngine,
    build_strategies,
)


class FixedStrategy(BaseStrategy):
    def __init__(self, name, direction=Direction.LONG, strength=0.9, confidence=0.9):
        self.name = name
        self._signal = Signal(
            strategy_id=name, direction=direction, strength=strength, confidence=confidence
        )
        self.calls = 0

    def _generate(self, series):
        self.calls += 1
        return self._signal


class RaisingStrategy(BaseStrategy):
    name = "failing"

    async def evaluate(self, series):
        raise RuntimeError("feed broken")


class HangingStrategy(BaseStrategy):
    name = "slow"

    async def evaluate(self, series):
        await asyncio.sleep(10)


class TestAnalyze:
    """Tests for SignalFusionEngine.analyze."""

    @pytest.mark.asyncio
    async def test_flat_market_is_neutral(self, clock, flat_series):
        engine = SignalFusionEngine(clock=clock)
        decision = await engine.analyze("TEST", flat_series)

        assert decision.direction == Direction.NEUTRAL
        assert decision.strength == 0.0
        assert decision.volatility == 0.0
        assert decision.price == 100.0
        assert decision.reason == "no signal"
        assert not decision.is_executable
        assert not decision.is_fallback
        assert set(decision.signals) == {
            "mean_reversion_advanced",
            "trend_breakout",
            "composite_momentum",
            "price_action",
        }
        assert decision.failed_strategies == []
        assert decision.created_at == clock.now()

    @pytest.mark.asyncio
    async def test_single_breakout(self, clock):
        series = make_series([100.0] * 20 + [110.0], volumes=[1000.0] * 20 + [5000.0])
        engine = SignalFusionEngine(clock=clock, strategies=[TrendBreakoutStrategy()])
        decision = await engine.analyze("TEST", series)

        assert decision.direction == Direction.LONG
        assert decision.strength == pytest.approx(0.8 * 0.75)
        assert decision.confidence == pytest.approx(0.75)
        assert decision.supporting_strategies == ["trend_breakout"]

    @pytest.mark.asyncio
    async def test_failures_isolated(self, clock, flat_series):
        """A raising and a hanging estimator become fallback signals."""
        engine = SignalFusionEngine(
            FusionConfig(estimator_timeout=0.01),
            clock=clock,
            strategies=[FixedStrategy("steady"), RaisingStrategy(), HangingStrategy()],
        )
        decision = await engine.analyze("TEST", flat_series)

        assert decision.failed_strategies == ["failing", "slow"]
        assert decision.signals["failing"].is_fallback
        assert decision.signals["failing"].reason == "feed broken"
        assert decision.signals["slow"].reason.startswith("timed out")
        # Three unknown names share weight equally; only "steady" contributes
        assert decision.direction == Direction.LONG
        assert decision.strength == pytest.approx(0.81)
        assert decision.confidence == pytest.approx(0.9)
        assert decision.risk_level == RiskLevel.VERY_LOW
        assert decision.is_executable

    @pytest.mark.asyncio
    async def test_provider_series(self, clock, market, flat_series):
        market.series["BTC"] = flat_series
        engine = SignalFusionEngine(provider=market, clock=clock)

        decision = await engine.analyze("BTC")
        assert not decision.is_fallback
        assert decision.symbol == "BTC"

    @pytest.mark.asyncio
    async def test_provider_failure_falls_back(self, clock, market):
        engine = SignalFusionEngine(provider=market, clock=clock)
        decision = await engine.analyze("MISSING")

        assert decision.is_fallback
        assert decision.direction == Direction.NEUTRAL
        assert decision.reason.startswith("analysis failed")
        assert not decision.is_executable
        assert len(engine.cache) == 0

    @pytest.mark.asyncio
    async def test_no_series_and_no_provider(self, clock):
        decision = await SignalFusionEngine(clock=clock).analyze("TEST")
        assert decision.is_fallback

    @pytest.mark.asyncio
    async def test_deterministic(self, clock, flat_series):
        first = await SignalFusionEngine(clock=clock).analyze("TEST", flat_series)
        second = await SignalFusionEngine(clock=clock).analyze("TEST", flat_series)

        assert first.fingerprint == second.fingerprint
        assert first.id == second.id
        assert first.model_dump() == second.model_dump()


class TestCaching:
    """Tests for decision caching."""

    @pytest.mark.asyncio
    async def test_same_input_hits_cache(self, clock, flat_series):
        strategy = FixedStrategy("steady")
        engine = SignalFusionEngine(clock=clock, strategies=[strategy])

        first = await engine.analyze("TEST", flat_series)
        second = await engine.analyze("TEST", flat_series)

        assert first is second
        assert strategy.calls == 1
        assert engine.cache.stats()["hits"] == 1

    @pytest.mark.asyncio
    async def test_new_bar_misses_cache(self, clock):
        strategy = FixedStrategy("steady")
        engine = SignalFusionEngine(clock=clock, strategies=[strategy])

        await engine.analyze("TEST", make_series([100.0] * 30))
        await engine.analyze("TEST", make_series([100.0] * 31))
        await engine.analyze("TEST", make_series([100.0] * 30), AnalysisOptions(timeframe="1h"))

        assert strategy.calls == 3
        assert len(engine.cache) == 3

    @pytest.mark.asyncio
    async def test_bypass_cache(self, clock, flat_series):
        strategy = FixedStrategy("steady")
        engine = SignalFusionEngine(clock=clock, strategies=[strategy])
        options = AnalysisOptions(use_cache=False)

        await engine.analyze("TEST", flat_series, options)
        await engine.analyze("TEST", flat_series, options)

        assert strategy.calls == 2
        assert len(engine.cache) == 0

    @pytest.mark.asyncio
    async def test_clear_cache(self, clock, flat_series):
        engine = SignalFusionEngine(clock=clock, strategies=[FixedStrategy("steady")])
        await engine.analyze("TEST", flat_series)
        engine.clear_cache()
        assert len(engine.cache) == 0


class TestPublishing:
    """Tests for sink delivery."""

    @pytest.mark.asyncio
    async def test_publishes_decision(self, clock, sink, flat_series):
        engine = SignalFusionEngine(clock=clock, sink=sink)
        decision = await engine.analyze("TEST", flat_series)
        await engine.flush()

        sink.publish_decision.assert_awaited_once_with(decision)

    @pytest.mark.asyncio
    async def test_sink_failure_does_not_propagate(self, clock, sink, flat_series):
        sink.publish_decision.side_effect = RuntimeError("db down")
        engine = SignalFusionEngine(clock=clock, sink=sink)

        decision = await engine.analyze("TEST", flat_series)
        await engine.flush()

        assert not decision.is_fallback
        sink.publish_decision.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_fallback_not_published(self, clock, sink, market):
        engine = SignalFusionEngine(provider=market, clock=clock, sink=sink)
        await engine.analyze("MISSING")
        await engine.flush()

        sink.publish_decision.assert_not_awaited()


class TestHistory:
    """Tests for history and performance metrics."""

    @pytest.mark.asyncio
    async def test_history_trimmed(self, clock, flat_series):
        engine = SignalFusionEngine(
            FusionConfig(history_limit=3, history_trim=2),
            clock=clock,
            strategies=[FixedStrategy("steady")],
        )
        for _ in range(4):
            await engine.analyze("TEST", flat_series, AnalysisOptions(use_cache=False))

        assert len(engine.history) == 2

    @pytest.mark.asyncio
    async def test_performance_metrics(self, clock, flat_series):
        engine = SignalFusionEngine(clock=clock)
        assert engine.performance_metrics()["total_analyses"] == 0

        await engine.analyze("TEST", flat_series)
        await engine.analyze("OTHER", flat_series)
        metrics = engine.performance_metrics()

        assert metrics["total_analyses"] == 2
        assert metrics["directions"] == {"NEUTRAL": 2}
        assert metrics["executable"] == 0
        assert metrics["cache"]["size"] == 2


class TestEnsembleAndConfig:
    """Tests for the ensemble estimator and strategy construction."""

    @pytest.mark.asyncio
    async def test_ensemble_joins_fusion(self, clock, market, flat_series):
        market.indicators["TEST"] = {"rsi": 50.0}
        engine = SignalFusionEngine(FusionConfig(ensemble_enabled=True), provider=market, clock=clock)

        assert engine.weights[ENSEMBLE_SIGNAL_NAME] == 0.1
        decision = await engine.analyze("TEST", flat_series)

        assert ENSEMBLE_SIGNAL_NAME in decision.signals
        assert not decision.signals[ENSEMBLE_SIGNAL_NAME].is_fallback

    @pytest.mark.asyncio
    async def test_ensemble_sees_each_series(self, clock):
        """A new series for the same symbol is scored afresh by the ensemble."""
        rising = make_series([100.0 + i for i in range(40)], symbol="BTC")
        falling = make_series([140.0 - i for i in range(40)], symbol="BTC")
        engine = SignalFusionEngine(FusionConfig(ensemble_enabled=True), clock=clock)

        await engine.analyze("BTC", rising)
        reused = await engine.analyze("BTC", falling)
        fresh = await SignalFusionEngine(FusionConfig(ensemble_enabled=True), clock=clock).analyze(
            "BTC", falling
        )

        assert len(engine.ensemble.cache) == 2
        assert (
            reused.signals[ENSEMBLE_SIGNAL_NAME].parameters["score"]
            == fresh.signals[ENSEMBLE_SIGNAL_NAME].parameters["score"]
        )

    def test_ensemble_disabled_by_default(self, clock):
        engine = SignalFusionEngine(clock=clock)
        assert engine.ensemble is None
        assert ENSEMBLE_SIGNAL_NAME not in engine.weights

    def test_build_strategies_with_params(self):
        config = FusionConfig(
            strategies=["trend_breakout", "price_action"],
            strategy_params={"trend_breakout": {"trend_period": 30}},
        )
        strategies = build_strategies(config)

        assert [s.name for s in strategies] == ["trend_breakout", "price_action"]
        assert strategies[0].required_bars == 31

    def test_build_strategies_unknown(self):
        with pytest.raises(KeyError, match="Unknown strategy"):
            build_strategies(FusionConfig(strategies=["nope"]))
