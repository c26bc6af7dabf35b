"""Signal fusion engine.

Fans a price series out to every enabled strategy (and optionally the
prediction ensemble), fuses the signals, gates the result on confidence,
strength and trade risk, and caches the finalized decision by request
fingerprint.
"""

import asyncio
import logging
from collections import Counter
from typing import Any, Awaitable

from pydantic import BaseModel

from quant_core.fusion import build_recommendations, fuse_signals, is_executable
from quant_core.models import EstimatorResult, FusedDecision, PriceSeries, Signal
from quant_core.predictors import MarketSnapshot
from quant_core.risk import apply_signal_strength
from quant_core.strategy import Strategy, create_strategy
from quant_engine.config import FusionConfig
from quant_engine.interfaces import Clock, DecisionSink, MarketDataProvider, SystemClock
from quant_engine.services.prediction_ensemble import (
    ENSEMBLE_SIGNAL_NAME,
    PredictionEnsemble,
    to_signal,
)
from quant_engine.services.risk_engine import RiskAnalyticsEngine
from quant_engine.storage import BoundedCache, fingerprint

logger = logging.getLogger(__name__)


class AnalysisOptions(BaseModel):
    """Per-call options for ``SignalFusionEngine.analyze``."""

    timeframe: str = "1d"
    # Indicator snapshot; None fetches it from the provider when the ensemble needs it
    indicators: dict[str, Any] | None = None
    use_cache: bool = True


def build_strategies(config: FusionConfig) -> list[Strategy]:
    """Instantiate the configured strategies in configuration order."""
    return [create_strategy(name, config.strategy_params.get(name)) for name in config.strategies]


class SignalFusionEngine:
    """Turns market data for one symbol into a gated FusedDecision."""

    def __init__(
        self,
        config: FusionConfig | None = None,
        provider: MarketDataProvider | None = None,
        risk_engine: RiskAnalyticsEngine | None = None,
        sink: DecisionSink | None = None,
        strategies: list[Strategy] | None = None,
        ensemble: PredictionEnsemble | None = None,
        cache: BoundedCache[FusedDecision] | None = None,
        clock: Clock | None = None,
    ):
        self.config = config or FusionConfig()
        self.provider = provider
        self.clock = clock or SystemClock()
        self.risk_engine = risk_engine or RiskAnalyticsEngine(clock=self.clock)
        self.sink = sink
        self.strategies = strategies if strategies is not None else build_strategies(self.config)
        self.ensemble = ensemble
        if self.ensemble is None and self.config.ensemble_enabled:
            self.ensemble = PredictionEnsemble()
        self.cache = cache or BoundedCache(self.config.cache_size)

        self._history: list[FusedDecision] = []
        self._pending: set[asyncio.Task] = set()

    @property
    def weights(self) -> dict[str, float]:
        weights = dict(self.config.weights)
        if self.ensemble is not None:
            weights.setdefault(ENSEMBLE_SIGNAL_NAME, self.config.ensemble_weight)
        return weights

    # =========================================================================
    # Analysis
    # =========================================================================

    async def analyze(
        self,
        symbol: str,
        series: PriceSeries | None = None,
        options: AnalysisOptions | None = None,
    ) -> FusedDecision:
        """Analyze ``symbol`` and return a fused decision.

        Never raises; any failure outside the per-estimator isolation yields
        ``FusedDecision.fallback``, which is not cached.
        """
        opts = options or AnalysisOptions()
        try:
            if series is None:
                if self.provider is None:
                    raise ValueError("no series given and no market data provider configured")
                series = await self.provider.get_series(symbol, opts.timeframe)

            indicators = opts.indicators
            if indicators is None:
                indicators = {}
                if self.ensemble is not None and self.provider is not None:
                    indicators = await self.provider.get_indicators(symbol) or {}

            key = fingerprint(
                [symbol],
                opts.timeframe,
                indicators.keys(),
                bars=len(series),
                last_date=series.last_date,
                last_close=series.last_close,
            )

            def compute() -> Awaitable[FusedDecision]:
                return self._compute(symbol, series, opts.timeframe, indicators, key)

            if not opts.use_cache:
                return await compute()
            return await self.cache.get_or_compute(
                key, compute, should_cache=lambda d: not d.is_fallback
            )
        except Exception as e:
            logger.error(f"Analysis failed for {symbol}: {e}")
            return FusedDecision.fallback(
                symbol, opts.timeframe, reason=f"analysis failed: {e}", created_at=self.clock.now()
            )

    async def _compute(
        self,
        symbol: str,
        series: PriceSeries,
        timeframe: str,
        indicators: dict[str, Any],
        key: str,
    ) -> FusedDecision:
        estimators = [self._run_estimator(s.name, s.evaluate(series)) for s in self.strategies]
        if self.ensemble is not None:
            estimators.append(
                self._run_estimator(
                    ENSEMBLE_SIGNAL_NAME,
                    self._ensemble_signal(series, indicators, timeframe),
                )
            )

        *results, risk = await asyncio.gather(
            *estimators,
            self.risk_engine.assess_trade_risk(series),
        )
        signals = {r.name: r.signal for r in results}
        failed = sorted(r.name for r in results if r.failed)

        fusion = fuse_signals(signals, self.weights)
        risk = apply_signal_strength(risk, fusion.strength)

        decision = FusedDecision(
            symbol=symbol,
            timeframe=timeframe,
            direction=fusion.direction,
            strength=fusion.strength,
            confidence=fusion.confidence,
            risk_level=risk.level,
            risk_score=risk.score,
            supporting_strategies=fusion.supporting,
            failed_strategies=failed,
            recommendations=build_recommendations(
                fusion.direction,
                fusion.strength,
                fusion.confidence,
                risk.level,
                risk.score,
                risk.volatility,
            ),
            reason=fusion.reason,
            price=series.last_close,
            volatility=risk.volatility,
            signals=signals,
            fingerprint=key,
            is_executable=is_executable(
                fusion.direction,
                fusion.strength,
                fusion.confidence,
                risk.level,
                self.config.min_confidence,
                self.config.min_strength,
            ),
            created_at=self.clock.now(),
        )

        logger.info(
            f"{symbol} {timeframe}: {decision.direction.value} "
            f"strength={decision.strength:.2f} confidence={decision.confidence:.2f} "
            f"risk={decision.risk_level.value} executable={decision.is_executable}"
        )
        self._record(decision)
        self._publish(decision)
        return decision

    async def _run_estimator(self, name: str, coro: Awaitable[Signal]) -> EstimatorResult:
        """Await one estimator with a timeout, isolating its failure."""
        started = self.clock.monotonic()
        try:
            signal = await asyncio.wait_for(coro, timeout=self.config.estimator_timeout)
            error = None
        except asyncio.TimeoutError:
            error = f"timed out after {self.config.estimator_timeout}s"
        except Exception as e:
            error = str(e) or type(e).__name__
        elapsed = self.clock.monotonic() - started

        if error is not None:
            logger.warning(f"Estimator {name} failed: {error}")
            signal = Signal.neutral(name, reason=error, fallback=True)
        return EstimatorResult(name=name, signal=signal, error=error, elapsed=elapsed)

    async def _ensemble_signal(
        self,
        series: PriceSeries,
        indicators: dict[str, Any],
        timeframe: str,
    ) -> Signal:
        snapshot = MarketSnapshot.from_series(series, indicators)
        prediction = await self.ensemble.predict(snapshot, timeframe)
        return to_signal(prediction)

    # =========================================================================
    # Publishing and history
    # =========================================================================

    def _publish(self, decision: FusedDecision) -> None:
        if self.sink is None:
            return
        task = asyncio.create_task(self._deliver(decision))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, decision: FusedDecision) -> None:
        try:
            await self.sink.publish_decision(decision)
        except Exception as e:
            logger.warning(f"Failed to publish decision {decision.id}: {e}")

    async def flush(self) -> None:
        """Wait for in-flight sink deliveries."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _record(self, decision: FusedDecision) -> None:
        self._history.append(decision)
        if len(self._history) > self.config.history_limit:
            self._history = self._history[-self.config.history_trim:]

    @property
    def history(self) -> list[FusedDecision]:
        return list(self._history)

    def performance_metrics(self) -> dict[str, Any]:
        total = len(self._history)
        directions = Counter(d.direction.value for d in self._history)
        return {
            "total_analyses": total,
            "average_confidence": (
                sum(d.confidence for d in self._history) / total if total else 0.0
            ),
            "executable": sum(1 for d in self._history if d.is_executable),
            "directions": dict(directions),
            "cache": self.cache.stats(),
        }

    def clear_cache(self) -> None:
        self.cache.clear()
