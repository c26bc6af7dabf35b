"""Engine wiring.

Builds the services from EngineSettings around one shared clock and
scheduler, and exposes the analyze-then-trade flow used by embedding
processes.
"""

import logging

from quant_core.models import FusedDecision, Position
from quant_engine.config import EngineSettings, get_settings
from quant_engine.errors import PositionRejectedError
from quant_engine.interfaces import Clock, DecisionSink, MarketDataProvider, SystemClock
from quant_engine.services import (
    AnalysisOptions,
    PositionManager,
    PredictionEnsemble,
    RiskAnalyticsEngine,
    SignalFusionEngine,
    TaskScheduler,
)

logger = logging.getLogger(__name__)


class QuantEngine:
    """Fusion, risk and position services sharing one scheduler."""

    def __init__(
        self,
        provider: MarketDataProvider,
        sink: DecisionSink | None = None,
        settings: EngineSettings | None = None,
        clock: Clock | None = None,
    ):
        self.settings = settings or get_settings()
        self.clock = clock or SystemClock()
        self.scheduler = TaskScheduler(self.clock)

        self.risk = RiskAnalyticsEngine(self.settings.risk, self.clock, self.scheduler)
        ensemble = None
        if self.settings.fusion.ensemble_enabled:
            ensemble = PredictionEnsemble(self.settings.prediction)
        self.fusion = SignalFusionEngine(
            self.settings.fusion,
            provider,
            self.risk,
            sink=sink,
            ensemble=ensemble,
            clock=self.clock,
        )
        self.positions = PositionManager(
            self.settings.position,
            provider,
            self.scheduler,
            sink=sink,
            clock=self.clock,
        )

    async def analyze(self, symbol: str, options: AnalysisOptions | None = None) -> FusedDecision:
        return await self.fusion.analyze(symbol, options=options)

    async def analyze_and_trade(
        self,
        symbol: str,
        options: AnalysisOptions | None = None,
    ) -> tuple[FusedDecision, Position | None]:
        """Analyze ``symbol`` and open a position when the decision is executable."""
        decision = await self.analyze(symbol, options)
        if not decision.is_executable:
            return decision, None
        try:
            position = await self.positions.open_position(decision)
        except PositionRejectedError as e:
            logger.info(f"Position for {symbol} rejected: {e}")
            return decision, None
        return decision, position

    async def stop(self) -> None:
        """Stop monitoring and flush pending notifications."""
        self.risk.stop_monitoring()
        await self.positions.stop()
        await self.fusion.flush()
        await self.scheduler.cancel_all()
        logger.info("Engine stopped")
