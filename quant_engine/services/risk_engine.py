"""Risk analytics service.

Wraps the pure risk math in quant_core.risk with fallback handling, a
bounded report history and optional periodic recomputation.
"""

import logging
from collections import deque
from datetime import timedelta
from typing import Awaitable, Callable

import numpy as np

from quant_core.models import (
    Portfolio,
    PriceSeries,
    RiskLevel,
    RiskReport,
    TradeRisk,
    WeightChange,
)
from quant_core.risk import (
    analyze_sensitivity,
    beta,
    classify_risk_level,
    correlation_analysis,
    expected_shortfall,
    max_drawdown,
    optimize_for_risk,
    overall_risk_score,
    parametric_var,
    portfolio_returns,
    portfolio_volatility,
    risk_recommendations,
    risk_warnings,
    run_stress_tests,
    sharpe_ratio,
    sortino_ratio,
    trade_risk,
    value_at_risk,
)
from quant_engine.config import RiskConfig
from quant_engine.errors import RiskComputationError
from quant_engine.interfaces import Clock, SystemClock
from quant_engine.services.scheduler import TaskScheduler

logger = logging.getLogger(__name__)

MONITOR_KEY = "risk_monitor"

HISTORY_PERIODS: dict[str, timedelta] = {
    "1d": timedelta(days=1),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
}
DEFAULT_HISTORY_PERIOD = "30d"

PortfolioSource = Callable[[], Awaitable[Portfolio]]
MarketSource = Callable[[], Awaitable[PriceSeries | None]]


class RiskAnalyticsEngine:
    """Portfolio and per-trade risk assessment."""

    def __init__(
        self,
        config: RiskConfig | None = None,
        clock: Clock | None = None,
        scheduler: TaskScheduler | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.config = config or RiskConfig()
        self.clock = clock or SystemClock()
        self.scheduler = scheduler or TaskScheduler(self.clock)
        self.rng = rng if rng is not None else np.random.default_rng(self.config.monte_carlo_seed)

        self._history: deque[RiskReport] = deque(maxlen=self.config.history_limit)
        self._latest: dict[str, RiskReport] = {}

    # =========================================================================
    # Portfolio risk
    # =========================================================================

    async def assess_portfolio_risk(
        self,
        portfolio: Portfolio,
        market_series: PriceSeries | None = None,
    ) -> RiskReport:
        """Compute a full risk report for ``portfolio``.

        Never raises: insufficient history or any computation error yields
        a MEDIUM-risk fallback report.
        """
        try:
            report = self._compute_report(portfolio, market_series)
        except RiskComputationError as e:
            logger.warning(f"Risk report for {portfolio.id} fell back: {e}")
            report = RiskReport.fallback(portfolio.id, str(e))
        except Exception as e:
            logger.error(f"Risk computation failed for {portfolio.id}: {e}")
            report = RiskReport.fallback(portfolio.id, "risk computation failed", error=str(e))

        if report.is_fallback:
            report = report.model_copy(update={"created_at": self.clock.now()})
        self._record(report)
        return report

    def _compute_report(self, portfolio: Portfolio, market_series: PriceSeries | None) -> RiskReport:
        values = portfolio.historical_values
        if len(values) < 2:
            raise RiskComputationError(
                f"insufficient history: {len(values)} values, need at least 2"
            )
        if any(v <= 0 for v in values):
            raise RiskComputationError("historical values must be positive")

        cfg = self.config
        thresholds = cfg.thresholds
        rets = portfolio_returns(values)

        var = value_at_risk(rets, cfg.var_confidence, cfg.monte_carlo_simulations, self.rng)
        var_99 = value_at_risk(rets, 0.99, cfg.monte_carlo_simulations, self.rng)
        es = expected_shortfall(rets, cfg.var_confidence)
        drawdown = max_drawdown(values)
        vol = portfolio_volatility(rets) if len(rets) >= 2 else None
        rf = cfg.risk_free_rate_per_period
        sharpe = sharpe_ratio(rets, rf)
        sortino = sortino_ratio(rets, rf)
        portfolio_beta = self._beta(rets, market_series)
        correlation = correlation_analysis(portfolio.assets, thresholds.correlation_alert)

        base_var = parametric_var(vol, cfg.var_confidence) if vol is not None else None
        stress = run_stress_tests(portfolio.current_value, base_var)
        sensitivity = analyze_sensitivity(portfolio, portfolio_beta, vol)

        overall = overall_risk_score(
            thresholds,
            var=var.value if var else None,
            expected_shortfall=es,
            max_drawdown=drawdown,
            volatility=vol,
            sharpe=sharpe,
            beta=portfolio_beta,
        )

        return RiskReport(
            portfolio_id=portfolio.id,
            var=var,
            var_99=var_99,
            expected_shortfall=es,
            max_drawdown=drawdown,
            volatility=vol,
            sharpe=sharpe,
            sortino=sortino,
            beta=portfolio_beta,
            correlation=correlation,
            stress_results=stress,
            sensitivity=sensitivity,
            overall_risk=overall,
            risk_level=classify_risk_level(overall),
            recommendations=risk_recommendations(thresholds, var, drawdown, sharpe, correlation),
            warnings=risk_warnings(thresholds, var, drawdown, vol),
            diagnostics={
                "returns": len(rets),
                "monte_carlo": "normal approximation",
                "simulations": cfg.monte_carlo_simulations,
            },
            created_at=self.clock.now(),
        )

    @staticmethod
    def _beta(rets: list[float], market_series: PriceSeries | None) -> float:
        if market_series is None or len(market_series) < 2:
            return 1.0
        market_rets = portfolio_returns(market_series.closes())
        n = min(len(rets), len(market_rets))
        return beta(rets[-n:], market_rets[-n:])

    def _record(self, report: RiskReport) -> None:
        self._history.append(report)
        self._latest[report.portfolio_id] = report
        if report.risk_level.rank >= RiskLevel.HIGH.rank:
            logger.warning(
                f"Portfolio {report.portfolio_id} risk {report.risk_level.value} "
                f"(score {report.overall_risk:.2f})"
            )

    def latest_report(self, portfolio_id: str) -> RiskReport | None:
        return self._latest.get(portfolio_id)

    def get_historical_reports(
        self,
        portfolio_id: str,
        period: str = DEFAULT_HISTORY_PERIOD,
    ) -> list[RiskReport]:
        """Reports for ``portfolio_id`` within ``period`` (1d, 7d, 30d or 90d).

        Unknown periods use 30d.
        """
        window = HISTORY_PERIODS.get(period, HISTORY_PERIODS[DEFAULT_HISTORY_PERIOD])
        since = self.clock.now() - window
        return [
            r for r in self._history
            if r.portfolio_id == portfolio_id and r.created_at >= since
        ]

    def optimize_for_risk(self, portfolio: Portfolio, target_risk: float) -> list[WeightChange]:
        return optimize_for_risk(portfolio, target_risk)

    # =========================================================================
    # Trade risk
    # =========================================================================

    async def assess_trade_risk(self, series: PriceSeries, signal_strength: float = 0.0) -> TradeRisk:
        """Per-symbol risk used to gate fused decisions; MEDIUM fallback on error."""
        try:
            return trade_risk(
                series.closes(),
                series.volumes(),
                signal_strength=signal_strength,
                trend_period=self.config.trend_period,
            )
        except Exception as e:
            logger.warning(f"Trade risk for {series.symbol} fell back: {e}")
            return TradeRisk(is_fallback=True)

    # =========================================================================
    # Monitoring
    # =========================================================================

    def start_monitoring(
        self,
        portfolio_source: PortfolioSource,
        market_source: MarketSource | None = None,
    ) -> bool:
        """Recompute the portfolio report every ``check_interval``.

        Returns:
            False if monitoring is already running.
        """

        async def tick() -> None:
            portfolio = await portfolio_source()
            market = await market_source() if market_source is not None else None
            await self.assess_portfolio_risk(portfolio, market)

        started = self.scheduler.schedule(MONITOR_KEY, self.config.check_interval, tick)
        if started:
            logger.info(f"Risk monitoring started (every {self.config.check_interval}s)")
        return started

    def stop_monitoring(self) -> None:
        if self.scheduler.cancel(MONITOR_KEY):
            logger.info("Risk monitoring stopped")
