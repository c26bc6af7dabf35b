"""Tests for the risk analytics service."""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from conftest import make_series
from quant_core.models import Asset, Portfolio, RiskLevel
from quant_engine.config import RiskConfig
from quant_engine.services import RiskAnalyticsEngine, TaskScheduler


def _portfolio(values=None, portfolio_id="main"):
    values = values or [100_000 * (1 + 0.01 * ((i % 5) - 2)) for i in range(60)]
    return Portfolio(
        id=portfolio_id,
        current_value=values[-1],
        historical_values=values,
        assets=[
            Asset(symbol="A", weight=0.6, historical_returns=[0.01, -0.02, 0.015, -0.005]),
            Asset(symbol="B", weight=0.4, historical_returns=[0.02, -0.01, 0.01, 0.0]),
        ],
    )


class TestPortfolioRisk:
    """Tests for assess_portfolio_risk."""

    @pytest.fixture
    def engine(self, clock):
        return RiskAnalyticsEngine(RiskConfig(monte_carlo_seed=42), clock=clock)

    @pytest.mark.asyncio
    async def test_full_report(self, engine):
        report = await engine.assess_portfolio_risk(_portfolio())

        assert not report.is_fallback
        assert report.var is not None and report.var.confidence == 0.95
        assert report.var_99.value >= report.var.value * 0.9
        assert report.expected_shortfall is not None
        assert 0.0 <= report.max_drawdown <= 1.0
        assert report.volatility > 0
        assert report.beta == 1.0
        assert [s.scenario for s in report.stress_results][0] == "CRASH_2008"
        assert len(report.sensitivity) == 4
        assert 0.0 <= report.overall_risk <= 1.0
        assert report.risk_level == RiskLevel.from_score(report.overall_risk)
        assert report.diagnostics["monte_carlo"] == "normal approximation"

    @pytest.mark.asyncio
    async def test_seeded_reports_identical(self, clock):
        first = await RiskAnalyticsEngine(RiskConfig(monte_carlo_seed=1), clock=clock).assess_portfolio_risk(_portfolio())
        second = await RiskAnalyticsEngine(RiskConfig(monte_carlo_seed=1), clock=clock).assess_portfolio_risk(_portfolio())

        assert first.var == second.var
        assert first.overall_risk == second.overall_risk

    @pytest.mark.asyncio
    async def test_beta_against_market(self, engine):
        portfolio = _portfolio()
        market = make_series(portfolio.historical_values)
        report = await engine.assess_portfolio_risk(portfolio, market)

        assert report.beta == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_insufficient_history_falls_back(self, engine):
        report = await engine.assess_portfolio_risk(_portfolio([100_000]))

        assert report.is_fallback
        assert report.risk_level == RiskLevel.MEDIUM
        assert report.overall_risk == 0.5
        assert "insufficient history" in report.diagnostics["reason"]

    @pytest.mark.asyncio
    async def test_single_return_has_unknown_volatility(self, engine):
        report = await engine.assess_portfolio_risk(_portfolio([100_000, 90_000]))

        assert not report.is_fallback
        assert report.var.value == pytest.approx(0.1)
        assert "parametric" not in report.var.methods
        assert report.volatility is None
        assert report.sharpe is None
        assert "volatility" not in {s.factor for s in report.sensitivity}
        assert all(s.stressed_var is None for s in report.stress_results)

    @pytest.mark.asyncio
    async def test_unexpected_error_falls_back(self, engine):
        with patch(
            "quant_engine.services.risk_engine.max_drawdown",
            side_effect=RuntimeError("bad math"),
        ):
            report = await engine.assess_portfolio_risk(_portfolio())

        assert report.is_fallback
        assert report.diagnostics["error"] == "bad math"

    @pytest.mark.asyncio
    async def test_history_and_latest(self, engine, clock):
        await engine.assess_portfolio_risk(_portfolio())
        await clock.advance(timedelta(days=10).total_seconds())
        latest = await engine.assess_portfolio_risk(_portfolio())
        await engine.assess_portfolio_risk(_portfolio(portfolio_id="other"))

        assert engine.latest_report("main") is latest
        assert len(engine.get_historical_reports("main", "7d")) == 1
        assert len(engine.get_historical_reports("main", "30d")) == 2
        assert len(engine.get_historical_reports("main", "bogus")) == 2
        assert engine.latest_report("missing") is None

    @pytest.mark.asyncio
    async def test_history_bounded(self, clock):
        engine = RiskAnalyticsEngine(RiskConfig(history_limit=3), clock=clock)
        for _ in range(5):
            await engine.assess_portfolio_risk(_portfolio([1.0]))
        assert len(engine.get_historical_reports("main")) == 3


class TestTradeRisk:
    """Tests for assess_trade_risk."""

    @pytest.mark.asyncio
    async def test_flat_series(self, clock):
        engine = RiskAnalyticsEngine(clock=clock)
        risk = await engine.assess_trade_risk(make_series([100.0] * 30))

        assert risk.volatility == 0.0
        assert not risk.is_fallback

    @pytest.mark.asyncio
    async def test_failure_is_medium_fallback(self, clock):
        engine = RiskAnalyticsEngine(clock=clock)
        with patch("quant_engine.services.risk_engine.trade_risk", side_effect=ValueError("bad")):
            risk = await engine.assess_trade_risk(make_series([100.0] * 30))

        assert risk.is_fallback
        assert risk.level == RiskLevel.MEDIUM


class TestMonitoring:
    """Tests for periodic recomputation."""

    @pytest.mark.asyncio
    async def test_recomputes_every_interval(self, clock):
        scheduler = TaskScheduler(clock)
        engine = RiskAnalyticsEngine(RiskConfig(check_interval=60), clock=clock, scheduler=scheduler)
        source = AsyncMock(return_value=_portfolio())

        assert engine.start_monitoring(source)
        assert not engine.start_monitoring(source)

        await clock.advance(59)
        assert source.await_count == 0
        await clock.advance(1)
        assert source.await_count == 1
        await clock.advance(120)
        assert source.await_count == 3
        assert engine.latest_report("main") is not None

        engine.stop_monitoring()
        await clock.advance(600)
        assert source.await_count == 3
