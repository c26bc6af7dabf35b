"""Risk math: VaR, drawdown, ratios, correlation, stress tests and scoring."""

from quant_core.risk.metrics import (
    MONTE_CARLO_MIN_SIMULATIONS,
    Z_SCORES,
    beta,
    correlation_analysis,
    downside_deviation,
    exceedance_probability,
    expected_shortfall,
    historical_var,
    max_drawdown,
    monte_carlo_var,
    parametric_var,
    pearson_correlation,
    portfolio_returns,
    portfolio_volatility,
    sharpe_ratio,
    sortino_ratio,
    value_at_risk,
    z_score,
)
from quant_core.risk.scoring import (
    SCORE_WEIGHTS,
    RiskThresholds,
    apply_signal_strength,
    classify_risk_level,
    market_condition,
    overall_risk_score,
    risk_recommendations,
    risk_warnings,
    trade_risk,
)
from quant_core.risk.sensitivity import analyze_sensitivity, asset_risk, optimize_for_risk
from quant_core.risk.stress import (
    DEFAULT_SCENARIOS,
    StressScenario,
    estimate_recovery_time,
    run_stress_tests,
    simulate_scenario,
)

__all__ = [
    "MONTE_CARLO_MIN_SIMULATIONS",
    "Z_SCORES",
    "beta",
    "correlation_analysis",
    "downside_deviation",
    "exceedance_probability",
    "expected_shortfall",
    "historical_var",
    "max_drawdown",
    "monte_carlo_var",
    "parametric_var",
    "pearson_correlation",
    "portfolio_returns",
    "portfolio_volatility",
    "sharpe_ratio",
    "sortino_ratio",
    "value_at_risk",
    "z_score",
    "SCORE_WEIGHTS",
    "RiskThresholds",
    "apply_signal_strength",
    "classify_risk_level",
    "market_condition",
    "overall_risk_score",
    "risk_recommendations",
    "risk_warnings",
    "trade_risk",
    "analyze_sensitivity",
    "asset_risk",
    "optimize_for_risk",
    "DEFAULT_SCENARIOS",
    "StressScenario",
    "estimate_recovery_time",
    "run_stress_tests",
    "simulate_scenario",
]
