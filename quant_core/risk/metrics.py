"""Portfolio risk metrics.

Return series are simple per-period returns. VaR and expected shortfall
are reported as positive loss fractions. Functions that cannot produce a
meaningful value from the data they are given return None so the caller
can leave the metric out of the risk blend.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from scipy.stats import norm

from quant_core.indicators import returns as simple_returns
from quant_core.models import Asset, CorrelationAnalysis, VarResult

# Standard normal quantiles for the common confidence levels
Z_SCORES: dict[float, float] = {
    0.90: 1.282,
    0.95: 1.645,
    0.99: 2.326,
}

MONTE_CARLO_MIN_SIMULATIONS = 10_000


def z_score(confidence: float) -> float:
    """One-sided standard normal quantile for ``confidence``.

    Uses the fixed table for 0.90/0.95/0.99 and the exact inverse CDF
    otherwise.
    """
    for level, z in Z_SCORES.items():
        if math.isclose(confidence, level):
            return z
    if not 0.0 < confidence < 1.0:
        raise ValueError(f"confidence must be in (0, 1), got {confidence}")
    return float(norm.ppf(confidence))


def portfolio_returns(values: Sequence[float]) -> list[float]:
    """Simple returns of a portfolio value series."""
    return simple_returns(values)


def _quantile_index(n: int, confidence: float) -> int:
    return min(int(math.floor((1 - confidence) * n)), n - 1)


# =============================================================================
# Value at Risk
# =============================================================================

def historical_var(rets: Sequence[float], confidence: float = 0.95) -> float | None:
    """Historical VaR: the (1 - confidence) quantile of realized returns."""
    if len(rets) == 0:
        return None
    ordered = np.sort(np.asarray(rets, dtype=np.float64))
    return abs(float(ordered[_quantile_index(len(ordered), confidence)]))


def parametric_var(volatility: float, confidence: float = 0.95) -> float:
    """Parametric (variance-covariance) VaR: volatility * z."""
    return volatility * z_score(confidence)


def monte_carlo_var(
    rets: Sequence[float],
    confidence: float = 0.95,
    simulations: int = MONTE_CARLO_MIN_SIMULATIONS,
    rng: np.random.Generator | None = None,
) -> float | None:
    """Monte Carlo VaR from a normal distribution fitted to ``rets``.

    Samples are drawn with the Box-Muller transform from ``rng`` so results
    are reproducible for a seeded generator. The normal fit ignores fat
    tails: treat the result as an approximation, not a bound.
    """
    if len(rets) == 0:
        return None
    if simulations < MONTE_CARLO_MIN_SIMULATIONS:
        raise ValueError(
            f"simulations must be >= {MONTE_CARLO_MIN_SIMULATIONS}, got {simulations}"
        )

    arr = np.asarray(rets, dtype=np.float64)
    mean = float(np.mean(arr))
    std = float(np.std(arr))

    rng = rng if rng is not None else np.random.default_rng()
    u = 1.0 - rng.random(simulations)  # (0, 1] so log(u) is finite
    v = rng.random(simulations)
    normal = np.sqrt(-2.0 * np.log(u)) * np.cos(2.0 * np.pi * v)

    simulated = np.sort(mean + std * normal)
    return abs(float(simulated[_quantile_index(simulations, confidence)]))


def exceedance_probability(rets: Sequence[float], var_value: float) -> float:
    """Share of realized returns that lost more than ``var_value``."""
    if len(rets) == 0:
        return 0.0
    arr = np.asarray(rets, dtype=np.float64)
    return float(np.count_nonzero(arr < -var_value)) / len(arr)


def value_at_risk(
    rets: Sequence[float],
    confidence: float = 0.95,
    simulations: int = MONTE_CARLO_MIN_SIMULATIONS,
    rng: np.random.Generator | None = None,
) -> VarResult | None:
    """
    VaR averaged over the historical, parametric and Monte Carlo methods.

    Only methods that produced a value enter the average; the parametric
    method needs at least two returns to estimate a volatility.

    Returns:
        VarResult, or None when there are no returns at all.
    """
    if len(rets) == 0:
        return None

    methods: dict[str, float] = {}
    hist = historical_var(rets, confidence)
    if hist is not None:
        methods["historical"] = hist
    if len(rets) >= 2:
        methods["parametric"] = parametric_var(portfolio_volatility(rets), confidence)
    mc = monte_carlo_var(rets, confidence, simulations, rng)
    if mc is not None:
        methods["monte_carlo"] = mc

    value = sum(methods.values()) / len(methods)
    return VarResult(
        value=value,
        confidence=confidence,
        methods=methods,
        exceedance_probability=exceedance_probability(rets, value),
    )


def expected_shortfall(rets: Sequence[float], confidence: float = 0.95) -> float | None:
    """Mean of the returns at or beyond the VaR quantile (positive loss)."""
    if len(rets) == 0:
        return None
    ordered = np.sort(np.asarray(rets, dtype=np.float64))
    cutoff = int(math.floor((1 - confidence) * len(ordered)))
    tail = ordered[: max(cutoff, 1)]
    return abs(float(np.mean(tail)))


# =============================================================================
# Drawdown, volatility and ratios
# =============================================================================

def max_drawdown(values: Sequence[float]) -> float:
    """Largest peak-to-trough decline as a fraction of the running peak."""
    if len(values) < 2:
        return 0.0

    peak = float(values[0])
    worst = 0.0
    for value in values[1:]:
        value = float(value)
        if value > peak:
            peak = value
        elif peak > 0:
            worst = max(worst, (peak - value) / peak)
    return worst


def portfolio_volatility(rets: Sequence[float]) -> float:
    """Population standard deviation of returns."""
    if len(rets) < 2:
        return 0.0
    return float(np.std(np.asarray(rets, dtype=np.float64)))


def sharpe_ratio(rets: Sequence[float], risk_free_rate: float = 0.0) -> float | None:
    """(mean return - per-period risk-free rate) / volatility.

    None with fewer than two returns, where volatility is unknown.
    """
    if len(rets) < 2:
        return None
    vol = portfolio_volatility(rets)
    if vol == 0:
        return 0.0
    return (float(np.mean(rets)) - risk_free_rate) / vol


def downside_deviation(rets: Sequence[float]) -> float:
    """Root mean square of the negative returns only."""
    arr = np.asarray(rets, dtype=np.float64)
    negative = arr[arr < 0]
    if negative.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(negative ** 2)))


def sortino_ratio(rets: Sequence[float], risk_free_rate: float = 0.0) -> float | None:
    """(mean return - per-period risk-free rate) / downside deviation.

    None when there are no returns or no losing periods.
    """
    if len(rets) == 0:
        return None
    downside = downside_deviation(rets)
    if downside == 0:
        return None
    return (float(np.mean(rets)) - risk_free_rate) / downside


def beta(portfolio_rets: Sequence[float], market_rets: Sequence[float]) -> float:
    """cov(portfolio, market) / var(market); 1.0 when it cannot be estimated."""
    if len(portfolio_rets) != len(market_rets) or len(portfolio_rets) < 2:
        return 1.0

    p = np.asarray(portfolio_rets, dtype=np.float64)
    m = np.asarray(market_rets, dtype=np.float64)
    market_var = float(np.mean((m - m.mean()) ** 2))
    if market_var == 0:
        return 1.0
    covariance = float(np.mean((p - p.mean()) * (m - m.mean())))
    return covariance / market_var


# =============================================================================
# Correlation
# =============================================================================

def pearson_correlation(a: Sequence[float], b: Sequence[float]) -> float:
    """Pearson correlation; 0.0 for mismatched, short or flat series."""
    if len(a) != len(b) or len(a) < 2:
        return 0.0

    x = np.asarray(a, dtype=np.float64)
    y = np.asarray(b, dtype=np.float64)
    std_x = float(np.std(x))
    std_y = float(np.std(y))
    if std_x * std_y == 0:
        return 0.0
    covariance = float(np.mean((x - x.mean()) * (y - y.mean())))
    return covariance / (std_x * std_y)


def correlation_analysis(assets: Sequence[Asset], alert_threshold: float = 0.8) -> CorrelationAnalysis:
    """Pairwise correlation of asset returns, flagging highly correlated pairs."""
    pairs: dict[str, float] = {}
    for i in range(len(assets)):
        for j in range(i + 1, len(assets)):
            key = f"{assets[i].symbol}-{assets[j].symbol}"
            pairs[key] = pearson_correlation(
                assets[i].historical_returns, assets[j].historical_returns
            )

    if not pairs:
        return CorrelationAnalysis()

    values = list(pairs.values())
    return CorrelationAnalysis(
        pairs=pairs,
        average=sum(values) / len(values),
        maximum=max(values),
        high_correlation_pairs=[k for k, v in pairs.items() if abs(v) > alert_threshold],
    )
