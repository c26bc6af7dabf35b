"""Factor sensitivity and simple risk-targeting weight suggestions."""

from __future__ import annotations

from typing import Sequence

from quant_core.models import Asset, Portfolio, SensitivityResult, WeightChange
from quant_core.risk.metrics import portfolio_volatility

DEFAULT_ASSET_VOLATILITY = 0.2
DEFAULT_LIQUIDITY = 0.5
WEIGHT_REDUCTION = 0.8


def market_sensitivity(beta: float) -> SensitivityResult:
    """Distance of beta from the market (1.0)."""
    if beta > 1:
        rating = "HIGH"
    elif beta < 1:
        rating = "LOW"
    else:
        rating = "MEDIUM"
    return SensitivityResult(
        factor="market", exposure=beta, sensitivity=min(1.0, abs(beta - 1)), rating=rating
    )


def interest_rate_sensitivity(assets: Sequence[Asset]) -> SensitivityResult:
    """Average duration of rate-sensitive assets, normalized by 10 years."""
    durations = [a.duration for a in assets if a.duration]
    avg = sum(durations) / len(durations) if durations else 0.0
    if avg > 5:
        rating = "HIGH"
    elif avg > 2:
        rating = "MEDIUM"
    else:
        rating = "LOW"
    return SensitivityResult(
        factor="interest_rate", exposure=avg, sensitivity=min(1.0, avg / 10), rating=rating
    )


def volatility_sensitivity(volatility: float) -> SensitivityResult:
    sensitivity = min(1.0, volatility * 2)
    if sensitivity > 0.6:
        rating = "HIGH"
    elif sensitivity > 0.3:
        rating = "MEDIUM"
    else:
        rating = "LOW"
    return SensitivityResult(
        factor="volatility", exposure=volatility, sensitivity=sensitivity, rating=rating
    )


def liquidity_sensitivity(assets: Sequence[Asset]) -> SensitivityResult:
    """Average asset liquidity; unknown liquidity counts as 0.5."""
    known = [a.liquidity for a in assets if a.liquidity]
    avg = sum(known) / len(known) if known else DEFAULT_LIQUIDITY
    if avg < 0.3:
        rating = "HIGH"
    elif avg < 0.6:
        rating = "MEDIUM"
    else:
        rating = "LOW"
    return SensitivityResult(
        factor="liquidity", exposure=avg, sensitivity=1 - avg, rating=rating
    )


def analyze_sensitivity(
    portfolio: Portfolio, beta: float, volatility: float | None
) -> list[SensitivityResult]:
    """Factor sensitivities; volatility is left out when it is unknown."""
    results = [
        market_sensitivity(beta),
        interest_rate_sensitivity(portfolio.assets),
    ]
    if volatility is not None:
        results.append(volatility_sensitivity(volatility))
    results.append(liquidity_sensitivity(portfolio.assets))
    return results


def asset_risk(asset: Asset) -> float:
    """Stand-alone risk of one asset in [0, 1].

    Realized volatility of its returns (0.2 when unknown), scaled up by
    up to 30% for illiquidity.
    """
    vol = portfolio_volatility(asset.historical_returns) or DEFAULT_ASSET_VOLATILITY
    liquidity = asset.liquidity if asset.liquidity is not None else DEFAULT_LIQUIDITY
    return min(1.0, vol * (1 + (1 - liquidity) * 0.3))


def optimize_for_risk(portfolio: Portfolio, target_risk: float) -> list[WeightChange]:
    """Suggest a 20% weight cut for every asset riskier than ``target_risk``."""
    changes = []
    for asset in portfolio.assets:
        risk = asset_risk(asset)
        if risk > target_risk:
            changes.append(
                WeightChange(
                    symbol=asset.symbol,
                    current_weight=asset.weight,
                    suggested_weight=asset.weight * WEIGHT_REDUCTION,
                    risk_reduction=risk - target_risk,
                )
            )
    return changes
