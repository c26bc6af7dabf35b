"""Overall risk scoring, recommendations and warnings.

The overall score blends each available metric, normalized against its
threshold, with fixed weights. Metrics passed as None are left out of
both numerator and denominator; with nothing to blend the score is 0.5.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from quant_core.indicators import detect_trend, volume_stability
from quant_core.indicators import volatility as realized_volatility
from quant_core.models import CorrelationAnalysis, RiskLevel, TradeRisk, VarResult

DEFAULT_RISK_SCORE = 0.5

SCORE_WEIGHTS: dict[str, float] = {
    "var": 0.25,
    "expected_shortfall": 0.20,
    "max_drawdown": 0.20,
    "volatility": 0.15,
    "sharpe": 0.10,
    "beta": 0.10,
}


class RiskThresholds(BaseModel):
    """Limits each metric is normalized against."""

    model_config = ConfigDict(frozen=True)

    var_95: float = Field(default=0.02, gt=0)
    var_99: float = Field(default=0.05, gt=0)
    max_drawdown: float = Field(default=0.15, gt=0)
    volatility: float = Field(default=0.25, gt=0)
    beta: float = Field(default=1.5, gt=1)
    sharpe_min: float = Field(default=1.0, gt=0)
    correlation_alert: float = Field(default=0.8, ge=0, le=1)

    # Warning levels
    drawdown_warning: float = Field(default=0.2, gt=0)
    volatility_warning: float = Field(default=0.3, gt=0)


def overall_risk_score(
    thresholds: RiskThresholds,
    var: float | None = None,
    expected_shortfall: float | None = None,
    max_drawdown: float | None = None,
    volatility: float | None = None,
    sharpe: float | None = None,
    beta: float | None = None,
) -> float:
    """Weighted blend of normalized metrics in [0, 1]."""
    components: dict[str, float] = {}
    if var is not None:
        components["var"] = min(1.0, var / thresholds.var_95)
    if expected_shortfall is not None:
        components["expected_shortfall"] = min(1.0, expected_shortfall / thresholds.var_99)
    if max_drawdown is not None:
        components["max_drawdown"] = min(1.0, max_drawdown / thresholds.max_drawdown)
    if volatility is not None:
        components["volatility"] = min(1.0, volatility / thresholds.volatility)
    if sharpe is not None:
        # Inverted: a low Sharpe ratio is risky
        components["sharpe"] = min(1.0, max(0.0, 1.0 - sharpe / thresholds.sharpe_min))
    if beta is not None:
        components["beta"] = min(1.0, abs(beta - 1.0) / (thresholds.beta - 1.0))

    total_weight = sum(SCORE_WEIGHTS[k] for k in components)
    if total_weight == 0:
        return DEFAULT_RISK_SCORE
    return sum(v * SCORE_WEIGHTS[k] for k, v in components.items()) / total_weight


def classify_risk_level(score: float) -> RiskLevel:
    return RiskLevel.from_score(score)


def risk_recommendations(
    thresholds: RiskThresholds,
    var: VarResult | None,
    max_drawdown: float | None,
    sharpe: float | None,
    correlation: CorrelationAnalysis,
) -> list[str]:
    """Actionable suggestions for the metrics that breach their limits."""
    recommendations = []
    if var is not None and var.value > thresholds.var_95:
        recommendations.append(
            f"Reduce high-risk positions: VaR {var.value * 100:.2f}% exceeds the limit"
        )
    if max_drawdown is not None and max_drawdown > thresholds.max_drawdown:
        recommendations.append(
            f"Tighten trailing stops and reduce concentration: "
            f"max drawdown {max_drawdown * 100:.2f}% exceeds the limit"
        )
    if correlation.high_correlation_pairs:
        recommendations.append(
            f"Diversify: {len(correlation.high_correlation_pairs)} highly correlated asset pairs"
        )
    if sharpe is not None and sharpe < thresholds.sharpe_min:
        recommendations.append(
            f"Review asset mix to improve risk-adjusted return: Sharpe {sharpe:.2f} is below target"
        )
    return recommendations


def risk_warnings(
    thresholds: RiskThresholds,
    var: VarResult | None,
    max_drawdown: float | None,
    volatility: float | None,
) -> list[str]:
    warnings = []
    if var is not None and var.value > thresholds.var_99:
        warnings.append(f"CRITICAL: VaR {var.value * 100:.2f}% exceeds the critical limit")
    if max_drawdown is not None and max_drawdown > thresholds.drawdown_warning:
        warnings.append(f"HIGH: max drawdown {max_drawdown * 100:.2f}% is in the danger zone")
    if volatility is not None and volatility > thresholds.volatility_warning:
        warnings.append(f"MEDIUM: portfolio volatility {volatility * 100:.2f}% is very high")
    return warnings


# =============================================================================
# Per-trade risk
# =============================================================================

# Risk factor per market condition
MARKET_CONDITION_RISK: dict[str, float] = {
    "VOLATILE": 0.8,
    "RANGING": 0.6,
    "CALM": 0.3,
    "NORMAL": 0.5,
}


def market_condition(closes: list[float], trend_period: int = 20) -> tuple[str, float, str]:
    """Classify market condition.

    Returns:
        (condition, risk_factor, trend)
    """
    vol = realized_volatility(closes)
    trend = detect_trend(closes, trend_period)
    if vol > 0.05:
        condition = "VOLATILE"
    elif trend == "SIDEWAYS":
        condition = "RANGING"
    elif vol < 0.01:
        condition = "CALM"
    else:
        condition = "NORMAL"
    return condition, MARKET_CONDITION_RISK[condition], trend


def _trade_risk_score(vol: float, stability: float, strength: float, factor: float) -> float:
    raw = vol * 40 + (1 - stability) * 30 + (1 - strength) * 20 + factor * 10
    return min(max(raw / 100, 0.0), 1.0)


def trade_risk(
    closes: list[float],
    volumes: list[float],
    signal_strength: float = 0.0,
    trend_period: int = 20,
) -> TradeRisk:
    """
    Per-symbol trade risk.

    score = (vol * 40 + (1 - volume stability) * 30 + (1 - strength) * 20
             + condition risk factor * 10) / 100, capped at 1.
    """
    vol = realized_volatility(closes)
    stability = volume_stability(volumes)
    condition, factor, trend = market_condition(closes, trend_period)

    score = _trade_risk_score(vol, stability, signal_strength, factor)
    return TradeRisk(
        score=score,
        level=classify_risk_level(score),
        volatility=vol,
        volume_stability=stability,
        market_condition=condition,
        trend=trend,
    )


def apply_signal_strength(risk: TradeRisk, signal_strength: float) -> TradeRisk:
    """Re-score a trade risk once the fused signal strength is known."""
    if risk.is_fallback:
        return risk
    score = _trade_risk_score(
        risk.volatility,
        risk.volume_stability,
        signal_strength,
        MARKET_CONDITION_RISK.get(risk.market_condition, MARKET_CONDITION_RISK["NORMAL"]),
    )
    return risk.model_copy(update={"score": score, "level": classify_risk_level(score)})
