"""Portfolio and risk report data models."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from quant_core.models.signal import RiskLevel


class Asset(BaseModel):
    """One holding inside a portfolio."""

    symbol: str
    weight: float = 0.0
    quantity: float = 0.0
    historical_returns: list[float] = Field(default_factory=list)
    liquidity: float | None = None  # 0 (illiquid) .. 1 (fully liquid)
    duration: float | None = None  # interest-rate duration in years


class Portfolio(BaseModel):
    """Portfolio snapshot used for risk analytics."""

    id: str
    current_value: float
    historical_values: list[float] = Field(default_factory=list)
    assets: list[Asset] = Field(default_factory=list)


class VarResult(BaseModel):
    """Value at Risk at one confidence level.

    ``value`` is the mean of the available methods; ``methods`` keeps each
    method's own estimate. All values are positive loss fractions.
    """

    model_config = ConfigDict(frozen=True)

    value: float
    confidence: float
    methods: dict[str, float] = Field(default_factory=dict)
    exceedance_probability: float = 0.0


class CorrelationAnalysis(BaseModel):
    """Pairwise asset correlation summary."""

    model_config = ConfigDict(frozen=True)

    pairs: dict[str, float] = Field(default_factory=dict)
    average: float = 0.0
    maximum: float = 0.0
    high_correlation_pairs: list[str] = Field(default_factory=list)


class StressResult(BaseModel):
    """Impact of one stress scenario on the portfolio."""

    model_config = ConfigDict(frozen=True)

    scenario: str
    market_impact: float
    value_impact: float
    stressed_value: float
    percentage_change: float
    stressed_var: float | None = None
    recovery_time: str = ""


class SensitivityResult(BaseModel):
    """Exposure of the portfolio to one risk factor.

    ``exposure`` is the raw factor measure (beta, duration, volatility or
    liquidity); ``sensitivity`` normalizes it into [0, 1].
    """

    model_config = ConfigDict(frozen=True)

    factor: str
    exposure: float
    sensitivity: float
    rating: str  # LOW, MEDIUM or HIGH


class WeightChange(BaseModel):
    """Suggested weight reduction for one asset."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    current_weight: float
    suggested_weight: float
    risk_reduction: float


class RiskReport(BaseModel):
    """Complete portfolio risk assessment."""

    model_config = ConfigDict(frozen=True)

    portfolio_id: str
    var: VarResult | None = None
    var_99: VarResult | None = None
    expected_shortfall: float | None = None
    max_drawdown: float | None = None
    volatility: float | None = None
    sharpe: float | None = None
    sortino: float | None = None
    beta: float | None = None
    correlation: CorrelationAnalysis = Field(default_factory=CorrelationAnalysis)
    stress_results: list[StressResult] = Field(default_factory=list)
    sensitivity: list[SensitivityResult] = Field(default_factory=list)
    overall_risk: float = 0.5
    risk_level: RiskLevel = RiskLevel.MEDIUM
    recommendations: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    diagnostics: dict[str, Any] = Field(default_factory=dict)
    is_fallback: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def fallback(cls, portfolio_id: str, reason: str, **diagnostics: Any) -> "RiskReport":
        """MEDIUM-risk report returned when metrics cannot be computed."""
        return cls(
            portfolio_id=portfolio_id,
            overall_risk=0.5,
            risk_level=RiskLevel.MEDIUM,
            recommendations=["Risk metrics unavailable; review portfolio manually"],
            warnings=[reason],
            diagnostics={"reason": reason, **diagnostics},
            is_fallback=True,
        )


class TradeRisk(BaseModel):
    """Per-symbol risk assessment used to gate a trade."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(default=0.5, ge=0.0, le=1.0)
    level: RiskLevel = RiskLevel.MEDIUM
    volatility: float = 0.0
    volume_stability: float = 1.0
    market_condition: str = "NORMAL"
    trend: str = "SIDEWAYS"
    is_fallback: bool = False
