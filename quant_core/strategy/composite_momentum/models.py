"""Composite momentum strategy configuration."""

from pydantic import BaseModel, Field

COMPOSITE_MOMENTUM_STRATEGY_NAME = "composite_momentum"


class CompositeMomentumConfig(BaseModel):
    """Configuration for the composite momentum strategy."""

    rsi_period: int = Field(default=14, gt=0)
    stochastic_period: int = Field(default=14, gt=0)
    macd_fast: int = Field(default=12, gt=0)
    macd_slow: int = Field(default=26, gt=0)
    macd_signal: int = Field(default=9, gt=0)

    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0
    stochastic_oversold: float = 20.0
    stochastic_overbought: float = 80.0

    # |score| needed for a directional call
    score_threshold: float = 0.3
