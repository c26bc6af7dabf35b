"""Trend breakout strategy configuration."""

from pydantic import BaseModel, Field

TREND_BREAKOUT_STRATEGY_NAME = "trend_breakout"


class TrendBreakoutConfig(BaseModel):
    """Configuration for the trend breakout strategy."""

    trend_period: int = Field(default=20, gt=1)
    breakout_threshold: float = Field(default=0.02, ge=0)
    volume_spike: float = Field(default=1.8, gt=0)

    # Fixed output on a confirmed breakout
    breakout_strength: float = Field(default=0.8, ge=0, le=1)
    breakout_confidence: float = Field(default=0.75, ge=0, le=1)
