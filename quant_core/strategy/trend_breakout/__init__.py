"""Trend breakout strategy package."""

from quant_core.strategy.trend_breakout.generator import TrendBreakoutStrategy
from quant_core.strategy.trend_breakout.models import (
    TREND_BREAKOUT_STRATEGY_NAME,
    TrendBreakoutConfig,
)

__all__ = [
    "TrendBreakoutStrategy",
    "TrendBreakoutConfig",
    "TREND_BREAKOUT_STRATEGY_NAME",
]
