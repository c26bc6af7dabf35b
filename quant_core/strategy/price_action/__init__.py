"""Price action (chart pattern) strategy package."""

from quant_core.strategy.price_action.generator import PriceActionStrategy
from quant_core.strategy.price_action.models import (
    PATTERN_RELIABILITY,
    PRICE_ACTION_STRATEGY_NAME,
    PatternMatch,
    PriceActionConfig,
)

__all__ = [
    "PriceActionStrategy",
    "PriceActionConfig",
    "PatternMatch",
    "PATTERN_RELIABILITY",
    "PRICE_ACTION_STRATEGY_NAME",
]
