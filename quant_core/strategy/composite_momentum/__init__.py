"""Composite momentum strategy package."""

from quant_core.strategy.composite_momentum.generator import CompositeMomentumStrategy
from quant_core.strategy.composite_momentum.models import (
    COMPOSITE_MOMENTUM_STRATEGY_NAME,
    CompositeMomentumConfig,
)

__all__ = [
    "CompositeMomentumStrategy",
    "CompositeMomentumConfig",
    "COMPOSITE_MOMENTUM_STRATEGY_NAME",
]
