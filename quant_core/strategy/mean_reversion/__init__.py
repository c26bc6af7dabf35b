"""Mean reversion strategy package.

Importing this package triggers strategy registration via the
@register_strategy decorator on MeanReversionStrategy.
"""

from quant_core.strategy.mean_reversion.generator import MeanReversionStrategy
from quant_core.strategy.mean_reversion.models import (
    MEAN_REVERSION_STRATEGY_NAME,
    MeanReversionConfig,
)

__all__ = [
    "MeanReversionStrategy",
    "MeanReversionConfig",
    "MEAN_REVERSION_STRATEGY_NAME",
]
