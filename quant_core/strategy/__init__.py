"""Strategy plugin system.

Public API:
- Strategy: Protocol that all strategies must implement
- BaseStrategy: Base class providing the evaluation guard
- register_strategy: Decorator to register a strategy class
- create_strategy: Instantiate a strategy by name from optional config params
- list_strategies: Discover all registered strategies
- get_strategy_class: Get strategy class by name without instantiating

Importing this package auto-registers all built-in strategies.
"""

from quant_core.strategy.base import BaseStrategy
from quant_core.strategy.protocol import Strategy
from quant_core.strategy.registry import (
    create_strategy,
    get_strategy_class,
    list_strategies,
    register_strategy,
)

# Import built-in strategies to trigger auto-registration
import quant_core.strategy.mean_reversion  # noqa: F401
import quant_core.strategy.trend_breakout  # noqa: F401
import quant_core.strategy.composite_momentum  # noqa: F401
import quant_core.strategy.price_action  # noqa: F401

__all__ = [
    "Strategy",
    "BaseStrategy",
    "register_strategy",
    "create_strategy",
    "list_strategies",
    "get_strategy_class",
]
